# socialpulse/services/social/providers/base.py

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional
from urllib.parse import urlencode

import requests

from ..errors import SyncDegraded, TokenExchangeError
from ..score_calculator import calculate_engagement_score
from ....models.social.account_metrics import AccountMetrics
from ....models.social.linked_account import LinkedAccount
from ....utils.helpers import make_log_tag, mask_secret
from ....utils.logger import Log
from ....utils.pkce import code_challenge_for, generate_code_verifier


DEFAULT_TIMEOUT_SECONDS = 10

ALL_CAPABILITIES = frozenset({"authorize", "exchange", "profile", "sync"})


@dataclass(frozen=True)
class TokenResult:
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    scope: Optional[str] = None
    # full provider response, e.g. TikTok puts open_id here
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(frozen=True)
class ProviderProfile:
    platform_user_id: str
    display_name: Optional[str] = None
    username: Optional[str] = None
    account_type: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


def _id_str(value) -> Optional[str]:
    return str(value) if value not in (None, "") else None


def _int_field(mapping, *path) -> Optional[int]:
    """
    Walk `path` into nested dicts and return an int, or None when any step is
    missing. Accepts ints, floats and numeric strings (YouTube sends "1234").
    """
    value = mapping
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        return None


class SocialProviderBase:
    """
    One adapter per platform behind a uniform contract:

        build_authorization_url(state, redirect_uri) -> url
        exchange_code(code, state, verifier)         -> TokenResult
        fetch_profile(access_token)                  -> ProviderProfile
        sync_metrics(account)                        -> AccountMetrics (never raises)

    Providers requiring PKCE store a fresh verifier under `state` before the
    URL is handed out; the callback path takes it back out exactly once.
    """

    platform: str = "unknown"
    requires_pkce: bool = False
    capabilities: FrozenSet[str] = ALL_CAPABILITIES

    authorize_url: Optional[str] = None
    token_url: Optional[str] = None
    default_scope: str = ""

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        scope: Optional[str] = None,
        verifier_store=None,
        timeout: int = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scope = scope or self.default_scope
        self.verifier_store = verifier_store
        self.timeout = timeout or DEFAULT_TIMEOUT_SECONDS

    def __repr__(self):
        return f"<{self.__class__.__name__} platform={self.platform}>"

    def supports(self, capability: str) -> bool:
        return capability in self.capabilities

    def _require(self, capability: str):
        if not self.supports(capability):
            raise NotImplementedError(f"{self.platform} does not support {capability}")

    # -------------------- Authorization --------------------

    def _authorization_params(self, state: str, redirect_uri: str) -> Dict[str, Any]:
        return {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": self.scope,
            "state": state,
        }

    def build_authorization_url(self, state: str, redirect_uri: Optional[str] = None) -> str:
        self._require("authorize")
        if not state:
            raise ValueError("state is required")

        params = self._authorization_params(state, redirect_uri or self.redirect_uri)

        if self.requires_pkce:
            if self.verifier_store is None:
                raise RuntimeError(f"{self.platform} requires PKCE but no verifier store is configured")
            verifier = generate_code_verifier()
            # persisted before the URL leaves this process
            self.verifier_store.put(state, verifier)
            params["code_challenge"] = code_challenge_for(verifier)
            params["code_challenge_method"] = "S256"

        return f"{self.authorize_url}?{urlencode(params)}"

    # -------------------- Exchange / profile --------------------

    def exchange_code(self, code: str, state: str, verifier: Optional[str] = None) -> TokenResult:
        raise NotImplementedError

    def fetch_profile(self, access_token: str) -> ProviderProfile:
        raise NotImplementedError

    # -------------------- Metrics --------------------

    def sync_metrics(self, account: LinkedAccount) -> AccountMetrics:
        """Best effort: any failure is logged and turned into zeroed metrics."""
        log_tag = make_log_tag("base.py", self.__class__.__name__, "sync_metrics", account.id)

        try:
            metrics = self._fetch_metrics(account)
        except SyncDegraded as e:
            Log.warning(f"{log_tag} sync degraded: {e.message}")
            return AccountMetrics.zero()
        except Exception as e:
            Log.error(f"{log_tag} unexpected error while syncing: {e}")
            return AccountMetrics.zero()

        if metrics is None:
            return AccountMetrics.zero()
        if metrics.source in ("demo", "default"):
            return metrics
        return metrics.with_score(self._score(account, metrics))

    def _fetch_metrics(self, account: LinkedAccount) -> AccountMetrics:
        raise NotImplementedError

    def _score(self, account: LinkedAccount, metrics: AccountMetrics) -> int:
        return calculate_engagement_score(metrics)

    def _require_token(self, account: LinkedAccount) -> str:
        if not account.access_token:
            raise SyncDegraded(f"{self.platform} account has no access token")
        return account.access_token

    # -------------------- HTTP helpers --------------------

    def _auth_headers(self, access_token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }

    def _envelope(self, r) -> Dict[str, Any]:
        text = r.text or ""
        try:
            js = r.json() if text else {}
        except ValueError:
            js = {}

        if r.status_code >= 400:
            return {
                "success": False,
                "status_code": r.status_code,
                "error": js or {"message": text[:500]},
            }

        return {"success": True, "status_code": r.status_code, "data": js}

    def _request_get(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            r = requests.get(url, headers=headers, params=params, timeout=self.timeout)
            return self._envelope(r)
        except requests.exceptions.Timeout:
            return {"success": False, "status_code": None, "error": {"message": "Request timeout"}}
        except requests.exceptions.RequestException as e:
            return {"success": False, "status_code": None, "error": {"message": str(e)}}

    def _request_post(
        self,
        url: str,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        auth=None,
    ) -> Dict[str, Any]:
        try:
            r = requests.post(url, data=data, headers=headers, auth=auth, timeout=self.timeout)
            return self._envelope(r)
        except requests.exceptions.Timeout:
            return {"success": False, "status_code": None, "error": {"message": "Request timeout"}}
        except requests.exceptions.RequestException as e:
            return {"success": False, "status_code": None, "error": {"message": str(e)}}

    def _get_or_degrade(self, url, headers=None, params=None) -> Dict[str, Any]:
        """GET for metrics calls; failures become SyncDegraded for sync_metrics to absorb."""
        resp = self._request_get(url, headers=headers, params=params)
        if not resp.get("success"):
            raise SyncDegraded(
                f"{self.platform} GET {url} failed status={resp.get('status_code')} error={resp.get('error')}"
            )
        return resp.get("data") or {}

    def _profile_or_raise(self, url, headers=None, params=None) -> Dict[str, Any]:
        """GET for the profile call of the connect flow; failures abort the connect."""
        resp = self._request_get(url, headers=headers, params=params)
        if not resp.get("success"):
            Log.error(f"[base.py][{self.__class__.__name__}][fetch_profile] {url} failed: {resp.get('error')}")
            raise TokenExchangeError(
                f"{self.platform} profile lookup failed",
                platform=self.platform,
                status=resp.get("status_code"),
            )
        return resp.get("data") or {}

    def _exchange_or_raise(self, method: str, url: str, **kwargs) -> TokenResult:
        """
        Run the token request and turn the body into a TokenResult.

        Raises TokenExchangeError on non-2xx, network failure, timeout or a
        body without `access_token`.
        """
        log_tag = make_log_tag("base.py", self.__class__.__name__, "exchange_code")

        start_time = time.time()
        if method == "GET":
            resp = self._request_get(url, headers=kwargs.get("headers"), params=kwargs.get("params"))
        else:
            resp = self._request_post(
                url, data=kwargs.get("data"), headers=kwargs.get("headers"), auth=kwargs.get("auth"),
            )
        duration = time.time() - start_time
        Log.info(f"{log_tag} token exchange completed in {duration:.2f}s status={resp.get('status_code')}")

        if not resp.get("success"):
            Log.error(f"{log_tag} token exchange failed: {resp.get('error')}")
            raise TokenExchangeError(
                f"{self.platform} token exchange failed",
                platform=self.platform,
                status=resp.get("status_code"),
            )

        token_data = self._token_payload(resp.get("data") or {})
        access_token = token_data.get("access_token")
        if not access_token:
            Log.error(f"{log_tag} response has no access_token: keys={sorted(token_data.keys())}")
            raise TokenExchangeError(
                f"{self.platform} token response missing access_token",
                platform=self.platform,
                status=resp.get("status_code"),
            )

        Log.info(f"{log_tag} access_token={mask_secret(access_token)}")

        return TokenResult(
            access_token=access_token,
            refresh_token=token_data.get("refresh_token"),
            expires_in=_int_field(token_data, "expires_in"),
            scope=token_data.get("scope"),
            raw=dict(token_data),
        )

    def _token_payload(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Hook for providers that wrap the token fields (TikTok v1 used `data`)."""
        return body if isinstance(body, dict) else {}

    def _authorization_code_form(self, code: str, redirect_uri: Optional[str] = None) -> Dict[str, Any]:
        return {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri or self.redirect_uri,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
