# socialpulse/services/social/providers/tiktok_provider.py
#
# TikTok provider (Open API v2, PKCE)
#
# - OAuth: /v2/auth/authorize/ takes `client_key`, not `client_id`
# - Token: form POST to /v2/oauth/token/ with code_verifier; the response
#   carries open_id next to the tokens
# - Profile + metrics: /v2/user/info/ with an explicit field list

from __future__ import annotations

from typing import Any, Dict, Optional

from .base import ProviderProfile, SocialProviderBase, TokenResult, _id_str, _int_field
from ....models.social.account_metrics import AccountMetrics
from ....models.social.linked_account import LinkedAccount
from ....utils.helpers import make_log_tag
from ....utils.logger import Log


TIKTOK_API_BASE = "https://open.tiktokapis.com/v2"
TIKTOK_AUTHORIZE_URL = "https://www.tiktok.com/v2/auth/authorize/"

PROFILE_FIELDS = "open_id,union_id,display_name,username,avatar_url"
STATS_FIELDS = "open_id,follower_count,following_count,likes_count,video_count"


class TikTokProvider(SocialProviderBase):
    platform = "tiktok"
    requires_pkce = True
    authorize_url = TIKTOK_AUTHORIZE_URL
    token_url = f"{TIKTOK_API_BASE}/oauth/token/"
    default_scope = "user.info.basic,user.info.profile,user.info.stats,video.list"

    def _authorization_params(self, state: str, redirect_uri: str) -> Dict[str, Any]:
        params = super()._authorization_params(state, redirect_uri)
        params["client_key"] = params.pop("client_id")
        return params

    def exchange_code(self, code: str, state: str, verifier: Optional[str] = None) -> TokenResult:
        data = {
            "client_key": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": self.redirect_uri,
            "code_verifier": verifier,
        }
        return self._exchange_or_raise(
            "POST",
            self.token_url,
            data=data,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

    def _token_payload(self, body: Dict[str, Any]) -> Dict[str, Any]:
        # older deployments of the endpoint wrap the token fields in `data`
        if isinstance(body, dict) and "access_token" not in body and isinstance(body.get("data"), dict):
            return body["data"]
        return super()._token_payload(body)

    def _user_info(self, access_token: str, fields: str) -> Dict[str, Any]:
        return self._get_or_degrade(
            f"{TIKTOK_API_BASE}/user/info/",
            headers=self._auth_headers(access_token),
            params={"fields": fields},
        )

    def fetch_profile(self, access_token: str) -> ProviderProfile:
        body = self._profile_or_raise(
            f"{TIKTOK_API_BASE}/user/info/",
            headers=self._auth_headers(access_token),
            params={"fields": PROFILE_FIELDS},
        )
        user = (body.get("data") or {}).get("user") or {}
        return ProviderProfile(
            platform_user_id=_id_str(user.get("open_id")),
            display_name=user.get("display_name"),
            username=user.get("username") or user.get("display_name"),
            extra={"avatar_url": user.get("avatar_url")} if user.get("avatar_url") else {},
        )

    def _fetch_metrics(self, account: LinkedAccount) -> AccountMetrics:
        log_tag = make_log_tag("tiktok_provider.py", "TikTokProvider", "_fetch_metrics", account.id)
        access_token = self._require_token(account)

        body = self._user_info(access_token, STATS_FIELDS)
        user = (body.get("data") or {}).get("user") or {}

        followers = _int_field(user, "follower_count") or 0
        videos = _int_field(user, "video_count") or 0
        likes = _int_field(user, "likes_count")
        Log.info(f"{log_tag} followers={followers} videos={videos} likes={likes}")

        return AccountMetrics(connections=followers, posts=videos, likes=likes)
