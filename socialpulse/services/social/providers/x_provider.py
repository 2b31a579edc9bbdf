# socialpulse/services/social/providers/x_provider.py
#
# X (Twitter) provider, API v2 with OAuth 2.0 + PKCE
#
# - Token: form POST with HTTP Basic client credentials and code_verifier
#   (confidential client)
# - Profile + metrics: /2/users/me?user.fields=public_metrics

from __future__ import annotations

from typing import Optional

from requests.auth import HTTPBasicAuth

from .base import ProviderProfile, SocialProviderBase, TokenResult, _id_str, _int_field
from ....models.social.account_metrics import AccountMetrics
from ....models.social.linked_account import LinkedAccount
from ....utils.helpers import make_log_tag
from ....utils.logger import Log


X_API_BASE = "https://api.twitter.com/2"
X_AUTHORIZE_URL = "https://twitter.com/i/oauth2/authorize"

USER_FIELDS = "id,name,username,public_metrics"


class XProvider(SocialProviderBase):
    platform = "twitter"
    requires_pkce = True
    authorize_url = X_AUTHORIZE_URL
    token_url = f"{X_API_BASE}/oauth2/token"
    default_scope = "tweet.read users.read offline.access"

    def exchange_code(self, code: str, state: str, verifier: Optional[str] = None) -> TokenResult:
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
            "code_verifier": verifier,
        }
        return self._exchange_or_raise(
            "POST",
            self.token_url,
            data=data,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            auth=HTTPBasicAuth(self.client_id or "", self.client_secret or ""),
        )

    def fetch_profile(self, access_token: str) -> ProviderProfile:
        body = self._profile_or_raise(
            f"{X_API_BASE}/users/me",
            headers=self._auth_headers(access_token),
            params={"user.fields": USER_FIELDS},
        )
        user = body.get("data") or {}
        return ProviderProfile(
            platform_user_id=_id_str(user.get("id")),
            display_name=user.get("name"),
            username=user.get("username"),
        )

    def _fetch_metrics(self, account: LinkedAccount) -> AccountMetrics:
        log_tag = make_log_tag("x_provider.py", "XProvider", "_fetch_metrics", account.id)
        access_token = self._require_token(account)

        body = self._get_or_degrade(
            f"{X_API_BASE}/users/me",
            headers=self._auth_headers(access_token),
            params={"user.fields": USER_FIELDS},
        )
        public = (body.get("data") or {}).get("public_metrics") or {}

        followers = _int_field(public, "followers_count") or 0
        tweets = _int_field(public, "tweet_count") or 0
        likes = _int_field(public, "like_count")
        Log.info(f"{log_tag} followers={followers} tweets={tweets}")

        return AccountMetrics(connections=followers, posts=tweets, likes=likes)
