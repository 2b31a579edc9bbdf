# socialpulse/services/social/providers/youtube_provider.py
#
# YouTube provider (YouTube Data API v3 via Google OAuth)
#
# Statistics come back as numeric strings ("1234"); hiddenSubscriberCount
# channels report no subscriberCount at all.

from __future__ import annotations

from typing import Any, Dict, Optional

from .base import ProviderProfile, SocialProviderBase, TokenResult, _id_str, _int_field
from ..errors import SyncDegraded
from ....models.social.account_metrics import AccountMetrics
from ....models.social.linked_account import LinkedAccount
from ....utils.helpers import make_log_tag
from ....utils.logger import Log


GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
YOUTUBE_API_BASE = "https://www.googleapis.com/youtube/v3"


class YouTubeProvider(SocialProviderBase):
    platform = "youtube"
    authorize_url = GOOGLE_AUTHORIZE_URL
    token_url = GOOGLE_TOKEN_URL
    default_scope = "https://www.googleapis.com/auth/youtube.readonly"

    def _authorization_params(self, state: str, redirect_uri: str) -> Dict[str, Any]:
        params = super()._authorization_params(state, redirect_uri)
        # refresh token on every consent
        params["access_type"] = "offline"
        params["prompt"] = "consent"
        return params

    def exchange_code(self, code: str, state: str, verifier: Optional[str] = None) -> TokenResult:
        return self._exchange_or_raise(
            "POST",
            self.token_url,
            data=self._authorization_code_form(code),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

    def _my_channel(self, body: Dict[str, Any]) -> Dict[str, Any]:
        items = body.get("items") or []
        return items[0] if items else {}

    def fetch_profile(self, access_token: str) -> ProviderProfile:
        body = self._profile_or_raise(
            f"{YOUTUBE_API_BASE}/channels",
            headers=self._auth_headers(access_token),
            params={"part": "snippet", "mine": "true"},
        )
        channel = self._my_channel(body)
        snippet = channel.get("snippet") or {}
        return ProviderProfile(
            platform_user_id=_id_str(channel.get("id")),
            display_name=snippet.get("title"),
            username=snippet.get("customUrl") or snippet.get("title"),
        )

    def _fetch_metrics(self, account: LinkedAccount) -> AccountMetrics:
        log_tag = make_log_tag("youtube_provider.py", "YouTubeProvider", "_fetch_metrics", account.id)
        access_token = self._require_token(account)

        body = self._get_or_degrade(
            f"{YOUTUBE_API_BASE}/channels",
            headers=self._auth_headers(access_token),
            params={"part": "snippet,statistics", "mine": "true"},
        )
        channel = self._my_channel(body)
        if not channel:
            raise SyncDegraded("youtube account has no channel")

        stats = channel.get("statistics") or {}
        subscribers = _int_field(stats, "subscriberCount") or 0
        videos = _int_field(stats, "videoCount") or 0
        views = _int_field(stats, "viewCount")
        Log.info(f"{log_tag} subscribers={subscribers} videos={videos} views={views}")

        return AccountMetrics(connections=subscribers, posts=videos, views=views)
