# socialpulse/services/social/providers/snapchat_provider.py
#
# Snapchat provider (Login Kit, PKCE)
#
# Login Kit only exposes identity (externalId, displayName). There is no
# public API for friends, snaps or chats, so metrics are a static demo
# dataset, labeled as such.

from __future__ import annotations

from typing import Optional

from .base import ProviderProfile, SocialProviderBase, TokenResult, _id_str
from ....models.social.account_metrics import AccountMetrics
from ....models.social.linked_account import LinkedAccount


SNAPCHAT_AUTH_BASE = "https://accounts.snapchat.com/accounts/oauth2"
SNAPCHAT_KIT_ME_URL = "https://kit.snapchat.com/v1/me"

SNAPCHAT_DEMO_METRICS = AccountMetrics(
    engagement_score=78,
    connections=5200,
    posts=892,
    pending_responses=12,
    new_messages=34,
    source="demo",
)


class SnapchatProvider(SocialProviderBase):
    platform = "snapchat"
    requires_pkce = True
    authorize_url = f"{SNAPCHAT_AUTH_BASE}/auth"
    token_url = f"{SNAPCHAT_AUTH_BASE}/token"
    default_scope = (
        "https://auth.snapchat.com/oauth2/api/user.display_name "
        "https://auth.snapchat.com/oauth2/api/user.external_id"
    )

    def exchange_code(self, code: str, state: str, verifier: Optional[str] = None) -> TokenResult:
        data = self._authorization_code_form(code)
        data["code_verifier"] = verifier
        return self._exchange_or_raise(
            "POST",
            self.token_url,
            data=data,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

    def fetch_profile(self, access_token: str) -> ProviderProfile:
        body = self._profile_or_raise(
            SNAPCHAT_KIT_ME_URL,
            headers=self._auth_headers(access_token),
            params={"query": "{me{externalId displayName}}"},
        )
        me = (body.get("data") or {}).get("me") or {}
        return ProviderProfile(
            platform_user_id=_id_str(me.get("externalId")),
            display_name=me.get("displayName"),
            username=me.get("displayName"),
        )

    def _fetch_metrics(self, account: LinkedAccount) -> AccountMetrics:
        return SNAPCHAT_DEMO_METRICS
