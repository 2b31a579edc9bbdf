# socialpulse/services/social/providers/facebook_provider.py
#
# Facebook provider (Graph API v18.0)
#
# - OAuth: legacy dialog, code exchanged with a GET on /oauth/access_token
# - Profile: /me (id, name, email)
# - Metrics: come from the first Page the user manages, not the user node.
#   Page follower count, feed size and unread conversations.
#
# The Page has to be resolved through /me/accounts before any metrics call.
# A user without a managed Page gets a labeled demo dataset so the dashboard
# still renders; a failing Graph call gets zeroed metrics.

from __future__ import annotations

from typing import Any, Dict, Optional

from .base import ProviderProfile, SocialProviderBase, TokenResult, _id_str, _int_field
from ....models.social.account_metrics import AccountMetrics
from ....models.social.linked_account import LinkedAccount
from ....utils.helpers import make_log_tag
from ....utils.logger import Log


GRAPH_VERSION = "v18.0"
GRAPH_API_BASE = f"https://graph.facebook.com/{GRAPH_VERSION}"
FACEBOOK_DIALOG_URL = f"https://www.facebook.com/{GRAPH_VERSION}/dialog/oauth"

# Shown when the user manages no Page yet
FACEBOOK_DEMO_METRICS = AccountMetrics(
    engagement_score=85,
    connections=1250,
    posts=89,
    pending_responses=5,
    new_messages=12,
    source="demo",
)


class FacebookProvider(SocialProviderBase):
    platform = "facebook"
    authorize_url = FACEBOOK_DIALOG_URL
    token_url = f"{GRAPH_API_BASE}/oauth/access_token"
    default_scope = "public_profile,email,pages_show_list,pages_read_engagement,pages_messaging"

    demo_metrics = FACEBOOK_DEMO_METRICS

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.graph_base = GRAPH_API_BASE

    def _authorization_params(self, state: str, redirect_uri: str) -> Dict[str, Any]:
        params = super()._authorization_params(state, redirect_uri)
        # Facebook wants comma separated scopes
        params["scope"] = ",".join(s.strip() for s in self.scope.replace(" ", ",").split(",") if s.strip())
        return params

    def exchange_code(self, code: str, state: str, verifier: Optional[str] = None) -> TokenResult:
        return self._exchange_or_raise(
            "GET",
            self.token_url,
            params={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.redirect_uri,
                "code": code,
            },
        )

    def fetch_profile(self, access_token: str) -> ProviderProfile:
        me = self._profile_or_raise(
            f"{self.graph_base}/me",
            params={"fields": "id,name,email", "access_token": access_token},
        )
        return ProviderProfile(
            platform_user_id=_id_str(me.get("id")),
            display_name=me.get("name"),
            username=me.get("name"),
            extra={"email": me.get("email")} if me.get("email") else {},
        )

    # -------------------- Page resolution --------------------

    def _managed_pages(self, access_token: str, fields: str):
        data = self._get_or_degrade(
            f"{self.graph_base}/me/accounts",
            params={"fields": fields, "access_token": access_token},
        )
        return data.get("data") or []

    def _resolve_page(self, access_token: str) -> Optional[Dict[str, Any]]:
        pages = self._managed_pages(access_token, "id,name,access_token,followers_count,fan_count")
        return pages[0] if pages else None

    # -------------------- Metrics --------------------

    def _fetch_metrics(self, account: LinkedAccount) -> AccountMetrics:
        log_tag = make_log_tag("facebook_provider.py", "FacebookProvider", "_fetch_metrics", account.id)
        access_token = self._require_token(account)

        page = self._resolve_page(access_token)
        if not page:
            Log.warning(f"{log_tag} no managed Page found, using demo metrics")
            return self.demo_metrics

        page_id = page.get("id")
        page_token = page.get("access_token") or access_token

        followers = _int_field(page, "followers_count")
        if followers is None:
            followers = _int_field(page, "fan_count") or 0

        feed = self._get_or_degrade(
            f"{self.graph_base}/{page_id}/feed",
            params={"fields": "id", "limit": 100, "access_token": page_token},
        )
        posts = len(feed.get("data") or [])

        pending_responses, new_messages = self._conversation_counts(page_id, page_token, log_tag)

        Log.info(f"{log_tag} page={page_id} followers={followers} posts={posts} pending={pending_responses}")

        return AccountMetrics(
            connections=followers,
            posts=posts,
            pending_responses=pending_responses,
            new_messages=new_messages,
        )

    def _conversation_counts(self, page_id, page_token, log_tag):
        """
        Unread messages across the Page inbox. Needs pages_messaging; without it
        the inbox counts are 0 and the rest of the metrics still stand.
        """
        resp = self._request_get(
            f"{self.graph_base}/{page_id}/conversations",
            params={"fields": "unread_count", "limit": 100, "access_token": page_token},
        )
        if not resp.get("success"):
            Log.info(f"{log_tag} conversations unavailable: status={resp.get('status_code')}")
            return 0, 0

        conversations = (resp.get("data") or {}).get("data") or []
        unread = [_int_field(c, "unread_count") or 0 for c in conversations]
        return sum(1 for u in unread if u > 0), sum(unread)
