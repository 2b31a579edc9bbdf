# socialpulse/services/social/providers/linkedin_provider.py
#
# LinkedIn provider
#
# LinkedIn API v2 / OpenID Connect:
# - OAuth: authorization code, form-encoded POST to /oauth/v2/accessToken
# - Profile: /v2/userinfo (sub, name, email)
# - Organization pages: /organizationAcls to find an administered page,
#   /organizationalEntityFollowerStatistics for follower counts and gains
#
# Key limitations:
# - Member connection counts are not available to ordinary apps. Personal
#   profiles therefore only ever report the numbers the user typed in
#   (manual_metrics), or zeros when there are none.
# - Organization analytics need r_organization_admin / rw_organization_admin
#   (Community Management API approval). Without that scope every account is
#   treated as personal.

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from .base import ProviderProfile, SocialProviderBase, TokenResult, _id_str, _int_field
from ....constants.service_code import MANUAL_METRIC_FIELDS
from ....models.social.account_metrics import AccountMetrics
from ....models.social.linked_account import LinkedAccount
from ....utils.helpers import make_log_tag
from ....utils.logger import Log


LINKEDIN_API_BASE = "https://api.linkedin.com/v2"
LINKEDIN_OAUTH_BASE = "https://www.linkedin.com/oauth/v2"

ORGANIZATION_URN_PREFIX = "urn:li:organization:"
ORGANIZATION_SCOPES = ("r_organization_admin", "rw_organization_admin")

# (exclusive lower bound, points), highest first
FOLLOWER_TIERS = ((10000, 40), (5000, 35), (1000, 30), (500, 20), (100, 10), (0, 5))
GROWTH_TIERS = ((1000, 60), (500, 50), (100, 40), (50, 30), (10, 20), (0, 10))


def _tier_points(value: int, tiers) -> int:
    for threshold, points in tiers:
        if value > threshold:
            return points
    return 0


def company_engagement_score(follower_count: int, followers_gained: int) -> int:
    """Company pages are scored on audience size (max 40) plus growth (max 60)."""
    score = _tier_points(follower_count or 0, FOLLOWER_TIERS)
    score += _tier_points(followers_gained or 0, GROWTH_TIERS)
    return min(100, score)


def normalize_manual_metrics(manual: Optional[Mapping[str, Any]]) -> Dict[str, int]:
    """Keep the known counters only, as non-negative ints."""
    manual = manual or {}
    normalized = {}
    for name in MANUAL_METRIC_FIELDS:
        value = _int_field(manual, name)
        if value is not None:
            normalized[name] = max(0, value)
    return normalized


class LinkedInProvider(SocialProviderBase):
    platform = "linkedin"
    authorize_url = f"{LINKEDIN_OAUTH_BASE}/authorization"
    token_url = f"{LINKEDIN_OAUTH_BASE}/accessToken"
    default_scope = "openid profile email"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.api_base = LINKEDIN_API_BASE

    def _auth_headers(self, access_token: str) -> Dict[str, str]:
        headers = super()._auth_headers(access_token)
        headers["X-Restli-Protocol-Version"] = "2.0.0"
        return headers

    @property
    def can_read_organizations(self) -> bool:
        granted = set((self.scope or "").replace(",", " ").split())
        return any(s in granted for s in ORGANIZATION_SCOPES)

    def exchange_code(self, code: str, state: str, verifier: Optional[str] = None) -> TokenResult:
        return self._exchange_or_raise(
            "POST",
            self.token_url,
            data=self._authorization_code_form(code),
            headers={"Content-Type": "application/x-www-form-urlencoded", "Accept": "application/json"},
        )

    def fetch_profile(self, access_token: str) -> ProviderProfile:
        log_tag = make_log_tag("linkedin_provider.py", "LinkedInProvider", "fetch_profile")

        info = self._profile_or_raise(
            f"{self.api_base}/userinfo",
            headers=self._auth_headers(access_token),
        )
        member = ProviderProfile(
            platform_user_id=_id_str(info.get("sub")),
            display_name=info.get("name"),
            username=info.get("email") or info.get("name"),
            account_type="personal",
            extra={"email": info.get("email")} if info.get("email") else {},
        )

        if not self.can_read_organizations:
            return member

        org = self._administered_organization(access_token, log_tag)
        if not org:
            return member

        return ProviderProfile(
            platform_user_id=org["id"],
            display_name=org.get("name") or member.display_name,
            username=org.get("vanity_name") or member.username,
            account_type="company",
            extra={"member_id": member.platform_user_id},
        )

    def _administered_organization(self, access_token: str, log_tag: str) -> Optional[Dict[str, Any]]:
        """First organization the member administers, or None."""
        resp = self._request_get(
            f"{self.api_base}/organizationAcls",
            headers=self._auth_headers(access_token),
            params={"q": "roleAssignee", "role": "ADMINISTRATOR", "state": "APPROVED"},
        )
        if not resp.get("success"):
            Log.info(f"{log_tag} organizationAcls unavailable: status={resp.get('status_code')}")
            return None

        for element in (resp.get("data") or {}).get("elements") or []:
            urn = str(element.get("organization") or element.get("organizationalTarget") or "")
            if urn.startswith(ORGANIZATION_URN_PREFIX):
                org_id = urn[len(ORGANIZATION_URN_PREFIX):]
                break
        else:
            return None

        info = self._request_get(
            f"{self.api_base}/organizations/{org_id}",
            headers=self._auth_headers(access_token),
            params={"projection": "(id,localizedName,vanityName)"},
        )
        data = (info.get("data") or {}) if info.get("success") else {}
        return {
            "id": org_id,
            "name": data.get("localizedName"),
            "vanity_name": data.get("vanityName"),
        }

    # -------------------- Metrics --------------------

    def _fetch_metrics(self, account: LinkedAccount) -> AccountMetrics:
        if account.is_company_page:
            return self._company_metrics(account)
        return self.metrics_from_manual(account.manual_metrics)

    def _company_metrics(self, account: LinkedAccount) -> AccountMetrics:
        log_tag = make_log_tag("linkedin_provider.py", "LinkedInProvider", "_company_metrics", account.id)
        access_token = self._require_token(account)

        if not account.platform_user_id:
            Log.warning(f"{log_tag} company page without organization id")
            return AccountMetrics.zero()

        data = self._get_or_degrade(
            f"{self.api_base}/organizationalEntityFollowerStatistics",
            headers=self._auth_headers(access_token),
            params={
                "q": "organizationalEntity",
                "organizationalEntity": f"{ORGANIZATION_URN_PREFIX}{account.platform_user_id}",
            },
        )

        elements = data.get("elements") or []
        first = elements[0] if elements else {}
        followers = _int_field(first, "followerCounts", "organicFollowerCount") or 0
        gained = _int_field(first, "followerGains", "organicFollowerGain") or 0
        score = company_engagement_score(followers, gained)

        Log.info(f"{log_tag} followers={followers} growth={gained} score={score}")

        return AccountMetrics(engagement_score=score, connections=followers)

    def _score(self, account: LinkedAccount, metrics: AccountMetrics) -> int:
        if account.is_company_page:
            return metrics.engagement_score
        return super()._score(account, metrics)

    def metrics_from_manual(self, manual: Optional[Mapping[str, Any]]) -> AccountMetrics:
        """Personal profiles: user-entered counters, or all-zero when none were entered."""
        normalized = normalize_manual_metrics(manual)
        if not normalized:
            return AccountMetrics.zero()

        metrics = AccountMetrics(
            connections=normalized.get("connections", 0),
            posts=normalized.get("posts", 0),
            pending_responses=normalized.get("pending_responses", 0),
            new_messages=normalized.get("new_messages", 0),
            source="manual",
        )
        return metrics.with_score(super()._score(None, metrics))
