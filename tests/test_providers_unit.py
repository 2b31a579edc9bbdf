"""Unit tests for the platform adapters."""

from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import pytest
import requests

from socialpulse.models.social.account_metrics import AccountMetrics
from socialpulse.models.social.linked_account import LinkedAccount
from socialpulse.services.social.errors import TokenExchangeError, UnsupportedPlatform
from socialpulse.services.social.pkce_store import InMemoryVerifierStore
from socialpulse.services.social.providers.facebook_provider import FACEBOOK_DEMO_METRICS, FacebookProvider
from socialpulse.services.social.providers.instagram_provider import INSTAGRAM_DEMO_METRICS, InstagramProvider
from socialpulse.services.social.providers.linkedin_provider import (
    LinkedInProvider,
    company_engagement_score,
    normalize_manual_metrics,
)
from socialpulse.services.social.providers.snapchat_provider import SNAPCHAT_DEMO_METRICS, SnapchatProvider
from socialpulse.services.social.providers.tiktok_provider import TikTokProvider
from socialpulse.services.social.providers.x_provider import XProvider
from socialpulse.services.social.providers.youtube_provider import YouTubeProvider
from socialpulse.services.social.registry import ProviderRegistry, build_provider_registry
from socialpulse.utils.pkce import code_challenge_for
from tests.factories import make_response


REQUESTS_GET = "socialpulse.services.social.providers.base.requests.get"
REQUESTS_POST = "socialpulse.services.social.providers.base.requests.post"


def _account(platform, **kwargs):
    kwargs.setdefault("access_token", "tok")
    return LinkedAccount(user_id="user-1", platform=platform, id="acc-1", **kwargs)


def _query(url):
    return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}


class TestAuthorizationUrl:
    """Tests for build_authorization_url."""

    def test_pkce_provider_stores_verifier_before_returning_url(self):
        """The challenge in the URL belongs to the verifier stored under state."""
        store = InMemoryVerifierStore()
        provider = XProvider(client_id="cid", redirect_uri="http://cb", verifier_store=store)

        params = _query(provider.build_authorization_url("state-1"))
        verifier = store.take("state-1")

        assert verifier
        assert params["code_challenge"] == code_challenge_for(verifier)
        assert params["code_challenge_method"] == "S256"
        assert params["state"] == "state-1"
        assert params["client_id"] == "cid"

    def test_pkce_provider_without_store(self):
        """A PKCE provider with no verifier store refuses to build a URL."""
        with pytest.raises(RuntimeError):
            XProvider(client_id="cid").build_authorization_url("state-1")

    def test_non_pkce_provider_has_no_challenge(self):
        """LinkedIn uses a plain authorization code flow."""
        store = InMemoryVerifierStore()
        provider = LinkedInProvider(client_id="cid", redirect_uri="http://cb", verifier_store=store)

        params = _query(provider.build_authorization_url("state-1"))

        assert "code_challenge" not in params
        assert len(store) == 0

    def test_tiktok_uses_client_key(self):
        """TikTok names the client id client_key."""
        provider = TikTokProvider(client_id="ck", verifier_store=InMemoryVerifierStore())

        params = _query(provider.build_authorization_url("state-1"))

        assert params["client_key"] == "ck"
        assert "client_id" not in params

    def test_facebook_scopes_are_comma_separated(self):
        """Facebook scopes are joined with commas."""
        provider = FacebookProvider(client_id="cid", scope="public_profile email")

        assert _query(provider.build_authorization_url("s"))["scope"] == "public_profile,email"

    def test_youtube_requests_offline_access(self):
        """Google is asked for a refresh token on every consent."""
        params = _query(YouTubeProvider(client_id="cid").build_authorization_url("s"))

        assert params["access_type"] == "offline"
        assert params["prompt"] == "consent"


class TestExchangeCode:
    """Tests for the token exchange."""

    def test_success(self):
        """A 200 body with access_token becomes a TokenResult."""
        provider = LinkedInProvider(client_id="cid", client_secret="sec", redirect_uri="http://cb")
        body = {"access_token": "tok", "refresh_token": "ref", "expires_in": 3600, "scope": "openid"}

        with patch(REQUESTS_POST, return_value=make_response(200, body)) as mock_post:
            token = provider.exchange_code("code-1", "state-1")

        assert token.access_token == "tok"
        assert token.refresh_token == "ref"
        assert token.expires_in == 3600
        assert mock_post.call_args.kwargs["data"]["code"] == "code-1"

    def test_missing_access_token(self):
        """A 200 body without access_token is an exchange failure."""
        provider = LinkedInProvider(client_id="cid", client_secret="sec")

        with patch(REQUESTS_POST, return_value=make_response(200, {"expires_in": 3600})):
            with pytest.raises(TokenExchangeError):
                provider.exchange_code("code-1", "state-1")

    def test_provider_rejects_code(self):
        """A 4xx from the token endpoint is an exchange failure."""
        provider = XProvider(client_id="cid", client_secret="sec")

        with patch(REQUESTS_POST, return_value=make_response(400, {"error": "invalid_grant"})):
            with pytest.raises(TokenExchangeError) as exc:
                provider.exchange_code("code-1", "state-1", "verifier")

        assert exc.value.status == 400
        assert exc.value.platform == "twitter"

    def test_network_timeout(self):
        """A timeout is an exchange failure, not a crash."""
        provider = XProvider(client_id="cid", client_secret="sec")

        with patch(REQUESTS_POST, side_effect=requests.exceptions.Timeout()):
            with pytest.raises(TokenExchangeError):
                provider.exchange_code("code-1", "state-1", "verifier")

    def test_x_sends_verifier(self):
        """The PKCE verifier travels with the X token request."""
        provider = XProvider(client_id="cid", client_secret="sec")

        with patch(REQUESTS_POST, return_value=make_response(200, {"access_token": "tok"})) as mock_post:
            provider.exchange_code("code-1", "state-1", "the-verifier")

        assert mock_post.call_args.kwargs["data"]["code_verifier"] == "the-verifier"
        assert mock_post.call_args.kwargs["auth"] is not None

    def test_tiktok_unwraps_data(self):
        """TikTok token fields nested under data are accepted."""
        provider = TikTokProvider(client_id="ck", client_secret="sec")
        body = {"data": {"access_token": "tok", "open_id": "oid"}}

        with patch(REQUESTS_POST, return_value=make_response(200, body)):
            token = provider.exchange_code("code-1", "state-1", "verifier")

        assert token.access_token == "tok"
        assert token.raw["open_id"] == "oid"

    def test_facebook_exchanges_with_get(self):
        """Facebook's token endpoint is a GET."""
        provider = FacebookProvider(client_id="cid", client_secret="sec", redirect_uri="http://cb")

        with patch(REQUESTS_GET, return_value=make_response(200, {"access_token": "tok"})) as mock_get:
            token = provider.exchange_code("code-1", "state-1")

        assert token.access_token == "tok"
        assert mock_get.call_args.kwargs["params"]["code"] == "code-1"


class TestProfiles:
    """Tests for fetch_profile."""

    def test_profile_failure_aborts_connect(self):
        """A failing profile call raises TokenExchangeError."""
        provider = XProvider()

        with patch(REQUESTS_GET, return_value=make_response(401, {"title": "Unauthorized"})):
            with pytest.raises(TokenExchangeError):
                provider.fetch_profile("tok")

    def test_linkedin_personal_without_org_scope(self):
        """Without organization scopes a LinkedIn member is a personal account."""
        provider = LinkedInProvider()
        info = {"sub": "member-1", "name": "Ada", "email": "ada@example.com"}

        with patch(REQUESTS_GET, return_value=make_response(200, info)) as mock_get:
            profile = provider.fetch_profile("tok")

        assert profile.platform_user_id == "member-1"
        assert profile.account_type == "personal"
        assert mock_get.call_count == 1

    def test_linkedin_company_page(self):
        """An administered organization turns the account into a company page."""
        provider = LinkedInProvider(scope="openid profile email r_organization_admin")
        responses = [
            make_response(200, {"sub": "member-1", "name": "Ada"}),
            make_response(200, {"elements": [{"organization": "urn:li:organization:99"}]}),
            make_response(200, {"localizedName": "Acme", "vanityName": "acme"}),
        ]

        with patch(REQUESTS_GET, side_effect=responses):
            profile = provider.fetch_profile("tok")

        assert profile.platform_user_id == "99"
        assert profile.account_type == "company"
        assert profile.display_name == "Acme"
        assert profile.extra["member_id"] == "member-1"

    def test_linkedin_org_lookup_denied_falls_back_to_personal(self):
        """A 403 on organizationAcls keeps the member profile."""
        provider = LinkedInProvider(scope="openid r_organization_admin")
        responses = [
            make_response(200, {"sub": "member-1", "name": "Ada"}),
            make_response(403, {"message": "denied"}),
        ]

        with patch(REQUESTS_GET, side_effect=responses):
            profile = provider.fetch_profile("tok")

        assert profile.account_type == "personal"

    def test_snapchat_profile(self):
        """Snapchat identity comes from the Login Kit me query."""
        body = {"data": {"me": {"externalId": "ext-1", "displayName": "Ada"}}}

        with patch(REQUESTS_GET, return_value=make_response(200, body)):
            profile = SnapchatProvider().fetch_profile("tok")

        assert profile.platform_user_id == "ext-1"
        assert profile.display_name == "Ada"

    def test_instagram_business_account(self):
        """Instagram accounts are keyed on the business account id."""
        provider = InstagramProvider()
        responses = [
            make_response(200, {"id": "fb-1", "name": "Ada"}),
            make_response(200, {"data": [{"id": "page-1", "instagram_business_account": {
                "id": "ig-1", "username": "ada.ig",
            }}]}),
        ]

        with patch(REQUESTS_GET, side_effect=responses):
            profile = provider.fetch_profile("tok")

        assert profile.platform_user_id == "ig-1"
        assert profile.username == "ada.ig"


class TestSyncMetrics:
    """Tests for sync_metrics."""

    def test_youtube_string_counts(self):
        """YouTube statistics arrive as strings and are parsed."""
        body = {"items": [{"statistics": {"subscriberCount": "1234", "videoCount": "20", "viewCount": "5000"}}]}

        with patch(REQUESTS_GET, return_value=make_response(200, body)):
            metrics = YouTubeProvider().sync_metrics(_account("youtube"))

        assert metrics.connections == 1234
        assert metrics.posts == 20
        assert metrics.views == 5000
        assert metrics.engagement_score == 44

    def test_youtube_without_channel_is_zero(self):
        """An account with no channel syncs to zeros."""
        with patch(REQUESTS_GET, return_value=make_response(200, {"items": []})):
            metrics = YouTubeProvider().sync_metrics(_account("youtube"))

        assert metrics == AccountMetrics.zero()

    def test_timeout_is_zero(self):
        """A timeout never escapes sync_metrics."""
        with patch(REQUESTS_GET, side_effect=requests.exceptions.Timeout()):
            metrics = XProvider().sync_metrics(_account("twitter"))

        assert metrics == AccountMetrics.zero()

    def test_missing_token_is_zero(self):
        """An account without an access token syncs to zeros without a network call."""
        with patch(REQUESTS_GET) as mock_get:
            metrics = XProvider().sync_metrics(_account("twitter", access_token=None))

        mock_get.assert_not_called()
        assert metrics == AccountMetrics.zero()

    def test_x_public_metrics(self):
        """X followers and tweets feed the score."""
        body = {"data": {"id": "42", "public_metrics": {"followers_count": 1250, "tweet_count": 89}}}

        with patch(REQUESTS_GET, return_value=make_response(200, body)):
            metrics = XProvider().sync_metrics(_account("twitter"))

        assert metrics.connections == 1250
        assert metrics.engagement_score == 74
        assert metrics.source == "live"

    def test_facebook_without_page_uses_demo(self):
        """A user with no managed Page sees the labeled demo dataset."""
        with patch(REQUESTS_GET, return_value=make_response(200, {"data": []})):
            metrics = FacebookProvider().sync_metrics(_account("facebook"))

        assert metrics == FACEBOOK_DEMO_METRICS
        assert metrics.source == "demo"
        assert metrics.engagement_score == 85

    def test_facebook_failure_is_zero_not_demo(self):
        """A failing Graph call gives zeros, never demo numbers."""
        with patch(REQUESTS_GET, return_value=make_response(500, {"error": {"message": "down"}})):
            metrics = FacebookProvider().sync_metrics(_account("facebook"))

        assert metrics == AccountMetrics.zero()

    def test_facebook_page_metrics(self):
        """Page followers, feed size and unread conversations are collected."""
        responses = [
            make_response(200, {"data": [{"id": "page-1", "access_token": "ptok", "followers_count": 1250}]}),
            make_response(200, {"data": [{"id": str(i)} for i in range(89)]}),
            make_response(200, {"data": [{"unread_count": 3}, {"unread_count": 0}, {"unread_count": 2}]}),
        ]

        with patch(REQUESTS_GET, side_effect=responses):
            metrics = FacebookProvider().sync_metrics(_account("facebook"))

        assert metrics.connections == 1250
        assert metrics.posts == 89
        assert metrics.pending_responses == 2
        assert metrics.new_messages == 5

    def test_instagram_without_business_account_uses_demo(self):
        """No Instagram business account gives the Instagram demo dataset."""
        with patch(REQUESTS_GET, return_value=make_response(200, {"data": [{"id": "page-1"}]})):
            metrics = InstagramProvider().sync_metrics(_account("instagram"))

        assert metrics == INSTAGRAM_DEMO_METRICS

    def test_snapchat_is_always_demo(self):
        """Snapchat has no metrics API; the demo dataset is returned without a call."""
        with patch(REQUESTS_GET) as mock_get:
            metrics = SnapchatProvider().sync_metrics(_account("snapchat"))

        mock_get.assert_not_called()
        assert metrics == SNAPCHAT_DEMO_METRICS

    def test_linkedin_company_keeps_tier_score(self):
        """Company pages are scored on follower tiers, not the generic formula."""
        body = {"elements": [{
            "followerCounts": {"organicFollowerCount": 6000},
            "followerGains": {"organicFollowerGain": 60},
        }]}
        account = _account("linkedin", account_type="company", platform_user_id="99")

        with patch(REQUESTS_GET, return_value=make_response(200, body)):
            metrics = LinkedInProvider().sync_metrics(account)

        assert metrics.connections == 6000
        assert metrics.engagement_score == 65

    def test_linkedin_personal_without_manual_numbers_is_zero(self):
        """A personal profile with nothing entered syncs to zeros."""
        with patch(REQUESTS_GET) as mock_get:
            metrics = LinkedInProvider().sync_metrics(_account("linkedin", account_type="personal"))

        mock_get.assert_not_called()
        assert metrics == AccountMetrics.zero()


class TestLinkedInHelpers:
    """Tests for LinkedIn scoring helpers."""

    def test_company_score_tiers(self):
        """Follower and growth tiers add up and cap at 100."""
        assert company_engagement_score(0, 0) == 0
        assert company_engagement_score(50, 5) == 15
        assert company_engagement_score(12000, 150) == 80
        assert company_engagement_score(20000, 5000) == 100

    def test_normalize_manual_metrics(self):
        """Unknown keys are dropped and negatives clamp to zero."""
        assert normalize_manual_metrics({"connections": "12", "posts": -3, "likes": 9}) == {
            "connections": 12,
            "posts": 0,
        }


class TestProviderRegistry:
    """Tests for the provider registry."""

    def test_all_platforms_are_registered(self):
        """Every platform gets an adapter built from config."""
        registry = build_provider_registry({"TWITTER_CLIENT_ID": "cid"}, InMemoryVerifierStore())

        assert {p.value for p in registry} == {
            "facebook", "instagram", "linkedin", "snapchat", "tiktok", "twitter", "youtube",
        }
        assert registry.get("x").client_id == "cid"
        assert "myspace" not in registry

    def test_unknown_platform(self):
        """Looking up an unknown platform raises UnsupportedPlatform."""
        with pytest.raises(UnsupportedPlatform):
            ProviderRegistry().get("myspace")

    def test_known_but_unregistered_platform(self):
        """A valid platform with no adapter is also unsupported."""
        with pytest.raises(UnsupportedPlatform):
            ProviderRegistry().get("twitter")
