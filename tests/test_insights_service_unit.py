"""Unit tests for AI insight generation."""

from unittest.mock import patch

import requests

from socialpulse.models.social.account_metrics import AccountMetrics
from socialpulse.models.social.linked_account import LinkedAccount
from socialpulse.services.social.insights_cache import InsightsCache
from socialpulse.services.social.llm.insights_service import (
    InsightsService,
    build_prompt,
    placeholder_insight,
)
from tests.factories import FakeClock, FakePreferences, make_response


REQUESTS_POST = "socialpulse.services.social.llm.insights_service.requests.post"

LLM_REPLY = {"content": [{"type": "text", "text": " Reply to your 5 pending comments today. "}]}


def _account(score=72, pending=5):
    return LinkedAccount(
        user_id="user-1",
        platform="twitter",
        id="acc-1",
        username="ada",
        metrics=AccountMetrics(engagement_score=score, connections=1250, posts=89, pending_responses=pending),
    )


def _service(api_key="sk-test", goals=None):
    return InsightsService(InsightsCache(clock=FakeClock()), FakePreferences(goals), api_key=api_key)


class TestPrompt:
    """Tests for prompt and placeholder text."""

    def test_prompt_mentions_metrics_and_goals(self):
        """The prompt carries the account numbers and the user's goals."""
        prompt = build_prompt(_account(), ["growth", "engagement"])

        assert "@ada" in prompt
        assert "Followers: 1250" in prompt
        assert "Engagement Score: 72/100" in prompt
        assert "growth, engagement" in prompt

    def test_placeholder_prefers_pending_responses(self):
        """Pending responses are the first thing a placeholder talks about."""
        assert placeholder_insight(_account(pending=5)).startswith("You have 5 pending responses.")
        assert placeholder_insight(_account(pending=1)).startswith("You have 1 pending response.")

    def test_placeholder_by_score(self):
        """Without pending responses the placeholder follows the score band."""
        assert placeholder_insight(_account(score=85, pending=0)).startswith("Your engagement is excellent!")
        assert placeholder_insight(_account(score=10, pending=0)).startswith("Time to revitalize")


class TestGenerate:
    """Tests for InsightsService.generate."""

    def test_unconfigured_returns_placeholder(self):
        """Without an API key no request is made and nothing is cached."""
        service = _service(api_key=None)

        with patch(REQUESTS_POST) as mock_post:
            result = service.generate("user-1", _account())

        mock_post.assert_not_called()
        assert result["source"] == "placeholder"
        assert len(service.cache) == 0

    def test_ai_insight_is_cached(self):
        """A generated insight is served from the cache on the next call."""
        service = _service()

        with patch(REQUESTS_POST, return_value=make_response(200, LLM_REPLY)) as mock_post:
            first = service.generate("user-1", _account())
            second = service.generate("user-1", _account())

        assert first == {"insight": "Reply to your 5 pending comments today.", "source": "ai"}
        assert second == first
        assert mock_post.call_count == 1

    def test_refresh_bypasses_cache(self):
        """refresh=True always asks the model again."""
        service = _service()

        with patch(REQUESTS_POST, return_value=make_response(200, LLM_REPLY)) as mock_post:
            service.generate("user-1", _account())
            service.generate("user-1", _account(), refresh=True)

        assert mock_post.call_count == 2

    def test_llm_failure_falls_back_without_caching(self):
        """An LLM error returns a placeholder and leaves the cache empty."""
        service = _service()

        with patch(REQUESTS_POST, return_value=make_response(529, {"error": "overloaded"})):
            result = service.generate("user-1", _account())

        assert result["source"] == "placeholder"
        assert len(service.cache) == 0

    def test_timeout_falls_back(self):
        """A timeout returns a placeholder."""
        service = _service()

        with patch(REQUESTS_POST, side_effect=requests.exceptions.Timeout()):
            result = service.generate("user-1", _account())

        assert result["source"] == "placeholder"

    def test_request_shape(self):
        """The model, key and user goals are sent to the API."""
        service = _service(goals={"twitter": ["traffic"]})

        with patch(REQUESTS_POST, return_value=make_response(200, LLM_REPLY)) as mock_post:
            service.generate("user-1", _account())

        kwargs = mock_post.call_args.kwargs
        assert kwargs["headers"]["x-api-key"] == "sk-test"
        assert kwargs["headers"]["anthropic-version"] == "2023-06-01"
        assert kwargs["json"]["max_tokens"] == 150
        assert "traffic" in kwargs["json"]["messages"][0]["content"]
