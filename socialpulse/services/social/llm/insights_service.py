# socialpulse/services/social/llm/insights_service.py

from __future__ import annotations

import time
import uuid
from typing import Any, Dict, List, Optional

import requests

from ..insights_cache import InsightsCache
from ....models.social.linked_account import LinkedAccount
from ....utils.helpers import make_log_tag
from ....utils.logger import Log


DEFAULT_API_URL = "https://api.anthropic.com/v1/messages"
DEFAULT_MODEL = "claude-3-5-sonnet-20240620"
DEFAULT_MAX_TOKENS = 150
DEFAULT_TIMEOUT_SECONDS = 30
ANTHROPIC_VERSION = "2023-06-01"


class LLMError(Exception):
    pass


def _new_trace_id() -> str:
    return uuid.uuid4().hex[:12]


def build_prompt(account: LinkedAccount, goals: List[str]) -> str:
    metrics = account.metrics
    lines = [
        f"You are a social media marketing expert. Analyze the following {account.platform} "
        "account metrics and provide a brief, actionable insight.",
        "",
        f"Account: @{account.username or account.account_name or account.platform_user_id}",
        f"Platform: {account.platform}",
        "",
        "Current Metrics:",
        f"- Followers: {metrics.connections}",
        f"- Posts: {metrics.posts}",
        f"- Pending Responses: {metrics.pending_responses}",
        f"- Engagement Score: {metrics.engagement_score}/100",
        "",
        f"User's Goals: {', '.join(goals)}",
        "",
        "Provide ONE specific, actionable insight (2-3 sentences max) that helps achieve their goals. "
        "Focus on what they should DO next. Be encouraging but practical. "
        "Do not use emojis or markdown formatting.",
    ]
    return "\n".join(lines)


def placeholder_insight(account: LinkedAccount) -> str:
    """Canned advice for when the model is unavailable; never cached."""
    metrics = account.metrics
    score = metrics.engagement_score if metrics else 0
    pending = metrics.pending_responses if metrics else 0

    if pending > 0:
        plural = "s" if pending > 1 else ""
        return (
            f"You have {pending} pending response{plural}. Quick responses help maintain engagement. "
            "Try to reply within 24 hours for best results."
        )

    if score >= 80:
        return ("Your engagement is excellent! Maintain consistency by posting regularly "
                "and interacting with your audience daily.")
    if score >= 60:
        return ("Good engagement! Try posting 2-3 times per week and respond to comments "
                "quickly to boost your score.")
    if score >= 40:
        return ("Your account needs attention. Focus on posting quality content consistently "
                "and engaging with your audience.")
    return ("Time to revitalize your presence! Start by posting valuable content this week "
            "and responding to all comments.")


class InsightsService:
    """
    One short insight per linked account, generated by an LLM from the
    account's metrics and the user's goals for that platform.
    """

    def __init__(
        self,
        cache: InsightsCache,
        preferences,
        api_key: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout: int = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.cache = cache
        self.preferences = preferences
        self.api_key = api_key
        self.api_url = api_url or DEFAULT_API_URL
        self.model = model or DEFAULT_MODEL
        self.max_tokens = int(max_tokens or DEFAULT_MAX_TOKENS)
        self.timeout = int(timeout or DEFAULT_TIMEOUT_SECONDS)

    @property
    def configured(self) -> bool:
        return bool(self.api_key) and self.api_key != "placeholder"

    def generate(self, user_id, account: LinkedAccount, refresh: bool = False) -> Dict[str, Any]:
        log_tag = make_log_tag("insights_service.py", "InsightsService", "generate", user_id, account.id)

        if not self.configured:
            Log.warning(f"{log_tag} LLM API key not configured, returning placeholder insight")
            return {"insight": placeholder_insight(account), "source": "placeholder"}

        if refresh:
            self.cache.invalidate(user_id, account.id)

        try:
            text = self.cache.get(user_id, account.id, lambda: self._compute(user_id, account))
        except LLMError as e:
            Log.error(f"{log_tag} failed to generate insight: {e}")
            return {"insight": placeholder_insight(account), "source": "placeholder"}

        return {"insight": text, "source": "ai"}

    def _compute(self, user_id, account: LinkedAccount) -> str:
        goals = self.preferences.get_platform_goals(user_id, account.platform)
        return self.complete(build_prompt(account, goals))

    def complete(self, prompt: str, trace_id: Optional[str] = None) -> str:
        trace_id = trace_id or _new_trace_id()
        log_tag = f"[insights_service.py][InsightsService][complete][{trace_id}]"

        body = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

        start_time = time.time()
        try:
            resp = requests.post(self.api_url, json=body, headers=headers, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise LLMError(f"LLM request timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise LLMError(f"LLM request failed: {e}") from e

        Log.info(f"{log_tag} model={self.model} status={resp.status_code} in {time.time() - start_time:.2f}s")

        if resp.status_code >= 400:
            raise LLMError(f"LLM returned HTTP {resp.status_code}: {(resp.text or '')[:300]}")

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError("LLM returned a non-JSON body") from e

        for block in data.get("content") or []:
            if isinstance(block, dict) and block.get("text"):
                return block["text"].strip()

        raise LLMError("Invalid response from LLM: no text content")
