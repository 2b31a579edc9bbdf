"""Test doubles and data factories for SocialPulse.

Use these instead of hand-building fakes in each test module.
"""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import jwt


TEST_SECRET_KEY = "test-secret-key"


def utcnow() -> datetime:
    """Get current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


# -----------------------------------------------------------------------------
# In-memory collaborators
# -----------------------------------------------------------------------------


class FakeRepository:
    """Dict-backed replacement for SocialAccount with the same method names."""

    def __init__(self):
        self.records = {}
        self._next_id = 0

    def find_by_id(self, account_id):
        return self.records.get(str(account_id))

    def find_by_user_and_platform(self, user_id, platform):
        for account in self.records.values():
            if account.user_id == str(user_id) and account.platform == str(platform):
                return account
        return None

    def list_by_user(self, user_id):
        return [a for a in self.records.values() if a.user_id == str(user_id)]

    def list_all_ids(self):
        return list(self.records.keys())

    def save(self, account):
        if account.id is None:
            self._next_id += 1
            account = account.evolve(id=f"acc-{self._next_id}")
        self.records[account.id] = account
        return account

    def delete(self, account_id):
        return self.records.pop(str(account_id), None) is not None


class FakePreferences:
    """Goals for a single user, same method names as UserPreferences."""

    def __init__(self, goals=None):
        self.goals = goals or {}

    def get_platform_goals(self, user_id, platform):
        return list(self.goals.get(str(platform), ["comprehensive"]))

    def get_all_platform_goals(self, user_id):
        return {platform: list(goals) for platform, goals in self.goals.items()}

    def set_platform_goals(self, user_id, platform, goals):
        goals = [str(g).lower() for g in goals]
        if not goals:
            raise ValueError("Goals list cannot be empty")
        self.goals[str(platform)] = goals
        return goals

    def set_all_platform_goals(self, user_id, platform_goals):
        self.goals = {str(p): [str(g).lower() for g in goals] for p, goals in platform_goals.items()}
        return self.get_all_platform_goals(user_id)


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class SteppingClock:
    """Datetime clock that moves forward by `step` on every call."""

    def __init__(self, start=None, step=timedelta(minutes=5)):
        self.current = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        self.step = step
        self.calls = []

    def __call__(self):
        self.current = self.current + self.step
        self.calls.append(self.current)
        return self.current


# -----------------------------------------------------------------------------
# HTTP helpers
# -----------------------------------------------------------------------------


def make_response(status_code=200, body=None):
    """A requests.Response look-alike for patched requests.get / requests.post."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = json.dumps(body) if body is not None else ""
    resp.json.return_value = body if body is not None else {}
    return resp


def make_session_token(user_id="user-1", secret=TEST_SECRET_KEY, expires_in=3600):
    payload = {
        "user_id": user_id,
        "exp": utcnow() + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, secret, algorithm="HS256")
