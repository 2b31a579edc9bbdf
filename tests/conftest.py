"""Pytest configuration and fixtures for SocialPulse tests.

This module provides fixtures for:
- Storage: an in-memory stand-in for the Mongo account repository
- Services: provider registry, account registry and sync dispatcher
- HTTP: a Flask test client with session tokens
"""

import os

# must be set before socialpulse.utils.logger is imported
os.environ.setdefault("APP_LOG_TO_FILE", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("APP_ENV", "testing")

import pytest

from socialpulse.models.social.linked_account import LinkedAccount
from tests.factories import (
    TEST_SECRET_KEY, FakeClock, FakePreferences, FakeRepository, make_session_token,
)


# -----------------------------------------------------------------------------
# Service fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def repository():
    return FakeRepository()


@pytest.fixture
def preferences():
    return FakePreferences()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def verifier_store():
    from socialpulse.services.social.pkce_store import InMemoryVerifierStore

    return InMemoryVerifierStore()


@pytest.fixture
def providers(verifier_store):
    from socialpulse.services.social.registry import build_provider_registry

    return build_provider_registry({
        "TWITTER_CLIENT_ID": "x-client",
        "TWITTER_CLIENT_SECRET": "x-secret",
        "TWITTER_REDIRECT_URI": "http://api/api/social-accounts/twitter/callback",
        "LINKEDIN_CLIENT_ID": "li-client",
        "LINKEDIN_CLIENT_SECRET": "li-secret",
        "LINKEDIN_REDIRECT_URI": "http://api/api/social-accounts/linkedin/callback",
    }, verifier_store)


@pytest.fixture
def accounts(repository):
    from socialpulse.services.social.account_registry import AccountRegistry

    return AccountRegistry(repository)


@pytest.fixture
def dispatcher(accounts, providers):
    from socialpulse.services.social.sync_dispatcher import MetricsSyncDispatcher

    return MetricsSyncDispatcher(accounts, providers)


@pytest.fixture
def linked_account(repository):
    """A stored YouTube account owned by user-1."""
    return repository.save(LinkedAccount(
        user_id="user-1",
        platform="youtube",
        platform_user_id="UC123",
        username="channel",
        access_token="yt-token",
    ))


# -----------------------------------------------------------------------------
# Flask fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def app(repository, preferences):
    from socialpulse import create_app

    app = create_app(
        {
            "APP_ENV": "testing",
            "SECRET_KEY": TEST_SECRET_KEY,
            "FRONT_END_BASE_URL": "http://front",
            "TWITTER_CLIENT_ID": "x-client",
            "TWITTER_CLIENT_SECRET": "x-secret",
        },
        repository=repository,
        preferences=preferences,
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def session_token():
    return make_session_token("user-1")


@pytest.fixture
def auth_headers(session_token):
    return {"Authorization": f"Bearer {session_token}"}
