# socialpulse/services/social/wiring.py

from dataclasses import dataclass
from typing import Mapping

from .account_registry import AccountRegistry
from .connection_service import ConnectionService
from .insights_cache import InsightsCache
from .llm.insights_service import InsightsService
from .pkce_store import InMemoryVerifierStore, RedisVerifierStore, VerifierStore
from .registry import ProviderRegistry, build_provider_registry
from .sync_dispatcher import MetricsSyncDispatcher
from ...utils.logger import Log


@dataclass
class SocialPulseServices:
    """Everything the resources and jobs need, built once per app."""

    verifier_store: VerifierStore
    providers: ProviderRegistry
    accounts: AccountRegistry
    dispatcher: MetricsSyncDispatcher
    connection: ConnectionService
    insights_cache: InsightsCache
    insights: InsightsService
    preferences: object


def build_verifier_store(config: Mapping, redis_client=None) -> VerifierStore:
    ttl = int(config.get("PKCE_TTL_SECONDS") or 600)

    if (config.get("PKCE_STORE") or "memory").lower() == "redis":
        if redis_client is None:
            raise RuntimeError("PKCE_STORE=redis but Redis is not initialized")
        return RedisVerifierStore(redis_client, ttl_seconds=ttl)

    return InMemoryVerifierStore(
        ttl_seconds=ttl,
        max_entries=int(config.get("PKCE_MAX_ENTRIES") or 10000),
    )


def build_services(config: Mapping, repository, preferences, verifier_store=None, redis_client=None) -> SocialPulseServices:
    if verifier_store is None:
        verifier_store = build_verifier_store(config, redis_client)

    providers = build_provider_registry(config, verifier_store)
    accounts = AccountRegistry(repository)
    dispatcher = MetricsSyncDispatcher(accounts, providers)
    connection = ConnectionService(
        providers,
        accounts,
        dispatcher,
        verifier_store,
        front_end_base_url=config.get("FRONT_END_BASE_URL") or "",
    )

    insights_cache = InsightsCache(ttl_seconds=int(config.get("INSIGHTS_CACHE_TTL_SECONDS") or 3600))
    insights = InsightsService(
        insights_cache,
        preferences,
        api_key=config.get("LLM_API_KEY"),
        api_url=config.get("LLM_API_URL"),
        model=config.get("LLM_MODEL"),
        max_tokens=config.get("LLM_MAX_TOKENS"),
        timeout=config.get("LLM_TIMEOUT_SECONDS"),
    )

    Log.info(
        f"[wiring.py][build_services] pkce_store={type(verifier_store).__name__} "
        f"providers={','.join(p.value for p in providers)}"
    )

    return SocialPulseServices(
        verifier_store=verifier_store,
        providers=providers,
        accounts=accounts,
        dispatcher=dispatcher,
        connection=connection,
        insights_cache=insights_cache,
        insights=insights,
        preferences=preferences,
    )
