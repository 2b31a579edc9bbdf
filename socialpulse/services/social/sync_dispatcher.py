# socialpulse/services/social/sync_dispatcher.py

from typing import Any, Dict, Mapping

from .account_registry import AccountRegistry
from .errors import NotFound, UnsupportedPlatform
from .providers.linkedin_provider import normalize_manual_metrics
from .registry import ProviderRegistry
from ...constants.service_code import ERROR_MESSAGES
from ...models.social.linked_account import LinkedAccount
from ...models.social.platform import Platform
from ...utils.helpers import make_log_tag
from ...utils.logger import Log
from ...utils.token_utils import utcnow


class MetricsSyncDispatcher:
    """
    Routes a linked account to its platform adapter and persists the result.

    Every sync of one account runs under that account's lock, covering the
    re-read, the provider call and the write, so two syncs never interleave.
    Adapters never raise from sync_metrics; a provider outage shows up as
    zeroed metrics with a fresh last_synced.
    """

    def __init__(self, accounts: AccountRegistry, providers: ProviderRegistry, clock=utcnow):
        self.accounts = accounts
        self.providers = providers
        self._clock = clock
        # shared with the registry so reconnects and syncs of one account queue up
        self._locks = accounts.locks

    def sync_one(self, account_id, user_id) -> LinkedAccount:
        """Sync an account on behalf of its owner."""
        self.accounts.get_owned(account_id, user_id)
        return self._sync_locked(account_id)

    def sync_account(self, account: LinkedAccount) -> LinkedAccount:
        """Sync without an ownership check (connect flow, scheduled job)."""
        return self._sync_locked(account.id)

    def sync_all(self) -> Dict[str, int]:
        """
        Sync every stored account. One bad account is logged and skipped; the
        batch carries on.
        """
        log_tag = make_log_tag("sync_dispatcher.py", "MetricsSyncDispatcher", "sync_all")

        synced, failed = 0, 0
        for account_id in self.accounts.list_all_ids():
            try:
                self._sync_locked(account_id)
                synced += 1
            except (NotFound, UnsupportedPlatform) as e:
                failed += 1
                Log.error(f"{log_tag} skipping account {account_id}: {e.message}")
            except Exception as e:
                failed += 1
                Log.error(f"{log_tag} account {account_id} failed: {e}")

        Log.info(f"{log_tag} done synced={synced} failed={failed}")
        return {"synced": synced, "failed": failed}

    def update_manual_metrics(self, account_id, user_id, manual: Mapping[str, Any]) -> LinkedAccount:
        """
        Store user-entered counters for a LinkedIn account and recompute its
        metrics from them. Company pages keep API metrics; only the stored
        numbers change for them.
        """
        log_tag = make_log_tag("sync_dispatcher.py", "MetricsSyncDispatcher", "update_manual_metrics", account_id)

        self.accounts.get_owned(account_id, user_id)

        with self._locks.hold(account_id):
            account = self._reload(account_id)
            if Platform.parse(account.platform) is not Platform.LINKEDIN:
                raise UnsupportedPlatform(f"Manual metrics are not supported for {account.platform}")

            adapter = self.providers.get(Platform.LINKEDIN)
            merged = dict(account.manual_metrics or {})
            merged.update(normalize_manual_metrics(manual))

            changes = {"manual_metrics": merged}
            if not account.is_company_page:
                changes["metrics"] = adapter.metrics_from_manual(merged)
                changes["last_synced"] = self._clock()

            updated = self.accounts.save(account.evolve(**changes))

        Log.info(f"{log_tag} manual metrics stored: {sorted(merged.keys())}")
        return updated

    # -------------------- internals --------------------

    def _reload(self, account_id) -> LinkedAccount:
        account = self.accounts.find(account_id)
        if account is None:
            raise NotFound(ERROR_MESSAGES["ACCOUNT_NOT_FOUND"])
        return account

    def _sync_locked(self, account_id) -> LinkedAccount:
        log_tag = make_log_tag("sync_dispatcher.py", "MetricsSyncDispatcher", "sync", account_id)

        with self._locks.hold(account_id):
            # re-read inside the lock so a sync never writes over a newer record
            account = self._reload(account_id)
            adapter = self.providers.get(account.platform)

            metrics = adapter.sync_metrics(account)
            updated = self.accounts.save(account.evolve(metrics=metrics, last_synced=self._clock()))

        Log.info(
            f"{log_tag} platform={updated.platform} source={metrics.source} "
            f"score={metrics.engagement_score} connections={metrics.connections}"
        )
        return updated
