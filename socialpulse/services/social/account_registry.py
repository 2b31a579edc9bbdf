# socialpulse/services/social/account_registry.py

from typing import List, Optional

from .errors import NotFound, Unauthorized
from .providers.base import ProviderProfile, TokenResult
from ...constants.service_code import ERROR_MESSAGES
from ...models.social.linked_account import LinkedAccount
from ...models.social.platform import Platform
from ...utils.helpers import make_log_tag
from ...utils.locks import KeyedLocks
from ...utils.logger import Log
from ...utils.token_utils import expires_at_from, utcnow


class AccountRegistry:
    """
    Linked accounts per (user_id, platform), at most one each.

    The store has no unique index on the pair, so `upsert` does its lookup
    and write under a lock on the pair. Rewriting an existing record also
    takes that account's lock, the one syncs run under, so a reconnect never
    lands in the middle of a sync and gets overwritten by it.
    """

    def __init__(self, repository, clock=utcnow, locks: Optional[KeyedLocks] = None):
        self.repository = repository
        self.locks = locks if locks is not None else KeyedLocks()
        self._clock = clock

    def upsert(
        self,
        user_id,
        platform,
        profile: ProviderProfile,
        token: TokenResult,
        account_type: Optional[str] = None,
    ) -> LinkedAccount:
        platform = Platform.parse(platform).value
        log_tag = make_log_tag("account_registry.py", "AccountRegistry", "upsert", user_id, platform)

        with self.locks.hold(f"connect:{user_id}:{platform}"):
            existing = self.repository.find_by_user_and_platform(user_id, platform)
            if existing is None:
                now = self._clock()
                account = LinkedAccount(
                    user_id=str(user_id),
                    platform=platform,
                    platform_user_id=profile.platform_user_id,
                    username=profile.username,
                    account_name=profile.display_name,
                    access_token=token.access_token,
                    refresh_token=token.refresh_token,
                    token_expires_at=expires_at_from(token.expires_in, now=now),
                    account_type=account_type or profile.account_type,
                    connected_at=now,
                )
                Log.info(f"{log_tag} connecting new account")
                return self.repository.save(account)

            with self.locks.hold(existing.id):
                # re-read: a sync may have written since the lookup
                existing = self.repository.find_by_id(existing.id) or existing
                now = self._clock()
                # token rotation: same record, fresh identity and credentials
                account = existing.evolve(
                    platform_user_id=profile.platform_user_id,
                    username=profile.username,
                    account_name=profile.display_name,
                    access_token=token.access_token,
                    refresh_token=token.refresh_token or existing.refresh_token,
                    token_expires_at=expires_at_from(token.expires_in, now=now),
                    account_type=account_type or profile.account_type or existing.account_type,
                    connected_at=now,
                )
                Log.info(f"{log_tag} reconnected existing account {existing.id}")
                return self.repository.save(account)

    def get_owned(self, account_id, user_id) -> LinkedAccount:
        account = self.repository.find_by_id(account_id)
        if account is None:
            raise NotFound(ERROR_MESSAGES["ACCOUNT_NOT_FOUND"])
        if not account.owned_by(user_id):
            raise Unauthorized(ERROR_MESSAGES["ACCOUNT_NOT_OWNED"])
        return account

    def disconnect(self, account_id, user_id) -> None:
        log_tag = make_log_tag("account_registry.py", "AccountRegistry", "disconnect", account_id)

        account = self.get_owned(account_id, user_id)
        self.repository.delete(account.id)
        Log.info(f"{log_tag} disconnected {account.platform} account for user {user_id}")

    def list_by_user(self, user_id) -> List[LinkedAccount]:
        return self.repository.list_by_user(user_id)

    def find(self, account_id) -> Optional[LinkedAccount]:
        return self.repository.find_by_id(account_id)

    def save(self, account: LinkedAccount) -> LinkedAccount:
        return self.repository.save(account)

    def list_all_ids(self) -> List[str]:
        return self.repository.list_all_ids()
