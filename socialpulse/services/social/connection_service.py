# socialpulse/services/social/connection_service.py

from typing import Optional
from urllib.parse import quote, urlencode

from .account_registry import AccountRegistry
from .errors import InvalidState, TokenExchangeError
from .registry import ProviderRegistry
from .sync_dispatcher import MetricsSyncDispatcher
from ...constants.service_code import ERROR_MESSAGES
from ...models.social.linked_account import LinkedAccount
from ...models.social.platform import Platform
from ...utils.helpers import make_log_tag
from ...utils.logger import Log


class ConnectionService:
    """
    OAuth connect flow, from authorize redirect to a synced linked account.

        start(platform, state)                       -> provider authorization URL
        complete(platform, code, state, user_id)     -> LinkedAccount

    `state` is opaque here. For PKCE providers it is the key the verifier was
    stored under; a missing verifier ends the attempt with InvalidState.
    """

    def __init__(
        self,
        providers: ProviderRegistry,
        accounts: AccountRegistry,
        dispatcher: MetricsSyncDispatcher,
        verifier_store,
        front_end_base_url: str = "",
    ):
        self.providers = providers
        self.accounts = accounts
        self.dispatcher = dispatcher
        self.verifier_store = verifier_store
        self.front_end_base_url = (front_end_base_url or "").rstrip("/")

    def start(self, platform, state: str, redirect_uri: Optional[str] = None) -> str:
        platform = Platform.parse(platform)
        log_tag = make_log_tag("connection_service.py", "ConnectionService", "start", platform.value)

        adapter = self.providers.get(platform)
        url = adapter.build_authorization_url(state, redirect_uri)

        Log.info(f"{log_tag} redirecting to provider pkce={adapter.requires_pkce}")
        return url

    def complete(self, platform, code: str, state: str, user_id) -> LinkedAccount:
        platform = Platform.parse(platform)
        log_tag = make_log_tag("connection_service.py", "ConnectionService", "complete", platform.value, user_id)

        adapter = self.providers.get(platform)

        verifier = None
        if adapter.requires_pkce:
            verifier = self.verifier_store.take(state)
            if not verifier:
                Log.warning(f"{log_tag} no PKCE verifier for state")
                raise InvalidState(ERROR_MESSAGES["INVALID_STATE"])

        if not code:
            raise TokenExchangeError("Missing authorization code", platform=platform.value)

        token = adapter.exchange_code(code, state, verifier)
        profile = adapter.fetch_profile(token.access_token)
        if not profile.platform_user_id:
            Log.error(f"{log_tag} profile response has no account id")
            raise TokenExchangeError(f"{platform.value} profile has no account id", platform=platform.value)

        account = self.accounts.upsert(user_id, platform, profile, token)
        Log.info(f"{log_tag} account {account.id} linked, syncing metrics")

        return self.dispatcher.sync_account(account)

    # -------------------- front-end redirects --------------------

    def _front_end(self, marker: str) -> str:
        return f"{self.front_end_base_url}/?{marker}"

    def success_redirect(self, platform) -> str:
        return self._front_end(urlencode({f"{platform}_connected": "true"}))

    def error_redirect(self, platform, message: str) -> str:
        return self._front_end(f"{platform}_error={quote(str(message or 'error'), safe='')}")
