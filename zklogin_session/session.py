"""
ZkLoginSession — one authenticated session, wired end to end.

Owns the session storage, both stores, the chain client, the salt and
proof services, and the balance poller. Lifecycle:

    init      empty storage (or whatever a file-backed store still holds)
    mutate    begin_login / complete_login / send_transaction
    teardown  logout() clears both storage keys and the balance snapshot

Use it as an async context manager to bind the poller to the session:

    async with ZkLoginSession.from_config(config, primitives) as session:
        await session.complete_login(PageLocation(url))
        ...
"""

from __future__ import annotations

import logging
from decimal import Decimal
from types import TracebackType

from zklogin_session.chain import ChainClient, ExecutionResult
from zklogin_session.config import ZkLoginConfig
from zklogin_session.jsonrpc_client import SuiJsonRpcClient
from zklogin_session.login import Location, LoginCompleter, LoginInitiator
from zklogin_session.poller import BalancePoller
from zklogin_session.primitives import ZkLoginPrimitives
from zklogin_session.providers import OpenIdProvider
from zklogin_session.services import ProofService, SaltService
from zklogin_session.signer import TransactionBuilder, TransactionSigner
from zklogin_session.storage import (
    AccountData,
    AccountStore,
    SessionStorage,
    SetupData,
    SetupStore,
)
from zklogin_session.transport import HttpxTransport

logger = logging.getLogger(__name__)


class ZkLoginSession:
    """Facade over the zkLogin handshake, signing and balance polling."""

    def __init__(
        self,
        *,
        storage: SessionStorage,
        chain: ChainClient,
        salt_service: SaltService,
        proof_service: ProofService,
        primitives: ZkLoginPrimitives,
        providers: dict[str, OpenIdProvider],
        redirect_uri: str,
        max_epoch_window: int,
        balance_poll_interval: float,
    ) -> None:
        self._storage = storage
        self.setup_store = SetupStore(storage)
        self.account_store = AccountStore(storage)
        self.poller = BalancePoller(
            chain, self.account_store, interval=balance_poll_interval
        )
        self.initiator = LoginInitiator(
            chain,
            self.setup_store,
            primitives,
            providers,
            redirect_uri,
            max_epoch_window=max_epoch_window,
        )
        self.completer = LoginCompleter(
            self.setup_store,
            self.account_store,
            salt_service,
            proof_service,
            primitives,
            on_account_created=self.poller.refresh_account,
        )
        self.signer = TransactionSigner(
            chain, primitives, on_submitted=self.poller.refresh_account
        )

    @classmethod
    def from_config(
        cls,
        config: ZkLoginConfig,
        primitives: ZkLoginPrimitives,
        *,
        chain: ChainClient | None = None,
    ) -> ZkLoginSession:
        transport = HttpxTransport(timeout=config.http_timeout)
        return cls(
            storage=SessionStorage(config.storage_path),
            chain=chain or SuiJsonRpcClient(config.rpc_url, transport),
            salt_service=SaltService(config.salt_service_url, transport),
            proof_service=ProofService(config.prover_url, transport),
            primitives=primitives,
            providers=config.providers(),
            redirect_uri=config.redirect_uri,
            max_epoch_window=config.max_epoch_window,
            balance_poll_interval=config.balance_poll_interval,
        )

    async def __aenter__(self) -> ZkLoginSession:
        self.poller.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.poller.stop()

    # -----------------------------------------------------------------
    # State
    # -----------------------------------------------------------------

    @property
    def providers(self) -> list[str]:
        return self.initiator.providers

    @property
    def accounts(self) -> list[AccountData]:
        return self.account_store.load()

    @property
    def pending_setup(self) -> SetupData | None:
        return self.setup_store.load()

    @property
    def balances(self) -> dict[str, Decimal]:
        return self.poller.balances

    # -----------------------------------------------------------------
    # Operations
    # -----------------------------------------------------------------

    async def begin_login(self, provider: str) -> str:
        return await self.initiator.begin_login(provider)

    async def complete_login(self, location: Location) -> AccountData | None:
        return await self.completer.complete_login(location)

    async def send_transaction(
        self, account: AccountData, tx_builder: TransactionBuilder
    ) -> ExecutionResult:
        return await self.signer.send(account, tx_builder)

    async def refresh_balances(self) -> dict[str, Decimal]:
        return await self.poller.poll_once()

    async def logout(self) -> None:
        """Forget every account and any pending login."""
        await self.account_store.clear()
        self.setup_store.clear()
        self._storage.clear()
        self.poller.clear()
        logger.info("[logout] session storage cleared")

    def close(self) -> None:
        self._storage.close()
