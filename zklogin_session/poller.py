"""
Balance poller — periodic SUI balance refresh for stored accounts.

One poll reads the account list, queries each balance and replaces the
snapshot wholesale. A failing query drops only that account from the
snapshot; the poller itself never dies on a chain error.

The loop runs as an asyncio task owned by the session: start() creates
it, stop() cancels it and waits for it to finish.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from decimal import Decimal

from zklogin_session.chain import ChainClient, mist_to_sui
from zklogin_session.storage import AccountData, AccountStore

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0


class BalancePoller:
    """Keeps a balance snapshot (address → SUI) for the stored accounts.

    Args:
        chain: Chain client for balance queries.
        account_store: Source of the accounts to poll.
        interval: Seconds between polls.
    """

    def __init__(
        self,
        chain: ChainClient,
        account_store: AccountStore,
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        self._chain = chain
        self._account_store = account_store
        self._interval = interval
        self._balances: dict[str, Decimal] = {}
        self._task: asyncio.Task[None] | None = None

    @property
    def balances(self) -> dict[str, Decimal]:
        """Copy of the latest snapshot."""
        return dict(self._balances)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def refresh(self, accounts: Iterable[AccountData]) -> dict[str, Decimal]:
        """Query the balance of each account.

        Failed queries are logged and omitted from the result.
        """
        balances: dict[str, Decimal] = {}
        for account in accounts:
            try:
                mist = await self._chain.get_balance(account.user_addr)
            except Exception as exc:
                logger.warning(
                    "[refresh] balance query for %s failed: %s", account.user_addr, exc
                )
                continue
            balances[account.user_addr] = mist_to_sui(mist)
        return balances

    async def poll_once(self) -> dict[str, Decimal]:
        """Refresh every stored account and replace the snapshot.

        Accounts removed while the queries were in flight (logout) are
        dropped from the result.
        """
        accounts = self._account_store.load()
        balances = await self.refresh(accounts) if accounts else {}
        self._balances = self._still_stored(balances)
        return self.balances

    async def refresh_account(self, account: AccountData) -> None:
        """Refresh one account and merge it into the snapshot."""
        balances = await self.refresh([account])
        self._balances.update(self._still_stored(balances))

    def _still_stored(self, balances: dict[str, Decimal]) -> dict[str, Decimal]:
        if not balances:
            return balances
        stored = {account.user_addr for account in self._account_store.load()}
        return {addr: value for addr, value in balances.items() if addr in stored}

    def clear(self) -> None:
        self._balances = {}

    def start(self) -> None:
        """Start the polling loop. No-op if it is already running."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Cancel the polling loop and wait for it to exit."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                # Storage errors; chain errors are handled per account.
                logger.error("[poll] balance poll failed: %s", exc)
            await asyncio.sleep(self._interval)
