"""
End-to-end tests for ZkLoginSession with fake chain, primitives and services.

Test plan:
- Full flow: begin → redirect → complete → balance refreshed → send
  → balance refreshed again
- Logout: both storage keys gone, snapshot empty, next poll makes no
  chain queries
- Context manager starts and stops the poller
- from_config wires providers, redirect URI and window from the config
"""

from decimal import Decimal
from pathlib import Path

import pytest

from fakes import (
    GOOGLE_CLIENT_ID,
    PROVER_URL,
    REDIRECT_URI,
    SALT_URL,
    FakeChain,
    FakePrimitives,
    FakeServiceTransport,
    make_token,
    nonce_of,
    redirect_url,
)
from zklogin_session import PaySuiBuilder, ZkLoginConfig, ZkLoginSession
from zklogin_session.login import PageLocation
from zklogin_session.providers import GOOGLE, default_providers
from zklogin_session.services import ProofService, SaltService
from zklogin_session.storage import ACCOUNT_DATA_KEY, SETUP_DATA_KEY, SessionStorage


@pytest.fixture
def session_storage() -> SessionStorage:
    return SessionStorage()


@pytest.fixture
def session(
    session_storage: SessionStorage,
    chain: FakeChain,
    primitives: FakePrimitives,
    services: FakeServiceTransport,
) -> ZkLoginSession:
    return ZkLoginSession(
        storage=session_storage,
        chain=chain,
        salt_service=SaltService(SALT_URL, services),
        proof_service=ProofService(PROVER_URL, services),
        primitives=primitives,
        providers=default_providers(google_client_id=GOOGLE_CLIENT_ID),
        redirect_uri=REDIRECT_URI,
        max_epoch_window=2,
        balance_poll_interval=0.01,
    )


async def _login(session: ZkLoginSession, sub: str = "abc"):
    url = await session.begin_login(GOOGLE)
    token = make_token(sub=sub, nonce=nonce_of(url))
    return await session.complete_login(PageLocation(redirect_url(token)))


class TestFullFlow:
    @pytest.mark.asyncio
    async def test_login_send_refresh(self, session: ZkLoginSession, chain: FakeChain) -> None:
        assert session.providers == [GOOGLE]
        assert session.accounts == []

        url = await session.begin_login(GOOGLE)
        assert session.pending_setup is not None
        chain.balances = {}

        token = make_token(nonce=nonce_of(url))
        account = await session.complete_login(PageLocation(redirect_url(token)))

        assert account is not None
        assert session.accounts == [account]
        assert session.pending_setup is None
        assert session.balances == {account.user_addr: Decimal(0)}

        chain.balances[account.user_addr] = 2_000_000_000
        result = await session.send_transaction(account, PaySuiBuilder("0x" + "b" * 64, 1_000))

        assert result.succeeded
        assert len(chain.execute_calls) == 1
        assert session.balances == {account.user_addr: Decimal(2)}

    @pytest.mark.asyncio
    async def test_refresh_balances(self, session: ZkLoginSession, chain: FakeChain) -> None:
        first = await _login(session, "abc")
        second = await _login(session, "def")
        assert first is not None and second is not None
        chain.balances = {first.user_addr: 1_000_000_000, second.user_addr: 500_000_000}

        assert await session.refresh_balances() == {
            first.user_addr: Decimal(1),
            second.user_addr: Decimal("0.5"),
        }


class TestLogout:
    @pytest.mark.asyncio
    async def test_clears_everything(
        self,
        session: ZkLoginSession,
        session_storage: SessionStorage,
        chain: FakeChain,
    ) -> None:
        await _login(session)
        await session.begin_login(GOOGLE)
        assert sorted(session_storage.keys()) == [ACCOUNT_DATA_KEY, SETUP_DATA_KEY]

        await session.logout()

        assert session_storage.get_item(ACCOUNT_DATA_KEY) is None
        assert session_storage.get_item(SETUP_DATA_KEY) is None
        assert session.accounts == []
        assert session.pending_setup is None
        assert session.balances == {}

        chain.balance_calls.clear()
        assert await session.refresh_balances() == {}
        assert chain.balance_calls == []


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_context_manager_runs_poller(self, session: ZkLoginSession) -> None:
        async with session as running:
            assert running.poller.is_running
        assert not session.poller.is_running

    @pytest.mark.asyncio
    async def test_from_config(self, tmp_path: Path, chain: FakeChain, primitives: FakePrimitives) -> None:
        config = ZkLoginConfig(
            salt_service_url=SALT_URL,
            prover_url=PROVER_URL,
            google_client_id=GOOGLE_CLIENT_ID,
            redirect_uri="https://wallet.example.com",
            max_epoch_window=7,
            storage_path=str(tmp_path / "session.db"),
        )
        session = ZkLoginSession.from_config(config, primitives, chain=chain)
        try:
            assert session.providers == [GOOGLE]
            url = await session.begin_login(GOOGLE)
            assert "redirect_uri=https%3A%2F%2Fwallet.example.com" in url
            assert session.pending_setup is not None
            assert session.pending_setup.max_epoch == chain.epoch + 7
        finally:
            session.close()

        reopened = SessionStorage(tmp_path / "session.db")
        assert reopened.get_item(SETUP_DATA_KEY) is not None
