"""Fixtures wiring the fakes into real stores, initiator and completer."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

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
)
from zklogin_session.login import LoginCompleter, LoginInitiator
from zklogin_session.providers import default_providers
from zklogin_session.services import ProofService, SaltService
from zklogin_session.storage import AccountData, AccountStore, SessionStorage, SetupStore


@pytest.fixture
def storage() -> SessionStorage:
    return SessionStorage()


@pytest.fixture
def setup_store(storage: SessionStorage) -> SetupStore:
    return SetupStore(storage)


@pytest.fixture
def account_store(storage: SessionStorage) -> AccountStore:
    return AccountStore(storage)


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def primitives() -> FakePrimitives:
    return FakePrimitives()


@pytest.fixture
def services() -> FakeServiceTransport:
    return FakeServiceTransport()


@pytest.fixture
def initiator(chain: FakeChain, setup_store: SetupStore, primitives: FakePrimitives) -> LoginInitiator:
    return LoginInitiator(
        chain,
        setup_store,
        primitives,
        default_providers(google_client_id=GOOGLE_CLIENT_ID, twitch_client_id="twitch-client"),
        REDIRECT_URI,
    )


@pytest.fixture
def created_accounts() -> list[AccountData]:
    return []


@pytest.fixture
def completer(
    setup_store: SetupStore,
    account_store: AccountStore,
    services: FakeServiceTransport,
    primitives: FakePrimitives,
    created_accounts: list[AccountData],
) -> LoginCompleter:
    async def _record(account: AccountData) -> None:
        created_accounts.append(account)

    return LoginCompleter(
        setup_store,
        account_store,
        SaltService(SALT_URL, services),
        ProofService(PROVER_URL, services),
        primitives,
        on_account_created=_record,
    )


@pytest.fixture
def token_for() -> Callable[..., str]:
    """Token whose nonce matches the login that produced ``url``."""

    def _token_for(url: str, **claims: Any) -> str:
        return make_token(nonce=nonce_of(url), **claims)

    return _token_for
