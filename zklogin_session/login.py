"""
zkLogin handshake — begin (before redirect) and complete (after redirect).

begin_login(provider) does:
    1. Query the current epoch (failure → ChainUnavailableError).
    2. maxEpoch = epoch + max_epoch_window.
    3. Generate ephemeral keypair + randomness.
    4. nonce = primitives.generate_nonce(pk, maxEpoch, randomness).
    5. Save SetupData (overwrites any pending login).
    6. Return the provider authorization URL.

complete_login(location) does:
    1. Extract id_token from the fragment (absent → None), strip fragment.
    2. Decode claims; sub, aud and iss required (InvalidTokenError).
    3. Load pending setup (MissingSetupError), check the nonce binding.
    4. Fetch salt (SaltServiceError; setup kept).
    5. Derive address; reject duplicates (DuplicateAccountError; setup kept).
    6. Clear setup. From here on a failure means logging in again.
    7. Request proof (ProofServiceError).
    8. Prepend AccountData (store re-checks duplicates), refresh balance.

Nothing before step 8 creates visible account state.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Protocol, runtime_checkable

from zklogin_session import keys
from zklogin_session.chain import ChainClient
from zklogin_session.errors import (
    ChainUnavailableError,
    DuplicateAccountError,
    InvalidTokenError,
    MissingSetupError,
    ZkLoginError,
)
from zklogin_session.primitives import ZkLoginPrimitives, jwt_to_address
from zklogin_session.providers import OpenIdProvider
from zklogin_session.services import ProofService, SaltService
from zklogin_session.storage import AccountData, AccountStore, SetupData, SetupStore
from zklogin_session.tokens import decode_claims, extract_id_token, strip_fragment

logger = logging.getLogger(__name__)

# Epochs the ephemeral key stays valid for (1 epoch ~= 24h).
DEFAULT_MAX_EPOCH_WINDOW = 2

AccountCallback = Callable[[AccountData], Awaitable[Any]]


@runtime_checkable
class Location(Protocol):
    """The page location: current URL plus history rewriting."""

    @property
    def href(self) -> str: ...

    def replace_state(self, url: str) -> None:
        """Replace the current URL without navigating."""
        ...


class PageLocation:
    """In-memory Location, e.g. for a redirect URL received by a local server."""

    def __init__(self, href: str) -> None:
        self._href = href
        self.history: list[str] = [href]

    @property
    def href(self) -> str:
        return self._href

    def replace_state(self, url: str) -> None:
        self._href = url
        self.history[-1] = url


# =========================================================================
# begin
# =========================================================================


class LoginInitiator:
    """Builds the OAuth redirect for a new zkLogin session.

    Args:
        chain: Chain client used for the epoch query.
        setup_store: Single-slot store for the pending login.
        primitives: External zkLogin cryptography.
        providers: Configured providers keyed by name.
        redirect_uri: Where the provider sends the browser back to.
        max_epoch_window: Epochs the ephemeral key stays valid for.
    """

    def __init__(
        self,
        chain: ChainClient,
        setup_store: SetupStore,
        primitives: ZkLoginPrimitives,
        providers: Mapping[str, OpenIdProvider],
        redirect_uri: str,
        *,
        max_epoch_window: int = DEFAULT_MAX_EPOCH_WINDOW,
    ) -> None:
        if max_epoch_window < 0:
            raise ValueError(f"max_epoch_window must be >= 0, got {max_epoch_window}")
        self._chain = chain
        self._setup_store = setup_store
        self._primitives = primitives
        self._providers = dict(providers)
        self._redirect_uri = redirect_uri
        self._max_epoch_window = max_epoch_window

    @property
    def providers(self) -> list[str]:
        return list(self._providers)

    async def begin_login(self, provider: str) -> str:
        """Start a login and return the provider authorization URL.

        Raises:
            ValueError: If ``provider`` is not configured.
            ChainUnavailableError: If the epoch query fails. The pending
                setup (if any) is left as it was.
        """
        openid_provider = self._providers.get(provider)
        if openid_provider is None:
            raise ValueError(
                f"unknown provider {provider!r}, configured: {sorted(self._providers)}"
            )

        logger.info("[begin_login] logging in with %s", provider)

        try:
            epoch = await self._chain.get_current_epoch()
        except Exception as exc:
            logger.warning("[begin_login] epoch query failed: %s", exc)
            raise ChainUnavailableError(
                f"could not query the current epoch: {exc}",
                details={"operation": "get_current_epoch"},
            ) from exc

        max_epoch = epoch + self._max_epoch_window
        keypair, randomness = keys.generate()
        nonce = self._primitives.generate_nonce(
            keypair.sui_public_key_bytes(), max_epoch, randomness
        )

        self._setup_store.save(
            SetupData(
                provider=provider,
                max_epoch=max_epoch,
                randomness=randomness,
                ephemeral_private_key=keys.serialize(keypair),
            )
        )

        return openid_provider.authorization_url(
            nonce=nonce, redirect_uri=self._redirect_uri
        )


# =========================================================================
# complete
# =========================================================================


class LoginCompleter:
    """Turns an OAuth redirect into a stored zkLogin account.

    Args:
        setup_store: Store holding the pending login.
        account_store: Store receiving the completed account.
        salt_service: User salt resolver.
        proof_service: Zero-knowledge proving service.
        primitives: External zkLogin cryptography.
        on_account_created: Awaited with the new account after it is
            stored (the session uses it to refresh the balance).
    """

    def __init__(
        self,
        setup_store: SetupStore,
        account_store: AccountStore,
        salt_service: SaltService,
        proof_service: ProofService,
        primitives: ZkLoginPrimitives,
        *,
        on_account_created: AccountCallback | None = None,
    ) -> None:
        self._setup_store = setup_store
        self._account_store = account_store
        self._salt_service = salt_service
        self._proof_service = proof_service
        self._primitives = primitives
        self._on_account_created = on_account_created

    async def complete_login(self, location: Location) -> AccountData | None:
        """Complete a pending login from the page location.

        Returns:
            The new account, or None when the location carries no
            identity token (an ordinary page load).

        Raises:
            ZkLoginError: The stage error that aborted the attempt. It has
                been logged; the account store is unchanged.
        """
        token = extract_id_token(location.href)
        if token is None:
            return None

        location.replace_state(strip_fragment(location.href))

        try:
            return await self._complete(token)
        except ZkLoginError as exc:
            logger.warning("[complete_login] %s: %s", exc.code, exc.message)
            raise

    async def _complete(self, token: str) -> AccountData:
        claims = decode_claims(token)
        if not claims.iss:
            raise InvalidTokenError("identity token is missing the iss claim")

        setup = self._setup_store.load()
        if setup is None:
            raise MissingSetupError("no pending login in session storage")

        keypair = keys.deserialize(setup.ephemeral_private_key)
        expected_nonce = self._primitives.generate_nonce(
            keypair.sui_public_key_bytes(), setup.max_epoch, setup.randomness
        )
        if claims.nonce != expected_nonce:
            raise InvalidTokenError(
                "identity token nonce does not match the pending login",
                details={"provider": setup.provider},
            )

        salt = await self._salt_service.fetch_salt(token)
        user_addr = jwt_to_address(token, salt, self._primitives)

        if self._account_store.contains(user_addr):
            raise DuplicateAccountError(
                f"already logged in with this {setup.provider} account",
                details={"user_addr": user_addr},
            )

        self._setup_store.clear()

        zk_proofs = await self._proof_service.request_proof(
            max_epoch=setup.max_epoch,
            randomness=setup.randomness,
            extended_ephemeral_public_key=keys.extended_ephemeral_public_key(keypair),
            token=token,
            salt=salt,
        )

        account = AccountData(
            provider=setup.provider,
            user_addr=user_addr,
            zk_proofs=zk_proofs,
            ephemeral_private_key=setup.ephemeral_private_key,
            user_salt=str(salt),
            sub=claims.sub,
            aud=claims.aud,
            max_epoch=setup.max_epoch,
        )
        # Re-checks the address under the store lock: another completion
        # may have landed while the proof was being computed.
        await self._account_store.add(account)
        logger.info("[complete_login] logged in %s via %s", user_addr, setup.provider)

        if self._on_account_created is not None:
            await self._on_account_created(account)
        return account

