"""
zkLogin transaction signing and submission.

send(account, tx_builder) does:
    1. Rehydrate the ephemeral keypair (MalformedKeyError on corrupt data).
    2. Build the tx bytes and sign them with the ephemeral key.
    3. addressSeed = primitives.gen_address_seed(salt, "sub", sub, aud).
    4. signature = primitives.zklogin_signature(
           {**zkProofs, addressSeed}, maxEpoch, ephemeralSignature).
    5. Submit. Success → balance refresh for this account.
       Any failure → SubmissionError; the account stays valid for retry.

The ephemeral key signs transactions for its account and nothing else.
The signer never writes to SetupStore or AccountStore.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

from zklogin_session import keys
from zklogin_session.chain import ChainClient, ExecutionResult
from zklogin_session.errors import SubmissionError
from zklogin_session.primitives import KEY_CLAIM_NAME, ZkLoginPrimitives
from zklogin_session.storage import AccountData

logger = logging.getLogger(__name__)

DEFAULT_GAS_BUDGET = 10_000_000


@runtime_checkable
class TransactionBuilder(Protocol):
    """Produces unsigned transaction bytes for a sender."""

    async def build(self, sender: str, chain: ChainClient) -> bytes:
        """Return BCS transaction bytes with ``sender`` as the signer."""
        ...


class PaySuiBuilder:
    """Transfer SUI from the sender to one recipient.

    Uses every SUI coin the sender owns as input; the node merges them,
    pays gas from the first and returns the change to the sender.
    """

    def __init__(
        self,
        recipient: str,
        amount: int,
        *,
        gas_budget: int = DEFAULT_GAS_BUDGET,
    ) -> None:
        if amount <= 0:
            raise ValueError(f"amount must be > 0, got {amount}")
        self.recipient = recipient
        self.amount = amount
        self.gas_budget = gas_budget

    async def build(self, sender: str, chain: ChainClient) -> bytes:
        coins = await chain.get_coins(sender)
        if not coins:
            raise ValueError(f"{sender} owns no SUI coins")
        return await chain.pay_sui(
            sender,
            [coin.coin_object_id for coin in coins],
            [self.recipient],
            [self.amount],
            self.gas_budget,
        )


class TransactionSigner:
    """Signs with the ephemeral key, wraps in a zkLogin signature, submits.

    Args:
        chain: Chain client for building and submission.
        primitives: External zkLogin cryptography.
        on_submitted: Awaited with the account after a successful
            submission (the session uses it to refresh the balance).
    """

    def __init__(
        self,
        chain: ChainClient,
        primitives: ZkLoginPrimitives,
        *,
        on_submitted: Callable[[AccountData], Awaitable[Any]] | None = None,
    ) -> None:
        self._chain = chain
        self._primitives = primitives
        self._on_submitted = on_submitted

    def compose_signature(self, account: AccountData, user_signature: str) -> str:
        """zkLogin signature for an ephemeral signature made by ``account``."""
        address_seed = self._primitives.gen_address_seed(
            int(account.user_salt), KEY_CLAIM_NAME, account.sub, account.aud
        )
        return self._primitives.zklogin_signature(
            {**account.zk_proofs, "addressSeed": str(address_seed)},
            account.max_epoch,
            user_signature,
        )

    async def send(
        self, account: AccountData, tx_builder: TransactionBuilder
    ) -> ExecutionResult:
        """Sign and submit a transaction for ``account``.

        Raises:
            MalformedKeyError: If the stored ephemeral key is corrupt.
            SubmissionError: If building, submitting or executing fails.
        """
        keypair = keys.deserialize(account.ephemeral_private_key)

        try:
            tx_bytes = await tx_builder.build(account.user_addr, self._chain)
        except Exception as exc:
            logger.warning("[send] building the transaction failed: %s", exc)
            raise SubmissionError(
                f"could not build the transaction: {exc}",
                details={"user_addr": account.user_addr, "stage": "build"},
            ) from exc

        signed = keypair.sign_transaction(tx_bytes)
        zklogin_signature = self.compose_signature(account, signed.signature)

        try:
            result = await self._chain.execute_transaction_block(
                signed.bytes, zklogin_signature
            )
        except Exception as exc:
            logger.warning("[send] execute_transaction_block failed: %s", exc)
            raise SubmissionError(
                f"transaction submission failed: {exc}",
                details={"user_addr": account.user_addr, "stage": "submit"},
            ) from exc

        if not result.succeeded:
            logger.warning(
                "[send] transaction %s failed on chain: %s", result.digest, result.error
            )
            raise SubmissionError(
                f"transaction {result.digest} failed: {result.error}",
                details={
                    "user_addr": account.user_addr,
                    "digest": result.digest,
                    "stage": "execute",
                },
            )

        logger.debug("[send] executed %s", result.digest)
        if self._on_submitted is not None:
            await self._on_submitted(account)
        return result
