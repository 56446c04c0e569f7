"""
Chain client protocol — the network boundary.

Defines the interface the login and signing flows depend on, not a
concrete implementation. This keeps them testable and prevents
``httpx.post`` from creeping into protocol logic.

Concrete implementations:
    - SuiJsonRpcClient (jsonrpc_client.py)
    - FakeChain (tests)

Amounts are integers in MIST (1 SUI = 10**9 MIST). Transport failures
propagate as exceptions; callers map them to stage errors
(ChainUnavailableError, SubmissionError).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

SUI_COIN_TYPE = "0x2::sui::SUI"
MIST_PER_SUI = 1_000_000_000


def mist_to_sui(amount: int) -> Decimal:
    return Decimal(amount) / MIST_PER_SUI


# =========================================================================
# Result types
# =========================================================================


@dataclass(frozen=True)
class ExecutionResult:
    """Result of executing a signed transaction block.

    Attributes:
        digest: Transaction digest (base58), as reported by the node.
        status: Effects status ("success" or "failure"). None when the
            node did not return effects.
        error: On-chain failure reason when status is "failure".
        raw: The full JSON-RPC result, for callers that need more.
    """

    digest: str
    status: str | None = None
    error: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def succeeded(self) -> bool:
        return self.status in (None, "success")


@dataclass(frozen=True)
class Coin:
    """A SUI coin object owned by an address."""

    coin_object_id: str
    balance: int


# =========================================================================
# Protocol
# =========================================================================


@runtime_checkable
class ChainClient(Protocol):
    """Interface for chain network operations.

    Methods are async because network I/O is inherently asynchronous.
    """

    async def get_current_epoch(self) -> int:
        """Current epoch of the chain."""
        ...

    async def get_balance(self, address: str) -> int:
        """Total SUI balance of ``address`` in MIST."""
        ...

    async def execute_transaction_block(
        self, tx_bytes: str, signature: str
    ) -> ExecutionResult:
        """Submit base64 transaction bytes with a serialized signature."""
        ...

    async def get_coins(self, owner: str) -> list[Coin]:
        """All SUI coins owned by ``owner``."""
        ...

    async def pay_sui(
        self,
        signer: str,
        input_coins: list[str],
        recipients: list[str],
        amounts: list[int],
        gas_budget: int,
    ) -> bytes:
        """Ask the node to build an unsigned PaySui transaction."""
        ...
