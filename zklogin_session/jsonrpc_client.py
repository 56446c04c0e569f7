"""
Sui JSON-RPC client — real network implementation of ChainClient.

Translates Sui fullnode JSON-RPC responses into plain Python values and
result dataclasses. Uses an injectable transport (JsonTransport) so the
HTTP layer can be swapped for test fakes without changing parsing logic.

No retry loops. No secrets. No chain logic beyond response parsing.

Response conventions (JSON-RPC 2.0):
    - Success: {"jsonrpc": "2.0", "id": n, "result": ...}
    - Error:   {"jsonrpc": "2.0", "id": n, "error": {"code": ..., "message": ...}}

Numeric fields such as epoch and totalBalance arrive as decimal strings.
"""

from __future__ import annotations

import base64
import itertools
from typing import Any

from zklogin_session.chain import SUI_COIN_TYPE, Coin, ExecutionResult
from zklogin_session.errors import ChainRpcError
from zklogin_session.transport import HttpxTransport, JsonTransport

FULLNODE_URLS: dict[str, str] = {
    "mainnet": "https://fullnode.mainnet.sui.io:443",
    "testnet": "https://fullnode.testnet.sui.io:443",
    "devnet": "https://fullnode.devnet.sui.io:443",
    "localnet": "http://127.0.0.1:9000",
}

# Page size for suix_getCoins (node maximum is 50).
_COINS_PAGE_LIMIT = 50

_request_ids = itertools.count(1)


def get_fullnode_url(network: str) -> str:
    """Public fullnode URL for a named network."""
    try:
        return FULLNODE_URLS[network]
    except KeyError:
        raise ValueError(
            f"unknown network {network!r}, expected one of {sorted(FULLNODE_URLS)}"
        ) from None


class SuiJsonRpcClient:
    """Sui JSON-RPC client implementing the ChainClient protocol.

    Args:
        url: Fullnode JSON-RPC endpoint URL.
        transport: Injectable transport for HTTP POST. Defaults to
            HttpxTransport. Pass a FakeTransport for testing.
    """

    def __init__(
        self,
        url: str,
        transport: JsonTransport | None = None,
    ) -> None:
        self._url = url
        self._transport = transport or HttpxTransport()

    @property
    def url(self) -> str:
        """The JSON-RPC endpoint URL."""
        return self._url

    async def _call(self, method: str, params: list[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(_request_ids),
            "method": method,
            "params": params,
        }
        response = await self._transport.post_json(self._url, payload)
        return _unwrap(method, response)

    # -----------------------------------------------------------------
    # ChainClient protocol methods
    # -----------------------------------------------------------------

    async def get_current_epoch(self) -> int:
        """Current epoch from ``suix_getLatestSuiSystemState``."""
        result = await self._call("suix_getLatestSuiSystemState", [])
        return _parse_int(result, "epoch")

    async def get_balance(self, address: str) -> int:
        """Total SUI balance in MIST from ``suix_getBalance``."""
        result = await self._call("suix_getBalance", [address, SUI_COIN_TYPE])
        return _parse_int(result, "totalBalance")

    async def execute_transaction_block(
        self, tx_bytes: str, signature: str
    ) -> ExecutionResult:
        """Submit via ``sui_executeTransactionBlock`` with effects.

        Transport exceptions and JSON-RPC errors propagate to the caller
        (the signer maps them to SubmissionError).
        """
        result = await self._call(
            "sui_executeTransactionBlock",
            [
                tx_bytes,
                [signature],
                {"showEffects": True},
                "WaitForLocalExecution",
            ],
        )
        return _parse_execution_result(result)

    async def get_coins(self, owner: str) -> list[Coin]:
        """All SUI coins of ``owner``, following pagination cursors.

        Stops when the node reports no next page, or when it reports one
        without a new cursor.
        """
        coins: list[Coin] = []
        cursor: str | None = None
        while True:
            result = await self._call(
                "suix_getCoins", [owner, SUI_COIN_TYPE, cursor, _COINS_PAGE_LIMIT]
            )
            if not isinstance(result, dict):
                raise ChainRpcError(
                    "suix_getCoins response is not a JSON object",
                    details={"method": "suix_getCoins"},
                )
            coins.extend(_parse_coin(item) for item in result.get("data") or [])
            if not result.get("hasNextPage"):
                return coins
            next_cursor = result.get("nextCursor")
            if not next_cursor or next_cursor == cursor:
                return coins
            cursor = next_cursor

    async def pay_sui(
        self,
        signer: str,
        input_coins: list[str],
        recipients: list[str],
        amounts: list[int],
        gas_budget: int,
    ) -> bytes:
        """Build unsigned PaySui transaction bytes via ``unsafe_paySui``."""
        result = await self._call(
            "unsafe_paySui",
            [
                signer,
                input_coins,
                recipients,
                [str(amount) for amount in amounts],
                str(gas_budget),
            ],
        )
        tx_bytes = result.get("txBytes") if isinstance(result, dict) else None
        if not isinstance(tx_bytes, str):
            raise ChainRpcError("unsafe_paySui response has no txBytes")
        return base64.b64decode(tx_bytes)


# =====================================================================
# Response parsing (pure functions, no I/O)
# =====================================================================


def _unwrap(method: str, response: Any) -> Any:
    """Return the ``result`` member or raise ChainRpcError."""
    if not isinstance(response, dict):
        raise ChainRpcError(
            f"{method}: response is not a JSON object",
            details={"method": method},
        )

    error = response.get("error")
    if error is not None:
        message = error.get("message") if isinstance(error, dict) else str(error)
        code = error.get("code") if isinstance(error, dict) else None
        raise ChainRpcError(
            f"{method}: {message or 'unknown server error'}",
            rpc_code=code,
            details={"method": method},
        )

    if "result" not in response:
        raise ChainRpcError(
            f"{method}: response has neither result nor error",
            details={"method": method},
        )
    return response["result"]


def _parse_int(result: Any, key: str) -> int:
    if not isinstance(result, dict) or key not in result:
        raise ChainRpcError(f"response has no {key!r} field")
    try:
        return int(result[key])
    except (TypeError, ValueError) as exc:
        raise ChainRpcError(f"{key!r} is not an integer: {result[key]!r}") from exc


def _parse_coin(item: Any) -> Coin:
    try:
        return Coin(coin_object_id=item["coinObjectId"], balance=int(item["balance"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise ChainRpcError(f"malformed coin object: {item!r}") from exc


def _parse_execution_result(result: Any) -> ExecutionResult:
    """Parse a sui_executeTransactionBlock result.

    Handles:
        - Effects present with status success/failure
        - Effects absent (node did not wait for local execution)
    """
    if not isinstance(result, dict) or not isinstance(result.get("digest"), str):
        raise ChainRpcError("sui_executeTransactionBlock response has no digest")

    status = None
    error = None
    effects = result.get("effects")
    if isinstance(effects, dict):
        status_obj = effects.get("status")
        if isinstance(status_obj, dict):
            status = status_obj.get("status")
            error = status_obj.get("error")

    return ExecutionResult(
        digest=result["digest"],
        status=status,
        error=error,
        raw=result,
    )
