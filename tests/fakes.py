"""
Shared fakes for the zkLogin session tests — no network, no real prover.

FakeChain and FakePrimitives record their calls so tests can assert on
what crossed each boundary. FakeServiceTransport stands in for both the
salt and the proof service, keyed by URL.
"""

from __future__ import annotations

import base64
import hashlib
import json
from typing import Any
from urllib.parse import parse_qs, urlsplit

import jwt

from zklogin_session.chain import Coin, ExecutionResult
from zklogin_session.storage import AccountData

GOOGLE_ISS = "https://accounts.google.com"
GOOGLE_CLIENT_ID = "test-client.apps.googleusercontent.com"
REDIRECT_URI = "http://localhost:3000"
SALT_URL = "https://salt.example.com/get_salt"
PROVER_URL = "https://prover.example.com/v1"
SIGNING_KEY = "test-signing-key-that-is-long-enough-for-hs256"

SAMPLE_PROOF = {
    "proofPoints": {"a": ["1", "2", "1"], "b": [["3", "4"], ["5", "6"], ["1", "0"]], "c": ["7", "8", "1"]},
    "issBase64Details": {"value": "yJpc3MiOiJodHRwczovL2lkLnR3aXRjaC50di9vYXV0aDIiLC", "indexMod4": 2},
    "headerBase64": "eyJhbGciOiJSUzI1NiIsInR5cCI6IkpXVCJ9",
}


# ---------------------------------------------------------------------------
# Fake chain
# ---------------------------------------------------------------------------


class FakeChain:
    """Minimal ChainClient implementation for testing."""

    def __init__(self) -> None:
        self.epoch = 10
        self.balances: dict[str, int] = {}
        self.balance_errors: dict[str, Exception] = {}
        self.epoch_error: Exception | None = None
        self.execute_result = ExecutionResult(digest="5WmxTYdd2bHgKRN4", status="success")
        self.execute_error: Exception | None = None
        self.coins_error: Exception | None = None
        self.coins: list[Coin] = [Coin(coin_object_id="0x" + "c" * 64, balance=5_000_000_000)]
        self.tx_bytes = b"\x00\x01fake-transaction-data"
        self.epoch_calls = 0
        self.balance_calls: list[str] = []
        self.execute_calls: list[tuple[str, str]] = []
        self.pay_sui_calls: list[tuple[str, list[str], list[str], list[int], int]] = []

    async def get_current_epoch(self) -> int:
        self.epoch_calls += 1
        if self.epoch_error is not None:
            raise self.epoch_error
        return self.epoch

    async def get_balance(self, address: str) -> int:
        self.balance_calls.append(address)
        if address in self.balance_errors:
            raise self.balance_errors[address]
        return self.balances.get(address, 0)

    async def execute_transaction_block(self, tx_bytes: str, signature: str) -> ExecutionResult:
        self.execute_calls.append((tx_bytes, signature))
        if self.execute_error is not None:
            raise self.execute_error
        return self.execute_result

    async def get_coins(self, owner: str) -> list[Coin]:
        if self.coins_error is not None:
            raise self.coins_error
        return list(self.coins)

    async def pay_sui(
        self,
        signer: str,
        input_coins: list[str],
        recipients: list[str],
        amounts: list[int],
        gas_budget: int,
    ) -> bytes:
        self.pay_sui_calls.append((signer, input_coins, recipients, amounts, gas_budget))
        return self.tx_bytes


# ---------------------------------------------------------------------------
# Fake primitives
# ---------------------------------------------------------------------------


class FakePrimitives:
    """Deterministic sha256 stand-ins for the Poseidon-based primitives."""

    def __init__(self) -> None:
        self.signature_calls: list[tuple[dict[str, Any], int, str]] = []

    def generate_nonce(self, ephemeral_public_key: bytes, max_epoch: int, randomness: str) -> str:
        digest = hashlib.sha256(
            ephemeral_public_key + f"|{max_epoch}|{randomness}".encode()
        ).digest()
        return base64.urlsafe_b64encode(digest[:20]).decode().rstrip("=")

    def gen_address_seed(self, salt: int, claim_name: str, claim_value: str, aud: str) -> int:
        digest = hashlib.sha256(f"{salt}|{claim_name}|{claim_value}|{aud}".encode()).digest()
        return int.from_bytes(digest, "big") >> 2

    def zklogin_signature(self, inputs: dict[str, Any], max_epoch: int, user_signature: str) -> str:
        self.signature_calls.append((inputs, max_epoch, user_signature))
        body = json.dumps(
            {"inputs": inputs, "maxEpoch": max_epoch, "userSignature": user_signature},
            sort_keys=True,
        )
        return base64.b64encode(b"\x05" + body.encode()).decode()


# ---------------------------------------------------------------------------
# Fake salt / proof transport
# ---------------------------------------------------------------------------


class FakeServiceTransport:
    """Returns canned responses per URL, or raises the configured error."""

    def __init__(self) -> None:
        self.responses: dict[str, Any] = {SALT_URL: {"salt": "12345"}, PROVER_URL: SAMPLE_PROOF}
        self.errors: dict[str, Exception] = {}
        self.calls: list[tuple[str, str, dict[str, Any] | None]] = []

    async def post_json(self, url: str, payload: dict[str, Any]) -> Any:
        self.calls.append(("POST", url, payload))
        return self._answer(url)

    async def get_json(self, url: str) -> Any:
        self.calls.append(("GET", url, None))
        return self._answer(url)

    def _answer(self, url: str) -> Any:
        if url in self.errors:
            raise self.errors[url]
        return self.responses[url]

    def calls_to(self, url: str) -> list[tuple[str, str, dict[str, Any] | None]]:
        return [call for call in self.calls if call[1] == url]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_token(
    *,
    sub: str | None = "abc",
    aud: str | list[str] | None = "xyz",
    iss: str | None = GOOGLE_ISS,
    nonce: str | None = None,
) -> str:
    claims: dict[str, Any] = {"iat": 1700000000, "exp": 1700003600}
    for name, value in (("sub", sub), ("aud", aud), ("iss", iss), ("nonce", nonce)):
        if value is not None:
            claims[name] = value
    return jwt.encode(claims, SIGNING_KEY, algorithm="HS256")


def nonce_of(url: str) -> str:
    return parse_qs(urlsplit(url).query)["nonce"][0]


def redirect_url(token: str) -> str:
    return f"{REDIRECT_URI}/dashboard#id_token={token}&authuser=0&prompt=consent"


def make_account(user_addr: str = "0x" + "a" * 64, **overrides: Any) -> AccountData:
    fields: dict[str, Any] = {
        "provider": "Connect with Google",
        "user_addr": user_addr,
        "zk_proofs": dict(SAMPLE_PROOF),
        "ephemeral_private_key": base64.b64encode(b"\x00" + b"\x07" * 32).decode(),
        "user_salt": "12345",
        "sub": "abc",
        "aud": "xyz",
        "max_epoch": 12,
    }
    fields.update(overrides)
    return AccountData(**fields)
