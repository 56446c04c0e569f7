"""
Ephemeral key management — the secrets boundary.

An ephemeral key is an Ed25519 keypair generated locally for one login.
It signs transactions until the chain's ``maxEpoch`` passes; after that
the chain rejects its signatures. Nothing here enforces expiry.

Serialized form (Sui keystore format):
    base64(flag || secret)
    flag   = 0x00 (Ed25519 signature scheme)
    secret = 32-byte raw Ed25519 private key

Signing follows the Sui intent scheme:
    digest    = blake2b-256([0, 0, 0] || tx_bytes)
    signature = base64(flag || ed25519_sign(digest) || public_key)
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import secrets
from dataclasses import dataclass

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)

from zklogin_session.errors import MalformedKeyError

# Sui signature scheme flag for Ed25519.
ED25519_FLAG = 0x00

# Intent prefix for TransactionData: (scope=0, version=0, app_id=0).
TRANSACTION_INTENT = bytes([0, 0, 0])

SECRET_KEY_LENGTH = 32
RANDOMNESS_BYTES = 16


@dataclass(frozen=True)
class SignedTransaction:
    """Transaction bytes plus the ephemeral signature over them.

    Attributes:
        bytes: Base64 transaction bytes, as submitted to the node.
        signature: Base64 serialized Ed25519 signature (flag || sig || pk).
    """

    bytes: str
    signature: str


class EphemeralKeyPair:
    """An Ed25519 keypair used for exactly one zkLogin session.

    Two keypairs are equal when their secret keys are equal. The repr
    shows only the public key.
    """

    def __init__(self, private_key: Ed25519PrivateKey) -> None:
        self._private_key = private_key

    @classmethod
    def from_secret_key(cls, secret: bytes) -> EphemeralKeyPair:
        if len(secret) != SECRET_KEY_LENGTH:
            raise MalformedKeyError(
                f"secret key must be {SECRET_KEY_LENGTH} bytes, got {len(secret)}"
            )
        return cls(Ed25519PrivateKey.from_private_bytes(secret))

    def secret_key_bytes(self) -> bytes:
        return self._private_key.private_bytes(
            Encoding.Raw, PrivateFormat.Raw, NoEncryption()
        )

    def public_key_bytes(self) -> bytes:
        return self._private_key.public_key().public_bytes(
            Encoding.Raw, PublicFormat.Raw
        )

    def sui_public_key_bytes(self) -> bytes:
        """Public key prefixed with the scheme flag (33 bytes)."""
        return bytes([ED25519_FLAG]) + self.public_key_bytes()

    def sign_transaction(self, tx_bytes: bytes) -> SignedTransaction:
        """Sign transaction bytes under the Sui transaction intent."""
        digest = hashlib.blake2b(TRANSACTION_INTENT + tx_bytes, digest_size=32).digest()
        raw_signature = self._private_key.sign(digest)
        serialized = bytes([ED25519_FLAG]) + raw_signature + self.public_key_bytes()
        return SignedTransaction(
            bytes=base64.b64encode(tx_bytes).decode("ascii"),
            signature=base64.b64encode(serialized).decode("ascii"),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EphemeralKeyPair):
            return NotImplemented
        return secrets.compare_digest(self.secret_key_bytes(), other.secret_key_bytes())

    def __hash__(self) -> int:
        return hash(self.public_key_bytes())

    def __repr__(self) -> str:
        return f"EphemeralKeyPair(public_key={self.public_key_bytes().hex()})"


# =========================================================================
# Generation
# =========================================================================


def generate_randomness() -> str:
    """128 bits from the OS CSPRNG, as a big-endian decimal string."""
    return str(int.from_bytes(secrets.token_bytes(RANDOMNESS_BYTES), "big"))


def generate() -> tuple[EphemeralKeyPair, str]:
    """Fresh keypair and fresh nonce randomness. No side effects."""
    return EphemeralKeyPair(Ed25519PrivateKey.generate()), generate_randomness()


def extended_ephemeral_public_key(keypair: EphemeralKeyPair) -> str:
    """Flagged public key as a big-endian decimal string (prover input)."""
    return str(int.from_bytes(keypair.sui_public_key_bytes(), "big"))


# =========================================================================
# Serialization
# =========================================================================


def serialize(keypair: EphemeralKeyPair) -> str:
    """Encode a keypair as base64(flag || secret)."""
    return base64.b64encode(
        bytes([ED25519_FLAG]) + keypair.secret_key_bytes()
    ).decode("ascii")


def deserialize(value: str) -> EphemeralKeyPair:
    """Decode a keypair produced by :func:`serialize`.

    Raises:
        MalformedKeyError: If the value is not valid base64, has the wrong
            length, or carries a scheme flag other than Ed25519.
    """
    if not isinstance(value, str) or not value:
        raise MalformedKeyError("serialized key must be a non-empty string")

    try:
        raw = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedKeyError(f"serialized key is not valid base64: {exc}") from exc

    if len(raw) != SECRET_KEY_LENGTH + 1:
        raise MalformedKeyError(
            f"serialized key must be {SECRET_KEY_LENGTH + 1} bytes, got {len(raw)}"
        )
    if raw[0] != ED25519_FLAG:
        raise MalformedKeyError(f"unsupported signature scheme flag: {raw[0]:#04x}")

    return EphemeralKeyPair.from_secret_key(raw[1:])
