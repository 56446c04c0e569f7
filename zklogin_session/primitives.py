"""
zkLogin cryptographic primitives — the external cryptography boundary.

The Poseidon-based parts of zkLogin (nonce, address seed) and the BCS
serialization of the final zkLogin signature belong to an external
cryptography library. This module defines the interface the session
protocol consumes; concrete implementations are supplied by the
integrator (and by fakes in tests).

Address derivation is *not* behind the protocol: given an address seed
it is a plain BLAKE2b hash and lives here as ``compute_zklogin_address``:

    address = blake2b-256(0x05 || len(iss) || iss || seed as 32-byte BE)
"""

from __future__ import annotations

import hashlib
from typing import Any, Protocol, runtime_checkable

from zklogin_session.errors import InvalidTokenError
from zklogin_session.tokens import MAX_ISSUER_BYTES, decode_claims, normalize_issuer

# Sui signature scheme flag for zkLogin.
ZKLOGIN_FLAG = 0x05

# The claim that binds the address to the user. Fixed for this protocol.
KEY_CLAIM_NAME = "sub"

ADDRESS_SEED_BYTES = 32


@runtime_checkable
class ZkLoginPrimitives(Protocol):
    """Interface for the external zkLogin cryptography library."""

    def generate_nonce(
        self, ephemeral_public_key: bytes, max_epoch: int, randomness: str
    ) -> str:
        """Nonce binding the OAuth request to a key and an expiry.

        Args:
            ephemeral_public_key: Flagged Sui public key bytes
                (``EphemeralKeyPair.sui_public_key_bytes()``).
            max_epoch: Last epoch in which the key may sign.
            randomness: Decimal randomness string.
        """
        ...

    def gen_address_seed(
        self, salt: int, claim_name: str, claim_value: str, aud: str
    ) -> int:
        """Deterministic binding of salt and identity claims."""
        ...

    def zklogin_signature(
        self, inputs: dict[str, Any], max_epoch: int, user_signature: str
    ) -> str:
        """Serialize a zkLogin signature.

        Args:
            inputs: The proof service payload plus ``addressSeed``.
            max_epoch: The account's max epoch.
            user_signature: Base64 ephemeral signature over the tx bytes.

        Returns:
            Base64 serialized signature accepted by the chain.
        """
        ...


def compute_zklogin_address(address_seed: int, iss: str) -> str:
    """Sui address of a zkLogin account (0x + 64 lowercase hex)."""
    try:
        seed_bytes = address_seed.to_bytes(ADDRESS_SEED_BYTES, "big")
    except OverflowError as exc:
        raise ValueError("address seed does not fit in 32 bytes") from exc

    iss_bytes = normalize_issuer(iss).encode("utf-8")
    if len(iss_bytes) > MAX_ISSUER_BYTES:
        raise ValueError(f"issuer is longer than {MAX_ISSUER_BYTES} bytes")

    preimage = bytes([ZKLOGIN_FLAG, len(iss_bytes)]) + iss_bytes + seed_bytes
    return "0x" + hashlib.blake2b(preimage, digest_size=32).hexdigest()


def jwt_to_address(token: str, salt: int, primitives: ZkLoginPrimitives) -> str:
    """Derive the account address from an identity token and a salt.

    Deterministic: identical (token claims, salt) always give the same
    address.

    Raises:
        InvalidTokenError: If the token lacks sub, aud or iss.
    """
    claims = decode_claims(token)
    if not claims.iss:
        raise InvalidTokenError("identity token is missing the iss claim")
    seed = primitives.gen_address_seed(salt, KEY_CLAIM_NAME, claims.sub, claims.aud)
    return compute_zklogin_address(seed, claims.iss)
