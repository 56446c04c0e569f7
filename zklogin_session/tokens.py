"""
Identity token handling: fragment extraction and claim decoding.

The token arrives in the redirect URL fragment (implicit flow,
``response_type=id_token``). Its signature is not verified here — the
proof service verifies it against the provider's JWKs as part of proving.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs, urlsplit, urlunsplit

import jwt

from zklogin_session.errors import InvalidTokenError

GOOGLE_ISSUER = "https://accounts.google.com"

# The address preimage stores the issuer length in one byte.
MAX_ISSUER_BYTES = 255


@dataclass(frozen=True)
class IdTokenClaims:
    """The claims the session protocol relies on."""

    sub: str
    aud: str
    iss: str | None = None
    nonce: str | None = None


def extract_id_token(url: str) -> str | None:
    """Return the ``id_token`` fragment parameter of ``url``, if any."""
    fragment = urlsplit(url).fragment
    if not fragment:
        return None
    values = parse_qs(fragment).get("id_token")
    return values[0] if values else None


def strip_fragment(url: str) -> str:
    """``url`` without fragment or query (the page path the user landed on)."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def decode_claims(token: str) -> IdTokenClaims:
    """Decode an identity token without verifying its signature.

    Raises:
        InvalidTokenError: If the token cannot be decoded or lacks a
            non-empty ``sub`` or ``aud`` claim, or its issuer is too long
            to fit an address preimage.
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            options={"verify_signature": False},
            algorithms=["RS256", "ES256", "HS256"],
        )
    except jwt.PyJWTError as exc:
        raise InvalidTokenError(f"identity token could not be decoded: {exc}") from exc

    sub = payload.get("sub")
    aud = payload.get("aud")
    if isinstance(aud, list):
        aud = aud[0] if aud else None

    if not isinstance(sub, str) or not sub:
        raise InvalidTokenError("identity token is missing the sub claim")
    if not isinstance(aud, str) or not aud:
        raise InvalidTokenError("identity token is missing the aud claim")

    iss = payload.get("iss")
    if isinstance(iss, str) and len(normalize_issuer(iss).encode("utf-8")) > MAX_ISSUER_BYTES:
        raise InvalidTokenError(
            f"identity token issuer is longer than {MAX_ISSUER_BYTES} bytes"
        )

    nonce = payload.get("nonce")
    return IdTokenClaims(
        sub=sub,
        aud=aud,
        iss=iss if isinstance(iss, str) else None,
        nonce=nonce if isinstance(nonce, str) else None,
    )


def normalize_issuer(iss: str) -> str:
    """Google issues both forms of its issuer; addresses use the URL form."""
    if iss == "accounts.google.com":
        return GOOGLE_ISSUER
    return iss
