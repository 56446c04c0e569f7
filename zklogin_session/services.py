"""
Salt and proof service clients.

Both services are plain JSON-over-HTTP endpoints reached through a
JsonTransport. Every failure (connection error, timeout, non-2xx status,
unexpected response shape) is mapped to the service's error type with
``raise ... from exc`` so callers handle exactly one exception per stage.

Salt service modes:
    - production: POST {"jwt": ...} → {"salt": "..."}
    - development: GET of a static ``*.json`` file → {"salt": "..."}
      (same salt for everyone; never use outside development)
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
import jsonschema  # type: ignore[import-untyped]

from zklogin_session.errors import ProofServiceError, SaltServiceError
from zklogin_session.primitives import KEY_CLAIM_NAME
from zklogin_session.transport import HttpxTransport, JsonTransport

logger = logging.getLogger(__name__)

SALT_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["salt"],
    "properties": {
        "salt": {
            "oneOf": [
                {"type": "string", "pattern": "^[0-9]+$"},
                {"type": "integer", "minimum": 0},
            ]
        }
    },
}


def _describe(exc: Exception) -> dict[str, Any]:
    if isinstance(exc, httpx.HTTPStatusError):
        return {"status_code": exc.response.status_code}
    if isinstance(exc, httpx.TimeoutException):
        return {"error": "timeout"}
    return {"error": type(exc).__name__}


class SaltService:
    """Client for the user salt service.

    Args:
        url: Service URL. A URL ending in ``.json`` selects the static
            development mode (GET), anything else the production POST.
        transport: Injectable transport. Defaults to HttpxTransport.
    """

    def __init__(self, url: str, transport: JsonTransport | None = None) -> None:
        self._url = url
        self._transport = transport or HttpxTransport()

    @property
    def url(self) -> str:
        return self._url

    @property
    def is_static(self) -> bool:
        return self._url.split("?", 1)[0].endswith(".json")

    async def fetch_salt(self, token: str) -> int:
        """Resolve the user salt for an identity token.

        Raises:
            SaltServiceError: On any transport failure or a response that
                does not match ``{"salt": <decimal>}``.
        """
        try:
            if self.is_static:
                response = await self._transport.get_json(self._url)
            else:
                response = await self._transport.post_json(self._url, {"jwt": token})
        except Exception as exc:
            raise SaltServiceError(
                f"salt service request failed: {exc}",
                details={"url": self._url, **_describe(exc)},
            ) from exc

        try:
            jsonschema.validate(instance=response, schema=SALT_RESPONSE_SCHEMA)
        except jsonschema.ValidationError as exc:
            raise SaltServiceError(
                "salt service response has an unexpected shape",
                details={"url": self._url},
            ) from exc

        logger.debug("[fetch_salt] salt service success")
        return int(response["salt"])


class ProofService:
    """Client for the zero-knowledge proving service.

    The response is returned verbatim; only the signature composer
    interprets it.
    """

    def __init__(self, url: str, transport: JsonTransport | None = None) -> None:
        self._url = url
        self._transport = transport or HttpxTransport()

    @property
    def url(self) -> str:
        return self._url

    async def request_proof(
        self,
        *,
        max_epoch: int,
        randomness: str,
        extended_ephemeral_public_key: str,
        token: str,
        salt: int,
    ) -> dict[str, Any]:
        """Request a zkLogin proof for the given session parameters.

        Raises:
            ProofServiceError: On any transport failure or a response that
                is not a JSON object.
        """
        payload = {
            "maxEpoch": max_epoch,
            "jwtRandomness": randomness,
            "extendedEphemeralPublicKey": extended_ephemeral_public_key,
            "jwt": token,
            "salt": str(salt),
            "keyClaimName": KEY_CLAIM_NAME,
        }
        logger.debug("[request_proof] requesting ZK proof for max_epoch=%s", max_epoch)

        try:
            response = await self._transport.post_json(self._url, payload)
        except Exception as exc:
            raise ProofServiceError(
                f"proof service request failed: {exc}",
                details={"url": self._url, **_describe(exc)},
            ) from exc

        if not isinstance(response, dict):
            raise ProofServiceError(
                "proof service response is not a JSON object",
                details={"url": self._url, "type": type(response).__name__},
            )

        logger.debug("[request_proof] ZK proving service success")
        return response
