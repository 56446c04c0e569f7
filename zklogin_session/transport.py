"""
Transport protocol for JSON-over-HTTP calls.

Defines the seam where concrete HTTP implementations plug in. The chain
client and the salt/proof service clients depend on this protocol, not
on httpx directly, so the transport can be swapped without editing
parsing logic.

Concrete implementations:
    - HttpxTransport (default, uses httpx.AsyncClient)
    - FakeTransport (tests, returns canned responses)

Timeouts are the transport's job: every call made through
HttpxTransport is bounded by its ``timeout``. Nothing above this layer
cancels an in-flight request.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import httpx


@runtime_checkable
class JsonTransport(Protocol):
    """Async transport for JSON requests."""

    async def post_json(self, url: str, payload: dict[str, Any]) -> Any:
        """POST a JSON body and return the parsed JSON response.

        Raises:
            Exception: On transport-level failures (connection refused,
                timeout, TLS error, non-2xx status). Callers map these
                to their own error types.
        """
        ...

    async def get_json(self, url: str) -> Any:
        """GET a URL and return the parsed JSON response."""
        ...


class HttpxTransport:
    """Default transport using httpx.AsyncClient.

    A fresh client is opened per call; the session protocol makes a
    handful of requests per login, so connection reuse buys nothing.
    """

    def __init__(self, timeout: float = 30.0, headers: dict[str, str] | None = None) -> None:
        self._timeout = timeout
        self._headers = headers or {}

    @property
    def timeout(self) -> float:
        return self._timeout

    async def post_json(self, url: str, payload: dict[str, Any]) -> Any:
        """Send a JSON POST via httpx."""
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(
                url,
                json=payload,
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                    **self._headers,
                },
            )
            response.raise_for_status()
            return response.json()

    async def get_json(self, url: str) -> Any:
        """Send a GET via httpx."""
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.get(
                url,
                headers={"Accept": "application/json", **self._headers},
            )
            response.raise_for_status()
            return response.json()
