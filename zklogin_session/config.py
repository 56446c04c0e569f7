"""
Configuration for a zkLogin session.

Settings come from ``ZKLOGIN_*`` environment variables (``from_env``) or
are passed directly. The salt and prover URLs are required; everything
else has a development-friendly default (devnet, in-memory storage).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from zklogin_session.jsonrpc_client import get_fullnode_url
from zklogin_session.login import DEFAULT_MAX_EPOCH_WINDOW
from zklogin_session.poller import DEFAULT_POLL_INTERVAL
from zklogin_session.providers import OpenIdProvider, default_providers

DEFAULT_NETWORK = "devnet"
DEFAULT_REDIRECT_URI = "http://localhost:3000"
DEFAULT_HTTP_TIMEOUT = 30.0


@dataclass(frozen=True)
class ZkLoginConfig:
    """Settings for :class:`~zklogin_session.session.ZkLoginSession`."""

    salt_service_url: str
    prover_url: str
    network: str = DEFAULT_NETWORK
    fullnode_url: str | None = None
    redirect_uri: str = DEFAULT_REDIRECT_URI
    google_client_id: str | None = None
    twitch_client_id: str | None = None
    facebook_client_id: str | None = None
    max_epoch_window: int = DEFAULT_MAX_EPOCH_WINDOW
    balance_poll_interval: float = DEFAULT_POLL_INTERVAL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    storage_path: str = ":memory:"

    def __post_init__(self) -> None:
        if not self.salt_service_url:
            raise ValueError("salt_service_url must be non-empty")
        if not self.prover_url:
            raise ValueError("prover_url must be non-empty")
        if self.max_epoch_window < 0:
            raise ValueError(f"max_epoch_window must be >= 0, got {self.max_epoch_window}")
        if self.balance_poll_interval <= 0:
            raise ValueError(
                f"balance_poll_interval must be > 0, got {self.balance_poll_interval}"
            )
        if self.http_timeout <= 0:
            raise ValueError(f"http_timeout must be > 0, got {self.http_timeout}")
        if self.fullnode_url is None:
            # Validates the network name as a side effect.
            get_fullnode_url(self.network)

    @property
    def rpc_url(self) -> str:
        return self.fullnode_url or get_fullnode_url(self.network)

    def providers(self) -> dict[str, OpenIdProvider]:
        return default_providers(
            google_client_id=self.google_client_id,
            twitch_client_id=self.twitch_client_id,
            facebook_client_id=self.facebook_client_id,
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ZkLoginConfig:
        """Build a config from ``ZKLOGIN_*`` variables.

        Raises:
            ValueError: If a required URL is missing or a number is invalid.
        """
        env = os.environ if environ is None else environ

        def _get(name: str) -> str | None:
            value = (env.get(name) or "").strip()
            return value or None

        def _number(name: str, default: float, kind: type = float) -> float:
            raw = _get(name)
            if raw is None:
                return default
            try:
                return kind(raw)
            except ValueError:
                raise ValueError(f"{name} must be a {kind.__name__}, got {raw!r}") from None

        return cls(
            salt_service_url=_get("ZKLOGIN_SALT_SERVICE_URL") or "",
            prover_url=_get("ZKLOGIN_PROVER_URL") or "",
            network=_get("ZKLOGIN_NETWORK") or DEFAULT_NETWORK,
            fullnode_url=_get("ZKLOGIN_FULLNODE_URL"),
            redirect_uri=_get("ZKLOGIN_REDIRECT_URI") or DEFAULT_REDIRECT_URI,
            google_client_id=_get("ZKLOGIN_GOOGLE_CLIENT_ID"),
            twitch_client_id=_get("ZKLOGIN_TWITCH_CLIENT_ID"),
            facebook_client_id=_get("ZKLOGIN_FACEBOOK_CLIENT_ID"),
            max_epoch_window=int(
                _number("ZKLOGIN_MAX_EPOCH_WINDOW", DEFAULT_MAX_EPOCH_WINDOW, int)
            ),
            balance_poll_interval=_number(
                "ZKLOGIN_BALANCE_POLL_INTERVAL", DEFAULT_POLL_INTERVAL
            ),
            http_timeout=_number("ZKLOGIN_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
            storage_path=_get("ZKLOGIN_STORAGE_PATH") or ":memory:",
        )
