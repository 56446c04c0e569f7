"""
Session storage — key-value persistence for in-flight and completed logins.

SessionStorage mirrors the browser's sessionStorage API on top of SQLite:
    - ":memory:" (default): lives as long as the process, i.e. one session.
    - a file path: survives process restarts ("page reloads").

Two typed stores sit on top of it, each owning one key:
    - SetupStore   → "zklogin.setup"    (at most one pending SetupData)
    - AccountStore → "zklogin.accounts" (AccountData list, most recent first)

Invariants:
    - Records are JSON with camelCase keys, validated with jsonschema on read.
    - SetupStore has a single slot; save() overwrites.
    - AccountStore.userAddr is unique; add() re-checks under its lock.
    - clear() on SessionStorage wipes both keys (logout).
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema  # type: ignore[import-untyped]

from zklogin_session.errors import CorruptSessionDataError, DuplicateAccountError

SETUP_DATA_KEY = "zklogin.setup"
ACCOUNT_DATA_KEY = "zklogin.accounts"


_SCHEMA = """\
CREATE TABLE IF NOT EXISTS session_items (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class SessionStorage:
    """String key-value storage with sessionStorage semantics.

    Args:
        db_path: Path to SQLite database file, or ":memory:" for in-memory.

    Example:
        storage = SessionStorage()
        storage.set_item("k", "v")
        storage.get_item("k")   # "v"
        storage.clear()
    """

    def __init__(self, db_path: str | Path = ":memory:") -> None:
        self._db_path = str(db_path)
        self._is_memory = self._db_path == ":memory:"

        if self._is_memory:
            self._persistent_conn: sqlite3.Connection | None = sqlite3.connect(
                ":memory:", check_same_thread=False
            )
        else:
            self._persistent_conn = None

        self._init_schema()

    def _get_conn(self) -> sqlite3.Connection:
        if self._persistent_conn is not None:
            return self._persistent_conn

        conn = sqlite3.connect(self._db_path)
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for a database transaction."""
        conn = self._get_conn()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            if self._persistent_conn is None:
                conn.close()

    def _init_schema(self) -> None:
        with self._transaction() as conn:
            conn.executescript(_SCHEMA)

    def get_item(self, key: str) -> str | None:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT value FROM session_items WHERE key = ?", (key,)
            ).fetchone()
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO session_items (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )

    def remove_item(self, key: str) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM session_items WHERE key = ?", (key,))

    def clear(self) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM session_items")

    def keys(self) -> list[str]:
        with self._transaction() as conn:
            rows = conn.execute("SELECT key FROM session_items ORDER BY key").fetchall()
        return [row[0] for row in rows]

    def close(self) -> None:
        if self._persistent_conn is not None:
            self._persistent_conn.close()
            self._persistent_conn = None


# =========================================================================
# Records
# =========================================================================

_SETUP_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["provider", "maxEpoch", "randomness", "ephemeralPrivateKey"],
    "properties": {
        "provider": {"type": "string", "minLength": 1},
        "maxEpoch": {"type": "integer", "minimum": 0},
        "randomness": {"type": "string", "pattern": "^[0-9]+$"},
        "ephemeralPrivateKey": {"type": "string", "minLength": 1},
    },
}

_ACCOUNTS_SCHEMA: dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "required": [
            "provider",
            "userAddr",
            "zkProofs",
            "ephemeralPrivateKey",
            "userSalt",
            "sub",
            "aud",
            "maxEpoch",
        ],
        "properties": {
            "provider": {"type": "string", "minLength": 1},
            "userAddr": {"type": "string", "pattern": "^0x[0-9a-f]{64}$"},
            "zkProofs": {"type": "object"},
            "ephemeralPrivateKey": {"type": "string", "minLength": 1},
            "userSalt": {"type": "string", "pattern": "^[0-9]+$"},
            "sub": {"type": "string", "minLength": 1},
            "aud": {"type": "string", "minLength": 1},
            "maxEpoch": {"type": "integer", "minimum": 0},
        },
    },
}


@dataclass(frozen=True)
class SetupData:
    """Parameters of the one in-flight login, written before redirect."""

    provider: str
    max_epoch: int
    randomness: str
    ephemeral_private_key: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "maxEpoch": self.max_epoch,
            "randomness": self.randomness,
            "ephemeralPrivateKey": self.ephemeral_private_key,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SetupData:
        return cls(
            provider=data["provider"],
            max_epoch=data["maxEpoch"],
            randomness=data["randomness"],
            ephemeral_private_key=data["ephemeralPrivateKey"],
        )

    def __repr__(self) -> str:
        return (
            f"SetupData(provider={self.provider!r}, max_epoch={self.max_epoch})"
        )


@dataclass(frozen=True)
class AccountData:
    """A completed zkLogin account.

    ``zk_proofs`` is the proof service's response, kept verbatim; only
    the external signature composer interprets it.
    """

    provider: str
    user_addr: str
    zk_proofs: dict[str, Any]
    ephemeral_private_key: str
    user_salt: str
    sub: str
    aud: str
    max_epoch: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "userAddr": self.user_addr,
            "zkProofs": self.zk_proofs,
            "ephemeralPrivateKey": self.ephemeral_private_key,
            "userSalt": self.user_salt,
            "sub": self.sub,
            "aud": self.aud,
            "maxEpoch": self.max_epoch,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AccountData:
        return cls(
            provider=data["provider"],
            user_addr=data["userAddr"],
            zk_proofs=data["zkProofs"],
            ephemeral_private_key=data["ephemeralPrivateKey"],
            user_salt=data["userSalt"],
            sub=data["sub"],
            aud=data["aud"],
            max_epoch=data["maxEpoch"],
        )

    def __repr__(self) -> str:
        return (
            f"AccountData(provider={self.provider!r}, user_addr={self.user_addr!r}, "
            f"max_epoch={self.max_epoch})"
        )


def _load_json(storage: SessionStorage, key: str, schema: dict[str, Any]) -> Any:
    raw = storage.get_item(key)
    if raw is None:
        return None
    try:
        data = json.loads(raw)
        jsonschema.validate(instance=data, schema=schema)
    except (json.JSONDecodeError, jsonschema.ValidationError) as exc:
        raise CorruptSessionDataError(
            f"session storage key {key!r} holds invalid data",
            details={"key": key, "error": str(exc).splitlines()[0]},
        ) from exc
    return data


# =========================================================================
# Typed stores
# =========================================================================


class SetupStore:
    """Single-slot store for the pending login."""

    def __init__(self, storage: SessionStorage) -> None:
        self._storage = storage

    def save(self, data: SetupData) -> None:
        """Write the pending record, replacing any previous one."""
        self._storage.set_item(SETUP_DATA_KEY, json.dumps(data.to_dict()))

    def load(self) -> SetupData | None:
        data = _load_json(self._storage, SETUP_DATA_KEY, _SETUP_SCHEMA)
        return SetupData.from_dict(data) if data is not None else None

    def clear(self) -> None:
        self._storage.remove_item(SETUP_DATA_KEY)


class AccountStore:
    """Ordered store of completed logins, most recent first.

    Writers take ``_lock`` so a completion's append is never interleaved
    with another writer. Reads are plain synchronous calls and therefore
    atomic with respect to the event loop.
    """

    def __init__(self, storage: SessionStorage) -> None:
        self._storage = storage
        self._lock = asyncio.Lock()

    def load(self) -> list[AccountData]:
        data = _load_json(self._storage, ACCOUNT_DATA_KEY, _ACCOUNTS_SCHEMA)
        if data is None:
            return []
        return [AccountData.from_dict(item) for item in data]

    def get(self, user_addr: str) -> AccountData | None:
        for account in self.load():
            if account.user_addr == user_addr:
                return account
        return None

    def contains(self, user_addr: str) -> bool:
        return self.get(user_addr) is not None

    def __len__(self) -> int:
        return len(self.load())

    async def add(self, account: AccountData) -> None:
        """Prepend an account.

        Raises:
            DuplicateAccountError: If the address is already stored. The
                store is left unchanged.
        """
        async with self._lock:
            accounts = self.load()
            if any(a.user_addr == account.user_addr for a in accounts):
                raise DuplicateAccountError(
                    f"already logged in with this {account.provider} account",
                    details={"user_addr": account.user_addr},
                )
            self._write([account, *accounts])

    async def clear(self) -> None:
        async with self._lock:
            self._storage.remove_item(ACCOUNT_DATA_KEY)

    def _write(self, accounts: list[AccountData]) -> None:
        self._storage.set_item(
            ACCOUNT_DATA_KEY, json.dumps([a.to_dict() for a in accounts])
        )
