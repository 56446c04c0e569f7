"""
zkLogin error taxonomy.

Every failure the session protocol can surface is a ``ZkLoginError``
subclass carrying a machine-readable ``code`` and a ``details`` dict for
diagnostics. Callers that only care about the category can switch on
``exc.code``; callers that care about the stage catch the subclass.

Stage errors abort exactly one attempt. None of them is fatal to the
process, and none of them leaves a half-written account behind:

    - ChainUnavailableError: epoch query failed (begin_login).
    - InvalidTokenError: identity token missing claims or nonce mismatch.
    - MissingSetupError: no pending setup record at completion time.
    - SaltServiceError: salt service unreachable, non-2xx or bad shape.
    - ProofServiceError: proof service unreachable or non-2xx.
    - DuplicateAccountError: derived address already logged in.
    - SubmissionError: transaction could not be submitted or failed on chain.
    - MalformedKeyError: serialized ephemeral key is corrupt.

Details never contain secrets (private keys, JWTs, salts).
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Error categories for zkLogin session failures."""

    CHAIN_UNAVAILABLE = "CHAIN_UNAVAILABLE"
    CHAIN_RPC = "CHAIN_RPC"
    INVALID_TOKEN = "INVALID_TOKEN"
    MISSING_SETUP = "MISSING_SETUP"
    SALT_SERVICE = "SALT_SERVICE"
    PROOF_SERVICE = "PROOF_SERVICE"
    DUPLICATE_ACCOUNT = "DUPLICATE_ACCOUNT"
    SUBMISSION = "SUBMISSION"
    MALFORMED_KEY = "MALFORMED_KEY"
    CORRUPT_SESSION_DATA = "CORRUPT_SESSION_DATA"
    UNKNOWN = "UNKNOWN"


class ZkLoginError(Exception):
    """Base class for all zkLogin session errors.

    Args:
        message: Human-readable description.
        details: Optional structured diagnostics (URLs, status codes).
    """

    code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = details or {}

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"code": str(self.code), "message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class ChainUnavailableError(ZkLoginError):
    code = ErrorCode.CHAIN_UNAVAILABLE


class ChainRpcError(ZkLoginError):
    """The node answered with a JSON-RPC error object."""

    code = ErrorCode.CHAIN_RPC

    def __init__(
        self,
        message: str,
        *,
        rpc_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.rpc_code = rpc_code


class InvalidTokenError(ZkLoginError):
    code = ErrorCode.INVALID_TOKEN


class MissingSetupError(ZkLoginError):
    code = ErrorCode.MISSING_SETUP


class SaltServiceError(ZkLoginError):
    code = ErrorCode.SALT_SERVICE


class ProofServiceError(ZkLoginError):
    code = ErrorCode.PROOF_SERVICE


class DuplicateAccountError(ZkLoginError):
    code = ErrorCode.DUPLICATE_ACCOUNT


class SubmissionError(ZkLoginError):
    code = ErrorCode.SUBMISSION


class MalformedKeyError(ZkLoginError):
    code = ErrorCode.MALFORMED_KEY


class CorruptSessionDataError(ZkLoginError):
    code = ErrorCode.CORRUPT_SESSION_DATA
