"""
zkLogin session protocol for Sui.

Public API:

    Session facade:
        - ``ZkLoginSession`` — wires everything from a ``ZkLoginConfig``.
        - ``ZkLoginConfig`` — settings, optionally from ``ZKLOGIN_*`` env vars.

    Handshake:
        - ``LoginInitiator.begin_login()`` — epoch query, ephemeral key,
          nonce, pending setup, provider redirect URL.
        - ``LoginCompleter.complete_login()`` — token, salt, address,
          proof, stored account.
        - ``PageLocation`` — in-memory ``Location`` for redirect URLs.

    Signing and balances:
        - ``TransactionSigner.send()`` — ephemeral signature wrapped in a
          zkLogin signature, submitted to the chain.
        - ``PaySuiBuilder`` — SUI transfer transaction builder.
        - ``BalancePoller`` — periodic balance snapshot.

    Storage:
        - ``SessionStorage`` — sessionStorage-like key-value store.
        - ``SetupStore``, ``AccountStore`` — typed stores on top of it.
        - ``SetupData``, ``AccountData`` — stored records.

    Protocols (for dependency injection):
        - ``ChainClient`` — network boundary (epoch, balance, execute).
        - ``ZkLoginPrimitives`` — external zkLogin cryptography.
        - ``JsonTransport`` — HTTP boundary.

    Errors:
        - ``ZkLoginError`` and one subclass per failing stage.
"""

from zklogin_session.chain import ChainClient, Coin, ExecutionResult, mist_to_sui
from zklogin_session.config import ZkLoginConfig
from zklogin_session.errors import (
    ChainRpcError,
    ChainUnavailableError,
    CorruptSessionDataError,
    DuplicateAccountError,
    ErrorCode,
    InvalidTokenError,
    MalformedKeyError,
    MissingSetupError,
    ProofServiceError,
    SaltServiceError,
    SubmissionError,
    ZkLoginError,
)
from zklogin_session.jsonrpc_client import SuiJsonRpcClient, get_fullnode_url
from zklogin_session.keys import EphemeralKeyPair, SignedTransaction
from zklogin_session.login import Location, LoginCompleter, LoginInitiator, PageLocation
from zklogin_session.poller import BalancePoller
from zklogin_session.primitives import (
    ZkLoginPrimitives,
    compute_zklogin_address,
    jwt_to_address,
)
from zklogin_session.providers import OpenIdProvider, default_providers
from zklogin_session.services import ProofService, SaltService
from zklogin_session.session import ZkLoginSession
from zklogin_session.signer import PaySuiBuilder, TransactionBuilder, TransactionSigner
from zklogin_session.storage import (
    AccountData,
    AccountStore,
    SessionStorage,
    SetupData,
    SetupStore,
)
from zklogin_session.transport import HttpxTransport, JsonTransport

__all__ = [
    "AccountData",
    "AccountStore",
    "BalancePoller",
    "ChainClient",
    "ChainRpcError",
    "ChainUnavailableError",
    "Coin",
    "CorruptSessionDataError",
    "DuplicateAccountError",
    "EphemeralKeyPair",
    "ErrorCode",
    "ExecutionResult",
    "HttpxTransport",
    "InvalidTokenError",
    "JsonTransport",
    "Location",
    "LoginCompleter",
    "LoginInitiator",
    "MalformedKeyError",
    "MissingSetupError",
    "OpenIdProvider",
    "PageLocation",
    "PaySuiBuilder",
    "ProofService",
    "ProofServiceError",
    "SaltService",
    "SaltServiceError",
    "SessionStorage",
    "SetupData",
    "SetupStore",
    "SignedTransaction",
    "SubmissionError",
    "SuiJsonRpcClient",
    "TransactionBuilder",
    "TransactionSigner",
    "ZkLoginConfig",
    "ZkLoginError",
    "ZkLoginPrimitives",
    "ZkLoginSession",
    "compute_zklogin_address",
    "default_providers",
    "get_fullnode_url",
    "jwt_to_address",
    "mist_to_sui",
]
