"""
Tests for ZkLoginConfig.

Test plan:
- Defaults: devnet fullnode, localhost redirect, window 2, interval 5
- from_env: every variable read, blanks treated as unset
- Validation: missing URLs, bad numbers, unknown network, explicit
  fullnode URL skips the network table
- providers(): only the configured client ids
"""

import pytest

from zklogin_session.config import ZkLoginConfig
from zklogin_session.providers import GOOGLE, TWITCH

REQUIRED = {
    "ZKLOGIN_SALT_SERVICE_URL": "https://salt.example.com/get_salt",
    "ZKLOGIN_PROVER_URL": "https://prover.example.com/v1",
}


class TestDefaults:
    def test_defaults(self) -> None:
        config = ZkLoginConfig(salt_service_url="https://s", prover_url="https://p")
        assert config.network == "devnet"
        assert config.rpc_url == "https://fullnode.devnet.sui.io:443"
        assert config.redirect_uri == "http://localhost:3000"
        assert config.max_epoch_window == 2
        assert config.balance_poll_interval == 5.0
        assert config.storage_path == ":memory:"
        assert config.providers() == {}

    def test_explicit_fullnode_url(self) -> None:
        config = ZkLoginConfig(
            salt_service_url="https://s",
            prover_url="https://p",
            network="private",
            fullnode_url="http://10.0.0.5:9000",
        )
        assert config.rpc_url == "http://10.0.0.5:9000"


class TestFromEnv:
    def test_all_variables(self) -> None:
        config = ZkLoginConfig.from_env(
            {
                **REQUIRED,
                "ZKLOGIN_NETWORK": "testnet",
                "ZKLOGIN_REDIRECT_URI": "https://wallet.example.com",
                "ZKLOGIN_GOOGLE_CLIENT_ID": "g-id",
                "ZKLOGIN_TWITCH_CLIENT_ID": "t-id",
                "ZKLOGIN_MAX_EPOCH_WINDOW": "10",
                "ZKLOGIN_BALANCE_POLL_INTERVAL": "2.5",
                "ZKLOGIN_HTTP_TIMEOUT": "12",
                "ZKLOGIN_STORAGE_PATH": "/tmp/session.db",
            }
        )
        assert config.salt_service_url == REQUIRED["ZKLOGIN_SALT_SERVICE_URL"]
        assert config.prover_url == REQUIRED["ZKLOGIN_PROVER_URL"]
        assert config.rpc_url == "https://fullnode.testnet.sui.io:443"
        assert config.redirect_uri == "https://wallet.example.com"
        assert config.max_epoch_window == 10
        assert config.balance_poll_interval == 2.5
        assert config.http_timeout == 12.0
        assert config.storage_path == "/tmp/session.db"
        assert list(config.providers()) == [GOOGLE, TWITCH]

    def test_blank_values_use_defaults(self) -> None:
        config = ZkLoginConfig.from_env({**REQUIRED, "ZKLOGIN_NETWORK": "  ", "ZKLOGIN_GOOGLE_CLIENT_ID": ""})
        assert config.network == "devnet"
        assert config.google_client_id is None

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name, value in REQUIRED.items():
            monkeypatch.setenv(name, value)
        monkeypatch.setenv("ZKLOGIN_NETWORK", "mainnet")
        assert ZkLoginConfig.from_env().network == "mainnet"

    @pytest.mark.parametrize("missing", sorted(REQUIRED))
    def test_required(self, missing: str) -> None:
        env = {k: v for k, v in REQUIRED.items() if k != missing}
        with pytest.raises(ValueError, match="must be non-empty"):
            ZkLoginConfig.from_env(env)

    def test_bad_number(self) -> None:
        with pytest.raises(ValueError, match="ZKLOGIN_MAX_EPOCH_WINDOW"):
            ZkLoginConfig.from_env({**REQUIRED, "ZKLOGIN_MAX_EPOCH_WINDOW": "two"})


class TestValidation:
    def test_unknown_network(self) -> None:
        with pytest.raises(ValueError, match="unknown network"):
            ZkLoginConfig(salt_service_url="https://s", prover_url="https://p", network="moonnet")

    @pytest.mark.parametrize(
        "field, value",
        [("max_epoch_window", -1), ("balance_poll_interval", 0), ("http_timeout", -3.0)],
    )
    def test_out_of_range(self, field: str, value: float) -> None:
        with pytest.raises(ValueError, match=field):
            ZkLoginConfig(salt_service_url="https://s", prover_url="https://p", **{field: value})
