"""
Tests for SubmitConfig and the cluster/address helpers it relies on.

Test plan:
- Defaults when the environment is empty
- Environment variables override defaults, keyword overrides win over both,
  None overrides are ignored, unknown fields rejected
- Core bridge detection from the RPC URL (mainnet, devnet, neither), an
  explicit core bridge always wins
- build_connection wires URL, commitment and an httpx transport
- PDA derivations match find_program_address with the documented seeds
"""

import pytest
from solders.pubkey import Pubkey

from svm_vaa.addresses import (
    CORE_BRIDGE_PROGRAM_ID,
    DEVNET_CORE_BRIDGE_PROGRAM_ID,
    VERIFY_VAA_SHIM_PROGRAM_ID,
    detect_core_bridge,
    find_guardian_set_address,
)
from svm_vaa.config import DEFAULT_RPC_URL, MAX_RESOLVER_ITERATIONS, SubmitConfig
from svm_vaa.rpc import RpcConnection
from svm_vaa.transport import HttpxTransport


class TestFromEnv:
    def test_defaults(self) -> None:
        config = SubmitConfig.from_env({})
        assert config.rpc_url == DEFAULT_RPC_URL
        assert config.core_bridge is None
        assert config.verify_vaa_shim == VERIFY_VAA_SHIM_PROGRAM_ID
        assert config.max_resolver_iterations == MAX_RESOLVER_ITERATIONS == 10
        assert config.commitment == "confirmed"

    def test_environment(self) -> None:
        bridge, shim = Pubkey.new_unique(), Pubkey.new_unique()
        config = SubmitConfig.from_env(
            {
                "SOLANA_RPC_URL": "http://localhost:8899",
                "CORE_BRIDGE_PROGRAM_ID": str(bridge),
                "VERIFY_VAA_SHIM_PROGRAM_ID": str(shim),
            }
        )
        assert config.rpc_url == "http://localhost:8899"
        assert config.core_bridge == bridge
        assert config.verify_vaa_shim == shim

    def test_empty_values_ignored(self) -> None:
        config = SubmitConfig.from_env({"SOLANA_RPC_URL": "", "CORE_BRIDGE_PROGRAM_ID": ""})
        assert config.rpc_url == DEFAULT_RPC_URL
        assert config.core_bridge is None

    def test_overrides_win(self) -> None:
        config = SubmitConfig.from_env(
            {"SOLANA_RPC_URL": "http://env:8899"},
            rpc_url="http://flag:8899",
            commitment="finalized",
        )
        assert config.rpc_url == "http://flag:8899"
        assert config.commitment == "finalized"

    def test_none_override_ignored(self) -> None:
        config = SubmitConfig.from_env({"SOLANA_RPC_URL": "http://env:8899"}, rpc_url=None)
        assert config.rpc_url == "http://env:8899"

    def test_unknown_field(self) -> None:
        with pytest.raises(TypeError, match="rpc_uri"):
            SubmitConfig.from_env({}, rpc_uri="http://x")

    def test_invalid_pubkey_in_environment(self) -> None:
        with pytest.raises(ValueError):
            SubmitConfig.from_env({"CORE_BRIDGE_PROGRAM_ID": "not-a-key"})


class TestCoreBridge:
    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://api.mainnet-beta.solana.com", CORE_BRIDGE_PROGRAM_ID),
            ("https://API.DEVNET.solana.com", DEVNET_CORE_BRIDGE_PROGRAM_ID),
            ("http://localhost:8899", None),
            ("https://api.testnet.solana.com", None),
        ],
    )
    def test_detect(self, url: str, expected) -> None:
        assert detect_core_bridge(url) == expected

    def test_default_config_detects_devnet(self) -> None:
        assert SubmitConfig().resolved_core_bridge() == DEVNET_CORE_BRIDGE_PROGRAM_ID

    def test_explicit_wins(self) -> None:
        bridge = Pubkey.new_unique()
        config = SubmitConfig(rpc_url="https://api.mainnet-beta.solana.com", core_bridge=bridge)
        assert config.resolved_core_bridge() == bridge

    def test_undetectable(self) -> None:
        assert SubmitConfig(rpc_url="http://localhost:8899").resolved_core_bridge() is None


class TestBuildConnection:
    def test_wires_settings(self) -> None:
        config = SubmitConfig(
            rpc_url="http://localhost:8899",
            request_timeout=5.0,
            confirm_poll_interval=0.1,
            confirm_max_polls=7,
            commitment="processed",
        )

        with config.build_connection() as connection:
            assert isinstance(connection, RpcConnection)
            assert connection.url == "http://localhost:8899"
            assert connection._commitment == "processed"
            assert connection._max_polls == 7
            assert isinstance(connection._transport, HttpxTransport)
            assert connection._transport._timeout == 5.0


class TestAddresses:
    def test_guardian_set_index_big_endian(self) -> None:
        expected = Pubkey.find_program_address([b"GuardianSet", b"\x00\x00\x00\x05"], CORE_BRIDGE_PROGRAM_ID)
        assert find_guardian_set_address(5) == expected

    def test_guardian_set_depends_on_core_bridge(self) -> None:
        assert find_guardian_set_address(0) != find_guardian_set_address(0, DEVNET_CORE_BRIDGE_PROGRAM_ID)
