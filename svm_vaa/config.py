"""
Submission configuration.

Values come from keyword overrides first, then environment variables,
then defaults:

    SOLANA_RPC_URL               RPC endpoint (default: public devnet)
    CORE_BRIDGE_PROGRAM_ID       core bridge (default: detected from RPC URL)
    VERIFY_VAA_SHIM_PROGRAM_ID   verify VAA shim (default: mainnet id)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, Mapping

from solders.pubkey import Pubkey

from svm_vaa.addresses import VERIFY_VAA_SHIM_PROGRAM_ID, detect_core_bridge
from svm_vaa.rpc import RpcConnection
from svm_vaa.transport import HttpxTransport

DEFAULT_RPC_URL = "https://api.devnet.solana.com"
MAX_RESOLVER_ITERATIONS = 10


@dataclass(frozen=True)
class SubmitConfig:
    """Connection and protocol settings for one submission flow.

    Attributes:
        rpc_url: JSON-RPC endpoint of a Solana node.
        core_bridge: Core bridge program id. None means "detect from
            rpc_url" (see ``resolved_core_bridge``).
        verify_vaa_shim: Verify VAA shim program id.
        max_resolver_iterations: Round budget for the resolve negotiation.
        request_timeout: Per-request HTTP timeout in seconds.
        confirm_poll_interval: Seconds between signature status polls.
        confirm_max_polls: Status polls before confirmation gives up.
        commitment: Commitment level used for every RPC call.
    """

    rpc_url: str = DEFAULT_RPC_URL
    core_bridge: Pubkey | None = None
    verify_vaa_shim: Pubkey = VERIFY_VAA_SHIM_PROGRAM_ID
    max_resolver_iterations: int = MAX_RESOLVER_ITERATIONS
    request_timeout: float = 30.0
    confirm_poll_interval: float = 0.5
    confirm_max_polls: int = 120
    commitment: str = "confirmed"

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, **overrides: Any
    ) -> SubmitConfig:
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        if env.get("SOLANA_RPC_URL"):
            values["rpc_url"] = env["SOLANA_RPC_URL"]
        if env.get("CORE_BRIDGE_PROGRAM_ID"):
            values["core_bridge"] = Pubkey.from_string(env["CORE_BRIDGE_PROGRAM_ID"])
        if env.get("VERIFY_VAA_SHIM_PROGRAM_ID"):
            values["verify_vaa_shim"] = Pubkey.from_string(env["VERIFY_VAA_SHIM_PROGRAM_ID"])

        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown config fields: {sorted(unknown)}")
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def resolved_core_bridge(self) -> Pubkey | None:
        """The configured core bridge, or the one implied by rpc_url."""
        if self.core_bridge is not None:
            return self.core_bridge
        return detect_core_bridge(self.rpc_url)

    def build_connection(self) -> RpcConnection:
        """Create an RPC connection wired with an httpx transport."""
        return RpcConnection(
            self.rpc_url,
            HttpxTransport(timeout=self.request_timeout),
            commitment=self.commitment,
            poll_interval=self.confirm_poll_interval,
            max_polls=self.confirm_max_polls,
        )
