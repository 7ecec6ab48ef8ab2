"""
Wormhole on a sandbox: program registration, fixture accounts, and a
LedgerConnection adapter so the submit flow runs unchanged in tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from solders.account import Account
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction

from svm_vaa import signatures as shim
from svm_vaa.addresses import (
    CORE_BRIDGE_PROGRAM_ID,
    POST_MESSAGE_SHIM_PROGRAM_ID,
    VERIFY_VAA_SHIM_PROGRAM_ID,
    find_core_bridge_config_address,
    find_fee_collector_address,
    find_guardian_set_address,
)
from svm_vaa.errors import TransactionFailedError
from svm_vaa.testing.guardians import TestGuardianSet
from svm_vaa.testing.programs import (
    BridgeConfigAccount,
    CoreBridgeProgram,
    GuardianSetAccount,
    PostMessageShimProgram,
    VerifyVaaShimProgram,
)
from svm_vaa.testing.sandbox import Sandbox, TransactionError, TransactionMeta

logger = logging.getLogger(__name__)

DEFAULT_BRIDGE_FEE = 10
GUARDIAN_SET_EXPIRATION_TIME = 86400


# ---------------------------------------------------------------------------
# LedgerConnection adapter
# ---------------------------------------------------------------------------


class SandboxConnection:
    """LedgerConnection backed by a Sandbox.

    Rejected transactions surface as TransactionFailedError carrying the
    sandbox logs, like RpcConnection does for a real cluster.
    """

    def __init__(self, sandbox: Sandbox) -> None:
        self.sandbox = sandbox

    def get_latest_blockhash(self) -> Hash:
        return self.sandbox.latest_blockhash()

    def simulate_return_data(self, tx: Transaction) -> bytes | None:
        try:
            meta = self.sandbox.simulate_transaction(tx)
        except TransactionError as e:
            raise _failed("Simulation failed", e) from e
        return meta.return_data or None

    def send_and_confirm(self, tx: Transaction) -> Signature:
        try:
            meta = self.sandbox.send_transaction(tx)
        except TransactionError as e:
            raise _failed("Transaction failed", e) from e
        return meta.signature

    def get_account(self, pubkey: Pubkey) -> Account | None:
        return self.sandbox.get_account(pubkey)


def _failed(prefix: str, error: TransactionError) -> TransactionFailedError:
    return TransactionFailedError(f"{prefix}: {error}", details={"logs": list(error.logs)})


# ---------------------------------------------------------------------------
# Fixture accounts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WormholeAccounts:
    guardian_set: Pubkey
    guardian_set_bump: int


def build_guardian_set_data(guardians: TestGuardianSet, index: int) -> bytes:
    """Guardian set account data; creation and expiration are 0 (never expires)."""
    return GuardianSetAccount(index, tuple(guardians.eth_addresses())).encode()


def create_guardian_set_account(
    sandbox: Sandbox,
    guardians: TestGuardianSet,
    index: int,
    core_bridge: Pubkey = CORE_BRIDGE_PROGRAM_ID,
) -> tuple[Pubkey, int]:
    address, bump = find_guardian_set_address(index, core_bridge)
    sandbox.set_account(address, data=build_guardian_set_data(guardians, index), owner=core_bridge)
    return address, bump


def create_bridge_config(
    sandbox: Sandbox, guardian_set_index: int, core_bridge: Pubkey = CORE_BRIDGE_PROGRAM_ID
) -> None:
    """Bridge config whose last_lamports matches a fresh fee collector."""
    config = BridgeConfigAccount(
        guardian_set_index=guardian_set_index,
        last_lamports=sandbox.minimum_balance(0),
        guardian_set_expiration_time=GUARDIAN_SET_EXPIRATION_TIME,
        fee=DEFAULT_BRIDGE_FEE,
    )
    address, _ = find_core_bridge_config_address(core_bridge)
    sandbox.set_account(address, data=config.encode(), owner=core_bridge)


def create_fee_collector(sandbox: Sandbox, core_bridge: Pubkey = CORE_BRIDGE_PROGRAM_ID) -> None:
    address, _ = find_fee_collector_address(core_bridge)
    sandbox.set_account(address, data=b"", owner=SYSTEM_PROGRAM_ID)


def build_bridge_fee_ix(
    payer: Pubkey, core_bridge: Pubkey = CORE_BRIDGE_PROGRAM_ID
) -> Instruction:
    """Transfer paying the bridge fee.

    The post message shim does not pay the fee itself; put this before the
    message-posting instruction in the same transaction.
    """
    fee_collector, _ = find_fee_collector_address(core_bridge)
    return transfer(
        TransferParams(from_pubkey=payer, to_pubkey=fee_collector, lamports=DEFAULT_BRIDGE_FEE)
    )


def setup_wormhole(
    sandbox: Sandbox,
    guardians: TestGuardianSet,
    guardian_set_index: int,
    core_bridge: Pubkey = CORE_BRIDGE_PROGRAM_ID,
) -> WormholeAccounts:
    """Register the Wormhole programs and create the accounts they expect.

    Creates the guardian set, the bridge config and the fee collector.
    """
    sandbox.add_program(core_bridge, CoreBridgeProgram())
    sandbox.add_program(VERIFY_VAA_SHIM_PROGRAM_ID, VerifyVaaShimProgram(core_bridge))
    sandbox.add_program(POST_MESSAGE_SHIM_PROGRAM_ID, PostMessageShimProgram(core_bridge))

    guardian_set, bump = create_guardian_set_account(
        sandbox, guardians, guardian_set_index, core_bridge
    )
    create_bridge_config(sandbox, guardian_set_index, core_bridge)
    create_fee_collector(sandbox, core_bridge)
    logger.debug("Wormhole ready: guardian set %s (bump %d)", guardian_set, bump)
    return WormholeAccounts(guardian_set=guardian_set, guardian_set_bump=bump)


# ---------------------------------------------------------------------------
# Signatures on the sandbox
# ---------------------------------------------------------------------------


def post_signatures(
    sandbox: Sandbox,
    payer: Keypair,
    guardian_set_index: int,
    signatures: Sequence[bytes],
) -> shim.PostedSignatures:
    return shim.post_signatures(
        SandboxConnection(sandbox), payer, VERIFY_VAA_SHIM_PROGRAM_ID, guardian_set_index, signatures
    )


def close_signatures(
    sandbox: Sandbox,
    payer: Keypair,
    signatures_address: Pubkey,
    refund_recipient: Pubkey | None = None,
) -> None:
    shim.close_signatures(
        SandboxConnection(sandbox),
        payer,
        VERIFY_VAA_SHIM_PROGRAM_ID,
        signatures_address,
        refund_recipient,
    )


def send(
    sandbox: Sandbox,
    instructions: Sequence[Instruction],
    payer: Keypair,
    *extra_signers: Keypair,
) -> TransactionMeta:
    """Sign with the payer (plus ``extra_signers``) and send."""
    tx = Transaction.new_signed_with_payer(
        list(instructions), payer.pubkey(), [payer, *extra_signers], sandbox.latest_blockhash()
    )
    return sandbox.send_transaction(tx)
