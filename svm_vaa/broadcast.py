"""
High-level VAA submission: resolve, post signatures, execute, close.

    resolve -> plan must use the signatures account -> post -> execute
                                                      \\-> close (always)

Closing is best-effort: a failed close is logged as a warning and the
execution result (value or original exception) is what the caller sees.
"""

from __future__ import annotations

import logging
from typing import Sequence

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature

from svm_vaa.addresses import (
    CORE_BRIDGE_PROGRAM_ID,
    VERIFY_VAA_SHIM_PROGRAM_ID,
    find_guardian_set_address,
)
from svm_vaa.config import MAX_RESOLVER_ITERATIONS
from svm_vaa.connection import LedgerConnection
from svm_vaa.errors import UnsupportedProgramError
from svm_vaa.execute import execute_instruction_groups
from svm_vaa.instructions import InstructionGroup
from svm_vaa.placeholders import Role, referenced_roles
from svm_vaa.resolve import resolve_execute_vaa_v1
from svm_vaa.signatures import posted_signatures
from svm_vaa.vaa import SignedVaa

logger = logging.getLogger(__name__)


def uses_signatures_account(groups: Sequence[InstructionGroup]) -> bool:
    """True if any instruction references the signatures-account placeholder."""
    return any(
        Role.SIGNATURES_ACCOUNT in referenced_roles(group.instructions) for group in groups
    )


def broadcast_vaa(
    connection: LedgerConnection,
    program_id: Pubkey,
    payer: Keypair,
    vaa: SignedVaa,
    *,
    core_bridge: Pubkey = CORE_BRIDGE_PROGRAM_ID,
    verify_vaa_shim: Pubkey = VERIFY_VAA_SHIM_PROGRAM_ID,
    max_iterations: int = MAX_RESOLVER_ITERATIONS,
) -> list[Signature]:
    """Submit a signed VAA to a resolver-enabled program.

    Args:
        connection: Ledger connection, exclusively owned for the call.
        program_id: Receiving program implementing the resolver interface.
        payer: Pays for and signs every transaction.
        vaa: The parsed signed VAA.
        core_bridge: Core bridge that owns the guardian set account.
        verify_vaa_shim: Shim that stores the posted signatures.
        max_iterations: Resolver round budget.

    Returns:
        Signatures of the executed transactions, in order.

    Raises:
        LedgerConnectionError: Ledger unreachable, or posting failed.
        ResolverProtocolError: Resolution failed.
        UnsupportedProgramError: The plan never uses the signatures account.
        ExecutionError: A resolved group failed.
    """
    guardian_set, _ = find_guardian_set_address(vaa.guardian_set_index, core_bridge)

    resolved = resolve_execute_vaa_v1(
        connection, program_id, payer, vaa.body, guardian_set, max_iterations
    )
    logger.info(
        "Resolved %d instruction group(s) in %d iteration(s)",
        len(resolved.groups), resolved.iterations,
    )

    if not uses_signatures_account(resolved.groups):
        raise UnsupportedProgramError(
            f"Program {program_id} does not verify through the Verify VAA Shim",
            details={"program_id": str(program_id)},
        )

    with posted_signatures(
        connection, payer, verify_vaa_shim, vaa.guardian_set_index, vaa.signatures
    ) as posted:
        logger.info("Posted %d signature(s) to %s", len(vaa.signatures), posted.pubkey)
        signatures = execute_instruction_groups(
            connection, resolved.groups, payer, posted.pubkey, guardian_set
        )

    for signature in signatures:
        logger.info("Confirmed %s", signature)
    return signatures
