"""
Execution engine: turn resolved instruction groups into confirmed transactions.

One transaction per group, strictly in order. Generated-signer placeholders
get one fresh keypair each for the whole plan, so a slot used in two groups
resolves to the same address in both. Each group is signed by the payer
plus only the generated keypairs that group references.

A failing group aborts the rest. Groups already confirmed stay confirmed.
"""

from __future__ import annotations

import logging
from typing import Sequence

from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from svm_vaa.connection import LedgerConnection
from svm_vaa.errors import ExecutionError, SubmitError
from svm_vaa.instructions import InstructionGroup
from svm_vaa.placeholders import Role, referenced_roles, substitute_instruction

logger = logging.getLogger(__name__)


def generate_signers(groups: Sequence[InstructionGroup]) -> dict[Role, Keypair]:
    """One fresh keypair per generated-signer slot referenced anywhere."""
    roles = set()
    for group in groups:
        roles |= referenced_roles(group.instructions)
    return {role: Keypair() for role in roles if role.signer_slot is not None}


def execute_instruction_groups(
    connection: LedgerConnection,
    groups: Sequence[InstructionGroup],
    payer: Keypair,
    signatures_account: Pubkey,
    guardian_set: Pubkey,
) -> list[Signature]:
    """Submit each group as one transaction and wait for confirmation.

    Returns:
        Transaction signatures in group order.

    Raises:
        ExecutionError: A group could not be built, signed, submitted or
            confirmed. The cause is chained.
    """
    generated = generate_signers(groups)
    bindings = {
        Role.PAYER: payer.pubkey(),
        Role.SIGNATURES_ACCOUNT: signatures_account,
        Role.GUARDIAN_SET: guardian_set,
        **{role: keypair.pubkey() for role, keypair in generated.items()},
    }

    confirmed: list[Signature] = []
    for index, group in enumerate(groups):
        instructions = [substitute_instruction(ix, bindings) for ix in group.instructions]
        signers = _group_signers(instructions, payer, generated, index, confirmed)

        try:
            blockhash = connection.get_latest_blockhash()
            tx = Transaction.new_signed_with_payer(
                instructions, payer.pubkey(), signers, blockhash
            )
            signature = connection.send_and_confirm(tx)
        except SubmitError as e:
            raise ExecutionError(
                f"Instruction group {index} failed: {e}",
                details={
                    "group_index": index,
                    "confirmed": [str(s) for s in confirmed],
                },
            ) from e

        logger.debug("Group %d/%d confirmed: %s", index + 1, len(groups), signature)
        confirmed.append(signature)

    return confirmed


def _group_signers(
    instructions: Sequence[Instruction],
    payer: Keypair,
    generated: dict[Role, Keypair],
    index: int,
    confirmed: Sequence[Signature],
) -> list[Keypair]:
    """Payer plus the generated keypairs this group needs as signers.

    A generated address that appears only as a non-signer account cannot
    co-sign, so it is left out.
    """
    required = {payer.pubkey()}
    for ix in instructions:
        required.update(meta.pubkey for meta in ix.accounts if meta.is_signer)

    signers = [payer]
    for role in sorted(generated, key=lambda r: r.signer_slot or 0):
        keypair = generated[role]
        if keypair.pubkey() in required:
            signers.append(keypair)

    missing = required - {s.pubkey() for s in signers}
    if missing:
        raise ExecutionError(
            f"Instruction group {index} requires signatures the engine cannot provide",
            details={
                "group_index": index,
                "confirmed": [str(s) for s in confirmed],
                "missing_signers": sorted(str(m) for m in missing),
            },
        )
    return signers
