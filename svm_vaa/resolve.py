"""
Resolver protocol: discover which accounts a program needs to execute a VAA.

Each round simulates ``resolve_execute_vaa_v1`` with the accounts collected
so far and reads the program's return data:

    Missing(accounts)  -> substitute payer/guardian-set placeholders,
                          append as read-only inputs, go again
    Resolved(groups)   -> done
    Account()          -> protocol error (not supported)

Nothing here is ever confirmed on-ledger; every round is a simulation.
The round budget is the only bound; there is no backoff.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from svm_vaa.config import MAX_RESOLVER_ITERATIONS
from svm_vaa.connection import LedgerConnection
from svm_vaa.errors import ResolverProtocolError, TransactionFailedError
from svm_vaa.instructions import (
    InstructionGroup,
    MissingAccounts,
    Resolved,
    UnsupportedAccount,
    build_resolve_instruction,
    decode_resolver_outcome,
)
from svm_vaa.placeholders import Role, substitute

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolveResult:
    """A resolved execution plan.

    Attributes:
        groups: Instruction groups in submission order. They may still
            contain execution-time placeholders.
        iterations: Simulation rounds it took to resolve.
    """

    groups: tuple[InstructionGroup, ...]
    iterations: int


def resolve_execute_vaa_v1(
    connection: LedgerConnection,
    program_id: Pubkey,
    payer: Keypair,
    vaa_body: bytes,
    guardian_set: Pubkey,
    max_iterations: int = MAX_RESOLVER_ITERATIONS,
) -> ResolveResult:
    """Run the resolve negotiation against ``program_id``.

    Args:
        connection: Ledger to simulate against.
        program_id: Program implementing the resolver interface.
        payer: Fee payer for the simulated transactions.
        vaa_body: VAA body bytes (no header, no signatures).
        guardian_set: Guardian set account substituted for its placeholder.
        max_iterations: Round budget.

    Raises:
        LedgerConnectionError: The ledger could not be reached.
        ResolverProtocolError: No, garbled or unsupported return data, a
            failed simulation, or the budget ran out.
    """
    bindings = {Role.PAYER: payer.pubkey(), Role.GUARDIAN_SET: guardian_set}
    remaining_accounts: list[Pubkey] = []

    for iteration in range(1, max_iterations + 1):
        ix = build_resolve_instruction(program_id, vaa_body, remaining_accounts)
        blockhash = connection.get_latest_blockhash()
        tx = Transaction.new_signed_with_payer([ix], payer.pubkey(), [payer], blockhash)

        try:
            return_data = connection.simulate_return_data(tx)
        except TransactionFailedError as e:
            raise ResolverProtocolError(
                f"Resolver simulation failed: {e.message}",
                details=_diagnostics(remaining_accounts, iteration, logs=e.details.get("logs")),
            ) from e

        if return_data is None:
            raise ResolverProtocolError(
                "Resolver returned no data",
                details=_diagnostics(remaining_accounts, iteration),
            )

        try:
            outcome = decode_resolver_outcome(return_data)
        except ValueError as e:
            raise ResolverProtocolError(
                f"Failed to decode resolver return data: {e}",
                details=_diagnostics(remaining_accounts, iteration),
            ) from e

        if isinstance(outcome, Resolved):
            logger.debug(
                "Resolved %s after %d round(s): %d group(s)",
                program_id, iteration, len(outcome.groups),
            )
            return ResolveResult(groups=outcome.groups, iterations=iteration)

        if isinstance(outcome, UnsupportedAccount):
            raise ResolverProtocolError(
                "Resolver returned the unsupported Account variant",
                details=_diagnostics(remaining_accounts, iteration),
            )

        if not isinstance(outcome, MissingAccounts):
            raise ResolverProtocolError(
                f"Unexpected resolver outcome: {type(outcome).__name__}",
                details=_diagnostics(remaining_accounts, iteration),
            )
        added = [substitute(address, bindings) for address in outcome.accounts]
        logger.debug("Round %d: resolver asked for %d account(s)", iteration, len(added))
        remaining_accounts.extend(added)

    raise ResolverProtocolError(
        f"Resolver did not resolve after {max_iterations} iterations",
        details=_diagnostics(remaining_accounts, max_iterations),
    )


def _diagnostics(
    accounts: list[Pubkey], iteration: int, logs: list[str] | None = None
) -> dict[str, object]:
    details: dict[str, object] = {
        "accounts": [str(a) for a in accounts],
        "iteration": iteration,
    }
    if logs:
        details["logs"] = logs
    return details
