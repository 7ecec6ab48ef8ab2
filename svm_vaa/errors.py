"""
Error taxonomy for VAA submission and the security harness.

Every error carries a stable machine-readable ``error_code`` and a
``details`` mapping for diagnostics, so callers can branch on type (or
code) instead of parsing message text.

Hierarchy:
    SubmitError
        LedgerConnectionError       ledger unreachable / transport failure
        TransactionFailedError      ledger processed the tx and rejected it
        ResolverProtocolError       no/garbled return data, budget exhausted
        ExecutionError              resolved tx failed to submit or confirm
            UnsupportedProgramError plan never routes through the shim
        InvalidVaaError             signed VAA bytes could not be parsed
        HarnessError
            VerificationFailedError the commit run itself failed
            SecurityFaultError      a negative probe unexpectedly succeeded
                VerificationBypassError
                EmitterChainBypassError
                EmitterAddressBypassError
                ReplayProtectionMissingError

Nothing in this package retries on any of these.
"""

from __future__ import annotations

from typing import Any


class SubmitError(Exception):
    """Base error for everything raised by svm_vaa."""

    default_code = "SUBMIT_ERROR"

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# ---------------------------------------------------------------------------
# Ledger-facing errors
# ---------------------------------------------------------------------------


class LedgerConnectionError(SubmitError):
    """The ledger could not be reached or returned a transport-level failure."""

    default_code = "CONNECTION"


class TransactionFailedError(SubmitError):
    """The ledger processed a transaction (or its simulation) and rejected it.

    ``details["logs"]`` holds program logs when the ledger returned them.
    """

    default_code = "TRANSACTION_FAILED"


class ResolverProtocolError(SubmitError):
    """The resolve negotiation produced no usable plan.

    ``details["accounts"]`` lists the accounts accumulated so far.
    """

    default_code = "RESOLVER_PROTOCOL"


class ExecutionError(SubmitError):
    """A resolved instruction group failed to submit or confirm.

    ``details["group_index"]`` is the failing group; ``details["confirmed"]``
    holds signatures of the groups that already landed.
    """

    default_code = "EXECUTION"


class UnsupportedProgramError(ExecutionError):
    """The resolved plan does not verify through the signatures account."""

    default_code = "UNSUPPORTED_PROGRAM"


class InvalidVaaError(SubmitError):
    default_code = "INVALID_VAA"


# ---------------------------------------------------------------------------
# Harness errors
# ---------------------------------------------------------------------------


class HarnessError(SubmitError):
    default_code = "HARNESS"


class VerificationFailedError(HarnessError):
    """The positive (commit) run rejected a correctly signed VAA."""

    default_code = "VERIFICATION_FAILED"


class SecurityFaultError(HarnessError):
    """A negative probe succeeded when the program should have rejected it."""

    default_code = "SECURITY_FAULT"


class VerificationBypassError(SecurityFaultError):
    default_code = "VERIFICATION_BYPASS"


class EmitterChainBypassError(SecurityFaultError):
    default_code = "EMITTER_CHAIN_BYPASS"


class EmitterAddressBypassError(SecurityFaultError):
    default_code = "EMITTER_ADDRESS_BYPASS"


class ReplayProtectionMissingError(SecurityFaultError):
    default_code = "REPLAY_PROTECTION_MISSING"
