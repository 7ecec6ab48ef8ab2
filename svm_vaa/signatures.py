"""
Guardian signatures lifecycle on the Wormhole Verify VAA Shim.

The shim verifies a VAA digest against signatures stored in a temporary
account. That account is posted right before use and closed right after
to reclaim its rent:

    post_signatures   one tx, signed by payer + the new account's keypair
    close_signatures  one tx, signed by payer; rent goes to the recipient
    posted_signatures context manager that always closes

Shim instruction data (Anchor-style 8-byte discriminators):
    post_signatures   disc | gsi (u32 LE) | total (u8) | count (u32 LE) | count x 66
    close_signatures  disc
    verify_hash       disc | guardian_set_bump (u8) | digest (32)
"""

from __future__ import annotations

import hashlib
import logging
import struct
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Sequence

from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.transaction import Transaction

from svm_vaa.addresses import VERIFY_VAA_SHIM_PROGRAM_ID
from svm_vaa.connection import LedgerConnection
from svm_vaa.errors import LedgerConnectionError, SubmitError
from svm_vaa.vaa import SIGNATURE_RECORD_LEN

logger = logging.getLogger(__name__)


def _anchor_discriminator(name: str) -> bytes:
    return hashlib.sha256(f"global:{name}".encode()).digest()[:8]


POST_SIGNATURES_DISCRIMINATOR = _anchor_discriminator("post_signatures")
CLOSE_SIGNATURES_DISCRIMINATOR = _anchor_discriminator("close_signatures")
VERIFY_HASH_DISCRIMINATOR = _anchor_discriminator("verify_hash")


@dataclass(frozen=True)
class PostedSignatures:
    """A posted signatures account.

    Attributes:
        keypair: The account's keypair (it co-signed its own creation).
        pubkey: The account address handed to verifying programs.
    """

    keypair: Keypair
    pubkey: Pubkey


# =========================================================================
# Instruction builders
# =========================================================================


def build_post_signatures_ix(
    payer: Pubkey,
    guardian_signatures: Pubkey,
    shim_program: Pubkey,
    guardian_set_index: int,
    signatures: Sequence[bytes],
) -> Instruction:
    for record in signatures:
        if len(record) != SIGNATURE_RECORD_LEN:
            raise ValueError(f"Signature records are {SIGNATURE_RECORD_LEN} bytes, got {len(record)}")
    data = (
        POST_SIGNATURES_DISCRIMINATOR
        + struct.pack("<IBI", guardian_set_index, len(signatures), len(signatures))
        + b"".join(signatures)
    )
    return Instruction(
        shim_program,
        data,
        [
            AccountMeta(payer, True, True),
            AccountMeta(guardian_signatures, True, True),
            AccountMeta(SYSTEM_PROGRAM_ID, False, False),
        ],
    )


def build_close_signatures_ix(
    shim_program: Pubkey,
    guardian_signatures: Pubkey,
    refund_recipient: Pubkey,
) -> Instruction:
    return Instruction(
        shim_program,
        CLOSE_SIGNATURES_DISCRIMINATOR,
        [
            AccountMeta(guardian_signatures, False, True),
            AccountMeta(refund_recipient, True, True),
        ],
    )


def build_verify_hash_ix(
    guardian_set: Pubkey,
    guardian_signatures: Pubkey,
    guardian_set_bump: int,
    digest: bytes,
    shim_program: Pubkey = VERIFY_VAA_SHIM_PROGRAM_ID,
) -> Instruction:
    """The CPI a receiving program makes to check a digest against posted signatures."""
    if len(digest) != 32:
        raise ValueError("digest must be 32 bytes")
    return Instruction(
        shim_program,
        VERIFY_HASH_DISCRIMINATOR + bytes([guardian_set_bump]) + digest,
        [
            AccountMeta(guardian_set, False, False),
            AccountMeta(guardian_signatures, False, False),
        ],
    )


# =========================================================================
# Lifecycle
# =========================================================================


def post_signatures(
    connection: LedgerConnection,
    payer: Keypair,
    shim_program: Pubkey,
    guardian_set_index: int,
    signatures: Sequence[bytes],
) -> PostedSignatures:
    """Create a signatures account holding ``signatures``.

    Raises:
        LedgerConnectionError: The transaction could not be sent or failed.
    """
    keypair = Keypair()
    ix = build_post_signatures_ix(
        payer.pubkey(), keypair.pubkey(), shim_program, guardian_set_index, signatures
    )
    _send(connection, ix, payer, [payer, keypair], "post_signatures")
    return PostedSignatures(keypair=keypair, pubkey=keypair.pubkey())


def close_signatures(
    connection: LedgerConnection,
    payer: Keypair,
    shim_program: Pubkey,
    signatures_address: Pubkey,
    refund_recipient: Pubkey | None = None,
) -> None:
    """Close a signatures account; rent goes to ``refund_recipient`` (default payer).

    The shim requires the refund recipient to sign, and this transaction
    is signed by the payer alone, so the recipient must be the payer.

    Raises:
        ValueError: ``refund_recipient`` is not the payer.
        LedgerConnectionError: The transaction could not be sent or failed.
    """
    recipient = refund_recipient or payer.pubkey()
    if recipient != payer.pubkey():
        raise ValueError("refund_recipient must be the payer; it has to sign the close")
    ix = build_close_signatures_ix(shim_program, signatures_address, recipient)
    _send(connection, ix, payer, [payer], "close_signatures")


def _send(
    connection: LedgerConnection,
    ix: Instruction,
    payer: Keypair,
    signers: list[Keypair],
    operation: str,
) -> None:
    try:
        blockhash = connection.get_latest_blockhash()
        tx = Transaction.new_signed_with_payer([ix], payer.pubkey(), signers, blockhash)
        connection.send_and_confirm(tx)
    except LedgerConnectionError:
        raise
    except SubmitError as e:
        raise LedgerConnectionError(
            f"{operation} failed: {e.message}",
            details={"operation": operation, **e.details},
        ) from e


@contextmanager
def posted_signatures(
    connection: LedgerConnection,
    payer: Keypair,
    shim_program: Pubkey,
    guardian_set_index: int,
    signatures: Sequence[bytes],
) -> Iterator[PostedSignatures]:
    """Post signatures for the duration of a ``with`` block.

    The account is closed on every exit path. A failed close is logged as
    a warning and never replaces the block's result or exception.
    """
    posted = post_signatures(connection, payer, shim_program, guardian_set_index, signatures)
    try:
        yield posted
    finally:
        try:
            close_signatures(connection, payer, shim_program, posted.pubkey)
        except SubmitError as e:
            logger.warning("Failed to close signatures account %s: %s", posted.pubkey, e)
