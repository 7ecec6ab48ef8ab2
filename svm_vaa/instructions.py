"""
Wire codec for the resolver protocol.

Resolve instruction data:
    RESOLVER_EXECUTE_VAA_V1 (8) | body_len (u32 LE) | body

Resolver return data is a borsh-encoded tagged union:
    0  Resolved(Vec<InstructionGroup>)
    1  Missing { accounts: Vec<Pubkey>, address_lookup_tables: Vec<Pubkey> }
    2  Account()                      -- not supported by this protocol version

    InstructionGroup { instructions: Vec<Ix>, address_lookup_tables: Vec<Pubkey> }
    Ix { program_id: Pubkey, accounts: Vec<Meta>, data: Vec<u8> }
    Meta { pubkey: Pubkey, is_signer: bool, is_writable: bool }

Vec lengths are u32 LE; bools are a single 0/1 byte. Unknown tags, bad
bools and truncation raise ValueError. Bytes after the encoded outcome are
ignored, as a borsh reader would.
"""

from __future__ import annotations

import hashlib
import logging
import struct
from dataclasses import dataclass
from typing import Sequence, Union

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

RESOLVER_EXECUTE_VAA_V1 = hashlib.sha256(b"executor-account-resolver:execute-vaa-v1").digest()[:8]

logger = logging.getLogger(__name__)

_TAG_RESOLVED = 0
_TAG_MISSING = 1
_TAG_ACCOUNT = 2


# =========================================================================
# Outcome types
# =========================================================================


@dataclass(frozen=True)
class InstructionGroup:
    """Instructions that must land together in one transaction."""

    instructions: tuple[Instruction, ...]
    address_lookup_tables: tuple[Pubkey, ...] = ()


@dataclass(frozen=True)
class MissingAccounts:
    """The program needs these accounts before it can produce a plan."""

    accounts: tuple[Pubkey, ...]
    address_lookup_tables: tuple[Pubkey, ...] = ()


@dataclass(frozen=True)
class Resolved:
    groups: tuple[InstructionGroup, ...]


@dataclass(frozen=True)
class UnsupportedAccount:
    """The ``Account()`` variant. Always treated as a protocol error."""


ResolverOutcome = Union[MissingAccounts, Resolved, UnsupportedAccount]


# =========================================================================
# Resolve instruction
# =========================================================================


def encode_resolve_data(vaa_body: bytes) -> bytes:
    return RESOLVER_EXECUTE_VAA_V1 + struct.pack("<I", len(vaa_body)) + vaa_body


def decode_resolve_data(data: bytes) -> bytes:
    """Extract the VAA body from resolve instruction data."""
    if len(data) < 12 or data[:8] != RESOLVER_EXECUTE_VAA_V1:
        raise ValueError("Not a resolve_execute_vaa_v1 instruction")
    (length,) = struct.unpack_from("<I", data, 8)
    if len(data) != 12 + length:
        raise ValueError("Resolve instruction body length mismatch")
    return data[12:]


def build_resolve_instruction(
    program_id: Pubkey,
    vaa_body: bytes,
    remaining_accounts: Sequence[Pubkey] = (),
) -> Instruction:
    """Build the resolve instruction; extra accounts are read-only, non-signer."""
    accounts = [AccountMeta(pubkey, False, False) for pubkey in remaining_accounts]
    return Instruction(program_id, encode_resolve_data(vaa_body), accounts)


# =========================================================================
# Return data decoding (pure functions, no I/O)
# =========================================================================


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def take(self, n: int) -> bytes:
        end = self._pos + n
        if end > len(self._data):
            raise ValueError(
                f"Truncated resolver data: need {n} bytes at offset {self._pos}, "
                f"have {len(self._data) - self._pos}"
            )
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def u8(self) -> int:
        return self.take(1)[0]

    def u32(self) -> int:
        (value,) = struct.unpack("<I", self.take(4))
        return value

    def flag(self) -> bool:
        value = self.u8()
        if value not in (0, 1):
            raise ValueError(f"Invalid bool byte: {value}")
        return value == 1

    def pubkey(self) -> Pubkey:
        return Pubkey(self.take(32))

    def pubkeys(self) -> tuple[Pubkey, ...]:
        return tuple(self.pubkey() for _ in range(self.u32()))

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos


def _read_instruction(reader: _Reader) -> Instruction:
    program_id = reader.pubkey()
    accounts = [
        AccountMeta(reader.pubkey(), reader.flag(), reader.flag())
        for _ in range(reader.u32())
    ]
    data = reader.take(reader.u32())
    return Instruction(program_id, data, accounts)


def _read_group(reader: _Reader) -> InstructionGroup:
    instructions = tuple(_read_instruction(reader) for _ in range(reader.u32()))
    return InstructionGroup(instructions, reader.pubkeys())


def decode_resolver_outcome(data: bytes) -> ResolverOutcome:
    """Decode resolver return data.

    Raises:
        ValueError: On any malformed input.
    """
    reader = _Reader(data)
    tag = reader.u8()
    outcome: ResolverOutcome
    if tag == _TAG_RESOLVED:
        outcome = Resolved(tuple(_read_group(reader) for _ in range(reader.u32())))
    elif tag == _TAG_MISSING:
        accounts = reader.pubkeys()
        outcome = MissingAccounts(accounts, reader.pubkeys())
    elif tag == _TAG_ACCOUNT:
        outcome = UnsupportedAccount()
    else:
        raise ValueError(f"Unknown resolver outcome tag: {tag}")
    if reader.remaining:
        logger.debug("Ignoring %d trailing byte(s) in resolver data", reader.remaining)
    return outcome


# =========================================================================
# Return data encoding (used by resolver programs and tests)
# =========================================================================


def _pubkeys(keys: Sequence[Pubkey]) -> bytes:
    return struct.pack("<I", len(keys)) + b"".join(bytes(k) for k in keys)


def _encode_instruction(ix: Instruction) -> bytes:
    out = bytearray(bytes(ix.program_id))
    out += struct.pack("<I", len(ix.accounts))
    for meta in ix.accounts:
        out += bytes(meta.pubkey) + bytes([int(meta.is_signer), int(meta.is_writable)])
    data = bytes(ix.data)
    out += struct.pack("<I", len(data)) + data
    return bytes(out)


def encode_resolver_outcome(outcome: ResolverOutcome) -> bytes:
    if isinstance(outcome, Resolved):
        out = bytearray([_TAG_RESOLVED])
        out += struct.pack("<I", len(outcome.groups))
        for group in outcome.groups:
            out += struct.pack("<I", len(group.instructions))
            for ix in group.instructions:
                out += _encode_instruction(ix)
            out += _pubkeys(group.address_lookup_tables)
        return bytes(out)
    if isinstance(outcome, MissingAccounts):
        return (
            bytes([_TAG_MISSING])
            + _pubkeys(outcome.accounts)
            + _pubkeys(outcome.address_lookup_tables)
        )
    if isinstance(outcome, UnsupportedAccount):
        return bytes([_TAG_ACCOUNT])
    raise TypeError(f"Not a resolver outcome: {outcome!r}")
