"""
VAA wire format.

Signed VAA:
    version (1) = 1 | guardian_set_index (u32 BE) | sig_count (1)
    | sig_count x 66-byte records | body

Signature record:
    guardian_index (1) | r (32) | s (32) | recovery_id (1)

Body (big-endian, fixed order):
    timestamp u32 | nonce u32 | emitter_chain u16 | emitter_address (32)
    | sequence u64 | consistency_level u8 | payload (rest)

digest = keccak256(keccak256(body)). Guardians sign the digest and the
Verify VAA Shim checks signatures against it.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Sequence

from eth_utils import keccak

from svm_vaa.errors import InvalidVaaError

VAA_VERSION = 1
SIGNATURE_RECORD_LEN = 66
HEADER_LEN = 6

BODY_EMITTER_CHAIN_OFFSET = 8
BODY_EMITTER_ADDRESS_OFFSET = 10
BODY_SEQUENCE_OFFSET = 42
BODY_CONSISTENCY_OFFSET = 50
BODY_PAYLOAD_OFFSET = 51

_BODY_HEADER = struct.Struct(">IIH32sQB")


def body_digest(body: bytes) -> bytes:
    return keccak(keccak(body))


@dataclass(frozen=True)
class VaaBody:
    """Decoded VAA body fields."""

    timestamp: int
    nonce: int
    emitter_chain: int
    emitter_address: bytes
    sequence: int
    consistency_level: int
    payload: bytes

    def encode(self) -> bytes:
        if len(self.emitter_address) != 32:
            raise ValueError("emitter_address must be 32 bytes")
        return (
            _BODY_HEADER.pack(
                self.timestamp,
                self.nonce,
                self.emitter_chain,
                self.emitter_address,
                self.sequence,
                self.consistency_level,
            )
            + self.payload
        )

    @classmethod
    def parse(cls, body: bytes) -> VaaBody:
        if len(body) < BODY_PAYLOAD_OFFSET:
            raise InvalidVaaError(
                f"VAA body too short: {len(body)} bytes, need at least {BODY_PAYLOAD_OFFSET}"
            )
        fields = _BODY_HEADER.unpack_from(body)
        return cls(*fields, payload=bytes(body[BODY_PAYLOAD_OFFSET:]))


@dataclass(frozen=True)
class SignedVaa:
    """A signed VAA split into header, signature records and body."""

    guardian_set_index: int
    signatures: tuple[bytes, ...]
    body: bytes
    version: int = VAA_VERSION

    @property
    def digest(self) -> bytes:
        return body_digest(self.body)

    def encode(self) -> bytes:
        return encode_signed_vaa(self.guardian_set_index, self.signatures, self.body)

    @classmethod
    def parse(cls, raw: bytes) -> SignedVaa:
        return parse_signed_vaa(raw)


def encode_signed_vaa(guardian_set_index: int, signatures: Sequence[bytes], body: bytes) -> bytes:
    if len(signatures) > 255:
        raise ValueError("A VAA carries at most 255 signatures")
    for record in signatures:
        if len(record) != SIGNATURE_RECORD_LEN:
            raise ValueError(f"Signature records are {SIGNATURE_RECORD_LEN} bytes, got {len(record)}")
    header = struct.pack(">BIB", VAA_VERSION, guardian_set_index, len(signatures))
    return header + b"".join(signatures) + body


def parse_signed_vaa(raw: bytes) -> SignedVaa:
    """Split a signed VAA into its parts.

    Raises:
        InvalidVaaError: Empty input, unsupported version, or truncated
            header/signatures.
    """
    if not raw:
        raise InvalidVaaError("empty VAA")
    if raw[0] != VAA_VERSION:
        raise InvalidVaaError(f"unsupported VAA version: {raw[0]}")
    if len(raw) < HEADER_LEN:
        raise InvalidVaaError("VAA too short to contain header")

    _, guardian_set_index, count = struct.unpack_from(">BIB", raw)
    body_offset = HEADER_LEN + count * SIGNATURE_RECORD_LEN
    if len(raw) < body_offset:
        raise InvalidVaaError(
            f"VAA truncated: expected at least {body_offset} bytes for "
            f"{count} signatures, got {len(raw)}",
            details={"signature_count": count, "length": len(raw)},
        )

    signatures = tuple(
        bytes(raw[start:start + SIGNATURE_RECORD_LEN])
        for start in range(HEADER_LEN, body_offset, SIGNATURE_RECORD_LEN)
    )
    return SignedVaa(
        guardian_set_index=guardian_set_index,
        signatures=signatures,
        body=bytes(raw[body_offset:]),
    )
