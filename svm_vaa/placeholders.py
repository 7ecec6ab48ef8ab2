"""
Placeholder addresses used by the resolver protocol.

A resolver program cannot know the payer, the posted-signatures account,
the guardian set or any freshly generated signer ahead of time, so it
names them by *role* using reserved addresses. Each role maps to exactly
one address and back again; the table below is injective.

Substitution points:
    - resolve time: PAYER and GUARDIAN_SET
    - execution time: every role
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Mapping

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

GENERATED_SIGNER_SLOTS = 10


class Role(Enum):
    PAYER = "payer"
    SIGNATURES_ACCOUNT = "signatures_account"
    GUARDIAN_SET = "guardian_set"
    GENERATED_SIGNER_0 = "generated_signer_0"
    GENERATED_SIGNER_1 = "generated_signer_1"
    GENERATED_SIGNER_2 = "generated_signer_2"
    GENERATED_SIGNER_3 = "generated_signer_3"
    GENERATED_SIGNER_4 = "generated_signer_4"
    GENERATED_SIGNER_5 = "generated_signer_5"
    GENERATED_SIGNER_6 = "generated_signer_6"
    GENERATED_SIGNER_7 = "generated_signer_7"
    GENERATED_SIGNER_8 = "generated_signer_8"
    GENERATED_SIGNER_9 = "generated_signer_9"

    @classmethod
    def generated_signer(cls, slot: int) -> Role:
        if not 0 <= slot < GENERATED_SIGNER_SLOTS:
            raise ValueError(f"Generated signer slot out of range: {slot}")
        return cls[f"GENERATED_SIGNER_{slot}"]

    @property
    def signer_slot(self) -> int | None:
        """Slot number for generated-signer roles, None for the others."""
        if self.name.startswith("GENERATED_SIGNER_"):
            return int(self.name.rsplit("_", 1)[1])
        return None

    @property
    def address(self) -> Pubkey:
        return _ADDRESSES[self]


# Shared with on-chain resolver programs: a readable base58 tag padded with
# "1" (zero digits) to 43 chars, e.g. payer11111111111111111111111111111111111111.
_SLOT_CHARS = "ABCDEFGHJK"


def _vanity(prefix: str) -> Pubkey:
    return Pubkey.from_string(prefix + "1" * (43 - len(prefix)))


_ADDRESSES: dict[Role, Pubkey] = {
    Role.PAYER: _vanity("payer"),
    Role.SIGNATURES_ACCOUNT: _vanity("shimvaasigs"),
    Role.GUARDIAN_SET: _vanity("guardianset"),
}
for _slot in range(GENERATED_SIGNER_SLOTS):
    _ADDRESSES[Role.generated_signer(_slot)] = _vanity(f"keypair{_SLOT_CHARS[_slot]}")

_ROLES: dict[Pubkey, Role] = {address: role for role, address in _ADDRESSES.items()}

if len(_ROLES) != len(_ADDRESSES):
    raise RuntimeError("placeholder table must be injective")

RESOLVE_TIME_ROLES = frozenset({Role.PAYER, Role.GUARDIAN_SET})


def placeholder(role: Role) -> Pubkey:
    return _ADDRESSES[role]


def role_of(address: Pubkey) -> Role | None:
    """The role a reserved address stands for, or None for real addresses."""
    return _ROLES.get(address)


def is_placeholder(address: Pubkey) -> bool:
    return address in _ROLES


def substitute(address: Pubkey, bindings: Mapping[Role, Pubkey]) -> Pubkey:
    """Replace a placeholder with its bound address.

    Real addresses and placeholders without a binding pass through
    unchanged, so applying the same bindings twice is a no-op.
    """
    role = _ROLES.get(address)
    if role is None:
        return address
    return bindings.get(role, address)


def substitute_instruction(ix: Instruction, bindings: Mapping[Role, Pubkey]) -> Instruction:
    """Substitute every account, keeping the meta flags and the program id."""
    accounts = [
        AccountMeta(substitute(meta.pubkey, bindings), meta.is_signer, meta.is_writable)
        for meta in ix.accounts
    ]
    return Instruction(ix.program_id, bytes(ix.data), accounts)


def referenced_roles(instructions: Iterable[Instruction]) -> set[Role]:
    """Every role named by an account meta in the instructions."""
    roles: set[Role] = set()
    for ix in instructions:
        for meta in ix.accounts:
            role = _ROLES.get(meta.pubkey)
            if role is not None:
                roles.add(role)
    return roles
