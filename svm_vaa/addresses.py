"""
Well-known Wormhole program ids and PDA derivations on Solana.

All derivations go through ``Pubkey.find_program_address`` so they match
what the on-chain programs compute.
"""

from __future__ import annotations

from solders.pubkey import Pubkey

CORE_BRIDGE_PROGRAM_ID = Pubkey.from_string("worm2ZoG2kUd4vFXhvjh93UUH596ayRfgQ2MgjNMTth")
DEVNET_CORE_BRIDGE_PROGRAM_ID = Pubkey.from_string(
    "3u8hJUVTA4jH1wYAyUur7FFZVQ8H635K3tSHHF4ssjQ5"
)
VERIFY_VAA_SHIM_PROGRAM_ID = Pubkey.from_string("EFaNWErqAtVWufdNb7yofSHHfWFos843DFpu4JBw24at")
POST_MESSAGE_SHIM_PROGRAM_ID = Pubkey.from_string(
    "EtZMZM22ViKMo4r5y4Anovs3wKQ2owUmDpjygnMMcdEX"
)

GUARDIAN_SET_SEED = b"GuardianSet"
BRIDGE_CONFIG_SEED = b"Bridge"
FEE_COLLECTOR_SEED = b"fee_collector"
SEQUENCE_SEED = b"Sequence"
EVENT_AUTHORITY_SEED = b"__event_authority"


def find_guardian_set_address(
    guardian_set_index: int, core_bridge: Pubkey = CORE_BRIDGE_PROGRAM_ID
) -> tuple[Pubkey, int]:
    """Guardian set PDA; the index is encoded big-endian."""
    return Pubkey.find_program_address(
        [GUARDIAN_SET_SEED, guardian_set_index.to_bytes(4, "big")], core_bridge
    )


def find_core_bridge_config_address(
    core_bridge: Pubkey = CORE_BRIDGE_PROGRAM_ID,
) -> tuple[Pubkey, int]:
    return Pubkey.find_program_address([BRIDGE_CONFIG_SEED], core_bridge)


def find_fee_collector_address(
    core_bridge: Pubkey = CORE_BRIDGE_PROGRAM_ID,
) -> tuple[Pubkey, int]:
    return Pubkey.find_program_address([FEE_COLLECTOR_SEED], core_bridge)


def find_emitter_sequence_address(
    emitter: Pubkey, core_bridge: Pubkey = CORE_BRIDGE_PROGRAM_ID
) -> tuple[Pubkey, int]:
    return Pubkey.find_program_address([SEQUENCE_SEED, bytes(emitter)], core_bridge)


def find_shim_message_address(
    emitter: Pubkey, post_message_shim: Pubkey = POST_MESSAGE_SHIM_PROGRAM_ID
) -> tuple[Pubkey, int]:
    return Pubkey.find_program_address([bytes(emitter)], post_message_shim)


def find_event_authority_address(
    program_id: Pubkey = POST_MESSAGE_SHIM_PROGRAM_ID,
) -> tuple[Pubkey, int]:
    return Pubkey.find_program_address([EVENT_AUTHORITY_SEED], program_id)


def detect_core_bridge(rpc_url: str) -> Pubkey | None:
    """Pick the core bridge for the cluster an RPC URL points at.

    Returns None when the URL names neither mainnet nor devnet; callers
    must then be told the core bridge explicitly.
    """
    lowered = rpc_url.lower()
    if "mainnet" in lowered:
        return CORE_BRIDGE_PROGRAM_ID
    if "devnet" in lowered:
        return DEVNET_CORE_BRIDGE_PROGRAM_ID
    return None
