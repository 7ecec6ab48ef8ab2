"""
Test support: a deterministic Solana sandbox with Wormhole programs, guardian
simulation and the ``with_vaa`` security harness.

    Sandbox               in-memory ledger with fork()
    setup_wormhole()      register programs, create guardian set and config
    TestGuardianSet       secp256k1 guardians signing VAA digests
    TestVaa               VAA builder carrying its harness checks
    with_vaa()            probes + commit run
    extract_posted_message_info()
                          messages a transaction posted
"""

from svm_vaa.testing.examples import (
    MESSAGE_EMITTER_PROGRAM_ID,
    VAA_VERIFIER_PROGRAM_ID,
    MessageEmitterProgram,
    VaaVerifierProgram,
    build_emit_message_ix,
    build_verify_vaa_ix,
)
from svm_vaa.testing.guardians import TestGuardian, TestGuardianSet, recover_eth_address
from svm_vaa.testing.harness import with_posted_signatures, with_vaa, with_vaa_unchecked
from svm_vaa.testing.messages import (
    PostedMessageInfo,
    extract_posted_message_info,
    read_emitter_sequence,
)
from svm_vaa.testing.sandbox import (
    InvokeContext,
    NativeProgram,
    ProgramError,
    Sandbox,
    TransactionError,
    TransactionMeta,
)
from svm_vaa.testing.vaa import (
    ReplayProtection,
    TestVaa,
    VaaChecks,
    emitter_address_from_20,
    emitter_address_from_32,
)
from svm_vaa.testing.wormhole import (
    DEFAULT_BRIDGE_FEE,
    SandboxConnection,
    WormholeAccounts,
    build_bridge_fee_ix,
    build_guardian_set_data,
    close_signatures,
    create_bridge_config,
    create_fee_collector,
    create_guardian_set_account,
    post_signatures,
    setup_wormhole,
)

__all__ = [
    "DEFAULT_BRIDGE_FEE",
    "MESSAGE_EMITTER_PROGRAM_ID",
    "VAA_VERIFIER_PROGRAM_ID",
    "InvokeContext",
    "MessageEmitterProgram",
    "NativeProgram",
    "PostedMessageInfo",
    "ProgramError",
    "ReplayProtection",
    "Sandbox",
    "SandboxConnection",
    "TestGuardian",
    "TestGuardianSet",
    "TestVaa",
    "TransactionError",
    "TransactionMeta",
    "VaaChecks",
    "VaaVerifierProgram",
    "WormholeAccounts",
    "build_bridge_fee_ix",
    "build_emit_message_ix",
    "build_guardian_set_data",
    "build_verify_vaa_ix",
    "close_signatures",
    "create_bridge_config",
    "create_fee_collector",
    "create_guardian_set_account",
    "emitter_address_from_20",
    "emitter_address_from_32",
    "extract_posted_message_info",
    "post_signatures",
    "read_emitter_sequence",
    "recover_eth_address",
    "setup_wormhole",
    "with_posted_signatures",
    "with_vaa",
    "with_vaa_unchecked",
]
