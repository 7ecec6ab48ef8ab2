"""
svm-vaa: submit Wormhole VAAs to Solana programs.

Public API:

    Submission:
        - ``broadcast_vaa()`` - resolve, post signatures, execute, close.
        - ``resolve_execute_vaa_v1()`` - the resolver negotiation alone.
        - ``execute_instruction_groups()`` - run a resolved plan.
        - ``post_signatures()`` / ``close_signatures()`` /
          ``posted_signatures()`` - the temporary signatures account.

    Ledger boundary:
        - ``LedgerConnection`` - protocol every flow talks to.
        - ``RpcConnection`` - JSON-RPC implementation.
        - ``JsonRpcTransport`` / ``HttpxTransport`` - injectable transport.

    Codecs:
        - ``SignedVaa`` / ``parse_signed_vaa()`` - signed VAA bytes.
        - ``decode_resolver_outcome()`` - resolver return data.

    Configuration and errors:
        - ``SubmitConfig`` - settings from keywords and environment.
        - ``SubmitError`` and subclasses (see ``svm_vaa.errors``).

The sandbox and security harness live in ``svm_vaa.testing``.
"""

__version__ = "0.1.0"

from svm_vaa.addresses import (
    CORE_BRIDGE_PROGRAM_ID,
    DEVNET_CORE_BRIDGE_PROGRAM_ID,
    POST_MESSAGE_SHIM_PROGRAM_ID,
    VERIFY_VAA_SHIM_PROGRAM_ID,
    detect_core_bridge,
    find_guardian_set_address,
)
from svm_vaa.broadcast import broadcast_vaa
from svm_vaa.config import SubmitConfig
from svm_vaa.connection import LedgerConnection
from svm_vaa.errors import (
    ExecutionError,
    InvalidVaaError,
    LedgerConnectionError,
    ResolverProtocolError,
    SubmitError,
    TransactionFailedError,
    UnsupportedProgramError,
)
from svm_vaa.execute import execute_instruction_groups
from svm_vaa.instructions import (
    RESOLVER_EXECUTE_VAA_V1,
    InstructionGroup,
    decode_resolver_outcome,
)
from svm_vaa.placeholders import Role, placeholder
from svm_vaa.resolve import ResolveResult, resolve_execute_vaa_v1
from svm_vaa.rpc import RpcConnection
from svm_vaa.signatures import (
    PostedSignatures,
    close_signatures,
    post_signatures,
    posted_signatures,
)
from svm_vaa.transport import HttpxTransport, JsonRpcTransport
from svm_vaa.vaa import SignedVaa, parse_signed_vaa

__all__ = [
    "CORE_BRIDGE_PROGRAM_ID",
    "DEVNET_CORE_BRIDGE_PROGRAM_ID",
    "POST_MESSAGE_SHIM_PROGRAM_ID",
    "RESOLVER_EXECUTE_VAA_V1",
    "VERIFY_VAA_SHIM_PROGRAM_ID",
    "ExecutionError",
    "HttpxTransport",
    "InstructionGroup",
    "InvalidVaaError",
    "JsonRpcTransport",
    "LedgerConnection",
    "LedgerConnectionError",
    "PostedSignatures",
    "ResolveResult",
    "ResolverProtocolError",
    "Role",
    "RpcConnection",
    "SignedVaa",
    "SubmitConfig",
    "SubmitError",
    "TransactionFailedError",
    "UnsupportedProgramError",
    "broadcast_vaa",
    "close_signatures",
    "decode_resolver_outcome",
    "detect_core_bridge",
    "execute_instruction_groups",
    "find_guardian_set_address",
    "parse_signed_vaa",
    "placeholder",
    "post_signatures",
    "posted_signatures",
    "resolve_execute_vaa_v1",
]
