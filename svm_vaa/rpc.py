"""
Solana JSON-RPC connection: the live-node implementation of LedgerConnection.

Translates getLatestBlockhash / simulateTransaction / sendTransaction /
getSignatureStatuses / getAccountInfo responses into solders types. Uses
an injectable transport (JsonRpcTransport) so the HTTP layer can be
swapped for test fakes without changing parsing logic.

No retry loops beyond the confirmation poll, which is bounded by
``max_polls``.

Response parsing targets Solana JSON-RPC 2.0 conventions:
    - Success: {"jsonrpc": "2.0", "result": {"context": {...}, "value": ...}, "id": n}
    - Error:   {"jsonrpc": "2.0", "error": {"code": n, "message": "...", "data": ...}, "id": n}
    - Binary payloads travel as ["<base64>", "base64"] pairs
"""

from __future__ import annotations

import base64
import logging
import time
from typing import Any, Callable

from solders.account import Account
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from svm_vaa.errors import LedgerConnectionError, TransactionFailedError
from svm_vaa.transport import HttpxTransport, JsonRpcTransport

logger = logging.getLogger(__name__)

# JSON-RPC request ID counter (single-threaded use, see LedgerConnection)
_REQUEST_ID = 0

_COMMITMENT_RANK = {"processed": 0, "confirmed": 1, "finalized": 2}

_ACCOUNT_NOT_FOUND_MARKERS = ("accountnotfound", "could not find account")


def _next_request_id() -> int:
    global _REQUEST_ID
    _REQUEST_ID += 1
    return _REQUEST_ID


class RpcConnection:
    """Solana JSON-RPC client implementing the LedgerConnection protocol.

    Args:
        url: The JSON-RPC endpoint URL (e.g. "https://api.devnet.solana.com").
        transport: Injectable transport for HTTP POST. Defaults to
            HttpxTransport. Pass a FakeTransport for testing.
        commitment: Commitment level for queries and confirmation.
        poll_interval: Seconds between getSignatureStatuses polls.
        max_polls: Polls before send_and_confirm gives up.
        sleep: Injectable sleep function (tests pass a no-op).
    """

    def __init__(
        self,
        url: str,
        transport: JsonRpcTransport | None = None,
        *,
        commitment: str = "confirmed",
        poll_interval: float = 0.5,
        max_polls: int = 120,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if commitment not in _COMMITMENT_RANK:
            raise ValueError(f"Unknown commitment level: {commitment}")
        self._url = url
        self._transport = transport or HttpxTransport()
        self._commitment = commitment
        self._poll_interval = poll_interval
        self._max_polls = max_polls
        self._sleep = sleep

    def __enter__(self) -> RpcConnection:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Release the transport, if it holds anything."""
        close = getattr(self._transport, "close", None)
        if close is not None:
            close()

    @property
    def url(self) -> str:
        """The JSON-RPC endpoint URL."""
        return self._url

    def _call(self, method: str, params: list[Any]) -> dict[str, Any]:
        payload = {
            "jsonrpc": "2.0",
            "id": _next_request_id(),
            "method": method,
            "params": params,
        }
        return self._transport.post_json(self._url, payload)

    # -----------------------------------------------------------------
    # LedgerConnection protocol methods
    # -----------------------------------------------------------------

    def get_latest_blockhash(self) -> Hash:
        response = self._call("getLatestBlockhash", [{"commitment": self._commitment}])
        return _parse_blockhash_response(response)

    def simulate_return_data(self, tx: Transaction) -> bytes | None:
        """Simulate without signature checks, on a fresh blockhash.

        Raises:
            TransactionFailedError: The simulation ran and failed; program
                logs are in ``details["logs"]``.
        """
        response = self._call(
            "simulateTransaction",
            [
                _encode_transaction(tx),
                {
                    "encoding": "base64",
                    "sigVerify": False,
                    "replaceRecentBlockhash": True,
                    "commitment": self._commitment,
                },
            ],
        )
        return _parse_simulate_response(response)

    def send_and_confirm(self, tx: Transaction) -> Signature:
        """Send a transaction and poll its status until the commitment is reached.

        Raises:
            TransactionFailedError: Preflight rejected it or it landed with
                an error.
            LedgerConnectionError: Transport failure, or still unconfirmed
                after ``max_polls`` polls.
        """
        response = self._call(
            "sendTransaction",
            [
                _encode_transaction(tx),
                {"encoding": "base64", "preflightCommitment": self._commitment},
            ],
        )
        signature = _parse_send_response(response)
        logger.debug("Sent transaction %s", signature)

        for attempt in range(self._max_polls):
            if attempt:
                self._sleep(self._poll_interval)
            status = self._call(
                "getSignatureStatuses",
                [[str(signature)], {"searchTransactionHistory": False}],
            )
            if _parse_signature_status_response(status, self._commitment):
                return signature

        raise LedgerConnectionError(
            f"Transaction {signature} not confirmed after {self._max_polls} polls",
            error_code="TIMEOUT",
            details={"signature": str(signature), "commitment": self._commitment},
        )

    def get_account(self, pubkey: Pubkey) -> Account | None:
        response = self._call(
            "getAccountInfo",
            [str(pubkey), {"encoding": "base64", "commitment": self._commitment}],
        )
        return _parse_account_response(response)


# =====================================================================
# Response parsing (pure functions, no I/O)
# =====================================================================


def _encode_transaction(tx: Transaction) -> str:
    return base64.b64encode(bytes(tx)).decode("ascii")


def _decode_binary(field: Any) -> bytes:
    """Decode a ["<base64>", "base64"] pair."""
    encoded, encoding = field[0], field[1]
    if encoding != "base64":
        raise ValueError(f"Unsupported binary encoding: {encoding}")
    return base64.b64decode(encoded)


def _malformed(method: str, response: dict[str, Any], exc: Exception) -> LedgerConnectionError:
    return LedgerConnectionError(
        f"Malformed {method} response: {exc}",
        error_code="INVALID_RESPONSE",
        details={"method": method, "response_preview": str(response)[:200]},
    )


def _rpc_error_details(error: Any) -> dict[str, Any]:
    if not isinstance(error, dict):
        return {"rpc_error": error}
    details: dict[str, Any] = {"code": error.get("code"), "rpc_message": error.get("message")}
    data = error.get("data")
    if isinstance(data, dict) and data.get("logs") is not None:
        details["logs"] = list(data["logs"])
    return details


def _rpc_error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message", error))
    return str(error)


def _parse_blockhash_response(response: dict[str, Any]) -> Hash:
    if "error" in response:
        raise LedgerConnectionError(
            f"getLatestBlockhash failed: {_rpc_error_message(response['error'])}",
            error_code="RPC_ERROR",
            details=_rpc_error_details(response["error"]),
        )
    try:
        return Hash.from_string(response["result"]["value"]["blockhash"])
    except (KeyError, TypeError, ValueError) as e:
        raise _malformed("getLatestBlockhash", response, e) from e


def _parse_simulate_response(response: dict[str, Any]) -> bytes | None:
    """Extract return data from a simulateTransaction response.

    Handles:
        - RPC-level errors (TransactionFailedError)
        - Simulation errors, value.err non-null (TransactionFailedError)
        - Missing or empty return data (None)
    """
    if "error" in response:
        raise TransactionFailedError(
            f"Simulation rejected: {_rpc_error_message(response['error'])}",
            details=_rpc_error_details(response["error"]),
        )
    try:
        value = response["result"]["value"]
        err = value.get("err")
        logs = list(value.get("logs") or [])
        return_data = value.get("returnData")
        data = _decode_binary(return_data["data"]) if return_data else b""
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise _malformed("simulateTransaction", response, e) from e

    if err is not None:
        raise TransactionFailedError(
            f"Simulation failed: {err}",
            details={"err": err, "logs": logs},
        )
    return data or None


def _parse_send_response(response: dict[str, Any]) -> Signature:
    if "error" in response:
        raise TransactionFailedError(
            f"Transaction rejected: {_rpc_error_message(response['error'])}",
            details=_rpc_error_details(response["error"]),
        )
    try:
        return Signature.from_string(response["result"])
    except (KeyError, TypeError, ValueError) as e:
        raise _malformed("sendTransaction", response, e) from e


def _parse_signature_status_response(response: dict[str, Any], commitment: str) -> bool:
    """True once the transaction reached ``commitment``; False while pending.

    Raises:
        TransactionFailedError: The transaction landed with an error.
    """
    if "error" in response:
        raise LedgerConnectionError(
            f"getSignatureStatuses failed: {_rpc_error_message(response['error'])}",
            error_code="RPC_ERROR",
            details=_rpc_error_details(response["error"]),
        )
    try:
        status = response["result"]["value"][0]
        if status is None:
            return False
        err = status.get("err")
        reached = status.get("confirmationStatus")
    except (KeyError, IndexError, TypeError) as e:
        raise _malformed("getSignatureStatuses", response, e) from e

    if err is not None:
        raise TransactionFailedError(f"Transaction failed: {err}", details={"err": err})
    if reached is None:
        return False
    return _COMMITMENT_RANK.get(reached, -1) >= _COMMITMENT_RANK[commitment]


def _parse_account_response(response: dict[str, Any]) -> Account | None:
    """Parse getAccountInfo. Missing accounts are None, never an error."""
    if "error" in response:
        message = _rpc_error_message(response["error"])
        if any(marker in message.lower() for marker in _ACCOUNT_NOT_FOUND_MARKERS):
            return None
        raise LedgerConnectionError(
            f"getAccountInfo failed: {message}",
            error_code="RPC_ERROR",
            details=_rpc_error_details(response["error"]),
        )
    try:
        value = response["result"]["value"]
        if value is None:
            return None
        return Account(
            lamports=int(value["lamports"]),
            data=_decode_binary(value["data"]),
            owner=Pubkey.from_string(value["owner"]),
            executable=bool(value["executable"]),
            rent_epoch=int(value.get("rentEpoch", 0)),
        )
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise _malformed("getAccountInfo", response, e) from e
