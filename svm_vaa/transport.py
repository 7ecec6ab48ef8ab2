"""
Transport protocol for Solana JSON-RPC calls.

Defines the seam where the HTTP implementation plugs in. RpcConnection
depends on this protocol, not on httpx directly, so tests can swap in a
canned-response transport without touching parsing logic.

Concrete implementations:
    - HttpxTransport (default, uses a pooled httpx.Client)
    - FakeTransport (tests, returns canned responses)

Transport failures surface as LedgerConnectionError with a stable
error_code (TIMEOUT, CONNECTION_FAILED, HTTP_ERROR, INVALID_JSON).
"""

from __future__ import annotations

import json
from typing import Any, Protocol, runtime_checkable

import httpx

from svm_vaa.errors import LedgerConnectionError


@runtime_checkable
class JsonRpcTransport(Protocol):
    """Synchronous transport for JSON-RPC POST requests."""

    def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send a JSON-RPC request and return the parsed response.

        Args:
            url: The JSON-RPC endpoint URL.
            payload: The JSON-RPC request body (jsonrpc, id, method, params).

        Returns:
            Parsed JSON response as a dict.

        Raises:
            LedgerConnectionError: On transport-level failures (connection
                refused, timeout, non-2xx status, non-JSON body).
        """
        ...


class HttpxTransport:
    """Default transport using httpx.Client.

    The client is created lazily and reused for the lifetime of the
    transport; call ``close()`` (or use it as a context manager) to release
    the connection pool.
    """

    def __init__(self, timeout: float = 30.0, headers: dict[str, str] | None = None) -> None:
        self._timeout = timeout
        self._headers = headers or {}
        self._client: httpx.Client | None = None

    def __enter__(self) -> HttpxTransport:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send JSON-RPC request via httpx."""
        if self._client is None:
            self._client = httpx.Client(timeout=self._timeout)

        try:
            response = self._client.post(
                url,
                json=payload,
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                    **self._headers,
                },
            )
        except httpx.TimeoutException as e:
            raise LedgerConnectionError(
                f"RPC request timed out after {self._timeout}s",
                error_code="TIMEOUT",
                details={"url": url, "timeout_s": self._timeout},
            ) from e
        except httpx.ConnectError as e:
            raise LedgerConnectionError(
                f"Failed to connect to {url}",
                error_code="CONNECTION_FAILED",
                details={"url": url},
            ) from e
        except httpx.HTTPError as e:
            raise LedgerConnectionError(
                f"HTTP error: {e}",
                error_code="HTTP_ERROR",
                details={"url": url, "error": str(e)},
            ) from e

        if response.status_code >= 400:
            raise LedgerConnectionError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                error_code="HTTP_ERROR",
                details={
                    "url": url,
                    "status_code": response.status_code,
                    "reason": response.reason_phrase,
                },
            )

        try:
            result = response.json()
        except json.JSONDecodeError as e:
            raise LedgerConnectionError(
                "Response was not valid JSON",
                error_code="INVALID_JSON",
                details={
                    "url": url,
                    "status_code": response.status_code,
                    "body_preview": response.text[:200] if response.text else "",
                },
            ) from e

        if not isinstance(result, dict):
            raise LedgerConnectionError(
                "Response JSON was not an object",
                error_code="INVALID_JSON",
                details={"url": url, "type": type(result).__name__},
            )
        return result
