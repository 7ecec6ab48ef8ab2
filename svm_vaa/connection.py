"""
Ledger connection protocol: the network boundary.

Everything above this module (resolver, execution engine, signatures
lifecycle, broadcast) talks to the ledger only through these four
methods, so a live node and the in-process sandbox are interchangeable.

Concrete implementations:
    - RpcConnection (svm_vaa.rpc, JSON-RPC over an injectable transport)
    - SandboxConnection (svm_vaa.testing.wormhole, deterministic sandbox)
    - Fake connections (tests)

Error contract:
    - LedgerConnectionError: the ledger could not be reached
    - TransactionFailedError: the ledger ran the transaction and said no
    - "account not found" is NOT an error: get_account returns None
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from solders.account import Account
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction


@runtime_checkable
class LedgerConnection(Protocol):
    """Minimal ledger capability used by the submission flows."""

    def get_latest_blockhash(self) -> Hash:
        """Fetch a recent blockhash to sign the next transaction with."""
        ...

    def simulate_return_data(self, tx: Transaction) -> bytes | None:
        """Simulate a transaction and return its program return data.

        Returns:
            The return data bytes, or None when the program set none.
        """
        ...

    def send_and_confirm(self, tx: Transaction) -> Signature:
        """Submit a signed transaction and block until it is confirmed."""
        ...

    def get_account(self, pubkey: Pubkey) -> Account | None:
        """Fetch an account, or None if it does not exist."""
        ...
