"""Ledger access for the connected devnet account."""

from devbridge.ledger.base import (
    BlockReference,
    LedgerClient,
    LedgerRpcError,
    SendOptions,
    SubmissionResult,
    TransactionFailedError,
)
from devbridge.ledger.solana_rpc import SolanaRpcClient

__all__ = [
    "BlockReference",
    "LedgerClient",
    "LedgerRpcError",
    "SendOptions",
    "SubmissionResult",
    "TransactionFailedError",
    "SolanaRpcClient",
]
