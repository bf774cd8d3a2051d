"""Ledger client contract.

The core only consumes this interface:
1. get_balance: lamports held by an account
2. get_latest_blockhash: recent block reference and its validity horizon
3. send_transaction: broadcast a signed transaction, returns its signature
4. confirm_transaction: wait for the signature until the horizon passes
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from solders.pubkey import Pubkey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockReference:
    """Recent blockhash and the last block height at which it is valid."""
    blockhash: str
    last_valid_block_height: int


@dataclass(frozen=True)
class SendOptions:
    """Options forwarded with a transaction submission."""
    preflight_commitment: str = "confirmed"
    skip_preflight: bool = False


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of a submitted transfer.

    Attributes:
        signature: Transaction signature returned on submission
        confirmed: Whether the network confirmed it within the horizon
    """
    signature: str
    confirmed: bool


class LedgerRpcError(Exception):
    """Raised on transport failures and JSON-RPC error responses."""

    def __init__(self, message: str, code: Optional[int] = None):
        self.code = code
        super().__init__(message)


class TransactionFailedError(LedgerRpcError):
    """Raised when a submitted transaction landed with an error."""


class LedgerClient(ABC):
    """Abstract base class for ledger access."""

    @abstractmethod
    async def get_balance(self, account: Pubkey) -> int:
        """Get account balance in lamports.

        Raises:
            LedgerRpcError: If the query fails
        """
        pass

    @abstractmethod
    async def get_latest_blockhash(self) -> BlockReference:
        """Get a recent blockhash and its validity horizon."""
        pass

    @abstractmethod
    async def send_transaction(self, raw_transaction: bytes, options: SendOptions) -> str:
        """Broadcast a signed, serialized transaction.

        Returns:
            Transaction signature (base58)
        """
        pass

    @abstractmethod
    async def confirm_transaction(self, signature: str, reference: BlockReference) -> bool:
        """Wait for confirmation of a signature.

        Returns:
            True once confirmed, False if the block height passed
            ``reference.last_valid_block_height`` first
        """
        pass

    async def aclose(self) -> None:
        """Release transport resources."""
        return None

    async def __aenter__(self) -> "LedgerClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False
