"""Error taxonomy shared by the gate, the monitor and the transfer executor.

Gate rejections are returned as values (see ``devbridge.eligibility``).
Transfer failures are raised as ``TransferError`` subclasses and converted
to a single user-facing notification by the controller.
"""

from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from devbridge.ledger.base import SubmissionResult


class ErrorCode(str, Enum):
    """Distinguishable failure reasons."""
    NO_WALLET = "no_wallet"
    BELOW_THRESHOLD = "below_threshold"
    INVALID_DESTINATION = "invalid_destination"
    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    BALANCE_QUERY_FAILED = "balance_query_failed"
    BLOCK_REFERENCE_FETCH_FAILED = "block_reference_fetch_failed"
    SIGNING_DECLINED = "signing_declined"
    SUBMISSION_REJECTED = "submission_rejected"
    CONFIRMATION_TIMED_OUT = "confirmation_timed_out"
    NO_SWEEP_DESTINATION = "no_sweep_destination"


class BridgeError(Exception):
    """Base exception for devbridge."""

    code: Optional[ErrorCode] = None
    default_message = "Operation failed."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigurationError(BridgeError):
    """Raised when a required setting is missing or malformed."""
    default_message = "Invalid configuration."


class SweepDestinationError(ConfigurationError):
    code = ErrorCode.NO_SWEEP_DESTINATION
    default_message = "No transfer destination is configured."


class TransferError(BridgeError):
    """Base class for transfer executor failures."""
    default_message = "Transfer failed."


class NoWalletError(TransferError):
    code = ErrorCode.NO_WALLET
    default_message = "Connect your Devnet wallet first."


class InsufficientBalanceError(TransferError):
    code = ErrorCode.INSUFFICIENT_BALANCE
    default_message = "Insufficient balance after fees."


class BalanceQueryFailedError(TransferError):
    code = ErrorCode.BALANCE_QUERY_FAILED
    default_message = "Could not read your Devnet balance."


class BlockReferenceFetchFailedError(TransferError):
    code = ErrorCode.BLOCK_REFERENCE_FETCH_FAILED
    default_message = "Could not fetch a recent blockhash."


class SigningDeclinedError(TransferError):
    code = ErrorCode.SIGNING_DECLINED
    default_message = "Transaction was not approved by the wallet."


class SubmissionRejectedError(TransferError):
    code = ErrorCode.SUBMISSION_REJECTED
    default_message = "Transaction was rejected by the network."


class ConfirmationTimedOutError(TransferError):
    """Submitted, but not confirmed before the blockhash expired.

    Carries the unconfirmed ``SubmissionResult`` so callers can still report
    the signature.
    """
    code = ErrorCode.CONFIRMATION_TIMED_OUT
    default_message = "Transfer unconfirmed: blockhash expired before confirmation."

    def __init__(self, result: "SubmissionResult", message: Optional[str] = None):
        self.result = result
        super().__init__(message or f"{self.default_message} Signature: {result.signature}")
