"""Eligibility gate for the bridge action.

Pure validation over (account, balance, destination, amount). Rejections
are returned, never raised, so the caller can surface exactly one message.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from solders.pubkey import Pubkey

from devbridge.errors import ErrorCode
from devbridge.utils.formatting import Number, parse_amount

logger = logging.getLogger(__name__)

DEFAULT_MIN_REQUIRED_SOL = Decimal(1000)


def parse_address(address: Optional[str]) -> Optional[Pubkey]:
    """Parse a Solana address; None if empty or malformed.

    Shared by the gate and the transfer executor so both accept the same set
    of addresses.
    """
    if not address or not isinstance(address, str):
        return None
    try:
        return Pubkey.from_string(address.strip())
    except ValueError:
        return None


@dataclass(frozen=True)
class TransferRequest:
    """Validated user input. Never mutated after validation."""
    destination: str
    requested_amount: Decimal


@dataclass(frozen=True)
class EligibilityDecision:
    """Accept/reject outcome of the gate."""
    accepted: bool
    reason: Optional[ErrorCode] = None
    message: str = ""
    request: Optional[TransferRequest] = None

    @classmethod
    def accept(cls, request: TransferRequest) -> "EligibilityDecision":
        return cls(accepted=True, request=request)

    @classmethod
    def reject(cls, reason: ErrorCode, message: str) -> "EligibilityDecision":
        return cls(accepted=False, reason=reason, message=message)


def validate(
    account: Optional[Pubkey],
    balance: Optional[Decimal],
    destination: Optional[str],
    requested_amount: Optional[Number],
    min_required: Number = DEFAULT_MIN_REQUIRED_SOL,
) -> EligibilityDecision:
    """Check the bridge action, first failure wins.

    Args:
        account: Connected account, None if no wallet
        balance: Latest known balance in SOL, None if unknown
        destination: User-entered destination address
        requested_amount: User-entered amount in SOL
        min_required: Minimum balance in SOL

    Returns:
        EligibilityDecision
    """
    threshold = parse_amount(min_required)

    if account is None:
        return EligibilityDecision.reject(
            ErrorCode.NO_WALLET, "Connect your Devnet wallet first."
        )

    if balance is None or balance < threshold:
        return EligibilityDecision.reject(
            ErrorCode.BELOW_THRESHOLD,
            f"Requires at least {threshold.normalize():,f} Devnet SOL to start.",
        )

    if not destination or not destination.strip():
        return EligibilityDecision.reject(
            ErrorCode.INVALID_DESTINATION,
            "Enter a destination Mainnet wallet address.",
        )
    if parse_address(destination) is None:
        return EligibilityDecision.reject(
            ErrorCode.INVALID_DESTINATION, "Destination address is invalid."
        )

    amount = parse_amount(requested_amount)
    if amount is None or amount <= 0:
        return EligibilityDecision.reject(
            ErrorCode.INVALID_AMOUNT, "Enter a valid Devnet SOL amount."
        )

    if amount > balance:
        return EligibilityDecision.reject(
            ErrorCode.INSUFFICIENT_BALANCE, "Amount exceeds your Devnet balance."
        )

    logger.debug(f"Eligibility accepted for {account}: {amount} SOL -> {destination}")
    return EligibilityDecision.accept(
        TransferRequest(destination=destination.strip(), requested_amount=amount)
    )
