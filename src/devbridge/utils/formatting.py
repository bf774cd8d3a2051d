"""Unit conversion and display formatting."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

LAMPORTS_PER_SOL = 1_000_000_000

Number = Union[Decimal, int, float, str]


def lamports_to_sol(lamports: int) -> Decimal:
    """Convert lamports to SOL."""
    return Decimal(lamports) / Decimal(LAMPORTS_PER_SOL)


def sol_to_lamports(amount: Decimal) -> int:
    """Convert SOL to whole lamports (truncating)."""
    return int(amount * LAMPORTS_PER_SOL)


def parse_amount(value: Optional[Number]) -> Optional[Decimal]:
    """Parse user input into a finite Decimal, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, float):
            amount = Decimal(repr(value))
        else:
            amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def format_sol(value: Optional[Decimal]) -> str:
    """Format a SOL amount for display, '-' when unknown.

    Up to 4 fraction digits, thousands separators.
    """
    if value is None:
        return "-"
    rounded = value.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP).normalize()
    text = f"{rounded:,f}"
    return f"{text} SOL"


def shorten(key: str, left: int = 4, right: int = 4) -> str:
    """Shorten an address to ``abcd…wxyz``."""
    if len(key) <= left + right + 3:
        return key
    return f"{key[:left]}…{key[-right:]}"


def estimate_mainnet(
    amount: Optional[Number],
    exchange_rate: int = 1_000_000,
    mainnet_per_rate: Number = "0.01",
) -> Decimal:
    """Quoted mainnet SOL for a devnet amount; 0 for invalid input."""
    parsed = parse_amount(amount)
    if parsed is None or parsed <= 0:
        return Decimal(0)
    per_dev = parse_amount(mainnet_per_rate) / Decimal(exchange_rate)
    return parsed * per_dev
