"""
Decimal helpers shared by the order store, venues and chat rendering.
"""

from decimal import Decimal, InvalidOperation, ROUND_DOWN, ROUND_UP
from typing import Optional, Union

Number = Union[Decimal, str, int, float]


def to_decimal(value: Number) -> Decimal:
    """
    Convert a user or API supplied number to Decimal.

    Floats go through str() so 0.1 stays 0.1. Raises ValueError for
    anything that is not a finite number.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"Not a number: {value!r}")
    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def parse_decimal(value: object) -> Optional[Decimal]:
    """Lenient variant for API payloads: None instead of raising."""
    if value is None or value == "":
        return None
    try:
        return to_decimal(value)
    except ValueError:
        return None


def to_base_units(amount: Decimal, decimals: int, round_up: bool = False) -> int:
    """Scale a token amount to integer base units (lamports, micro-USDC...)."""
    scaled = amount * (Decimal(10) ** decimals)
    return int(scaled.quantize(Decimal(1), rounding=ROUND_UP if round_up else ROUND_DOWN))


def from_base_units(raw: Union[int, str], decimals: int) -> Decimal:
    """Inverse of to_base_units."""
    return Decimal(int(raw)) / (Decimal(10) ** decimals)


def format_price(price: Optional[Decimal]) -> str:
    """Render a price for chat messages: 4 dp below 1, 2 dp above."""
    if price is None:
        return "n/a"
    places = Decimal("0.0001") if abs(price) < 1 else Decimal("0.01")
    return f"{price.quantize(places):,}"
