"""
Utility functions for TripSplit
"""
from __future__ import annotations
import os
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

from models import InvalidArgument

CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def round_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places, halves away from zero"""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value: Decimal) -> int:
    """Convert a currency value to integer cents (rounded first)"""
    return int(round_money(value) * 100)


def cents_to_money(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


def parse_amount(x: Number) -> Decimal:
    """
    Convert user input to Decimal. Floats go through str() so 0.1 stays 0.1.
    Raises InvalidArgument on anything that is not a finite number.
    """
    if isinstance(x, bool):
        raise InvalidArgument(f"Invalid amount: {x!r}")
    if isinstance(x, float):
        x = str(x)
    try:
        value = Decimal(x.strip() if isinstance(x, str) else x)
    except (InvalidOperation, TypeError, ValueError) as ex:
        raise InvalidArgument(f"Invalid amount: {x!r}") from ex
    if not value.is_finite():
        raise InvalidArgument(f"Invalid amount: {x!r}")
    return value


def format_money(value: Decimal, symbol: str = "", signed: bool = False) -> str:
    """Format as 2 dp; `signed` puts '+' on non-negative values"""
    v = round_money(value)
    sign = "-" if v < 0 else ("+" if signed else "")
    return f"{sign}{symbol}{abs(v):.2f}"


def name_key(name: str) -> str:
    """Case-insensitive identity key for a person's name"""
    return name.lower()


def app_dir(base: Optional[str] = None) -> str:
    """
    Get application data directory: $TRIPSPLIT_HOME, else ~/.tripsplit
    Creates directory if it doesn't exist.
    """
    path = base or os.environ.get("TRIPSPLIT_HOME") or os.path.join(os.path.expanduser("~"), ".tripsplit")
    os.makedirs(path, exist_ok=True)
    return path
