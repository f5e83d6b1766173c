"""
Numeric type utilities for Decimal precision.

Conversions between user-facing Decimal amounts and on-chain integer units.
"""

from decimal import Decimal, ROUND_DOWN

ETH_DECIMALS = 18


def to_base_units(amount: Decimal, decimals: int) -> int:
    """
    Convert a token amount to integer base units.

    Digits beyond ``decimals`` are truncated.

    Examples:
        >>> to_base_units(Decimal("100.50"), 6)
        100500000
        >>> to_base_units(Decimal("0.0001"), 18)
        100000000000000
    """
    multiplier = Decimal(10) ** int(decimals)
    return int((amount * multiplier).quantize(Decimal("1"), rounding=ROUND_DOWN))


def from_base_units(units: int, decimals: int) -> Decimal:
    """
    Convert integer base units to a token amount.

    Examples:
        >>> from_base_units(100500000, 6)
        Decimal('100.5')
    """
    result = Decimal(int(units)) / (Decimal(10) ** int(decimals))
    return result.normalize() if result else Decimal("0")


def format_withdrawal_amount(units: int, decimals: int, symbol: str) -> str:
    """
    Format a pending on-chain withdrawal balance for display.

    ETH balances are reported by the contract in wei; other coins use the
    coin's blockchain decimals.
    """
    if symbol.lower() == "eth":
        decimals = ETH_DECIMALS
    if not units:
        return "0"
    return format(from_base_units(units, decimals), "f")


def to_json_number(value: Decimal) -> float:
    """Decimal to a JSON number for request bodies."""
    return float(value)
