"""
Input validation utilities.

Validates amounts, addresses and keys before any API or chain call.
"""

import re
from typing import Any
from decimal import Decimal, InvalidOperation

from eth_utils import is_address, to_checksum_address

from ..exceptions import ValidationError, InvalidAmountError


PRIVATE_KEY_PATTERN = re.compile(r'^(0x)?[0-9a-fA-F]{64}$')

INVALID_AMOUNT_MESSAGE = (
    "Please enter a valid amount. It should be a numerical value greater than zero."
)


def validate_amount(amount: Any) -> Decimal:
    """
    Validate a transfer/order amount.

    Args:
        amount: Amount (int, float, str, or Decimal)

    Returns:
        Amount as Decimal

    Raises:
        InvalidAmountError: If amount is not a finite number greater than zero
    """
    if isinstance(amount, bool):
        raise InvalidAmountError(INVALID_AMOUNT_MESSAGE, amount)

    try:
        if isinstance(amount, Decimal):
            amount_dec = amount
        elif isinstance(amount, str):
            amount_dec = Decimal(amount.strip())
        elif isinstance(amount, (int, float)):
            amount_dec = Decimal(str(amount))
        else:
            raise InvalidAmountError(INVALID_AMOUNT_MESSAGE, amount)
    except (ValueError, InvalidOperation) as e:
        raise InvalidAmountError(INVALID_AMOUNT_MESSAGE, amount) from e

    if not amount_dec.is_finite() or amount_dec <= 0:
        raise InvalidAmountError(INVALID_AMOUNT_MESSAGE, amount)

    return amount_dec


def validate_address(address: str) -> str:
    """
    Validate Ethereum address.

    Args:
        address: Ethereum address

    Returns:
        Checksummed address

    Raises:
        ValidationError: If address is invalid
    """
    if not isinstance(address, str) or not is_address(address):
        raise ValidationError(f"Invalid Ethereum address: {address}")

    return to_checksum_address(address)


def validate_private_key(private_key: str) -> str:
    """
    Validate an Ethereum private key.

    Args:
        private_key: 32-byte hex key, with or without 0x

    Returns:
        Key with 0x prefix

    Raises:
        ValidationError: If the key is malformed (the key itself is never echoed)
    """
    if not isinstance(private_key, str) or not PRIVATE_KEY_PATTERN.match(private_key):
        raise ValidationError("Invalid private key format: expected 32-byte hex")

    return add_hex_prefix(private_key)


def validate_symbol(symbol: str) -> str:
    """Normalise a coin symbol to the lowercase form the exchange uses."""
    if not isinstance(symbol, str) or not symbol.strip():
        raise ValidationError(f"Invalid coin symbol: {symbol!r}")
    return symbol.strip().lower()


def strip_hex_prefix(value: str) -> str:
    """Remove a leading 0x / 0X."""
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def add_hex_prefix(value: str) -> str:
    """Ensure a leading 0x."""
    return "0x" + strip_hex_prefix(value)


def drop_leading_zero_prefix(value: str) -> str:
    """Rewrite ``0x0...`` to ``0x...`` (one zero nibble), as the deposit endpoints expect."""
    if value[:3] in ("0x0", "0X0"):
        return "0x" + value[3:]
    return value
