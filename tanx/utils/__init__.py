"""Utility modules for the tanX client."""

from .validators import validate_amount, validate_address, validate_private_key, validate_symbol
from .coins import resolve_home_coin, resolve_cross_chain_coin, native_currency

__all__ = [
    "validate_amount",
    "validate_address",
    "validate_private_key",
    "validate_symbol",
    "resolve_home_coin",
    "resolve_cross_chain_coin",
    "native_currency",
]
