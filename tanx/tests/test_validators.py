"""
Tests for input validation and unit conversion.
"""

from decimal import Decimal

import pytest

from tanx.exceptions import InvalidAmountError, ValidationError
from tanx.utils.numeric import (
    format_withdrawal_amount,
    from_base_units,
    to_base_units,
)
from tanx.utils.validators import (
    INVALID_AMOUNT_MESSAGE,
    add_hex_prefix,
    drop_leading_zero_prefix,
    strip_hex_prefix,
    validate_address,
    validate_amount,
    validate_private_key,
    validate_symbol,
)


class TestValidateAmount:
    """Test amount validation."""

    @pytest.mark.parametrize("value,expected", [
        (1, Decimal("1")),
        (0.0001, Decimal("0.0001")),
        ("0.0001", Decimal("0.0001")),
        (" 2.5 ", Decimal("2.5")),
        (Decimal("10"), Decimal("10")),
    ])
    def test_valid(self, value, expected):
        assert validate_amount(value) == expected

    @pytest.mark.parametrize("value", [
        0, -1, "0", "-0.5", "abc", "", None, True, False,
        float("nan"), float("inf"), "Infinity", [1],
    ])
    def test_invalid(self, value):
        with pytest.raises(InvalidAmountError) as exc_info:
            validate_amount(value)
        assert exc_info.value.message == INVALID_AMOUNT_MESSAGE

    def test_is_validation_error(self):
        with pytest.raises(ValidationError):
            validate_amount(0)


class TestValidateAddress:
    """Test Ethereum address validation."""

    def test_checksums(self):
        address = "0x713cf80b7c71440e7a09dede1ee23dcbf862fb66"
        assert validate_address(address) == "0x713Cf80b7c71440E7a09Dede1ee23dCBf862fB66"

    @pytest.mark.parametrize("value", ["0x123", "not-an-address", None])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            validate_address(value)


class TestValidatePrivateKey:
    """Test private key validation."""

    def test_adds_prefix(self):
        assert validate_private_key("a" * 64) == "0x" + "a" * 64

    def test_invalid_key_not_echoed(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_private_key("0x" + "g" * 64)
        assert "g" * 64 not in str(exc_info.value)


class TestSymbols:
    def test_lowercased(self):
        assert validate_symbol(" USDC ") == "usdc"

    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            validate_symbol(value)


class TestHexHelpers:
    def test_strip_and_add(self):
        assert strip_hex_prefix("0xab") == "ab"
        assert strip_hex_prefix("ab") == "ab"
        assert add_hex_prefix("ab") == "0xab"
        assert add_hex_prefix("0Xab") == "0xab"

    def test_drop_leading_zero_prefix(self):
        assert drop_leading_zero_prefix("0x0abc") == "0xabc"
        assert drop_leading_zero_prefix("0xabc") == "0xabc"


class TestUnits:
    """Test base-unit conversion."""

    def test_to_base_units_truncates(self):
        assert to_base_units(Decimal("1.0000009"), 6) == 1000000
        assert to_base_units(Decimal("0.0001"), 18) == 10 ** 14

    def test_from_base_units(self):
        assert from_base_units(100500000, 6) == Decimal("100.5")
        assert from_base_units(0, 6) == Decimal("0")

    def test_withdrawal_amount_eth_uses_wei(self):
        assert format_withdrawal_amount(10 ** 15, 8, "eth") == "0.001"

    def test_withdrawal_amount_token_decimals(self):
        assert format_withdrawal_amount(2500000, 6, "usdc") == "2.5"
        assert format_withdrawal_amount(0, 6, "usdc") == "0"
