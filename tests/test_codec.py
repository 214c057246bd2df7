"""
Unit tests for the fixed-point amount codec.
"""

import pytest

from wallet_ledger.core.codec import (
    MAX_SAFE_AMOUNT,
    InvalidFormat,
    is_decimal_amount,
    max_safe_units,
    to_decimal_string,
    to_smallest_units,
)


class TestToSmallestUnits:
    """Test parsing decimal strings into smallest units."""

    def test_one_satoshi(self):
        """Test the smallest representable amount."""
        assert to_smallest_units("0.00000001", 8) == 1

    def test_whole_and_fraction(self):
        """Test amounts with whole and fractional parts."""
        assert to_smallest_units("1.5", 8) == 150_000_000
        assert to_smallest_units("0.00001", 8) == 1000
        assert to_smallest_units("12.34567891", 8) == 1_234_567_891

    def test_integer_amount(self):
        """Test amounts without a decimal point."""
        assert to_smallest_units("5", 8) == 500_000_000
        assert to_smallest_units("0", 8) == 0

    def test_zero_decimals(self):
        """Test tokens without fractional digits."""
        assert to_smallest_units("42", 0) == 42
        with pytest.raises(InvalidFormat):
            to_smallest_units("4.2", 0)

    def test_too_many_decimals_rejected(self):
        """Test that excess precision is rejected rather than rounded."""
        with pytest.raises(InvalidFormat):
            to_smallest_units("0.000000001", 8)

    def test_trailing_zeros_within_precision(self):
        """Test that trailing zeros up to the precision are accepted."""
        assert to_smallest_units("1.00000000", 8) == 100_000_000

    def test_max_safe_amount(self):
        """Test the largest amount the front-end accepts."""
        assert to_smallest_units(MAX_SAFE_AMOUNT, 8) == 99_999_999_999_999_999

    def test_max_safe_units_by_precision(self):
        """Test the safe limit scaled to other precisions."""
        assert max_safe_units(8) == 99_999_999_999_999_999
        assert max_safe_units(2) == 99_999_999_999
        assert max_safe_units(0) == 999_999_999
        assert max_safe_units(18) == 999_999_999_999_999_990_000_000_000

    def test_large_amounts_are_exact(self):
        """Test that amounts beyond float precision stay exact."""
        assert to_smallest_units("123456789012345.12345678", 8) == 12_345_678_901_234_512_345_678

    @pytest.mark.parametrize("text", [
        "", " 1", "1 ", "-1", "+1", "1.", ".5", "1e5", "1,000", "abc", "1.2.3", "0x10", "١",
    ])
    def test_malformed_input_rejected(self, text):
        """Test that anything but a plain non-negative numeral is rejected."""
        with pytest.raises(InvalidFormat):
            to_smallest_units(text, 8)

    def test_non_string_rejected(self):
        """Test that floats never enter the codec."""
        with pytest.raises(InvalidFormat):
            to_smallest_units(0.1, 8)

    def test_invalid_format_is_value_error(self):
        """Test that codec errors can be caught as ValueError."""
        with pytest.raises(ValueError):
            to_smallest_units("bad", 8)

    def test_negative_decimals_rejected(self):
        """Test that negative precision is a programming error."""
        with pytest.raises(ValueError):
            to_smallest_units("1", -1)


class TestToDecimalString:
    """Test formatting smallest units."""

    def test_zero_padded(self):
        """Test that output always carries every fractional digit."""
        assert to_decimal_string(0, 8) == "0.00000000"
        assert to_decimal_string(1, 8) == "0.00000001"
        assert to_decimal_string(150_000_000, 8) == "1.50000000"

    def test_zero_decimals(self):
        """Test formatting without a decimal point."""
        assert to_decimal_string(42, 0) == "42"

    def test_negative_rejected(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(InvalidFormat):
            to_decimal_string(-1, 8)

    def test_non_integer_rejected(self):
        """Test that only integers are formatted."""
        with pytest.raises(InvalidFormat):
            to_decimal_string(1.0, 8)
        with pytest.raises(InvalidFormat):
            to_decimal_string(True, 8)

    def test_formatted_value_parses_back(self):
        """Test that formatted output is accepted by the parser."""
        assert to_smallest_units(to_decimal_string(123_456_789, 8), 8) == 123_456_789


class TestIsDecimalAmount:
    """Test the boolean amount check."""

    def test_valid_and_invalid(self):
        """Test both outcomes."""
        assert is_decimal_amount("0.5", 8)
        assert not is_decimal_amount("0.5.", 8)
        assert not is_decimal_amount("0.000000001", 8)
