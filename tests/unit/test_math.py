"""
tests/unit/test_math.py - Tests for core/math.py

Critical tests for:
- No-float enforcement
- Base unit conversions
- Percent change and mean
"""

import pytest
from decimal import Decimal

from core.math import (
    from_base_units,
    mean,
    percent_change,
    precise,
    require_positive,
    round_pct,
    safe_decimal,
    safe_int,
    to_base_units,
)
from core.exceptions import InvalidInputError


class TestNoFloatEnforcement:
    """Test that float values are rejected."""

    def test_safe_decimal_rejects_float(self):
        """safe_decimal must reject float input."""
        with pytest.raises(InvalidInputError) as exc_info:
            safe_decimal(1.5)
        assert "Float values are not allowed" in str(exc_info.value)

    def test_safe_decimal_accepts_int(self):
        assert safe_decimal(100) == Decimal("100")

    def test_safe_decimal_accepts_str(self):
        assert safe_decimal(" 123.456 ") == Decimal("123.456")

    def test_safe_decimal_accepts_decimal(self):
        assert safe_decimal(Decimal("99.99")) == Decimal("99.99")

    def test_safe_decimal_rejects_bool(self):
        with pytest.raises(InvalidInputError):
            safe_decimal(True)

    @pytest.mark.parametrize("value", ["NaN", "Infinity", "-Infinity"])
    def test_safe_decimal_rejects_non_finite(self, value):
        with pytest.raises(InvalidInputError):
            safe_decimal(value)

    def test_safe_decimal_rejects_garbage(self):
        with pytest.raises(InvalidInputError) as exc_info:
            safe_decimal("abc", "amount")
        assert exc_info.value.details["field"] == "amount"

    def test_safe_int_rejects_float(self):
        with pytest.raises(InvalidInputError) as exc_info:
            safe_int(1.5)
        assert "Float values are not allowed" in str(exc_info.value)

    def test_safe_int_floors(self):
        assert safe_int("10.9") == 10
        assert safe_int("-10.1") == -11

    def test_safe_int_exact(self):
        assert safe_int("1000", exact=True) == 1000
        assert safe_int("7.000", exact=True) == 7
        with pytest.raises(InvalidInputError) as exc_info:
            safe_int("1.5", "amount", exact=True)
        assert exc_info.value.details == {"field": "amount", "value": "1.5"}


class TestRequirePositive:

    def test_positive(self):
        assert require_positive("0.5", "pct") == Decimal("0.5")

    @pytest.mark.parametrize("value", [0, "0", -3, "-0.01"])
    def test_rejects_non_positive(self, value):
        with pytest.raises(InvalidInputError) as exc_info:
            require_positive(value, "pct")
        assert "pct must be positive" in exc_info.value.message


class TestBaseUnits:

    def test_to_base_units(self):
        assert to_base_units("1.5", 6) == 1_500_000
        assert to_base_units(100, 18) == 100 * 10**18

    def test_to_base_units_floors(self):
        assert to_base_units("0.0000009", 6) == 0
        assert to_base_units("1.9999999", 6) == 1_999_999

    def test_zero_decimals(self):
        assert to_base_units("42.7", 0) == 42

    def test_from_base_units(self):
        assert from_base_units(1_000_000, 6) == Decimal("1")
        assert from_base_units(123, 2) == Decimal("1.23")

    @pytest.mark.parametrize("decimals", [-1, 256])
    def test_invalid_decimals(self, decimals):
        with pytest.raises(InvalidInputError):
            to_base_units(1, decimals)
        with pytest.raises(InvalidInputError):
            from_base_units(1, decimals)

    def test_uint256_precision(self):
        supply = 2**256 - 1
        assert to_base_units(from_base_units(supply, 18), 18) == supply


class TestStats:

    def test_percent_change(self):
        assert percent_change(Decimal("101"), Decimal("100")) == Decimal("1")
        assert percent_change(Decimal("99"), Decimal("100")) == Decimal("-1")

    def test_percent_change_from_zero(self):
        with pytest.raises(InvalidInputError):
            percent_change(Decimal("1"), Decimal("0"))

    def test_mean(self):
        assert mean([Decimal("1"), Decimal("2"), Decimal("6")]) == Decimal("3")

    def test_mean_empty(self):
        with pytest.raises(InvalidInputError):
            mean([])

    def test_round_pct(self):
        assert round_pct(Decimal("0.987648")) == Decimal("0.9876")
        assert round_pct(Decimal("1.5"), places=0) == Decimal("2")

    def test_precise_context(self):
        with precise():
            third = Decimal(1) / Decimal(3)
        assert len(third.as_tuple().digits) == 100
