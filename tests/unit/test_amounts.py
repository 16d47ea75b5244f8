"""Tests for minor-unit conversion (gl_kernel/db/types.py)."""

from decimal import Decimal

import pytest

from gl_kernel.db.types import from_minor_units, round_money, to_minor_units
from gl_kernel.exceptions import InvalidAmountError, ValidationError


class TestToMinorUnits:
    @pytest.mark.parametrize(
        "amount, expected",
        [
            (Decimal("100.00"), 10000),
            (Decimal("0.01"), 1),
            ("12.5", 1250),
            (7, 700),
            ("0", 0),
            (Decimal("1E+2"), 10000),
        ],
    )
    def test_exact_conversion(self, amount, expected):
        assert to_minor_units(amount) == expected

    def test_zero_places(self):
        assert to_minor_units("1500", places=0) == 1500

    def test_three_places(self):
        assert to_minor_units("1.234", places=3) == 1234

    def test_float_rejected(self):
        with pytest.raises(InvalidAmountError, match="floating point"):
            to_minor_units(100.0)

    def test_bool_rejected(self):
        with pytest.raises(InvalidAmountError):
            to_minor_units(True)

    def test_negative_rejected(self):
        with pytest.raises(InvalidAmountError, match="non-negative"):
            to_minor_units(Decimal("-1.00"))

    def test_over_precise_rejected(self):
        with pytest.raises(InvalidAmountError, match="decimal places") as exc_info:
            to_minor_units(Decimal("10.005"))
        assert exc_info.value.amount == "10.005"

    @pytest.mark.parametrize("amount", ["abc", "", "NaN", "Infinity"])
    def test_not_a_number_rejected(self, amount):
        with pytest.raises(InvalidAmountError):
            to_minor_units(amount)

    def test_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            to_minor_units(1.5)


class TestFromMinorUnits:
    def test_quantized_to_places(self):
        assert str(from_minor_units(1050)) == "10.50"

    def test_zero(self):
        assert str(from_minor_units(0)) == "0.00"

    def test_negative_balances_render(self):
        assert from_minor_units(-2500) == Decimal("-25.00")

    def test_zero_places(self):
        assert from_minor_units(42, places=0) == Decimal("42")


class TestRoundMoney:
    def test_half_up(self):
        assert round_money(Decimal("33.335")) == Decimal("33.34")

    def test_split_then_convert(self):
        third = round_money(Decimal("100.00") / 3)
        assert to_minor_units(third) == 3333
