"""Tests for currency conversion helpers."""

from decimal import Decimal

from fulfillment.utils.money import as_float, from_minor_units, quantize, to_minor_units


class TestToMinorUnits:
    def test_whole_naira(self):
        assert to_minor_units(11000) == 1_100_000

    def test_fractional_amount(self):
        assert to_minor_units(110.5) == 11_050

    def test_float_artefacts_do_not_leak(self):
        assert to_minor_units(0.1 + 0.2) == 30

    def test_rounds_half_up(self):
        assert to_minor_units(Decimal("19.995")) == 2000
        assert to_minor_units(Decimal("0.005")) == 1

    def test_decimal_string_input(self):
        assert to_minor_units("9999.99") == 999_999


class TestRounding:
    def test_quantize_half_up(self):
        assert quantize(Decimal("10.005")) == Decimal("10.01")
        assert quantize(Decimal("10.004")) == Decimal("10.00")

    def test_from_minor_units(self):
        assert from_minor_units(1_100_000) == Decimal("11000.00")
        assert from_minor_units(5) == Decimal("0.05")

    def test_as_float(self):
        assert as_float(Decimal("1000.456")) == 1000.46
