"""
Tests for Rent Calculator.

Covers:
- Basic rent derivation from area and rate
- Coercion of invalid and negative inputs
- Full derivation chain (GST, TDS, total)
"""

from decimal import Decimal

import pytest

from lease_engines.rent import RentCalculator, RentFigures, RentInput
from lease_engines.tax import GstRates


class TestBasicRent:
    """Tests for basic rent derivation."""

    def setup_method(self):
        self.calculator = RentCalculator()

    def test_area_times_rate(self):
        """Basic rent is area multiplied by rate."""
        assert self.calculator.basic_rent("30000", "50") == Decimal("1500000")

    def test_fractional_inputs_not_rounded(self):
        """No rounding happens before formatting."""
        assert self.calculator.basic_rent("10.5", "3.333") == Decimal("34.9965")

    def test_float_inputs_use_shortest_repr(self):
        assert self.calculator.basic_rent(0.1, 3) == Decimal("0.3")

    @pytest.mark.parametrize("bad", ["", "abc", None, "NaN", "Infinity", "-5", -5])
    def test_invalid_area_is_zero(self, bad):
        """Non-numeric, non-finite and negative input becomes zero."""
        assert self.calculator.basic_rent(bad, "50") == Decimal("0")

    def test_result_never_negative_zero(self):
        result = self.calculator.basic_rent("-0", "50")
        assert result == Decimal("0")
        assert not result.is_signed()


class TestDerive:
    """Tests for the full derivation chain."""

    def setup_method(self):
        self.calculator = RentCalculator()

    def test_scenario_intra_state_with_tds(self):
        """30000 sq ft at 50 with 9+9 GST and 10% TDS."""
        figures = self.calculator.derive(
            area="30000",
            rate_per_area="50",
            rates=GstRates(cgst=Decimal("9"), sgst=Decimal("9")),
            gst_applicable=True,
            tds_percent=Decimal("10"),
            tds_applicable=True,
        )

        assert figures.basic_rent == Decimal("1500000")
        assert figures.gst_amount == Decimal("270000")
        assert figures.tds_amount == Decimal("150000")
        assert figures.total_monthly_rent == Decimal("1620000")

    def test_not_applicable_taxes_are_zero(self):
        figures = self.calculator.derive(
            area="100",
            rate_per_area="10",
            rates=GstRates(igst=Decimal("18")),
            gst_applicable=False,
            tds_percent=Decimal("10"),
            tds_applicable=False,
        )

        assert figures == RentFigures(
            basic_rent=Decimal("1000"),
            gst_amount=Decimal("0"),
            tds_amount=Decimal("0"),
        )
        assert figures.total_monthly_rent == Decimal("1000")

    def test_total_monthly_rent_helper(self):
        total = self.calculator.total_monthly_rent(
            Decimal("1000"), Decimal("180"), Decimal("100"),
        )
        assert total == Decimal("1080")


class TestRentInput:
    """Tests for the rent input selector."""

    def test_values(self):
        assert RentInput("area") is RentInput.AREA
        assert RentInput("rate_per_area") is RentInput.RATE_PER_AREA

    def test_unknown_input_rejected(self):
        with pytest.raises(ValueError):
            RentInput("deposit")
