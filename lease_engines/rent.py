"""
Rent Calculator - derive rent figures from area and rate inputs.

Pure functions with deterministic behavior. No I/O.

    basic_rent         = area * rate_per_area
    gst_amount         = (cgst + sgst + igst) * basic_rent / 100   (if GST applies)
    tds_amount         = tds_percent * basic_rent / 100            (if TDS applies)
    total_monthly_rent = basic_rent + gst_amount - tds_amount

No rounding happens here; figures are rounded once, when formatted for
the wire.

Usage:
    from lease_engines.rent import RentCalculator
    from lease_engines.tax import GstRates

    figures = RentCalculator().derive(
        area="30000",
        rate_per_area="50",
        rates=GstRates(cgst=Decimal("9"), sgst=Decimal("9")),
        gst_applicable=True,
        tds_percent=Decimal("10"),
        tds_applicable=True,
    )
    figures.total_monthly_rent  # Decimal("1620000")
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from lease_engines.tax import GstRates, TaxRuleEngine
from lease_kernel.domain.values import coerce_amount
from lease_kernel.logging_config import get_logger

logger = get_logger("engines.rent")


class RentInput(str, Enum):
    """Primitive inputs that basic rent is derived from."""

    AREA = "area"
    RATE_PER_AREA = "rate_per_area"


@dataclass(frozen=True)
class RentFigures:
    """Derived monetary figures for one lease. Immutable."""

    basic_rent: Decimal
    gst_amount: Decimal
    tds_amount: Decimal

    @property
    def total_monthly_rent(self) -> Decimal:
        return self.basic_rent + self.gst_amount - self.tds_amount


class RentCalculator:
    """
    Derive basic rent, GST and TDS.

    Invalid or negative inputs are treated as 0 before multiplication,
    so results are never NaN or negative.
    """

    def __init__(self, tax_engine: TaxRuleEngine | None = None):
        self._tax = tax_engine or TaxRuleEngine()

    def basic_rent(self, area: Any, rate_per_area: Any) -> Decimal:
        return coerce_amount(area) * coerce_amount(rate_per_area)

    def total_monthly_rent(
        self,
        basic_rent: Decimal,
        gst_amount: Decimal,
        tds_amount: Decimal,
    ) -> Decimal:
        return basic_rent + gst_amount - tds_amount

    def derive(
        self,
        area: Any,
        rate_per_area: Any,
        rates: GstRates,
        gst_applicable: bool,
        tds_percent: Decimal,
        tds_applicable: bool,
    ) -> RentFigures:
        """
        Run the full derivation chain: basic rent, then GST, then TDS.

        Returns:
            RentFigures for the given inputs
        """
        basic = self.basic_rent(area, rate_per_area)
        figures = RentFigures(
            basic_rent=basic,
            gst_amount=self._tax.gst_amount(rates, basic, gst_applicable),
            tds_amount=self._tax.tds_amount(tds_percent, basic, tds_applicable),
        )

        logger.debug("rent_figures_derived", extra={
            "basic_rent": str(figures.basic_rent),
            "gst_amount": str(figures.gst_amount),
            "tds_amount": str(figures.tds_amount),
            "total_monthly_rent": str(figures.total_monthly_rent),
        })

        return figures
