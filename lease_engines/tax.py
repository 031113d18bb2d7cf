"""
Tax Rule Engine - GST and TDS rules for commercial leases.

Indian GST on rent is either intra-state (CGST + SGST) or inter-state
(IGST), never both. TDS is withheld from the rent at a flat percentage.
Pure functions with no I/O - all inputs provided as parameters.

Usage:
    from decimal import Decimal
    from lease_engines.tax import GstComponent, GstRates, TaxRuleEngine

    engine = TaxRuleEngine()
    rates = engine.set_cgst_sgst(GstRates(), GstComponent.CGST, "9")
    rates = engine.set_cgst_sgst(rates, GstComponent.SGST, "9")
    engine.gst_amount(rates, Decimal("1500000"), applicable=True)
    # Decimal("270000")

    rates = engine.set_igst(rates, "18")   # clears CGST and SGST
    rates.mode                             # TaxMode.IGST
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from lease_kernel.domain.values import ZERO, coerce_amount, percent_of
from lease_kernel.logging_config import get_logger

logger = get_logger("engines.tax")


class TaxMode(str, Enum):
    """Which side of the GST split is in force."""

    NONE = "none"
    CGST_SGST = "cgst_sgst"  # intra-state
    IGST = "igst"  # inter-state


class GstComponent(str, Enum):
    """The two halves of intra-state GST."""

    CGST = "cgst"
    SGST = "sgst"


@dataclass(frozen=True)
class GstRates:
    """
    GST percentages for one agreement.

    Immutable value object. Percentages are whole-number percents
    (``Decimal("9")`` for 9%).
    """

    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    igst: Decimal = ZERO

    def __post_init__(self) -> None:
        for name in ("cgst", "sgst", "igst"):
            if getattr(self, name) < ZERO:
                raise ValueError(f"{name} percentage cannot be negative")

    @property
    def mode(self) -> TaxMode:
        if self.igst > ZERO:
            return TaxMode.IGST
        if self.cgst > ZERO or self.sgst > ZERO:
            return TaxMode.CGST_SGST
        return TaxMode.NONE

    @property
    def total(self) -> Decimal:
        """Combined GST percent (only one side is ever non-zero)."""
        return self.cgst + self.sgst + self.igst

    @property
    def is_exclusive(self) -> bool:
        """True when at most one side of the split is non-zero."""
        intra = self.cgst > ZERO or self.sgst > ZERO
        return not (intra and self.igst > ZERO)


class TaxRuleEngine:
    """
    Apply GST/TDS rules.

    Pure functions - no I/O. Conflicting input is never rejected: writing
    one side of the GST split clears the other, so the later write wins.
    """

    def set_cgst_sgst(
        self,
        rates: GstRates,
        which: GstComponent | str,
        value: Any,
    ) -> GstRates:
        """
        Set CGST or SGST and force IGST to zero.

        Args:
            rates: Current rates
            which: ``GstComponent.CGST`` or ``GstComponent.SGST``
            value: New percent (coerced; invalid input becomes 0)

        Returns:
            New GstRates with IGST cleared
        """
        component = GstComponent(which)
        percent = coerce_amount(value)

        if rates.igst > ZERO:
            logger.info("tax_mode_switched", extra={
                "from_mode": TaxMode.IGST.value,
                "to_mode": TaxMode.CGST_SGST.value,
                "cleared_igst": str(rates.igst),
            })

        if component is GstComponent.CGST:
            return GstRates(cgst=percent, sgst=rates.sgst, igst=ZERO)
        return GstRates(cgst=rates.cgst, sgst=percent, igst=ZERO)

    def set_igst(self, rates: GstRates, value: Any) -> GstRates:
        """Set IGST and force both CGST and SGST to zero."""
        percent = coerce_amount(value)

        if rates.cgst > ZERO or rates.sgst > ZERO:
            logger.info("tax_mode_switched", extra={
                "from_mode": TaxMode.CGST_SGST.value,
                "to_mode": TaxMode.IGST.value,
                "cleared_cgst": str(rates.cgst),
                "cleared_sgst": str(rates.sgst),
            })

        return GstRates(cgst=ZERO, sgst=ZERO, igst=percent)

    def gst_amount(
        self,
        rates: GstRates,
        basic_rent: Decimal,
        applicable: bool,
    ) -> Decimal:
        """
        GST payable on the basic rent.

        ``(cgst + sgst + igst) * basic_rent / 100`` when applicable, else 0.
        """
        if not applicable:
            return ZERO
        return percent_of(rates.total, basic_rent)

    def tds_amount(
        self,
        tds_percent: Decimal,
        basic_rent: Decimal,
        applicable: bool,
    ) -> Decimal:
        """Tax deducted at source: ``tds_percent * basic_rent / 100`` or 0."""
        if not applicable:
            return ZERO
        return percent_of(tds_percent, basic_rent)

    def reconcile(self, rates: GstRates) -> GstRates:
        """
        Restore exclusivity on rates that arrived with both sides set.

        Applies the fields in form order (CGST, SGST, IGST), so a non-zero
        IGST wins.
        """
        if rates.is_exclusive:
            return rates
        logger.warning("gst_split_conflict_reconciled", extra={
            "cgst": str(rates.cgst),
            "sgst": str(rates.sgst),
            "igst": str(rates.igst),
        })
        return self.set_igst(rates, rates.igst)
