"""
Tests for lease draft operations.

Covers:
- Rent recomputation on area / rate changes
- GST mutual exclusivity and toggles
- TDS recomputation
- Escalation, penalty and interest edits
- Pass-through fields
"""

from decimal import Decimal

import pytest

from lease_engines.escalation import EscalationType
from lease_engines.tax import TaxMode
from lease_modules.agreement import operations as ops
from lease_modules.agreement.models import LeaseDraft


def _scenario_draft() -> LeaseDraft:
    draft = ops.recompute_basic_rent(LeaseDraft(), "area", "30000")
    draft = ops.recompute_basic_rent(draft, "rate_per_area", "50")
    draft = ops.set_cgst_sgst(draft, "cgst", "9")
    draft = ops.set_cgst_sgst(draft, "sgst", "9")
    draft = ops.set_gst_applicable(draft, True)
    draft = ops.set_tds_applicable(draft, True)
    return ops.set_tds_percent(draft, "10")


class TestRentRecompute:
    """Tests for area and rate edits."""

    def test_scenario_figures(self):
        draft = _scenario_draft()

        assert draft.basic_rent == Decimal("1500000")
        assert draft.gst_amount == Decimal("270000")
        assert draft.tds_amount == Decimal("150000")
        assert draft.total_monthly_rent == Decimal("1620000")

    def test_area_change_rederives_taxes(self):
        draft = ops.recompute_basic_rent(_scenario_draft(), "area", "15000")

        assert draft.basic_rent == Decimal("750000")
        assert draft.gst_amount == Decimal("135000")
        assert draft.tds_amount == Decimal("75000")

    def test_invalid_input_becomes_zero(self):
        draft = ops.recompute_basic_rent(_scenario_draft(), "rate_per_area", "-50")

        assert draft.rate_per_area == Decimal("0")
        assert draft.basic_rent == Decimal("0")
        assert draft.total_monthly_rent == Decimal("0")

    def test_original_draft_untouched(self):
        draft = _scenario_draft()
        ops.recompute_basic_rent(draft, "area", "1")
        assert draft.area == Decimal("30000")


class TestGst:
    """Tests for GST edits on a draft."""

    def test_scenario_igst_after_cgst(self):
        """Setting IGST after CGST leaves cgst=0, sgst=0, igst=18."""
        draft = ops.set_cgst_sgst(LeaseDraft(), "cgst", "9")
        draft = ops.set_igst(draft, "18")

        assert draft.cgst_percent == Decimal("0")
        assert draft.sgst_percent == Decimal("0")
        assert draft.igst_percent == Decimal("18")
        assert draft.tax_mode is TaxMode.IGST

    def test_igst_recomputes_amount(self):
        draft = ops.set_igst(_scenario_draft(), "12")
        assert draft.gst_amount == Decimal("180000")

    def test_toggle_off_keeps_percents(self):
        draft = ops.set_gst_applicable(_scenario_draft(), False)

        assert draft.gst_amount == Decimal("0")
        assert draft.cgst_percent == Decimal("9")
        assert draft.sgst_percent == Decimal("9")

    def test_toggle_off_on_restores_amount(self):
        draft = _scenario_draft()
        restored = ops.set_gst_applicable(ops.set_gst_applicable(draft, False), True)
        assert restored.gst_amount == draft.gst_amount

    def test_percent_edit_while_off_keeps_zero_amount(self):
        draft = ops.set_gst_applicable(_scenario_draft(), False)
        draft = ops.set_igst(draft, "18")
        assert draft.gst_amount == Decimal("0")


class TestTds:
    """Tests for TDS edits."""

    def test_disable_zeroes_amount(self):
        draft = ops.set_tds_applicable(_scenario_draft(), False)
        assert draft.tds_amount == Decimal("0")
        assert draft.tds_percent == Decimal("10")

    def test_percent_change(self):
        draft = ops.set_tds_percent(_scenario_draft(), "2")
        assert draft.tds_amount == Decimal("30000")

    def test_percent_change_while_disabled(self):
        draft = ops.set_tds_applicable(_scenario_draft(), False)
        draft = ops.set_tds_percent(draft, "2")
        assert draft.tds_amount == Decimal("0")
        assert draft.tds_percent == Decimal("2")


class TestEscalationAndCharges:
    """Tests for escalation, penalty and interest edits."""

    def test_projected_rent_is_display_only(self):
        draft = ops.set_escalation(_scenario_draft(), percent="5")

        assert ops.projected_rent(draft) == Decimal("1575000")
        assert draft.basic_rent == Decimal("1500000")

    def test_set_escalation(self):
        draft = ops.set_escalation(LeaseDraft(), type="quarterly", interval_count="0")
        assert draft.escalation.type is EscalationType.QUARTERLY
        assert draft.escalation.interval_count == 1

    def test_penalty_and_interest(self):
        draft = ops.set_penalty(LeaseDraft(), enabled=True, percent="2")
        draft = ops.set_interest(draft, enabled=True, percent="1.5")
        draft = ops.set_penalty(draft, enabled=False)

        assert draft.penalty.percent == Decimal("2")
        assert not draft.penalty.enabled
        assert draft.interest.percent_per_month == Decimal("1.5")


class TestPassThrough:
    """Tests for pass-through field edits."""

    def test_set_field_coerces(self):
        draft = ops.set_field(
            LeaseDraft(),
            security_deposit="-10",
            rent_due_day="5th",
            lock_in_period_days="365",
            tenant_id="",
            amenity_ids=[1, "", 3],
        )

        assert draft.security_deposit == Decimal("0")
        assert draft.rent_due_day == 5
        assert draft.lock_in_period_days == 365
        assert draft.tenant_id is None
        assert draft.amenity_ids == (1, 3)

    def test_rent_due_day_out_of_range(self):
        assert ops.set_field(LeaseDraft(), rent_due_day="45").rent_due_day == 1

    def test_derived_fields_not_settable(self):
        with pytest.raises(ValueError, match="basic_rent"):
            ops.set_field(LeaseDraft(), basic_rent="100")

    def test_notice_terms(self):
        draft = ops.set_notice_terms(LeaseDraft(), from_landlord_days="90", additional_notes="n/a")
        assert draft.notice_terms.from_landlord_days == 90
        assert draft.notice_terms.additional_notes == "n/a"

    def test_signing_authority(self):
        draft = ops.set_signing_authority(LeaseDraft(), name="Asha", phone="9876543210")
        assert draft.signing_authority.name == "Asha"
        assert draft.signing_authority.phone == "9876543210"

    def test_unknown_signing_authority_field(self):
        with pytest.raises(ValueError):
            ops.set_signing_authority(LeaseDraft(), identity=4)
