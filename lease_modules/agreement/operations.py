"""
Lease draft operations -- the closed set of named edits.

Every function takes a ``LeaseDraft`` and returns a new one; nothing is
mutated. Monetary inputs are coerced (invalid or negative input becomes
zero) and every change to area, rate or a tax input re-runs the rent
derivation chain, so derived figures are always consistent with inputs.

    recompute_basic_rent   area / rate changed
    set_cgst_sgst          CGST or SGST changed (clears IGST)
    set_igst               IGST changed (clears CGST and SGST)
    set_gst_applicable     GST toggled
    set_tds_applicable     TDS toggled
    set_tds_percent        TDS percent changed
    set_escalation         escalation type / interval / percent
    set_penalty            late penalty
    set_interest           late interest
    set_field              pass-through fields
    set_notice_terms       notice terms
    set_signing_authority  signing authority
    rederive               re-run the whole chain (after mapping)
"""

from dataclasses import replace
from decimal import Decimal
from typing import Any, Callable

from lease_engines.rent import RentCalculator, RentInput
from lease_engines.tax import GstComponent, GstRates, TaxRuleEngine
from lease_kernel.domain.values import (
    coerce_amount,
    coerce_identity,
    coerce_int,
    coerce_text,
)
from lease_kernel.logging_config import get_logger
from lease_modules.agreement.models import LeaseDraft, NoticeTerms, SigningAuthority

logger = get_logger("modules.agreement.operations")

_tax = TaxRuleEngine()
_rent = RentCalculator(_tax)


def _rent_due_day(value: Any) -> int:
    return coerce_int(value, default=1, low=1, high=31)


def _days(value: Any) -> int:
    return coerce_int(value, default=0)


def _identities(value: Any) -> tuple:
    if value is None:
        return ()
    if isinstance(value, (str, int)):
        value = [value]
    return tuple(v for v in (coerce_identity(item) for item in value) if v is not None)


PASS_THROUGH_FIELDS: dict[str, Callable[[Any], Any]] = {
    "circle_id": coerce_identity,
    "property_id": coerce_identity,
    "tenant_id": coerce_identity,
    "status": coerce_text,
    "agreement_type": coerce_text,
    "start_date": coerce_text,
    "end_date": coerce_text,
    "agreement_sign_off_date": coerce_text,
    "rent_commencement_date": coerce_text,
    "security_deposit": coerce_amount,
    "maintenance_charges": coerce_amount,
    "rent_due_day": _rent_due_day,
    "rent_due_type": coerce_text,
    "purpose_of_agreement": coerce_text,
    "stamp_duty_sharing": coerce_text,
    "sap_number": coerce_text,
    "rent_free_period_days": _days,
    "lock_in_period_days": _days,
    "property_takeover_condition_id": coerce_identity,
    "amenity_ids": _identities,
}

_NOTICE_FIELDS: dict[str, Callable[[Any], Any]] = {
    "from_landlord_days": _days,
    "from_vil_days": _days,
    "termination_rights_lessee": coerce_text,
    "termination_rights_lessor": coerce_text,
    "handover_condition": coerce_text,
    "property_type": coerce_text,
    "additional_notes": coerce_text,
}

_AUTHORITY_FIELDS = ("name", "designation", "email", "phone")


def _coerce_changes(
    changes: dict[str, Any],
    allowed: dict[str, Callable[[Any], Any]],
    what: str,
) -> dict[str, Any]:
    unknown = sorted(set(changes) - set(allowed))
    if unknown:
        raise ValueError(f"Unknown {what} field(s): {', '.join(unknown)}")
    return {name: allowed[name](value) for name, value in changes.items()}


def _with_rates(draft: LeaseDraft, rates: GstRates) -> LeaseDraft:
    return replace(
        draft,
        cgst_percent=rates.cgst,
        sgst_percent=rates.sgst,
        igst_percent=rates.igst,
    )


def rederive(draft: LeaseDraft) -> LeaseDraft:
    """Recompute basic rent, GST and TDS from the draft's own inputs."""
    figures = _rent.derive(
        area=draft.area,
        rate_per_area=draft.rate_per_area,
        rates=draft.gst_rates,
        gst_applicable=draft.gst_applicable,
        tds_percent=draft.tds_percent,
        tds_applicable=draft.tds_applicable,
    )
    return replace(
        draft,
        basic_rent=figures.basic_rent,
        gst_amount=figures.gst_amount,
        tds_amount=figures.tds_amount,
    )


def recompute_basic_rent(
    draft: LeaseDraft,
    changed_field: RentInput | str,
    value: Any,
) -> LeaseDraft:
    """Set area or rate per area, then re-derive rent, GST and TDS."""
    which = RentInput(changed_field)
    amount = coerce_amount(value)
    if which is RentInput.AREA:
        draft = replace(draft, area=amount)
    else:
        draft = replace(draft, rate_per_area=amount)
    return rederive(draft)


def set_cgst_sgst(draft: LeaseDraft, which: GstComponent | str, value: Any) -> LeaseDraft:
    """Set CGST or SGST; IGST is forced to zero."""
    rates = _tax.set_cgst_sgst(draft.gst_rates, which, value)
    return rederive(_with_rates(draft, rates))


def set_igst(draft: LeaseDraft, value: Any) -> LeaseDraft:
    """Set IGST; CGST and SGST are forced to zero."""
    rates = _tax.set_igst(draft.gst_rates, value)
    return rederive(_with_rates(draft, rates))


def set_gst_applicable(draft: LeaseDraft, flag: bool) -> LeaseDraft:
    """Toggle GST. Percentages are kept while GST is off."""
    return rederive(replace(draft, gst_applicable=bool(flag)))


def set_tds_applicable(draft: LeaseDraft, flag: bool) -> LeaseDraft:
    return rederive(replace(draft, tds_applicable=bool(flag)))


def set_tds_percent(draft: LeaseDraft, value: Any) -> LeaseDraft:
    return rederive(replace(draft, tds_percent=coerce_amount(value)))


def projected_rent(draft: LeaseDraft) -> Decimal:
    """Basic rent after one escalation. Display only."""
    return draft.escalation.projected_rent(draft.basic_rent)


def set_escalation(
    draft: LeaseDraft,
    type: Any = None,
    interval_count: Any = None,
    percent: Any = None,
) -> LeaseDraft:
    escalation = draft.escalation.with_changes(
        type=type,
        interval_count=interval_count,
        percent=percent,
    )
    return replace(draft, escalation=escalation)


def set_penalty(draft: LeaseDraft, enabled: bool | None = None, percent: Any = None) -> LeaseDraft:
    return replace(draft, penalty=draft.penalty.with_changes(enabled=enabled, percent=percent))


def set_interest(draft: LeaseDraft, enabled: bool | None = None, percent: Any = None) -> LeaseDraft:
    return replace(draft, interest=draft.interest.with_changes(enabled=enabled, percent=percent))


def set_field(draft: LeaseDraft, **changes: Any) -> LeaseDraft:
    """
    Set pass-through fields.

    Derived and tax fields are not accepted here; use the named
    operations above so the derivation chain runs.

    Raises:
        ValueError: If a field name is not a pass-through field.
    """
    return replace(draft, **_coerce_changes(changes, PASS_THROUGH_FIELDS, "lease"))


def set_notice_terms(draft: LeaseDraft, **changes: Any) -> LeaseDraft:
    terms: NoticeTerms = replace(
        draft.notice_terms,
        **_coerce_changes(changes, _NOTICE_FIELDS, "notice terms"),
    )
    return replace(draft, notice_terms=terms)


def set_signing_authority(draft: LeaseDraft, **changes: Any) -> LeaseDraft:
    allowed = {name: coerce_text for name in _AUTHORITY_FIELDS}
    authority: SigningAuthority = replace(
        draft.signing_authority,
        **_coerce_changes(changes, allowed, "signing authority"),
    )
    return replace(draft, signing_authority=authority)
