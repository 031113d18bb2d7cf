"""
AggregateBuilder -- renders a ``LeaseDraft`` into the composite wire payload.

Responsibility
--------------
Validates the draft (signing-authority email and phone, required custom
fields) and, only if it is valid, composes the single ``{"lease": {...}}``
record the remote store accepts for create and update, including the
nested ``*_attributes`` arrays for child rows.

Architecture position
---------------------
**Modules layer** -- pure transformation, no I/O.  The clock and the
document encoder are injected; the transport that sends the payload lives
outside this package.

Invariants enforced
-------------------
* Validation runs before any payload exists; a failing draft produces no
  payload at all.
* Money is a fixed-point string rounded once with ``ROUND_HALF_UP``.
  Area, rates and percents are padded to two places but never rounded.
  Integers stay integers.
* ``BuildMode.CREATE`` emits no identity and no destroy marker anywhere.
* ``documents`` appears only when a new file is attached.

Failure modes
-------------
* ``InvalidSigningAuthorityEmailError`` -- non-empty malformed email.
* ``InvalidSigningAuthorityPhoneError`` -- non-empty phone that is not
  exactly ``phone_digits`` ASCII digits.
* ``MissingCustomFieldError`` -- an active, required custom field is blank.
"""

import base64
from collections.abc import Callable, Iterable
from typing import Any

from lease_kernel.domain.clock import Clock, SystemClock
from lease_kernel.domain.values import format_fixed, format_measure
from lease_kernel.exceptions import (
    InvalidSigningAuthorityEmailError,
    InvalidSigningAuthorityPhoneError,
    LeaseValidationError,
    MissingCustomFieldError,
)
from lease_kernel.logging_config import get_logger
from lease_modules.agreement.config import LeaseConfig
from lease_modules.agreement.models import (
    AgreementDocument,
    BuildMode,
    CustomFieldDef,
    LeaseDraft,
    is_blank,
    serialize_custom_value,
)

logger = get_logger("modules.agreement.builder")

DocumentEncoder = Callable[[AgreementDocument], str]


def data_url_encoder(document: AgreementDocument) -> str:
    """Encode a file as a base64 data URL (``data:<type>;base64,<data>``)."""
    encoded = base64.b64encode(document.content).decode("ascii")
    return f"data:{document.content_type};base64,{encoded}"


class AggregateBuilder:
    """
    Compose the lease wire payload from a draft.

    Contract:
        ``build(draft, mode)`` returns ``{"lease": {...}}`` or raises a
        ``LeaseValidationError`` subclass.
    Guarantees:
        The draft is never modified. Two builds of the same draft with the
        same clock reading are equal.
    Non-goals:
        Server-side validation, transport, retries.
    """

    def __init__(
        self,
        config: LeaseConfig | None = None,
        clock: Clock | None = None,
        encoder: DocumentEncoder | None = None,
        field_schema: Iterable[CustomFieldDef] = (),
    ):
        self._config = config or LeaseConfig.with_defaults()
        self._clock = clock or SystemClock()
        self._encoder = encoder or data_url_encoder
        self._field_schema = tuple(field_schema)

    @property
    def field_schema(self) -> tuple[CustomFieldDef, ...]:
        return self._field_schema

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, draft: LeaseDraft) -> None:
        """Check email, then phone, then required custom fields."""
        authority = draft.signing_authority
        if authority.email and not self._config.email_regex.fullmatch(authority.email):
            raise InvalidSigningAuthorityEmailError(authority.email)
        if authority.phone and not self._config.phone_regex.fullmatch(authority.phone):
            raise InvalidSigningAuthorityPhoneError(
                authority.phone, self._config.phone_digits,
            )
        for definition in self._field_schema:
            if not (definition.active and definition.required):
                continue
            if is_blank(draft.custom_fields.get(definition.name)):
                raise MissingCustomFieldError(definition.name)

    # ------------------------------------------------------------------
    # Payload
    # ------------------------------------------------------------------

    def build(self, draft: LeaseDraft, mode: BuildMode | str) -> dict[str, Any]:
        """
        Validate the draft and render it for ``mode``.

        Raises:
            LeaseValidationError: Before any payload is produced.
        """
        mode = BuildMode(mode)
        logger.info("lease_payload_build_started", extra={
            "mode": mode.value,
            "lease_id": draft.lease_id,
        })

        try:
            self.validate(draft)
        except LeaseValidationError as exc:
            logger.warning("lease_payload_build_rejected", extra={
                "mode": mode.value,
                "error_code": exc.code,
                "field": exc.field,
            })
            raise

        update = mode is BuildMode.UPDATE
        lease: dict[str, Any] = {}
        if update and draft.lease_id is not None:
            lease["id"] = draft.lease_id
        lease.update(self._lease_fields(draft))
        lease["notice_terms"] = self._notice_terms(draft)
        lease["signing_authorities_attributes"] = [
            self._signing_authority(draft, update),
        ]
        lease["parkings_attributes"] = draft.parkings.to_wire_payload(
            include_identities=update,
        )
        lease["agreement_services_attributes"] = draft.services.to_wire_payload(
            include_identities=update,
        )
        lease["custom_fields"] = {
            name: serialize_custom_value(value)
            for name, value in draft.custom_fields.items()
        }
        if draft.document is not None:
            lease["documents"] = [self._document(draft.document)]

        logger.info("lease_payload_build_completed", extra={
            "mode": mode.value,
            "lease_id": draft.lease_id,
            "parkings": len(lease["parkings_attributes"]),
            "agreement_services": len(lease["agreement_services_attributes"]),
            "pending_deletions": (
                len(draft.deleted_parking_ids) + len(draft.deleted_service_ids)
                if update else 0
            ),
            "has_document": draft.document is not None,
        })

        return {"lease": lease}

    def _lease_fields(self, draft: LeaseDraft) -> dict[str, Any]:
        escalation = draft.escalation
        return {
            "circle_id": draft.circle_id,
            "tenant_id": draft.tenant_id,
            "property_id": draft.property_id,
            "start_date": draft.start_date,
            "end_date": draft.end_date,
            "status": draft.status,
            "lease_type": self._config.lease_type,
            "terms_conditions": draft.agreement_type,
            "basic_rent": format_fixed(draft.basic_rent),
            "monthly_rent": format_fixed(draft.total_monthly_rent),
            "rate_per_sqft": format_measure(draft.rate_per_area),
            "security_deposit": format_fixed(draft.security_deposit),
            "charges": format_fixed(draft.maintenance_charges),
            "gst_applicable": draft.gst_applicable,
            "cgst_percentage": format_measure(draft.cgst_percent),
            "sgst_percentage": format_measure(draft.sgst_percent),
            "igst_percentage": format_measure(draft.igst_percent),
            "gst_amount": format_fixed(draft.gst_amount),
            "tds_applicable": draft.tds_applicable,
            "tds_percentage": format_measure(draft.tds_percent),
            "tds_amount": format_fixed(draft.tds_amount),
            "annual_escalation_percentage": format_measure(escalation.percent),
            "escalation_type": escalation.type.value,
            "escalation_interval": escalation.interval_count,
            "penalty_applicable": draft.penalty.enabled,
            "penalty_percentage": format_measure(draft.penalty.percent),
            "late_fee_percentage": format_measure(draft.penalty.percent),
            "interest_applicable": draft.interest.enabled,
            "interest_percentage": format_measure(draft.interest.percent_per_month),
            "rent_due_date": draft.rent_due_day,
            "rent_due_type": draft.rent_due_type or self._config.default_rent_due_type,
            "purpose_of_agreement": draft.purpose_of_agreement,
            "stamp_duty_sharing": draft.stamp_duty_sharing,
            "agreement_sign_off_date": draft.agreement_sign_off_date,
            "rent_commencement_date": draft.rent_commencement_date,
            "rent_free_period_days": draft.rent_free_period_days,
            "lock_in_period_days": draft.lock_in_period_days,
            "sap_number": draft.sap_number,
            "property_takeover_condition_id": draft.property_takeover_condition_id,
            "amenity_ids": list(draft.amenity_ids),
        }

    def _notice_terms(self, draft: LeaseDraft) -> dict[str, Any]:
        terms = draft.notice_terms
        return {
            "from_landlord_days": terms.from_landlord_days,
            "from_vil_days": terms.from_vil_days,
            "termination_rights_lessee": terms.termination_rights_lessee,
            "termination_rights_lessor": terms.termination_rights_lessor,
            "handover_condition": terms.handover_condition,
            "additional_notes": terms.additional_notes,
            "property_type": terms.property_type,
            "rent_area": format_measure(draft.area),
        }

    def _signing_authority(self, draft: LeaseDraft, update: bool) -> dict[str, Any]:
        authority = draft.signing_authority
        persisted = update and authority.identity is not None
        attributes: dict[str, Any] = {}
        if persisted:
            attributes["id"] = authority.identity
        attributes.update({
            "name": authority.name,
            "designation": authority.designation,
            "email": authority.email,
            "phone_number": authority.phone,
            "authority_type": self._config.authority_type,
        })
        # Stamped with the submit time unless the config keeps the stored one.
        if not persisted or self._config.restamp_signed_at_on_update:
            attributes["signed_at"] = self._clock.now().isoformat()
        return attributes

    def _document(self, document: AgreementDocument) -> dict[str, Any]:
        return {
            "document_type": self._config.document_type,
            "file_name": document.file_name or self._config.default_document_name,
            "base64_data": self._encoder(document),
        }
