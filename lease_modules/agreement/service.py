"""
Lease Agreement Edit Session (``lease_modules.agreement.service``).

Responsibility
--------------
Owns the single ``LeaseDraft`` being edited in one create or edit flow and
exposes the closed set of named edits as methods: rent inputs, GST/TDS,
escalation and late charges, pass-through fields, parking and service
rows, custom fields and the agreement document.  ``submit`` builds the
wire payload and hands it to a transport exactly once.

Architecture position
---------------------
**Modules layer** -- thin glue.  Pure draft edits are delegated to
``operations``; payload rendering to ``AggregateBuilder``; record
mapping to ``LeaseMapper``.  The transport is a caller-supplied object.

Invariants enforced
-------------------
* Every edit replaces the held draft with a new value; drafts already
  handed out never change.
* A new lease starts with one default parking row; the last parking row
  cannot be removed through the session.
* Switching a parking row to free clears its charge.
* Validation runs before the transport is touched.

Failure modes
-------------
* ``LeaseValidationError`` subclasses from ``submit`` -- nothing was sent.
* ``LeaseSubmissionError`` -- the transport raised; the draft is intact
  and the session stays open.  No retry.
* ``SessionClosedError`` -- any edit or submit after a successful submit.
* ``ParkingRowRequiredError`` / ``SubCollectionIndexError`` -- row edits
  that cannot apply; the draft is unchanged.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import fields, replace
from decimal import Decimal
from typing import Any, Protocol
from uuid import uuid4

from lease_engines.rent import RentInput
from lease_engines.tax import GstComponent
from lease_kernel.domain.clock import Clock, SystemClock
from lease_kernel.domain.values import (
    ZERO,
    ExternalId,
    coerce_amount,
    coerce_bool,
    coerce_int,
    coerce_text,
)
from lease_kernel.exceptions import (
    LeaseSubmissionError,
    ParkingRowRequiredError,
    SessionClosedError,
)
from lease_kernel.logging_config import LogContext, get_logger
from lease_modules.agreement import operations
from lease_modules.agreement.builder import AggregateBuilder, DocumentEncoder
from lease_modules.agreement.config import LeaseConfig
from lease_modules.agreement.mapper import LeaseMapper
from lease_modules.agreement.models import (
    AgreementDocument,
    AgreementService,
    BuildMode,
    CustomFieldDef,
    LeaseDraft,
    ParkingAllocation,
    ParkingBilling,
    VehicleClass,
)

logger = get_logger("modules.agreement.service")


class LeaseTransport(Protocol):
    """Sends a built payload to the remote lease store."""

    def send(
        self,
        payload: dict[str, Any],
        mode: BuildMode,
        lease_id: ExternalId | None,
    ) -> Any: ...


def _vehicle_class(value: Any) -> VehicleClass:
    if isinstance(value, VehicleClass):
        return value
    return VehicleClass.from_wire(value)


def _billing(value: Any) -> ParkingBilling:
    if isinstance(value, ParkingBilling):
        return value
    return ParkingBilling.parse(value)


_PARKING_COERCIONS = {
    "vehicle_class": _vehicle_class,
    "billing": _billing,
    "count": coerce_int,
    "charge": coerce_amount,
}

_SERVICE_AMOUNTS = ("deposit", "fixed_monthly_charge", "rate_per_area")
_SERVICE_FLAGS = ("payment_automated", "active")


def _parking_patch(patch: dict[str, Any]) -> dict[str, Any]:
    unknown = sorted(set(patch) - set(_PARKING_COERCIONS))
    if unknown:
        raise ValueError(f"Unknown parking field(s): {', '.join(unknown)}")
    changes = {name: _PARKING_COERCIONS[name](value) for name, value in patch.items()}
    if changes.get("billing") is ParkingBilling.FREE:
        changes["charge"] = ZERO
    return changes


def _service_patch(patch: dict[str, Any]) -> dict[str, Any]:
    known = {field.name for field in fields(AgreementService)} - {"identity"}
    unknown = sorted(set(patch) - known)
    if unknown:
        raise ValueError(f"Unknown agreement service field(s): {', '.join(unknown)}")
    changes: dict[str, Any] = {}
    for name, value in patch.items():
        if name in _SERVICE_AMOUNTS:
            changes[name] = coerce_amount(value)
        elif name in _SERVICE_FLAGS:
            changes[name] = coerce_bool(value)
        elif name == "due_date":
            changes[name] = coerce_int(value, default=5, low=1, high=31)
        else:
            changes[name] = coerce_text(value)
    return changes


class LeaseEditSession:
    """
    One editor's working copy of a lease.

    Contract
    --------
    * ``new()`` starts a create flow; ``load(record)`` starts an edit flow.
    * Edit methods return the new draft and replace the held one.
    * ``submit(transport)`` sends once and returns the transport's result.

    Guarantees
    ----------
    * A failed submit leaves the draft exactly as it was.
    * Log records emitted by the session carry ``session_id`` and
      ``lease_id`` via ``LogContext``.
    * Clock is injectable for deterministic ``signed_at`` stamps.

    Non-goals
    ---------
    * Does NOT retry, debounce or cancel submissions.
    * Does NOT coordinate concurrent editors.
    """

    def __init__(
        self,
        draft: LeaseDraft,
        mode: BuildMode,
        config: LeaseConfig | None = None,
        clock: Clock | None = None,
        field_schema: Iterable[CustomFieldDef] = (),
        encoder: DocumentEncoder | None = None,
    ):
        self._config = config or LeaseConfig.with_defaults()
        self._clock = clock or SystemClock()
        self._field_schema = {definition.name: definition for definition in field_schema}
        self._builder = AggregateBuilder(
            config=self._config,
            clock=self._clock,
            encoder=encoder,
            field_schema=self._field_schema.values(),
        )
        self._draft = draft
        self._mode = BuildMode(mode)
        self._session_id = str(uuid4())
        self._closed = False

    @classmethod
    def new(
        cls,
        config: LeaseConfig | None = None,
        clock: Clock | None = None,
        field_schema: Iterable[CustomFieldDef] = (),
        encoder: DocumentEncoder | None = None,
    ) -> LeaseEditSession:
        """Start a create flow with an empty draft."""
        config = config or LeaseConfig.with_defaults()
        draft = LeaseDraft(
            status=config.default_status,
            rent_due_day=config.default_rent_due_day,
            rent_due_type=config.default_rent_due_type,
        )
        if config.seed_parking_row:
            draft = replace(draft, parkings=draft.parkings.add(ParkingAllocation()))
        session = cls(draft, BuildMode.CREATE, config, clock, field_schema, encoder)
        logger.info("lease_edit_session_started", extra={
            "session_id": session.session_id,
            "mode": BuildMode.CREATE.value,
        })
        return session

    @classmethod
    def load(
        cls,
        record: Any,
        config: LeaseConfig | None = None,
        clock: Clock | None = None,
        field_schema: Iterable[CustomFieldDef] = (),
        encoder: DocumentEncoder | None = None,
    ) -> LeaseEditSession:
        """Start an edit flow from a persisted lease record."""
        config = config or LeaseConfig.with_defaults()
        field_schema = tuple(field_schema)
        draft = LeaseMapper(config).from_wire(record, field_schema)
        session = cls(draft, BuildMode.UPDATE, config, clock, field_schema, encoder)
        logger.info("lease_edit_session_started", extra={
            "session_id": session.session_id,
            "mode": BuildMode.UPDATE.value,
            "lease_id": draft.lease_id,
        })
        return session

    # =========================================================================
    # State
    # =========================================================================

    @property
    def draft(self) -> LeaseDraft:
        return self._draft

    @property
    def mode(self) -> BuildMode:
        return self._mode

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _apply(self, draft: LeaseDraft) -> LeaseDraft:
        self._ensure_open()
        self._draft = draft
        return draft

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError(self._session_id)

    # =========================================================================
    # Rent and tax
    # =========================================================================

    def set_area(self, value: Any) -> LeaseDraft:
        return self.recompute_basic_rent(RentInput.AREA, value)

    def set_rate_per_area(self, value: Any) -> LeaseDraft:
        return self.recompute_basic_rent(RentInput.RATE_PER_AREA, value)

    def recompute_basic_rent(self, changed_field: RentInput | str, value: Any) -> LeaseDraft:
        return self._apply(operations.recompute_basic_rent(self._draft, changed_field, value))

    def set_cgst(self, value: Any) -> LeaseDraft:
        return self.set_cgst_sgst(GstComponent.CGST, value)

    def set_sgst(self, value: Any) -> LeaseDraft:
        return self.set_cgst_sgst(GstComponent.SGST, value)

    def set_cgst_sgst(self, which: GstComponent | str, value: Any) -> LeaseDraft:
        return self._apply(operations.set_cgst_sgst(self._draft, which, value))

    def set_igst(self, value: Any) -> LeaseDraft:
        return self._apply(operations.set_igst(self._draft, value))

    def set_gst_applicable(self, flag: bool) -> LeaseDraft:
        return self._apply(operations.set_gst_applicable(self._draft, flag))

    def set_tds_applicable(self, flag: bool) -> LeaseDraft:
        return self._apply(operations.set_tds_applicable(self._draft, flag))

    def set_tds_percent(self, value: Any) -> LeaseDraft:
        return self._apply(operations.set_tds_percent(self._draft, value))

    # =========================================================================
    # Escalation and late charges
    # =========================================================================

    def set_escalation(
        self,
        type: Any = None,
        interval_count: Any = None,
        percent: Any = None,
    ) -> LeaseDraft:
        return self._apply(operations.set_escalation(
            self._draft, type=type, interval_count=interval_count, percent=percent,
        ))

    def set_penalty(self, enabled: bool | None = None, percent: Any = None) -> LeaseDraft:
        return self._apply(operations.set_penalty(self._draft, enabled, percent))

    def set_interest(self, enabled: bool | None = None, percent: Any = None) -> LeaseDraft:
        return self._apply(operations.set_interest(self._draft, enabled, percent))

    def projected_rent(self) -> Decimal:
        """Basic rent after one escalation. Display only."""
        return operations.projected_rent(self._draft)

    # =========================================================================
    # Pass-through fields
    # =========================================================================

    def set_field(self, **changes: Any) -> LeaseDraft:
        return self._apply(operations.set_field(self._draft, **changes))

    def set_notice_terms(self, **changes: Any) -> LeaseDraft:
        return self._apply(operations.set_notice_terms(self._draft, **changes))

    def set_signing_authority(self, **changes: Any) -> LeaseDraft:
        return self._apply(operations.set_signing_authority(self._draft, **changes))

    # =========================================================================
    # Parking rows
    # =========================================================================

    def add_parking(self, **attributes: Any) -> LeaseDraft:
        row = replace(ParkingAllocation(), **_parking_patch(attributes))
        return self._apply(replace(self._draft, parkings=self._draft.parkings.add(row)))

    def update_parking(self, index: int, **patch: Any) -> LeaseDraft:
        parkings = self._draft.parkings.update_at(index, _parking_patch(patch))
        return self._apply(replace(self._draft, parkings=parkings))

    def remove_parking(self, index: int) -> LeaseDraft:
        """
        Remove a parking row.

        Raises:
            ParkingRowRequiredError: If it is the only row left.
        """
        self._ensure_open()
        if len(self._draft.parkings) <= 1:
            logger.warning("parking_row_removal_refused", extra={
                "session_id": self._session_id,
                "index": index,
            })
            raise ParkingRowRequiredError()
        parkings = self._draft.parkings.remove_at(index)
        return self._apply(replace(self._draft, parkings=parkings))

    # =========================================================================
    # Agreement services
    # =========================================================================

    def add_service(self, **attributes: Any) -> LeaseDraft:
        config = self._config
        row = AgreementService(
            billing_cycle=config.default_billing_cycle,
            due_date=config.default_service_due_day,
            payment_mode=config.default_payment_mode,
        )
        row = replace(row, **_service_patch(attributes))
        return self._apply(replace(self._draft, services=self._draft.services.add(row)))

    def update_service(self, index: int, **patch: Any) -> LeaseDraft:
        services = self._draft.services.update_at(index, _service_patch(patch))
        return self._apply(replace(self._draft, services=services))

    def remove_service(self, index: int) -> LeaseDraft:
        services = self._draft.services.remove_at(index)
        return self._apply(replace(self._draft, services=services))

    # =========================================================================
    # Custom fields and documents
    # =========================================================================

    def set_custom_field(self, name: str, value: Any) -> LeaseDraft:
        """
        Set a custom field value, typed by the schema when the name is known.

        Raises:
            LeaseValidationError: If the value does not fit the field type.
        """
        definition = self._field_schema.get(name)
        if definition is not None:
            value = definition.coerce(value)
        custom_fields = {**self._draft.custom_fields, name: value}
        return self._apply(replace(self._draft, custom_fields=custom_fields))

    def attach_document(
        self,
        file_name: str,
        content: bytes,
        content_type: str = "application/pdf",
    ) -> LeaseDraft:
        document = AgreementDocument(
            file_name=file_name or self._config.default_document_name,
            content=content,
            content_type=content_type,
        )
        return self._apply(replace(self._draft, document=document))

    def detach_document(self) -> LeaseDraft:
        return self._apply(replace(self._draft, document=None))

    # =========================================================================
    # Submission
    # =========================================================================

    def build(self, mode: BuildMode | str | None = None) -> dict[str, Any]:
        """Validate and render the current draft without sending it."""
        return self._builder.build(self._draft, mode or self._mode)

    def submit(self, transport: LeaseTransport, mode: BuildMode | str | None = None) -> Any:
        """
        Build the payload and send it once.

        Raises:
            LeaseValidationError: Draft invalid; the transport is not called.
            LeaseSubmissionError: Transport failed; draft kept, session open.
            SessionClosedError: Session already submitted.
        """
        self._ensure_open()
        mode = BuildMode(mode or self._mode)
        lease_id = self._draft.lease_id

        with LogContext.bind(session_id=self._session_id, lease_id=lease_id):
            payload = self._builder.build(self._draft, mode)
            logger.info("lease_submission_started", extra={"mode": mode.value})
            try:
                result = transport.send(payload, mode, lease_id)
            except Exception as exc:
                logger.exception("lease_submission_failed", extra={"mode": mode.value})
                raise LeaseSubmissionError(mode.value, str(exc), lease_id) from exc

            self._closed = True
            logger.info("lease_submission_completed", extra={"mode": mode.value})
        return result
