"""
LeaseMapper -- wire record to ``LeaseDraft`` and back.

Responsibility
--------------
Turns a persisted lease record, as delivered by the remote store, into an
editable ``LeaseDraft``, and delegates the reverse direction to
``AggregateBuilder`` so both directions share one wire vocabulary.

Architecture position
---------------------
**Modules layer** -- pure transformation, no I/O.

Invariants enforced
-------------------
* Numeric strings are parsed to ``Decimal``; anything unparseable is 0.
* Child trackers start with an empty deletion set.
* Entries carrying ``_destroy`` on input are ignored.
* Derived figures absent from the record are recomputed from its inputs.
* A record holding both CGST/SGST and IGST is reconciled to IGST.

Failure modes
-------------
* ``MalformedLeaseRecordError`` -- the record is not a mapping.
"""

from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Any

from lease_engines.escalation import (
    EscalationPolicy,
    EscalationType,
    LateInterest,
    LatePenalty,
)
from lease_engines.rent import RentCalculator
from lease_engines.tax import TaxRuleEngine
from lease_kernel.domain.values import (
    coerce_amount,
    coerce_bool,
    coerce_identity,
    coerce_int,
    coerce_text,
)
from lease_kernel.exceptions import LeaseValidationError, MalformedLeaseRecordError
from lease_kernel.logging_config import get_logger
from lease_modules.agreement.builder import AggregateBuilder
from lease_modules.agreement.config import LeaseConfig
from lease_modules.agreement.models import (
    AGREEMENT_SERVICES,
    PARKINGS,
    AgreementService,
    BuildMode,
    CustomFieldDef,
    ExistingDocument,
    LeaseDraft,
    NoticeTerms,
    ParkingAllocation,
    ParkingBilling,
    SigningAuthority,
    VehicleClass,
    is_blank,
    serialize_custom_value,
)
from lease_modules.agreement.tracker import SubCollectionTracker

logger = get_logger("modules.agreement.mapper")

_DERIVED_FIELDS = ("basic_rent", "gst_amount", "tds_amount")

_SERVICE_TEXT_FIELDS = (
    "provider_name",
    "consumer_number",
    "sap_vendor_code",
    "automation_partner",
    "cost_center",
    "gl_code",
    "io_code",
    "company_contact_name",
    "company_contact_email",
    "company_contact_mobile",
    "landlord_contact_name",
    "landlord_contact_email",
    "landlord_contact_mobile",
)


def _nested(record: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = record.get(key)
    return value if isinstance(value, Mapping) else {}


def _first_present(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = record.get(key)
        if not is_blank(value):
            return value
    return default


def _live_rows(record: Mapping[str, Any], *keys: str) -> list[Mapping[str, Any]]:
    """Child rows under the first key present, minus destroy markers."""
    rows: Iterable[Any] = ()
    for key in keys:
        if isinstance(record.get(key), list):
            rows = record[key]
            break
    live = []
    for row in rows:
        if not isinstance(row, Mapping):
            logger.warning("lease_child_row_skipped", extra={
                "collection": keys[0],
                "received_type": type(row).__name__,
            })
            continue
        if coerce_bool(row.get("_destroy")):
            continue
        live.append(row)
    return live


class LeaseMapper:
    """
    Convert between the remote lease record and ``LeaseDraft``.

    Contract:
        ``from_wire`` accepts the read shape (``parkings``,
        ``signing_authorities``) and the write shape (``parkings_attributes``,
        ``signing_authorities_attributes``), bare or wrapped in ``{"lease":
        ...}``, so ``from_wire(to_wire(draft))`` closes.
    Non-goals:
        Server-owned fields (``signed_at``, timestamps) are not represented.
    """

    def __init__(
        self,
        config: LeaseConfig | None = None,
        builder: AggregateBuilder | None = None,
    ):
        self._config = config or LeaseConfig.with_defaults()
        self._builder = builder or AggregateBuilder(config=self._config)
        self._tax = TaxRuleEngine()
        self._rent = RentCalculator(self._tax)

    def to_wire(self, draft: LeaseDraft, mode: BuildMode | str) -> dict[str, Any]:
        return self._builder.build(draft, mode)

    def from_wire(
        self,
        record: Any,
        field_schema: Iterable[CustomFieldDef] = (),
    ) -> LeaseDraft:
        """
        Map a persisted lease record to a fresh draft.

        Custom field values named in ``field_schema`` are typed by it when
        the typed value renders back to the stored wire form;
        other values are kept verbatim.

        Raises:
            MalformedLeaseRecordError: If the record is not a mapping.
        """
        if isinstance(record, Mapping) and isinstance(record.get("lease"), Mapping):
            record = record["lease"]
        if not isinstance(record, Mapping):
            raise MalformedLeaseRecordError(type(record).__name__)

        config = self._config
        notice = _nested(record, "notice_terms")
        prop = _nested(record, "property")
        tenant = _nested(record, "tenant")

        draft = LeaseDraft(
            lease_id=coerce_identity(record.get("id")),
            circle_id=coerce_identity(record.get("circle_id")),
            property_id=coerce_identity(
                _first_present(record, "property_id", default=prop.get("id")),
            ),
            tenant_id=coerce_identity(
                _first_present(record, "tenant_id", default=tenant.get("id")),
            ),
            status=coerce_text(record.get("status")) or config.default_status,
            agreement_type=coerce_text(record.get("terms_conditions")),
            start_date=coerce_text(record.get("start_date")),
            end_date=coerce_text(record.get("end_date")),
            agreement_sign_off_date=coerce_text(record.get("agreement_sign_off_date")),
            rent_commencement_date=coerce_text(record.get("rent_commencement_date")),
            area=coerce_amount(_first_present(notice, "rent_area", default=record.get("area"))),
            rate_per_area=coerce_amount(record.get("rate_per_sqft")),
            basic_rent=coerce_amount(record.get("basic_rent")),
            gst_applicable=coerce_bool(record.get("gst_applicable")),
            cgst_percent=coerce_amount(record.get("cgst_percentage")),
            sgst_percent=coerce_amount(record.get("sgst_percentage")),
            igst_percent=coerce_amount(record.get("igst_percentage")),
            gst_amount=coerce_amount(record.get("gst_amount")),
            tds_applicable=coerce_bool(record.get("tds_applicable")),
            tds_percent=coerce_amount(record.get("tds_percentage")),
            tds_amount=coerce_amount(record.get("tds_amount")),
            security_deposit=coerce_amount(record.get("security_deposit")),
            maintenance_charges=coerce_amount(record.get("charges")),
            rent_due_day=coerce_int(
                record.get("rent_due_date"),
                default=config.default_rent_due_day,
                low=1,
                high=31,
            ),
            rent_due_type=(
                coerce_text(record.get("rent_due_type")) or config.default_rent_due_type
            ),
            escalation=EscalationPolicy(
                type=EscalationType.parse(record.get("escalation_type")),
                interval_count=coerce_int(
                    record.get("escalation_interval"), default=1, low=1,
                ),
                percent=coerce_amount(record.get("annual_escalation_percentage")),
            ),
            penalty=LatePenalty(
                enabled=coerce_bool(record.get("penalty_applicable")),
                percent=coerce_amount(
                    _first_present(record, "penalty_percentage", "late_fee_percentage"),
                ),
            ),
            interest=LateInterest(
                enabled=coerce_bool(record.get("interest_applicable")),
                percent_per_month=coerce_amount(record.get("interest_percentage")),
            ),
            notice_terms=self._notice_terms(notice),
            purpose_of_agreement=coerce_text(record.get("purpose_of_agreement")),
            stamp_duty_sharing=coerce_text(record.get("stamp_duty_sharing")),
            sap_number=coerce_text(record.get("sap_number")),
            rent_free_period_days=coerce_int(record.get("rent_free_period_days")),
            lock_in_period_days=coerce_int(record.get("lock_in_period_days")),
            property_takeover_condition_id=coerce_identity(
                _first_present(
                    record, "property_takeover_condition_id",
                    default=_nested(prop, "property_takeover_condition").get("id"),
                ),
            ),
            amenity_ids=self._amenity_ids(record, prop),
            signing_authority=self._signing_authority(record),
            parkings=SubCollectionTracker.seeded(
                PARKINGS,
                (self._parking(row) for row in _live_rows(
                    record, "parkings", "parkings_attributes",
                )),
            ),
            services=SubCollectionTracker.seeded(
                AGREEMENT_SERVICES,
                (self._service(row) for row in _live_rows(
                    record, "agreement_services", "agreement_services_attributes",
                )),
            ),
            custom_fields=self._custom_fields(record, field_schema),
            existing_document=self._existing_document(record),
        )

        draft = self._settle_derived(draft, record)

        logger.info("lease_record_mapped", extra={
            "lease_id": draft.lease_id,
            "tax_mode": draft.tax_mode.value,
            "parkings": len(draft.parkings),
            "agreement_services": len(draft.services),
            "custom_fields": len(draft.custom_fields),
        })
        return draft

    # ------------------------------------------------------------------
    # Derived figures
    # ------------------------------------------------------------------

    def _settle_derived(self, draft: LeaseDraft, record: Mapping[str, Any]) -> LeaseDraft:
        """
        Fill derived figures the record does not carry.

        Figures present on the record are kept as persisted; GST is
        recomputed when the record broke CGST/SGST vs IGST exclusivity.
        """
        missing = {name for name in _DERIVED_FIELDS if is_blank(record.get(name))}

        rates = self._tax.reconcile(draft.gst_rates)
        if rates != draft.gst_rates:
            draft = replace(
                draft,
                cgst_percent=rates.cgst,
                sgst_percent=rates.sgst,
                igst_percent=rates.igst,
            )
            missing.add("gst_amount")

        if not missing:
            return draft

        changes: dict[str, Any] = {}
        basic = draft.basic_rent
        if "basic_rent" in missing:
            basic = self._rent.basic_rent(draft.area, draft.rate_per_area)
            changes["basic_rent"] = basic
        if "gst_amount" in missing:
            changes["gst_amount"] = self._tax.gst_amount(
                draft.gst_rates, basic, draft.gst_applicable,
            )
        if "tds_amount" in missing:
            changes["tds_amount"] = self._tax.tds_amount(
                draft.tds_percent, basic, draft.tds_applicable,
            )

        logger.debug("lease_record_figures_derived", extra={"fields": sorted(changes)})
        return replace(draft, **changes)

    # ------------------------------------------------------------------
    # Children
    # ------------------------------------------------------------------

    def _notice_terms(self, notice: Mapping[str, Any]) -> NoticeTerms:
        return NoticeTerms(
            from_landlord_days=coerce_int(notice.get("from_landlord_days")),
            from_vil_days=coerce_int(notice.get("from_vil_days")),
            termination_rights_lessee=coerce_text(notice.get("termination_rights_lessee")),
            termination_rights_lessor=coerce_text(notice.get("termination_rights_lessor")),
            handover_condition=coerce_text(notice.get("handover_condition")),
            property_type=coerce_text(notice.get("property_type")),
            additional_notes=coerce_text(notice.get("additional_notes")),
        )

    def _amenity_ids(self, record: Mapping[str, Any], prop: Mapping[str, Any]) -> tuple:
        if isinstance(record.get("amenity_ids"), list):
            raw = record["amenity_ids"]
        else:
            raw = [
                amenity.get("id")
                for amenity in prop.get("amenities") or ()
                if isinstance(amenity, Mapping)
            ]
        return tuple(
            identity for identity in (coerce_identity(item) for item in raw)
            if identity is not None
        )

    def _signing_authority(self, record: Mapping[str, Any]) -> SigningAuthority:
        rows = _live_rows(record, "signing_authorities", "signing_authorities_attributes")
        if not rows:
            return SigningAuthority()
        row = rows[0]
        return SigningAuthority(
            identity=coerce_identity(row.get("id")),
            name=coerce_text(row.get("name")),
            designation=coerce_text(row.get("designation")),
            email=coerce_text(row.get("email")),
            phone=coerce_text(_first_present(row, "phone_number", "phone")),
        )

    def _parking(self, row: Mapping[str, Any]) -> ParkingAllocation:
        return ParkingAllocation(
            identity=coerce_identity(row.get("id")),
            vehicle_class=VehicleClass.from_wire(row.get("vehicle_type")),
            billing=ParkingBilling.parse(row.get("parking_type")),
            count=coerce_int(row.get("count")),
            charge=coerce_amount(row.get("charge")),
        )

    def _service(self, row: Mapping[str, Any]) -> AgreementService:
        config = self._config
        active = row.get("active")
        return AgreementService(
            identity=coerce_identity(row.get("id")),
            service_type=coerce_text(row.get("service_type")),
            deposit=coerce_amount(row.get("deposit")),
            fixed_monthly_charge=coerce_amount(row.get("fixed_monthly_charge")),
            rate_per_area=coerce_amount(row.get("rate_per_sqft")),
            billing_cycle=coerce_text(row.get("billing_cycle")) or config.default_billing_cycle,
            due_date=coerce_int(
                row.get("due_date"),
                default=config.default_service_due_day,
                low=1,
                high=31,
            ),
            payment_mode=coerce_text(row.get("payment_mode")) or config.default_payment_mode,
            payment_automated=coerce_bool(row.get("payment_automated")),
            active=True if active is None else coerce_bool(active),
            **{name: coerce_text(row.get(name)) for name in _SERVICE_TEXT_FIELDS},
        )

    # ------------------------------------------------------------------
    # Custom fields and documents
    # ------------------------------------------------------------------

    def _custom_fields(
        self,
        record: Mapping[str, Any],
        field_schema: Iterable[CustomFieldDef],
    ) -> dict[str, Any]:
        values = record.get("custom_fields") or record.get("custom_field_values")
        if not isinstance(values, Mapping):
            return {}
        typed = dict(values)
        for definition in field_schema:
            if definition.name not in typed:
                continue
            raw = typed[definition.name]
            try:
                value = definition.coerce(raw)
            except LeaseValidationError:
                # Kept as stored.
                logger.warning("custom_field_value_untyped", extra={
                    "field": definition.name,
                    "field_type": definition.field_type.value,
                })
                continue
            # Typed only when the stored wire form comes back unchanged.
            rendered = serialize_custom_value(value)
            if type(rendered) is type(raw) and rendered == raw:
                typed[definition.name] = value
        return typed

    def _existing_document(self, record: Mapping[str, Any]) -> ExistingDocument | None:
        documents = record.get("documents")
        if isinstance(documents, list):
            for document in documents:
                if not isinstance(document, Mapping):
                    continue
                if document.get("document_type") == self._config.document_type:
                    return ExistingDocument(
                        file_name=coerce_text(document.get("file_name")),
                        url=coerce_text(_first_present(document, "file_url", "url")),
                    )
        if not is_blank(record.get("agreement_url")):
            return ExistingDocument(url=coerce_text(record["agreement_url"]))
        return None
