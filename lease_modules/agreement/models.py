"""
Lease Agreement Domain Models (``lease_modules.agreement.models``).

Responsibility
--------------
Frozen dataclass value objects for one editable lease agreement: the
``LeaseDraft`` itself and the child rows it carries (parking allocations,
agreement services, signing authority, notice terms, documents), plus
the custom-field schema entries the draft is validated against.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Produced by
``LeaseMapper`` and ``LeaseEditSession``, rendered by ``AggregateBuilder``.
Depends only on kernel values and engine value objects.

Invariants enforced
-------------------
* All models are ``frozen=True``; edits go through
  ``dataclasses.replace`` and yield a new value.
* All monetary and percentage fields are ``Decimal`` -- NEVER ``float``.
* ``total_monthly_rent`` is derived, never stored.
* Deleted child identities live only in the drafts' trackers.

Failure modes
-------------
* Constructing engine values (``GstRates``, ``EscalationPolicy``) with
  negative numbers raises ``ValueError``.
* ``CustomFieldDef.coerce`` raises ``LeaseValidationError`` for values
  that do not fit the field type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from lease_engines.escalation import EscalationPolicy, LateInterest, LatePenalty
from lease_engines.tax import GstRates, TaxMode
from lease_kernel.domain.values import (
    ZERO,
    ExternalId,
    coerce_bool,
    coerce_text,
    format_fixed,
    format_measure,
    parse_decimal,
)
from lease_kernel.exceptions import LeaseValidationError
from lease_kernel.logging_config import get_logger
from lease_modules.agreement.tracker import SubCollectionTracker

logger = get_logger("modules.agreement.models")

PARKINGS = "parkings"
AGREEMENT_SERVICES = "agreement_services"


class VehicleClass(Enum):
    """Parking vehicle class. The remote store calls them bike / car."""
    TWO_WHEELER = "two_wheeler"
    FOUR_WHEELER = "four_wheeler"

    @property
    def wire_value(self) -> str:
        return "bike" if self is VehicleClass.TWO_WHEELER else "car"

    @classmethod
    def from_wire(cls, value: Any) -> VehicleClass:
        """``"bike"`` is a two-wheeler; anything else is a four-wheeler."""
        text = coerce_text(value).strip().lower()
        if text in ("bike", cls.TWO_WHEELER.value):
            return cls.TWO_WHEELER
        return cls.FOUR_WHEELER


class ParkingBilling(Enum):
    """Whether a parking allocation is charged."""
    FREE = "free"
    PAID = "paid"

    @classmethod
    def parse(cls, value: Any) -> ParkingBilling:
        text = coerce_text(value).strip().lower()
        return cls.PAID if text == cls.PAID.value else cls.FREE


class BuildMode(Enum):
    """Payload shape: a new lease, or an update of a persisted one."""
    CREATE = "create"
    UPDATE = "update"


class CustomFieldType(Enum):
    """Value types a lease custom field may declare."""
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    TEXTAREA = "textarea"

    @classmethod
    def parse(cls, value: Any) -> CustomFieldType:
        try:
            return cls(coerce_text(value).strip().lower())
        except ValueError:
            return cls.TEXT


@dataclass(frozen=True)
class ParkingAllocation:
    """Parking spaces allotted under the lease."""
    identity: ExternalId | None = None
    vehicle_class: VehicleClass = VehicleClass.TWO_WHEELER
    billing: ParkingBilling = ParkingBilling.FREE
    count: int = 0
    charge: Decimal = ZERO

    def to_attributes(self) -> dict[str, Any]:
        return {
            "vehicle_type": self.vehicle_class.wire_value,
            "parking_type": self.billing.value,
            "count": self.count,
            "charge": format_fixed(self.charge),
        }


@dataclass(frozen=True)
class AgreementService:
    """
    An ancillary billable service attached to the lease (utilities,
    housekeeping, power backup, ...).
    """
    identity: ExternalId | None = None
    service_type: str = ""
    deposit: Decimal = ZERO
    fixed_monthly_charge: Decimal = ZERO
    rate_per_area: Decimal = ZERO
    billing_cycle: str = "monthly"
    due_date: int = 5
    payment_mode: str = "bank_transfer"
    provider_name: str = ""
    consumer_number: str = ""
    sap_vendor_code: str = ""
    payment_automated: bool = False
    automation_partner: str = ""
    cost_center: str = ""
    gl_code: str = ""
    io_code: str = ""
    company_contact_name: str = ""
    company_contact_email: str = ""
    company_contact_mobile: str = ""
    landlord_contact_name: str = ""
    landlord_contact_email: str = ""
    landlord_contact_mobile: str = ""
    active: bool = True

    def to_attributes(self) -> dict[str, Any]:
        return {
            "service_type": self.service_type,
            "deposit": format_fixed(self.deposit),
            "fixed_monthly_charge": format_fixed(self.fixed_monthly_charge),
            "rate_per_sqft": format_measure(self.rate_per_area),
            "billing_cycle": self.billing_cycle,
            "due_date": self.due_date,
            "payment_mode": self.payment_mode,
            "provider_name": self.provider_name,
            "consumer_number": self.consumer_number,
            "sap_vendor_code": self.sap_vendor_code,
            "payment_automated": self.payment_automated,
            "automation_partner": self.automation_partner,
            "cost_center": self.cost_center,
            "gl_code": self.gl_code,
            "io_code": self.io_code,
            "company_contact_name": self.company_contact_name,
            "company_contact_email": self.company_contact_email,
            "company_contact_mobile": self.company_contact_mobile,
            "landlord_contact_name": self.landlord_contact_name,
            "landlord_contact_email": self.landlord_contact_email,
            "landlord_contact_mobile": self.landlord_contact_mobile,
            "active": self.active,
        }


@dataclass(frozen=True)
class SigningAuthority:
    """The person who executes the agreement for the landlord."""
    identity: ExternalId | None = None
    name: str = ""
    designation: str = ""
    email: str = ""
    phone: str = ""


@dataclass(frozen=True)
class NoticeTerms:
    """Notice periods and termination terms. Carried opaquely."""
    from_landlord_days: int = 0
    from_vil_days: int = 0
    termination_rights_lessee: str = ""
    termination_rights_lessor: str = ""
    handover_condition: str = ""
    property_type: str = ""
    additional_notes: str = ""


@dataclass(frozen=True)
class AgreementDocument:
    """A newly attached agreement file, not yet encoded."""
    file_name: str
    content: bytes
    content_type: str = "application/pdf"


@dataclass(frozen=True)
class ExistingDocument:
    """The agreement already stored remotely. Display only; never sent."""
    file_name: str = ""
    url: str = ""


@dataclass(frozen=True)
class CustomFieldDef:
    """One entry of the lease custom-field schema."""
    name: str
    field_type: CustomFieldType = CustomFieldType.TEXT
    required: bool = False
    active: bool = True
    identity: ExternalId | None = None

    def coerce(self, value: Any) -> Any:
        """
        Convert form input to this field's type.

        Blank input becomes ``None`` for number and date fields.
        """
        if self.field_type is CustomFieldType.BOOLEAN:
            return coerce_bool(value)
        if self.field_type is CustomFieldType.NUMBER:
            if is_blank(value):
                return None
            number = parse_decimal(value)
            if number is None:
                raise LeaseValidationError(self.name, f"{self.name} must be a number")
            return number
        if self.field_type is CustomFieldType.DATE:
            if is_blank(value):
                return None
            if isinstance(value, date):
                return value
            try:
                return date.fromisoformat(coerce_text(value).strip())
            except ValueError as exc:
                raise LeaseValidationError(
                    self.name, f"{self.name} must be a date (YYYY-MM-DD)",
                ) from exc
        return coerce_text(value)


def is_blank(value: Any) -> bool:
    """``None`` and whitespace-only strings count as "no value"."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def serialize_custom_value(value: Any) -> Any:
    """Render a typed custom field value for the wire."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


def _parkings() -> SubCollectionTracker[ParkingAllocation]:
    return SubCollectionTracker(name=PARKINGS)


def _services() -> SubCollectionTracker[AgreementService]:
    return SubCollectionTracker(name=AGREEMENT_SERVICES)


@dataclass(frozen=True)
class LeaseDraft:
    """
    The in-memory, editable representation of one lease agreement.

    Derived monetary fields (``basic_rent``, ``gst_amount``,
    ``tds_amount``) are stored because the remote record carries them,
    but they are only ever written by the calculators.
    """

    # Identity and parties
    lease_id: ExternalId | None = None
    circle_id: ExternalId | None = None
    property_id: ExternalId | None = None
    tenant_id: ExternalId | None = None
    status: str = "active"
    agreement_type: str = ""

    # Dates (opaque ISO strings)
    start_date: str = ""
    end_date: str = ""
    agreement_sign_off_date: str = ""
    rent_commencement_date: str = ""

    # Rent inputs and derived figures
    area: Decimal = ZERO
    rate_per_area: Decimal = ZERO
    basic_rent: Decimal = ZERO
    gst_applicable: bool = False
    cgst_percent: Decimal = ZERO
    sgst_percent: Decimal = ZERO
    igst_percent: Decimal = ZERO
    gst_amount: Decimal = ZERO
    tds_applicable: bool = False
    tds_percent: Decimal = ZERO
    tds_amount: Decimal = ZERO
    security_deposit: Decimal = ZERO
    maintenance_charges: Decimal = ZERO
    rent_due_day: int = 1
    rent_due_type: str = "monthly"

    # Escalation and late charges
    escalation: EscalationPolicy = field(default_factory=EscalationPolicy)
    penalty: LatePenalty = field(default_factory=LatePenalty)
    interest: LateInterest = field(default_factory=LateInterest)

    # Pass-through terms
    notice_terms: NoticeTerms = field(default_factory=NoticeTerms)
    purpose_of_agreement: str = ""
    stamp_duty_sharing: str = ""
    sap_number: str = ""
    rent_free_period_days: int = 0
    lock_in_period_days: int = 0
    property_takeover_condition_id: ExternalId | None = None
    amenity_ids: tuple[ExternalId, ...] = ()

    # Children
    signing_authority: SigningAuthority = field(default_factory=SigningAuthority)
    parkings: SubCollectionTracker[ParkingAllocation] = field(default_factory=_parkings)
    services: SubCollectionTracker[AgreementService] = field(default_factory=_services)
    custom_fields: dict[str, Any] = field(default_factory=dict)
    document: AgreementDocument | None = None
    existing_document: ExistingDocument | None = None

    @property
    def gst_rates(self) -> GstRates:
        return GstRates(
            cgst=self.cgst_percent,
            sgst=self.sgst_percent,
            igst=self.igst_percent,
        )

    @property
    def tax_mode(self) -> TaxMode:
        return self.gst_rates.mode

    @property
    def total_monthly_rent(self) -> Decimal:
        return self.basic_rent + self.gst_amount - self.tds_amount

    @property
    def parking_allocations(self) -> tuple[ParkingAllocation, ...]:
        return self.parkings.items

    @property
    def agreement_services(self) -> tuple[AgreementService, ...]:
        return self.services.items

    @property
    def deleted_parking_ids(self) -> tuple[ExternalId, ...]:
        return self.parkings.removed

    @property
    def deleted_service_ids(self) -> tuple[ExternalId, ...]:
        return self.services.removed
