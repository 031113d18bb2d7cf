"""
Tests for AggregateBuilder.

Covers:
- Signing-authority validation order and rejection before payload
- Required custom fields
- Create vs update payload shapes
- Money formatting and documents
"""

from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from lease_kernel.domain.clock import DeterministicClock
from lease_kernel.exceptions import (
    InvalidSigningAuthorityEmailError,
    InvalidSigningAuthorityPhoneError,
    LeaseValidationError,
    MissingCustomFieldError,
)
from lease_modules.agreement import operations as ops
from lease_modules.agreement.builder import AggregateBuilder, data_url_encoder
from lease_modules.agreement.config import LeaseConfig
from lease_modules.agreement.models import (
    AgreementDocument,
    AgreementService,
    BuildMode,
    CustomFieldDef,
    CustomFieldType,
    LeaseDraft,
    ParkingAllocation,
    ParkingBilling,
    SigningAuthority,
    VehicleClass,
)
from lease_modules.agreement.tracker import SubCollectionTracker

FIXED_SIGNED_AT = "2024-06-01T09:30:00+00:00"


def _draft(**changes) -> LeaseDraft:
    draft = ops.recompute_basic_rent(LeaseDraft(lease_id=42), "area", "30000")
    draft = ops.recompute_basic_rent(draft, "rate_per_area", "50")
    draft = ops.set_cgst_sgst(draft, "cgst", "9")
    draft = ops.set_cgst_sgst(draft, "sgst", "9")
    draft = ops.set_gst_applicable(draft, True)
    draft = ops.set_tds_applicable(draft, True)
    draft = ops.set_tds_percent(draft, "10")
    parkings = SubCollectionTracker.seeded("parkings", [
        ParkingAllocation(identity=42, vehicle_class=VehicleClass.FOUR_WHEELER,
                          billing=ParkingBilling.PAID, count=2, charge=Decimal("1500")),
        ParkingAllocation(identity=43),
    ]).remove_at(1).add(ParkingAllocation(count=5))
    services = SubCollectionTracker.seeded("agreement_services", [
        AgreementService(identity=71, service_type="water"),
    ]).remove_at(0)
    draft = replace(
        draft,
        parkings=parkings,
        services=services,
        signing_authority=SigningAuthority(
            identity=9, name="Asha", email="asha@example.com", phone="9876543210",
        ),
    )
    return replace(draft, **changes)


class TestValidation:
    """Tests for client-side validation."""

    def setup_method(self):
        self.builder = AggregateBuilder()

    def test_scenario_invalid_email_rejected(self):
        """A malformed email rejects before any payload is returned."""
        draft = _draft(signing_authority=SigningAuthority(email="not-an-email"))

        with pytest.raises(InvalidSigningAuthorityEmailError) as exc_info:
            self.builder.build(draft, BuildMode.UPDATE)
        assert exc_info.value.code == "INVALID_SIGNING_AUTHORITY_EMAIL"
        assert exc_info.value.field == "signing_authority.email"

    @pytest.mark.parametrize(
        "phone", ["12345", "98765432101", "98765-4321", "abcdefghij", "١٢٣٤٥٦٧٨٩٠"],
    )
    def test_invalid_phone_rejected(self, phone):
        draft = _draft(signing_authority=SigningAuthority(phone=phone))
        with pytest.raises(InvalidSigningAuthorityPhoneError):
            self.builder.build(draft, BuildMode.UPDATE)

    def test_email_checked_before_phone(self):
        draft = _draft(signing_authority=SigningAuthority(email="bad", phone="1"))
        with pytest.raises(InvalidSigningAuthorityEmailError):
            self.builder.validate(draft)

    def test_blank_contact_details_allowed(self):
        self.builder.validate(_draft(signing_authority=SigningAuthority()))

    def test_email_with_trailing_newline_rejected(self):
        draft = _draft(signing_authority=SigningAuthority(email="a@b.co\n"))
        with pytest.raises(InvalidSigningAuthorityEmailError):
            self.builder.validate(draft)

    def test_missing_required_custom_field(self):
        builder = AggregateBuilder(field_schema=[
            CustomFieldDef(name="landlord_pan", required=True),
        ])
        with pytest.raises(MissingCustomFieldError) as exc_info:
            builder.build(_draft(custom_fields={"landlord_pan": "  "}), BuildMode.CREATE)
        assert exc_info.value.field_name == "landlord_pan"

    def test_inactive_required_field_ignored(self):
        builder = AggregateBuilder(field_schema=[
            CustomFieldDef(name="legacy", required=True, active=False),
        ])
        builder.validate(_draft())

    def test_false_boolean_counts_as_value(self):
        builder = AggregateBuilder(field_schema=[
            CustomFieldDef(name="registered", field_type=CustomFieldType.BOOLEAN, required=True),
        ])
        builder.validate(_draft(custom_fields={"registered": False}))

    def test_rejection_logged(self, captured_logs):
        draft = _draft(signing_authority=SigningAuthority(email="not-an-email"))
        with pytest.raises(LeaseValidationError):
            self.builder.build(draft, BuildMode.UPDATE)

        messages = [r["message"] for r in captured_logs()]
        assert "lease_payload_build_rejected" in messages
        assert "lease_payload_build_completed" not in messages


class TestUpdatePayload:
    """Tests for the update payload shape."""

    def setup_method(self):
        clock = DeterministicClock(datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc))
        self.builder = AggregateBuilder(clock=clock)
        self.lease = self.builder.build(_draft(), BuildMode.UPDATE)["lease"]

    def test_money_is_fixed_point(self):
        assert self.lease["basic_rent"] == "1500000.00"
        assert self.lease["gst_amount"] == "270000.00"
        assert self.lease["tds_amount"] == "150000.00"
        assert self.lease["monthly_rent"] == "1620000.00"
        assert self.lease["cgst_percentage"] == "9.00"
        assert self.lease["igst_percentage"] == "0.00"

    def test_lease_id_included(self):
        assert self.lease["id"] == 42

    def test_signing_authority(self):
        assert self.lease["signing_authorities_attributes"] == [{
            "id": 9,
            "name": "Asha",
            "designation": "",
            "email": "asha@example.com",
            "phone_number": "9876543210",
            "authority_type": "landlord",
            "signed_at": FIXED_SIGNED_AT,
        }]

    def test_destroy_markers(self):
        parkings = self.lease["parkings_attributes"]
        assert parkings[0]["id"] == 42
        assert "id" not in parkings[1]
        assert parkings[-1] == {"id": 43, "_destroy": True}
        assert self.lease["agreement_services_attributes"] == [{"id": 71, "_destroy": True}]

    def test_notice_terms_carry_area(self):
        assert self.lease["notice_terms"]["rent_area"] == "30000.00"

    def test_fixed_values(self):
        assert self.lease["lease_type"] == "commercial"
        assert self.lease["rent_due_type"] == "monthly"
        assert self.lease["late_fee_percentage"] == self.lease["penalty_percentage"]

    def test_no_documents_without_attachment(self):
        assert "documents" not in self.lease

    def test_measures_keep_precision(self):
        draft = ops.recompute_basic_rent(_draft(), "area", "1000.5")
        draft = ops.recompute_basic_rent(draft, "rate_per_area", "50.125")
        draft = ops.set_tds_percent(draft, "2.375")
        lease = self.builder.build(draft, BuildMode.UPDATE)["lease"]

        assert lease["notice_terms"]["rent_area"] == "1000.50"
        assert lease["rate_per_sqft"] == "50.125"
        assert lease["tds_percentage"] == "2.375"
        assert lease["basic_rent"] == "50150.06"

    def test_stored_signature_kept_when_not_restamping(self):
        builder = AggregateBuilder(
            config=LeaseConfig(restamp_signed_at_on_update=False),
            clock=DeterministicClock(),
        )
        update = builder.build(_draft(), BuildMode.UPDATE)["lease"]
        create = builder.build(_draft(), BuildMode.CREATE)["lease"]

        assert "signed_at" not in update["signing_authorities_attributes"][0]
        assert "signed_at" in create["signing_authorities_attributes"][0]


class TestCreatePayload:
    """Tests for the create payload shape."""

    def setup_method(self):
        self.builder = AggregateBuilder()
        self.lease = self.builder.build(_draft(), "create")["lease"]

    def test_no_identities_anywhere(self):
        assert "id" not in self.lease
        assert "id" not in self.lease["signing_authorities_attributes"][0]
        for key in ("parkings_attributes", "agreement_services_attributes"):
            for entry in self.lease[key]:
                assert "id" not in entry
                assert "_destroy" not in entry

    def test_rows_still_rendered(self):
        assert len(self.lease["parkings_attributes"]) == 2
        assert self.lease["agreement_services_attributes"] == []


class TestDocumentsAndCustomFields:
    """Tests for document encoding and custom field serialization."""

    def test_document_data_url(self):
        document = AgreementDocument(file_name="lease.pdf", content=b"%PDF-1.4")
        lease = AggregateBuilder().build(_draft(document=document), BuildMode.UPDATE)["lease"]

        assert lease["documents"] == [{
            "document_type": "agreement",
            "file_name": "lease.pdf",
            "base64_data": "data:application/pdf;base64,JVBERi0xLjQ=",
        }]

    def test_custom_encoder(self):
        builder = AggregateBuilder(encoder=lambda document: "RAW")
        document = AgreementDocument(file_name="", content=b"x")
        lease = builder.build(_draft(document=document), BuildMode.CREATE)["lease"]

        assert lease["documents"][0]["base64_data"] == "RAW"
        assert lease["documents"][0]["file_name"] == "agreement.pdf"

    def test_data_url_encoder_content_type(self):
        document = AgreementDocument(file_name="a.png", content=b"\x00", content_type="image/png")
        assert data_url_encoder(document) == "data:image/png;base64,AA=="

    def test_custom_field_values_serialized(self):
        draft = _draft(custom_fields={
            "carpet_area": Decimal("1200.5"),
            "registration_date": date(2024, 3, 1),
            "registered": True,
            "unknown_key": "kept",
        })
        lease = AggregateBuilder().build(draft, BuildMode.UPDATE)["lease"]

        assert lease["custom_fields"] == {
            "carpet_area": "1200.5",
            "registration_date": "2024-03-01",
            "registered": True,
            "unknown_key": "kept",
        }
