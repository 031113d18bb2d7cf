"""
Pytest fixtures for the lease engine test suite.

Provides:
- Structured logging configured for the whole run
- Deterministic clock and default lease configuration
- Wire record builders for minimal and maximal persisted leases
- A recording transport for edit-session submissions
"""

import json
import logging
from datetime import datetime, timezone
from io import StringIO

import pytest

from lease_kernel.domain.clock import DeterministicClock
from lease_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from lease_modules.agreement.config import LeaseConfig

FIXED_NOW = datetime(2024, 6, 1, 9, 30, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture lease_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            session.submit(transport)
            logs = captured_logs()
            assert any(r["message"] == "lease_submission_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("lease_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock(FIXED_NOW)


@pytest.fixture
def lease_config():
    return LeaseConfig.with_defaults()


class RecordingTransport:
    """Transport double that records calls and optionally fails."""

    def __init__(self, error: Exception | None = None, response=None):
        self.error = error
        self.response = response if response is not None else {"id": 901}
        self.calls: list[tuple[dict, object, object]] = []

    def send(self, payload, mode, lease_id):
        self.calls.append((payload, mode, lease_id))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def failing_transport():
    return RecordingTransport(error=ConnectionError("503 Service Unavailable"))


def _minimal_record() -> dict:
    """A persisted lease with no child rows and no taxes applied."""
    return {
        "id": 17,
        "circle_id": None,
        "tenant_id": 3,
        "property_id": 8,
        "start_date": "2024-04-01",
        "end_date": "2027-03-31",
        "status": "active",
        "lease_type": "commercial",
        "terms_conditions": "",
        "basic_rent": "50000.00",
        "monthly_rent": "50000.00",
        "rate_per_sqft": "50.00",
        "security_deposit": "150000.00",
        "charges": "0.00",
        "gst_applicable": False,
        "cgst_percentage": "0.00",
        "sgst_percentage": "0.00",
        "igst_percentage": "0.00",
        "gst_amount": "0.00",
        "tds_applicable": False,
        "tds_percentage": "0.00",
        "tds_amount": "0.00",
        "annual_escalation_percentage": "0.00",
        "escalation_type": "annual",
        "escalation_interval": 1,
        "penalty_applicable": False,
        "penalty_percentage": "0.00",
        "late_fee_percentage": "0.00",
        "interest_applicable": False,
        "interest_percentage": "0.00",
        "rent_due_date": 1,
        "rent_due_type": "monthly",
        "purpose_of_agreement": "",
        "stamp_duty_sharing": "",
        "agreement_sign_off_date": "",
        "rent_commencement_date": "",
        "rent_free_period_days": 0,
        "lock_in_period_days": 0,
        "sap_number": "",
        "property_takeover_condition_id": None,
        "amenity_ids": [],
        "notice_terms": {
            "from_landlord_days": 0,
            "from_vil_days": 0,
            "termination_rights_lessee": "",
            "termination_rights_lessor": "",
            "handover_condition": "",
            "additional_notes": "",
            "property_type": "",
            "rent_area": "1000.00",
        },
        "signing_authorities_attributes": [
            {
                "id": 5,
                "name": "",
                "designation": "",
                "email": "",
                "phone_number": "",
                "authority_type": "landlord",
            },
        ],
        "parkings_attributes": [],
        "agreement_services_attributes": [],
        "custom_fields": {},
    }


def _maximal_record() -> dict:
    """A persisted lease with every child collection populated and GST + TDS applied."""
    return {
        "id": 42,
        "circle_id": 2,
        "tenant_id": 11,
        "property_id": 7,
        "start_date": "2024-04-01",
        "end_date": "2029-03-31",
        "status": "active",
        "lease_type": "commercial",
        "terms_conditions": "registered",
        "basic_rent": "1500000.00",
        "monthly_rent": "1620000.00",
        "rate_per_sqft": "50.00",
        "security_deposit": "4500000.00",
        "charges": "25000.00",
        "gst_applicable": True,
        "cgst_percentage": "9.00",
        "sgst_percentage": "9.00",
        "igst_percentage": "0.00",
        "gst_amount": "270000.00",
        "tds_applicable": True,
        "tds_percentage": "10.00",
        "tds_amount": "150000.00",
        "annual_escalation_percentage": "5.00",
        "escalation_type": "annual",
        "escalation_interval": 1,
        "penalty_applicable": True,
        "penalty_percentage": "2.00",
        "late_fee_percentage": "2.00",
        "interest_applicable": True,
        "interest_percentage": "1.50",
        "rent_due_date": 5,
        "rent_due_type": "monthly",
        "purpose_of_agreement": "Retail store",
        "stamp_duty_sharing": "50:50",
        "agreement_sign_off_date": "2024-03-15",
        "rent_commencement_date": "2024-05-01",
        "rent_free_period_days": 30,
        "lock_in_period_days": 365,
        "sap_number": "SAP-0042",
        "property_takeover_condition_id": 4,
        "amenity_ids": [1, 3],
        "notice_terms": {
            "from_landlord_days": 90,
            "from_vil_days": 60,
            "termination_rights_lessee": "After lock-in",
            "termination_rights_lessor": "On breach",
            "handover_condition": "Bare shell",
            "additional_notes": "Signage allowed",
            "property_type": "retail",
            "rent_area": "30000.00",
        },
        "signing_authorities_attributes": [
            {
                "id": 9,
                "name": "Asha Rao",
                "designation": "Director",
                "email": "asha@example.com",
                "phone_number": "9876543210",
                "authority_type": "landlord",
            },
        ],
        "parkings_attributes": [
            {"id": 42, "vehicle_type": "bike", "parking_type": "free", "count": 10, "charge": "0.00"},
            {"id": 43, "vehicle_type": "car", "parking_type": "paid", "count": 4, "charge": "2500.00"},
        ],
        "agreement_services_attributes": [
            {
                "id": 71,
                "service_type": "electricity",
                "deposit": "10000.00",
                "fixed_monthly_charge": "0.00",
                "rate_per_sqft": "2.50",
                "billing_cycle": "monthly",
                "due_date": 10,
                "payment_mode": "bank_transfer",
                "provider_name": "State Power",
                "consumer_number": "CN-1",
                "sap_vendor_code": "V-9",
                "payment_automated": True,
                "automation_partner": "PayCo",
                "cost_center": "CC-1",
                "gl_code": "GL-1",
                "io_code": "IO-1",
                "company_contact_name": "Ravi",
                "company_contact_email": "ravi@example.com",
                "company_contact_mobile": "9000000001",
                "landlord_contact_name": "Meena",
                "landlord_contact_email": "meena@example.com",
                "landlord_contact_mobile": "9000000002",
                "active": True,
            },
        ],
        "custom_fields": {"landlord_pan": "ABCDE1234F", "floor": "3"},
    }


@pytest.fixture
def minimal_record():
    return _minimal_record()


@pytest.fixture
def maximal_record():
    return _maximal_record()
