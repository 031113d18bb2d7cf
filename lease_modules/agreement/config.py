"""
Lease Agreement Configuration Schema.

Defaults applied when a draft is created or loaded, and the advisory
client-side validation rules applied before submission.
"""

import re
from dataclasses import dataclass
from typing import Self

from lease_kernel.exceptions import LeaseConfigError
from lease_kernel.logging_config import get_logger

logger = get_logger("modules.agreement.config")

_DEFAULT_EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"


@dataclass
class LeaseConfig:
    """Configuration schema for the lease agreement module."""

    # Fixed wire values
    lease_type: str = "commercial"
    authority_type: str = "landlord"
    document_type: str = "agreement"
    default_document_name: str = "agreement.pdf"

    # Rent schedule defaults
    default_rent_due_day: int = 1
    default_rent_due_type: str = "monthly"
    default_status: str = "active"

    # Agreement service defaults
    default_service_due_day: int = 5
    default_billing_cycle: str = "monthly"
    default_payment_mode: str = "bank_transfer"

    # New-lease form starts with one parking row
    seed_parking_row: bool = True

    # Signing-authority checks
    phone_digits: int = 10
    email_pattern: str = _DEFAULT_EMAIL_PATTERN

    # A persisted signing authority is re-signed on every update
    restamp_signed_at_on_update: bool = True

    def __post_init__(self):
        for name in ("default_rent_due_day", "default_service_due_day"):
            day = getattr(self, name)
            if not 1 <= day <= 31:
                raise LeaseConfigError(name, "must be a day of the month (1-31)")
        if self.phone_digits <= 0:
            raise LeaseConfigError("phone_digits", "must be positive")
        try:
            re.compile(self.email_pattern)
        except re.error as exc:
            raise LeaseConfigError("email_pattern", str(exc)) from exc

        logger.info(
            "lease_config_initialized",
            extra={
                "lease_type": self.lease_type,
                "default_rent_due_day": self.default_rent_due_day,
                "default_service_due_day": self.default_service_due_day,
                "phone_digits": self.phone_digits,
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        return cls()

    @property
    def email_regex(self) -> re.Pattern[str]:
        return re.compile(self.email_pattern)

    @property
    def phone_regex(self) -> re.Pattern[str]:
        return re.compile(rf"[0-9]{{{self.phone_digits}}}")
