"""
Lease Engine Invariants Contract.

These invariants are structural law for every draft the engine produces.
No LeaseConfig value may switch them off.

This module exists solely to declare them explicitly. Enforcement is
distributed across the rent/tax engines, SubCollectionTracker and
AggregateBuilder.
"""

from enum import Enum, unique


@unique
class LeaseInvariant(str, Enum):
    """Non-configurable invariants enforced by the engine."""

    NON_NEGATIVE_AMOUNTS = "non_negative_amounts"
    """Area, rate, percents and money inputs are finite and >= 0. Invalid
    input is coerced to zero, never rejected. Enforced by
    lease_kernel.domain.values.coerce_amount."""

    GST_MUTUAL_EXCLUSIVITY = "gst_mutual_exclusivity"
    """(cgst > 0 or sgst > 0) implies igst == 0, and vice versa. The later
    write clears the opposing side. Enforced by lease_engines.tax."""

    DERIVED_RENT = "derived_rent"
    """basic_rent == area * rate; gst and tds amounts follow the current
    percents, applicability flags and basic rent. Enforced by
    lease_engines.rent and lease_engines.tax."""

    DELETION_ACCOUNTING = "deletion_accounting"
    """A removed sub-item's identity enters the deletion set iff it had one.
    Enforced by SubCollectionTracker.remove_at."""

    VALIDATE_BEFORE_SEND = "validate_before_send"
    """No payload is produced while signing-authority or required
    custom-field checks fail. Enforced by AggregateBuilder.build."""


ALL_LEASE_INVARIANTS: frozenset[LeaseInvariant] = frozenset(LeaseInvariant)
