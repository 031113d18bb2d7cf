"""
Module: lease_engines
Responsibility:
    Package entrypoint that re-exports the pure calculation engines used to
    derive lease figures: rent, GST/TDS rules and escalation.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import lease_kernel (and sibling engine modules).
    MUST NOT import lease_modules or lease_config.

Invariants enforced:
    - Decimal-only arithmetic; floats are converted at the coercion boundary.
    - Non-negative inputs: invalid or negative input degrades to zero.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from lease_engines.rent import RentCalculator
    from lease_engines.tax import TaxRuleEngine, GstRates
    from lease_engines.escalation import EscalationPolicy
"""

from lease_engines.escalation import (
    EscalationPolicy,
    EscalationType,
    LateInterest,
    LatePenalty,
)
from lease_engines.rent import RentCalculator, RentFigures, RentInput
from lease_engines.tax import GstComponent, GstRates, TaxMode, TaxRuleEngine

__all__ = [
    "EscalationPolicy",
    "EscalationType",
    "GstComponent",
    "GstRates",
    "LateInterest",
    "LatePenalty",
    "RentCalculator",
    "RentFigures",
    "RentInput",
    "TaxMode",
    "TaxRuleEngine",
]
