"""
Escalation Policy - scheduled rent increases and late-payment charges.

The escalation type/interval pair is descriptive metadata for the remote
lease store, which owns the schedule; no date arithmetic happens here.
``projected_rent`` exists for display only and never alters basic rent.

Late penalty and late interest keep their percentages while disabled so
that switching them back on restores the previous value.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import Any

from lease_kernel.domain.values import HUNDRED, ZERO, coerce_amount, coerce_int
from lease_kernel.logging_config import get_logger

logger = get_logger("engines.escalation")


class EscalationType(str, Enum):
    """How often an escalation applies."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"

    @classmethod
    def parse(cls, value: Any, default: EscalationType | None = None) -> EscalationType:
        """Lenient lookup; unknown values fall back to ``default`` (annual)."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return default or cls.ANNUAL


@dataclass(frozen=True)
class EscalationPolicy:
    """Escalation settings for one lease. Immutable."""

    type: EscalationType = EscalationType.ANNUAL
    interval_count: int = 1
    percent: Decimal = ZERO

    def __post_init__(self) -> None:
        if self.interval_count < 1:
            raise ValueError("interval_count must be at least 1")
        if self.percent < ZERO:
            raise ValueError("escalation percent cannot be negative")

    def projected_rent(self, basic_rent: Decimal) -> Decimal:
        """Rent after the next escalation: ``basic_rent * (1 + percent / 100)``."""
        return basic_rent * (Decimal("1") + self.percent / HUNDRED)

    def with_changes(
        self,
        type: Any = None,
        interval_count: Any = None,
        percent: Any = None,
    ) -> EscalationPolicy:
        """
        Return a copy with the given settings changed.

        Input is coerced: the interval falls back to 1, the percent to 0.
        """
        changes: dict[str, Any] = {}
        if type is not None:
            changes["type"] = EscalationType.parse(type, self.type)
        if interval_count is not None:
            changes["interval_count"] = coerce_int(interval_count, default=1, low=1)
        if percent is not None:
            changes["percent"] = coerce_amount(percent)
        updated = replace(self, **changes)
        logger.debug("escalation_policy_changed", extra={
            "escalation_type": updated.type.value,
            "interval_count": updated.interval_count,
            "percent": str(updated.percent),
        })
        return updated


@dataclass(frozen=True)
class LatePenalty:
    """One-off penalty on late rent, as a percent of the rent due."""

    enabled: bool = False
    percent: Decimal = ZERO

    def with_changes(self, enabled: bool | None = None, percent: Any = None) -> LatePenalty:
        return LatePenalty(
            enabled=self.enabled if enabled is None else bool(enabled),
            percent=self.percent if percent is None else coerce_amount(percent),
        )

    @property
    def effective_percent(self) -> Decimal:
        return self.percent if self.enabled else ZERO


@dataclass(frozen=True)
class LateInterest:
    """Interest on overdue rent, as a percent per month."""

    enabled: bool = False
    percent_per_month: Decimal = ZERO

    def with_changes(self, enabled: bool | None = None, percent: Any = None) -> LateInterest:
        return LateInterest(
            enabled=self.enabled if enabled is None else bool(enabled),
            percent_per_month=(
                self.percent_per_month if percent is None else coerce_amount(percent)
            ),
        )

    @property
    def effective_percent(self) -> Decimal:
        return self.percent_per_month if self.enabled else ZERO
