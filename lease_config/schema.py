"""
LeaseConfigSet schema.

The parsed form of one YAML configuration set: module settings for the
lease agreement module plus the custom-field schema leases are validated
against.
"""

from __future__ import annotations

from dataclasses import dataclass

from lease_modules.agreement.config import LeaseConfig
from lease_modules.agreement.models import CustomFieldDef


@dataclass(frozen=True)
class LeaseConfigSet:
    """A loaded configuration set. Immutable."""

    config_id: str
    version: int
    lease: LeaseConfig
    field_schema: tuple[CustomFieldDef, ...] = ()
    checksum: str = ""
    source: str = ""

    @property
    def required_fields(self) -> tuple[str, ...]:
        return tuple(definition.name for definition in self.field_schema if definition.required)

    def find_field(self, name: str) -> CustomFieldDef | None:
        for definition in self.field_schema:
            if definition.name == name:
                return definition
        return None
