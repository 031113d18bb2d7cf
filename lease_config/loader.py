"""
Configuration Loader (``lease_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the typed
``LeaseConfig`` and ``CustomFieldDef`` values used by the agreement
module.  Runtime callers go through ``lease_config.get_active_config()``.

Invariants enforced
-------------------
* Unknown lease settings are rejected; no silent typos.
* Inactive custom fields are dropped from the parsed schema.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown or out-of-range setting  -> ``LeaseConfigError``.
* Custom field without a name  -> ``LeaseConfigError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from lease_kernel.domain.values import coerce_bool, coerce_identity, coerce_text
from lease_kernel.exceptions import LeaseConfigError
from lease_kernel.logging_config import get_logger
from lease_modules.agreement.config import LeaseConfig
from lease_modules.agreement.models import CustomFieldDef, CustomFieldType

logger = get_logger("config.loader")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_lease_config(data: dict[str, Any] | None) -> LeaseConfig:
    """Parse the ``lease`` section into a ``LeaseConfig``."""
    data = data or {}
    known = {f.name for f in fields(LeaseConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise LeaseConfigError(unknown[0], "unknown lease setting")
    return LeaseConfig(**data)


def parse_custom_field(data: dict[str, Any]) -> CustomFieldDef:
    """Parse one custom field definition."""
    name = coerce_text(data.get("name")).strip()
    if not name:
        raise LeaseConfigError("custom_fields", "every custom field needs a name")
    return CustomFieldDef(
        name=name,
        field_type=CustomFieldType.parse(data.get("field_type", "text")),
        required=coerce_bool(data.get("required", False)),
        active=coerce_bool(data.get("active", True)),
        identity=coerce_identity(data.get("id")),
    )


def parse_field_schema(items: list[dict[str, Any]] | None) -> tuple[CustomFieldDef, ...]:
    """
    Parse the custom-field schema.

    Inactive fields are dropped: they are neither validated nor offered
    for editing, though values already stored under their names are kept
    on the lease.
    """
    definitions = tuple(parse_custom_field(item) for item in items or ())
    active = tuple(definition for definition in definitions if definition.active)
    if len(active) != len(definitions):
        logger.debug("inactive_custom_fields_dropped", extra={
            "dropped": [d.name for d in definitions if not d.active],
        })
    return active


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
