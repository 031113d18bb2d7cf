"""
lease_config -- single public entrypoint for lease configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Returns a ``LeaseConfigSet`` holding the
    agreement module settings and the custom-field schema.

Architecture position:
    Configuration -- YAML-driven settings.  This package sits above
    ``lease_kernel`` and ``lease_modules``; neither of them imports from
    ``lease_config``.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``LeaseConfigError`` -- unknown or out-of-range settings.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``LEASE_CONFIG_TRACE`` log entry with the config id, version and
    checksum.
"""

from __future__ import annotations

from pathlib import Path

from lease_config.loader import (
    compute_checksum,
    load_yaml_file,
    parse_field_schema,
    parse_lease_config,
)
from lease_config.schema import LeaseConfigSet
from lease_kernel.logging_config import get_logger

logger = get_logger("config")

# Default configuration set
DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(path: Path | None = None) -> LeaseConfigSet:
    """The ONLY public configuration entrypoint.

    Args:
        path: Override path to a configuration file.
            Defaults to lease_config/sets/default.yaml.

    Returns:
        LeaseConfigSet for the file.

    Raises:
        FileNotFoundError: If the file does not exist.
        LeaseConfigError: If a setting is unknown or out of range.
    """
    source = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    data = load_yaml_file(source)

    config_set = LeaseConfigSet(
        config_id=str(data.get("config_id", source.stem)),
        version=int(data.get("version", 1)),
        lease=parse_lease_config(data.get("lease")),
        field_schema=parse_field_schema(data.get("custom_fields")),
        checksum=compute_checksum(data),
        source=str(source),
    )

    logger.info(
        "LEASE_CONFIG_TRACE",
        extra={
            "trace_type": "LEASE_CONFIG_TRACE",
            "config_set_id": config_set.config_id,
            "config_set_version": config_set.version,
            "checksum": config_set.checksum,
            "custom_field_count": len(config_set.field_schema),
        },
    )
    return config_set


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "LeaseConfigSet",
    "get_active_config",
]
