"""Configuration loading, schema, and defaults."""

from flashaudit.config.loader import ConfigError, load_config
from flashaudit.config.schema import (
    AuditConfig,
    AuditOptions,
    Severity,
    severity_at_or_above,
)

__all__ = [
    "AuditConfig",
    "AuditOptions",
    "ConfigError",
    "Severity",
    "load_config",
    "severity_at_or_above",
]
