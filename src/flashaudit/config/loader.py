"""Load and merge configuration from .flashaudit.toml and env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from flashaudit.config.schema import (
    AuditConfig,
    EngineConfig,
    OutputConfig,
    RulesConfig,
    SemanticConfig,
    StorageConfig,
)

CONFIG_FILENAME = ".flashaudit.toml"


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in raw.items() if k in valid_fields}
    return cls(**filtered)


def _merge_env_overrides(cfg: AuditConfig) -> None:
    """Apply FLASHAUDIT_* environment variable overrides."""
    if val := os.environ.get("FLASHAUDIT_FORMAT"):
        if val in ("terminal", "json", "sarif"):
            cfg.output.format = val  # type: ignore[assignment]
    if val := os.environ.get("FLASHAUDIT_FAIL_ON"):
        if val in ("low", "medium", "high", "critical"):
            cfg.engine.fail_on = val  # type: ignore[assignment]
    if val := os.environ.get("FLASHAUDIT_TIMEOUT"):
        try:
            timeout = float(val)
        except ValueError:
            timeout = 0.0
        if timeout > 0:
            cfg.engine.semantic_timeout_sec = timeout
    if val := os.environ.get("FLASHAUDIT_MAX_SOURCE_CHARS"):
        try:
            cfg.engine.max_source_chars = int(val)
        except ValueError:
            pass
    if val := os.environ.get("FLASHAUDIT_MODEL"):
        cfg.semantic.model = val
    if val := os.environ.get("FLASHAUDIT_BASE_URL"):
        cfg.semantic.base_url = val
    if val := os.environ.get("FLASHAUDIT_SEMANTIC"):
        cfg.semantic.enabled = val.lower() not in ("0", "false", "no", "off")
    if val := os.environ.get("FLASHAUDIT_DISABLE_RULES"):
        cfg.rules.disable.extend(r.strip() for r in val.split(",") if r.strip())


def load_config(
    root: Path,
    config_override: Optional[str] = None,
) -> AuditConfig:
    """Load, validate, and return an AuditConfig."""
    config_path = find_config_file(root, config_override)

    if config_path is None:
        cfg = AuditConfig()
    else:
        raw = _parse_toml(config_path)
        try:
            cfg = AuditConfig(
                version=str(raw.get("version", "1.0")),
                chain=str(raw.get("chain", "ethereum")),
                analysis_mode=str(raw.get("analysis_mode", "comprehensive")),
                engine=_build_section(raw, EngineConfig, "engine"),
                semantic=_build_section(raw, SemanticConfig, "semantic"),
                rules=_build_section(raw, RulesConfig, "rules"),
                output=_build_section(raw, OutputConfig, "output"),
                storage=_build_section(raw, StorageConfig, "storage"),
            )
        except TypeError as exc:
            raise ConfigError(f"Invalid config in {config_path}: {exc}") from exc

    _merge_env_overrides(cfg)
    cfg.api_key = os.environ.get(cfg.semantic.api_key_env) or None

    if cfg.engine.max_source_chars <= 0:
        raise ConfigError("engine.max_source_chars must be greater than 0")
    if cfg.engine.semantic_timeout_sec <= 0:
        raise ConfigError("engine.semantic_timeout_sec must be greater than 0")
    return cfg
