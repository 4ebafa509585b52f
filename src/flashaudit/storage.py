"""Audit history storage — the persistence collaborator.

The engine never calls this; callers persist best-effort and only log a
StorageError.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol

from flashaudit.engine.report import AuditReport

logger = logging.getLogger(__name__)

# filter key -> path into the report dict
_FILTER_PATHS: Dict[str, tuple[str, ...]] = {
    "audit_id": ("auditId",),
    "risk_level": ("scores", "riskLevel"),
    "chain": ("metadata", "chain"),
    "analysis_mode": ("metadata", "analysisMode"),
}


class StorageError(Exception):
    """Raised when a report cannot be written or history cannot be read."""


class AuditStore(Protocol):
    def persist(self, report: AuditReport) -> None: ...

    def query(self, filters: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]: ...


def _lookup(record: Mapping[str, Any], path: tuple[str, ...]) -> Any:
    value: Any = record
    for key in path:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def matches(record: Mapping[str, Any], filters: Mapping[str, Any]) -> bool:
    """Equality filters on known keys, plus ``min_security`` / ``max_security``."""
    for key, expected in filters.items():
        if expected is None:
            continue
        if key in ("min_security", "max_security"):
            security = _lookup(record, ("scores", "security"))
            if not isinstance(security, int):
                return False
            if key == "min_security" and security < expected:
                return False
            if key == "max_security" and security > expected:
                return False
        elif key in _FILTER_PATHS:
            if _lookup(record, _FILTER_PATHS[key]) != expected:
                return False
        else:
            raise StorageError(f"Unknown filter: {key}")
    return True


class JsonlAuditStore:
    """Append-only JSON-lines file, one report per line."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def persist(self, report: AuditReport) -> None:
        line = json.dumps(report.to_dict(), sort_keys=True)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as exc:
            raise StorageError(f"Failed to write {self.path}: {exc}") from exc
        logger.debug("Persisted audit %s to %s", report.audit_id, self.path)

    # Alias matching the storage collaborator's ``save(report)`` name.
    save = persist

    def query(self, filters: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """Return stored reports (oldest first) matching *filters*."""
        if not self.path.is_file():
            return []
        records: List[Dict[str, Any]] = []
        try:
            with open(self.path, encoding="utf-8") as f:
                for line_no, raw in enumerate(f, 1):
                    raw = raw.strip()
                    if not raw:
                        continue
                    try:
                        record = json.loads(raw)
                    except json.JSONDecodeError:
                        logger.warning("Skipping corrupt history line %s:%d", self.path, line_no)
                        continue
                    if isinstance(record, dict) and matches(record, filters or {}):
                        records.append(record)
        except OSError as exc:
            raise StorageError(f"Failed to read {self.path}: {exc}") from exc
        return records
