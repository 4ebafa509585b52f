"""Audit engine — pipeline orchestration and report assembly."""

from flashaudit.engine.pipeline import audit_source, audit_source_sync
from flashaudit.engine.report import AuditReport, build_report, generate_audit_id

__all__ = [
    "AuditReport",
    "audit_source",
    "audit_source_sync",
    "build_report",
    "generate_audit_id",
]
