"""JSON reporter — the report's own dict shape."""

from __future__ import annotations

import json

from flashaudit.engine.report import AuditReport


def render(report: AuditReport) -> str:
    """Return formatted JSON string."""
    return json.dumps(report.to_dict(), indent=2)
