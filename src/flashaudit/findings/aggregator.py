"""Merge static and semantic findings into one deduplicated list."""

from __future__ import annotations

from typing import Dict, List, Sequence

from flashaudit.config.schema import SEVERITY_ORDER
from flashaudit.findings.models import Finding

LINE_WINDOW = 3


def is_duplicate(a: Finding, b: Finding, window: int = LINE_WINDOW) -> bool:
    """Same kind and category, both located, lines within *window*."""
    if a.kind != b.kind or a.category != b.category:
        return False
    if a.line is None or b.line is None:
        return False
    return abs(a.line - b.line) <= window


def aggregate(static: Sequence[Finding], semantic: Sequence[Finding]) -> List[Finding]:
    """Return static findings not covered by a semantic one, then all semantic.

    A semantic finding describing the same issue replaces the static record;
    otherwise insertion order is kept (static first, semantic second).
    """
    kept = [s for s in static if not any(is_duplicate(s, m) for m in semantic)]
    return kept + list(semantic)


def count_by_severity(findings: Sequence[Finding]) -> Dict[str, int]:
    counts = {sev: 0 for sev in sorted(SEVERITY_ORDER, key=SEVERITY_ORDER.get, reverse=True)}
    for f in findings:
        if f.severity in counts:
            counts[f.severity] += 1
    return counts
