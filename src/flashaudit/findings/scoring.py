"""Deterministic, severity-weighted scoring."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

from flashaudit.findings.models import Finding, ScoreSet

SEVERITY_WEIGHTS: dict[str, int] = {
    "critical": 25,
    "high": 15,
    "medium": 8,
    "low": 3,
}

# (inclusive upper bound, level), checked in order.
RISK_BUCKETS: Tuple[Tuple[int, str], ...] = (
    (30, "Critical"),
    (50, "High"),
    (70, "Medium"),
)

NEUTRAL_SUBSCORE = 75


def clamp_score(value: float) -> int:
    return int(max(0, min(100, value)))


def risk_level_for(security: int) -> str:
    for upper, level in RISK_BUCKETS:
        if security <= upper:
            return level
    return "Low"


def security_score(findings: Sequence[Finding]) -> int:
    """100 minus the weight of every scored finding, clamped to [0, 100]."""
    score = 100
    for f in findings:
        if f.scored:
            score -= SEVERITY_WEIGHTS[f.severity]
    return clamp_score(score)


def calculate_scores(
    findings: Sequence[Finding],
    quality: Optional[int] = None,
    gas: Optional[int] = None,
) -> ScoreSet:
    """Build a ScoreSet. Missing sub-scores fall back to a neutral 75."""
    security = security_score(findings)
    return ScoreSet(
        security=security,
        quality=clamp_score(NEUTRAL_SUBSCORE if quality is None else quality),
        gas=clamp_score(NEUTRAL_SUBSCORE if gas is None else gas),
        risk_level=risk_level_for(security),
    )
