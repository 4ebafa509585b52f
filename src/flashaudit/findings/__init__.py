"""Finding models, aggregation, and scoring."""

from flashaudit.findings.aggregator import aggregate, count_by_severity, is_duplicate
from flashaudit.findings.models import Finding, Location, ScoreSet
from flashaudit.findings.scoring import calculate_scores, risk_level_for

__all__ = [
    "Finding",
    "Location",
    "ScoreSet",
    "aggregate",
    "calculate_scores",
    "count_by_severity",
    "is_duplicate",
    "risk_level_for",
]
