"""Report builder — assembles the immutable AuditReport."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from flashaudit import __version__
from flashaudit.config.schema import AuditOptions
from flashaudit.findings.aggregator import count_by_severity
from flashaudit.findings.models import Finding, ScoreSet
from flashaudit.semantic.adapter import GasOptimization, QualityAssessment, SemanticResult
from flashaudit.source.models import SourceUnit


@dataclass(frozen=True)
class AuditReport:
    """Aggregate root of one audit run. Read-only once built."""

    audit_id: str
    timestamp: str
    version: str
    source: SourceUnit
    findings: Tuple[Finding, ...]
    scores: ScoreSet
    summary: str
    recommendations: Tuple[str, ...]
    execution_time_ms: float
    options: AuditOptions
    model: Optional[str] = None
    semantic_error: Optional[str] = None
    static_error: Optional[str] = None
    suppressed: int = 0
    quality: QualityAssessment = field(default_factory=QualityAssessment)
    gas_optimizations: Tuple[GasOptimization, ...] = ()
    defi: Optional[Dict[str, Any]] = None
    compliance: Optional[Dict[str, Any]] = None

    @property
    def total_findings(self) -> int:
        return len(self.findings)

    @property
    def parse_success(self) -> bool:
        return self.source.parse_ok

    @property
    def semantic_success(self) -> bool:
        return self.semantic_error is None

    @property
    def estimated_gas_savings(self) -> int:
        return sum(opt.estimated_gas for opt in self.gas_optimizations)

    @property
    def severity_counts(self) -> Dict[str, int]:
        return count_by_severity(self.findings)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serialisable shape handed to API layers and storage."""
        return {
            "auditId": self.audit_id,
            "timestamp": self.timestamp,
            "version": self.version,
            "executionTimeMs": self.execution_time_ms,
            "contractInfo": self.source.summary(),
            "scores": self.scores.to_dict(),
            "findings": [f.to_dict() for f in self.findings],
            "findingCounts": {"total": self.total_findings, **self.severity_counts},
            "quality": {
                "score": self.scores.quality,
                "issues": list(self.quality.issues),
                "strengths": list(self.quality.strengths),
                "maintainability": self.quality.maintainability,
                "readability": self.quality.readability,
                "testability": self.quality.testability,
            },
            "gas": {
                "score": self.scores.gas,
                "optimizations": [opt.to_dict() for opt in self.gas_optimizations],
                "estimatedSavings": self.estimated_gas_savings,
            },
            "defi": self.defi,
            "compliance": self.compliance,
            "summary": self.summary,
            "recommendations": list(self.recommendations),
            "metadata": {
                "chain": self.options.chain,
                "analysisMode": self.options.analysis_mode,
                "model": self.model,
                "parseSuccess": self.parse_success,
                "staticSuccess": self.static_error is None,
                "semanticSuccess": self.semantic_success,
                "semanticError": self.semantic_error,
                "suppressed": self.suppressed,
            },
        }


def generate_audit_id() -> str:
    return f"audit_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def build_summary(
    findings: Sequence[Finding],
    unit: SourceUnit,
    semantic: SemanticResult,
    static_error: Optional[str] = None,
) -> str:
    if semantic.summary and not semantic.degraded:
        return semantic.summary
    summary = f"Contract analyzed with {len(findings)} issues found"
    problems: List[str] = []
    if semantic.degraded:
        problems.append("semantic analysis unavailable")
    if static_error:
        problems.append("static analysis failed")
    if not unit.parse_ok:
        problems.append("no contract declarations found")
    if problems:
        summary += f" (degraded: {'; '.join(problems)})"
    return summary


def collect_recommendations(findings: Sequence[Finding], semantic: SemanticResult) -> Tuple[str, ...]:
    """General semantic advice first, then per-finding advice, without repeats."""
    seen: Dict[str, None] = {}
    for rec in semantic.recommendations:
        seen.setdefault(rec, None)
    for f in findings:
        if f.recommendation:
            seen.setdefault(f.recommendation, None)
    return tuple(seen)


def build_report(
    *,
    unit: SourceUnit,
    findings: Sequence[Finding],
    scores: ScoreSet,
    semantic: SemanticResult,
    options: AuditOptions,
    started: float,
    audit_id: Optional[str] = None,
    static_error: Optional[str] = None,
    suppressed: int = 0,
) -> AuditReport:
    """Assemble the report. *started* is a ``time.perf_counter()`` reading."""
    findings = tuple(findings)
    return AuditReport(
        audit_id=audit_id or generate_audit_id(),
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__,
        source=unit,
        findings=findings,
        scores=scores,
        summary=build_summary(findings, unit, semantic, static_error),
        recommendations=collect_recommendations(findings, semantic),
        execution_time_ms=round((time.perf_counter() - started) * 1000, 2),
        options=options,
        model=semantic.model,
        semantic_error=semantic.error if semantic.degraded else None,
        static_error=static_error,
        suppressed=suppressed,
        quality=semantic.quality,
        gas_optimizations=semantic.gas_optimizations,
        defi=semantic.defi,
        compliance=semantic.compliance,
    )
