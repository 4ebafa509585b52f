"""Semantic analysis adapter — bounded collaborator call plus normalization.

Nothing the collaborator does can fail an audit: timeouts, transport
errors, exceptions, cancellation and malformed output all collapse into the
same fallback result.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from flashaudit.config.schema import CATEGORIES, SEVERITY_ORDER, AuditOptions
from flashaudit.findings.models import SEMANTIC, Finding, Location, ScoreSet
from flashaudit.findings.scoring import clamp_score, risk_level_for
from flashaudit.semantic.client import CollaboratorError, RawSemanticResponse, SemanticCollaborator
from flashaudit.semantic.prompt import build_prompt
from flashaudit.source.models import SourceUnit

logger = logging.getLogger(__name__)

DEFAULT_SCORE = 50
DEFAULT_SEVERITY = "medium"
UNAVAILABLE_MESSAGE = "semantic analysis unavailable"

_SEVERITY_ALIASES = {"info": "low", "informational": "low", "note": "low"}
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_DIGITS_RE = re.compile(r"\d+")


class MalformedResponse(Exception):
    """The collaborator response does not have the expected shape."""


RATINGS = ("high", "medium", "low")
DEFAULT_RATING = "medium"


@dataclass(frozen=True)
class GasOptimization:
    """One suggested gas saving. Advisory; never scored as a finding."""

    description: str
    location: Location = field(default_factory=Location)
    estimated_savings: Optional[str] = None
    implementation: Optional[str] = None

    @property
    def estimated_gas(self) -> int:
        """Leading number in ``estimated_savings`` ("~2,000 gas" -> 2000), else 0."""
        if not self.estimated_savings:
            return 0
        m = _DIGITS_RE.search(self.estimated_savings.replace(",", ""))
        return int(m.group(0)) if m else 0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"description": self.description, "location": self.location.to_dict()}
        if self.estimated_savings:
            data["estimatedSavings"] = self.estimated_savings
        if self.implementation:
            data["implementation"] = self.implementation
        return data


@dataclass(frozen=True)
class QualityAssessment:
    """Code-quality notes and coarse ratings from the collaborator."""

    issues: Tuple[str, ...] = ()
    strengths: Tuple[str, ...] = ()
    maintainability: str = DEFAULT_RATING
    readability: str = DEFAULT_RATING
    testability: str = DEFAULT_RATING


@dataclass(frozen=True)
class SemanticResult:
    """Normalized semantic opinion.

    ``scores`` holds the raw scores as coerced (50 where missing, or the fixed
    default on fallback). ``quality_score`` and ``gas_score`` are only set when
    the collaborator actually reported them; otherwise the score calculator
    uses its neutral value.
    """

    findings: Tuple[Finding, ...]
    scores: ScoreSet
    quality_score: Optional[int] = None
    gas_score: Optional[int] = None
    summary: Optional[str] = None
    recommendations: Tuple[str, ...] = ()
    gas_optimizations: Tuple[GasOptimization, ...] = ()
    quality: QualityAssessment = field(default_factory=QualityAssessment)
    defi: Optional[Dict[str, Any]] = None
    compliance: Optional[Dict[str, Any]] = None
    model: Optional[str] = None
    degraded: bool = False
    error: Optional[str] = None


def _score_set(security: int, quality: int, gas: int) -> ScoreSet:
    return ScoreSet(security=security, quality=quality, gas=gas, risk_level=risk_level_for(security))


FALLBACK_SCORES = _score_set(DEFAULT_SCORE, DEFAULT_SCORE, DEFAULT_SCORE)


def fallback_result(reason: str, model: Optional[str] = None) -> SemanticResult:
    """The fixed record used whenever the collaborator cannot be trusted."""
    finding = Finding(
        kind="quality",
        category="other",
        severity=DEFAULT_SEVERITY,
        message=UNAVAILABLE_MESSAGE,
        source=SEMANTIC,
        recommendation="Manual security review recommended",
        scored=False,
    )
    return SemanticResult(
        findings=(finding,),
        scores=FALLBACK_SCORES,
        model=model,
        degraded=True,
        error=reason,
    )


# ---- field coercion ----


def _coerce_severity(value: Any) -> str:
    if not isinstance(value, str):
        return DEFAULT_SEVERITY
    sev = value.strip().lower()
    sev = _SEVERITY_ALIASES.get(sev, sev)
    return sev if sev in SEVERITY_ORDER else DEFAULT_SEVERITY


def _coerce_category(value: Any) -> str:
    if not isinstance(value, str):
        return "other"
    cat = re.sub(r"[\s_]+", "-", value.strip().lower())
    return cat if cat in CATEGORIES else "other"


def _reported_score(value: Any) -> Optional[int]:
    """A sub-score the collaborator actually gave, or None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value != value:  # NaN
        return None
    return clamp_score(value)


def _coerce_score(value: Any) -> int:
    reported = _reported_score(value)
    return DEFAULT_SCORE if reported is None else reported


def _coerce_line(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 1 else None
    if isinstance(value, float) and value.is_integer():
        return int(value) if value >= 1 else None
    if isinstance(value, str):
        m = _DIGITS_RE.search(value)
        if m and int(m.group(0)) >= 1:
            return int(m.group(0))
    return None


def _coerce_confidence(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value != value:
        return None
    return max(0.0, min(1.0, float(value)))


def _coerce_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _coerce_location(value: Any) -> Location:
    if isinstance(value, dict):
        return Location(
            line=_coerce_line(value.get("line")),
            function=_coerce_text(value.get("function")),
            contract=_coerce_text(value.get("contract")),
        )
    return Location(line=_coerce_line(value))


def _vulnerability_finding(item: Dict[str, Any]) -> Finding:
    category = _coerce_category(item.get("category"))
    title = _coerce_text(item.get("name"))
    message = _coerce_text(item.get("description")) or title or "Issue reported by semantic analysis"
    return Finding(
        kind="gas" if category == "gas" else "security",
        category=category,
        severity=_coerce_severity(item.get("severity")),
        message=message,
        source=SEMANTIC,
        location=_coerce_location(item.get("location")),
        confidence=_coerce_confidence(item.get("confidence")),
        title=title,
        recommendation=_coerce_text(item.get("recommendation")),
    )


def _coerce_rating(value: Any) -> str:
    if isinstance(value, str) and value.strip().lower() in RATINGS:
        return value.strip().lower()
    return DEFAULT_RATING


def _text_list(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(t for t in (_coerce_text(v) for v in value) if t is not None)


def _gas_optimization(item: Dict[str, Any]) -> Optional[GasOptimization]:
    description = _coerce_text(item.get("description"))
    if description is None:
        return None
    return GasOptimization(
        description=description,
        location=_coerce_location(item.get("location")),
        estimated_savings=_coerce_text(item.get("estimatedSavings")),
        implementation=_coerce_text(item.get("implementation")),
    )


def _quality_assessment(value: Any) -> QualityAssessment:
    if not isinstance(value, dict):
        return QualityAssessment()
    return QualityAssessment(
        issues=_text_list(value.get("issues")),
        strengths=_text_list(value.get("strengths")),
        maintainability=_coerce_rating(value.get("maintainability")),
        readability=_coerce_rating(value.get("readability")),
        testability=_coerce_rating(value.get("testability")),
    )


_DEFI_LISTS = (
    "liquidityRisks",
    "flashLoanVulnerabilities",
    "yieldFarmingRisks",
    "governanceRisks",
    "oracleRisks",
)
_COMPLIANCE_FLAGS = ("erc20Compliance", "erc721Compliance", "pausabilityImplemented")
_COMPLIANCE_LISTS = ("accessControlPatterns", "upgradeabilityPatterns")


def _defi_analysis(value: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(value, dict):
        return None
    defi: Dict[str, Any] = {"tokenomics": _coerce_text(value.get("tokenomics"))}
    for key in _DEFI_LISTS:
        defi[key] = list(_text_list(value.get(key)))
    return defi


def _compliance_checks(value: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(value, dict):
        return None
    checks: Dict[str, Any] = {key: value.get(key) is True for key in _COMPLIANCE_FLAGS}
    for key in _COMPLIANCE_LISTS:
        checks[key] = list(_text_list(value.get(key)))
    return checks


def _dict_items(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, dict)]


# ---- response parsing ----


def _strip_code_fence(text: str) -> str:
    if not text.startswith("```"):
        return text
    lines = text.split("\n")
    if lines[0].startswith("```"):
        lines = lines[1:]
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]
    return "\n".join(lines)


def _load_json_object(raw: RawSemanticResponse) -> Dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str):
        raise MalformedResponse(f"Unexpected response type {type(raw).__name__}")
    text = _strip_code_fence(raw.strip())
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        m = _JSON_OBJECT_RE.search(text)
        if m is None:
            raise MalformedResponse("No JSON object found in response") from None
        try:
            parsed = json.loads(m.group(0))
        except json.JSONDecodeError as e:
            raise MalformedResponse("Response contains invalid JSON") from e
    if not isinstance(parsed, dict):
        raise MalformedResponse("Response is not a JSON object")
    return parsed


def parse_semantic_response(raw: RawSemanticResponse, model: Optional[str] = None) -> SemanticResult:
    """Validate a collaborator response field by field.

    Missing or mistyped fields are coerced to safe defaults; only a response
    that is not a JSON object at all raises MalformedResponse.
    """
    data = _load_json_object(raw)

    findings = tuple(_vulnerability_finding(v) for v in _dict_items(data.get("vulnerabilities")))
    optimizations = tuple(
        opt for opt in (_gas_optimization(item) for item in _dict_items(data.get("gasOptimizations")))
        if opt is not None
    )

    code_quality = data.get("codeQuality")
    quality_raw = data.get("qualityScore")
    if quality_raw is None and isinstance(code_quality, dict):
        quality_raw = code_quality.get("score")
    gas_raw = data.get("gasScore")
    security_raw = data.get("securityScore", data.get("overallScore"))

    return SemanticResult(
        findings=findings,
        scores=_score_set(
            _coerce_score(security_raw),
            _coerce_score(quality_raw),
            _coerce_score(gas_raw),
        ),
        quality_score=_reported_score(quality_raw),
        gas_score=_reported_score(gas_raw),
        summary=_coerce_text(data.get("summary")),
        recommendations=_text_list(data.get("recommendations")),
        gas_optimizations=optimizations,
        quality=_quality_assessment(code_quality),
        defi=_defi_analysis(data.get("defiAnalysis")),
        compliance=_compliance_checks(data.get("complianceChecks")),
        model=_coerce_text(data.get("model")) or model,
    )


# ---- bounded invocation ----


def _discard(task: "asyncio.Future[Any]") -> None:
    if not task.cancelled():
        task.exception()


async def run_semantic_analysis(
    text: str,
    unit: SourceUnit,
    options: AuditOptions,
    collaborator: Optional[SemanticCollaborator],
    *,
    timeout: float,
    cancel: Optional[asyncio.Event] = None,
) -> SemanticResult:
    """Ask *collaborator* for an opinion, waiting at most *timeout* seconds.

    Setting *cancel* stops the wait early with the same fallback as a timeout.
    """
    if collaborator is None:
        return fallback_result("no semantic collaborator configured")

    model = getattr(collaborator, "model", None)
    prompt = build_prompt(text, unit, options)
    start = time.perf_counter()
    try:
        task = asyncio.ensure_future(collaborator.analyze(prompt))
    except Exception as exc:
        logger.warning("Semantic collaborator could not be started: %s", exc, exc_info=True)
        return fallback_result(f"semantic collaborator raised {type(exc).__name__}", model)
    waiters = {task}
    cancel_waiter = None
    if cancel is not None:
        cancel_waiter = asyncio.ensure_future(cancel.wait())
        waiters.add(cancel_waiter)

    try:
        done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
    finally:
        if cancel_waiter is not None:
            cancel_waiter.cancel()
        if not task.done():
            task.cancel()
            task.add_done_callback(_discard)

    elapsed = time.perf_counter() - start
    if task not in done:
        reason = "cancelled" if cancel is not None and cancel.is_set() else "timed out"
        logger.warning(
            "Semantic analysis %s after %.2fs; using fallback", reason, elapsed,
            extra={"model": model, "status": reason},
        )
        return fallback_result(f"semantic analysis {reason}", model)

    if task.cancelled():
        logger.warning("Semantic analysis task was cancelled; using fallback")
        return fallback_result("semantic analysis cancelled", model)

    try:
        raw = task.result()
    except CollaboratorError as exc:
        logger.warning("Semantic collaborator failed: %s", exc.message, extra={"model": model, "status": "error"})
        return fallback_result(exc.message, model)
    except Exception as exc:
        logger.warning("Semantic collaborator raised %s", type(exc).__name__, exc_info=True)
        return fallback_result(f"semantic collaborator raised {type(exc).__name__}", model)

    try:
        result = parse_semantic_response(raw, model)
    except MalformedResponse as exc:
        logger.warning("Semantic response rejected: %s", exc, extra={"model": model, "status": "malformed"})
        return fallback_result(str(exc), model)

    logger.info(
        "Semantic analysis completed",
        extra={"llm_latency_seconds": elapsed, "model": model, "finding_count": len(result.findings)},
    )
    return result
