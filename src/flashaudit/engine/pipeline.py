"""Audit pipeline — the single entry point of the engine.

Parser -> (static checker, semantic adapter) concurrently -> aggregator ->
score calculator -> report builder. Only InputError escapes; every other
failure degrades into the report itself.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from flashaudit.config.schema import AuditConfig, AuditOptions
from flashaudit.engine.report import AuditReport, build_report, generate_audit_id
from flashaudit.findings.aggregator import aggregate
from flashaudit.findings.scoring import calculate_scores
from flashaudit.rules.registry import RuleRegistry, build_registry
from flashaudit.scanner.static import StaticResult, check_source
from flashaudit.semantic.adapter import run_semantic_analysis
from flashaudit.semantic.client import SemanticCollaborator
from flashaudit.source.parser import parse_source, validate_source

logger = logging.getLogger(__name__)


async def audit_source(
    source_text: str,
    options: Optional[AuditOptions] = None,
    *,
    config: Optional[AuditConfig] = None,
    registry: Optional[RuleRegistry] = None,
    collaborator: Optional[SemanticCollaborator] = None,
    audit_id: Optional[str] = None,
    cancel: Optional[asyncio.Event] = None,
) -> AuditReport:
    """Audit one contract source and return its report.

    Raises InputError (InputEmpty / InputTooLarge / InputNotSource) before any
    processing when preconditions fail. Without a *collaborator* the semantic
    half falls back immediately.
    """
    started = time.perf_counter()
    config = config or AuditConfig()
    options = options or AuditOptions.from_config(config)
    text = validate_source(source_text, config.engine.max_source_chars)
    registry = registry or build_registry(config)
    audit_id = audit_id or generate_audit_id()
    logger.info("Starting contract audit", extra={"audit_id": audit_id, "code_length": len(text)})

    unit = parse_source(text)
    if not unit.parse_ok:
        logger.warning("Parse degraded for %s: %s", audit_id, unit.parse_error)

    static_future = asyncio.ensure_future(asyncio.to_thread(check_source, text, registry, unit))
    try:
        semantic = await run_semantic_analysis(
            text,
            unit,
            options,
            collaborator,
            timeout=config.engine.semantic_timeout_sec,
            cancel=cancel,
        )
    except BaseException:
        static_future.cancel()
        raise

    static_error: Optional[str] = None
    try:
        static = await static_future
    except Exception as exc:
        logger.exception("Static analysis failed for %s", audit_id)
        static = StaticResult()
        static_error = f"{type(exc).__name__}: {exc}"

    findings = aggregate(static.findings, semantic.findings)
    scores = calculate_scores(findings, quality=semantic.quality_score, gas=semantic.gas_score)

    report = build_report(
        unit=unit,
        findings=findings,
        scores=scores,
        semantic=semantic,
        options=options,
        started=started,
        audit_id=audit_id,
        static_error=static_error,
        suppressed=len(static.suppressed),
    )
    logger.info(
        "Contract audit completed",
        extra={
            "audit_id": audit_id,
            "security_score": scores.security,
            "finding_count": len(findings),
            "execution_time_ms": report.execution_time_ms,
        },
    )
    return report


def audit_source_sync(source_text: str, options: Optional[AuditOptions] = None, **kwargs) -> AuditReport:
    """Blocking wrapper around :func:`audit_source` for callers without a loop."""
    return asyncio.run(audit_source(source_text, options, **kwargs))
