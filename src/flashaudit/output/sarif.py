"""SARIF v2.1.0 reporter — GitHub Advanced Security / Code Scanning."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from flashaudit import __version__
from flashaudit.engine.report import AuditReport
from flashaudit.findings.models import Finding

_SEVERITY_MAP = {
    "critical": "error",
    "high": "error",
    "medium": "warning",
    "low": "note",
}

_SECURITY_SEVERITY = {
    "critical": "9.5",
    "high": "7.5",
    "medium": "5.0",
    "low": "2.0",
}


def _rule_id(f: Finding) -> str:
    """Static findings keep their rule id; semantic ones group by category."""
    return f.rule_id or f"SEMANTIC_{f.category.upper().replace('-', '_')}"


def to_dict(report: AuditReport, artifact_uri: str = "contract.sol") -> Dict[str, Any]:
    """Convert an AuditReport to a SARIF v2.1.0 dict."""
    rules: List[Dict[str, Any]] = []
    seen_rules: set[str] = set()
    results: List[Dict[str, Any]] = []

    for f in report.findings:
        rule_id = _rule_id(f)
        if rule_id not in seen_rules:
            seen_rules.add(rule_id)
            rules.append({
                "id": rule_id,
                "name": f.title or rule_id,
                "shortDescription": {"text": f.title or f.category},
                "fullDescription": {"text": f.message},
                "defaultConfiguration": {"level": _SEVERITY_MAP.get(f.severity, "warning")},
                "properties": {
                    "security-severity": _SECURITY_SEVERITY.get(f.severity, "5.0"),
                    "tags": [f.kind, f.category],
                },
            })

        location: Dict[str, Any] = {"artifactLocation": {"uri": artifact_uri}}
        if f.line is not None:
            location["region"] = {"startLine": f.line}
        results.append({
            "ruleId": rule_id,
            "level": _SEVERITY_MAP.get(f.severity, "warning"),
            "message": {"text": f.message},
            "locations": [{"physicalLocation": location}],
            "properties": {"source": f.source, "severity": f.severity},
        })

    return {
        "$schema": "https://json.schemastore.org/sarif-2.1.0.json",
        "version": "2.1.0",
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": "flashaudit",
                        "version": __version__,
                        "rules": rules,
                    }
                },
                "results": results,
                "properties": {
                    "auditId": report.audit_id,
                    "scores": report.scores.to_dict(),
                },
            }
        ],
    }


def render(report: AuditReport, artifact_uri: str = "contract.sol") -> str:
    """Return SARIF JSON string."""
    return json.dumps(to_dict(report, artifact_uri), indent=2)
