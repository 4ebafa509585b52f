"""Static rule checker — applies the rule table line by line.

A pure function of its input: the same text and registry always produce the
same findings in the same order (line, then rule table order).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from flashaudit.findings.models import STATIC, Finding, Location
from flashaudit.rules.registry import RuleRegistry
from flashaudit.scanner.suppression import Suppression, SuppressionChecker
from flashaudit.source.models import SourceUnit
from flashaudit.source.parser import normalize_newlines, source_lines, strip_comments


@dataclass
class StaticResult:
    findings: List[Finding] = field(default_factory=list)
    suppressed: List[Suppression] = field(default_factory=list)


def check_source(
    text: str,
    registry: RuleRegistry,
    unit: Optional[SourceUnit] = None,
) -> StaticResult:
    """Run every enabled rule over *text*.

    Rules see comment-stripped lines, so commented-out code never fires.
    *unit* is only used to attach the enclosing function name.
    """
    raw_lines = source_lines(text)
    code_lines = source_lines(strip_comments(normalize_newlines(text)))
    suppressions = SuppressionChecker(raw_lines)
    rules = registry.enabled_rules()

    result = StaticResult()
    for index, line in enumerate(code_lines):
        if not line.strip():
            continue
        line_no = index + 1
        for rule in rules:
            severity = rule.match(code_lines, index)
            if severity is None:
                continue
            sup = suppressions.is_suppressed(line_no, rule.id)
            if sup is not None:
                result.suppressed.append(sup)
                continue
            result.findings.append(
                Finding(
                    kind=rule.kind,
                    category=rule.category,
                    severity=severity,
                    message=rule.description,
                    source=STATIC,
                    location=Location(
                        line=line_no,
                        function=unit.function_at(line_no) if unit else None,
                    ),
                    rule_id=rule.id,
                    title=rule.name,
                    recommendation=rule.recommendation or None,
                )
            )
    return result
