"""Inline suppression comments.

Suppression conventions (match ESLint/pylint/semgrep):
  - ``// flashaudit-ignore`` on line N suppresses ALL rules on line N.
  - ``// flashaudit-ignore`` as a standalone comment on line N suppresses line N+1.
  - ``// flashaudit-ignore[RULE_A,RULE_B]`` suppresses only those rules.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Sequence, Tuple

_SUPPRESS_RE = re.compile(
    r"(?://|/\*)\s*flashaudit-ignore"
    r"(?:\[([A-Za-z0-9_,\s]+)\])?"  # optional [RULE_A, RULE_B]
)


@dataclass(frozen=True)
class Suppression:
    """Audit record of a suppressed static finding."""

    rule_id: str
    line_no: int
    source: str  # e.g. 'flashaudit-ignore[TX_ORIGIN_AUTH]'


def parse_inline_suppression(line_content: str) -> Tuple[bool, Optional[FrozenSet[str]]]:
    """Parse a line for ``flashaudit-ignore`` comments.

    Returns:
        (is_suppressed, rule_ids) — *rule_ids* is None to suppress ALL rules,
        or a frozenset of specific IDs.
    """
    m = _SUPPRESS_RE.search(line_content)
    if m is None:
        return False, None
    scope = m.group(1)
    if scope:
        ids = frozenset(r.strip() for r in scope.split(",") if r.strip())
        return True, ids
    return True, None


def is_pure_comment(line_content: str) -> bool:
    stripped = line_content.strip()
    return stripped.startswith("//") or stripped.startswith("/*")


class SuppressionChecker:
    """Map of line number -> suppression scope for one source text."""

    def __init__(self, lines: Sequence[str]) -> None:
        self._lines: Dict[int, Optional[FrozenSet[str]]] = {}
        carry = False
        carry_ids: Optional[FrozenSet[str]] = None

        for line_no, content in enumerate(lines, 1):
            suppressed, rule_ids = parse_inline_suppression(content)
            if suppressed:
                self._lines[line_no] = rule_ids
                carry = is_pure_comment(content)
                carry_ids = rule_ids
                continue
            if carry:
                self._lines[line_no] = carry_ids
            carry = False
            carry_ids = None

    def is_suppressed(self, line_no: int, rule_id: str) -> Optional[Suppression]:
        """Return a Suppression record if the finding should be suppressed."""
        if line_no not in self._lines:
            return None
        specific_ids = self._lines[line_no]
        if specific_ids is None:
            return Suppression(rule_id=rule_id, line_no=line_no, source="flashaudit-ignore")
        if rule_id in specific_ids:
            return Suppression(
                rule_id=rule_id,
                line_no=line_no,
                source=f"flashaudit-ignore[{rule_id}]",
            )
        return None
