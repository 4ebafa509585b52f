"""Rule data model — pattern stored as string, compiled on first use."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from flashaudit.config.schema import Severity

# (code lines, 0-based index of the matching line, match) -> severity or None
SeverityCheck = Callable[[Sequence[str], int, "re.Match[str]"], Optional[str]]


@dataclass
class Rule:
    """A single line-scoped detection rule.

    ``pattern`` is stored as a raw string so the rule remains serialisable.
    ``check`` optionally refines the severity from surrounding lines, or
    returns None to discard the match.
    """

    id: str
    name: str
    description: str
    kind: str  # security | gas | quality
    category: str
    severity: Severity
    pattern: str
    recommendation: str = ""
    allowlist_patterns: Optional[List[str]] = None
    check: Optional[SeverityCheck] = field(default=None, repr=False, compare=False)
    enabled: bool = True

    _compiled_pattern: Optional[re.Pattern[str]] = field(
        default=None, init=False, repr=False, compare=False
    )
    _compiled_allowlist: Optional[List[re.Pattern[str]]] = field(
        default=None, init=False, repr=False, compare=False
    )

    @property
    def compiled_pattern(self) -> re.Pattern[str]:
        if self._compiled_pattern is None:
            self._compiled_pattern = re.compile(self.pattern)
        return self._compiled_pattern

    @property
    def compiled_allowlist(self) -> List[re.Pattern[str]]:
        if self._compiled_allowlist is None:
            self._compiled_allowlist = [
                re.compile(p, re.IGNORECASE) for p in self.allowlist_patterns or []
            ]
        return self._compiled_allowlist

    def match(self, lines: Sequence[str], index: int) -> Optional[str]:
        """Return the severity if the rule fires on ``lines[index]``, else None."""
        line = lines[index]
        m = self.compiled_pattern.search(line)
        if m is None:
            return None
        if any(p.search(line) for p in self.compiled_allowlist):
            return None
        if self.check is not None:
            return self.check(lines, index, m)
        return self.severity
