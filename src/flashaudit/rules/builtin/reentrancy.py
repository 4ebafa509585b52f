"""Reentrancy rule — external calls and value transfers.

Severity is ``high`` when a state write follows the call inside the same
function (checks-effects-interactions violated), ``medium`` otherwise.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence, Tuple

from flashaudit.rules.models import Rule

_DECLARATION_RE = re.compile(r"^\s*(?:function\b|modifier\b|constructor\s*\(|fallback\s*\(|receive\s*\()")
_STATE_WRITE_RE = re.compile(
    r"^\s*(?:delete\s+[A-Za-z_$]"
    r"|[A-Za-z_$][\w$]*(?:\s*\[[^\]]*\]|\.[A-Za-z_$][\w$]*)*\s*(?:[-+*/%|&^]?=(?!=)|\+\+|--))"
)


def function_bounds(lines: Sequence[str], index: int) -> Tuple[int, int]:
    """Return the (start, end) line indexes of the body enclosing *index*.

    Falls back to the whole text when no enclosing declaration is found.
    """
    start = 0
    for i in range(index, -1, -1):
        if _DECLARATION_RE.match(lines[i]):
            start = i
            break
    depth = 0
    opened = False
    for i in range(start, len(lines)):
        for ch in lines[i]:
            if ch == "{":
                depth += 1
                opened = True
            elif ch == "}":
                depth -= 1
        if opened and depth <= 0 and i >= index:
            return start, i
    return start, len(lines) - 1


def state_write_after(lines: Sequence[str], index: int) -> bool:
    """True if a line after *index*, in the same function, writes state."""
    _, end = function_bounds(lines, index)
    return any(_STATE_WRITE_RE.match(lines[i]) for i in range(index + 1, end + 1))


def check_external_call(lines: Sequence[str], index: int, _m: "re.Match[str]") -> Optional[str]:
    return "high" if state_write_after(lines, index) else "medium"


EXTERNAL_CALL_REENTRANCY = Rule(
    id="EXTERNAL_CALL_REENTRANCY",
    name="External Call Before State Update",
    description=(
        "Potential reentrancy vulnerability - ensure proper "
        "checks-effects-interactions pattern."
    ),
    kind="security",
    category="reentrancy",
    severity="medium",
    pattern=r"\.(?:call|send|transfer)\s*[({]",
    recommendation=(
        "Update state before external calls (checks-effects-interactions) "
        "or add a reentrancy guard."
    ),
    check=check_external_call,
)
