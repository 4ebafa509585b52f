"""Structural parser — token-pattern extraction of Solidity declarations.

This is deliberately not a grammar. Comments are blanked out first (line
numbers preserved) and declarations are pulled out with regexes. Malformed
input never raises; it just yields empty lists.
"""

from __future__ import annotations

import re
from typing import List

from flashaudit.source.models import Complexity, FunctionSignature, SourceUnit


class InputError(Exception):
    """Raised when the input is rejected before any processing starts."""


class InputEmpty(InputError):
    """Source text is empty or whitespace only."""


class InputTooLarge(InputError):
    """Source text exceeds the configured maximum size."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Source is {size} characters; the limit is {limit}")


class InputNotSource(InputError):
    """Input is not text source code (e.g. binary content)."""


_CONTRACT_RE = re.compile(r"\b(?:contract|library|interface)\s+([A-Za-z_$][\w$]*)")
_FUNCTION_RE = re.compile(r"\bfunction\s+([A-Za-z_$][\w$]*)\s*\(([^)]*)\)([^{;]*)")
_MODIFIER_RE = re.compile(r"\bmodifier\s+([A-Za-z_$][\w$]*)")
_EVENT_RE = re.compile(r"\bevent\s+([A-Za-z_$][\w$]*)")
_PRAGMA_RE = re.compile(r"\bpragma\s+solidity\s+[^;]+")
_IMPORT_RE = re.compile(r"\bimport\s+[^;]+;")
_QUOTED_RE = re.compile(r"[\"']([^\"']+)[\"']")

_VISIBILITY_RE = re.compile(r"\b(public|external|internal|private)\b")
_MUTABILITY_RE = re.compile(r"\b(pure|view|payable)\b")

LOW_COMPLEXITY_BELOW = 20
HIGH_COMPLEXITY_ABOVE = 50


def validate_source(text: object, max_chars: int) -> str:
    """Reject inputs that must never reach the pipeline."""
    if not isinstance(text, str) or not text.strip():
        raise InputEmpty("Contract source must be a non-empty string")
    if len(text) > max_chars:
        raise InputTooLarge(len(text), max_chars)
    if "\x00" in text:
        raise InputNotSource("Contract source contains binary data")
    return text


def normalize_newlines(text: str) -> str:
    r"""Fold ``\r\n`` and lone ``\r`` into ``\n``."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def source_lines(text: str) -> List[str]:
    r"""Split on ``\n`` only, so line numbers agree with offset counting.

    ``str.splitlines`` also breaks on form feeds and Unicode separators,
    which would shift every later line against the parser.
    """
    lines = normalize_newlines(text).split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def strip_comments(text: str) -> str:
    """Blank out ``//`` and ``/* */`` comments, keeping newlines and offsets."""
    out: List[str] = []
    i = 0
    n = len(text)
    quote = ""
    while i < n:
        ch = text[i]
        if quote:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == quote or ch == "\n":
                quote = ""
            i += 1
            continue
        if ch in ("'", '"'):
            quote = ch
            out.append(ch)
            i += 1
            continue
        nxt = text[i + 1] if i + 1 < n else ""
        if ch == "/" and nxt == "/":
            end = text.find("\n", i)
            end = n if end == -1 else end
            out.append(" " * (end - i))
            i = end
            continue
        if ch == "/" and nxt == "*":
            end = text.find("*/", i + 2)
            end = n if end == -1 else end + 2
            out.extend("\n" if c == "\n" else " " for c in text[i:end])
            i = end
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def _line_of(text: str, offset: int) -> int:
    return text.count("\n", 0, offset) + 1


def _parse_function(code: str, m: re.Match[str]) -> FunctionSignature:
    tail = m.group(3)
    vis = _VISIBILITY_RE.search(tail)
    mut = _MUTABILITY_RE.search(tail)
    return FunctionSignature(
        name=m.group(1),
        visibility=vis.group(1) if vis else "internal",
        mutability=mut.group(1) if mut else "nonpayable",
        line=_line_of(code, m.start()),
    )


def complexity_score(functions: int, contracts: int, lines: int) -> float:
    return functions + 2 * contracts + lines / 10


def classify_complexity(score: float) -> Complexity:
    if score < LOW_COMPLEXITY_BELOW:
        return Complexity.LOW
    if score > HIGH_COMPLEXITY_ABOVE:
        return Complexity.HIGH
    return Complexity.MEDIUM


def parse_source(text: str) -> SourceUnit:
    """Extract declarations and metrics from *text*. Never raises."""
    code = strip_comments(normalize_newlines(text))
    line_count = len(source_lines(text))

    contracts = tuple(m.group(1) for m in _CONTRACT_RE.finditer(code))
    functions = tuple(_parse_function(code, m) for m in _FUNCTION_RE.finditer(code))
    modifiers = tuple(m.group(1) for m in _MODIFIER_RE.finditer(code))
    events = tuple(m.group(1) for m in _EVENT_RE.finditer(code))
    pragmas = tuple(" ".join(m.group(0).split()) for m in _PRAGMA_RE.finditer(code))

    imports: List[str] = []
    for m in _IMPORT_RE.finditer(code):
        quoted = _QUOTED_RE.search(m.group(0))
        if quoted:
            imports.append(quoted.group(1))

    if not contracts:
        return SourceUnit(
            text=text,
            line_count=line_count,
            functions=functions,
            modifiers=modifiers,
            events=events,
            pragmas=pragmas,
            imports=tuple(imports),
            complexity=Complexity.UNKNOWN,
            parse_error="No contract, library, or interface declaration found",
        )

    score = complexity_score(len(functions), len(contracts), line_count)
    return SourceUnit(
        text=text,
        line_count=line_count,
        contracts=contracts,
        functions=functions,
        modifiers=modifiers,
        events=events,
        pragmas=pragmas,
        imports=tuple(imports),
        complexity=classify_complexity(score),
    )
