"""Data models for parsed contract source."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class Complexity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class FunctionSignature:
    """A single ``function`` declaration."""

    name: str
    visibility: str  # public | external | internal | private
    mutability: str  # pure | view | payable | nonpayable
    line: int


@dataclass(frozen=True)
class SourceUnit:
    """Raw contract text plus the structural facts extracted from it."""

    text: str = field(repr=False)
    line_count: int
    contracts: Tuple[str, ...] = ()
    functions: Tuple[FunctionSignature, ...] = ()
    modifiers: Tuple[str, ...] = ()
    events: Tuple[str, ...] = ()
    pragmas: Tuple[str, ...] = ()
    imports: Tuple[str, ...] = ()
    complexity: Complexity = Complexity.UNKNOWN
    parse_error: Optional[str] = None

    @property
    def parse_ok(self) -> bool:
        return self.parse_error is None

    def function_at(self, line: int) -> Optional[str]:
        """Name of the closest function declared at or before *line*."""
        best: Optional[str] = None
        for fn in self.functions:
            if fn.line <= line:
                best = fn.name
            else:
                break
        return best

    def summary(self) -> dict:
        """Compact summary embedded in reports and prompts."""
        return {
            "linesOfCode": self.line_count,
            "complexity": self.complexity.value,
            "contracts": list(self.contracts),
            "functions": len(self.functions),
            "modifiers": len(self.modifiers),
            "events": len(self.events),
            "pragmaDirectives": list(self.pragmas),
            "parseError": self.parse_error,
        }
