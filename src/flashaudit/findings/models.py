"""Finding and score data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

STATIC = "static"
SEMANTIC = "semantic"


@dataclass(frozen=True)
class Location:
    """Best-effort position of a finding; every part may be absent."""

    line: Optional[int] = None
    function: Optional[str] = None
    contract: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            k: v
            for k, v in (
                ("line", self.line),
                ("function", self.function),
                ("contract", self.contract),
            )
            if v is not None
        }


@dataclass(frozen=True)
class Finding:
    """One detected issue, from a static rule or from semantic analysis."""

    kind: str  # security | gas | quality
    category: str  # reentrancy | access-control | arithmetic | logic | gas | ...
    severity: str  # critical | high | medium | low
    message: str
    source: str  # static | semantic
    location: Location = field(default_factory=Location)
    confidence: Optional[float] = None
    rule_id: Optional[str] = None
    title: Optional[str] = None
    recommendation: Optional[str] = None
    scored: bool = True  # False for the "analysis unavailable" placeholder

    @property
    def line(self) -> Optional[int]:
        return self.location.line

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "kind": self.kind,
            "category": self.category,
            "severity": self.severity,
            "message": self.message,
            "source": self.source,
            "location": self.location.to_dict(),
        }
        if self.title:
            data["title"] = self.title
        if self.rule_id:
            data["ruleId"] = self.rule_id
        if self.confidence is not None:
            data["confidence"] = self.confidence
        if self.recommendation:
            data["recommendation"] = self.recommendation
        if not self.scored:
            data["scored"] = False
        return data


@dataclass(frozen=True)
class ScoreSet:
    """Security, quality and gas scores (0-100) plus the derived risk level."""

    security: int
    quality: int
    gas: int
    risk_level: str  # Critical | High | Medium | Low

    def to_dict(self) -> Dict[str, Any]:
        return {
            "security": self.security,
            "quality": self.quality,
            "gas": self.gas,
            "riskLevel": self.risk_level,
        }
