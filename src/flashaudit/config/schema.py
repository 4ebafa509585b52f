"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional

Severity = Literal["low", "medium", "high", "critical"]
Kind = Literal["security", "gas", "quality"]
RiskLevel = Literal["Critical", "High", "Medium", "Low"]

SEVERITY_ORDER: dict[str, int] = {
    "low": 0,
    "medium": 1,
    "high": 2,
    "critical": 3,
}

CATEGORIES: tuple[str, ...] = (
    "reentrancy",
    "access-control",
    "arithmetic",
    "logic",
    "gas",
    "defi",
    "mev",
    "other",
)


def severity_at_or_above(finding_sev: str, threshold: str) -> bool:
    """Return True if *finding_sev* is at or above *threshold*."""
    return SEVERITY_ORDER.get(finding_sev, 0) >= SEVERITY_ORDER.get(threshold, 0)


@dataclass
class EngineConfig:
    max_source_chars: int = 1_000_000
    semantic_timeout_sec: float = 60.0
    fail_on: Severity = "high"  # CLI exit code 1 at or above this level


@dataclass
class SemanticConfig:
    enabled: bool = True
    base_url: str = "https://openrouter.ai/api/v1"
    model: str = "google/gemma-2-9b-it:free"
    api_key_env: str = "OPENROUTER_API_KEY"
    temperature: float = 0.1
    max_tokens: int = 4000


@dataclass
class RulesConfig:
    enable: List[str] = field(default_factory=list)  # empty = all enabled
    disable: List[str] = field(default_factory=list)
    custom_dir: str = ".flashaudit-rules"


@dataclass
class OutputConfig:
    format: Literal["terminal", "json", "sarif"] = "terminal"
    show_summary: bool = True


@dataclass
class StorageConfig:
    enabled: bool = False
    path: str = ".flashaudit/history.jsonl"


@dataclass
class AuditConfig:
    version: str = "1.0"
    chain: str = "ethereum"
    analysis_mode: str = "comprehensive"
    engine: EngineConfig = field(default_factory=EngineConfig)
    semantic: SemanticConfig = field(default_factory=SemanticConfig)
    rules: RulesConfig = field(default_factory=RulesConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    api_key: Optional[str] = field(default=None, repr=False)


@dataclass(frozen=True)
class AuditOptions:
    """Per-audit options forwarded to semantic analysis and the report."""

    chain: str = "ethereum"
    analysis_mode: str = "comprehensive"  # comprehensive | security | gas | quality

    @classmethod
    def from_config(cls, config: AuditConfig) -> "AuditOptions":
        return cls(chain=config.chain, analysis_mode=config.analysis_mode)
