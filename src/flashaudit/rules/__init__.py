"""Rule engine — models, registry, built-in rules."""

from flashaudit.rules.models import Rule
from flashaudit.rules.registry import RuleLoadError, RuleRegistry, build_registry

__all__ = ["Rule", "RuleLoadError", "RuleRegistry", "build_registry"]
