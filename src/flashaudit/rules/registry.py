"""Rule registry — loads built-in and custom rules, applies config filters."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from flashaudit.config.schema import CATEGORIES, SEVERITY_ORDER, AuditConfig
from flashaudit.rules.models import Rule


class RuleLoadError(Exception):
    """Raised when a custom rule file is invalid."""


class RuleRegistry:
    """Central store for all detection rules, in registration order."""

    def __init__(self) -> None:
        self._rules: Dict[str, Rule] = {}

    # ---- registration ----

    def register(self, rule: Rule) -> None:
        self._rules[rule.id] = rule

    def register_many(self, rules: list[Rule]) -> None:
        for r in rules:
            self.register(r)

    # ---- queries ----

    @property
    def all_rules(self) -> List[Rule]:
        return list(self._rules.values())

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._rules.get(rule_id)

    def enabled_rules(self) -> List[Rule]:
        return [r for r in self._rules.values() if r.enabled]

    # ---- config filtering ----

    def apply_config(self, config: AuditConfig) -> None:
        """Enable / disable rules based on config.rules."""
        enable_list = config.rules.enable
        disable_list = config.rules.disable

        for rule in self._rules.values():
            if enable_list:
                rule.enabled = rule.id in enable_list
            # Disable list always takes precedence
            if rule.id in disable_list:
                rule.enabled = False

    # ---- custom rule loading ----

    def load_custom_rules(self, directory: Path) -> int:
        """Load YAML rule files from *directory*. Returns count loaded."""
        count = 0
        if not directory.is_dir():
            return 0
        for path in sorted(directory.iterdir()):
            if path.suffix in (".yaml", ".yml"):
                count += self._load_yaml_rules(path)
        return count

    def _load_yaml_rules(self, path: Path) -> int:
        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise RuleLoadError(f"{path}: {exc}") from exc
        if data is None:
            return 0
        if not isinstance(data, list):
            data = [data]
        count = 0
        for entry in data:
            self.register(_rule_from_entry(entry, path))
            count += 1
        return count


def _rule_from_entry(entry: object, path: Path) -> Rule:
    if not isinstance(entry, dict) or "id" not in entry or "pattern" not in entry:
        raise RuleLoadError(f"{path}: each rule needs at least 'id' and 'pattern'")
    severity = entry.get("severity", "medium")
    if severity not in SEVERITY_ORDER:
        raise RuleLoadError(f"{path}: rule {entry['id']} has invalid severity {severity!r}")
    category = entry.get("category", "other")
    if category not in CATEGORIES:
        category = "other"
    kind = entry.get("kind", "gas" if category == "gas" else "security")
    if kind not in ("security", "gas", "quality"):
        raise RuleLoadError(f"{path}: rule {entry['id']} has invalid kind {kind!r}")
    try:
        re.compile(entry["pattern"])
    except re.error as exc:
        raise RuleLoadError(f"{path}: rule {entry['id']} pattern: {exc}") from exc
    return Rule(
        id=entry["id"],
        name=entry.get("name", entry["id"]),
        description=entry.get("description", ""),
        kind=kind,
        category=category,
        severity=severity,
        pattern=entry["pattern"],
        recommendation=entry.get("recommendation", ""),
        allowlist_patterns=entry.get("allowlist_patterns"),
    )


def build_registry(config: AuditConfig, root: Optional[Path] = None) -> RuleRegistry:
    """Create a fully populated, config-filtered rule registry.

    Custom YAML rules are only loaded when *root* is given.
    """
    from flashaudit.rules.builtin import builtin_rules

    registry = RuleRegistry()
    registry.register_many(builtin_rules())

    if root is not None:
        registry.load_custom_rules(root / config.rules.custom_dir)
    registry.apply_config(config)

    # Force-compile patterns now (not inside the hot loop)
    for rule in registry.enabled_rules():
        _ = rule.compiled_pattern
        _ = rule.compiled_allowlist

    return registry
