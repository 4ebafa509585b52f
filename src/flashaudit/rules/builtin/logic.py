"""Contract lifecycle rules."""

from flashaudit.rules.models import Rule

SELFDESTRUCT = Rule(
    id="SELFDESTRUCT",
    name="selfdestruct Invocation",
    description="selfdestruct is deprecated and potentially dangerous.",
    kind="security",
    category="logic",
    severity="medium",
    pattern=r"\b(?:selfdestruct|suicide)\s*\(",
    recommendation="Remove selfdestruct or guard it behind strict access control.",
)
