"""Gas-pattern rules."""

from flashaudit.rules.models import Rule

STORAGE_WRITE = Rule(
    id="STORAGE_WRITE",
    name="Storage Reference Assignment",
    description="Consider using memory instead of storage for temporary variables.",
    kind="gas",
    category="gas",
    severity="low",
    pattern=r"\bstorage\s+[A-Za-z_$][\w$]*\s*=(?!=)",
    recommendation="Cache storage values in memory when they are only read.",
)
