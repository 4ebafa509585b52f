"""Access-control rules — tx.origin authorization and delegatecall."""

from flashaudit.rules.models import Rule

TX_ORIGIN_AUTH = Rule(
    id="TX_ORIGIN_AUTH",
    name="tx.origin Authorization",
    description="Use of tx.origin is discouraged for security reasons.",
    kind="security",
    category="access-control",
    severity="high",
    pattern=r"\btx\.origin\b",
    recommendation="Use msg.sender for authorization instead of tx.origin.",
)

DELEGATECALL = Rule(
    id="DELEGATECALL",
    name="Low-level delegatecall",
    description="delegatecall can be dangerous if not properly secured.",
    kind="security",
    category="access-control",
    severity="high",
    pattern=r"\.delegatecall\s*\(",
    recommendation=(
        "Only delegatecall into trusted, immutable targets and restrict who "
        "can choose the target address."
    ),
)
