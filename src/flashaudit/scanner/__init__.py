"""Static scanner — rule application and inline suppression."""

from flashaudit.scanner.static import StaticResult, check_source
from flashaudit.scanner.suppression import Suppression, SuppressionChecker

__all__ = [
    "StaticResult",
    "Suppression",
    "SuppressionChecker",
    "check_source",
]
