"""Built-in rules — aggregate all categories in table order."""

import dataclasses

from flashaudit.rules.builtin.access_control import DELEGATECALL, TX_ORIGIN_AUTH
from flashaudit.rules.builtin.gas import STORAGE_WRITE
from flashaudit.rules.builtin.logic import SELFDESTRUCT
from flashaudit.rules.builtin.reentrancy import EXTERNAL_CALL_REENTRANCY
from flashaudit.rules.models import Rule

ALL_BUILTIN_RULES: list[Rule] = [
    TX_ORIGIN_AUTH,
    EXTERNAL_CALL_REENTRANCY,
    SELFDESTRUCT,
    DELEGATECALL,
    STORAGE_WRITE,
]


def builtin_rules() -> list[Rule]:
    """Fresh copies, so enabling or disabling never leaks between registries."""
    return [dataclasses.replace(r) for r in ALL_BUILTIN_RULES]


__all__ = ["ALL_BUILTIN_RULES", "builtin_rules"]
