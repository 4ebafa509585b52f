"""Source validation and structural parsing."""

from flashaudit.source.models import Complexity, FunctionSignature, SourceUnit
from flashaudit.source.parser import (
    InputEmpty,
    InputError,
    InputNotSource,
    InputTooLarge,
    parse_source,
    validate_source,
)

__all__ = [
    "Complexity",
    "FunctionSignature",
    "InputEmpty",
    "InputError",
    "InputNotSource",
    "InputTooLarge",
    "SourceUnit",
    "parse_source",
    "validate_source",
]
