"""flashaudit — smart-contract audit engine."""

__version__ = "0.3.0"
