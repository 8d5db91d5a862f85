"""Wire vocabularies shared by Tuteliq analysis results."""

from __future__ import annotations

from enum import Enum


class Severity(str, Enum):
    """Severity level for detected issues."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RiskLevel(str, Enum):
    """Overall risk level for analysed content."""

    SAFE = "safe"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def parse_enum(enum_cls: type[Enum], value: str | None) -> Enum | None:
    """Look up ``value`` in ``enum_cls``, returning None when it is unknown."""
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None


__all__ = ["Severity", "RiskLevel", "parse_enum"]
