"""Severity definitions for critic findings."""

from __future__ import annotations

from enum import Enum
from typing import Union

# Perl::Critic numbers its levels from 1 (brutal) to 5 (gentle).
NUMERIC_LEVELS = {
    5: "CRITICAL",
    4: "HIGH",
    3: "MEDIUM",
    2: "LOW",
    1: "INFO",
}


class Severity(str, Enum):
    """Enumerate the supported severity levels for findings."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"

    @property
    def exit_priority(self) -> int:
        """Return an integer ranking to drive exit code decisions."""

        ordering = {
            Severity.CRITICAL: 2,
            Severity.HIGH: 2,
            Severity.MEDIUM: 1,
            Severity.LOW: 0,
            Severity.INFO: 0,
        }
        return ordering[self]

    @property
    def rank(self) -> int:
        for level, name in NUMERIC_LEVELS.items():
            if name == self.value:
                return level
        raise AssertionError(self.value)  # pragma: no cover

    @classmethod
    def parse(cls, value: Union[str, int, "Severity"]) -> "Severity":
        """Accept an enum name (any case) or a Perl::Critic numeric level."""

        if isinstance(value, Severity):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid severity: {value!r}")
        if isinstance(value, int) or (isinstance(value, str) and value.strip().isdigit()):
            level = int(value)
            if level not in NUMERIC_LEVELS:
                raise ValueError(f"Severity level must be between 1 and 5, got {level}")
            return cls(NUMERIC_LEVELS[level])
        if isinstance(value, str) and value.strip().upper() in cls.__members__:
            return cls[value.strip().upper()]
        raise ValueError(f"Invalid severity: {value!r}")
