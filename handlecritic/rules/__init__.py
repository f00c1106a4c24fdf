"""Rule registry for the critic."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence, Tuple

from handlecritic.result import ScanResult
from handlecritic.severity import Severity
from handlecritic.tree import SyntaxTree


class Rule(Protocol):
    """Protocol implemented by all rule evaluators."""

    name: str
    severity: Severity
    themes: Tuple[str, ...]

    def scan(self, context: "ScanContext", result: ScanResult) -> None:
        """Analyze the provided context and append findings to ``result``."""


@dataclass
class ScanContext:
    """Bundle inputs shared across rules."""

    documents: Sequence[SyntaxTree]
