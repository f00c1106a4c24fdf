"""Core result data structures for the critic."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Sequence, Tuple

from .severity import Severity

SEVERITY_ORDER: Sequence[Severity] = (
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
    Severity.INFO,
)


@dataclass
class Finding:
    """Capture a single policy violation in a tree document."""

    id: str
    title: str
    path: str
    severity: Severity
    rule: str
    recommendation: str
    line: Optional[int] = None
    column: Optional[int] = None
    evidence: str = ""

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data


@dataclass
class Summary:
    """Aggregate finding counts by severity."""

    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    info: int = 0

    def increment(self, severity: Severity) -> None:
        attr = severity.value.lower()
        setattr(self, attr, getattr(self, attr) + 1)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    def as_rows(self) -> List[Tuple[str, int]]:
        """Return severity/count pairs ordered for reporting."""

        return [(severity.value, getattr(self, severity.value.lower())) for severity in SEVERITY_ORDER]

    @property
    def total(self) -> int:
        return sum(getattr(self, severity.value.lower()) for severity in SEVERITY_ORDER)


@dataclass
class ScanResult:
    """Bundle scan summary, findings and the documents that were skipped."""

    summary: Summary = field(default_factory=Summary)
    findings: List[Finding] = field(default_factory=list)
    documents: int = 0
    skipped: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(finding.severity.exit_priority == 0 for finding in self.findings)

    def add_finding(self, finding: Finding) -> None:
        self.summary.increment(finding.severity)
        self.findings.append(finding)

    def to_dict(self) -> Dict[str, object]:
        return {
            "summary": self.summary.to_dict(),
            "findings": [finding.to_dict() for finding in self.findings],
            "documents": self.documents,
            "skipped": list(self.skipped),
            "passed": self.passed,
        }

    def exit_code(self) -> int:
        return max((finding.severity.exit_priority for finding in self.findings), default=0)

    def top_findings(self, limit: int = 5) -> List[Finding]:
        """Return findings ordered by severity ranking, then location."""

        severity_rank = {severity: idx for idx, severity in enumerate(SEVERITY_ORDER)}
        ordered = sorted(
            self.findings,
            key=lambda finding: (severity_rank[finding.severity], finding.path, finding.id),
        )
        return ordered[:limit]


def format_summary_table(result: ScanResult, max_findings: int = 5) -> str:
    """Create a human-readable summary table for console output."""

    lines: List[str] = []
    lines.append("Critic Summary")
    lines.append("=" * 40)
    header = f"{'Severity':<10} | {'Count':>5}"
    lines.append(header)
    lines.append("-" * len(header))
    for severity, count in result.summary.as_rows():
        lines.append(f"{severity:<10} | {count:>5}")
    lines.append("-" * len(header))
    status = "PASS" if result.passed else "FAIL"
    lines.append(f"Status    : {status}")
    lines.append(f"Documents : {result.documents}")
    if result.skipped:
        lines.append(f"Skipped   : {len(result.skipped)}")
    lines.append(f"Findings  : {result.summary.total}")

    findings = result.top_findings(max_findings)
    if findings:
        lines.append("")
        lines.append("Top Findings")
        lines.append("-" * 40)
        for finding in findings:
            lines.append(f"[{finding.severity.value}] {finding.id} {finding.title} ({finding.rule})")
            lines.append(f"  Location: {finding.path}")
            if finding.evidence:
                lines.append(f"  Evidence: {finding.evidence}")
    return "\n".join(lines)
