"""Data model shared by the analysis client, formatter and review engine."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class Severity(Enum):
    """Issue severity levels."""
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


class AnalysisRubric(Enum):
    """The three fixed analysis dimensions, in the order they are run."""
    PERFORMANCE = "performance"
    SECURITY = "security"
    DESIGN_PRINCIPLES = "design-principles"


@dataclass(frozen=True)
class Issue:
    """A single finding produced under one rubric for one file."""

    kind: AnalysisRubric
    description: str
    location: str
    recommendation: str
    severity: Severity
    code_snippet: Optional[str] = None


@dataclass(frozen=True)
class FileChange:
    """A changed file as delivered by the platform."""
    filename: Optional[str]
    content: str = ""


@dataclass
class FileAnalysisResult:
    """Issues of one file grouped by the rubric that produced them."""

    issues: Dict[AnalysisRubric, List[Issue]] = field(
        default_factory=lambda: {rubric: [] for rubric in AnalysisRubric}
    )

    def for_rubric(self, rubric: AnalysisRubric) -> List[Issue]:
        return self.issues.get(rubric, [])

    def count(self, rubric: AnalysisRubric) -> int:
        return len(self.for_rubric(rubric))

    @property
    def total_issues(self) -> int:
        return sum(len(issues) for issues in self.issues.values())

    def get_issues_by_severity(self, severity: Severity) -> List[Issue]:
        """Get issues filtered by severity, in rubric order."""
        return [
            issue
            for rubric in AnalysisRubric
            for issue in self.for_rubric(rubric)
            if issue.severity == severity
        ]

    def has_critical_issues(self) -> bool:
        return len(self.get_issues_by_severity(Severity.CRITICAL)) > 0


# filename -> result, in the order files were analyzed
ReviewOutcome = Dict[str, FileAnalysisResult]
