"""Markdown rendering of review results."""

from typing import List, Sequence, Tuple

from .analyzers.models import AnalysisRubric, FileAnalysisResult, Issue

SECTION_TITLES = {
    AnalysisRubric.PERFORMANCE: "Performance Issues",
    AnalysisRubric.SECURITY: "Security Issues",
    AnalysisRubric.DESIGN_PRINCIPLES: "Design Principle Violations",
}

SUMMARY_LABELS = {
    AnalysisRubric.PERFORMANCE: "Performance issues",
    AnalysisRubric.SECURITY: "Security issues",
    AnalysisRubric.DESIGN_PRINCIPLES: "Design principle (SOLID) violations",
}

NO_ISSUES_LINE = "No issues found during code review.\n"
CLOSING_RECOMMENDATION = "Please address the identified issues before merging this pull request.\n"


class CommentFormatter:
    """Stateless markdown formatter for per-file and summary comments.

    Files and issues are rendered in the order they were produced.
    """

    @staticmethod
    def count_issues(result: FileAnalysisResult) -> int:
        return sum(result.count(rubric) for rubric in AnalysisRubric)

    @classmethod
    def format_file_comment(cls, result: FileAnalysisResult, filename: str) -> str:
        """Format one file's analysis as a markdown comment."""
        total = cls.count_issues(result)

        lines = [f"## Code Review for `{filename}`", "", "### Summary"]
        lines.append(f"- Total issues found: {total}")
        for rubric in AnalysisRubric:
            lines.append(f"- {SUMMARY_LABELS[rubric]}: {result.count(rubric)}")
        markdown = "\n".join(lines) + "\n\n"

        for rubric in AnalysisRubric:
            issues = result.for_rubric(rubric)
            if issues:
                markdown += cls.format_issue_section(SECTION_TITLES[rubric], issues)

        if total == 0:
            markdown += NO_ISSUES_LINE

        return markdown

    @staticmethod
    def format_issue_section(title: str, issues: Sequence[Issue]) -> str:
        section = f"### {title}\n\n"

        for index, issue in enumerate(issues, 1):
            heading = f"#### {index}. {issue.severity.value.capitalize()}"
            if issue.location:
                heading += f" (line {issue.location})"
            section += heading + "\n"
            section += f"**Description:** {issue.description or 'No description provided'}\n\n"
            if issue.location:
                section += f"**Location:** {issue.location}\n\n"
            if issue.recommendation:
                section += f"**Recommendation:** {issue.recommendation}\n\n"
            section += f"**Severity:** {issue.severity.value}\n\n"
            if issue.code_snippet:
                section += "**Code Snippet:**\n"
                section += f"```\n{issue.code_snippet}\n```\n\n"

        return section

    @classmethod
    def format_summary_comment(cls, files: Sequence[Tuple[str, FileAnalysisResult]]) -> str:
        """Format the pull-request level summary comment."""
        counts: List[Tuple[str, int]] = [
            (filename, cls.count_issues(result)) for filename, result in files
        ]
        total_issues = sum(count for _, count in counts)

        markdown = "## Code Review Summary\n\n"
        markdown += "### Overall Statistics\n"
        markdown += f"- Files reviewed: {len(counts)}\n"
        markdown += f"- Total issues found: {total_issues}\n\n"

        if counts:
            markdown += "### File Review Details\n"
            for filename, count in counts:
                markdown += f"- `{filename}`: {count} issues\n"
            markdown += "\n"

        markdown += "### Recommendations\n"
        markdown += CLOSING_RECOMMENDATION

        return markdown
