"""Tests for rubric prompts, the review data model and language detection."""

import json

from cnb_reviewer.analyzers import AnalysisRubric, FileAnalysisResult, Issue, Severity, build_prompt
from cnb_reviewer.analyzers.prompts import RUBRIC_PROMPTS
from cnb_reviewer.languages import get_file_language


def _issue(rubric, severity=Severity.MAJOR):
    return Issue(
        kind=rubric,
        description="desc",
        location="1",
        recommendation="fix it",
        severity=severity,
    )


class TestBuildPrompt:
    """Test prompt construction per rubric."""

    def test_prompt_contains_code_and_language(self):
        """Test that the code and language label are embedded."""
        prompt = build_prompt(AnalysisRubric.PERFORMANCE, "for (;;) {}", "JavaScript")
        assert "for (;;) {}" in prompt
        assert "JavaScript" in prompt

    def test_prompt_is_deterministic(self):
        """Test that the same inputs produce the same prompt."""
        first = build_prompt(AnalysisRubric.SECURITY, "x = 1", "Python")
        second = build_prompt(AnalysisRubric.SECURITY, "x = 1", "Python")
        assert first == second

    def test_rubrics_ask_for_their_own_categories(self):
        """Test that each rubric only lists its own categories."""
        security = build_prompt(AnalysisRubric.SECURITY, "", "Go")
        design = build_prompt(AnalysisRubric.DESIGN_PRINCIPLES, "", "Go")

        assert "SQL injection" in security
        assert "Single Responsibility Principle" not in security
        assert "Single Responsibility Principle" in design
        assert "SQL injection" not in design

    def test_schema_is_identical_across_rubrics(self):
        """Test that every rubric requests the same JSON fields."""
        for rubric in AnalysisRubric:
            prompt = build_prompt(rubric, "code", "Java")
            for key in ('"type"', '"description"', '"line"', '"solution"', '"severity"'):
                assert key in prompt
            assert '"critical", "major", or "minor"' in prompt

    def test_example_is_a_single_json_line(self):
        """Test that the anchoring example is one parseable JSON line."""
        for rubric in AnalysisRubric:
            prompt = build_prompt(rubric, "code", "Java")
            example_line = prompt.rstrip().splitlines()[-1]
            example = json.loads(example_line)
            assert example["issues"][0] == RUBRIC_PROMPTS[rubric].example

    def test_empty_code_still_builds_prompt(self):
        """Test that empty input yields a complete prompt."""
        prompt = build_prompt(AnalysisRubric.PERFORMANCE, "", "C")
        assert "```C\n\n```" in prompt
        assert '"issues"' in prompt


class TestFileAnalysisResult:
    """Test the per-file result container."""

    def test_starts_with_every_rubric_empty(self):
        result = FileAnalysisResult()
        assert list(result.issues) == list(AnalysisRubric)
        assert result.total_issues == 0

    def test_counts_and_severity_filter(self):
        result = FileAnalysisResult()
        result.issues[AnalysisRubric.PERFORMANCE] = [_issue(AnalysisRubric.PERFORMANCE)]
        result.issues[AnalysisRubric.SECURITY] = [
            _issue(AnalysisRubric.SECURITY, Severity.CRITICAL),
            _issue(AnalysisRubric.SECURITY),
        ]

        assert result.count(AnalysisRubric.SECURITY) == 2
        assert result.count(AnalysisRubric.DESIGN_PRINCIPLES) == 0
        assert result.total_issues == 3
        assert result.has_critical_issues()
        assert len(result.get_issues_by_severity(Severity.MAJOR)) == 2


class TestGetFileLanguage:
    """Test extension based language detection."""

    def test_known_extensions(self):
        assert get_file_language('a.js') == 'JavaScript'
        assert get_file_language('src/main/App.java') == 'Java'
        assert get_file_language('pkg/server.go') == 'Go'
        assert get_file_language('Script.PY') == 'Python'

    def test_unsupported_extensions(self):
        assert get_file_language('README.md') is None
        assert get_file_language('package.json') is None
        assert get_file_language('Makefile') is None
        assert get_file_language('') is None
        assert get_file_language(None) is None
        assert get_file_language(42) is None
        assert get_file_language(['a.js']) is None

    def test_custom_language_map(self):
        languages = {'.rs': 'Rust'}
        assert get_file_language('lib.rs', languages) == 'Rust'
        assert get_file_language('a.js', languages) is None
