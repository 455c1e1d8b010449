"""Rubric definitions, prompts and the review data model."""

from .models import (
    AnalysisRubric,
    FileAnalysisResult,
    FileChange,
    Issue,
    ReviewOutcome,
    Severity,
)
from .prompts import build_prompt

__all__ = [
    'AnalysisRubric',
    'FileAnalysisResult',
    'FileChange',
    'Issue',
    'ReviewOutcome',
    'Severity',
    'build_prompt',
]
