"""Prompt construction for the three review rubrics.

Every rubric asks for the same JSON reply shape so the parser and the
formatter never need to know which rubric produced an issue. Only the
focus line and the list of categories differ.
"""

import json
from dataclasses import dataclass
from typing import Dict, List

from .models import AnalysisRubric


@dataclass(frozen=True)
class RubricPrompt:
    """Per-rubric wording for the analysis prompt."""
    focus: str
    categories: List[str]
    example: Dict[str, str]


RUBRIC_PROMPTS: Dict[AnalysisRubric, RubricPrompt] = {
    AnalysisRubric.PERFORMANCE: RubricPrompt(
        focus="performance issues",
        categories=[
            "Performance bottlenecks",
            "Inefficient algorithms or data structures",
            "Unnecessary work inside loops",
            "Blocking or redundant I/O",
            "Other optimization opportunities",
        ],
        example={
            "type": "performance",
            "description": "Inefficient loop complexity",
            "line": "15-18",
            "solution": "Consider using a more efficient algorithm or data structure",
            "severity": "major",
        },
    ),
    AnalysisRubric.SECURITY: RubricPrompt(
        focus="security vulnerabilities",
        categories=[
            "Input validation problems",
            "SQL injection vulnerabilities",
            "XSS vulnerabilities",
            "Authentication/authorization issues",
            "Hardcoded secrets",
            "Buffer overflows",
            "Other security best practice violations",
        ],
        example={
            "type": "security",
            "description": "Potential SQL injection vulnerability",
            "line": "22",
            "solution": "Use parameterized queries instead of string concatenation",
            "severity": "critical",
        },
    ),
    AnalysisRubric.DESIGN_PRINCIPLES: RubricPrompt(
        focus="SOLID design principle violations",
        categories=[
            "Single Responsibility Principle (SRP)",
            "Open/Closed Principle (OCP)",
            "Liskov Substitution Principle (LSP)",
            "Interface Segregation Principle (ISP)",
            "Dependency Inversion Principle (DIP)",
        ],
        example={
            "type": "design-principles",
            "description": "Single Responsibility Principle violation - class has multiple responsibilities",
            "line": "10-50",
            "solution": "Split the class into multiple classes with single responsibilities",
            "severity": "major",
        },
    ),
}


def build_prompt(rubric: AnalysisRubric, code: str, language: str) -> str:
    """Build the analysis prompt for one rubric.

    Pure and deterministic: the same (rubric, code, language) always yields
    the same text. Empty code still produces a complete prompt.
    """
    wording = RUBRIC_PROMPTS[rubric]
    categories = "\n".join(f"- {category}" for category in wording.categories)
    example = json.dumps({"issues": [wording.example]})

    return f"""Analyze the following {language} code for {wording.focus}:

```{language}
{code}
```

Only report {wording.focus}. Look for:
{categories}

For each issue found, provide:
1. A brief description of the issue
2. The specific line number(s) where the issue occurs
3. A recommended solution

Respond with a JSON object only, no other text. The object must have an "issues" array. Each issue should have:
- "type": "{rubric.value}"
- "description": Description of the issue
- "line": Line number(s)
- "solution": Recommended solution
- "severity": "critical", "major", or "minor"

If there are no issues, return {{"issues": []}}.

Example:
{example}
"""
