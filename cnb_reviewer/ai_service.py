"""AI service integration for rubric-based code analysis."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import anthropic
from openai import AsyncOpenAI

from .analyzers.models import AnalysisRubric, Issue, Severity
from .analyzers.prompts import build_prompt
from .exceptions import AnalysisShapeError, AnalysisTransportError

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ('openai', 'anthropic')


@dataclass
class ParsedIssues:
    """A reply that decoded into the expected shape."""
    issues: List[Issue]


@dataclass
class MalformedReply:
    """A reply that could not be decoded; carries the reason for logging."""
    reason: str


ParseResult = Union[ParsedIssues, MalformedReply]


def _format_location(line: Any) -> str:
    if line is None:
        return ""
    if isinstance(line, (list, tuple)):
        parts = [str(part) for part in line if part is not None]
        if len(parts) >= 2:
            return f"{parts[0]}-{parts[-1]}"
        return parts[0] if parts else ""
    return str(line).strip()


def _normalize_severity(value: Any) -> Severity:
    try:
        return Severity(str(value).strip().lower())
    except ValueError:
        return Severity.MINOR


def _decode_reply(text: Optional[str]) -> List[Dict[str, Any]]:
    """Extract the ``issues`` list from a model reply or raise AnalysisShapeError."""
    if not text:
        raise AnalysisShapeError("Empty response")

    # Extract JSON from response (handle cases where the model adds extra text)
    json_start = text.find('{')
    json_end = text.rfind('}') + 1
    if json_start == -1 or json_end == 0:
        raise AnalysisShapeError("No JSON found in response")

    try:
        data = json.loads(text[json_start:json_end])
    except json.JSONDecodeError as e:
        raise AnalysisShapeError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise AnalysisShapeError("Response is not a JSON object")

    issues = data.get('issues')
    if not isinstance(issues, list):
        raise AnalysisShapeError('Response has no "issues" array')
    if not all(isinstance(item, dict) for item in issues):
        raise AnalysisShapeError('"issues" contains non-object entries')

    return issues


def parse_analysis_reply(text: Optional[str], rubric: AnalysisRubric) -> ParseResult:
    """Parse a model reply into issues tagged with the requested rubric."""
    try:
        raw_issues = _decode_reply(text)
    except AnalysisShapeError as e:
        return MalformedReply(reason=str(e))

    issues = []
    for raw in raw_issues:
        snippet = raw.get('code_snippet') or raw.get('codeSnippet') or raw.get('code')
        issues.append(Issue(
            kind=rubric,
            description=str(raw.get('description') or ''),
            location=_format_location(raw.get('line')),
            recommendation=str(raw.get('solution') or raw.get('recommendation') or ''),
            severity=_normalize_severity(raw.get('severity')),
            code_snippet=str(snippet) if snippet else None,
        ))
    return ParsedIssues(issues=issues)


class AnalysisClient:
    """Sends rubric prompts to the AI backend and normalizes the replies.

    Backend failures are raised as :class:`AnalysisTransportError`. Replies
    that arrive but cannot be parsed degrade to an empty issue list.
    """

    def __init__(self, provider: str, api_key: Optional[str], model: str,
                 base_url: Optional[str] = None, max_tokens: int = 1000,
                 temperature: float = 0.1, client: Any = None):
        self.provider = provider.lower()
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

        if self.provider not in SUPPORTED_PROVIDERS:
            raise ValueError(f"Unsupported AI provider: {provider}")

        if client is not None:
            self.client = client
        elif self.provider == 'openai':
            self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        else:
            self.client = anthropic.AsyncAnthropic(api_key=api_key)

    @classmethod
    def from_config(cls, config) -> "AnalysisClient":
        ai = config.ai
        base_url = ai.base_url if ai.provider.lower() == 'openai' else None
        return cls(
            provider=ai.provider,
            api_key=ai.api_key,
            model=ai.model,
            base_url=base_url,
            max_tokens=ai.max_tokens,
            temperature=ai.temperature,
        )

    async def analyze(self, rubric: AnalysisRubric, code: str, language: str) -> List[Issue]:
        """Analyze code under one rubric and return its issues."""
        prompt = build_prompt(rubric, code, language)
        reply = await self._complete(prompt)

        result = parse_analysis_reply(reply, rubric)
        if isinstance(result, MalformedReply):
            logger.warning(f"Failed to parse {rubric.value} analysis response: {result.reason}")
            return []
        return result.issues

    async def analyze_performance(self, code: str, language: str) -> List[Issue]:
        return await self.analyze(AnalysisRubric.PERFORMANCE, code, language)

    async def analyze_security(self, code: str, language: str) -> List[Issue]:
        return await self.analyze(AnalysisRubric.SECURITY, code, language)

    async def analyze_design_principles(self, code: str, language: str) -> List[Issue]:
        return await self.analyze(AnalysisRubric.DESIGN_PRINCIPLES, code, language)

    async def _complete(self, prompt: str) -> Optional[str]:
        """Send one prompt to the configured provider and return the reply text.

        Only the provider call itself counts as a transport failure. A reply
        that arrives but carries no usable text comes back as ``None``.
        """
        try:
            if self.provider == 'openai':
                response = await self._call_openai(prompt)
            else:
                response = await self._call_anthropic(prompt)
        except Exception as e:
            logger.error(f"{self.provider} API call failed: {e}")
            raise AnalysisTransportError(f"AI backend call failed: {e}") from e

        if self.provider == 'openai':
            return _openai_text(response)
        return _anthropic_text(response)

    async def _call_openai(self, prompt: str) -> Any:
        """Call an OpenAI-compatible chat completions endpoint."""
        return await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {
                    "role": "user",
                    "content": prompt
                }
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens
        )

    async def _call_anthropic(self, prompt: str) -> Any:
        """Call Anthropic Claude API."""
        return await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            messages=[
                {
                    "role": "user",
                    "content": prompt
                }
            ]
        )


def _openai_text(response: Any) -> Optional[str]:
    choices = getattr(response, "choices", None)
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    return getattr(message, "content", None)


def _anthropic_text(response: Any) -> Optional[str]:
    blocks = getattr(response, "content", None) or []
    return "".join(
        block.text for block in blocks if getattr(block, "type", None) == "text"
    )
