"""CNB platform API client for pull request operations."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from .exceptions import FetchError, PostError

logger = logging.getLogger(__name__)


@dataclass
class ReviewComment:
    """A comment to publish on a pull request.

    ``content`` is used verbatim when present. Otherwise the body is rendered
    from ``issues`` and ``summary`` by :meth:`CnbClient.format_fallback_markdown`.
    """
    path: str
    position: int
    content: Optional[str] = None
    issues: List[Dict[str, Any]] = field(default_factory=list)
    summary: Optional[str] = None


class CnbClient:
    """CNB platform API client."""

    def __init__(self, base_url: str, api_key: Optional[str], timeout: float = 30.0):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {api_key}',
            'Content-Type': 'application/json',
            'Accept': 'application/json'
        })

    @classmethod
    def from_config(cls, config) -> "CnbClient":
        return cls(
            base_url=config.cnb.base_url,
            api_key=config.cnb.api_key,
            timeout=config.cnb.timeout,
        )

    def get_pr_details(self, repository: Optional[str], pr_id: Any) -> Dict[str, Any]:
        """Fetch pull request details, including the changed files."""
        url = f"{self.base_url}/{repository}/-/pulls/{pr_id}"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise FetchError(f"Failed to fetch PR details: {e}") from e

        if not isinstance(data, dict):
            raise FetchError("Failed to fetch PR details: response is not a JSON object")
        return data

    def post_pr_comment(self, repository: Optional[str], pr_id: Any,
                        comment: ReviewComment) -> Dict[str, Any]:
        """Post a comment to a pull request discussion thread."""
        url = f"{self.base_url}/{repository}/-/pulls/{pr_id}/comments"
        payload = {
            'body': comment.content or self.format_fallback_markdown(comment),
            'path': comment.path,
            'position': comment.position
        }
        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            return response.json() if response.content else {}
        except (requests.RequestException, ValueError) as e:
            raise PostError(f"Failed to post PR comment: {e}") from e

    def format_fallback_markdown(self, comment: ReviewComment) -> str:
        """Render a comment that was supplied without pre-rendered content."""
        markdown = "## Code Review Comment\n\n"

        if comment.issues:
            markdown += "### Issues Found\n\n"
            for index, issue in enumerate(comment.issues, 1):
                markdown += f"{index}. **{issue.get('type', 'Issue')}**\n"
                markdown += f"   - **Description**: {issue.get('description', '')}\n"
                if issue.get('suggestion'):
                    markdown += f"   - **Suggestion**: {issue['suggestion']}\n"
                if issue.get('severity'):
                    markdown += f"   - **Severity**: {issue['severity']}\n"
                markdown += "\n"
        else:
            markdown += "### Issues Found\n\nNo issues found during code review.\n\n"

        if comment.summary:
            markdown += f"### Summary\n\n{comment.summary}\n\n"

        return markdown
