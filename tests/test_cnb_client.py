"""Tests for the CNB platform client."""

from unittest.mock import MagicMock

import pytest
import requests

from cnb_reviewer.cnb_client import CnbClient, ReviewComment
from cnb_reviewer.exceptions import FetchError, PostError


def _response(payload=None, content=b'{}'):
    response = MagicMock()
    response.json.return_value = payload
    response.content = content
    return response


class TestCnbClient:
    """Test CNB API calls against a mocked session."""

    def setup_method(self):
        self.client = CnbClient("https://api.cnb-platform.com/", "test-api-key", timeout=10)
        self.session = MagicMock()
        self.client.session = self.session

    def test_session_uses_bearer_token(self):
        client = CnbClient("https://api.cnb-platform.com", "test-api-key")
        assert client.session.headers['Authorization'] == 'Bearer test-api-key'
        assert client.session.headers['Content-Type'] == 'application/json'

    def test_get_pr_details(self):
        details = {'id': 123, 'title': 'Test PR', 'changes': []}
        self.session.get.return_value = _response(details)

        result = self.client.get_pr_details('test-repo', 123)

        self.session.get.assert_called_once_with(
            'https://api.cnb-platform.com/test-repo/-/pulls/123', timeout=10
        )
        assert result == details

    def test_get_pr_details_network_error(self):
        cause = requests.ConnectionError("Network error")
        self.session.get.side_effect = cause

        with pytest.raises(FetchError, match="Failed to fetch PR details: Network error") as exc_info:
            self.client.get_pr_details('test-repo', 123)
        assert exc_info.value.__cause__ is cause

    def test_get_pr_details_http_error(self):
        response = _response({})
        response.raise_for_status.side_effect = requests.HTTPError("404 Client Error")
        self.session.get.return_value = response

        with pytest.raises(FetchError, match="404"):
            self.client.get_pr_details(None, None)
        assert self.session.get.call_args.args[0].endswith('/None/-/pulls/None')

    def test_get_pr_details_non_object_body(self):
        self.session.get.return_value = _response(['not', 'a', 'dict'])
        with pytest.raises(FetchError):
            self.client.get_pr_details('test-repo', 123)

    def test_post_pr_comment_uses_rendered_content(self):
        self.session.post.return_value = _response({'id': 456})
        comment = ReviewComment(path='src/index.js', position=1, content='## Rendered')

        result = self.client.post_pr_comment('test-repo', 123, comment)

        self.session.post.assert_called_once_with(
            'https://api.cnb-platform.com/test-repo/-/pulls/123/comments',
            json={'body': '## Rendered', 'path': 'src/index.js', 'position': 1},
            timeout=10,
        )
        assert result == {'id': 456}

    def test_post_pr_comment_falls_back_to_markdown(self):
        self.session.post.return_value = _response({'id': 456})
        comment = ReviewComment(
            path='src/index.js',
            position=10,
            issues=[{
                'type': 'Performance',
                'description': 'Inefficient algorithm',
                'suggestion': 'Use a more efficient approach',
                'severity': 'High',
            }],
            summary='Code review completed. Found 1 issues.',
        )

        self.client.post_pr_comment('test-repo', 123, comment)

        body = self.session.post.call_args.kwargs['json']['body']
        assert body == (
            '## Code Review Comment\n\n### Issues Found\n\n'
            '1. **Performance**\n'
            '   - **Description**: Inefficient algorithm\n'
            '   - **Suggestion**: Use a more efficient approach\n'
            '   - **Severity**: High\n\n'
            '### Summary\n\nCode review completed. Found 1 issues.\n\n'
        )

    def test_post_pr_comment_empty_acknowledgement(self):
        self.session.post.return_value = _response(content=b'')
        comment = ReviewComment(path='a.js', position=1, content='x')
        assert self.client.post_pr_comment('test-repo', 123, comment) == {}

    def test_post_pr_comment_error(self):
        self.session.post.side_effect = requests.HTTPError("Unauthorized")
        comment = ReviewComment(path='src/index.js', position=10, content='x')

        with pytest.raises(PostError, match="Failed to post PR comment: Unauthorized"):
            self.client.post_pr_comment('test-repo', 123, comment)


class TestFormatFallbackMarkdown:
    """Test markdown rendering for comments without content."""

    def setup_method(self):
        self.client = CnbClient("https://api.cnb-platform.com", "key")

    def test_with_issues(self):
        comment = ReviewComment(
            path='a.js',
            position=1,
            issues=[
                {'type': 'Performance', 'description': 'Inefficient algorithm'},
                {'type': 'Security', 'description': 'Potential XSS vulnerability',
                 'suggestion': 'Sanitize user input', 'severity': 'Medium'},
            ],
            summary='Code review completed. Found 2 issues.',
        )

        formatted = self.client.format_fallback_markdown(comment)

        assert '## Code Review Comment' in formatted
        assert '1. **Performance**' in formatted
        assert '2. **Security**' in formatted
        assert '**Suggestion**: Sanitize user input' in formatted
        assert 'Code review completed. Found 2 issues.' in formatted

    def test_without_issues(self):
        comment = ReviewComment(path='a.js', position=1)

        formatted = self.client.format_fallback_markdown(comment)

        assert '### Issues Found\n\nNo issues found during code review.' in formatted
        assert '### Summary' not in formatted
