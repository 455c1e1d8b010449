#!/usr/bin/env python3
"""
CNB AI Code Reviewer
Reviews CNB pull requests with an AI backend and posts the findings as comments.

Features:
- Webhook server for pull request events (HMAC-signed)
- Performance, security and SOLID design-principle analysis per file
- One markdown comment per reviewed file plus a summary comment
"""

from cnb_reviewer.cli import cli

if __name__ == '__main__':
    cli()
