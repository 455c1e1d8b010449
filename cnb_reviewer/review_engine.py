"""Review engine that turns one pull request webhook into posted review comments."""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .ai_service import AnalysisClient
from .analyzers.models import AnalysisRubric, FileAnalysisResult, FileChange, ReviewOutcome
from .cnb_client import CnbClient, ReviewComment
from .comment_formatter import CommentFormatter
from .config import Config, ReviewConfig
from .languages import DEFAULT_LANGUAGES, get_file_language

logger = logging.getLogger(__name__)


class ReviewState(Enum):
    RECEIVED = "received"
    FETCHING = "fetching"
    ANALYZING = "analyzing"
    AGGREGATING = "aggregating"
    PUBLISHING = "publishing"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class PrData:
    """Pull request fields read from a webhook payload. Any of them may be missing."""
    id: Any = None
    title: Optional[str] = None
    description: Optional[str] = None
    author: Any = None
    repository: Optional[str] = None
    changes: List[Dict[str, Any]] = field(default_factory=list)
    diff: Optional[str] = None


@dataclass
class ReviewReport:
    """What happened during one pipeline invocation."""
    repository: Optional[str]
    pr_id: Any
    state: ReviewState = ReviewState.RECEIVED
    outcome: ReviewOutcome = field(default_factory=dict)
    skipped_files: List[str] = field(default_factory=list)
    failed_files: List[str] = field(default_factory=list)
    comments_posted: int = 0
    comments_failed: int = 0
    summary_posted: bool = False
    error: Optional[str] = None

    @property
    def files_reviewed(self) -> int:
        return len(self.outcome)

    @property
    def total_issues(self) -> int:
        return sum(result.total_issues for result in self.outcome.values())


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def extract_pr_data(event: Any) -> PrData:
    """Extract relevant PR data from a webhook event without validating it."""
    event = _as_dict(event)
    pull_request = _as_dict(event.get('pull_request'))
    repository = _as_dict(event.get('repository'))

    changes = pull_request.get('changes')
    return PrData(
        id=pull_request.get('id'),
        title=pull_request.get('title'),
        description=pull_request.get('description'),
        author=pull_request.get('author'),
        repository=repository.get('name'),
        changes=changes if isinstance(changes, list) else [],
        diff=pull_request.get('diff'),
    )


def _read_changes(details: Dict[str, Any]) -> List[FileChange]:
    changes = details.get('changes')
    if not isinstance(changes, list):
        return []

    file_changes = []
    for change in changes:
        change = _as_dict(change)
        if not isinstance(change.get('filename'), str):
            logger.warning(f"Ignoring change entry without a usable filename: {change.get('filename')!r}")
            continue
        file_changes.append(FileChange(
            filename=change.get('filename'),
            content=change.get('content') or '',
        ))
    return file_changes


class ReviewOrchestrator:
    """Drives fetch, per-file analysis and comment publication for one PR event.

    Files are analyzed one after another and the three rubrics of a file run
    in order. A file whose analysis fails is left out of the outcome entirely.
    Only a failed fetch aborts the run; nothing is raised to the caller.
    """

    def __init__(self, analysis_client: AnalysisClient, cnb_client: CnbClient,
                 review_config: Optional[ReviewConfig] = None,
                 languages: Optional[Dict[str, str]] = None,
                 dry_run: bool = False):
        self.analysis_client = analysis_client
        self.cnb_client = cnb_client
        self.review_config = review_config or ReviewConfig()
        self.languages = languages if languages is not None else dict(DEFAULT_LANGUAGES)
        self.dry_run = dry_run

    @classmethod
    def from_config(cls, config: Config, dry_run: bool = False) -> "ReviewOrchestrator":
        return cls(
            analysis_client=AnalysisClient.from_config(config),
            cnb_client=CnbClient.from_config(config),
            review_config=config.review,
            languages=config.get_language_map(),
            dry_run=dry_run,
        )

    async def process_pr_event(self, event: Any) -> ReviewReport:
        """Run the whole review pipeline for one webhook payload."""
        pr = extract_pr_data(event)
        report = ReviewReport(repository=pr.repository, pr_id=pr.id)
        logger.info(f"Processing PR event for code review: {pr.repository}#{pr.id}")

        try:
            self._transition(report, ReviewState.FETCHING)
            try:
                details = await asyncio.to_thread(self.cnb_client.get_pr_details, pr.repository, pr.id)
            except Exception as e:
                report.error = str(e)
                self._transition(report, ReviewState.ABORTED)
                logger.error(f"Aborting review of PR #{pr.id} in {pr.repository}: {e}")
                return report

            self._transition(report, ReviewState.ANALYZING)
            outcome = await self.analyze_code_changes(_read_changes(details), report)

            self._transition(report, ReviewState.AGGREGATING)
            report.outcome = outcome

            self._transition(report, ReviewState.PUBLISHING)
            await self.post_review_comments(pr.repository, pr.id, outcome, report)

            self._transition(report, ReviewState.DONE)
            logger.info(
                f"Completed review of PR #{pr.id}: {report.files_reviewed} files, "
                f"{report.total_issues} issues, {report.comments_posted} comments posted"
            )
        except Exception as e:
            report.error = str(e)
            self._transition(report, ReviewState.ABORTED)
            logger.exception(f"Error processing PR event for PR #{pr.id}")

        return report

    async def analyze_code_changes(self, changes: List[FileChange],
                                   report: Optional[ReviewReport] = None) -> ReviewOutcome:
        """Analyze every supported file and collect the complete results."""
        outcome: ReviewOutcome = {}

        limit = self.review_config.max_files_per_pr
        if limit is not None and len(changes) > limit:
            logger.warning(f"PR has {len(changes)} files, limiting to {limit}")
            changes = changes[:limit]

        for change in changes:
            language = get_file_language(change.filename, self.languages)
            if not language:
                if report is not None and change.filename:
                    report.skipped_files.append(change.filename)
                continue

            try:
                outcome[change.filename] = await self.analyze_file(change, language)
            except Exception as e:
                logger.error(f"Error analyzing file {change.filename}: {e}")
                if report is not None:
                    report.failed_files.append(change.filename)

        return outcome

    async def analyze_file(self, change: FileChange, language: str) -> FileAnalysisResult:
        """Run all rubrics for one file; any failure discards the whole file."""
        result = FileAnalysisResult()
        for rubric in AnalysisRubric:
            logger.debug(f"Running {rubric.value} analysis on {change.filename}")
            result.issues[rubric] = list(
                await self.analysis_client.analyze(rubric, change.content, language)
            )
        return result

    async def post_review_comments(self, repository: Optional[str], pr_id: Any,
                                   outcome: ReviewOutcome,
                                   report: Optional[ReviewReport] = None) -> None:
        """Post one comment per analyzed file, then the summary comment."""
        if report is None:
            report = ReviewReport(repository=repository, pr_id=pr_id)

        if self.dry_run:
            for filename, result in outcome.items():
                logger.info(f"Dry run: not posting comment for {filename}")
                logger.debug(CommentFormatter.format_file_comment(result, filename))
            return

        for filename, result in outcome.items():
            comment = ReviewComment(
                path=filename,
                position=self.review_config.comment_position,
                content=CommentFormatter.format_file_comment(result, filename),
            )
            if await self._post(repository, pr_id, comment):
                report.comments_posted += 1
                logger.info(f"Posted review comment for {filename} to PR #{pr_id}")
            else:
                report.comments_failed += 1

        if not outcome:
            logger.info(f"No reviewable files in PR #{pr_id}, skipping summary comment")
            return

        summary = ReviewComment(
            path=self.review_config.summary_path,
            position=1,
            content=CommentFormatter.format_summary_comment(list(outcome.items())),
        )
        if await self._post(repository, pr_id, summary):
            report.comments_posted += 1
            report.summary_posted = True
            logger.info(f"Posted summary comment to PR #{pr_id}")
        else:
            report.comments_failed += 1

    async def _post(self, repository: Optional[str], pr_id: Any, comment: ReviewComment) -> bool:
        try:
            await asyncio.to_thread(self.cnb_client.post_pr_comment, repository, pr_id, comment)
        except Exception as e:
            logger.error(f"Error posting comment for {comment.path} to PR #{pr_id}: {e}")
            return False
        return True

    @staticmethod
    def _transition(report: ReviewReport, state: ReviewState) -> None:
        logger.debug(f"PR #{report.pr_id}: {report.state.value} -> {state.value}")
        report.state = state
