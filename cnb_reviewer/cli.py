"""Command-line interface for the CNB AI code reviewer."""

import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click
import uvicorn
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .ai_service import AnalysisClient
from .analyzers.models import AnalysisRubric, FileAnalysisResult, Severity
from .cnb_client import CnbClient
from .comment_formatter import CommentFormatter
from .config import Config, LoggingConfig
from .languages import get_file_language
from .review_engine import ReviewOrchestrator, ReviewReport

# Setup rich console
console = Console()
logger = logging.getLogger(__name__)


def setup_logging(logging_config: LoggingConfig, verbose: bool = False) -> None:
    """Configure the root logger with a rich console handler and an optional file."""
    handlers = [RichHandler(console=console)]
    if logging_config.file:
        file_handler = logging.FileHandler(logging_config.file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))
        handlers.append(file_handler)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging_config.level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )


@click.group()
@click.option('--config', '-c', default='config.yaml', help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, config, verbose):
    """AI-powered pull request reviewer for the CNB platform."""
    try:
        ctx.ensure_object(dict)
        ctx.obj['config'] = Config(config)
    except Exception as e:
        console.print(f"❌ Failed to load configuration: {e}", style="red")
        sys.exit(1)

    setup_logging(ctx.obj['config'].logging, verbose)


@cli.command()
@click.option('--host', default=None, help='Bind address (defaults to SERVER_HOST)')
@click.option('--port', default=None, type=int, help='Port (defaults to SERVER_PORT / PORT)')
@click.option('--reload', is_flag=True, help='Reload on code changes')
@click.pass_context
def serve(ctx, host, port, reload):
    """Run the webhook server."""
    config = ctx.obj['config']
    host = host or config.server.host
    port = port or config.server.port

    console.print(f"🚀 Server is running on {host}:{port}")
    uvicorn.run("cnb_reviewer.server:app", host=host, port=port, reload=reload)


@cli.command()
@click.argument('repository', required=False)
@click.argument('pr_id', required=False)
@click.option('--dry-run', is_flag=True, help='Analyze without posting comments')
@click.pass_context
def review(ctx, repository, pr_id, dry_run):
    """Review a specific pull request without waiting for a webhook.

    Repository and PR id can be taken from CNB_REPO_SLUG and CNB_PR_ID.
    """
    config = ctx.obj['config']

    repo = repository or os.getenv('CNB_REPO_SLUG')
    pr_env = pr_id or os.getenv('CNB_PR_ID')
    try:
        pr = int(pr_env) if pr_env is not None else None
    except ValueError:
        pr = None

    if not repo or pr is None:
        console.print("❌ Repository and PR ID are required. Pass as arguments or set CNB_REPO_SLUG and CNB_PR_ID.", style="red")
        sys.exit(1)

    console.print(f"🔍 Starting review of PR #{pr} in {repo}")
    if dry_run:
        console.print("🧪 Running in dry-run mode (no comments will be posted)", style="yellow")

    event = {'pull_request': {'id': pr}, 'repository': {'name': repo}}

    async def run_review() -> ReviewReport:
        orchestrator = ReviewOrchestrator.from_config(config, dry_run=dry_run)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console
        ) as progress:
            task = progress.add_task("Reviewing pull request...", total=None)
            report = await orchestrator.process_pr_event(event)
            progress.update(task, description="✅ Review completed!")
        return report

    try:
        report = asyncio.run(run_review())
    except Exception as e:
        console.print(f"❌ Review failed: {e}", style="red")
        logger.exception("Review failed")
        sys.exit(1)

    _display_review_report(report)
    if report.error:
        sys.exit(1)


@cli.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def analyze(ctx, path: Path):
    """Run the three rubrics against a local file and print the review comment."""
    config = ctx.obj['config']

    language = get_file_language(path.name, config.get_language_map())
    if not language:
        console.print(f"❌ Unsupported file type: {path.name}", style="red")
        sys.exit(1)

    code = path.read_text(encoding='utf-8', errors='replace')

    async def run_analysis() -> FileAnalysisResult:
        client = AnalysisClient.from_config(config)
        result = FileAnalysisResult()
        for rubric in AnalysisRubric:
            console.print(f"🔬 Running {rubric.value} analysis on {path.name}", style="dim")
            result.issues[rubric] = await client.analyze(rubric, code, language)
        return result

    try:
        result = asyncio.run(run_analysis())
    except Exception as e:
        console.print(f"❌ Analysis failed: {e}", style="red")
        logger.exception("Analysis failed")
        sys.exit(1)

    console.print(Markdown(CommentFormatter.format_file_comment(result, path.name)))


@cli.command()
@click.pass_context
def test_config(ctx):
    """Show the effective configuration and try to build both clients."""
    config = ctx.obj['config']

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("CNB base URL", config.cnb.base_url)
    table.add_row("CNB API key", _mask(config.cnb.api_key))
    table.add_row("Webhook secret", _mask(config.cnb.webhook_secret))
    table.add_row("AI provider", config.ai.provider)
    table.add_row("AI model", config.ai.model)
    table.add_row("AI base URL", str(config.ai.base_url))
    table.add_row("AI API key", _mask(config.ai.api_key))
    table.add_row("Languages", ", ".join(sorted(config.get_language_map())))
    console.print(table)

    try:
        CnbClient.from_config(config)
        console.print("✅ CNB client configured", style="green")
    except Exception as e:
        console.print(f"❌ CNB client configuration failed: {e}", style="red")

    try:
        AnalysisClient.from_config(config)
        console.print(f"✅ AI service configured: {config.ai.provider} ({config.ai.model})", style="green")
    except Exception as e:
        console.print(f"❌ AI service configuration failed: {e}", style="red")


def _mask(value: Optional[str]) -> str:
    if not value:
        return "(not set)"
    return f"{value[:4]}…" if len(value) > 8 else "****"


def _display_review_report(report: ReviewReport):
    """Display a review report in a formatted table."""
    console.print("\n📊 Review Results", style="bold blue")

    table = Table(title=f"PR #{report.pr_id} in {report.repository}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="magenta")

    table.add_row("State", report.state.value.upper())
    table.add_row("Files Reviewed", str(report.files_reviewed))
    table.add_row("Files Skipped", str(len(report.skipped_files)))
    table.add_row("Files Failed", str(len(report.failed_files)))
    table.add_row("Total Issues", str(report.total_issues))
    table.add_row("Comments Posted", str(report.comments_posted))
    table.add_row("Comments Failed", str(report.comments_failed))
    console.print(table)

    if report.outcome:
        files = Table(title="Issues per file")
        files.add_column("File", style="cyan")
        for rubric in AnalysisRubric:
            files.add_column(rubric.value, style="yellow")
        files.add_column("Critical", style="red")
        for filename, result in report.outcome.items():
            files.add_row(
                filename,
                *[str(result.count(rubric)) for rubric in AnalysisRubric],
                str(len(result.get_issues_by_severity(Severity.CRITICAL))),
            )
        console.print(files)

        critical_files = [name for name, result in report.outcome.items() if result.has_critical_issues()]
        if critical_files:
            console.print(f"⚠️  Critical issues found in: {', '.join(critical_files)}", style="bold red")

    if report.error:
        console.print(f"❌ {report.error}", style="red")


if __name__ == '__main__':
    cli()
