"""gitwhere locate command."""

import asyncio
from datetime import datetime

import click

from gitwhere import config
from gitwhere.exceptions import GitWhereError
from gitwhere.git import GitPythonRevisionProvider, Revision, RevisionProvider
from gitwhere.locator import DiffFetcher, LineLocator
from gitwhere.logging import configure_logging
from gitwhere.presenter import render

DATE_FORMATS = ["%m/%d/%Y", "%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"]

EXIT_LOST = 3


@click.command()
@click.option(
    "--file",
    "-f",
    "file_name",
    required=True,
    help="Path of the file to track, relative to the repository root.",
)
@click.option(
    "--line",
    "-l",
    "line_number",
    required=True,
    type=click.IntRange(min=1),
    help="Line number in that file on the given date.",
)
@click.option(
    "--date",
    "-d",
    "since",
    required=True,
    type=click.DateTime(formats=DATE_FORMATS),
    help="Date the file and line were referenced (MM/DD/YYYY or YYYY-MM-DD).",
)
@click.option(
    "--path",
    "-p",
    "repo_path",
    default=".",
    show_default=True,
    type=click.Path(exists=True, file_okay=False),
    help="Path to the repository.",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds allowed for retrieving every diff.",
)
@click.option(
    "--show/--no-show",
    default=True,
    help="Print the file around the line at the base and final revisions.",
)
def locate(
    file_name: str,
    line_number: int,
    since: datetime,
    repo_path: str,
    timeout: float | None,
    show: bool,
) -> None:
    """Find where a line referenced on a past date is located now.

    Exits with status 3 when the line was deleted along the way.
    """
    settings = config.settings
    configure_logging(settings.log_level, settings.log_format)

    try:
        provider = GitPythonRevisionProvider(
            repo_path, detect_copies=settings.detect_copies
        )
        fetcher = DiffFetcher(
            provider,
            max_concurrency=settings.max_concurrency,
            timeout=timeout or settings.fetch_timeout,
        )
        trace = asyncio.run(
            LineLocator(provider, fetcher).locate(file_name, line_number, since)
        )
    except GitWhereError as e:
        raise click.ClickException(str(e))

    click.echo(f"Working off of base commit {trace.base.sha}\n")
    if show:
        _show(provider, trace.base, file_name, line_number)

    outcome = trace.outcome
    if not outcome.lost:
        click.echo(
            f"\nCurrent reference is {outcome.file_name} line {outcome.line_number}\n"
        )
        if show:
            _show(provider, outcome.revision, outcome.file_name, outcome.line_number)
        return

    click.echo(
        f"\nTrail went cold at commit {outcome.revision.sha} "
        f"(position {outcome.position} of {len(trace.chain) - 1})"
    )
    click.echo(
        f"Last known reference was {outcome.file_name} line {outcome.line_number}\n"
    )
    if show:
        _show(
            provider,
            trace.revision_before(outcome.position),
            outcome.file_name,
            outcome.line_number,
        )
    raise SystemExit(EXIT_LOST)


def _show(
    provider: RevisionProvider, revision: Revision, file_name: str, line_number: int
) -> None:
    settings = config.settings
    try:
        content = asyncio.run(provider.file_content_at(revision, file_name))
        render(
            file_name,
            content,
            line_number,
            context=settings.context_lines,
            theme=settings.theme,
        )
    except GitWhereError as e:
        raise click.ClickException(
            f"Cannot show {file_name} at {revision.short_sha}: {e}"
        )

