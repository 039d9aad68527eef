"""Replays revision hunks against a tracked line."""

from collections.abc import AsyncIterator
from contextlib import aclosing
from datetime import datetime

import structlog

from gitwhere.exceptions import InputError, LostLineError, NotFoundError
from gitwhere.git.base import Revision, RevisionProvider, build_chain
from gitwhere.utils.datetime import ensure_utc
from gitwhere.utils.text import count_lines

from .fetcher import DiffFetcher
from .models import DiffResult, FileDiff, Located, Lost, Trace, TrackedLocation

logger = structlog.get_logger(__name__)


def select_file_diff(file_diffs: list[FileDiff], file_name: str) -> FileDiff | None:
    """Return the FileDiff that continues ``file_name``'s lineage.

    Only the first non-copy entry whose old name matches is followed; a copy
    is never taken as the successor, even when it is the only match.
    """
    for file_diff in file_diffs:
        if file_diff.old_name == file_name and not file_diff.is_copy:
            return file_diff
    return None


def apply_file_diff(file_diff: FileDiff, line_number: int) -> int:
    """Return where ``line_number`` lands after ``file_diff`` is applied.

    Hunk positions are in pre-edit coordinates, so every hunk is compared
    with the original line and the deltas of hunks that end before it are
    summed. A hunk whose region reaches the line, upper bound included,
    deletes it.

    Raises:
        LostLineError: A hunk removed the line, or the file was deleted.
    """
    offset = 0
    for hunk in file_diff.hunks:
        if hunk.old_start > line_number:
            continue
        if hunk.old_start + hunk.old_line_count >= line_number:
            raise LostLineError(file_diff.old_name or "", line_number)
        offset += hunk.delta

    if file_diff.is_deleted:
        raise LostLineError(file_diff.old_name or "", line_number)
    return line_number + offset


class LineLocator:
    """Follows one line from a past date to the current HEAD."""

    def __init__(
        self,
        provider: RevisionProvider,
        fetcher: DiffFetcher | None = None,
    ) -> None:
        self.provider = provider
        self.fetcher = fetcher or DiffFetcher(provider)
        self._logger = logger.bind(component="line_locator")

    async def locate(
        self, file_name: str, line_number: int, since: datetime
    ) -> Trace:
        """Track ``file_name:line_number`` as of ``since`` up to HEAD.

        Raises:
            InputError: The line is not positive, or the file or line did
                not exist at the base revision.
            NotFoundError: No commit precedes ``since``.
            BackendError: A git read failed.
            ParseError: A diff could not be parsed.
            FetchTimeoutError: Diff retrieval exceeded the deadline.
        """
        if line_number < 1:
            raise InputError(f"Line number must be positive, got {line_number}")
        since = ensure_utc(since)

        base = await self.provider.nearest_revision_before(since)
        await self._check_start(base, file_name, line_number)
        revisions = await self.provider.list_revisions_since(since)
        chain = build_chain(base, revisions)

        self._logger.info(
            "locate_starting",
            file_name=file_name,
            line_number=line_number,
            base=base.short_sha,
            transitions=len(chain) - 1,
        )

        start = TrackedLocation(file_name=file_name, line_number=line_number)
        async with aclosing(self.fetcher.results(chain)) as results:
            outcome = await self.fold(start, chain, results)
        return Trace(start=start, chain=chain, outcome=outcome)

    async def _check_start(
        self, base: Revision, file_name: str, line_number: int
    ) -> None:
        try:
            content = await self.provider.file_content_at(base, file_name)
        except NotFoundError as e:
            raise InputError(
                f"{file_name} did not exist at base commit {base.short_sha}"
            ) from e

        line_count = count_lines(content)
        if line_number > line_count:
            raise InputError(
                f"{file_name} had {line_count} lines at base commit "
                f"{base.short_sha}, line {line_number} requested"
            )

    async def fold(
        self,
        start: TrackedLocation,
        chain: list[Revision],
        results: AsyncIterator[DiffResult],
    ) -> Located | Lost:
        """Apply each transition in chain order to a copy of ``start``.

        ``results`` must yield positions ``1..n`` in order. The first result
        carrying an error is raised as is; nothing past it is applied.
        """
        location = TrackedLocation(start.file_name, start.line_number)
        expected = 1

        async for result in results:
            if result.position != expected:
                raise ValueError(
                    f"Results out of order: expected position {expected}, "
                    f"got {result.position}"
                )
            expected += 1

            if result.error is not None:
                raise result.error

            file_diff = select_file_diff(result.file_diffs, location.file_name)
            if file_diff is None:
                continue

            try:
                new_line = apply_file_diff(file_diff, location.line_number)
            except LostLineError:
                self._logger.info(
                    "trail_went_cold",
                    position=result.position,
                    sha=result.revision.short_sha,
                    location=str(location),
                )
                return Lost(
                    position=result.position,
                    file_name=location.file_name,
                    line_number=location.line_number,
                    revision=result.revision,
                )

            if new_line != location.line_number:
                self._logger.debug(
                    "line_moved",
                    position=result.position,
                    sha=result.revision.short_sha,
                    old_line=location.line_number,
                    new_line=new_line,
                )
                location.line_number = new_line

            if file_diff.is_rename and file_diff.new_name:
                self._logger.debug(
                    "file_renamed",
                    position=result.position,
                    sha=result.revision.short_sha,
                    old_name=location.file_name,
                    new_name=file_diff.new_name,
                )
                location.file_name = file_diff.new_name

        if expected != len(chain):
            raise ValueError(
                f"Results ended at position {expected - 1} of {len(chain) - 1}"
            )

        return Located(
            file_name=location.file_name,
            line_number=location.line_number,
            revision=chain[-1],
        )
