"""Concurrent retrieval of the diffs along a revision chain."""

import asyncio
from collections.abc import AsyncIterator, Callable

import structlog

from gitwhere.exceptions import BackendError, FetchTimeoutError, GitWhereError
from gitwhere.git.base import Revision, RevisionProvider

from .hunks import parse_diff
from .models import DiffResult, FileDiff

logger = structlog.get_logger(__name__)

# Seconds a git process may outlive the batch deadline before it is killed.
KILL_GRACE = 0.5


class DiffFetcher:
    """Fans out one task per consecutive revision pair of a chain.

    Each task writes only its own ``DiffResult``, so tasks share no state.
    Results are handed back by chain position regardless of the order in
    which git answers.
    """

    def __init__(
        self,
        provider: RevisionProvider,
        max_concurrency: int = 8,
        timeout: float = 120.0,
        parser: Callable[[str], list[FileDiff]] = parse_diff,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.provider = provider
        self.max_concurrency = max_concurrency
        self.timeout = timeout
        self.parser = parser
        self._logger = logger.bind(component="diff_fetcher")

    def start(
        self, chain: list[Revision], deadline: float | None = None
    ) -> list[asyncio.Task[DiffResult]]:
        """Schedule retrieval for every transition of ``chain``.

        Returns ``len(chain) - 1`` tasks, task ``i`` holding the transition
        ending at position ``i + 1``. ``deadline`` is in event loop time and
        defaults to ``timeout`` seconds from now. Must be called from a
        running loop.
        """
        if deadline is None:
            deadline = asyncio.get_running_loop().time() + self.timeout
        semaphore = asyncio.Semaphore(self.max_concurrency)
        return [
            asyncio.create_task(
                self._fetch(semaphore, old, new, deadline),
                name=f"diff-{new.position}",
            )
            for old, new in zip(chain, chain[1:])
        ]

    async def _fetch(
        self,
        semaphore: asyncio.Semaphore,
        old: Revision,
        new: Revision,
        deadline: float,
    ) -> DiffResult:
        async with semaphore:
            remaining = deadline - asyncio.get_running_loop().time()
            try:
                diff_text = await self.provider.diff_between(
                    old, new, timeout=max(remaining, 0.0) + KILL_GRACE
                )
                file_diffs = self.parser(diff_text)
            except GitWhereError as e:
                if e.position is None:
                    e.position = new.position
                return self._failed(new, e)
            except Exception as e:
                error = BackendError(
                    f"Diff {old.short_sha}..{new.short_sha} failed: {e}",
                    position=new.position,
                )
                error.__cause__ = e
                return self._failed(new, error)

        self._logger.debug(
            "diff_fetched",
            position=new.position,
            sha=new.short_sha,
            files=len(file_diffs),
        )
        return DiffResult(position=new.position, revision=new, file_diffs=file_diffs)

    def _failed(self, revision: Revision, error: GitWhereError) -> DiffResult:
        self._logger.warning(
            "diff_fetch_failed",
            position=revision.position,
            sha=revision.short_sha,
            error_type=type(error).__name__,
            error=error.message,
        )
        return DiffResult(position=revision.position, revision=revision, error=error)

    async def results(self, chain: list[Revision]) -> AsyncIterator[DiffResult]:
        """Yield results strictly in chain order as each becomes available.

        One deadline covers the whole chain. Leaving the iterator early, or
        hitting the deadline, cancels whatever is still outstanding. Git
        processes still running are killed ``KILL_GRACE`` seconds later.

        Raises:
            FetchTimeoutError: The next result in order was not ready in time.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout
        tasks = self.start(chain, deadline)
        try:
            for task in tasks:
                if not task.done():
                    remaining = deadline - loop.time()
                    if remaining > 0:
                        await asyncio.wait({task}, timeout=remaining)
                    if not task.done():
                        raise self._timed_out(tasks)
                yield task.result()
        finally:
            _abandon(tasks)

    async def fetch_all(self, chain: list[Revision]) -> list[DiffResult]:
        """Wait for the whole chain at once and return results by position."""
        tasks = self.start(chain)
        if not tasks:
            return []
        try:
            _, pending = await asyncio.wait(tasks, timeout=self.timeout)
            if pending:
                raise self._timed_out(tasks)
            return sorted((task.result() for task in tasks), key=lambda r: r.position)
        finally:
            _abandon(tasks)

    def _timed_out(self, tasks: list[asyncio.Task[DiffResult]]) -> FetchTimeoutError:
        waiting = [i + 1 for i, task in enumerate(tasks) if not task.done()]
        self._logger.error(
            "diff_fetch_timeout",
            timeout=self.timeout,
            outstanding=len(waiting),
            first_position=waiting[0],
        )
        return FetchTimeoutError(
            f"Diff retrieval exceeded {self.timeout:g}s "
            f"({len(waiting)} of {len(tasks)} transitions outstanding)",
            position=waiting[0],
        )


def _abandon(tasks: list[asyncio.Task[DiffResult]]) -> None:
    # Executor threads may keep running; their results are never read.
    for task in tasks:
        if not task.done():
            task.cancel()
