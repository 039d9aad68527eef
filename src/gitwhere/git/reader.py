"""GitPython-based implementation of RevisionProvider."""

import asyncio
import sys
from datetime import UTC, datetime

import git
import structlog

from gitwhere.exceptions import BackendError, NotFoundError, RepositoryNotFoundError
from gitwhere.utils.datetime import format_git_date

from .base import Revision, RevisionProvider

logger = structlog.get_logger(__name__)


class GitPythonRevisionProvider(RevisionProvider):
    """Reads revisions, file content and diffs through GitPython.

    Only read commands are issued, so concurrent calls against the same
    repository are safe.
    """

    def __init__(self, repo_path: str, detect_copies: bool = False) -> None:
        try:
            self.repo = git.Repo(repo_path)
        except (git.InvalidGitRepositoryError, git.NoSuchPathError) as e:
            raise RepositoryNotFoundError(
                f"Not a valid git repository: {repo_path}"
            ) from e
        self.detect_copies = detect_copies

    async def list_revisions_since(self, since: datetime) -> list[Revision]:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self._list_revisions_since_sync, since)

    def _list_revisions_since_sync(self, since: datetime) -> list[Revision]:
        if not self._has_head():
            return []
        try:
            commits = list(
                self.repo.iter_commits(
                    "HEAD",
                    first_parent=True,
                    reverse=True,
                    after=format_git_date(since),
                )
            )
        except git.GitCommandError as e:
            raise BackendError(f"Git rev-list failed: {e.stderr.strip()}") from e

        revisions = [self._to_revision(commit) for commit in commits]
        logger.debug(
            "revisions_listed",
            since=format_git_date(since),
            count=len(revisions),
        )
        return revisions

    async def nearest_revision_before(self, before: datetime) -> Revision:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            None, self._nearest_revision_before_sync, before
        )

    def _nearest_revision_before_sync(self, before: datetime) -> Revision:
        if not self._has_head():
            raise NotFoundError("Repository has no commits")
        try:
            commits = list(
                self.repo.iter_commits(
                    "HEAD",
                    first_parent=True,
                    max_count=1,
                    before=format_git_date(before),
                )
            )
        except git.GitCommandError as e:
            raise BackendError(f"Git rev-list failed: {e.stderr.strip()}") from e

        if not commits:
            raise NotFoundError(
                f"No commit found before {format_git_date(before)}"
            )
        return self._to_revision(commits[0])

    async def file_content_at(self, revision: Revision | str, file_name: str) -> bytes:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            None, self._file_content_at_sync, revision, file_name
        )

    def _file_content_at_sync(self, revision: Revision | str, file_name: str) -> bytes:
        sha = revision.sha if isinstance(revision, Revision) else revision
        try:
            return self.repo.git.cat_file(
                "blob",
                f"{sha}:{file_name}",
                stdout_as_string=False,
                strip_newline_in_stdout=False,
            )
        except git.GitCommandError as e:
            raise NotFoundError(
                f"File {file_name} does not exist at {sha[:12]}: {e.stderr.strip()}"
            ) from e

    async def diff_between(
        self, old: Revision, new: Revision, timeout: float | None = None
    ) -> str:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            None, self._diff_between_sync, old, new, timeout
        )

    def _diff_between_sync(
        self, old: Revision, new: Revision, timeout: float | None = None
    ) -> str:
        args = [
            "--find-renames",
            "--no-color",
            "--no-ext-diff",
            "--no-textconv",
            "--unified=0",
            "--src-prefix=a/",
            "--dst-prefix=b/",
        ]
        if self.detect_copies:
            args.append("--find-copies")
        kwargs: dict[str, float] = {}
        if timeout is not None and sys.platform != "win32":
            # GitPython kills the git process and its children on expiry.
            kwargs["kill_after_timeout"] = timeout
        try:
            # Keep the final newline so the last hunk line parses intact.
            return self.repo.git.diff(
                *args, old.sha, new.sha, strip_newline_in_stdout=False, **kwargs
            )
        except git.GitCommandError as e:
            raise BackendError(
                f"Git diff {old.short_sha}..{new.short_sha} failed: {e.stderr.strip()}",
                position=new.position,
            ) from e

    def _has_head(self) -> bool:
        try:
            self.repo.head.commit
        except ValueError:
            return False
        return True

    @staticmethod
    def _to_revision(commit: git.Commit) -> Revision:
        return Revision(
            sha=commit.hexsha,
            timestamp=datetime.fromtimestamp(commit.committed_date, tz=UTC),
        )
