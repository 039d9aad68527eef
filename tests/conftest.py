"""Pytest configuration and fixtures."""

import asyncio
import shutil
import threading
from collections.abc import Callable, Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import git
import pytest

from gitwhere.exceptions import NotFoundError
from gitwhere.git.base import Revision, RevisionProvider

# Enable pytest-asyncio for all tests
pytest_plugins = ("pytest_asyncio",)

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


# Thread names that are expected to be long-running and should be ignored
# by the resource tracker. These are typically from third-party libraries.
_IGNORED_THREAD_PREFIXES = (
    "MainThread",
    "ThreadPoolExecutor",  # Python's ThreadPoolExecutor workers
    "asyncio_",  # asyncio internal threads
    "concurrent.futures",  # concurrent.futures workers
    "Thread-",  # Generic numbered threads (GitPython stream pumps)
    "pydevd",  # Debugger threads
)


def _is_tracked_thread(t: threading.Thread) -> bool:
    """Check if a thread should be tracked for leak detection.

    We only track non-daemon threads that aren't from known background services.
    """
    if t.daemon:
        return False
    if t.name is None:
        return True
    return not any(t.name.startswith(prefix) for prefix in _IGNORED_THREAD_PREFIXES)


@pytest.fixture(autouse=True)
def thread_leak_tracker(
    request: pytest.FixtureRequest,
) -> Generator[None, None, None]:
    """Fail tests that leave non-daemon threads behind.

    To skip this check for a specific test, use:
        @pytest.mark.no_resource_tracking
    """
    if request.node.get_closest_marker("no_resource_tracking"):
        yield
        return

    baseline_threads = {t for t in threading.enumerate() if _is_tracked_thread(t)}

    yield

    leaked = {t for t in threading.enumerate() if _is_tracked_thread(t)} - baseline_threads
    if leaked:
        pytest.fail(
            f"Thread leak detected - {len(leaked)} thread(s): "
            f"{[t.name for t in leaked]}. "
            "Tests must join all threads before completion."
        )


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "no_resource_tracking: skip resource leak checking for this test",
    )


# ---------------------------------------------------------------------------
# Real repositories
# ---------------------------------------------------------------------------


@pytest.fixture
def git_repo(tmp_path: Path) -> git.Repo:
    """Create an empty git repository with a test identity."""
    repo = git.Repo.init(tmp_path / "repo")
    with repo.config_writer() as config:
        config.set_value("user", "name", "Test User")
        config.set_value("user", "email", "test@example.com")
        config.set_value("commit", "gpgsign", "false")
    return repo


@pytest.fixture
def make_commit(git_repo: git.Repo) -> Callable[..., str]:
    """Return a helper that commits file changes at a fixed date.

    Usage:
        make_commit(when, "message", files={"a.txt": "..."},
                    removed=["b.txt"], renamed={"old.txt": "new.txt"})
    """
    root = Path(git_repo.working_tree_dir)

    def _commit(
        when: datetime,
        message: str,
        files: dict[str, str] | None = None,
        removed: list[str] | None = None,
        renamed: dict[str, str] | None = None,
    ) -> str:
        for old, new in (renamed or {}).items():
            (root / new).parent.mkdir(parents=True, exist_ok=True)
            git_repo.git.mv(old, new)
        for name, text in (files or {}).items():
            path = root / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text)
        for name in removed or []:
            git_repo.git.rm(name)
        git_repo.git.add(A=True)
        stamp = when.isoformat()
        git_repo.git.commit(
            "-m",
            message,
            env={"GIT_AUTHOR_DATE": stamp, "GIT_COMMITTER_DATE": stamp},
        )
        return git_repo.head.commit.hexsha

    return _commit


@pytest.fixture
def slow_git(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Make every ``git diff`` issued through GitPython hang for 30 seconds."""
    real_git = shutil.which("git")
    script = tmp_path / "slow-git"
    script.write_text(
        "#!/bin/sh\n"
        'if [ "$1" = "diff" ]; then\n'
        "    sleep 30\n"
        "fi\n"
        f'exec "{real_git}" "$@"\n'
    )
    script.chmod(0o755)
    monkeypatch.setattr(git.Git, "GIT_PYTHON_GIT_EXECUTABLE", str(script))


def numbered_lines(count: int, prefix: str = "line") -> str:
    return "".join(f"{prefix} {i}\n" for i in range(1, count + 1))


@pytest.fixture
def lines() -> Callable[..., str]:
    """Return a helper producing ``count`` distinct numbered lines."""
    return numbered_lines


# ---------------------------------------------------------------------------
# Synthetic diffs and a fake provider
# ---------------------------------------------------------------------------


def build_diff(
    old_name: str,
    new_name: str | None = None,
    hunks: list[tuple[int, int, int]] | None = None,
    copy: bool = False,
) -> str:
    """Build ``git diff`` text for one file.

    ``hunks`` holds ``(old_start, old_line_count, new_line_count)`` tuples in
    ascending order.
    """
    new_name = new_name or old_name
    out = [f"diff --git a/{old_name} b/{new_name}\n"]
    if copy:
        out += ["similarity index 90%\n", f"copy from {old_name}\n", f"copy to {new_name}\n"]
    elif old_name != new_name:
        out += [
            "similarity index 90%\n",
            f"rename from {old_name}\n",
            f"rename to {new_name}\n",
        ]
    if hunks:
        out += [f"--- a/{old_name}\n", f"+++ b/{new_name}\n"]
        offset = 0
        for old_start, old_count, new_count in hunks:
            new_start = old_start + offset
            out.append(f"@@ -{old_start},{old_count} +{new_start},{new_count} @@\n")
            out += [f"-old {old_start + i}\n" for i in range(old_count)]
            out += [f"+new {new_start + i}\n" for i in range(new_count)]
            offset += new_count - old_count
    return "".join(out)


@pytest.fixture
def diff_text() -> Callable[..., str]:
    """Return the synthetic diff builder."""
    return build_diff


class FakeRevisionProvider(RevisionProvider):
    """In-memory provider serving one canned diff per transition.

    ``latencies`` delays each transition's diff, ``errors`` makes a
    transition raise. Completion order and the timeout handed to each
    transition are recorded.
    """

    def __init__(
        self,
        diffs: list[str],
        files: dict[str, bytes] | None = None,
        latencies: list[float] | None = None,
        errors: dict[int, Exception] | None = None,
    ) -> None:
        self.diffs = diffs
        self.files = files or {}
        self.latencies = latencies or [0.0] * len(diffs)
        self.errors = errors or {}
        self.revisions = [
            Revision(sha=f"{i:040x}", timestamp=BASE_TIME + timedelta(days=i))
            for i in range(len(diffs) + 1)
        ]
        self.completed: list[int] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.timeouts: dict[int, float | None] = {}

    async def list_revisions_since(self, since: datetime) -> list[Revision]:
        return self.revisions[1:]

    async def nearest_revision_before(self, before: datetime) -> Revision:
        return self.revisions[0]

    async def file_content_at(self, revision: Revision | str, file_name: str) -> bytes:
        if file_name not in self.files:
            raise NotFoundError(f"File {file_name} does not exist")
        return self.files[file_name]

    async def diff_between(
        self, old: Revision, new: Revision, timeout: float | None = None
    ) -> str:
        self.timeouts[new.position] = timeout
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.latencies[new.position - 1])
            if new.position in self.errors:
                raise self.errors[new.position]
            self.completed.append(new.position)
            return self.diffs[new.position - 1]
        finally:
            self.in_flight -= 1


@pytest.fixture
def fake_provider() -> type[FakeRevisionProvider]:
    """Return the fake provider class."""
    return FakeRevisionProvider
