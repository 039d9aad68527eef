"""Base classes and types for reading revision history."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime


@dataclass(frozen=True)
class Revision:
    """A commit in the chain being replayed."""

    sha: str
    timestamp: datetime  # Always UTC, timezone-aware
    position: int = 0  # Index in the chain, base revision is 0

    @property
    def short_sha(self) -> str:
        return self.sha[:12]


def build_chain(base: Revision, revisions: list[Revision]) -> list[Revision]:
    """Return ``[base, *revisions]`` with chain positions assigned.

    Revisions equal to the base are dropped so the first transition is
    never an empty self-diff.
    """
    chain = [replace(base, position=0)]
    for revision in revisions:
        if revision.sha == base.sha:
            continue
        chain.append(replace(revision, position=len(chain)))
    return chain


class RevisionProvider(ABC):
    """Abstract base class for revision history backends."""

    @abstractmethod
    async def list_revisions_since(self, since: datetime) -> list[Revision]:
        """Revisions committed after ``since``, oldest first."""

    @abstractmethod
    async def nearest_revision_before(self, before: datetime) -> Revision:
        """Latest revision committed before ``before``.

        Raises:
            NotFoundError: No revision precedes the date.
        """

    @abstractmethod
    async def file_content_at(self, revision: Revision | str, file_name: str) -> bytes:
        """Raw content of ``file_name`` at ``revision``.

        Raises:
            NotFoundError: The file did not exist at that revision.
        """

    @abstractmethod
    async def diff_between(
        self, old: Revision, new: Revision, timeout: float | None = None
    ) -> str:
        """Raw unified diff text from ``old`` to ``new``.

        A backend that runs the diff out of process stops it once
        ``timeout`` seconds have passed.
        """
