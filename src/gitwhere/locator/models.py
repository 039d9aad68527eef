"""Data types exchanged between the hunk parser, fetcher and locator."""

from dataclasses import dataclass, field

from gitwhere.exceptions import GitWhereError
from gitwhere.git.base import Revision


@dataclass(frozen=True)
class EditHunk:
    """One contiguous changed region of a unified diff.

    ``old_start`` is the 1-based line in the pre-edit file where the region
    begins, ``old_line_count`` lines are removed from there and
    ``new_line_count`` lines replace them.
    """

    old_start: int
    old_line_count: int
    new_line_count: int

    @property
    def delta(self) -> int:
        return self.new_line_count - self.old_line_count


@dataclass(frozen=True)
class FileDiff:
    """Hunks for one file within one revision transition."""

    old_name: str | None  # None for an added file
    new_name: str | None  # None for a deleted file
    hunks: tuple[EditHunk, ...] = ()
    is_copy: bool = False

    @property
    def is_rename(self) -> bool:
        return (
            self.old_name is not None
            and self.new_name is not None
            and self.old_name != self.new_name
        )

    @property
    def is_deleted(self) -> bool:
        return self.new_name is None


@dataclass
class DiffResult:
    """Parsed diff for the transition ending at chain ``position``."""

    position: int
    revision: Revision
    file_diffs: list[FileDiff] = field(default_factory=list)
    error: GitWhereError | None = None


@dataclass
class TrackedLocation:
    """The line being followed. Mutated once per transition by the locator."""

    file_name: str
    line_number: int

    def __str__(self) -> str:
        return f"{self.file_name}:{self.line_number}"


@dataclass(frozen=True)
class Located:
    """Terminal state: the line survived to the end of the chain."""

    file_name: str
    line_number: int
    revision: Revision

    @property
    def lost(self) -> bool:
        return False


@dataclass(frozen=True)
class Lost:
    """Terminal state: the trail went cold at ``position``.

    ``file_name`` and ``line_number`` are the last known location, before
    the revision at ``position`` deleted it.
    """

    position: int
    file_name: str
    line_number: int
    revision: Revision

    @property
    def lost(self) -> bool:
        return True


@dataclass
class Trace:
    """Outcome of a locate run together with the chain it replayed."""

    start: TrackedLocation
    chain: list[Revision]
    outcome: Located | Lost

    @property
    def base(self) -> Revision:
        return self.chain[0]

    def revision_before(self, position: int) -> Revision:
        return self.chain[max(0, position - 1)]
