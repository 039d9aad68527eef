"""Line tracking through a revision chain.

Provides the hunk parser, the concurrent diff fetcher and the line locator
that folds their results in chain order.
"""

from .fetcher import DiffFetcher
from .hunks import parse_diff
from .locator import LineLocator, apply_file_diff, select_file_diff
from .models import (
    DiffResult,
    EditHunk,
    FileDiff,
    Located,
    Lost,
    Trace,
    TrackedLocation,
)

__all__ = [
    # Classes
    "DiffFetcher",
    "LineLocator",
    # Data classes
    "DiffResult",
    "EditHunk",
    "FileDiff",
    "Located",
    "Lost",
    "Trace",
    "TrackedLocation",
    # Functions
    "apply_file_diff",
    "parse_diff",
    "select_file_diff",
]
