"""Revision history access for gitwhere.

Provides the revision chain, file content at a revision, and raw diffs
between revisions.
"""

from .base import Revision, RevisionProvider, build_chain
from .reader import GitPythonRevisionProvider

__all__ = [
    # Classes
    "GitPythonRevisionProvider",
    "RevisionProvider",
    # Data classes
    "Revision",
    # Functions
    "build_chain",
]
