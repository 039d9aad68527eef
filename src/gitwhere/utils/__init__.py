"""gitwhere utility modules."""

from gitwhere.utils.datetime import ensure_utc, format_git_date
from gitwhere.utils.text import count_lines

__all__ = ["count_lines", "ensure_utc", "format_git_date"]
