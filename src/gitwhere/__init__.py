"""gitwhere - follow a line of code through git history.

Given a file and line number as they existed on a date, replays every
later commit's hunks to find where that line lives now, or the commit
where it was deleted.
"""

__version__ = "0.1.0"
