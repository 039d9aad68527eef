"""Unified diff to FileDiff conversion."""

import re

from unidiff import Hunk, PatchSet, PatchedFile
from unidiff.errors import UnidiffParseError

from gitwhere.exceptions import ParseError

from .models import EditHunk, FileDiff

DEV_NULL = "/dev/null"

# Escapes git writes inside a quoted path, octal bytes included.
QUOTED_ESCAPE = re.compile(r'\\([0-7]{3}|[abtnvfr"\\])')
ESCAPED_BYTES = {
    "a": 7,
    "b": 8,
    "t": 9,
    "n": 10,
    "v": 11,
    "f": 12,
    "r": 13,
    '"': 34,
    "\\": 92,
}


def parse_diff(diff_text: str) -> list[FileDiff]:
    """Parse raw ``git diff`` output into one FileDiff per changed file.

    An empty diff yields an empty list.

    Raises:
        ParseError: The text is not a valid unified diff.
    """
    if not diff_text.strip():
        return []

    try:
        patch_set = PatchSet(diff_text)
    except UnidiffParseError as e:
        raise ParseError(f"Malformed diff: {e}") from e

    return [_to_file_diff(patched_file) for patched_file in patch_set]


def _to_file_diff(patched_file: PatchedFile) -> FileDiff:
    hunks: list[EditHunk] = []
    for hunk in patched_file:
        hunks.extend(split_hunk(hunk))
    return FileDiff(
        old_name=_strip_prefix(patched_file.source_file),
        new_name=_strip_prefix(patched_file.target_file),
        hunks=tuple(hunks),
        is_copy=_is_copy(patched_file),
    )


def split_hunk(hunk: Hunk) -> list[EditHunk]:
    """Split a diff hunk into its contiguous changed regions.

    Context lines are not part of any region. A region with no removed
    lines starts at the old line it was inserted after, which is how
    ``git diff -U0`` writes pure insertions.
    """
    regions: list[EditHunk] = []
    # Old line number of the last context or removed line seen.
    anchor = hunk.source_start - 1 if hunk.source_length else hunk.source_start
    start: int | None = None
    removed = added = 0

    def close() -> None:
        nonlocal start, removed, added
        if removed or added:
            regions.append(
                EditHunk(
                    old_start=start if start is not None else anchor,
                    old_line_count=removed,
                    new_line_count=added,
                )
            )
        start = None
        removed = added = 0

    for line in hunk:
        if line.is_context:
            close()
            anchor = line.source_line_no
        elif line.is_removed:
            if start is None:
                start = line.source_line_no
            removed += 1
            anchor = line.source_line_no
        elif line.is_added:
            added += 1
    close()
    return regions


def _strip_prefix(name: str | None) -> str | None:
    if not name or name == DEV_NULL:
        return None
    name = unquote_path(name)
    if name.startswith(("a/", "b/")):
        return name[2:]
    return name


def unquote_path(name: str) -> str:
    """Undo git's C-style quoting of a path in diff headers.

    Git quotes paths holding a double quote, a backslash, a control
    character or (with ``core.quotePath``) any non-ASCII byte, writing
    non-ASCII bytes as octal escapes. Unquoted names are returned as is.
    """
    if len(name) < 2 or not (name.startswith('"') and name.endswith('"')):
        return name

    body = name[1:-1]
    raw = bytearray()
    end = 0
    for match in QUOTED_ESCAPE.finditer(body):
        raw += body[end : match.start()].encode()
        escape = match.group(1)
        raw.append(int(escape, 8) if len(escape) == 3 else ESCAPED_BYTES[escape])
        end = match.end()
    raw += body[end:].encode()
    return raw.decode("utf-8", errors="surrogateescape")


def _is_copy(patched_file: PatchedFile) -> bool:
    # unidiff keeps the git extended header lines in patch_info.
    if patched_file.patch_info is None:
        return False
    return any(str(line).startswith("copy from ") for line in patched_file.patch_info)
