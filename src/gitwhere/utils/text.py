"""Line counting that agrees with git's line numbering."""


def count_lines(content: bytes | str) -> int:
    """Number of lines as git numbers them.

    Only ``\\n`` ends a line. A final line without one still counts.
    """
    newline = b"\n" if isinstance(content, bytes) else "\n"
    if not content:
        return 0
    return content.count(newline) + (0 if content.endswith(newline) else 1)
