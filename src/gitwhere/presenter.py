"""Terminal rendering of a file around a tracked line."""

from rich.console import Console
from rich.syntax import Syntax

from gitwhere.exceptions import LineOutOfRangeError
from gitwhere.utils.text import count_lines


def render(
    file_name: str,
    content: bytes | str,
    line_number: int,
    console: Console | None = None,
    context: int = 5,
    theme: str = "dracula",
) -> None:
    """Print ``context`` lines either side of ``line_number``, highlighted.

    The lexer is picked from the file name and falls back to plain text.

    Raises:
        LineOutOfRangeError: ``line_number`` is outside the file.
    """
    if isinstance(content, bytes):
        text = content.decode("utf-8", errors="replace")
    else:
        text = content

    line_count = count_lines(text)
    # Pygments reads a lone carriage return as a line break.
    text = text.replace("\r\n", "\n").replace("\r", " ")
    if not 1 <= line_number <= line_count:
        raise LineOutOfRangeError(line_number, line_count)

    first = max(1, line_number - context)
    last = min(line_count, line_number + context)

    syntax = Syntax(
        text,
        Syntax.guess_lexer(file_name, code=text),
        theme=theme,
        line_numbers=True,
        line_range=(first, last),
        highlight_lines={line_number},
        word_wrap=False,
    )
    (console or Console()).print(syntax)
