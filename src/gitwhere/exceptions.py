"""Exception hierarchy for gitwhere.

Every error can carry the chain position it relates to so a failure can be
reproduced against the exact revision pair.
"""


class GitWhereError(Exception):
    """Base exception for gitwhere errors."""

    def __init__(self, message: str, position: int | None = None) -> None:
        self.message = message
        self.position = position
        super().__init__(message)

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        return f"position {self.position}: {self.message}"


class InputError(GitWhereError):
    """Caller supplied a bad date, line number, or path."""

    pass


class BackendError(GitWhereError):
    """Reading from the version control backend failed."""

    pass


class RepositoryNotFoundError(BackendError):
    """Repository path is not a valid git repository."""

    pass


class NotFoundError(BackendError):
    """Requested revision or file does not exist."""

    pass


class ParseError(GitWhereError):
    """Diff text could not be parsed."""

    pass


class FetchTimeoutError(GitWhereError, TimeoutError):
    """Diff retrieval for the chain exceeded its deadline."""

    pass


class LostLineError(GitWhereError):
    """The tracked line was deleted by a hunk.

    Not a crash: the locator turns this into a ``Lost`` outcome.
    """

    def __init__(
        self,
        file_name: str,
        line_number: int,
        position: int | None = None,
    ) -> None:
        self.file_name = file_name
        self.line_number = line_number
        super().__init__(
            f"line {line_number} of {file_name} was deleted", position=position
        )


class LineOutOfRangeError(GitWhereError):
    """Line number is past the end of the file being displayed."""

    def __init__(self, line_number: int, line_count: int) -> None:
        self.line_number = line_number
        self.line_count = line_count
        super().__init__(
            f"line number {line_number} exceeds file line count {line_count}"
        )
