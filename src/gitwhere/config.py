"""gitwhere configuration module.

All settings support environment variable overrides with GITWHERE_ prefix.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GitWhereSettings(BaseSettings):
    """gitwhere runtime configuration.

    For example, GITWHERE_FETCH_TIMEOUT=30 sets fetch_timeout to 30 seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="GITWHERE_",
        env_nested_delimiter="__",
    )

    # Diff retrieval
    fetch_timeout: float = Field(
        default=120.0,
        gt=0,
        description="Deadline in seconds for retrieving all diffs of a chain",
    )
    max_concurrency: int = Field(
        default=8,
        ge=1,
        description="Maximum number of diffs read from git at the same time",
    )
    detect_copies: bool = Field(
        default=False,
        description="Ask git to detect copies (copies are never followed)",
    )

    # Display
    context_lines: int = Field(
        default=5,
        ge=0,
        description="Lines shown above and below the tracked line",
    )
    theme: str = Field(
        default="dracula",
        description="Pygments style used for syntax highlighting",
    )

    # Logging
    log_level: str = Field(
        default="warning",
        description="Logging level (debug, info, warning, error)",
    )
    log_format: str = Field(
        default="console",
        description="Log output format (console or json)",
    )


# Module-level singleton
settings = GitWhereSettings()
