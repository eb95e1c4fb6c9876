"""ScalpBot error types.

Only configuration problems and (opt-in) data-gap failures are raised to
callers.  Insufficient indicator history and zero-division cases are
handled locally and never surface as exceptions.
"""

from __future__ import annotations


class ScalpBotError(Exception):
    """Base class for all ScalpBot errors."""


class InvalidConfigurationError(ScalpBotError, ValueError):
    """Raised when a strategy or application configuration is unusable.

    Args:
        errors: One human-readable line per problem found.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        rendered = "\n".join(f"- {item}" for item in self.errors)
        super().__init__(f"Invalid configuration:\n{rendered}")


class DataGapError(ScalpBotError):
    """Raised when a candle series is out of order and the gap policy is ``"fail"``."""

    def __init__(self, message: str, index: int) -> None:
        super().__init__(message)
        self.index = index
