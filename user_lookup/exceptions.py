"""
Exceptions raised by the user/group lookup layer.

Lookup misses are never errors; they are reported as ``None``.
"""

from __future__ import annotations

from pathlib import Path


class UserLookupError(Exception):
    """Base user lookup exception."""

    pass


class IoFailure(UserLookupError, OSError):
    """An account database file could not be opened or read.

    The underlying ``OSError`` is chained as ``__cause__``.
    """

    def __init__(self, path: str | Path, message: str | None = None) -> None:
        self.path = str(path)
        super().__init__(message or f"Could not read account database '{self.path}'")


class MalformedRecord(UserLookupError, ValueError):
    """A database line did not match the expected field layout.

    Subclasses ValueError so plain parsing callers can treat it as such.
    """

    def __init__(
        self,
        message: str,
        *,
        field: str,
        line: str | None = None,
        line_number: int | None = None,
    ) -> None:
        self.field = field
        self.line = line
        self.line_number = line_number
        super().__init__(message)

    def at_line(self, line_number: int) -> MalformedRecord:
        """Return a copy of this error tagged with a 1-based line number."""
        return MalformedRecord(
            f"line {line_number}: {self}",
            field=self.field,
            line=self.line,
            line_number=line_number,
        )


class ConfigurationError(UserLookupError):
    """Invalid reader or settings configuration."""

    pass
