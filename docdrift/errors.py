"""Exception types raised across docdrift."""

from __future__ import annotations

from typing import Optional


class DocdriftError(Exception):
    """Base class for every docdrift error."""


class ParseError(DocdriftError):
    """Source text could not be parsed into a structural model."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"{self.message} (line {self.line}, column {self.column or 0})"


class InvalidInputError(DocdriftError):
    """Caller-supplied data is malformed; rejected before analysis starts."""


class GitSourceError(DocdriftError):
    """Git could not be queried for a file revision."""
