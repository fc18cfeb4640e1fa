"""Error kinds raised by the explorer core.

Open failures are fatal to the session; everything raised while browsing is
scoped to a node (or to the search line) and is reported in the status bar.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    IO = "io"
    UNSUPPORTED_FORMAT = "unsupported-format"
    PERMISSION_DENIED = "permission-denied"
    INVALID_PATTERN = "invalid-pattern"
    FETCH_FAILED = "fetch-failed"


class ExplorerError(Exception):
    kind: ErrorKind = ErrorKind.IO

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ReadError(ExplorerError):
    """The underlying read failed (missing file, I/O error, bad object)."""

    kind = ErrorKind.IO


class UnsupportedFormatError(ExplorerError):
    kind = ErrorKind.UNSUPPORTED_FORMAT


class PermissionDeniedError(ExplorerError):
    kind = ErrorKind.PERMISSION_DENIED


class InvalidPatternError(ExplorerError):
    kind = ErrorKind.INVALID_PATTERN

    def __init__(self, pattern: str, reason: str, position: Optional[int] = None) -> None:
        if position is not None:
            message = f"Invalid pattern '{pattern}': {reason} at position {position}"
        else:
            message = f"Invalid pattern '{pattern}': {reason}"
        super().__init__(message)
        self.pattern = pattern
        self.reason = reason
        self.position = position


class FetchFailedError(ExplorerError):
    """A children or metadata fetch failed for one node."""

    kind = ErrorKind.FETCH_FAILED

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(f"Failed to read '{path}': {cause}")
        self.path = path
        self.cause = cause
