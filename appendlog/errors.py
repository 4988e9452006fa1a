from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class AppendLogError(Exception):
    """Base class for every error raised by appendlog."""


class InvalidPathError(AppendLogError, ValueError):
    """Empty path or an extension outside the allowed set. No I/O was attempted."""


class SettingsError(AppendLogError, ValueError):
    pass


class IoFailureError(AppendLogError):
    """
    Wraps an OSError raised while creating, reading or writing a log file.
    The original exception is chained as __cause__.
    """

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None) -> None:
        super().__init__(message)
        self.path = path


class AllocationError(IoFailureError):
    """The allocator could not materialize a directory or a unique file."""
