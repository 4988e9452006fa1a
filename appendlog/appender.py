"""
Append a message to a text log file, creating it on first use.

append() validates the target, opens the file for read+write without
truncating it and writes the message at the end. When the file does not
exist yet, the allocator creates it (and its directories) and the write
is retried exactly once against the path the allocator returned.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Collection, Iterable, Mapping, Optional, Union

from .allocator import allocate
from .dispatcher import Observer
from .errors import AllocationError, InvalidPathError, IoFailureError
from .settings import build_settings

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def validate_target(path: PathLike, extensions: Collection[str]) -> Path:
    """
    Reject an empty path or one whose extension is not in `extensions`.
    Nothing on disk is touched.
    """
    raw = os.fspath(path) if path is not None else ""
    if not raw:
        raise InvalidPathError("Path is empty")

    target = Path(raw)
    ext = target.suffix[1:]
    if not ext or ext not in extensions:
        allowed = ", ".join(sorted(extensions))
        raise InvalidPathError(f"Extension of {raw!r} is not one of: {allowed}")
    return target


def _write(target: Path, data: bytes, mode: str) -> None:
    """
    Write to an existing file. FileNotFoundError from open() propagates so
    the caller can allocate; every other OSError becomes IoFailureError.
    """
    try:
        f = open(target, "r+b")
    except FileNotFoundError:
        raise
    except OSError as e:
        raise IoFailureError(f"Could not open {target}: {e}", path=target) from e

    with f:
        try:
            if mode == "rewrite":
                existing = f.read()
                f.seek(0)
                f.write(existing + data)
            else:
                f.seek(0, os.SEEK_END)
                f.write(data)
        except OSError as e:
            raise IoFailureError(f"Could not write to {target}: {e}", path=target) from e


def append(
    path: PathLike,
    message: str,
    settings: Optional[Mapping[str, Any]] = None,
    observers: Optional[Iterable[Observer]] = None,
) -> Path:
    """
    Append `message` to the file at `path` and return the path written.

    settings: options as accepted by build_settings(); missing keys come
      from $APPENDLOG_CONFIG and the defaults.
    observers: callables receiving AllocationEvent records when the file
      has to be created.

    Raises InvalidPathError before any I/O, AllocationError when the file
    could not be created, IoFailureError for every other OS failure.
    """
    settings = build_settings(settings)

    target = validate_target(path, settings["extensions"])
    try:
        data = message.encode(settings["encoding"])
    except UnicodeEncodeError as e:
        raise IoFailureError(f"Could not encode message for {target}: {e}", path=target) from e

    try:
        _write(target, data, settings["mode"])
        return target
    except FileNotFoundError:
        logger.debug("%s does not exist yet, allocating", target)

    try:
        allocation = allocate(target, settings["max_attempts"], observers)
    except AllocationError as e:
        logger.warning("Dropping message for %s: %s", target, e)
        raise

    allocation.handle.close()
    resolved = allocation.path

    try:
        _write(resolved, data, settings["mode"])
    except FileNotFoundError as e:
        raise IoFailureError(f"{resolved} disappeared right after it was created", path=resolved) from e

    return resolved
