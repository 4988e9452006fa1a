"""
Path allocation for new log files.

allocate() materializes the directory chain for a target path and then
creates a file that did not exist before, numbering the name the way a
"Save As" dialog does when the literal one is taken:

    app.txt -> app(1).txt -> app(2).txt -> ... -> app(10).txt -> ...

The exists-check and the exclusive create are not atomic. When another
actor creates the candidate in between, the create fails and the failure
is raised as AllocationError instead of silently moving on.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable, Optional, Union

from .config import DEFAULT_CONFIG
from .dispatcher import Observer, dispatch_event
from .errors import AllocationError, InvalidPathError
from .events import AllocationEvent

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = DEFAULT_CONFIG["max_attempts"]


@dataclass(frozen=True)
class Allocation:
    """
    Result of allocate().

    - handle: binary file object opened with exclusive create; the caller owns it
    - path: the path that was actually created
    """

    handle: BinaryIO
    path: Path


def suffix_insertion_point(name: str) -> int:
    """
    Index in a filename where the collision suffix goes: the first dot
    after position 0, or the end of the name when there is none.
    A leading dot marks a hidden file, not an extension.
    """
    idx = name.find(".", 1)
    return len(name) if idx == -1 else idx


def with_collision_suffix(name: str, n: int) -> str:
    if n == 0:
        return name
    at = suffix_insertion_point(name)
    return f"{name[:at]}({n}){name[at:]}"


def _split_target(path: Union[str, os.PathLike]) -> Path:
    raw = os.fspath(path)
    if not raw:
        raise InvalidPathError("Path is empty")
    target = Path(raw)
    if target.name in ("", ".", ".."):
        raise InvalidPathError(f"Path has no file name: {raw}")
    return target


def allocate(
    path: Union[str, os.PathLike],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    observers: Optional[Iterable[Observer]] = None,
) -> Allocation:
    """
    Create the parent directories of `path`, then create a new file at
    `path` or at the first free numbered sibling.

    Raises InvalidPathError when `path` has no file name and
    AllocationError on any OS failure, on a lost creation race, or when
    `max_attempts` numbered candidates are all taken.
    """
    target = _split_target(path)
    observers = list(observers) if observers is not None else None

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        dispatch_event(AllocationEvent(kind="failed", path=target.parent, attempt=0, detail=str(e)), observers)
        raise AllocationError(f"Could not create directory {target.parent}: {e}", path=target.parent) from e

    for count in range(max_attempts + 1):
        candidate = target.with_name(with_collision_suffix(target.name, count))

        # a dangling symlink still occupies the name
        if candidate.is_symlink() or candidate.exists():
            dispatch_event(AllocationEvent(kind="collision", path=candidate, attempt=count), observers)
            continue

        try:
            handle = open(candidate, "xb")
        except OSError as e:
            # FileExistsError here means someone created it after our check
            dispatch_event(AllocationEvent(kind="failed", path=candidate, attempt=count, detail=str(e)), observers)
            raise AllocationError(f"Could not create {candidate}: {e}", path=candidate) from e

        logger.debug("Allocated %s after %d collision(s)", candidate, count)
        dispatch_event(AllocationEvent(kind="created", path=candidate, attempt=count), observers)
        return Allocation(handle=handle, path=candidate)

    dispatch_event(
        AllocationEvent(kind="failed", path=target, attempt=max_attempts, detail="attempts exhausted"),
        observers,
    )
    raise AllocationError(
        f"Could not find a free name for {target} after {max_attempts} attempts", path=target
    )
