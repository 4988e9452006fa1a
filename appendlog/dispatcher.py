from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from appendlog.events import AllocationEvent
from appendlog.logging_config import format_event, get_logger, record_event

logger = logging.getLogger(__name__)

Observer = Callable[[AllocationEvent], None]


def dispatch_event(event: AllocationEvent, observers: Optional[Iterable[Observer]] = None) -> None:
    """
    Deliver one allocation event to every observer. With no observers the
    event goes to log_event. A failing observer never aborts the allocation.
    """
    for handler in observers if observers is not None else (log_event,):
        try:
            handler(event)
        except Exception as e:
            logger.warning("Observer %r failed on %s event for %s: %s", handler, event.kind, event.path, e)


def log_event(event: AllocationEvent) -> None:
    if event.kind == "failed":
        logger.warning(format_event(event))
    else:
        logger.debug(format_event(event))


def file_observer(
    log_path: Optional[str] = None,
    name: str = "appendlog.diagnostics",
    level: Optional[int] = None,
) -> Observer:
    """Observer that records every event in a rotating diagnostics file."""
    diag = get_logger(name, log_path, level)

    def _observe(event: AllocationEvent) -> None:
        record_event(diag, event)

    return _observe
