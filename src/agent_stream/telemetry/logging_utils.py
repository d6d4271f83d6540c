"""Logging helpers for run correlation."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

_current_run_id: ContextVar[str | None] = ContextVar("agent_stream_run_id", default=None)


def get_current_run_id() -> str | None:
    """Return the run id bound to the current context, if any."""
    return _current_run_id.get()


@contextmanager
def run_log_context(run_id: str | None) -> Iterator[None]:
    """Bind ``run_id`` to log records emitted inside the block."""
    token = _current_run_id.set(run_id)
    try:
        yield
    finally:
        _current_run_id.reset(token)


class RunContextFilter(logging.Filter):
    """Attach the active run id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Inject run_id into the log record."""
        record.run_id = get_current_run_id() or "-"
        return True


def install_run_log_filter(loggers: Iterable[logging.Logger] | None = None) -> None:
    """Install run context filters for structured logging.

    Args:
        loggers: Optional iterable of loggers to attach the filter to. Defaults to root logger.
    """
    targets = list(loggers) if loggers is not None else [logging.getLogger()]
    for logger in targets:
        if any(isinstance(flt, RunContextFilter) for flt in logger.filters):
            continue
        logger.addFilter(RunContextFilter())
