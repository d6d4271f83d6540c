"""Tests for run-scoped logging context."""

from __future__ import annotations

import logging

from agent_stream.telemetry.logging_utils import (
    RunContextFilter,
    get_current_run_id,
    install_run_log_filter,
    run_log_context,
)


def _record() -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, "message", None, None)


def test_run_log_context_binds_and_restores() -> None:
    assert get_current_run_id() is None
    with run_log_context("run-1"):
        assert get_current_run_id() == "run-1"
        with run_log_context("run-2"):
            assert get_current_run_id() == "run-2"
        assert get_current_run_id() == "run-1"
    assert get_current_run_id() is None


def test_filter_sets_run_id_on_records() -> None:
    run_filter = RunContextFilter()
    outside = _record()
    run_filter.filter(outside)

    inside = _record()
    with run_log_context("run-7"):
        run_filter.filter(inside)

    assert outside.run_id == "-"
    assert inside.run_id == "run-7"


def test_install_run_log_filter_is_idempotent() -> None:
    logger = logging.getLogger("agent_stream.tests.install")
    install_run_log_filter([logger])
    install_run_log_filter([logger])

    filters = [flt for flt in logger.filters if isinstance(flt, RunContextFilter)]
    assert len(filters) == 1
    for flt in filters:
        logger.removeFilter(flt)
