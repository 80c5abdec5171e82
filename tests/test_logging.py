"""Tests for the tillrules logger namespace."""

from __future__ import annotations

import logging

from tillrules.runtime import LOG_FORMAT, LOG_FORMAT_DEBUG, get_logger, set_log_level
from tillrules.runtime.logging import LOG_NAMESPACE


def test_get_logger_uses_namespace() -> None:
    assert get_logger("quotes").name == "tillrules.quotes"
    assert get_logger("tillrules.runtime.quote_server").name == "tillrules.runtime.quote_server"


def test_engine_loggers_share_the_namespace() -> None:
    from tillrules.engine import engine

    assert engine.logger.name.startswith(f"{LOG_NAMESPACE}.")


def test_set_log_level_switches_format() -> None:
    namespace = logging.getLogger(LOG_NAMESPACE)
    get_logger(__name__)
    try:
        set_log_level(logging.DEBUG)
        assert namespace.level == logging.DEBUG
        assert all(handler.formatter._fmt == LOG_FORMAT_DEBUG for handler in namespace.handlers)
    finally:
        set_log_level(logging.INFO)
    assert all(handler.formatter._fmt == LOG_FORMAT for handler in namespace.handlers)
