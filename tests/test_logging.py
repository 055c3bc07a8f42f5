"""Tests for logging utilities."""

import logging
from io import StringIO

from qsparse.logging import (
    configure_logging,
    get_logger,
    set_log_level,
)


def test_get_logger_returns_namespaced_logger():
    logger = get_logger("test_module")
    assert isinstance(logger, logging.Logger)
    assert logger.name == "qsparse.test_module"


def test_get_logger_keeps_package_names():
    assert get_logger("qsparse.backend.sparse_state").name == "qsparse.backend.sparse_state"
    assert get_logger().name == "qsparse"


def test_get_logger_caching():
    logger1 = get_logger("test_module")
    logger2 = get_logger("test_module")
    assert logger1 is logger2


def test_get_logger_different_modules():
    logger1 = get_logger("module1")
    logger2 = get_logger("module2")
    assert logger1 is not logger2
    assert logger1.name != logger2.name


def test_set_log_level():
    logger = get_logger("test_module")

    set_log_level(logging.INFO)
    assert logger.level == logging.INFO

    set_log_level(logging.WARNING)
    assert logger.level == logging.WARNING


def test_set_log_level_string():
    logger = get_logger("test_module")

    set_log_level("DEBUG")
    assert logger.level == logging.DEBUG

    set_log_level("ERROR")
    assert logger.level == logging.ERROR

    set_log_level("WARNING")


def test_configure_logging_redirects_output():
    logger = get_logger("test_module")
    stream = StringIO()
    try:
        configure_logging(level=logging.DEBUG, stream=stream)
        logger.debug("Debug message")
        output = stream.getvalue()
        assert "Debug message" in output
        assert "qsparse.test_module" in output
        assert output.startswith("[DEBUG]")
    finally:
        configure_logging(level=logging.WARNING)


def test_configure_logging_custom_format():
    logger = get_logger("test_module")
    stream = StringIO()
    try:
        configure_logging(level="INFO", format_string="%(message)s", stream=stream)
        logger.info("plain")
        logger.debug("hidden")
        assert stream.getvalue() == "plain\n"
    finally:
        configure_logging(level=logging.WARNING)


def test_logger_does_not_propagate():
    logger = get_logger("test_module")
    assert logger.propagate is False
