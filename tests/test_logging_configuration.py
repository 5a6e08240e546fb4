"""Tests for the logging setup used by the command line interface."""
import logging

from xmlnorm.logging_utils import CustomFormatter, setup_logging


def test_setup_logging_sets_level():
    setup_logging("DEBUG")
    assert logging.getLogger('xmlnorm').level == logging.DEBUG

    setup_logging(logging.WARNING)
    assert logging.getLogger('xmlnorm').level == logging.WARNING


def test_setup_logging_does_not_stack_handlers():
    setup_logging("INFO")
    setup_logging("INFO")
    xmlnorm_logger = logging.getLogger('xmlnorm')
    assert len(xmlnorm_logger.handlers) == 1
    assert xmlnorm_logger.propagate is False


def test_formatter_strips_package_name():
    formatter = CustomFormatter('%(levelname)s:%(name)s:%(message)s')
    record = logging.LogRecord("xmlnorm.decoder", logging.INFO, __file__, 1, "hello", None, None)
    assert formatter.format(record) == "INFO:decoder:hello"

    record = logging.LogRecord("lxml", logging.INFO, __file__, 1, "hello", None, None)
    assert formatter.format(record) == "INFO:lxml:hello"
