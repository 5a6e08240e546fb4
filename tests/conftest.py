"""
Configuration file for pytest.

This file ensures that the src directory is in the Python path
so that tests can import modules from the package.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add the src directory to the Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))


@pytest.fixture(autouse=True)
def reset_xmlnorm_logger():
    """setup_logging() detaches the package logger from the root logger; undo it after each test."""
    yield
    package_logger = logging.getLogger("xmlnorm")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True
