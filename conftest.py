"""Global conftest.py

This conftest is used for unit tests in ``tests/unittests/``.
"""
import logging

import pytest


@pytest.fixture(autouse=True, scope="function")
def restore_logging():
    """Undo root logger changes made by the code under test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    converter = logging.Formatter.converter
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    logging.Formatter.converter = converter
