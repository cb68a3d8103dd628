"""Shared fixtures."""

import logging

import pytest


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by setup_logging() so streams do not leak between tests."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if getattr(handler, "_media_transcriber", False):
            root.removeHandler(handler)
    root.setLevel(level)
