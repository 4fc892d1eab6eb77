"""Shared fixtures for depsize tests."""

import logging

import pytest

from constants import Constants


@pytest.fixture(autouse=True)
def _restore_runtime_state(monkeypatch):
    """Undo Constants overrides, root logger changes and log-level env after each test."""
    saved = {
        key: (list(value) if isinstance(value, list) else value)
        for key, value in vars(Constants).items()
        if key.isupper()
    }
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    monkeypatch.setenv(Constants.ENV_LOG_LEVEL, "WARNING")
    yield
    for key, value in saved.items():
        setattr(Constants, key, value)
    for handler in list(root.handlers):
        if handler not in saved_handlers:
            root.removeHandler(handler)
    for handler in saved_handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(saved_level)
