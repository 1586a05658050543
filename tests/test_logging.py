"""
Tests for logging setup
"""

import logging

import pytest

from mcp_widget_proxy.middleware.logging import resolve_level, setup_logging


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    level = root.level
    yield root
    root.setLevel(level)


@pytest.mark.parametrize("name,expected", [
    ("debug", logging.DEBUG),
    ("WARNING", logging.WARNING),
    ("verbose", logging.INFO),
])
def test_resolve_level(name, expected):
    assert resolve_level(name) == expected


def test_setup_logging_sets_level(root_logger, caplog):
    with caplog.at_level(logging.INFO):
        setup_logging("info", service_name="Test Proxy")

    assert "Test Proxy logging configured: level=INFO" in caplog.text
    assert logging.getLogger("httpx").level == logging.WARNING


def test_setup_logging_unknown_level(root_logger, caplog):
    setup_logging("chatty")

    assert root_logger.level == logging.INFO
    assert "Unknown log level 'chatty'" in caplog.text


def test_setup_logging_from_env(root_logger, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "ERROR")

    setup_logging()

    assert root_logger.level == logging.ERROR
