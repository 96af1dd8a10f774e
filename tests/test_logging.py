"""
Tests for Logging Configuration
"""

import logging

import pytest
import structlog

from vibewatch.core.logging import _resolve_format, bind_request_context, setup_logging


@pytest.fixture(autouse=True)
def clean_context():
    yield
    structlog.contextvars.clear_contextvars()


class TestFormat:

    @pytest.mark.parametrize("log_format,environment,expected", [
        ("auto", "development", "console"),
        ("auto", "production", "json"),
        ("json", "development", "json"),
        ("console", "production", "console"),
        ("bogus", "staging", "json"),
    ])
    def test_resolve(self, log_format, environment, expected):
        assert _resolve_format(log_format, environment) == expected

    def test_setup_returns_selected_format(self):
        assert setup_logging(log_level="INFO", log_format="json") == "json"

    def test_request_url_loggers_quieted(self):
        setup_logging(log_level="DEBUG", log_format="console")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING


class TestRequestContext:

    def test_bind_replaces_previous_request(self):
        bind_request_context(request_id="first", region="GB")
        bind_request_context(request_id="second", region="US")

        assert structlog.contextvars.get_contextvars() == {"request_id": "second", "region": "US"}
