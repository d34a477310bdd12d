"""Root test configuration."""

import logging

import pytest
import structlog
from promrdf.config import get_settings


def _quiet_logging():
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    _quiet_logging()


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop cached settings and any logging setup a CLI run installed."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    structlog.contextvars.clear_contextvars()
    _quiet_logging()
