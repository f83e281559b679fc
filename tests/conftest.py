"""Shared fixtures for calendarreader tests."""

import logging
import os
from collections.abc import Generator
from pathlib import Path
from typing import Any, Callable

import pytest

from calendarreader.config import ReaderSettings
from calendarreader.logging_config import NOISY_LOGGERS, PACKAGE_LOGGERS

FIXTURES_DIR = Path(__file__).parent / "fixtures"

_TRACKED_LOGGERS = ("", *PACKAGE_LOGGERS, *NOISY_LOGGERS)


def pytest_configure(config: Any) -> None:
    config.addinivalue_line("markers", "unit: fast isolated unit tests")


@pytest.fixture
def settings() -> ReaderSettings:
    """Deterministic settings, independent of the host environment.

    Fields mirror the defaults except that every value is passed explicitly,
    so CALENDARREADER_* variables or a stray .env file cannot leak in.
    """
    return ReaderSettings(
        ics_default_summary="No Title",
        csv_default_summary="Untitled Event",
        floating_timezone="UTC",
        csv_timezone="UTC",
        display_timezone="America/New_York",
        log_level="INFO",
        _env_file=None,
    )


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def read_fixture() -> Callable[[str], str]:
    """Return a reader for text fixtures under tests/fixtures/."""

    def _read(name: str) -> str:
        return (FIXTURES_DIR / name).read_text(encoding="utf-8")

    return _read


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> None:
    """Drop CALENDARREADER_* variables so settings only come from the test."""
    for name in list(os.environ):
        if name.upper().startswith("CALENDARREADER_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def restore_logger_levels() -> Generator[None, Any, None]:
    """Restore logger levels changed by logging setup under test."""
    saved = {name: logging.getLogger(name).level for name in _TRACKED_LOGGERS}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)
