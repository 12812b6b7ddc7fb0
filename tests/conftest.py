import faulthandler
import logging
import random
import sys
import time
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from core.config import Config
from core.pricing.models import PointLabels, PricePoint
from core.pricing.normalizer import labels_for


# =============================================================================
# Global state reset fixture for test isolation
# =============================================================================

@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """
    Keep tests independent of the developer's environment.

    The upstream URL override is cleared before each test, and root logger
    handlers added by setup_logging() are closed afterwards.
    """
    monkeypatch.delenv("GOLDBOARD_API_BASE_URL", raising=False)
    root_logger = logging.getLogger()
    handlers_before = list(root_logger.handlers)
    level_before = root_logger.level

    yield

    for handler in list(root_logger.handlers):
        if handler not in handlers_before:
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(level_before)


@pytest.fixture
def temp_config(tmp_path):
    """
    Provide a fresh Config with validation.

    This fixture GUARANTEES a clean config or fails loudly.
    """
    config_path = tmp_path / f"config_{id(tmp_path)}_{time.time_ns()}.json"
    config = Config(config_file=config_path)

    assert config.api_base_url == "http://localhost:8080", \
        f"FIXTURE CONTAMINATED! base_url={config.api_base_url}, file={config.config_file}"
    assert config.display_limit == 1_000_000, \
        f"FIXTURE CONTAMINATED! display_limit={config.display_limit}, file={config.config_file}"

    return config


def make_point(price: float, when: datetime) -> PricePoint:
    """PricePoint at ``when`` (UTC) with the labels the normalizer would give it."""
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return PricePoint(
        price=float(price),
        observed_at=when,
        labels=labels_for(when),
        timestamp_millis=int(when.timestamp() * 1000),
        raw_date=when.strftime("%Y-%m-%d %H:%M:%S"),
    )


def make_invalid_point(price: float, raw_date: str = "not a date") -> PricePoint:
    return PricePoint(
        price=float(price),
        observed_at=None,
        labels=PointLabels(date="Invalid date", time="", date_time="Invalid date"),
        timestamp_millis=0,
        raw_date=raw_date,
    )


@pytest.fixture
def point_factory():
    """Build PricePoints from (price, datetime) pairs."""
    return make_point


@pytest.fixture
def invalid_point_factory():
    """Build PricePoints whose date could not be parsed."""
    return make_invalid_point


@pytest.fixture
def daily_series():
    """
    Factory for a daily series ending at ``end`` (inclusive), noon UTC.

    Prices count up from ``start_price`` by 1 per day.
    """
    def build(days: int, end: date = date(2024, 6, 1), start_price: float = 100.0):
        points = []
        for offset in range(days):
            day = date.fromordinal(end.toordinal() - (days - 1 - offset))
            when = datetime(day.year, day.month, day.day, 12, 0, tzinfo=timezone.utc)
            points.append(make_point(start_price + offset, when))
        return tuple(points)

    return build


@pytest.fixture
def seeded_rng():
    return random.Random(1234)


def pytest_collection_modifyitems(config, items):
    """Assign tier markers based on test location."""
    for item in items:
        path = Path(str(item.fspath)).as_posix()
        if "/tests/unit/" in path:
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)


def pytest_sessionstart(session):  # pragma: no cover - test harness init
    """Enable faulthandler for the entire test run to aid diagnosing hangs.

    Timer and fetch threads are involved in several tests; a hang dumps the
    stacks of all threads to stderr.
    """
    try:
        faulthandler.enable(file=sys.stderr, all_threads=True)
    except Exception:
        pass
