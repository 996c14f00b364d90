"""Shared test configuration and fixtures for CustodyBot tests."""

import os
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pytest

from custodybot.config.settings import CustodyBotSettings, reset_settings
from custodybot.models import CustodySchedule

FIXED_TODAY = date(2025, 1, 1)
FIXED_NOW = datetime(2025, 1, 1, 8, 0, 0)


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "critical_path: Core functionality tests")
    config.addinivalue_line("markers", "smoke: Basic smoke tests")


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Isolate tests from CUSTODYBOT_* variables, a local .env and the global settings."""
    for key in list(os.environ):
        if key.upper().startswith("CUSTODYBOT_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def today() -> date:
    """Fixed reference date for deterministic expansion."""
    return FIXED_TODAY


@pytest.fixture
def fixed_clock():
    """Clock returning a fixed timestamp."""
    return lambda: FIXED_NOW


@pytest.fixture
def test_settings(tmp_path: Path) -> CustodyBotSettings:
    """Settings isolated from the user's configuration directory."""
    return CustodyBotSettings(config_dir=tmp_path / "config")


@pytest.fixture
def weekly_schedule() -> CustodySchedule:
    """Weekly Monday/Friday schedule for one child."""
    return CustodySchedule(
        id="sched-weekly",
        name="Standard Custody",
        pattern="weekly",
        child_ids=["child-1"],
        visit_type="physical_care",
        days_of_week=["monday", "friday"],
        start_date=date(2025, 1, 6),
        start_time="09:00",
        end_time="17:00",
    )


@pytest.fixture
def biweekly_schedule() -> CustodySchedule:
    """Every other Monday starting 2025-01-06."""
    return CustodySchedule(
        id="sched-biweekly",
        name="Alternate Mondays",
        pattern="biweekly",
        child_ids=["child-1"],
        days_of_week=["monday"],
        start_date=date(2025, 1, 6),
        start_time="10:00",
        end_time="18:00",
    )


def build_calendar(*events: str, header: str = "") -> str:
    """Wrap VEVENT bodies in a VCALENDAR with CRLF line endings."""
    lines = ["BEGIN:VCALENDAR", "VERSION:2.0", "PRODID:-//Test//Test//EN"]
    if header:
        lines.extend(line.strip() for line in header.strip().splitlines())
    for event in events:
        lines.append("BEGIN:VEVENT")
        lines.extend(line.strip() for line in event.strip().splitlines())
        lines.append("END:VEVENT")
    lines.append("END:VCALENDAR")
    return "\r\n".join(lines) + "\r\n"


@pytest.fixture
def build_ics():
    """Builder for small ICS documents from VEVENT property lines."""
    return build_calendar


@pytest.fixture
def pickup_and_grocery_ics() -> str:
    """Two events, only one of which is custody related."""
    return build_calendar(
        """
        UID:pickup-1@example.com
        DTSTART:20250310T090000
        DTEND:20250310T100000
        SUMMARY:Custody pickup
        """,
        """
        UID:grocery-1@example.com
        DTSTART:20250311T140000
        SUMMARY:Grocery run
        """,
    )
