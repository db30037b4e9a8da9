"""Pytest configuration for the day planner project."""
from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

import pytest

# Ensure the project root is on sys.path so that import dayplanner works under pytest.
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dayplanner.core.toolkit import CityToolkit, get_city_toolkit  # noqa: E402


@pytest.fixture
def london() -> CityToolkit:
    return get_city_toolkit("london")


@pytest.fixture
def saturday() -> date:
    return date(2025, 6, 14)


@pytest.fixture
def tuesday() -> date:
    return date(2025, 6, 10)
