"""
tests/conftest.py
=================
Shared pytest fixtures for the Annual Statistics Analyst test suite.
"""
import os
import sys
from typing import Dict, List, Union

import pytest

# Ensure the project root is on the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from stat_platform.sample_data import SAMPLE_INDICATORS, SAMPLE_YEARLY_VALUES
from stat_platform.store import InMemoryIndicatorStore
from stat_platform.types import Indicator, YearlyValue


def make_indicator(ind_id: str, name: str, category: str = "Kearsipan", unit: str = "Berkas") -> Indicator:
    return Indicator(ind_id, category, name, "number", unit)


def make_values(ind_id: str, series: Dict[int, Union[int, float, str]]) -> List[YearlyValue]:
    return [YearlyValue(f"val-{ind_id}-{y}", ind_id, y, v) for y, v in series.items()]


@pytest.fixture
def sample_indicators() -> List[Indicator]:
    return list(SAMPLE_INDICATORS)


@pytest.fixture
def sample_values() -> List[YearlyValue]:
    return list(SAMPLE_YEARLY_VALUES)


@pytest.fixture
def sample_store() -> InMemoryIndicatorStore:
    return InMemoryIndicatorStore(SAMPLE_INDICATORS, SAMPLE_YEARLY_VALUES)


@pytest.fixture
def falling_snapshot():
    """Two falling indicators (one sharply) and one rising, all in Kearsipan."""
    indicators = [
        make_indicator("a", "Arsip Tertata"),
        make_indicator("b", "Layanan Arsip"),
        make_indicator("c", "Pembinaan OPD"),
    ]
    values = (
        make_values("a", {2022: 100, 2023: 70})
        + make_values("b", {2022: 100, 2023: 85})
        + make_values("c", {2022: 100, 2023: 110})
    )
    return indicators, values
