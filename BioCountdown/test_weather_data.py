"""Tests for weather_data module."""
import dataclasses
import pytest
from weather_data import ForecastEntry


def test_forecast_entry_creation():
    """Test creating ForecastEntry with all fields."""
    entry = ForecastEntry(timestamp=1609459200, temp=20.5, condition_main="Clouds")

    assert entry.timestamp == 1609459200
    assert entry.temp == 20.5
    assert entry.condition_main == "Clouds"


def test_forecast_entry_condition_optional():
    """Test that condition defaults to None."""
    entry = ForecastEntry(timestamp=1609459200, temp=-3.0)
    assert entry.condition_main is None


def test_forecast_entry_is_immutable():
    """Fetched entries must not change after the fact."""
    entry = ForecastEntry(timestamp=1609459200, temp=20.5)
    with pytest.raises(dataclasses.FrozenInstanceError):
        entry.temp = 25.0


def test_forecast_entry_distance():
    """Distance is symmetric around the entry timestamp."""
    entry = ForecastEntry(timestamp=1000, temp=0.0)
    assert entry.distance_from(1600) == 600
    assert entry.distance_from(400) == 600
    assert entry.distance_from(1000) == 0
