"""Tests for EPW loading and weather source selection."""

import asyncio
import logging
from pathlib import Path

import pytest

from core.models import Location
from data.climate import ManualWeatherSettings
from data.test_epw import make_epw_text
from data.weather import ClimatologyWeather, EpwWeather, ManualWeather
from services.weather_loader import FALLBACK_WARNING, WeatherLoader, epw_location, provider_for_mode

SITE = Location(latitude=40.4, longitude=-3.7, tz_hours=1, name="Madrid")


@pytest.fixture(autouse=True)
def clear_loader_cache():
    WeatherLoader.clear_cache()
    yield
    WeatherLoader.clear_cache()


@pytest.fixture
def epw_file(tmp_path: Path) -> Path:
    path = tmp_path / "site.epw"
    path.write_text(make_epw_text(), encoding="utf-8")
    return path


# -----------------------------------------------------------------------------
# Loading
# -----------------------------------------------------------------------------


def test_missing_file_falls_back_to_climatology(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="services.weather_loader"):
        result = asyncio.run(WeatherLoader.load(str(tmp_path / "missing.epw"), fallback_location=SITE))
    assert not result.using_epw
    assert result.warning == FALLBACK_WARNING
    assert isinstance(result.provider, ClimatologyWeather)
    assert result.provider.profile.latitude == 40.4
    assert "Weather load failed" in caplog.text


def test_malformed_file_falls_back(tmp_path: Path) -> None:
    path = tmp_path / "short.epw"
    path.write_text(make_epw_text(rows=100), encoding="utf-8")
    result = asyncio.run(WeatherLoader.load(str(path)))
    assert not result.using_epw
    assert result.warning == FALLBACK_WARNING


def test_local_file_loads_and_is_cached(epw_file: Path) -> None:
    result = asyncio.run(WeatherLoader.load(str(epw_file)))
    assert result.using_epw
    assert result.warning is None
    assert isinstance(result.provider, EpwWeather)
    assert result.validation is not None and result.validation.seasonal_check_pass

    epw_file.unlink()
    cached = asyncio.run(WeatherLoader.load(str(epw_file)))
    assert cached.dataset is result.dataset


def test_failures_are_not_cached(tmp_path: Path) -> None:
    path = tmp_path / "later.epw"
    assert not asyncio.run(WeatherLoader.load(str(path))).using_epw
    path.write_text(make_epw_text(), encoding="utf-8")
    assert asyncio.run(WeatherLoader.load(str(path))).using_epw


def test_epw_location(epw_file: Path) -> None:
    dataset = asyncio.run(WeatherLoader.load(str(epw_file))).dataset
    assert dataset is not None
    location = epw_location(dataset)
    assert location.latitude == 51.917
    assert location.name == "Testville (TMYx), GBR"


# -----------------------------------------------------------------------------
# Source selection
# -----------------------------------------------------------------------------


def test_provider_for_mode(epw_file: Path) -> None:
    dataset = asyncio.run(WeatherLoader.load(str(epw_file))).dataset

    epw = provider_for_mode("epw", dataset)
    assert isinstance(epw, EpwWeather)
    assert epw.fallback.latitude == 51.917

    assert isinstance(provider_for_mode("epw", None, SITE), ClimatologyWeather)
    assert isinstance(provider_for_mode("climatology", dataset, SITE), ClimatologyWeather)
    assert isinstance(provider_for_mode("nonsense", location=SITE), ClimatologyWeather)

    manual = provider_for_mode("manual", location=SITE, manual=ManualWeatherSettings(summer_temp_c=31.0))
    assert isinstance(manual, ManualWeather)
    assert manual.profile.summer_temp_c == 31.0
