"""Tests for site climatology and the weather forcing sources."""

import math
from dataclasses import replace
from datetime import UTC, datetime

from core.models import Location
from data.climate import (
    ClimateProfile,
    ManualWeatherSettings,
    build_manual_profile,
    estimate_timezone_from_longitude,
    infer_climatology,
)
from data.epw import EpwDataset, parse_epw_text
from data.test_epw import make_epw_text
from data.weather import (
    ClimatologyWeather,
    EpwWeather,
    ManualWeather,
    epw_row_index,
    forcing_at,
    outdoor_temperature_at,
    provider_location,
    synthetic_forcing_at,
    synthetic_wind_speed_at,
    to_local_standard,
)

GREENWICH = ClimateProfile(latitude=51.5, longitude=0.0, summer_temp_c=24.0, winter_temp_c=4.0, diurnal_range_c=8.0)


# -----------------------------------------------------------------------------
# Climatology
# -----------------------------------------------------------------------------


def test_climate_cools_with_latitude_and_altitude() -> None:
    equator = infer_climatology(Location(latitude=0.0, longitude=20.0))
    arctic = infer_climatology(Location(latitude=70.0, longitude=20.0))
    mountain = infer_climatology(Location(latitude=0.0, longitude=20.0, elevation_m=3000.0))
    assert equator.annual_mean_c > arctic.annual_mean_c
    assert equator.annual_mean_c > mountain.annual_mean_c
    assert arctic.annual_amplitude_c > equator.annual_amplitude_c


def test_climate_clamps_location() -> None:
    profile = infer_climatology(Location(latitude=120.0, longitude=200.0, tz_hours=40))
    assert profile.latitude == 90.0
    assert profile.longitude == -160.0
    assert profile.tz_hours == 14
    assert 1 <= profile.cloud_cover_tenths <= 9.5


def test_timezone_estimate() -> None:
    assert estimate_timezone_from_longitude(-75.0) == -5
    assert estimate_timezone_from_longitude(0.0) == 0
    assert estimate_timezone_from_longitude(172.0) == 11


def test_manual_profile_keeps_summer_above_winter() -> None:
    site = Location(latitude=51.9, longitude=-3.3)
    profile = build_manual_profile(site, ManualWeatherSettings(summer_temp_c=5.0, winter_temp_c=10.0))
    assert profile.summer_temp_c > profile.winter_temp_c

    defaults = build_manual_profile(site, ManualWeatherSettings(summer_temp_c=None, winter_temp_c=None, cloud_cover_tenths=15))
    inferred = infer_climatology(site)
    assert defaults.summer_temp_c == inferred.summer_temp_c
    assert defaults.cloud_cover_tenths == 10


# -----------------------------------------------------------------------------
# Synthetic forcing
# -----------------------------------------------------------------------------


def test_outdoor_temperature_peaks_mid_afternoon_at_midsummer() -> None:
    peak = outdoor_temperature_at(datetime(2025, 6, 21, 15, 0), GREENWICH)
    early = outdoor_temperature_at(datetime(2025, 6, 21, 3, 0), GREENWICH)
    print(f"Midsummer: {early:.1f}°C at 03:00, {peak:.1f}°C at 15:00")
    assert math.isclose(peak, 24.0, abs_tol=0.01)
    assert math.isclose(early, 16.0, abs_tol=0.01)
    assert outdoor_temperature_at(datetime(2025, 12, 21, 15, 0), GREENWICH) < 5.0


def test_southern_hemisphere_seasons_flip() -> None:
    southern = replace(GREENWICH, latitude=-33.9)
    assert outdoor_temperature_at(datetime(2025, 12, 21, 15), southern) > 23.0
    assert outdoor_temperature_at(datetime(2025, 6, 21, 15), southern) < 5.0


def test_synthetic_wind_is_bounded() -> None:
    calm = replace(GREENWICH, mean_wind_ms=0.0)
    gale = replace(GREENWICH, mean_wind_ms=40.0)
    assert synthetic_wind_speed_at(datetime(2025, 7, 1, 3), calm) >= 0.3
    assert synthetic_wind_speed_at(datetime(2025, 1, 1, 12), gale) == 12.0


def test_cloud_reduces_beam() -> None:
    noon = datetime(2025, 6, 21, 12)
    clear = synthetic_forcing_at(noon, GREENWICH)
    cloudy = synthetic_forcing_at(noon, replace(GREENWICH, cloud_cover_tenths=8.0))
    assert cloudy.dni < clear.dni
    assert cloudy.dhi > clear.dhi
    assert clear.total_sky_cover is None
    night = synthetic_forcing_at(datetime(2025, 6, 21, 1), GREENWICH)
    assert night.ghi == 0.0 and night.dni == 0.0


def test_aware_datetime_is_converted_to_site_time() -> None:
    assert to_local_standard(datetime(2025, 1, 1, 12, tzinfo=UTC), 2) == datetime(2025, 1, 1, 14)
    naive = datetime(2025, 1, 1, 12)
    assert to_local_standard(naive, 2) == naive


# -----------------------------------------------------------------------------
# EPW forcing
# -----------------------------------------------------------------------------


def test_epw_values_interpolate_within_the_hour() -> None:
    dataset = parse_epw_text(make_epw_text(overrides={0: {6: "10.0"}, 1: {6: "12.0"}}))
    provider = EpwWeather(dataset=dataset)
    forcing = forcing_at(datetime(2025, 1, 1, 0, 30), provider)
    assert forcing.source == "epw"
    assert math.isclose(forcing.t_out_c, 11.0)
    assert forcing.wind_ms == 3.5
    on_the_hour = forcing_at(datetime(2025, 1, 1, 1, 0), provider)
    assert on_the_hour.t_out_c == 12.0


def test_epw_wraps_at_year_end() -> None:
    dataset = parse_epw_text(make_epw_text(overrides={8759: {6: "-2.0"}, 0: {6: "4.0"}}))
    forcing = forcing_at(datetime(2025, 12, 31, 23, 30), EpwWeather(dataset=dataset))
    assert math.isclose(forcing.t_out_c, 1.0)


def test_epw_rows_follow_the_calendar_in_leap_years() -> None:
    """29 Feb reads 28 Feb, and dates after it keep their own month and day."""
    feb28, mar1, dec31 = 58 * 24 + 12, 59 * 24 + 12, 364 * 24 + 12
    assert epw_row_index(datetime(2024, 3, 1, 12)) == mar1
    assert epw_row_index(datetime(2024, 2, 29, 12)) == feb28
    assert epw_row_index(datetime(2024, 12, 31, 12)) == dec31

    overrides = {feb28: {6: "1.5"}, mar1: {6: "7.5"}, dec31: {6: "-3.5"}}
    provider = EpwWeather(dataset=parse_epw_text(make_epw_text(overrides=overrides)))
    assert forcing_at(datetime(2024, 2, 29, 12), provider).t_out_c == 1.5
    assert forcing_at(datetime(2024, 3, 1, 12), provider).t_out_c == 7.5
    assert forcing_at(datetime(2024, 12, 31, 12), provider).t_out_c == -3.5
    assert forcing_at(datetime(2025, 3, 1, 12), provider).t_out_c == 7.5


def test_epw_wind_gap_uses_synthetic_wind() -> None:
    dataset = parse_epw_text(make_epw_text(overrides={100: {21: "9999"}}))
    provider = EpwWeather(dataset=dataset, fallback=GREENWICH)
    when = datetime(2025, 1, 5, 4, 0)  # row 100
    assert forcing_at(when, provider).wind_ms == synthetic_wind_speed_at(when, GREENWICH)


def test_malformed_dataset_falls_back_to_synthetic() -> None:
    dataset = parse_epw_text(make_epw_text())
    truncated = EpwDataset(meta=dataset.meta, hours=dataset.hours[:100])
    forcing = forcing_at(datetime(2025, 6, 21, 12), EpwWeather(dataset=truncated, fallback=GREENWICH))
    assert forcing.source == "synthetic"


def test_provider_sources_and_locations() -> None:
    manual = ManualWeather(profile=GREENWICH)
    climatology = ClimatologyWeather(profile=GREENWICH)
    assert forcing_at(datetime(2025, 3, 1, 12), manual).source == "manual"
    assert forcing_at(datetime(2025, 3, 1, 12), climatology).source == "synthetic"
    assert provider_location(manual) == (51.5, 0.0, 0)
    dataset = parse_epw_text(make_epw_text())
    assert provider_location(EpwWeather(dataset=dataset)) == (51.917, -3.317, 0.0)
