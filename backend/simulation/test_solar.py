"""Tests for solar geometry and plane irradiance."""

import math
from datetime import UTC, date, datetime, timedelta, timezone

from simulation.solar import (
    DayLightMode,
    cardinal_from_azimuth,
    clear_sky_components,
    day_sun_times,
    is_night_hour,
    plane_irradiance_tilted,
    sun_position,
)

LONDON = (51.5074, -0.1278)


# -----------------------------------------------------------------------------
# Sun position
# -----------------------------------------------------------------------------


def test_london_solstice_noon() -> None:
    """Sun stands high and due south at midsummer noon in London."""
    sun = sun_position(datetime(2025, 6, 21, 12, 0), *LONDON, tz_hours=0)
    print(f"London 21 Jun 12:00: alt={sun.altitude_deg:.1f}°, az={sun.azimuth_deg:.1f}°")
    assert sun.altitude_deg > 60
    assert abs(sun.azimuth_deg - 180) < 5
    assert abs(sun.declination_deg - 23.44) < 0.5


def test_sun_below_horizon_at_midnight() -> None:
    sun = sun_position(datetime(2025, 12, 21, 0, 0), *LONDON)
    assert sun.altitude_deg < 0
    assert not sun.is_up


def test_aware_datetime_matches_naive_local_time() -> None:
    """A naive time at tz +2 and the equivalent aware UTC instant give the same sun."""
    naive = sun_position(datetime(2025, 3, 20, 14, 0), 48.0, 16.0, tz_hours=2)
    aware = sun_position(datetime(2025, 3, 20, 12, 0, tzinfo=UTC), 48.0, 16.0, tz_hours=2)
    other_zone = sun_position(datetime(2025, 3, 20, 7, 0, tzinfo=timezone(timedelta(hours=-5))), 48.0, 16.0)
    assert math.isclose(naive.altitude_deg, aware.altitude_deg, abs_tol=1e-9)
    assert math.isclose(aware.azimuth_deg, other_zone.azimuth_deg, abs_tol=1e-9)


def test_southern_hemisphere_sun_is_north_at_noon() -> None:
    sun = sun_position(datetime(2025, 12, 21, 12, 0), -33.87, 151.21, tz_hours=10)
    assert sun.altitude_deg > 70
    assert sun.azimuth_deg < 90 or sun.azimuth_deg > 270


# -----------------------------------------------------------------------------
# Sunrise / sunset
# -----------------------------------------------------------------------------


def test_day_sun_times_normal_day() -> None:
    times = day_sun_times(date(2025, 3, 20), *LONDON)
    assert times.mode == DayLightMode.NORMAL
    # roughly 06:00 and 18:10 around the equinox
    assert 5.5 < times.start.hour + times.start.minute / 60 < 6.6
    assert 17.6 < times.end.hour + times.end.minute / 60 < 18.6
    sunrise = sun_position(times.start, *LONDON)
    assert abs(sunrise.altitude_deg) < 0.05


def test_day_sun_times_polar_modes() -> None:
    assert day_sun_times(date(2025, 6, 21), 78.2, 15.6, tz_hours=1).mode == DayLightMode.DAY
    assert day_sun_times(date(2025, 12, 21), 78.2, 15.6, tz_hours=1).mode == DayLightMode.NIGHT


# -----------------------------------------------------------------------------
# Irradiance
# -----------------------------------------------------------------------------


def test_clear_sky_zero_below_horizon() -> None:
    assert clear_sky_components(-5.0).ghi == 0.0
    assert clear_sky_components(math.nan).dni == 0.0
    high = clear_sky_components(60.0)
    assert high.dni > 700 and high.dhi > 80


def test_plane_irradiance_non_negative_and_no_beam_at_night() -> None:
    """Every component is ≥ 0 and the beam vanishes with the sun at or below the horizon."""
    for altitude in (-10.0, 0.0, 5.0, 30.0, 89.0):
        for azimuth in (0.0, 90.0, 180.0, 270.0):
            for surface in (0.0, 90.0, 180.0, 270.0):
                irr = plane_irradiance_tilted(90.0, surface, altitude, azimuth, 800.0, 120.0, 500.0, 0.25)
                assert irr.beam >= 0 and irr.diffuse >= 0 and irr.ground >= 0
                if altitude <= 0:
                    assert irr.beam == 0.0


def test_plane_irradiance_back_face_gets_no_beam() -> None:
    irr = plane_irradiance_tilted(90.0, 0.0, 40.0, 180.0, 800.0, 100.0, 600.0)
    assert irr.beam == 0.0
    assert math.isclose(irr.diffuse, 50.0)
    assert math.isclose(irr.ground, 600.0 * 0.2 / 2)


def test_plane_irradiance_horizontal_matches_ghi() -> None:
    irr = plane_irradiance_tilted(0.0, 180.0, 30.0, 180.0, 800.0, 100.0, 500.0)
    assert math.isclose(irr.beam, 400.0, rel_tol=1e-9)
    assert math.isclose(irr.diffuse, 100.0)
    assert irr.ground == 0.0


def test_plane_irradiance_non_finite_inputs_read_as_zero() -> None:
    irr = plane_irradiance_tilted(90.0, 180.0, math.nan, 180.0, math.inf, math.nan, -50.0)
    assert irr.total == 0.0


# -----------------------------------------------------------------------------
# Calendar helpers
# -----------------------------------------------------------------------------


def test_night_hours_and_cardinals() -> None:
    assert is_night_hour(22) and is_night_hour(3.5) and not is_night_hour(6) and not is_night_hour(12)
    assert cardinal_from_azimuth(10) == "north"
    assert cardinal_from_azimuth(-30) == "north"
    assert cardinal_from_azimuth(100) == "east"
    assert cardinal_from_azimuth(190) == "south"
    assert cardinal_from_azimuth(300) == "west"
    assert cardinal_from_azimuth(math.nan) is None
