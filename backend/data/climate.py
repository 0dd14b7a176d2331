"""Synthetic climatology - seasonal profiles inferred from a location.

Used whenever no EPW file is available, and as the fallback when one fails to
load. The profile drives the cosine temperature model in ``data.weather``.
"""

import math
from dataclasses import dataclass, replace

from core.models import Location, clamp_latitude, clamp_timezone_hours, normalize_longitude
from core.presets import DEFAULT_SITE


@dataclass(frozen=True)
class ClimateProfile:
    """Seasonal climate of a site.

    ``summer_temp_c`` / ``winter_temp_c`` are the daily peak temperatures at
    the warmest and coldest points of the year. Cloud cover is held constant
    through every synthetic day.
    """

    latitude: float
    longitude: float
    tz_hours: float = 0
    elevation_m: float = 0.0
    summer_temp_c: float = 23.0
    winter_temp_c: float = 6.0
    diurnal_range_c: float = 8.0
    mean_wind_ms: float | None = None
    cloud_cover_tenths: float | None = None  # None = clear sky
    humidity_pct: float | None = None
    name: str = ""

    @property
    def annual_mean_c(self) -> float:
        return (self.summer_temp_c + self.winter_temp_c) / 2

    @property
    def annual_amplitude_c(self) -> float:
        return (self.summer_temp_c - self.winter_temp_c) / 2


SYNTHETIC_PROFILE = ClimateProfile(
    latitude=DEFAULT_SITE.latitude,
    longitude=DEFAULT_SITE.longitude,
    tz_hours=DEFAULT_SITE.tz_hours,
    elevation_m=DEFAULT_SITE.elevation_m,
    summer_temp_c=23.0,
    winter_temp_c=6.0,
    diurnal_range_c=8.0,
    name=DEFAULT_SITE.name,
)


def _clamp(value: float | None, lower: float, upper: float) -> float:
    safe = value if value is not None and math.isfinite(value) else lower
    return min(upper, max(lower, safe))


def estimate_timezone_from_longitude(longitude: float) -> int:
    return clamp_timezone_hours(normalize_longitude(longitude) / 15)


def infer_climatology(location: Location, tz_hours: float | None = None) -> ClimateProfile:
    """Rough climate from latitude, a longitude-driven continentality term and elevation.

    The heuristic is only meant to make nearby places plausible and distinct;
    it is not a climate dataset.

    Args:
        location: Site; latitude, longitude and elevation are clamped first
        tz_hours: Explicit timezone, otherwise the location's (or one
            estimated from longitude when that is not finite)

    Returns:
        ClimateProfile with temperatures to 2 decimals, cloud and humidity to 1
    """
    latitude = clamp_latitude(location.latitude)
    longitude = normalize_longitude(location.longitude)
    elevation = max(0.0, location.elevation_m if math.isfinite(location.elevation_m) else 0.0)
    tz_source = tz_hours if tz_hours is not None else location.tz_hours
    if tz_source is not None and math.isfinite(tz_source):
        timezone = clamp_timezone_hours(tz_source)
    else:
        timezone = estimate_timezone_from_longitude(longitude)

    abs_lat = abs(latitude)
    # varies by longitude so sites on one parallel differ
    continentality = abs(math.sin(math.radians(longitude * 1.2 + latitude * 0.35)))
    maritime = 1 - continentality

    annual_mean = 28 - abs_lat * 0.42 - elevation * 0.0065
    seasonal_range = _clamp(4 + abs_lat * (0.25 + continentality * 0.16), 3, 26)
    diurnal_range = _clamp(5 + abs_lat * 0.045 + continentality * 3.4 + elevation / 1000 * 1.1, 4, 18)
    mean_wind = _clamp(1.2 + abs_lat * 0.025 + maritime * 1.4 + continentality * 0.4, 0.8, 10)
    cloud = _clamp(2.8 + maritime * 3.4 + abs_lat * 0.03, 1, 9.5)
    humidity = _clamp(40 + maritime * 35 + cloud * 2, 20, 97)

    return ClimateProfile(
        latitude=latitude,
        longitude=longitude,
        tz_hours=timezone,
        elevation_m=elevation,
        summer_temp_c=round(annual_mean + seasonal_range / 2, 2),
        winter_temp_c=round(annual_mean - seasonal_range / 2, 2),
        diurnal_range_c=round(diurnal_range, 2),
        mean_wind_ms=round(mean_wind, 2),
        cloud_cover_tenths=round(cloud, 1),
        humidity_pct=round(humidity, 1),
        name=location.name,
    )


@dataclass(frozen=True)
class ManualWeatherSettings:
    summer_temp_c: float | None = 26.0
    winter_temp_c: float | None = 5.0
    diurnal_range_c: float = 8.0
    mean_wind_ms: float = 2.2
    cloud_cover_tenths: float = 4.0
    humidity_pct: float = 60.0


DEFAULT_MANUAL_WEATHER = ManualWeatherSettings()


def build_manual_profile(location: Location, manual: ManualWeatherSettings = DEFAULT_MANUAL_WEATHER) -> ClimateProfile:
    """User-entered seasonal profile on top of the inferred site climate.

    Summer is kept at least 0.5 K above winter; the other fields are clamped
    to their slider ranges.
    """
    base = infer_climatology(location)
    summer = manual.summer_temp_c
    if summer is None or not math.isfinite(summer):
        summer = base.summer_temp_c
    winter = manual.winter_temp_c
    if winter is None or not math.isfinite(winter):
        winter = base.winter_temp_c
    return replace(
        base,
        summer_temp_c=max(summer, winter + 0.5),
        winter_temp_c=min(winter, summer - 0.5),
        diurnal_range_c=_clamp(manual.diurnal_range_c, 2, 20),
        mean_wind_ms=_clamp(manual.mean_wind_ms, 0.1, 15),
        cloud_cover_tenths=_clamp(manual.cloud_cover_tenths, 0, 10),
        humidity_pct=_clamp(manual.humidity_pct, 0, 100),
    )
