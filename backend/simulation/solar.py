"""Solar geometry - sun position, sunrise/sunset and plane irradiance."""

import math
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from enum import StrEnum

from scipy.optimize import brentq

from core.models import normalize_longitude
from simulation.config import DEFAULT, SimConfig

# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------


def day_of_year(when: datetime | date) -> int:
    return when.timetuple().tm_yday


def to_utc(when: datetime, tz_hours: float = 0.0) -> datetime:
    """Naive datetimes are local standard time at ``tz_hours``; aware ones convert directly."""
    if when.tzinfo is not None:
        return when.astimezone(UTC).replace(tzinfo=None)
    return when - timedelta(hours=tz_hours)


def decimal_hour(when: datetime) -> float:
    return when.hour + when.minute / 60 + when.second / 3600


def is_night_hour(hour: float, cfg: SimConfig = DEFAULT) -> bool:
    return hour >= cfg.night_start_hour or hour < cfg.night_end_hour


def normalized_azimuth(azimuth_deg: float) -> float:
    return azimuth_deg % 360.0


def azimuth_difference(azimuth_deg: float, surface_azimuth_deg: float) -> float:
    """Signed difference in (-180, 180] between sun azimuth and surface normal."""
    return (azimuth_deg - surface_azimuth_deg + 540.0) % 360.0 - 180.0


def cardinal_from_azimuth(azimuth_deg: float) -> str | None:
    if not math.isfinite(azimuth_deg):
        return None
    az = normalized_azimuth(azimuth_deg)
    if az < 45 or az >= 315:
        return "north"
    if az < 135:
        return "east"
    if az < 225:
        return "south"
    return "west"


# ---------------------------------------------------------------------------
# Sun position
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SunPosition:
    altitude_deg: float
    azimuth_deg: float  # clockwise from north
    declination_deg: float

    @property
    def is_up(self) -> bool:
        return self.altitude_deg > 0


def _julian_day(when_utc: datetime) -> float:
    year, month = when_utc.year, when_utc.month
    if month <= 2:
        year -= 1
        month += 12
    a = year // 100
    b = 2 - a + a // 4
    return (
        math.floor(365.25 * (year + 4716))
        + math.floor(30.6001 * (month + 1))
        + when_utc.day
        + b
        - 1524.5
        + decimal_hour(when_utc) / 24
    )


def sun_position(when: datetime, latitude: float, longitude: float, tz_hours: float = 0.0) -> SunPosition:
    """Low-precision solar position (ecliptic longitude, GMST and hour angle).

    Accurate to a few tenths of a degree for dates within a century of J2000.

    Args:
        when: Instant; naive values are local standard time at ``tz_hours``
        latitude: Site latitude (°, north positive)
        longitude: Site longitude (°, east positive), normalised before use
        tz_hours: Standard-time offset from UTC (hours)

    Returns:
        SunPosition with altitude ≤ 0 when the sun is below the horizon
    """
    when_utc = to_utc(when, tz_hours)
    lat = math.radians(latitude)
    lon = normalize_longitude(longitude)
    n = _julian_day(when_utc) - 2451545.0

    mean_longitude = (280.46 + 0.9856474 * n) % 360
    mean_anomaly = math.radians((357.528 + 0.9856003 * n) % 360)
    ecliptic_longitude = math.radians(
        (mean_longitude + 1.915 * math.sin(mean_anomaly) + 0.02 * math.sin(2 * mean_anomaly)) % 360
    )
    obliquity = math.radians(23.439 - 0.0000004 * n)

    sin_dec = math.sin(obliquity) * math.sin(ecliptic_longitude)
    cos_dec = math.sqrt(1 - sin_dec * sin_dec)

    gmst_hours = (18.697374558 + 24.06570982441908 * n) % 24
    lst_hours = (gmst_hours + lon / 15) % 24
    right_ascension = math.degrees(
        math.atan2(math.sin(ecliptic_longitude) * math.cos(obliquity), math.cos(ecliptic_longitude))
    )
    hour_angle = math.radians((lst_hours * 15 - right_ascension) % 360)

    altitude = math.asin(math.sin(lat) * sin_dec + math.cos(lat) * cos_dec * math.cos(hour_angle))
    azimuth = math.atan2(
        -math.sin(hour_angle) * cos_dec,
        math.cos(lat) * sin_dec - math.sin(lat) * cos_dec * math.cos(hour_angle),
    )
    return SunPosition(
        altitude_deg=math.degrees(altitude),
        azimuth_deg=math.degrees(azimuth) % 360,
        declination_deg=math.degrees(math.asin(sin_dec)),
    )


class DayLightMode(StrEnum):
    NORMAL = "normal"
    DAY = "day"  # polar day, sun never sets
    NIGHT = "night"  # polar night, sun never rises


@dataclass(frozen=True)
class DaySunTimes:
    mode: DayLightMode
    start: datetime
    end: datetime


_SCAN_STEP_MINUTES = 2


def day_sun_times(day: date | datetime, latitude: float, longitude: float, tz_hours: float = 0.0) -> DaySunTimes:
    """Sunrise and sunset in local standard time.

    The day is scanned in 2-minute steps for horizon crossings; each bracket is
    then refined with Brent's method. Polar days and nights return the whole day.
    """
    day_start = datetime(day.year, day.month, day.day)
    day_end = day_start + timedelta(days=1)

    def altitude_at(minutes: float) -> float:
        return sun_position(day_start + timedelta(minutes=minutes), latitude, longitude, tz_hours).altitude_deg

    sunrise: float | None = None
    sunset: float | None = None
    prev_minutes = 0.0
    prev_alt = altitude_at(0.0)
    any_above = prev_alt > 0
    for step in range(1, 24 * 60 // _SCAN_STEP_MINUTES + 1):
        minutes = float(step * _SCAN_STEP_MINUTES)
        alt = altitude_at(minutes)
        if alt > 0:
            any_above = True
        if prev_alt <= 0 < alt and sunrise is None:
            sunrise = brentq(altitude_at, prev_minutes, minutes, xtol=1e-3)
        if prev_alt > 0 >= alt and sunset is None:
            sunset = brentq(altitude_at, prev_minutes, minutes, xtol=1e-3)
        prev_minutes, prev_alt = minutes, alt

    if not any_above:
        return DaySunTimes(DayLightMode.NIGHT, day_start, day_end)
    if sunrise is None or sunset is None:
        return DaySunTimes(DayLightMode.DAY, day_start, day_end)
    return DaySunTimes(
        DayLightMode.NORMAL,
        day_start + timedelta(minutes=sunrise),
        day_start + timedelta(minutes=sunset),
    )


# ---------------------------------------------------------------------------
# Irradiance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ClearSky:
    dni: float
    dhi: float
    ghi: float


def clear_sky_components(altitude_deg: float) -> ClearSky:
    """Simple clear-sky model: beam 1000·0.75^AM, diffuse 100·sin(alt)."""
    if not math.isfinite(altitude_deg) or altitude_deg <= 0:
        return ClearSky(0.0, 0.0, 0.0)
    sin_alt = math.sin(math.radians(altitude_deg))
    dni = 1000.0 * 0.75 ** (1 / sin_alt)
    dhi = 100.0 * sin_alt
    return ClearSky(dni=dni, dhi=dhi, ghi=max(0.0, dni * sin_alt + dhi))


def safe_radiation(value: float | None) -> float:
    if value is None or not math.isfinite(value) or value <= 0:
        return 0.0
    return value


@dataclass(frozen=True)
class PlaneIrradiance:
    beam: float
    diffuse: float
    ground: float

    @property
    def total(self) -> float:
        return self.beam + self.diffuse + self.ground


def plane_irradiance_tilted(
    tilt_deg: float,
    surface_azimuth_deg: float,
    altitude_deg: float,
    azimuth_deg: float,
    dni: float,
    dhi: float,
    ghi: float,
    ground_albedo: float = 0.2,
) -> PlaneIrradiance:
    """Decompose horizontal irradiance onto a tilted plane.

    Isotropic sky diffuse, ground reflection with view factor (1 - cos β)/2.
    Tilt 0 is a horizontal roof plane, 90 a vertical facade.

    Args:
        tilt_deg: Plane tilt from horizontal, clamped to [0, 90]
        surface_azimuth_deg: Outward normal azimuth (° clockwise from north)
        altitude_deg: Sun altitude (°)
        azimuth_deg: Sun azimuth (°)
        dni: Direct normal irradiance (W/m²)
        dhi: Diffuse horizontal irradiance (W/m²)
        ghi: Global horizontal irradiance (W/m²)
        ground_albedo: Ground reflectance (0..1)

    Returns:
        Non-negative beam, diffuse and ground-reflected components (W/m²)
    """
    tilt = tilt_deg if math.isfinite(tilt_deg) else 0.0
    beta = math.radians(max(0.0, min(90.0, tilt)))
    albedo = ground_albedo if math.isfinite(ground_albedo) else 0.0

    beam = 0.0
    if math.isfinite(altitude_deg) and altitude_deg > 0 and math.isfinite(azimuth_deg):
        alt = math.radians(altitude_deg)
        d_az = math.radians(abs(azimuth_difference(azimuth_deg, surface_azimuth_deg)))
        cos_theta = math.sin(alt) * math.cos(beta) + math.cos(alt) * math.sin(beta) * math.cos(d_az)
        beam = safe_radiation(dni) * max(0.0, cos_theta)

    diffuse = safe_radiation(dhi) * (1 + math.cos(beta)) / 2
    ground = safe_radiation(ghi) * max(0.0, albedo) * (1 - math.cos(beta)) / 2
    return PlaneIrradiance(beam=beam, diffuse=diffuse, ground=max(0.0, ground))


def profile_angle(altitude_deg: float, azimuth_deg: float, surface_azimuth_deg: float) -> float:
    """Sun altitude projected onto the plane normal to the facade (°)."""
    d_az = math.radians(abs(azimuth_difference(azimuth_deg, surface_azimuth_deg)))
    cos_d_az = math.cos(d_az)
    if abs(cos_d_az) < 1e-12:
        return 90.0
    return math.degrees(math.atan(math.tan(math.radians(altitude_deg)) / cos_d_az))
