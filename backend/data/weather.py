"""Weather forcing - outdoor conditions at any instant.

Three sources share one forcing shape so the simulation never needs to know
which one is active:

- ``EpwWeather``: hourly EPW data, interpolated within the hour
- ``ClimatologyWeather``: synthetic profile inferred from the site
- ``ManualWeather``: synthetic profile entered by the user

Naive datetimes are local standard time of the provider's site.
"""

import math
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

from data.climate import SYNTHETIC_PROFILE, ClimateProfile
from data.epw import HOURS_PER_YEAR, EpwDataset
from simulation.config import DEFAULT, SimConfig
from simulation.solar import clear_sky_components, day_of_year, decimal_hour, safe_radiation, sun_position

SYNTHETIC_WIND_DIRECTION_DEG = 225.0  # prevailing south-westerly
DIURNAL_PEAK_HOUR = 15.0
EPW_CALENDAR_YEAR = 2001  # TMY files carry 365 days


@dataclass(frozen=True)
class WeatherForcing:
    t_out_c: float
    dni: float
    dhi: float
    ghi: float
    wind_ms: float
    source: str
    wind_direction_deg: float | None = None
    total_sky_cover: float | None = None  # tenths
    relative_humidity: float | None = None


@dataclass(frozen=True)
class EpwWeather:
    dataset: EpwDataset
    fallback: ClimateProfile = SYNTHETIC_PROFILE  # wind gaps and malformed datasets

    @property
    def tz_hours(self) -> float:
        return self.dataset.meta.tz_hours


@dataclass(frozen=True)
class ClimatologyWeather:
    profile: ClimateProfile = SYNTHETIC_PROFILE
    source: str = "synthetic"

    @property
    def tz_hours(self) -> float:
        return self.profile.tz_hours


@dataclass(frozen=True)
class ManualWeather:
    profile: ClimateProfile
    source: str = "manual"

    @property
    def tz_hours(self) -> float:
        return self.profile.tz_hours


type WeatherProvider = EpwWeather | ClimatologyWeather | ManualWeather


def to_local_standard(when: datetime, tz_hours: float) -> datetime:
    """Aware datetimes are shifted to the site's standard time; naive ones already are."""
    if when.tzinfo is None:
        return when
    return when.astimezone(UTC).replace(tzinfo=None) + timedelta(hours=tz_hours)


def _solar_hour(local: datetime, profile: ClimateProfile) -> float:
    return (decimal_hour(local) - profile.tz_hours + profile.longitude / 15) % 24


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


# ---------------------------------------------------------------------------
# Synthetic model
# ---------------------------------------------------------------------------


def annual_outdoor_peak_temp(local: datetime, profile: ClimateProfile, cfg: SimConfig = DEFAULT) -> float:
    """Daily peak temperature on the annual cosine, warmest at the local summer solstice."""
    peak_day = cfg.summer_solstice_day if profile.latitude >= 0 else cfg.winter_solstice_day
    phase = 2 * math.pi * (day_of_year(local) - peak_day) / cfg.days_per_year
    return profile.annual_mean_c + profile.annual_amplitude_c * math.cos(phase)


def outdoor_temperature_at(when: datetime, profile: ClimateProfile, cfg: SimConfig = DEFAULT) -> float:
    """Annual cosine plus a diurnal cosine peaking at 15:00 solar time."""
    local = to_local_standard(when, profile.tz_hours)
    daily_peak = annual_outdoor_peak_temp(local, profile, cfg)
    diurnal_amp = max(0.0, profile.diurnal_range_c) / 2
    phase = 2 * math.pi * (_solar_hour(local, profile) - DIURNAL_PEAK_HOUR) / 24
    return daily_peak - diurnal_amp + diurnal_amp * math.cos(phase)


def synthetic_wind_speed_at(when: datetime, profile: ClimateProfile, cfg: SimConfig = DEFAULT) -> float:
    """Mean wind with stronger daytime breezes and windier winters, in [0.3, 12] m/s."""
    local = to_local_standard(when, profile.tz_hours)
    mean = profile.mean_wind_ms
    if mean is None or not math.isfinite(mean):
        mean = cfg.default_wind_ms
    diurnal = max(0.0, math.sin((_solar_hour(local, profile) - 6) * math.pi / 12))
    seasonal = math.cos(2 * math.pi * (day_of_year(local) - cfg.winter_solstice_day) / cfg.days_per_year)
    return max(0.3, min(12.0, mean + 0.7 * diurnal + 0.5 * seasonal))


@dataclass(frozen=True)
class _Radiation:
    dni: float
    dhi: float
    ghi: float


def synthetic_radiation_at(when: datetime, profile: ClimateProfile, total_sky_cover: float | None) -> _Radiation:
    """Clear-sky irradiance attenuated by a constant cloud cover."""
    local = to_local_standard(when, profile.tz_hours)
    altitude = sun_position(local, profile.latitude, profile.longitude, profile.tz_hours).altitude_deg
    if altitude <= 0:
        return _Radiation(0.0, 0.0, 0.0)
    clear = clear_sky_components(altitude)
    if total_sky_cover is None or not math.isfinite(total_sky_cover):
        return _Radiation(clear.dni, clear.dhi, clear.ghi)

    cloud = max(0.0, min(10.0, total_sky_cover)) / 10
    dni = safe_radiation(clear.dni * max(0.08, 1 - 0.8 * cloud**1.4))
    dhi = safe_radiation(clear.dhi * (0.65 + cloud * 0.9))
    ghi = safe_radiation(dni * max(0.0, math.sin(math.radians(altitude))) + dhi)
    return _Radiation(dni, dhi, ghi)


def _bounded(value: float | None, upper: float) -> float | None:
    if value is None or not math.isfinite(value):
        return None
    return max(0.0, min(upper, value))


def synthetic_forcing_at(
    when: datetime, profile: ClimateProfile, source: str = "synthetic", cfg: SimConfig = DEFAULT
) -> WeatherForcing:
    cloud = _bounded(profile.cloud_cover_tenths, 10.0)
    radiation = synthetic_radiation_at(when, profile, cloud)
    return WeatherForcing(
        t_out_c=outdoor_temperature_at(when, profile, cfg),
        dni=radiation.dni,
        dhi=radiation.dhi,
        ghi=radiation.ghi,
        wind_ms=synthetic_wind_speed_at(when, profile, cfg),
        source=source,
        wind_direction_deg=SYNTHETIC_WIND_DIRECTION_DEG,
        total_sky_cover=cloud,
        relative_humidity=_bounded(profile.humidity_pct, 100.0),
    )


# ---------------------------------------------------------------------------
# EPW lookup
# ---------------------------------------------------------------------------


def _lerp_optional(a: float | None, b: float | None, t: float) -> float | None:
    if a is None or b is None:
        return None
    return _lerp(a, b, t)


def epw_row_index(local: datetime) -> int:
    """Zero-based hourly row for a local time, by month, day and hour.

    EPW years have no 29 February, so that day reads the 28th.
    """
    day = min(local.day, 28) if local.month == 2 else local.day
    calendar_day = date(EPW_CALENDAR_YEAR, local.month, day).timetuple().tm_yday
    return (calendar_day - 1) * 24 + local.hour


def epw_forcing_at(when: datetime, dataset: EpwDataset, fallback: ClimateProfile = SYNTHETIC_PROFILE) -> WeatherForcing | None:
    """Hourly EPW values interpolated to ``when``; None for a malformed dataset.

    Rows are looked up by month, day and hour, so any year maps onto the
    file, and the value is interpolated toward the following hour.
    """
    n = len(dataset.hours)
    if n != HOURS_PER_YEAR:
        return None
    local = to_local_standard(when, dataset.meta.tz_hours)
    hour_float = decimal_hour(local)
    frac = hour_float - math.floor(hour_float)
    idx0 = epw_row_index(local) % n
    h0, h1 = dataset.hours[idx0], dataset.hours[(idx0 + 1) % n]

    wind = _lerp_optional(h0.wind_ms, h1.wind_ms, frac)
    if wind is None:
        wind = synthetic_wind_speed_at(when, fallback)
    return WeatherForcing(
        t_out_c=_lerp(h0.dry_bulb_c, h1.dry_bulb_c, frac),
        dni=safe_radiation(_lerp(h0.dni, h1.dni, frac)),
        dhi=safe_radiation(_lerp(h0.dhi, h1.dhi, frac)),
        ghi=safe_radiation(_lerp(h0.ghi, h1.ghi, frac)),
        wind_ms=wind,
        source="epw",
        # direction is not interpolated across the 0/360 seam
        wind_direction_deg=h0.wind_direction_deg,
        total_sky_cover=_lerp_optional(h0.total_sky_cover, h1.total_sky_cover, frac),
        relative_humidity=_lerp_optional(h0.relative_humidity, h1.relative_humidity, frac),
    )


def forcing_at(when: datetime, provider: WeatherProvider, cfg: SimConfig = DEFAULT) -> WeatherForcing:
    """Outdoor conditions at ``when`` from whichever source is active."""
    match provider:
        case EpwWeather(dataset=dataset, fallback=fallback):
            forcing = epw_forcing_at(when, dataset, fallback)
            if forcing is not None:
                return forcing
            return synthetic_forcing_at(when, fallback, "synthetic", cfg)
        case ClimatologyWeather(profile=profile, source=source):
            return synthetic_forcing_at(when, profile, source, cfg)
        case ManualWeather(profile=profile, source=source):
            return synthetic_forcing_at(when, profile, source, cfg)
        case _:
            raise TypeError(f"Unknown weather provider: {type(provider).__name__}")


def provider_location(provider: WeatherProvider) -> tuple[float, float, float]:
    """(latitude, longitude, tz_hours) of the site the forcing belongs to."""
    match provider:
        case EpwWeather(dataset=dataset):
            meta = dataset.meta
            return meta.latitude, meta.longitude, meta.tz_hours
        case ClimatologyWeather(profile=profile) | ManualWeather(profile=profile):
            return profile.latitude, profile.longitude, profile.tz_hours
        case _:
            raise TypeError(f"Unknown weather provider: {type(provider).__name__}")
