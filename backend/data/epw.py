"""EnergyPlus Weather (EPW) file parsing.

An EPW file is 8 header lines followed by exactly 8760 hourly rows of a
non-leap typical year. Only the fields the room model needs are kept.
"""

import logging
import math
from dataclasses import dataclass, replace

import numpy as np

logger = logging.getLogger(__name__)

EPW_HEADER_LINES = 8
HOURS_PER_YEAR = 8760
MISSING_VALUES = frozenset({9999.0, 99999.0, 999999.0, -9999.0})
MISSING_DIRECTION_OR_HUMIDITY = 999.0
ALL_MISSING_DRY_BULB_C = 10.0
MIN_ROW_FIELDS = 22

# 0-indexed row fields
_MONTH, _DAY, _HOUR = 1, 2, 3
_DRY_BULB = 6
_RELATIVE_HUMIDITY = 8
_GHI, _DNI, _DHI = 13, 14, 15
_WIND_DIRECTION = 20
_WIND_SPEED = 21
_TOTAL_SKY_COVER, _OPAQUE_SKY_COVER = 22, 23


class EpwParseError(ValueError):
    """The EPW text cannot be used; callers fall back to synthetic weather."""


@dataclass(frozen=True)
class EpwMeta:
    name: str
    latitude: float
    longitude: float
    tz_hours: float
    elevation_m: float


@dataclass(frozen=True)
class EpwHour:
    month: int
    day: int
    hour: int  # 0-23, EPW hour 24 wraps to 0
    dry_bulb_c: float
    ghi: float
    dni: float
    dhi: float
    wind_ms: float | None = None
    wind_direction_deg: float | None = None
    relative_humidity: float | None = None
    total_sky_cover: float | None = None  # tenths
    opaque_sky_cover: float | None = None  # tenths

    @property
    def label(self) -> str:
        return f"{self.month:02d}-{self.day:02d} {self.hour:02d}:00"


@dataclass(frozen=True)
class EpwDataset:
    meta: EpwMeta
    hours: tuple[EpwHour, ...]

    def __len__(self) -> int:
        return len(self.hours)


def _parse_float(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        parsed = float(value.strip())
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _is_missing(value: float | None) -> bool:
    return value is None or value in MISSING_VALUES


def _field(fields: list[str], index: int) -> str | None:
    return fields[index] if index < len(fields) else None


def _radiation(value: float | None) -> float:
    return 0.0 if _is_missing(value) else max(0.0, value)  # type: ignore[type-var]


def _wind(value: float | None) -> float | None:
    return None if _is_missing(value) else max(0.0, value)  # type: ignore[type-var]


def _sky_cover(value: float | None) -> float | None:
    return None if _is_missing(value) else max(0.0, min(10.0, value))  # type: ignore[type-var]


def _bounded(value: float | None, upper: float) -> float | None:
    if _is_missing(value) or value == MISSING_DIRECTION_OR_HUMIDITY:
        return None
    return max(0.0, min(upper, value))  # type: ignore[type-var]


def fill_missing_temperatures(values: list[float | None]) -> list[float]:
    """Linearly interpolate gaps; leading/trailing gaps take the nearest valid value."""
    if not values:
        return []
    series = np.array([np.nan if v is None else v for v in values], dtype=np.float64)
    valid = np.flatnonzero(np.isfinite(series))
    if valid.size == 0:
        return [ALL_MISSING_DRY_BULB_C] * len(values)
    # np.interp holds the end values beyond the first/last sample
    filled = np.interp(np.arange(series.size), valid, series[valid])
    return [float(v) for v in filled]


def parse_epw_text(text: str) -> EpwDataset:
    """Parse EPW text into a dataset of 8760 hours.

    Args:
        text: Full EPW file contents

    Returns:
        EpwDataset with location metadata and sanitised hourly rows

    Raises:
        EpwParseError: Too few lines, invalid LOCATION header, or a row count
            other than 8760
    """
    lines = [line for line in text.replace("\r", "").split("\n") if line.strip()]
    if len(lines) <= EPW_HEADER_LINES:
        raise EpwParseError("EPW parse failed: file has insufficient lines.")

    location = lines[0].split(",")
    city = (_field(location, 1) or "Unknown").strip()
    country = (_field(location, 3) or "").strip()
    source = (_field(location, 4) or "EPW").strip()
    latitude = _parse_float(_field(location, 6))
    longitude = _parse_float(_field(location, 7))
    tz_hours = _parse_float(_field(location, 8))
    elevation = _parse_float(_field(location, 9))
    if latitude is None or longitude is None or tz_hours is None or elevation is None:
        raise EpwParseError("EPW parse failed: LOCATION metadata is invalid.")

    rows: list[EpwHour] = []
    dry_bulb: list[float | None] = []
    for line in lines[EPW_HEADER_LINES:]:
        fields = line.split(",")
        if len(fields) < MIN_ROW_FIELDS:
            continue
        month = _parse_int(fields[_MONTH])
        day = _parse_int(fields[_DAY])
        epw_hour = _parse_int(fields[_HOUR])
        if month is None or day is None or epw_hour is None:
            continue

        t_dry = _parse_float(fields[_DRY_BULB])
        dry_bulb.append(None if _is_missing(t_dry) else t_dry)
        rows.append(
            EpwHour(
                month=month,
                day=day,
                hour=epw_hour % 24,
                dry_bulb_c=0.0,  # filled once gaps are known
                ghi=_radiation(_parse_float(fields[_GHI])),
                dni=_radiation(_parse_float(fields[_DNI])),
                dhi=_radiation(_parse_float(fields[_DHI])),
                wind_ms=_wind(_parse_float(fields[_WIND_SPEED])),
                wind_direction_deg=_bounded(_parse_float(_field(fields, _WIND_DIRECTION)), 360.0),
                relative_humidity=_bounded(_parse_float(_field(fields, _RELATIVE_HUMIDITY)), 100.0),
                total_sky_cover=_sky_cover(_parse_float(_field(fields, _TOTAL_SKY_COVER))),
                opaque_sky_cover=_sky_cover(_parse_float(_field(fields, _OPAQUE_SKY_COVER))),
            )
        )

    if len(rows) != HOURS_PER_YEAR:
        raise EpwParseError(f"EPW parse failed: expected {HOURS_PER_YEAR} rows, got {len(rows)}.")

    filled = fill_missing_temperatures(dry_bulb)
    hours = tuple(replace(row, dry_bulb_c=t) for t, row in zip(filled, rows, strict=True))

    name = f"{city} ({source})"
    if country:
        name += f", {country}"
    return EpwDataset(
        meta=EpwMeta(name=name, latitude=latitude, longitude=longitude, tz_hours=tz_hours, elevation_m=elevation),
        hours=hours,
    )


@dataclass(frozen=True)
class EpwValidation:
    t_min_c: float
    t_max_c: float
    ghi_max: float
    jan_mean_c: float
    jul_mean_c: float
    midsummer_peak_hour: int
    midsummer_peak_ghi: float

    @property
    def seasonal_check_pass(self) -> bool:
        return self.jan_mean_c < self.jul_mean_c

    @property
    def midday_peak_pass(self) -> bool:
        return 10 <= self.midsummer_peak_hour <= 15

    @property
    def warnings(self) -> list[str]:
        messages: list[str] = []
        if not self.seasonal_check_pass:
            messages.append(
                f"January mean ({self.jan_mean_c:.1f} °C) is not below July mean ({self.jul_mean_c:.1f} °C)."
            )
        if not self.midday_peak_pass:
            messages.append(f"Midsummer irradiance peaks at {self.midsummer_peak_hour:02d}:00, expected 10-15.")
        return messages


_JULY_START_DAY = 182
_SUMMER_SOLSTICE_DAY = 172


def validate_epw_dataset(dataset: EpwDataset) -> EpwValidation:
    """Sanity checks on a parsed dataset: seasons and midday sun.

    The location may be southern hemisphere, so a failed seasonal check is a
    warning, never an error.
    """
    temps = np.array([h.dry_bulb_c for h in dataset.hours], dtype=np.float64)
    ghi = np.array([h.ghi for h in dataset.hours], dtype=np.float64)

    july_start = (_JULY_START_DAY - 1) * 24
    jan_mean = float(temps[: 31 * 24].mean()) if temps.size else 0.0
    july = temps[july_start : july_start + 31 * 24]
    jul_mean = float(july.mean()) if july.size else 0.0

    midsummer_start = (_SUMMER_SOLSTICE_DAY - 1) * 24
    midsummer = ghi[midsummer_start : midsummer_start + 24]
    peak_hour = int(np.argmax(midsummer)) if midsummer.size else 0

    validation = EpwValidation(
        t_min_c=float(temps.min()) if temps.size else 0.0,
        t_max_c=float(temps.max()) if temps.size else 0.0,
        ghi_max=float(ghi.max()) if ghi.size else 0.0,
        jan_mean_c=jan_mean,
        jul_mean_c=jul_mean,
        midsummer_peak_hour=peak_hour,
        midsummer_peak_ghi=float(midsummer[peak_hour]) if midsummer.size else 0.0,
    )
    for message in validation.warnings:
        logger.warning("%s: %s", dataset.meta.name, message)
    return validation
