"""Tests for EPW parsing and validation against a synthetic typical year."""

import math

import pytest

from data.epw import (
    ALL_MISSING_DRY_BULB_C,
    EpwParseError,
    fill_missing_temperatures,
    parse_epw_text,
    validate_epw_dataset,
)

LOCATION_LINE = "LOCATION,Testville,WAL,GBR,TMYx,036100,51.917,-3.317,0.0,160.0"
HEADER_LINES = [
    LOCATION_LINE,
    "DESIGN CONDITIONS,0",
    "TYPICAL/EXTREME PERIODS,0",
    "GROUND TEMPERATURES,0",
    "HOLIDAYS/DAYLIGHT SAVINGS,No,0,0,0",
    "COMMENTS 1,synthetic",
    "COMMENTS 2,synthetic",
    "DATA PERIODS,1,1,Data,Sunday, 1/ 1,12/31",
]
DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


def synthetic_temperature(day_index: int, hour: int) -> float:
    """Cold January, warm July, warmest mid-afternoon."""
    seasonal = 10 - 7 * math.cos(2 * math.pi * (day_index - 15) / 365)
    return round(seasonal - 3 * math.cos(2 * math.pi * (hour - 15) / 24), 1)


def synthetic_ghi(hour: int) -> float:
    return round(max(0.0, 700 * math.sin(math.pi * (hour - 6) / 12)), 1)


def make_epw_text(rows: int = 8760, overrides: dict[int, dict[int, str]] | None = None) -> str:
    """EPW text with ``rows`` hourly records; ``overrides`` maps row -> {field index: text}."""
    lines = list(HEADER_LINES)
    overrides = overrides or {}
    row = 0
    for month, days in enumerate(DAYS_IN_MONTH, start=1):
        for day in range(1, days + 1):
            for hour in range(24):
                if row >= rows:
                    return "\n".join(lines) + "\n"
                day_index = row // 24
                ghi = synthetic_ghi(hour)
                fields = [
                    "2005", str(month), str(day), str(hour + 1), "60", "?9?9",
                    str(synthetic_temperature(day_index, hour)), "5.0", "80", "101000",
                    "0", "0", "300", str(ghi), str(round(ghi * 0.8, 1)), str(round(ghi * 0.2, 1)),
                    "0", "0", "0", "0", "225", "3.5", "6", "4",
                ]
                for index, value in overrides.get(row, {}).items():
                    fields[index] = value
                lines.append(",".join(fields))
                row += 1
    return "\n".join(lines) + "\n"


# -----------------------------------------------------------------------------
# Parsing
# -----------------------------------------------------------------------------


def test_parse_full_year() -> None:
    dataset = parse_epw_text(make_epw_text())
    assert len(dataset) == 8760
    meta = dataset.meta
    assert meta.name == "Testville (TMYx), GBR"
    assert meta.latitude == 51.917 and meta.longitude == -3.317
    assert meta.tz_hours == 0.0 and meta.elevation_m == 160.0

    first = dataset.hours[0]
    assert (first.month, first.day, first.hour) == (1, 1, 1)
    assert dataset.hours[23].hour == 0  # EPW hour 24 wraps
    assert first.wind_ms == 3.5
    assert first.wind_direction_deg == 225.0
    assert first.total_sky_cover == 6.0
    assert first.label == "01-01 01:00"


def test_missing_temperature_is_interpolated() -> None:
    text = make_epw_text(overrides={0: {6: "10.0"}, 1: {6: "9999"}, 2: {6: "12.0"}})
    dataset = parse_epw_text(text)
    assert dataset.hours[1].dry_bulb_c == 11.0


def test_missing_fields_are_sanitised() -> None:
    overrides = {5: {13: "9999", 21: "9999", 20: "999", 8: "999", 22: "9999"}}
    dataset = parse_epw_text(make_epw_text(overrides=overrides))
    hour = dataset.hours[5]
    assert hour.ghi == 0.0
    assert hour.wind_ms is None
    assert hour.wind_direction_deg is None
    assert hour.relative_humidity is None
    assert hour.total_sky_cover is None


def test_wrong_row_count_raises() -> None:
    with pytest.raises(EpwParseError, match="expected 8760 rows, got 8759"):
        parse_epw_text(make_epw_text(rows=8759))


def test_bad_location_raises() -> None:
    text = make_epw_text().replace("51.917", "north", 1)
    with pytest.raises(EpwParseError, match="LOCATION"):
        parse_epw_text(text)


def test_too_short_raises() -> None:
    with pytest.raises(EpwParseError):
        parse_epw_text("\n".join(HEADER_LINES))


def test_short_rows_are_skipped() -> None:
    text = make_epw_text().replace(HEADER_LINES[-1], HEADER_LINES[-1] + "\n1,2,3")
    assert len(parse_epw_text(text)) == 8760


# -----------------------------------------------------------------------------
# Gap filling
# -----------------------------------------------------------------------------


def test_fill_missing_temperatures() -> None:
    assert fill_missing_temperatures([None, 4.0, None, 8.0, None]) == [4.0, 4.0, 6.0, 8.0, 8.0]
    assert fill_missing_temperatures([None, None]) == [ALL_MISSING_DRY_BULB_C] * 2
    assert fill_missing_temperatures([]) == []


# -----------------------------------------------------------------------------
# Validation
# -----------------------------------------------------------------------------


def test_validation_passes_for_plausible_year() -> None:
    validation = validate_epw_dataset(parse_epw_text(make_epw_text()))
    print(f"Jan mean {validation.jan_mean_c:.1f}°C, Jul mean {validation.jul_mean_c:.1f}°C")
    assert validation.seasonal_check_pass
    assert validation.midday_peak_pass
    assert validation.midsummer_peak_hour == 12
    assert validation.ghi_max == 700.0
    assert validation.warnings == []


def test_validation_warns_for_shifted_sun() -> None:
    # night-time spike on midsummer day
    overrides = {(171 * 24) + 3: {13: "900"}}
    validation = validate_epw_dataset(parse_epw_text(make_epw_text(overrides=overrides)))
    assert validation.midsummer_peak_hour == 3
    assert not validation.midday_peak_pass
    assert len(validation.warnings) == 1
