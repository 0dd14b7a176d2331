"""Tests for annual comfort metrics and the daily summary."""

import math
from datetime import datetime, timedelta

from analysis.annual import (
    build_temperature_histogram,
    compute_annual_metrics,
    format_month_day,
    summarize_day,
)
from simulation.stepper import ComfortStatus, SimulationPoint, classify_comfort_state

YEAR_START = datetime(2025, 1, 1)


def make_point(hour: int, t_in: float, t_out: float = 10.0, **flows: float) -> SimulationPoint:
    values = dict(q_solar_w=0.0, q_internal_w=180.0, q_loss_fabric_w=0.0, q_loss_vent_w=0.0, heating_w=0.0, cooling_w=0.0)
    values.update(flows)
    return SimulationPoint(
        time=YEAR_START + timedelta(hours=hour),
        t_in_c=t_in,
        t_out_c=t_out,
        dni=0.0,
        dhi=0.0,
        ghi=0.0,
        solar_altitude_deg=-10.0,
        solar_azimuth_deg=0.0,
        status=classify_comfort_state(t_in),
        wind_ms=2.0,
        ach_total=0.3,
        ach_window=0.0,
        effective_heat_recovery=0.0,
        illuminance_lux=0,
        **values,
    )


def synthetic_year() -> list[SimulationPoint]:
    """Indoor peaks at 28°C in early July, outdoor bottoms out in mid-January."""
    points = []
    for hour in range(8760):
        t_in = 22 - 6 * math.cos(2 * math.pi * hour / 8760)
        t_out = 10 - 10 * math.cos(2 * math.pi * (hour - 15 * 24) / 8760)
        points.append(make_point(hour, t_in, t_out))
    return points


# -----------------------------------------------------------------------------
# Comfort buckets
# -----------------------------------------------------------------------------


def test_buckets_are_exclusive() -> None:
    temps = [15.0, 18.0, 23.0, 24.0, 26.0, 27.0, 28.0, 29.0]
    metrics = compute_annual_metrics([make_point(i, t) for i, t in enumerate(temps)])
    assert metrics.too_cold_hours == 1
    assert metrics.comfortable_hours == 2
    assert metrics.warm_hours == 2
    assert metrics.over26_to_28_hours == 2
    assert metrics.over28_bucket_hours == 1
    assert metrics.over26_hours == 3
    assert metrics.over28_hours == 1
    assert metrics.heating_degree_hours == 3.0
    assert metrics.cooling_degree_hours == 19.0
    assert metrics.peak_indoor_c == 29.0 and metrics.min_indoor_c == 15.0


def test_buckets_sum_to_the_year() -> None:
    metrics = compute_annual_metrics(synthetic_year())
    buckets = (
        metrics.too_cold_hours
        + metrics.comfortable_hours
        + metrics.warm_hours
        + metrics.over26_to_28_hours
        + metrics.over28_bucket_hours
    )
    print(
        f"Cold {metrics.too_cold_hours:.0f} h, comfortable {metrics.comfortable_hours:.0f} h, "
        f"over 26°C {metrics.over26_hours:.0f} h"
    )
    assert metrics.total_hours == 8760
    assert buckets == 8760
    assert sum(b.hours for b in metrics.histogram) == 8760


def test_monthly_overheating() -> None:
    metrics = compute_annual_metrics(synthetic_year())
    by_month = {m.month: m for m in metrics.monthly}
    assert by_month["Jul"].over26_hours == 31 * 24
    assert by_month["Jan"].over26_hours == 0
    assert sum(m.over26_hours for m in metrics.monthly) == metrics.over26_hours


def test_sub_hourly_steps_scale_hours() -> None:
    points = [make_point(0, 27.0), make_point(0, 27.0), make_point(0, 20.0)]
    metrics = compute_annual_metrics(points, step_minutes=30)
    assert metrics.over26_hours == 1.0
    assert metrics.total_hours == 1.5


# -----------------------------------------------------------------------------
# Week windows
# -----------------------------------------------------------------------------


def test_worst_week_is_the_first_fully_overheated_week() -> None:
    metrics = compute_annual_metrics(synthetic_year())
    worst = metrics.worst_week
    assert worst is not None
    assert worst.overheating_hours == 168
    assert worst.range_label.startswith("May")
    assert len(worst.series) == 168
    assert worst.series[0].hour == 0 and worst.series[-1].hour == 167


def test_coldest_week_is_in_january() -> None:
    coldest = compute_annual_metrics(synthetic_year()).coldest_week
    assert coldest is not None
    assert coldest.range_label.startswith("Jan")
    assert coldest.mean_outdoor_c < 1.0


def test_coldest_week_skips_missing_outdoor_samples() -> None:
    clean = compute_annual_metrics(synthetic_year()).coldest_week
    assert clean is not None

    points = synthetic_year()
    for hour in (24, clean.start_index + 10):
        points[hour] = make_point(hour, points[hour].t_in_c, math.nan)
    coldest = compute_annual_metrics(points).coldest_week
    assert coldest is not None
    assert coldest.start_index == clean.start_index
    assert math.isfinite(coldest.mean_outdoor_c)
    assert math.isclose(coldest.mean_outdoor_c, clean.mean_outdoor_c, abs_tol=0.01)


def test_short_series_uses_whole_range() -> None:
    points = [make_point(i, 27.0) for i in range(30)]
    worst = compute_annual_metrics(points).worst_week
    assert worst is not None
    assert worst.start_index == 0
    assert worst.range_label == "Jan 1 - Jan 2"
    assert worst.overheating_hours == 30


def test_empty_series() -> None:
    metrics = compute_annual_metrics([])
    assert metrics.total_hours == 0
    assert metrics.worst_week is None and metrics.coldest_week is None
    assert math.isnan(metrics.peak_indoor_c)
    assert metrics.peak_time is None


# -----------------------------------------------------------------------------
# Histogram and labels
# -----------------------------------------------------------------------------


def test_histogram_bins_are_half_open() -> None:
    bins = build_temperature_histogram([15.9, 16.0, 29.99, 30.0, math.nan])
    hours = {b.label: b.hours for b in bins}
    assert hours["<16°C"] == 1
    assert hours["16-18°C"] == 1
    assert hours["28-30°C"] == 1
    assert hours[">30°C"] == 1
    assert sum(hours.values()) == 4


def test_format_month_day() -> None:
    assert format_month_day(datetime(2025, 7, 4, 13)) == "Jul 4"


# -----------------------------------------------------------------------------
# Day summary
# -----------------------------------------------------------------------------


def test_summarize_day_ignores_closing_point() -> None:
    points = [
        make_point(0, 17.0, heating_w=600.0),
        make_point(1, 20.0, q_solar_w=300.0),
        make_point(2, 24.0, cooling_w=1200.0),
        make_point(3, 24.0, cooling_w=99999.0),  # 24:00
    ]
    summary = summarize_day(points, step_minutes=60)
    assert summary is not None
    assert summary.heating_hours == 1 and summary.comfortable_hours == 1 and summary.cooling_hours == 1
    assert math.isclose(summary.heating_energy_kwh, 0.6)
    assert math.isclose(summary.cooling_energy_kwh, 1.2)
    assert math.isclose(summary.solar_gain_kwh, 0.3)
    assert math.isclose(summary.internal_gain_kwh, 0.54)
    assert summarize_day(points[:1], step_minutes=60) is None


def test_status_enum_values() -> None:
    assert [s.value for s in ComfortStatus] == ["heating", "comfortable", "cooling"]
