"""Annual and daily statistics over stepped simulation output.

Works on any sequence of ``SimulationPoint`` plus the step length, so the
same code serves the hourly annual run and finer test grids.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

import numpy as np

from core.models import ComfortBand
from simulation.stepper import ComfortStatus, SimulationPoint

OVERHEAT_THRESHOLD_C = 26.0
SEVERE_OVERHEAT_THRESHOLD_C = 28.0
WEEK_HOURS = 7 * 24

MONTH_SHORT = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# (label, lower, upper); bins are [lower, upper), None is open-ended
HISTOGRAM_BINS: tuple[tuple[str, float | None, float | None], ...] = (
    ("<16°C", None, 16.0),
    ("16-18°C", 16.0, 18.0),
    ("18-20°C", 18.0, 20.0),
    ("20-22°C", 20.0, 22.0),
    ("22-24°C", 22.0, 24.0),
    ("24-26°C", 24.0, 26.0),
    ("26-28°C", 26.0, 28.0),
    ("28-30°C", 28.0, 30.0),
    (">30°C", 30.0, None),
)


def format_month_day(when: datetime) -> str:
    return f"{MONTH_SHORT[when.month - 1]} {when.day}"


@dataclass(frozen=True)
class HistogramBin:
    label: str
    min_c: float | None
    max_c: float | None
    hours: float


@dataclass(frozen=True)
class MonthlyOverheating:
    month: str
    over26_hours: float
    over28_hours: float


@dataclass(frozen=True)
class WeekSample:
    hour: float  # hours since the start of the week
    clock: str
    t_in_c: float
    t_out_c: float


@dataclass(frozen=True)
class WeekWindow:
    start_index: int
    range_label: str
    overheating_hours: float
    mean_outdoor_c: float
    series: tuple[WeekSample, ...]


@dataclass(frozen=True)
class AnnualMetrics:
    heating_degree_hours: float
    cooling_degree_hours: float
    peak_indoor_c: float
    peak_time: datetime | None
    min_indoor_c: float
    min_time: datetime | None
    too_cold_hours: float
    comfortable_hours: float
    warm_hours: float
    over26_to_28_hours: float
    over28_bucket_hours: float
    over26_hours: float
    over28_hours: float
    total_hours: float
    histogram: tuple[HistogramBin, ...]
    monthly: tuple[MonthlyOverheating, ...]
    worst_week: WeekWindow | None
    coldest_week: WeekWindow | None


def build_temperature_histogram(temperatures: Sequence[float] | np.ndarray, step_hours: float = 1.0) -> tuple[HistogramBin, ...]:
    """Hours per fixed 2 K bin with open-ended bins below 16 °C and above 30 °C."""
    temps = np.asarray(temperatures, dtype=np.float64)
    temps = temps[np.isfinite(temps)]
    bins = []
    for label, lower, upper in HISTOGRAM_BINS:
        above = temps >= lower if lower is not None else np.ones(temps.shape, dtype=bool)
        below = temps < upper if upper is not None else np.ones(temps.shape, dtype=bool)
        count = int(np.count_nonzero(above & below))
        bins.append(HistogramBin(label=label, min_c=lower, max_c=upper, hours=count * step_hours))
    return tuple(bins)


def _window_sums(values: np.ndarray, window: int) -> np.ndarray:
    cumsum = np.concatenate(([0.0], np.cumsum(values)))
    return cumsum[window:] - cumsum[:-window]


def _first_best_window(values: np.ndarray, window: int, *, largest: bool) -> int:
    """Start index of the window with the largest (or smallest) mean; ties go to the earliest.

    Non-finite samples are left out of each window's mean.
    """
    if values.size <= window:
        return 0
    finite = np.isfinite(values)
    sums = _window_sums(np.where(finite, values, 0.0), window)
    counts = _window_sums(finite.astype(np.float64), window)
    empty = -np.inf if largest else np.inf
    means = np.divide(sums, counts, out=np.full(sums.shape, empty), where=counts > 0)
    # argmax / argmin return the first occurrence
    return int(np.argmax(means) if largest else np.argmin(means))


def _week_window(
    points: Sequence[SimulationPoint], start: int, window: int, step_hours: float, over26: np.ndarray
) -> WeekWindow:
    chunk = points[start : start + window]
    first, last = chunk[0].time, chunk[-1].time
    start_label, end_label = format_month_day(first), format_month_day(last)
    range_label = start_label if start_label == end_label else f"{start_label} - {end_label}"
    t_out = np.array([p.t_out_c for p in chunk], dtype=np.float64)
    t_out = t_out[np.isfinite(t_out)]
    return WeekWindow(
        start_index=start,
        range_label=range_label,
        overheating_hours=float(over26[start : start + window].sum()) * step_hours,
        mean_outdoor_c=float(t_out.mean()) if t_out.size else math.nan,
        series=tuple(
            WeekSample(hour=i * step_hours, clock=p.time_label, t_in_c=p.t_in_c, t_out_c=p.t_out_c)
            for i, p in enumerate(chunk)
        ),
    )


def compute_annual_metrics(
    points: Sequence[SimulationPoint], step_minutes: int = 60, comfort: ComfortBand = ComfortBand()
) -> AnnualMetrics:
    """Aggregate a year of stepped output.

    Each point stands for ``step_minutes`` of the year. Comfort buckets are
    mutually exclusive: too cold (< band min), over 28 °C, 26-28 °C,
    comfortable (within band) and warm (above band, up to 26 °C). The 26 / 28 °C
    thresholds are absolute and take priority over the band.

    Args:
        points: Recorded simulation points, in time order
        step_minutes: Length of each step
        comfort: Comfort band used for degree-hours and buckets

    Returns:
        AnnualMetrics with scalars, histogram, monthly counts and week windows
    """
    step_hours = step_minutes / 60
    t_in = np.array([p.t_in_c for p in points], dtype=np.float64)
    t_out = np.array([p.t_out_c for p in points], dtype=np.float64)
    months = np.array([p.time.month - 1 for p in points], dtype=np.int64)

    too_cold = t_in < comfort.min_c
    over28 = t_in > SEVERE_OVERHEAT_THRESHOLD_C
    over26 = t_in > OVERHEAT_THRESHOLD_C
    over26_to_28 = over26 & ~over28
    within_band = (t_in <= comfort.max_c) & ~too_cold & ~over26
    warm = ~too_cold & ~over26 & ~within_band

    monthly = tuple(
        MonthlyOverheating(
            month=label,
            over26_hours=float(np.count_nonzero(over26 & (months == idx))) * step_hours,
            over28_hours=float(np.count_nonzero(over28 & (months == idx))) * step_hours,
        )
        for idx, label in enumerate(MONTH_SHORT)
    )

    worst_week = coldest_week = None
    peak_time = min_time = None
    peak = minimum = math.nan
    if t_in.size:
        window = max(1, round(WEEK_HOURS / step_hours))
        worst_start = _first_best_window(over26.astype(np.float64), window, largest=True)
        coldest_start = _first_best_window(t_out, window, largest=False)
        worst_week = _week_window(points, worst_start, window, step_hours, over26)
        coldest_week = _week_window(points, coldest_start, window, step_hours, over26)
        peak_idx, min_idx = int(np.argmax(t_in)), int(np.argmin(t_in))
        peak, peak_time = float(t_in[peak_idx]), points[peak_idx].time
        minimum, min_time = float(t_in[min_idx]), points[min_idx].time

    def hours(mask: np.ndarray) -> float:
        return float(np.count_nonzero(mask)) * step_hours

    return AnnualMetrics(
        heating_degree_hours=float(np.maximum(0.0, comfort.min_c - t_in).sum()) * step_hours,
        cooling_degree_hours=float(np.maximum(0.0, t_in - comfort.max_c).sum()) * step_hours,
        peak_indoor_c=peak,
        peak_time=peak_time,
        min_indoor_c=minimum,
        min_time=min_time,
        too_cold_hours=hours(too_cold),
        comfortable_hours=hours(within_band),
        warm_hours=hours(warm),
        over26_to_28_hours=hours(over26_to_28),
        over28_bucket_hours=hours(over28),
        over26_hours=hours(over26),
        over28_hours=hours(over28),
        total_hours=t_in.size * step_hours,
        histogram=build_temperature_histogram(t_in, step_hours),
        monthly=monthly,
        worst_week=worst_week,
        coldest_week=coldest_week,
    )


# ---------------------------------------------------------------------------
# Day summary
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DaySummary:
    comfortable_hours: float
    heating_hours: float
    cooling_hours: float
    heating_energy_kwh: float
    cooling_energy_kwh: float
    solar_gain_kwh: float
    internal_gain_kwh: float
    fabric_loss_kwh: float
    vent_loss_kwh: float


def summarize_day(points: Sequence[SimulationPoint], step_minutes: int) -> DaySummary | None:
    """Hours by status and energy totals over a recorded day.

    The last point closes the day (24:00) and carries no step of its own.
    Returns None when there is no full step to summarise.
    """
    if len(points) <= 1:
        return None
    step_hours = step_minutes / 60
    steps = points[:-1]

    def status_hours(status: ComfortStatus) -> float:
        return sum(step_hours for p in steps if p.status == status)

    def energy_kwh(values: Sequence[float]) -> float:
        return sum(v * step_hours for v in values) / 1000

    return DaySummary(
        comfortable_hours=status_hours(ComfortStatus.COMFORTABLE),
        heating_hours=status_hours(ComfortStatus.HEATING),
        cooling_hours=status_hours(ComfortStatus.COOLING),
        heating_energy_kwh=energy_kwh([p.heating_w for p in steps]),
        cooling_energy_kwh=energy_kwh([p.cooling_w for p in steps]),
        solar_gain_kwh=energy_kwh([p.q_solar_w for p in steps]),
        internal_gain_kwh=energy_kwh([p.q_internal_w for p in steps]),
        fabric_loss_kwh=energy_kwh([p.q_loss_fabric_w for p in steps]),
        vent_loss_kwh=energy_kwh([p.q_loss_vent_w for p in steps]),
    )
