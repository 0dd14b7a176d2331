"""Time-stepper - forward-Euler integration of the 1R1C room.

Each step resolves the weather forcing, the ventilation policy and the
instantaneous heat balance, then advances the room temperature:

    T[t+dt] = T[t] + dt/C * (Q_solar + Q_internal + Q_heating - Q_cooling - Q_loss)

Heating and cooling are solved reactively: exactly the power that keeps the
room on the comfort band edge, with no capacity limit.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import StrEnum
from typing import Any

from analysis.thermal.rc_model import free_running_step, reactive_hvac_step
from core.models import BuildingDimensions, ComfortBand, EnvelopeState, Location, UValues, Window
from core.presets import DEFAULT_SITE, get_u_value_preset
from data.weather import WeatherForcing, WeatherProvider, forcing_at
from simulation.config import DEFAULT, SimConfig
from simulation.envelope import (
    ResolvedRooflight,
    build_windows_from_face_state,
    calculate_opened_window_area,
    resolve_rooflight_config,
)
from simulation.snapshot import Radiation, Snapshot, SnapshotInputs, compute_snapshot
from simulation.solar import plane_irradiance_tilted
from simulation.ventilation import (
    AdaptiveReason,
    ManualOpenings,
    ManualVentilationMode,
    MvhrMode,
    VentilationSettings,
    VentilationState,
    resolve_ventilation,
)

logger = logging.getLogger(__name__)

HOURS_PER_YEAR = 8760


class ComfortStatus(StrEnum):
    HEATING = "heating"
    COMFORTABLE = "comfortable"
    COOLING = "cooling"


def classify_comfort_state(temp_c: float, comfort: ComfortBand = ComfortBand()) -> ComfortStatus:
    if temp_c < comfort.min_c:
        return ComfortStatus.HEATING
    if temp_c > comfort.max_c:
        return ComfortStatus.COOLING
    return ComfortStatus.COMFORTABLE


@dataclass(frozen=True)
class RoomModel:
    """Fixed physical description of the room for a run."""

    dims: BuildingDimensions = BuildingDimensions()
    windows: tuple[Window, ...] = ()
    location: Location = DEFAULT_SITE
    rooflight: ResolvedRooflight | None = None
    rooflight_u_value: float | None = None
    rooflight_g_value: float | None = None
    g_glass: float = 0.4
    internal_gain_w: float = 180.0
    ground_albedo: float = 0.25
    auto_blinds: bool = False
    blinds_threshold_w_m2: float = 400.0
    blinds_reduction: float = 0.5


@dataclass(frozen=True)
class PvModel:
    """Roof-mounted PV array: plane irradiance × area × efficiency."""

    tilt_deg: float = 0.0
    surface_azimuth_deg: float = 180.0
    ground_albedo: float = 0.2
    area_m2: float = 0.0
    efficiency: float = 0.2


@dataclass(frozen=True)
class SimulationSettings:
    u_values: UValues = field(default_factory=lambda: get_u_value_preset("high").values)
    ventilation: VentilationSettings = VentilationSettings()
    comfort: ComfortBand = ComfortBand()
    thermal_capacitance_j_per_k: float | None = None  # config default when None
    hvac_enabled: bool = True
    start_temp_c: float | None = None  # outdoor temperature at spin-up start when None
    pv: PvModel | None = None


@dataclass(frozen=True)
class SimulationPoint:
    """Room state at the start of one step and the flows acting over it."""

    time: datetime
    t_in_c: float
    t_out_c: float
    dni: float
    dhi: float
    ghi: float
    solar_altitude_deg: float
    solar_azimuth_deg: float
    q_solar_w: float
    q_internal_w: float
    q_loss_fabric_w: float
    q_loss_vent_w: float
    heating_w: float
    cooling_w: float
    status: ComfortStatus
    wind_ms: float
    ach_total: float
    ach_window: float
    effective_heat_recovery: float
    illuminance_lux: int
    manual_open_ach: float = 0.0
    manual_ventilation_mode: ManualVentilationMode | None = None
    adaptive_reason: AdaptiveReason | None = None
    mvhr_mode: MvhrMode | None = None
    mvhr_bypass_active: bool = False
    ventilation_helpful: bool = False

    @property
    def vent_active(self) -> bool:
        return self.ach_window > 0

    @property
    def time_label(self) -> str:
        return self.time.strftime("%H:%M")

    @property
    def net_heat_w(self) -> float:
        return (
            self.q_solar_w
            + self.q_internal_w
            + self.heating_w
            - self.cooling_w
            - self.q_loss_fabric_w
            - self.q_loss_vent_w
        )


@dataclass(frozen=True)
class _Step:
    point: SimulationPoint
    next_temp: float
    forcing: WeatherForcing
    snapshot: Snapshot


def _snapshot_inputs(
    model: RoomModel,
    settings: SimulationSettings,
    when: datetime,
    forcing: WeatherForcing,
    vent: VentilationState,
    indoor_c: float,
) -> SnapshotInputs:
    return SnapshotInputs(
        dims=model.dims,
        u_values=settings.u_values,
        location=model.location,
        when=when,
        t_out_c=forcing.t_out_c,
        windows=model.windows,
        ach_total=vent.ach_total,
        heat_recovery_efficiency=vent.heat_recovery_efficiency,
        internal_gain_w=model.internal_gain_w,
        g_glass=model.g_glass,
        ground_albedo=model.ground_albedo,
        auto_blinds=model.auto_blinds,
        blinds_threshold_w_m2=model.blinds_threshold_w_m2,
        blinds_reduction=model.blinds_reduction,
        rooflight_area_m2=model.rooflight.area_m2 if model.rooflight is not None else 0.0,
        rooflight_u_value=model.rooflight_u_value,
        rooflight_g_value=model.rooflight_g_value,
        radiation=Radiation(forcing.dni, forcing.dhi, forcing.ghi),
        t_room_override=indoor_c,
    )


def _evaluate_step(
    model: RoomModel,
    provider: WeatherProvider,
    settings: SimulationSettings,
    when: datetime,
    indoor_c: float,
    dt_seconds: float,
    cfg: SimConfig,
) -> _Step:
    forcing = forcing_at(when, provider, cfg)
    vent = resolve_ventilation(
        settings.ventilation,
        indoor_c,
        forcing.t_out_c,
        when.hour,
        forcing.wind_ms,
        settings.comfort,
        cfg,
    )
    snap = compute_snapshot(_snapshot_inputs(model, settings, when, forcing, vent, indoor_c), cfg)

    internal = model.internal_gain_w if math.isfinite(model.internal_gain_w) else 0.0
    net_passive = snap.q_solar_w + internal - snap.q_loss_total_w
    capacitance = settings.thermal_capacitance_j_per_k or cfg.thermal_capacitance_j_per_k
    comfort = settings.comfort
    if settings.hvac_enabled:
        hvac = reactive_hvac_step(net_passive, indoor_c, comfort.min_c, comfort.max_c, capacitance, dt_seconds)
    else:
        hvac = free_running_step(net_passive, indoor_c, capacitance, dt_seconds)

    if hvac.heating_w > 0:
        status = ComfortStatus.HEATING
    elif hvac.cooling_w > 0:
        status = ComfortStatus.COOLING
    elif settings.hvac_enabled:
        status = ComfortStatus.COMFORTABLE
    else:
        status = classify_comfort_state(indoor_c, comfort)

    point = SimulationPoint(
        time=when,
        t_in_c=indoor_c,
        t_out_c=snap.t_out_c,
        dni=snap.dni,
        dhi=snap.dhi,
        ghi=snap.ghi,
        solar_altitude_deg=snap.altitude_deg,
        solar_azimuth_deg=snap.azimuth_deg,
        q_solar_w=snap.q_solar_w,
        q_internal_w=internal,
        q_loss_fabric_w=snap.q_loss_fabric_w,
        q_loss_vent_w=snap.q_loss_vent_w,
        heating_w=hvac.heating_w,
        cooling_w=hvac.cooling_w,
        status=status,
        wind_ms=forcing.wind_ms,
        ach_total=vent.ach_total,
        ach_window=vent.ach_window,
        effective_heat_recovery=vent.heat_recovery_efficiency,
        illuminance_lux=snap.illuminance_lux,
        manual_open_ach=vent.manual_open_ach,
        manual_ventilation_mode=vent.manual.mode if vent.manual is not None else None,
        adaptive_reason=vent.adaptive_reason,
        mvhr_mode=vent.mvhr_mode,
        mvhr_bypass_active=vent.mvhr_bypass_active,
        ventilation_helpful=indoor_c > comfort.max_c and snap.t_out_c < indoor_c - 1,
    )
    return _Step(point=point, next_temp=hvac.next_temp, forcing=forcing, snapshot=snap)


def _start_temperature(settings: SimulationSettings, provider: WeatherProvider, when: datetime, cfg: SimConfig) -> float:
    if settings.start_temp_c is not None and math.isfinite(settings.start_temp_c):
        return settings.start_temp_c
    t_out = forcing_at(when, provider, cfg).t_out_c
    return t_out if math.isfinite(t_out) else settings.comfort.min_c


# ---------------------------------------------------------------------------
# Day run
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DaySimulation:
    points: tuple[SimulationPoint, ...]
    step_minutes: int


def simulate_day(
    model: RoomModel,
    day: date | datetime,
    provider: WeatherProvider,
    settings: SimulationSettings = SimulationSettings(),
    config: SimConfig = DEFAULT,
) -> DaySimulation:
    """Simulate one day after spinning up over the preceding days.

    Spin-up runs ``spinup_days`` of the actual preceding days so the recorded
    day does not depend on an arbitrary start temperature. The recorded series
    has steps_per_day + 1 points, 00:00 to 24:00 inclusive.

    Args:
        model: Room geometry, glazing and gains
        day: Day to record (local standard time of the site)
        provider: Weather forcing source
        settings: Fabric, ventilation, comfort band and HVAC options
        config: Simulation tunables

    Returns:
        DaySimulation with the recorded points
    """
    step_minutes = config.step_minutes
    dt_seconds = step_minutes * 60
    steps_per_day = round(24 * 60 / step_minutes)
    day_start = datetime(day.year, day.month, day.day)
    spinup_start = day_start - timedelta(days=config.spinup_days)

    indoor = _start_temperature(settings, provider, spinup_start, config)
    when = spinup_start
    for _ in range(config.spinup_days * steps_per_day):
        indoor = _evaluate_step(model, provider, settings, when, indoor, dt_seconds, config).next_temp
        when += timedelta(seconds=dt_seconds)

    points: list[SimulationPoint] = []
    vent_active = False
    when = day_start
    for _ in range(steps_per_day + 1):
        step = _evaluate_step(model, provider, settings, when, indoor, dt_seconds, config)
        point = step.point
        if point.vent_active != vent_active:
            logger.debug(
                "[Vent] %s @ %s | Tin=%.1fC Tout=%.1fC ACH=%.2f",
                "ON" if point.vent_active else "OFF",
                point.time_label,
                point.t_in_c,
                point.t_out_c,
                point.ach_total,
            )
            vent_active = point.vent_active
        points.append(point)
        indoor = step.next_temp
        when += timedelta(seconds=dt_seconds)

    return DaySimulation(points=tuple(points), step_minutes=step_minutes)


# ---------------------------------------------------------------------------
# Annual run
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnnualSimulation:
    points: tuple[SimulationPoint, ...]
    step_minutes: int
    heating_energy_kwh: float
    cooling_energy_kwh: float
    ghi_kwh_m2: float
    pv_plane_kwh_m2: float
    pv_generation_kwh: float


def _typical_year_time(step_index: int, step_minutes: int, year: int) -> datetime:
    """Time of a step in the typical year; negative indices wrap to the year end."""
    year_minutes = HOURS_PER_YEAR * 60
    minutes = (step_index * step_minutes) % year_minutes
    return datetime(year, 1, 1) + timedelta(minutes=minutes)


def simulate_annual(
    model: RoomModel,
    provider: WeatherProvider,
    settings: SimulationSettings = SimulationSettings(),
    config: SimConfig = DEFAULT,
) -> AnnualSimulation:
    """Simulate the whole typical year, 8760 · 60 / step points.

    The room spins up over the last ``spinup_hours`` of the year (the typical
    year wraps) before the first recorded step at 1 January 00:00.
    """
    started = time.perf_counter()
    step_minutes = config.annual_step_minutes
    dt_seconds = step_minutes * 60
    dt_hours = step_minutes / 60
    spinup_steps = round(config.spinup_hours * 60 / step_minutes)
    total_steps = round(HOURS_PER_YEAR * 60 / step_minutes)
    year = config.model_year

    indoor = _start_temperature(settings, provider, _typical_year_time(-spinup_steps, step_minutes, year), config)
    for index in range(-spinup_steps, 0):
        when = _typical_year_time(index, step_minutes, year)
        indoor = _evaluate_step(model, provider, settings, when, indoor, dt_seconds, config).next_temp

    pv = settings.pv
    points: list[SimulationPoint] = []
    heating_wh = cooling_wh = ghi_wh = pv_plane_wh = 0.0
    for index in range(total_steps):
        when = _typical_year_time(index, step_minutes, year)
        step = _evaluate_step(model, provider, settings, when, indoor, dt_seconds, config)
        point = step.point
        points.append(point)
        heating_wh += point.heating_w * dt_hours
        cooling_wh += point.cooling_w * dt_hours
        ghi_wh += point.ghi * dt_hours
        if pv is not None:
            plane = plane_irradiance_tilted(
                pv.tilt_deg,
                pv.surface_azimuth_deg,
                point.solar_altitude_deg,
                point.solar_azimuth_deg,
                point.dni,
                point.dhi,
                point.ghi,
                pv.ground_albedo,
            )
            pv_plane_wh += plane.total * dt_hours
        indoor = step.next_temp

    pv_plane_kwh_m2 = pv_plane_wh / 1000
    pv_generation = pv_plane_kwh_m2 * max(0.0, pv.area_m2) * max(0.0, pv.efficiency) if pv is not None else 0.0
    logger.info("Annual simulation: %d points in %.2fs", len(points), time.perf_counter() - started)
    return AnnualSimulation(
        points=tuple(points),
        step_minutes=step_minutes,
        heating_energy_kwh=heating_wh / 1000,
        cooling_energy_kwh=cooling_wh / 1000,
        ghi_kwh_m2=ghi_wh / 1000,
        pv_plane_kwh_m2=pv_plane_kwh_m2,
        pv_generation_kwh=pv_generation,
    )


# ---------------------------------------------------------------------------
# Building the room from facade state
# ---------------------------------------------------------------------------


def build_room_model(
    envelope: EnvelopeState,
    dims: BuildingDimensions = BuildingDimensions(),
    location: Location = DEFAULT_SITE,
    **overrides: Any,
) -> RoomModel:
    """Room with one window per glazed face and the clamped rooflight.

    Keyword overrides set the remaining ``RoomModel`` fields (g-value, gains,
    blinds, rooflight U / g).
    """
    rooflight = resolve_rooflight_config(envelope.rooflight, dims) if envelope.rooflight is not None else None
    windows = build_windows_from_face_state(envelope.faces, envelope.orientation_deg, dims)
    return RoomModel(dims=dims, windows=tuple(windows), location=location, rooflight=rooflight, **overrides)


def manual_openings_for(
    envelope: EnvelopeState, dims: BuildingDimensions = BuildingDimensions(), fixed_wind_ms: float | None = None
) -> ManualOpenings | None:
    """Opened leaves and rooflight of the envelope, or None when everything is shut."""
    opened = calculate_opened_window_area(envelope.faces, dims, envelope.open_segments)
    roof_area = 0.0
    if envelope.rooflight is not None:
        rooflight = resolve_rooflight_config(envelope.rooflight, dims)
        roof_area = rooflight.opening_area_m2 if rooflight.is_open else 0.0
    if opened.total_open_area_m2 <= 0 and roof_area <= 0:
        return None
    return ManualOpenings(
        opened=opened,
        volume_m3=dims.volume_m3,
        roof_opening_area_m2=roof_area,
        room_height_m=dims.height,
        fixed_wind_ms=fixed_wind_ms,
    )
