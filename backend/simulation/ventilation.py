"""Ventilation policy - which air change rate applies at each step.

Precedence per step: adaptive windows > MVHR auto control > night purge >
preset base rate. Manual window / rooflight openings are added on top, and
mechanical heat recovery is bypassed whenever fresh air arrives through an
opening.
"""

import math
from dataclasses import dataclass, field
from enum import StrEnum

from core.models import ComfortBand, FaceId
from core.presets import FACES, get_ventilation_preset
from simulation.config import DEFAULT, SimConfig
from simulation.envelope import OpenedWindowArea
from simulation.solar import is_night_hour

GRAVITY_MS2 = 9.81
KELVIN_OFFSET = 273.15
_EPS = 1e-6


class AdaptiveReason(StrEnum):
    COMFORTABLE = "comfortable"
    DAY_COOLING = "day-cooling"
    NIGHT_COOLING = "night-cooling"
    NIGHT_FLOOR = "night-floor"
    OUTDOOR_WARM = "outdoor-warm"


class MvhrMode(StrEnum):
    BASE = "base"
    BOOST = "boost"
    SUMMER_BYPASS = "summer-bypass"


class ManualVentilationMode(StrEnum):
    NONE = "none"
    SINGLE_SIDED = "single-sided"
    MULTI_FACE = "multi-face"
    CROSS = "cross"
    ROOF_ONLY = "roof-only"


def _finite_or(value: float | None, fallback: float) -> float:
    if value is None or not math.isfinite(value):
        return fallback
    return value


# ---------------------------------------------------------------------------
# Base (mechanical / automatic) ventilation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BaseVentilation:
    ach_total: float
    adaptive_reason: AdaptiveReason | None = None
    mvhr_mode: MvhrMode | None = None
    mvhr_bypass_active: bool = False


def ventilation_state_for_step(
    ach_total: float,
    hour_of_day: float = 12,
    night_purge_enabled: bool = False,
    cfg: SimConfig = DEFAULT,
) -> BaseVentilation:
    """Preset rate, raised to the purge rate overnight when night purge is on."""
    target = ach_total
    if night_purge_enabled and is_night_hour(hour_of_day, cfg):
        target = max(ach_total, cfg.purge_ach)
    return BaseVentilation(ach_total=max(cfg.infiltration_ach, target))


def adaptive_ventilation_state_for_step(
    indoor_c: float,
    outdoor_c: float,
    hour_of_day: float = 12,
    comfort: ComfortBand = ComfortBand(),
    cfg: SimConfig = DEFAULT,
) -> BaseVentilation:
    """Open windows only when the room is above the band and outside air can cool it.

    The rate scales linearly across the adaptive ACH band with overheating,
    reaching the maximum ``adaptive_overheat_scale_max_c`` above the band.
    """
    night = is_night_hour(hour_of_day, cfg)
    overheat = indoor_c - comfort.max_c
    benefit = indoor_c - outdoor_c
    helpful = overheat > 0 and benefit >= cfg.adaptive_min_benefit_delta_c

    target = cfg.infiltration_ach
    reason = AdaptiveReason.COMFORTABLE
    if helpful:
        if night and indoor_c <= cfg.adaptive_night_floor_c:
            reason = AdaptiveReason.NIGHT_FLOOR
        else:
            scale = min(1.0, max(0.0, overheat / cfg.adaptive_overheat_scale_max_c))
            target = cfg.adaptive_ach_min + scale * (cfg.adaptive_ach_max - cfg.adaptive_ach_min)
            reason = AdaptiveReason.NIGHT_COOLING if night else AdaptiveReason.DAY_COOLING
    elif overheat > 0:
        reason = AdaptiveReason.OUTDOOR_WARM

    return BaseVentilation(ach_total=max(cfg.infiltration_ach, target), adaptive_reason=reason)


def _is_hour_in_range(hour_of_day: float, start_hour: int, end_hour: int) -> bool:
    """Half-open [start, end) on the 24 h clock, wrapping past midnight."""
    hour = math.floor(hour_of_day) % 24
    start, end = start_hour % 24, end_hour % 24
    if start == end:
        return True
    if start < end:
        return start <= hour < end
    return hour >= start or hour < end


def mvhr_ventilation_state_for_step(
    indoor_c: float,
    outdoor_c: float,
    hour_of_day: float = 12,
    base_ach: float = 0.4,
    comfort: ComfortBand = ComfortBand(),
    cfg: SimConfig = DEFAULT,
) -> BaseVentilation:
    safe_base = max(cfg.infiltration_ach, _finite_or(base_ach, cfg.infiltration_ach))
    occupied = _is_hour_in_range(hour_of_day, cfg.mvhr_morning_start_hour, cfg.mvhr_morning_end_hour) or (
        _is_hour_in_range(hour_of_day, cfg.mvhr_evening_start_hour, cfg.mvhr_evening_end_hour)
    )
    bypass = indoor_c > comfort.max_c and outdoor_c <= indoor_c - cfg.mvhr_bypass_benefit_delta_c

    if bypass:
        target, mode = max(safe_base, cfg.mvhr_summer_boost_ach), MvhrMode.SUMMER_BYPASS
    elif occupied:
        target, mode = max(safe_base, cfg.mvhr_boost_ach), MvhrMode.BOOST
    else:
        target, mode = safe_base, MvhrMode.BASE

    return BaseVentilation(
        ach_total=max(cfg.infiltration_ach, target),
        mvhr_mode=mode,
        mvhr_bypass_active=bypass,
    )


# ---------------------------------------------------------------------------
# Manual openings - orifice flow
# ---------------------------------------------------------------------------


def equivalent_opening_area(area_a: float, area_b: float) -> float:
    """Two openings in series: 1 / sqrt(1/a² + 1/b²)."""
    a = max(0.0, _finite_or(area_a, 0.0))
    b = max(0.0, _finite_or(area_b, 0.0))
    if a <= 1e-9 or b <= 1e-9:
        return 0.0
    return 1 / math.sqrt(1 / (a * a) + 1 / (b * b))


def pressure_driven_flow_rate(area_m2: float, delta_pressure_pa: float, cfg: SimConfig = DEFAULT) -> float:
    """Orifice flow Q = Cd · A · v (m³/s), jet speed capped at the opening limit."""
    area = max(0.0, _finite_or(area_m2, 0.0))
    pressure = max(0.0, _finite_or(delta_pressure_pa, 0.0))
    if area <= 1e-9 or pressure <= 1e-9:
        return 0.0
    velocity = min(cfg.max_opening_velocity_ms, math.sqrt(2 * pressure / cfg.rho_air))
    return cfg.discharge_coefficient * area * velocity


@dataclass(frozen=True)
class ManualVentilation:
    mode: ManualVentilationMode
    open_face_ids: tuple[FaceId, ...] = ()
    total_open_area_m2: float = 0.0
    roof_opening_area_m2: float = 0.0
    cross_area_m2: float = 0.0
    residual_area_m2: float = 0.0
    active_cross_pair: str | None = None
    wind_ms: float = 0.0
    effective_wind_ms: float = 0.0
    wind_pressure_pa: float = 0.0
    stack_pressure_pa: float = 0.0
    facade_pressure_pa: float = 0.0
    roof_pressure_pa: float = 0.0
    facade_flow_m3s: float = 0.0
    roof_flow_m3s: float = 0.0
    flow_rate_m3s: float = 0.0
    manual_open_ach: float = 0.0

    @property
    def total_manual_open_area_m2(self) -> float:
        return self.total_open_area_m2 + self.roof_opening_area_m2


def calculate_manual_window_ventilation(
    opened: OpenedWindowArea,
    volume_m3: float,
    *,
    roof_opening_area_m2: float = 0.0,
    room_height_m: float | None = None,
    stack_height_m: float | None = None,
    wind_ms: float | None = None,
    indoor_c: float | None = None,
    outdoor_c: float | None = None,
    cfg: SimConfig = DEFAULT,
) -> ManualVentilation:
    """Air change rate through manually opened windows and the rooflight.

    Facade flow is wind driven: cross ventilation through the best opposing
    pair, otherwise single-sided or multi-face pumping. The rooflight adds a
    stack-assisted path in quadrature with the facade flow.

    Args:
        opened: Opened leaf areas per face
        volume_m3: Room air volume
        roof_opening_area_m2: Free area of the raised rooflight
        room_height_m: Floor to ceiling height (default 2.6 m)
        stack_height_m: Neutral-plane height for buoyancy (default 0.65 × room height)
        wind_ms: 10 m wind speed; the reference 2.2 m/s when unknown
        indoor_c: Indoor air temperature (default 21 °C)
        outdoor_c: Outdoor air temperature (default: indoor, so no stack)
        cfg: Simulation tunables

    Returns:
        ManualVentilation with mode and the added ACH (``manual_open_ach``)
    """
    volume = max(0.0, _finite_or(volume_m3, 0.0))
    room_height = max(0.1, _finite_or(room_height_m, 2.6))
    stack_height = max(cfg.min_stack_height_m, _finite_or(stack_height_m, room_height * cfg.stack_height_ratio))
    wind = max(0.0, _finite_or(wind_ms, cfg.default_wind_ms))
    effective_wind = wind * cfg.wind_shelter_factor
    indoor = _finite_or(indoor_c, 21.0)
    outdoor = _finite_or(outdoor_c, indoor)
    roof_area = max(0.0, _finite_or(roof_opening_area_m2, 0.0))

    wind_pressure = 0.5 * cfg.rho_air * effective_wind * effective_wind
    mean_air_k = max(260.0, KELVIN_OFFSET + (indoor + outdoor) / 2)
    stack_pressure = cfg.rho_air * GRAVITY_MS2 * stack_height * abs(indoor - outdoor) / mean_air_k

    area_by_face: dict[FaceId, float] = {}
    for face in FACES:
        face_opening = opened.by_face.get(face.id)
        area = face_opening.open_area_m2 if face_opening is not None else 0.0
        area_by_face[face.id] = max(0.0, _finite_or(area, 0.0))
    total_area = sum(area_by_face.values())
    open_faces = tuple(face_id for face_id, area in area_by_face.items() if area > _EPS)

    if volume <= 0 or total_area + roof_area <= _EPS:
        return ManualVentilation(
            mode=ManualVentilationMode.NONE,
            wind_ms=wind,
            effective_wind_ms=effective_wind,
            wind_pressure_pa=wind_pressure,
            stack_pressure_pa=stack_pressure,
        )

    ns_area = equivalent_opening_area(area_by_face[FaceId.NORTH], area_by_face[FaceId.SOUTH])
    ew_area = equivalent_opening_area(area_by_face[FaceId.EAST], area_by_face[FaceId.WEST])
    cross_area = max(ns_area, ew_area)
    cross_pair = None
    if cross_area > _EPS:
        cross_pair = "north-south" if ns_area >= ew_area else "east-west"

    single_sided_pressure = wind_pressure * cfg.pressure_coeff_single_sided
    residual_area = total_area
    facade_pressure = single_sided_pressure
    if total_area <= _EPS:
        mode = ManualVentilationMode.ROOF_ONLY
        residual_area = facade_pressure = facade_flow = 0.0
    elif cross_pair is not None:
        mode = ManualVentilationMode.CROSS
        facade_pressure = wind_pressure * cfg.pressure_coeff_cross
        residual_area = max(0.0, total_area - cross_area * 2)
        facade_flow = pressure_driven_flow_rate(cross_area, facade_pressure, cfg) + pressure_driven_flow_rate(
            residual_area, single_sided_pressure, cfg
        )
    elif len(open_faces) >= 2:
        mode = ManualVentilationMode.MULTI_FACE
        facade_pressure = wind_pressure * cfg.pressure_coeff_multi_face
        facade_flow = pressure_driven_flow_rate(total_area, facade_pressure, cfg)
    else:
        mode = ManualVentilationMode.SINGLE_SIDED
        facade_flow = pressure_driven_flow_rate(total_area, facade_pressure, cfg)

    roof_pressure = roof_flow = 0.0
    if roof_area > _EPS:
        if total_area > _EPS:
            roof_pressure = wind_pressure * cfg.pressure_coeff_roof_to_facade + stack_pressure
            roof_flow = pressure_driven_flow_rate(equivalent_opening_area(total_area, roof_area), roof_pressure, cfg)
        else:
            # make-up air through background leakage
            makeup_area = max(cfg.min_makeup_area_m2, volume / room_height * cfg.makeup_area_ratio_of_floor)
            roof_pressure = wind_pressure * cfg.pressure_coeff_roof_only + stack_pressure
            roof_flow = pressure_driven_flow_rate(equivalent_opening_area(roof_area, makeup_area), roof_pressure, cfg)

    if roof_flow > 0 and facade_flow > 0:
        flow = math.hypot(facade_flow, roof_flow)
    else:
        flow = facade_flow + roof_flow
    ach = flow * 3600 / volume

    return ManualVentilation(
        mode=mode,
        open_face_ids=open_faces,
        total_open_area_m2=total_area,
        roof_opening_area_m2=roof_area,
        cross_area_m2=cross_area if cross_pair is not None else 0.0,
        residual_area_m2=residual_area,
        active_cross_pair=cross_pair,
        wind_ms=wind,
        effective_wind_ms=effective_wind,
        wind_pressure_pa=wind_pressure,
        stack_pressure_pa=stack_pressure,
        facade_pressure_pa=facade_pressure,
        roof_pressure_pa=roof_pressure,
        facade_flow_m3s=facade_flow,
        roof_flow_m3s=roof_flow,
        flow_rate_m3s=flow,
        manual_open_ach=max(0.0, ach) if math.isfinite(ach) else 0.0,
    )


# ---------------------------------------------------------------------------
# Per-step resolution
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ManualOpenings:
    """Manually opened windows and rooflight, fixed for the whole run."""

    opened: OpenedWindowArea
    volume_m3: float
    roof_opening_area_m2: float = 0.0
    room_height_m: float | None = None
    stack_height_m: float | None = None
    fixed_wind_ms: float | None = None  # overrides the forcing wind when set


@dataclass(frozen=True)
class VentilationSettings:
    ach_total: float = 0.3  # preset base rate
    heat_recovery_efficiency: float = 0.0
    adaptive_enabled: bool = False
    night_purge_enabled: bool = False
    mvhr_control_enabled: bool = False
    manual_open_ach: float = 0.0  # used when no openings are given
    manual: ManualOpenings | None = None

    @property
    def mvhr_control_active(self) -> bool:
        return self.mvhr_control_enabled and not self.adaptive_enabled and self.heat_recovery_efficiency > 0

    @classmethod
    def from_preset(
        cls,
        preset_id: str,
        *,
        night_purge_enabled: bool = False,
        mvhr_control_enabled: bool = False,
        manual_open_ach: float = 0.0,
        manual: ManualOpenings | None = None,
    ) -> "VentilationSettings":
        preset = get_ventilation_preset(preset_id)
        return cls(
            ach_total=preset.ach_total,
            heat_recovery_efficiency=preset.heat_recovery_efficiency,
            adaptive_enabled=preset.is_adaptive,
            night_purge_enabled=night_purge_enabled,
            mvhr_control_enabled=mvhr_control_enabled,
            manual_open_ach=manual_open_ach,
            manual=manual,
        )


@dataclass(frozen=True)
class VentilationState:
    ach_total: float
    ach_window: float
    heat_recovery_efficiency: float
    manual_open_ach: float = 0.0
    manual: ManualVentilation | None = None
    adaptive_reason: AdaptiveReason | None = None
    mvhr_mode: MvhrMode | None = None
    mvhr_bypass_active: bool = False
    night_purge_active: bool = False

    @property
    def vent_active(self) -> bool:
        return self.ach_window > 0


def resolve_ventilation(
    settings: VentilationSettings,
    indoor_c: float,
    outdoor_c: float,
    hour_of_day: float,
    wind_ms: float | None = None,
    comfort: ComfortBand = ComfortBand(),
    cfg: SimConfig = DEFAULT,
) -> VentilationState:
    """Air change rate and effective heat recovery for one step."""
    if settings.adaptive_enabled:
        base = adaptive_ventilation_state_for_step(indoor_c, outdoor_c, hour_of_day, comfort, cfg)
    elif settings.mvhr_control_active:
        base = mvhr_ventilation_state_for_step(indoor_c, outdoor_c, hour_of_day, settings.ach_total, comfort, cfg)
    else:
        base = ventilation_state_for_step(settings.ach_total, hour_of_day, settings.night_purge_enabled, cfg)

    manual_vent: ManualVentilation | None = None
    manual_ach = max(0.0, _finite_or(settings.manual_open_ach, 0.0))
    if settings.manual is not None:
        openings = settings.manual
        manual_vent = calculate_manual_window_ventilation(
            openings.opened,
            openings.volume_m3,
            roof_opening_area_m2=openings.roof_opening_area_m2,
            room_height_m=openings.room_height_m,
            stack_height_m=openings.stack_height_m,
            wind_ms=openings.fixed_wind_ms if openings.fixed_wind_ms is not None else wind_ms,
            indoor_c=indoor_c,
            outdoor_c=outdoor_c,
            cfg=cfg,
        )
        manual_ach = manual_vent.manual_open_ach

    ach_total = base.ach_total + manual_ach
    night_purge = (
        not settings.mvhr_control_active
        and not settings.adaptive_enabled
        and settings.night_purge_enabled
        and is_night_hour(hour_of_day, cfg)
    )
    window_ventilation = settings.adaptive_enabled or manual_ach > 0 or night_purge
    heat_recovery = 0.0
    if not (window_ventilation or base.mvhr_bypass_active):
        heat_recovery = max(0.0, min(1.0, _finite_or(settings.heat_recovery_efficiency, 0.0)))

    return VentilationState(
        ach_total=ach_total,
        ach_window=max(0.0, ach_total - cfg.infiltration_ach),
        heat_recovery_efficiency=heat_recovery,
        manual_open_ach=manual_ach,
        manual=manual_vent,
        adaptive_reason=base.adaptive_reason,
        mvhr_mode=base.mvhr_mode,
        mvhr_bypass_active=base.mvhr_bypass_active,
        night_purge_active=night_purge,
    )


# ---------------------------------------------------------------------------
# Draught comfort
# ---------------------------------------------------------------------------


class DraughtRisk(StrEnum):
    LOW = "low"
    SLIGHT = "slight"
    MODERATE = "moderate"
    HIGH = "high"


@dataclass(frozen=True)
class VentilationComfort:
    ach_total: float
    delta_t_c: float
    apparent_cooling_c: float
    perceived_temp_c: float
    risk: DraughtRisk
    is_likely_uncomfortable: bool = field(default=False)


def assess_ventilation_comfort(
    ach_total: float,
    indoor_c: float,
    outdoor_c: float | None = None,
    cfg: SimConfig = DEFAULT,
) -> VentilationComfort:
    """Rough draught risk from airflow above background and the indoor/outdoor difference."""
    ach = max(0.0, _finite_or(ach_total, 0.0))
    indoor = _finite_or(indoor_c, 0.0)
    outdoor = _finite_or(outdoor_c, indoor)
    delta_t = indoor - outdoor
    above_background = max(0.0, ach - cfg.infiltration_ach)

    if above_background <= 0.3:
        base_cooling = 0.0
    elif above_background <= 2:
        base_cooling = (above_background - 0.3) * 0.18
    else:
        base_cooling = 0.31 + (above_background - 2) * 0.24
    # cooler incoming air is felt more
    temp_factor = 0.25 if delta_t <= 0 else min(1.6, 0.35 + delta_t / 10)
    apparent = min(3.5, max(0.0, base_cooling * temp_factor))

    if apparent >= 1.5:
        risk = DraughtRisk.HIGH
    elif apparent >= 0.8:
        risk = DraughtRisk.MODERATE
    elif apparent >= 0.3:
        risk = DraughtRisk.SLIGHT
    else:
        risk = DraughtRisk.LOW

    return VentilationComfort(
        ach_total=ach,
        delta_t_c=delta_t,
        apparent_cooling_c=apparent,
        perceived_temp_c=indoor - apparent,
        risk=risk,
        is_likely_uncomfortable=apparent >= 1,
    )
