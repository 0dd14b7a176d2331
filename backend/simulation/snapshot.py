"""Instantaneous room heat balance, solar gains and daylight.

``compute_snapshot`` is a pure function: the same inputs always give the same
snapshot. Malformed forcing (NaN / inf) reads as zero radiation and zero
temperature difference rather than propagating.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from analysis.thermal.rc_model import compute_steady_state_temperature
from core.models import BuildingDimensions, FaceId, Location, UValues, Window
from simulation.config import DEFAULT, SimConfig
from simulation.shading import beam_shading_factor
from simulation.solar import (
    SunPosition,
    cardinal_from_azimuth,
    clear_sky_components,
    plane_irradiance_tilted,
    safe_radiation,
    sun_position,
)

VERTICAL_TILT_DEG = 90.0
HORIZONTAL_TILT_DEG = 0.0


@dataclass(frozen=True)
class Radiation:
    """Measured or modelled horizontal irradiance (W/m²)."""

    dni: float
    dhi: float
    ghi: float


@dataclass(frozen=True)
class SnapshotInputs:
    dims: BuildingDimensions
    u_values: UValues
    location: Location
    when: datetime  # naive = local standard time at location.tz_hours
    t_out_c: float
    windows: tuple[Window, ...] = ()
    ach_total: float = 0.3
    heat_recovery_efficiency: float = 0.0
    internal_gain_w: float = 180.0
    g_glass: float = 0.4
    ground_albedo: float = 0.25
    auto_blinds: bool = False
    blinds_threshold_w_m2: float = 400.0
    blinds_reduction: float = 0.5
    rooflight_area_m2: float = 0.0
    rooflight_u_value: float | None = None  # defaults to window U
    rooflight_g_value: float | None = None  # defaults to g_glass
    radiation: Radiation | None = None  # clear sky when absent
    sun: SunPosition | None = None
    t_room_override: float | None = None


@dataclass(frozen=True)
class UAComponents:
    walls: float = 0.0
    windows: float = 0.0
    rooflight: float = 0.0
    roof: float = 0.0
    floor: float = 0.0

    @property
    def total(self) -> float:
        return self.walls + self.windows + self.rooflight + self.roof + self.floor


@dataclass(frozen=True)
class ElementLosses:
    walls: float = 0.0
    windows: float = 0.0
    rooflight: float = 0.0
    roof: float = 0.0
    floor: float = 0.0


def _zero_by_face() -> dict[FaceId, float]:
    return {face_id: 0.0 for face_id in FaceId}


@dataclass(frozen=True)
class Snapshot:
    t_room_c: float
    t_room_steady_c: float
    t_out_c: float
    q_solar_w: float
    q_solar_rooflight_w: float
    ua_out: float  # fabric W/K
    ua_vent: float  # ventilation W/K
    ua_components: UAComponents
    losses: ElementLosses
    q_loss_fabric_w: float
    q_loss_vent_w: float
    altitude_deg: float
    azimuth_deg: float
    dni: float
    dhi: float
    ghi: float
    window_area_m2: float
    rooflight_area_m2: float
    opaque_wall_area_m2: float
    floor_area_m2: float
    roof_area_m2: float
    illuminance_lux: int
    q_solar_by_face: dict[FaceId, float] = field(default_factory=_zero_by_face)
    i_beam_by_face: dict[FaceId, float] = field(default_factory=_zero_by_face)

    @property
    def ua_total(self) -> float:
        return self.ua_out + self.ua_vent

    @property
    def q_loss_total_w(self) -> float:
        return self.q_loss_fabric_w + self.q_loss_vent_w


def _finite_or(value: float | None, fallback: float) -> float:
    if value is None or not math.isfinite(value):
        return fallback
    return value


def ventilation_conductance(
    ach_total: float, volume_m3: float, heat_recovery_efficiency: float = 0.0, cfg: SimConfig = DEFAULT
) -> float:
    """UA_vent = 0.33 · ACH · V · (1 - η) in W/K."""
    efficiency = max(0.0, min(1.0, _finite_or(heat_recovery_efficiency, 0.0)))
    ach = max(0.0, _finite_or(ach_total, 0.0))
    return cfg.air_heat_capacity_wh_m3k * ach * volume_m3 * (1 - efficiency)


def compute_snapshot(inputs: SnapshotInputs, cfg: SimConfig = DEFAULT) -> Snapshot:
    """Heat balance of the room at one instant.

    Solar gain per window is (beam × shading + diffuse + ground) × area × g,
    with auto-blinds cutting the whole window when incident irradiance passes
    the threshold. The rooflight sees horizontal irradiance. Conductive losses
    are U·A·(T_room - T_out) per element; ventilation uses 0.33·ACH·V·(1 - η).

    Args:
        inputs: Room, forcing and ventilation for this instant
        cfg: Simulation tunables

    Returns:
        Snapshot with gains, conductances, losses and daylight
    """
    dims = inputs.dims
    volume = dims.volume_m3
    ua_vent = ventilation_conductance(inputs.ach_total, volume, inputs.heat_recovery_efficiency, cfg)

    sun = inputs.sun or sun_position(
        inputs.when, inputs.location.latitude, inputs.location.longitude, inputs.location.tz_hours
    )
    altitude, azimuth = sun.altitude_deg, sun.azimuth_deg
    if inputs.radiation is not None:
        dni = safe_radiation(inputs.radiation.dni)
        dhi = safe_radiation(inputs.radiation.dhi)
        ghi = safe_radiation(inputs.radiation.ghi)
    else:
        clear = clear_sky_components(altitude)
        dni, dhi, ghi = clear.dni, clear.dhi, clear.ghi

    wall_areas = {
        FaceId.NORTH: dims.width * dims.height,
        FaceId.SOUTH: dims.width * dims.height,
        FaceId.EAST: dims.depth * dims.height,
        FaceId.WEST: dims.depth * dims.height,
    }
    q_solar_by_face = _zero_by_face()
    i_beam_by_face = _zero_by_face()
    window_area = 0.0
    q_solar = 0.0

    for window in inputs.windows:
        irradiance = plane_irradiance_tilted(
            VERTICAL_TILT_DEG, window.azimuth_deg, altitude, azimuth, dni, dhi, ghi, inputs.ground_albedo
        )
        beam_shaded = irradiance.beam * beam_shading_factor(window, sun)
        blinds = 1.0
        if inputs.auto_blinds and irradiance.total > inputs.blinds_threshold_w_m2:
            blinds = 1 - inputs.blinds_reduction
        effective = (beam_shaded + irradiance.diffuse + irradiance.ground) * blinds

        area = window.area_m2
        window_area += area
        gain = effective * inputs.g_glass * area
        q_solar += gain
        cardinal = cardinal_from_azimuth(window.azimuth_deg)
        if cardinal is not None:
            face_id = FaceId(cardinal)
            q_solar_by_face[face_id] += gain
            i_beam_by_face[face_id] = irradiance.beam
            wall_areas[face_id] = max(0.0, wall_areas[face_id] - area)

    rooflight_area = max(0.0, _finite_or(inputs.rooflight_area_m2, 0.0))
    rooflight_u = _finite_or(inputs.rooflight_u_value, inputs.u_values.window)
    rooflight_g = _finite_or(inputs.rooflight_g_value, inputs.g_glass)
    q_solar_rooflight = 0.0
    if rooflight_area > 1e-6:
        horizontal = plane_irradiance_tilted(HORIZONTAL_TILT_DEG, 0.0, altitude, azimuth, dni, dhi, ghi)
        q_solar_rooflight = horizontal.total * rooflight_g * rooflight_area
        q_solar += q_solar_rooflight

    opaque_area = sum(wall_areas.values())
    floor_area = dims.floor_area_m2
    roof_area = max(0.0, floor_area - rooflight_area)
    ua = UAComponents(
        walls=inputs.u_values.wall * opaque_area,
        windows=inputs.u_values.window * window_area,
        rooflight=rooflight_u * rooflight_area,
        roof=inputs.u_values.roof * roof_area,
        floor=inputs.u_values.floor * floor_area,
    )
    ua_out = ua.total

    t_override = _finite_or(inputs.t_room_override, math.nan)
    t_out = _finite_or(inputs.t_out_c, t_override if math.isfinite(t_override) else 0.0)
    internal = _finite_or(inputs.internal_gain_w, 0.0)
    t_steady = compute_steady_state_temperature(q_solar + internal, t_out, (ua_out + ua_vent) or 1e-6)
    t_room = t_override if math.isfinite(t_override) else t_steady

    delta_t = t_room - t_out
    losses = ElementLosses(
        walls=ua.walls * delta_t,
        windows=ua.windows * delta_t,
        rooflight=ua.rooflight * delta_t,
        roof=ua.roof * delta_t,
        floor=ua.floor * delta_t,
    )

    return Snapshot(
        t_room_c=t_room,
        t_room_steady_c=t_steady,
        t_out_c=t_out,
        q_solar_w=q_solar,
        q_solar_rooflight_w=q_solar_rooflight,
        ua_out=ua_out,
        ua_vent=ua_vent,
        ua_components=ua,
        losses=losses,
        q_loss_fabric_w=ua_out * delta_t,
        q_loss_vent_w=ua_vent * delta_t,
        altitude_deg=altitude,
        azimuth_deg=azimuth,
        dni=dni,
        dhi=dhi,
        ghi=ghi,
        window_area_m2=window_area,
        rooflight_area_m2=rooflight_area,
        opaque_wall_area_m2=opaque_area,
        floor_area_m2=floor_area,
        roof_area_m2=roof_area,
        illuminance_lux=calculate_desk_illuminance(ghi, window_area, floor_area, inputs.g_glass, dims.depth, cfg),
        q_solar_by_face=q_solar_by_face,
        i_beam_by_face=i_beam_by_face,
    )


# ---------------------------------------------------------------------------
# Daylight
# ---------------------------------------------------------------------------


def calculate_desk_illuminance(
    ghi: float,
    window_area_m2: float,
    floor_area_m2: float,
    g_glass: float,
    room_depth_m: float,
    cfg: SimConfig = DEFAULT,
) -> int:
    """Desk-height illuminance at the room centre (lux).

    Simplified daylight factor DF = A_win · VLT · sky factor / (A_floor · room
    factor), with VLT estimated from the g-value and a fall-off toward the back
    of the room.
    """
    if not math.isfinite(ghi) or ghi <= 0 or floor_area_m2 <= 0:
        return 0
    outdoor_lux = ghi * cfg.luminous_efficacy_lm_w
    vlt = min(0.9, g_glass * cfg.vlt_to_shgc_ratio)
    daylight_factor = window_area_m2 * vlt * cfg.daylight_sky_factor / (floor_area_m2 * cfg.daylight_room_factor)
    depth_correction = max(0.3, 1 - room_depth_m / 2 * 0.1)
    return round(max(0.0, outdoor_lux * daylight_factor * depth_correction))


class IlluminanceLevel(StrEnum):
    DIM = "dim"
    ADEQUATE = "adequate"
    GOOD = "good"
    BRIGHT = "bright"
    VERY_BRIGHT = "very_bright"


LUX_THRESHOLDS: tuple[tuple[float, IlluminanceLevel, str], ...] = (
    (100, IlluminanceLevel.DIM, "Artificial light needed"),
    (300, IlluminanceLevel.ADEQUATE, "Casual tasks"),
    (500, IlluminanceLevel.GOOD, "Office work"),
    (1000, IlluminanceLevel.BRIGHT, "Detailed tasks"),
)


@dataclass(frozen=True)
class IlluminanceClass:
    level: IlluminanceLevel
    description: str


def classify_illuminance(lux: float) -> IlluminanceClass:
    for limit, level, description in LUX_THRESHOLDS:
        if lux < limit:
            return IlluminanceClass(level, description)
    return IlluminanceClass(IlluminanceLevel.VERY_BRIGHT, "May need shading")
