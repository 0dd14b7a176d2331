"""Simulation module - solar geometry, envelope, ventilation and room heat balance.

The time-stepper lives in ``simulation.stepper``; import it from there.
"""

from simulation.config import DEFAULT as DEFAULT_SIM_CONFIG
from simulation.config import SimConfig
from simulation.envelope import (
    OpenedWindowArea,
    ResolvedRooflight,
    build_windows_from_face_state,
    calculate_opened_window_area,
    resolve_rooflight_config,
)
from simulation.snapshot import Radiation, Snapshot, SnapshotInputs, compute_snapshot
from simulation.solar import SunPosition, day_sun_times, plane_irradiance_tilted, sun_position
from simulation.ventilation import VentilationSettings, VentilationState, resolve_ventilation

__all__ = [
    "DEFAULT_SIM_CONFIG",
    "OpenedWindowArea",
    "Radiation",
    "ResolvedRooflight",
    "SimConfig",
    "Snapshot",
    "SnapshotInputs",
    "SunPosition",
    "VentilationSettings",
    "VentilationState",
    "build_windows_from_face_state",
    "calculate_opened_window_area",
    "compute_snapshot",
    "day_sun_times",
    "plane_irradiance_tilted",
    "resolve_rooflight_config",
    "resolve_ventilation",
    "sun_position",
]
