"""FastAPI entry point - thin layer over the simulation core."""

import asyncio
import dataclasses
import logging
import os
from datetime import date, datetime
from typing import Any, Literal

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from analysis.annual import compute_annual_metrics, summarize_day
from analysis.cost_carbon import DEFAULT_LETI_TARGET, LETI_TARGETS, compare_to_leti, compute_cost_carbon_summary
from core.models import (
    BuildingDimensions,
    ComfortBand,
    EnvelopeState,
    FaceConfig,
    FaceId,
    Location,
    RooflightConfig,
    UValues,
    WindowSegmentState,
    next_window_segment_state,
    normalize_window_segment_state,
)
from core.presets import (
    DEFAULT_SITE,
    DEFAULT_U_VALUE_PRESET,
    DEFAULT_VENTILATION_PRESET,
    FACES,
    U_VALUE_PRESETS,
    VENTILATION_PRESETS,
    get_u_value_preset,
)
from data.climate import ManualWeatherSettings
from data.weather import WeatherProvider, forcing_at
from services.simulation_cache import SimulationCache
from services.weather_loader import WEATHER_FILE_URL, WeatherLoader, WeatherLoadResult, epw_location, provider_for_mode
from simulation.config import DEFAULT as DEFAULT_SIM_CONFIG
from simulation.snapshot import Radiation, SnapshotInputs, classify_illuminance, compute_snapshot
from simulation.stepper import (
    AnnualSimulation,
    DaySimulation,
    PvModel,
    RoomModel,
    SimulationSettings,
    build_room_model,
    manual_openings_for,
    simulate_annual,
    simulate_day,
)
from simulation.ventilation import (
    VentilationSettings,
    VentilationState,
    assess_ventilation_comfort,
    resolve_ventilation,
)

logging.basicConfig(level=logging.WARNING, format="%(name)s | %(message)s")
logging.getLogger("simulation.stepper").setLevel(logging.INFO)
logging.getLogger("services.weather_loader").setLevel(logging.INFO)

WEATHER_FILE = os.environ.get("ROOM_SIM_WEATHER_FILE", WEATHER_FILE_URL)

app = FastAPI(title="Room Comfort Simulation API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_day_cache: SimulationCache[DaySimulation] = SimulationCache(max_entries=32)
_annual_cache: SimulationCache[AnnualSimulation] = SimulationCache(max_entries=4)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LocationIn(BaseModel):
    latitude: float = DEFAULT_SITE.latitude
    longitude: float = DEFAULT_SITE.longitude
    tz_hours: float = DEFAULT_SITE.tz_hours
    elevation_m: float = DEFAULT_SITE.elevation_m
    name: str = DEFAULT_SITE.name

    def to_location(self) -> Location:
        return Location(
            latitude=self.latitude,
            longitude=self.longitude,
            tz_hours=self.tz_hours,  # type: ignore[arg-type]
            elevation_m=self.elevation_m,
            name=self.name,
        ).normalized()


class FaceIn(BaseModel):
    glazing: float = 0.0
    overhang: float = 0.0
    fin: float = 0.0
    h_fin: float = 0.0
    cill_lift: float = 0.0
    head_drop: float = 0.0
    window_center_ratio: float = 0.0


class DimensionsIn(BaseModel):
    width: float = Field(default=2.4, gt=0)
    depth: float = Field(default=4.8, gt=0)
    height: float = Field(default=2.6, gt=0)


class RooflightIn(BaseModel):
    width: float = 1.0
    depth: float = 1.0
    open_height: float = 0.0
    u_value: float | None = None
    g_value: float | None = None


class OpenSegmentIn(BaseModel):
    face: FaceId
    leaf: int
    state: int = WindowSegmentState.TOP_HUNG


class EnvelopeIn(BaseModel):
    faces: dict[FaceId, FaceIn] = Field(default_factory=dict)
    orientation_deg: float = 0.0
    dimensions: DimensionsIn = Field(default_factory=DimensionsIn)
    rooflight: RooflightIn | None = None
    open_segments: list[OpenSegmentIn] = Field(default_factory=list)
    g_glass: float = DEFAULT_SIM_CONFIG.g_glass
    internal_gain_w: float = DEFAULT_SIM_CONFIG.internal_gain_w
    ground_albedo: float = DEFAULT_SIM_CONFIG.ground_albedo
    auto_blinds: bool = False
    blinds_threshold_w_m2: float = DEFAULT_SIM_CONFIG.blinds_threshold_w_m2
    blinds_reduction: float = DEFAULT_SIM_CONFIG.blinds_reduction

    def to_dimensions(self) -> BuildingDimensions:
        return BuildingDimensions(self.dimensions.width, self.dimensions.depth, self.dimensions.height)

    def to_envelope_state(self) -> EnvelopeState:
        dims = self.to_dimensions()
        faces = {face_id: FaceConfig() for face_id in FaceId}
        for face_id, face in self.faces.items():
            faces[face_id] = FaceConfig(**face.model_dump()).clamped(dims.height)
        rooflight = None
        if self.rooflight is not None:
            rooflight = RooflightConfig(self.rooflight.width, self.rooflight.depth, self.rooflight.open_height)
        return EnvelopeState(
            faces=faces,
            rooflight=rooflight,
            open_segments={
                (segment.face, segment.leaf): normalize_window_segment_state(segment.state)
                for segment in self.open_segments
            },
            orientation_deg=self.orientation_deg,
        )

    def to_room_model(self, location: Location) -> RoomModel:
        return build_room_model(
            self.to_envelope_state(),
            self.to_dimensions(),
            location,
            rooflight_u_value=self.rooflight.u_value if self.rooflight else None,
            rooflight_g_value=self.rooflight.g_value if self.rooflight else None,
            g_glass=self.g_glass,
            internal_gain_w=self.internal_gain_w,
            ground_albedo=self.ground_albedo,
            auto_blinds=self.auto_blinds,
            blinds_threshold_w_m2=self.blinds_threshold_w_m2,
            blinds_reduction=self.blinds_reduction,
        )


class VentilationIn(BaseModel):
    preset: str = DEFAULT_VENTILATION_PRESET
    night_purge: bool = False
    mvhr_control: bool = False
    manual_open_ach: float = 0.0
    fixed_wind_ms: float | None = None


class UValuesIn(BaseModel):
    wall: float
    roof: float
    floor: float
    window: float


class ManualWeatherIn(BaseModel):
    summer_temp_c: float | None = 26.0
    winter_temp_c: float | None = 5.0
    diurnal_range_c: float = 8.0
    mean_wind_ms: float = 2.2
    cloud_cover_tenths: float = 4.0
    humidity_pct: float = 60.0


class PvIn(BaseModel):
    area_m2: float = 0.0
    efficiency: float = 0.2
    tilt_deg: float = 0.0
    surface_azimuth_deg: float = 180.0
    ground_albedo: float = 0.2


class SimulationRequest(BaseModel):
    location: LocationIn = Field(default_factory=LocationIn)
    envelope: EnvelopeIn = Field(default_factory=EnvelopeIn)
    u_value_preset: str = DEFAULT_U_VALUE_PRESET
    u_values: UValuesIn | None = None  # overrides the preset
    ventilation: VentilationIn = Field(default_factory=VentilationIn)
    weather_mode: Literal["epw", "climatology", "manual"] = "epw"
    manual_weather: ManualWeatherIn = Field(default_factory=ManualWeatherIn)
    comfort_min_c: float = DEFAULT_SIM_CONFIG.comfort_min_c
    comfort_max_c: float = DEFAULT_SIM_CONFIG.comfort_max_c
    hvac_enabled: bool = True
    start_temp_c: float | None = None
    pv: PvIn | None = None


class SnapshotRequest(SimulationRequest):
    when: datetime
    t_out_c: float | None = None  # forcing temperature when omitted
    t_room_c: float | None = None  # steady state when omitted


class DayRequest(SimulationRequest):
    day: date


class AnnualRequest(SimulationRequest):
    include_points: bool = False


class CostCarbonRequest(BaseModel):
    heating_thermal_kwh: float
    cooling_thermal_kwh: float
    days: float = Field(default=1, gt=0)
    on_site_solar_kwh: float = 0.0
    floor_area_m2: float | None = None
    leti_target: str = DEFAULT_LETI_TARGET


class WindowStateRequest(BaseModel):
    state: int | float | bool | None = None


# ---------------------------------------------------------------------------
# Request -> core objects
# ---------------------------------------------------------------------------


async def _load_weather() -> WeatherLoadResult:
    return await WeatherLoader.load(WEATHER_FILE)


async def _resolve_weather(request: SimulationRequest) -> tuple[WeatherProvider, Location, str | None]:
    """Weather source, simulation site and any user-facing warning."""
    location = request.location.to_location()
    if request.weather_mode == "epw":
        loaded = await _load_weather()
        if loaded.dataset is not None:
            return loaded.provider, epw_location(loaded.dataset), None
        return loaded.provider, location, loaded.warning
    manual = ManualWeatherSettings(**request.manual_weather.model_dump())
    return provider_for_mode(request.weather_mode, location=location, manual=manual), location, None


def _settings_for(request: SimulationRequest) -> SimulationSettings:
    envelope = request.envelope
    dims = envelope.to_dimensions()
    if request.u_values is not None:
        u_values = UValues(**request.u_values.model_dump())
    else:
        u_values = get_u_value_preset(request.u_value_preset).values
    ventilation = VentilationSettings.from_preset(
        request.ventilation.preset,
        night_purge_enabled=request.ventilation.night_purge,
        mvhr_control_enabled=request.ventilation.mvhr_control,
        manual_open_ach=request.ventilation.manual_open_ach,
        manual=manual_openings_for(envelope.to_envelope_state(), dims, request.ventilation.fixed_wind_ms),
    )
    pv = PvModel(**request.pv.model_dump()) if request.pv is not None else None
    return SimulationSettings(
        u_values=u_values,
        ventilation=ventilation,
        comfort=ComfortBand(request.comfort_min_c, request.comfort_max_c),
        hvac_enabled=request.hvac_enabled,
        start_temp_c=request.start_temp_c,
        pv=pv,
    )


def _cache_key(kind: str, request: BaseModel, location: Location, warning: str | None) -> tuple[str, ...]:
    return (kind, request.model_dump_json(exclude={"include_points"}), WEATHER_FILE, repr(location), warning or "")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/presets")
def get_presets() -> dict[str, Any]:
    return {
        "faces": [dataclasses.asdict(face) for face in FACES],
        "u_value_presets": {key: dataclasses.asdict(preset) for key, preset in U_VALUE_PRESETS.items()},
        "ventilation_presets": {key: dataclasses.asdict(preset) for key, preset in VENTILATION_PRESETS.items()},
        "leti_targets": {key: dataclasses.asdict(target) for key, target in LETI_TARGETS.items()},
        "default_site": dataclasses.asdict(DEFAULT_SITE),
        "defaults": {
            "u_value_preset": DEFAULT_U_VALUE_PRESET,
            "ventilation_preset": DEFAULT_VENTILATION_PRESET,
            "leti_target": DEFAULT_LETI_TARGET,
        },
    }


@app.get("/weather/status")
async def get_weather_status() -> dict[str, Any]:
    loaded = await _load_weather()
    if loaded.dataset is not None:
        return {
            "using_epw": True,
            "name": loaded.dataset.meta.name,
            "summary": loaded.dataset.meta.name,
            "description": "Real hourly weather file: measured temperature + sunlight; cloud effects already included.",
            "warning": None,
            "validation_warnings": loaded.validation.warnings if loaded.validation else [],
        }
    return {
        "using_epw": False,
        "name": None,
        "summary": "Simplified (demo)",
        "description": "Simplified temperature curve with clear-sky sunlight. Not real weather (demo/fallback).",
        "warning": loaded.warning,
        "validation_warnings": [],
    }


@app.post("/snapshot")
async def post_snapshot(request: SnapshotRequest) -> dict[str, Any]:
    provider, location, warning = await _resolve_weather(request)
    model = request.envelope.to_room_model(location)
    settings = _settings_for(request)
    forcing = forcing_at(request.when, provider)
    t_out = request.t_out_c if request.t_out_c is not None else forcing.t_out_c

    def ventilation_at(indoor_c: float) -> VentilationState:
        return resolve_ventilation(
            settings.ventilation, indoor_c, t_out, request.when.hour, forcing.wind_ms, settings.comfort
        )

    def inputs_for(vent: VentilationState, t_room_c: float | None) -> SnapshotInputs:
        return SnapshotInputs(
            dims=model.dims,
            u_values=settings.u_values,
            location=model.location,
            when=request.when,
            t_out_c=t_out,
            windows=model.windows,
            ach_total=vent.ach_total,
            heat_recovery_efficiency=vent.heat_recovery_efficiency,
            internal_gain_w=model.internal_gain_w,
            g_glass=model.g_glass,
            ground_albedo=model.ground_albedo,
            auto_blinds=model.auto_blinds,
            blinds_threshold_w_m2=model.blinds_threshold_w_m2,
            blinds_reduction=model.blinds_reduction,
            rooflight_area_m2=model.rooflight.area_m2 if model.rooflight else 0.0,
            rooflight_u_value=model.rooflight_u_value,
            rooflight_g_value=model.rooflight_g_value,
            radiation=Radiation(forcing.dni, forcing.dhi, forcing.ghi),
            t_room_override=t_room_c,
        )

    indoor = request.t_room_c
    if indoor is None:
        # steady state under the base ventilation, then held for the policy
        indoor = compute_snapshot(inputs_for(ventilation_at(t_out), None)).t_room_steady_c
    vent = ventilation_at(indoor)
    snapshot = compute_snapshot(inputs_for(vent, indoor))
    return {
        "snapshot": dataclasses.asdict(snapshot),
        "ua_total": snapshot.ua_total,
        "q_loss_total_w": snapshot.q_loss_total_w,
        "illuminance": dataclasses.asdict(classify_illuminance(snapshot.illuminance_lux)),
        "ventilation": dataclasses.asdict(vent),
        "ventilation_comfort": dataclasses.asdict(
            assess_ventilation_comfort(vent.ach_total, snapshot.t_room_c, snapshot.t_out_c)
        ),
        "forcing": dataclasses.asdict(forcing),
        "weather_warning": warning,
    }


@app.post("/simulate/day")
async def post_simulate_day(request: DayRequest) -> dict[str, Any]:
    provider, location, warning = await _resolve_weather(request)
    model = request.envelope.to_room_model(location)
    settings = _settings_for(request)
    result = await asyncio.to_thread(
        _day_cache.get_or_compute,
        _cache_key("day", request, location, warning),
        lambda: simulate_day(model, request.day, provider, settings),
    )
    summary = summarize_day(result.points, result.step_minutes)
    cost = None
    if summary is not None:
        cost = compute_cost_carbon_summary(
            summary.heating_energy_kwh, summary.cooling_energy_kwh, days=1, floor_area_m2=model.dims.floor_area_m2
        )
    return {
        "step_minutes": result.step_minutes,
        "points": [dataclasses.asdict(point) for point in result.points],
        "summary": dataclasses.asdict(summary) if summary else None,
        "cost_carbon": dataclasses.asdict(cost) if cost else None,
        "weather_warning": warning,
    }


@app.post("/simulate/annual")
async def post_simulate_annual(request: AnnualRequest) -> dict[str, Any]:
    provider, location, warning = await _resolve_weather(request)
    model = request.envelope.to_room_model(location)
    settings = _settings_for(request)
    result = await asyncio.to_thread(
        _annual_cache.get_or_compute,
        _cache_key("annual", request, location, warning),
        lambda: simulate_annual(model, provider, settings),
    )
    metrics = compute_annual_metrics(result.points, result.step_minutes, settings.comfort)
    cost = compute_cost_carbon_summary(
        result.heating_energy_kwh,
        result.cooling_energy_kwh,
        days=365,
        on_site_solar_kwh=result.pv_generation_kwh,
        floor_area_m2=model.dims.floor_area_m2,
    )
    leti = compare_to_leti(cost)
    return {
        "step_minutes": result.step_minutes,
        "heating_energy_kwh": result.heating_energy_kwh,
        "cooling_energy_kwh": result.cooling_energy_kwh,
        "ghi_kwh_m2": result.ghi_kwh_m2,
        "pv_plane_kwh_m2": result.pv_plane_kwh_m2,
        "pv_generation_kwh": result.pv_generation_kwh,
        "metrics": dataclasses.asdict(metrics),
        "cost_carbon": dataclasses.asdict(cost),
        "leti": {
            "meets_target": leti.meets_target,
            "target_kg_m2_year": leti.target.target_kg_m2_year,
        },
        "points": [dataclasses.asdict(point) for point in result.points] if request.include_points else None,
        "weather_warning": warning,
    }


@app.post("/cost-carbon")
def post_cost_carbon(request: CostCarbonRequest) -> dict[str, Any]:
    kwargs: dict[str, Any] = {}
    if request.floor_area_m2 is not None:
        kwargs["floor_area_m2"] = request.floor_area_m2
    summary = compute_cost_carbon_summary(
        request.heating_thermal_kwh,
        request.cooling_thermal_kwh,
        days=request.days,
        on_site_solar_kwh=request.on_site_solar_kwh,
        **kwargs,
    )
    leti = compare_to_leti(summary, request.leti_target)
    return {
        "summary": dataclasses.asdict(summary),
        "is_net_zero": summary.is_net_zero,
        "is_carbon_negative": summary.is_carbon_negative,
        "leti": {
            "label": leti.target.label,
            "target_kg_m2_year": leti.target.target_kg_m2_year,
            "meets_target": leti.meets_target,
            "excess_kg_m2_year": leti.excess_kg_m2_year,
        },
    }


@app.post("/windows/next-state")
def post_window_next_state(request: WindowStateRequest) -> dict[str, Any]:
    state = next_window_segment_state(request.state)
    return {"state": int(state), "name": state.name.lower()}
