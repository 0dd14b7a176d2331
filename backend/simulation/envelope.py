"""Envelope and opening geometry - windows, operable leaves and the rooflight."""

import math
from dataclasses import dataclass, field

from core.models import (
    BuildingDimensions,
    FaceConfig,
    FaceId,
    RooflightConfig,
    Window,
    clamp_glazing,
    clamp_unit_ratio,
    clamp_window_center_ratio,
    normalize_window_segment_state,
    resolve_window_opening_height,
    WindowSegmentState,
)
from core.presets import FACES
from simulation.config import DEFAULT, SimConfig
from simulation.solar import normalized_azimuth

MAX_OVERHANG_M = 1.5

WINDOW_FRAME_PROFILE_M = 0.05
WINDOW_OPEN_TRAVEL_M = 0.15
MAX_WINDOW_LEAF_WIDTH_M = 0.9
TOP_HUNG_OPENING_EFFECTIVENESS = 0.65

ROOFLIGHT_EDGE_OFFSET_M = 0.5  # clearance from inside of parapet
ROOFLIGHT_MAX_OPEN_M = 0.2
ROOFLIGHT_MIN_CLEAR_SPAN_M = 1.0


_EPS = 1e-6


def ratio_to_depth_m(ratio: float, building_height: float) -> float:
    """Fin ratios are carried as a depth scaled by the storey height."""
    return clamp_unit_ratio(ratio) * building_height


# ---------------------------------------------------------------------------
# Windows
# ---------------------------------------------------------------------------


def build_windows_from_face_state(
    face_state: dict[FaceId, FaceConfig],
    orientation_deg: float = 0.0,
    dims: BuildingDimensions = BuildingDimensions(),
) -> list[Window]:
    """One window per glazed face, azimuth rotated by the building orientation."""
    windows: list[Window] = []
    for face in FACES:
        config = face_state.get(face.id)
        if config is None or not config.glazing > 0:
            continue
        glazing = clamp_glazing(config.glazing)
        opening = resolve_window_opening_height(dims.height, config.cill_lift, config.head_drop)
        if opening.effective_height <= 0.001:
            continue
        fin = clamp_unit_ratio(config.fin)
        h_fin = 0.0 if fin > 0 else clamp_unit_ratio(config.h_fin)
        overhang = config.overhang if math.isfinite(config.overhang) else 0.0
        windows.append(
            Window(
                face_id=face.id,
                width=dims.face_span(face.id) * glazing,
                height=opening.effective_height,
                azimuth_deg=normalized_azimuth(face.azimuth_deg + orientation_deg),
                overhang_depth=max(0.0, min(MAX_OVERHANG_M, overhang)),
                fin_depth=ratio_to_depth_m(fin, dims.height),
                h_fin_depth=ratio_to_depth_m(h_fin, dims.height),
                center_ratio=clamp_window_center_ratio(glazing, config.window_center_ratio),
            )
        )
    return windows


@dataclass(frozen=True)
class LeafGeometry:
    leaf_count: int
    leaf_width: float
    clear_height: float
    top_hung_area_per_leaf: float
    turn_area_per_leaf: float


def operable_leaf_geometry(
    face_span: float,
    glazing: float,
    room_height: float,
    cill_lift: float = 0.0,
    head_drop: float = 0.0,
) -> LeafGeometry | None:
    """Split a window into equal operable leaves no wider than 0.9 m."""
    glazing = clamp_glazing(glazing)
    if glazing <= 0.001:
        return None
    window_height = resolve_window_opening_height(room_height, cill_lift, head_drop).effective_height
    if window_height <= 0.001:
        return None

    window_width = face_span * glazing
    frame = min(WINDOW_FRAME_PROFILE_M, window_width * 0.45, window_height * 0.45)
    clear_width = max(0.02, window_width - frame * 2)
    clear_height = max(0.02, window_height - frame * 2)
    leaf_count = max(1, math.ceil(clear_width / MAX_WINDOW_LEAF_WIDTH_M))
    mullion = frame if leaf_count > 1 else 0.0
    leaf_width = max(0.02, (clear_width - mullion * (leaf_count - 1)) / leaf_count)
    travel = min(WINDOW_OPEN_TRAVEL_M, clear_height)
    return LeafGeometry(
        leaf_count=leaf_count,
        leaf_width=leaf_width,
        clear_height=clear_height,
        top_hung_area_per_leaf=max(0.0, leaf_width * travel * TOP_HUNG_OPENING_EFFECTIVENESS),
        turn_area_per_leaf=max(0.0, leaf_width * clear_height),
    )


@dataclass(frozen=True)
class FaceOpening:
    open_area_m2: float = 0.0
    top_hung_area_m2: float = 0.0
    turn_area_m2: float = 0.0
    open_leaf_count: int = 0
    top_hung_leaf_count: int = 0
    turn_leaf_count: int = 0
    total_leaf_count: int = 0


@dataclass(frozen=True)
class OpenedWindowArea:
    total_open_area_m2: float = 0.0
    top_hung_area_m2: float = 0.0
    turn_area_m2: float = 0.0
    open_leaf_count: int = 0
    top_hung_leaf_count: int = 0
    turn_leaf_count: int = 0
    total_leaf_count: int = 0
    by_face: dict[FaceId, FaceOpening] = field(default_factory=dict)


def calculate_opened_window_area(
    face_state: dict[FaceId, FaceConfig],
    dims: BuildingDimensions,
    open_segments: dict[tuple[FaceId, int], WindowSegmentState],
) -> OpenedWindowArea:
    """Free opening area of every opened leaf.

    A TOP_HUNG leaf opens by the 150 mm travel at reduced effectiveness;
    a TURN leaf contributes its full clear area.
    """
    by_face: dict[FaceId, FaceOpening] = {}
    for face in FACES:
        config = face_state.get(face.id)
        geometry = (
            operable_leaf_geometry(
                dims.face_span(face.id), config.glazing, dims.height, config.cill_lift, config.head_drop
            )
            if config is not None
            else None
        )
        if geometry is None:
            by_face[face.id] = FaceOpening()
            continue

        top_hung = turn = 0
        for leaf_index in range(geometry.leaf_count):
            match normalize_window_segment_state(open_segments.get((face.id, leaf_index))):
                case WindowSegmentState.TOP_HUNG:
                    top_hung += 1
                case WindowSegmentState.TURN:
                    turn += 1
                case _:
                    pass
        top_hung_area = top_hung * geometry.top_hung_area_per_leaf
        turn_area = turn * geometry.turn_area_per_leaf
        by_face[face.id] = FaceOpening(
            open_area_m2=top_hung_area + turn_area,
            top_hung_area_m2=top_hung_area,
            turn_area_m2=turn_area,
            open_leaf_count=top_hung + turn,
            top_hung_leaf_count=top_hung,
            turn_leaf_count=turn,
            total_leaf_count=geometry.leaf_count,
        )

    faces = by_face.values()
    return OpenedWindowArea(
        total_open_area_m2=sum(f.open_area_m2 for f in faces),
        top_hung_area_m2=sum(f.top_hung_area_m2 for f in faces),
        turn_area_m2=sum(f.turn_area_m2 for f in faces),
        open_leaf_count=sum(f.open_leaf_count for f in faces),
        top_hung_leaf_count=sum(f.top_hung_leaf_count for f in faces),
        turn_leaf_count=sum(f.turn_leaf_count for f in faces),
        total_leaf_count=sum(f.total_leaf_count for f in faces),
        by_face=by_face,
    )


# ---------------------------------------------------------------------------
# Roof
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResolvedRooflight:
    width: float
    depth: float
    open_height: float
    opening_area_m2: float
    is_open: bool
    max_width: float
    max_depth: float
    inset_x: float  # from each side wall
    inset_z: float  # from each end wall

    @property
    def area_m2(self) -> float:
        return self.width * self.depth


def _finite_or(value: float, fallback: float) -> float:
    return value if math.isfinite(value) else fallback


def resolve_rooflight_config(config: RooflightConfig, dims: BuildingDimensions) -> ResolvedRooflight:
    """Clamp the rooflight to fit inside the parapet and derive its free opening area.

    The raised panel opens all round, so free area is perimeter × open height,
    never more than the panel itself.
    """
    min_span = ROOFLIGHT_MIN_CLEAR_SPAN_M
    max_width = max(min_span, dims.width - ROOFLIGHT_EDGE_OFFSET_M * 2)
    max_depth = max(min_span, dims.depth - ROOFLIGHT_EDGE_OFFSET_M * 2)
    width = max(min_span, min(_finite_or(config.width, min_span), max_width))
    depth = max(min_span, min(_finite_or(config.depth, min_span), max_depth))
    open_height = max(0.0, min(_finite_or(config.open_height, 0.0), ROOFLIGHT_MAX_OPEN_M))
    opening_area = min(2 * (width + depth) * open_height, width * depth)
    return ResolvedRooflight(
        width=width,
        depth=depth,
        open_height=open_height,
        opening_area_m2=max(0.0, opening_area),
        is_open=open_height > _EPS,
        max_width=max_width,
        max_depth=max_depth,
        inset_x=(dims.width - width) / 2,
        inset_z=(dims.depth - depth) / 2,
    )


# ---------------------------------------------------------------------------
# Opening area <-> air change rate
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OpeningAreaEstimate:
    area_m2: float
    sash_side_mm: int  # equivalent square sash
    casement_percent: int  # of a 600 x 600 mm casement


_STANDARD_CASEMENT_AREA_M2 = 0.36


def calculate_opening_area(ach_total: float, volume_m3: float, cfg: SimConfig = DEFAULT) -> OpeningAreaEstimate:
    """Free area needed for an air change rate, Q = Cd · A · v at the reference velocity."""
    flow_m3s = max(0.0, ach_total) * max(0.0, volume_m3) / 3600
    area = flow_m3s / (cfg.discharge_coefficient * cfg.reference_opening_velocity_ms)
    return OpeningAreaEstimate(
        area_m2=area,
        sash_side_mm=round(math.sqrt(area) * 1000),
        casement_percent=min(100, round(area / _STANDARD_CASEMENT_AREA_M2 * 100)),
    )


def calculate_ach_from_opening_area(opening_area_m2: float, volume_m3: float, cfg: SimConfig = DEFAULT) -> float:
    volume = max(0.0, _finite_or(volume_m3, 0.0))
    if volume <= 0:
        return 0.0
    area = max(0.0, _finite_or(opening_area_m2, 0.0))
    flow_m3s = cfg.discharge_coefficient * area * cfg.reference_opening_velocity_ms
    return flow_m3s * 3600 / volume
