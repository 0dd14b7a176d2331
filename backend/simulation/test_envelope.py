"""Tests for facade clamps, operable leaves and the rooflight."""

import math

from core.models import (
    BuildingDimensions,
    FaceConfig,
    FaceId,
    RooflightConfig,
    WindowSegmentState,
    clamp_glazing,
    next_window_segment_state,
    normalize_window_segment_state,
    resolve_window_opening_height,
)
from simulation.envelope import (
    build_windows_from_face_state,
    calculate_ach_from_opening_area,
    calculate_opened_window_area,
    calculate_opening_area,
    operable_leaf_geometry,
    resolve_rooflight_config,
)

DIMS = BuildingDimensions()  # 2.4 x 4.8 x 2.6 m


def south_glazed(glazing: float = 0.5) -> dict[FaceId, FaceConfig]:
    faces = {face_id: FaceConfig() for face_id in FaceId}
    faces[FaceId.SOUTH] = FaceConfig(glazing=glazing)
    return faces


# -----------------------------------------------------------------------------
# Face clamps
# -----------------------------------------------------------------------------


def test_glazing_clamp() -> None:
    assert clamp_glazing(1.2) == 0.8
    assert clamp_glazing(-0.1) == 0.0
    assert clamp_glazing(math.nan) == 0.0
    assert FaceConfig().with_glazing(0.95).glazing == 0.8


def test_clamped_face_is_idempotent() -> None:
    """Clamping twice gives the same face as clamping once."""
    raw = FaceConfig(glazing=3.0, overhang=4.0, fin=0.4, h_fin=0.7, cill_lift=5.0, head_drop=5.0, window_center_ratio=2)
    once = raw.clamped(DIMS.height)
    assert once.clamped(DIMS.height) == once
    assert once.glazing == 0.8
    assert once.overhang == 1.5
    assert once.h_fin == 0.0  # vertical fins win
    assert math.isclose(once.window_center_ratio, 0.2)


def test_fins_are_mutually_exclusive() -> None:
    face = FaceConfig().with_fin(0.5).with_h_fin(0.3)
    assert face.fin == 0.0 and face.h_fin == 0.3
    face = face.with_fin(0.2)
    assert face.fin == 0.2 and face.h_fin == 0.0


def test_window_opening_keeps_minimum_clear_height() -> None:
    opening = resolve_window_opening_height(2.6, cill_lift=2.0, head_drop=1.0)
    assert opening.cill_lift == 2.0
    assert math.isclose(opening.head_drop, 0.2)
    assert math.isclose(opening.effective_height, 0.4)


def test_window_segment_cycle() -> None:
    state = WindowSegmentState.CLOSED
    seen = []
    for _ in range(3):
        state = next_window_segment_state(state)
        seen.append(state)
    assert seen == [WindowSegmentState.TOP_HUNG, WindowSegmentState.TURN, WindowSegmentState.CLOSED]


def test_segment_state_normalisation() -> None:
    assert normalize_window_segment_state(True) == WindowSegmentState.TOP_HUNG
    assert normalize_window_segment_state(False) == WindowSegmentState.CLOSED
    assert normalize_window_segment_state(7) == WindowSegmentState.TURN
    assert normalize_window_segment_state(-3) == WindowSegmentState.CLOSED
    assert normalize_window_segment_state("junk") == WindowSegmentState.CLOSED
    assert normalize_window_segment_state(None) == WindowSegmentState.CLOSED
    assert normalize_window_segment_state(math.nan) == WindowSegmentState.CLOSED


# -----------------------------------------------------------------------------
# Windows and leaves
# -----------------------------------------------------------------------------


def test_build_windows_skips_unglazed_faces() -> None:
    faces = south_glazed(0.5)
    faces[FaceId.EAST] = FaceConfig(glazing=0.25, overhang=0.5, fin=0.5)
    windows = build_windows_from_face_state(faces, orientation_deg=0.0, dims=DIMS)
    assert [w.face_id for w in windows] == [FaceId.EAST, FaceId.SOUTH]

    south = windows[1]
    assert math.isclose(south.width, 1.2)
    assert math.isclose(south.height, 2.6)
    assert math.isclose(south.azimuth_deg, 180.0)
    east = windows[0]
    assert math.isclose(east.width, 1.2)
    assert math.isclose(east.fin_depth, 1.3)
    assert east.overhang_depth == 0.5


def test_build_windows_rotates_with_orientation() -> None:
    windows = build_windows_from_face_state(south_glazed(), orientation_deg=270.0, dims=DIMS)
    assert math.isclose(windows[0].azimuth_deg, 90.0)


def test_leaf_geometry() -> None:
    """A 1.2 m window splits into two leaves inside the frame."""
    geometry = operable_leaf_geometry(DIMS.width, 0.5, DIMS.height)
    assert geometry is not None
    assert geometry.leaf_count == 2
    assert math.isclose(geometry.leaf_width, 0.525)
    assert math.isclose(geometry.clear_height, 2.5)
    assert math.isclose(geometry.top_hung_area_per_leaf, 0.525 * 0.15 * 0.65)
    assert math.isclose(geometry.turn_area_per_leaf, 0.525 * 2.5)
    assert operable_leaf_geometry(DIMS.width, 0.0, DIMS.height) is None


def test_opened_window_area() -> None:
    segments = {
        (FaceId.SOUTH, 0): WindowSegmentState.TOP_HUNG,
        (FaceId.SOUTH, 1): WindowSegmentState.TURN,
        (FaceId.SOUTH, 5): WindowSegmentState.TURN,  # beyond the leaf count
        (FaceId.NORTH, 0): WindowSegmentState.TURN,  # unglazed face
    }
    opened = calculate_opened_window_area(south_glazed(), DIMS, segments)
    south = opened.by_face[FaceId.SOUTH]
    assert south.top_hung_leaf_count == 1
    assert south.turn_leaf_count == 1
    assert south.total_leaf_count == 2
    assert math.isclose(opened.total_open_area_m2, 0.525 * 0.15 * 0.65 + 0.525 * 2.5)
    assert opened.by_face[FaceId.NORTH].open_area_m2 == 0.0


def test_nothing_open() -> None:
    opened = calculate_opened_window_area(south_glazed(), DIMS, {})
    assert opened.total_open_area_m2 == 0.0
    assert opened.open_leaf_count == 0


# -----------------------------------------------------------------------------
# Rooflight
# -----------------------------------------------------------------------------


def test_rooflight_below_minimum_span_is_raised() -> None:
    resolved = resolve_rooflight_config(RooflightConfig(width=0.5, depth=0.5), DIMS)
    assert resolved.width == 1.0 and resolved.depth == 1.0
    assert not resolved.is_open
    assert resolved.opening_area_m2 == 0.0


def test_rooflight_fits_inside_parapet() -> None:
    resolved = resolve_rooflight_config(RooflightConfig(width=5.0, depth=5.0, open_height=0.5), DIMS)
    assert math.isclose(resolved.width, 1.4)
    assert math.isclose(resolved.depth, 3.8)
    assert resolved.open_height == 0.2
    assert resolved.is_open
    assert math.isclose(resolved.inset_x, 0.5)


def test_rooflight_opening_area() -> None:
    """Free area is perimeter times lift, capped at the panel area."""
    resolved = resolve_rooflight_config(RooflightConfig(width=1.0, depth=1.0, open_height=0.2), DIMS)
    assert math.isclose(resolved.opening_area_m2, 0.8)
    small = resolve_rooflight_config(RooflightConfig(width=1.0, depth=1.0, open_height=0.05), DIMS)
    assert math.isclose(small.opening_area_m2, 0.2)


# -----------------------------------------------------------------------------
# Opening area <-> ACH
# -----------------------------------------------------------------------------


def test_opening_area_and_ach_are_inverse() -> None:
    volume = DIMS.volume_m3
    estimate = calculate_opening_area(3.0, volume)
    assert math.isclose(calculate_ach_from_opening_area(estimate.area_m2, volume), 3.0)
    assert calculate_ach_from_opening_area(0.5, 0.0) == 0.0
    assert calculate_opening_area(0.0, volume).area_m2 == 0.0
