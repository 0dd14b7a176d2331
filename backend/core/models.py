"""Core data models for the single-room building."""

import math
from dataclasses import dataclass, field, replace
from enum import IntEnum, StrEnum

MAX_GLAZING_RATIO = 0.8
MAX_OVERHANG_M = 1.5
MIN_WINDOW_CLEAR_HEIGHT_M = 0.4

MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_TIMEZONE_HOURS = -12
MAX_TIMEZONE_HOURS = 14


class FaceId(StrEnum):
    NORTH = "north"
    EAST = "east"
    SOUTH = "south"
    WEST = "west"


class WindowSegmentState(IntEnum):
    """Opening state of one operable window leaf."""

    CLOSED = 0
    TOP_HUNG = 1  # tilted in at the head, trickle ventilation
    TURN = 2  # fully open casement


def _finite_or(value: float | None, fallback: float) -> float:
    if value is None or not math.isfinite(value):
        return fallback
    return value


# ---------------------------------------------------------------------------
# Coordinate clamps
# ---------------------------------------------------------------------------


def clamp_latitude(latitude: float) -> float:
    return min(MAX_LATITUDE, max(MIN_LATITUDE, _finite_or(latitude, MIN_LATITUDE)))


def normalize_longitude(longitude: float) -> float:
    """Wrap longitude into [-180, 180), reporting the antimeridian as +180."""
    if not math.isfinite(longitude):
        return 0.0
    normalized = (longitude + 180.0) % 360.0 - 180.0
    return 180.0 if normalized == -180.0 else normalized


def clamp_timezone_hours(tz_hours: float) -> int:
    safe = _finite_or(tz_hours, MIN_TIMEZONE_HOURS)
    return int(min(MAX_TIMEZONE_HOURS, max(MIN_TIMEZONE_HOURS, round(safe))))


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    tz_hours: int = 0
    elevation_m: float = 0.0
    name: str = ""

    def normalized(self) -> "Location":
        return replace(
            self,
            latitude=clamp_latitude(self.latitude),
            longitude=normalize_longitude(self.longitude),
            tz_hours=clamp_timezone_hours(self.tz_hours),
            elevation_m=max(0.0, _finite_or(self.elevation_m, 0.0)),
        )


# ---------------------------------------------------------------------------
# Facade configuration
# ---------------------------------------------------------------------------


def clamp_glazing(glazing: float) -> float:
    """Clamp a glazing ratio into [0, 0.8]. Non-finite input reads as 0."""
    return max(0.0, min(MAX_GLAZING_RATIO, _finite_or(glazing, 0.0)))


def clamp_unit_ratio(ratio: float) -> float:
    return max(0.0, min(1.0, _finite_or(ratio, 0.0)))


@dataclass(frozen=True)
class WindowOpening:
    """Resolved vertical extent of a window within its wall."""

    cill_lift: float
    head_drop: float
    effective_height: float


def resolve_window_opening_height(
    opening_height: float,
    cill_lift: float = 0.0,
    head_drop: float = 0.0,
    min_clear_height: float = MIN_WINDOW_CLEAR_HEIGHT_M,
) -> WindowOpening:
    """Clamp cill lift and head drop so the clear opening stays above the minimum.

    Cill lift is resolved first and keeps priority; head drop only gets what is left.
    """
    safe_height = max(0.0, _finite_or(opening_height, 0.0))
    safe_min_clear = max(0.0, min_clear_height)
    max_offset = max(0.0, safe_height - safe_min_clear)
    safe_cill = max(0.0, min(_finite_or(cill_lift, 0.0), max_offset))
    max_head_drop = max(0.0, safe_height - safe_cill - safe_min_clear)
    safe_head = max(0.0, min(_finite_or(head_drop, 0.0), max_head_drop))
    return WindowOpening(
        cill_lift=safe_cill,
        head_drop=safe_head,
        effective_height=max(0.0, safe_height - safe_cill - safe_head),
    )


def clamp_window_center_ratio(glazing: float, center_ratio: float = 0.0) -> float:
    """Keep the window's horizontal offset inside the face for the given glazing width."""
    max_ratio = max(0.0, 1.0 - clamp_glazing(glazing))
    return max(-max_ratio, min(max_ratio, _finite_or(center_ratio, 0.0)))


@dataclass(frozen=True)
class FaceConfig:
    """User configuration of one cardinal facade.

    ``fin`` and ``h_fin`` are density ratios (0..1) of the vertical fin and
    horizontal louvre arrays; they are mutually exclusive.
    """

    glazing: float = 0.0  # fraction of face width
    overhang: float = 0.0  # m
    fin: float = 0.0
    h_fin: float = 0.0
    cill_lift: float = 0.0  # m
    head_drop: float = 0.0  # m
    window_center_ratio: float = 0.0

    def with_glazing(self, glazing: float) -> "FaceConfig":
        glazing = clamp_glazing(glazing)
        return replace(
            self,
            glazing=glazing,
            window_center_ratio=clamp_window_center_ratio(glazing, self.window_center_ratio),
        )

    def with_fin(self, fin: float) -> "FaceConfig":
        """Set the vertical fin ratio; a nonzero value removes horizontal fins."""
        fin = clamp_unit_ratio(fin)
        return replace(self, fin=fin, h_fin=0.0 if fin > 0 else self.h_fin)

    def with_h_fin(self, h_fin: float) -> "FaceConfig":
        """Set the horizontal fin ratio; a nonzero value removes vertical fins."""
        h_fin = clamp_unit_ratio(h_fin)
        return replace(self, h_fin=h_fin, fin=0.0 if h_fin > 0 else self.fin)

    def clamped(self, face_height: float) -> "FaceConfig":
        glazing = clamp_glazing(self.glazing)
        fin = clamp_unit_ratio(self.fin)
        h_fin = 0.0 if fin > 0 else clamp_unit_ratio(self.h_fin)
        opening = resolve_window_opening_height(face_height, self.cill_lift, self.head_drop)
        return FaceConfig(
            glazing=glazing,
            overhang=max(0.0, min(MAX_OVERHANG_M, _finite_or(self.overhang, 0.0))),
            fin=fin,
            h_fin=h_fin,
            cill_lift=opening.cill_lift,
            head_drop=opening.head_drop,
            window_center_ratio=clamp_window_center_ratio(glazing, self.window_center_ratio),
        )


type FaceState = dict[FaceId, FaceConfig]

# (face, leaf index) -> state
type OpenSegments = dict[tuple[FaceId, int], WindowSegmentState]


def normalize_window_segment_state(value: object) -> WindowSegmentState:
    """Coerce booleans, numbers and junk into a valid segment state."""
    if isinstance(value, bool):
        return WindowSegmentState.TOP_HUNG if value else WindowSegmentState.CLOSED
    try:
        numeric = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return WindowSegmentState.CLOSED
    if not math.isfinite(numeric):
        return WindowSegmentState.CLOSED
    rounded = round(numeric)
    if rounded <= WindowSegmentState.CLOSED:
        return WindowSegmentState.CLOSED
    if rounded >= WindowSegmentState.TURN:
        return WindowSegmentState.TURN
    return WindowSegmentState(rounded)


def next_window_segment_state(state: object) -> WindowSegmentState:
    """Toggle cycle CLOSED -> TOP_HUNG -> TURN -> CLOSED."""
    match normalize_window_segment_state(state):
        case WindowSegmentState.CLOSED:
            return WindowSegmentState.TOP_HUNG
        case WindowSegmentState.TOP_HUNG:
            return WindowSegmentState.TURN
        case _:
            return WindowSegmentState.CLOSED


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BuildingDimensions:
    width: float = 2.4  # north/south face span, m
    depth: float = 4.8  # east/west face span, m
    height: float = 2.6

    @property
    def floor_area_m2(self) -> float:
        return self.width * self.depth

    @property
    def volume_m3(self) -> float:
        return self.width * self.depth * self.height

    def face_span(self, face_id: FaceId) -> float:
        return self.depth if face_id in (FaceId.EAST, FaceId.WEST) else self.width


@dataclass(frozen=True)
class RooflightConfig:
    width: float = 1.0
    depth: float = 1.0
    open_height: float = 0.0


@dataclass(frozen=True)
class Window:
    """A glazed aperture with its world-facing azimuth and external shading."""

    face_id: FaceId
    width: float
    height: float
    azimuth_deg: float
    overhang_depth: float = 0.0
    fin_depth: float = 0.0
    h_fin_depth: float = 0.0
    center_ratio: float = 0.0

    @property
    def area_m2(self) -> float:
        return self.width * self.height


@dataclass(frozen=True)
class UValues:
    """Fabric U-values (W/m²K)."""

    wall: float
    roof: float
    floor: float
    window: float


@dataclass(frozen=True)
class ComfortBand:
    min_c: float = 18.0
    max_c: float = 23.0


def default_face_state() -> FaceState:
    return {face_id: FaceConfig() for face_id in FaceId}


@dataclass(frozen=True)
class EnvelopeState:
    """Facade, rooflight and opening configuration as held by the UI."""

    faces: dict[FaceId, FaceConfig] = field(default_factory=default_face_state)
    rooflight: RooflightConfig | None = None
    open_segments: dict[tuple[FaceId, int], WindowSegmentState] = field(default_factory=dict)
    orientation_deg: float = 0.0
