"""Core domain models and reference presets."""

from core.models import (
    BuildingDimensions,
    ComfortBand,
    EnvelopeState,
    FaceConfig,
    FaceId,
    FaceState,
    Location,
    OpenSegments,
    RooflightConfig,
    UValues,
    Window,
    WindowSegmentState,
    clamp_glazing,
    next_window_segment_state,
    normalize_window_segment_state,
)
from core.presets import (
    DEFAULT_DIMENSIONS,
    DEFAULT_SITE,
    FACES,
    U_VALUE_PRESETS,
    VENTILATION_PRESETS,
    get_u_value_preset,
    get_ventilation_preset,
)

__all__ = [
    "DEFAULT_DIMENSIONS",
    "DEFAULT_SITE",
    "FACES",
    "U_VALUE_PRESETS",
    "VENTILATION_PRESETS",
    "BuildingDimensions",
    "ComfortBand",
    "EnvelopeState",
    "FaceConfig",
    "FaceId",
    "FaceState",
    "Location",
    "OpenSegments",
    "RooflightConfig",
    "UValues",
    "Window",
    "WindowSegmentState",
    "clamp_glazing",
    "get_u_value_preset",
    "get_ventilation_preset",
    "next_window_segment_state",
    "normalize_window_segment_state",
]
