"""Reference data - faces, default site, fabric and ventilation presets."""

from dataclasses import dataclass

from core.models import BuildingDimensions, FaceId, Location, UValues


@dataclass(frozen=True)
class Face:
    id: FaceId
    label: str
    azimuth_deg: float


FACES: tuple[Face, ...] = (
    Face(FaceId.NORTH, "North", 0.0),
    Face(FaceId.EAST, "East", 90.0),
    Face(FaceId.SOUTH, "South", 180.0),
    Face(FaceId.WEST, "West", 270.0),
)

FACE_AZIMUTHS: dict[FaceId, float] = {face.id: face.azimuth_deg for face in FACES}

DEFAULT_SITE = Location(latitude=51.917, longitude=-3.317, tz_hours=0, elevation_m=160.0, name="Pencelli (Brecon)")

DEFAULT_DIMENSIONS = BuildingDimensions(width=2.4, depth=4.8, height=2.6)


# ---------------------------------------------------------------------------
# Fabric
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UValuePreset:
    label: str
    detail: str
    values: UValues


U_VALUE_PRESETS: dict[str, UValuePreset] = {
    "baseline": UValuePreset(
        label="Baseline - Building Regs 2025",
        detail="Low-E double glazing and solid insulation.",
        values=UValues(wall=0.35, roof=0.2, floor=0.25, window=1.1),
    ),
    "improved": UValuePreset(
        label="25% Above Baseline",
        detail="Upgraded insulation and better glazing.",
        values=UValues(wall=0.25, roof=0.15, floor=0.2, window=0.9),
    ),
    "high": UValuePreset(
        label="High-performance",
        detail="Super-insulated envelope with high spec glazing.",
        values=UValues(wall=0.15, roof=0.15, floor=0.15, window=0.7),
    ),
    "passivhaus": UValuePreset(
        label="Passivhaus (indicative)",
        detail="Indicative Passivhaus-style fabric values for early-stage option testing (not certification).",
        values=UValues(wall=0.1, roof=0.1, floor=0.1, window=0.8),
    ),
}
DEFAULT_U_VALUE_PRESET = "high"


def get_u_value_preset(preset_id: str) -> UValuePreset:
    """Look up a fabric preset, falling back to the default for unknown ids."""
    return U_VALUE_PRESETS.get(preset_id, U_VALUE_PRESETS[DEFAULT_U_VALUE_PRESET])


# ---------------------------------------------------------------------------
# Ventilation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VentilationPreset:
    label: str
    detail: str
    ach_total: float
    heat_recovery_efficiency: float = 0.0
    is_adaptive: bool = False


VENTILATION_PRESETS: dict[str, VentilationPreset] = {
    "background": VentilationPreset(
        label="Background only",
        detail="Standard infiltration only.",
        ach_total=0.3,
    ),
    "trickle": VentilationPreset(
        label="Trickle vents",
        detail="Low, steady ventilation.",
        ach_total=0.6,
    ),
    "passivhaus": VentilationPreset(
        label="MVHR (Passivhaus-style)",
        detail="Indicative continuous balanced ventilation for a well-sealed envelope with heat recovery.",
        ach_total=0.4,
        heat_recovery_efficiency=0.85,
    ),
    "open": VentilationPreset(
        label="Open windows",
        detail="Typical daytime opening.",
        ach_total=3.0,
    ),
    "purge": VentilationPreset(
        label="Purge",
        detail="High ventilation for rapid cooling.",
        ach_total=6.0,
    ),
    "adaptive": VentilationPreset(
        label="Adaptive",
        detail=(
            "Windows open automatically when cooling is beneficial. Ventilation scales from 0.6 to 6.0 ACH "
            "as indoor temperature exceeds the comfort maximum."
        ),
        ach_total=0.3,
        is_adaptive=True,
    ),
}
DEFAULT_VENTILATION_PRESET = "background"


def get_ventilation_preset(preset_id: str) -> VentilationPreset:
    """Look up a ventilation preset, falling back to the default for unknown ids."""
    return VENTILATION_PRESETS.get(preset_id, VENTILATION_PRESETS[DEFAULT_VENTILATION_PRESET])
