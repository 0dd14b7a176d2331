"""External shading - overhangs, vertical fins and horizontal louvres.

All fractions are beam-only: 0 leaves the aperture unshaded, 1 shades it fully.
"""

import math

from core.models import Window
from simulation.solar import SunPosition, azimuth_difference, profile_angle

SHADING_PROJECTION_M = 0.3  # fin / louvre blade projection
_MIN_GAP_M = 0.1  # dense array
_MAX_GAP_M = 0.6  # sparse array
_FAR_MOUNT_THRESHOLD_M = 1.0
_MIN_DROP_ANGLE_DEG = 5.0


def _gap_for_ratio(depth_m: float, window_height: float) -> float:
    ratio = max(0.0, min(1.0, depth_m / max(0.001, window_height)))
    return _MAX_GAP_M - ratio * (_MAX_GAP_M - _MIN_GAP_M)


def _far_mount_drop_factor(overhang_depth: float, angle_deg: float, window_height: float) -> float:
    """Share of the shadow still landing on the glass when the array is mounted out on the overhang."""
    if overhang_depth <= _FAR_MOUNT_THRESHOLD_M:
        return 1.0
    distance = overhang_depth - SHADING_PROJECTION_M / 2
    shadow_drop = distance / math.tan(math.radians(max(_MIN_DROP_ANGLE_DEG, angle_deg)))
    return max(0.0, 1.0 - shadow_drop / (window_height * 1.5))


def overhang_shading_fraction(
    window_height: float,
    depth_m: float,
    altitude_deg: float,
    azimuth_deg: float,
    surface_azimuth_deg: float,
) -> float:
    if depth_m <= 0 or altitude_deg <= 0 or window_height <= 0:
        return 0.0
    phi = profile_angle(altitude_deg, azimuth_deg, surface_azimuth_deg)
    shadow = depth_m * math.tan(math.radians(phi))
    if not math.isfinite(shadow) or shadow <= 0:
        return 0.0
    return max(0.0, min(1.0, shadow / window_height))


def vertical_fin_shading_fraction(
    window_height: float,
    fin_depth_m: float,
    altitude_deg: float,
    azimuth_deg: float,
    surface_azimuth_deg: float,
    overhang_depth: float = 0.0,
) -> float:
    if fin_depth_m <= 0:
        return 0.0
    d_az = azimuth_difference(azimuth_deg, surface_azimuth_deg)
    if abs(d_az) >= 90:
        return 0.0
    gap = _gap_for_ratio(fin_depth_m, window_height)
    shadow_width = abs(SHADING_PROJECTION_M * math.tan(math.radians(d_az)))
    fraction = shadow_width / gap * _far_mount_drop_factor(overhang_depth, altitude_deg, window_height)
    return max(0.0, min(1.0, fraction))


def horizontal_fin_shading_fraction(
    window_height: float,
    h_fin_depth_m: float,
    altitude_deg: float,
    azimuth_deg: float,
    surface_azimuth_deg: float,
    overhang_depth: float = 0.0,
) -> float:
    if h_fin_depth_m <= 0 or altitude_deg <= 0:
        return 0.0
    if abs(azimuth_difference(azimuth_deg, surface_azimuth_deg)) >= 90:
        return 0.0
    phi = profile_angle(altitude_deg, azimuth_deg, surface_azimuth_deg)
    if phi <= 0:
        return 0.0
    gap = _gap_for_ratio(h_fin_depth_m, window_height)
    shadow_depth = SHADING_PROJECTION_M * math.tan(math.radians(phi))
    fraction = shadow_depth / gap * _far_mount_drop_factor(overhang_depth, phi, window_height)
    return max(0.0, min(1.0, fraction))


def combined_shading_fraction(*fractions: float) -> float:
    """Combine independent shading devices as 1 - Π(1 - f)."""
    unshaded = 1.0
    for fraction in fractions:
        unshaded *= 1.0 - max(0.0, min(1.0, fraction))
    return max(0.0, min(1.0, 1.0 - unshaded))


def beam_shading_factor(window: Window, sun: SunPosition) -> float:
    """Fraction of beam irradiance reaching the glass (1 = unshaded)."""
    if not sun.is_up:
        return 0.0
    alt, az = sun.altitude_deg, sun.azimuth_deg
    shaded = combined_shading_fraction(
        overhang_shading_fraction(window.height, window.overhang_depth, alt, az, window.azimuth_deg),
        vertical_fin_shading_fraction(window.height, window.fin_depth, alt, az, window.azimuth_deg, window.overhang_depth),
        horizontal_fin_shading_fraction(
            window.height, window.h_fin_depth, alt, az, window.azimuth_deg, window.overhang_depth
        ),
    )
    return 1.0 - shaded
