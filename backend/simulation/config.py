"""Centralised simulation tunables.

Every magic number that controls the room physics, ventilation control and
daylight estimate lives here. Create a custom ``SimConfig`` to tweak values
for testing::

    cfg = SimConfig(step_minutes=5, spinup_days=3)
    result = simulate_day(model, day, provider, settings, config=cfg)
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SimConfig:
    """All simulation tunables, grouped by category."""

    # --- Calendar ---
    model_year: int = 2025
    days_per_year: int = 365
    summer_solstice_day: int = 172
    winter_solstice_day: int = 355

    # --- Time stepping ---
    step_minutes: int = 10  # day run
    annual_step_minutes: int = 60  # annual run, one point per hour
    spinup_days: int = 7
    spinup_hours: int = 7 * 24

    # --- Room thermal model ---
    thermal_capacitance_j_per_k: float = 6_000_000.0
    comfort_min_c: float = 18.0
    comfort_max_c: float = 23.0
    overheat_threshold_c: float = 26.0
    severe_overheat_threshold_c: float = 28.0
    air_heat_capacity_wh_m3k: float = 0.33  # rho * cp / 3600
    rho_air: float = 1.2
    cp_air: float = 1006.0

    # --- Gains and glazing defaults ---
    internal_gain_w: float = 180.0
    g_glass: float = 0.4
    ground_albedo: float = 0.25
    blinds_threshold_w_m2: float = 400.0
    blinds_reduction: float = 0.5

    # --- Background ventilation ---
    infiltration_ach: float = 0.3
    night_start_hour: int = 22
    night_end_hour: int = 6
    purge_ach: float = 6.0

    # --- Adaptive window ventilation ---
    adaptive_night_floor_c: float = 18.0
    adaptive_min_benefit_delta_c: float = 1.0
    adaptive_overheat_scale_max_c: float = 3.0
    adaptive_ach_min: float = 0.6
    adaptive_ach_max: float = 6.0

    # --- MVHR auto control ---
    mvhr_boost_ach: float = 0.8
    mvhr_summer_boost_ach: float = 1.2
    mvhr_morning_start_hour: int = 6
    mvhr_morning_end_hour: int = 9
    mvhr_evening_start_hour: int = 17
    mvhr_evening_end_hour: int = 22
    mvhr_bypass_benefit_delta_c: float = 0.5

    # --- Natural ventilation orifice model ---
    discharge_coefficient: float = 0.6
    reference_opening_velocity_ms: float = 0.75
    default_wind_ms: float = 2.2
    wind_shelter_factor: float = 0.35  # 10 m exposed wind to opening level
    max_opening_velocity_ms: float = 1.2
    pressure_coeff_single_sided: float = 0.05
    pressure_coeff_multi_face: float = 0.1
    pressure_coeff_cross: float = 0.35
    pressure_coeff_roof_to_facade: float = 0.18
    pressure_coeff_roof_only: float = 0.12
    min_stack_height_m: float = 0.5
    stack_height_ratio: float = 0.65  # of room height
    makeup_area_ratio_of_floor: float = 0.004
    min_makeup_area_m2: float = 0.02

    # --- Daylight ---
    luminous_efficacy_lm_w: float = 115.0
    vlt_to_shgc_ratio: float = 1.6
    daylight_sky_factor: float = 0.4
    daylight_room_factor: float = 2.0


DEFAULT = SimConfig()
