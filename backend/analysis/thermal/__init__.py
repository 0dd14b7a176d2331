"""Lumped 1R1C thermal model.

The room is a single thermal mass coupled to outdoors through one
conductance. Example usage:

    from analysis.thermal import reactive_hvac_step

    response = reactive_hvac_step(
        net_passive_w=-450.0,
        current_temp=18.0,
        band_min=18.0,
        band_max=23.0,
        thermal_mass=6e6,
        dt_seconds=600,
    )
    print(f"Heating: {response.heating_w:.0f} W")
"""

from analysis.thermal.rc_model import (
    HvacResponse,
    compute_steady_state_temperature,
    free_running_step,
    predict_temperature_change,
    reactive_hvac_step,
    solve_setpoint_power,
)

__all__ = [
    "HvacResponse",
    "compute_steady_state_temperature",
    "free_running_step",
    "predict_temperature_change",
    "reactive_hvac_step",
    "solve_setpoint_power",
]
