"""Single-zone first-order (1R1C) thermal model.

The whole room is one thermal mass C coupled to outdoors through one
conductance UA (fabric + ventilation). The governing equation is:

    C * dT/dt = Q_passive + Q_hvac - UA * (T - T_out)

In discrete form with timestep dt (explicit forward Euler):

    T(t+1) = T(t) + (dt/C) * [Q_passive(t) + Q_hvac(t) - UA(t) * (T(t) - T_out(t))]

Q_passive is solar plus internal gain. Q_hvac is positive for heating and
negative for cooling. Callers pass the bracketed net flow, already summed.
"""

from dataclasses import dataclass


def predict_temperature_change(thermal_mass: float, net_heat_w: float, dt_seconds: float) -> float:
    """Predict temperature change for a single timestep.

    This implements the discrete governing equation:
        dT = (dt/C) * Q_net

    Args:
        thermal_mass: Room thermal capacitance C (J/K)
        net_heat_w: Gains plus HVAC minus losses over the step (W)
        dt_seconds: Time step duration (seconds)

    Returns:
        Predicted temperature change dT (K)
    """
    return net_heat_w * dt_seconds / thermal_mass


def compute_steady_state_temperature(
    heat_input_w: float,
    external_temp: float,
    conductance: float,
) -> float:
    """Compute the free-running steady-state room temperature.

    At steady state, dT/dt = 0, so:
        Q + UA * (T_out - T) = 0  =>  T = T_out + Q / UA

    Args:
        heat_input_w: Constant heat input Q (W)
        external_temp: Outdoor temperature T_out (°C)
        conductance: Total conductance to outdoors UA (W/K)

    Returns:
        Steady-state temperature (°C)

    Raises:
        ValueError: If the conductance is zero
    """
    if conductance == 0:
        raise ValueError("Cannot compute steady state: total conductance is zero")
    return external_temp + heat_input_w / conductance


def solve_setpoint_power(
    net_passive_w: float,
    current_temp: float,
    target_temp: float,
    thermal_mass: float,
    dt_seconds: float,
) -> float:
    """HVAC power that lands the room exactly on ``target_temp`` after one step.

    From C * (T_target - T) / dt = Q_net + Q_hvac. Positive is heating,
    negative is cooling.

    Args:
        net_passive_w: Net heat flow before HVAC, gains minus losses (W)
        current_temp: Room temperature at the start of the step (°C)
        target_temp: Temperature to reach at the end of the step (°C)
        thermal_mass: Thermal capacitance C (J/K)
        dt_seconds: Time step duration (seconds)

    Returns:
        Required HVAC power (W)
    """
    if dt_seconds <= 0:
        raise ValueError("dt_seconds must be positive")
    return (target_temp - current_temp) * thermal_mass / dt_seconds - net_passive_w


@dataclass(frozen=True)
class HvacResponse:
    """Reactive heating / cooling for one step."""

    heating_w: float
    cooling_w: float
    next_temp: float


def free_running_step(net_passive_w: float, current_temp: float, thermal_mass: float, dt_seconds: float) -> HvacResponse:
    """Advance one step with no heating or cooling."""
    next_temp = current_temp + predict_temperature_change(thermal_mass, net_passive_w, dt_seconds)
    return HvacResponse(heating_w=0.0, cooling_w=0.0, next_temp=next_temp)


def reactive_hvac_step(
    net_passive_w: float,
    current_temp: float,
    band_min: float,
    band_max: float,
    thermal_mass: float,
    dt_seconds: float,
) -> HvacResponse:
    """Advance one step, heating or cooling just enough to stay inside the band.

    There is no capacity limit: when the free-running temperature would leave
    the band, the exact power that holds the nearest edge is applied.
    """
    free = free_running_step(net_passive_w, current_temp, thermal_mass, dt_seconds)
    if free.next_temp < band_min:
        heating = solve_setpoint_power(net_passive_w, current_temp, band_min, thermal_mass, dt_seconds)
        return HvacResponse(heating_w=heating, cooling_w=0.0, next_temp=band_min)
    if free.next_temp > band_max:
        cooling = -solve_setpoint_power(net_passive_w, current_temp, band_max, thermal_mass, dt_seconds)
        return HvacResponse(heating_w=0.0, cooling_w=cooling, next_temp=band_max)
    return free
