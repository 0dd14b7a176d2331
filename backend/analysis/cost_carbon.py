"""Running cost and operational carbon from thermal demand.

Heating is supplied by a gas boiler, cooling by electric DX. Base electrical
loads run regardless of demand. On-site PV covers the electricity demand
first and the surplus is exported.
"""

import math
from dataclasses import dataclass

from core.presets import DEFAULT_DIMENSIONS

DAYS_PER_YEAR = 365


@dataclass(frozen=True)
class HeatingSystem:
    label: str
    fuel: str
    efficiency: float


@dataclass(frozen=True)
class CoolingSystem:
    label: str
    fuel: str
    cop: float


HEATING_SYSTEM = HeatingSystem(label="High-efficiency gas boiler", fuel="gas", efficiency=0.9)
COOLING_SYSTEM = CoolingSystem(label="Electric DX cooling", fuel="electricity", cop=3.0)

# Base electrical loads
LIGHTING_POWER_DENSITY_W_M2 = 8.0  # efficient LED
LIGHTING_DAILY_HOURS = 6.0
SMALL_POWER_DENSITY_W_M2 = 5.0
SMALL_POWER_DAILY_HOURS = 8.0
MVHR_FAN_POWER_W = 15.0  # runs continuously
MVHR_FAN_DAILY_HOURS = 24.0


@dataclass(frozen=True)
class Tariff:
    unit_rate: float  # GBP/kWh
    standing_charge_per_day: float
    export_rate: float = 0.0


PRICE_CAP_PERIOD_LABEL = "1 Jan-31 Mar 2026"
ELECTRICITY_TARIFF = Tariff(unit_rate=0.2769, standing_charge_per_day=0.5475, export_rate=0.15)
GAS_TARIFF = Tariff(unit_rate=0.0593, standing_charge_per_day=0.3509)
INCLUDE_STANDING_CHARGES = True

# kgCO2e/kWh, 2025 factors
ELECTRICITY_GENERATION_CARBON = 0.177
ELECTRICITY_T_AND_D_CARBON = 0.01853
ELECTRICITY_CARBON = ELECTRICITY_GENERATION_CARBON + ELECTRICITY_T_AND_D_CARBON
GAS_CARBON = 0.20268


@dataclass(frozen=True)
class LetiTarget:
    label: str
    target_kg_m2_year: float


# LETI Climate Emergency Design Guide (2020) operational carbon targets
LETI_TARGETS: dict[str, LetiTarget] = {
    "residential": LetiTarget("Residential", 35.0),
    "office": LetiTarget("Office", 55.0),
    "retail": LetiTarget("Retail", 50.0),
    "hotel": LetiTarget("Hotel", 55.0),
}
DEFAULT_LETI_TARGET = "residential"


@dataclass(frozen=True)
class CostCarbonSummary:
    heating_thermal_kwh: float
    cooling_thermal_kwh: float
    heating_fuel_kwh: float
    cooling_fuel_kwh: float
    lighting_kwh: float
    small_power_kwh: float
    mvhr_fans_kwh: float
    base_electrical_kwh: float
    total_electricity_demand_kwh: float
    on_site_solar_kwh: float
    solar_used_on_site_kwh: float
    solar_exported_kwh: float
    grid_electricity_kwh: float
    energy_cost_gross: float
    export_revenue: float
    energy_cost: float
    standing_cost: float
    total_cost: float
    gross_carbon_kg: float
    displaced_carbon_kg: float
    carbon_kg: float
    carbon_intensity_kg_m2_year: float
    gross_carbon_intensity_kg_m2_year: float
    floor_area_m2: float

    @property
    def is_net_zero(self) -> bool:
        return self.carbon_kg <= 0.01

    @property
    def is_carbon_negative(self) -> bool:
        return self.carbon_kg < -0.01


def _finite_or(value: float | None, fallback: float) -> float:
    if value is None or not math.isfinite(value):
        return fallback
    return value


def compute_cost_carbon_summary(
    heating_thermal_kwh: float,
    cooling_thermal_kwh: float,
    days: float = 1,
    on_site_solar_kwh: float = 0.0,
    floor_area_m2: float = DEFAULT_DIMENSIONS.floor_area_m2,
) -> CostCarbonSummary:
    """Cost and carbon for a period of thermal demand.

    Args:
        heating_thermal_kwh: Heat delivered to the room
        cooling_thermal_kwh: Heat removed from the room
        days: Length of the period; scales base loads and standing charges
        on_site_solar_kwh: PV generation over the period
        floor_area_m2: Treated floor area for the intensity metric (min 1 m²)

    Returns:
        CostCarbonSummary; intensities are annualised by 365 / days
    """
    heating = _finite_or(heating_thermal_kwh, 0.0)
    cooling = _finite_or(cooling_thermal_kwh, 0.0)
    solar = max(0.0, _finite_or(on_site_solar_kwh, 0.0))
    floor_area = max(1.0, _finite_or(floor_area_m2, DEFAULT_DIMENSIONS.floor_area_m2))

    heating_fuel = heating / max(0.01, HEATING_SYSTEM.efficiency)
    cooling_fuel = cooling / max(0.01, COOLING_SYSTEM.cop)

    lighting = LIGHTING_POWER_DENSITY_W_M2 * floor_area * LIGHTING_DAILY_HOURS * days / 1000
    small_power = SMALL_POWER_DENSITY_W_M2 * floor_area * SMALL_POWER_DAILY_HOURS * days / 1000
    mvhr_fans = MVHR_FAN_POWER_W * MVHR_FAN_DAILY_HOURS * days / 1000
    base_electrical = lighting + small_power + mvhr_fans
    electricity_demand = cooling_fuel + base_electrical

    solar_used = min(electricity_demand, solar)
    solar_exported = max(0.0, solar - electricity_demand)
    grid_electricity = max(0.0, electricity_demand - solar_used)

    energy_cost_gross = heating_fuel * GAS_TARIFF.unit_rate + grid_electricity * ELECTRICITY_TARIFF.unit_rate
    export_revenue = solar_exported * ELECTRICITY_TARIFF.export_rate
    energy_cost = energy_cost_gross - export_revenue
    standing_cost = 0.0
    if INCLUDE_STANDING_CHARGES:
        standing_cost = days * (GAS_TARIFF.standing_charge_per_day + ELECTRICITY_TARIFF.standing_charge_per_day)

    gross_carbon = heating_fuel * GAS_CARBON + grid_electricity * ELECTRICITY_CARBON
    displaced_carbon = solar_exported * ELECTRICITY_CARBON  # exported PV displaces grid generation
    carbon = gross_carbon - displaced_carbon

    annualisation = DAYS_PER_YEAR / max(1.0, days)
    return CostCarbonSummary(
        heating_thermal_kwh=heating,
        cooling_thermal_kwh=cooling,
        heating_fuel_kwh=heating_fuel,
        cooling_fuel_kwh=cooling_fuel,
        lighting_kwh=lighting,
        small_power_kwh=small_power,
        mvhr_fans_kwh=mvhr_fans,
        base_electrical_kwh=base_electrical,
        total_electricity_demand_kwh=electricity_demand,
        on_site_solar_kwh=solar,
        solar_used_on_site_kwh=solar_used,
        solar_exported_kwh=solar_exported,
        grid_electricity_kwh=grid_electricity,
        energy_cost_gross=energy_cost_gross,
        export_revenue=export_revenue,
        energy_cost=energy_cost,
        standing_cost=standing_cost,
        total_cost=energy_cost + standing_cost,
        gross_carbon_kg=gross_carbon,
        displaced_carbon_kg=displaced_carbon,
        carbon_kg=carbon,
        carbon_intensity_kg_m2_year=carbon * annualisation / floor_area,
        gross_carbon_intensity_kg_m2_year=gross_carbon * annualisation / floor_area,
        floor_area_m2=floor_area,
    )


@dataclass(frozen=True)
class LetiComparison:
    target: LetiTarget
    carbon_intensity_kg_m2_year: float

    @property
    def meets_target(self) -> bool:
        return self.carbon_intensity_kg_m2_year <= self.target.target_kg_m2_year

    @property
    def excess_kg_m2_year(self) -> float:
        return max(0.0, self.carbon_intensity_kg_m2_year - self.target.target_kg_m2_year)


def compare_to_leti(summary: CostCarbonSummary, target_id: str = DEFAULT_LETI_TARGET) -> LetiComparison:
    """Annual carbon intensity against a LETI target; unknown ids use the default."""
    target = LETI_TARGETS.get(target_id, LETI_TARGETS[DEFAULT_LETI_TARGET])
    return LetiComparison(target=target, carbon_intensity_kg_m2_year=summary.carbon_intensity_kg_m2_year)
