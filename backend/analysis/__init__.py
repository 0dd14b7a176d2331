"""Analysis utilities - pure functions over simulation output.

Annual statistics live in ``analysis.annual``, which depends on the stepper;
import it from there.
"""

from analysis.cost_carbon import CostCarbonSummary, compare_to_leti, compute_cost_carbon_summary

__all__ = [
    "CostCarbonSummary",
    "compare_to_leti",
    "compute_cost_carbon_summary",
]
