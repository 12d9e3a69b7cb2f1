"""
Calculator registry: maps fence types to calculator classes.

Dispatch is on the specification's variant; every FenceType must have an entry.
"""

from typing import Dict, Type

from .base import BaseFenceCalculator, CalculationResult
from .iron import IronCalculator
from .labor_codes import LaborRateTable
from .specs import CalculationInput, ConcreteMaterials, FenceType
from .wood_horizontal import WoodHorizontalCalculator
from .wood_vertical import WoodVerticalCalculator

CALCULATOR_REGISTRY: Dict[FenceType, Type[BaseFenceCalculator]] = {
    FenceType.WOOD_VERTICAL: WoodVerticalCalculator,
    FenceType.WOOD_HORIZONTAL: WoodHorizontalCalculator,
    FenceType.IRON: IronCalculator,
}


def get_calculator(fence_type) -> BaseFenceCalculator:
    """Returns an instance of the calculator for a fence type, or raises ValueError."""
    try:
        fence_type = FenceType(fence_type)
    except ValueError:
        raise ValueError(
            f"Unknown fence type: {fence_type}. "
            f"Available: {[t.value for t in CALCULATOR_REGISTRY]}"
        )
    return CALCULATOR_REGISTRY[fence_type]()


def calculate(spec, run: CalculationInput, labor_rates: LaborRateTable = None,
              concrete: ConcreteMaterials = None) -> CalculationResult:
    """Run the calculator matching the specification's fence type."""
    return get_calculator(spec.fence_type).calculate(spec, run, labor_rates, concrete)
