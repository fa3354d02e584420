from goldplan_core.domain.models import (  # noqa: F401
    AIAnalysis,
    DiscountComparison,
    MonthlyData,
    SimulationParams,
    SimulationResult,
    Source,
)
from goldplan_core.domain.units import (  # noqa: F401
    OUNCES_PER_KILOGRAM,
    price_per_kilogram,
    price_per_ounce,
)

__all__ = [
    "AIAnalysis",
    "DiscountComparison",
    "MonthlyData",
    "SimulationParams",
    "SimulationResult",
    "Source",
    "OUNCES_PER_KILOGRAM",
    "price_per_kilogram",
    "price_per_ounce",
]
