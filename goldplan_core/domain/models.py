from __future__ import annotations

import dataclasses
from typing import Dict, List


@dataclasses.dataclass(frozen=True)
class SimulationParams:
    initial_investment: float = 1000.0
    monthly_investment: float = 1000.0
    monthly_discount_rate: float = 0.02  # fixed per-purchase discount, 0.02 = 2%
    duration_months: int = 36
    expected_annual_growth: float = 0.08
    spot_price_per_ounce: float = 2100.0


@dataclasses.dataclass(frozen=True)
class MonthlyData:
    month: int
    market_price: float
    purchase_price: float
    amount_invested: float
    gold_ounces_purchased: float
    cumulative_gold: float
    cumulative_invested: float
    portfolio_value: float
    profit: float

    @property
    def label(self) -> str:
        return f"Month {self.month}"


@dataclasses.dataclass(frozen=True)
class SimulationResult:
    params: SimulationParams
    monthly_data: List[MonthlyData]
    total_invested: float
    total_gold_ounces: float
    final_portfolio_value: float
    average_cost_per_ounce: float
    total_profit: float
    roi: float  # percent


@dataclasses.dataclass(frozen=True)
class Source:
    title: str
    uri: str


@dataclasses.dataclass(frozen=True)
class AIAnalysis:
    summary: str
    recommendations: List[str]
    market_context: str
    sources: List[Source] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class DiscountComparison:
    baseline: SimulationResult  # same plan bought at market price
    scenario: SimulationResult
    delta: Dict[str, List[float]]
