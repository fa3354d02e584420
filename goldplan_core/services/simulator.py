from __future__ import annotations

import dataclasses
import logging
import math
from typing import Any, Mapping, Optional, Union

import numpy as np

from goldplan_core.domain.models import MonthlyData, SimulationParams, SimulationResult

logger = logging.getLogger(__name__)

MIN_DURATION_MONTHS = 1
MIN_SPOT_PRICE = 1.0
MAX_DURATION_MONTHS = 1200  # 100 years

# UI payloads arrive camelCased, config files snake_cased
FIELD_ALIASES = {
    "initialInvestment": "initial_investment",
    "monthlyInvestment": "monthly_investment",
    "monthlyDiscountRate": "monthly_discount_rate",
    "durationMonths": "duration_months",
    "expectedAnnualGrowth": "expected_annual_growth",
    "spotPricePerOunce": "spot_price_per_ounce",
}

ParamsLike = Union[SimulationParams, Mapping[str, Any]]


def _finite(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _normalize_keys(raw: Mapping[str, Any]) -> dict:
    return {FIELD_ALIASES.get(key, key): value for key, value in raw.items()}


def sanitize_params(raw: ParamsLike) -> SimulationParams:
    """
    Return a fully valid parameter record.

    Any field that is missing, non-numeric, non-finite or out of range is
    replaced by its clamp value instead of raising:
    investments >= 0, discount >= 0, 1 <= duration <= MAX_DURATION_MONTHS,
    spot price >= 1. Growth is unclamped (negative means a declining market)
    but still falls back to 0 when unusable.
    """
    if isinstance(raw, SimulationParams):
        data = dataclasses.asdict(raw)
    else:
        data = _normalize_keys(raw)

    initial = _finite(data.get("initial_investment"))
    monthly = _finite(data.get("monthly_investment"))
    discount = _finite(data.get("monthly_discount_rate"))
    duration = _finite(data.get("duration_months"))
    growth = _finite(data.get("expected_annual_growth"))
    spot = _finite(data.get("spot_price_per_ounce"))

    return SimulationParams(
        initial_investment=max(initial or 0.0, 0.0),
        monthly_investment=max(monthly or 0.0, 0.0),
        monthly_discount_rate=max(discount or 0.0, 0.0),
        duration_months=min(max(int(duration or 0), MIN_DURATION_MONTHS), MAX_DURATION_MONTHS),
        expected_annual_growth=growth or 0.0,
        spot_price_per_ounce=max(spot or 0.0, MIN_SPOT_PRICE),
    )


def simulate(raw: ParamsLike) -> SimulationResult:
    """
    Project a recurring gold purchase plan, one record per month 0..duration.

    Month 0 buys with the initial investment, every later month with the
    monthly investment. The market price follows a single exponential curve
    recomputed from the month index; every purchase, the initial one
    included, is made at the market price less the fixed discount. Holdings
    are valued at the undiscounted market price.
    """
    params = sanitize_params(raw)
    periods = params.duration_months + 1
    monthly_growth = params.expected_annual_growth / 12

    months = np.arange(periods)
    market = params.spot_price_per_ounce * np.power(1 + monthly_growth, months)
    purchase = market * (1 - params.monthly_discount_rate)

    invested = np.full(periods, params.monthly_investment, dtype=float)
    invested[0] = params.initial_investment

    # a discount of 100% or more, or growth <= -1200%/yr, buys nothing
    ounces = np.divide(invested, purchase, out=np.zeros(periods), where=purchase > 0)

    cumulative_gold = np.cumsum(ounces)
    cumulative_invested = np.cumsum(invested)
    value = cumulative_gold * market
    profit = value - cumulative_invested

    monthly_data = [
        MonthlyData(
            month=int(m),
            market_price=float(market[m]),
            purchase_price=float(purchase[m]),
            amount_invested=float(invested[m]),
            gold_ounces_purchased=float(ounces[m]),
            cumulative_gold=float(cumulative_gold[m]),
            cumulative_invested=float(cumulative_invested[m]),
            portfolio_value=float(value[m]),
            profit=float(profit[m]),
        )
        for m in months
    ]

    final = monthly_data[-1]
    total_invested = final.cumulative_invested
    total_gold = final.cumulative_gold

    average_cost = total_invested / total_gold if total_gold > 0 else params.spot_price_per_ounce
    roi = final.profit / total_invested * 100 if total_invested > 0 else 0.0

    logger.debug(
        "Simulated %d periods: invested=%.2f gold=%.6f roi=%.2f%%",
        periods,
        total_invested,
        total_gold,
        roi,
    )

    return SimulationResult(
        params=params,
        monthly_data=monthly_data,
        total_invested=total_invested,
        total_gold_ounces=total_gold,
        final_portfolio_value=final.portfolio_value,
        average_cost_per_ounce=average_cost,
        total_profit=final.profit,
        roi=roi,
    )
