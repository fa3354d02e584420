from __future__ import annotations

import dataclasses

from goldplan_core.domain.models import DiscountComparison
from goldplan_core.services import simulator
from goldplan_core.services.simulator import ParamsLike

COMPARED_FIELDS = ("cumulative_gold", "portfolio_value", "profit")


def compare_discount(raw: ParamsLike) -> DiscountComparison:
    """
    Run the plan twice: at market price (baseline) and with the discount.
    The delta series is scenario minus baseline per month.
    """
    params = simulator.sanitize_params(raw)
    baseline_result = simulator.simulate(dataclasses.replace(params, monthly_discount_rate=0.0))
    scenario_result = simulator.simulate(params)

    delta = {}
    for key in COMPARED_FIELDS:
        base = [getattr(row, key) for row in baseline_result.monthly_data]
        scen = [getattr(row, key) for row in scenario_result.monthly_data]
        delta[key] = [s - b for s, b in zip(scen, base)]

    return DiscountComparison(
        baseline=baseline_result,
        scenario=scenario_result,
        delta=delta,
    )
