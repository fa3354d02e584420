from __future__ import annotations

import dataclasses
from pathlib import Path

import pandas as pd

from goldplan_core.domain.models import AIAnalysis, DiscountComparison, SimulationResult

LEDGER_COLUMNS = [
    "month",
    "market_price",
    "purchase_price",
    "amount_invested",
    "gold_ounces_purchased",
    "cumulative_gold",
    "cumulative_invested",
    "portfolio_value",
    "profit",
]


def result_to_frame(result: SimulationResult) -> pd.DataFrame:
    df = pd.DataFrame([dataclasses.asdict(row) for row in result.monthly_data], columns=LEDGER_COLUMNS)
    df.insert(1, "label", [row.label for row in result.monthly_data])
    return df


def export_ledger_csv(result: SimulationResult, csv_path: str | Path) -> Path:
    path = Path(csv_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    result_to_frame(result).to_csv(path, index=False)
    return path


def summary_to_json(result: SimulationResult) -> dict:
    return {
        "total_invested": result.total_invested,
        "total_gold_ounces": result.total_gold_ounces,
        "final_portfolio_value": result.final_portfolio_value,
        "average_cost_per_ounce": result.average_cost_per_ounce,
        "total_profit": result.total_profit,
        "roi": result.roi,
    }


def result_to_json(result: SimulationResult) -> dict:
    return {
        "params": dataclasses.asdict(result.params),
        "monthly_data": [dataclasses.asdict(row) for row in result.monthly_data],
        **summary_to_json(result),
    }


def comparison_to_json(comparison: DiscountComparison) -> dict:
    return {
        "baseline": summary_to_json(comparison.baseline),
        "scenario": summary_to_json(comparison.scenario),
        "delta": comparison.delta,
    }


def analysis_to_json(analysis: AIAnalysis) -> dict:
    return dataclasses.asdict(analysis)
