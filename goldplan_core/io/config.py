from __future__ import annotations

import dataclasses
import json
from pathlib import Path
from typing import Any, Dict

from goldplan_core.domain import units
from goldplan_core.domain.models import SimulationParams
from goldplan_core.services.simulator import FIELD_ALIASES, sanitize_params

_DEFAULTS = SimulationParams()


def load_simulation_params(path: str | Path) -> SimulationParams:
    """
    Read a plan from JSON. Keys may be snake_case or camelCase; absent keys
    take the plan defaults and bad values are clamped. A "spot_price_per_kg"
    key is accepted in place of the per-ounce price.
    """
    data = _read_json(path)
    return params_from_dict(data)


def params_from_dict(data: Dict[str, Any]) -> SimulationParams:
    merged = dataclasses.asdict(_DEFAULTS)
    merged.update(data)

    per_kg = merged.pop("spot_price_per_kg", merged.pop("spotPricePerKg", None))
    has_ounce_price = any(k in data for k in ("spot_price_per_ounce", "spotPricePerOunce"))
    if isinstance(per_kg, (int, float)) and not has_ounce_price:
        merged["spot_price_per_ounce"] = units.price_per_ounce(per_kg)

    # camelCase keys shadow the snake_case defaults
    for camel, snake in FIELD_ALIASES.items():
        if camel in merged:
            merged[snake] = merged.pop(camel)

    return sanitize_params(merged)


def params_to_dict(params: SimulationParams) -> Dict[str, Any]:
    return dataclasses.asdict(params)


def _read_json(path: str | Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
