import json
from pathlib import Path

import pandas as pd
import pytest

from goldplan_core.domain.units import OUNCES_PER_KILOGRAM, price_per_kilogram, price_per_ounce
from goldplan_core.io import config as config_io
from goldplan_core.io import export
from goldplan_core.services.simulator import simulate

DATA = Path(__file__).parent / "data"


def test_price_conversions_are_inverse():
    assert price_per_kilogram(2100.0) == pytest.approx(2100.0 * 32.1507)
    assert price_per_ounce(price_per_kilogram(2100.0)) == pytest.approx(2100.0)
    assert price_per_ounce(OUNCES_PER_KILOGRAM * 1000) == pytest.approx(1000.0)


def test_load_camel_case_plan():
    params = config_io.load_simulation_params(DATA / "plan.json")
    assert params.initial_investment == 1000.0
    assert params.monthly_investment == 500.0
    assert params.monthly_discount_rate == 0.02
    assert params.duration_months == 3
    assert params.expected_annual_growth == 0.0
    assert params.spot_price_per_ounce == 2000.0


def test_missing_keys_use_plan_defaults(tmp_path: Path):
    path = tmp_path / "plan.json"
    path.write_text(json.dumps({"monthly_investment": 250, "duration_months": -4}))

    params = config_io.load_simulation_params(path)
    assert params.monthly_investment == 250.0
    assert params.duration_months == 1
    assert params.initial_investment == 1000.0
    assert params.spot_price_per_ounce == 2100.0


def test_price_per_kg_key_is_converted():
    params = config_io.params_from_dict({"spot_price_per_kg": 64301.4})
    assert params.spot_price_per_ounce == pytest.approx(2000.0)

    # an explicit per-ounce price wins
    params = config_io.params_from_dict({"spot_price_per_kg": 64301.4, "spotPricePerOunce": 1500})
    assert params.spot_price_per_ounce == 1500.0


def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        config_io.load_simulation_params(tmp_path / "nope.json")


def test_ledger_frame_and_csv(tmp_path: Path):
    result = simulate(config_io.load_simulation_params(DATA / "plan.json"))

    df = export.result_to_frame(result)
    assert len(df) == 4
    assert list(df.columns) == ["month", "label"] + export.LEDGER_COLUMNS[1:]
    assert df["label"].iloc[2] == "Month 2"

    path = export.export_ledger_csv(result, tmp_path / "out" / "ledger.csv")
    reloaded = pd.read_csv(path)
    assert reloaded["cumulative_invested"].iloc[-1] == pytest.approx(2500.0)


def test_result_json_payload():
    result = simulate(config_io.load_simulation_params(DATA / "plan.json"))
    payload = export.result_to_json(result)

    assert payload["params"]["duration_months"] == 3
    assert len(payload["monthly_data"]) == 4
    assert payload["total_invested"] == 2500.0
    assert payload["roi"] == pytest.approx(2.04, abs=0.01)
    json.dumps(payload)
