from goldplan_core.io.config import load_simulation_params, params_from_dict  # noqa: F401
from goldplan_core.io.export import export_ledger_csv, result_to_frame, result_to_json  # noqa: F401

__all__ = [
    "load_simulation_params",
    "params_from_dict",
    "export_ledger_csv",
    "result_to_frame",
    "result_to_json",
]
