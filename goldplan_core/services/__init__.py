from goldplan_core.services.commentary import analyze_result  # noqa: F401
from goldplan_core.services.comparison import compare_discount  # noqa: F401
from goldplan_core.services.session import PlanSession  # noqa: F401
from goldplan_core.services.simulator import sanitize_params, simulate  # noqa: F401

__all__ = [
    "analyze_result",
    "compare_discount",
    "PlanSession",
    "sanitize_params",
    "simulate",
]
