import asyncio

import pytest
from langchain_core.language_models import FakeListLLM
from langchain_core.runnables import RunnableLambda

from goldplan_core.domain.models import SimulationParams
from goldplan_core.domain.units import OUNCES_PER_KILOGRAM
from goldplan_core.services.comparison import compare_discount
from goldplan_core.services.session import PlanSession

RESPONSE = "Summary:\nSolid plan.\nRecommendations:\n- Stay the course.\n"


def test_session_recomputes_on_every_change():
    session = PlanSession(SimulationParams(duration_months=12))
    first = session.result
    assert len(first.monthly_data) == 13

    second = session.update(duration_months=24, monthly_investment=-5)
    assert session.result is second
    assert len(second.monthly_data) == 25
    assert session.params.monthly_investment == 0.0
    assert len(first.monthly_data) == 13


def test_session_keeps_one_canonical_price():
    session = PlanSession()
    session.set_price_per_kilogram(2000.0 * OUNCES_PER_KILOGRAM)

    assert session.price_per_ounce == pytest.approx(2000.0)
    assert session.price_per_kilogram == pytest.approx(2000.0 * OUNCES_PER_KILOGRAM)
    assert session.result.monthly_data[0].market_price == pytest.approx(2000.0)

    session.set_price_per_ounce(2500.0)
    assert session.price_per_kilogram == pytest.approx(2500.0 * OUNCES_PER_KILOGRAM)


def test_session_attaches_current_analysis():
    session = PlanSession(llm=FakeListLLM(responses=[RESPONSE]))
    analysis = asyncio.run(session.request_analysis())

    assert analysis is not None
    assert analysis.summary == "Solid plan."
    assert session.analysis is analysis


def test_session_discards_stale_analysis():
    async def edit_while_waiting():
        release = asyncio.Event()

        async def slow_model(_):
            await release.wait()
            return RESPONSE

        session = PlanSession(llm=RunnableLambda(slow_model))
        task = asyncio.create_task(session.request_analysis())
        await asyncio.sleep(0)
        # the engine stays usable while commentary is outstanding
        result = session.update(monthly_investment=250.0)
        release.set()
        return session, result, await task

    session, result, analysis = asyncio.run(edit_while_waiting())
    assert analysis is None
    assert session.analysis is None
    assert session.result is result
    assert session.params.monthly_investment == 250.0


def test_discount_comparison():
    params = SimulationParams(
        initial_investment=1000.0,
        monthly_investment=500.0,
        monthly_discount_rate=0.02,
        duration_months=3,
        expected_annual_growth=0.0,
        spot_price_per_ounce=2000.0,
    )
    result = compare_discount(params)

    assert result.baseline.params.monthly_discount_rate == 0.0
    assert result.scenario.params.monthly_discount_rate == 0.02
    assert result.baseline.total_profit == pytest.approx(0.0)
    assert len(result.delta["profit"]) == 4
    assert result.delta["profit"][-1] == pytest.approx(51.02, abs=0.01)
    assert all(d > 0 for d in result.delta["cumulative_gold"])
