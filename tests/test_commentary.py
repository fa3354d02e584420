import asyncio

from langchain_core.language_models import FakeListLLM
from langchain_core.runnables import RunnableLambda

from goldplan_core.domain.models import SimulationParams, Source
from goldplan_core.services import commentary
from goldplan_core.services.simulator import simulate

RESPONSE = """Summary:
The plan accumulated gold steadily and the discount lowered the cost basis.

Recommendations:
- Keep the monthly amount consistent.
- Review the discount terms every year.
- Hold a cash buffer for price dips.

Market context:
Gold trades near record highs on central bank demand.

Sources:
- World Gold Council - https://www.gold.org/goldhub
- https://example.com/gold-news
"""


def _result():
    return simulate(SimulationParams(duration_months=12))


def test_parse_sections():
    analysis = commentary.parse_analysis(RESPONSE)

    assert analysis.summary.startswith("The plan accumulated gold steadily")
    assert analysis.recommendations == [
        "Keep the monthly amount consistent.",
        "Review the discount terms every year.",
        "Hold a cash buffer for price dips.",
    ]
    assert analysis.market_context == "Gold trades near record highs on central bank demand."
    assert analysis.sources == [
        Source(title="World Gold Council", uri="https://www.gold.org/goldhub"),
        Source(title="https://example.com/gold-news", uri="https://example.com/gold-news"),
    ]


def test_parse_numbered_recommendations_starting_with_section_words():
    text = (
        "Recommendations:\n"
        "1. Keep buying monthly.\n"
        "2. Market timing is not needed.\n"
        "3. Hold a cash buffer.\n"
        "4. Market Context\n"
        "Prices are firm.\n"
    )
    analysis = commentary.parse_analysis(text)

    assert analysis.recommendations == [
        "Keep buying monthly.",
        "Market timing is not needed.",
        "Hold a cash buffer.",
    ]
    assert analysis.market_context == "Prices are firm."


def test_parse_unstructured_text_uses_defaults():
    text = "Gold did fine. " * 40
    analysis = commentary.parse_analysis(text)

    assert analysis.summary == text[:300] + "..."
    assert analysis.recommendations == commentary.DEFAULT_RECOMMENDATIONS
    assert analysis.market_context == commentary.DEFAULT_MARKET_CONTEXT
    assert analysis.sources == []


def test_prompt_inputs_reflect_result():
    result = _result()
    inputs = commentary.build_prompt_inputs(result)

    assert inputs["total_invested"] == f"{result.total_invested:.2f}"
    assert inputs["discount"] == "2"
    assert inputs["duration"] == 12


def test_analyze_result_with_model():
    llm = FakeListLLM(responses=[RESPONSE])
    analysis = asyncio.run(commentary.analyze_result(_result(), llm=llm))

    assert len(analysis.recommendations) == 3
    assert analysis.sources[0].uri == "https://www.gold.org/goldhub"


def test_analyze_result_falls_back_on_error():
    def _offline(_):
        raise ConnectionError("network unreachable")

    result = _result()
    analysis = asyncio.run(commentary.analyze_result(result, llm=RunnableLambda(_offline)))

    assert analysis == commentary.FALLBACK_ANALYSIS
    # the result is untouched
    assert result == _result()


def test_analyze_result_without_token(monkeypatch):
    monkeypatch.delenv("HF_TOKEN", raising=False)
    analysis = asyncio.run(commentary.analyze_result(_result()))
    assert analysis == commentary.FALLBACK_ANALYSIS


def test_empty_response_falls_back():
    llm = FakeListLLM(responses=["   "])
    analysis = asyncio.run(commentary.analyze_result(_result(), llm=llm))
    assert analysis == commentary.FALLBACK_ANALYSIS
