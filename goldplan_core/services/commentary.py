from __future__ import annotations

import logging
import os
import re
from typing import List, Optional

from langchain_core.language_models import BaseLanguageModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import PromptTemplate
from langchain_huggingface import HuggingFaceEndpoint

from goldplan_core.domain.models import AIAnalysis, SimulationResult, Source

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "mistralai/Mistral-7B-Instruct-v0.2"

DEFAULT_RECOMMENDATIONS = [
    "Maintain consistency",
    "Monitor spot prices",
    "Diversify related assets",
]
DEFAULT_MARKET_CONTEXT = "Gold remains a strong hedge against inflation according to recent trends."

FALLBACK_ANALYSIS = AIAnalysis(
    summary="Error generating AI analysis. Please check your connection.",
    recommendations=["Error loading insights"],
    market_context="Error loading market context.",
    sources=[],
)

TEMPLATE = """
Analyze the following gold investment simulation:
- Total Invested: ${total_invested}
- Total Gold Accumulated: {total_gold} oz
- Final Portfolio Value: ${final_value}
- Average Cost Basis: ${average_cost} per oz
- ROI: {roi}%
- Duration: {duration} months
- Unique Strategy: {discount}% discount on every gold purchase.

Please provide, each under its own heading:
Summary: a brief summary of the performance.
Recommendations: exactly 3 strategic recommendations, one per line starting with "-".
Market: current context of the gold market and its trends.
Sources: one per line as "- title - url" for any references you used.
"""

_HEADING = re.compile(r"^[#*\s\d.)]*(summary|recommendations?|market|sources?)\b", re.IGNORECASE)
_BULLET = re.compile(r"^\s*(?:[-•]|\*(?!\*)|\d+[.)])\s+")
# a heading line carries no text beyond the section name
_BARE_HEADING = re.compile(
    r"^[#*\s\d.)]*(?:summary|recommendations?|market(?: context)?|sources?)[\s:*#]*$", re.IGNORECASE
)
_URL = re.compile(r"https?://[^\s)\]]+")

_SECTIONS = {
    "summary": "summary",
    "recommendation": "recommendations",
    "recommendations": "recommendations",
    "market": "market",
    "source": "sources",
    "sources": "sources",
}


def _default_llm() -> Optional[BaseLanguageModel]:
    hf_token = os.environ.get("HF_TOKEN")
    if not hf_token:
        return None
    model = os.environ.get("HF_MODEL", DEFAULT_MODEL)
    return HuggingFaceEndpoint(
        repo_id=model,
        huggingfacehub_api_token=hf_token,
        temperature=0.4,
        max_new_tokens=400,
    )


def build_prompt_inputs(result: SimulationResult) -> dict:
    return {
        "total_invested": f"{result.total_invested:.2f}",
        "total_gold": f"{result.total_gold_ounces:.4f}",
        "final_value": f"{result.final_portfolio_value:.2f}",
        "average_cost": f"{result.average_cost_per_ounce:.2f}",
        "roi": f"{result.roi:.2f}",
        "duration": result.params.duration_months,
        "discount": f"{result.params.monthly_discount_rate * 100:g}",
    }


def _parse_source(line: str) -> Optional[Source]:
    match = _URL.search(line)
    if not match:
        return None
    uri = match.group(0)
    title = _BULLET.sub("", line[: match.start()]).strip(" -:[]()*")
    return Source(title=title or uri, uri=uri)


def parse_analysis(text: str) -> AIAnalysis:
    """
    Split free-form model output into sections by their headings.
    Text under a heading belongs to that section until the next heading;
    empty sections get neutral defaults.
    """
    summary: List[str] = []
    recommendations: List[str] = []
    market: List[str] = []
    sources: List[Source] = []

    section = None
    for line in text.splitlines():
        heading = _HEADING.match(line)
        # "2. Market timing is not needed." is a list item, not a heading
        if heading and section in ("recommendations", "sources") and _BULLET.match(line):
            if not _BARE_HEADING.match(line):
                heading = None
        if heading and len(line.strip()) < 60:
            section = _SECTIONS[heading.group(1).lower()]
            # "Summary: text on the same line"
            _, _, rest = line.partition(":")
            rest = rest.strip(" *#")
            if not rest:
                continue
            line = rest

        stripped = line.strip()
        if not stripped:
            continue
        if section == "summary":
            summary.append(stripped)
        elif section == "recommendations" and _BULLET.match(stripped):
            recommendations.append(_BULLET.sub("", stripped).strip())
        elif section == "market":
            market.append(stripped)
        elif section == "sources":
            source = _parse_source(stripped)
            if source is not None:
                sources.append(source)

    return AIAnalysis(
        summary=" ".join(summary) or text[:300] + "...",
        recommendations=recommendations or list(DEFAULT_RECOMMENDATIONS),
        market_context=" ".join(market) or DEFAULT_MARKET_CONTEXT,
        sources=sources,
    )


async def analyze_result(
    result: SimulationResult,
    llm: Optional[BaseLanguageModel] = None,
) -> AIAnalysis:
    """
    Ask the language model for commentary on a finished simulation.

    Never raises: a missing token, a failed call or unusable output yields
    FALLBACK_ANALYSIS. The simulation result is only read.
    """
    try:
        model = llm if llm is not None else _default_llm()
        if model is None:
            raise RuntimeError("HF_TOKEN is not set")

        chain = PromptTemplate.from_template(TEMPLATE) | model | StrOutputParser()
        text = await chain.ainvoke(build_prompt_inputs(result))
        if not text or not text.strip():
            raise ValueError("Empty response from language model")
        return parse_analysis(text)
    except Exception as exc:  # noqa: BLE001
        logger.error("AI analysis failed: %s", exc)
        return FALLBACK_ANALYSIS
