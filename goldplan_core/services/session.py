from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from goldplan_core.domain import units
from goldplan_core.domain.models import AIAnalysis, SimulationParams, SimulationResult
from goldplan_core.services import commentary, simulator

logger = logging.getLogger(__name__)


class PlanSession:
    """
    Holds the one canonical parameter record of an editing session and the
    result computed from it.

    Every change recomputes the whole result synchronously. Commentary runs
    against a snapshot of the result; if the plan changes while the call is
    outstanding its answer is dropped instead of being attached to a result
    it does not describe.
    """

    def __init__(self, params: Optional[SimulationParams] = None, llm=None):
        self._llm = llm
        self._generation = 0
        self.analysis: Optional[AIAnalysis] = None
        self._apply(params or SimulationParams())

    def _apply(self, params: SimulationParams) -> None:
        self.params = simulator.sanitize_params(params)
        self.result: SimulationResult = simulator.simulate(self.params)
        self._generation += 1
        self.analysis = None

    def update(self, **changes) -> SimulationResult:
        self._apply(dataclasses.replace(self.params, **changes))
        return self.result

    @property
    def price_per_ounce(self) -> float:
        return self.params.spot_price_per_ounce

    @property
    def price_per_kilogram(self) -> float:
        return units.price_per_kilogram(self.params.spot_price_per_ounce)

    def set_price_per_ounce(self, value: float) -> SimulationResult:
        return self.update(spot_price_per_ounce=value)

    def set_price_per_kilogram(self, value: float) -> SimulationResult:
        return self.update(spot_price_per_ounce=units.price_per_ounce(value))

    async def request_analysis(self) -> Optional[AIAnalysis]:
        generation = self._generation
        snapshot = self.result
        analysis = await commentary.analyze_result(snapshot, llm=self._llm)
        if generation != self._generation:
            logger.info("Discarding analysis for superseded plan (generation %d)", generation)
            return None
        self.analysis = analysis
        return analysis
