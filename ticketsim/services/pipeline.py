"""
Memoised simulation pipeline.

Data flows strictly downward::

    OddsSet ─► ProbabilityModel ─► StageOdds ─┐
    HedgeStakeSet, SimulationConfig ──────────┴─► Scenarios ─► EV / expected IRR
                                                          ├─► breakeven price
                                                          └─► sensitivity curve

Each stage is a module-level function wrapped in :func:`functools.lru_cache`
and keyed only on the frozen inputs it declares.  Changing the hedge stakes
therefore reuses the cached probability model and stage odds; changing one
odds value recomputes everything downstream of the odds.  Identical inputs
always return the identical (cached) object.

Typical usage::

    from ticketsim.services.pipeline import simulate
    from ticketsim.services.persistence import load_settings

    result = simulate(load_settings(saved_blob))
    result.expected_value, result.expected_irr.annual_pct
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from ticketsim.core.inputs import HedgeStakeSet, OddsSet, SimulationConfig
from ticketsim.core.irr import IrrResult
from ticketsim.core.odds_math import ProbabilityModel, devig
from ticketsim.core.stage_odds import StageOdds, build_stage_odds, reaches_final_probability
from ticketsim.core.tournament_config import FINALS, TournamentConfig
from ticketsim.schemas import SimulationSettings
from ticketsim.services.aggregate import (
    InvestorView,
    RiskMetrics,
    expected_irr,
    expected_value,
    investor_view,
    risk_metrics,
)
from ticketsim.services.breakeven import BreakevenUndefinedError, breakeven_resale_price
from ticketsim.services.scenarios import Scenario, ScenarioBuilder
from ticketsim.services.sensitivity import SensitivityEngine, SensitivityPoint

logger = logging.getLogger(__name__)

_CACHE_SIZE = 128


@dataclass(frozen=True)
class SimulationResult:
    """Everything the presentation layer consumes from one pass."""

    tournament: TournamentConfig
    config: SimulationConfig
    probability_model: ProbabilityModel
    stage_odds: Mapping[str, StageOdds]
    scenarios: Tuple[Scenario, ...]
    prob_finals: float
    total_purchase: float
    base_carry_cost: float
    expected_value: float
    expected_irr: IrrResult
    breakeven_price: Optional[float]
    breakeven_error: Optional[str]
    sensitivity: Tuple[SensitivityPoint, ...]
    risk: RiskMetrics
    investor: InvestorView

    @property
    def finals(self) -> Scenario:
        return self.scenario(FINALS)

    @property
    def breakeven_defined(self) -> bool:
        return self.breakeven_price is not None

    def scenario(self, key: str) -> Scenario:
        for s in self.scenarios:
            if s.key == key:
                return s
        raise KeyError(key)


# ---------------------------------------------------------------------------
# Memoised stages
# ---------------------------------------------------------------------------

@lru_cache(maxsize=_CACHE_SIZE)
def probability_model(odds: OddsSet) -> ProbabilityModel:
    model = devig(odds.as_dict())
    # Frozen views so cached results cannot be mutated by callers.
    return ProbabilityModel(
        implied=MappingProxyType(dict(model.implied)),
        total_implied=model.total_implied,
        margin=model.margin,
        fair=MappingProxyType(dict(model.fair)),
    )


@lru_cache(maxsize=_CACHE_SIZE)
def stage_odds(odds: OddsSet, stages: Tuple[str, ...]) -> Mapping[str, StageOdds]:
    return MappingProxyType(build_stage_odds(probability_model(odds), stages))


@lru_cache(maxsize=_CACHE_SIZE)
def scenario_builder(
    config: SimulationConfig,
    stakes: HedgeStakeSet,
    odds: OddsSet,
    tournament: TournamentConfig,
) -> ScenarioBuilder:
    return ScenarioBuilder(
        config,
        stakes,
        probability_model(odds),
        dict(stage_odds(odds, tournament.stages)),
        tournament,
    )


@lru_cache(maxsize=_CACHE_SIZE)
def scenarios(
    config: SimulationConfig,
    stakes: HedgeStakeSet,
    odds: OddsSet,
    tournament: TournamentConfig,
) -> Tuple[Scenario, ...]:
    return scenario_builder(config, stakes, odds, tournament).build_all()


@lru_cache(maxsize=_CACHE_SIZE)
def run(
    config: SimulationConfig,
    odds: OddsSet,
    stakes: HedgeStakeSet,
    tournament: TournamentConfig,
) -> SimulationResult:
    """Full pass for frozen inputs.  Cached on all four arguments."""
    builder = scenario_builder(config, stakes, odds, tournament)
    scns = scenarios(config, stakes, odds, tournament)
    model = probability_model(odds)
    finals = scns[-1]

    hedge_carry, hedge_result = builder.finals_hedge_terms()
    try:
        breakeven: Optional[float] = breakeven_resale_price(
            builder.total_purchase,
            config.num_tickets,
            config.resale_fee_percent,
            config.processing_fee_percent,
            config.fixed_transaction_cost,
            builder.base_carry,
            hedge_carry,
            hedge_result,
        )
        breakeven_error: Optional[str] = None
    except BreakevenUndefinedError as exc:
        logger.warning("Breakeven undefined: %s", exc)
        breakeven, breakeven_error = None, str(exc)

    ev = expected_value(scns)
    risk = risk_metrics(scns)
    result = SimulationResult(
        tournament=tournament,
        config=config,
        probability_model=model,
        stage_odds=stage_odds(odds, tournament.stages),
        scenarios=scns,
        prob_finals=reaches_final_probability(model, tournament.terminal_outcomes),
        total_purchase=builder.total_purchase,
        base_carry_cost=builder.base_carry,
        expected_value=ev,
        expected_irr=expected_irr(scns, builder.total_purchase, tournament.proceeds_month),
        breakeven_price=breakeven,
        breakeven_error=breakeven_error,
        sensitivity=SensitivityEngine(builder, scns).sweep(),
        risk=risk,
        investor=investor_view(config.investor_share, ev, finals.net_pl, risk),
    )
    logger.debug(
        "Simulation: EV %.2f, expected IRR %.2f%%, margin %.2f%%",
        ev, result.expected_irr.annual_pct, model.margin,
    )
    return result


def simulate(
    settings: SimulationSettings,
    tournament: Optional[TournamentConfig] = None,
) -> SimulationResult:
    """Run the pipeline on validated settings.

    Raises:
        InvalidOddsError: If the settings' odds do not cover every outcome.
    """
    tournament = tournament or TournamentConfig.world_cup_2026()
    return run(
        settings.to_config(),
        settings.to_odds_set(tournament),
        settings.to_stake_set(tournament),
        tournament,
    )


def clear_caches() -> None:
    """Drop every memoised stage."""
    for fn in (probability_model, stage_odds, scenario_builder, scenarios, run):
        fn.cache_clear()
