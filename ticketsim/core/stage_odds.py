"""Conditional per-stage elimination odds.

A hedge against elimination at stage *k* is placed only once the team has
survived stages ``1..k-1``, so it must be priced on the **conditional**
probability of elimination at *k* given survival to *k*, not on the
unconditional outright probability.

For stages in order, with cumulative eliminated probability ``C`` (starting
at 0, all in percent)::

    survival_k     = (100 − C) / 100
    conditional_k  = (fair_k / 100) / survival_k
    fair_odds_k    = 1 / conditional_k
    adjusted_k     = fair_odds_k × (100 / total_implied)
    C             += fair_k

``adjusted_k`` reapplies the **global** vig factor of the full outright
market to every stage.  A bookmaker would quote each conditional market
with its own margin; one uniform factor is a deliberate modelling
simplification and every downstream payout depends on it.

Conditional probability 0 gives undefined (infinite) odds.  These are
represented as ``None`` and never enter arithmetic; consumers must check.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ticketsim.core.odds_math import ProbabilityModel


@dataclass(frozen=True)
class StageOdds:
    """Conditional odds for the hedge against elimination at one stage.

    Attributes:
        stage: Stage identifier.
        survival_prob: Probability (fraction) of reaching this stage.
        cond_prob: Probability (fraction) of elimination here given survival.
        fair_odds: ``1 / cond_prob``; ``None`` when ``cond_prob`` is 0.
        adjusted_odds: ``fair_odds × vig_factor``; ``None`` with fair_odds.
    """

    stage: str
    survival_prob: float
    cond_prob: float
    fair_odds: Optional[float]
    adjusted_odds: Optional[float]

    @property
    def is_defined(self) -> bool:
        return self.adjusted_odds is not None

    def payout(self, stake: float) -> float:
        """Gross return of a winning hedge; 0 when odds are undefined."""
        if self.adjusted_odds is None:
            return 0.0
        return stake * self.adjusted_odds

    def potential_profit(self, stake: float) -> Optional[float]:
        """Net profit of a winning hedge, or ``None`` when undefined."""
        if self.adjusted_odds is None:
            return None
        return stake * (self.adjusted_odds - 1.0)


def build_stage_odds(
    model: ProbabilityModel,
    stages: Sequence[str],
) -> dict[str, StageOdds]:
    """Derive :class:`StageOdds` for each stage in order.

    Args:
        model: Devigged outright market covering at least ``stages``.
        stages: Elimination stages, earliest first.

    Returns:
        Stage → :class:`StageOdds`, in stage order.
    """
    vig_factor = model.vig_factor
    result: dict[str, StageOdds] = {}
    cum_prob = 0.0
    for stage in stages:
        fair_pct = model.fair[stage]
        survival = (100.0 - cum_prob) / 100.0
        cond = (fair_pct / 100.0) / survival if survival > 0 else 0.0
        fair_odds = 1.0 / cond if cond > 0 else None
        adjusted = fair_odds * vig_factor if fair_odds is not None else None
        result[stage] = StageOdds(
            stage=stage,
            survival_prob=survival,
            cond_prob=cond,
            fair_odds=fair_odds,
            adjusted_odds=adjusted,
        )
        cum_prob += fair_pct
    return result


def reaches_final_probability(model: ProbabilityModel, terminal_outcomes: Sequence[str]) -> float:
    """Fair probability (percent) of reaching the final."""
    return sum(model.fair[o] for o in terminal_outcomes)
