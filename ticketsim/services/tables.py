"""
Tabular views of a :class:`~ticketsim.services.pipeline.SimulationResult`.

These are the hand-off format for charting and display code: one row per
outcome, stage, or sweep point, with raw (unformatted) numbers.
"""

from typing import Optional

import pandas as pd

from ticketsim.core.odds_math import to_display
from ticketsim.services.pipeline import SimulationResult


def scenarios_to_frame(result: SimulationResult) -> pd.DataFrame:
    """One row per scenario, indexed by scenario key."""
    rows = [
        {
            "scenario": s.key,
            "label": s.label,
            "probability": s.probability,
            "gross_proceeds": s.gross_proceeds,
            "total_fees": s.total_fees,
            "net_proceeds": s.net_proceeds,
            "stake_placed": s.total_stake_placed,
            "hedge_result": s.hedge_result,
            "hedge_carry": s.hedge_carry_cost,
            "base_carry": s.base_carry_cost,
            "net_pl": s.net_pl,
            "irr": s.irr,
        }
        for s in result.scenarios
    ]
    return pd.DataFrame(rows).set_index("scenario")


def odds_to_frame(result: SimulationResult, odds_format: Optional[str] = None) -> pd.DataFrame:
    """Market odds, implied/fair probabilities and conditional stage odds.

    Terminal outcomes have no conditional odds (NaN).  Undefined stage odds
    are also NaN, never ``inf``.
    """
    fmt = odds_format or result.config.odds_format
    model = result.probability_model
    rows = []
    for outcome in result.tournament.outcomes:
        implied = model.implied[outcome]
        decimal_odds = 100.0 / implied if implied > 0 else float("nan")
        stage = result.stage_odds.get(outcome)
        adjusted = stage.adjusted_odds if stage is not None else None
        rows.append(
            {
                "outcome": outcome,
                "label": result.tournament.label(outcome),
                "odds": to_display(decimal_odds, fmt) if implied > 0 else None,
                "implied_prob": implied,
                "fair_prob": model.fair[outcome],
                "cond_prob": stage.cond_prob * 100.0 if stage is not None else None,
                "adjusted_odds": adjusted,
            }
        )
    return pd.DataFrame(rows).set_index("outcome")


def sensitivity_to_frame(result: SimulationResult) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"price": p.price, "finals_pl": p.finals_pl, "expected_value": p.expected_value}
            for p in result.sensitivity
        ]
    )
