"""
Resale-price sensitivity sweep.

For each resale price on a fixed grid the Finals net P&L is recomputed with
the same fee, carry and hedge arithmetic the scenario builder uses, and the
blended expected value is updated.  Only the Finals term depends on price;
the elimination scenarios contribute a constant.

Grid bounds come from the tournament's ``sweep_min``, ``sweep_max`` and
``sweep_step`` (2,000 to 30,000 in steps of 500 by default) and can be
overridden per call.  The engine never reads the environment;
:func:`sweep_from_env` folds the ``SENSITIVITY_PRICE_MIN``,
``SENSITIVITY_PRICE_MAX`` and ``SENSITIVITY_PRICE_STEP`` overrides into a
:class:`~ticketsim.core.tournament_config.TournamentConfig` once, at the edge.
"""

import logging
import math
import os
from dataclasses import dataclass, replace
from typing import Iterator, Mapping, Optional, Sequence, Tuple

import numpy as np

from ticketsim.core.tournament_config import TournamentConfig
from ticketsim.services.scenarios import (
    Scenario,
    ScenarioBuilder,
    finals_net_pl,
    resale_proceeds,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SensitivityPoint:
    """One point of the sweep."""

    price: float
    finals_pl: float
    expected_value: float


def price_grid(price_min: float, price_max: float, step: float) -> np.ndarray:
    """Inclusive price grid ``price_min, price_min + step, … ≤ price_max``.

    Raises:
        ValueError: If ``step ≤ 0`` or ``price_max < price_min``.
    """
    if step <= 0:
        raise ValueError(f"Sweep step must be > 0, got {step!r}.")
    if price_max < price_min:
        raise ValueError(
            f"Sweep max {price_max!r} is below sweep min {price_min!r}."
        )
    # Small epsilon so that float drift never drops the last grid point.
    n = int(math.floor((price_max - price_min) / step + 1e-9))
    return price_min + step * np.arange(n + 1, dtype=float)


#: Environment variable → TournamentConfig sweep field.
SWEEP_ENV_VARS: Mapping[str, str] = {
    "SENSITIVITY_PRICE_MIN": "sweep_min",
    "SENSITIVITY_PRICE_MAX": "sweep_max",
    "SENSITIVITY_PRICE_STEP": "sweep_step",
}


def sweep_from_env(
    tournament: TournamentConfig,
    environ: Optional[Mapping[str, str]] = None,
) -> TournamentConfig:
    """Return ``tournament`` with any ``SENSITIVITY_PRICE_*`` overrides applied.

    Call once where the process starts (after ``load_dotenv``); the returned
    config is then an explicit, hashable input to the pipeline.  Malformed
    or inconsistent overrides are logged and ignored as a group, leaving the
    tournament's own sweep untouched.

    Args:
        tournament: Config whose sweep bounds are the defaults.
        environ: Mapping to read instead of ``os.environ``.
    """
    environ = os.environ if environ is None else environ
    overrides = {}
    for var, field_name in SWEEP_ENV_VARS.items():
        raw = environ.get(var)
        if raw is None or raw.strip() == "":
            continue
        try:
            overrides[field_name] = float(raw)
        except ValueError:
            logger.warning("Ignoring sweep overrides: %s=%r is not a number", var, raw)
            return tournament
    if not overrides:
        return tournament
    try:
        swept = replace(tournament, **overrides)
    except ValueError as exc:
        logger.warning("Ignoring sweep overrides %r: %s", overrides, exc)
        return tournament
    logger.info(
        "Sensitivity sweep %.0f to %.0f step %.0f (from environment)",
        swept.sweep_min, swept.sweep_max, swept.sweep_step,
    )
    return swept


class SensitivityEngine:
    """
    Sweeps the Finals resale price for one set of inputs.

    Instances hold no mutable state; :meth:`points` can be iterated any
    number of times and always yields the same sequence.
    """

    def __init__(
        self,
        builder: ScenarioBuilder,
        scenarios: Sequence[Scenario],
        price_min: Optional[float] = None,
        price_max: Optional[float] = None,
        step: Optional[float] = None,
    ):
        self.builder = builder
        tournament = builder.tournament
        self.price_min = tournament.sweep_min if price_min is None else price_min
        self.price_max = tournament.sweep_max if price_max is None else price_max
        self.step = tournament.sweep_step if step is None else step
        self.grid = price_grid(self.price_min, self.price_max, self.step)

        finals = [s for s in scenarios if s.is_finals]
        self.p_finals = finals[0].probability / 100.0 if finals else 0.0
        self.elimination_ev = sum(
            (s.probability / 100.0) * s.net_pl for s in scenarios if not s.is_finals
        )
        self._hedge_carry, self._hedge_result = builder.finals_hedge_terms()

    def finals_pl(self, price: float) -> float:
        """Finals net P&L at resale ``price`` per ticket."""
        cfg = self.builder.config
        proceeds = resale_proceeds(
            price,
            cfg.num_tickets,
            cfg.resale_fee_percent,
            cfg.processing_fee_percent,
            cfg.fixed_transaction_cost,
        )
        return finals_net_pl(
            proceeds.net,
            self.builder.total_purchase,
            self.builder.base_carry,
            self._hedge_carry,
            self._hedge_result,
        )

    def point(self, price: float) -> SensitivityPoint:
        pl = self.finals_pl(price)
        return SensitivityPoint(
            price=float(price),
            finals_pl=pl,
            expected_value=self.p_finals * pl + self.elimination_ev,
        )

    def points(self) -> Iterator[SensitivityPoint]:
        for price in self.grid:
            yield self.point(float(price))

    def sweep(self) -> Tuple[SensitivityPoint, ...]:
        curve = tuple(self.points())
        logger.debug(
            "Sensitivity sweep: %d points over %.0f–%.0f",
            len(curve), self.price_min, self.price_max,
        )
        return curve
