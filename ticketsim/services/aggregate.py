"""
Probability-weighted aggregation across scenarios.

Expected value is the plain probability-weighted mean of scenario P&L.
Expected IRR is **not** the weighted mean of per-scenario IRRs: rates do
not average.  Instead one blended timeline is built from the expected cash
position at each date and solved once:

    month 0          −purchase                      (certain)
    placement month  −Σ p_i × stake paid by scenario i in that month
    proceeds month   +Σ p_i × sale-month inflow of scenario i
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Sequence, Tuple

from ticketsim.core.irr import CashFlow, IrrResult, solve_irr
from ticketsim.services.scenarios import Scenario

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RiskMetrics:
    """Range of realised outcomes across scenarios."""

    max_loss: float  # lowest scenario net P&L
    max_gain: float  # highest scenario net P&L


@dataclass(frozen=True)
class InvestorView:
    """Headline metrics scaled to one investor's share of the position."""

    share: float
    expected_value: float
    finals_pl: float
    max_loss: float
    max_gain: float


def expected_value(scenarios: Iterable[Scenario]) -> float:
    """Σ probability/100 × net P&L."""
    return sum((s.probability / 100.0) * s.net_pl for s in scenarios)


def blended_cash_flows(
    scenarios: Sequence[Scenario],
    total_purchase: float,
    proceeds_month: float,
) -> Tuple[CashFlow, ...]:
    """Expected cash position over time across all scenarios."""
    weighted_inflow = 0.0
    weighted_outflow: Dict[float, float] = {}
    for s in scenarios:
        p = s.probability / 100.0
        weighted_inflow += p * s.sale_inflow
        for cf in s.hedge_flows:
            weighted_outflow[cf.month] = weighted_outflow.get(cf.month, 0.0) + p * cf.amount

    flows = [
        CashFlow(0.0, -total_purchase),
        CashFlow(proceeds_month, weighted_inflow),
    ]
    flows.extend(CashFlow(m, weighted_outflow[m]) for m in sorted(weighted_outflow))
    return tuple(flows)


def expected_irr(
    scenarios: Sequence[Scenario],
    total_purchase: float,
    proceeds_month: float,
) -> IrrResult:
    """Solve the blended timeline; see module docstring."""
    result = solve_irr(blended_cash_flows(scenarios, total_purchase, proceeds_month))
    if not result.converged:
        logger.info(
            "Expected IRR did not converge after %d iterations; reporting %.1f%%",
            result.iterations,
            result.annual_pct,
        )
    return result


def risk_metrics(scenarios: Sequence[Scenario]) -> RiskMetrics:
    if not scenarios:
        raise ValueError("risk_metrics needs at least one scenario.")
    pls = [s.net_pl for s in scenarios]
    return RiskMetrics(max_loss=min(pls), max_gain=max(pls))


def investor_view(
    share: float,
    ev: float,
    finals_pl: float,
    risk: RiskMetrics,
) -> InvestorView:
    """Scale headline metrics by ``share`` (a fraction in ``[0, 1]``)."""
    share = min(max(share, 0.0), 1.0)
    return InvestorView(
        share=share,
        expected_value=ev * share,
        finals_pl=finals_pl * share,
        max_loss=risk.max_loss * share,
        max_gain=risk.max_gain * share,
    )
