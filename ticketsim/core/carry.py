"""Time-value carrying cost of capital tied up until proceeds arrive.

All functions here are **pure**.  Rates are annual, in percent, and are
compounded over fractional months::

    carry(amount, rate, months) = amount × ((1 + rate/100) ** (months/12) − 1)

A negative rate is allowed and produces a negative cost (a discount).
"""

from __future__ import annotations

from typing import Mapping, Sequence


def compound_carry(amount: float, annual_rate_pct: float, months: float) -> float:
    """Opportunity cost of holding ``amount`` for ``months`` at ``annual_rate_pct``.

    Examples::

        compound_carry(1000.0, 12.0, 12.0)  → 120.0
        compound_carry(1000.0, 0.0, 6.0)    →   0.0
    """
    return amount * ((1.0 + annual_rate_pct / 100.0) ** (months / 12.0) - 1.0)


def base_carrying_cost(total_purchase: float, annual_rate_pct: float, proceeds_month: float) -> float:
    """Carry on the ticket purchase from month 0 to the proceeds month."""
    return compound_carry(total_purchase, annual_rate_pct, proceeds_month)


def hedge_carrying_cost(
    stakes: Mapping[str, float],
    stages: Sequence[str],
    placement_months: Mapping[str, float],
    proceeds_month: float,
    annual_rate_pct: float,
    *,
    enabled: bool = True,
) -> float:
    """Sum of per-stage carry on hedge stakes actually placed.

    Each stake is carried from its own placement month to the proceeds
    month; the result is additive across ``stages``.

    Args:
        stakes: Stage → stake amount.
        stages: The stages whose hedges were placed.
        placement_months: Stage → month the hedge is placed.
        proceeds_month: Month the hedge (and tickets) settle.
        annual_rate_pct: Annual opportunity-cost rate in percent.
        enabled: When False no hedges exist and the cost is 0.

    Returns:
        Total hedge carrying cost.
    """
    if not enabled:
        return 0.0
    return sum(
        compound_carry(stakes[s], annual_rate_pct, proceeds_month - placement_months[s])
        for s in stages
    )
