"""Internal rate of return by Newton-Raphson on irregular monthly cash flows.

Cash flows are ``(month, amount)`` pairs with arbitrary (fractional) month
offsets; order is irrelevant.  The solver finds the monthly rate ``r`` with::

    f(r)  = Σ a / (1 + r) ** m                 = 0
    f'(r) = Σ −m · a / (1 + r) ** (m + 1)

iterating ``r ← r − f(r) / f'(r)`` from ``r = 0.01`` and annualises the
root as ``((1 + r) ** 12 − 1) × 100``.

The loss sentinel
-----------------
Every failure mode returns :data:`IRR_LOSS_SENTINEL` (−100.0) instead of
raising:

* an iterate at or below ``r = −1`` (compounding breaks down; the position
  has lost more than its principal at the monthly scale),
* degenerate flows with no root — empty, no inflow, or no outflow (a
  single purchase at month 0 with nothing coming back is the typical case),
* a vanishing derivative before convergence,
* a non-finite iterate, or exhausting ``max_iter``.

Callers must treat the sentinel as "maximum representable loss / no
meaningful rate", **not** as a literal −100 % return in every case: an
all-inflow timeline also maps to it.  :class:`IrrResult.converged`
distinguishes a true −100 % root from a failure.

Run tests with::

    pytest tests/test_irr.py -v
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Iterable, NamedTuple

import numpy as np

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Annualised percentage reported for total loss or an unsolvable timeline.
IRR_LOSS_SENTINEL: Final[float] = -100.0

#: Starting monthly rate for the Newton iteration.
DEFAULT_GUESS: Final[float] = 0.01

#: Convergence tolerance on successive monthly-rate iterates.
DEFAULT_TOL: Final[float] = 1e-8

#: Iteration cap; guarantees termination on rootless timelines.
DEFAULT_MAX_ITER: Final[int] = 100

#: Derivative magnitude below which a Newton step cannot improve.
_MIN_DERIVATIVE: Final[float] = 1e-14


class CashFlow(NamedTuple):
    """A single dated cash movement.  Negative = outflow, positive = inflow."""

    month: float
    amount: float


@dataclass(frozen=True)
class IrrResult:
    """Outcome of one IRR solve.

    Attributes:
        annual_pct: Annualised IRR in percent, or :data:`IRR_LOSS_SENTINEL`.
        monthly_rate: Last monthly iterate (``None`` if never iterated).
        iterations: Newton steps taken.
        converged: True only when successive iterates met the tolerance.
    """

    annual_pct: float
    monthly_rate: float | None
    iterations: int
    converged: bool

    @property
    def is_sentinel(self) -> bool:
        return self.annual_pct == IRR_LOSS_SENTINEL


def _sentinel(monthly_rate: float | None, iterations: int, converged: bool = False) -> IrrResult:
    return IrrResult(IRR_LOSS_SENTINEL, monthly_rate, iterations, converged)


def solve_irr(
    cash_flows: Iterable[CashFlow | tuple[float, float]],
    *,
    guess: float = DEFAULT_GUESS,
    tol: float = DEFAULT_TOL,
    max_iter: int = DEFAULT_MAX_ITER,
) -> IrrResult:
    """Solve the annualised IRR of ``cash_flows``.

    Args:
        cash_flows: ``(month, amount)`` pairs.
        guess: Starting monthly rate.
        tol: Stop when ``|r_new − r| < tol``.
        max_iter: Maximum Newton steps.

    Returns:
        :class:`IrrResult`.  Never raises for numeric reasons.

    Examples::

        solve_irr([(0, -1000), (12, 1100)]).annual_pct  → 10.0
        solve_irr([(0, -1000)]).annual_pct              → -100.0
    """
    flows = [CashFlow(float(m), float(a)) for m, a in cash_flows]
    if not flows:
        return _sentinel(None, 0)

    months = np.array([cf.month for cf in flows], dtype=float)
    amounts = np.array([cf.amount for cf in flows], dtype=float)

    # No sign change → no real root.
    if not (np.any(amounts > 0) and np.any(amounts < 0)):
        return _sentinel(None, 0)

    r = guess
    with np.errstate(all="ignore"):
        for i in range(max_iter):
            base = 1.0 + r
            f = float(np.sum(amounts / base ** months))
            df = float(np.sum(-months * amounts / base ** (months + 1.0)))
            if not np.isfinite(df) or abs(df) < _MIN_DERIVATIVE:
                return _sentinel(r, i)
            r_new = r - f / df
            if not np.isfinite(r_new):
                return _sentinel(r, i + 1)
            if r_new <= -1.0:
                return _sentinel(r_new, i + 1)
            if abs(r_new - r) < tol:
                annual = ((1.0 + r_new) ** 12 - 1.0) * 100.0
                return IrrResult(float(annual), r_new, i + 1, True)
            r = r_new
    return _sentinel(r, max_iter)


def annualized_irr(cash_flows: Iterable[CashFlow | tuple[float, float]], **kwargs) -> float:
    """Shorthand for ``solve_irr(cash_flows, **kwargs).annual_pct``."""
    return solve_irr(cash_flows, **kwargs).annual_pct


def merge_by_month(flows: Iterable[CashFlow | tuple[float, float]]) -> tuple[CashFlow, ...]:
    """Combine flows sharing a month, sorted by month.

    Amounts in the same month are summed; order is otherwise irrelevant to
    the solver but a canonical form keeps results bit-for-bit reproducible.
    """
    merged: dict[float, float] = {}
    for month, amount in flows:
        merged[float(month)] = merged.get(float(month), 0.0) + float(amount)
    return tuple(CashFlow(m, merged[m]) for m in sorted(merged))
