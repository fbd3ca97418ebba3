"""Odds conversion and devig for outright tournament markets.

Pure functions only.  Scenario and persistence code call into this module
for every odds conversion.

The two pillars exposed are:

1. **Odds conversion** — American ↔ decimal, plus format dispatch for the
   display layer.
2. **Devig** — proportional removal of the bookmaker margin across a full
   outright market so that fair probabilities sum to exactly 100.

Design decisions
----------------
* Probabilities in this package are expressed in **percent** (0–100), not
  as fractions.  Outright tournament markets are quoted and discussed in
  percent, and the scenario P&L arithmetic downstream divides by 100 at the
  single point where a probability weights a money amount.
* Invalid American odds (``-100 < v < 100``) do **not** raise.  They map to
  the sentinel decimal value ``1.0``, which :func:`is_hedgeable` rejects.
  The input-owning layer decides whether to keep the previous value.
* The American round trip is lossy: :func:`decimal_to_american` rounds to
  the nearest integer.  Starting from American input the result lands
  within one unit of ``v``; starting from a stored decimal it does not come
  back exactly (4.333 → ``+333`` → 4.33).  Use the American value for
  display, never for arithmetic.
* Proportional devig is used rather than Shin because an outright market
  has seven outcomes, and the same margin factor is later reapplied
  uniformly to conditional stage odds in :mod:`ticketsim.core.stage_odds`.

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Literal, Mapping

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

#: American-odds magnitude floor.  Values strictly between −100 and +100 are
#: not representable American odds.
_MIN_ODDS_MAGNITUDE: Final[int] = 100

#: Decimal value returned for unconvertible American input.  Never hedgeable.
INVALID_DECIMAL: Final[float] = 1.0

#: American value returned for decimal odds ≤ 1.0.
INVALID_AMERICAN: Final[int] = 0

ODDS_FORMAT_DECIMAL: Final[str] = "decimal"
ODDS_FORMAT_AMERICAN: Final[str] = "american"

OddsFormat = Literal["decimal", "american"]

ODDS_FORMATS: Final[tuple[str, ...]] = (ODDS_FORMAT_DECIMAL, ODDS_FORMAT_AMERICAN)


# ---------------------------------------------------------------------------
# Odds conversion
# ---------------------------------------------------------------------------


def american_to_decimal(american: int | float) -> float:
    """Convert American odds to decimal (European) format.

    Decimal odds represent the total payout per unit staked, **including**
    the return of the stake itself.  Examples::

        american_to_decimal(+330) → 4.30
        american_to_decimal(-250) → 1.40
        american_to_decimal(+50)  → 1.0    (invalid → sentinel)

    Args:
        american: American odds.  Positive = underdog (profit per 100
            staked), negative = favourite (stake needed to profit 100).

    Returns:
        Decimal odds > 1.0, or :data:`INVALID_DECIMAL` when
        ``-100 < american < 100``.
    """
    if american >= _MIN_ODDS_MAGNITUDE:
        return 1.0 + american / 100.0
    if american <= -_MIN_ODDS_MAGNITUDE:
        return 1.0 + 100.0 / abs(american)
    return INVALID_DECIMAL


def decimal_to_american(decimal_odds: float) -> int:
    """Convert decimal odds to the nearest American integer.

    Inverse of :func:`american_to_decimal` up to integer rounding; see the
    module docstring for why the round trip is not exact.

    Args:
        decimal_odds: Decimal (European) odds.

    Returns:
        American odds integer.  ``decimal ≥ 2`` → positive,
        ``1 < decimal < 2`` → negative, ``decimal ≤ 1`` →
        :data:`INVALID_AMERICAN`.
    """
    if decimal_odds >= 2.0:
        return round((decimal_odds - 1.0) * 100)
    if decimal_odds > 1.0:
        # Favourite: decimal < 2.0 → negative American
        return round(-100.0 / (decimal_odds - 1.0))
    return INVALID_AMERICAN


def to_decimal(odds_format: str, value: float) -> float:
    """Convert a value entered in ``odds_format`` to decimal odds.

    Raises:
        ValueError: If ``odds_format`` is not a known format.
    """
    if odds_format == ODDS_FORMAT_AMERICAN:
        return american_to_decimal(value)
    if odds_format == ODDS_FORMAT_DECIMAL:
        return float(value)
    raise ValueError(
        f"Unknown odds format {odds_format!r}; expected one of {ODDS_FORMATS!r}."
    )


def to_display(decimal_odds: float, odds_format: str) -> float | int:
    """Convert decimal odds to the value shown for ``odds_format``.

    Raises:
        ValueError: If ``odds_format`` is not a known format.
    """
    if odds_format == ODDS_FORMAT_AMERICAN:
        return decimal_to_american(decimal_odds)
    if odds_format == ODDS_FORMAT_DECIMAL:
        return decimal_odds
    raise ValueError(
        f"Unknown odds format {odds_format!r}; expected one of {ODDS_FORMATS!r}."
    )


def is_hedgeable(decimal_odds: float) -> bool:
    """True when ``decimal_odds`` pays out more than the stake."""
    return decimal_odds > INVALID_DECIMAL


def potential_profit(stake: float, decimal_odds: float) -> float:
    """Net profit of a winning bet: ``stake × (decimal_odds − 1)``."""
    return stake * (decimal_odds - 1.0)


# ---------------------------------------------------------------------------
# Devig: proportional margin removal
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProbabilityModel:
    """Implied and fair (devigged) probabilities for one outright market.

    All probabilities are in percent.

    Attributes:
        implied: Outcome → raw implied probability ``100 / odds``.
        total_implied: Sum of ``implied`` (the book's overround, e.g. 104.2).
        margin: ``total_implied − 100``; positive when the book has vig.
        fair: Outcome → ``implied / total_implied × 100``.  Sums to 100
            whenever ``total_implied > 0``; all zero otherwise.
    """

    implied: Mapping[str, float]
    total_implied: float
    margin: float
    fair: Mapping[str, float]

    @property
    def vig_factor(self) -> float:
        """Ratio rescaling fair odds back to market odds (< 1 with margin)."""
        return 100.0 / self.total_implied if self.total_implied > 0 else 1.0


def implied_prob(decimal_odds: float) -> float:
    """Raw implied probability in percent; 0 for non-positive odds."""
    return 100.0 / decimal_odds if decimal_odds > 0 else 0.0


def devig(odds: Mapping[str, float]) -> ProbabilityModel:
    """Remove the bookmaker margin from an outright market.

    The implied probabilities of a complete outright market sum to more
    than 100 % by the bookmaker's overround ``K``.  Proportional devig
    divides each by ``K``::

        fair_i = implied_i / Σ implied_j × 100

    Args:
        odds: Outcome → decimal odds, in outcome order.  The mapping must
            cover every mutually exclusive outcome for the fair
            probabilities to be meaningful.

    Returns:
        :class:`ProbabilityModel`.  When the total implied probability is
        zero (no positive odds at all) every fair probability is 0 rather
        than raising.

    Examples::

        m = devig({"A": 2.0, "B": 2.0})
        m.total_implied  → 100.0
        m.fair["A"]      → 50.0
    """
    implied = {key: implied_prob(value) for key, value in odds.items()}
    total = sum(implied.values())
    fair = {
        key: (ip / total) * 100.0 if total > 0 else 0.0
        for key, ip in implied.items()
    }
    return ProbabilityModel(
        implied=implied,
        total_implied=total,
        margin=total - 100.0,
        fair=fair,
    )
