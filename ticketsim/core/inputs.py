"""Immutable input records consumed by the simulation pipeline.

Every input the engine reads is a frozen, hashable value:

* :class:`OddsSet` — decimal odds per outcome.
* :class:`HedgeStakeSet` — hedge stake per elimination stage.
* :class:`SimulationConfig` — purchase, fee, carry and resale parameters.

Hashability is what lets :mod:`ticketsim.services.pipeline` memoise each
derived stage on its declared inputs.  A change is expressed by building a
new value (``with_odds``, ``with_stake``, :func:`dataclasses.replace`), never
by mutating one in place.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Mapping

from ticketsim.core.odds_math import ODDS_FORMAT_DECIMAL, ODDS_FORMATS, is_hedgeable


class InvalidOddsError(ValueError):
    """Raised when decimal odds are ≤ 1.0 (after any format conversion)."""


@dataclass(frozen=True)
class OddsSet:
    """Decimal odds for every mutually exclusive outcome, in outcome order.

    Build with :meth:`from_mapping`; the positional ``items`` field keeps the
    instance hashable.
    """

    items: tuple[tuple[str, float], ...]

    def __post_init__(self) -> None:
        for outcome, odds in self.items:
            if not is_hedgeable(odds):
                raise InvalidOddsError(
                    f"Odds for {outcome!r} must be > 1.0 in decimal format, "
                    f"got {odds!r}."
                )

    @classmethod
    def from_mapping(cls, odds: Mapping[str, float], outcomes: tuple[str, ...]) -> OddsSet:
        """Order ``odds`` by ``outcomes``.

        Raises:
            InvalidOddsError: If an outcome is missing or any value ≤ 1.0.
        """
        missing = [o for o in outcomes if o not in odds]
        if missing:
            raise InvalidOddsError(f"Missing odds for outcome(s) {missing!r}.")
        return cls(tuple((o, float(odds[o])) for o in outcomes))

    def __getitem__(self, outcome: str) -> float:
        for key, value in self.items:
            if key == outcome:
                return value
        raise KeyError(outcome)

    def __iter__(self) -> Iterator[str]:
        return (key for key, _ in self.items)

    def __len__(self) -> int:
        return len(self.items)

    def as_dict(self) -> dict[str, float]:
        return dict(self.items)

    def with_odds(self, outcome: str, decimal_odds: float) -> OddsSet:
        """Return a copy with ``outcome`` repriced.

        Raises:
            InvalidOddsError: If ``decimal_odds ≤ 1.0``.
            KeyError: If ``outcome`` is not part of this set.
        """
        if outcome not in self.as_dict():
            raise KeyError(outcome)
        return OddsSet(
            tuple(
                (key, float(decimal_odds) if key == outcome else value)
                for key, value in self.items
            )
        )


@dataclass(frozen=True)
class HedgeStakeSet:
    """Hedge stake per elimination stage (all ≥ 0)."""

    items: tuple[tuple[str, float], ...]

    def __post_init__(self) -> None:
        for stage, stake in self.items:
            if stake < 0:
                raise ValueError(f"Hedge stake for {stage!r} must be ≥ 0, got {stake!r}.")

    @classmethod
    def from_mapping(cls, stakes: Mapping[str, float], stages: tuple[str, ...]) -> HedgeStakeSet:
        """Order ``stakes`` by ``stages``; a missing stage stakes nothing."""
        return cls(tuple((s, float(stakes.get(s, 0.0))) for s in stages))

    def __getitem__(self, stage: str) -> float:
        return self.as_dict()[stage]

    def as_dict(self) -> dict[str, float]:
        return dict(self.items)

    def total(self, stages: tuple[str, ...] | None = None) -> float:
        """Sum of stakes over ``stages`` (all stages when omitted)."""
        stakes = self.as_dict()
        keys = stakes.keys() if stages is None else stages
        return sum(stakes[s] for s in keys)

    def with_stake(self, stage: str, stake: float) -> HedgeStakeSet:
        if stage not in self.as_dict():
            raise KeyError(stage)
        return HedgeStakeSet(
            tuple((key, float(stake) if key == stage else value) for key, value in self.items)
        )


@dataclass(frozen=True)
class SimulationConfig:
    """Scalar economics of the ticket purchase and resale.

    Percentages are expressed as percent (``15`` means 15 %).

    Attributes:
        price_per_ticket: Face/purchase price per ticket; also the
            reimbursement per ticket if the team is eliminated.
        num_tickets: Number of tickets bought.
        resale_fee_percent: Marketplace seller fee on gross resale.
        processing_fee_percent: Payment-processing fee on gross resale.
        fixed_transaction_cost: Flat cost per resale transaction.
        annual_opportunity_cost: Annual rate (percent) used to price capital
            tied up in tickets and hedges.  May be negative.
        expected_resale: Expected resale price per ticket if the team
            reaches the final.
        investor_stake_percent: Share of the position attributable to one
            investor; scales headline metrics only.
        hedge_enabled: When False every hedge stake is treated as zero.
        odds_format: Display format for odds (``"decimal"``/``"american"``).
    """

    price_per_ticket: float = 4185.0
    num_tickets: int = 2
    resale_fee_percent: float = 15.0
    processing_fee_percent: float = 3.0
    fixed_transaction_cost: float = 0.0
    annual_opportunity_cost: float = 6.0
    expected_resale: float = 10000.0
    investor_stake_percent: float = 100.0
    hedge_enabled: bool = True
    odds_format: str = ODDS_FORMAT_DECIMAL

    def __post_init__(self) -> None:
        if self.odds_format not in ODDS_FORMATS:
            raise ValueError(
                f"Unknown odds format {self.odds_format!r}; expected one of {ODDS_FORMATS!r}."
            )
        if self.num_tickets < 0:
            raise ValueError(f"num_tickets must be ≥ 0, got {self.num_tickets!r}.")
        # (1 + r/100) ** (months/12) is complex for r ≤ -100.
        if self.annual_opportunity_cost <= -100.0:
            raise ValueError(
                f"annual_opportunity_cost must be > -100, got {self.annual_opportunity_cost!r}."
            )

    @property
    def total_purchase(self) -> float:
        return self.price_per_ticket * self.num_tickets

    @property
    def investor_share(self) -> float:
        """Investor stake as a fraction, clamped to ``[0, 1]``."""
        return min(max(self.investor_stake_percent, 0.0), 100.0) / 100.0
