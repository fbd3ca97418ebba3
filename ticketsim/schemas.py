"""
Pydantic schema for the persisted simulator settings.

The presentation layer stores the user's inputs as a flat JSON blob under
camelCase keys (``pricePerTicket``, ``bettingOdds``, …).  This schema is the
single place that blob is validated before it reaches the engine; the
engine itself only ever sees the frozen records in
:mod:`ticketsim.core.inputs`.
"""

from __future__ import annotations

from typing import Dict, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ticketsim.core.inputs import HedgeStakeSet, OddsSet, SimulationConfig
from ticketsim.core.tournament_config import TournamentConfig

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_BETTING_ODDS: Dict[str, float] = {
    "Group": 31.0,
    "R32": 4.3,
    "R16": 4.0,
    "QF": 4.3,
    "SF": 5.5,
    "RunnerUp": 9.0,
    "Winner": 9.0,
}

DEFAULT_HEDGE_STAKES: Dict[str, float] = {
    "Group": 25.0,
    "R32": 300.0,
    "R16": 500.0,
    "QF": 1200.0,
    "SF": 3100.0,
}


class SimulationSettings(BaseModel):
    """
    Every user-editable input of the simulator.

    Field names are snake_case in Python and camelCase on the wire; both are
    accepted on input.  Odds are always stored as decimal odds regardless of
    ``odds_format``, which only selects how they are displayed and entered.
    """

    # Purchase
    price_per_ticket: float = Field(4185.0, ge=0)
    num_tickets: int = Field(2, ge=0)

    # Transaction costs
    resale_fee_percent: float = Field(15.0, ge=0, le=100)
    processing_fee_percent: float = Field(3.0, ge=0, le=100)
    fixed_transaction_cost: float = Field(0.0, ge=0)

    # Carrying cost (annual %, may be negative but must keep 1 + r > 0)
    annual_opportunity_cost: float = Field(6.0, gt=-100)

    # Resale
    expected_resale: float = Field(10000.0, ge=0)

    # Hedge
    hedge_enabled: bool = True
    betting_odds: Dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_BETTING_ODDS))
    odds_format: Literal["decimal", "american"] = "decimal"
    hedge_stakes: Dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_HEDGE_STAKES))

    # Investor
    investor_stake_percent: float = Field(100.0, ge=0, le=100)

    @field_validator("betting_odds")
    @classmethod
    def validate_decimal_odds(cls, v: Dict[str, float]) -> Dict[str, float]:
        for outcome, odds in v.items():
            if odds <= 1.0:
                raise ValueError(
                    f"betting_odds[{outcome!r}]={odds} is not valid decimal odds. "
                    "Must be > 1.0."
                )
        return v

    @field_validator("hedge_stakes")
    @classmethod
    def validate_stakes(cls, v: Dict[str, float]) -> Dict[str, float]:
        for stage, stake in v.items():
            if stake < 0:
                raise ValueError(f"hedge_stakes[{stage!r}]={stake} must be ≥ 0")
        return v

    # ------------------------------------------------------------------
    # Conversion to engine inputs
    # ------------------------------------------------------------------

    def to_config(self) -> SimulationConfig:
        return SimulationConfig(
            price_per_ticket=self.price_per_ticket,
            num_tickets=self.num_tickets,
            resale_fee_percent=self.resale_fee_percent,
            processing_fee_percent=self.processing_fee_percent,
            fixed_transaction_cost=self.fixed_transaction_cost,
            annual_opportunity_cost=self.annual_opportunity_cost,
            expected_resale=self.expected_resale,
            investor_stake_percent=self.investor_stake_percent,
            hedge_enabled=self.hedge_enabled,
            odds_format=self.odds_format,
        )

    def to_odds_set(self, tournament: TournamentConfig) -> OddsSet:
        """Raises :class:`~ticketsim.core.inputs.InvalidOddsError` on a missing outcome."""
        return OddsSet.from_mapping(self.betting_odds, tournament.outcomes)

    def to_stake_set(self, tournament: TournamentConfig) -> HedgeStakeSet:
        return HedgeStakeSet.from_mapping(self.hedge_stakes, tournament.stages)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        json_schema_extra={
            "example": {
                "pricePerTicket": 4185,
                "numTickets": 2,
                "resaleFeePercent": 15,
                "processingFeePercent": 3,
                "fixedTransactionCost": 0,
                "annualOpportunityCost": 6,
                "expectedResale": 10000,
                "hedgeEnabled": True,
                "bettingOdds": DEFAULT_BETTING_ODDS,
                "oddsFormat": "decimal",
                "hedgeStakes": DEFAULT_HEDGE_STAKES,
                "investorStakePercent": 100,
            }
        },
    )
