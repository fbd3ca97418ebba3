"""
Scenario builder for the ticket hedge simulator.

Expands one set of inputs into the six mutually exclusive outcomes of the
tournament (elimination at each stage, plus reaching the final) and for
each produces realised P&L and a dated cash-flow timeline:

    1. Elimination at stage k — tickets are reimbursed at face value (no
       resale fees), hedges for stages 1..k were placed, the stage-k hedge
       wins at its margin-adjusted conditional odds and earlier hedges are
       forfeited.  Later hedges are never placed.
    2. Finals — tickets are resold at the expected price net of fees, and
       every hedge was placed and lost.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ticketsim.core.carry import base_carrying_cost, hedge_carrying_cost
from ticketsim.core.inputs import HedgeStakeSet, SimulationConfig
from ticketsim.core.irr import CashFlow, IrrResult, merge_by_month, solve_irr
from ticketsim.core.odds_math import ProbabilityModel
from ticketsim.core.stage_odds import StageOdds, reaches_final_probability
from ticketsim.core.tournament_config import FINALS, TournamentConfig

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ResaleProceeds:
    """Gross-to-net breakdown of a ticket resale."""

    gross: float
    resale_fee: float
    processing_fee: float
    fixed_cost: float

    @property
    def total_fees(self) -> float:
        return self.resale_fee + self.processing_fee + self.fixed_cost

    @property
    def net(self) -> float:
        return self.gross - self.total_fees


@dataclass(frozen=True)
class Scenario:
    """Realised economics of one mutually exclusive tournament outcome."""

    key: str
    label: str
    probability: float  # percent
    is_finals: bool

    # Ticket proceeds
    gross_proceeds: float
    resale_fee: float
    processing_fee: float
    total_fees: float
    net_proceeds: float

    # Hedge
    placed_stages: Tuple[str, ...]
    total_stake_placed: float
    hedge_payout: float
    hedge_result: float
    hedge_carry_cost: float

    # Totals
    base_carry_cost: float
    net_pl: float
    hedge_flows: Tuple[CashFlow, ...]  # stakes paid, one flow per placement month
    cash_flows: Tuple[CashFlow, ...]
    irr_result: IrrResult

    @property
    def irr(self) -> float:
        """Annualised IRR in percent (−100 sentinel on failure)."""
        return self.irr_result.annual_pct

    @property
    def sale_inflow(self) -> float:
        """Cash received at the proceeds month."""
        return self.net_proceeds + self.hedge_payout


# ---------------------------------------------------------------------------
# Shared arithmetic
# ---------------------------------------------------------------------------

def resale_proceeds(
    price_per_ticket: float,
    num_tickets: int,
    resale_fee_percent: float,
    processing_fee_percent: float,
    fixed_transaction_cost: float,
) -> ResaleProceeds:
    """Fees and net proceeds for reselling ``num_tickets`` at ``price_per_ticket``."""
    gross = price_per_ticket * num_tickets
    return ResaleProceeds(
        gross=gross,
        resale_fee=gross * (resale_fee_percent / 100.0),
        processing_fee=gross * (processing_fee_percent / 100.0),
        fixed_cost=fixed_transaction_cost,
    )


def finals_net_pl(
    net_proceeds: float,
    total_purchase: float,
    base_carry: float,
    hedge_carry: float,
    hedge_result: float,
) -> float:
    """Net P&L when the team reaches the final."""
    return net_proceeds - total_purchase - base_carry - hedge_carry + hedge_result


# ---------------------------------------------------------------------------
# Core logic
# ---------------------------------------------------------------------------

class ScenarioBuilder:
    """
    Builds the per-outcome scenarios for one set of inputs.

    The builder is stateless beyond its constructor arguments: every method
    is a pure function of them, so a new builder is created whenever an
    input changes.
    """

    def __init__(
        self,
        config: SimulationConfig,
        stakes: HedgeStakeSet,
        model: ProbabilityModel,
        stage_odds: Dict[str, StageOdds],
        tournament: TournamentConfig,
    ):
        self.config = config
        self.model = model
        self.stage_odds = stage_odds
        self.tournament = tournament
        self.hedge_enabled = config.hedge_enabled

        # Disabled hedging is modelled as zero stakes everywhere.
        if self.hedge_enabled:
            self.stakes = {s: stakes[s] for s in tournament.stages}
        else:
            self.stakes = {s: 0.0 for s in tournament.stages}

        self.placement_months = dict(tournament.hedge_months)
        self.total_purchase = config.total_purchase
        self.base_carry = base_carrying_cost(
            self.total_purchase,
            config.annual_opportunity_cost,
            tournament.proceeds_month,
        )

    # ------------------------------------------------------------------
    # Hedge helpers
    # ------------------------------------------------------------------

    def hedge_carry(self, stages: Tuple[str, ...]) -> float:
        return hedge_carrying_cost(
            self.stakes,
            stages,
            self.placement_months,
            self.tournament.proceeds_month,
            self.config.annual_opportunity_cost,
            enabled=self.hedge_enabled,
        )

    def total_stakes(self, stages: Tuple[str, ...]) -> float:
        return sum(self.stakes[s] for s in stages)

    def hedge_outflows(self, stages: Tuple[str, ...]) -> Tuple[CashFlow, ...]:
        """Stakes for ``stages`` as negative flows, merged per placement month."""
        if not self.hedge_enabled:
            return ()
        merged = merge_by_month(
            (self.placement_months[s], -self.stakes[s]) for s in stages
        )
        return tuple(cf for cf in merged if cf.amount != 0.0)

    def _timeline(
        self, hedge_flows: Tuple[CashFlow, ...], sale_inflow: float
    ) -> Tuple[CashFlow, ...]:
        flows: List[CashFlow] = [CashFlow(0.0, -self.total_purchase)]
        flows.extend(hedge_flows)
        flows.append(CashFlow(self.tournament.proceeds_month, sale_inflow))
        return tuple(flows)

    # ------------------------------------------------------------------
    # Scenarios
    # ------------------------------------------------------------------

    def elimination(self, stage: str) -> Scenario:
        """Scenario for elimination at ``stage``."""
        placed = self.tournament.stages_through(stage)
        prior = placed[:-1]

        odds = self.stage_odds[stage]
        winning_stake = self.stakes[stage]
        if winning_stake > 0 and not odds.is_defined:
            logger.debug(
                "Stage %s has undefined conditional odds; hedge payout set to 0", stage
            )
        payout = odds.payout(winning_stake)
        lost = self.total_stakes(prior)
        # Net gain: payout less every stake placed, winning stake included.
        hedge_result = payout - winning_stake - lost

        reimbursement = self.total_purchase
        h_carry = self.hedge_carry(placed)
        net_pl = reimbursement - self.total_purchase - self.base_carry - h_carry + hedge_result

        hedge_flows = self.hedge_outflows(placed)
        flows = self._timeline(hedge_flows, reimbursement + payout)
        return Scenario(
            key=stage,
            label=f"Eliminated: {self.tournament.label(stage)}",
            probability=self.model.fair[stage],
            is_finals=False,
            gross_proceeds=reimbursement,
            resale_fee=0.0,
            processing_fee=0.0,
            total_fees=0.0,
            net_proceeds=reimbursement,
            placed_stages=placed,
            total_stake_placed=self.total_stakes(placed),
            hedge_payout=payout,
            hedge_result=hedge_result,
            hedge_carry_cost=h_carry,
            base_carry_cost=self.base_carry,
            net_pl=net_pl,
            hedge_flows=hedge_flows,
            cash_flows=flows,
            irr_result=solve_irr(flows),
        )

    def finals_hedge_terms(self) -> Tuple[float, float]:
        """``(hedge_carry, hedge_result)`` when every hedge is placed and lost."""
        stages = self.tournament.stages
        return self.hedge_carry(stages), -self.total_stakes(stages)

    def finals(self, resale_price: Optional[float] = None) -> Scenario:
        """Scenario for reaching the final, resold at ``resale_price``.

        Defaults to the configured expected resale price.
        """
        price = self.config.expected_resale if resale_price is None else resale_price
        stages = self.tournament.stages
        proceeds = resale_proceeds(
            price,
            self.config.num_tickets,
            self.config.resale_fee_percent,
            self.config.processing_fee_percent,
            self.config.fixed_transaction_cost,
        )
        h_carry, hedge_result = self.finals_hedge_terms()
        net_pl = finals_net_pl(
            proceeds.net, self.total_purchase, self.base_carry, h_carry, hedge_result
        )

        hedge_flows = self.hedge_outflows(stages)
        flows = self._timeline(hedge_flows, proceeds.net)
        return Scenario(
            key=FINALS,
            label=f"Reaches {self.tournament.label(FINALS)}",
            probability=reaches_final_probability(self.model, self.tournament.terminal_outcomes),
            is_finals=True,
            gross_proceeds=proceeds.gross,
            resale_fee=proceeds.resale_fee,
            processing_fee=proceeds.processing_fee,
            total_fees=proceeds.total_fees,
            net_proceeds=proceeds.net,
            placed_stages=stages,
            total_stake_placed=self.total_stakes(stages),
            hedge_payout=0.0,
            hedge_result=hedge_result,
            hedge_carry_cost=h_carry,
            base_carry_cost=self.base_carry,
            net_pl=net_pl,
            hedge_flows=hedge_flows,
            cash_flows=flows,
            irr_result=solve_irr(flows),
        )

    def build_all(self) -> Tuple[Scenario, ...]:
        """All scenarios: one per elimination stage, then Finals."""
        scenarios = [self.elimination(stage) for stage in self.tournament.stages]
        scenarios.append(self.finals())
        return tuple(scenarios)
