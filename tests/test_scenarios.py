"""
Tests for the scenario builder.

Run with: pytest tests/test_scenarios.py -v
"""

from dataclasses import replace

import pytest

from ticketsim.core.carry import base_carrying_cost, compound_carry
from ticketsim.core.inputs import HedgeStakeSet, OddsSet, SimulationConfig
from ticketsim.core.irr import IRR_LOSS_SENTINEL, CashFlow
from ticketsim.core.odds_math import devig
from ticketsim.core.stage_odds import build_stage_odds
from ticketsim.core.tournament_config import FINALS, TournamentConfig
from ticketsim.services.scenarios import ScenarioBuilder, finals_net_pl, resale_proceeds

TOURNAMENT = TournamentConfig.world_cup_2026()
DEFAULT_ODDS = {
    "Group": 31.0, "R32": 4.3, "R16": 4.0, "QF": 4.3, "SF": 5.5,
    "RunnerUp": 9.0, "Winner": 9.0,
}
DEFAULT_STAKES = {"Group": 25.0, "R32": 300.0, "R16": 500.0, "QF": 1200.0, "SF": 3100.0}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _builder(config=None, stakes=None, odds=None):
    config = config or SimulationConfig()
    odds_set = OddsSet.from_mapping(odds or DEFAULT_ODDS, TOURNAMENT.outcomes)
    stake_set = HedgeStakeSet.from_mapping(
        DEFAULT_STAKES if stakes is None else stakes, TOURNAMENT.stages
    )
    model = devig(odds_set.as_dict())
    return ScenarioBuilder(
        config, stake_set, model, build_stage_odds(model, TOURNAMENT.stages), TOURNAMENT
    )


# ---------------------------------------------------------------------------
# Shared arithmetic
# ---------------------------------------------------------------------------

class TestResaleProceeds:

    def test_fee_breakdown(self):
        p = resale_proceeds(10000.0, 2, 15.0, 3.0, 50.0)
        assert p.gross == pytest.approx(20000.0)
        assert p.resale_fee == pytest.approx(3000.0)
        assert p.processing_fee == pytest.approx(600.0)
        assert p.total_fees == pytest.approx(3650.0)
        assert p.net == pytest.approx(16350.0)

    def test_finals_net_pl(self):
        assert finals_net_pl(16400.0, 8370.0, 100.0, 20.0, -500.0) == pytest.approx(7410.0)


# ---------------------------------------------------------------------------
# Scenario set
# ---------------------------------------------------------------------------

class TestScenarioSet:

    def test_six_scenarios_in_order(self):
        scenarios = _builder().build_all()
        assert [s.key for s in scenarios] == list(TOURNAMENT.stages) + [FINALS]
        assert [s.is_finals for s in scenarios] == [False] * 5 + [True]

    def test_probabilities_sum_to_100(self):
        scenarios = _builder().build_all()
        assert sum(s.probability for s in scenarios) == pytest.approx(100.0, abs=1e-9)

    @pytest.mark.parametrize(
        "odds",
        [
            DEFAULT_ODDS,
            {"Group": 1.5, "R32": 3.0, "R16": 7.0, "QF": 12.0, "SF": 20.0,
             "RunnerUp": 40.0, "Winner": 60.0},
            {"Group": 101.0, "R32": 51.0, "R16": 21.0, "QF": 6.0, "SF": 3.2,
             "RunnerUp": 2.9, "Winner": 3.1},
        ],
    )
    def test_probabilities_sum_to_100_any_market(self, odds):
        scenarios = _builder(odds=odds).build_all()
        assert sum(s.probability for s in scenarios) == pytest.approx(100.0, abs=1e-9)

    def test_finals_probability_is_both_terminal_outcomes(self):
        builder = _builder()
        model = builder.model
        assert builder.finals().probability == pytest.approx(
            model.fair["RunnerUp"] + model.fair["Winner"]
        )


class TestEliminationScenario:
    """Elimination at stage k: hedge k wins, earlier hedges lost, later never placed."""

    def test_group_stage(self):
        builder = _builder()
        s = builder.elimination("Group")
        odds = builder.stage_odds["Group"].adjusted_odds
        assert s.placed_stages == ("Group",)
        assert s.total_stake_placed == pytest.approx(25.0)
        assert s.hedge_payout == pytest.approx(25.0 * odds)
        assert s.hedge_result == pytest.approx(25.0 * (odds - 1.0))

    def test_quarter_final_forfeits_earlier_stakes(self):
        builder = _builder()
        s = builder.elimination("QF")
        odds = builder.stage_odds["QF"].adjusted_odds
        assert s.placed_stages == ("Group", "R32", "R16", "QF")
        assert s.hedge_result == pytest.approx(1200.0 * (odds - 1.0) - (25.0 + 300.0 + 500.0))

    def test_reimbursed_without_fees(self):
        s = _builder().elimination("R16")
        assert s.gross_proceeds == pytest.approx(8370.0)
        assert s.net_proceeds == pytest.approx(8370.0)
        assert s.total_fees == 0.0

    def test_net_pl_components(self):
        builder = _builder()
        s = builder.elimination("R32")
        base = base_carrying_cost(8370.0, 6.0, 5.5)
        h_carry = compound_carry(25.0, 6.0, 1.5) + compound_carry(300.0, 6.0, 1.5)
        assert s.base_carry_cost == pytest.approx(base)
        assert s.hedge_carry_cost == pytest.approx(h_carry)
        assert s.net_pl == pytest.approx(-base - h_carry + s.hedge_result)

    def test_cash_flows_merge_placement_months(self):
        builder = _builder()
        s = builder.elimination("SF")
        assert s.cash_flows[0] == CashFlow(0.0, -8370.0)
        assert s.hedge_flows == (CashFlow(4.0, -825.0), CashFlow(5.0, -4300.0))
        assert s.cash_flows[-1].month == 5.5
        assert s.cash_flows[-1].amount == pytest.approx(8370.0 + s.hedge_payout)

    def test_cash_flows_reconcile_with_net_pl_when_no_carry(self):
        """Undiscounted flows equal P&L when the opportunity cost is zero."""
        builder = _builder(config=SimulationConfig(annual_opportunity_cost=0.0))
        for stage in TOURNAMENT.stages:
            s = builder.elimination(stage)
            assert sum(cf.amount for cf in s.cash_flows) == pytest.approx(s.net_pl)

    def test_irr_is_solved(self):
        s = _builder().elimination("Group")
        assert s.irr_result.converged
        assert s.irr > 0  # a 31.0 hedge on 25 returns more than the carry


class TestFinalsScenario:
    """Reaching the final: resale net of fees, every hedge lost."""

    def test_no_hedge_no_carry(self):
        cfg = SimulationConfig(annual_opportunity_cost=0.0, hedge_enabled=False)
        s = _builder(config=cfg).finals()
        assert s.gross_proceeds == pytest.approx(20000.0)
        assert s.total_fees == pytest.approx(3600.0)
        assert s.net_proceeds == pytest.approx(16400.0)
        assert s.net_pl == pytest.approx(16400.0 - 8370.0)

    def test_all_stakes_forfeited(self):
        s = _builder().finals()
        assert s.hedge_result == pytest.approx(-5125.0)
        assert s.total_stake_placed == pytest.approx(5125.0)
        assert s.hedge_payout == 0.0
        assert s.placed_stages == TOURNAMENT.stages

    def test_carry_on_every_stake(self):
        s = _builder().finals()
        expected = (
            compound_carry(825.0, 6.0, 1.5) + compound_carry(4300.0, 6.0, 0.5)
        )
        assert s.hedge_carry_cost == pytest.approx(expected)

    def test_resale_price_override(self):
        builder = _builder()
        low, high = builder.finals(5000.0), builder.finals(15000.0)
        assert high.net_pl - low.net_pl == pytest.approx(2 * 10000.0 * 0.82)

    def test_sale_inflow_is_net_proceeds(self):
        s = _builder().finals()
        assert s.sale_inflow == pytest.approx(s.net_proceeds)
        assert s.cash_flows[-1].amount == pytest.approx(s.net_proceeds)


class TestHedgeDisabled:
    """Disabling hedging removes every hedge effect in every scenario."""

    def test_zero_hedge_effects(self):
        cfg = SimulationConfig(hedge_enabled=False)
        for s in _builder(config=cfg).build_all():
            assert s.hedge_flows == ()
            assert s.hedge_payout == 0.0
            assert s.hedge_result == 0.0
            assert s.hedge_carry_cost == 0.0
            assert s.total_stake_placed == 0.0
            assert len(s.cash_flows) == 2

    def test_elimination_only_loses_carry(self):
        cfg = SimulationConfig(hedge_enabled=False)
        builder = _builder(config=cfg)
        for stage in TOURNAMENT.stages:
            s = builder.elimination(stage)
            assert s.net_pl == pytest.approx(-builder.base_carry)

    def test_no_carry_elimination_irr_is_zero(self):
        cfg = SimulationConfig(hedge_enabled=False, annual_opportunity_cost=0.0)
        s = _builder(config=cfg).elimination("QF")
        assert s.net_pl == pytest.approx(0.0)
        assert s.irr == pytest.approx(0.0, abs=1e-6)


class TestZeroStakes:

    def test_zero_stake_stage_has_no_outflow(self):
        stakes = dict(DEFAULT_STAKES, Group=0.0)
        s = _builder(stakes=stakes).elimination("Group")
        assert s.hedge_flows == ()
        assert s.hedge_result == 0.0

    def test_total_loss_irr_sentinel(self):
        """Resale worth nothing and no hedges: sale inflow of zero."""
        cfg = replace(
            SimulationConfig(), expected_resale=0.0, hedge_enabled=False
        )
        s = _builder(config=cfg).finals()
        assert s.irr == IRR_LOSS_SENTINEL
