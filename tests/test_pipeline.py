"""
Tests for the memoised simulation pipeline.

Run with: pytest tests/test_pipeline.py -v
"""

import pytest

from ticketsim.core.tournament_config import FINALS, TournamentConfig
from ticketsim.services import pipeline
from ticketsim.services.persistence import (
    default_settings,
    set_investor_stake,
    update_odds,
    update_settings,
    update_stake,
)
from ticketsim.services.sensitivity import sweep_from_env

TOURNAMENT = TournamentConfig.world_cup_2026()


@pytest.fixture(autouse=True)
def _fresh_caches():
    pipeline.clear_caches()
    yield
    pipeline.clear_caches()


class TestSimulate:

    def test_default_run(self):
        result = pipeline.simulate(default_settings())
        assert len(result.scenarios) == len(TOURNAMENT.stages) + 1
        assert result.finals.key == FINALS
        assert result.total_purchase == 8370.0
        assert len(result.sensitivity) == 57
        assert result.breakeven_defined

    def test_probabilities_sum_to_100(self):
        result = pipeline.simulate(default_settings())
        assert sum(s.probability for s in result.scenarios) == pytest.approx(100.0)
        assert result.finals.probability == pytest.approx(result.prob_finals)

    def test_expected_value_is_weighted_mean(self):
        result = pipeline.simulate(default_settings())
        ev = sum(s.probability / 100.0 * s.net_pl for s in result.scenarios)
        assert result.expected_value == pytest.approx(ev)

    def test_risk_bounds(self):
        result = pipeline.simulate(default_settings())
        pls = [s.net_pl for s in result.scenarios]
        assert result.risk.max_loss == min(pls)
        assert result.risk.max_gain == max(pls)

    def test_breakeven_zeroes_finals(self):
        settings = default_settings()
        result = pipeline.simulate(settings)
        builder = pipeline.scenario_builder(
            settings.to_config(),
            settings.to_stake_set(TOURNAMENT),
            settings.to_odds_set(TOURNAMENT),
            TOURNAMENT,
        )
        assert builder.finals(result.breakeven_price).net_pl == pytest.approx(0.0, abs=1e-6)

    def test_breakeven_undefined_does_not_raise(self):
        settings = update_settings(
            default_settings(), resale_fee_percent=90, processing_fee_percent=10
        )
        result = pipeline.simulate(settings)
        assert result.breakeven_price is None
        assert not result.breakeven_defined
        assert "Fee rates" in result.breakeven_error
        assert len(result.sensitivity) == 57

    def test_unknown_scenario_key(self):
        result = pipeline.simulate(default_settings())
        with pytest.raises(KeyError):
            result.scenario("Final")


class TestInvestorView:

    def test_full_stake_matches_headline(self):
        result = pipeline.simulate(default_settings())
        assert result.investor.expected_value == pytest.approx(result.expected_value)
        assert result.investor.finals_pl == pytest.approx(result.finals.net_pl)

    def test_half_stake_scales_headline_only(self):
        full = pipeline.simulate(default_settings())
        half = pipeline.simulate(set_investor_stake(default_settings(), 50))
        assert half.investor.expected_value == pytest.approx(full.expected_value / 2)
        assert half.investor.max_loss == pytest.approx(full.risk.max_loss / 2)
        assert half.investor.max_gain == pytest.approx(full.risk.max_gain / 2)
        assert half.expected_value == pytest.approx(full.expected_value)
        assert half.finals.net_pl == pytest.approx(full.finals.net_pl)


class TestHedgeDisabled:

    def test_stakes_ignored(self):
        result = pipeline.simulate(update_settings(default_settings(), hedge_enabled=False))
        for s in result.scenarios:
            assert s.hedge_result == 0.0
            assert s.hedge_carry_cost == 0.0
            assert s.hedge_flows == ()

    def test_elimination_loses_only_base_carry(self):
        result = pipeline.simulate(update_settings(default_settings(), hedge_enabled=False))
        for s in result.scenarios[:-1]:
            assert s.net_pl == pytest.approx(-result.base_carry_cost)


class TestMemoisation:

    def test_identical_inputs_return_cached_result(self):
        assert pipeline.simulate(default_settings()) is pipeline.simulate(default_settings())

    def test_stake_change_reuses_probability_model(self):
        a = pipeline.simulate(default_settings())
        b = pipeline.simulate(update_stake(default_settings(), "SF", 1000))
        assert a is not b
        assert a.probability_model is b.probability_model
        assert a.stage_odds is b.stage_odds

    def test_odds_change_recomputes_model(self):
        a = pipeline.simulate(default_settings())
        b = pipeline.simulate(update_odds(default_settings(), "Winner", 7.0))
        assert a.probability_model is not b.probability_model
        assert a.probability_model.fair["Winner"] != b.probability_model.fair["Winner"]

    def test_cached_model_is_read_only(self):
        result = pipeline.simulate(default_settings())
        with pytest.raises(TypeError):
            result.probability_model.fair["Group"] = 0.0

    def test_clear_caches(self):
        a = pipeline.simulate(default_settings())
        pipeline.clear_caches()
        assert pipeline.simulate(default_settings()) is not a

    def test_environment_is_not_a_hidden_input(self, monkeypatch):
        first = pipeline.simulate(default_settings())
        monkeypatch.setenv("SENSITIVITY_PRICE_STEP", "1000")
        pipeline.clear_caches()
        second = pipeline.simulate(default_settings())
        assert len(first.sensitivity) == len(second.sensitivity) == 57
        assert first.sensitivity == second.sensitivity

    def test_swept_tournament_is_part_of_cache_key(self):
        swept = sweep_from_env(TOURNAMENT, {"SENSITIVITY_PRICE_STEP": "1000"})
        default = pipeline.simulate(default_settings(), TOURNAMENT)
        coarse = pipeline.simulate(default_settings(), swept)
        assert coarse is not default
        assert len(default.sensitivity) == 57
        assert len(coarse.sensitivity) == 29
        assert coarse.expected_value == pytest.approx(default.expected_value)
