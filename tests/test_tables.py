"""
Tests for the DataFrame views of a simulation result.

Run with: pytest tests/test_tables.py -v
"""

import pandas as pd
import pytest

from ticketsim.services import pipeline
from ticketsim.services.persistence import default_settings
from ticketsim.services.tables import odds_to_frame, scenarios_to_frame, sensitivity_to_frame


@pytest.fixture
def result():
    pipeline.clear_caches()
    return pipeline.simulate(default_settings())


class TestScenarioFrame:

    def test_shape(self, result):
        df = scenarios_to_frame(result)
        assert list(df.index) == ["Group", "R32", "R16", "QF", "SF", "Finals"]
        assert df["probability"].sum() == pytest.approx(100.0)

    def test_values_match_result(self, result):
        df = scenarios_to_frame(result)
        assert df.loc["Finals", "net_pl"] == pytest.approx(result.finals.net_pl)


class TestOddsFrame:

    def test_one_row_per_outcome(self, result):
        df = odds_to_frame(result)
        assert list(df.index) == list(result.tournament.outcomes)
        assert df.loc["Group", "odds"] == pytest.approx(31.0)

    def test_terminal_outcomes_have_no_stage_odds(self, result):
        df = odds_to_frame(result)
        assert pd.isna(df.loc["Winner", "cond_prob"])
        assert pd.isna(df.loc["RunnerUp", "adjusted_odds"])
        assert not pd.isna(df.loc["QF", "adjusted_odds"])

    def test_american_display(self, result):
        df = odds_to_frame(result, "american")
        assert df.loc["Group", "odds"] == 3000
        assert df.loc["R16", "odds"] == 300


class TestSensitivityFrame:

    def test_columns(self, result):
        df = sensitivity_to_frame(result)
        assert list(df.columns) == ["price", "finals_pl", "expected_value"]
        assert len(df) == 57
        assert df["price"].iloc[0] == 2000.0
