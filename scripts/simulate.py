#!/usr/bin/env python3
"""
Run the ticket hedge simulation from a saved settings snapshot.

Reads a JSON snapshot (the same blob the UI persists under
``wc-ticket-sim-state``), merges it over the defaults, runs the pipeline
and writes the scenario, odds and sensitivity tables.

Usage:
    # Defaults only
    python scripts/simulate.py

    # From a saved snapshot, exporting CSVs
    python scripts/simulate.py --settings state.json --csv-dir out/

    # Persist the merged (validated) settings back out
    python scripts/simulate.py --settings state.json --save state.json

Environment (.env is loaded):
    SENSITIVITY_PRICE_MIN / SENSITIVITY_PRICE_MAX / SENSITIVITY_PRICE_STEP
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Probability-weighted P&L for tournament tickets with stage hedges"
    )
    parser.add_argument(
        "--settings", type=str, default=None,
        help="Path to a persisted settings JSON snapshot",
    )
    parser.add_argument(
        "--save", type=str, default=None,
        help="Write the validated, merged settings to this path",
    )
    parser.add_argument(
        "--csv-dir", type=str, default=None,
        help="Directory for scenarios.csv, odds.csv and sensitivity.csv",
    )
    parser.add_argument(
        "--no-hedge", action="store_true",
        help="Disable hedging regardless of the snapshot",
    )
    args = parser.parse_args()

    from ticketsim.core.tournament_config import TournamentConfig
    from ticketsim.services.persistence import dump_settings, load_settings_json, update_settings
    from ticketsim.services.pipeline import simulate
    from ticketsim.services.sensitivity import sweep_from_env
    from ticketsim.services.tables import (
        odds_to_frame,
        scenarios_to_frame,
        sensitivity_to_frame,
    )

    tournament = sweep_from_env(TournamentConfig.world_cup_2026())
    raw = Path(args.settings).read_text() if args.settings else None
    settings = load_settings_json(raw, tournament)
    if args.no_hedge:
        settings = update_settings(settings, hedge_enabled=False)

    result = simulate(settings, tournament)

    logger.info(
        "Market margin %.2f%%, P(reach final) %.2f%%",
        result.probability_model.margin, result.prob_finals,
    )
    logger.info(
        "Expected value %.2f, expected IRR %.2f%%",
        result.expected_value, result.expected_irr.annual_pct,
    )
    if result.breakeven_defined:
        logger.info("Breakeven resale price %.2f per ticket", result.breakeven_price)
    else:
        logger.warning("Breakeven undefined: %s", result.breakeven_error)
    logger.info(
        "Risk range %.2f to %.2f (investor share %.0f%%: EV %.2f)",
        result.risk.max_loss, result.risk.max_gain,
        result.investor.share * 100, result.investor.expected_value,
    )

    scenarios = scenarios_to_frame(result)
    print(scenarios.to_string(float_format=lambda v: f"{v:,.2f}"))

    if args.csv_dir:
        out = Path(args.csv_dir)
        out.mkdir(parents=True, exist_ok=True)
        scenarios.to_csv(out / "scenarios.csv")
        odds_to_frame(result).to_csv(out / "odds.csv")
        sensitivity_to_frame(result).to_csv(out / "sensitivity.csv", index=False)
        logger.info("Wrote tables to %s", out)

    if args.save:
        Path(args.save).write_text(json.dumps(dump_settings(settings), indent=2))
        logger.info("Saved settings to %s", args.save)


if __name__ == "__main__":
    main()
