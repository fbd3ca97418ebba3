"""
Persistence port and input-update policy for simulator settings.

The engine never reads or writes storage.  The presentation layer hands
this module whatever snapshot it previously saved (a dict or a JSON string)
and gets back validated :class:`~ticketsim.schemas.SimulationSettings`;
on every change it asks :func:`dump_settings` for a JSON-serialisable dict
to store verbatim under :data:`STORAGE_KEY`.

Policy:
    * A snapshot is merged **shallowly** over the defaults, then validated
      as a whole.  If any field is invalid the entire snapshot is discarded
      and the defaults are used; fields are never partially merged.
    * An odds edit that converts to decimal odds ≤ 1.0 is rejected and the
      previous value is kept.
"""

import json
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ticketsim.core.inputs import InvalidOddsError
from ticketsim.core.odds_math import is_hedgeable, to_decimal
from ticketsim.core.tournament_config import TournamentConfig
from ticketsim.schemas import SimulationSettings

logger = logging.getLogger(__name__)

STORAGE_KEY = "wc-ticket-sim-state"


def default_settings() -> SimulationSettings:
    return SimulationSettings()


def load_settings(
    snapshot: Any,
    tournament: Optional[TournamentConfig] = None,
) -> SimulationSettings:
    """Merge ``snapshot`` over the defaults and validate the result.

    Args:
        snapshot: Previously persisted blob (normally a dict keyed by the
            camelCase field aliases).  ``None`` means nothing was saved.
        tournament: The merged odds must cover every outcome of this
            tournament.  Defaults to the World Cup 2026 configuration,
            the same one :func:`~ticketsim.services.pipeline.simulate` uses.

    Returns:
        Validated settings, or the defaults if ``snapshot`` is missing,
        not a mapping, or invalid in any field.
    """
    if snapshot is None:
        return default_settings()
    if not isinstance(snapshot, dict):
        logger.warning(
            "Ignoring persisted settings of type %s; using defaults",
            type(snapshot).__name__,
        )
        return default_settings()

    tournament = tournament or TournamentConfig.world_cup_2026()
    merged: Dict[str, Any] = dump_settings(default_settings())
    merged.update(snapshot)
    try:
        settings = SimulationSettings.model_validate(merged)
        settings.to_odds_set(tournament)
    except (ValidationError, InvalidOddsError) as exc:
        logger.warning("Persisted settings invalid, falling back to defaults: %s", exc)
        return default_settings()
    return settings


def load_settings_json(
    raw: Optional[str],
    tournament: Optional[TournamentConfig] = None,
) -> SimulationSettings:
    """Like :func:`load_settings` but starting from the stored JSON text."""
    if not raw:
        return default_settings()
    try:
        snapshot = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Persisted settings are not valid JSON (%s); using defaults", exc)
        return default_settings()
    return load_settings(snapshot, tournament)


def dump_settings(settings: SimulationSettings) -> Dict[str, Any]:
    """JSON-serialisable snapshot keyed by camelCase aliases."""
    return settings.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Input updates (each returns new settings)
# ---------------------------------------------------------------------------

def update_odds(
    settings: SimulationSettings,
    outcome: str,
    display_value: float,
) -> SimulationSettings:
    """Apply an odds edit entered in the current display format.

    Returns ``settings`` unchanged when the converted decimal odds are not
    hedgeable (≤ 1.0); the previous valid value is retained.
    """
    decimal_odds = to_decimal(settings.odds_format, display_value)
    if not is_hedgeable(decimal_odds):
        logger.info(
            "Rejected %s odds %r for %s (decimal %.4f ≤ 1.0); keeping %.4f",
            settings.odds_format, display_value, outcome, decimal_odds,
            settings.betting_odds.get(outcome, float("nan")),
        )
        return settings
    odds = dict(settings.betting_odds)
    odds[outcome] = decimal_odds
    return settings.model_copy(update={"betting_odds": odds})


def update_stake(settings: SimulationSettings, stage: str, stake: float) -> SimulationSettings:
    """Set one hedge stake; negative stakes are rejected like invalid odds."""
    if stake < 0:
        logger.info("Rejected negative stake %r for %s", stake, stage)
        return settings
    stakes = dict(settings.hedge_stakes)
    stakes[stage] = float(stake)
    return settings.model_copy(update={"hedge_stakes": stakes})


def set_investor_stake(settings: SimulationSettings, percent: float) -> SimulationSettings:
    """Set the investor stake, clamped to ``[0, 100]``."""
    clamped = min(max(float(percent), 0.0), 100.0)
    return settings.model_copy(update={"investor_stake_percent": clamped})


def update_settings(settings: SimulationSettings, **changes: Any) -> SimulationSettings:
    """Apply scalar changes with full validation.

    Raises:
        pydantic.ValidationError: If the result is invalid.
    """
    data = settings.model_dump()
    data.update(changes)
    return SimulationSettings.model_validate(data)
