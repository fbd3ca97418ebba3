"""Tournament-level configuration — stage order and timing in one place.

This module is the **registry** for every constant that describes the shape
of a knockout tournament: the ordered elimination stages, the two terminal
outcomes that together mean "reaches the final", the month in which each
stage's hedge is placed, and the month in which ticket proceeds (and any
winning hedge payout) are received.  Nowhere else in the codebase should
stage names or placement months be hard-coded.

Architecture
------------
:class:`TournamentConfig` is a frozen dataclass.  The named constructor
:meth:`TournamentConfig.world_cup_2026` returns the canonical configuration.
Because the dataclass is frozen and all of its fields are tuples, instances
are hashable and can be used directly as memoisation keys by
:mod:`ticketsim.services.pipeline`.

Typical usage::

    from ticketsim.core.tournament_config import TournamentConfig

    cfg = TournamentConfig.world_cup_2026()
    cfg.hedge_month("QF")       # → 5.0

    # Shift every payout by half a month for a delayed resale:
    from dataclasses import replace
    late_cfg = replace(cfg, proceeds_month=6.0)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

# ---------------------------------------------------------------------------
# Outcome identifiers
# ---------------------------------------------------------------------------

#: Terminal outcome: team loses the final.
RUNNER_UP: Final[str] = "RunnerUp"

#: Terminal outcome: team wins the final.
WINNER: Final[str] = "Winner"

#: Scenario key for the combined "reaches the final" outcome.
FINALS: Final[str] = "Finals"

#: Default resale-price sweep used by the sensitivity engine (inclusive).
DEFAULT_SWEEP_MIN: Final[float] = 2000.0
DEFAULT_SWEEP_MAX: Final[float] = 30000.0
DEFAULT_SWEEP_STEP: Final[float] = 500.0


@dataclass(frozen=True)
class TournamentConfig:
    """Immutable description of a knockout tournament's shape and timing.

    Attributes:
        name: Human-readable tournament name for logging.
        stages: Ordered elimination stages, earliest first.  Elimination at
            stage *k* means the team survived stages ``1..k-1``.
        stage_labels: ``(stage, label)`` pairs for display.  Includes an
            entry for :data:`FINALS` and both terminal outcomes.
        hedge_months: ``(stage, month)`` pairs giving the month offset (from
            the ticket purchase at month 0) at which the hedge against
            elimination at that stage is placed.
        proceeds_month: Month offset at which ticket reimbursement or resale
            proceeds, and any winning hedge payout, are received.
        terminal_outcomes: The two outcomes that jointly represent
            "reaches the final".  Always ``(RUNNER_UP, WINNER)``.
        sweep_min / sweep_max / sweep_step: Default resale-price grid for the
            sensitivity curve.
    """

    name: str
    stages: tuple[str, ...]
    stage_labels: tuple[tuple[str, str], ...]
    hedge_months: tuple[tuple[str, float], ...]
    proceeds_month: float
    terminal_outcomes: tuple[str, str] = (RUNNER_UP, WINNER)
    sweep_min: float = DEFAULT_SWEEP_MIN
    sweep_max: float = DEFAULT_SWEEP_MAX
    sweep_step: float = DEFAULT_SWEEP_STEP

    def __post_init__(self) -> None:
        if not self.stages:
            raise ValueError("TournamentConfig needs at least one elimination stage.")
        if len(set(self.stages)) != len(self.stages):
            raise ValueError(f"Duplicate stage names in {self.stages!r}.")
        months = dict(self.hedge_months)
        missing = [s for s in self.stages if s not in months]
        if missing:
            raise ValueError(
                f"No hedge placement month for stage(s) {missing!r}. "
                "Every elimination stage needs an entry in hedge_months."
            )
        late = [s for s in self.stages if months[s] > self.proceeds_month]
        if late:
            raise ValueError(
                f"Hedge month for {late!r} falls after proceeds_month "
                f"{self.proceeds_month!r}."
            )
        if self.sweep_step <= 0:
            raise ValueError(f"sweep_step must be > 0, got {self.sweep_step!r}.")
        if self.sweep_max < self.sweep_min:
            raise ValueError(
                f"sweep_max {self.sweep_max!r} is below sweep_min {self.sweep_min!r}."
            )

    # ------------------------------------------------------------------ #
    #  Named constructors                                                  #
    # ------------------------------------------------------------------ #

    @classmethod
    def world_cup_2026(cls) -> TournamentConfig:
        """Return the 48-team World Cup configuration.

        Group-stage, round-of-32 and round-of-16 hedges are all placed in
        month 4; quarter- and semi-final hedges in month 5.  Tickets for the
        final are resold (or reimbursed) in month 5.5.
        """
        return cls(
            name="FIFA World Cup 2026",
            stages=("Group", "R32", "R16", "QF", "SF"),
            stage_labels=(
                ("Group", "Group Stage"),
                ("R32", "Round of 32"),
                ("R16", "Round of 16"),
                ("QF", "Quarter-Finals"),
                ("SF", "Semi-Finals"),
                (FINALS, "Finals"),
                (RUNNER_UP, "Runner-Up"),
                (WINNER, "Winner"),
            ),
            hedge_months=(
                ("Group", 4.0),
                ("R32", 4.0),
                ("R16", 4.0),
                ("QF", 5.0),
                ("SF", 5.0),
            ),
            proceeds_month=5.5,
        )

    # ------------------------------------------------------------------ #
    #  Convenience accessors                                               #
    # ------------------------------------------------------------------ #

    @property
    def outcomes(self) -> tuple[str, ...]:
        """All mutually exclusive outcomes: stages then terminal outcomes."""
        return self.stages + tuple(self.terminal_outcomes)

    def hedge_month(self, stage: str) -> float:
        """Return the placement month for ``stage``'s hedge."""
        return dict(self.hedge_months)[stage]

    def label(self, key: str) -> str:
        """Return the display label for a stage/outcome, or ``key`` itself."""
        return dict(self.stage_labels).get(key, key)

    def stages_through(self, stage: str) -> tuple[str, ...]:
        """Stages whose hedges have been placed when eliminated at ``stage``."""
        idx = self.stages.index(stage)
        return self.stages[: idx + 1]

    def __repr__(self) -> str:
        return (
            f"TournamentConfig(name={self.name!r}, "
            f"stages={self.stages!r}, "
            f"proceeds_month={self.proceeds_month})"
        )
