"""Core mathematics and configuration for the ticket hedge simulator.

This package contains pure, tournament-agnostic building blocks:

- ``odds_math``         — odds conversion and devig normalisation
- ``stage_odds``        — conditional per-stage elimination odds
- ``carry``             — time-value carrying cost of tied-up capital
- ``irr``               — Newton-Raphson internal rate of return
- ``inputs``            — immutable config, odds and stake records
- ``tournament_config`` — stage order, hedge timing, sweep defaults

Nothing in this package imports from ``ticketsim.services``.
All modules are side-effect-free and unit-testable in isolation.
"""
