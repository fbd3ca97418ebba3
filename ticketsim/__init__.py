"""Ticket hedge simulator — probability-weighted P&L for tournament tickets."""

__version__ = "0.1.0"
