"""
Big-tech Worker - Office survival theme.

Players juggle performance, health and happiness while competing for a
single promotion slot, a renewable stream of projects and a few mentors.

This module contains:
- Card definitions and the starting deck
- The complete theme spec
"""

from .spec import create_bigtech_worker_theme
from .cards import ALL_CARDS, STARTING_DECK

__all__ = [
    "create_bigtech_worker_theme",
    "ALL_CARDS",
    "STARTING_DECK",
]
