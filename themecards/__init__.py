"""
Themecards - Rules core for theme-configured, turn-based card games.

One deterministic engine serves every theme (office-worker survival,
startup, ...). A theme supplies the content; the engine provides:
- Effect resolution against per-session player state
- Shared resource arbitration
- Combo detection and hints
- The turn/phase state machine and win conditions
"""

__version__ = "0.1.0"
