"""
Session Module - Manages in-memory game sessions.

A session represents one play-through of a theme:
- Created when the host seats players
- Holds the committed game state and the event bus
- Destroyed when the host ends it

Sessions are EPHEMERAL:
- No persistence to database
- No state shared between sessions
"""

from .manager import SessionManager, Session, SessionState

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
]
