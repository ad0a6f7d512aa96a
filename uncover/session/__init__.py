"""
Session Module - Manages ephemeral game sessions.

A session represents one play-through of a game:
- Created when a client starts a game
- Holds the engine and the lock serializing calls into it
- Destroyed when the game ends

Sessions are EPHEMERAL:
- No persistence to database
- Ends cleanly when game completes
"""

from .manager import SessionManager, Session, SessionState

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
]
