"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Client creates a game → fresh session with its own EffectEngine
2. During game:
   - Every engine call runs under the session lock
   - Automated decisions are answered inside those calls
   - Human decisions wait until the client submits them
3. Game ends or client deletes it → session dropped from memory

PERSISTENCE RULES:
- NO database for gameplay
- Game state is ephemeral (session-scoped only)

CONCURRENCY:
- The API serves sync endpoints from a thread pool, so two requests for
  the same game can arrive at once. Session.lock serializes them; a game
  is never touched by two threads at a time.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import logging
import threading
import uuid
import time

from ..engine_core.effect_resolver import EffectEngine
from ..engine_core.state import GamePhase

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a game session."""
    ACTIVE = "active"  # Game in progress
    GAME_OVER = "game_over"  # Game completed
    ABANDONED = "abandoned"  # User quit


@dataclass
class Session:
    """
    An ephemeral game session.

    Contains:
    - The engine (which owns the game state)
    - The lock serializing engine calls
    - Session metadata

    The session is destroyed when the game ends.
    State is NOT persisted.
    """
    session_id: str
    engine: EffectEngine
    created_at: float

    state: SessionState = SessionState.ACTIVE
    scenario: str | None = None
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    # Session metadata
    metadata: dict[str, Any] = field(default_factory=dict)

    def is_active(self) -> bool:
        """Check if session is still active."""
        return (
            self.state == SessionState.ACTIVE
            and self.engine.state.phase != GamePhase.GAME_OVER
        )


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Register sessions around new engines
    - Track active sessions
    - Clean up completed sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self):
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def new_session_id(self) -> str:
        return str(uuid.uuid4())

    def create_session(
        self,
        engine: EffectEngine,
        session_id: str | None = None,
        scenario: str | None = None,
    ) -> Session:
        """
        Register a new game session.

        Args:
            engine: Engine for the new game
            session_id: ID to use (defaults to the game ID)
            scenario: Name of the scenario the game was built from

        Returns:
            New active Session
        """
        session = Session(
            session_id=session_id or engine.state.game_id,
            engine=engine,
            created_at=time.time(),
            scenario=scenario,
        )
        with self._lock:
            self._sessions[session.session_id] = session
        logger.info("Created session %s (%s)", session.session_id, scenario or "custom")
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        with self._lock:
            return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session and clean up.

        An engine still waiting on a decision is cancelled first, so its
        queue is dropped together with the Awaiting slot.
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False

        with session.lock:
            if session.engine.state.phase != GamePhase.GAME_OVER:
                session.engine.cancel(reason)
            session.state = (
                SessionState.GAME_OVER if reason == "completed" else SessionState.ABANDONED
            )
        logger.info("Ended session %s (%s)", session_id, reason)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        with self._lock:
            sessions = list(self._sessions.items())
        return [sid for sid, session in sessions if session.is_active()]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600):
        """
        Clean up sessions older than max_age.

        Called periodically to free memory.
        """
        current_time = time.time()
        with self._lock:
            to_remove = [
                session_id
                for session_id, session in self._sessions.items()
                if current_time - session.created_at > max_age_seconds
                and not session.is_active()
            ]

        for session_id in to_remove:
            self.end_session(session_id, reason="stale")
