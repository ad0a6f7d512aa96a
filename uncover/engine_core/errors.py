"""
Engine errors.

None of these leave the game state half-changed: every entry point checks
before it mutates.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for errors raised by the effect engine."""
    error_code = "ENGINE_ERROR"


class StateViolation(EngineError):
    """
    An operation would break the single-decision invariant.

    Raised when a second decision is opened while one is Awaiting, or a
    decision is settled when none is outstanding.
    """
    error_code = "STATE_VIOLATION"


class AdapterContractViolation(EngineError):
    """A selection from the UI or a bot is not a legal answer. The decision stays open."""
    error_code = "INVALID_SELECTION"
    retryable = True

    def __init__(self, message: str, choice_id: str | None = None):
        self.choice_id = choice_id
        super().__init__(message)


class IllegalAction(EngineError):
    """A base action (play, draw, end turn) is not allowed right now."""
    error_code = "ILLEGAL_ACTION"
