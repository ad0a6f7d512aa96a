"""
Bots module - Decision adapters for the automated side.

Provides:
- DecisionAdapter: Interface the engine calls for automated decisions
- RandomPolicy: Uniform random choices
- FirstLegalPolicy: Deterministic first-option choices
"""

from .policy import (
    BotDecision,
    ChoiceDecision,
    DecisionAdapter,
    FirstLegalPolicy,
    RandomPolicy,
)

__all__ = [
    "BotDecision",
    "ChoiceDecision",
    "DecisionAdapter",
    "FirstLegalPolicy",
    "RandomPolicy",
]
