"""
Engine Core - Deterministic game state management and effect resolution.

The engine is the runtime that:
1. Holds the GameState of one game
2. Resolves card effects against it, pausing for decisions
3. Queues effects that cannot run yet and fires reactive ones
4. Hands decisions for automated sides to their DecisionAdapter
"""

from .state import (
    CardInstance,
    CardLocation,
    GamePhase,
    GameState,
    PlayerState,
    Side,
    Zone,
    LANE_COUNT,
)
from .perspective import Perspective
from .errors import EngineError, StateViolation, AdapterContractViolation, IllegalAction
from .effect_queue import PendingEffectQueue, QueuedEffect
from .action_required import ActionRequired, ActionRequiredMachine, DecisionKind
from .targeting import NoValidTarget, TargetResolver
from .conditions import ConditionalEvaluator, EffectOutcome
from .reactive import GameEvent, ReactiveTriggerDispatcher
from .effect_resolver import EffectEngine, PlayOption

__all__ = [
    "CardInstance",
    "CardLocation",
    "GamePhase",
    "GameState",
    "PlayerState",
    "Side",
    "Zone",
    "LANE_COUNT",
    "Perspective",
    "EngineError",
    "StateViolation",
    "AdapterContractViolation",
    "IllegalAction",
    "PendingEffectQueue",
    "QueuedEffect",
    "ActionRequired",
    "ActionRequiredMachine",
    "DecisionKind",
    "NoValidTarget",
    "TargetResolver",
    "ConditionalEvaluator",
    "EffectOutcome",
    "GameEvent",
    "ReactiveTriggerDispatcher",
    "EffectEngine",
    "PlayOption",
]
