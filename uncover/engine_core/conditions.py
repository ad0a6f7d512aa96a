"""
Conditional Evaluator - Decides whether a then-branch fires.

Conditions are checked against the game state at the moment the parent
effect finishes, not when the catalog was loaded. A then-branch that fires
is itself a full effect; its own conditional is evaluated when it in turn
finishes, so chains of any depth unwind one level at a time.
"""

from __future__ import annotations
from dataclasses import dataclass

from ..catalog.effect_dsl import ConditionType, EffectDefinition
from .perspective import Perspective
from .state import GameState


@dataclass(frozen=True)
class EffectOutcome:
    """What an effect did: how many cards it affected (0 = skipped)."""
    affected: int = 0

    @property
    def executed(self) -> bool:
        return self.affected > 0


class ConditionalEvaluator:

    def next_effect(
        self,
        effect: EffectDefinition,
        outcome: EffectOutcome,
        state: GameState,
        perspective: Perspective,
        source_card_id: str,
    ) -> EffectDefinition | None:
        """
        Return the then-branch to run next, or None if the branch is skipped.
        """
        conditional = effect.conditional
        if conditional is None:
            return None
        if self.holds(conditional.condition, outcome, state, perspective, source_card_id):
            return conditional.then_effect
        return None

    def holds(
        self,
        condition: ConditionType,
        outcome: EffectOutcome,
        state: GameState,
        perspective: Perspective,
        source_card_id: str,
    ) -> bool:
        if condition == ConditionType.THEN:
            return True
        if condition in (ConditionType.IF_EXECUTED, ConditionType.IF_YOU_DO):
            return outcome.executed
        if condition == ConditionType.EMPTY_HAND:
            return not state.player(perspective.you).hand
        if condition == ConditionType.THIS_CARD_IS_COVERED:
            location = state.locate(source_card_id)
            return (
                location is not None
                and location.lane_index is not None
                and not state.is_uncovered(source_card_id)
            )
        raise ValueError(f"Unhandled condition type: {condition}")
