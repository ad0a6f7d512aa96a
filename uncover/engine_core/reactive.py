"""
Reactive Trigger Dispatcher - Fires "after X" effects once X happened.

After a base action (draw, discard, delete, shift, flip) has changed the
state, the engine hands a GameEvent to the dispatcher. It scans the board
for face-up cards declaring a matching reactive trigger and appends their
effects to the Pending Effect Queue.

Visibility rules:
- top and middle box effects react while the card is face-up, covered or not
- bottom box effects react only while the card is face-up and uncovered

Scan order, which is also queue order: box (top, middle, bottom), then
lane index ascending, then the acting side before the other, then stack
position bottom to top.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field

from ..catalog.effect_dsl import BoxPosition, EffectDefinition, Trigger, TriggerActor
from .effect_queue import PendingEffectQueue, QueuedEffect
from .state import CardInstance, GameState, LANE_COUNT, Side

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameEvent:
    """
    A completed base action.

    ``origins`` is the lineage of the effect that performed the action,
    empty when a player did it directly.
    """
    kind: Trigger
    actor: Side
    card_ids: tuple[str, ...] = ()
    origins: frozenset[tuple[str, str]] = field(default_factory=frozenset)


class ReactiveTriggerDispatcher:

    def dispatch(
        self,
        state: GameState,
        event: GameEvent,
        queue: PendingEffectQueue,
    ) -> list[QueuedEffect]:
        """Append every effect ``event`` fires to ``queue``; return the new entries."""
        if not event.kind.is_reactive:
            raise ValueError(f"{event.kind.value} is not a reactive trigger")

        fired: list[QueuedEffect] = []
        for box in BoxPosition:
            for lane_index in range(LANE_COUNT):
                for side in (event.actor, event.actor.other):
                    lane = state.player(side).lanes[lane_index]
                    for stack_index, card in enumerate(lane):
                        if not card.face_up:
                            continue
                        if box == BoxPosition.BOTTOM and stack_index != len(lane) - 1:
                            continue
                        for effect in card.definition.effects_in(box):
                            if not self._fires(effect, card, event):
                                continue
                            entry = queue.enqueue(
                                effect,
                                card.instance_id,
                                card.owner,
                                cause=event.kind.value,
                                box=box,
                                origins=event.origins,
                            )
                            fired.append(entry)

        if fired:
            logger.debug(
                "%s by %s fired %s",
                event.kind.value, event.actor.value,
                [entry.describe() for entry in fired],
            )
        return fired

    @staticmethod
    def _fires(effect: EffectDefinition, card: CardInstance, event: GameEvent) -> bool:
        if effect.trigger != event.kind:
            return False

        actor = effect.trigger_actor
        if actor == TriggerActor.SELF and event.actor != card.owner:
            return False
        if actor == TriggerActor.OPPONENT and event.actor == card.owner:
            return False

        if (card.instance_id, effect.effect_id) in event.origins:
            logger.debug(
                "Not re-firing %s@%s from its own chain",
                effect.effect_id, card.instance_id,
            )
            return False
        return True
