"""
Action Required - The single outstanding decision and its state machine.

States:
    Idle                     no decision outstanding
    Awaiting(decision)       one side must answer before play continues

The machine owns every transition out of Awaiting, and each takes the
Pending Effect Queue:
- settle() applies the answer, then drains the queue. It only returns to
  Idle once the queue is empty; if a drained effect needs a decision of
  its own, that decision takes over the slot and the rest of the queue
  keeps its order for the next settle().
- decline() does the same when the answering side reports no legal
  selection, skipping the effect instead of applying an answer.
- abandon() clears the slot and the queue together.

There is no way to clear the slot without draining or discarding the
queue, and open() refuses to stack a second decision on the first.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

from .effect_queue import PendingEffectQueue, QueuedEffect
from .errors import AdapterContractViolation, StateViolation
from .perspective import Perspective
from .state import Side

logger = logging.getLogger(__name__)


class DecisionKind(Enum):
    """What the answering side has to pick."""
    SELECT_BOARD_CARDS = "select_board_cards"
    SELECT_HAND_CARDS = "select_hand_cards"
    SELECT_LANE = "select_lane"


@dataclass(frozen=True)
class ActionRequired:
    """
    A decision one side must make.

    This is handed to the UI or to the decision adapter. ``options`` are
    card instance IDs, or lane indexes as strings for SELECT_LANE.
    """
    choice_id: str
    kind: DecisionKind
    actor: Side
    entry: QueuedEffect
    options: tuple[str, ...]
    min_choices: int = 1
    max_choices: int = 1
    optional: bool = False
    prompt: str = ""

    # Card being moved, for the destination step of a shift
    subject_card_id: str | None = None

    @property
    def perspective(self) -> Perspective:
        return self.entry.perspective

    @property
    def source_effect_id(self) -> str:
        return self.entry.effect.effect_id

    @property
    def source_card_id(self) -> str:
        return self.entry.source_card_id

    def validate(self, values: Sequence[str]):
        """Raise AdapterContractViolation unless ``values`` is a legal answer."""
        chosen = list(values)
        if not chosen:
            if self.optional:
                return
            raise AdapterContractViolation(
                f"Decision {self.choice_id} is not optional", self.choice_id
            )
        if len(set(chosen)) != len(chosen):
            raise AdapterContractViolation(
                f"Duplicate selection for {self.choice_id}", self.choice_id
            )
        outside = [value for value in chosen if value not in self.options]
        if outside:
            raise AdapterContractViolation(
                f"Selection {outside} is not among the options of {self.choice_id}",
                self.choice_id,
            )
        if not self.min_choices <= len(chosen) <= self.max_choices:
            raise AdapterContractViolation(
                f"Decision {self.choice_id} needs {self.min_choices}-{self.max_choices} "
                f"selection(s), got {len(chosen)}",
                self.choice_id,
            )


# Applies an answer; may return the next step of the same effect.
ApplyAnswer = Callable[[ActionRequired, list[str]], "ActionRequired | None"]
# Runs one queued effect; returns a decision if the effect needs one.
RunEntry = Callable[[QueuedEffect], "ActionRequired | None"]
# Records a declined decision; may return the next step of the same effect.
SkipDecision = Callable[[ActionRequired], "ActionRequired | None"]


class ActionRequiredMachine:
    """Holds zero or one ActionRequired."""

    def __init__(self):
        self._current: ActionRequired | None = None

    @property
    def current(self) -> ActionRequired | None:
        return self._current

    @property
    def is_idle(self) -> bool:
        return self._current is None

    def open(self, decision: ActionRequired):
        """Idle -> Awaiting. Refuses while another decision is outstanding."""
        if self._current is not None:
            raise StateViolation(
                f"Cannot open {decision.choice_id}: {self._current.choice_id} is still awaiting"
            )
        self._current = decision
        logger.debug("Awaiting %s from %s", decision.choice_id, decision.actor.value)

    def drain(self, queue: PendingEffectQueue, run_entry: RunEntry) -> ActionRequired | None:
        """
        Run queued effects while Idle until one needs a decision.

        Returns the decision now Awaiting, or None if the queue ran dry.
        """
        if self._current is not None:
            raise StateViolation(
                f"Cannot drain the queue while {self._current.choice_id} is awaiting"
            )
        while queue:
            decision = run_entry(queue.pop())
            if decision is not None:
                self.open(decision)
                return decision
        return None

    def settle(
        self,
        side: Side,
        values: Sequence[str],
        apply: ApplyAnswer,
        queue: PendingEffectQueue,
        run_entry: RunEntry,
    ) -> ActionRequired | None:
        """
        Answer the Awaiting decision, then drain the queue.

        Returns the decision Awaiting afterwards (a follow-up step or one
        raised by a drained effect), or None once Idle.
        """
        decision = self._awaiting(side)
        decision.validate(values)
        return self._hand_off(decision, apply(decision, list(values)), queue, run_entry)

    def decline(
        self,
        side: Side,
        skip: SkipDecision,
        queue: PendingEffectQueue,
        run_entry: RunEntry,
    ) -> ActionRequired | None:
        """
        Leave the Awaiting decision unanswered ("no legal selection").

        ``skip`` records the effect as skipped; the queue is then drained
        exactly as after settle().
        """
        decision = self._awaiting(side)
        return self._hand_off(decision, skip(decision), queue, run_entry)

    def abandon(self, queue: PendingEffectQueue) -> list[QueuedEffect]:
        """Clear the slot and discard the queue in one step."""
        dropped = queue.clear()
        if self._current is not None:
            logger.info("Abandoned %s", self._current.choice_id)
        self._current = None
        return dropped

    def _awaiting(self, side: Side) -> ActionRequired:
        decision = self._current
        if decision is None:
            raise StateViolation("No decision is awaiting an answer")
        if side != decision.actor:
            raise AdapterContractViolation(
                f"Decision {decision.choice_id} belongs to {decision.actor.value}, "
                f"not {side.value}",
                decision.choice_id,
            )
        return decision

    def _hand_off(
        self,
        decision: ActionRequired,
        follow_up: ActionRequired | None,
        queue: PendingEffectQueue,
        run_entry: RunEntry,
    ) -> ActionRequired | None:
        if follow_up is not None:
            self._current = follow_up
            logger.debug("%s continues as %s", decision.choice_id, follow_up.choice_id)
            return follow_up

        while queue:
            next_decision = run_entry(queue.pop())
            if next_decision is not None:
                self._current = next_decision
                logger.debug(
                    "%s handed the slot to %s (%d still queued)",
                    decision.choice_id, next_decision.choice_id, len(queue),
                )
                return next_decision

        self._current = None
        logger.debug("Settled %s, queue drained, idle", decision.choice_id)
        return None
