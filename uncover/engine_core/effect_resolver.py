"""
Effect Resolver - Step-based effect resolution engine.

This module ties the engine parts together:
- base actions (play, draw, delete, discard, shift, flip, return)
- the Pending Effect Queue those actions feed
- the Action-Required machine that pauses resolution for a decision
- the decision adapters answering for automated sides

Every public entry point runs to a stable point before returning: either a
decision is Awaiting an answer from a human side, or the queue is empty
and the engine is Idle. Automated sides are answered synchronously through
their DecisionAdapter, each time with a snapshot of the state.
"""

from __future__ import annotations
import logging
import random
from dataclasses import dataclass
from itertools import count
from typing import TYPE_CHECKING, Sequence

from ..catalog.effect_dsl import (
    ActionKind,
    BoxPosition,
    Catalog,
    Trigger,
)
from .action_required import ActionRequired, ActionRequiredMachine, DecisionKind
from .conditions import ConditionalEvaluator, EffectOutcome
from .effect_queue import PendingEffectQueue, QueuedEffect
from .errors import AdapterContractViolation, IllegalAction
from .reactive import GameEvent, ReactiveTriggerDispatcher
from .state import CardInstance, GamePhase, GameState, LANE_COUNT, Side, Zone
from .targeting import NoValidTarget, TargetResolver

if TYPE_CHECKING:
    from ..bots.policy import DecisionAdapter

logger = logging.getLogger(__name__)


# Safety limit on automated turns taken inside a single engine call
MAX_AUTOMATED_TURNS = 10

_MIDDLE_PLAY_TRIGGERS = (Trigger.ON_PLAY, Trigger.ON_UNCOVER)


@dataclass(frozen=True)
class PlayOption:
    """A card a side may play from hand, and where."""
    card_id: str
    lane_index: int
    face_up: bool = True


class EffectEngine:
    """
    Resolves effects for one game.

    Usage:
        engine = EffectEngine(catalog, state, {Side.OPPONENT: FirstLegalPolicy()})
        engine.play_card(Side.PLAYER, "Hate-0#1", lane_index=0)

        while engine.action_required:
            decision = engine.action_required
            engine.submit(decision.actor, [decision.options[0]])
    """

    def __init__(
        self,
        catalog: Catalog,
        state: GameState,
        adapters: dict[Side, DecisionAdapter] | None = None,
    ):
        self.catalog = catalog
        self.state = state
        self.adapters: dict[Side, DecisionAdapter] = dict(adapters or {})

        self.queue = PendingEffectQueue()
        self.machine = ActionRequiredMachine()
        self.targets = TargetResolver()
        self.conditions = ConditionalEvaluator()
        self.dispatcher = ReactiveTriggerDispatcher()

        self.skipped: list[NoValidTarget] = []
        self.executed: list[str] = []
        # Last illegal answer from an automated side; its decision stays Awaiting
        self.adapter_error: AdapterContractViolation | None = None

        self._choice_seq = count(1)
        self._ending_turn: Side | None = None
        self._automated_turn: Side | None = None

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def action_required(self) -> ActionRequired | None:
        return self.machine.current

    @property
    def pending(self) -> tuple[QueuedEffect, ...]:
        return self.queue.snapshot()

    @property
    def is_idle(self) -> bool:
        return self.machine.is_idle and not self.queue

    def is_automated(self, side: Side) -> bool:
        return not self.state.player(side).is_human and side in self.adapters

    def legal_plays(self, side: Side) -> list[PlayOption]:
        """
        Plays ``side`` could make right now.

        Face-down plays go anywhere. Face-up plays need the card's protocol
        to match a protocol of that lane on either side; when no protocols
        are configured every lane accepts face-up plays.
        """
        if (
            self.state.phase == GamePhase.GAME_OVER
            or side != self.state.turn
            or not self.is_idle
            or self._ending_turn is not None
        ):
            return []

        plays: list[PlayOption] = []
        for card in self.state.player(side).hand:
            for lane_index in range(LANE_COUNT):
                if self._face_up_allowed(card, lane_index):
                    plays.append(PlayOption(card.instance_id, lane_index, True))
                plays.append(PlayOption(card.instance_id, lane_index, False))
        return plays

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    def play_card(
        self,
        side: Side,
        card_id: str,
        lane_index: int,
        face_up: bool = True,
    ) -> ActionRequired | None:
        """
        Play a card from hand into one of the side's lanes.

        Face-up plays queue the card's on-play effects. Returns the decision
        Awaiting afterwards, if any.
        """
        self._check_base_action(side)
        self._place(side, card_id, lane_index, face_up)
        self._resume()
        return self.action_required

    def draw(self, side: Side, amount: int = 1) -> ActionRequired | None:
        """Draw cards as a base action. Fires after_draw."""
        self._check_ready()
        if amount < 1:
            raise IllegalAction(f"Cannot draw {amount} cards")

        drawn = self._draw_cards(side, amount)
        if drawn:
            self._react(Trigger.AFTER_DRAW, side, drawn, frozenset())
        self._resume()
        return self.action_required

    def submit(self, side: Side, values: Sequence[str]) -> ActionRequired | None:
        """
        Answer the Awaiting decision on behalf of ``side``.

        Raises AdapterContractViolation (decision left Awaiting) for a wrong
        side or an illegal selection, StateViolation if nothing is Awaiting.
        """
        self.machine.settle(side, values, self._apply_answer, self.queue, self._run_entry)
        self._resume()
        return self.action_required

    def end_turn(self, side: Side) -> ActionRequired | None:
        """
        End ``side``'s turn.

        End effects run first; the turn passes once the queue is empty and
        nothing is Awaiting, then the next side's start effects run.
        """
        self._check_base_action(side)
        self._request_end_turn(side)
        self._resume()
        return self.action_required

    def advance(self) -> ActionRequired | None:
        """
        Run the engine to the next stable point.

        Used to retry an automated answer that was rejected (see
        ``adapter_error``).
        """
        self._resume()
        return self.action_required

    def cancel(self, reason: str) -> list[QueuedEffect]:
        """
        End the game: clear the Awaiting decision and drop the queue.

        Returns the dropped queue entries.
        """
        dropped = self.machine.abandon(self.queue)
        self._ending_turn = None
        self._automated_turn = None
        self.state.phase = GamePhase.GAME_OVER
        self.state.add_log(f"Game over: {reason}")
        logger.info(
            "Game %s cancelled (%s); dropped %d queued effect(s)",
            self.state.game_id, reason, len(dropped),
        )
        return dropped

    # ------------------------------------------------------------------
    # Resolution loop
    # ------------------------------------------------------------------

    def _resume(self):
        automated_turns = 0

        while True:
            if self.machine.is_idle and self.queue:
                self.machine.drain(self.queue, self._run_entry)

            decision = self.machine.current
            if decision is not None:
                if not self.is_automated(decision.actor):
                    return
                try:
                    self._answer_automated(decision)
                except AdapterContractViolation as e:
                    self.adapter_error = e
                    logger.warning(
                        "Rejected automated answer for %s: %s", decision.choice_id, e
                    )
                    return
                self.adapter_error = None
                continue

            if self._ending_turn is not None:
                self._pass_turn()
                continue

            if self._automated_turn is not None:
                if automated_turns >= MAX_AUTOMATED_TURNS:
                    logger.warning(
                        "Stopped after %d automated turns in one call", automated_turns
                    )
                    return
                automated_turns += 1
                self._take_automated_turn()
                continue

            return

    def _answer_automated(self, decision: ActionRequired):
        adapter = self.adapters[decision.actor]
        choice = adapter.select_choice(self.state.clone(), decision)

        if choice.choice_id != decision.choice_id:
            raise AdapterContractViolation(
                f"{adapter.get_name()} answered {choice.choice_id}, "
                f"expected {decision.choice_id}",
                decision.choice_id,
            )

        if not choice.chosen_values and not decision.optional:
            self.machine.decline(
                decision.actor, self._decline_decision, self.queue, self._run_entry
            )
            return

        logger.debug(
            "%s answered %s with %s: %s",
            adapter.get_name(), decision.choice_id, choice.chosen_values, choice.explanation,
        )
        self.machine.settle(
            decision.actor, choice.chosen_values,
            self._apply_answer, self.queue, self._run_entry,
        )

    def _run_entry(self, entry: QueuedEffect) -> ActionRequired | None:
        """Run one queued effect; return the decision it needs, if any."""
        effect = entry.effect
        params = effect.params
        perspective = entry.perspective
        logger.debug("Running %s", entry.describe())

        if not self._source_active(entry):
            return self._skip(entry, "source is no longer active")

        if params.action == ActionKind.DRAW:
            side = perspective.actor(params.actor)
            drawn = self._draw_cards(side, params.count)
            if drawn:
                self._react(Trigger.AFTER_DRAW, side, drawn, entry.lineage)
            return self._complete(entry, EffectOutcome(len(drawn)))

        if params.action == ActionKind.DISCARD:
            side = perspective.actor(params.actor)
            candidates = self.targets.hand_candidates(self.state, side)
            if not candidates:
                return self._skip(entry, f"{side.value} has no cards in hand")
            needed = self.targets.required_count(params.count, len(candidates))
            return self._new_decision(
                entry,
                DecisionKind.SELECT_HAND_CARDS,
                actor=side,
                options=[card.instance_id for card in candidates],
                needed=needed,
                prompt=f"Discard {needed} card(s)",
            )

        candidates = self.targets.board_candidates(
            self.state, params.target_filter, perspective, entry.source_card_id
        )
        if not candidates:
            return self._skip(entry, f"no card matches the {params.action.value} target")

        # Shifts move one card per effect: card first, then lane.
        requested = 1 if params.action == ActionKind.SHIFT else params.count
        needed = self.targets.required_count(requested, len(candidates))
        return self._new_decision(
            entry,
            DecisionKind.SELECT_BOARD_CARDS,
            actor=entry.owner,
            options=[card.instance_id for card in candidates],
            needed=needed,
            prompt=f"Select {needed} card(s) to {params.action.value}",
        )

    def _source_active(self, entry: QueuedEffect) -> bool:
        """Face-up on the board; uncovered too unless the effect is in the top box."""
        location = self.state.locate(entry.source_card_id)
        if location is None or location.zone != Zone.LANE:
            return False
        if not self.state.find_card(entry.source_card_id).face_up:
            return False
        if entry.box == BoxPosition.TOP:
            return True
        return self.state.is_uncovered(entry.source_card_id)

    def _apply_answer(
        self, decision: ActionRequired, values: list[str]
    ) -> ActionRequired | None:
        entry = decision.entry
        action = entry.effect.action
        origins = entry.lineage

        if not values:
            # Optional decision declined
            return self._complete(entry, EffectOutcome(0))

        if decision.kind == DecisionKind.SELECT_HAND_CARDS:
            self._discard(decision.actor, values, origins)
            return self._complete(entry, EffectOutcome(len(values)))

        if decision.kind == DecisionKind.SELECT_LANE:
            self._shift(decision.actor, decision.subject_card_id, int(values[0]), origins)
            return self._complete(entry, EffectOutcome(1))

        if action == ActionKind.SHIFT:
            card = self.state.find_card(values[0])
            destinations = self.targets.shift_destinations(self.state, card)
            return self._make_decision(
                entry,
                DecisionKind.SELECT_LANE,
                actor=decision.actor,
                options=[str(index) for index in destinations],
                needed=1,
                optional=False,
                prompt=f"Select a lane to shift {card.name} to",
                subject_card_id=card.instance_id,
            )

        if action == ActionKind.DELETE:
            self._delete(decision.actor, values, origins)
        elif action == ActionKind.FLIP:
            self._flip(decision.actor, values, origins)
        elif action == ActionKind.RETURN:
            self._return(decision.actor, values, origins)
        else:
            raise ValueError(f"Unhandled board action: {action}")
        return self._complete(entry, EffectOutcome(len(values)))

    def _decline_decision(self, decision: ActionRequired) -> ActionRequired | None:
        return self._skip(decision.entry, "no legal selection")

    def _complete(self, entry: QueuedEffect, outcome: EffectOutcome) -> None:
        """Record a finished effect and continue its chain."""
        self.executed.append(entry.effect.effect_id)
        self._continue_chain(entry, outcome)
        return None

    def _skip(self, entry: QueuedEffect, reason: str) -> None:
        record = NoValidTarget(
            effect_id=entry.effect.effect_id,
            source_card_id=entry.source_card_id,
            owner=entry.owner,
            reason=reason,
        )
        self.skipped.append(record)
        logger.info("Skipped %s: %s", entry.describe(), reason)
        self._continue_chain(entry, EffectOutcome(0))
        return None

    def _continue_chain(self, entry: QueuedEffect, outcome: EffectOutcome):
        then_effect = self.conditions.next_effect(
            entry.effect, outcome, self.state, entry.perspective, entry.source_card_id
        )
        if then_effect is None:
            return
        self.queue.push_front(self.queue.make_entry(
            then_effect,
            entry.source_card_id,
            entry.owner,
            cause="then",
            box=entry.box,
            origins=entry.origins,
        ))

    def _new_decision(
        self,
        entry: QueuedEffect,
        kind: DecisionKind,
        actor: Side,
        options: list[str],
        needed: int,
        prompt: str,
    ) -> ActionRequired:
        return self._make_decision(
            entry, kind, actor, options, needed,
            optional=entry.effect.params.optional,
            prompt=f"{self._card_name(entry.source_card_id)}: {prompt}",
        )

    def _make_decision(
        self,
        entry: QueuedEffect,
        kind: DecisionKind,
        actor: Side,
        options: list[str],
        needed: int,
        optional: bool,
        prompt: str,
        subject_card_id: str | None = None,
    ) -> ActionRequired:
        return ActionRequired(
            choice_id=f"choice-{next(self._choice_seq)}",
            kind=kind,
            actor=actor,
            entry=entry,
            options=tuple(options),
            min_choices=needed,
            max_choices=needed,
            optional=optional,
            prompt=prompt,
            subject_card_id=subject_card_id,
        )

    # ------------------------------------------------------------------
    # Base mutations
    # ------------------------------------------------------------------

    def _place(self, side: Side, card_id: str, lane_index: int, face_up: bool):
        player = self.state.player(side)
        card = player.hand_card(card_id)
        if card is None:
            raise IllegalAction(f"{card_id} is not in {side.value}'s hand")
        if not 0 <= lane_index < LANE_COUNT:
            raise IllegalAction(f"Lane {lane_index} does not exist")
        if face_up and not self._face_up_allowed(card, lane_index):
            raise IllegalAction(f"{card.name} cannot be played face-up in lane {lane_index}")

        player.hand.remove(card)
        card.face_up = face_up
        player.lanes[lane_index].append(card)
        if self.state.phase == GamePhase.SETUP:
            self.state.phase = GamePhase.PLAYING

        shown = card.name if face_up else "a face-down card"
        self.state.add_log(f"{side.value} plays {shown} in lane {lane_index}")
        if face_up:
            self._queue_middle(card, cause="play", origins=frozenset())

    def _draw_cards(self, side: Side, amount: int) -> list[CardInstance]:
        player = self.state.player(side)
        drawn: list[CardInstance] = []
        for _ in range(amount):
            if not player.deck:
                if not player.discard:
                    break
                player.deck = list(player.discard)
                player.discard.clear()
                random.Random(self.state.random_seed).shuffle(player.deck)
                self.state.add_log(f"{side.value} shuffles the trash into the deck")
            card = player.deck.pop(0)
            card.face_up = True
            player.hand.append(card)
            drawn.append(card)
        if drawn:
            self.state.add_log(f"{side.value} draws {len(drawn)} card(s)")
        return drawn

    def _discard(self, side: Side, card_ids: list[str], origins):
        player = self.state.player(side)
        cards = []
        for card_id in card_ids:
            card = player.hand_card(card_id)
            player.hand.remove(card)
            player.discard.append(card)
            cards.append(card)
        self.state.add_log(f"{side.value} discards {', '.join(c.name for c in cards)}")
        self._react(Trigger.AFTER_DISCARD, side, cards, origins)

    def _delete(self, actor: Side, card_ids: list[str], origins):
        cards, exposed = [], []
        for card_id in card_ids:
            card, uncovered = self._remove_from_lane(card_id)
            card.face_up = True
            self.state.player(card.owner).discard.append(card)
            cards.append(card)
            exposed.extend(uncovered)
        self.state.add_log(f"{actor.value} deletes {', '.join(c.name for c in cards)}")
        self._uncover(exposed, origins)
        self._react(Trigger.AFTER_DELETE, actor, cards, origins)

    def _return(self, actor: Side, card_ids: list[str], origins):
        # Returning is not a reactive trigger; only the uncover fires.
        cards, exposed = [], []
        for card_id in card_ids:
            card, uncovered = self._remove_from_lane(card_id)
            card.face_up = True
            self.state.player(card.owner).hand.append(card)
            cards.append(card)
            exposed.extend(uncovered)
        self.state.add_log(f"{actor.value} returns {', '.join(c.name for c in cards)}")
        self._uncover(exposed, origins)

    def _flip(self, actor: Side, card_ids: list[str], origins):
        cards = []
        for card_id in card_ids:
            card = self.state.find_card(card_id)
            card.face_up = not card.face_up
            cards.append(card)
            if card.face_up and self.state.is_uncovered(card_id):
                self._queue_middle(card, cause="flip", origins=origins)
        self.state.add_log(f"{actor.value} flips {', '.join(c.name for c in cards)}")
        self._react(Trigger.AFTER_FLIP, actor, cards, origins)

    def _shift(self, actor: Side, card_id: str, lane_index: int, origins):
        card, exposed = self._remove_from_lane(card_id)
        self.state.player(card.owner).lanes[lane_index].append(card)
        self.state.add_log(f"{actor.value} shifts {card.name} to lane {lane_index}")
        self._uncover(exposed, origins)
        self._react(Trigger.AFTER_SHIFT, actor, [card], origins)

    def _remove_from_lane(self, card_id: str) -> tuple[CardInstance, list[CardInstance]]:
        """Take a card off the board; also return the card it exposed, if any."""
        card, location = self.state.take_from_lane(card_id)
        lane = self.state.player(location.side).lanes[location.lane_index]
        if lane and location.stack_index == len(lane):
            return card, [lane[-1]]
        return card, []

    def _uncover(self, exposed: list[CardInstance], origins):
        for card in exposed:
            # Later removals in the same action may have covered or taken it
            if not self.state.is_uncovered(card.instance_id):
                continue
            self.state.add_log(f"{card.name} is uncovered")
            if card.face_up:
                self._queue_middle(card, cause="uncover", origins=origins)

    def _queue_middle(self, card: CardInstance, cause: str, origins):
        for effect in card.definition.middle:
            if effect.trigger in _MIDDLE_PLAY_TRIGGERS:
                self.queue.enqueue(
                    effect, card.instance_id, card.owner,
                    cause=cause, box=BoxPosition.MIDDLE, origins=origins,
                )

    def _react(self, kind: Trigger, actor: Side, cards: list[CardInstance], origins):
        event = GameEvent(
            kind=kind,
            actor=actor,
            card_ids=tuple(card.instance_id for card in cards),
            origins=origins,
        )
        self.dispatcher.dispatch(self.state, event, self.queue)

    # ------------------------------------------------------------------
    # Turn structure
    # ------------------------------------------------------------------

    def _request_end_turn(self, side: Side):
        self._ending_turn = side
        self._queue_phase_effects(side, Trigger.END)

    def _pass_turn(self):
        ending = self._ending_turn
        self._ending_turn = None
        self._automated_turn = None

        self.state.turn = ending.other
        self.state.turn_number += 1
        self.state.add_log(f"Turn {self.state.turn_number}: {self.state.turn.value}")
        logger.debug("Turn passes from %s to %s", ending.value, self.state.turn.value)

        self._queue_phase_effects(self.state.turn, Trigger.START)
        if self.is_automated(self.state.turn):
            self._automated_turn = self.state.turn

    def _take_automated_turn(self):
        side = self._automated_turn
        self._automated_turn = None
        adapter = self.adapters[side]

        decision = adapter.select_play(self.state.clone(), self.legal_plays(side))
        logger.debug("%s plays %s: %s", adapter.get_name(), decision.play, decision.explanation)
        if decision.play is not None:
            play = decision.play
            self._place(side, play.card_id, play.lane_index, play.face_up)
        self._request_end_turn(side)

    def _queue_phase_effects(self, side: Side, trigger: Trigger):
        """Queue start/end effects of the side's uncovered face-up cards."""
        for lane_index in range(LANE_COUNT):
            card = self.state.player(side).top_card(lane_index)
            if card is None or not card.face_up:
                continue
            for effect in card.definition.bottom:
                if effect.trigger == trigger:
                    self.queue.enqueue(
                        effect, card.instance_id, side,
                        cause=trigger.value, box=BoxPosition.BOTTOM,
                    )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_ready(self):
        if self.state.phase == GamePhase.GAME_OVER:
            raise IllegalAction("The game is over")
        if not self.is_idle:
            raise IllegalAction("A decision is outstanding; answer it first")

    def _check_base_action(self, side: Side):
        self._check_ready()
        if side != self.state.turn:
            raise IllegalAction(f"It is not {side.value}'s turn")
        if self._ending_turn is not None:
            raise IllegalAction(f"{side.value}'s turn is ending")

    def _face_up_allowed(self, card: CardInstance, lane_index: int) -> bool:
        lane_protocols = [
            player.protocols[lane_index]
            for player in self.state.players.values()
            if len(player.protocols) > lane_index
        ]
        return not lane_protocols or card.definition.protocol in lane_protocols

    def _card_name(self, instance_id: str) -> str:
        card = self.state.find_card(instance_id)
        return card.name if card else instance_id
