"""
Tests for the engine building blocks.

Tests:
- Perspective binding
- Target resolution and ordering
- Conditional evaluation
- Pending Effect Queue ordering
- Action-Required machine transitions
- Reactive trigger dispatch
"""

import pytest

from ..catalog import ConditionType, OwnerRelation, TargetFilter, TriggerActor, load_catalog
from ..catalog.effect_dsl import BoxPosition, FaceFilter, PositionFilter, Trigger, draw_effect
from ..engine_core.action_required import ActionRequired, ActionRequiredMachine, DecisionKind
from ..engine_core.conditions import ConditionalEvaluator, EffectOutcome
from ..engine_core.effect_queue import PendingEffectQueue
from ..engine_core.errors import AdapterContractViolation, StateViolation
from ..engine_core.perspective import Perspective
from ..engine_core.reactive import GameEvent, ReactiveTriggerDispatcher
from ..engine_core.state import Side
from ..engine_core.targeting import TargetResolver


def _decision(entry, choice_id="choice-1", actor=Side.PLAYER, options=("a", "b"), **kwargs):
    return ActionRequired(
        choice_id=choice_id,
        kind=DecisionKind.SELECT_BOARD_CARDS,
        actor=actor,
        entry=entry,
        options=tuple(options),
        **kwargs,
    )


class TestPerspective:
    """Tests for binding "you" and "opponent"."""

    def test_sides_for_relations(self):
        """Owner relations map relative to the effect owner."""
        p = Perspective.of(Side.OPPONENT)

        assert p.sides_for(OwnerRelation.OWN) == (Side.OPPONENT,)
        assert p.sides_for(OwnerRelation.OPPONENT) == (Side.PLAYER,)
        assert p.sides_for(OwnerRelation.ANY) == (Side.OPPONENT, Side.PLAYER)

    def test_actor(self):
        """An "opponent" actor is the other side of the owner."""
        p = Perspective.of(Side.OPPONENT)
        assert p.actor(TriggerActor.SELF) == Side.OPPONENT
        assert p.actor(TriggerActor.OPPONENT) == Side.PLAYER


class TestTargetResolver:
    """Tests for board candidate lists."""

    def test_uncovered_only_by_default(self, empty_state, place):
        """The default position filter only sees the top of each stack."""
        place(empty_state, Side.PLAYER, "Hate-0", lane=0)
        top = place(empty_state, Side.PLAYER, "Fire-1", lane=0)

        candidates = TargetResolver().board_candidates(
            empty_state, TargetFilter(), Perspective.of(Side.PLAYER)
        )
        assert candidates == [top]

    def test_ordering_you_first_then_lanes(self, empty_state, place):
        """Candidates list "you" before "opponent", lanes ascending."""
        theirs = place(empty_state, Side.OPPONENT, "Water-1", lane=0)
        mine_2 = place(empty_state, Side.PLAYER, "Hate-0", lane=2)
        mine_0 = place(empty_state, Side.PLAYER, "Fire-1", lane=0)

        candidates = TargetResolver().board_candidates(
            empty_state, TargetFilter(), Perspective.of(Side.PLAYER)
        )
        assert candidates == [mine_0, mine_2, theirs]

    def test_face_and_exclude_self(self, empty_state, place):
        """Face filter and excludeSelf both apply."""
        source = place(empty_state, Side.PLAYER, "Hate-0", lane=0, face_up=False)
        down = place(empty_state, Side.OPPONENT, "Fire-1", lane=1, face_up=False)
        place(empty_state, Side.OPPONENT, "Water-1", lane=2)

        target_filter = TargetFilter(face=FaceFilter.FACE_DOWN, exclude_self=True)
        candidates = TargetResolver().board_candidates(
            empty_state, target_filter, Perspective.of(Side.PLAYER), source.instance_id
        )
        assert candidates == [down]

    def test_covered_cards(self, empty_state, place):
        """The covered filter skips the top card."""
        bottom = place(empty_state, Side.OPPONENT, "Psychic-3", lane=1)
        place(empty_state, Side.OPPONENT, "Fire-1", lane=1)

        candidates = TargetResolver().board_candidates(
            empty_state,
            TargetFilter(position=PositionFilter.COVERED),
            Perspective.of(Side.OPPONENT),
        )
        assert candidates == [bottom]

    def test_required_count_caps(self):
        assert TargetResolver.required_count(2, 1) == 1
        assert TargetResolver.required_count(1, 3) == 1

    def test_shift_destinations(self, empty_state, place):
        """A card can go to any of its owner's other lanes."""
        card = place(empty_state, Side.PLAYER, "Hate-0", lane=1)
        assert TargetResolver().shift_destinations(empty_state, card) == [0, 2]


class TestConditionalEvaluator:
    """Tests for then-branch gating."""

    @pytest.fixture
    def chain(self, catalog):
        return catalog.card_by_name("Fire-1").middle[0]

    def test_if_you_do_needs_an_outcome(self, chain, empty_state):
        """IF_YOU_DO skips the branch when nothing was affected."""
        evaluator = ConditionalEvaluator()
        p = Perspective.of(Side.PLAYER)

        assert evaluator.next_effect(chain, EffectOutcome(0), empty_state, p, "x") is None
        follow = evaluator.next_effect(chain, EffectOutcome(1), empty_state, p, "x")
        assert follow.effect_id == "fire-1-delete"

    def test_then_always_holds(self, empty_state):
        evaluator = ConditionalEvaluator()
        assert evaluator.holds(
            ConditionType.THEN, EffectOutcome(0), empty_state, Perspective.of(Side.PLAYER), "x"
        )

    def test_empty_hand(self, empty_state, place):
        """EMPTY_HAND reads the effect owner's hand at evaluation time."""
        evaluator = ConditionalEvaluator()
        p = Perspective.of(Side.PLAYER)
        assert evaluator.holds(ConditionType.EMPTY_HAND, EffectOutcome(), empty_state, p, "x")

        place(empty_state, Side.PLAYER, "Hate-0")
        assert not evaluator.holds(ConditionType.EMPTY_HAND, EffectOutcome(), empty_state, p, "x")

    def test_this_card_is_covered(self, empty_state, place):
        evaluator = ConditionalEvaluator()
        p = Perspective.of(Side.PLAYER)
        source = place(empty_state, Side.PLAYER, "Hate-0", lane=0)

        assert not evaluator.holds(
            ConditionType.THIS_CARD_IS_COVERED, EffectOutcome(), empty_state, p, source.instance_id
        )
        place(empty_state, Side.PLAYER, "Fire-1", lane=0)
        assert evaluator.holds(
            ConditionType.THIS_CARD_IS_COVERED, EffectOutcome(), empty_state, p, source.instance_id
        )


class TestPendingEffectQueue:
    """Tests for queue ordering."""

    def test_fifo(self):
        queue = PendingEffectQueue()
        first = queue.enqueue(draw_effect("a"), "A#1", Side.PLAYER, cause="play")
        second = queue.enqueue(draw_effect("b"), "B#2", Side.PLAYER, cause="play")

        assert queue.pop() is first
        assert queue.pop() is second
        assert not queue

    def test_push_front_continues_chain(self):
        """A then-branch runs before anything already waiting."""
        queue = PendingEffectQueue()
        queue.enqueue(draw_effect("waiting"), "A#1", Side.PLAYER, cause="play")
        queue.push_front(queue.make_entry(draw_effect("then"), "B#2", Side.PLAYER, cause="then"))

        assert [e.effect.effect_id for e in queue] == ["then", "waiting"]

    def test_sequence_numbers_increase(self):
        queue = PendingEffectQueue()
        a = queue.enqueue(draw_effect("a"), "A#1", Side.PLAYER, cause="play")
        b = queue.make_entry(draw_effect("b"), "A#1", Side.PLAYER, cause="then")
        assert b.seq > a.seq

    def test_clear_returns_dropped(self):
        queue = PendingEffectQueue()
        queue.enqueue(draw_effect("a"), "A#1", Side.PLAYER, cause="play")
        dropped = queue.clear()

        assert len(dropped) == 1
        assert len(queue) == 0

    def test_snapshot_is_read_only_copy(self):
        queue = PendingEffectQueue()
        queue.enqueue(draw_effect("a"), "A#1", Side.PLAYER, cause="play")
        snapshot = queue.snapshot()

        queue.pop()
        assert len(snapshot) == 1
        assert isinstance(snapshot, tuple)

    def test_lineage_includes_self(self):
        queue = PendingEffectQueue()
        entry = queue.enqueue(
            draw_effect("a"), "A#1", Side.PLAYER, cause="play",
            origins=frozenset({("Z#9", "z")}),
        )
        assert entry.lineage == {("Z#9", "z"), ("A#1", "a")}


class TestActionRequiredMachine:
    """Tests for the single-decision state machine."""

    @pytest.fixture
    def queue(self):
        return PendingEffectQueue()

    @pytest.fixture
    def entry(self, queue):
        return queue.make_entry(draw_effect("source"), "S#1", Side.PLAYER, cause="play")

    def test_starts_idle(self):
        assert ActionRequiredMachine().is_idle

    def test_second_decision_is_refused(self, entry):
        """At most one decision Awaits at a time."""
        machine = ActionRequiredMachine()
        machine.open(_decision(entry, "choice-1"))

        with pytest.raises(StateViolation):
            machine.open(_decision(entry, "choice-2"))
        assert machine.current.choice_id == "choice-1"

    def test_settle_when_idle(self, queue):
        machine = ActionRequiredMachine()
        with pytest.raises(StateViolation):
            machine.settle(Side.PLAYER, ["a"], lambda d, v: None, queue, lambda e: None)

    def test_settle_wrong_side(self, entry, queue):
        """The other side cannot answer; the decision stays open."""
        machine = ActionRequiredMachine()
        machine.open(_decision(entry))

        with pytest.raises(AdapterContractViolation):
            machine.settle(Side.OPPONENT, ["a"], lambda d, v: None, queue, lambda e: None)
        assert machine.current is not None

    def test_illegal_answer_keeps_decision(self, entry, queue):
        machine = ActionRequiredMachine()
        machine.open(_decision(entry))
        applied = []

        with pytest.raises(AdapterContractViolation) as exc_info:
            machine.settle(
                Side.PLAYER, ["zzz"], lambda d, v: applied.append(v), queue, lambda e: None
            )

        assert exc_info.value.choice_id == "choice-1"
        assert machine.current.choice_id == "choice-1"
        assert applied == []

    def test_empty_answer_needs_optional(self, entry, queue):
        machine = ActionRequiredMachine()
        machine.open(_decision(entry))
        with pytest.raises(AdapterContractViolation):
            machine.settle(Side.PLAYER, [], lambda d, v: None, queue, lambda e: None)

    def test_settle_drains_queue_before_idle(self, entry, queue):
        """Settling runs everything queued, then returns to Idle."""
        machine = ActionRequiredMachine()
        machine.open(_decision(entry))
        queue.enqueue(draw_effect("x"), "X#2", Side.PLAYER, cause="uncover")
        queue.enqueue(draw_effect("y"), "Y#3", Side.PLAYER, cause="after_delete")
        ran = []

        result = machine.settle(
            Side.PLAYER, ["a"], lambda d, v: None, queue,
            lambda e: ran.append(e.effect.effect_id),
        )

        assert result is None
        assert machine.is_idle
        assert ran == ["x", "y"]
        assert not queue

    def test_settle_hands_slot_to_next_decision(self, entry, queue):
        """A drained effect that needs a choice takes the slot; the rest waits."""
        machine = ActionRequiredMachine()
        machine.open(_decision(entry))
        queue.enqueue(draw_effect("x"), "X#2", Side.PLAYER, cause="uncover")
        queue.enqueue(draw_effect("y"), "Y#3", Side.PLAYER, cause="uncover")

        def run_entry(e):
            return _decision(e, "choice-2", actor=Side.OPPONENT)

        result = machine.settle(Side.PLAYER, ["a"], lambda d, v: None, queue, run_entry)

        assert result.choice_id == "choice-2"
        assert machine.current is result
        assert [e.effect.effect_id for e in queue] == ["y"]

    def test_follow_up_replaces_decision(self, entry, queue):
        """A second step of the same effect takes over without draining."""
        machine = ActionRequiredMachine()
        machine.open(_decision(entry))
        queue.enqueue(draw_effect("x"), "X#2", Side.PLAYER, cause="uncover")
        follow_up = _decision(entry, "choice-2", options=("0", "2"))

        result = machine.settle(Side.PLAYER, ["a"], lambda d, v: follow_up, queue, lambda e: None)

        assert result is follow_up
        assert len(queue) == 1

    def test_decline_skips_then_drains(self, entry, queue):
        machine = ActionRequiredMachine()
        machine.open(_decision(entry))
        queue.enqueue(draw_effect("x"), "X#2", Side.PLAYER, cause="uncover")
        declined, ran = [], []

        result = machine.decline(
            Side.PLAYER,
            lambda d: declined.append(d.choice_id),
            queue,
            lambda e: ran.append(e.effect.effect_id),
        )

        assert result is None
        assert declined == ["choice-1"]
        assert ran == ["x"]
        assert machine.is_idle

    def test_abandon_clears_slot_and_queue(self, entry, queue):
        machine = ActionRequiredMachine()
        machine.open(_decision(entry))
        queue.enqueue(draw_effect("x"), "X#2", Side.PLAYER, cause="uncover")

        dropped = machine.abandon(queue)

        assert machine.is_idle
        assert not queue
        assert [e.effect.effect_id for e in dropped] == ["x"]

    def test_drain_refuses_while_awaiting(self, entry, queue):
        machine = ActionRequiredMachine()
        machine.open(_decision(entry))
        with pytest.raises(StateViolation):
            machine.drain(queue, lambda e: None)

    def test_validate_counts(self, entry):
        decision = _decision(entry, options=("a", "b", "c"), min_choices=2, max_choices=2)

        decision.validate(["a", "c"])
        with pytest.raises(AdapterContractViolation):
            decision.validate(["a"])
        with pytest.raises(AdapterContractViolation):
            decision.validate(["a", "a"])


class TestReactiveTriggerDispatcher:
    """Tests for "after X" dispatch."""

    def test_fires_for_matching_actor(self, empty_state, place):
        """Plague-1 reacts when its owner's opponent discards."""
        plague = place(empty_state, Side.OPPONENT, "Plague-1", lane=0)
        queue = PendingEffectQueue()

        fired = ReactiveTriggerDispatcher().dispatch(
            empty_state, GameEvent(Trigger.AFTER_DISCARD, Side.PLAYER), queue
        )

        assert [e.key for e in fired] == [(plague.instance_id, "plague-1-after-discard")]
        assert fired[0].owner == Side.OPPONENT
        assert fired[0].cause == "after_discard"

    def test_ignores_wrong_actor(self, empty_state, place):
        place(empty_state, Side.OPPONENT, "Plague-1", lane=0)
        queue = PendingEffectQueue()

        fired = ReactiveTriggerDispatcher().dispatch(
            empty_state, GameEvent(Trigger.AFTER_DISCARD, Side.OPPONENT), queue
        )
        assert fired == []

    def test_face_down_cards_do_not_react(self, empty_state, place):
        place(empty_state, Side.PLAYER, "Hate-3", lane=0, face_up=False)
        fired = ReactiveTriggerDispatcher().dispatch(
            empty_state, GameEvent(Trigger.AFTER_DELETE, Side.PLAYER), PendingEffectQueue()
        )
        assert fired == []

    def test_covered_top_box_still_reacts(self, empty_state, place):
        """Top box effects stay active under other cards."""
        place(empty_state, Side.PLAYER, "Hate-3", lane=0)
        place(empty_state, Side.PLAYER, "Fire-1", lane=0)

        fired = ReactiveTriggerDispatcher().dispatch(
            empty_state, GameEvent(Trigger.AFTER_DELETE, Side.PLAYER), PendingEffectQueue()
        )
        assert [e.effect.effect_id for e in fired] == ["hate-3-after-delete"]

    def test_no_refire_from_own_chain(self, empty_state, place):
        hate = place(empty_state, Side.PLAYER, "Hate-3", lane=0)
        event = GameEvent(
            Trigger.AFTER_DELETE, Side.PLAYER,
            origins=frozenset({(hate.instance_id, "hate-3-after-delete")}),
        )
        assert ReactiveTriggerDispatcher().dispatch(empty_state, event, PendingEffectQueue()) == []

    def test_lane_order(self, empty_state, place):
        """Reactions queue by lane ascending, acting side first."""
        right = place(empty_state, Side.PLAYER, "Hate-3", lane=2)
        left = place(empty_state, Side.PLAYER, "Hate-3", lane=0)

        fired = ReactiveTriggerDispatcher().dispatch(
            empty_state, GameEvent(Trigger.AFTER_DELETE, Side.PLAYER), PendingEffectQueue()
        )
        assert [e.source_card_id for e in fired] == [left.instance_id, right.instance_id]

    @pytest.fixture
    def echo_catalog(self):
        """Echo-2 reacts to its owner's deletes from all three boxes."""
        def reaction(box):
            return {
                "id": f"echo-2-{box}",
                "trigger": "after_delete",
                "position": box,
                "reactiveTriggerActor": "self",
                "params": {"action": "draw"},
            }

        return load_catalog({
            "Echo": [
                {"value": 0, "middle": [
                    {"id": "echo-0", "trigger": "on_play", "position": "middle",
                     "params": {"action": "draw"}},
                ]},
                {
                    "value": 2,
                    "top": [reaction("top")],
                    "middle": [reaction("middle")],
                    "bottom": [reaction("bottom")],
                },
            ],
        })

    def test_box_order_before_lane_order(self, empty_state, echo_catalog):
        echo = echo_catalog.card_by_name("Echo-2")
        right = empty_state.new_card(Side.PLAYER, echo)
        left = empty_state.new_card(Side.PLAYER, echo)
        empty_state.player(Side.PLAYER).lanes[2].append(right)
        empty_state.player(Side.PLAYER).lanes[0].append(left)

        fired = ReactiveTriggerDispatcher().dispatch(
            empty_state, GameEvent(Trigger.AFTER_DELETE, Side.PLAYER), PendingEffectQueue()
        )

        assert [(e.effect.effect_id, e.source_card_id) for e in fired] == [
            ("echo-2-top", left.instance_id),
            ("echo-2-top", right.instance_id),
            ("echo-2-middle", left.instance_id),
            ("echo-2-middle", right.instance_id),
            ("echo-2-bottom", left.instance_id),
            ("echo-2-bottom", right.instance_id),
        ]
        assert [e.box for e in fired[::2]] == list(BoxPosition)

    def test_covered_bottom_box_does_not_react(self, empty_state, echo_catalog):
        echo = empty_state.new_card(Side.PLAYER, echo_catalog.card_by_name("Echo-2"))
        cover = empty_state.new_card(Side.PLAYER, echo_catalog.card_by_name("Echo-0"))
        empty_state.player(Side.PLAYER).lanes[1].extend([echo, cover])

        fired = ReactiveTriggerDispatcher().dispatch(
            empty_state, GameEvent(Trigger.AFTER_DELETE, Side.PLAYER), PendingEffectQueue()
        )

        assert [e.effect.effect_id for e in fired] == ["echo-2-top", "echo-2-middle"]

    def test_non_reactive_event_rejected(self, empty_state):
        with pytest.raises(ValueError):
            ReactiveTriggerDispatcher().dispatch(
                empty_state, GameEvent(Trigger.ON_PLAY, Side.PLAYER), PendingEffectQueue()
            )
