"""
Effect DSL - Declarative card effect definitions.

This module defines the immutable model a card catalog is loaded into.
Effects are:
- Declarative: an action plus a parameter bundle, no code per card
- Closed: every action, trigger and filter term is an enum member
- Chainable: a conditional carries a then-branch that is itself an effect
- Immutable: frozen dataclasses, shared freely between game instances

Key design decisions:
- Perspective words ("own", "opponent", "self") are stored as relations and
  only bound to concrete sides when an effect executes
- Keys the engine does not interpret are kept in ``extra`` so a catalog
  serializes back to exactly the shape it was loaded from
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator


class ActionKind(Enum):
    """Actions an effect can perform."""
    DRAW = "draw"
    DISCARD = "discard"
    DELETE = "delete"
    SHIFT = "shift"
    FLIP = "flip"
    RETURN = "return"

    @property
    def targets_board(self) -> bool:
        """Board actions pick cards in lanes and need a target filter."""
        return self in BOARD_ACTIONS


BOARD_ACTIONS = frozenset({
    ActionKind.DELETE,
    ActionKind.SHIFT,
    ActionKind.FLIP,
    ActionKind.RETURN,
})


class Trigger(Enum):
    """Moments that make an effect eligible to run."""
    # Middle box
    ON_PLAY = "on_play"  # Played face-up, uncovered, or flipped face-up
    ON_UNCOVER = "on_uncover"

    # Bottom box
    START = "start"
    END = "end"

    # Reactive (usually top box)
    AFTER_DRAW = "after_draw"
    AFTER_DISCARD = "after_discard"
    AFTER_DELETE = "after_delete"
    AFTER_SHIFT = "after_shift"
    AFTER_FLIP = "after_flip"

    @property
    def is_reactive(self) -> bool:
        return self in REACTIVE_TRIGGERS


REACTIVE_TRIGGERS = frozenset({
    Trigger.AFTER_DRAW,
    Trigger.AFTER_DISCARD,
    Trigger.AFTER_DELETE,
    Trigger.AFTER_SHIFT,
    Trigger.AFTER_FLIP,
})


class BoxPosition(Enum):
    """The three text boxes of a card, in board scan order."""
    TOP = "top"
    MIDDLE = "middle"
    BOTTOM = "bottom"


class OwnerRelation(Enum):
    """Whose cards a filter matches, relative to the effect owner."""
    ANY = "any"
    OWN = "own"
    OPPONENT = "opponent"


class PositionFilter(Enum):
    """Where in a lane stack a target may sit."""
    ANY = "any"
    COVERED = "covered"
    UNCOVERED = "uncovered"


class FaceFilter(Enum):
    ANY = "any"
    FACE_UP = "face_up"
    FACE_DOWN = "face_down"


class TriggerActor(Enum):
    """
    Who has to perform an action for a reactive effect to fire.

    Also used for "who does it" parameters (discard actor, draw target),
    where ANY is not allowed.
    """
    SELF = "self"
    OPPONENT = "opponent"
    ANY = "any"


class ConditionType(Enum):
    """Conditions gating the then-branch of a chained effect."""
    THEN = "then"
    IF_EXECUTED = "if_executed"
    IF_YOU_DO = "if_you_do"
    EMPTY_HAND = "empty_hand"
    THIS_CARD_IS_COVERED = "this_card_is_covered"


@dataclass(frozen=True)
class TargetFilter:
    """
    Predicate over board cards.

    Examples:
    - TargetFilter(owner=OwnerRelation.OPPONENT)
    - TargetFilter(face=FaceFilter.FACE_DOWN, exclude_self=True)
    """
    owner: OwnerRelation = OwnerRelation.ANY
    position: PositionFilter = PositionFilter.UNCOVERED
    face: FaceFilter = FaceFilter.ANY
    exclude_self: bool = False
    extra: dict[str, Any] = field(default_factory=dict, hash=False, compare=True)


@dataclass(frozen=True)
class EffectParams:
    """
    Parameter bundle of an effect.

    ``actor`` is who discards (discard) or who draws (draw); board actions
    are always performed by the effect owner.
    """
    action: ActionKind
    count: int = 1
    target_filter: TargetFilter | None = None
    actor: TriggerActor = TriggerActor.SELF
    optional: bool = False
    extra: dict[str, Any] = field(default_factory=dict, hash=False, compare=True)


@dataclass(frozen=True)
class Conditional:
    """A condition plus the effect that runs when it holds."""
    condition: ConditionType
    then_effect: EffectDefinition


@dataclass(frozen=True)
class EffectDefinition:
    """
    A single declared effect.

    ``trigger`` and ``position`` are None only on then-branches that inherit
    them from their parent.
    """
    effect_id: str
    params: EffectParams
    trigger: Trigger | None = None
    position: BoxPosition | None = None
    conditional: Conditional | None = None
    reactive_trigger_actor: TriggerActor | None = None
    extra: dict[str, Any] = field(default_factory=dict, hash=False, compare=True)

    @property
    def action(self) -> ActionKind:
        return self.params.action

    @property
    def trigger_actor(self) -> TriggerActor:
        """Declared reactive actor, falling back to the card owner."""
        return self.reactive_trigger_actor or TriggerActor.SELF

    def chain(self) -> Iterator[EffectDefinition]:
        """Yield this effect and every nested then-branch, outermost first."""
        effect: EffectDefinition | None = self
        while effect is not None:
            yield effect
            effect = effect.conditional.then_effect if effect.conditional else None


@dataclass(frozen=True)
class CardDefinition:
    """One card of a protocol: a value and three boxes of effects."""
    protocol: str
    value: int
    top: tuple[EffectDefinition, ...] = ()
    middle: tuple[EffectDefinition, ...] = ()
    bottom: tuple[EffectDefinition, ...] = ()
    extra: dict[str, Any] = field(default_factory=dict, hash=False, compare=True)

    @property
    def name(self) -> str:
        return f"{self.protocol}-{self.value}"

    def effects_in(self, box: BoxPosition) -> tuple[EffectDefinition, ...]:
        return {
            BoxPosition.TOP: self.top,
            BoxPosition.MIDDLE: self.middle,
            BoxPosition.BOTTOM: self.bottom,
        }[box]

    def all_effects(self) -> list[EffectDefinition]:
        return [*self.top, *self.middle, *self.bottom]


@dataclass(frozen=True)
class Catalog:
    """Validated protocols, each an ordered tuple of cards."""
    protocols: dict[str, tuple[CardDefinition, ...]] = field(
        default_factory=dict, hash=False
    )

    def get_card(self, protocol: str, value: int) -> CardDefinition | None:
        for card in self.protocols.get(protocol, ()):
            if card.value == value:
                return card
        return None

    def card_by_name(self, name: str) -> CardDefinition | None:
        """Look up a card by its ``Protocol-value`` name."""
        protocol, _, value = name.rpartition("-")
        try:
            return self.get_card(protocol, int(value))
        except ValueError:
            return None

    def all_cards(self) -> list[CardDefinition]:
        return [card for cards in self.protocols.values() for card in cards]


# ============================================================================
# Factory functions for common effect patterns
# ============================================================================

def delete_effect(
    effect_id: str,
    owner: OwnerRelation = OwnerRelation.ANY,
    face: FaceFilter = FaceFilter.ANY,
    count: int = 1,
) -> EffectDefinition:
    """Create an on-play "delete N cards" effect that never targets itself."""
    return EffectDefinition(
        effect_id=effect_id,
        trigger=Trigger.ON_PLAY,
        position=BoxPosition.MIDDLE,
        params=EffectParams(
            action=ActionKind.DELETE,
            count=count,
            target_filter=TargetFilter(owner=owner, face=face, exclude_self=True),
        ),
    )


def draw_effect(
    effect_id: str,
    count: int = 1,
    trigger: Trigger | None = Trigger.ON_PLAY,
    position: BoxPosition | None = BoxPosition.MIDDLE,
    reactive_trigger_actor: TriggerActor | None = None,
) -> EffectDefinition:
    """Create a draw effect for the effect owner."""
    return EffectDefinition(
        effect_id=effect_id,
        trigger=trigger,
        position=position,
        params=EffectParams(action=ActionKind.DRAW, count=count),
        reactive_trigger_actor=reactive_trigger_actor,
    )


def chained(
    effect: EffectDefinition,
    then_effect: EffectDefinition,
    condition: ConditionType = ConditionType.THEN,
) -> EffectDefinition:
    """Return ``effect`` with ``then_effect`` attached as its conditional."""
    return EffectDefinition(
        effect_id=effect.effect_id,
        params=effect.params,
        trigger=effect.trigger,
        position=effect.position,
        conditional=Conditional(condition=condition, then_effect=then_effect),
        reactive_trigger_actor=effect.reactive_trigger_actor,
        extra=effect.extra,
    )
