"""
Perspective - Binds "you" and "opponent" to concrete sides.

Effect text is written from the point of view of the card that carries it.
A Perspective is derived from the effect's source card owner, never from
whose turn it is, so an uncovered opponent card still says "you" about
its own owner.
"""

from __future__ import annotations
from dataclasses import dataclass

from ..catalog.effect_dsl import OwnerRelation, TriggerActor
from .state import Side


@dataclass(frozen=True)
class Perspective:
    you: Side

    @classmethod
    def of(cls, owner: Side) -> Perspective:
        return cls(you=owner)

    @property
    def opponent(self) -> Side:
        return self.you.other

    def sides_for(self, relation: OwnerRelation) -> tuple[Side, ...]:
        """Sides a target filter's owner relation covers, "you" first."""
        if relation == OwnerRelation.OWN:
            return (self.you,)
        if relation == OwnerRelation.OPPONENT:
            return (self.opponent,)
        return (self.you, self.opponent)

    def actor(self, who: TriggerActor) -> Side:
        """Side meant by a "self"/"opponent" actor parameter."""
        if who == TriggerActor.OPPONENT:
            return self.opponent
        return self.you
