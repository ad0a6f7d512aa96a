"""
Target Resolver - Turns a target filter into an ordered candidate list.

Owner relations are translated through the effect's Perspective, so "own"
always means the effect owner's cards. Candidates come out in a stable
order: "you" before "opponent", lanes ascending, each stack top down.
"""

from __future__ import annotations
from dataclasses import dataclass

from ..catalog.effect_dsl import FaceFilter, PositionFilter, TargetFilter
from .perspective import Perspective
from .state import CardInstance, GameState, LANE_COUNT, Side


@dataclass(frozen=True)
class NoValidTarget:
    """Record of an effect skipped because nothing matched its target."""
    effect_id: str
    source_card_id: str
    owner: Side
    reason: str


class TargetResolver:
    """Stateless; all inputs come from the call."""

    def board_candidates(
        self,
        state: GameState,
        target_filter: TargetFilter,
        perspective: Perspective,
        source_card_id: str | None = None,
    ) -> list[CardInstance]:
        """Board cards matching ``target_filter`` as seen from ``perspective``."""
        candidates: list[CardInstance] = []
        for side in perspective.sides_for(target_filter.owner):
            for lane in state.player(side).lanes:
                for stack_index in range(len(lane) - 1, -1, -1):
                    card = lane[stack_index]
                    uncovered = stack_index == len(lane) - 1
                    if not self._matches_position(target_filter.position, uncovered):
                        continue
                    if not self._matches_face(target_filter.face, card):
                        continue
                    if target_filter.exclude_self and card.instance_id == source_card_id:
                        continue
                    candidates.append(card)
        return candidates

    def hand_candidates(self, state: GameState, side: Side) -> list[CardInstance]:
        """Cards a side could discard."""
        return list(state.player(side).hand)

    def shift_destinations(self, state: GameState, card: CardInstance) -> list[int]:
        """Lanes a board card can be shifted to: its owner's other lanes."""
        location = state.locate(card.instance_id)
        current = location.lane_index if location else None
        return [index for index in range(LANE_COUNT) if index != current]

    @staticmethod
    def required_count(requested: int, available: int) -> int:
        """Selections to ask for: the requested count, capped by what exists."""
        return min(requested, available)

    @staticmethod
    def _matches_position(position: PositionFilter, uncovered: bool) -> bool:
        if position == PositionFilter.UNCOVERED:
            return uncovered
        if position == PositionFilter.COVERED:
            return not uncovered
        return True

    @staticmethod
    def _matches_face(face: FaceFilter, card: CardInstance) -> bool:
        if face == FaceFilter.FACE_UP:
            return card.face_up
        if face == FaceFilter.FACE_DOWN:
            return not card.face_up
        return True
