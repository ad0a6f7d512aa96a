"""
Game State - The mutable store the effect engine operates on.

Design principles:
- Engine-owned: only EffectEngine mutates it; UI and bots read snapshots
- Serializable: plain dataclasses, clone() gives an independent copy
- Side-symmetric: both sides share the same PlayerState shape, so
  perspective is a lookup, never a special case
"""

from __future__ import annotations
from dataclasses import dataclass, field
from copy import deepcopy
from enum import Enum
from typing import Any, Iterator

from ..catalog.effect_dsl import CardDefinition


LANE_COUNT = 3
FACE_DOWN_VALUE = 2


class Side(Enum):
    """The two seats at the table."""
    PLAYER = "player"
    OPPONENT = "opponent"

    @property
    def other(self) -> Side:
        return Side.OPPONENT if self is Side.PLAYER else Side.PLAYER


class GamePhase(Enum):
    """High-level game phases."""
    SETUP = "setup"
    PLAYING = "playing"
    GAME_OVER = "game_over"


class Zone(Enum):
    """Where a card instance currently is."""
    HAND = "hand"
    DECK = "deck"
    DISCARD = "discard"
    LANE = "lane"


@dataclass
class CardInstance:
    """
    A card in play.

    Note: This is a runtime instance, not the definition.
    The definition lives in the Catalog and is shared.
    """
    instance_id: str
    definition: CardDefinition
    owner: Side
    face_up: bool = True

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def value(self) -> int:
        return self.definition.value

    @property
    def effective_value(self) -> int:
        return self.definition.value if self.face_up else FACE_DOWN_VALUE

    def __hash__(self):
        return hash(self.instance_id)

    def __eq__(self, other):
        if not isinstance(other, CardInstance):
            return False
        return self.instance_id == other.instance_id


@dataclass(frozen=True)
class CardLocation:
    """Position of a card instance. Lane fields are set only for Zone.LANE."""
    side: Side
    zone: Zone
    lane_index: int | None = None
    stack_index: int | None = None


@dataclass
class PlayerState:
    """
    State for one side.

    Each lane is a stack listed bottom to top: ``lanes[i][-1]`` is the
    uncovered card of lane ``i``.
    """
    side: Side
    is_human: bool = True
    protocols: list[str] = field(default_factory=list)
    hand: list[CardInstance] = field(default_factory=list)
    deck: list[CardInstance] = field(default_factory=list)
    discard: list[CardInstance] = field(default_factory=list)
    lanes: list[list[CardInstance]] = field(
        default_factory=lambda: [[] for _ in range(LANE_COUNT)]
    )

    def top_card(self, lane_index: int) -> CardInstance | None:
        """Get the uncovered card of a lane."""
        lane = self.lanes[lane_index]
        return lane[-1] if lane else None

    def lane_value(self, lane_index: int) -> int:
        """Total value of a lane; face-down cards count as 2."""
        return sum(card.effective_value for card in self.lanes[lane_index])

    def hand_card(self, instance_id: str) -> CardInstance | None:
        for card in self.hand:
            if card.instance_id == instance_id:
                return card
        return None


@dataclass
class GameState:
    """
    Complete game state at a point in time.

    This is the canonical state the engine operates on.
    All state changes go through EffectEngine.
    """
    game_id: str
    players: dict[Side, PlayerState] = field(default_factory=dict)

    phase: GamePhase = GamePhase.SETUP
    turn: Side = Side.PLAYER
    turn_number: int = 0

    # Random seed for deterministic shuffles
    random_seed: int = 0

    # Human-readable game log
    log: list[str] = field(default_factory=list)

    metadata: dict[str, Any] = field(default_factory=dict)
    next_instance: int = 0

    @classmethod
    def create(
        cls,
        game_id: str,
        protocols: dict[Side, list[str]] | None = None,
        human_sides: tuple[Side, ...] = (Side.PLAYER,),
        random_seed: int = 0,
    ) -> GameState:
        """Create an empty two-sided state."""
        protocols = protocols or {}
        players = {
            side: PlayerState(
                side=side,
                is_human=side in human_sides,
                protocols=list(protocols.get(side, [])),
            )
            for side in Side
        }
        return cls(game_id=game_id, players=players, random_seed=random_seed)

    def player(self, side: Side) -> PlayerState:
        return self.players[side]

    def new_card(
        self, side: Side, definition: CardDefinition, face_up: bool = True
    ) -> CardInstance:
        """Create a card instance with a fresh, deterministic instance ID."""
        self.next_instance += 1
        return CardInstance(
            instance_id=f"{definition.name}#{self.next_instance}",
            definition=definition,
            owner=side,
            face_up=face_up,
        )

    def board_cards(self) -> Iterator[tuple[CardInstance, CardLocation]]:
        """Yield every card in a lane, player side first, bottom to top."""
        for side in Side:
            for lane_index, lane in enumerate(self.players[side].lanes):
                for stack_index, card in enumerate(lane):
                    yield card, CardLocation(side, Zone.LANE, lane_index, stack_index)

    def locate(self, instance_id: str) -> CardLocation | None:
        """Find where a card instance is."""
        for side in Side:
            player = self.players[side]
            for zone, cards in (
                (Zone.HAND, player.hand),
                (Zone.DECK, player.deck),
                (Zone.DISCARD, player.discard),
            ):
                if any(c.instance_id == instance_id for c in cards):
                    return CardLocation(side, zone)
        for card, location in self.board_cards():
            if card.instance_id == instance_id:
                return location
        return None

    def find_card(self, instance_id: str) -> CardInstance | None:
        """Get a card instance from any zone."""
        for side in Side:
            player = self.players[side]
            for card in (*player.hand, *player.deck, *player.discard):
                if card.instance_id == instance_id:
                    return card
        for card, _ in self.board_cards():
            if card.instance_id == instance_id:
                return card
        return None

    def is_uncovered(self, instance_id: str) -> bool:
        location = self.locate(instance_id)
        if location is None or location.zone != Zone.LANE:
            return False
        lane = self.players[location.side].lanes[location.lane_index]
        return location.stack_index == len(lane) - 1

    def take_from_lane(self, instance_id: str) -> tuple[CardInstance, CardLocation]:
        """Remove a card from its lane. Raises KeyError if it is not on the board."""
        location = self.locate(instance_id)
        if location is None or location.zone != Zone.LANE:
            raise KeyError(f"Card {instance_id} is not on the board")
        lane = self.players[location.side].lanes[location.lane_index]
        card = lane.pop(location.stack_index)
        return card, location

    def add_log(self, message: str):
        self.log.append(message)

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)
