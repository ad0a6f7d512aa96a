"""
Main Set Setup - Creates initial game states and engines.

This module handles:
- A standard game: per-side decks from three protocols, seeded shuffle,
  opening hands
- Hand-built scenarios that put the board in a specific position

Every builder returns a ready EffectEngine. The automated side defaults to
FirstLegalPolicy so scenario runs are deterministic.
"""

from __future__ import annotations
import random
from typing import Callable

from ...bots.policy import DecisionAdapter, FirstLegalPolicy
from ...catalog import Catalog
from ...engine_core.effect_resolver import EffectEngine
from ...engine_core.state import GamePhase, GameState, Side
from .cards import load_main_set


OPENING_HAND = 5

DEFAULT_PROTOCOLS = {
    Side.PLAYER: ["Hate", "Fire", "Psychic"],
    Side.OPPONENT: ["Water", "Plague", "Death"],
}


def new_game(
    game_id: str = "game",
    catalog: Catalog | None = None,
    protocols: dict[Side, list[str]] | None = None,
    random_seed: int | None = None,
    adapters: dict[Side, DecisionAdapter] | None = None,
) -> EffectEngine:
    """
    Set up a standard game.

    Args:
        game_id: ID for the new game
        catalog: Card catalog (bundled main set if not provided)
        protocols: Three protocol names per side
        random_seed: Seed for deterministic shuffling
        adapters: Decision adapters (FirstLegalPolicy for the opponent if not provided)

    Returns:
        EffectEngine for a game in the playing phase, player to move
    """
    catalog = catalog or load_main_set()
    protocols = protocols or DEFAULT_PROTOCOLS
    seed = random_seed if random_seed is not None else random.randrange(1_000_000)
    rng = random.Random(seed)

    state = GameState.create(game_id, protocols=protocols, random_seed=seed)
    for side in Side:
        player = state.player(side)
        for protocol in player.protocols:
            cards = catalog.protocols.get(protocol)
            if cards is None:
                raise ValueError(f"Unknown protocol: {protocol}")
            player.deck.extend(state.new_card(side, card) for card in cards)
        rng.shuffle(player.deck)

        dealt = player.deck[:OPENING_HAND]
        del player.deck[:OPENING_HAND]
        player.hand.extend(dealt)

    state.phase = GamePhase.PLAYING
    state.turn_number = 1
    state.add_log(f"Game {game_id} set up with seed {seed}")
    return EffectEngine(catalog, state, _default_adapters(adapters))


def psychic3_uncover(
    game_id: str = "psychic3-uncover",
    catalog: Catalog | None = None,
    adapters: dict[Side, DecisionAdapter] | None = None,
) -> EffectEngine:
    """
    Psychic-3 uncovered during the player's turn.

    Setup:
    - Player hand: Hate-0, Fire-1, Water-1
    - Opponent lane 1: Psychic-3 face-up, covered by a face-down Fire-1

    Playing Hate-0 deletes the face-down Fire-1, which uncovers Psychic-3:
    the player discards 1, then the opponent shifts 1 of the player's cards.
    """
    catalog = catalog or load_main_set()
    state = GameState.create(game_id)

    player = state.player(Side.PLAYER)
    for name in ("Hate-0", "Fire-1", "Water-1"):
        player.hand.append(state.new_card(Side.PLAYER, _card(catalog, name)))

    opponent = state.player(Side.OPPONENT)
    opponent.lanes[1].append(state.new_card(Side.OPPONENT, _card(catalog, "Psychic-3")))
    opponent.lanes[1].append(
        state.new_card(Side.OPPONENT, _card(catalog, "Fire-1"), face_up=False)
    )

    state.phase = GamePhase.PLAYING
    state.turn_number = 1
    return EffectEngine(catalog, state, _default_adapters(adapters))


SCENARIOS: dict[str, Callable[..., EffectEngine]] = {
    "standard": new_game,
    "psychic3_uncover": psychic3_uncover,
}


def build_scenario(name: str, game_id: str, **kwargs) -> EffectEngine:
    """Build a named scenario. Raises KeyError for unknown names."""
    return SCENARIOS[name](game_id=game_id, **kwargs)


def _card(catalog: Catalog, name: str):
    card = catalog.card_by_name(name)
    if card is None:
        raise ValueError(f"Card {name} is not in the catalog")
    return card


def _default_adapters(
    adapters: dict[Side, DecisionAdapter] | None,
) -> dict[Side, DecisionAdapter]:
    if adapters is not None:
        return adapters
    return {Side.OPPONENT: FirstLegalPolicy()}
