"""
Pytest fixtures for Uncover tests.
"""

import pytest

from ..bots import FirstLegalPolicy
from ..catalog import Catalog
from ..engine_core.effect_resolver import EffectEngine
from ..engine_core.state import GamePhase, GameState, Side
from ..games.main_set import load_main_set, main_set_data


@pytest.fixture
def catalog_data() -> dict:
    """Raw main set catalog (a fresh copy per test)."""
    return main_set_data()


@pytest.fixture
def catalog() -> Catalog:
    """Loaded main set catalog."""
    return load_main_set()


@pytest.fixture
def empty_state() -> GameState:
    """A two-sided state with nothing dealt, player to move."""
    state = GameState.create("test_game")
    state.phase = GamePhase.PLAYING
    state.turn_number = 1
    return state


@pytest.fixture
def engine(catalog, empty_state) -> EffectEngine:
    """Engine on an empty board; the opponent answers with FirstLegalPolicy."""
    return EffectEngine(catalog, empty_state, {Side.OPPONENT: FirstLegalPolicy()})


@pytest.fixture
def place(catalog):
    """
    Put a card straight into a zone, bypassing play.

    Usage:
        card = place(state, Side.PLAYER, "Hate-0", lane=0)
        card = place(state, Side.PLAYER, "Fire-1")          # to hand
    """
    def _place(state, side, name, lane=None, face_up=True, zone="hand"):
        card = state.new_card(side, catalog.card_by_name(name), face_up=face_up)
        player = state.player(side)
        if lane is not None:
            player.lanes[lane].append(card)
        else:
            getattr(player, zone).append(card)
        return card
    return _place


