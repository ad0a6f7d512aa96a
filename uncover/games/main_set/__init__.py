"""
Main Set - The bundled card catalog and game setups.

This module contains:
- A subset of the main set in catalog JSON shape
- Standard game setup with seeded decks
- Hand-built scenarios for demos and tests
"""

from .cards import MAIN_SET, main_set_data, load_main_set
from .scenarios import SCENARIOS, build_scenario, new_game, psychic3_uncover

__all__ = [
    "MAIN_SET",
    "main_set_data",
    "load_main_set",
    "SCENARIOS",
    "build_scenario",
    "new_game",
    "psychic3_uncover",
]
