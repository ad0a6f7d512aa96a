"""
Main Set Cards - A bundled catalog for demos, scenarios and tests.

This is a subset of the main set, written in the catalog's JSON shape so
it goes through the same validation as a user-supplied file.

Card structure:
- value (0-6)
- top / middle / bottom: effect lists per text box

Card texts the closed effect vocabulary cannot express (e.g. "draw cards
equal to that card's value") are simplified to their nearest expressible
form; the full text is kept under the "text" key.
"""

from __future__ import annotations
from copy import deepcopy
from typing import Any

from ...catalog import Catalog, load_catalog


def _filter(owner: str = "any", face: str = "any", exclude_self: bool = False,
            position: str = "uncovered") -> dict[str, Any]:
    return {
        "owner": owner,
        "position": position,
        "faceState": face,
        "excludeSelf": exclude_self,
    }


# ============================================================================
# Protocols
# ============================================================================

HATE = [
    {
        "value": 0,
        "text": "Delete 1 face-down card.",
        "top": [],
        "middle": [
            {
                "id": "hate-0-delete",
                "trigger": "on_play",
                "position": "middle",
                "params": {
                    "action": "delete",
                    "count": 1,
                    "targetFilter": _filter(face="face_down", exclude_self=True),
                },
            },
        ],
        "bottom": [],
    },
    {
        "value": 3,
        "text": "After you delete cards: Draw 1 card.",
        "top": [
            {
                "id": "hate-3-after-delete",
                "trigger": "after_delete",
                "position": "top",
                "reactiveTriggerActor": "self",
                "params": {"action": "draw", "count": 1},
            },
        ],
        "middle": [],
        "bottom": [],
    },
]

FIRE = [
    {
        "value": 1,
        "text": "Discard 1 card. If you do, delete 1 card.",
        "top": [],
        "middle": [
            {
                "id": "fire-1-discard",
                "trigger": "on_play",
                "position": "middle",
                "params": {"action": "discard", "count": 1, "actor": "self"},
                "conditional": {
                    "type": "if_you_do",
                    "thenEffect": {
                        "id": "fire-1-delete",
                        "params": {
                            "action": "delete",
                            "count": 1,
                            "targetFilter": _filter(exclude_self=True),
                        },
                    },
                },
            },
        ],
        "bottom": [],
    },
    {
        "value": 3,
        "text": "End: You may discard 1 card. If you do, flip 1 card.",
        "top": [],
        "middle": [],
        "bottom": [
            {
                "id": "fire-3-end",
                "trigger": "end",
                "position": "bottom",
                "params": {"action": "discard", "count": 1, "actor": "self", "optional": True},
                "conditional": {
                    "type": "if_you_do",
                    "thenEffect": {
                        "id": "fire-3-flip",
                        "params": {"action": "flip", "count": 1, "targetFilter": _filter()},
                    },
                },
            },
        ],
    },
]

WATER = [
    {
        "value": 1,
        "text": "Play the top card of your deck face-down in each other line.",
        "top": [],
        "middle": [
            {
                "id": "water-1-return",
                "trigger": "on_play",
                "position": "middle",
                "params": {
                    "action": "return",
                    "count": 1,
                    "optional": True,
                    "targetFilter": _filter(owner="own", exclude_self=True),
                },
            },
        ],
        "bottom": [],
    },
    {
        "value": 4,
        "text": "Return 1 of your cards.",
        "top": [],
        "middle": [
            {
                "id": "water-4-return",
                "trigger": "on_play",
                "position": "middle",
                "params": {"action": "return", "count": 1, "targetFilter": _filter(owner="own")},
            },
        ],
        "bottom": [],
    },
]

PSYCHIC = [
    {
        "value": 3,
        "text": "Your opponent discards 1 card. Shift 1 of their cards.",
        "top": [],
        "middle": [
            {
                "id": "psychic-3-discard",
                "trigger": "on_play",
                "position": "middle",
                "params": {"action": "discard", "count": 1, "actor": "opponent"},
                "conditional": {
                    "type": "then",
                    "thenEffect": {
                        "id": "psychic-3-shift",
                        "params": {
                            "action": "shift",
                            "count": 1,
                            "targetFilter": _filter(owner="opponent"),
                        },
                    },
                },
            },
        ],
        "bottom": [],
    },
]

PLAGUE = [
    {
        "value": 1,
        "text": "After your opponent discards cards: Draw 1 card. / Your opponent discards 1 card.",
        "top": [
            {
                "id": "plague-1-after-discard",
                "trigger": "after_discard",
                "position": "top",
                "reactiveTriggerActor": "opponent",
                "params": {"action": "draw", "count": 1},
            },
        ],
        "middle": [
            {
                "id": "plague-1-discard",
                "trigger": "on_play",
                "position": "middle",
                "params": {"action": "discard", "count": 1, "actor": "opponent"},
            },
        ],
        "bottom": [],
    },
]

DEATH = [
    {
        "value": 1,
        "text": "Start: You may draw 1 card. If you do, delete 1 other card, then delete this card.",
        "top": [],
        "middle": [],
        "bottom": [
            {
                "id": "death-1-start",
                "trigger": "start",
                "position": "bottom",
                "params": {
                    "action": "delete",
                    "count": 1,
                    "optional": True,
                    "targetFilter": _filter(exclude_self=True),
                },
                "conditional": {
                    "type": "if_you_do",
                    "thenEffect": {
                        "id": "death-1-draw",
                        "params": {"action": "draw", "count": 1, "target": "self"},
                    },
                },
            },
        ],
    },
]

SPEED = [
    {
        "value": 3,
        "text": "Shift 1 of your other cards.",
        "top": [],
        "middle": [
            {
                "id": "speed-3-shift",
                "trigger": "on_play",
                "position": "middle",
                "params": {
                    "action": "shift",
                    "count": 1,
                    "targetFilter": _filter(owner="own", exclude_self=True),
                },
            },
        ],
        "bottom": [],
    },
]

DARKNESS = [
    {
        "value": 1,
        "text": "Flip 1 of your opponent's cards. You may shift that card.",
        "top": [],
        "middle": [
            {
                "id": "darkness-1-flip",
                "trigger": "on_play",
                "position": "middle",
                "params": {"action": "flip", "count": 1, "targetFilter": _filter(owner="opponent")},
            },
        ],
        "bottom": [],
    },
]


MAIN_SET: dict[str, list[dict[str, Any]]] = {
    "Hate": HATE,
    "Fire": FIRE,
    "Water": WATER,
    "Psychic": PSYCHIC,
    "Plague": PLAGUE,
    "Death": DEATH,
    "Speed": SPEED,
    "Darkness": DARKNESS,
}


def main_set_data() -> dict[str, list[dict[str, Any]]]:
    """A fresh, mutable copy of the raw main set catalog."""
    return deepcopy(MAIN_SET)


def load_main_set() -> Catalog:
    """Validate and load the bundled main set."""
    return load_catalog(main_set_data())
