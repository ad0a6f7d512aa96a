"""
Tests for catalog validation and loading.

Tests:
- Required fields and closed vocabularies
- Conditional chains at any depth
- Reactive actor warning and default
- Loading, warnings logged, DataIntegrityError
- Lossless round-trip through the canonical form
"""

import logging

import pytest

from ..catalog import (
    ActionKind,
    ConditionType,
    DataIntegrityError,
    Trigger,
    TriggerActor,
    catalog_to_dict,
    load_catalog,
    validate_catalog,
)
from ..catalog.effect_dsl import BoxPosition


def _card(value=0, top=None, middle=None, bottom=None, **extra):
    return {"value": value, "top": top or [], "middle": middle or [], "bottom": bottom or [], **extra}


def _delete(effect_id="x-delete", **overrides):
    effect = {
        "id": effect_id,
        "trigger": "on_play",
        "position": "middle",
        "params": {"action": "delete", "count": 1, "targetFilter": {"owner": "any"}},
    }
    effect.update(overrides)
    return effect


def _nested(depth: int) -> dict:
    """A draw effect with ``depth`` levels of then-branches."""
    effect = {"id": f"draw-{depth}", "params": {"action": "draw"}}
    for level in range(depth - 1, -1, -1):
        effect = {
            "id": f"draw-{level}",
            "params": {"action": "draw"},
            "conditional": {"type": "then", "thenEffect": effect},
        }
    effect["trigger"] = "on_play"
    effect["position"] = "middle"
    return effect


class TestValidation:
    """Tests for validate_catalog()."""

    def test_main_set_is_valid(self, catalog_data):
        result = validate_catalog(catalog_data)
        assert result.valid, result.errors
        assert result.errors == []

    def test_not_a_mapping(self):
        result = validate_catalog(["Hate"])
        assert not result.valid

    def test_missing_action(self):
        effect = _delete()
        del effect["params"]["action"]
        result = validate_catalog({"X": [_card(middle=[effect])]})

        assert not result.valid
        assert any("missing action" in e for e in result.errors)

    def test_missing_params(self):
        effect = _delete()
        del effect["params"]
        result = validate_catalog({"X": [_card(middle=[effect])]})
        assert any("missing params" in e for e in result.errors)

    def test_board_action_requires_target_filter(self):
        effect = _delete()
        del effect["params"]["targetFilter"]
        result = validate_catalog({"X": [_card(middle=[effect])]})

        assert not result.valid
        assert any("requires a targetFilter" in e for e in result.errors)

    def test_draw_needs_no_target_filter(self):
        effect = {"id": "d", "trigger": "on_play", "position": "middle", "params": {"action": "draw"}}
        assert validate_catalog({"X": [_card(middle=[effect])]}).valid

    def test_unknown_action_and_trigger(self):
        effect = _delete(trigger="on_sneeze")
        effect["params"]["action"] = "explode"
        result = validate_catalog({"X": [_card(middle=[effect])]})

        assert any("unknown trigger 'on_sneeze'" in e for e in result.errors)
        assert any("unknown action 'explode'" in e for e in result.errors)

    def test_unknown_filter_term(self):
        effect = _delete()
        effect["params"]["targetFilter"]["faceState"] = "sideways"
        result = validate_catalog({"X": [_card(middle=[effect])]})
        assert any("unknown faceState 'sideways'" in e for e in result.errors)

    def test_conditional_without_then_branch(self):
        effect = _delete(conditional={"type": "if_executed"})
        result = validate_catalog({"X": [_card(middle=[effect])]})

        assert not result.valid
        assert any("no thenEffect" in e for e in result.errors)

    def test_nested_conditional_without_then_branch(self):
        effect = _nested(3)
        # Break the innermost link
        innermost = effect["conditional"]["thenEffect"]["conditional"]["thenEffect"]
        innermost["conditional"] = {"type": "then"}
        result = validate_catalog({"X": [_card(middle=[effect])]})

        assert not result.valid
        assert any("> then > then: conditional" in e for e in result.errors)
        assert all("no thenEffect" not in e or "> then > then" in e for e in result.errors)

    def test_then_branch_may_omit_trigger_and_position(self):
        result = validate_catalog({"X": [_card(middle=[_nested(2)])]})
        assert result.valid, result.errors

    def test_top_level_effect_needs_trigger_and_position(self):
        effect = _delete()
        del effect["trigger"]
        del effect["position"]
        result = validate_catalog({"X": [_card(middle=[effect])]})

        assert any("missing trigger" in e for e in result.errors)
        assert any("missing position" in e for e in result.errors)

    def test_conditional_requires_type(self):
        effect = _delete(conditional={"thenEffect": {"id": "then-draw", "params": {"action": "draw"}}})
        result = validate_catalog({"X": [_card(middle=[effect])]})

        assert not result.valid
        assert any("conditional: missing type" in e for e in result.errors)

    def test_target_filter_checked_on_any_action(self):
        draw = {
            "id": "d", "trigger": "on_play", "position": "middle",
            "params": {"action": "draw", "targetFilter": {"owner": "bogus"}},
        }
        discard = {
            "id": "x", "trigger": "on_play", "position": "middle",
            "params": {"action": "discard", "targetFilter": "own hand"},
        }
        result = validate_catalog({"X": [_card(middle=[draw, discard])]})

        assert not result.valid
        assert any("unknown owner 'bogus'" in e for e in result.errors)
        assert any("targetFilter must be a mapping" in e for e in result.errors)

    def test_reactive_without_actor_is_warning(self):
        effect = {
            "id": "react",
            "trigger": "after_delete",
            "position": "top",
            "params": {"action": "draw"},
        }
        result = validate_catalog({"X": [_card(top=[effect])]})

        assert result.valid
        assert any("defaults to 'self'" in w for w in result.warnings)

    def test_unknown_reactive_actor(self):
        effect = {
            "id": "react",
            "trigger": "after_draw",
            "position": "top",
            "reactiveTriggerActor": "everyone",
            "params": {"action": "draw"},
        }
        result = validate_catalog({"X": [_card(top=[effect])]})
        assert any("unknown reactiveTriggerActor" in e for e in result.errors)

    def test_discard_actor_must_be_self_or_opponent(self):
        effect = {
            "id": "d",
            "trigger": "on_play",
            "position": "middle",
            "params": {"action": "discard", "actor": "any"},
        }
        result = validate_catalog({"X": [_card(middle=[effect])]})
        assert any("actor must be 'self' or 'opponent'" in e for e in result.errors)

    def test_bad_count(self):
        effect = _delete()
        effect["params"]["count"] = 0
        result = validate_catalog({"X": [_card(middle=[effect])]})
        assert any("count must be a positive integer" in e for e in result.errors)

    def test_duplicates(self):
        card = _card(value=1, middle=[_delete("same"), _delete("same")])
        result = validate_catalog({"X": [card, _card(value=1, middle=[_delete()])]})

        assert any("duplicate effect id 'same'" in e for e in result.errors)
        assert any("duplicate card value" in e for e in result.errors)

    def test_position_mismatch_is_warning(self):
        result = validate_catalog({"X": [_card(top=[_delete()])]})
        assert result.valid
        assert any("listed under 'top'" in w for w in result.warnings)

    def test_card_without_effects_is_warning(self):
        result = validate_catalog({"X": [_card()]})
        assert result.valid
        assert any("no effects" in w for w in result.warnings)


class TestLoading:
    """Tests for load_catalog()."""

    def test_load_main_set(self, catalog):
        psychic = catalog.card_by_name("Psychic-3")

        assert psychic is not None
        assert psychic.protocol == "Psychic"
        effect = psychic.middle[0]
        assert effect.action == ActionKind.DISCARD
        assert effect.params.actor == TriggerActor.OPPONENT
        assert effect.conditional.condition == ConditionType.THEN
        assert effect.conditional.then_effect.action == ActionKind.SHIFT

    def test_invalid_catalog_raises(self):
        effect = _delete(conditional={"type": "then"})
        with pytest.raises(DataIntegrityError) as exc_info:
            load_catalog({"X": [_card(middle=[effect])]})

        assert any("no thenEffect" in e for e in exc_info.value.errors)

    @pytest.mark.parametrize("effect", [
        {
            "id": "a", "trigger": "on_play", "position": "middle",
            "params": {"action": "draw"},
            "conditional": {"thenEffect": {"id": "b", "params": {"action": "draw"}}},
        },
        {
            "id": "a", "trigger": "on_play", "position": "middle",
            "params": {"action": "draw", "targetFilter": {"owner": "bogus"}},
        },
        {
            "id": "a", "trigger": "on_play", "position": "middle",
            "params": {"action": "discard", "targetFilter": ["any"]},
        },
    ])
    def test_malformed_effect_raises_integrity_error(self, effect):
        with pytest.raises(DataIntegrityError):
            load_catalog({"X": [_card(middle=[effect])]})

    def test_warnings_are_logged(self, caplog):
        effect = {"id": "r", "trigger": "after_flip", "position": "top", "params": {"action": "draw"}}
        with caplog.at_level(logging.WARNING, logger="uncover.catalog.loader"):
            load_catalog({"X": [_card(top=[effect])]})

        assert any("defaults to 'self'" in r.getMessage() for r in caplog.records)

    def test_missing_reactive_actor_resolves_to_self(self):
        effect = {"id": "r", "trigger": "after_flip", "position": "top", "params": {"action": "draw"}}
        catalog = load_catalog({"X": [_card(top=[effect])]})
        loaded = catalog.card_by_name("X-0").top[0]

        assert loaded.trigger == Trigger.AFTER_FLIP
        assert loaded.reactive_trigger_actor is None
        assert loaded.trigger_actor == TriggerActor.SELF

    def test_arbitrary_nesting_depth(self):
        catalog = load_catalog({"X": [_card(middle=[_nested(6)])]})
        chain = list(catalog.card_by_name("X-0").middle[0].chain())

        assert [effect.effect_id for effect in chain] == [f"draw-{i}" for i in range(7)]
        assert all(effect.conditional.then_effect is not None for effect in chain[:-1])

    def test_effects_in_boxes(self, catalog):
        plague = catalog.card_by_name("Plague-1")
        assert [e.effect_id for e in plague.effects_in(BoxPosition.TOP)] == ["plague-1-after-discard"]
        assert len(plague.all_effects()) == 2


class TestRoundTrip:
    """Loading, serializing and reloading yields the same tree."""

    def test_main_set_round_trip(self, catalog):
        reloaded = load_catalog(catalog_to_dict(catalog))
        assert reloaded == catalog

    def test_canonical_form_is_stable(self, catalog):
        once = catalog_to_dict(catalog)
        twice = catalog_to_dict(load_catalog(once))
        assert once == twice

    def test_unknown_keys_survive(self):
        effect = _delete(flavor="spicy")
        effect["params"]["targetFilter"]["note"] = "kept"
        data = {"X": [_card(middle=[effect], text="Delete 1 card.")]}

        out = catalog_to_dict(load_catalog(data))
        card = out["X"][0]

        assert card["text"] == "Delete 1 card."
        assert card["middle"][0]["flavor"] == "spicy"
        assert card["middle"][0]["params"]["targetFilter"]["note"] == "kept"

    def test_absent_reactive_actor_stays_absent(self):
        effect = {"id": "r", "trigger": "after_draw", "position": "top", "params": {"action": "draw"}}
        out = catalog_to_dict(load_catalog({"X": [_card(top=[effect])]}))
        assert "reactiveTriggerActor" not in out["X"][0]["top"][0]
