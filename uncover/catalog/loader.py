"""
Catalog Loader - Raw catalog data to immutable effect trees and back.

load_catalog() validates first and refuses malformed data with a
DataIntegrityError, so a live game never meets a broken definition.
catalog_to_dict() emits the canonical form of the same shape; loading that
output again yields an identical tree.
"""

from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any

from .effect_dsl import (
    ActionKind,
    BoxPosition,
    Catalog,
    CardDefinition,
    Conditional,
    ConditionType,
    EffectDefinition,
    EffectParams,
    FaceFilter,
    OwnerRelation,
    PositionFilter,
    TargetFilter,
    Trigger,
    TriggerActor,
)
from .validation import BOX_KEYS, DataIntegrityError, validate_catalog, actor_param_key

logger = logging.getLogger(__name__)

_EFFECT_KEYS = {"id", "trigger", "position", "params", "conditional", "reactiveTriggerActor"}
_PARAM_KEYS = {"action", "count", "targetFilter", "optional"}
_FILTER_KEYS = {"owner", "position", "faceState", "excludeSelf"}
_CARD_KEYS = {"value", *BOX_KEYS}


def load_catalog(data: dict[str, Any]) -> Catalog:
    """
    Validate and load a catalog.

    Raises DataIntegrityError listing every problem if validation fails.
    Warnings are logged.
    """
    result = validate_catalog(data)
    for warning in result.warnings:
        logger.warning("Catalog: %s", warning)
    if not result.valid:
        raise DataIntegrityError(result.errors)

    protocols = {
        protocol: tuple(_parse_card(protocol, card) for card in cards)
        for protocol, cards in data.items()
    }
    catalog = Catalog(protocols=protocols)
    logger.debug(
        "Loaded catalog with %d protocol(s), %d card(s)",
        len(protocols), len(catalog.all_cards()),
    )
    return catalog


def load_catalog_file(path: str | Path) -> Catalog:
    """Load a catalog from a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return load_catalog(data)


def catalog_to_dict(catalog: Catalog) -> dict[str, Any]:
    """Serialize a catalog to its canonical JSON-shaped form."""
    return {
        protocol: [_card_to_dict(card) for card in cards]
        for protocol, cards in catalog.protocols.items()
    }


def effect_to_dict(effect: EffectDefinition) -> dict[str, Any]:
    """Serialize one effect, including its conditional chain."""
    data: dict[str, Any] = {**effect.extra, "id": effect.effect_id}
    if effect.trigger is not None:
        data["trigger"] = effect.trigger.value
    if effect.position is not None:
        data["position"] = effect.position.value
    data["params"] = _params_to_dict(effect.params)
    if effect.conditional is not None:
        data["conditional"] = {
            "type": effect.conditional.condition.value,
            "thenEffect": effect_to_dict(effect.conditional.then_effect),
        }
    if effect.reactive_trigger_actor is not None:
        data["reactiveTriggerActor"] = effect.reactive_trigger_actor.value
    return data


# ============================================================================
# Parsing
# ============================================================================

def _parse_card(protocol: str, data: dict[str, Any]) -> CardDefinition:
    boxes = {
        box: tuple(parse_effect(effect) for effect in data.get(box, []))
        for box in BOX_KEYS
    }
    return CardDefinition(
        protocol=protocol,
        value=data["value"],
        top=boxes["top"],
        middle=boxes["middle"],
        bottom=boxes["bottom"],
        extra=_extra(data, _CARD_KEYS),
    )


def parse_effect(data: dict[str, Any]) -> EffectDefinition:
    """Parse one already-validated effect mapping."""
    conditional = None
    if data.get("conditional") is not None:
        conditional = Conditional(
            condition=ConditionType(data["conditional"]["type"]),
            then_effect=parse_effect(data["conditional"]["thenEffect"]),
        )

    actor = data.get("reactiveTriggerActor")
    return EffectDefinition(
        effect_id=data["id"],
        params=_parse_params(data["params"]),
        trigger=Trigger(data["trigger"]) if data.get("trigger") else None,
        position=BoxPosition(data["position"]) if data.get("position") else None,
        conditional=conditional,
        reactive_trigger_actor=TriggerActor(actor) if actor else None,
        extra=_extra(data, _EFFECT_KEYS),
    )


def _parse_params(data: dict[str, Any]) -> EffectParams:
    action = ActionKind(data["action"])

    target_filter = None
    if data.get("targetFilter") is not None:
        raw = data["targetFilter"]
        target_filter = TargetFilter(
            owner=OwnerRelation(raw.get("owner", OwnerRelation.ANY.value)),
            position=PositionFilter(raw.get("position", PositionFilter.UNCOVERED.value)),
            face=FaceFilter(raw.get("faceState", FaceFilter.ANY.value)),
            exclude_self=raw.get("excludeSelf", False),
            extra=_extra(raw, _FILTER_KEYS),
        )

    actor_key = actor_param_key(action)
    actor = TriggerActor.SELF
    if actor_key is not None and data.get(actor_key):
        actor = TriggerActor(data[actor_key])

    return EffectParams(
        action=action,
        count=data.get("count", 1),
        target_filter=target_filter,
        actor=actor,
        optional=data.get("optional", False),
        extra=_extra(data, _PARAM_KEYS | {actor_key}),
    )


def _extra(data: dict[str, Any], known: set[str]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if key not in known}


# ============================================================================
# Serialization
# ============================================================================

def _card_to_dict(card: CardDefinition) -> dict[str, Any]:
    data: dict[str, Any] = {**card.extra, "value": card.value}
    for box in BoxPosition:
        data[box.value] = [effect_to_dict(effect) for effect in card.effects_in(box)]
    return data


def _params_to_dict(params: EffectParams) -> dict[str, Any]:
    data: dict[str, Any] = {
        **params.extra,
        "action": params.action.value,
        "count": params.count,
        "optional": params.optional,
    }
    if params.target_filter is not None:
        tf = params.target_filter
        data["targetFilter"] = {
            **tf.extra,
            "owner": tf.owner.value,
            "position": tf.position.value,
            "faceState": tf.face.value,
            "excludeSelf": tf.exclude_self,
        }
    actor_key = actor_param_key(params.action)
    if actor_key is not None:
        data[actor_key] = params.actor.value
    return data
