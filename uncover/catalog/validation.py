"""
Catalog Validation - Schema validation for card catalogs.

Validates raw catalog data (the JSON-shaped mapping) before it is turned
into effect definitions:
1. Required fields are present (id, trigger, position, params.action)
2. Every enumerated term belongs to the closed vocabulary
3. Board actions carry a target filter
4. Conditional chains have a then-branch at every nesting level
5. Reactive triggers name their actor (warning only; absence means "self")

Validation reports problems, it never raises. The loader turns a failed
result into a DataIntegrityError.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

from .effect_dsl import (
    ActionKind,
    BoxPosition,
    ConditionType,
    FaceFilter,
    OwnerRelation,
    PositionFilter,
    Trigger,
    TriggerActor,
)


BOX_KEYS = tuple(box.value for box in BoxPosition)


class DataIntegrityError(Exception):
    """Raised when a catalog fails validation at load time."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Catalog validation failed with {len(errors)} error(s)")


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def validate_catalog(data: Any) -> ValidationResult:
    """
    Validate a raw catalog mapping of protocol name -> list of cards.

    Returns ValidationResult with errors and warnings.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not isinstance(data, dict):
        errors.append("Catalog must be a mapping of protocol name to card list")
        return ValidationResult(valid=False, errors=errors, warnings=warnings)

    for protocol, cards in data.items():
        if not isinstance(protocol, str) or not protocol:
            errors.append(f"Protocol name {protocol!r} must be a non-empty string")
            continue
        if not isinstance(cards, list):
            errors.append(f"Protocol '{protocol}' must map to a list of cards")
            continue

        seen_values: set[int] = set()
        for index, card in enumerate(cards):
            card_errors, card_warnings = _validate_card(protocol, index, card, seen_values)
            errors.extend(card_errors)
            warnings.extend(card_warnings)

    if not data:
        warnings.append("No protocols defined - catalog may be incomplete")

    return ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )


def _validate_card(
    protocol: str, index: int, card: Any, seen_values: set[int]
) -> tuple[list[str], list[str]]:
    """Validate a single card entry."""
    errors: list[str] = []
    warnings: list[str] = []

    if not isinstance(card, dict):
        return [f"{protocol}[{index}]: card must be a mapping"], warnings

    value = card.get("value")
    if not isinstance(value, int) or isinstance(value, bool):
        errors.append(f"{protocol}[{index}]: card has no integer value")
        label = f"{protocol}[{index}]"
    else:
        label = f"{protocol}-{value}"
        if value in seen_values:
            errors.append(f"{label}: duplicate card value in protocol")
        seen_values.add(value)

    effect_ids: set[str] = set()
    total_effects = 0
    for box in BOX_KEYS:
        effects = card.get(box, [])
        if not isinstance(effects, list):
            errors.append(f"{label}: '{box}' must be a list of effects")
            continue

        for slot, effect in enumerate(effects):
            total_effects += 1
            where = f"{label} {box}[{slot}]"
            effect_errors, effect_warnings = _validate_effect(
                effect, where, box=box, nested=False
            )
            errors.extend(effect_errors)
            warnings.extend(effect_warnings)

            if isinstance(effect, dict) and effect.get("id"):
                if effect["id"] in effect_ids:
                    errors.append(f"{where}: duplicate effect id '{effect['id']}'")
                effect_ids.add(effect["id"])

    if total_effects == 0:
        warnings.append(f"{label}: no effects")

    return errors, warnings


def _validate_effect(
    effect: Any, where: str, box: str | None, nested: bool
) -> tuple[list[str], list[str]]:
    """
    Validate one effect and, recursively, its conditional chain.

    Then-branches (``nested``) may omit trigger and position.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not isinstance(effect, dict):
        return [f"{where}: effect must be a mapping"], warnings

    if not effect.get("id"):
        errors.append(f"{where}: missing effect id")

    trigger = _check_enum(effect, "trigger", Trigger, where, errors, required=not nested)
    position = effect.get("position")
    if position is None:
        if not nested:
            errors.append(f"{where}: missing position")
    elif position not in BOX_KEYS:
        errors.append(f"{where}: unknown position '{position}'")
    elif box is not None and position != box:
        warnings.append(f"{where}: declares position '{position}' but is listed under '{box}'")

    params = effect.get("params")
    if not isinstance(params, dict):
        errors.append(f"{where}: missing params")
    else:
        errors.extend(_validate_params(params, where))

    actor = effect.get("reactiveTriggerActor")
    if actor is not None and actor not in {a.value for a in TriggerActor}:
        errors.append(f"{where}: unknown reactiveTriggerActor '{actor}'")
    if trigger is not None and trigger.is_reactive and actor is None:
        warnings.append(
            f"{where}: reactive trigger '{trigger.value}' without "
            f"reactiveTriggerActor (defaults to 'self')"
        )
    elif trigger is not None and not trigger.is_reactive and actor is not None:
        warnings.append(
            f"{where}: reactiveTriggerActor is ignored on trigger '{trigger.value}'"
        )

    conditional = effect.get("conditional")
    if conditional is not None:
        if not isinstance(conditional, dict):
            errors.append(f"{where}: conditional must be a mapping")
        else:
            _check_enum(
                conditional, "type", ConditionType, f"{where} conditional", errors, required=True
            )
            then_effect = conditional.get("thenEffect")
            if then_effect is None:
                errors.append(
                    f"{where}: conditional type='{conditional.get('type')}' but no thenEffect"
                )
            else:
                nested_errors, nested_warnings = _validate_effect(
                    then_effect, f"{where} > then", box=None, nested=True
                )
                errors.extend(nested_errors)
                warnings.extend(nested_warnings)

    return errors, warnings


def _validate_params(params: dict[str, Any], where: str) -> list[str]:
    """Validate an effect's parameter bundle."""
    errors: list[str] = []

    action = _check_enum(params, "action", ActionKind, where, errors, required=True)

    count = params.get("count", 1)
    if not isinstance(count, int) or isinstance(count, bool) or count < 1:
        errors.append(f"{where}: count must be a positive integer, got {count!r}")

    optional = params.get("optional", False)
    if not isinstance(optional, bool):
        errors.append(f"{where}: optional must be a boolean")

    if action is None:
        return errors

    target_filter = params.get("targetFilter")
    if target_filter is None:
        if action.targets_board:
            errors.append(f"{where}: action '{action.value}' requires a targetFilter")
    elif not isinstance(target_filter, dict):
        errors.append(f"{where}: targetFilter must be a mapping")
    else:
        filter_where = f"{where} targetFilter"
        _check_enum(target_filter, "owner", OwnerRelation, filter_where, errors)
        _check_enum(target_filter, "position", PositionFilter, filter_where, errors)
        _check_enum(target_filter, "faceState", FaceFilter, filter_where, errors)
        if not isinstance(target_filter.get("excludeSelf", False), bool):
            errors.append(f"{filter_where}: excludeSelf must be a boolean")

    actor_key = actor_param_key(action)
    if actor_key is not None:
        actor = params.get(actor_key)
        if actor is not None and actor not in (TriggerActor.SELF.value, TriggerActor.OPPONENT.value):
            errors.append(f"{where}: {actor_key} must be 'self' or 'opponent', got {actor!r}")

    return errors


def actor_param_key(action: ActionKind) -> str | None:
    """Name of the "who does it" parameter for an action, if any."""
    if action == ActionKind.DISCARD:
        return "actor"
    if action == ActionKind.DRAW:
        return "target"
    return None


def _check_enum(
    mapping: dict[str, Any],
    key: str,
    enum_type: type,
    where: str,
    errors: list[str],
    required: bool = False,
):
    """Check ``mapping[key]`` is a member value of ``enum_type``; return the member."""
    raw = mapping.get(key)
    if raw is None:
        if required:
            errors.append(f"{where}: missing {key}")
        return None
    try:
        return enum_type(raw)
    except ValueError:
        errors.append(f"{where}: unknown {key} '{raw}'")
        return None
