"""Card catalog - declarative effect definitions, validation and loading."""

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
from .validation import validate_catalog, ValidationResult, DataIntegrityError
from .loader import load_catalog, load_catalog_file, catalog_to_dict, effect_to_dict

__all__ = [
    "ActionKind",
    "BoxPosition",
    "Catalog",
    "CardDefinition",
    "Conditional",
    "ConditionType",
    "EffectDefinition",
    "EffectParams",
    "FaceFilter",
    "OwnerRelation",
    "PositionFilter",
    "TargetFilter",
    "Trigger",
    "TriggerActor",
    "validate_catalog",
    "ValidationResult",
    "DataIntegrityError",
    "load_catalog",
    "load_catalog_file",
    "catalog_to_dict",
    "effect_to_dict",
]
