"""
Builtin vocabulary of the Oolong language: primitive types and their
attributes, functor kinds, relationship kinds and runtime rule scenarios.
"""

from enum import Enum


# ------------------------------------------------------------------------------
# Primitive types

BUILTIN_TYPES = frozenset({
    "int", "float", "decimal", "text", "bool", "binary",
    "datetime", "json", "xml", "enum", "csv",
})

TYPE_ALIASES = {
    "integer": "int",
    "number": "float",
    "string": "text",
    "boolean": "bool",
    "blob": "binary",
    "buffer": "binary",
    "timestamp": "datetime",
    "object": "json",
}

# Attributes that describe the storage shape of a primitive type. A foreign
# key column inherits exactly these from the referenced key field.
BUILTIN_TYPE_ATTR = (
    "type", "digits", "bytes", "unsigned", "totalDigits", "decimalDigits",
    "maxLength", "fixedLength", "range", "values",
)

# Positional shorthand of type arguments, e.g. text(40) or decimal(10, 2)
TYPE_POSITIONAL_ARGS = {
    "int": ("digits",),
    "float": ("totalDigits", "decimalDigits"),
    "decimal": ("totalDigits", "decimalDigits"),
    "text": ("maxLength",),
    "binary": ("maxLength",),
    "datetime": ("range",),
}

DATETIME_RANGES = ("datetime", "date", "time", "year", "timestamp")

FIELD_FLAGS = {
    "optional": "optional",
    "readOnly": "readOnly",
    "writeOnceOnly": "writeOnceOnly",
    "fixed": "fixedValue",
    "unsigned": "unsigned",
    "auto": "auto",
}


def normalize_type_name(name: str) -> str:
    return TYPE_ALIASES.get(name, name)


def is_builtin_type(name: str) -> bool:
    return name in BUILTIN_TYPES


# ------------------------------------------------------------------------------
# Functors

class FunctorKind(str, Enum):
    VALIDATOR = "validator"
    MODIFIER = "modifier"
    COMPOSER = "composer"


# Functor lists of a field in execution order, with the topo id marker of each
# stage. The composer runs first since it fills a value that has no raw input.
FUNCTOR_STAGES = (
    ("computedBy", ":by=", FunctorKind.COMPOSER),
    ("validators0", ":stage0~", FunctorKind.VALIDATOR),
    ("modifiers0", ":stage0|", FunctorKind.MODIFIER),
    ("validators1", ":stage1~", FunctorKind.VALIDATOR),
    ("modifiers1", ":stage1|", FunctorKind.MODIFIER),
)

FUNCTOR_KEYS = tuple(stage[0] for stage in FUNCTOR_STAGES)


# ------------------------------------------------------------------------------
# Relations

class Relationship(str, Enum):
    ONE_TO_ONE = "1:1"
    ONE_TO_MANY = "1:n"
    MANY_TO_ONE = "n:1"
    MANY_TO_MANY = "n:n"


class RelationShape(str, Enum):
    SINGLE = "single"
    CHAIN = "chain"
    MULTI = "multi"


# ------------------------------------------------------------------------------
# Runtime rules attached by features

class RuleScenario(str, Enum):
    BEFORE_FIND = "beforeFind"
    POST_DATA_VALIDATION = "postDataValidation"
    POST_CREATE_CHECK = "postCreateCheck"
    POST_UPDATE_CHECK = "postUpdateCheck"
