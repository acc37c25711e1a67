"""
textX object processors for Oolong.

Object processors run during model construction to validate individual
declarations (type arguments, functor passes, relations, indexes) before the
module is handed to the loader.
"""

from textx import get_location, TextXSemanticError

from oolong.lib.types import (
    TYPE_POSITIONAL_ARGS,
    is_builtin_type,
    normalize_type_name,
)


def _cls(obj) -> str:
    return obj.__class__.__name__


# ------------------------------------------------------------------------------
# Functor passes

def _check_functor_passes(functors, owner, obj):
    """
    A value goes through at most two validate/modify passes:
        ~v0 ... |m0 ... ~v1 ... |m1 ...
    A validator that follows the second modifier run would open a third pass.
    Only one composer may fill the value.
    """
    stage = 0
    last_kind = None
    composers = 0

    for functor in functors or []:
        kind = _cls(functor)
        if kind == "ComposerCall":
            composers += 1
            if composers > 1:
                raise TextXSemanticError(
                    f"'{owner}' declares more than one composer.",
                    **get_location(functor),
                )
            continue

        if kind == "ValidatorCall" and last_kind == "ModifierCall":
            stage += 1
            if stage > 1:
                raise TextXSemanticError(
                    f"'{owner}' declares more than two validation passes.",
                    **get_location(functor),
                )
        last_kind = kind


def type_info_obj_processor(info):
    """
    Type argument validation:
    - Positional arguments only for builtin types with a positional shorthand
      (enum takes any number of values)
    - Named arguments must be unique
    """
    type_name = normalize_type_name(info.type)
    positional = [a for a in info.args if _cls(a) != "NamedArg"]
    named = [a for a in info.args if _cls(a) == "NamedArg"]

    if positional and type_name != "enum":
        allowed = TYPE_POSITIONAL_ARGS.get(type_name, ()) if is_builtin_type(type_name) else ()
        if len(positional) > len(allowed):
            raise TextXSemanticError(
                f"Type '{info.type}' accepts at most {len(allowed)} positional argument(s), "
                f"got {len(positional)}.",
                **get_location(info),
            )

    seen = set()
    for arg in named:
        if arg.name in seen:
            raise TextXSemanticError(
                f"Type argument '{arg.name}' is given more than once.",
                **get_location(arg),
            )
        seen.add(arg.name)

    _check_functor_passes(info.functors, info.type, info)


def field_decl_obj_processor(field):
    """
    Field declaration validation:
    - Relation fields (`->`, `<->`) take no functors
    - Functor passes of a field declared without an explicit type
    """
    if (field.bindTo or field.belongTo) and field.functors:
        raise TextXSemanticError(
            f"Relation field '{field.name}' does not accept validators, modifiers or composers.",
            **get_location(field),
        )
    _check_functor_passes(field.functors, field.name, field)


def relation_obj_processor(relation):
    """
    Relation validation:
    - n:n relations connect exactly two entities (no chain or multi shape)
    """
    if relation.relationship == "n:n" and (relation.multi or len(relation.targets) > 1):
        raise TextXSemanticError(
            f"Relation '{relation.left}' n:n only supports a single right-hand entity.",
            **get_location(relation),
        )


def index_item_obj_processor(index):
    """An index lists each field once."""
    if len(set(index.fields)) != len(index.fields):
        raise TextXSemanticError(
            f"Index [{', '.join(index.fields)}] lists a field more than once.",
            **get_location(index),
        )


def feature_decl_obj_processor(feature):
    """Named feature options must be unique."""
    seen = set()
    for arg in feature.named:
        if arg.name in seen:
            raise TextXSemanticError(
                f"Feature '{feature.name}' option '{arg.name}' is given more than once.",
                **get_location(arg),
            )
        seen.add(arg.name)


# ------------------------------------------------------------------------------

def get_obj_processors():
    """Return object processor configuration for the metamodel."""
    return {
        "TypeInfo": type_info_obj_processor,
        "FieldDecl": field_decl_obj_processor,
        "RelationStatement": relation_obj_processor,
        "IndexItem": index_item_obj_processor,
        "FeatureDecl": feature_decl_obj_processor,
    }
