from oolong.lib.types import FunctorKind

from .composers import DSL_COMPOSERS
from .modifiers import DSL_MODIFIERS
from .validators import DSL_VALIDATORS

DSL_FUNCTORS = {
    FunctorKind.VALIDATOR: DSL_VALIDATORS,
    FunctorKind.MODIFIER: DSL_MODIFIERS,
    FunctorKind.COMPOSER: DSL_COMPOSERS,
}

# Callables looked up by generated code, e.g. validators["isEmail"](value)
VALIDATORS = {k: v[0] for k, v in DSL_VALIDATORS.items()}
MODIFIERS = {k: v[0] for k, v in DSL_MODIFIERS.items()}
COMPOSERS = {k: v[0] for k, v in DSL_COMPOSERS.items()}

# (min_arity, max_arity); validators and modifiers count the field value
DSL_FUNCTOR_SIG = {
    kind: {k: v[1] for k, v in table.items()} for kind, table in DSL_FUNCTORS.items()
}


def is_builtin(kind: FunctorKind, name: str) -> bool:
    return name in DSL_FUNCTORS[kind]


def describe_arity(min_arity: int, max_arity) -> str:
    if max_arity is None:
        return f"at least {min_arity}"
    if max_arity == min_arity:
        return f"{min_arity}"
    return f"{min_arity}..{max_arity}"


__all__ = [
    "DSL_FUNCTORS",
    "DSL_FUNCTOR_SIG",
    "VALIDATORS",
    "MODIFIERS",
    "COMPOSERS",
    "is_builtin",
    "describe_arity",
]
