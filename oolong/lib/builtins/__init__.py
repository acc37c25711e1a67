from .registry import (
    COMPOSERS,
    DSL_FUNCTOR_SIG,
    DSL_FUNCTORS,
    MODIFIERS,
    VALIDATORS,
    describe_arity,
    is_builtin,
)
from .sanitizers import SANITIZERS, is_empty, sanitize
