"""
Functor resolution.

A functor name is looked up in the builtin table of its kind first. Anything
else is a user functor living in its own module under the generated package:

    ~isStrong           (on entity user)  -> validators/user_isStrong.py, id "isStrong"
    ~product.isOnSale                     -> validators/product_isOnSale.py, id "productIsOnSale"

Local user functors that are seen for the first time are recorded as stubs for
the DAO generator to materialize. The table is shared by every entity of one
generation run, so two different files claiming the same id is an error.
"""

from dataclasses import dataclass, field

from oolong.errors import NamingConflictError, UsageError
from oolong.lib.builtins import DSL_FUNCTOR_SIG, describe_arity, is_builtin
from oolong.lib.compiler import pyast
from oolong.lib.types import FunctorKind
from oolong.utils import upper_first

# Name the builtin table of each kind is imported as in generated modules
BUILTIN_TABLES = {
    FunctorKind.VALIDATOR: "validators",
    FunctorKind.MODIFIER: "modifiers",
    FunctorKind.COMPOSER: "composers",
}


@dataclass
class FunctorRef:
    kind: FunctorKind
    functor_id: str
    function_name: str
    file: str

    @property
    def module(self) -> str:
        """Dotted module path relative to the generated package."""
        return self.file[: -len(".py")].replace("/", ".")

    def import_line(self) -> str:
        if self.functor_id == self.function_name:
            return f"from .{self.module} import {self.function_name}"
        return f"from .{self.module} import {self.function_name} as {self.functor_id}"


@dataclass
class FunctorStub:
    kind: FunctorKind
    function_name: str
    file: str
    params: list = field(default_factory=list)


def functor_params(args, kind: FunctorKind) -> list:
    """Parameter names of a stub: the last part of a reference, else paramN."""
    names = []
    for i, arg in enumerate(args or []):
        if isinstance(arg, dict) and arg.get("oolType") == "ObjectReference":
            names.append(arg["name"].split(".")[-1])
        else:
            names.append(f"param{i + 1}")
    if kind != FunctorKind.COMPOSER:
        names.insert(0, "value")
    return names


class FunctorTable:

    def __init__(self):
        self.files: dict[str, FunctorRef] = {}
        self.new_functor_files: list[FunctorStub] = []

    def _register(self, ref: FunctorRef) -> FunctorRef:
        existing = self.files.get(ref.functor_id)
        if existing is not None and existing.file != ref.file:
            raise NamingConflictError(f'{upper_first(ref.kind.value)} naming "{ref.functor_id}" conflicts!')
        self.files[ref.functor_id] = ref
        return ref

    def resolve(self, functor: dict, kind: FunctorKind, target_name: str):
        """
        Resolve a functor call.

        Returns (callee expression, FunctorRef or None for builtins).
        """
        functor_name = functor["name"]
        argc = len(functor.get("args") or []) + (0 if kind == FunctorKind.COMPOSER else 1)
        directory = BUILTIN_TABLES[kind]

        if "." in functor_name:
            parts = functor_name.split(".")
            if len(parts) > 2:
                raise UsageError(f"Not supported reference type: {functor_name}")
            entity_name, function_name = parts
            ref = self._register(FunctorRef(
                kind=kind,
                functor_id=entity_name + upper_first(function_name),
                function_name=function_name,
                file=f"{directory}/{entity_name}_{function_name}.py",
            ))
            return pyast.name(ref.functor_id), ref

        if is_builtin(kind, functor_name):
            min_arity, max_arity = DSL_FUNCTOR_SIG[kind][functor_name]
            if argc < min_arity or (max_arity is not None and argc > max_arity):
                raise UsageError(
                    f"{upper_first(kind.value)} '{functor_name}' expects "
                    f"{describe_arity(min_arity, max_arity)} args, got {argc}."
                )
            return pyast.subscript(pyast.name(directory), functor_name), None

        file = f"{directory}/{target_name}_{functor_name}.py"
        known = functor_name in self.files and self.files[functor_name].file == file
        ref = self._register(FunctorRef(kind=kind, functor_id=functor_name, function_name=functor_name, file=file))
        if not known:
            self.new_functor_files.append(
                FunctorStub(kind=kind, function_name=functor_name, file=file,
                            params=functor_params(functor.get("args"), kind))
            )
        return pyast.name(ref.functor_id), ref
