"""Functor dependency compiler: field, interface and view parameter programs."""

from oolong.lib.compiler.functors import FunctorRef, FunctorStub, FunctorTable
from oolong.lib.compiler.program import (
    CompiledBody,
    compile_entity_fields,
    compile_interface,
    compile_view_params,
)
from oolong.lib.compiler.topo import TopoGraph, TopoId

__all__ = [
    "CompiledBody",
    "FunctorRef",
    "FunctorStub",
    "FunctorTable",
    "TopoGraph",
    "TopoId",
    "compile_entity_fields",
    "compile_interface",
    "compile_view_params",
]
