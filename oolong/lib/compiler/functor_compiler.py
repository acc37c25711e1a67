"""
Functor dependency compiler.

Turns the functor chains of entity fields and the bodies of entity interfaces
into Python code blocks registered on a TopoGraph. Each block knows what it
is (BlockType), which value it targets and which other fields it reads, so
the program assembler can order, chain and guard them.

Values flowing through a compilation:

    latest.<field>   the in-flight record being validated (a dict)
    <param>          an interface parameter
    <model>          a record fetched by an interface operation

A reference to `latest.x` or to a parameter `x` makes the reading node wait
for `x:ready`, the point where every functor of `x` has run.
"""

import ast
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from oolong.api.gen_logging import get_logger
from oolong.errors import RUNTIME_ERRORS, UsageError
from oolong.lib.builtins import SANITIZERS
from oolong.lib.compiler import pyast
from oolong.lib.compiler.functors import FunctorTable
from oolong.lib.compiler.topo import TopoGraph, TopoId
from oolong.lib.types import FUNCTOR_KEYS, FUNCTOR_STAGES, FunctorKind


class BlockType(str, Enum):
    PARAM_SANITIZE = "ParameterSanitize"
    VALIDATOR_CALL = "ValidatorCall"
    MODIFIER_CALL = "ModifierCall"
    COMPOSER_CALL = "ComposerCall"
    INTERFACE_OPERATION = "InterfaceOperation"
    INTERFACE_RETURN = "InterfaceReturn"
    VIEW_RETURN = "ViewReturn"
    EXCEPTION_ITEM = "ExceptionItem"


FUNCTOR_BLOCKS = {
    FunctorKind.VALIDATOR: BlockType.VALIDATOR_CALL,
    FunctorKind.MODIFIER: BlockType.MODIFIER_CALL,
    FunctorKind.COMPOSER: BlockType.COMPOSER_CALL,
}


@dataclass
class CodeBlock:
    type: BlockType
    # functor calls: the call expression; everything else: statements
    code: object
    target: Optional[str] = None
    references: list = field(default_factory=list)

    @property
    def field_name(self) -> str:
        return self.target.split(".")[-1]


@dataclass
class CompileContext:
    target_name: str
    logger: object
    functors: FunctorTable
    graph: TopoGraph = None
    # value expression of every node that produces one
    values: dict = field(default_factory=dict)
    model_vars: set = field(default_factory=set)
    # user functors called by this compilation, by functor id
    imports: dict = field(default_factory=dict)
    main_id: TopoId = None

    def create(self, node: TopoId) -> TopoId:
        return self.graph.create(node)

    def depends_on(self, previous: TopoId, current: TopoId):
        self.graph.depends_on(previous, current)

    def add_block(self, node: TopoId, block: CodeBlock):
        self.graph.set_block(node, block)
        self.logger.debug(f'Adding {block.type.value} "{node}" into source code.')

    def code_of(self, node: TopoId) -> ast.expr:
        """Expression to read the result of a node."""
        block = self.graph.block(node)
        if block is not None and block.type == BlockType.MODIFIER_CALL:
            # a modifier writes its result back onto the target
            return pyast.reference(block.target)
        return self.values[node]


def create_compile_context(target_name: str, logger=None, functors: FunctorTable = None) -> CompileContext:
    logger = logger or get_logger(__name__)
    context = CompileContext(
        target_name=target_name,
        logger=logger,
        functors=functors if functors is not None else FunctorTable(),
        graph=TopoGraph(logger),
    )
    context.main_id = context.create(TopoId.of("$main"))
    logger.debug(f'Created compilation context for target "{target_name}".')
    return context


# ------------------------------------------------------------------------------
# References and values

def extract_latest_references(args) -> list:
    """Fields read through `latest.<field>` by a list of functor arguments."""
    refs = []
    for arg in args or []:
        if isinstance(arg, dict) and arg.get("oolType") == "ObjectReference":
            parts = arg["name"].split(".")
            if len(parts) == 2 and parts[0] == "latest":
                refs.append(parts[1])
    return refs


def _reference_dependency(ref_name: str, context: CompileContext) -> TopoId:
    base, *rest = ref_name.split(".")
    if base in context.model_vars:
        return TopoId.of(base)
    if base == "latest" and rest:
        return TopoId.of(rest[-1], "ready")
    if not rest:
        return TopoId.of(base, "ready")
    raise UsageError(f'Unsupported reference "{ref_name}".')


def compile_functors(value: dict, functors: list, context: CompileContext, prefix: TopoId,
                     last_id: Optional[TopoId], kind: FunctorKind, nested: bool = False) -> TopoId:
    """
    One node per functor call, each depending on the previous one.

    Nested calls (a piped reference inside an argument or a case value) are
    folded into one expression instead of becoming code blocks.
    """
    target = value["name"]
    target_field = target.split(".")[-1]

    for i, functor in enumerate(functors):
        callee, ref = context.functors.resolve(functor, kind, context.target_name)
        if ref is not None:
            context.imports[ref.functor_id] = ref

        node = context.create(prefix.child(i, functor["name"]))

        args = functor.get("args") or []
        references = extract_latest_references(args)
        if target.startswith("latest.") and target_field in references:
            raise UsageError("Cannot use the target field itself as an argument of a validator or modifier.")
        call_args = translate_args(node, args, context)

        if kind != FunctorKind.COMPOSER:
            # piped references fold into one expression: x|trim|lowercase -> lowercase(trim(x))
            subject = context.values[last_id] if nested else pyast.reference(target)
            call_args.insert(0, subject)

        context.values[node] = pyast.call(callee, call_args)

        if last_id is not None:
            context.depends_on(last_id, node)
        last_id = node

        if not nested:
            context.add_block(node, CodeBlock(
                type=FUNCTOR_BLOCKS[kind],
                code=context.values[node],
                target=target,
                references=references,
            ))

    return last_id


def compile_variable_reference(start: TopoId, value: dict, context: CompileContext, nested: bool = False) -> TopoId:
    context.values.setdefault(start, pyast.reference(value["name"]))
    last_id = start

    for key, marker, kind in FUNCTOR_STAGES:
        functors = value.get(key)
        if not functors:
            continue
        if kind == FunctorKind.COMPOSER:
            functors = [functors]
        last_id = compile_functors(value, functors, context, start.child(marker), last_id, kind, nested)

    return last_id


def compile_concrete_value(start: TopoId, value, context: CompileContext) -> TopoId:
    if isinstance(value, dict):
        ool_type = value.get("oolType")

        if ool_type == "ObjectReference":
            context.depends_on(_reference_dependency(value["name"], context), start)
            return compile_variable_reference(start, value, context, nested=True)

        if ool_type in ("BinaryExpression", "UnaryExpression"):
            return compile_conditional_expression(value, context, start)

        if ool_type is not None:
            raise UsageError(f"Unsupported value type: {ool_type}")

        keys, values = [], []
        for key, member in value.items():
            member_start = context.create(start.child(".", key))
            member_end = compile_concrete_value(member_start, member, context)
            context.depends_on(member_end, start)
            keys.append(pyast.const(key))
            values.append(context.code_of(member_end))
        context.values[start] = ast.Dict(keys=keys, values=values)
        return start

    if isinstance(value, list):
        items = []
        for index, item in enumerate(value):
            item_start = context.create(start.child("[]", index))
            item_end = compile_concrete_value(item_start, item, context)
            context.depends_on(item_end, start)
            items.append(context.code_of(item_end))
        context.values[start] = ast.List(elts=items, ctx=ast.Load())
        return start

    context.values[start] = pyast.const(value)
    return start


def translate_args(node: TopoId, args: list, context: CompileContext) -> list:
    call_args = []
    for i, arg in enumerate(args):
        arg_id = context.create(node.child(":arg", i + 1))
        last_id = compile_concrete_value(arg_id, arg, context)
        context.depends_on(last_id, node)
        call_args.append(context.code_of(last_id))
    return call_args


def compile_conditional_expression(test, context: CompileContext, start: TopoId) -> TopoId:
    if isinstance(test, dict) and test.get("oolType") == "BinaryExpression":
        end = context.create(start.child("$binOp", "done"))
        left = context.create(start.child("$binOp", "left"))
        right = context.create(start.child("$binOp", "right"))
        context.depends_on(start, left)
        context.depends_on(start, right)

        last_left = compile_conditional_expression(test["left"], context, left)
        last_right = compile_conditional_expression(test["right"], context, right)
        context.depends_on(last_left, end)
        context.depends_on(last_right, end)

        context.values[end] = pyast.binary(
            test["operator"], context.code_of(last_left), context.code_of(last_right)
        )
        return end

    if isinstance(test, dict) and test.get("oolType") == "UnaryExpression":
        end = context.create(start.child("$unaOp", "done"))
        operand = context.create(start.child("$unaOp"))
        context.depends_on(start, operand)

        last_operand = compile_conditional_expression(test["argument"], context, operand)
        context.depends_on(last_operand, end)
        argument = context.code_of(last_operand)

        operator = test["operator"]
        if operator == "exists":
            expr = pyast.negate(pyast.call(pyast.name("is_empty"), [argument]))
        elif operator == "not-exists":
            expr = pyast.call(pyast.name("is_empty"), [argument])
        elif operator == "is-null":
            expr = pyast.is_none(argument)
        elif operator == "is-not-null":
            expr = pyast.is_none(argument, negated=True)
        elif operator == "not":
            expr = pyast.negate(argument)
        else:
            raise UsageError(f"Unsupported test operator: {operator}")

        context.values[end] = expr
        return end

    if isinstance(test, (dict, list)):
        value_start = context.create(start.child("$value"))
        context.depends_on(start, value_start)
        return compile_concrete_value(value_start, test, context)

    context.values[start] = pyast.const(test)
    return start


# ------------------------------------------------------------------------------
# Fields and parameters

def _as_reference(name: str, info) -> dict:
    reference = {"oolType": "ObjectReference", "name": name}
    for key in FUNCTOR_KEYS:
        if info.get(key):
            reference[key] = info[key]
    return reference


def compile_field(name: str, field_info, context: CompileContext) -> TopoId:
    """Register the functor chain of one entity field. Returns its ready node."""
    start = context.create(TopoId.of(name))
    context.values[start] = pyast.reference(f"latest.{name}")

    end = compile_variable_reference(start, _as_reference(f"latest.{name}", field_info), context)

    ready = context.create(TopoId.of(name, "ready"))
    context.depends_on(end, ready)
    return ready


def compile_param(index: int, param: dict, context: CompileContext) -> TopoId:
    """Sanitize one interface parameter, then run its functors."""
    if param["type"] not in SANITIZERS:
        raise UsageError(f"Unknown field type: {param['type']}")

    prepare = context.create(TopoId.of("$params", "sanitize", index))
    meta = pyast.subscript(pyast.subscript(pyast.name("meta"), "params"), index)
    statement = pyast.assign(
        pyast.name(param["name"]),
        pyast.call(pyast.name("sanitize"), [meta, pyast.name(param["name"])]),
    )
    context.values[prepare] = [statement]

    if index > 0:
        context.depends_on(TopoId.of("$params", "sanitize", index - 1), prepare)

    context.add_block(prepare, CodeBlock(type=BlockType.PARAM_SANITIZE, code=[statement], target=param["name"]))
    context.depends_on(prepare, context.main_id)

    start = context.create(TopoId.of(param["name"]))
    context.depends_on(context.main_id, start)

    end = compile_variable_reference(start, _as_reference(param["name"], param), context)

    ready = context.create(TopoId.of(param["name"], "ready"))
    context.depends_on(end, ready)
    return ready


# ------------------------------------------------------------------------------
# Interface bodies

def _throw(then: dict) -> ast.stmt:
    error = then.get("errorType")
    message = then.get("message") or error
    if error in RUNTIME_ERRORS:
        return pyast.raise_(error, message)
    # any other error name is a business error reported as a validation failure
    return pyast.raise_("ModelValidationError", message, pyast.value({"error": error}))


def translate_return_value(start: TopoId, end: TopoId, value, context: CompileContext) -> list:
    value_id = compile_concrete_value(start, value, context)
    if value_id != start:
        context.depends_on(value_id, end)
    return [pyast.ret(context.code_of(value_id))]


def translate_then(start: TopoId, end: TopoId, then, context: CompileContext, assign_to: str = None) -> list:
    if isinstance(then, dict):
        if then.get("oolType") == "ThrowExpression":
            return [_throw(then)]
        if then.get("oolType") == "ReturnExpression":
            return translate_return_value(start, end, then["value"], context)

    value_id = compile_concrete_value(start, then, context)
    if value_id != start:
        context.depends_on(value_id, end)
    expr = context.code_of(value_id)

    if assign_to is None:
        return [pyast.ret(expr)]
    return [pyast.assign(pyast.name(assign_to), expr)]


def compile_return(start: TopoId, value, context: CompileContext) -> TopoId:
    """Plain return of a view body."""
    end = context.create(TopoId.of("$return"))
    context.depends_on(start, end)
    value_start = context.create(end.child(":value"))
    context.depends_on(value_start, end)
    statements = translate_return_value(value_start, end, value, context)
    context.values[end] = statements
    context.add_block(end, CodeBlock(type=BlockType.VIEW_RETURN, code=statements))
    return end


def compile_find_one(index: int, operation: dict, context: CompileContext, dependency: TopoId) -> TopoId:
    end = context.create(TopoId.of("op", index))
    condition_var = f"op{index}_condition"
    statements = [pyast.assign(pyast.name(condition_var), pyast.const(None))]

    case = operation.get("case")
    if not case:
        raise UsageError(f'findOne "{operation["model"]}" without a case block is not implemented.')

    items = case.get("items") or []
    if not items:
        raise UsageError("Missing case items.")

    prefix = end.child("$cases")

    if "else" in case:
        else_start = context.create(prefix.child(":else"))
        else_end = context.create(prefix.child(":end"))
        context.depends_on(else_start, else_end)
        context.depends_on(else_end, end)
        last_statements = translate_then(else_start, else_end, case["else"], context, assign_to=condition_var)
    else:
        last_statements = [pyast.raise_("ModelOperationError", "Unexpected state.")]

    # built inside out, so the first declared case is tested first
    for i in reversed(range(len(items))):
        item = items[i]
        case_id = context.create(prefix.child(i))
        context.depends_on(dependency, case_id)

        last_id = compile_conditional_expression(item["test"], context, case_id)
        result_var = f"op{index}_case{i}"

        then_start = context.create(case_id.child(":then"))
        then_end = context.create(case_id.child(":end"))
        context.depends_on(last_id, then_start)
        context.depends_on(then_start, then_end)

        last_statements = [
            pyast.assign(pyast.name(result_var), context.code_of(last_id)),
            pyast.if_(
                pyast.name(result_var),
                translate_then(then_start, then_end, item["then"], context, assign_to=condition_var),
                last_statements,
            ),
        ]
        context.depends_on(then_end, end)

    statements.extend(last_statements)
    statements.append(pyast.assign(
        pyast.name(operation["model"]),
        pyast.call(pyast.attribute(pyast.name("self"), "find_one"), [pyast.name(condition_var)]),
    ))

    model_id = context.create(TopoId.of(operation["model"]))
    context.depends_on(end, model_id)
    context.values[end] = statements
    return end


def compile_db_operation(index: int, operation: dict, context: CompileContext, dependency: TopoId) -> TopoId:
    kind = operation.get("oolType")

    if kind == "findOne":
        last_id = compile_find_one(index, operation, context, dependency)
    elif kind in ("find", "create", "update", "delete"):
        raise UsageError(f'Operation "{kind}" is not implemented.')
    else:
        raise UsageError(f"Unsupported operation type: {kind}")

    context.add_block(last_id, CodeBlock(type=BlockType.INTERFACE_OPERATION, code=context.values[last_id]))
    return last_id


def compile_exceptional_return(node: dict, context: CompileContext, dependency: TopoId = None) -> TopoId:
    """`return value unless { when test => ... }`: each exception is tested in order before returning."""
    end = context.create(TopoId.of("$return"))
    last_exception = dependency

    for i, item in enumerate(node.get("exceptions") or []):
        start = context.create(end.child(":except", i))
        done = context.create(end.child(":except", i, ":done"))
        if last_exception is not None:
            context.depends_on(last_exception, start)

        last_id = compile_conditional_expression(item["test"], context, start)

        then_start = context.create(start.child(":then"))
        context.depends_on(last_id, then_start)
        context.depends_on(then_start, done)

        statement = pyast.if_(
            context.code_of(last_id),
            translate_then(then_start, done, item["then"], context),
        )
        context.values[done] = [statement]
        context.add_block(done, CodeBlock(type=BlockType.EXCEPTION_ITEM, code=[statement]))
        last_exception = done

    if last_exception is not None:
        context.depends_on(last_exception, end)

    value_start = context.create(end.child(":value"))
    context.depends_on(value_start, end)

    statements = translate_return_value(value_start, end, node.get("value"), context)
    context.values[end] = statements
    context.add_block(end, CodeBlock(type=BlockType.INTERFACE_RETURN, code=statements))
    return end
