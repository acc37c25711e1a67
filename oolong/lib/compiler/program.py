"""
Program assembly.

Sorts the code blocks of a compilation, merges adjacent calls on the same
target and wraps field blocks in existence guards, producing the bodies of
the methods of generated entity and view classes.
"""

import ast
import copy
from dataclasses import dataclass, field

from oolong.errors import UsageError
from oolong.lib.compiler import pyast
from oolong.lib.compiler.functor_compiler import (
    BlockType,
    CodeBlock,
    compile_db_operation,
    compile_exceptional_return,
    compile_field,
    compile_param,
    compile_return,
    create_compile_context,
)
from oolong.lib.compiler.topo import TopoId
from oolong.lib.types import FUNCTOR_KEYS

CHAINABLE = (BlockType.VALIDATOR_CALL, BlockType.MODIFIER_CALL)


@dataclass
class CompiledBody:
    name: str
    statements: list
    imports: list = field(default_factory=list)
    params: list = field(default_factory=list)
    param_meta: list = field(default_factory=list)

    @property
    def source(self) -> str:
        return pyast.unparse(self.statements)


def _imports(context) -> list:
    return [ref.import_line() for ref in context.imports.values()]


# ------------------------------------------------------------------------------
# Chaining

def is_chainable(current: CodeBlock, following: CodeBlock) -> bool:
    return (
        current.type in CHAINABLE
        and following.type == current.type
        and following.target == current.target
    )


def chain_call(last_code, last_type: BlockType, current_code):
    if last_type == BlockType.VALIDATOR_CALL:
        return pyast.binary("and", last_code, current_code)
    # the previous modifier's result replaces the value argument
    chained = copy.copy(current_code)
    chained.args = [last_code] + list(current_code.args[1:])
    return chained


def chained_blocks(context) -> list:
    """Sorted code blocks with runs of same-target validators/modifiers merged."""
    points = context.graph.code_points()
    context.logger.debug("Code points: " + ", ".join(str(p) for p in points))

    merged = []
    pending = None

    for i, node in enumerate(points):
        block = context.graph.block(node)

        if pending is not None:
            references = list(pending.references)
            references.extend(ref for ref in block.references if ref not in references)
            block = CodeBlock(
                type=block.type,
                code=chain_call(pending.code, pending.type, block.code),
                target=block.target,
                references=references,
            )
            pending = None

        if i < len(points) - 1 and is_chainable(block, context.graph.block(points[i + 1])):
            pending = block
            continue

        merged.append(block)

    return merged


# ------------------------------------------------------------------------------
# Statements

def validate_check(field_name: str, validating_call) -> list:
    info = ast.Dict(
        keys=[pyast.const("entity"), pyast.const("field")],
        values=[pyast.subscript(pyast.attribute(pyast.name("self"), "meta"), "name"), pyast.const(field_name)],
    )
    return [pyast.if_(
        pyast.negate(validating_call),
        [pyast.raise_("ModelValidationError", f'Invalid "{field_name}".', info)],
    )]


def field_requirement_check(field_name: str, references: list, content: list, require_target: bool) -> list:
    """
    Guard a group of blocks: run only when one of the involved fields is
    being written, and require every field the blocks read.
    """
    references = [ref.split(".")[-1] for ref in references]
    fields = ([field_name] if require_target else []) + references

    checks = []
    if require_target and references:
        checks.append(pyast.if_(
            pyast.contains_key(field_name, negated=True),
            [pyast.raise_(
                "ModelUsageError",
                f'"{field_name}" is required due to change of its dependencies. (e.g: {" or ".join(references)})',
            )],
        ))

    for ref in references:
        checks.append(pyast.if_(
            pyast.contains_key(ref, negated=True),
            [pyast.raise_("ModelUsageError", f'"{ref}" is required by the filter function of "{field_name}".')],
        ))

    body = checks + list(content)
    if not fields:
        return body
    return [pyast.if_(pyast.any_of([pyast.contains_key(f) for f in fields]), body)]


@dataclass
class _Group:
    field_name: str
    references: list
    require_target: bool
    checker: tuple
    content: list = field(default_factory=list)

    def flush(self) -> list:
        content = self.content
        if self.require_target:
            # an explicit null skips validators and modifiers of the field
            content = [pyast.if_(
                pyast.is_none(pyast.reference("latest." + self.field_name), negated=True),
                content,
            )]
        return field_requirement_check(self.field_name, self.references, content, self.require_target)


def _block_statements(block: CodeBlock) -> list:
    if block.type == BlockType.VALIDATOR_CALL:
        return validate_check(block.field_name, block.code)
    if block.type in (BlockType.MODIFIER_CALL, BlockType.COMPOSER_CALL):
        return [pyast.assign(pyast.reference(block.target), block.code)]
    return list(block.code)


# ------------------------------------------------------------------------------
# Entry points

def compile_entity_fields(entity, functors=None, logger=None) -> CompiledBody:
    """Body of `_do_validate_and_fill(self, context)` of an entity model."""
    context = create_compile_context(entity.name, logger, functors)
    all_finished = context.create(TopoId.of("$done"))

    for name, field_info in entity.fields.items():
        context.depends_on(compile_field(name, field_info, context), all_finished)

    statements = []
    group = None

    for block in chained_blocks(context):
        if block.type not in (BlockType.VALIDATOR_CALL, BlockType.MODIFIER_CALL, BlockType.COMPOSER_CALL):
            raise UsageError(f"Unexpected {block.type.value} block in field processing.")

        require_target = block.type != BlockType.COMPOSER_CALL
        checker = tuple(([block.field_name] if require_target else []) + list(block.references))

        if group is not None and group.checker != checker:
            statements.extend(group.flush())
            group = None

        if group is None:
            group = _Group(block.field_name, list(block.references), require_target, checker)
        group.content.extend(_block_statements(block))

    if group is not None:
        statements.extend(group.flush())

    return CompiledBody(name="_do_validate_and_fill", statements=statements, imports=_imports(context))


def _process_params(params: list, context) -> list:
    param_meta = []
    for i, param in enumerate(params):
        compile_param(i, param, context)
        param_meta.append({k: copy.deepcopy(v) for k, v in param.items()
                           if k not in FUNCTOR_KEYS and k != "subClass"})
    return param_meta


def compile_interface(entity, name: str, method: dict, functors=None, logger=None) -> CompiledBody:
    """Body of an interface method of an entity model."""
    context = create_compile_context(entity.name, logger, functors)
    context.logger.info(f"Building interface: {name}")

    for operation in method.get("implementation") or []:
        context.model_vars.add(operation["model"])

    params = method.get("accept") or []
    param_meta = _process_params(params, context)

    last_id = context.main_id
    for index, operation in enumerate(method.get("implementation") or []):
        last_id = compile_db_operation(index, operation, context, context.main_id)

    if method.get("return"):
        compile_exceptional_return(method["return"], context, last_id)

    meta = pyast.subscript(
        pyast.subscript(pyast.attribute(pyast.name("self"), "meta"), "interfaces"), name
    )
    statements = [pyast.assign(pyast.name("meta"), meta)]
    for block in chained_blocks(context):
        statements.extend(_block_statements(block))

    return CompiledBody(
        name=name,
        statements=statements,
        imports=_imports(context),
        params=[p["name"] for p in params],
        param_meta=param_meta,
    )


def compile_view_params(view, functors=None, logger=None) -> CompiledBody:
    """Body of `_sanitize_params` of a view model: sanitized params as a dict."""
    context = create_compile_context(view.name, logger, functors)
    param_meta = _process_params(view.params, context)

    value = {p["name"]: {"oolType": "ObjectReference", "name": p["name"]} for p in view.params}
    compile_return(context.main_id, value, context)

    statements = [pyast.assign(pyast.name("meta"), pyast.attribute(pyast.name("self"), "meta"))]
    for block in chained_blocks(context):
        statements.extend(_block_statements(block))

    return CompiledBody(
        name="_sanitize_params",
        statements=statements,
        imports=_imports(context),
        params=[p["name"] for p in view.params],
        param_meta=param_meta,
    )
