"""
Small builders over the stdlib `ast` module used by the functor compiler.
"""

import ast

from oolong.errors import UsageError

_COMPARE_OPS = {
    "=": ast.Eq,
    "==": ast.Eq,
    "!=": ast.NotEq,
    ">": ast.Gt,
    "<": ast.Lt,
    ">=": ast.GtE,
    "<=": ast.LtE,
    "in": ast.In,
}


def name(identifier: str, store: bool = False) -> ast.Name:
    return ast.Name(id=identifier, ctx=ast.Store() if store else ast.Load())


def const(value) -> ast.Constant:
    return ast.Constant(value=value)


def subscript(obj: ast.expr, key, store: bool = False) -> ast.Subscript:
    return ast.Subscript(value=obj, slice=const(key), ctx=ast.Store() if store else ast.Load())


def attribute(obj: ast.expr, attr: str) -> ast.Attribute:
    return ast.Attribute(value=obj, attr=attr, ctx=ast.Load())


def call(func: ast.expr, args=None, keywords=None) -> ast.Call:
    return ast.Call(func=func, args=list(args or []), keywords=list(keywords or []))


def value(data) -> ast.expr:
    """Plain Python data -> literal expression."""
    if isinstance(data, dict):
        return ast.Dict(keys=[const(k) for k in data], values=[value(v) for v in data.values()])
    if isinstance(data, (list, tuple)):
        return ast.List(elts=[value(v) for v in data], ctx=ast.Load())
    return const(data)


def reference(dotted: str) -> ast.expr:
    """`latest.email` -> latest["email"]; `user.profile.name` -> user["profile"]["name"]."""
    base, *rest = dotted.split(".")
    node = name(base)
    for part in rest:
        node = subscript(node, part)
    return node


def as_store(node: ast.expr) -> ast.expr:
    """Turn a load reference into an assignment target."""
    if isinstance(node, ast.Name):
        return name(node.id, store=True)
    if isinstance(node, ast.Subscript):
        return ast.Subscript(value=node.value, slice=node.slice, ctx=ast.Store())
    raise UsageError(f"Cannot assign to {ast.unparse(node)}.")


def assign(target: ast.expr, expr: ast.expr) -> ast.Assign:
    return ast.Assign(targets=[as_store(target)], value=expr)


def binary(operator: str, left: ast.expr, right: ast.expr) -> ast.expr:
    if operator in ("and", "or"):
        op = ast.And() if operator == "and" else ast.Or()
        values = []
        for operand in (left, right):
            if isinstance(operand, ast.BoolOp) and isinstance(operand.op, type(op)):
                values.extend(operand.values)
            else:
                values.append(operand)
        return ast.BoolOp(op=op, values=values)

    if operator not in _COMPARE_OPS:
        raise UsageError(f"Unsupported test operator: {operator}")
    return ast.Compare(left=left, ops=[_COMPARE_OPS[operator]()], comparators=[right])


def negate(expr: ast.expr) -> ast.expr:
    return ast.UnaryOp(op=ast.Not(), operand=expr)


def is_none(expr: ast.expr, negated: bool = False) -> ast.expr:
    return ast.Compare(left=expr, ops=[ast.IsNot() if negated else ast.Is()], comparators=[const(None)])


def contains_key(key: str, container: str = "latest", negated: bool = False) -> ast.expr:
    """`"key" in latest` / `"key" not in latest`."""
    return ast.Compare(left=const(key), ops=[ast.NotIn() if negated else ast.In()], comparators=[name(container)])


def any_of(tests: list) -> ast.expr:
    return tests[0] if len(tests) == 1 else ast.BoolOp(op=ast.Or(), values=list(tests))


def if_(test: ast.expr, body: list, orelse: list = None) -> ast.If:
    return ast.If(test=test, body=list(body), orelse=list(orelse or []))


def raise_(error: str, message: str, info: ast.expr = None) -> ast.Raise:
    args = [const(message)]
    if info is not None:
        args.append(info)
    return ast.Raise(exc=call(name(error), args), cause=None)


def ret(expr: ast.expr) -> ast.Return:
    return ast.Return(value=expr)


def unparse(statements: list) -> str:
    module = ast.Module(body=list(statements), type_ignores=[])
    return ast.unparse(ast.fix_missing_locations(module))
