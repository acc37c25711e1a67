"""
Raw declaration extraction from a parsed Oolong module.

The textX model of one source file is turned into plain dicts and lists (the
"raw declarations" a Module holds until the linker upgrades them into linked
graph nodes). Expressions become small dicts tagged with "oolType".
"""

from textx import get_location

from oolong.errors import DuplicateDefinitionError
from oolong.lib.types import FIELD_FLAGS, TYPE_POSITIONAL_ARGS, normalize_type_name

_POSTFIX_OPERATORS = {
    "exists": "exists",
    "notexists": "not-exists",
    "isnull": "is-null",
    "isnotnull": "is-not-null",
}

_FUNCTOR_TYPES = {
    "ValidatorCall": "Validator",
    "ModifierCall": "Modifier",
    "ComposerCall": "Composer",
}


def _cls(obj) -> str:
    return obj.__class__.__name__


def _location(obj) -> dict:
    loc = get_location(obj)
    return {"line": loc.get("line"), "col": loc.get("col"), "filename": loc.get("filename")}


# ------------------------------------------------------------------------------
# Values and expressions

def to_value(node):
    """Convert a textX value or expression node into plain Python data."""
    if node is None or isinstance(node, (str, int, float, bool)):
        return node

    cls = _cls(node)

    if cls == "BooleanLiteral":
        return node.value == "true"
    if cls == "NullLiteral":
        return None
    if cls == "ArrayLiteral":
        return [to_value(item) for item in node.items]
    if cls == "ObjectLiteral":
        return {member.key: to_value(member.value) for member in node.members}
    if cls == "Reference":
        ref = {"oolType": "ObjectReference", "name": node.name}
        if node.pipes:
            ref["modifiers0"] = [functor_to_dict(p) for p in node.pipes]
        return ref
    if cls in ("OrExpression", "AndExpression"):
        operator = "or" if cls == "OrExpression" else "and"
        result = to_value(node.operands[0])
        for operand in node.operands[1:]:
            result = {
                "oolType": "BinaryExpression",
                "operator": operator,
                "left": result,
                "right": to_value(operand),
            }
        return result
    if cls == "NotExpression":
        if node.negated:
            return {"oolType": "UnaryExpression", "operator": "not", "argument": to_value(node.operand)}
        return to_value(node.operand)
    if cls == "Comparison":
        left = to_value(node.left)
        if node.check:
            operator = _POSTFIX_OPERATORS["".join(node.check.split())]
            return {"oolType": "UnaryExpression", "operator": operator, "argument": left}
        if node.operator:
            return {
                "oolType": "BinaryExpression",
                "operator": "=" if node.operator == "==" else node.operator,
                "left": left,
                "right": to_value(node.right),
            }
        return left
    if cls == "ParenExpression":
        return to_value(node.expression)

    raise ValueError(f"Unsupported value node: {cls}")


def functor_to_dict(node) -> dict:
    return {
        "oolType": _FUNCTOR_TYPES[_cls(node)],
        "name": node.name,
        "args": [to_value(arg) for arg in node.args],
    }


# ------------------------------------------------------------------------------
# Types and fields

def _apply_modifiers(result: dict, modifiers):
    for modifier in modifiers or []:
        if _cls(modifier) == "DefaultModifier":
            if _cls(modifier.value) == "AutoValue":
                result["auto"] = True
            else:
                result["default"] = to_value(modifier.value)
        elif modifier.flag == "fixedLength":
            result["fixedLength"] = result.pop("maxLength", result.get("fixedLength", True))
        else:
            result[FIELD_FLAGS[modifier.flag]] = True


def _apply_functors(result: dict, functors):
    stage = 0
    last_kind = None
    for functor in functors or []:
        kind = _cls(functor)
        if kind == "ComposerCall":
            result["computedBy"] = functor_to_dict(functor)
            continue
        if kind == "ValidatorCall":
            if last_kind == "ModifierCall":
                stage += 1
            result.setdefault(f"validators{stage}", []).append(functor_to_dict(functor))
        else:
            result.setdefault(f"modifiers{stage}", []).append(functor_to_dict(functor))
        last_kind = kind


def type_info_to_dict(info) -> dict:
    """TypeInfo node -> {"type": ..., <constraints>, <flags>, <functor lists>}."""
    type_name = normalize_type_name(info.type)
    result = {"type": type_name}

    positional = [to_value(a) for a in info.args if _cls(a) != "NamedArg"]
    if positional:
        if type_name == "enum":
            values = positional[0] if len(positional) == 1 and isinstance(positional[0], list) else positional
            result["values"] = list(values)
        else:
            for key, value in zip(TYPE_POSITIONAL_ARGS[type_name], positional):
                result[key] = value

    for arg in info.args:
        if _cls(arg) == "NamedArg":
            result[arg.name] = to_value(arg.value)

    _apply_modifiers(result, info.modifiers)
    _apply_functors(result, info.functors)
    return result


def field_decl_to_dict(decl) -> dict:
    if decl.info:
        result = type_info_to_dict(decl.info)
    elif decl.bindTo:
        result = {"bindTo": decl.bindTo}
        _apply_modifiers(result, decl.modifiers)
    elif decl.belongTo:
        result = {"belongTo": decl.belongTo}
        _apply_modifiers(result, decl.modifiers)
    else:
        # field named after its type, e.g. "has email"
        result = {"type": normalize_type_name(decl.name)}
        _apply_modifiers(result, decl.modifiers)
        _apply_functors(result, decl.functors)

    if decl.comment:
        result["comment"] = decl.comment
    return result


# ------------------------------------------------------------------------------
# Entities

def feature_to_dict(node) -> dict:
    if node.named:
        options = {arg.name: to_value(arg.value) for arg in node.named}
    elif not node.args:
        options = None
    elif len(node.args) == 1:
        options = to_value(node.args[0])
    else:
        options = [to_value(a) for a in node.args]
    return {"name": node.name, "options": options}


def _then_to_dict(node):
    cls = _cls(node)
    if cls == "ThrowClause":
        return {"oolType": "ThrowExpression", "errorType": node.errorType, "message": node.message or None}
    if cls == "ReturnValue":
        return {"oolType": "ReturnExpression", "value": to_value(node.value)}
    return to_value(node)


def _case_items(items) -> list:
    return [{"test": to_value(item.test), "then": _then_to_dict(item.then)} for item in items]


def param_to_dict(param) -> dict:
    return {"name": param.name, **type_info_to_dict(param.info)}


def interface_to_dict(node) -> dict:
    operations = []
    for op in node.operations:
        if _cls(op) == "FindOneOperation":
            case = {"items": _case_items(op.items)}
            if op.otherwise is not None and op.otherwise != "":
                case["else"] = _then_to_dict(op.otherwise)
            operations.append({"oolType": "findOne", "model": op.model, "case": case})
        else:
            operations.append({"oolType": op.kind, "model": op.model})

    result = None
    if node.result is not None:
        result = {"value": to_value(node.result.value), "exceptions": _case_items(node.result.exceptions)}

    return {
        "accept": [param_to_dict(p) for p in node.params],
        "implementation": operations,
        "return": result,
    }


def entity_to_dict(node) -> dict:
    entity = {
        "name": node.name,
        "base": node.base or None,
        "comment": None,
        "features": [],
        "fields": {},
        "key": None,
        "indexes": [],
        "data": None,
        "interface": {},
    }

    for item in node.items:
        cls = _cls(item)
        if cls == "EntityComment":
            entity["comment"] = item.text
        elif cls == "FeaturesBlock":
            entity["features"].extend(feature_to_dict(f) for f in item.features)
        elif cls == "FieldsBlock":
            for decl in item.fields:
                if decl.name in entity["fields"]:
                    raise DuplicateDefinitionError(
                        f"Field name [{decl.name}] conflicts in entity [{node.name}].",
                        **_location(decl),
                    )
                entity["fields"][decl.name] = field_decl_to_dict(decl)
        elif cls == "KeyDecl":
            if entity["key"] is not None:
                raise DuplicateDefinitionError(
                    f'Entity "{node.name}" declares its key more than once.',
                    **_location(item),
                )
            entity["key"] = item.fields[0] if len(item.fields) == 1 else list(item.fields)
        elif cls == "IndexBlock":
            entity["indexes"].extend(
                {"fields": list(index.fields), "unique": bool(index.unique)} for index in item.indexes
            )
        elif cls == "DataDecl":
            entity["data"] = to_value(item.records)
        elif cls == "InterfaceDecl":
            entity["interface"][item.name] = interface_to_dict(item)

    return entity


# ------------------------------------------------------------------------------
# Relations, documents, views, schema

def relation_to_dict(node) -> dict:
    if node.multi:
        shape = "multi"
    elif len(node.targets) > 1:
        shape = "chain"
    else:
        shape = "single"
    return {
        "left": node.left,
        "relationship": node.relationship,
        "shape": shape,
        "targets": [{"entity": t.entity, "leftField": t.leftField or None} for t in node.targets],
        "optional": bool(node.optional),
    }


def document_to_dict(node) -> dict:
    document = {"name": node.name, "joinWith": []}
    if node.entity:
        document["entity"] = node.entity
    else:
        document["document"] = node.base
    for join in node.joins:
        target = {"entity": join.entity} if join.entity else {"document": join.document}
        document["joinWith"].append({**target, "on": {"left": join.left, "right": join.right}})
    return document


def _order_items(items) -> list:
    return [{"field": i.field, "ascend": i.direction != "desc"} for i in items]


def view_to_dict(node) -> dict:
    view = {"name": node.name, "isList": False, "accept": []}
    for item in node.items:
        cls = _cls(item)
        if cls == "ViewSource":
            if item.entity:
                view["entity"] = item.entity
            else:
                view["document"] = item.document
        elif cls == "ViewList":
            view["isList"] = True
        elif cls == "ViewAccept":
            view["accept"].extend(param_to_dict(p) for p in item.params)
        elif cls == "ViewSelect":
            view["selectBy"] = [to_value(c) for c in item.conditions]
        elif cls == "ViewGroup":
            view["groupBy"] = _order_items(item.fields)
        elif cls == "ViewOrder":
            view["orderBy"] = _order_items(item.fields)
        elif cls == "ViewSkip":
            view["skip"] = to_value(item.value)
        elif cls == "ViewLimit":
            view["limit"] = to_value(item.value)
    return view


def schema_to_dict(node) -> dict:
    schema = {"name": node.name, "entities": [], "views": []}
    for item in node.items:
        if _cls(item) == "SchemaEntities":
            schema["entities"].extend(item.entities)
        else:
            schema["views"].extend(item.views)
    return schema


def extract_module(model) -> dict:
    """Parsed textX module -> raw declaration maps keyed by element kind."""
    raw = {
        "namespace": [],
        "type": {},
        "entity": {},
        "relation": [],
        "document": {},
        "view": {},
        "schema": None,
    }

    for statement in model.statements:
        cls = _cls(statement)
        if cls == "UseStatement":
            raw["namespace"].extend(statement.namespaces)
        elif cls == "TypeStatement":
            for decl in statement.types:
                raw["type"][decl.name] = type_info_to_dict(decl.info)
        elif cls == "EntityStatement":
            raw["entity"][statement.name] = entity_to_dict(statement)
        elif cls == "RelationStatement":
            raw["relation"].append(relation_to_dict(statement))
        elif cls == "DocumentStatement":
            raw["document"][statement.name] = document_to_dict(statement)
        elif cls == "ViewStatement":
            raw["view"][statement.name] = view_to_dict(statement)
        elif cls == "SchemaStatement":
            raw["schema"] = schema_to_dict(statement)

    return raw
