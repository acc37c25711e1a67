"""
Oolong source code generator.

Writes `.ool` text from plain dicts, the inverse of the module extractor.
Used by reverse engineering to turn database tables into entity files:

    gen = OolCodeGen()
    text = gen.generate({
        "namespace": ["entities/*"],
        "schema": {"name": "shop", "entities": ["user", "order"]},
    })

Top-level keys are generated in insertion order by `generate_<key>` methods.
"""

import json

from oolong.errors import UsageError
from oolong.lib.types import FUNCTOR_STAGES, FunctorKind
from oolong.utils import normalize_display_name, snake_case

RESERVED_WORDS = frozenset({
    "use", "type", "schema", "entities", "views", "entity", "extends", "with", "has",
    "key", "index", "is", "unique", "data", "interface", "accept", "return", "relation",
    "document", "view", "optional", "readOnly", "writeOnceOnly", "fixedLength", "fixed",
    "unsigned", "auto", "default", "and", "or", "not", "in", "true", "false", "null",
})

_FUNCTOR_PREFIX = {
    FunctorKind.VALIDATOR: "~",
    FunctorKind.MODIFIER: "|",
    FunctorKind.COMPOSER: "=",
}


def quote_value(value) -> str:
    """Oolong literal of a plain value. Object literals accept JSON syntax."""
    return json.dumps(value, ensure_ascii=False, default=str)


def field_comment(entity_name: str, field_name: str) -> str:
    """
    Display name of a column: `user` + `user_name` -> "User Name",
    `user` + `status` -> "User Status".
    """
    column = snake_case(field_name)
    first_word, _, rest = column.partition("_")
    entity = snake_case(entity_name)

    if entity.endswith(first_word) and rest:
        return normalize_display_name(entity + "_" + rest)
    return normalize_display_name(entity + "_" + column)


class OolCodeGen:

    def __init__(self, indent_size: int = 2):
        self.indent_size = indent_size
        self.indented = 0
        self.content = ""

    def generate(self, obj: dict) -> str:
        self.indented = 0
        self.content = ""

        for key, value in obj.items():
            method = getattr(self, f"generate_{key}", None)
            if method is None:
                raise UsageError(f'Unsupported section "{key}" for code generation.')
            method(value)

        return self.content

    # ------------------------------------------------------------------------------
    # Output helpers

    def append_line(self, *parts):
        line = " ".join(str(p) for p in parts if p != "")
        if line:
            self.content += " " * self.indented + line + "\n"
        else:
            self.content += "\n"
        return self

    def indent(self):
        self.indented += self.indent_size
        return self

    def dedent(self):
        self.indented -= self.indent_size
        assert self.indented >= 0, "Unexpected indented state."
        return self

    @staticmethod
    def name(identifier: str) -> str:
        return quote_value(identifier) if identifier in RESERVED_WORDS else identifier

    # ------------------------------------------------------------------------------
    # Sections

    def generate_namespace(self, namespaces: list):
        if not namespaces:
            return
        if len(namespaces) == 1:
            self.append_line("use", quote_value(namespaces[0]))
        else:
            self.append_line("use [" + ", ".join(quote_value(ns) for ns in namespaces) + "]")
        self.append_line()

    def generate_type(self, types: dict):
        if not types:
            return
        self.append_line("type {").indent()
        for type_name, info in types.items():
            self.append_line(f"{type_name}:", self.type_expression(info))
        self.dedent().append_line("}").append_line()

    def generate_schema(self, schema: dict):
        self.append_line("schema", schema["name"], "{").indent()
        if schema.get("entities"):
            self.append_line("entities [" + ", ".join(schema["entities"]) + "]")
        if schema.get("views"):
            self.append_line("views [" + ", ".join(schema["views"]) + "]")
        self.dedent().append_line("}")

    def generate_relation(self, relations: list):
        for relation in relations:
            self.append_line(
                "relation",
                relation["left"],
                relation["relationship"],
                relation["right"],
                f"by {relation['by']}" if relation.get("by") else "",
                "optional" if relation.get("optional") else "",
            )
        if relations:
            self.append_line()

    def generate_entity(self, entities: dict):
        for entity_name, entity in entities.items():
            self._generate_one_entity(entity_name, entity)

    def _generate_one_entity(self, entity_name: str, entity: dict):
        self.append_line("entity", entity_name, "{").indent()
        self.append_line("--", quote_value(entity.get("comment") or normalize_display_name(entity_name)))

        features = entity.get("features") or []
        has_auto_id = any(f["name"] == "autoId" for f in features)
        if features:
            self.append_line("with", ", ".join(self.feature_expression(f) for f in features))

        fields = entity.get("fields") or {}
        if fields:
            self.append_line().append_line("has {").indent()
            for field_name, field in fields.items():
                self.append_line(*self.field_parts(entity_name, field_name, field))
            self.dedent().append_line("}")

        key = entity.get("key")
        if key and not has_auto_id:
            self.append_line()
            if isinstance(key, list):
                self.append_line("key [" + ", ".join(self.name(k) for k in key) + "]")
            else:
                self.append_line("key", self.name(key))

        indexes = entity.get("indexes") or []
        if indexes:
            self.append_line().append_line("index {").indent()
            for index in indexes:
                fields = index["fields"]
                target = (
                    "[" + ", ".join(self.name(f) for f in fields) + "]"
                    if isinstance(fields, list)
                    else self.name(fields)
                )
                self.append_line(target, "is unique" if index.get("unique") else "")
            self.dedent().append_line("}")

        if entity.get("data"):
            self.append_line().append_line("data", quote_value(entity["data"]))

        self.dedent().append_line("}").append_line()

    # ------------------------------------------------------------------------------
    # Expressions

    def feature_expression(self, feature: dict) -> str:
        options = feature.get("options")
        if options is None:
            return feature["name"]
        if isinstance(options, dict):
            named = ", ".join(f"{k}: {quote_value(v)}" for k, v in options.items())
            return f"{feature['name']}({named})"
        return f"{feature['name']}({quote_value(options)})"

    def type_expression(self, info: dict) -> str:
        type_name = info["type"]
        args = []

        if type_name == "enum":
            args = [quote_value(v) for v in info.get("values") or []]
        elif type_name == "int":
            args = [f"{k}: {info[k]}" for k in ("digits", "bytes") if k in info]
        elif type_name in ("float", "decimal"):
            args = [f"{k}: {info[k]}" for k in ("totalDigits", "decimalDigits") if info.get(k) is not None]
        elif type_name in ("text", "binary"):
            length = info.get("fixedLength") or info.get("maxLength")
            if length and not isinstance(length, bool):
                args = [str(length)]
        elif type_name == "datetime" and info.get("range"):
            args = [quote_value(info["range"])]

        expression = type_name + (f"({', '.join(args)})" if args else "")

        flags = []
        if info.get("fixedLength"):
            flags.append("fixedLength")
        if info.get("unsigned"):
            flags.append("unsigned")
        return " ".join([expression, *flags])

    def field_parts(self, entity_name: str, field_name: str, field: dict) -> list:
        parts = [self.name(field_name)]

        if field.get("belongTo"):
            parts += ["->", field["belongTo"]]
        elif field.get("bindTo"):
            parts += ["<->", field["bindTo"]]
        else:
            parts[0] += ":"
            parts.append(self.type_expression(field))

        for key, flag in (("readOnly", "readOnly"), ("writeOnceOnly", "writeOnceOnly"),
                          ("fixedValue", "fixed"), ("optional", "optional")):
            if field.get(key):
                parts.append(flag)

        if "default" in field:
            parts.append(f"default({quote_value(field['default'])})")
        elif field.get("auto"):
            parts.append("default(auto)")

        if "type" in field:
            for stage_key, _, kind in FUNCTOR_STAGES:
                functors = field.get(stage_key)
                if not functors:
                    continue
                for functor in functors if isinstance(functors, list) else [functors]:
                    parts.append(self.functor_expression(kind, functor))

        parts += ["--", quote_value(field.get("comment") or field_comment(entity_name, field_name))]
        return parts

    def functor_expression(self, kind: FunctorKind, functor) -> str:
        if isinstance(functor, str):
            return _FUNCTOR_PREFIX[kind] + functor
        args = functor.get("args") or []
        text = _FUNCTOR_PREFIX[kind] + functor["name"]
        if args:
            text += "(" + ", ".join(self.argument(a) for a in args) + ")"
        return text

    def argument(self, value) -> str:
        if isinstance(value, dict) and value.get("oolType") == "ObjectReference":
            return value["name"]
        return quote_value(value)
