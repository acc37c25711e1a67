"""
Reverse engineering rules.

A column type conversion rule gets the table name and the information_schema
row of a column. The first rule whose `test` passes replaces the default type
mapping with what its `apply` returns.
"""

from typing import Callable, NamedTuple

from oolong.utils import camel_case, snake_case


class ReverseRule(NamedTuple):
    desc: str
    test: Callable
    apply: Callable


def _name_ends_with(col: dict, suffix: str) -> bool:
    return snake_case(col["COLUMN_NAME"]).endswith(suffix)


DEFAULT_COLUMN_RULES = [
    ReverseRule(
        'Converting field type being "int(11) unsigned" and field name ending with "_time" into "datetime"',
        lambda table, col: _name_ends_with(col, "_time") and col["COLUMN_TYPE"] == "int(11) unsigned",
        lambda table, col: {"type": "datetime"},
    ),
    ReverseRule(
        'Converting field type being "text" and field name ending with "_url" into "url"',
        lambda table, col: _name_ends_with(col, "_url") and col["COLUMN_TYPE"] == "text",
        lambda table, col: {"type": "url"},
    ),
    ReverseRule(
        'Converting field type being "varchar(255)" and field name ending with "_url" into "url"',
        lambda table, col: _name_ends_with(col, "_url") and col["COLUMN_TYPE"] == "varchar(255)",
        lambda table, col: {"type": "url"},
    ),
]


def entity_naming(name: str) -> str:
    return camel_case(name)


def field_naming(name: str) -> str:
    return camel_case(name)


def remove_table_name_prefix(table_name: str, prefix: str = None) -> str:
    """`t_user_group` with prefix `t` -> `userGroup`."""
    name = table_name
    if prefix:
        name = snake_case(table_name).strip()
        prefix = snake_case(prefix).rstrip("_") + "_"
        if name.startswith(prefix):
            name = name[len(prefix):]
    return entity_naming(name)


def find_column_rule(rules, table: str, col: dict):
    for rule in rules:
        if rule.test(table, col):
            return rule
    return None
