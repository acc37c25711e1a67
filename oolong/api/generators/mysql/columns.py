"""
Column type mapping of the MySQL generator.

Every `*_column` function maps the type info of a field to a
`ColumnType(sql, type)` pair: the full SQL type (with width and flags) and
the bare MySQL type used to decide which defaults are allowed.
"""

from typing import NamedTuple

from oolong.errors import UsageError
from oolong.utils import quote_identifier, quote_string

# MySQL refuses a literal DEFAULT on these column types
UNSUPPORTED_DEFAULT_VALUE = frozenset({
    "BLOB", "MEDIUMBLOB", "LONGBLOB", "TEXT", "MEDIUMTEXT", "LONGTEXT", "JSON", "GEOMETRY",
})

INT_BYTES = {1: "TINYINT", 2: "SMALLINT", 3: "MEDIUMINT", 4: "INT", 8: "BIGINT"}

NUMERIC_TYPES = ("bool", "int", "float", "decimal")


class ColumnType(NamedTuple):
    sql: str
    type: str


def _length(info, key: str):
    """Integer length of `key`, ignoring flag-only values."""
    value = info.get(key)
    if isinstance(value, bool) or value is None:
        return None
    return int(value)


def int_column(info) -> ColumnType:
    digits = _length(info, "digits")
    if digits:
        if digits > 10:
            type_ = "BIGINT"
        elif digits > 7:
            type_ = "INT"
        elif digits > 4:
            type_ = "MEDIUMINT"
        elif digits > 2:
            type_ = "SMALLINT"
        else:
            type_ = "TINYINT"
        sql = f"{type_}({digits})"
    elif info.get("bytes"):
        if info["bytes"] not in INT_BYTES:
            raise UsageError(f'Unsupported integer width: {info["bytes"]} bytes.')
        type_ = sql = INT_BYTES[info["bytes"]]
    else:
        type_ = sql = "INT"

    if info.get("unsigned"):
        sql += " UNSIGNED"
    return ColumnType(sql, type_)


def float_column(info) -> ColumnType:
    total = _length(info, "totalDigits")
    decimal = _length(info, "decimalDigits")

    if info["type"] == "decimal":
        type_ = "DECIMAL"
        if total is not None and total > 65:
            raise UsageError("Total digits exceed maximum limit.")
    elif total is not None and total > 23:
        type_ = "DOUBLE"
        if total > 53:
            raise UsageError("Total digits exceed maximum limit.")
    else:
        type_ = "FLOAT"

    sql = type_
    if total is not None:
        sql += f"({total}, {decimal})" if decimal is not None else f"({total})"
    elif decimal is not None:
        sql += f"({53 if decimal > 23 else 23}, {decimal})"
    return ColumnType(sql, type_)


def text_column(info) -> ColumnType:
    fixed = _length(info, "fixedLength")
    if fixed and fixed <= 255:
        return ColumnType(f"CHAR({fixed})", "CHAR")

    max_length = _length(info, "maxLength") or fixed
    if not max_length:
        return ColumnType("TEXT", "TEXT")
    if max_length > 16777215:
        return ColumnType("LONGTEXT", "LONGTEXT")
    if max_length > 65535:
        return ColumnType("MEDIUMTEXT", "MEDIUMTEXT")
    if max_length >= 2000:
        return ColumnType("TEXT", "TEXT")
    return ColumnType(f"VARCHAR({max_length})", "VARCHAR")


def binary_column(info) -> ColumnType:
    fixed = _length(info, "fixedLength")
    if fixed and fixed <= 255:
        return ColumnType(f"BINARY({fixed})", "BINARY")

    max_length = _length(info, "maxLength") or fixed
    if not max_length:
        return ColumnType("BLOB", "BLOB")
    if max_length > 16777215:
        return ColumnType("LONGBLOB", "LONGBLOB")
    if max_length > 65535:
        return ColumnType("MEDIUMBLOB", "MEDIUMBLOB")
    return ColumnType(f"VARBINARY({max_length})", "VARBINARY")


def bool_column(info) -> ColumnType:
    return ColumnType("TINYINT(1)", "TINYINT")


def datetime_column(info) -> ColumnType:
    range_ = info.get("range") or "datetime"
    type_ = {
        "datetime": "DATETIME",
        "date": "DATE",
        "time": "TIME",
        "year": "YEAR",
        "timestamp": "TIMESTAMP",
    }.get(range_)
    if type_ is None:
        raise UsageError(f'Unsupported datetime range "{range_}".')
    return ColumnType(type_, type_)


def enum_column(info) -> ColumnType:
    values = ", ".join(quote_string(v) for v in info.get("values") or [])
    return ColumnType(f"ENUM({values})", "ENUM")


def json_column(info) -> ColumnType:
    return ColumnType("JSON", "JSON")


COLUMN_TYPES = {
    "int": int_column,
    "float": float_column,
    "decimal": float_column,
    "text": text_column,
    "bool": bool_column,
    "binary": binary_column,
    "datetime": datetime_column,
    "enum": enum_column,
    "json": json_column,
    "xml": text_column,
    "csv": text_column,
}


# ------------------------------------------------------------------------------
# Nullability and defaults

def column_nullable(info) -> str:
    return " NULL" if info.get("optional") else " NOT NULL"


def literal(info, value) -> str:
    if info["type"] == "bool":
        return "1" if value else "0"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return str(value)
    return quote_string(str(value))


def default_value(info, column_type: str) -> str:
    """
    DEFAULT / AUTO_INCREMENT / ON UPDATE clause of a column.

    Marks `info` with what the database fills by itself: `createByDb` (the
    runtime skips the field on insert), `updateByDb` (skipped on update) and
    `defaultByDb` (a zero default exists, the field is still required).
    """
    if info.get("isCreateTimestamp"):
        info["createByDb"] = True
        return " DEFAULT CURRENT_TIMESTAMP"

    if info.get("autoIncrementId"):
        info["createByDb"] = True
        return " AUTO_INCREMENT"

    if info.get("isUpdateTimestamp"):
        info["updateByDb"] = True
        return " ON UPDATE CURRENT_TIMESTAMP"

    if column_type in UNSUPPORTED_DEFAULT_VALUE:
        return ""

    if "default" in info:
        value = info["default"]
        if isinstance(value, (dict, list)):
            return ""
        if value is None:
            return " DEFAULT NULL"
        return " DEFAULT " + literal(info, value)

    if not info.get("optional") and not info.get("auto"):
        info["defaultByDb"] = True
        return " DEFAULT 0" if info["type"] in NUMERIC_TYPES else " DEFAULT ''"

    return ""


def column_definition(info, is_proc: bool = False) -> str:
    """
    SQL type of a field. Table columns get nullability and default clauses,
    stored procedure parameters only the type.
    """
    mapper = COLUMN_TYPES.get(info["type"])
    if mapper is None:
        raise UsageError(f'Unsupported type "{info["type"]}".')

    column = mapper(info)
    if is_proc:
        return column.sql
    return column.sql + column_nullable(info) + default_value(info, column.type)


def quote_list_or_value(value) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(quote_identifier(v) for v in value)
    return quote_identifier(value)
