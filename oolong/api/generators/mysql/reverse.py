"""
Reverse engineering of a MySQL database into Oolong source files.

    <output>/<db>/<db>.ool                  schema entry, uses "entities/*"
    <output>/<db>/entities/<entity>.ool     one entity per table

Columns become typed fields, database managed columns become features
(autoId, createTimestamp, updateTimestamp, logicalDeletion) and foreign keys
become `->` / `<->` relation fields.
"""

import re
from pathlib import Path

from oolong.api.gen_logging import get_logger
from oolong.api.generators.mysql.rules import (
    DEFAULT_COLUMN_RULES,
    field_naming,
    find_column_rule,
    remove_table_name_prefix,
)
from oolong.api.ool_codegen import OolCodeGen
from oolong.errors import UsageError
from oolong.utils import pascal_case

logger = get_logger(__name__)

_INT_TYPES = {
    "bigint": (8, 18),
    "int": (4, 10),
    "integer": (4, 10),
    "mediumint": (3, 7),
    "smallint": (2, 4),
    "tinyint": (1, 2),
}

_TEXT_TYPES = ("varchar", "tinytext", "text", "mediumtext", "longtext")
_BINARY_TYPES = ("varbinary", "tinyblob", "blob", "mediumblob", "longblob")
_DATETIME_RANGES = {"datetime": None, "timestamp": None, "date": "date", "time": "time", "year": "year"}

_CURRENT_TIMESTAMP = re.compile(r"^current_timestamp(\(\))?$", re.IGNORECASE)


def _is_unsigned(col: dict) -> bool:
    return col["COLUMN_TYPE"].endswith(" unsigned")


def _enum_values(column_type: str) -> list:
    inner = column_type[column_type.index("(") + 1:column_type.rindex(")")]
    return [value.strip()[1:-1].replace("''", "'") for value in inner.split(",")]


class MySQLReverseEngineer:

    def __init__(self, connector, output_path, rules=None, remove_table_prefix: str = None):
        self.connector = connector
        self.output_path = Path(output_path)
        self.rules = DEFAULT_COLUMN_RULES if rules is None else rules
        self.remove_table_prefix = remove_table_prefix
        self.codegen = OolCodeGen()

    def entity_name(self, table: str) -> str:
        return remove_table_name_prefix(table, self.remove_table_prefix)

    def extract(self) -> Path:
        db_name = self.connector.database
        base_dir = self.output_path / db_name
        entities_dir = base_dir / "entities"
        entities_dir.mkdir(parents=True, exist_ok=True)

        entities = []
        for table in self.connector.list_tables():
            entity_name = self.entity_name(table)
            entities.append(entity_name)

            content = self.codegen.generate(self.extract_table(table, entity_name))
            entity_file = entities_dir / f"{entity_name}.ool"
            entity_file.write_text(content, encoding="utf-8")
            logger.info(f'Extracted entity definition file "{entity_file}".')

        schema_file = base_dir / f"{db_name}.ool"
        schema_file.write_text(
            self.codegen.generate({
                "namespace": ["entities/*"],
                "schema": {"name": db_name, "entities": entities},
            }),
            encoding="utf-8",
        )
        logger.info(f'Extracted schema entry file "{schema_file}".')
        return schema_file

    # ------------------------------------------------------------------------------
    # Tables

    def extract_table(self, table: str, entity_name: str) -> dict:
        features, fields, types = [], {}, {}
        feature_names = set()

        def add_feature(name, options=None):
            features.append({"name": name, "options": options})
            feature_names.add(name)

        for col in self.connector.list_columns(table):
            field_name = field_naming(col["COLUMN_NAME"])
            extra = (col.get("EXTRA") or "").lower()
            default = col.get("COLUMN_DEFAULT")

            if "auto_increment" in extra and "autoId" not in feature_names:
                options = {}
                if field_name != "id":
                    options["name"] = field_name
                start_from = self.connector.get_auto_increment(table)
                if start_from:
                    options["startFrom"] = int(start_from)
                add_feature("autoId", options or None)
                continue

            if "on update current_timestamp" in extra and "updateTimestamp" not in feature_names:
                add_feature("updateTimestamp", None if field_name == "updatedAt" else {"name": field_name})
                continue

            if (
                isinstance(default, str)
                and _CURRENT_TIMESTAMP.match(default)
                and "createTimestamp" not in feature_names
            ):
                add_feature("createTimestamp", None if field_name == "createdAt" else {"name": field_name})
                continue

            if field_name == "isDeleted" and col["COLUMN_TYPE"].startswith("tinyint(1)"):
                add_feature("logicalDeletion")
                continue

            info = self.column_to_field(table, entity_name, col, types)
            if col.get("IS_NULLABLE") == "YES":
                info["optional"] = True
            if default is not None and default != "NULL" and not _CURRENT_TIMESTAMP.match(str(default)):
                info["default"] = self._convert_default(info, default)
            if col.get("COLUMN_COMMENT"):
                info["comment"] = col["COLUMN_COMMENT"]
            fields[field_name] = info

        key, indexes = self._extract_indexes(table)
        relations = self._extract_references(table, entity_name, fields, key, indexes)

        entity = {"features": features, "fields": fields, "key": key, "indexes": indexes}
        result = {}
        if types:
            result["type"] = types
        result["entity"] = {entity_name: entity}
        if relations:
            result["relation"] = relations
        return result

    def _extract_indexes(self, table: str):
        grouped = {}
        for row in self.connector.list_indexes(table):
            index = grouped.setdefault(row["INDEX_NAME"], {"fields": [], "unique": not int(row["NON_UNIQUE"])})
            index["fields"].append(field_naming(row["COLUMN_NAME"]))

        key = None
        indexes = []
        for index_name, index in grouped.items():
            fields = index["fields"]
            if index_name == "PRIMARY":
                key = fields[0] if len(fields) == 1 else fields
            else:
                indexes.append({"fields": fields[0] if len(fields) == 1 else fields, "unique": index["unique"]})
        return key, indexes

    def _primary_key_of(self, table: str) -> list:
        return [row["COLUMN_NAME"] for row in self.connector.list_indexes(table) if row["INDEX_NAME"] == "PRIMARY"]

    def _extract_references(self, table, entity_name, fields, key, indexes) -> list:
        key_fields = key if isinstance(key, list) else [key]
        relations = []

        for ref in self.connector.list_foreign_keys(table):
            primary = [c.lower() for c in self._primary_key_of(ref["REFERENCED_TABLE_NAME"])]
            if primary != [ref["REFERENCED_COLUMN_NAME"].lower()]:
                raise UsageError(
                    f'Foreign key "{table}.{ref["COLUMN_NAME"]}" does not reference a primary key column.'
                )

            field_name = field_naming(ref["COLUMN_NAME"])
            target = self.entity_name(ref["REFERENCED_TABLE_NAME"])
            unique = any(i["unique"] and i["fields"] == field_name for i in indexes)
            optional = bool(fields.get(field_name, {}).get("optional"))

            if field_name in key_fields:
                # a key column keeps its type, the relation reuses it
                relations.append({
                    "left": entity_name,
                    "relationship": "1:1" if unique else "n:1",
                    "right": target,
                    "by": field_name,
                    "optional": optional,
                })
                continue

            info = {"bindTo" if unique else "belongTo": target}
            if optional:
                info["optional"] = True
            fields[field_name] = info

            if unique:
                # the one-to-one relation declares this index itself
                indexes[:] = [i for i in indexes if not (i["unique"] and i["fields"] == field_name)]

        return relations

    # ------------------------------------------------------------------------------
    # Columns

    def column_to_field(self, table: str, entity_name: str, col: dict, types: dict) -> dict:
        rule = find_column_rule(self.rules, table, col)
        if rule is not None:
            logger.debug(f"Rule applied on {table}.{col['COLUMN_NAME']}: {rule.desc}")
            return dict(rule.apply(table, col))

        data_type = col["DATA_TYPE"].lower()
        column_type = col["COLUMN_TYPE"].lower()

        if data_type == "tinyint" and column_type.startswith("tinyint(1)"):
            return {"type": "bool"}

        if data_type in _INT_TYPES:
            bytes_, digits = _INT_TYPES[data_type]
            info = {"type": "int", "digits": col.get("NUMERIC_PRECISION") or digits, "bytes": bytes_}
            if _is_unsigned(col):
                info["unsigned"] = True
            return info

        if data_type == "char":
            return {"type": "text", "fixedLength": col["CHARACTER_MAXIMUM_LENGTH"]}
        if data_type in _TEXT_TYPES:
            return {"type": "text", "maxLength": col["CHARACTER_MAXIMUM_LENGTH"]}

        if data_type == "binary":
            return {"type": "binary", "fixedLength": col["CHARACTER_MAXIMUM_LENGTH"]}
        if data_type in _BINARY_TYPES:
            return {"type": "binary", "maxLength": col["CHARACTER_MAXIMUM_LENGTH"]}

        if data_type in ("decimal", "float", "double"):
            info = {"type": "decimal" if data_type == "decimal" else "float"}
            if col.get("NUMERIC_PRECISION") is not None:
                info["totalDigits"] = col["NUMERIC_PRECISION"]
            if col.get("NUMERIC_SCALE") is not None:
                info["decimalDigits"] = col["NUMERIC_SCALE"]
            return info

        if data_type in _DATETIME_RANGES:
            info = {"type": "datetime"}
            if _DATETIME_RANGES[data_type]:
                info["range"] = _DATETIME_RANGES[data_type]
            return info

        if data_type == "enum":
            type_name = entity_name + pascal_case(col["COLUMN_NAME"])
            types[type_name] = {"type": "enum", "values": _enum_values(col["COLUMN_TYPE"])}
            return {"type": type_name}

        if data_type == "json":
            return {"type": "json"}

        raise UsageError(f'Unsupported column type "{col["COLUMN_TYPE"]}" of "{table}.{col["COLUMN_NAME"]}".')

    @staticmethod
    def _convert_default(info: dict, value):
        if info.get("type") == "bool":
            return str(value).lower() in ("1", "true")
        if info.get("type") == "int":
            return int(value)
        if info.get("type") in ("float", "decimal"):
            return float(value)
        return value
