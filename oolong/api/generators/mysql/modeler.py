"""
MySQL modeler.

Turns a linked schema into MySQL scripts under `<output>/mysql/<dbName>/`:

    entities.sql            CREATE TABLE statements
    relations.sql           ALTER TABLE ... ADD FOREIGN KEY statements
    procedures.sql          one stored procedure per view
    data/_init/0-init.json  initial records declared with `data`
    data/_init/index.list   load order of the initial data files

The schema is cloned first: foreign key fields, indexes and the column flags
the runtime relies on (createByDb, updateByDb, ...) are added to the copy,
which is returned for the DAO generator.
"""

import copy
import json
from pathlib import Path

from oolong.api.gen_logging import get_logger, log_written
from oolong.api.generators.mysql.columns import column_definition, quote_list_or_value
from oolong.errors import ReferenceNotFoundError, UsageError
from oolong.lib.document import find_node
from oolong.lib.features import FeatureKind
from oolong.lib.relations import foreign_key_field_naming
from oolong.lib.types import Relationship
from oolong.utils import camel_case, number_to_letter, quote_identifier, quote_string, snake_case, upper_first
from oolong.validation.compliance import compliance_check, raise_on_errors

logger = get_logger(__name__)

_SQL_OPERATORS = {
    "=": "=",
    "!=": "<>",
    ">": ">",
    "<": "<",
    ">=": ">=",
    "<=": "<=",
    "in": "IN",
    "and": "AND",
    "or": "OR",
}

_SQL_UNARY = {
    "exists": "IS NOT NULL",
    "not-exists": "IS NULL",
    "is-null": "IS NULL",
    "is-not-null": "IS NOT NULL",
}


def view_procedure_name(view_name: str) -> str:
    return "sp_" + snake_case(view_name)


class MySQLModeler:

    def __init__(self, output_path, db_name: str = None, table_options: dict = None):
        self.output_path = Path(output_path)
        self.db_name = db_name
        self.table_options = {str(k).upper(): v for k, v in (table_options or {}).items()}

        # left entity -> [{leftField, right, rightField}]
        self._references = {}
        self._relation_entities = set()
        self._extra_table_options = {}

    @property
    def script_dir(self) -> Path:
        return self.output_path / "mysql" / self.db_name

    def modeling(self, schema):
        self.db_name = self.db_name or schema.name
        logger.info(f'Generating mysql scripts for schema "{schema.name}"...')

        modeling_schema = schema.clone()

        logger.debug("Building relations...")
        multi_indexes = []
        for relation in modeling_schema.relations:
            index = self._build_relation(modeling_schema, relation)
            if index is not None and index not in multi_indexes:
                multi_indexes.append(index)

        for entity_name, fields, unique in multi_indexes:
            entity = modeling_schema.entities[entity_name]
            if not entity.has_index_on(fields):
                entity.add_index({"fields": list(fields), "unique": unique})

        table_sql = ""
        data = {}

        for entity_name, entity in modeling_schema.entities.items():
            entity.add_indexes()
            raise_on_errors(entity, compliance_check(entity))

            for feature_name, setting in entity.features.items():
                for item in setting if isinstance(setting, list) else [setting]:
                    self._feature_reducer(entity, feature_name, item)

            table_sql += self._create_table_statement(entity_name, entity) + "\n"

            records = self._initial_data(entity)
            if records:
                data[entity_name] = records

        relation_sql = ""
        for left, references in self._references.items():
            for reference in references:
                relation_sql += self._add_foreign_key_statement(left, reference) + "\n"

        procedure_sql = ""
        for view_name, view in modeling_schema.views.items():
            view.infer_type_info(modeling_schema)
            procedure_sql += self._create_procedure_statement(modeling_schema, view)

        self._write_file(self.script_dir / "entities.sql", table_sql)
        self._write_file(self.script_dir / "relations.sql", relation_sql)
        self._write_file(self.script_dir / "procedures.sql", procedure_sql)

        if data:
            init_dir = self.script_dir / "data" / "_init"
            self._write_file(init_dir / "0-init.json", json.dumps(data, indent=4, default=str))
            if not (init_dir / "index.list").exists():
                self._write_file(init_dir / "index.list", "0-init.json\n")

        return modeling_schema

    # ------------------------------------------------------------------------------
    # Relations

    def _add_reference(self, left: str, left_field: str, right: str, right_field: str):
        references = self._references.setdefault(left, [])
        reference = {"leftField": left_field, "right": right, "rightField": right_field}
        if reference not in references:
            references.append(reference)
        return self

    def _add_foreign_key_field(self, owner, field_name, target, optional) -> str:
        if target.key is None or isinstance(target.key, list):
            raise UsageError(
                f'Destination entity "{target.name}" with combination primary key is not supported.'
            )
        field_name = camel_case(field_name or foreign_key_field_naming(target.name, target))
        if not owner.has_field(field_name):
            info = {**target.key_field.type_info(), "isReference": True}
            if optional:
                info["optional"] = True
            owner.add_field(field_name, info)
        self._add_reference(owner.name, field_name, target.name, target.key)
        return field_name

    def _build_relation(self, schema, relation):
        logger.debug(
            f"Analyzing relation between [{relation.left}] and [{relation.right}] "
            f"relationship: {relation.relationship} ..."
        )
        left = schema.get_referenced_entity(relation.left)
        right = schema.get_referenced_entity(relation.right)

        if relation.relationship == Relationship.ONE_TO_MANY.value:
            # the "many" side carries the foreign key
            self._add_foreign_key_field(right, relation.left_field, left, relation.optional)
            return None

        if relation.relationship not in (Relationship.MANY_TO_ONE.value, Relationship.ONE_TO_ONE.value):
            raise UsageError(f'Unexpected relationship "{relation.relationship}" after relation expansion.')

        field_name = self._add_foreign_key_field(left, relation.left_field, right, relation.optional)

        if left.is_relationship_entity:
            self._relation_entities.add(left.name)

        unique = relation.relationship == Relationship.ONE_TO_ONE.value
        if relation.multi:
            return left.name, tuple(sorted(camel_case(f) for f in relation.multi)), unique

        if unique and not left.has_index_on([field_name]):
            left.add_index({"fields": [field_name], "unique": True})
        return None

    # ------------------------------------------------------------------------------
    # Features

    def _feature_reducer(self, entity, feature_name: str, setting):
        if feature_name == FeatureKind.AUTO_ID.value:
            field = entity.get_entity_attribute(setting["field"])
            if field.type == "int" and not field.get("generator"):
                field["autoIncrementId"] = True
                if "startFrom" in field:
                    self._extra_table_options.setdefault(entity.name, {})["AUTO_INCREMENT"] = field["startFrom"]
        elif feature_name == FeatureKind.CREATE_TIMESTAMP.value:
            entity.get_entity_attribute(setting["field"])["isCreateTimestamp"] = True
        elif feature_name == FeatureKind.UPDATE_TIMESTAMP.value:
            entity.get_entity_attribute(setting["field"])["isUpdateTimestamp"] = True
        elif feature_name not in {kind.value for kind in FeatureKind}:
            raise UsageError(f'Unsupported feature "{feature_name}".')

    # ------------------------------------------------------------------------------
    # Statements

    def _create_table_statement(self, entity_name: str, entity) -> str:
        lines = [
            f"{quote_identifier(name)} {column_definition(field)}" for name, field in entity.fields.items()
        ]
        lines.append(f"PRIMARY KEY ({quote_list_or_value(entity.key)})")
        for index in entity.indexes:
            prefix = "UNIQUE " if index["unique"] else ""
            lines.append(f"{prefix}KEY ({quote_list_or_value(index['fields'])})")

        sql = f"CREATE TABLE IF NOT EXISTS {quote_identifier(entity_name)} (\n  " + ",\n  ".join(lines) + "\n)"

        options = {**self.table_options, **self._extra_table_options.get(entity_name, {})}
        for key, value in options.items():
            sql += f" {key}={value}"

        return sql + ";\n"

    def _add_foreign_key_statement(self, entity_name: str, reference: dict) -> str:
        sql = (
            f"ALTER TABLE {quote_identifier(entity_name)} ADD FOREIGN KEY ({quote_identifier(reference['leftField'])}) "
            f"REFERENCES {quote_identifier(reference['right'])} ({quote_identifier(reference['rightField'])}) "
        )
        if entity_name in self._relation_entities:
            sql += "ON DELETE CASCADE ON UPDATE CASCADE"
        else:
            sql += "ON DELETE NO ACTION ON UPDATE NO ACTION"
        return sql + ";\n"

    def _initial_data(self, entity) -> list:
        raw = entity.info.get("data")
        if not raw:
            return []

        field_names = list(entity.fields)

        def single_value(record, key=None):
            if len(field_names) != 2:
                raise UsageError(f'Invalid data syntax: entity "{entity.name}" has more than 2 fields.')
            result = {field_names[1]: record}
            if key is not None:
                result[entity.key] = key
            return result

        records = []
        if isinstance(raw, list):
            for record in raw:
                records.append(copy.deepcopy(record) if isinstance(record, dict) else single_value(record))
        elif isinstance(raw, dict):
            for key, record in raw.items():
                if isinstance(record, dict):
                    records.append({entity.key: key, **copy.deepcopy(record)})
                else:
                    records.append(single_value(record, key))
        else:
            raise UsageError(f'Invalid data syntax of entity "{entity.name}".')
        return records

    # ------------------------------------------------------------------------------
    # Views

    def _create_procedure_statement(self, schema, view) -> str:
        params = ", ".join(
            f"p{upper_first(param['name'])} {column_definition(param, is_proc=True)}" for param in view.params
        )
        sql = f"CREATE PROCEDURE {quote_identifier(view_procedure_name(view.name))}({params})\n"
        sql += f"COMMENT {quote_string('SP for view ' + view.name)}\nREADS SQL DATA\nBEGIN\n"
        sql += self._view_document_to_sql(schema, view) + ";"
        sql += "\nEND;\n\n"
        return sql

    def _view_document_to_sql(self, schema, view) -> str:
        doc = copy.deepcopy(view.get_document_hierarchy(schema))
        columns, alias, joins, _ = self._build_view_select(schema, doc, 0)

        sql = "  SELECT " + ", ".join(columns) + f" FROM {quote_identifier(doc['entity'])} AS {alias}"
        if joins:
            sql += " " + " ".join(joins)

        if view.select_by:
            sql += " WHERE " + " AND ".join(self._ool_to_sql(schema, doc, cond, view.params) for cond in view.select_by)
        if view.group_by:
            sql += " GROUP BY " + ", ".join(self._order_by_to_sql(schema, doc, item) for item in view.group_by)
        if view.order_by:
            sql += " ORDER BY " + ", ".join(self._order_by_to_sql(schema, doc, item) for item in view.order_by)

        if view.limit:
            skip = self._ool_to_sql(schema, doc, view.skip or 0, view.params)
            sql += f" LIMIT {skip}, {self._ool_to_sql(schema, doc, view.limit, view.params)}"
        elif view.skip:
            sql += f" OFFSET {self._ool_to_sql(schema, doc, view.skip, view.params)}"

        return sql

    def _build_view_select(self, schema, doc: dict, start_index: int):
        entity = schema.get_referenced_entity(doc["entity"])
        alias = number_to_letter(start_index)
        start_index += 1
        doc["alias"] = alias

        columns = [f"{alias}.{quote_identifier(name)}" for name in entity.fields]
        joins = []

        for field_name, sub in doc.get("subDocuments", {}).items():
            sub_columns, sub_alias, sub_joins, start_index = self._build_view_select(schema, sub, start_index)
            columns.extend(sub_columns)
            joins.append(
                f"LEFT JOIN {quote_identifier(sub['entity'])} AS {sub_alias} "
                f"ON {alias}.{quote_identifier(field_name)} = {sub_alias}.{quote_identifier(sub['linkWithField'])}"
            )
            joins.extend(sub_joins)

        return columns, alias, joins, start_index

    def _order_by_to_sql(self, schema, doc, item) -> str:
        column = self._ool_to_sql(schema, doc, {"oolType": "ObjectReference", "name": item["field"]})
        return column + ("" if item.get("ascend", True) else " DESC")

    def _ool_to_sql(self, schema, doc, ool, params=None) -> str:
        if not isinstance(ool, dict) or "oolType" not in ool:
            if ool is None:
                return "NULL"
            if isinstance(ool, bool):
                return "1" if ool else "0"
            if isinstance(ool, (int, float)):
                return str(ool)
            if isinstance(ool, list):
                return "(" + ", ".join(self._ool_to_sql(schema, doc, v, params) for v in ool) + ")"
            return quote_string(str(ool))

        kind = ool["oolType"]

        if kind == "BinaryExpression":
            operator = _SQL_OPERATORS.get(ool["operator"])
            if operator is None:
                raise UsageError(f'Unsupported operator "{ool["operator"]}" in view condition.')
            left = self._ool_to_sql(schema, doc, ool["left"], params)
            right = self._ool_to_sql(schema, doc, ool["right"], params)
            if operator in ("AND", "OR"):
                return f"({left} {operator} {right})"
            return f"{left} {operator} {right}"

        if kind == "UnaryExpression":
            argument = self._ool_to_sql(schema, doc, ool["argument"], params)
            if ool["operator"] == "not":
                return f"NOT ({argument})"
            return f"{argument} {_SQL_UNARY[ool['operator']]}"

        if kind == "ObjectReference":
            name = ool["name"]
            if "." not in name:
                if any(p["name"] == name for p in params or []):
                    return "p" + upper_first(name)
                raise ReferenceNotFoundError(f'Referencing to a non-existing param "{name}".')

            owner, field_name = name.rsplit(".", 1)
            node = find_node(doc, owner.split(".")[-1])
            if node is None:
                raise ReferenceNotFoundError(f'Reference "{name}" is not part of the view document.')
            entity = schema.get_referenced_entity(node["entity"])
            if field_name not in entity.fields:
                raise ReferenceNotFoundError(f'Field "{field_name}" not found in entity "{entity.name}".')
            return f"{node['alias']}.{quote_identifier(field_name)}"

        raise UsageError(f'Unsupported expression "{kind}" in view.')

    # ------------------------------------------------------------------------------

    def _write_file(self, path: Path, content: str):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        log_written(logger, path, self.output_path)
