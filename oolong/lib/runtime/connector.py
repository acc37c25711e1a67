"""
MySQL connector used by generated models and by reverse engineering.

A thin layer over a SQLAlchemy engine:

- `get_connection()` : context manager yielding a connection in a transaction
- `query(sql, params)` / `execute(sql, params)` : raw SQL with named params
- `insert / update / delete / find` : single-table CRUD from condition dicts
- `call_procedure(name, args)` : stored procedures generated for views
- information_schema helpers consumed by the reverse engineer
"""

from contextlib import contextmanager

from sqlalchemy import create_engine, text

from oolong.api.gen_logging import get_logger
from oolong.errors import ModelUsageError

logger = get_logger(__name__)

_OPERATORS = {
    "$gt": ">",
    "$gte": ">=",
    "$lt": "<",
    "$lte": "<=",
}


def escape_id(name: str) -> str:
    return "`" + str(name).replace("`", "``") + "`"


class ConditionBuilder:
    """
    Condition dict -> SQL with named bind parameters.

        {"a": 1, "b": None}                 a = :p0 AND b IS NULL
        {"a": {"$ne": 1}}                   a <> :p0
        {"a": {"$in": [1, 2]}}              a IN (:p0, :p1)
        {"$or": [{"a": 1}, {"b": 2}]}       (a = :p0) OR (b = :p1)
        {"$not": {"a": 1}}                  NOT (a = :p0)
    """

    def __init__(self):
        self.params = {}

    def _bind(self, value) -> str:
        key = f"p{len(self.params)}"
        self.params[key] = value
        return f":{key}"

    def build(self, condition, join_operator: str = None) -> str:
        if isinstance(condition, list):
            return f" {join_operator or 'OR'} ".join(f"({self.build(c)})" for c in condition)

        if not isinstance(condition, dict):
            raise ModelUsageError(f"Unsupported condition: {condition!r}")

        clauses = []
        for key, value in condition.items():
            if key in ("$and", "$all"):
                clauses.append(f"({self.build(value, 'AND')})")
            elif key in ("$or", "$any"):
                clauses.append(f"({self.build(value, 'OR')})")
            elif key == "$not":
                clauses.append(f"NOT ({self.build(value)})")
            else:
                clauses.append(self._wrap(key, value))
        return f" {join_operator or 'AND'} ".join(clauses)

    def _wrap(self, field_name: str, value) -> str:
        column = escape_id(field_name)

        if value is None:
            return f"{column} IS NULL"

        if isinstance(value, dict) and any(k.startswith("$") for k in value):
            parts = []
            for op, operand in value.items():
                if op in ("$eq", "$equal"):
                    parts.append(self._wrap(field_name, operand))
                elif op in ("$ne", "$neq", "$notEqual"):
                    parts.append(f"{column} IS NOT NULL" if operand is None else f"{column} <> {self._bind(operand)}")
                elif op in _OPERATORS:
                    parts.append(f"{column} {_OPERATORS[op]} {self._bind(operand)}")
                elif op in ("$in", "$nin", "$notIn"):
                    if not isinstance(operand, (list, tuple)):
                        raise ModelUsageError(f'The value should be a list when using "{op}" operator.')
                    values = ", ".join(self._bind(v) for v in operand) or "NULL"
                    keyword = "IN" if op == "$in" else "NOT IN"
                    parts.append(f"{column} {keyword} ({values})")
                else:
                    raise ModelUsageError(f'Unsupported condition operator: "{op}"!')
            return " AND ".join(parts)

        return f"{column} = {self._bind(value)}"


class MySQLConnector:

    def __init__(self, url: str, **engine_options):
        self.url = url
        self.engine = create_engine(url, future=True, **engine_options)

    @property
    def database(self) -> str:
        return self.engine.url.database

    @contextmanager
    def get_connection(self):
        with self.engine.begin() as conn:
            yield conn

    def close(self):
        self.engine.dispose()

    # ------------------------------------------------------------------------------
    # Raw SQL

    def query(self, sql: str, params: dict = None) -> list:
        logger.debug(f"SQL: {sql}")
        with self.get_connection() as conn:
            result = conn.execute(text(sql), params or {})
            return [dict(row) for row in result.mappings()]

    def execute(self, sql: str, params: dict = None):
        logger.debug(f"SQL: {sql}")
        with self.get_connection() as conn:
            return conn.execute(text(sql), params or {})

    def escape(self, value) -> str:
        """Literal for SQL text that cannot use bind parameters (DDL, defaults)."""
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, (int, float)):
            return str(value)
        escaped = str(value).replace("\\", "\\\\").replace("'", "\\'")
        return f"'{escaped}'"

    # ------------------------------------------------------------------------------
    # CRUD

    def insert(self, table: str, data: dict):
        builder = ConditionBuilder()
        columns = ", ".join(escape_id(k) for k in data)
        values = ", ".join(builder._bind(v) for v in data.values())
        result = self.execute(f"INSERT INTO {escape_id(table)} ({columns}) VALUES ({values})", builder.params)
        return result.lastrowid

    def update(self, table: str, data: dict, condition: dict) -> int:
        builder = ConditionBuilder()
        sets = ", ".join(f"{escape_id(k)} = {builder._bind(v)}" for k, v in data.items())
        where = builder.build(condition)
        result = self.execute(f"UPDATE {escape_id(table)} SET {sets} WHERE {where}", builder.params)
        return result.rowcount

    def delete(self, table: str, condition: dict) -> int:
        builder = ConditionBuilder()
        where = builder.build(condition)
        result = self.execute(f"DELETE FROM {escape_id(table)} WHERE {where}", builder.params)
        return result.rowcount

    def find(self, table: str, condition: dict = None, order_by: list = None, limit: int = None,
             offset: int = None) -> list:
        builder = ConditionBuilder()
        sql = f"SELECT * FROM {escape_id(table)}"
        if condition:
            sql += f" WHERE {builder.build(condition)}"
        if order_by:
            sql += " ORDER BY " + ", ".join(
                escape_id(f.lstrip("-")) + (" DESC" if f.startswith("-") else "") for f in order_by
            )
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
            if offset:
                sql += f" OFFSET {int(offset)}"
        return self.query(sql, builder.params)

    def call_procedure(self, name: str, args: list) -> list:
        placeholders = ", ".join(f":a{i}" for i in range(len(args)))
        return self.query(f"CALL {escape_id(name)}({placeholders})", {f"a{i}": v for i, v in enumerate(args)})

    # ------------------------------------------------------------------------------
    # information_schema

    def list_tables(self) -> list:
        rows = self.query(
            "SELECT TABLE_NAME AS name FROM information_schema.TABLES "
            "WHERE TABLE_SCHEMA = :db AND TABLE_TYPE = 'BASE TABLE' ORDER BY TABLE_NAME",
            {"db": self.database},
        )
        return [row["name"] for row in rows]

    def list_columns(self, table: str) -> list:
        return self.query(
            "SELECT COLUMN_NAME, COLUMN_TYPE, DATA_TYPE, IS_NULLABLE, COLUMN_DEFAULT, COLUMN_KEY, EXTRA, "
            "CHARACTER_MAXIMUM_LENGTH, NUMERIC_PRECISION, NUMERIC_SCALE, COLUMN_COMMENT "
            "FROM information_schema.COLUMNS WHERE TABLE_SCHEMA = :db AND TABLE_NAME = :table "
            "ORDER BY ORDINAL_POSITION",
            {"db": self.database, "table": table},
        )

    def list_indexes(self, table: str) -> list:
        return self.query(
            "SELECT INDEX_NAME, NON_UNIQUE, COLUMN_NAME FROM information_schema.STATISTICS "
            "WHERE TABLE_SCHEMA = :db AND TABLE_NAME = :table ORDER BY INDEX_NAME, SEQ_IN_INDEX",
            {"db": self.database, "table": table},
        )

    def list_foreign_keys(self, table: str) -> list:
        return self.query(
            "SELECT COLUMN_NAME, REFERENCED_TABLE_NAME, REFERENCED_COLUMN_NAME "
            "FROM information_schema.KEY_COLUMN_USAGE WHERE TABLE_SCHEMA = :db AND TABLE_NAME = :table "
            "AND REFERENCED_TABLE_NAME IS NOT NULL ORDER BY ORDINAL_POSITION",
            {"db": self.database, "table": table},
        )

    def get_auto_increment(self, table: str):
        rows = self.query(
            "SELECT AUTO_INCREMENT AS value FROM information_schema.TABLES "
            "WHERE TABLE_SCHEMA = :db AND TABLE_NAME = :table",
            {"db": self.database, "table": table},
        )
        return rows[0]["value"] if rows else None
