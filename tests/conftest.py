"""
Pytest configuration and shared fixtures for the Oolong test suite.
"""

import textwrap
from pathlib import Path

import pytest

from oolong.lib.linker import Linker


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def source_dir(tmp_path):
    """Directory the .ool modules of a test are written to."""
    path = tmp_path / "ool"
    path.mkdir()
    return path


@pytest.fixture
def temp_output_dir(tmp_path):
    """Directory for generated scripts and models."""
    path = tmp_path / "build"
    path.mkdir()
    return path


@pytest.fixture
def write_ool(source_dir):
    """Write a module: write_ool("entities/user", "...") -> <source_dir>/entities/user.ool"""
    def _write(name: str, content: str) -> Path:
        path = source_dir / f"{name}.ool"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def make_linker(source_dir):
    def _make(**kwargs) -> Linker:
        return Linker.from_path(source_dir, **kwargs)
    return _make


@pytest.fixture
def link(make_linker, source_dir):
    """Link the schema of <source_dir>/<entry>.ool with a fresh linker."""
    def _link(entry: str = "main"):
        return make_linker().link(source_dir / f"{entry}.ool")
    return _link


class FakeConnector:
    """
    In-memory stand-in for MySQLConnector's information_schema helpers.

    tables: {table: {"columns": [...], "indexes": [...], "foreignKeys": [...], "autoIncrement": n}}
    """

    def __init__(self, database: str, tables: dict):
        self.database = database
        self.tables = tables

    def list_tables(self):
        return list(self.tables)

    def list_columns(self, table):
        return self.tables[table].get("columns", [])

    def list_indexes(self, table):
        return self.tables[table].get("indexes", [])

    def list_foreign_keys(self, table):
        return self.tables[table].get("foreignKeys", [])

    def get_auto_increment(self, table):
        return self.tables[table].get("autoIncrement")

    def close(self):
        pass


def _column(name, column_type, data_type=None, nullable=False, default=None, key="", extra="",
           max_length=None, precision=None, scale=None, comment=""):
    """information_schema.COLUMNS row."""
    return {
        "COLUMN_NAME": name,
        "COLUMN_TYPE": column_type,
        "DATA_TYPE": data_type or column_type.split("(")[0].split(" ")[0],
        "IS_NULLABLE": "YES" if nullable else "NO",
        "COLUMN_DEFAULT": default,
        "COLUMN_KEY": key,
        "EXTRA": extra,
        "CHARACTER_MAXIMUM_LENGTH": max_length,
        "NUMERIC_PRECISION": precision,
        "NUMERIC_SCALE": scale,
        "COLUMN_COMMENT": comment,
    }


def _index(name, column_name, unique=False):
    """information_schema.STATISTICS row."""
    return {"INDEX_NAME": name, "NON_UNIQUE": 0 if unique else 1, "COLUMN_NAME": column_name}


@pytest.fixture
def fake_connector():
    return FakeConnector


@pytest.fixture
def column():
    return _column


@pytest.fixture
def index():
    return _index
