"""
Integration tests for extracting .ool sources from database metadata and
linking the extracted sources again.
"""

import pytest

from oolong.api.generator import reverse
from oolong.errors import UsageError
from oolong.lib.linker import Linker


@pytest.fixture
def shop_tables(column, index):
    return {
        "t_user": {
            "columns": [
                column("id", "int(10) unsigned", data_type="int", key="PRI", extra="auto_increment", precision=10),
                column("email", "varchar(200)", max_length=200, comment="Login email"),
                column("status", "enum('active','blocked')", default="active"),
                column("is_deleted", "tinyint(1)", default="0"),
                column("created_at", "datetime", default="CURRENT_TIMESTAMP"),
            ],
            "indexes": [
                index("PRIMARY", "id", unique=True),
                index("uk_email", "email", unique=True),
            ],
            "autoIncrement": 100,
        },
        "t_order": {
            "columns": [
                column("id", "int(10) unsigned", data_type="int", key="PRI", extra="auto_increment", precision=10),
                column("user_id", "int(10) unsigned", data_type="int", key="MUL", precision=10),
                column("amount", "decimal(10,2)", precision=10, scale=2),
                column("note", "text", max_length=65535, nullable=True),
                column("updated_at", "timestamp", nullable=True, extra="on update CURRENT_TIMESTAMP"),
            ],
            "indexes": [
                index("PRIMARY", "id", unique=True),
                index("fk_user", "user_id"),
            ],
            "foreignKeys": [
                {"COLUMN_NAME": "user_id", "REFERENCED_TABLE_NAME": "t_user", "REFERENCED_COLUMN_NAME": "id"},
            ],
        },
    }


class TestReverse:

    def test_files(self, fake_connector, shop_tables, tmp_path):
        schema_file = reverse(fake_connector("shop", shop_tables), tmp_path / "ool", remove_table_prefix="t")

        assert schema_file == tmp_path / "ool" / "shop" / "shop.ool"
        assert schema_file.read_text(encoding="utf-8") == (
            'use "entities/*"\n\nschema shop {\n  entities [user, order]\n}\n'
        )
        assert (tmp_path / "ool" / "shop" / "entities" / "user.ool").is_file()
        assert (tmp_path / "ool" / "shop" / "entities" / "order.ool").is_file()

    def test_user_entity(self, fake_connector, shop_tables, tmp_path):
        reverse(fake_connector("shop", shop_tables), tmp_path, remove_table_prefix="t")
        text = (tmp_path / "shop" / "entities" / "user.ool").read_text(encoding="utf-8")

        assert 'userStatus: enum("active", "blocked")' in text
        assert "with autoId(startFrom: 100), logicalDeletion, createTimestamp" in text
        assert 'email: text(200) -- "Login email"' in text
        assert 'status: userStatus default("active")' in text
        assert "email is unique" in text

    def test_order_entity(self, fake_connector, shop_tables, tmp_path):
        reverse(fake_connector("shop", shop_tables), tmp_path, remove_table_prefix="t")
        text = (tmp_path / "shop" / "entities" / "order.ool").read_text(encoding="utf-8")

        assert "with autoId(startFrom" not in text
        assert "updateTimestamp" in text
        assert "userId -> user" in text
        assert "amount: decimal(totalDigits: 10, decimalDigits: 2)" in text
        assert "note: text(65535) optional" in text

    def test_round_trip(self, fake_connector, shop_tables, tmp_path):
        schema_file = reverse(fake_connector("shop", shop_tables), tmp_path, remove_table_prefix="t")

        schema = Linker.from_path(schema_file.parent).link(schema_file)

        assert set(schema.entities) == {"user", "order"}
        user = schema.entities["user"]
        assert user.fields["id"]["startFrom"] == 100
        assert user.fields["status"]["values"] == ["active", "blocked"]
        assert {"logicalDeletion", "createTimestamp", "autoId"} <= set(user.features)
        assert [(r.left, r.right, r.left_field) for r in schema.relations] == [("order", "user", "userId")]

    def test_unsupported_column(self, fake_connector, column, tmp_path):
        tables = {"shape": {"columns": [column("area", "geometry")]}}
        with pytest.raises(UsageError, match='Unsupported column type "geometry"'):
            reverse(fake_connector("geo", tables), tmp_path)
