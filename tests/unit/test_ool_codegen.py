"""
Unit tests for the Oolong source generator used by reverse engineering.
"""

import pytest

from oolong.api.ool_codegen import OolCodeGen, field_comment
from oolong.errors import UsageError


@pytest.fixture
def codegen():
    return OolCodeGen()


class TestSections:

    def test_namespace_and_schema(self, codegen):
        text = codegen.generate({
            "namespace": ["entities/*"],
            "schema": {"name": "shop", "entities": ["user", "product"]},
        })
        assert text == 'use "entities/*"\n\nschema shop {\n  entities [user, product]\n}\n'

    def test_many_namespaces(self, codegen):
        text = codegen.generate({"namespace": ["a", "b"]})
        assert text.startswith('use ["a", "b"]\n')

    def test_types(self, codegen):
        text = codegen.generate({"type": {"userStatus": {"type": "enum", "values": ["active", "blocked"]}}})
        assert 'userStatus: enum("active", "blocked")' in text

    def test_relation(self, codegen):
        text = codegen.generate({"relation": [
            {"left": "profile", "relationship": "1:1", "right": "user", "by": "userId", "optional": True},
        ]})
        assert text.startswith("relation profile 1:1 user by userId optional\n")

    def test_unknown_section(self, codegen):
        with pytest.raises(UsageError, match='Unsupported section "table"'):
            codegen.generate({"table": {}})


class TestEntity:

    def entity_text(self, codegen, entity):
        return codegen.generate({"entity": {"user": entity}})

    def test_features_and_fields(self, codegen):
        text = self.entity_text(codegen, {
            "features": [
                {"name": "autoId", "options": {"startFrom": 100}},
                {"name": "createTimestamp", "options": None},
            ],
            "fields": {
                "name": {"type": "text", "maxLength": 100},
                "email": {"type": "text", "maxLength": 200, "optional": True, "comment": "Login"},
            },
            "key": "id",
            "indexes": [{"fields": "email", "unique": True}],
        })

        assert text.startswith('entity user {\n  -- "User"\n  with autoId(startFrom: 100), createTimestamp\n')
        assert '    name: text(100) -- "User Name"\n' in text
        assert '    email: text(200) optional -- "Login"\n' in text
        assert "  index {\n    email is unique\n  }\n" in text
        # the autoId feature declares the key
        assert "key id" not in text

    def test_explicit_key(self, codegen):
        text = self.entity_text(codegen, {"fields": {"code": {"type": "text", "fixedLength": 8}}, "key": "code"})
        assert "code: text(8) fixedLength" in text
        assert "  key code\n" in text

    def test_composite_key_and_index(self, codegen):
        text = self.entity_text(codegen, {
            "fields": {"a": {"type": "int"}, "b": {"type": "int"}},
            "key": ["a", "b"],
            "indexes": [{"fields": ["b", "a"], "unique": False}],
        })
        assert "key [a, b]" in text
        assert "    [b, a]\n" in text

    def test_reference_fields(self, codegen):
        text = self.entity_text(codegen, {"fields": {
            "groupId": {"belongTo": "group", "optional": True},
            "profileId": {"bindTo": "profile"},
        }})
        assert 'groupId -> group optional -- "User Group Id"' in text
        assert 'profileId <-> profile -- "User Profile Id"' in text

    def test_reserved_field_name_is_quoted(self, codegen):
        text = self.entity_text(codegen, {"fields": {"key": {"type": "text", "maxLength": 20}}})
        assert '"key": text(20)' in text


class TestExpressions:

    def test_int_and_decimal(self, codegen):
        assert codegen.type_expression({"type": "int", "digits": 10, "bytes": 4, "unsigned": True}) == \
            "int(digits: 10, bytes: 4) unsigned"
        assert codegen.type_expression({"type": "decimal", "totalDigits": 10, "decimalDigits": 2}) == \
            "decimal(totalDigits: 10, decimalDigits: 2)"

    def test_datetime_range(self, codegen):
        assert codegen.type_expression({"type": "datetime", "range": "date"}) == 'datetime("date")'

    def test_defaults(self, codegen):
        assert "default(false)" in codegen.field_parts("user", "isActive", {"type": "bool", "default": False})
        assert "default(auto)" in codegen.field_parts("user", "code", {"type": "text", "auto": True})

    def test_functors(self, codegen):
        parts = codegen.field_parts("user", "email", {
            "type": "text",
            "modifiers0": [{"name": "trim", "args": []}],
            "validators1": [{"name": "isEmail", "args": []}],
            "computedBy": {"name": "concat", "args": [{"oolType": "ObjectReference", "name": "latest.a"}, "-"]},
        })
        assert parts[2:5] == ['=concat(latest.a, "-")', "|trim", "~isEmail"]


class TestFieldComment:

    def test_entity_prefix_is_not_repeated(self):
        assert field_comment("user", "user_name") == "User Name"

    def test_entity_prefix_is_added(self):
        assert field_comment("user", "status") == "User Status"
