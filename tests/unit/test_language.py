"""
Unit tests for the textX entry points.
"""

import pytest

from oolong.errors import ParseError
from oolong.language import build_module, build_module_str


class TestBuildModule:

    def test_parse_string(self):
        module = build_module_str("""
            use "entities/*"
            entity user { with autoId has name }
        """)
        kinds = [statement.__class__.__name__ for statement in module.statements]
        assert kinds == ["UseStatement", "EntityStatement"]
        assert module.statements[1].name == "user"

    def test_field_named_after_its_type(self):
        module = build_module_str("entity user { with autoId has name }")
        block = module.statements[0].items[1]
        field = block.fields[0]
        assert field.name == "name"
        assert field.info is None
        assert field.modifiers == [] and field.functors == []

    def test_bare_fields_in_a_block(self):
        module = build_module_str("""
            entity user {
              with autoId()
              has {
                name
                email optional
                age: int(3)
                owner -> user
              }
            }
        """)
        fields = module.statements[0].items[1].fields
        assert [f.name for f in fields] == ["name", "email", "age", "owner"]
        assert fields[1].modifiers[0].flag == "optional"
        assert fields[2].info.type == "int"
        assert fields[3].belongTo == "user"

    def test_relation_field_rejects_functors(self):
        with pytest.raises(ParseError, match="does not accept validators"):
            build_module_str("entity order { has buyer -> user ~isEmail }")

    def test_syntax_error_names_the_source(self):
        with pytest.raises(ParseError) as exc:
            build_module_str("entity user {", source_name="user.ool")

        assert exc.value.message.startswith('Failed to compile "user.ool".\n')
        assert exc.value.line is not None
        assert exc.value.filename == "user.ool"

    def test_parse_file(self, write_ool):
        path = write_ool("main", "schema s { entities [user] }\n")
        module = build_module(path)
        assert module.statements[0].name == "s"
