"""
Integration tests for parsing and linking schemas across modules.
"""

import pytest

from oolong.errors import (
    DuplicateDefinitionError,
    NamingConflictError,
    ParseError,
    ReferenceNotFoundError,
    UsageError,
)


class TestEntityLinking:

    def test_features_fields_and_key(self, write_ool, link):
        write_ool("main", """
            schema crm {
              entities [customer]
            }

            entity customer {
              -- "Customer"
              with autoId, atLeastOneNotNull(["email", "mobile"])
              has {
                name
                email optional
                mobile: phone optional
              }
              index {
                email is unique
              }
            }
        """)
        schema = link()
        customer = schema.entities["customer"]

        assert schema.name == "crm"
        assert customer.comment == "Customer"
        assert list(customer.fields) == ["id", "name", "email", "mobile"]
        assert customer.key == "id"
        assert customer.features["autoId"] == {"field": "id"}
        assert customer.features["atLeastOneNotNull"] == [["email", "mobile"]]

        email = customer.fields["email"]
        assert email["type"] == "text"
        assert email["maxLength"] == 200
        assert email["optional"] is True
        assert [m["name"] for m in email["modifiers0"]] == ["trim"]

    def test_first_typed_field_is_the_key(self, write_ool, link):
        write_ool("main", """
            schema s { entities [country] }
            entity country {
              has {
                code: text(2) fixedLength
                name
              }
            }
        """)
        assert link().entities["country"].key == "code"

    def test_inheritance(self, write_ool, link):
        write_ool("main", """
            schema s { entities [admin] }

            entity person {
              with autoId, createTimestamp
              has name
            }

            entity admin extends person {
              has level: int(2) default(1)
            }
        """)
        admin = link().entities["admin"]
        assert list(admin.fields) == ["id", "name", "createdAt", "level"]
        assert admin.base.name == "person"
        assert "createTimestamp" in admin.features

    def test_namespaces(self, write_ool, link):
        write_ool("entities/user", """
            type {
              nickname: text(40) |trim
            }
            entity user {
              with autoId
              has {
                name
                alias: nickname optional
              }
            }
        """)
        write_ool("main", """
            use "entities/*"
            schema s { entities [user] }
        """)
        user = link().entities["user"]
        assert user.fields["alias"]["maxLength"] == 40
        assert user.module.id == "./entities/user"

    def test_missing_entity(self, write_ool, link):
        write_ool("main", """
            schema s { entities [ghost] }
        """)
        with pytest.raises(ReferenceNotFoundError, match='Entity reference "ghost"'):
            link()

    def test_unknown_type(self, write_ool, link):
        write_ool("main", """
            schema s { entities [user] }
            entity user {
              has nickname: handle
            }
        """)
        with pytest.raises(ReferenceNotFoundError):
            link()

    def test_duplicate_field(self, write_ool, link):
        write_ool("main", """
            schema s { entities [user] }
            entity user {
              has {
                name
                name
              }
            }
        """)
        with pytest.raises(DuplicateDefinitionError, match="Field name"):
            link()

    def test_circular_type(self, write_ool, link):
        write_ool("main", """
            type {
              first: second
              second: first
            }
            schema s { entities [user] }
            entity user {
              has a: first
            }
        """)
        with pytest.raises(UsageError):
            link()

    def test_syntax_error(self, write_ool, link):
        write_ool("main", """
            schema s { entities [user }
        """)
        with pytest.raises(ParseError) as exc:
            link()
        assert exc.value.line is not None

    def test_no_schema(self, write_ool, link):
        write_ool("main", """
            entity user { has name }
        """)
        with pytest.raises(UsageError, match="No schema defined"):
            link()

    def test_same_schema_twice(self, write_ool, make_linker, source_dir):
        write_ool("main", """
            schema s { entities [user] }
            entity user { with autoId }
        """)
        linker = make_linker()
        linker.link(source_dir / "main.ool")
        with pytest.raises(DuplicateDefinitionError, match='Duplicate schema: "s".'):
            linker.link(source_dir / "main.ool")


class TestRelations:

    def test_referenced_entity_joins_the_schema(self, write_ool, link):
        write_ool("main", """
            schema shop { entities [product] }

            entity user {
              with autoId
              has name
            }

            entity product {
              with autoId
              has {
                title: name
                owner -> user
              }
            }
        """)
        schema = link()

        assert set(schema.entities) == {"product", "user"}
        relation = schema.relations[0]
        assert (relation.left, relation.relationship, relation.right) == ("product", "n:1", "user")
        assert relation.left_field == "owner"
        assert schema.referenced_by == {"user": ["product"]}

    def test_many_to_many_junction(self, write_ool, link):
        write_ool("main", """
            schema s { entities [user] }

            entity user { with autoId has name }
            entity group { with autoId has name }

            relation user n:n group
        """)
        schema = link()

        junction = schema.entities["userGroups"]
        assert junction.is_relationship_entity
        assert junction.key == ["userId", "groupId"]
        assert list(junction.fields) == ["userId", "groupId", "createdAt"]
        assert [(r.left, r.right, r.relationship) for r in schema.relations] == [
            ("userGroups", "user", "n:1"),
            ("userGroups", "group", "n:1"),
        ]

    def test_junction_name_conflict(self, write_ool, link):
        write_ool("main", """
            schema s { entities [user, userGroups] }

            entity user { with autoId }
            entity group { with autoId }
            entity userGroups { with autoId }

            relation user n:n group
        """)
        with pytest.raises(NamingConflictError):
            link()

    def test_one_to_many_keeps_direction(self, write_ool, link):
        write_ool("main", """
            schema s { entities [order] }

            entity order { with autoId }
            entity orderLine { with autoId has quantity: int }

            relation order 1:n orderLine
        """)
        schema = link()
        assert "orderLine" in schema.entities
        assert schema.relations[0].relationship == "1:n"


class TestDumpParsed:

    def test_json_is_written_beside_the_source(self, write_ool, make_linker, source_dir):
        write_ool("main", """
            schema s { entities [user] }
            entity user { with autoId has name }
        """)
        make_linker(dump_parsed=True).link(source_dir / "main.ool")
        assert (source_dir / "main.ool.json").is_file()


class TestInvariants:

    def test_same_entity_name_in_two_modules(self, write_ool, link):
        write_ool("entities/order", """
            entity user { with autoId }
            entity order {
              with autoId
              has buyer -> user
            }
        """)
        write_ool("entities/invoice", """
            entity user { with autoId }
            entity invoice {
              with autoId
              has payer -> user
            }
        """)
        write_ool("main", """
            use "entities/*"
            schema s { entities [order, invoice] }
        """)
        with pytest.raises(NamingConflictError, match='Entity "user"'):
            link()

    def test_index_with_the_same_field_set(self, write_ool, link):
        write_ool("main", """
            schema s { entities [pair] }
            entity pair {
              with autoId
              has {
                a: int
                b: int
              }
            }
        """)
        pair = link().entities["pair"]
        pair.add_index({"fields": ["a", "b"]})

        assert pair.indexes == [{"fields": ["a", "b"], "unique": False}]
        with pytest.raises(DuplicateDefinitionError, match=r"Index on \[a, b\] already exist"):
            pair.add_index({"fields": ["b", "a"], "unique": True})

    def test_index_on_unknown_field(self, write_ool, link):
        write_ool("main", """
            schema s { entities [pair] }
            entity pair { with autoId has a: int }
        """)
        with pytest.raises(ReferenceNotFoundError, match="non-exist field: c"):
            link().entities["pair"].add_index({"fields": ["c"]})

    def test_link_is_idempotent(self, write_ool, make_linker, source_dir):
        write_ool("main", """
            schema shop { entities [product] }
            entity user { with autoId has name }
            entity product {
              with autoId
              has owner -> user
            }
        """)
        linker = make_linker()
        schema = linker.link(source_dir / "main.ool")
        product = schema.entities["product"]
        fields = list(product.fields)

        assert product.link() is product
        assert list(product.fields) == fields
        assert schema.link() is schema
        assert len(schema.relations) == 1

        main = linker.load_module(source_dir / "main.ool")
        assert linker.load_entity(main, "product") is product

    def test_junction_uses_english_plurals(self, write_ool, link):
        write_ool("main", """
            schema s { entities [user] }
            entity user { with autoId }
            entity quiz { with autoId }
            relation user n:n quiz
        """)
        assert "userQuizzes" in link().entities
