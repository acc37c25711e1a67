"""
Unit tests for naming helpers.
"""

import pytest

from oolong.utils import (
    camel_case,
    normalize_display_name,
    number_to_letter,
    pascal_case,
    pluralize,
    quote_identifier,
    quote_string,
    snake_case,
)


class TestCaseConversion:

    @pytest.mark.parametrize("name, expected", [
        ("created_at", "createdAt"),
        ("CreatedAt", "createdAt"),
        ("user-name", "userName"),
        ("userID", "userId"),
        ("id", "id"),
    ])
    def test_camel_case(self, name, expected):
        assert camel_case(name) == expected

    def test_pascal_case(self):
        assert pascal_case("order_item") == "OrderItem"

    def test_snake_case(self):
        assert snake_case("userGroup") == "user_group"
        assert snake_case("productCategoryView") == "product_category_view"

    def test_display_name(self):
        assert normalize_display_name("createdAt") == "Created At"


class TestPluralize:

    @pytest.mark.parametrize("word, expected", [
        ("group", "groups"),
        ("category", "categories"),
        ("box", "boxes"),
        ("person", "people"),
        ("userGroup", "userGroups"),
        ("day", "days"),
        ("quiz", "quizzes"),
        ("sheep", "sheep"),
        ("news", "news"),
        ("userQuiz", "userQuizzes"),
    ])
    def test_pluralize(self, word, expected):
        assert pluralize(word) == expected


class TestSqlHelpers:

    def test_number_to_letter(self):
        """Table aliases: A..Z then AA."""
        assert number_to_letter(0) == "A"
        assert number_to_letter(25) == "Z"
        assert number_to_letter(26) == "AA"

    def test_quote_identifier(self):
        assert quote_identifier("user") == "`user`"
        assert quote_identifier("we`ird") == "`we``ird`"

    def test_quote_string(self):
        assert quote_string("it's") == "'it\\'s'"
