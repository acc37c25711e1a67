"""
Unit tests for condition dicts turned into SQL with bind parameters.
"""

import pytest

from oolong.errors import ModelUsageError
from oolong.lib.runtime import ConditionBuilder, escape_id


@pytest.fixture
def builder():
    return ConditionBuilder()


class TestConditionBuilder:

    def test_plain_fields_are_anded(self, builder):
        sql = builder.build({"a": 1, "b": None})
        assert sql == "`a` = :p0 AND `b` IS NULL"
        assert builder.params == {"p0": 1}

    def test_list_means_or(self, builder):
        sql = builder.build([{"a": 1}, {"b": 2}])
        assert sql == "(`a` = :p0) OR (`b` = :p1)"

    def test_or_key(self, builder):
        sql = builder.build({"$or": [{"a": 1}, {"b": 2}], "c": 3})
        assert sql == "((`a` = :p0) OR (`b` = :p1)) AND `c` = :p2"

    def test_and_key(self, builder):
        assert builder.build({"$and": [{"a": 1}, {"b": 2}]}) == "((`a` = :p0) AND (`b` = :p1))"

    def test_not(self, builder):
        assert builder.build({"$not": {"a": 1}}) == "NOT (`a` = :p0)"

    def test_comparison_operators(self, builder):
        sql = builder.build({"age": {"$gte": 18, "$lt": 65}})
        assert sql == "`age` >= :p0 AND `age` < :p1"
        assert builder.params == {"p0": 18, "p1": 65}

    def test_not_equal(self, builder):
        assert builder.build({"a": {"$ne": None}}) == "`a` IS NOT NULL"
        assert builder.build({"b": {"$ne": 2}}) == "`b` <> :p0"

    def test_in_and_not_in(self, builder):
        assert builder.build({"a": {"$in": [1, 2]}}) == "`a` IN (:p0, :p1)"
        assert builder.build({"b": {"$nin": [3]}}) == "`b` NOT IN (:p2)"

    def test_in_requires_a_list(self, builder):
        with pytest.raises(ModelUsageError):
            builder.build({"a": {"$in": 1}})

    def test_unknown_operator(self, builder):
        with pytest.raises(ModelUsageError, match="Unsupported condition operator"):
            builder.build({"a": {"$like": "x%"}})


def test_escape_id():
    assert escape_id("order") == "`order`"
