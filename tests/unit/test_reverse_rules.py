"""
Unit tests for table naming and column conversion rules of reverse engineering.
"""

from oolong.api.generators.mysql.rules import (
    DEFAULT_COLUMN_RULES,
    ReverseRule,
    find_column_rule,
    remove_table_name_prefix,
)


class TestTableNaming:

    def test_plain_table(self):
        assert remove_table_name_prefix("user_profile") == "userProfile"

    def test_prefix_is_removed(self):
        assert remove_table_name_prefix("t_user_group", "t") == "userGroup"
        assert remove_table_name_prefix("t_user_group", "t_") == "userGroup"

    def test_other_prefix_is_kept(self):
        assert remove_table_name_prefix("app_user", "t") == "appUser"


class TestColumnRules:

    def test_time_suffix_int_becomes_datetime(self, column):
        col = column("login_time", "int(11) unsigned", data_type="int")
        rule = find_column_rule(DEFAULT_COLUMN_RULES, "user", col)
        assert rule is not None
        assert rule.apply("user", col) == {"type": "datetime"}

    def test_url_suffix_becomes_url(self, column):
        col = column("avatar_url", "varchar(255)", max_length=255)
        assert find_column_rule(DEFAULT_COLUMN_RULES, "user", col).apply("user", col) == {"type": "url"}

    def test_no_rule(self, column):
        col = column("login_time", "datetime")
        assert find_column_rule(DEFAULT_COLUMN_RULES, "user", col) is None

    def test_first_matching_rule_wins(self, column):
        rules = [
            ReverseRule("a", lambda table, col: True, lambda table, col: {"type": "text"}),
            ReverseRule("b", lambda table, col: True, lambda table, col: {"type": "int"}),
        ]
        assert find_column_rule(rules, "t", column("x", "int")).desc == "a"
