"""
Unit tests for the YAML build configuration.
"""

from pathlib import Path

import pytest

from oolong.api.config import BuildConfig, load_config
from oolong.errors import UsageError


class TestLoadConfig:

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = load_config()
        assert config.output_path == Path("build")
        assert config.db_name is None
        assert config.dump_parsed is False

    def test_reads_yaml(self, tmp_path):
        path = tmp_path / "oolong.yaml"
        path.write_text(
            "sourcePath: ool\n"
            "outputPath: out\n"
            "dumpParsed: true\n"
            "mysql:\n"
            "  dbName: shop_db\n"
            "  tableOptions:\n"
            "    ENGINE: InnoDB\n",
            encoding="utf-8",
        )
        config = load_config(path)

        assert config.source_path == tmp_path.resolve() / "ool"
        assert config.output_path == tmp_path.resolve() / "out"
        assert config.db_name == "shop_db"
        assert config.table_options == {"ENGINE": "InnoDB"}
        assert config.dump_parsed is True

    def test_working_directory_file_is_picked_up(self, tmp_path, monkeypatch):
        (tmp_path / "oolong.yaml").write_text("mysql:\n  dbName: found\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        assert load_config().db_name == "found"

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(UsageError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("mysql: [unclosed\n", encoding="utf-8")
        with pytest.raises(UsageError, match="Invalid YAML"):
            load_config(path)

    def test_mysql_section_must_be_a_mapping(self):
        with pytest.raises(UsageError, match="Invalid build configuration"):
            BuildConfig.from_dict({"mysql": ["x"]})

    def test_values_are_type_checked(self, tmp_path):
        path = tmp_path / "oolong.yaml"
        path.write_text("dumpParsed: sometimes\n", encoding="utf-8")
        with pytest.raises(UsageError, match="dumpParsed"):
            load_config(path)

    def test_document_must_be_a_mapping(self, tmp_path):
        path = tmp_path / "oolong.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(UsageError, match="Invalid build configuration"):
            load_config(path)


class TestOverride:

    def test_given_options_win(self):
        config = BuildConfig(mysql={"dbName": "from_file"}).override(db_name="from_cli", output_path="dist")
        assert config.db_name == "from_cli"
        assert config.output_path == Path("dist")

    def test_missing_options_are_ignored(self):
        config = BuildConfig(mysql={"dbName": "from_file"}).override(db_name=None, dump_parsed=None)
        assert config.db_name == "from_file"
        assert config.dump_parsed is False

    def test_mysql_options_are_routed(self):
        config = BuildConfig().override(db_name="shop", table_options={"ENGINE": "InnoDB"})
        assert config.mysql.db_name == "shop"
        assert config.table_options == {"ENGINE": "InnoDB"}

    def test_invalid_option_value(self):
        with pytest.raises(UsageError, match="Invalid build option"):
            BuildConfig().override(dump_parsed="sometimes")
