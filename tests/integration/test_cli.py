"""
Integration tests for the oolong command line.
"""

import pytest
from click.testing import CliRunner

from oolong.cli.cli import cli

SCHEMA = """
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
"""


@pytest.fixture
def runner(tmp_path, monkeypatch):
    # no oolong.yaml in the working directory
    monkeypatch.chdir(tmp_path)
    return CliRunner()


@pytest.fixture
def entry_file(tmp_path):
    path = tmp_path / "ool" / "shop.ool"
    path.parent.mkdir()
    path.write_text(SCHEMA, encoding="utf-8")
    return path


class TestValidate:

    def test_valid_schema(self, runner, entry_file):
        result = runner.invoke(cli, ["-q", "validate", str(entry_file)])
        assert result.exit_code == 0
        assert "validation success" in result.output

    def test_broken_schema(self, runner, tmp_path):
        path = tmp_path / "broken.ool"
        path.write_text("schema shop { entities [product }\n", encoding="utf-8")

        result = runner.invoke(cli, ["-q", "validate", str(path)])
        assert result.exit_code == 1
        assert "Validation failed" in result.output

    def test_repeated_runs_in_one_process(self, runner, entry_file, tmp_path):
        broken = tmp_path / "broken.ool"
        broken.write_text("schema shop { entities [product }\n", encoding="utf-8")

        for _ in range(2):
            assert runner.invoke(cli, ["-v", "validate", str(entry_file)]).exit_code == 0
        result = runner.invoke(cli, ["validate", str(broken)])

        assert result.exit_code == 1
        assert "Validation failed" in result.output

    def test_inspect(self, runner, entry_file):
        result = runner.invoke(cli, ["-q", "inspect", str(entry_file)])
        assert result.exit_code == 0
        assert "product" in result.output


class TestBuild:

    def test_build(self, runner, entry_file, tmp_path):
        out = tmp_path / "dist"
        result = runner.invoke(cli, ["-q", "build", str(entry_file), "--out", str(out), "--db", "shop_db"])

        assert result.exit_code == 0, result.output
        assert (out / "mysql" / "shop_db" / "entities.sql").is_file()
        assert (out / "mysql" / "shop_db" / "relations.sql").is_file()
        assert (out / "models" / "shop" / "product.py").is_file()
        assert (out / "models" / "shop" / "user.py").is_file()

    def test_build_with_config_file(self, runner, entry_file, tmp_path):
        config = tmp_path / "oolong.yaml"
        config.write_text("sourcePath: ool\noutputPath: generated\nmysql:\n  dbName: from_yaml\n", encoding="utf-8")

        result = runner.invoke(cli, ["-q", "build", str(entry_file), "--config", str(config)])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "generated" / "mysql" / "from_yaml" / "entities.sql").is_file()

    def test_missing_config_file(self, runner, entry_file, tmp_path):
        result = runner.invoke(cli, ["-q", "build", str(entry_file), "--config", str(tmp_path / "none.yaml")])
        assert result.exit_code == 1
        assert "Build failed" in result.output
