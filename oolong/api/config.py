"""
Build configuration.

Options come from the command line and, optionally, a YAML build file:

    # oolong.yaml
    sourcePath: ./ool
    outputPath: ./build
    dumpParsed: false
    mysql:
      dbName: shop
      tableOptions:
        ENGINE: InnoDB
        DEFAULT CHARSET: utf8mb4

Relative paths in the file are relative to the file's directory. Command line
values win over the file.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from oolong.errors import UsageError

DEFAULT_CONFIG_FILE = "oolong.yaml"


class MySQLOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True, extra="ignore")

    db_name: Optional[str] = Field(None, alias="dbName")
    table_options: Dict[str, Any] = Field(default_factory=dict, alias="tableOptions")


class BuildConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True, extra="ignore")

    source_path: Path = Field(Path("."), alias="sourcePath")
    output_path: Path = Field(Path("build"), alias="outputPath")
    dump_parsed: bool = Field(False, alias="dumpParsed")
    mysql: MySQLOptions = Field(default_factory=MySQLOptions)

    @property
    def db_name(self) -> Optional[str]:
        return self.mysql.db_name

    @property
    def table_options(self) -> dict:
        return self.mysql.table_options

    @classmethod
    def from_dict(cls, data, base_dir: Path = Path(".")) -> "BuildConfig":
        """Validate a build file document; relative paths are taken from `base_dir`."""
        try:
            config = cls.model_validate(data)
        except ValidationError as e:
            raise UsageError(f"Invalid build configuration: {e}") from e

        for key in ("source_path", "output_path"):
            if key in config.model_fields_set:
                setattr(config, key, base_dir / getattr(config, key))
        return config

    def override(self, **options) -> "BuildConfig":
        """Apply command line options that were given (None means not given)."""
        try:
            for key, value in options.items():
                if value is None:
                    continue
                target = self.mysql if key in MySQLOptions.model_fields else self
                setattr(target, key, value)
        except ValidationError as e:
            raise UsageError(f"Invalid build option: {e}") from e
        return self


def load_config(path=None) -> BuildConfig:
    """
    Read a build file. Without `path`, `oolong.yaml` of the working directory
    is used when it exists, else the defaults.
    """
    if path is None:
        path = Path(DEFAULT_CONFIG_FILE)
        if not path.is_file():
            return BuildConfig()

    path = Path(path)
    if not path.is_file():
        raise UsageError(f'Config file "{path}" not found.')

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise UsageError(f'Invalid YAML in "{path}": {e}') from e

    return BuildConfig.from_dict(data, path.resolve().parent)
