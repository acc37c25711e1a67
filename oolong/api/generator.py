"""
Build pipeline.

    [PHASE 1] link the entry module's schema (modules, entities, relations)
    [PHASE 2] MySQL scripts (DDL, foreign keys, stored procedures, data)
    [PHASE 3] data access models and functor stubs

Reverse engineering runs on its own: database -> `.ool` sources.
"""

from pathlib import Path

from oolong.api.config import BuildConfig
from oolong.api.gen_logging import get_logger, log_phase
from oolong.api.generators.dao_generator import DaoGenerator
from oolong.api.generators.mysql import MySQLModeler
from oolong.api.generators.mysql.reverse import MySQLReverseEngineer
from oolong.lib.linker import Linker

logger = get_logger(__name__)


def link_schema(entry_file, config: BuildConfig):
    linker = Linker.from_path(config.source_path, dump_parsed=config.dump_parsed)
    return linker.link(entry_file)


def build(entry_file, config: BuildConfig):
    """Run every phase for `entry_file`. Returns the modeled schema."""
    output_path = Path(config.output_path)

    log_phase(logger, 1, f"Linking {entry_file} ...")
    schema = link_schema(entry_file, config)
    logger.info(
        f"  Schema [{schema.name}]: {len(schema.entities)} entities, "
        f"{len(schema.relations)} relations, {len(schema.views)} views"
    )

    log_phase(logger, 2, "Generating MySQL scripts...")
    modeler = MySQLModeler(output_path, db_name=config.db_name, table_options=config.table_options)
    modeled = modeler.modeling(schema)

    log_phase(logger, 3, "Generating data access models...")
    DaoGenerator(output_path).generate(modeled)

    logger.info(f"Build of schema [{schema.name}] completed: {output_path}")
    return modeled


def reverse(connector, output_path, rules=None, remove_table_prefix: str = None) -> Path:
    logger.info(f'Reverse engineering database "{connector.database}"...')
    engineer = MySQLReverseEngineer(
        connector, output_path, rules=rules, remove_table_prefix=remove_table_prefix
    )
    return engineer.extract()
