from datetime import date
from pathlib import Path

import click
from rich import pretty
from rich.console import Console
from rich.markup import escape

from oolong.api.config import load_config
from oolong.api.gen_logging import configure_gen_logging
from oolong.api.generator import build, link_schema, reverse
from oolong.errors import OolongError
from oolong.lib.runtime import MySQLConnector
from oolong.utils import print_schema_debug

pretty.install()
console = Console()


def _today() -> str:
    return date.today().strftime('%Y-%m-%d')


def _config(config_path, entry_file, **options):
    """Build file values overridden by the given options; sources default to the entry's directory."""
    config = load_config(config_path)
    if options.get("source_path") is None and config_path is None:
        options["source_path"] = str(Path(entry_file).resolve().parent)
    return config.override(**options)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log every module loaded and file written.")
@click.option("-q", "--quiet", is_flag=True, help="Only log warnings and errors.")
@click.pass_context
def cli(context, verbose, quiet):
    context.ensure_object(dict)
    configure_gen_logging(verbose=verbose, quiet=quiet)


@cli.command("validate", help="Parse and link a schema entry file.")
@click.pass_context
@click.argument("entry_file")
@click.option("--config", "config_path", default=None, help="YAML build file (default: ./oolong.yaml if present).")
def validate(context, entry_file, config_path):
    try:
        config = _config(config_path, entry_file)
        schema = link_schema(Path(entry_file).resolve(), config)
        console.print(f"[{_today()}] " + escape(f"Schema [{schema.name}] validation success!"), style='green')
    except OolongError as e:
        console.print(f"[{_today()}] " + escape(f"Validation failed with error(s): {e}"), style='red')
        context.exit(1)
    else:
        context.exit(0)


@cli.command("inspect", help="Link a schema and print its entities, relations and views.")
@click.pass_context
@click.argument("entry_file")
@click.option("--config", "config_path", default=None, help="YAML build file (default: ./oolong.yaml if present).")
def inspect_cmd(context, entry_file, config_path):
    try:
        config = _config(config_path, entry_file)
        schema = link_schema(Path(entry_file).resolve(), config)
        console.print(f"[{_today()}] " + escape(f"Schema [{schema.name}] validation success!"), style='green')
        print_schema_debug(schema)
    except OolongError as e:
        console.print(f"[{_today()}] " + escape(f"Inspect failed with error(s): {e}"), style='red')
        context.exit(1)
    else:
        context.exit(0)


@cli.command("build", help="Generate MySQL scripts and data access models.")
@click.pass_context
@click.argument("entry_file")
@click.option("--config", "config_path", default=None, help="YAML build file (default: ./oolong.yaml if present).")
@click.option("--source", "source_path", default=None, help="Source root of the .ool modules.")
@click.option("--out", "output_path", default=None, help="Output directory (default: ./build)")
@click.option("--db", "db_name", default=None, help="Database name (default: the schema name)")
@click.option("--dump-parsed", is_flag=True, default=None, help="Write the extracted declarations of every module as JSON.")
def build_cmd(context, entry_file, config_path, source_path, output_path, db_name, dump_parsed):
    try:
        config = _config(
            config_path,
            entry_file,
            source_path=source_path,
            output_path=output_path,
            db_name=db_name,
            dump_parsed=dump_parsed,
        )
        schema = build(Path(entry_file).resolve(), config)
        out_path = Path(config.output_path).resolve()
        console.print(f"[{_today()}] " + escape(f"Schema [{schema.name}] emitted to: {out_path}"), style="green")
    except OolongError as e:
        console.print(f"[{_today()}] " + escape(f"Build failed with error(s): {e}"), style="red")
        context.exit(1)
    else:
        context.exit(0)


@cli.command("reverse", help="Extract .ool sources from an existing MySQL database.")
@click.pass_context
@click.argument("database_url")
@click.option("--out", "output_path", default="ool", help="Output directory (default: ./ool)")
@click.option("--remove-prefix", "remove_prefix", default=None, help="Table name prefix to drop from entity names.")
def reverse_cmd(context, database_url, output_path, remove_prefix):
    connector = MySQLConnector(database_url)
    try:
        schema_file = reverse(connector, output_path, remove_table_prefix=remove_prefix)
        console.print(f"[{_today()}] " + escape(f"Schema entry extracted to: {schema_file}"), style="green")
    except OolongError as e:
        console.print(f"[{_today()}] " + escape(f"Reverse engineering failed with error(s): {e}"), style="red")
        context.exit(1)
    else:
        context.exit(0)
    finally:
        connector.close()


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
