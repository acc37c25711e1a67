"""
Data access module generation.

For a modeled schema, writes one Python module per entity and view under
`<output>/models/<schema>/` plus a package `__init__.py` listing them. User
functors referenced by fields get a stub module in `validators/`,
`modifiers/` or `composers/` the first time they are seen; existing stubs are
never overwritten.
"""

import pprint
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from oolong.api.gen_logging import get_logger, log_written
from oolong.api.generators.mysql.modeler import view_procedure_name
from oolong.lib.compiler import FunctorTable, compile_entity_fields, compile_interface, compile_view_params
from oolong.utils import pascal_case, snake_case

logger = get_logger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent.parent / "templates" / "dao"

FUNCTOR_DIRS = ("validators", "modifiers", "composers")


def _env(templates_dir: Path) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(templates_dir)),
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )


def _format_meta(meta: dict) -> str:
    return pprint.pformat(meta, indent=1, width=100, sort_dicts=False)


def _body(source: str) -> str:
    return source if source.strip() else "pass"


def unique_keys(entity) -> list:
    keys = [entity.key_fields]
    keys.extend(index["fields"] for index in entity.indexes if index["unique"])
    return keys


def entity_meta(schema_name: str, entity, interfaces: dict) -> dict:
    return {
        "schemaName": schema_name,
        "name": entity.name,
        "keyField": entity.key,
        "fields": {name: field.to_dict(with_functors=False) for name, field in entity.fields.items()},
        "features": entity.features,
        "uniqueKeys": unique_keys(entity),
        "interfaces": interfaces,
    }


class DaoGenerator:

    def __init__(self, output_path, templates_dir: Path = TEMPLATES_DIR):
        self.output_path = Path(output_path)
        self.env = _env(templates_dir)
        self.functors = FunctorTable()

    def generate(self, schema) -> Path:
        """Generate the models of `schema` (already modeled for the database)."""
        package_dir = self.output_path / "models" / schema.name
        package_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f'Generating data access models for schema "{schema.name}"...')

        entities = [self._generate_entity(package_dir, schema, entity) for entity in schema.entities.values()]
        views = [self._generate_view(package_dir, schema, view) for view in schema.views.values()]

        self._write(package_dir / "__init__.py", self.env.get_template("package_init.py.jinja").render(
            schema_name=schema.name,
            entities=entities,
            views=views,
        ), package_dir)

        self._generate_functor_stubs(package_dir)
        return package_dir

    # ------------------------------------------------------------------------------

    def _generate_entity(self, package_dir: Path, schema, entity) -> dict:
        logger.debug(f'Building data access model for entity "{entity.name}"...')

        body = compile_entity_fields(entity, self.functors, logger)
        imports = list(body.imports)

        methods = []
        interfaces_meta = {}
        for name, method in entity.interfaces.items():
            compiled = compile_interface(entity, name, method, self.functors, logger)
            imports.extend(line for line in compiled.imports if line not in imports)
            interfaces_meta[name] = {"params": compiled.param_meta}
            methods.append({"name": name, "params": compiled.params, "body": _body(compiled.source)})

        model = {
            "name": entity.name,
            "module": snake_case(entity.name),
            "class_name": pascal_case(entity.name),
        }
        rendered = self.env.get_template("entity.py.jinja").render(
            schema_name=schema.name,
            entity_name=entity.name,
            class_name=model["class_name"],
            meta=_format_meta(entity_meta(schema.name, entity, interfaces_meta)),
            imports=imports,
            body=_body(body.source),
            interfaces=methods,
        )
        self._write(package_dir / f"{model['module']}.py", rendered, package_dir)
        return model

    def _generate_view(self, package_dir: Path, schema, view) -> dict:
        logger.debug(f'Building data access model for view "{view.name}"...')
        view.infer_type_info(schema)

        compiled = compile_view_params(view, self.functors, logger)
        procedure = view_procedure_name(view.name)
        model = {
            "name": view.name,
            "module": snake_case(view.name) + "_view",
            "class_name": pascal_case(view.name) + "View",
        }
        meta = {
            "name": view.name,
            "procedure": procedure,
            "isList": view.is_list,
            "params": compiled.param_meta,
        }
        rendered = self.env.get_template("view.py.jinja").render(
            schema_name=schema.name,
            view_name=view.name,
            procedure=procedure,
            class_name=model["class_name"],
            meta=_format_meta(meta),
            imports=compiled.imports,
            params=compiled.params,
            body=_body(compiled.source),
        )
        self._write(package_dir / f"{model['module']}.py", rendered, package_dir)
        return model

    def _generate_functor_stubs(self, package_dir: Path):
        for directory in FUNCTOR_DIRS:
            init = package_dir / directory / "__init__.py"
            if not init.exists():
                self._write(init, "", package_dir)

        template = self.env.get_template("functor.py.jinja")
        for stub in self.functors.new_functor_files:
            target = package_dir / stub.file
            if target.exists():
                logger.info(
                    f'{stub.kind.value.capitalize()} "{stub.file}" exists. File generating skipped.'
                )
                continue
            self._write(target, template.render(
                kind=stub.kind.value,
                function_name=stub.function_name,
                params=stub.params,
            ), package_dir)

    @staticmethod
    def _write(path: Path, content: str, base_dir: Path):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        log_written(logger, path, base_dir)
