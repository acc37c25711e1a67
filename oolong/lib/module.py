"""
Module loader.

A Module is one parsed `.ool` file: its namespace search list plus the raw
declarations extracted from the textX model. The linker later replaces raw
entity/view/document entries with linked nodes in place.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from oolong.api.extractors import extract_module
from oolong.errors import ReferenceNotFoundError
from oolong.language import CORE_DIR, OOL_EXT, build_module

CORE_MODULE_PREFIX = "@oolong/"
WILDCARD = "*"
RECURSIVE_WILDCARD = "**"


@dataclass
class Module:
    id: str
    name: str
    path: Path
    namespace: list = field(default_factory=list)
    entity: dict = field(default_factory=dict)
    type: dict = field(default_factory=dict)
    view: dict = field(default_factory=dict)
    document: dict = field(default_factory=dict)
    relation: list = field(default_factory=list)
    schema: Optional[dict] = None

    def declarations(self, kind: str) -> dict:
        return getattr(self, kind)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "namespace": list(self.namespace),
            "type": self.type,
            "entity": {k: v if isinstance(v, dict) else v.info for k, v in self.entity.items()},
            "relation": self.relation,
            "document": {k: v if isinstance(v, dict) else v.info for k, v in self.document.items()},
            "view": {k: v if isinstance(v, dict) else v.info for k, v in self.view.items()},
            "schema": self.schema,
        }


# ------------------------------------------------------------------------------
# Paths and ids

def _core_dir() -> Path:
    return Path(CORE_DIR).resolve()


def is_core_path(path: Path) -> bool:
    return _core_dir() in Path(path).resolve().parents


def module_id_of(context, path: Path) -> str:
    path = Path(path).resolve()
    if is_core_path(path):
        return CORE_MODULE_PREFIX + path.relative_to(_core_dir()).with_suffix("").as_posix()
    try:
        relative = path.relative_to(context.source_path)
    except ValueError:
        return path.with_suffix("").as_posix()
    return "./" + relative.with_suffix("").as_posix()


def _ool_files(directory: Path, recursive: bool) -> list:
    pattern = "**/*" + OOL_EXT if recursive else "*" + OOL_EXT
    return sorted(p for p in directory.glob(pattern) if p.is_file())


def resolve_namespace(module_path: Path, entries: list) -> list:
    """
    Turn the `use` entries of a module into absolute namespace entries.

    A file entry is an absolute path without extension. A directory entry is
    "<abs dir>/*" and is searched lazily file by file. The core namespace is
    prepended and the module's own directory appended.
    """
    module_path = Path(module_path).resolve()
    current_dir = module_path.parent
    namespace = []

    if not is_core_path(module_path):
        namespace.append(str(_core_dir() / "types"))

    for entry in entries:
        if entry.endswith("/" + RECURSIVE_WILDCARD) or entry.endswith("/" + WILDCARD):
            base, _sep, marker = entry.rpartition("/")
            directory = (current_dir / base).resolve()
            if not directory.is_dir():
                raise ReferenceNotFoundError(f'Namespace "{entry}" of "{module_path}" not found.')
            for file in _ool_files(directory, marker == RECURSIVE_WILDCARD):
                if file != module_path:
                    namespace.append(str(file.with_suffix("")))
            continue

        if entry.endswith(OOL_EXT):
            entry = entry[:-len(OOL_EXT)]

        target = (current_dir / entry).resolve()
        if target.with_name(target.name + OOL_EXT).is_file():
            namespace.append(str(target))
        elif target.is_dir():
            namespace.append(str(target / WILDCARD))
        else:
            raise ReferenceNotFoundError(f'Namespace "{entry}" of "{module_path}" not found.')

    self_dir = str(current_dir / WILDCARD)
    if self_dir not in namespace:
        namespace.append(self_dir)

    return namespace


def namespace_candidates(entry: str, exclude: Path = None) -> list:
    """Source files an absolute namespace entry stands for."""
    if entry.endswith("/" + WILDCARD):
        return [f for f in _ool_files(Path(entry[:-2]), False) if f != exclude]
    return [Path(entry + OOL_EXT)]


# ------------------------------------------------------------------------------
# Loading

def load_module(context, path) -> Module:
    """Parse one source file, or return it from the context cache."""
    path = Path(path)
    if not path.is_absolute():
        path = context.source_path / path
    if path.suffix != OOL_EXT:
        path = path.with_name(path.name + OOL_EXT)
    path = path.resolve()

    cached = context.modules.get(path)
    if cached is not None:
        return cached

    if not path.is_file():
        raise ReferenceNotFoundError(f'Module "{path}" not found.')

    context.logger.debug(f"Compiling {path} ...")
    raw = extract_module(build_module(str(path)))

    module = Module(
        id=module_id_of(context, path),
        name=path.stem,
        path=path,
        namespace=resolve_namespace(path, raw["namespace"]),
        entity=raw["entity"],
        type=raw["type"],
        view=raw["view"],
        document=raw["document"],
        relation=raw["relation"],
        schema=raw["schema"],
    )
    context.modules[path] = module

    if context.dump_parsed:
        dump_module(module)

    return module


def dump_module(module: Module) -> Path:
    """Write the extracted declarations beside the source as <name>.ool.json."""
    target = module.path.with_name(module.path.name + ".json")
    target.write_text(json.dumps(module.to_dict(), indent=4, default=str), encoding="utf-8")
    return target
