"""
Per-run compilation state.

Every cache the loader and the linker fill lives on one CompilationContext, so
two compilations never share modules, linked nodes or claimed names.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from oolong.api.gen_logging import get_logger
from oolong.errors import NamingConflictError

# Kind prefixes of the naming table
ENTITY_PREFIX = "E$"
VIEW_PREFIX = "V$"
DOCUMENT_PREFIX = "D$"
TYPE_PREFIX = "T$"

_KIND_LABELS = {
    ENTITY_PREFIX: "Entity",
    VIEW_PREFIX: "View",
    DOCUMENT_PREFIX: "Document",
    TYPE_PREFIX: "Type",
}


@dataclass
class CompilationContext:
    source_path: Path
    logger: logging.Logger = field(default_factory=lambda: get_logger("oolong.gen.linker"))
    dump_parsed: bool = False

    # canonical file path -> Module
    modules: dict = field(default_factory=dict)

    # "name@moduleId" -> linked node
    entities: dict = field(default_factory=dict)
    views: dict = field(default_factory=dict)
    documents: dict = field(default_factory=dict)
    types: dict = field(default_factory=dict)

    # "E$name" -> id of the module that owns the name
    naming_table: dict = field(default_factory=dict)

    def __post_init__(self):
        self.source_path = Path(self.source_path).resolve()

    def claim_name(self, prefix: str, name: str, module_id: str):
        key = prefix + name
        owner = self.naming_table.get(key)
        if owner is None:
            self.naming_table[key] = module_id
            return
        if owner != module_id:
            raise NamingConflictError(
                f'{_KIND_LABELS[prefix]} "{name}" from "{module_id}" conflicts with the same naming in "{owner}"!'
            )

    def cache_for(self, prefix: str) -> dict:
        return {
            ENTITY_PREFIX: self.entities,
            VIEW_PREFIX: self.views,
            DOCUMENT_PREFIX: self.documents,
            TYPE_PREFIX: self.types,
        }[prefix]
