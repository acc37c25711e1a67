"""
Reference resolver of the Oolong language.

The linker loads the entry module, links its schema and resolves every entity,
view, document and type reference through the namespace chain of the module
the reference appears in:

    local declarations -> namespace entries, last to first

Resolved nodes are linked once, written back into their owning module and
memoized in the CompilationContext by "name@moduleId".
"""

import copy
from pathlib import Path

from oolong.errors import DuplicateDefinitionError, ReferenceNotFoundError, UsageError
from oolong.lib.context import (
    DOCUMENT_PREFIX,
    ENTITY_PREFIX,
    TYPE_PREFIX,
    VIEW_PREFIX,
    CompilationContext,
)
from oolong.lib.document import Document
from oolong.lib.entity import Entity
from oolong.lib.module import load_module, namespace_candidates
from oolong.lib.relations import RelationExpander
from oolong.lib.schema import Schema
from oolong.lib.types import is_builtin_type
from oolong.lib.view import View

_ELEMENT_KINDS = {
    ENTITY_PREFIX: ("entity", "Entity", Entity),
    VIEW_PREFIX: ("view", "View", View),
    DOCUMENT_PREFIX: ("document", "Document", Document),
    TYPE_PREFIX: ("type", "Type", None),
}


class Linker:

    def __init__(self, context: CompilationContext):
        self.context = context
        self.logger = context.logger
        self.schemas = {}
        self._resolving_types = set()

    @classmethod
    def from_path(cls, source_path, **kwargs) -> "Linker":
        return cls(CompilationContext(Path(source_path), **kwargs))

    # ------------------------------------------------------------------------------
    # Entry

    def link(self, entry_file) -> Schema:
        """Link the schema declared in `entry_file` and expand its relations."""
        module = self.load_module(entry_file)

        if not module.schema:
            raise UsageError(f'No schema defined in entry file "{entry_file}".')

        name = module.schema["name"]
        if name in self.schemas:
            raise DuplicateDefinitionError(f'Duplicate schema: "{name}".')

        self.logger.debug(f"Linking schema [{name}] ...")
        schema = Schema(self, name, module, module.schema).link()
        self.schemas[name] = schema

        RelationExpander(self, schema).expand()
        return schema

    def load_module(self, path):
        return load_module(self.context, path)

    # ------------------------------------------------------------------------------
    # Element loading

    def load_entity(self, module, name: str) -> Entity:
        return self._load_element(module, ENTITY_PREFIX, name)

    def load_view(self, module, name: str) -> View:
        return self._load_element(module, VIEW_PREFIX, name)

    def load_document(self, module, name: str) -> Document:
        return self._load_element(module, DOCUMENT_PREFIX, name)

    def load_type(self, module, name: str) -> dict:
        return self._load_element(module, TYPE_PREFIX, name)

    def find_owner(self, module, kind: str, name: str):
        """The module declaring `name`, searched from `module` outwards."""
        if name in module.declarations(kind):
            return module

        self.logger.debug(f'Searching {kind} "{name}" from "{module.id}" ...')
        for entry in reversed(module.namespace):
            for candidate in reversed(namespace_candidates(entry, exclude=module.path)):
                target = self.load_module(candidate)
                if name in target.declarations(kind):
                    return target

        return None

    def _load_element(self, module, prefix: str, name: str):
        kind, label, factory = _ELEMENT_KINDS[prefix]

        owner = self.find_owner(module, kind, name)
        if owner is None:
            raise ReferenceNotFoundError(f'{label} reference "{name}" in "{module.id}" not found.')

        cache = self.context.cache_for(prefix)
        self_id = f"{name}@{owner.id}"
        if self_id in cache:
            return cache[self_id]

        self.context.claim_name(prefix, name, owner.id)
        self.logger.debug(f'Found {kind} "{name}" in "{owner.id}". [OK]')

        declarations = owner.declarations(kind)

        if factory is None:
            element = self._resolve_type(owner, name, declarations[name])
            cache[self_id] = element
            return element

        element = factory(self, name, owner, declarations[name])
        cache[self_id] = element
        declarations[name] = element
        element.link()
        return element

    # ------------------------------------------------------------------------------
    # Types

    def _resolve_type(self, owner, name: str, info: dict) -> dict:
        key = f"{name}@{owner.id}"
        if key in self._resolving_types:
            raise UsageError(f'Circular type definition of "{name}" in "{owner.id}".')

        self._resolving_types.add(key)
        try:
            resolved = self.track_back_type(owner, info)
        finally:
            self._resolving_types.discard(key)

        owner.type[name] = resolved
        return resolved

    def track_back_type(self, module, info: dict) -> dict:
        """
        Resolve a derived type down to its builtin primitive.

        Attributes are merged base first, so the derived declaration wins, and
        `subClass` lists every derived type name traversed.
        """
        if is_builtin_type(info["type"]):
            return copy.deepcopy(info)

        base = self.load_type(module, info["type"])
        derived = copy.deepcopy(base)
        derived.update(copy.deepcopy({k: v for k, v in info.items() if k != "type"}))
        derived["subClass"] = [*base.get("subClass", []), info["type"]]
        return derived
