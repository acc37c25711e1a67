"""
Linked schema: the entities, relations, views and document hierarchies that
one compilation run generates artifacts for.
"""

import copy

from oolong.errors import NamingConflictError, ReferenceNotFoundError
from oolong.utils import normalize_display_name


class Schema:

    def __init__(self, linker, name: str, module, info: dict):
        self.linker = linker
        self.name = name
        self.module = module
        self.info = info

        self.comment = info.get("comment")
        self.display_name = self.comment or normalize_display_name(name)

        self.entities = {}
        self.relations = []
        self.views = {}
        self.documents = {}
        # right entity name -> names of the entities referencing it
        self.referenced_by = {}

        self.linked = False

    def __repr__(self):
        return f"Schema({self.name!r})"

    def link(self):
        if self.linked:
            return self

        for entity_name in self.info.get("entities") or []:
            self.add_entity(self.linker.load_entity(self.module, entity_name))

        for view_name in self.info.get("views") or []:
            self.add_view(self.linker.load_view(self.module, view_name))

        self.linked = True
        return self

    # ------------------------------------------------------------------------------
    # Entities and relations

    def has_entity(self, name: str) -> bool:
        return name in self.entities

    def add_entity(self, entity):
        if self.has_entity(entity.name):
            raise NamingConflictError(f"Entity name [{entity.name}] conflicts in schema [{self.name}].")
        self.entities[entity.name] = entity
        return self

    def add_relation(self, relation, left=None, right=None):
        """Record a relation, adding either endpoint entity when missing."""
        if left is not None and not self.has_entity(relation.left):
            self.add_entity(left)
        if right is not None and not self.has_entity(relation.right):
            self.add_entity(right)

        self.relations.append(relation)
        self.referenced_by.setdefault(relation.right, [])
        if relation.left not in self.referenced_by[relation.right]:
            self.referenced_by[relation.right].append(relation.left)
        return self

    def get_referenced_entity(self, name: str):
        entity = self.entities.get(name)
        if entity is None:
            raise ReferenceNotFoundError(f'Entity "{name}" not exists in schema "{self.name}".')
        return entity

    # ------------------------------------------------------------------------------
    # Views and documents

    def has_view(self, name: str) -> bool:
        return name in self.views

    def add_view(self, view):
        if self.has_view(view.name):
            raise NamingConflictError(f"View name [{view.name}] conflicts in schema [{self.name}].")
        self.views[view.name] = view
        return self

    def get_document_hierarchy(self, document) -> dict:
        """Join tree of a document, built once per schema."""
        if document.key not in self.documents:
            self.documents[document.key] = document.build_hierarchy(self)
        return self.documents[document.key]

    # ------------------------------------------------------------------------------

    def clone(self) -> "Schema":
        """
        Copy for a generation pass. Entities and views are cloned with one
        shared visited map, so the modeler can add fields and indexes freely.
        """
        schema = Schema(self.linker, self.name, self.module, self.info)
        visited = {}
        schema.entities = {name: entity.clone(visited) for name, entity in self.entities.items()}
        schema.relations = copy.copy(self.relations)
        schema.views = {name: view.clone() for name, view in self.views.items()}
        schema.referenced_by = copy.deepcopy(self.referenced_by)
        schema.linked = self.linked
        return schema

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "displayName": self.display_name,
            "comment": self.comment,
            "entities": {name: entity.to_dict() for name, entity in self.entities.items()},
            "relations": [relation.to_dict() for relation in self.relations],
            "referencedBy": copy.deepcopy(self.referenced_by),
            "documents": copy.deepcopy(self.documents),
            "views": {name: view.to_dict() for name, view in self.views.items()},
        }
