"""
Documents: an entity joined with related entities or documents.

The hierarchy a document builds is a nested dict used by the SQL generator:

    {
        "name": "orderDetail",
        "entity": "order",
        "subDocuments": {
            "customer": {"entity": "customer", "linkWithField": "id", "subDocuments": {}},
        },
    }

Each key of "subDocuments" is a field of the parent node that is joined to
"linkWithField" of the child node's entity.
"""

import copy

from oolong.errors import ReferenceNotFoundError, UsageError


class Document:

    def __init__(self, linker, name: str, module, info: dict, anonymous: bool = False):
        self.linker = linker
        self.name = name
        self.module = module
        self.info = info
        self.anonymous = anonymous

        self.entity = None
        self.base = None
        self.joins = []
        self.linked = False

    @classmethod
    def of_entity(cls, linker, module, entity_name: str) -> "Document":
        """Document made of one entity without joins (view over an entity)."""
        document = cls(linker, entity_name, module, {"name": entity_name, "entity": entity_name, "joinWith": []},
                       anonymous=True)
        return document.link()

    @property
    def key(self) -> str:
        return ("entity:" if self.anonymous else "document:") + self.name

    def link(self):
        if self.linked:
            return self

        if self.info.get("document"):
            self.base = self.linker.load_document(self.module, self.info["document"])
            self.entity = self.base.entity
        elif self.info.get("entity"):
            self.entity = self.linker.load_entity(self.module, self.info["entity"])
        else:
            raise UsageError(f'Document "{self.name}" has no main entity.')

        for join in self.info.get("joinWith") or []:
            if join.get("entity"):
                target = self.linker.load_entity(self.module, join["entity"])
            else:
                target = self.linker.load_document(self.module, join["document"])
            self.joins.append({"target": target, "on": dict(join["on"])})

        self.linked = True
        return self

    # ------------------------------------------------------------------------------

    def build_hierarchy(self, schema) -> dict:
        if self.base is not None:
            hierarchy = copy.deepcopy(schema.get_document_hierarchy(self.base))
            hierarchy["name"] = self.name
        else:
            schema.get_referenced_entity(self.entity.name)
            hierarchy = {"name": self.name, "entity": self.entity.name, "subDocuments": {}}

        for join in self.joins:
            node, field_name = self._locate(schema, hierarchy, join["on"]["left"])

            target = join["target"]
            if isinstance(target, Document):
                sub = copy.deepcopy(schema.get_document_hierarchy(target))
            else:
                sub = {"entity": schema.get_referenced_entity(target.name).name, "subDocuments": {}}

            link_with = join["on"]["right"].split(".")[-1]
            joined = schema.get_referenced_entity(sub["entity"])
            if link_with not in joined.fields:
                raise ReferenceNotFoundError(
                    f'Field "{link_with}" joined by document "{self.name}" not found in entity "{joined.name}".'
                )

            sub["linkWithField"] = link_with
            node["subDocuments"][field_name] = sub

        return hierarchy

    def _locate(self, schema, hierarchy: dict, reference: str):
        """Find the hierarchy node and field a join's left side points to."""
        parts = reference.split(".")
        field_name = parts[-1]
        node = hierarchy
        if len(parts) > 1:
            node = find_node(hierarchy, parts[0])
            if node is None:
                raise ReferenceNotFoundError(
                    f'Entity "{parts[0]}" referenced by document "{self.name}" is not part of the document.'
                )

        entity = schema.get_referenced_entity(node["entity"])
        if field_name not in entity.fields:
            raise ReferenceNotFoundError(
                f'Field "{field_name}" joined by document "{self.name}" not found in entity "{entity.name}".'
            )
        return node, field_name

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "entity": self.entity.name if self.entity else None,
            "base": self.base.name if self.base else None,
            "joins": [
                {"target": join["target"].name, "on": dict(join["on"])} for join in self.joins
            ],
        }


def find_node(hierarchy: dict, name: str):
    """Depth-first search of a node by entity name or by the field joining it."""
    if hierarchy.get("entity") == name:
        return hierarchy
    for field_name, sub in hierarchy.get("subDocuments", {}).items():
        if field_name == name:
            return sub
        found = find_node(sub, name)
        if found is not None:
            return found
    return None
