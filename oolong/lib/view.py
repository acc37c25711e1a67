"""
Views: parametrized queries over a document, compiled into stored procedures.
"""

import copy

from oolong.errors import ReferenceNotFoundError
from oolong.lib.document import Document


class View:

    def __init__(self, linker, name: str, module, info: dict):
        self.linker = linker
        self.name = name
        self.module = module
        self.info = info

        self.document = None
        self.is_list = False
        self.params = []
        self.select_by = []
        self.group_by = []
        self.order_by = []
        self.skip = None
        self.limit = None

        self.linked = False
        self.params_inferred = False

    def __repr__(self):
        return f"View({self.name!r})"

    def link(self):
        if self.linked:
            return self

        info = self.info
        if info.get("document"):
            self.document = self.linker.load_document(self.module, info["document"])
        else:
            self.document = Document.of_entity(self.linker, self.module, info["entity"])

        self.is_list = bool(info.get("isList"))
        self.params = copy.deepcopy(info.get("accept") or [])
        self.select_by = copy.deepcopy(info.get("selectBy") or [])
        self.group_by = copy.deepcopy(info.get("groupBy") or [])
        self.order_by = copy.deepcopy(info.get("orderBy") or [])
        self.skip = copy.deepcopy(info.get("skip"))
        self.limit = copy.deepcopy(info.get("limit"))

        self.linked = True
        return self

    def infer_type_info(self, schema):
        """
        Resolve parameter types. A parameter typed `entity.field` takes the
        storage attributes of that field, so it must belong to `schema`.
        """
        if self.params_inferred:
            return self

        inferred = []
        for param in self.params:
            if "." in param["type"]:
                entity_name, field_name = param["type"].split(".", 1)
                if not schema.has_entity(entity_name):
                    raise ReferenceNotFoundError(
                        f'Parameter "{param["name"]}" references to an entity "{entity_name}" '
                        f"which is not belong to the schema."
                    )
                field = schema.entities[entity_name].get_entity_attribute(field_name)
                inferred.append(field.as_param(param["name"]))
            else:
                inferred.append(self.linker.track_back_type(self.module, param))

        self.params = inferred
        self.params_inferred = True
        return self

    def get_document_hierarchy(self, schema) -> dict:
        return schema.get_document_hierarchy(self.document)

    def clone(self) -> "View":
        view = View(self.linker, self.name, self.module, self.info)
        view.document = self.document
        view.is_list = self.is_list
        view.params = copy.deepcopy(self.params)
        view.select_by = copy.deepcopy(self.select_by)
        view.group_by = copy.deepcopy(self.group_by)
        view.order_by = copy.deepcopy(self.order_by)
        view.skip = copy.deepcopy(self.skip)
        view.limit = copy.deepcopy(self.limit)
        view.linked = self.linked
        view.params_inferred = self.params_inferred
        return view

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "document": self.document.to_dict() if self.document else None,
            "isList": self.is_list,
            "params": copy.deepcopy(self.params),
            "selectBy": copy.deepcopy(self.select_by),
            "groupBy": copy.deepcopy(self.group_by),
            "orderBy": copy.deepcopy(self.order_by),
            "skip": self.skip,
            "limit": self.limit,
        }
