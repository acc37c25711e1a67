"""
Module-wide validation (runs after all objects of one source file are built).
"""

from textx import get_children_of_type, get_location, TextXSemanticError


def _ensure_unique(objs, kind):
    seen = set()
    for obj in objs:
        if obj.name in seen:
            raise TextXSemanticError(
                f"{kind} with name '{obj.name}' already exists.",
                **get_location(obj),
            )
        seen.add(obj.name)


def verify_unique_names(module):
    """Ensure declared names are unique per kind within one module."""
    _ensure_unique(get_children_of_type("TypeDecl", module), "Type")
    _ensure_unique(get_children_of_type("EntityStatement", module), "Entity")
    _ensure_unique(get_children_of_type("DocumentStatement", module), "Document")
    _ensure_unique(get_children_of_type("ViewStatement", module), "View")


def verify_schema(module):
    """A module declares at most one schema, listing each member once."""
    schemas = get_children_of_type("SchemaStatement", module)
    if len(schemas) > 1:
        raise TextXSemanticError(
            "A module can declare only one schema.",
            **get_location(schemas[1]),
        )

    for schema in schemas:
        for item in schema.items:
            names = getattr(item, "entities", None) or getattr(item, "views", None) or []
            duplicated = sorted({n for n in names if names.count(n) > 1})
            if duplicated:
                raise TextXSemanticError(
                    f"Schema '{schema.name}' lists '{duplicated[0]}' more than once.",
                    **get_location(item),
                )


def verify_interfaces(module):
    """Interface names are unique per entity."""
    for entity in get_children_of_type("EntityStatement", module):
        interfaces = [i for i in entity.items if i.__class__.__name__ == "InterfaceDecl"]
        _ensure_unique(interfaces, f"Interface of entity '{entity.name}'")


def module_processor(module, metamodel=None):
    """
    Main module processor - runs after parsing to perform cross-object validation.
    """
    verify_unique_names(module)
    verify_schema(module)
    verify_interfaces(module)
