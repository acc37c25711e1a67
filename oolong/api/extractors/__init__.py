"""
Extractors turn parsed textX modules into raw declaration data.
"""

from .module_extractor import (
    extract_module,
    entity_to_dict,
    type_info_to_dict,
    to_value,
)

__all__ = [
    "extract_module",
    "entity_to_dict",
    "type_info_to_dict",
    "to_value",
]
