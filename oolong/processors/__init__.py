"""
Processors module for Oolong.

This module contains textX object processors that run during model
construction to validate individual declarations.
"""

from oolong.processors.object_processors import (
    get_obj_processors,
    type_info_obj_processor,
    field_decl_obj_processor,
    relation_obj_processor,
    index_item_obj_processor,
    feature_decl_obj_processor,
)

__all__ = [
    "get_obj_processors",
    "type_info_obj_processor",
    "field_decl_obj_processor",
    "relation_obj_processor",
    "index_item_obj_processor",
    "feature_decl_obj_processor",
]
