"""
Naming helpers and debug printing shared across Oolong.
"""

import json
import re

from pluralizer import Pluralizer

_WORD_PATTERN = re.compile(r"[A-Z]{2,}(?=[A-Z][a-z]+[0-9]*|\b|[^A-Za-z])|[A-Z]?[a-z]+[0-9]*|[A-Z]+[0-9]*|[0-9]+")
_pluralizer = Pluralizer()


# ------------------------------------------------------------------------------
# Case conversion

def split_words(name: str) -> list[str]:
    """Split an identifier into words on case boundaries, digits and separators."""
    return _WORD_PATTERN.findall(str(name))


def camel_case(name: str) -> str:
    """
    Convert any identifier to camelCase.

    Examples:
        >>> camel_case("created_at")
        'createdAt'
        >>> camel_case("userID")
        'userId'
    """
    words = split_words(name)
    if not words:
        return ""
    head, *rest = words
    return head.lower() + "".join(w[:1].upper() + w[1:].lower() for w in rest)


def pascal_case(name: str) -> str:
    return upper_first(camel_case(name))


def snake_case(name: str) -> str:
    return "_".join(w.lower() for w in split_words(name))


def upper_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def normalize_display_name(name: str) -> str:
    """Human readable label derived from a field name, e.g. 'createdAt' -> 'Created At'."""
    return " ".join(w[:1].upper() + w[1:] for w in split_words(name))


def pluralize(word: str) -> str:
    """
    Convert a singular English word to its plural form.

    CamelCase words only have their last word pluralized
    (e.g. 'userGroup' -> 'userGroups').
    """
    if not word:
        return word

    camel_match = re.match(r"^(.+?)([A-Z][a-z]+)$", word)
    if camel_match:
        prefix, last_word = camel_match.groups()
        return prefix + _pluralizer.pluralize(last_word)
    return _pluralizer.pluralize(word)


def number_to_letter(num: int) -> str:
    """Encode a zero-based counter as letters: 0 -> 'A', 25 -> 'Z', 26 -> 'AA'."""
    letters = ""
    num += 1
    while num > 0:
        num, rem = divmod(num - 1, 26)
        letters = chr(65 + rem) + letters
    return letters


# ------------------------------------------------------------------------------
# SQL quoting

def quote_identifier(name: str) -> str:
    return "`" + str(name).replace("`", "``") + "`"


def quote_string(value: str) -> str:
    escaped = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


# ------------------------------------------------------------------------------
# Debug printing

def print_schema_debug(schema):
    """Print a readable summary of a linked schema (entities, relations, views)."""
    print(f"Schema: {schema.name}")

    print("\nEntities:")
    for name, entity in schema.entities.items():
        marker = " (relationship)" if entity.is_relationship_entity else ""
        print(f"  - {name}{marker} key={entity.key}")
        for field_name, field in entity.fields.items():
            flags = [flag for flag in ("optional", "readOnly", "auto") if field.get(flag)]
            flag_str = f" [{', '.join(flags)}]" if flags else ""
            print(f"      {field_name}: {field.type}{flag_str}")
        if entity.features:
            print(f"      features: {json.dumps(entity.features, default=str)}")

    print("\nRelations:")
    if not schema.relations:
        print("  (none)")
    for relation in schema.relations:
        print(f"  - {relation.left} ({relation.left_field}) {relation.relationship} {relation.right}")

    if schema.views:
        print("\nViews:")
        for name in schema.views:
            print(f"  - {name}")
