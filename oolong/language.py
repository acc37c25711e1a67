"""
textX entry points of the Oolong language.

The grammar lives in grammar/oolong.tx. Per-rule checks are registered from
the processors/ package and module-wide checks from validation/, so whatever
`build_module` returns has already passed both.
"""

from functools import lru_cache
from pathlib import Path

from textx import TextXSemanticError, TextXSyntaxError, metamodel_from_file

from oolong.errors import ParseError
from oolong.processors import get_obj_processors
from oolong.validation import module_processor

PACKAGE_DIR = Path(__file__).resolve().parent
GRAMMAR_FILE = PACKAGE_DIR / "grammar" / "oolong.tx"
CORE_DIR = PACKAGE_DIR / "core"
OOL_EXT = ".ool"


def get_metamodel(debug: bool = False):
    """Fresh metamodel with the Oolong object and model processors attached."""
    metamodel = metamodel_from_file(
        str(GRAMMAR_FILE),
        autokwd=True,
        auto_init_attributes=True,
        debug=debug,
    )
    metamodel.register_obj_processors(get_obj_processors())
    metamodel.register_model_processor(module_processor)
    return metamodel


@lru_cache(maxsize=1)
def _cached_metamodel():
    return get_metamodel()


def build_module(module_path):
    """Parse one .ool file."""
    try:
        return _cached_metamodel().model_from_file(str(module_path))
    except (TextXSyntaxError, TextXSemanticError) as err:
        raise _wrap(module_path, err) from err


def build_module_str(source: str, source_name: str = "<string>"):
    try:
        return _cached_metamodel().model_from_str(source)
    except (TextXSyntaxError, TextXSemanticError) as err:
        raise _wrap(source_name, err) from err


def _wrap(source_name, err) -> ParseError:
    detail = getattr(err, "message", None) or str(err)
    if isinstance(detail, bytes):
        detail = detail.decode("utf-8", errors="replace")
    return ParseError(
        f'Failed to compile "{source_name}".\n{detail}',
        line=getattr(err, "line", None),
        col=getattr(err, "col", None),
        filename=str(source_name),
    )
