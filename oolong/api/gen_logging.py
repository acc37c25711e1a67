"""
Logging of the Oolong compiler.

Every module logs through a child of the "oolong.gen" logger:

    from oolong.api.gen_logging import get_logger
    logger = get_logger(__name__)       # "oolong.lib.linker" -> "oolong.gen.linker"

The pipeline writes tagged lines that the CLI shows as they are:

    [PHASE 2] Generating MySQL scripts...
        [OK] mysql/shop/entities.sql
"""

import logging
import sys

_LOGGER_NAME = "oolong.gen"


def get_logger(name: str = None) -> logging.Logger:
    """Child logger named after the last part of `name` (root logger for None)."""
    if name in (None, _LOGGER_NAME):
        return logging.getLogger(_LOGGER_NAME)
    return logging.getLogger(f"{_LOGGER_NAME}.{name.rsplit('.', 1)[-1]}")


def log_phase(logger: logging.Logger, number: int, title: str):
    logger.info(f"[PHASE {number}] {title}")


def log_written(logger: logging.Logger, path, base_dir=None):
    """One debug line per generated file, relative to `base_dir` when given."""
    shown = path.relative_to(base_dir) if base_dir is not None else path
    logger.debug(f"    [OK] {shown}")


def configure_gen_logging(verbose: bool = False, quiet: bool = False) -> None:
    """
    Set the level of the "oolong.gen" hierarchy:

        -v / --verbose   DEBUG    modules loaded, relations analyzed, files written
        (default)        INFO     phase headers and summaries
        -q / --quiet     WARNING  warnings and errors only

    Safe to call more than once: only the level changes after the first call.
    """
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO

    gen_root = logging.getLogger(_LOGGER_NAME)
    gen_root.setLevel(level)

    if gen_root.handlers:
        return

    handler = _StderrHandler()
    handler.setFormatter(_TaggedFormatter())
    gen_root.addHandler(handler)
    gen_root.propagate = False


class _StderrHandler(logging.StreamHandler):
    """Writes to the sys.stderr of the moment, which test runners swap."""

    def __init__(self):
        logging.Handler.__init__(self)

    @property
    def stream(self):
        return sys.stderr


class _TaggedFormatter(logging.Formatter):
    """Messages carry their own tags; warnings and errors get a level prefix."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.levelno >= logging.WARNING:
            return f"[{record.levelname}] {message}"
        return message
