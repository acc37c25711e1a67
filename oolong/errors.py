"""
Error taxonomy for Oolong.

Compile-time errors derive from OolongError and abort the whole compilation.
Runtime errors derive from ModelError and are raised by generated data-access
code.
"""


# ------------------------------------------------------------------------------
# Compile-time errors

class OolongError(Exception):
    """Base class of every error raised while loading, linking or generating."""

    def __init__(self, message: str, line: int = None, col: int = None, filename: str = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.col = col
        self.filename = filename

    def __str__(self):
        if self.line is not None:
            return f"{self.message} (line {self.line}, col {self.col})"
        return self.message


class ParseError(OolongError):
    """The DSL source is syntactically or structurally invalid."""


class ReferenceNotFoundError(OolongError):
    """An entity, view, document or type reference could not be resolved."""


class NamingConflictError(OolongError):
    """Two distinct declarations claim the same unique name."""


class DuplicateDefinitionError(OolongError):
    """A field, index, feature or graph node is defined twice."""


class UsageError(OolongError):
    """The DSL is used in a way the compiler does not support."""


class ComplianceError(OolongError):
    """The schema fails structural checks required by the target database."""

    def __init__(self, message: str, errors=None, warnings=None):
        super().__init__(message)
        self.errors = list(errors or [])
        self.warnings = list(warnings or [])


# ------------------------------------------------------------------------------
# Runtime errors (raised by generated models)

class ModelError(Exception):
    """Base class of errors raised by generated entity and view models."""

    def __init__(self, message: str, info: dict = None):
        super().__init__(message)
        self.message = message
        self.info = info or {}


class ModelValidationError(ModelError):
    """Input data does not satisfy a validator or a feature rule."""


class ModelUsageError(ModelError):
    """The model is called with an inconsistent set of fields."""


class ModelOperationError(ModelError):
    """The model reached a state it cannot handle."""


RUNTIME_ERRORS = {
    "ModelValidationError": ModelValidationError,
    "ModelUsageError": ModelUsageError,
    "ModelOperationError": ModelOperationError,
}
