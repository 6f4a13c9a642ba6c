# errors.py
# Exceptions raised across the toolhost plumbing.
#
# Validation and execution failures inside a tool are never raised: they come
# back as a ToolResponse with is_error set. Only definition-time problems and
# broken host wiring surface as exceptions.


class ToolhostError(Exception):
    """Base class for every error raised by toolhost itself."""


class SchemaConversionError(ToolhostError):
    """Raised by define_tool() when the input schema cannot be converted. Always fatal."""


class ToolNotFoundError(ToolhostError):
    """Raised when an invocation names a tool absent from the active host."""
