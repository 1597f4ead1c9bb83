"""Custom exception types for pmtriage.

Error messages follow one shape:
- What failed (specific operation or component)
- Where it failed (file, row, context)
- How to fix it (actionable guidance)

The classification and grouping engines never raise for malformed input;
they degrade to "no match". Exceptions are reserved for the loading layer.
"""


class PmTriageError(Exception):
    """Base exception for all pmtriage errors."""

    pass


class ConfigLoadError(PmTriageError):
    """Raised when config.yaml cannot be loaded (file not found, YAML parse error)."""

    pass


class ConfigValidationError(PmTriageError):
    """Raised when config.yaml fails Pydantic validation.

    Includes specific field errors with actionable messages.
    """

    pass


class SourceLoadError(PmTriageError):
    """Raised when a rule or work-item source file cannot be read.

    Attributes:
        path: The file that failed to load
    """

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path
