"""
Custom exceptions for the record extractor toolkit.

Error philosophy:
  - InvalidExpressionError → FAIL FAST: a selector is malformed, the whole extraction call aborts.
  - PathNotFoundError      → FAIL FAST: a batch target does not exist on disk.
  - DocumentError          → FAIL FAST: the raw document itself cannot be parsed.
  - UnknownKeyError        → caller bug: an accessor asked for a key the result never had.
  - CoercionError          → data-shape bug: the value exists but cannot be read as the requested type.

A selector that matches nothing is NOT an error. It is stored as the NotFound
value and callers check for it with ExtractionResult.not_found().
"""

from typing import Optional


class ExtractorError(Exception):
    """Base exception for all record extractor errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_response(self) -> dict:
        """Convert to a JSON-friendly error entry."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details
        }


# --- Raised while preparing an extraction: abort the whole call ---

class InvalidExpressionError(ExtractorError, ValueError):
    """Raised when a selector string is structurally malformed."""

    def __init__(self, message: str, expression: str, details: Optional[dict] = None):
        super().__init__(message, details)
        self.expression = expression


class PathNotFoundError(ExtractorError):
    """Raised when a batch extraction target does not exist."""

    def __init__(self, path, details: Optional[dict] = None):
        super().__init__(f"Given path [{path}] does not exist.", details)
        self.path = path


class DocumentError(ExtractorError, ValueError):
    """Raised when raw content cannot be parsed into a document."""
    pass


# --- Raised by ExtractionResult accessors: abort only the accessor call ---

class UnknownKeyError(ExtractorError, LookupError):
    """Raised when an accessor is called with a key the result doesn't contain."""

    def __init__(self, key: str):
        super().__init__(f"Result doesn't contain entry [{key}]", {"key": key})
        self.key = key

    def __str__(self) -> str:
        # LookupError would otherwise render the repr of the message
        return self.message


class CoercionError(ExtractorError, ValueError):
    """Raised when a stored value cannot be reinterpreted as the requested type."""

    def __init__(self, message: str, value=None, details: Optional[dict] = None):
        super().__init__(message, details)
        self.value = value


class TypeMismatchError(CoercionError, TypeError):
    """Raised when list elements are not of the requested element type."""
    pass
