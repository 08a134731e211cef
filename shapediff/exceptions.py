"""Custom exceptions for ShapeDiff engine."""

from typing import Any, Optional


class ShapeDiffError(Exception):
    """Base exception for ShapeDiff errors."""
    pass


class InvalidInputShape(ShapeDiffError):
    """Raised when a record collection is not a list of objects."""
    def __init__(
        self,
        message: str,
        source: str = "records",
        index: Optional[int] = None,
        item: Any = None
    ):
        super().__init__(message)
        self.message = message
        self.source = source
        self.index = index
        self.item = item

    def to_details(self) -> dict:
        details = {"source": self.source}
        if self.index is not None:
            details["index"] = self.index
            details["item"] = repr(self.item)
        return details


class MissingKeySelection(ShapeDiffError):
    """Raised when a shape shared by both collections has no key field."""
    def __init__(self, signature: str):
        super().__init__(
            f"No key field selected for shape [{signature}] "
            f"which is present in both inputs"
        )
        self.signature = signature


class RecordParseError(ShapeDiffError):
    """Raised when record text cannot be parsed."""
    def __init__(
        self,
        message: str,
        line: int = None,
        column: int = None,
        reason: str = None
    ):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column
        self.reason = reason


class KeyMappingError(ShapeDiffError):
    """Raised when a key mapping file has invalid content."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
