"""Custom exceptions for jsonmask."""

from __future__ import annotations


class JsonMaskError(Exception):
    """Base exception for jsonmask errors."""
    pass


class SchemaError(JsonMaskError):
    """Raised when a mask schema is malformed or unusable."""
    pass


class UnresolvedReferenceError(SchemaError):
    """Raised when a $ref does not point inside the schema document."""
    def __init__(self, pointer: str, reason: str = None):
        message = f"Cannot resolve $ref: {pointer}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.pointer = pointer
        self.reason = reason


class ExternalRefError(UnresolvedReferenceError):
    """Raised when an external $ref is encountered."""
    def __init__(self, pointer: str):
        super().__init__(pointer, "external references are not allowed")


class InvalidKeywordShapeError(SchemaError):
    """Raised when a recognized keyword holds a value of the wrong shape."""
    def __init__(self, keyword: str, reason: str, path: str = "#"):
        super().__init__(f"Invalid '{keyword}' at {path}: {reason}")
        self.keyword = keyword
        self.reason = reason
        self.path = path


class SchemaTooDeepError(SchemaError):
    """Raised when schema nesting exceeds the configured depth."""
    def __init__(self, depth: int, path: str):
        super().__init__(f"Schema nesting exceeds maximum depth ({depth}) at: {path}")
        self.depth = depth
        self.path = path


class DocumentParseError(JsonMaskError):
    """Raised when JSON or YAML text cannot be parsed."""
    def __init__(self, message: str, line: int = None, column: int = None, reason: str = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column
        self.reason = reason


class SchemaParseError(SchemaError):
    """Raised when schema text cannot be parsed."""
    def __init__(self, message: str, line: int = None, column: int = None, reason: str = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column
        self.reason = reason


class MaskError(JsonMaskError):
    """Raised on a runtime filtering fault (not a rejection)."""
    pass


class MaxDepthExceededError(MaskError):
    """Raised when maximum recursion depth is exceeded."""
    def __init__(self, depth: int, path: str):
        super().__init__(f"Maximum depth ({depth}) exceeded at path: {path}")
        self.depth = depth
        self.path = path
