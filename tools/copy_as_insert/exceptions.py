"""Exceptions raised by the copy-as-insert core."""


class CopyAsInsertError(Exception):
    """Base exception for conversion errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.details = details or {}


class ParseError(CopyAsInsertError):
    """Raised when input text cannot be turned into a table."""


class SchemaError(CopyAsInsertError):
    """Raised when a schema breaks its shape invariants."""


class TableNameError(CopyAsInsertError, ValueError):
    """Raised when a table or schema name is not a valid SQL Server identifier."""
