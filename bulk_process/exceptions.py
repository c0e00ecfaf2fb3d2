"""
Error taxonomy for bulk processing.

Every error raised by this package derives from ``BulkProcessError`` and also
from the closest builtin, so callers may catch either.
"""

from typing import Optional


class BulkProcessError(Exception):
    """Base class for all bulk processing errors."""


class InvalidInputType(BulkProcessError, TypeError):
    """Loader input matches none of the supported collection shapes."""

    def __init__(self, data: object):
        self.data_type = type(data).__name__
        super().__init__(f"Invalid data type: {self.data_type}")


class EmptyInput(BulkProcessError, ValueError):
    """Normalized input, or the accepted set after validation, is empty."""


class InvalidLimit(BulkProcessError, ValueError):
    """Chunk limit is not a positive integer."""


class InvalidTableIdentity(BulkProcessError, TypeError):
    """A table descriptor cannot be derived from the given object."""


class MissingTableIdentity(BulkProcessError, LookupError):
    """No model class or table has been configured on the loader."""


class ExecutorFailure(BulkProcessError):
    """The database rejected an insert, upsert or truncate."""

    def __init__(self, message: str, table: Optional[str] = None, operation: Optional[str] = None):
        self.table = table
        self.operation = operation
        super().__init__(message)
