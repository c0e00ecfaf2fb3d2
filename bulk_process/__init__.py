"""
Bulk Process - Core Package
===========================

Chunked INSERT and UPSERT of validated, formatted record sets into a
relational table through SQLAlchemy.

Core Modules:
- bulk: BulkLoader, the validate/format/chunk/execute pipeline
- handlers: validate/format implementations (plain functions, pydantic schemas)
- executor: table handles with insert, upsert and truncate
- inputs: normalization of supported input collections
- models: table identity (TableDescriptor)
- config: Centralized configuration management
- db: SQLAlchemy engine with connection pooling
"""

from bulk_process.bulk import BulkLoader
from bulk_process.exceptions import (
    BulkProcessError,
    EmptyInput,
    ExecutorFailure,
    InvalidInputType,
    InvalidLimit,
    InvalidTableIdentity,
    MissingTableIdentity,
)
from bulk_process.executor import SqlExecutor, TableQuery
from bulk_process.handlers import CallableHandler, RecordHandler, SchemaHandler
from bulk_process.interface import BulkProcessInterface
from bulk_process.models import TableDescriptor

__version__ = "1.0.0"

__all__ = [
    "BulkLoader",
    "BulkProcessInterface",
    "BulkProcessError",
    "CallableHandler",
    "EmptyInput",
    "ExecutorFailure",
    "InvalidInputType",
    "InvalidLimit",
    "InvalidTableIdentity",
    "MissingTableIdentity",
    "RecordHandler",
    "SchemaHandler",
    "SqlExecutor",
    "TableDescriptor",
    "TableQuery",
]
