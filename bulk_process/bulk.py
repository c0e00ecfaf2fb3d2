"""
Bulk Process Module
===================

Validates, formats and loads batches of in-memory records into one database
table, in chunks, without issuing one query per record.

A loader is built once per batch job:

    class UserLoader(BulkLoader):
        default_table = "users"

        def validate(self, item):
            return bool(item.get("email"))

        def format(self, item):
            return {"email": item["email"].lower(), "name": item.get("name")}

    loader = UserLoader(rows)
    loader.failure_data()               # records rejected by validate()
    loader.bulk_upsert("email")         # one upsert per chunk of limit() rows

or in one call:

    UserLoader.insert(rows, truncate=True)

Instead of subclassing, a ``RecordHandler`` (see ``handlers``) can be passed
as ``handler=``.

Chunks are submitted strictly in order, each in its own transaction. A
failing chunk raises ``ExecutorFailure`` and aborts the remaining chunks;
chunks already committed stay committed.
"""

import logging
import math
import numbers
import time
from typing import Any, Callable, Iterator, List, Optional, Tuple

from bulk_process.config import settings
from bulk_process.exceptions import (
    EmptyInput,
    InvalidLimit,
    InvalidTableIdentity,
    MissingTableIdentity,
)
from bulk_process.executor import ColumnSpec, Row, SqlExecutor, TableQuery, get_default_executor
from bulk_process.handlers import RecordHandler
from bulk_process.inputs import normalize_records
from bulk_process.interface import BulkProcessInterface
from bulk_process.models import TableDescriptor, TableLike, to_descriptor

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, int], None]


def check_limit(limit: Any) -> int:
    # bool is an int subclass; True must not mean "chunks of one"
    if isinstance(limit, bool) or not isinstance(limit, numbers.Integral) or limit < 1:
        raise InvalidLimit(f"limit must be a positive integer, got {limit!r}")
    return int(limit)


class BulkLoader(BulkProcessInterface):
    """Validated, formatted record set bound for one table."""

    # Subclass defaults, overridable per instance through the constructor
    default_limit: Optional[int] = None
    default_model_class: Optional[type] = None
    default_table: Optional[TableLike] = None

    def __init__(
        self,
        data: Any,
        *,
        handler: Optional[RecordHandler] = None,
        executor: Optional[SqlExecutor] = None,
        model_class: Optional[type] = None,
        table: Optional[TableLike] = None,
        limit: Optional[int] = None,
    ):
        """
        Normalize, validate and format ``data``.

        Args:
            data: list/tuple, SQLAlchemy result, pandas DataFrame/Series, other
                sized collection, or an object with ``to_list``/``tolist``/``to_array``
            handler: validate/format implementation when not subclassing
            executor: database executor; defaults to the shared engine's
            model_class: declarative model whose table receives the rows
            table: explicit table name or descriptor (wins over model_class)
            limit: rows per chunk

        Raises:
            InvalidInputType: ``data`` is not a supported collection
            EmptyInput: ``data`` is empty, or every record failed validation
            InvalidLimit: ``limit`` is not a positive integer
        """
        self._handler = handler
        self._executor = executor

        resolved_limit = limit if limit is not None else self.default_limit
        self._limit = check_limit(resolved_limit if resolved_limit is not None else settings().BULK_CHUNK_LIMIT)

        self._model_class = model_class if model_class is not None else self.default_model_class
        resolved_table = table if table is not None else self.default_table
        self._table = to_descriptor(resolved_table) if resolved_table is not None else None

        records = normalize_records(data)
        if not records:
            raise EmptyInput("data must not be empty")

        accepted = []
        rejected = []
        for item in records:
            if self.validate(item):
                accepted.append(item)
            else:
                rejected.append(item)

        if not accepted:
            raise EmptyInput("data must not be empty after validation")

        self._data: List[Row] = [self.format(item) for item in accepted]
        self._failure_data: List[Any] = rejected

        logger.debug(f"{type(self).__name__}: {len(accepted)} accepted, {len(rejected)} rejected")

    # ------------------------------------------------------------------
    # Record handling
    # ------------------------------------------------------------------

    def validate(self, item: Any) -> bool:
        """Return True if ``item`` should be loaded."""
        if self._handler is None:
            raise NotImplementedError(f"{type(self).__name__} must override validate() or be given a handler")
        return self._handler.validate(item)

    def format(self, item: Any) -> Row:
        """Turn an accepted ``item`` into a column -> value mapping."""
        if self._handler is None:
            raise NotImplementedError(f"{type(self).__name__} must override format() or be given a handler")
        return self._handler.format(item)

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    def data(self) -> Tuple[Row, ...]:
        return tuple(self._data)

    def data_array(self) -> List[Row]:
        return [dict(row) for row in self._data]

    def data_count(self) -> int:
        return len(self._data)

    def failure_data(self) -> Tuple[Any, ...]:
        return tuple(self._failure_data)

    def failure_data_array(self) -> List[Any]:
        return list(self._failure_data)

    def failure_data_count(self) -> int:
        return len(self._failure_data)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def limit(self) -> int:
        return self._limit

    def set_limit(self, limit: int) -> "BulkLoader":
        self._limit = check_limit(limit)
        return self

    def model_class(self) -> type:
        if self._model_class is None:
            raise MissingTableIdentity(f"{type(self).__name__} has no model class")
        return self._model_class

    def set_model_class(self, model_class: type) -> "BulkLoader":
        if not isinstance(model_class, type):
            raise InvalidTableIdentity(f"Expected a model class, got {type(model_class).__name__}")
        self._model_class = model_class
        self._table = None
        return self

    def model(self) -> Any:
        """Fresh instance of the configured model class."""
        return self.model_class()()

    def set_model(self, model: Any) -> "BulkLoader":
        return self.set_model_class(type(model))

    def table(self) -> TableDescriptor:
        """Destination table, re-resolved on every call."""
        if self._table is not None:
            return self._table
        if self._model_class is not None:
            return TableDescriptor.from_model(self._model_class)
        raise MissingTableIdentity(f"{type(self).__name__} has no table or model class configured")

    def set_table(self, table: TableLike) -> "BulkLoader":
        self._table = to_descriptor(table)
        return self

    # ------------------------------------------------------------------
    # Bulk process
    # ------------------------------------------------------------------

    def executor(self) -> SqlExecutor:
        if self._executor is None:
            return get_default_executor()
        return self._executor

    def query_builder(self) -> TableQuery:
        return self.executor().table(self.table())

    def truncate_table(self) -> "BulkLoader":
        self.query_builder().truncate()
        return self

    def chunks(self) -> Iterator[List[Row]]:
        """Yield consecutive slices of at most ``limit()`` rows."""
        size = self._limit
        for i in range(0, len(self._data), size):
            yield self._data[i:i + size]

    def bulk_process(
        self,
        callback: Callable[[List[Row]], Any],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> "BulkLoader":
        """
        Call ``callback`` once per chunk, in order.

        Args:
            callback: receives each chunk as a list of rows
            progress_callback: optional ``(batch_num, total_batches, processed_rows)``
                hook called after each chunk
        """
        total_batches = math.ceil(len(self._data) / self._limit)
        processed_rows = 0

        for batch_num, chunk in enumerate(self.chunks(), 1):
            callback(chunk)
            processed_rows += len(chunk)
            logger.debug(f"Batch {batch_num}/{total_batches} completed ({len(chunk)} rows)")

            if progress_callback:
                progress_callback(batch_num, total_batches, processed_rows)

        return self

    def bulk_insert(self, truncate: bool = False) -> "BulkLoader":
        """Insert every row, optionally truncating the table first."""
        start_time = time.time()

        if truncate:
            self.truncate_table()

        self.bulk_process(lambda chunk: self.query_builder().insert(chunk))

        elapsed = time.time() - start_time
        logger.info(f"✅ Inserted {self.data_count()} rows into {self.table().qualified_name} in {elapsed:.2f} seconds")
        return self

    def bulk_upsert(self, unique_by: ColumnSpec, update: Optional[ColumnSpec] = None) -> "BulkLoader":
        """Insert rows, updating those that collide on ``unique_by``."""
        start_time = time.time()

        self.bulk_process(lambda chunk: self.query_builder().upsert(chunk, unique_by, update))

        elapsed = time.time() - start_time
        logger.info(f"✅ Upserted {self.data_count()} rows into {self.table().qualified_name} in {elapsed:.2f} seconds")
        return self

    # ------------------------------------------------------------------
    # One-shot entry points
    # ------------------------------------------------------------------

    @classmethod
    def insert(cls, data: Any, truncate: bool = False, **options) -> None:
        cls(data, **options).bulk_insert(truncate)

    @classmethod
    def upsert(cls, data: Any, unique_by: ColumnSpec, update: Optional[ColumnSpec] = None, **options) -> None:
        cls(data, **options).bulk_upsert(unique_by, update)
