"""
Database executor used by bulk loaders.

Key features:
- Table handles resolved from a name, descriptor or SQLAlchemy ``Table``
- Multi-row INSERT per call (one round trip for the whole parameter list)
- Dialect-aware UPSERT (PostgreSQL / SQLite ON CONFLICT, MySQL ON DUPLICATE KEY)
- TRUNCATE, with a DELETE fallback on SQLite
- Every database error surfaces as ``ExecutorFailure``

Each call runs in its own transaction. Nothing here retries.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from sqlalchemy import MetaData, Table, delete, insert, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from bulk_process.exceptions import ExecutorFailure
from bulk_process.models import TableDescriptor, TableLike, to_descriptor

logger = logging.getLogger(__name__)

Row = Dict[str, Any]
ColumnSpec = Union[str, Sequence[str]]


def as_columns(columns: Optional[ColumnSpec]) -> Optional[List[str]]:
    """Normalize a single column name or a sequence of names to a list."""
    if columns is None:
        return None
    if isinstance(columns, str):
        return [columns]
    return list(columns)


class TableQuery:
    """Insert/upsert/truncate handle scoped to one table."""

    def __init__(self, engine: Engine, table: Table):
        self.engine = engine
        self.table = table

    @property
    def name(self) -> str:
        return self.table.fullname

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def _execute(self, operation: str, statement, rows: Optional[List[Row]] = None):
        try:
            with self.engine.begin() as conn:
                if rows is None:
                    conn.execute(statement)
                else:
                    conn.execute(statement, rows)
        except SQLAlchemyError as e:
            logger.error(f"❌ {operation} failed for {self.name}: {e}")
            raise ExecutorFailure(
                f"{operation} failed for table {self.name}: {e}",
                table=self.name,
                operation=operation,
            ) from e

    def _check_columns(self, operation: str, columns: Iterable[str]) -> None:
        """Raise if any of ``columns`` is not a column of the table."""
        unknown = sorted({column for column in columns if column not in self.table.c})
        if unknown:
            logger.error(f"❌ {operation} rejected for {self.name}: unknown columns {unknown}")
            raise ExecutorFailure(
                f"{operation} failed for table {self.name}: unknown columns {', '.join(unknown)}",
                table=self.name,
                operation=operation,
            )

    def insert(self, rows: Sequence[Row]) -> int:
        """Insert all rows in one multi-row statement. Returns the number of rows sent."""
        rows = list(rows)
        if not rows:
            return 0

        self._check_columns("insert", (column for row in rows for column in row))
        self._execute("insert", insert(self.table), rows)
        logger.debug(f"Inserted {len(rows)} rows into {self.name}")
        return len(rows)

    def upsert(self, rows: Sequence[Row], unique_by: ColumnSpec, update: Optional[ColumnSpec] = None) -> int:
        """
        Insert rows, updating existing ones that collide on ``unique_by``.

        Args:
            rows: Row mappings, all with the same keys
            unique_by: Conflict key column(s)
            update: Columns to overwrite on conflict. Defaults to every
                column of the first row that is not part of the key.

        Returns:
            Number of rows sent
        """
        rows = list(rows)
        if not rows:
            return 0

        key_columns = as_columns(unique_by)
        if not key_columns:
            raise ValueError("unique_by must name at least one column")

        update_columns = as_columns(update)
        if update_columns is None:
            update_columns = [column for column in rows[0] if column not in key_columns]

        self._check_columns(
            "upsert",
            [column for row in rows for column in row] + key_columns + update_columns,
        )
        statement = self._upsert_statement(key_columns, update_columns)
        self._execute("upsert", statement, rows)
        logger.debug(f"Upserted {len(rows)} rows into {self.name} on {key_columns}")
        return len(rows)

    def _upsert_statement(self, key_columns: List[str], update_columns: List[str]):
        if self.dialect in ("postgresql", "sqlite"):
            if self.dialect == "postgresql":
                from sqlalchemy.dialects.postgresql import insert as dialect_insert
            else:
                from sqlalchemy.dialects.sqlite import insert as dialect_insert

            statement = dialect_insert(self.table)
            if not update_columns:
                return statement.on_conflict_do_nothing(index_elements=key_columns)
            return statement.on_conflict_do_update(
                index_elements=key_columns,
                set_={column: statement.excluded[column] for column in update_columns},
            )

        if self.dialect in ("mysql", "mariadb"):
            from sqlalchemy.dialects.mysql import insert as dialect_insert

            statement = dialect_insert(self.table)
            # MySQL resolves conflicts on any unique index; key columns only matter
            # when there is nothing else to assign.
            assigned = update_columns or key_columns
            return statement.on_duplicate_key_update(
                {column: statement.inserted[column] for column in assigned}
            )

        raise ExecutorFailure(
            f"Upsert is not supported for dialect {self.dialect}",
            table=self.name,
            operation="upsert",
        )

    def truncate(self) -> None:
        """Remove every row from the table."""
        if self.dialect in ("postgresql", "mysql", "mariadb"):
            quoted = self.engine.dialect.identifier_preparer.format_table(self.table)
            self._execute("truncate", text(f"TRUNCATE TABLE {quoted}"))
        elif self.dialect == "sqlite":
            self._truncate_sqlite()
        else:
            self._execute("truncate", delete(self.table))
        logger.info(f"Truncated table {self.name}")

    def _truncate_sqlite(self) -> None:
        # SQLite has no TRUNCATE; also reset AUTOINCREMENT counters
        try:
            with self.engine.begin() as conn:
                conn.execute(delete(self.table))
                if inspect(conn).has_table("sqlite_sequence"):
                    conn.execute(
                        text("DELETE FROM sqlite_sequence WHERE name = :name"),
                        {"name": self.table.name},
                    )
        except SQLAlchemyError as e:
            logger.error(f"❌ truncate failed for {self.name}: {e}")
            raise ExecutorFailure(
                f"truncate failed for table {self.name}: {e}",
                table=self.name,
                operation="truncate",
            ) from e


class SqlExecutor:
    """Resolves table handles against one engine."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.metadata = MetaData()

    def table(self, identity: TableLike) -> TableQuery:
        """Return a fresh ``TableQuery`` for a descriptor, name or ``Table``."""
        if isinstance(identity, Table):
            return TableQuery(self.engine, identity)
        return TableQuery(self.engine, self._reflect(to_descriptor(identity)))

    def _reflect(self, descriptor: TableDescriptor) -> Table:
        key = descriptor.qualified_name
        if key in self.metadata.tables:
            return self.metadata.tables[key]

        try:
            return Table(descriptor.name, self.metadata, schema=descriptor.schema, autoload_with=self.engine)
        except NoSuchTableError as e:
            raise ExecutorFailure(f"Table {key} does not exist", table=key, operation="reflect") from e
        except SQLAlchemyError as e:
            logger.error(f"Failed to reflect table {key}: {e}")
            raise ExecutorFailure(f"Failed to reflect table {key}: {e}", table=key, operation="reflect") from e

    def dispose(self) -> None:
        """Forget every reflected table."""
        self.metadata.clear()


_default_executor: Optional[SqlExecutor] = None


def get_default_executor() -> SqlExecutor:
    """Shared executor bound to ``db.get_sync_engine()``."""
    global _default_executor

    if _default_executor is None:
        from bulk_process.db import get_sync_engine

        _default_executor = SqlExecutor(get_sync_engine())
    return _default_executor


def reset_default_executor() -> None:
    global _default_executor

    if _default_executor is not None:
        _default_executor.dispose()
    _default_executor = None
