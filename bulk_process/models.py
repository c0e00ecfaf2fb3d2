"""
Table identity for bulk operations.

A ``TableDescriptor`` names the destination table directly. It can also be
derived from an SQLAlchemy declarative model class or instance, which is how
loaders configured with ``set_model_class`` resolve their table.
"""

from dataclasses import dataclass
from typing import Any, Optional, Union

from sqlalchemy import Table

from bulk_process.exceptions import InvalidTableIdentity


@dataclass(frozen=True)
class TableDescriptor:
    """Physical destination table: name plus optional schema."""

    name: str
    schema: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidTableIdentity("Table name must be a non-empty string")

    @property
    def qualified_name(self) -> str:
        if self.schema:
            return f"{self.schema}.{self.name}"
        return self.name

    @classmethod
    def parse(cls, value: str) -> "TableDescriptor":
        """Build from ``"table"`` or ``"schema.table"``."""
        schema, dot, name = value.partition(".")
        if not dot:
            return cls(name=schema)
        return cls(name=name, schema=schema or None)

    @classmethod
    def from_model(cls, model: Any) -> "TableDescriptor":
        """
        Derive the descriptor from a declarative model class or instance.

        Looks at ``__table__`` first (name and schema), then ``__tablename__``.
        """
        model_class = model if isinstance(model, type) else type(model)

        table = getattr(model_class, "__table__", None)
        if isinstance(table, Table):
            return cls(name=table.name, schema=table.schema)

        tablename = getattr(model_class, "__tablename__", None)
        if isinstance(tablename, str):
            return cls(name=tablename)

        raise InvalidTableIdentity(
            f"Cannot resolve a table from {model_class.__name__}: "
            "expected __table__ or __tablename__"
        )


TableLike = Union[TableDescriptor, str, Table]


def to_descriptor(value: TableLike) -> TableDescriptor:
    """Coerce a descriptor, ``"schema.table"`` string or ``Table`` to a descriptor."""
    if isinstance(value, TableDescriptor):
        return value
    if isinstance(value, str):
        return TableDescriptor.parse(value)
    if isinstance(value, Table):
        return TableDescriptor(name=value.name, schema=value.schema)
    raise InvalidTableIdentity(f"Unsupported table identity: {type(value).__name__}")
