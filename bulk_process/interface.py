"""Public contract implemented by every bulk loader."""

from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Tuple

from bulk_process.executor import ColumnSpec, Row, TableQuery
from bulk_process.models import TableDescriptor, TableLike


class BulkProcessInterface(ABC):

    # Data
    @abstractmethod
    def data(self) -> Tuple[Row, ...]:
        ...

    @abstractmethod
    def data_array(self) -> List[Row]:
        ...

    @abstractmethod
    def data_count(self) -> int:
        ...

    @abstractmethod
    def failure_data(self) -> Tuple[Any, ...]:
        ...

    @abstractmethod
    def failure_data_array(self) -> List[Any]:
        ...

    @abstractmethod
    def failure_data_count(self) -> int:
        ...

    # Configuration
    @abstractmethod
    def limit(self) -> int:
        ...

    @abstractmethod
    def set_limit(self, limit: int) -> "BulkProcessInterface":
        ...

    @abstractmethod
    def model_class(self) -> type:
        ...

    @abstractmethod
    def set_model_class(self, model_class: type) -> "BulkProcessInterface":
        ...

    @abstractmethod
    def model(self) -> Any:
        ...

    @abstractmethod
    def set_model(self, model: Any) -> "BulkProcessInterface":
        ...

    @abstractmethod
    def table(self) -> TableDescriptor:
        ...

    @abstractmethod
    def set_table(self, table: TableLike) -> "BulkProcessInterface":
        ...

    # Bulk process
    @abstractmethod
    def query_builder(self) -> TableQuery:
        ...

    @abstractmethod
    def truncate_table(self) -> "BulkProcessInterface":
        ...

    @abstractmethod
    def bulk_process(
        self,
        callback: Callable[[List[Row]], Any],
        progress_callback: Optional[Callable[[int, int, int], None]] = None,
    ) -> "BulkProcessInterface":
        ...

    @abstractmethod
    def bulk_insert(self, truncate: bool = False) -> "BulkProcessInterface":
        ...

    @abstractmethod
    def bulk_upsert(self, unique_by: ColumnSpec, update: Optional[ColumnSpec] = None) -> "BulkProcessInterface":
        ...

    @classmethod
    @abstractmethod
    def insert(cls, data: Any, truncate: bool = False, **options) -> None:
        ...

    @classmethod
    @abstractmethod
    def upsert(cls, data: Any, unique_by: ColumnSpec, update: Optional[ColumnSpec] = None, **options) -> None:
        ...
