"""
Record handlers: the validate/format capability of a bulk loader.

A loader either overrides ``validate``/``format`` itself or is given a handler
object implementing ``RecordHandler``.
"""

from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional, Protocol, Tuple, Type, runtime_checkable

from pydantic import BaseModel, ValidationError


@runtime_checkable
class RecordHandler(Protocol):
    """Decides whether a record is loadable and turns it into a row."""

    def validate(self, item: Any) -> bool:
        ...

    def format(self, item: Any) -> Dict[str, Any]:
        ...


def passthrough(item: Any) -> Dict[str, Any]:
    """Default formatter: copy mappings as-is."""
    if isinstance(item, Mapping):
        return dict(item)
    raise TypeError(f"Cannot format {type(item).__name__} without a format function")


class CallableHandler:
    """Handler built from a pair of plain functions."""

    def __init__(
        self,
        validate: Callable[[Any], bool],
        format: Optional[Callable[[Any], Dict[str, Any]]] = None,
    ):
        self._validate = validate
        self._format = format or passthrough

    def validate(self, item: Any) -> bool:
        return bool(self._validate(item))

    def format(self, item: Any) -> Dict[str, Any]:
        return self._format(item)


class SchemaHandler:
    """
    Handler that uses a pydantic model as the row schema.

    A record is valid when the model accepts it; the formatted row is the
    model's dump. Plain objects and ORM instances are read through their
    attributes. Each accepted record is parsed once: ``format`` reuses the
    instance built by ``validate``.
    """

    def __init__(self, schema: Type[BaseModel], *, exclude_none: bool = False, by_alias: bool = False):
        self.schema = schema
        self.exclude_none = exclude_none
        self.by_alias = by_alias
        # id(item) -> (item, parsed); holding the item keeps its id from being reused
        self._parsed: Dict[int, Tuple[Any, BaseModel]] = {}

    def _parse(self, item: Any) -> BaseModel:
        if isinstance(item, self.schema):
            return item
        if isinstance(item, Mapping):
            return self.schema.model_validate(dict(item))
        return self.schema.model_validate(item, from_attributes=True)

    def validate(self, item: Any) -> bool:
        try:
            parsed = self._parse(item)
        except ValidationError:
            return False
        self._parsed[id(item)] = (item, parsed)
        return True

    def format(self, item: Any) -> Dict[str, Any]:
        cached = self._parsed.pop(id(item), None)
        if cached is not None and cached[0] is item:
            parsed = cached[1]
        else:
            parsed = self._parse(item)
        return parsed.model_dump(exclude_none=self.exclude_none, by_alias=self.by_alias)
