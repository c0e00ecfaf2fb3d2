"""
Input normalization for bulk loaders.

Loaders accept several collection shapes. ``classify`` tags the shape and
``normalize_records`` turns it into a plain list, so nothing past construction
has to care where the records came from.

Precedence when a value matches more than one shape:
    SEQUENCE > ORM_RESULT > COLLECTION > CONVERTIBLE
"""

from collections.abc import Collection, Mapping
from enum import Enum
from typing import Any, List

import pandas as pd
from sqlalchemy.engine import MappingResult, Result, ScalarResult

from bulk_process.exceptions import InvalidInputType

CONVERTER_METHODS = ("to_list", "tolist", "to_array")


class InputKind(str, Enum):
    """Supported loader input shapes."""

    SEQUENCE = "sequence"
    ORM_RESULT = "orm_result"
    COLLECTION = "collection"
    CONVERTIBLE = "convertible"


def _converter(data: Any):
    for name in CONVERTER_METHODS:
        method = getattr(data, name, None)
        if callable(method):
            return method
    return None


def classify(data: Any) -> InputKind:
    """Return the input kind of ``data`` or raise ``InvalidInputType``."""
    if isinstance(data, (list, tuple)):
        return InputKind.SEQUENCE

    if isinstance(data, (Result, ScalarResult, MappingResult)):
        return InputKind.ORM_RESULT

    if isinstance(data, (pd.DataFrame, pd.Series)):
        return InputKind.COLLECTION

    if isinstance(data, Collection) and not isinstance(data, (str, bytes, bytearray, Mapping)):
        return InputKind.COLLECTION

    if _converter(data) is not None:
        return InputKind.CONVERTIBLE

    raise InvalidInputType(data)


def normalize_records(data: Any, _converted: bool = False) -> List[Any]:
    """Convert any supported input into a new ordered list of records."""
    kind = classify(data)
    if _converted and kind is InputKind.CONVERTIBLE:
        # A converter must produce a real collection, not another convertible
        raise InvalidInputType(data)

    if kind is InputKind.SEQUENCE:
        return list(data)

    if kind is InputKind.ORM_RESULT:
        return list(data.all())

    if kind is InputKind.COLLECTION:
        # Missing values (NaN, NaT) become None so optional fields stay optional
        if isinstance(data, pd.DataFrame):
            return data.astype(object).where(data.notna(), None).to_dict("records")
        if isinstance(data, pd.Series):
            return data.astype(object).where(data.notna(), None).tolist()
        return list(data)

    converted = _converter(data)()
    # Converters may hand back another supported shape (e.g. numpy arrays from tolist)
    if isinstance(converted, list):
        return converted
    return normalize_records(converted, _converted=True)
