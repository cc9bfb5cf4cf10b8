"""
Conversion of physical Parquet values into canonical scalars.

Every field value is tagged with a PhysicalKind, derived from its Arrow
type when one is known and from the Python value otherwise, and then
converted by the single rule for that kind. The result is always one of
None, bool, int, float or str.

Nested records, arrays and byte sequences are flattened to text. That
loses structure on purpose: callers render a flat table.
"""

import enum
import json
import math
from typing import Any, Callable, Optional

import pyarrow as pa

from ..core.enums import PhysicalKind
from ..models.parquet import Scalar


def classify(arrow_type: pa.DataType) -> PhysicalKind:
    """Tag an Arrow type with the physical kind of its values."""
    if pa.types.is_struct(arrow_type) or pa.types.is_map(arrow_type):
        return PhysicalKind.RECORD
    if (
        pa.types.is_list(arrow_type)
        or pa.types.is_large_list(arrow_type)
        or pa.types.is_fixed_size_list(arrow_type)
    ):
        return PhysicalKind.ARRAY
    if pa.types.is_fixed_size_binary(arrow_type):
        return PhysicalKind.FIXED_BYTES
    if pa.types.is_dictionary(arrow_type):
        return PhysicalKind.ENUM_SYMBOL
    if pa.types.is_large_binary(arrow_type):
        return PhysicalKind.BYTE_BUFFER
    if pa.types.is_binary(arrow_type):
        return PhysicalKind.RAW_BYTES
    if pa.types.is_boolean(arrow_type):
        return PhysicalKind.BOOLEAN
    if pa.types.is_integer(arrow_type):
        return PhysicalKind.INTEGER
    if pa.types.is_floating(arrow_type):
        return PhysicalKind.FLOAT
    if pa.types.is_null(arrow_type):
        return PhysicalKind.NULL
    # strings, decimals, dates, times, timestamps, durations
    return PhysicalKind.TEXT


def classify_value(value: Any) -> PhysicalKind:
    """Tag a plain Python value when no Arrow type is available."""
    if value is None:
        return PhysicalKind.NULL
    if isinstance(value, dict):
        return PhysicalKind.RECORD
    if isinstance(value, (list, tuple)):
        return PhysicalKind.ARRAY
    if isinstance(value, enum.Enum):
        return PhysicalKind.ENUM_SYMBOL
    if isinstance(value, (bytearray, memoryview)):
        return PhysicalKind.BYTE_BUFFER
    if isinstance(value, bytes):
        return PhysicalKind.RAW_BYTES
    if isinstance(value, bool):
        return PhysicalKind.BOOLEAN
    if isinstance(value, int):
        return PhysicalKind.INTEGER
    if isinstance(value, float):
        return PhysicalKind.FLOAT
    return PhysicalKind.TEXT


def _decode(value) -> str:
    return bytes(value).decode("utf-8", errors="replace").rstrip()


def _float(value) -> Scalar:
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return value


def _symbol(value) -> str:
    if isinstance(value, enum.Enum):
        return str(value.name)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return _decode(value)
    return str(value)


class ValueNormalizer:
    """Closed dispatch from PhysicalKind to a canonical scalar."""

    def normalize(self, value: Any, arrow_type: Optional[pa.DataType] = None) -> Scalar:
        if value is None:
            return None
        kind = classify(arrow_type) if arrow_type is not None else classify_value(value)
        return self.normalize_kind(value, kind, arrow_type)

    def normalize_kind(self, value: Any, kind: PhysicalKind, arrow_type: Optional[pa.DataType] = None) -> Scalar:
        if value is None or kind is PhysicalKind.NULL:
            return None
        if kind is PhysicalKind.RECORD or kind is PhysicalKind.ARRAY:
            return json.dumps(self._plain(value, kind, arrow_type), ensure_ascii=False, default=str)
        if kind is PhysicalKind.FIXED_BYTES:
            return bytes(value).hex()
        if kind is PhysicalKind.ENUM_SYMBOL:
            return _symbol(value)
        if kind is PhysicalKind.BYTE_BUFFER or kind is PhysicalKind.RAW_BYTES:
            return _decode(value)
        if kind is PhysicalKind.TEXT:
            return value if isinstance(value, str) else str(value)
        if kind is PhysicalKind.INTEGER:
            return int(value)
        if kind is PhysicalKind.FLOAT:
            return _float(value)
        if kind is PhysicalKind.BOOLEAN:
            return bool(value)
        raise ValueError(f"Unhandled physical kind: {kind}")

    def converter(self, arrow_type: pa.DataType) -> Callable[[Any], Scalar]:
        """Bind the rule for one column type so it is classified once, not per value."""
        kind = classify(arrow_type)

        def convert(value: Any) -> Scalar:
            return self.normalize_kind(value, kind, arrow_type)

        return convert

    def _plain(self, value: Any, kind: PhysicalKind, arrow_type: Optional[pa.DataType]):
        """Nested value as JSON-ready Python data with canonical leaves."""
        if value is None:
            return None

        if kind is PhysicalKind.RECORD:
            if arrow_type is not None and pa.types.is_map(arrow_type):
                return {
                    str(self._child(k, arrow_type.key_type)): self._child(v, arrow_type.item_type)
                    for k, v in value
                }
            if arrow_type is not None:
                return {f.name: self._child(value.get(f.name), f.type) for f in arrow_type}
            return {str(k): self._child(v, None) for k, v in value.items()}

        if kind is PhysicalKind.ARRAY:
            element_type = arrow_type.value_type if arrow_type is not None else None
            return [self._child(item, element_type) for item in value]

        return self.normalize_kind(value, kind, arrow_type)

    def _child(self, value: Any, arrow_type: Optional[pa.DataType]):
        if value is None:
            return None
        kind = classify(arrow_type) if arrow_type is not None else classify_value(value)
        return self._plain(value, kind, arrow_type)
