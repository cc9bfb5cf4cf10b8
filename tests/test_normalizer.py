"""Tests for value normalization into canonical scalars."""

import enum
import json
from datetime import date, datetime
from decimal import Decimal

import pyarrow as pa
import pytest

from parquet_viewer.core.enums import PhysicalKind
from parquet_viewer.services.normalizer import ValueNormalizer, classify, classify_value


@pytest.fixture
def normalizer() -> ValueNormalizer:
    return ValueNormalizer()


class Color(enum.Enum):
    RED = 1


class TestClassify:
    """Arrow types and plain values map onto one PhysicalKind each."""

    @pytest.mark.parametrize("arrow_type, kind", [
        (pa.struct([("a", pa.int64())]), PhysicalKind.RECORD),
        (pa.map_(pa.string(), pa.int64()), PhysicalKind.RECORD),
        (pa.list_(pa.int64()), PhysicalKind.ARRAY),
        (pa.large_list(pa.int64()), PhysicalKind.ARRAY),
        (pa.binary(4), PhysicalKind.FIXED_BYTES),
        (pa.dictionary(pa.int32(), pa.string()), PhysicalKind.ENUM_SYMBOL),
        (pa.large_binary(), PhysicalKind.BYTE_BUFFER),
        (pa.binary(), PhysicalKind.RAW_BYTES),
        (pa.string(), PhysicalKind.TEXT),
        (pa.timestamp("us"), PhysicalKind.TEXT),
        (pa.decimal128(10, 2), PhysicalKind.TEXT),
        (pa.bool_(), PhysicalKind.BOOLEAN),
        (pa.int32(), PhysicalKind.INTEGER),
        (pa.uint64(), PhysicalKind.INTEGER),
        (pa.float32(), PhysicalKind.FLOAT),
        (pa.null(), PhysicalKind.NULL),
    ])
    def test_arrow_types(self, arrow_type, kind):
        assert classify(arrow_type) is kind

    @pytest.mark.parametrize("value, kind", [
        (None, PhysicalKind.NULL),
        ({"a": 1}, PhysicalKind.RECORD),
        ([1, 2], PhysicalKind.ARRAY),
        (Color.RED, PhysicalKind.ENUM_SYMBOL),
        (bytearray(b"ab"), PhysicalKind.BYTE_BUFFER),
        (b"ab", PhysicalKind.RAW_BYTES),
        (True, PhysicalKind.BOOLEAN),
        (3, PhysicalKind.INTEGER),
        (2.5, PhysicalKind.FLOAT),
        ("x", PhysicalKind.TEXT),
        (date(2024, 1, 2), PhysicalKind.TEXT),
    ])
    def test_plain_values(self, value, kind):
        assert classify_value(value) is kind


class TestNormalize:
    """Every kind converts to None, bool, int, float or str."""

    def test_fixed_bytes_as_hex(self, normalizer: ValueNormalizer):
        assert normalizer.normalize(bytes([0xDE, 0xAD]), pa.binary(2)) == "dead"

    def test_raw_bytes_decoded_and_trimmed(self, normalizer: ValueNormalizer):
        assert normalizer.normalize(b"hello  ", pa.binary()) == "hello"

    def test_invalid_utf8_replaced(self, normalizer: ValueNormalizer):
        assert normalizer.normalize(b"ab\xff", pa.binary()) == "ab�"

    def test_byte_buffer(self, normalizer: ValueNormalizer):
        assert normalizer.normalize(memoryview(b"buf")) == "buf"

    def test_enum_symbol(self, normalizer: ValueNormalizer):
        assert normalizer.normalize(Color.RED) == "RED"
        assert normalizer.normalize("red", pa.dictionary(pa.int32(), pa.string())) == "red"

    def test_record_as_json(self, normalizer: ValueNormalizer):
        arrow_type = pa.struct([("a", pa.int64()), ("b", pa.binary())])
        text = normalizer.normalize({"a": 1, "b": b"x "}, arrow_type)

        assert json.loads(text) == {"a": 1, "b": "x"}

    def test_map_as_json(self, normalizer: ValueNormalizer):
        text = normalizer.normalize([("k", 1), ("j", None)], pa.map_(pa.string(), pa.int64()))
        assert json.loads(text) == {"k": 1, "j": None}

    def test_array_as_json(self, normalizer: ValueNormalizer):
        assert normalizer.normalize([1, None, 3], pa.list_(pa.int64())) == "[1, null, 3]"

    def test_nested_without_arrow_type(self, normalizer: ValueNormalizer):
        text = normalizer.normalize({"tags": ["a", b"b"], "n": 2})
        assert json.loads(text) == {"tags": ["a", "b"], "n": 2}

    def test_non_ascii_kept(self, normalizer: ValueNormalizer):
        assert normalizer.normalize(["ü"], pa.list_(pa.string())) == '["ü"]'

    @pytest.mark.parametrize("value, expected", [
        (float("nan"), "NaN"),
        (float("inf"), "Infinity"),
        (float("-inf"), "-Infinity"),
        (1.25, 1.25),
    ])
    def test_floats(self, normalizer: ValueNormalizer, value, expected):
        assert normalizer.normalize(value, pa.float64()) == expected

    def test_scalars_pass_through(self, normalizer: ValueNormalizer):
        assert normalizer.normalize(True, pa.bool_()) is True
        assert normalizer.normalize(7, pa.int64()) == 7
        assert normalizer.normalize("s", pa.string()) == "s"
        assert normalizer.normalize(None, pa.int64()) is None

    def test_text_fallback(self, normalizer: ValueNormalizer):
        assert normalizer.normalize(datetime(2024, 1, 2, 3, 4, 5), pa.timestamp("us")) == "2024-01-02 03:04:05"
        assert normalizer.normalize(Decimal("1.50"), pa.decimal128(10, 2)) == "1.50"

    def test_converter_bound_to_column_type(self, normalizer: ValueNormalizer):
        convert = normalizer.converter(pa.binary(2))
        assert [convert(v) for v in [b"\x01\x02", None]] == ["0102", None]
