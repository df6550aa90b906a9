"""Tests for annotated_json/serialization/builtin.py module."""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from uuid import UUID

import pytest

from annotated_json.exceptions import SerializationException
from annotated_json.serialization.builtin import (
    BytesSerializer,
    DateSerializer,
    DateTimeSerializer,
    DecimalSerializer,
    TimeSerializer,
    UUIDSerializer,
    get_builtin_serializers,
)


class TestBuiltinSerializers:
    """Round trips of standard library scalars through the engine."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc), "2024-05-06T07:08:09+00:00"),
            (date(2024, 5, 6), "2024-05-06"),
            (time(7, 8, 9), "07:08:09"),
            (Decimal("12.500"), "12.500"),
            (UUID(int=1), "00000000-0000-0000-0000-000000000001"),
            (b"hello", "aGVsbG8="),
        ],
    )
    def test_write_and_read(self, engine, value, expected):
        tree = engine.to_tree(value)
        assert tree == expected
        assert engine.from_tree(type(value), tree) == value

    def test_registry_covers_types(self):
        serializers = get_builtin_serializers()
        assert isinstance(serializers[datetime], DateTimeSerializer)
        assert isinstance(serializers[date], DateSerializer)
        assert isinstance(serializers[time], TimeSerializer)
        assert isinstance(serializers[Decimal], DecimalSerializer)
        assert isinstance(serializers[UUID], UUIDSerializer)
        assert isinstance(serializers[bytes], BytesSerializer)

    def test_fresh_instances(self):
        assert get_builtin_serializers()[UUID] is not get_builtin_serializers()[UUID]

    @pytest.mark.parametrize(
        "tp, node",
        [
            (datetime, "yesterday"),
            (Decimal, "twelve"),
            (UUID, "not-a-uuid"),
            (bytes, "***"),
        ],
    )
    def test_invalid_text(self, engine, tp, node):
        with pytest.raises(SerializationException) as exc_info:
            engine.from_tree(tp, node)
        assert "Invalid" in str(exc_info.value)

    def test_non_string_node(self, engine):
        with pytest.raises(SerializationException) as exc_info:
            engine.from_tree(Decimal, 12)
        assert "Expected a string for decimal" in str(exc_info.value)
