"""Built-in serializers for standard library scalar types.

These serializers are registered with every
:class:`~annotated_json.serialization.service.JsonEngine` and encode
values the tree format has no primitive for as strings.

Supported Types:
    - Date/Time: datetime, date, time (ISO-8601)
    - Numbers: Decimal
    - Other: UUID, bytes (base64)
"""

import base64
import binascii
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional
from uuid import UUID

from annotated_json.exceptions import SerializationException
from annotated_json.serialization.api import JsonNode, Serializer


class StringEncodedSerializer(Serializer):
    """Base for serializers that store a value as a single string node."""

    type_name = "value"

    def write(self, json, obj, known_type: Optional[type]) -> None:
        json.write_value(None, self.encode(obj))

    def read(self, json, node: JsonNode, requested_type: Optional[type]):
        if not isinstance(node, str):
            raise SerializationException(
                f"Expected a string for {self.type_name}, got {type(node).__name__}"
            )
        try:
            return self.decode(node)
        except (ValueError, InvalidOperation, binascii.Error) as e:
            raise SerializationException(
                f"Invalid {self.type_name} value: {node!r}", cause=e
            )

    def encode(self, obj) -> str:
        return str(obj)

    def decode(self, text: str):
        raise NotImplementedError


class DateTimeSerializer(StringEncodedSerializer):
    """Serializer for datetime values."""

    type_name = "datetime"

    def encode(self, obj: datetime) -> str:
        return obj.isoformat()

    def decode(self, text: str) -> datetime:
        return datetime.fromisoformat(text)


class DateSerializer(StringEncodedSerializer):
    """Serializer for date values."""

    type_name = "date"

    def encode(self, obj: date) -> str:
        return obj.isoformat()

    def decode(self, text: str) -> date:
        return date.fromisoformat(text)


class TimeSerializer(StringEncodedSerializer):
    """Serializer for time values."""

    type_name = "time"

    def encode(self, obj: time) -> str:
        return obj.isoformat()

    def decode(self, text: str) -> time:
        return time.fromisoformat(text)


class DecimalSerializer(StringEncodedSerializer):
    """Serializer for Decimal values.

    Written as strings so no precision is lost to binary floats.
    """

    type_name = "decimal"

    def decode(self, text: str) -> Decimal:
        return Decimal(text)


class UUIDSerializer(StringEncodedSerializer):
    """Serializer for UUID values."""

    type_name = "uuid"

    def decode(self, text: str) -> UUID:
        return UUID(text)


class BytesSerializer(StringEncodedSerializer):
    """Serializer for bytes, encoded as base64."""

    type_name = "bytes"

    def encode(self, obj: bytes) -> str:
        return base64.b64encode(obj).decode("ascii")

    def decode(self, text: str) -> bytes:
        return base64.b64decode(text.encode("ascii"), validate=True)


def get_builtin_serializers() -> Dict[type, Serializer]:
    """Get a fresh mapping of built-in types to their serializers."""
    return {
        datetime: DateTimeSerializer(),
        date: DateSerializer(),
        time: TimeSerializer(),
        Decimal: DecimalSerializer(),
        UUID: UUIDSerializer(),
        bytes: BytesSerializer(),
    }
