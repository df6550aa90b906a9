"""Annotated JSON serialization package."""

from annotated_json.serialization.api import JsonNode, Serializer
from annotated_json.serialization.annotated import AnnotatedJsonSerializer
from annotated_json.serialization.containers import MapSerializer, SequenceSerializer
from annotated_json.serialization.fields import (
    ContainerKind,
    FieldDescriptor,
    MapKind,
    collect_fields,
)
from annotated_json.serialization.service import JsonEngine
from annotated_json.serialization.builtin import (
    BytesSerializer,
    DateSerializer,
    DateTimeSerializer,
    DecimalSerializer,
    TimeSerializer,
    UUIDSerializer,
)

__all__ = [
    "JsonNode",
    "Serializer",
    "AnnotatedJsonSerializer",
    "MapSerializer",
    "SequenceSerializer",
    "ContainerKind",
    "FieldDescriptor",
    "MapKind",
    "collect_fields",
    "JsonEngine",
    "BytesSerializer",
    "DateSerializer",
    "DateTimeSerializer",
    "DecimalSerializer",
    "TimeSerializer",
    "UUIDSerializer",
]
