"""Annotated JSON: annotation-driven object serialization."""

from annotated_json.annotations import (
    JsonArray,
    JsonMap,
    JsonSerializable,
    JsonSerialize,
    get_type_descriptor,
    is_json_serializable,
    json_serializable,
)
from annotated_json.config import JsonConfig
from annotated_json.exceptions import (
    AnnotatedJsonException,
    ConfigurationException,
    ReflectionException,
    SerializationException,
)
from annotated_json.object_map import ObjectMap
from annotated_json.serialization.annotated import AnnotatedJsonSerializer
from annotated_json.serialization.api import Serializer
from annotated_json.serialization.service import JsonEngine

__version__ = "0.1.0"

__all__ = [
    "JsonArray",
    "JsonMap",
    "JsonSerializable",
    "JsonSerialize",
    "get_type_descriptor",
    "is_json_serializable",
    "json_serializable",
    "JsonConfig",
    "AnnotatedJsonException",
    "ConfigurationException",
    "ReflectionException",
    "SerializationException",
    "ObjectMap",
    "AnnotatedJsonSerializer",
    "Serializer",
    "JsonEngine",
]
