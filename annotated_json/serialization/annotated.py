"""Reflective serializer for ``@json_serializable`` classes."""

import logging
from operator import itemgetter
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar, TYPE_CHECKING, Union

from annotated_json.annotations import JsonSerializable, get_type_descriptor, is_json_serializable
from annotated_json.exceptions import ConfigurationException, ReflectionException, SerializationException
from annotated_json.logging import SERIALIZER, get_logger
from annotated_json.serialization.api import JsonNode, Serializer
from annotated_json.serialization.containers import MapSerializer, SequenceSerializer
from annotated_json.serialization.fields import (
    ContainerKind,
    FieldDescriptor,
    MapKind,
    collect_fields,
    split_type,
)

if TYPE_CHECKING:
    from annotated_json.serialization.service import JsonEngine


_logger = get_logger(SERIALIZER)

T = TypeVar("T")

ContainerSerializer = Union[SequenceSerializer, MapSerializer]

_entry_key = itemgetter(0)
_entry_value = itemgetter(1)


class AnnotatedJsonSerializer(Serializer[T], Generic[T]):
    """Serializer built from a class's serialization metadata.

    Creating the serializer inspects the class once: it collects every field
    annotated with :class:`~annotated_json.annotations.JsonSerialize`, builds
    a container adapter for each sequence and mapping field, makes sure a
    serializer exists for every serializable type the fields refer to, and
    registers itself with the engine. Later requests for the class are served
    the registered instance.

    The serializer is visible to its own construction before its fields are
    inspected, so self-referencing and mutually recursive classes terminate.
    It is published to the registry only once inspection succeeds.

    Only fields carrying the metadata are written; instances are recreated
    with the class's no-argument constructor.

    Args:
        json: The engine whose registry receives the serializer.
        clazz: The class to serialize.

    Raises:
        ConfigurationException: If the class is not marked serializable or
            a field's metadata is invalid.

    Example:
        >>> serializer = AnnotatedJsonSerializer(engine, Point)
        >>> engine.get_serializer(Point) is serializer
        True
    """

    def __init__(self, json: "JsonEngine", clazz: type):
        self._clazz = clazz
        self._descriptor: Optional[JsonSerializable] = None
        self._fields: List[FieldDescriptor] = []
        self._adapters: Dict[str, ContainerSerializer] = {}
        self._create_serializer(json)

    @property
    def clazz(self) -> type:
        return self._clazz

    @property
    def type_descriptor(self) -> JsonSerializable:
        return self._descriptor

    @property
    def fields(self) -> Tuple[FieldDescriptor, ...]:
        """Field descriptors in write order."""
        return tuple(self._fields)

    def adapter_for(self, field: FieldDescriptor) -> Optional[ContainerSerializer]:
        """Get the container adapter of a field, or None for scalar fields."""
        return self._adapters.get(field.attribute)

    def write(self, json: "JsonEngine", obj: T, known_type: Optional[type]) -> None:
        json.write_object_start(type(obj), known_type)
        try:
            with json.type_options(self._descriptor):
                for field in self._fields:
                    if field.kind is ContainerKind.SEQUENCE:
                        self._adapters[field.attribute].write(json, field.get(obj))
                    elif field.kind is ContainerKind.MAPPING:
                        self._write_map(json, obj, field)
                    else:
                        json.write_value(
                            field.name,
                            field.get(obj),
                            field.declared_type,
                            field.component_type,
                        )
        finally:
            json.write_object_end()

    def _write_map(self, json: "JsonEngine", obj: T, field: FieldDescriptor) -> None:
        serializer: MapSerializer = self._adapters[field.attribute]
        value = field.get(obj)

        if value is None:
            serializer.write(json, None, _entry_key, _entry_value)
        elif field.map_kind is MapKind.OBJECT_MAP:
            serializer.write(json, value.entries(), _entry_key, _entry_value)
        else:
            serializer.write(json, value.items(), _entry_key, _entry_value)

    def read(self, json: "JsonEngine", node: JsonNode, requested_type: Optional[type]) -> T:
        if not isinstance(node, dict):
            raise SerializationException(
                f"Expected an object for '{self._clazz.__name__}', got {type(node).__name__}"
            )

        try:
            obj = self._clazz()
        except Exception as e:
            raise ReflectionException(
                f"Cannot create '{self._clazz.__name__}' with its no-argument constructor",
                cause=e,
            )

        for field in self._fields:
            if field.kind is ContainerKind.SEQUENCE:
                value = self._adapters[field.attribute].read(json, node)
            elif field.kind is ContainerKind.MAPPING:
                value = self._read_map(json, node, field)
            else:
                value = json.read_value(
                    field.name, field.type_hint, field.component_type, node
                )

            if value is None:
                self._log_skipped(json, field)
                continue

            field.set(obj, value)

        return obj

    def _read_map(self, json: "JsonEngine", node: JsonNode, field: FieldDescriptor) -> Any:
        serializer: MapSerializer = self._adapters[field.attribute]

        if field.map_kind is MapKind.OBJECT_MAP:
            return serializer.read(json, node, field.map_class, _object_map_put)
        return serializer.read(json, node, field.map_class)

    def _log_skipped(self, json: "JsonEngine", field: FieldDescriptor) -> None:
        level = logging.WARNING if json.config.warn_on_missing_fields else logging.DEBUG
        _logger.log(
            level,
            "No value for field '%s' of %s, keeping its default",
            field.name,
            self._clazz.__name__,
        )

    def _create_serializer(self, json: "JsonEngine") -> None:
        descriptor = get_type_descriptor(self._clazz)
        if descriptor is None:
            raise ConfigurationException(
                f"Missing @json_serializable marker for '{self._clazz.__name__}'"
            )
        self._descriptor = descriptor

        with json.constructing(self._clazz, self):
            self._create_serializer_fields(json)
            if not descriptor.fully_qualified_tag:
                json.add_class_tag(self._clazz.__name__, self._clazz)

        _logger.debug(
            "Created serializer for %s with %d field(s)",
            self._clazz.__name__,
            len(self._fields),
        )

    def _create_serializer_fields(self, json: "JsonEngine") -> None:
        for field in collect_fields(self._clazz):
            self._fields.append(field)

            if field.is_container:
                self._adapters[field.attribute] = self._create_container_serializer(field)
                for component in field.component_types:
                    _ensure_serializers(json, component)
            else:
                _ensure_serializers(json, field.lookup_type)

    @staticmethod
    def _create_container_serializer(field: FieldDescriptor) -> ContainerSerializer:
        if field.kind is ContainerKind.SEQUENCE:
            return SequenceSerializer(field.name, field.component_types[0], field.declared_type)
        key_type, value_type = field.component_types
        return MapSerializer(field.name, key_type, value_type)

    def __repr__(self) -> str:
        return f"AnnotatedJsonSerializer({self._clazz.__name__})"


def _ensure_serializers(json: "JsonEngine", tp: Any) -> None:
    """Make sure every serializable class named by a type hint has a serializer."""
    if tp is None:
        return
    raw, args = split_type(tp)
    if raw is not None and is_json_serializable(raw):
        json.serializer_for(raw)
    for arg in args:
        if arg is not Ellipsis:
            _ensure_serializers(json, arg)


def _object_map_put(mapping: Any, key: Any, value: Any) -> None:
    mapping.put(key, value)
