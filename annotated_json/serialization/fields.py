"""Field discovery and classification for annotated classes."""

import inspect
import types
import typing
from collections import deque
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from annotated_json.annotations import JsonSerialize
from annotated_json.exceptions import ConfigurationException, ReflectionException
from annotated_json.object_map import ObjectMap


SEQUENCE_TYPES = (list, deque)
"""Ordered containers handled by the sequence adapter."""

ARRAY_SCALAR_TYPES = (tuple, set, frozenset)
"""Collections written by the engine directly, with an element type."""

_UNION_TYPES = (typing.Union, types.UnionType)


class ContainerKind(Enum):
    """How a field's value is marshalled."""

    NONE = "none"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


class MapKind(Enum):
    """Concrete representation of a mapping field."""

    NATIVE = "native"
    OBJECT_MAP = "object_map"


def unwrap_optional(tp: Any) -> Any:
    """Strip ``None`` from ``Optional[T]`` and ``T | None``."""
    if typing.get_origin(tp) in _UNION_TYPES:
        args = [arg for arg in typing.get_args(tp) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return tp


def split_type(tp: Any) -> Tuple[Optional[type], Tuple[Any, ...]]:
    """Split a type hint into its runtime class and generic arguments.

    Returns ``(None, ())`` for hints with no single runtime class, such as
    ``Any`` or a union of several types.
    """
    tp = unwrap_optional(tp)
    if tp is typing.Any:
        return None, ()
    origin = typing.get_origin(tp)
    if origin in _UNION_TYPES:
        return None, ()
    if origin is typing.Annotated:
        return split_type(typing.get_args(tp)[0])
    if isinstance(origin, type):
        return origin, typing.get_args(tp)
    if isinstance(tp, type):
        return tp, ()
    return None, ()


def element_type_of(raw: Optional[type], args: Tuple[Any, ...]) -> Any:
    """Pick the element type out of a collection's generic arguments."""
    if not args:
        return None
    if raw is not None and issubclass(raw, (Mapping, ObjectMap)):
        return args[1] if len(args) == 2 else None
    if raw is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return args[0]
        return args[0] if len(set(args)) == 1 else None
    return args[0]


@dataclass(frozen=True)
class FieldDescriptor:
    """Immutable metadata for one serializable field.

    Built once per owning class and shared by every instance.

    Attributes:
        attribute: The Python attribute name.
        name: The output name in the document.
        declared_type: Runtime class of the declared type, or None.
        type_hint: The declared hint with ``Annotated`` stripped.
        kind: Container classification.
        component_types: Element type for sequences, ``(key, value)`` for
            mappings, the element type of array-like scalars, or the field
            type itself for other scalars.
        map_kind: Mapping representation, for mapping fields.
        map_class: Concrete mapping class, for mapping fields.
    """

    attribute: str
    name: str
    declared_type: Optional[type]
    type_hint: Any
    kind: ContainerKind = ContainerKind.NONE
    component_types: Tuple[Any, ...] = ()
    map_kind: Optional[MapKind] = None
    map_class: Optional[type] = None

    @property
    def is_container(self) -> bool:
        return self.kind is not ContainerKind.NONE

    @property
    def component_type(self) -> Any:
        """Element type passed to the engine for scalar fields."""
        if self.declared_type is not None and issubclass(
            self.declared_type, ARRAY_SCALAR_TYPES + (dict,)
        ):
            return self.component_types[0] if self.component_types else None
        return None

    @property
    def lookup_type(self) -> Any:
        """Type whose serializer a scalar field depends on."""
        if self.component_type is not None:
            return self.component_type
        return self.declared_type

    def get(self, instance: Any) -> Any:
        """Read the field from an instance.

        Raises:
            ReflectionException: If the attribute cannot be read.
        """
        try:
            return getattr(instance, self.attribute)
        except AttributeError as e:
            raise ReflectionException(
                f"Cannot read field '{self.attribute}' of {type(instance).__name__}",
                cause=e,
            )

    def set(self, instance: Any, value: Any) -> None:
        """Assign the field on an instance.

        Raises:
            ReflectionException: If the attribute cannot be assigned.
        """
        try:
            setattr(instance, self.attribute, value)
        except (AttributeError, TypeError) as e:
            raise ReflectionException(
                f"Cannot assign field '{self.attribute}' of {type(instance).__name__}",
                cause=e,
            )


def create_descriptor(attribute: str, hint: Any, annotation: JsonSerialize) -> FieldDescriptor:
    """Build and classify the descriptor of one annotated field.

    Raises:
        ConfigurationException: If the container metadata is inconsistent.
    """
    name = annotation.name or attribute
    raw, args = split_type(hint)
    base_hint = unwrap_optional(hint)

    if annotation.map is not None:
        return _create_map_descriptor(attribute, name, raw, args, base_hint, annotation)

    if raw is not None and issubclass(raw, SEQUENCE_TYPES):
        element = annotation.array.value if annotation.array is not None else None
        if element is None:
            element = element_type_of(raw, args)
        if element is None:
            raise ConfigurationException(
                f"Sequence field '{attribute}' requires array() metadata "
                f"or a parameterized type such as List[T]"
            )
        return FieldDescriptor(
            attribute=attribute,
            name=name,
            declared_type=raw,
            type_hint=base_hint,
            kind=ContainerKind.SEQUENCE,
            component_types=(element,),
        )

    if annotation.array is not None:
        raise ConfigurationException(
            f"Field '{attribute}' declares array() metadata but is not a list or deque"
        )

    if raw is not None and issubclass(raw, ARRAY_SCALAR_TYPES + (dict,)):
        element = element_type_of(raw, args)
        components = (element,) if element is not None else ()
    else:
        components = (raw,) if raw is not None else ()

    return FieldDescriptor(
        attribute=attribute,
        name=name,
        declared_type=raw,
        type_hint=base_hint,
        component_types=components,
    )


def _create_map_descriptor(
    attribute: str,
    name: str,
    raw: Optional[type],
    args: Tuple[Any, ...],
    base_hint: Any,
    annotation: JsonSerialize,
) -> FieldDescriptor:
    meta = annotation.map
    map_class = meta.map if meta.map is not None else raw
    if meta.map is None and map_class in (Mapping, MutableMapping):
        map_class = dict

    if not isinstance(map_class, type):
        raise ConfigurationException(
            f"Mapping field '{attribute}' has no concrete map class"
        )

    if inspect.isabstract(map_class):
        raise ConfigurationException(
            f"Mapping field '{attribute}' uses abstract class {map_class.__name__}; "
            f"pass a concrete class with JsonMap(map=...)"
        )

    if issubclass(map_class, ObjectMap):
        map_kind = MapKind.OBJECT_MAP
    elif issubclass(map_class, MutableMapping):
        map_kind = MapKind.NATIVE
    else:
        raise ConfigurationException(
            f"Mapping field '{attribute}' uses {map_class.__name__}, "
            f"which is neither a MutableMapping nor an ObjectMap"
        )

    key_type = meta.key
    value_type = meta.value
    if len(args) == 2:
        if key_type is None:
            key_type = args[0]
        if value_type is None:
            value_type = args[1]

    return FieldDescriptor(
        attribute=attribute,
        name=name,
        declared_type=raw if raw is not None else map_class,
        type_hint=base_hint,
        kind=ContainerKind.MAPPING,
        component_types=(key_type, value_type),
        map_kind=map_kind,
        map_class=map_class,
    )


def find_annotation(hint: Any) -> Optional[JsonSerialize]:
    """Return the JsonSerialize metadata of an ``Annotated`` hint, if any."""
    for candidate in (hint, unwrap_optional(hint)):
        if typing.get_origin(candidate) is typing.Annotated:
            for meta in candidate.__metadata__:
                if isinstance(meta, JsonSerialize):
                    return meta
    return None


def _strip_annotated(hint: Any) -> Any:
    hint_inner = unwrap_optional(hint)
    if typing.get_origin(hint_inner) is typing.Annotated:
        inner = typing.get_args(hint_inner)[0]
        if hint_inner is not hint:
            return Optional[inner]
        return inner
    return hint


def collect_fields(cls: type) -> List[FieldDescriptor]:
    """Discover the annotated fields of a class and its bases.

    Base class fields come first, each class in declaration order. A field
    redeclared by a subclass keeps its base position and takes the
    subclass's declaration.

    Raises:
        ConfigurationException: If the type hints cannot be resolved or a
            field's metadata is inconsistent.
    """
    try:
        hints: Dict[str, Any] = typing.get_type_hints(cls, include_extras=True)
    except (NameError, TypeError) as e:
        raise ConfigurationException(
            f"Cannot resolve type hints of '{cls.__name__}': {e}", cause=e
        )

    ordered: Dict[str, None] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for attribute in inspect.get_annotations(klass):
            ordered.setdefault(attribute, None)

    descriptors = []
    for attribute in ordered:
        hint = hints.get(attribute)
        if hint is None:
            continue
        annotation = find_annotation(hint)
        if annotation is None:
            continue
        descriptors.append(create_descriptor(attribute, _strip_annotated(hint), annotation))
    return descriptors
