"""Declarative serialization metadata.

Classes opt in with the :func:`json_serializable` decorator. Fields opt in
by carrying :class:`JsonSerialize` metadata in a ``typing.Annotated`` type
hint; every other attribute is ignored by the serializer.

Example:
    Declaring serializable types::

        from typing import Annotated, Dict, List

        from annotated_json import JsonMap, JsonSerialize, json_serializable

        @json_serializable
        class Point:
            x: Annotated[int, JsonSerialize()] = 0
            y: Annotated[int, JsonSerialize()] = 0

        @json_serializable(dynamic=True)
        class Group:
            label: Annotated[str, JsonSerialize(name="title")] = ""
            points: Annotated[List[Point], JsonSerialize()]
            lookup: Annotated[Dict[str, Point], JsonSerialize(map=JsonMap())]

            def __init__(self):
                self.points = []
                self.lookup = {}
"""

from dataclasses import dataclass
from typing import Any, Optional, Type


TYPE_DESCRIPTOR_ATTRIBUTE = "__json_serializable__"


@dataclass(frozen=True)
class JsonSerializable:
    """Type-level serialization flags.

    Attributes:
        dynamic: Instances always carry a class tag, so a field declared
            with a base type can be read back as the concrete subtype.
        fully_qualified_tag: The class registers no short tag; the tag is
            ``module.QualName`` instead.
        encode_fp: Floats are written as exact hex strings.
        write_null: ``None`` fields are emitted as ``null``. By default they
            are omitted.
    """

    dynamic: bool = False
    fully_qualified_tag: bool = False
    encode_fp: bool = False
    write_null: bool = False


@dataclass(frozen=True)
class JsonArray:
    """Element type of a sequence field."""

    value: Any = None


@dataclass(frozen=True)
class JsonMap:
    """Mapping field metadata.

    Attributes:
        map: Concrete mapping class, a ``MutableMapping`` subclass such as
            ``dict`` or an :class:`~annotated_json.object_map.ObjectMap`.
            Defaults to the field's declared type.
        key: Key component type. Defaults to the declared key argument.
        value: Value component type. Defaults to the declared value argument.
    """

    map: Optional[type] = None
    key: Any = None
    value: Any = None


@dataclass(frozen=True)
class JsonSerialize:
    """Per-field serialization metadata.

    Attributes:
        name: Output name. Empty means the attribute name is used.
        array: Element metadata for sequence fields.
        map: Mapping metadata. Its presence makes the field a mapping field.
    """

    name: str = ""
    array: Optional[JsonArray] = None
    map: Optional[JsonMap] = None


def json_serializable(
    cls: Optional[Type] = None,
    *,
    dynamic: bool = False,
    fully_qualified_tag: bool = False,
    encode_fp: bool = False,
    write_null: bool = False,
):
    """Mark a class as serializable.

    Usable bare (``@json_serializable``) or with flags
    (``@json_serializable(dynamic=True)``). The marker is inherited by
    subclasses.
    """
    descriptor = JsonSerializable(
        dynamic=dynamic,
        fully_qualified_tag=fully_qualified_tag,
        encode_fp=encode_fp,
        write_null=write_null,
    )

    def wrap(target: Type) -> Type:
        if not isinstance(target, type):
            raise TypeError("@json_serializable can only decorate classes")
        setattr(target, TYPE_DESCRIPTOR_ATTRIBUTE, descriptor)
        return target

    if cls is None:
        return wrap
    return wrap(cls)


def get_type_descriptor(tp: Any) -> Optional[JsonSerializable]:
    """Return the serialization flags of a type, or None if it is not marked."""
    if not isinstance(tp, type):
        return None
    descriptor = getattr(tp, TYPE_DESCRIPTOR_ATTRIBUTE, None)
    if isinstance(descriptor, JsonSerializable):
        return descriptor
    return None


def is_json_serializable(tp: Any) -> bool:
    """Check whether a type carries the serializable marker."""
    return get_type_descriptor(tp) is not None
