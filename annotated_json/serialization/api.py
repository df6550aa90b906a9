"""Serialization API interfaces.

This module defines the interface every serializer registered with a
:class:`~annotated_json.serialization.service.JsonEngine` implements.
Annotated classes get an
:class:`~annotated_json.serialization.annotated.AnnotatedJsonSerializer`
automatically; custom serializers cover types that cannot carry
annotations.

Example:
    Implementing a custom serializer::

        from annotated_json.serialization.api import Serializer

        class ColorSerializer(Serializer[Color]):
            def write(self, json, color, known_type):
                json.write_value(None, color.to_hex())

            def read(self, json, node, requested_type):
                return Color.from_hex(node)

        engine.set_serializer(Color, ColorSerializer())
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, TYPE_CHECKING, TypeVar, Union

if TYPE_CHECKING:
    from annotated_json.serialization.service import JsonEngine

T = TypeVar("T")

JsonNode = Union[Dict[str, Any], List[Any], str, int, float, bool, None]
"""A node of the generic value tree."""


class Serializer(ABC, Generic[T]):
    """Converts instances of one type to and from tree nodes.

    A serializer writes through the engine's scoped writer methods so that
    it can be nested under a field name or inside an array. It reads from an
    already decoded node.
    """

    @abstractmethod
    def write(self, json: "JsonEngine", obj: T, known_type: Optional[type]) -> None:
        """Write an object through the engine.

        Args:
            json: The engine owning the document being written.
            obj: The object to write.
            known_type: The type the surrounding field or element was
                declared with, or None if unknown.
        """
        pass

    @abstractmethod
    def read(self, json: "JsonEngine", node: JsonNode, requested_type: Optional[type]) -> T:
        """Reconstruct an object from a tree node.

        Args:
            json: The engine owning the document being read.
            node: The decoded node.
            requested_type: The type the caller asked for.

        Returns:
            The reconstructed object.
        """
        pass
