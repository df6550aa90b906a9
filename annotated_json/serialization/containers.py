"""Container adapters for sequence and mapping fields.

One adapter is created per container field when the owning class's
serializer is built. Adapters hold only field-level metadata; every write
stages the container's entries in a scratch list taken from a shared pool,
so iteration never observes concurrent mutation of the container and
nested container writes never share a list.
"""

import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, List, Optional, TYPE_CHECKING

from annotated_json.exceptions import SerializationException
from annotated_json.logging import CONTAINERS, get_logger
from annotated_json.serialization.api import JsonNode

if TYPE_CHECKING:
    from annotated_json.serialization.service import JsonEngine


_logger = get_logger(CONTAINERS)

KEY_ENTRY = "key"
VALUE_ENTRY = "value"


class ScratchPool:
    """Thread-safe pool of reusable scratch lists.

    A list is owned exclusively by one container write and is cleared and
    returned to the pool on every exit path.
    """

    def __init__(self, max_idle: int = 8):
        self._lock = threading.Lock()
        self._idle: List[list] = []
        self._max_idle = max_idle

    @contextmanager
    def acquire(self) -> Iterator[list]:
        with self._lock:
            buffer = self._idle.pop() if self._idle else []
        try:
            yield buffer
        finally:
            buffer.clear()
            with self._lock:
                if len(self._idle) < self._max_idle:
                    self._idle.append(buffer)

    @property
    def idle_count(self) -> int:
        with self._lock:
            return len(self._idle)


scratch_pool = ScratchPool()


class SequenceSerializer:
    """Adapter for ``list`` and ``deque`` fields.

    Writes the container as a named array in iteration order and reads it
    back into the same concrete container type.
    """

    def __init__(self, name: str, element_type: Any, container_type: type = list):
        self._name = name
        self._element_type = element_type
        self._container_type = container_type

    @property
    def name(self) -> str:
        return self._name

    @property
    def element_type(self) -> Any:
        return self._element_type

    @property
    def container_type(self) -> type:
        return self._container_type

    def write(self, json: "JsonEngine", values: Optional[Iterable[Any]]) -> None:
        if values is None:
            json.write_value(self._name, None)
            return

        with scratch_pool.acquire() as buffer:
            buffer.extend(values)
            json.write_array_start(self._name)
            try:
                for item in buffer:
                    json.write_value(None, item, self._element_type)
            finally:
                json.write_array_end()

    def read(self, json: "JsonEngine", node: JsonNode) -> Optional[Any]:
        """Rebuild the container from the array stored under this field's name.

        Returns:
            The container, or None if the node holds no array for the field.
        """
        child = json.child(node, self._name)
        if not isinstance(child, list):
            if child is not None:
                _logger.debug("Field '%s' is not an array, ignoring it", self._name)
            return None
        return self._container_type(
            json.read_node(self._element_type, None, item) for item in child
        )


class MapSerializer:
    """Adapter for mapping fields.

    A map is written as a named array of ``{"key": ..., "value": ...}``
    objects, which keeps non-string keys intact. Entries are written in the
    order the underlying map yields them: insertion order for ``dict``,
    slot order (unspecified) for :class:`~annotated_json.object_map.ObjectMap`.
    """

    def __init__(self, name: str, key_type: Any, value_type: Any):
        self._name = name
        self._key_type = key_type
        self._value_type = value_type

    @property
    def name(self) -> str:
        return self._name

    @property
    def key_type(self) -> Any:
        return self._key_type

    @property
    def value_type(self) -> Any:
        return self._value_type

    def write(
        self,
        json: "JsonEngine",
        entries: Optional[Iterable[Any]],
        key_of: Callable[[Any], Any],
        value_of: Callable[[Any], Any],
    ) -> None:
        if entries is None:
            json.write_value(self._name, None)
            return

        with scratch_pool.acquire() as buffer:
            buffer.extend((key_of(entry), value_of(entry)) for entry in entries)
            json.write_array_start(self._name)
            try:
                for key, value in buffer:
                    json.write_object_start()
                    try:
                        json.write_value(KEY_ENTRY, key, self._key_type)
                        json.write_value(VALUE_ENTRY, value, self._value_type)
                    finally:
                        json.write_object_end()
            finally:
                json.write_array_end()

    def read(
        self,
        json: "JsonEngine",
        node: JsonNode,
        factory: Callable[[], Any] = dict,
        put: Optional[Callable[[Any, Any, Any], Any]] = None,
    ) -> Optional[Any]:
        """Rebuild a map with ``factory`` and ``put``.

        Args:
            json: The engine reading the document.
            node: The object node owning the field.
            factory: Creates an empty map.
            put: Inserts one entry, ``put(map, key, value)``. Defaults to
                item assignment.

        Returns:
            The map, or None if the node holds no array for the field.

        Raises:
            SerializationException: If an entry is not a key/value object.
        """
        child = json.child(node, self._name)
        if not isinstance(child, list):
            if child is not None:
                _logger.debug("Field '%s' is not an array of entries, ignoring it", self._name)
            return None

        if put is None:
            put = _set_item

        result = factory()
        for entry in child:
            if not isinstance(entry, dict):
                raise SerializationException(
                    f"Map field '{self._name}' expects key/value objects, "
                    f"got {type(entry).__name__}"
                )
            key = json.read_node(self._key_type, None, entry.get(KEY_ENTRY))
            value = json.read_node(self._value_type, None, entry.get(VALUE_ENTRY))
            put(result, key, value)
        return result


def _set_item(mapping: Any, key: Any, value: Any) -> None:
    mapping[key] = value
