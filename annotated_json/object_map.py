"""Open-addressed hash map.

:class:`ObjectMap` stores keys and values in flat slot arrays and resolves
collisions with linear probing. Iteration follows slot order, so the order
of entries is unspecified and may change as the map grows.
"""

from typing import Any, Generic, Iterator, List, Optional, Tuple, TypeVar

K = TypeVar("K")
V = TypeVar("V")

_EMPTY = object()

DEFAULT_CAPACITY = 16
DEFAULT_LOAD_FACTOR = 0.8


class ObjectMap(Generic[K, V]):
    """Unordered map using open addressing with linear probing.

    ``None`` is not allowed as a key.

    Example:
        >>> scores = ObjectMap()
        >>> scores.put("alice", 3)
        >>> scores.get("alice")
        3
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, load_factor: float = DEFAULT_LOAD_FACTOR):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        if not 0.0 < load_factor < 1.0:
            raise ValueError("load_factor must be between 0 and 1")
        self._load_factor = load_factor
        self._size = 0
        self._allocate(_next_power_of_two(capacity))

    def _allocate(self, capacity: int) -> None:
        self._keys: List[Any] = [_EMPTY] * capacity
        self._values: List[Any] = [None] * capacity
        self._mask = capacity - 1
        self._threshold = int(capacity * self._load_factor)

    def _locate(self, key: Any) -> Tuple[int, bool]:
        """Return the slot holding ``key``, or the empty slot where it belongs."""
        index = hash(key) & self._mask
        while True:
            existing = self._keys[index]
            if existing is _EMPTY:
                return index, False
            if existing == key:
                return index, True
            index = (index + 1) & self._mask

    def put(self, key: K, value: V) -> Optional[V]:
        """Associate ``value`` with ``key``.

        Returns:
            The previous value, or None if the key was absent.
        """
        if key is None:
            raise ValueError("key cannot be None")
        index, found = self._locate(key)
        if found:
            old = self._values[index]
            self._values[index] = value
            return old
        self._keys[index] = key
        self._values[index] = value
        self._size += 1
        if self._size > self._threshold:
            self._resize(len(self._keys) * 2)
        return None

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        if key is None:
            return default
        index, found = self._locate(key)
        return self._values[index] if found else default

    def contains_key(self, key: K) -> bool:
        if key is None:
            return False
        return self._locate(key)[1]

    def remove(self, key: K, default: Optional[V] = None) -> Optional[V]:
        """Remove ``key`` and return its value, or ``default`` if absent."""
        if key is None:
            return default
        index, found = self._locate(key)
        if not found:
            return default
        old = self._values[index]
        self._delete_slot(index)
        self._size -= 1
        return old

    def _delete_slot(self, index: int) -> None:
        # backward-shift deletion keeps probe chains unbroken without tombstones
        keys, values, mask = self._keys, self._values, self._mask
        hole = index
        probe = (index + 1) & mask
        while keys[probe] is not _EMPTY:
            home = hash(keys[probe]) & mask
            if (probe - home) & mask >= (probe - hole) & mask:
                keys[hole] = keys[probe]
                values[hole] = values[probe]
                hole = probe
            probe = (probe + 1) & mask
        keys[hole] = _EMPTY
        values[hole] = None

    def _resize(self, capacity: int) -> None:
        old_keys, old_values = self._keys, self._values
        self._allocate(capacity)
        for key, value in zip(old_keys, old_values):
            if key is not _EMPTY:
                index, _ = self._locate(key)
                self._keys[index] = key
                self._values[index] = value

    def clear(self) -> None:
        self._size = 0
        self._allocate(len(self._keys))

    def entries(self) -> Iterator[Tuple[K, V]]:
        """Iterate ``(key, value)`` pairs in slot order."""
        for key, value in zip(self._keys, self._values):
            if key is not _EMPTY:
                yield key, value

    def keys(self) -> Iterator[K]:
        for key, _ in self.entries():
            yield key

    def values(self) -> Iterator[V]:
        for _, value in self.entries():
            yield value

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[K]:
        return self.keys()

    def __contains__(self, key: object) -> bool:
        return self.contains_key(key)

    def __getitem__(self, key: K) -> V:
        if key is None:
            raise KeyError(key)
        index, found = self._locate(key)
        if not found:
            raise KeyError(key)
        return self._values[index]

    def __setitem__(self, key: K, value: V) -> None:
        self.put(key, value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObjectMap):
            return NotImplemented
        if self._size != other._size:
            return False
        for key, value in self.entries():
            index, found = other._locate(key)
            if not found or other._values[index] != value:
                return False
        return True

    __hash__ = None

    def __repr__(self) -> str:
        body = ", ".join(f"{k!r}: {v!r}" for k, v in self.entries())
        return f"ObjectMap({{{body}}})"


def _next_power_of_two(value: int) -> int:
    capacity = 1
    while capacity < value:
        capacity <<= 1
    return capacity
