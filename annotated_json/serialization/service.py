"""Document engine: tree writer, reader and serializer registry."""

import json as json_module
import sys
import threading
from collections import deque
from collections.abc import Mapping
from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from annotated_json.annotations import JsonSerializable, get_type_descriptor, is_json_serializable
from annotated_json.config import JsonConfig
from annotated_json.exceptions import ConfigurationException, SerializationException
from annotated_json.logging import ENGINE, get_logger
from annotated_json.object_map import ObjectMap
from annotated_json.serialization.annotated import AnnotatedJsonSerializer
from annotated_json.serialization.api import JsonNode, Serializer
from annotated_json.serialization.builtin import get_builtin_serializers
from annotated_json.serialization.fields import element_type_of, split_type


_logger = get_logger(ENGINE)

_SEQUENCE_VALUE_TYPES = (list, tuple, set, frozenset, deque)


def encode_float(value: float) -> str:
    """Encode a float as an exact hexadecimal string."""
    return float.hex(value)


def decode_float(text: str) -> float:
    """Decode a float written by :func:`encode_float` or as decimal text."""
    if "0x" in text.lower():
        return float.fromhex(text)
    return float(text)


def qualified_name(tp: type) -> str:
    """Get the fully qualified ``module.QualName`` of a class."""
    return f"{tp.__module__}.{tp.__qualname__}"


class DocumentWriter:
    """Per-document writer state.

    Holds the open object/array scopes, the pending field name for the next
    scope and the stack of active type options.
    """

    def __init__(self):
        self.root: JsonNode = None
        self.has_root = False
        self.stack: List[Any] = []
        self.pending_name: Optional[str] = None
        self.options: List[JsonSerializable] = []

    def take_pending_name(self) -> Optional[str]:
        name = self.pending_name
        self.pending_name = None
        return name

    @property
    def in_array(self) -> bool:
        return bool(self.stack) and isinstance(self.stack[-1], list)


class JsonEngine:
    """Converts objects to and from a generic value tree.

    The engine owns the serializer registry shared by every serializer it
    creates. Classes marked with ``@json_serializable`` get an
    :class:`~annotated_json.serialization.annotated.AnnotatedJsonSerializer`
    on first use; other types can be given a custom
    :class:`~annotated_json.serialization.api.Serializer`.

    Registry construction is serialized by a re-entrant lock. Writing and
    reading are safe from multiple threads; writer state is kept per thread.

    Args:
        config: Engine configuration. Defaults to :class:`JsonConfig()`.
        custom_serializers: Serializers to register by type.

    Example:
        >>> engine = JsonEngine()
        >>> engine.to_json(Point(3, 4))
        '{"x": 3, "y": 4}'
        >>> engine.from_json(Point, '{"x": 1, "y": 2}').x
        1
    """

    def __init__(
        self,
        config: Optional[JsonConfig] = None,
        custom_serializers: Optional[Dict[type, Serializer]] = None,
    ):
        self._config = config or JsonConfig()
        self._serializers: Dict[type, Serializer] = get_builtin_serializers()
        self._pending: Dict[type, Serializer] = {}
        self._tag_to_class: Dict[str, type] = {}
        self._class_to_tag: Dict[type, str] = {}
        self._lock = threading.RLock()
        self._local = threading.local()

        if custom_serializers:
            for clazz, serializer in custom_serializers.items():
                self.set_serializer(clazz, serializer)

    @property
    def config(self) -> JsonConfig:
        """Get the engine configuration."""
        return self._config

    # ------------------------------------------------------------------
    # Serializer registry
    # ------------------------------------------------------------------

    def get_serializer(self, tp: type) -> Optional[Serializer]:
        """Get the serializer registered for a type, or None.

        A serializer still under construction is only visible to the thread
        constructing it; other threads wait for the construction to finish.
        """
        serializer = self._serializers.get(tp)
        if serializer is None and self._pending:
            with self._lock:
                serializer = self._serializers.get(tp) or self._pending.get(tp)
        return serializer

    def set_serializer(self, tp: type, serializer: Serializer) -> None:
        """Register a serializer for a type, replacing any previous one."""
        with self._lock:
            self._serializers[tp] = serializer
        _logger.debug("Registered serializer for %s", getattr(tp, "__name__", tp))

    def remove_serializer(self, tp: type) -> Optional[Serializer]:
        """Unregister and return the serializer of a type."""
        with self._lock:
            return self._serializers.pop(tp, None)

    def has_serializer(self, tp: type) -> bool:
        return self.get_serializer(tp) is not None

    def serializer_for(self, tp: type) -> Serializer:
        """Get the serializer of a type, creating it for serializable classes.

        Raises:
            ConfigurationException: If no serializer is registered and the
                type is not marked serializable.
        """
        serializer = self.get_serializer(tp)
        if serializer is not None:
            return serializer

        with self._lock:
            serializer = self._serializers.get(tp) or self._pending.get(tp)
            if serializer is None:
                if not is_json_serializable(tp):
                    raise ConfigurationException(
                        f"Missing @json_serializable marker for '{getattr(tp, '__name__', tp)}'"
                    )
                serializer = AnnotatedJsonSerializer(self, tp)
            return serializer

    @contextmanager
    def constructing(self, tp: type, serializer: Serializer) -> Iterator[Serializer]:
        """Register a serializer for the duration of its construction.

        The registry lock is held throughout. The serializer is published to
        the registry only if construction succeeds.
        """
        with self._lock:
            previous = self._pending.get(tp)
            self._pending[tp] = serializer
            try:
                yield serializer
                self._serializers[tp] = serializer
            finally:
                if previous is None:
                    del self._pending[tp]
                else:
                    self._pending[tp] = previous

    # ------------------------------------------------------------------
    # Class tags
    # ------------------------------------------------------------------

    def add_class_tag(self, tag: str, tp: type) -> None:
        """Register a short tag for a class.

        A tag already taken by another class is left untouched; that class
        then falls back to its fully qualified name.
        """
        with self._lock:
            existing = self._tag_to_class.get(tag)
            if existing is not None and existing is not tp:
                _logger.debug(
                    "Class tag '%s' already used by %s, %s keeps its qualified name",
                    tag,
                    qualified_name(existing),
                    qualified_name(tp),
                )
                return
            self._tag_to_class[tag] = tp
            self._class_to_tag[tp] = tag
        _logger.debug("Registered class tag '%s' for %s", tag, qualified_name(tp))

    def get_tag(self, tp: type) -> str:
        """Get the tag written for instances of a class."""
        descriptor = get_type_descriptor(tp)
        if descriptor is not None and descriptor.fully_qualified_tag:
            return qualified_name(tp)
        return self._class_to_tag.get(tp) or qualified_name(tp)

    def get_class(self, tag: str) -> Optional[type]:
        """Get the class registered under a short tag, or None."""
        return self._tag_to_class.get(tag)

    def resolve_tag(self, tag: str, base: Optional[type] = None) -> type:
        """Resolve a class tag read from a document.

        Lookup order: registered short tags, subclasses of ``base`` by
        name, registered classes by qualified name, then serializable
        classes in modules that are already imported. Modules are never
        imported because of document content.

        Raises:
            SerializationException: If the tag names no serializable class.
        """
        if not isinstance(tag, str):
            raise SerializationException(f"Class tag must be a string, got {type(tag).__name__}")

        tp = self.find_class(tag, base)
        if tp is None:
            raise SerializationException(f"Unknown class tag: {tag}")
        return tp

    def find_class(self, tag: str, base: Optional[type] = None) -> Optional[type]:
        """Look up a class tag like :meth:`resolve_tag`, returning None if unknown."""
        tp = self.get_class(tag)
        if tp is not None:
            return tp

        if base is not None and base is not object:
            for candidate in _iter_subclasses(base):
                if not is_json_serializable(candidate):
                    continue
                # classes defined in a function carry <locals> in their qualified name
                if candidate.__name__ == tag or qualified_name(candidate) == tag:
                    return candidate

        for candidate in list(self._serializers):
            if isinstance(candidate, type) and qualified_name(candidate) == tag:
                return candidate

        tp = _find_loaded_class(tag)
        if tp is not None and is_json_serializable(tp):
            return tp
        return None

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    @contextmanager
    def document(self) -> Iterator[DocumentWriter]:
        """Open a document for writing on the current thread.

        Documents nest: a serializer may write a separate document while
        another one is open.
        """
        writer = DocumentWriter()
        previous = getattr(self._local, "writer", None)
        self._local.writer = writer
        try:
            yield writer
            if writer.stack:
                raise SerializationException("Document has unclosed object or array scopes")
        finally:
            self._local.writer = previous

    def _writer(self) -> DocumentWriter:
        writer = getattr(self._local, "writer", None)
        if writer is None:
            raise SerializationException("No document is open; use to_tree() or document()")
        return writer

    @contextmanager
    def type_options(self, descriptor: Optional[JsonSerializable]) -> Iterator[None]:
        """Apply a type's ``encode_fp`` and ``write_null`` flags to nested values."""
        writer = self._writer()
        writer.options.append(descriptor or JsonSerializable())
        try:
            yield
        finally:
            writer.options.pop()

    def _write_null_enabled(self, writer: DocumentWriter) -> bool:
        if self._config.write_null:
            return True
        return bool(writer.options) and writer.options[-1].write_null

    def _encode_fp_enabled(self, writer: DocumentWriter) -> bool:
        if self._config.encode_fp:
            return True
        return bool(writer.options) and writer.options[-1].encode_fp

    def _emit(self, writer: DocumentWriter, name: Optional[str], node: Any) -> None:
        if name is None:
            name = writer.take_pending_name()

        if not writer.stack:
            if writer.has_root:
                raise SerializationException("Document already has a root value")
            writer.root = node
            writer.has_root = True
            return

        parent = writer.stack[-1]
        if isinstance(parent, list):
            parent.append(node)
        elif name is None:
            raise SerializationException("Values inside an object require a name")
        else:
            parent[name] = node

    def write_object_start(
        self,
        actual_type: Optional[type] = None,
        known_type: Optional[type] = None,
        name: Optional[str] = None,
    ) -> None:
        """Open an object scope.

        A class tag is written when ``actual_type`` is marked dynamic, or
        when it differs from the declared ``known_type``.
        """
        writer = self._writer()
        node: Dict[str, Any] = {}
        self._emit(writer, name, node)
        writer.stack.append(node)

        if actual_type is not None:
            descriptor = get_type_descriptor(actual_type)
            dynamic = descriptor is not None and descriptor.dynamic
            if dynamic or (known_type is not None and actual_type is not known_type):
                node[self._config.type_tag_field] = self.get_tag(actual_type)

    def write_object_end(self) -> None:
        writer = self._writer()
        if not writer.stack or not isinstance(writer.stack[-1], dict):
            raise SerializationException("write_object_end() without a matching object scope")
        writer.stack.pop()

    def write_array_start(self, name: Optional[str] = None) -> None:
        writer = self._writer()
        node: List[Any] = []
        self._emit(writer, name, node)
        writer.stack.append(node)

    def write_array_end(self) -> None:
        writer = self._writer()
        if not writer.stack or not isinstance(writer.stack[-1], list):
            raise SerializationException("write_array_end() without a matching array scope")
        writer.stack.pop()

    def write_value(
        self,
        name: Optional[str],
        value: Any,
        known_type: Any = None,
        element_type: Any = None,
    ) -> None:
        """Write a named value, or an unnamed one inside an array.

        ``None`` inside an object is only written when the active type or
        the engine enables ``write_null``. Serializers are resolved by the
        value's runtime type before any built-in handling, in the same order
        as :meth:`read_node`.

        Raises:
            SerializationException: If the value's type has no serializer.
        """
        writer = self._writer()
        if name is None:
            name = writer.take_pending_name()

        if value is None:
            if not writer.stack or writer.in_array or self._write_null_enabled(writer):
                self._emit(writer, name, None)
            return

        known_raw, known_args = split_type(known_type)
        if element_type is None and known_args:
            element_type = element_type_of(known_raw, known_args)

        serializer = self._find_serializer(type(value))
        if serializer is not None:
            writer.pending_name = name
            try:
                serializer.write(self, value, known_raw)
            finally:
                writer.pending_name = None
        elif isinstance(value, bool) or isinstance(value, str):
            self._emit(writer, name, value)
        elif isinstance(value, Enum):
            self._emit(writer, name, value.name)
        elif isinstance(value, int):
            self._emit(writer, name, int(value))
        elif isinstance(value, float):
            if self._encode_fp_enabled(writer):
                self._emit(writer, name, encode_float(value))
            else:
                self._emit(writer, name, value)
        elif isinstance(value, _SEQUENCE_VALUE_TYPES):
            self._write_sequence(name, value, element_type)
        elif isinstance(value, ObjectMap):
            self._write_mapping(name, value.entries(), element_type)
        elif isinstance(value, Mapping):
            self._write_mapping(name, value.items(), element_type)
        else:
            raise SerializationException(f"No serializer found for type: {type(value)}")

    def _find_serializer(self, tp: type) -> Optional[Serializer]:
        serializer = self.get_serializer(tp)
        if serializer is None and is_json_serializable(tp):
            serializer = self.serializer_for(tp)
        return serializer

    def _write_sequence(self, name: Optional[str], values: Any, element_type: Any) -> None:
        self.write_array_start(name)
        try:
            for item in values:
                self.write_value(None, item, element_type)
        finally:
            self.write_array_end()

    def _write_mapping(self, name: Optional[str], items: Any, value_type: Any) -> None:
        self.write_object_start(name=name)
        try:
            for key, item in items:
                self.write_value(_object_key(key), item, value_type)
        finally:
            self.write_object_end()

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def child(self, node: JsonNode, name: str) -> JsonNode:
        """Get a named child of an object node, or None."""
        if isinstance(node, dict):
            return node.get(name)
        return None

    def read_value(
        self,
        name: str,
        declared_type: Any,
        element_type: Any,
        node: JsonNode,
    ) -> Any:
        """Read a named child of an object node.

        Returns:
            The decoded value, or None if the key is absent or null.
        """
        child = self.child(node, name)
        if child is None:
            return None
        return self.read_node(declared_type, element_type, child)

    def read_node(self, declared_type: Any, element_type: Any, node: JsonNode) -> Any:
        """Decode a node as the declared type.

        Raises:
            SerializationException: If the node cannot represent the type.
        """
        if node is None:
            return None

        raw, args = split_type(declared_type)
        if element_type is None and args:
            element_type = element_type_of(raw, args)

        if raw is None or raw is object:
            return self._read_untyped(node)

        tag_field = self._config.type_tag_field
        if isinstance(node, dict) and tag_field in node and not self._is_plain_mapping(raw):
            tagged = self.resolve_tag(node[tag_field], raw)
            if not issubclass(tagged, raw):
                raise SerializationException(
                    f"Class tag '{node[tag_field]}' is not a {raw.__name__}"
                )
            raw, args = tagged, ()

        serializer = self._find_serializer(raw)
        if serializer is not None:
            return serializer.read(self, node, raw)

        if raw is bool:
            if isinstance(node, bool):
                return node
            raise self._mismatch(node, raw)

        if issubclass(raw, Enum):
            return self._read_enum(raw, node)

        if issubclass(raw, int):
            return self._read_int(raw, node)

        if issubclass(raw, float):
            return self._read_float(raw, node)

        if issubclass(raw, str):
            if isinstance(node, str):
                return raw(node)
            if isinstance(node, (int, float)) and not isinstance(node, bool):
                return raw(node)
            raise self._mismatch(node, raw)

        if issubclass(raw, _SEQUENCE_VALUE_TYPES):
            return self._read_sequence(raw, args, element_type, node)

        if issubclass(raw, ObjectMap):
            if not isinstance(node, dict):
                raise self._mismatch(node, raw)
            key_type = args[0] if len(args) == 2 else None
            result = raw()
            for key, item in node.items():
                result.put(self._read_key(key_type, key), self.read_node(element_type, None, item))
            return result

        if issubclass(raw, Mapping):
            if not isinstance(node, dict):
                raise self._mismatch(node, raw)
            key_type = args[0] if len(args) == 2 else None
            result = raw() if issubclass(raw, dict) else {}
            for key, item in node.items():
                result[self._read_key(key_type, key)] = self.read_node(element_type, None, item)
            return result

        if isinstance(node, raw):
            return node

        raise self._mismatch(node, raw)

    def _is_plain_mapping(self, raw: type) -> bool:
        if not issubclass(raw, (Mapping, ObjectMap)):
            return False
        return not self.has_serializer(raw) and not is_json_serializable(raw)

    def _read_untyped(self, node: JsonNode) -> Any:
        if isinstance(node, dict):
            tag = node.get(self._config.type_tag_field)
            tagged = self.find_class(tag) if isinstance(tag, str) else None
            if tagged is not None:
                return self.read_node(tagged, None, node)
            return {key: self._read_untyped(item) for key, item in node.items()}
        if isinstance(node, list):
            return [self._read_untyped(item) for item in node]
        return node

    def _read_key(self, key_type: Any, key: str) -> Any:
        """Decode an object key written by ``_object_key`` as the declared key type."""
        raw, _ = split_type(key_type)
        if raw is None or raw is object or raw is str:
            return key
        if raw is bool:
            if key in ("True", "False"):
                return key == "True"
            raise SerializationException(f"Invalid boolean key: {key!r}")
        return self.read_node(raw, None, key)

    def _read_enum(self, raw: type, node: JsonNode) -> Any:
        if isinstance(node, str) and node in raw.__members__:
            return raw[node]
        try:
            return raw(node)
        except ValueError as e:
            raise SerializationException(f"{node!r} is not a member of {raw.__name__}", cause=e)

    def _read_int(self, raw: type, node: JsonNode) -> int:
        if isinstance(node, bool):
            raise self._mismatch(node, raw)
        if isinstance(node, int):
            return raw(node)
        if isinstance(node, float) and node.is_integer():
            return raw(int(node))
        if isinstance(node, str):
            try:
                return raw(int(node))
            except ValueError as e:
                raise SerializationException(f"Invalid integer value: {node!r}", cause=e)
        raise self._mismatch(node, raw)

    def _read_float(self, raw: type, node: JsonNode) -> float:
        if isinstance(node, bool):
            raise self._mismatch(node, raw)
        if isinstance(node, (int, float)):
            return raw(node)
        if isinstance(node, str):
            try:
                return raw(decode_float(node))
            except ValueError as e:
                raise SerializationException(f"Invalid float value: {node!r}", cause=e)
        raise self._mismatch(node, raw)

    def _read_sequence(self, raw: type, args: tuple, element_type: Any, node: JsonNode) -> Any:
        if not isinstance(node, list):
            raise self._mismatch(node, raw)
        if raw is tuple and args and Ellipsis not in args and len(args) == len(node):
            return tuple(self.read_node(arg, None, item) for arg, item in zip(args, node))
        return raw(self.read_node(element_type, None, item) for item in node)

    @staticmethod
    def _mismatch(node: JsonNode, raw: type) -> SerializationException:
        return SerializationException(
            f"Cannot read {type(node).__name__} value as {raw.__name__}"
        )

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def to_tree(self, obj: Any, known_type: Optional[type] = None) -> JsonNode:
        """Convert an object to a value tree.

        Args:
            obj: The object to convert.
            known_type: The type the reader will request. A class tag is
                written when the object's type differs from it.
        """
        with self.document() as writer:
            self.write_value(None, obj, known_type)
        return writer.root

    def from_tree(self, tp: Any, node: JsonNode) -> Any:
        """Convert a value tree to an instance of ``tp``."""
        return self.read_node(tp, None, node)

    def to_json(self, obj: Any, known_type: Optional[type] = None) -> str:
        """Convert an object to JSON text."""
        tree = self.to_tree(obj, known_type)
        try:
            return json_module.dumps(tree, indent=self._config.indent, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise SerializationException(f"Failed to encode JSON: {e}", cause=e)

    def from_json(self, tp: Any, text: str) -> Any:
        """Convert JSON text to an instance of ``tp``."""
        try:
            node = json_module.loads(text)
        except json_module.JSONDecodeError as e:
            raise SerializationException(f"Failed to parse JSON: {e}", cause=e)
        return self.from_tree(tp, node)


def _object_key(key: Any) -> str:
    if isinstance(key, str):
        return key
    if isinstance(key, Enum):
        return key.name
    if isinstance(key, (bool, int, float)):
        return str(key)
    raise SerializationException(
        f"Cannot use {type(key).__name__} as an object key; declare the field with JsonMap"
    )


def _iter_subclasses(base: type) -> Iterator[type]:
    seen = set()
    pending = [base]
    while pending:
        tp = pending.pop()
        if tp in seen:
            continue
        seen.add(tp)
        yield tp
        pending.extend(tp.__subclasses__())


def _find_loaded_class(tag: str) -> Optional[type]:
    parts = tag.split(".")
    for split in range(len(parts) - 1, 0, -1):
        module = sys.modules.get(".".join(parts[:split]))
        if module is None:
            continue
        target: Any = module
        for attribute in parts[split:]:
            target = getattr(target, attribute, None)
            if target is None:
                return None
        return target if isinstance(target, type) else None
    return None
