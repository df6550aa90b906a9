"""Tests for annotated_json/annotations.py module."""

import pytest

from annotated_json.annotations import (
    TYPE_DESCRIPTOR_ATTRIBUTE,
    JsonArray,
    JsonMap,
    JsonSerializable,
    JsonSerialize,
    get_type_descriptor,
    is_json_serializable,
    json_serializable,
)

from models import Circle, Plain, Point, Shape, Tagged


class TestJsonSerializable:
    """Tests for the class marker."""

    def test_bare_decorator(self):
        assert get_type_descriptor(Point) == JsonSerializable()

    def test_flags(self):
        descriptor = get_type_descriptor(Tagged)
        assert descriptor.dynamic
        assert descriptor.fully_qualified_tag
        assert not descriptor.encode_fp
        assert not descriptor.write_null

    def test_inherited(self):
        assert get_type_descriptor(Circle) is get_type_descriptor(Shape)
        assert is_json_serializable(Circle)

    def test_unmarked(self):
        assert get_type_descriptor(Plain) is None
        assert not is_json_serializable(Plain)
        assert not is_json_serializable(int)

    def test_non_type(self):
        assert get_type_descriptor(Point()) is None
        assert get_type_descriptor("Point") is None

    def test_returns_class(self):
        class Local:
            pass

        assert json_serializable(Local) is Local
        assert hasattr(Local, TYPE_DESCRIPTOR_ATTRIBUTE)

    def test_rejects_non_class(self):
        with pytest.raises(TypeError):
            json_serializable(lambda: None)

    def test_foreign_attribute_ignored(self):
        class Impostor:
            __json_serializable__ = True

        assert not is_json_serializable(Impostor)

    def test_descriptor_is_frozen(self):
        with pytest.raises(AttributeError):
            get_type_descriptor(Point).dynamic = True


class TestFieldMetadata:
    """Tests for the field metadata types."""

    def test_defaults(self):
        meta = JsonSerialize()
        assert meta.name == ""
        assert meta.array is None
        assert meta.map is None

    def test_map_defaults(self):
        meta = JsonMap()
        assert meta.map is None
        assert meta.key is None
        assert meta.value is None

    def test_equality(self):
        assert JsonSerialize(array=JsonArray(int)) == JsonSerialize(array=JsonArray(int))
        assert JsonArray(int) != JsonArray(str)

    def test_hashable(self):
        assert len({JsonSerialize(name="a"), JsonSerialize(name="a")}) == 1
