"""Unit tests for annotated_json.exceptions module."""

import pytest

from annotated_json.exceptions import (
    AnnotatedJsonException,
    ConfigurationException,
    ReflectionException,
    SerializationException,
)


class TestAnnotatedJsonException:
    """Tests for AnnotatedJsonException base class."""

    def test_create_with_message(self):
        ex = AnnotatedJsonException("test message")
        assert str(ex) == "test message"
        assert ex.cause is None

    def test_create_with_message_and_cause(self):
        cause = ValueError("original error")
        ex = AnnotatedJsonException("wrapper message", cause=cause)
        assert str(ex) == "wrapper message"
        assert ex.cause is cause

    def test_create_empty(self):
        ex = AnnotatedJsonException()
        assert str(ex) == ""
        assert ex.cause is None

    def test_inheritance(self):
        assert isinstance(AnnotatedJsonException("test"), Exception)


class TestSubclasses:
    """Tests for the concrete exception types."""

    @pytest.mark.parametrize(
        "exception_class",
        [ConfigurationException, ReflectionException, SerializationException],
    )
    def test_inheritance(self, exception_class):
        ex = exception_class("failure")
        assert isinstance(ex, AnnotatedJsonException)
        assert str(ex) == "failure"

    def test_reflection_cause(self):
        cause = AttributeError("can't set attribute")
        ex = ReflectionException("Cannot assign field 'x'", cause=cause)
        assert ex.cause is cause

    def test_catch_by_base(self):
        with pytest.raises(AnnotatedJsonException):
            raise SerializationException("Unknown class tag: Nope")

    def test_distinct_types(self):
        assert not issubclass(ConfigurationException, SerializationException)
        assert not issubclass(ReflectionException, ConfigurationException)
