"""Annotated JSON exceptions.

This module defines the exception hierarchy for the annotated JSON
serialization library. All exceptions inherit from
:class:`AnnotatedJsonException`.

Example:
    Handling serialization errors::

        from annotated_json.exceptions import (
            AnnotatedJsonException,
            ConfigurationException,
            ReflectionException,
        )

        try:
            engine.to_json(player)
        except ConfigurationException:
            print("Player is missing its serialization metadata")
        except ReflectionException as e:
            print(f"Field access failed: {e.cause}")
        except AnnotatedJsonException as e:
            print(f"Serialization error: {e}")
"""


class AnnotatedJsonException(Exception):
    """Base class for all annotated JSON exceptions.

    Args:
        message: The error message describing the exception.
        cause: The underlying exception that caused this error, if any.

    Attributes:
        cause: The underlying cause of this exception, if any.
    """

    def __init__(self, message: str = "", cause: Exception = None):
        super().__init__(message)
        self.cause = cause


class ConfigurationException(AnnotatedJsonException):
    """Raised when type metadata or engine configuration is invalid.

    Configuration errors surface synchronously when a serializer is
    requested or a configuration is built. There is no recovery path;
    the type's metadata or the configuration must be fixed.

    Example:
        - Requesting a serializer for a class without ``@json_serializable``
        - A mapping field whose concrete class is not a supported map type
        - A sequence field with no resolvable element type
        - Negative indent in :class:`~annotated_json.config.JsonConfig`
    """
    pass


class ReflectionException(AnnotatedJsonException):
    """Raised when the runtime rejects field access or instantiation.

    Fatal for the single read or write call in progress. The original
    error is available as :attr:`cause`.

    Example:
        - A read-only property annotated as a serializable field
        - A class whose constructor requires arguments
    """
    pass


class SerializationException(AnnotatedJsonException):
    """Raised when a document cannot be written or decoded.

    Example:
        - No serializer registered for a runtime type
        - An unknown class tag in the document
        - A node whose shape does not match the declared type
        - Unbalanced object or array scopes
    """
    pass
