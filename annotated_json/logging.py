"""Logger hierarchy for the annotated JSON library.

Every component logs under ``annotated_json.<component>``. The library only
installs a ``NullHandler`` on its root logger; applications attach their own
handlers, or call :func:`configure_logging` for a quick console setup.

Components:
    - ``engine``: serializer registration and class tags
    - ``serializer``: serializer construction and fields skipped on read
    - ``containers``: container fields ignored on read

Example:
    >>> from annotated_json.logging import SERIALIZER, configure_logging, log_level
    >>> configure_logging(level="INFO")
    >>> with log_level("DEBUG", SERIALIZER):
    ...     engine.from_json(Point, '{"x": 1}')
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Union


ROOT_LOGGER_NAME = "annotated_json"

ENGINE = "engine"
SERIALIZER = "serializer"
CONTAINERS = "containers"

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

Level = Union[int, str]

logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


def _to_level(level: Level) -> int:
    if isinstance(level, str):
        value = logging.getLevelName(level.upper())
        if not isinstance(value, int):
            raise ValueError(f"Unknown logging level: {level}")
        return value
    return level


class LoggerFactory:
    """Creates component loggers and owns the optional console handler."""

    _handler: Optional[logging.Handler] = None

    @classmethod
    def get_logger(cls, component: str = "") -> logging.Logger:
        """Get the logger of a library component.

        Args:
            component: Component name such as :data:`ENGINE`. Empty returns
                the library root logger.
        """
        if component:
            return logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")
        return logging.getLogger(ROOT_LOGGER_NAME)

    @classmethod
    def configure(
        cls,
        level: Level = logging.INFO,
        format_string: str = DEFAULT_FORMAT,
        handler: Optional[logging.Handler] = None,
    ) -> logging.Logger:
        """Attach a handler to the library root logger.

        A second call replaces the handler installed by the first one.

        Args:
            level: Level for the library root logger, as a number or name.
            format_string: Format applied to the handler.
            handler: Handler to install. Defaults to a ``StreamHandler``.

        Returns:
            The library root logger.

        Raises:
            ValueError: If ``level`` is an unknown level name.
        """
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        logger.setLevel(_to_level(level))

        if cls._handler is not None:
            logger.removeHandler(cls._handler)
        if handler is None:
            handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(format_string))
        logger.addHandler(handler)
        cls._handler = handler
        return logger

    @classmethod
    def reset(cls) -> None:
        """Remove the configured handler and restore the default level."""
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        if cls._handler is not None:
            logger.removeHandler(cls._handler)
            cls._handler = None
        logger.setLevel(logging.NOTSET)

    @classmethod
    def is_configured(cls) -> bool:
        return cls._handler is not None

    @classmethod
    def set_level(cls, level: Level, component: str = "") -> None:
        cls.get_logger(component).setLevel(_to_level(level))

    @classmethod
    def disable(cls) -> None:
        logging.getLogger(ROOT_LOGGER_NAME).disabled = True

    @classmethod
    def enable(cls) -> None:
        logging.getLogger(ROOT_LOGGER_NAME).disabled = False


def get_logger(component: str = "") -> logging.Logger:
    return LoggerFactory.get_logger(component)


def configure_logging(
    level: Level = logging.INFO,
    format_string: str = DEFAULT_FORMAT,
    handler: Optional[logging.Handler] = None,
) -> logging.Logger:
    """Send library log records to a console (or the given) handler."""
    return LoggerFactory.configure(level, format_string, handler)


def set_level(level: Level, component: str = "") -> None:
    """Set the level of the library root logger or one component."""
    LoggerFactory.set_level(level, component)


@contextmanager
def log_level(level: Level, component: str = "") -> Iterator[logging.Logger]:
    """Temporarily change the level of a library logger.

    Yields:
        The adjusted logger. Its previous level is restored on exit.
    """
    logger = LoggerFactory.get_logger(component)
    previous = logger.level
    logger.setLevel(_to_level(level))
    try:
        yield logger
    finally:
        logger.setLevel(previous)
