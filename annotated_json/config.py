"""Annotated JSON engine configuration."""

import os
from typing import Optional

import yaml

from annotated_json.exceptions import ConfigurationException


DEFAULT_TYPE_TAG_FIELD = "class"


class JsonConfig:
    """Configuration for a :class:`~annotated_json.serialization.service.JsonEngine`.

    The ``write_null`` and ``encode_fp`` settings are engine-wide defaults.
    They are combined with the flags of each ``@json_serializable`` type, so
    a type can opt in even when the engine default is off.

    Attributes:
        indent: Indentation used by ``to_json``. ``None`` writes compact text.
        type_tag_field: Name of the object entry holding the class tag.
        write_null: Emit ``null`` for ``None`` fields instead of omitting them.
        encode_fp: Write floats as exact hex strings.
        warn_on_missing_fields: Log skipped fields at WARNING instead of DEBUG.

    Example:
        Basic configuration::

            config = JsonConfig()
            config.indent = 2
            config.type_tag_field = "@type"

        From YAML file::

            config = JsonConfig.from_yaml("annotated-json.yml")
    """

    def __init__(
        self,
        indent: Optional[int] = None,
        type_tag_field: str = DEFAULT_TYPE_TAG_FIELD,
        write_null: bool = False,
        encode_fp: bool = False,
        warn_on_missing_fields: bool = False,
    ):
        self._indent = indent
        self._type_tag_field = type_tag_field
        self._write_null = write_null
        self._encode_fp = encode_fp
        self._warn_on_missing_fields = warn_on_missing_fields
        self._validate()

    def _validate(self) -> None:
        if self._indent is not None:
            if isinstance(self._indent, bool) or not isinstance(self._indent, int):
                raise ConfigurationException("indent must be an integer or None")
            if self._indent < 0:
                raise ConfigurationException("indent cannot be negative")
        if not isinstance(self._type_tag_field, str) or not self._type_tag_field:
            raise ConfigurationException("type_tag_field cannot be empty")

    @property
    def indent(self) -> Optional[int]:
        """Get the text indentation, or None for compact output."""
        return self._indent

    @indent.setter
    def indent(self, value: Optional[int]) -> None:
        self._indent = value
        self._validate()

    @property
    def type_tag_field(self) -> str:
        """Get the name of the class tag entry."""
        return self._type_tag_field

    @type_tag_field.setter
    def type_tag_field(self, value: str) -> None:
        self._type_tag_field = value
        self._validate()

    @property
    def write_null(self) -> bool:
        """Get whether None values are written as null."""
        return self._write_null

    @write_null.setter
    def write_null(self, value: bool) -> None:
        self._write_null = bool(value)

    @property
    def encode_fp(self) -> bool:
        """Get whether floats are written as hex strings."""
        return self._encode_fp

    @encode_fp.setter
    def encode_fp(self, value: bool) -> None:
        self._encode_fp = bool(value)

    @property
    def warn_on_missing_fields(self) -> bool:
        """Get whether skipped fields are logged at WARNING level."""
        return self._warn_on_missing_fields

    @warn_on_missing_fields.setter
    def warn_on_missing_fields(self, value: bool) -> None:
        self._warn_on_missing_fields = bool(value)

    @classmethod
    def from_dict(cls, data: dict) -> "JsonConfig":
        """Create JsonConfig from a dictionary."""
        return cls(
            indent=data.get("indent"),
            type_tag_field=data.get("type_tag_field", DEFAULT_TYPE_TAG_FIELD),
            write_null=bool(data.get("write_null", False)),
            encode_fp=bool(data.get("encode_fp", False)),
            warn_on_missing_fields=bool(data.get("warn_on_missing_fields", False)),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "JsonConfig":
        """Load configuration from a YAML file.

        Args:
            yaml_path: Path to the YAML configuration file.

        Returns:
            JsonConfig instance.

        Raises:
            ConfigurationException: If the file cannot be read or parsed.
        """
        if not os.path.exists(yaml_path):
            raise ConfigurationException(f"Configuration file not found: {yaml_path}")

        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationException(f"Failed to parse YAML: {e}", cause=e)
        except IOError as e:
            raise ConfigurationException(f"Failed to read configuration file: {e}", cause=e)

        return cls._from_yaml_data(data)

    @classmethod
    def from_yaml_string(cls, yaml_content: str) -> "JsonConfig":
        """Load configuration from a YAML string.

        Args:
            yaml_content: YAML configuration as a string.

        Returns:
            JsonConfig instance.

        Raises:
            ConfigurationException: If the YAML cannot be parsed.
        """
        try:
            data = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigurationException(f"Failed to parse YAML: {e}", cause=e)

        return cls._from_yaml_data(data)

    @classmethod
    def _from_yaml_data(cls, data) -> "JsonConfig":
        if data is None:
            data = {}

        if not isinstance(data, dict):
            raise ConfigurationException("YAML configuration must be a mapping")

        if "annotated_json" in data:
            data = data["annotated_json"] or {}

        return cls.from_dict(data)

    def __repr__(self) -> str:
        return (
            f"JsonConfig(indent={self._indent!r}, "
            f"type_tag_field={self._type_tag_field!r}, "
            f"write_null={self._write_null}, encode_fp={self._encode_fp})"
        )
