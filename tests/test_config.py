"""Unit tests for annotated_json.config module."""

import pytest

from annotated_json.config import DEFAULT_TYPE_TAG_FIELD, JsonConfig
from annotated_json.exceptions import ConfigurationException


class TestJsonConfig:
    """Tests for JsonConfig class."""

    def test_default_values(self):
        config = JsonConfig()
        assert config.indent is None
        assert config.type_tag_field == DEFAULT_TYPE_TAG_FIELD == "class"
        assert config.write_null is False
        assert config.encode_fp is False
        assert config.warn_on_missing_fields is False

    def test_custom_values(self):
        config = JsonConfig(
            indent=4,
            type_tag_field="$type",
            write_null=True,
            encode_fp=True,
            warn_on_missing_fields=True,
        )
        assert config.indent == 4
        assert config.type_tag_field == "$type"
        assert config.write_null is True
        assert config.encode_fp is True
        assert config.warn_on_missing_fields is True

    def test_invalid_indent_negative(self):
        with pytest.raises(ConfigurationException):
            JsonConfig(indent=-1)

    def test_invalid_indent_type(self):
        with pytest.raises(ConfigurationException):
            JsonConfig(indent="2")
        with pytest.raises(ConfigurationException):
            JsonConfig(indent=True)

    def test_empty_type_tag_field(self):
        with pytest.raises(ConfigurationException):
            JsonConfig(type_tag_field="")

    def test_setter_validation(self):
        config = JsonConfig()
        config.indent = 2
        assert config.indent == 2

        with pytest.raises(ConfigurationException):
            config.indent = -3

        with pytest.raises(ConfigurationException):
            config.type_tag_field = ""

    def test_flag_setters_coerce_to_bool(self):
        config = JsonConfig()
        config.write_null = 1
        config.encode_fp = "yes"
        assert config.write_null is True
        assert config.encode_fp is True

    def test_from_dict(self):
        config = JsonConfig.from_dict({
            "indent": 2,
            "type_tag_field": "@type",
            "write_null": True,
        })
        assert config.indent == 2
        assert config.type_tag_field == "@type"
        assert config.write_null is True
        assert config.encode_fp is False

    def test_from_dict_defaults(self):
        config = JsonConfig.from_dict({})
        assert config.indent is None
        assert config.type_tag_field == "class"

    def test_from_dict_invalid(self):
        with pytest.raises(ConfigurationException):
            JsonConfig.from_dict({"indent": -2})

    def test_repr(self):
        assert "type_tag_field='class'" in repr(JsonConfig())


class TestYamlConfig:
    """Tests for YAML configuration loading."""

    def test_from_yaml(self, yaml_file):
        config = JsonConfig.from_yaml(yaml_file)
        assert config.indent == 2
        assert config.type_tag_field == "@type"
        assert config.write_null is True
        assert config.warn_on_missing_fields is True

    def test_from_yaml_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationException) as exc_info:
            JsonConfig.from_yaml(str(tmp_path / "missing.yml"))
        assert "not found" in str(exc_info.value)

    def test_from_yaml_invalid_file(self, tmp_path):
        path = tmp_path / "broken.yml"
        path.write_text("indent: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationException) as exc_info:
            JsonConfig.from_yaml(str(path))
        assert exc_info.value.cause is not None

    def test_from_yaml_string_top_level(self):
        config = JsonConfig.from_yaml_string("indent: 3\nencode_fp: true\n")
        assert config.indent == 3
        assert config.encode_fp is True

    def test_from_yaml_string_nested(self):
        config = JsonConfig.from_yaml_string("annotated_json:\n  type_tag_field: kind\n")
        assert config.type_tag_field == "kind"

    def test_from_yaml_string_empty(self):
        config = JsonConfig.from_yaml_string("")
        assert config.indent is None

    def test_from_yaml_string_empty_section(self):
        config = JsonConfig.from_yaml_string("annotated_json:\n")
        assert config.type_tag_field == "class"

    def test_from_yaml_string_not_mapping(self):
        with pytest.raises(ConfigurationException):
            JsonConfig.from_yaml_string("- indent\n- 2\n")

    def test_from_yaml_string_invalid(self):
        with pytest.raises(ConfigurationException):
            JsonConfig.from_yaml_string("indent: [unclosed")
