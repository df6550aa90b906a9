"""Shared pytest fixtures for annotated JSON tests."""

import pytest

from annotated_json.config import JsonConfig
from annotated_json.serialization.service import JsonEngine


@pytest.fixture
def config():
    """Create a default JsonConfig."""
    return JsonConfig()


@pytest.fixture
def engine(config):
    """Create a JsonEngine with the default configuration."""
    return JsonEngine(config)


@pytest.fixture
def null_engine():
    """Create a JsonEngine that writes None values as null."""
    return JsonEngine(JsonConfig(write_null=True))


@pytest.fixture
def yaml_file(tmp_path):
    """Write a YAML configuration file and return its path."""
    path = tmp_path / "annotated-json.yml"
    path.write_text(
        "annotated_json:\n"
        "  indent: 2\n"
        "  type_tag_field: \"@type\"\n"
        "  write_null: true\n"
        "  warn_on_missing_fields: true\n",
        encoding="utf-8",
    )
    return str(path)
