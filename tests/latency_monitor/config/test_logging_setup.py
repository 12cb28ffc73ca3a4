"""
Unit tests for the logging configuration module.

This module contains tests for the logging configuration module, ensuring that
it loads the right dictConfig profile for each logging type, injects the
instance ID into log records and reports configuration errors.

The tests follow the Arrange-Act-Assert (AAA) pattern. dictConfig is mocked
so that the global logging configuration of the test session is left alone.
"""

import json
import logging
import os
from unittest.mock import patch

import pytest

from latency_monitor.config.logging_config import (
    _InstanceIdFilter,
    _get_local_package_file_path,
    _load_logging_config,
    configure_logging,
)


@pytest.fixture
def root_handler():
    """
    Attaches a temporary handler to the root logger.
    """
    handler = logging.NullHandler()
    root = logging.getLogger()
    root.addHandler(handler)
    yield handler
    root.removeHandler(handler)


@pytest.mark.parametrize("logging_type", ["dev", "prod"])
def test_builtin_profiles_should_exist_and_reference_instance_id(logging_type: str) -> None:
    # Arrange
    path = _get_local_package_file_path(f"logging-config-{logging_type}.json")

    # Act
    with open(path) as f:
        config = json.load(f)

    # Assert
    assert config["version"] == 1
    assert config["disable_existing_loggers"] is False
    assert all("%(instance_id)s" in f["format"] for f in config["formatters"].values())


@pytest.mark.parametrize("logging_type", ["dev", "DEV", "prod"])
def test_configure_logging_should_load_builtin_profile(context_factory, logging_type: str) -> None:
    # Arrange
    context = context_factory(logging_type=logging_type)

    with patch("latency_monitor.config.logging_config._load_logging_config") as mock_load:
        # Act
        configure_logging(context)

    # Assert
    expected = f"logging-config-{logging_type.lower()}.json"
    mock_load.assert_called_once_with(_get_local_package_file_path(expected))


def test_configure_logging_should_load_custom_file(context_factory) -> None:
    # Arrange
    context = context_factory(logging_type="custom", logging_config_file="/etc/logging.json")

    with patch("latency_monitor.config.logging_config._load_logging_config") as mock_load:
        # Act
        configure_logging(context)

    # Assert
    mock_load.assert_called_once_with("/etc/logging.json")


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"logging_type": ""}, "must be provided"),
        ({"logging_type": "verbose"}, "Invalid logging type"),
        ({"logging_type": "custom", "logging_config_file": ""}, "file must be provided"),
    ],
)
def test_configure_logging_should_reject_invalid_settings(
    context_factory, overrides: dict, message: str
) -> None:
    with pytest.raises(ValueError, match=message):
        configure_logging(context_factory(**overrides))


def test_configure_logging_should_add_instance_filter_to_root_handlers(
    context_factory, root_handler: logging.Handler
) -> None:
    # Arrange
    context = context_factory(instance_id="instance-7")

    with patch("latency_monitor.config.logging_config._load_logging_config"):
        # Act
        configure_logging(context)

    # Assert
    filters = [f for f in root_handler.filters if isinstance(f, _InstanceIdFilter)]
    assert len(filters) == 1
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "message", None, None)
    assert filters[0].filter(record) is True
    assert record.instance_id == "instance-7"


def test_load_logging_config_should_apply_dict_config(tmp_path) -> None:
    # Arrange
    config_file = tmp_path / "logging.json"
    config_file.write_text(json.dumps({"version": 1}))

    with patch("logging.config.dictConfig") as mock_dict_config:
        # Act
        _load_logging_config(str(config_file))

    # Assert
    mock_dict_config.assert_called_once_with({"version": 1})


def test_load_logging_config_should_raise_runtime_error_for_missing_file(tmp_path) -> None:
    with pytest.raises(RuntimeError, match="not found"):
        _load_logging_config(os.path.join(str(tmp_path), "missing.json"))


def test_load_logging_config_should_raise_runtime_error_for_invalid_json(tmp_path) -> None:
    # Arrange
    config_file = tmp_path / "logging.json"
    config_file.write_text("{not json")

    # Act / Assert
    with pytest.raises(RuntimeError, match="Invalid JSON"):
        _load_logging_config(str(config_file))


def test_load_logging_config_should_wrap_dict_config_errors(tmp_path) -> None:
    # Arrange
    config_file = tmp_path / "logging.json"
    config_file.write_text(json.dumps({"version": 99}))

    # Act / Assert
    with pytest.raises(RuntimeError, match="Error loading logging config"):
        _load_logging_config(str(config_file))
