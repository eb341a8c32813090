import logging
import os
import unittest.mock as mock
from pathlib import Path

import tomllib

from tabular_fetch import Configurator, config, configure_logging

builtin_open = open


# Mock custom config.toml with specific PAGE_SIZE_DEFAULT value
def mock_open_with_custom_config_toml(*args, **kwargs):
    if args[0].name == "config.toml":
        # mocked open for path "config.toml"
        return mock.mock_open(read_data=b"PAGE_SIZE_DEFAULT = 25")(*args, **kwargs)
    # unpatched version for every other path
    return builtin_open(*args, **kwargs)


def test_default_config():
    config = Configurator()

    assert config.AIRTABLE_MAX_RECORDS == 100

    # Make sure all config keys are defined
    with open(Path(__file__).parent.parent / "tabular_fetch/config_default.toml", "rb") as f:
        assert config.configuration.keys() == tomllib.load(f).keys()


@mock.patch("pathlib.Path.exists", lambda self: True)
@mock.patch("builtins.open", mock_open_with_custom_config_toml)
def test_custom_config_file_override():
    config = Configurator()

    assert config.PAGE_SIZE_DEFAULT == 25


def test_env_override(monkeypatch):
    monkeypatch.setenv("API_URL", "app.internal:4001")
    monkeypatch.setenv("PAGE_SIZE_DEFAULT", "50")
    monkeypatch.setenv("SENTRY_SAMPLE_RATE", "0.5")
    config = Configurator()

    # a scheme is added when missing
    assert config.API_URL == "http://app.internal:4001"
    assert config.PAGE_SIZE_DEFAULT == 50
    assert config.SENTRY_SAMPLE_RATE == 0.5


def test_unknown_key_is_none():
    assert Configurator().NOT_A_SETTING is None


def test_configure_logging():
    configure_logging("debug")
    assert logging.getLogger("tabular_fetch").level == logging.DEBUG
    configure_logging("INFO")


def test_configure_logging_from_config():
    config.override(LOG_LEVEL="warning")
    try:
        configure_logging()
        assert logging.getLogger("tabular_fetch").level == logging.WARNING
        assert logging.getLogger("tabular_fetch.fetch.query").getEffectiveLevel() == logging.WARNING
    finally:
        config.override(LOG_LEVEL="INFO")
        configure_logging()
