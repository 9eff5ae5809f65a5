"""Tests for configuration loading."""

import logging

import pytest

from teemiao.config import TeemiaoConfig, get_config_dir
from teemiao.errors import ConfigError


def test_defaults(isolated_config):
    config = TeemiaoConfig.load()

    assert config.config_dir == str(isolated_config)
    assert config.output is None
    assert config.atomic_write is True
    assert config.verbosity == 0


def test_config_dir_from_xdg(monkeypatch, tmp_path):
    monkeypatch.delenv("TEEMIAO_CONFIG")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))

    assert get_config_dir() == tmp_path / "xdg" / "teemiao"


def test_load_from_file(isolated_config):
    (isolated_config / "config.yaml").write_text(
        "build_info:\n"
        "  output: dist/build_info.json\n"
        "  atomic_write: false\n"
        "verbosity: 1\n"
    )

    config = TeemiaoConfig.load()

    assert config.output == "dist/build_info.json"
    assert config.atomic_write is False
    assert config.verbosity == 1


def test_explicit_config_dir(tmp_path):
    other = tmp_path / "other"
    other.mkdir()
    (other / "config.yaml").write_text("verbosity: -1\n")

    config = TeemiaoConfig.load(str(other))

    assert config.config_dir == str(other)
    assert config.verbosity == -1


def test_env_overrides_file(isolated_config, monkeypatch):
    (isolated_config / "config.yaml").write_text(
        "build_info:\n  output: from_file.json\n  atomic_write: true\n"
    )
    monkeypatch.setenv("TEEMIAO_BUILD_INFO_OUT", "from_env.json")
    monkeypatch.setenv("TEEMIAO_ATOMIC_WRITE", "false")
    monkeypatch.setenv("TEEMIAO_VERBOSITY", "2")

    config = TeemiaoConfig.load()

    assert config.output == "from_env.json"
    assert config.atomic_write is False
    assert config.verbosity == 2


def test_empty_file_uses_defaults(isolated_config):
    (isolated_config / "config.yaml").write_text("")

    config = TeemiaoConfig.load()

    assert config.output is None
    assert config.atomic_write is True


def test_malformed_yaml_warns_and_uses_defaults(isolated_config, caplog):
    (isolated_config / "config.yaml").write_text("build_info: [unclosed\n")

    with caplog.at_level(logging.WARNING, logger="teemiao.config"):
        config = TeemiaoConfig.load()

    assert config.output is None
    assert any("Failed to load config file" in r.getMessage() for r in caplog.records)


@pytest.mark.parametrize("content", [
    "- just\n- a list\n",
    "build_info: 3\n",
    "build_info:\n  atomic_write: sometimes\n",
    "verbosity: loud\n",
    "verbosity: true\n",
])
def test_invalid_values_raise(isolated_config, content):
    (isolated_config / "config.yaml").write_text(content)

    with pytest.raises(ConfigError) as exc_info:
        TeemiaoConfig.load()
    assert exc_info.value.stage == "config"


def test_invalid_env_value_raises(monkeypatch):
    monkeypatch.setenv("TEEMIAO_VERBOSITY", "lots")

    with pytest.raises(ConfigError):
        TeemiaoConfig.load()
