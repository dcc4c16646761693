"""Tests for chain configuration and sigchain.yaml loading."""

import logging

import pytest

from sigchain import ChainConfig, build_sink, default_config, load_config
from sigchain.config import CONFIG_ENV_VAR


def test_merge_with_child_precedence():
    """Child values win; unset child values come from the parent."""
    callbacks = [object()]
    parent = ChainConfig(check_types=False, callbacks=callbacks, name="parent")
    child = ChainConfig(check_types=True)

    merged = child.merge_with(parent)

    assert merged.check_types is True
    assert merged.callbacks is callbacks
    assert merged.name is None


def test_merge_with_none_parent():
    """Merging with no parent copies the child."""
    merged = ChainConfig(check_types=False, name="x").merge_with(None)

    assert merged == ChainConfig(check_types=False, name="x")


def test_effective_defaults():
    """Unset values fall back to built-in defaults."""
    config = ChainConfig()

    assert config.effective_check_types is True
    assert config.effective_callbacks == []


def test_load_config_from_file(tmp_path):
    """YAML settings are read into a ChainConfig."""
    path = tmp_path / "sigchain.yaml"
    path.write_text("check_types: false\n")

    config = load_config(str(path))

    assert config.check_types is False


def test_load_config_empty_file(tmp_path):
    """An empty file means no settings."""
    path = tmp_path / "sigchain.yaml"
    path.write_text("")

    assert load_config(str(path)) == ChainConfig()


def test_load_config_rejects_non_mapping(tmp_path):
    """The file must contain a mapping."""
    path = tmp_path / "sigchain.yaml"
    path.write_text("- check_types\n")

    with pytest.raises(ValueError, match="mapping"):
        load_config(str(path))


def test_load_config_rejects_invalid_value(tmp_path):
    """check_types must be a boolean."""
    path = tmp_path / "sigchain.yaml"
    path.write_text("check_types: 3\n")

    with pytest.raises(ValueError, match="check_types"):
        load_config(str(path))


def test_load_config_warns_on_unknown_keys(tmp_path, caplog):
    """Unknown keys are ignored with a warning."""
    path = tmp_path / "sigchain.yaml"
    path.write_text("check_types: true\nretries: 3\n")

    with caplog.at_level(logging.WARNING, logger="sigchain.config"):
        config = load_config(str(path))

    assert config.check_types is True
    assert "retries" in caplog.text


def test_load_config_missing_explicit_path(tmp_path):
    """An explicit path must exist."""
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_load_config_default_path_missing(tmp_path, monkeypatch):
    """Without a file, the defaults are empty."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.chdir(tmp_path)

    assert load_config() == ChainConfig()


def test_default_config_from_environment(tmp_path, monkeypatch):
    """SIGCHAIN_CONFIG points nodes at a project-wide configuration."""
    path = tmp_path / "custom.yaml"
    path.write_text("check_types: false\n")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    default_config.cache_clear()

    calls = []

    def record(y: int) -> None:
        calls.append(y)

    node = build_sink(record)
    node.consume("not an int")

    assert default_config().check_types is False
    assert node.config.check_types is False
    assert calls == ["not an int"]


def test_node_config_overrides_file(tmp_path, monkeypatch):
    """Per-node settings win over the file."""
    path = tmp_path / "custom.yaml"
    path.write_text("check_types: false\n")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    default_config.cache_clear()

    def record(y: int) -> None:
        pass

    node = build_sink(record, config=ChainConfig(check_types=True))

    assert node.config.check_types is True
