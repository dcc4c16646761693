"""Shared fixtures for SigChain tests."""

import pytest

from sigchain.config import CONFIG_ENV_VAR, default_config


@pytest.fixture(autouse=True)
def isolated_default_config(monkeypatch, tmp_path):
    """Make every test start from built-in defaults, not a local sigchain.yaml."""
    monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "missing-sigchain.yaml"))
    default_config.cache_clear()
    yield
    default_config.cache_clear()
