"""Chain configuration management.

This module provides the ChainConfig class holding per-node settings
(runtime type checks, callbacks, name) and loads project-wide defaults from
an optional ``sigchain.yaml`` file.

Example ``sigchain.yaml``::

    check_types: false

The file location can be overridden with the ``SIGCHAIN_CONFIG``
environment variable.
"""

import functools
import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import yaml

if TYPE_CHECKING:
    from .callbacks import ChainCallback

CONFIG_ENV_VAR = "SIGCHAIN_CONFIG"
DEFAULT_CONFIG_PATH = "sigchain.yaml"

# Keys that may appear in the YAML file
_FILE_KEYS = {"check_types"}

logger = logging.getLogger(__name__)


@dataclass
class ChainConfig:
    """Per-node configuration.

    Unset fields (None) are filled from a parent configuration by
    ``merge_with``, and finally fall back to built-in defaults.

    Attributes:
        check_types: Check each consumed/produced value against the declared
            annotations (default: True). Arity is always checked.
        callbacks: Callback instances notified about this node's activity
        name: Node display name override
    """

    check_types: Optional[bool] = None
    callbacks: Optional[List["ChainCallback"]] = None
    name: Optional[str] = None

    def merge_with(self, parent_config: Optional["ChainConfig"]) -> "ChainConfig":
        """Merge with parent configuration, child values take precedence.

        Args:
            parent_config: Parent configuration to inherit from (can be None)

        Returns:
            New ChainConfig with merged values

        Example:
            >>> parent = ChainConfig(check_types=False, callbacks=[cb])
            >>> child = ChainConfig(check_types=True)
            >>> merged = child.merge_with(parent)
            >>> # merged.check_types is True, merged.callbacks == [cb]
        """
        if parent_config is None:
            return ChainConfig(
                check_types=self.check_types,
                callbacks=self.callbacks,
                name=self.name,
            )

        return ChainConfig(
            check_types=(
                self.check_types
                if self.check_types is not None
                else parent_config.check_types
            ),
            callbacks=(
                self.callbacks if self.callbacks is not None else parent_config.callbacks
            ),
            name=self.name,  # Name is never inherited
        )

    @property
    def effective_check_types(self) -> bool:
        return True if self.check_types is None else self.check_types

    @property
    def effective_callbacks(self) -> List["ChainCallback"]:
        return list(self.callbacks or [])


def _config_from_mapping(data: Dict[str, Any], source: str) -> ChainConfig:
    unknown = set(data) - _FILE_KEYS
    if unknown:
        logger.warning(f"Ignoring unknown key(s) {sorted(unknown)} in {source}")

    check_types = data.get("check_types")
    if check_types is not None and not isinstance(check_types, bool):
        raise ValueError(
            f"'check_types' in {source} must be true or false, got {check_types!r}"
        )
    return ChainConfig(check_types=check_types)


def load_config(path: Optional[str] = None) -> ChainConfig:
    """Load configuration defaults from a YAML file.

    Args:
        path: File to read. If None, uses $SIGCHAIN_CONFIG or ./sigchain.yaml,
            and returns an empty configuration when that file does not exist.

    Returns:
        ChainConfig with the file's settings

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ValueError: If the file content is not a mapping or has invalid values
    """
    if path is None:
        config_path = os.getenv(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)
        if not os.path.exists(config_path):
            return ChainConfig()
    else:
        config_path = path

    with open(config_path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        return ChainConfig()
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping in {config_path}, got {type(data).__name__}")

    logger.debug(f"Loaded chain configuration from {config_path}")
    return _config_from_mapping(data, config_path)


@functools.lru_cache(maxsize=None)
def default_config() -> ChainConfig:
    """Return the process-wide default configuration (loaded once).

    Call ``default_config.cache_clear()`` to reload it.
    """
    return load_config()
