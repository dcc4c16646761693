"""Progress counters for chain delivery using tqdm."""

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..callbacks import CallbackContext, ChainCallback


def _env_flag(name: str, default: bool = False) -> bool:
    """Read boolean-like environment variable."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def is_jupyter() -> bool:
    """Detect if running in Jupyter notebook or IPython."""
    try:
        get_ipython  # type: ignore[name-defined]
        return True
    except NameError:
        return False


@dataclass
class ProgressConfig:
    """Configuration for progress counters."""

    enable: bool = True
    leave: bool = True
    bar_format: str = "{desc}: {n_fmt} value tuple(s) [{elapsed}, {rate_fmt}]"
    debug_enabled: bool = False


def _tqdm_class() -> Any:
    if is_jupyter():
        try:
            from tqdm.notebook import tqdm

            return tqdm
        except ImportError:
            pass
    from tqdm import tqdm

    return tqdm


class ProgressCallback(ChainCallback):
    """Live counters of value tuples consumed by each node.

    One counter is created per node the first time it finishes a handler
    call. Counters stay open across drives; call ``close()`` when done.

    Example:
        >>> progress = ProgressCallback()
        >>> config = ChainConfig(callbacks=[progress])
        >>> head = connect(build_transform(parse, config=config),
        ...                build_sink(store, config=config))
        >>> for line in lines:
        ...     head.consume(line)
        >>> progress.close()
    """

    def __init__(self, enable: bool = True):
        self.config = ProgressConfig(
            enable=enable,
            debug_enabled=_env_flag("SIGCHAIN_PROGRESS_DEBUG"),
        )
        self.tqdm = _tqdm_class() if enable else None
        self._bars: Dict[str, Any] = {}
        self._debug(f"Init enable={self.config.enable}")

    def _debug(self, message: str) -> None:
        if self.config.debug_enabled:
            print(f"[ProgressCallback] {message}")

    def _get_bar(self, node_id: str) -> Optional[Any]:
        if not self.config.enable:
            return None
        bar = self._bars.get(node_id)
        if bar is None:
            self._debug(f"Create bar node={node_id!r} position={len(self._bars)}")
            bar = self.tqdm(
                desc=node_id,
                total=None,
                position=len(self._bars),
                leave=self.config.leave,
                dynamic_ncols=True,
                bar_format=self.config.bar_format,
            )
            self._bars[node_id] = bar
        return bar

    def counts(self) -> Dict[str, int]:
        """Return the number of value tuples each node has consumed."""
        return {node_id: bar.n for node_id, bar in self._bars.items()}

    def on_node_end(
        self, node_id: str, result: Any, duration: float, ctx: CallbackContext
    ) -> None:
        bar = self._get_bar(node_id)
        if bar is not None:
            bar.update(1)

    def on_error(self, node_id: str, error: Exception, ctx: CallbackContext) -> None:
        bar = self._bars.get(node_id)
        if bar is not None:
            bar.set_postfix_str(f"error: {type(error).__name__}")

    def on_chain_end(self, head_id: str, duration: float, ctx: CallbackContext) -> None:
        for bar in self._bars.values():
            bar.refresh()

    def close(self) -> None:
        """Close all counters."""
        for node_id, bar in self._bars.items():
            self._debug(f"Close bar node={node_id!r}")
            bar.close()
        self._bars.clear()
