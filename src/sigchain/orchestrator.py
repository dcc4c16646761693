"""Orchestration of callback events around a node's delivery.

Key Responsibilities:
1. Detecting the start of a drive and creating its CallbackContext
2. Start/End lifecycle event notification for the drive and each node
3. Error notification for handler failures

The active context lives in a ContextVar, so nested ``consume`` calls made
by upstream producers share the context created by the outermost call.
"""

import time
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, Optional, Tuple

from .callbacks import CallbackContext, CallbackDispatcher

if TYPE_CHECKING:
    from .node import Node

_active_context: ContextVar[Optional[CallbackContext]] = ContextVar(
    "sigchain_callback_context", default=None
)


def current_context() -> Optional[CallbackContext]:
    """Return the context of the drive in progress, or None."""
    return _active_context.get()


class DeliveryOrchestrator:
    """Helper to orchestrate callback events for one node activation.

    Used by nodes in ``consume`` (``track=True``: the node is pushed on the
    context's node stack) and in ``produce`` (``track=False``).
    """

    def __init__(
        self,
        node: "Node",
        values: Tuple[Any, ...],
        track: bool = True,
    ):
        self.node = node
        self.values = values
        self.track = track
        self.dispatcher = CallbackDispatcher(node.config.effective_callbacks)

        self.ctx: Optional[CallbackContext] = None
        self.is_new_context = False
        self._token = None
        self._start_time = 0.0

    def __enter__(self):
        ctx = _active_context.get()
        if ctx is None:
            ctx = CallbackContext()
            self._token = _active_context.set(ctx)
            self.is_new_context = True
            self._start_time = time.time()
            try:
                self.dispatcher.notify_chain_start(self.node.name, self.values, ctx)
            except BaseException:
                # __exit__ will not run, so the drive must end here
                _active_context.reset(self._token)
                raise

        self.ctx = ctx
        if self.track:
            ctx.push_node(self.node.name)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.track:
            self.ctx.pop_node()
        if self.is_new_context:
            try:
                if exc_type is None:
                    duration = time.time() - self._start_time
                    self.dispatcher.notify_chain_end(self.node.name, duration, self.ctx)
            finally:
                _active_context.reset(self._token)
        return False

    def run_handler(self) -> Any:
        """Invoke the node's handler on the value tuple with notifications."""
        self.dispatcher.notify_node_start(self.node.name, self.values, self.ctx)
        start_time = time.time()
        try:
            result = self.node.handler(*self.values)
        except Exception as e:
            self.dispatcher.notify_error(self.node.name, e, self.ctx)
            raise

        duration = time.time() - start_time
        self.dispatcher.notify_node_end(self.node.name, result, duration, self.ctx)
        return result

    def notify_produce(self, target: Any) -> None:
        target_id = getattr(target, "name", None) if target is not None else None
        self.dispatcher.notify_produce(self.node.name, target_id, self.values, self.ctx)
