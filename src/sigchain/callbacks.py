"""Callback system for chain delivery events."""

from typing import Any, Dict, List, Optional, Tuple


class CallbackContext:
    """Shared state across all callbacks during one drive of a chain.

    A drive starts when ``consume`` is called on a node while no other
    delivery is in progress, and ends when that call returns. The context
    tracks which nodes are currently consuming, so callbacks can tell how
    deep in the chain an event happened.
    """

    def __init__(self):
        """Initialize callback context."""
        self.data: Dict[str, Any] = {}
        self._node_stack: List[str] = []

    def set(self, key: str, value: Any) -> None:
        """Store a value for other callbacks to access.

        Args:
            key: Key to store value under
            value: Value to store
        """
        self.data[key] = value

    def get(self, key: str, default=None) -> Any:
        """Retrieve a value set by another callback.

        Args:
            key: Key to retrieve
            default: Default value if key not found

        Returns:
            Stored value or default
        """
        return self.data.get(key, default)

    def push_node(self, node_id: str) -> None:
        """Track a node starting to consume (managed by the node)."""
        self._node_stack.append(node_id)

    def pop_node(self) -> str:
        """Track a node finishing its consume call (managed by the node)."""
        return self._node_stack.pop()

    @property
    def current_node_id(self) -> Optional[str]:
        """ID of the node currently consuming, or None outside a drive."""
        return self._node_stack[-1] if self._node_stack else None

    @property
    def upstream_node_id(self) -> Optional[str]:
        """ID of the node that delivered to the current one (None at the head)."""
        return self._node_stack[-2] if len(self._node_stack) >= 2 else None

    @property
    def depth(self) -> int:
        """Number of nodes currently consuming (1 = head node)."""
        return len(self._node_stack)

    @property
    def path(self) -> List[str]:
        """Node IDs from the head to the current node."""
        return self._node_stack.copy()


class ChainCallback:
    """Base class for chain callbacks.

    Override methods to receive delivery events. All methods are optional.

    Node events go to the callbacks configured on that node; chain start/end
    go to the callbacks of the node the drive started on.
    """

    def on_chain_start(
        self, head_id: str, values: Tuple[Any, ...], ctx: CallbackContext
    ) -> None:
        """Called when a driver calls ``consume`` on a node.

        Args:
            head_id: ID of the node the drive starts on
            values: Value tuple passed by the driver
            ctx: Callback context
        """
        pass

    def on_chain_end(self, head_id: str, duration: float, ctx: CallbackContext) -> None:
        """Called when the drive's outermost ``consume`` returns.

        Args:
            head_id: ID of the node the drive started on
            duration: Total duration in seconds, including all downstream nodes
            ctx: Callback context
        """
        pass

    def on_node_start(
        self, node_id: str, values: Tuple[Any, ...], ctx: CallbackContext
    ) -> None:
        """Called before a node's handler runs.

        Args:
            node_id: ID of the node
            values: Value tuple the handler receives
            ctx: Callback context
        """
        pass

    def on_node_end(
        self, node_id: str, result: Any, duration: float, ctx: CallbackContext
    ) -> None:
        """Called after a node's handler returns, before forwarding.

        Args:
            node_id: ID of the node
            result: Handler return value
            duration: Handler duration in seconds
            ctx: Callback context
        """
        pass

    def on_produce(
        self,
        node_id: str,
        target_id: Optional[str],
        values: Tuple[Any, ...],
        ctx: CallbackContext,
    ) -> None:
        """Called when a node emits a value tuple.

        Args:
            node_id: ID of the producing node
            target_id: ID of the downstream node (None if unwired)
            values: Emitted value tuple
            ctx: Callback context
        """
        pass

    def on_error(self, node_id: str, error: Exception, ctx: CallbackContext) -> None:
        """Called when a node's handler raises.

        Args:
            node_id: ID of the node
            error: Exception that was raised
            ctx: Callback context
        """
        pass


class CallbackDispatcher:
    """Dispatches events to a list of callbacks."""

    def __init__(self, callbacks: List[Any]):
        self.callbacks = callbacks or []

    def notify_chain_start(
        self, head_id: str, values: Tuple[Any, ...], ctx: CallbackContext
    ) -> None:
        for callback in self.callbacks:
            callback.on_chain_start(head_id, values, ctx)

    def notify_chain_end(
        self, head_id: str, duration: float, ctx: CallbackContext
    ) -> None:
        for callback in self.callbacks:
            callback.on_chain_end(head_id, duration, ctx)

    def notify_node_start(
        self, node_id: str, values: Tuple[Any, ...], ctx: CallbackContext
    ) -> None:
        for callback in self.callbacks:
            callback.on_node_start(node_id, values, ctx)

    def notify_node_end(
        self, node_id: str, result: Any, duration: float, ctx: CallbackContext
    ) -> None:
        for callback in self.callbacks:
            callback.on_node_end(node_id, result, duration, ctx)

    def notify_produce(
        self,
        node_id: str,
        target_id: Optional[str],
        values: Tuple[Any, ...],
        ctx: CallbackContext,
    ) -> None:
        for callback in self.callbacks:
            callback.on_produce(node_id, target_id, values, ctx)

    def notify_error(
        self, node_id: str, error: Exception, ctx: CallbackContext
    ) -> None:
        for callback in self.callbacks:
            callback.on_error(node_id, error, ctx)
