"""Node classes wrapping handlers as chain stages."""

import functools
import logging
from abc import abstractmethod
from typing import Any, Callable, Optional, Tuple

from .config import ChainConfig, default_config
from .exceptions import ValueTupleError, WiringError
from .orchestrator import DeliveryOrchestrator
from .roles import Consumer, Producer
from .signature import HandlerSignature
from .values import check_values, format_types
from .wiring import forget_link, record_link, upstream_of, validate_link

logger = logging.getLogger(__name__)


class Node(Consumer):
    """A chain stage wrapping one handler.

    Every node is a Consumer over the handler's input types. Subclasses
    decide what happens with the handler's result: SinkNode ignores it,
    TransformNode forwards it downstream.

    Attributes:
        handler: The wrapped callable (owned by this node)
        signature: Input/output types extracted from the handler
        name: Display name, used in callbacks, logs and errors
        config: Effective configuration (node config merged with defaults)
    """

    is_producer = False

    def __init__(
        self,
        handler: Callable,
        signature: HandlerSignature,
        config: Optional[ChainConfig] = None,
    ):
        """Initialize a node around a handler.

        Args:
            handler: The callable to wrap
            signature: Types extracted from ``handler``
            config: Node configuration; unset fields come from sigchain.yaml
        """
        self.handler = handler
        self.signature = signature
        self.config = (config or ChainConfig()).merge_with(default_config())
        self.name = self.config.name or signature.name

        # Preserve handler metadata (docstring, __wrapped__ for inspect)
        functools.update_wrapper(self, handler, updated=())

    @property
    def input_types(self) -> Tuple[Any, ...]:
        return self.signature.input_types

    @property
    def output_types(self) -> Tuple[Any, ...]:
        return self.signature.output_types

    @property
    def upstream(self) -> Optional["TransformNode"]:
        """The producer currently feeding this node, or None."""
        return upstream_of(self)

    def consume(self, *values: Any) -> None:
        """Run the handler on one value tuple and deliver its result.

        Completes, including all downstream delivery, before returning.

        Raises:
            ValueTupleError: If ``values`` do not match ``input_types``
        """
        check_values(
            values, self.input_types, self.name, "input", self.config.effective_check_types
        )
        logger.debug(f"Node '{self.name}' consuming {len(values)} value(s)")
        with DeliveryOrchestrator(self, values) as orchestrator:
            result = orchestrator.run_handler()
            self._deliver(result)

    @abstractmethod
    def _deliver(self, result: Any) -> None:
        """Hand the handler's result on (or drop it, for sinks)."""
        ...

    def __call__(self, *args, **kwargs) -> Any:
        """Call the wrapped handler directly, without any delivery.

        Returns:
            The handler's return value
        """
        return self.handler(*args, **kwargs)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.name}: "
            f"{format_types(self.input_types)} -> {format_types(self.output_types)})"
        )


class SinkNode(Node):
    """Consumer-only node: runs its handler for effect and emits nothing.

    Any value the handler returns is discarded.
    """

    @property
    def output_types(self) -> Tuple[Any, ...]:
        return ()

    def _deliver(self, result: Any) -> None:
        pass


class TransformNode(Node):
    """Consumer and producer: forwards each handler result downstream.

    The handler's result is delivered positionally: a declared tuple return
    is unpacked, any other return is delivered as a single value.
    """

    is_producer = True

    def __init__(
        self,
        handler: Callable,
        signature: HandlerSignature,
        config: Optional[ChainConfig] = None,
    ):
        super().__init__(handler, signature, config)
        self._producer = Producer(
            signature.output_types,
            owner_name=self.name,
            check_types=self.config.effective_check_types,
        )

    @property
    def downstream(self) -> Optional[Consumer]:
        """The live downstream consumer, or None."""
        return self._producer.consumer

    def _deliver(self, result: Any) -> None:
        if self.signature.unpack_result:
            if not isinstance(result, tuple):
                raise ValueTupleError(
                    f"Node '{self.name}' declares outputs "
                    f"{format_types(self.output_types)} but its handler returned "
                    f"{type(result).__name__} instead of a tuple"
                )
            values = result
        else:
            values = (result,)
        self.produce(*values)

    def produce(self, *values: Any) -> None:
        """Emit a value tuple to the downstream consumer.

        Completes the downstream ``consume`` call before returning.

        Raises:
            UnwiredProducerError: If no consumer is registered (always, in
                every configuration)
            DanglingConsumerError: If the registered consumer was collected
            ValueTupleError: If ``values`` do not match ``output_types``
        """
        with DeliveryOrchestrator(self, values, track=False) as orchestrator:
            orchestrator.notify_produce(self._producer.consumer)
            self._producer.produce(*values)

    def check_compatible(self, consumer: Any) -> None:
        """Check that ``consumer`` accepts this node's output types.

        Raises:
            WiringError: If it is not a Consumer or the types do not fit
        """
        if not isinstance(consumer, Consumer):
            raise WiringError(
                f"Cannot wire '{self.name}' to {consumer!r}: not a Consumer"
            )
        self._producer.check_compatible(consumer)

    def set_consumer(self, consumer: Consumer) -> Optional[Consumer]:
        """Register ``consumer`` as this node's single downstream target.

        A previously registered consumer is replaced and detached; it will
        not receive any further values from this node.

        Args:
            consumer: Node (or other Consumer) accepting this node's outputs

        Returns:
            The previously registered consumer, or None

        Raises:
            WiringError: On type/arity mismatch or fan-in
            CycleError: If the link would close a cycle
        """
        validate_link(self, consumer)
        previous = self._producer.set_consumer(consumer)

        if previous is not None and previous is not consumer:
            forget_link(self, previous)
            logger.debug(
                f"Rewired '{self.name}': "
                f"'{getattr(previous, 'name', previous)}' -> "
                f"'{getattr(consumer, 'name', consumer)}'"
            )
        else:
            logger.debug(
                f"Wired '{self.name}' -> '{getattr(consumer, 'name', consumer)}'"
            )

        record_link(self, consumer)
        return previous

    def clear_consumer(self) -> Optional[Consumer]:
        """Remove the downstream link, returning the previous consumer."""
        previous = self._producer.clear_consumer()
        if previous is not None:
            forget_link(self, previous)
            logger.debug(
                f"Cleared consumer of '{self.name}' "
                f"(was '{getattr(previous, 'name', previous)}')"
            )
        return previous
