"""Capability roles of chain nodes.

- Consumer: abstract interface for anything that can receive a value tuple
- Producer: helper owned by a node that emits value tuples to at most one
  downstream Consumer

Nodes compose these roles: every node is a Consumer, and producer-capable
nodes own a Producer instead of inheriting from it.
"""

import logging
import weakref
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence, Tuple

from .exceptions import DanglingConsumerError, UnwiredProducerError, WiringError
from .values import check_values, format_type, format_types, is_assignable

logger = logging.getLogger(__name__)


class Consumer(ABC):
    """Capability to receive a value tuple of fixed arity and types."""

    @property
    @abstractmethod
    def input_types(self) -> Tuple[Any, ...]:
        """Return the ordered types this consumer accepts."""
        ...

    @abstractmethod
    def consume(self, *values: Any) -> None:
        """Receive one value tuple. Returns after all processing completes."""
        ...


class Producer:
    """Emits value tuples to at most one registered downstream Consumer.

    The downstream link is a weak handle: the producer never keeps its
    consumer alive. Emitting while no consumer is registered, or after the
    registered consumer has been garbage collected, raises instead of
    dropping the values.

    Attributes:
        output_types: Ordered types of every emitted value tuple
        owner_name: Name of the owning node, used in messages
        check_types: Whether emitted values are checked against output_types
    """

    def __init__(
        self,
        output_types: Sequence[Any],
        owner_name: str,
        check_types: bool = True,
    ):
        self.output_types = tuple(output_types)
        self.owner_name = owner_name
        self.check_types = check_types
        self._consumer_ref: Optional[weakref.ref] = None

    @property
    def consumer(self) -> Optional[Consumer]:
        """The live downstream consumer, or None."""
        if self._consumer_ref is None:
            return None
        return self._consumer_ref()

    def check_compatible(self, consumer: Consumer) -> None:
        """Check that this producer's outputs fit ``consumer``'s inputs.

        Raises:
            WiringError: If arity differs or a type is not assignable
        """
        consumer_name = getattr(consumer, "name", type(consumer).__name__)
        input_types = tuple(consumer.input_types)
        if len(input_types) != len(self.output_types):
            raise WiringError(
                f"Cannot wire '{self.owner_name}' to '{consumer_name}': "
                f"'{self.owner_name}' emits {len(self.output_types)} value(s) "
                f"{format_types(self.output_types)} but '{consumer_name}' accepts "
                f"{len(input_types)} {format_types(input_types)}"
            )

        for position, (source, target) in enumerate(zip(self.output_types, input_types)):
            if not is_assignable(source, target):
                raise WiringError(
                    f"Cannot wire '{self.owner_name}' to '{consumer_name}': "
                    f"value #{position} is {format_type(source)} but "
                    f"'{consumer_name}' expects {format_type(target)}"
                )

    def set_consumer(self, consumer: Consumer) -> Optional[Consumer]:
        """Register ``consumer`` as the downstream target.

        Replaces any previous target unconditionally.

        Returns:
            The previously registered consumer, or None

        Raises:
            WiringError: If ``consumer`` is not a Consumer or its input types
                do not match this producer's output types
        """
        if not isinstance(consumer, Consumer):
            raise WiringError(
                f"Cannot wire '{self.owner_name}' to {consumer!r}: not a Consumer"
            )
        self.check_compatible(consumer)

        previous = self.consumer
        self._consumer_ref = weakref.ref(consumer)
        return previous

    def clear_consumer(self) -> Optional[Consumer]:
        """Drop the downstream link, returning the previous consumer."""
        previous = self.consumer
        self._consumer_ref = None
        return previous

    def resolve(self) -> Consumer:
        """Return the downstream consumer or raise if there is none.

        Raises:
            UnwiredProducerError: If no consumer was registered
            DanglingConsumerError: If the registered consumer no longer exists
        """
        if self._consumer_ref is None:
            raise UnwiredProducerError(
                f"Node '{self.owner_name}' produced values but has no consumer; "
                f"call set_consumer() before driving the chain"
            )
        consumer = self._consumer_ref()
        if consumer is None:
            raise DanglingConsumerError(
                f"The consumer registered on '{self.owner_name}' no longer exists; "
                f"keep a reference to every node in the chain"
            )
        return consumer

    def produce(self, *values: Any) -> None:
        """Deliver a value tuple to the downstream consumer synchronously.

        Raises:
            UnwiredProducerError: If no live consumer is registered
            ValueTupleError: If ``values`` do not match ``output_types``
        """
        consumer = self.resolve()
        check_values(values, self.output_types, self.owner_name, "output", self.check_types)
        consumer.consume(*values)
