"""Wiring of nodes into linear chains.

There is no container type: a chain is the implicit singly-linked list formed
by each producer's downstream link. This module validates links before they
are made and offers helpers to build and walk chains.

Only linear chains are supported. A link is rejected when it would:
- feed a consumer that already has a different live upstream (fan-in)
- close a cycle

Fan-out cannot be expressed, since a producer holds a single link.

Downstream links are weak, so callers must keep every node alive
(for example in local variables) while the chain is in use.
"""

import logging
import weakref
from typing import Any, Iterator, List, Optional, Tuple

from .exceptions import CycleError, WiringError
from .roles import Consumer

logger = logging.getLogger(__name__)

# Consumer -> weak reference to the producer currently feeding it
_upstreams: "weakref.WeakKeyDictionary[Any, weakref.ref]" = weakref.WeakKeyDictionary()


def _name(node: Any) -> str:
    return getattr(node, "name", type(node).__name__)


def upstream_of(consumer: Any) -> Optional[Any]:
    """Return the live producer wired to ``consumer``, or None."""
    ref = _upstreams.get(consumer)
    if ref is None:
        return None
    return ref()


def record_link(producer: Any, consumer: Any) -> None:
    """Remember that ``producer`` now feeds ``consumer``."""
    _upstreams[consumer] = weakref.ref(producer)


def forget_link(producer: Any, consumer: Any) -> None:
    """Forget the link from ``producer`` to ``consumer``, if it is recorded."""
    if upstream_of(consumer) is producer:
        del _upstreams[consumer]


def iter_chain(head: Any) -> Iterator[Any]:
    """Yield ``head`` and every live downstream node, in delivery order.

    Raises:
        CycleError: If a node is reached twice
    """
    seen = set()
    node = head
    while node is not None:
        if id(node) in seen:
            raise CycleError(f"Chain starting at '{_name(head)}' contains a cycle")
        seen.add(id(node))
        yield node
        node = getattr(node, "downstream", None)


def validate_link(producer: Any, consumer: Any) -> None:
    """Check that ``producer`` may feed ``consumer`` without breaking linearity.

    Type compatibility is checked separately by ``Producer.set_consumer``.

    Raises:
        WiringError: If ``consumer`` is not a Consumer or is already fed by
            another producer
        CycleError: If the link would close a cycle
    """
    if not isinstance(consumer, Consumer):
        raise WiringError(
            f"Cannot wire '{_name(producer)}' to {consumer!r}: not a Consumer"
        )

    if consumer is producer:
        raise CycleError(f"Node '{_name(producer)}' cannot consume its own output")

    upstream = upstream_of(consumer)
    if upstream is not None and upstream is not producer:
        raise WiringError(
            f"Node '{_name(consumer)}' is already fed by '{_name(upstream)}'; "
            f"fan-in is not supported. Clear that link before wiring "
            f"'{_name(producer)}' to it"
        )

    for node in iter_chain(consumer):
        if node is producer:
            raise CycleError(
                f"Wiring '{_name(producer)}' to '{_name(consumer)}' would close a cycle"
            )


def connect(*nodes: Any) -> Any:
    """Wire consecutive nodes into a chain and return the head.

    Every node except the last must be producer-capable. All links are
    validated before any of them is made.

    Example:
        >>> increment = build_transform(lambda x: x + 1, inputs=[int], outputs=[int])
        >>> record = build_sink(results.append, inputs=[int], outputs=[])
        >>> head = connect(increment, record)
        >>> head.consume(1)

    Raises:
        ValueError: If no nodes are given
        WiringError: If a non-final node is a sink or two neighbours do not
            fit together
        CycleError: If the same node appears twice
    """
    if not nodes:
        raise ValueError("connect() requires at least one node")

    if len({id(n) for n in nodes}) != len(nodes):
        raise CycleError("The same node appears more than once in connect()")

    for upstream, downstream in zip(nodes, nodes[1:]):
        if not getattr(upstream, "is_producer", False):
            raise WiringError(
                f"Node '{_name(upstream)}' is a sink and cannot feed '{_name(downstream)}'"
            )
        validate_link(upstream, downstream)
        upstream.check_compatible(downstream)

    for upstream, downstream in zip(nodes, nodes[1:]):
        upstream.set_consumer(downstream)

    logger.debug(f"Connected chain: {' -> '.join(_name(n) for n in nodes)}")
    return nodes[0]


def disconnect(node: Any) -> Any:
    """Clear a producer's downstream link, returning the previous consumer."""
    if not getattr(node, "is_producer", False):
        raise WiringError(f"Node '{_name(node)}' is a sink and has no downstream link")
    return node.clear_consumer()


def chain_nodes(head: Any) -> List[Any]:
    """Return the nodes of the chain starting at ``head`` as a list."""
    return list(iter_chain(head))


def chain_signature(head: Any) -> Tuple[Tuple[Any, ...], Tuple[Any, ...]]:
    """Return (input types of ``head``, output types of the last node).

    An empty output tuple means the chain ends in a sink; a non-empty one
    means the last node is an unwired producer.
    """
    nodes = chain_nodes(head)
    return tuple(head.input_types), tuple(nodes[-1].output_types)
