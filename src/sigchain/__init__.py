"""SigChain: Linear, Synchronous Chains of Typed Handlers.

A small composition library that turns plain functions into chain stages:
- Input and output types are read from each handler's type hints
- Handlers returning values become transforms, handlers returning None sinks
- Wiring checks that each edge's value tuple fits the next handler
- Delivery is synchronous: one ``consume`` call runs the whole chain

Example:
    >>> from sigchain import build_sink, build_transform, connect
    >>>
    >>> def increment(x: int) -> int:
    ...     return x + 1
    >>>
    >>> def double(x: int) -> int:
    ...     return x * 2
    >>>
    >>> collected = []
    >>> def collect(y: int) -> None:
    ...     collected.append(y)
    >>>
    >>> nodes = [build_transform(increment), build_transform(double), build_sink(collect)]
    >>> head = connect(*nodes)
    >>> head.consume(3)
    >>> collected
    [8]
"""

from .callbacks import CallbackContext, ChainCallback
from .config import ChainConfig, default_config, load_config
from .exceptions import (
    BuildError,
    CycleError,
    DanglingConsumerError,
    SigChainError,
    SignatureError,
    UnwiredProducerError,
    ValueTupleError,
    WiringError,
)
from .factory import build_node, build_sink, build_transform, sink, transform
from .node import Node, SinkNode, TransformNode
from .roles import Consumer, Producer
from .signature import HandlerSignature, extract_signature
from .visualization import DESIGN_STYLES, GraphvizStyle, visualize
from .wiring import chain_nodes, chain_signature, connect, disconnect, iter_chain

__version__ = "0.1.0"

__all__ = [
    # Factory & decorators
    "build_transform",
    "build_sink",
    "build_node",
    "transform",
    "sink",
    # Classes
    "Consumer",
    "Producer",
    "Node",
    "TransformNode",
    "SinkNode",
    "HandlerSignature",
    "extract_signature",
    # Wiring
    "connect",
    "disconnect",
    "iter_chain",
    "chain_nodes",
    "chain_signature",
    # Config & Callbacks
    "ChainConfig",
    "default_config",
    "load_config",
    "ChainCallback",
    "CallbackContext",
    # Visualization
    "GraphvizStyle",
    "DESIGN_STYLES",
    "visualize",
    # Exceptions
    "SigChainError",
    "SignatureError",
    "BuildError",
    "WiringError",
    "CycleError",
    "UnwiredProducerError",
    "DanglingConsumerError",
    "ValueTupleError",
    # Note: telemetry module is available but not exported at top level
    # Use: from sigchain.telemetry import ProgressCallback
]
