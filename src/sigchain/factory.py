"""Component factory: builds nodes from handlers.

The factory extracts the handler's signature and attaches the right
capability set:

- ``build_transform``: Consumer and Producer (handler must emit values)
- ``build_sink``: Consumer only (handler must return None)
- ``build_node``: chooses between the two from the extracted outputs

``transform`` and ``sink`` are decorator forms of the first two.
"""

import dataclasses
import logging
from typing import Any, Callable, Optional, Sequence, Union

from .config import ChainConfig
from .exceptions import BuildError
from .node import Node, SinkNode, TransformNode
from .signature import extract_signature
from .values import format_types

logger = logging.getLogger(__name__)


def _node_config(config: Optional[ChainConfig], name: Optional[str]) -> ChainConfig:
    config = config or ChainConfig()
    if name is not None:
        config = dataclasses.replace(config, name=name)
    return config


def build_transform(
    handler: Callable,
    *,
    inputs: Optional[Sequence[Any]] = None,
    outputs: Optional[Sequence[Any]] = None,
    name: Optional[str] = None,
    config: Optional[ChainConfig] = None,
) -> TransformNode:
    """Build a node that consumes the handler's inputs and emits its outputs.

    Args:
        handler: Callable with annotated parameters and a non-None return
        inputs: Explicit input types (for handlers without annotations)
        outputs: Explicit output types (for handlers without annotations)
        name: Node name (default: the handler's name)
        config: Node configuration

    Returns:
        TransformNode over the extracted types

    Raises:
        SignatureError: If the handler's types cannot be extracted
        BuildError: If the handler emits nothing

    Example:
        >>> def increment(x: int) -> int:
        ...     return x + 1
        >>> node = build_transform(increment)
        >>> node.input_types, node.output_types
        ((<class 'int'>,), (<class 'int'>,))
    """
    signature = extract_signature(handler, inputs=inputs, outputs=outputs)
    if signature.is_sink:
        raise BuildError(
            f"Handler '{signature.name}' returns no values and cannot feed a "
            f"downstream node; use build_sink() instead"
        )

    node = TransformNode(handler, signature, _node_config(config, name))
    logger.debug(f"Built transform {node!r}")
    return node


def build_sink(
    handler: Callable,
    *,
    inputs: Optional[Sequence[Any]] = None,
    outputs: Optional[Sequence[Any]] = None,
    name: Optional[str] = None,
    config: Optional[ChainConfig] = None,
    discard_result: bool = False,
) -> SinkNode:
    """Build a consumer-only node that runs the handler for effect.

    Args:
        handler: Callable with annotated parameters returning None
        inputs: Explicit input types (for handlers without annotations)
        outputs: Explicit output types (for handlers without annotations)
        name: Node name (default: the handler's name)
        config: Node configuration
        discard_result: Accept a handler that returns values and ignore them

    Returns:
        SinkNode over the extracted input types

    Raises:
        SignatureError: If the handler's types cannot be extracted
        BuildError: If the handler returns values and discard_result is False
    """
    signature = extract_signature(handler, inputs=inputs, outputs=outputs)
    if not signature.is_sink and not discard_result:
        raise BuildError(
            f"Handler '{signature.name}' returns {format_types(signature.output_types)}; "
            f"use build_transform() to forward them or pass discard_result=True"
        )

    node = SinkNode(handler, signature, _node_config(config, name))
    logger.debug(f"Built sink {node!r}")
    return node


def build_node(
    handler: Callable,
    *,
    inputs: Optional[Sequence[Any]] = None,
    outputs: Optional[Sequence[Any]] = None,
    name: Optional[str] = None,
    config: Optional[ChainConfig] = None,
) -> Node:
    """Build a transform or a sink depending on what the handler returns."""
    signature = extract_signature(handler, inputs=inputs, outputs=outputs)
    node_class = SinkNode if signature.is_sink else TransformNode
    node = node_class(handler, signature, _node_config(config, name))
    logger.debug(f"Built {node!r}")
    return node


def transform(
    handler: Optional[Callable] = None,
    *,
    inputs: Optional[Sequence[Any]] = None,
    outputs: Optional[Sequence[Any]] = None,
    name: Optional[str] = None,
    config: Optional[ChainConfig] = None,
) -> Union[TransformNode, Callable[[Callable], TransformNode]]:
    """Decorator form of ``build_transform``.

    Can be used with or without parentheses:
    - @transform
    - @transform(name="inc")

    Example:
        >>> @transform
        ... def increment(x: int) -> int:
        ...     return x + 1
    """
    if handler is not None:
        return build_transform(
            handler, inputs=inputs, outputs=outputs, name=name, config=config
        )

    def decorator(func: Callable) -> TransformNode:
        return build_transform(
            func, inputs=inputs, outputs=outputs, name=name, config=config
        )

    return decorator


def sink(
    handler: Optional[Callable] = None,
    *,
    inputs: Optional[Sequence[Any]] = None,
    outputs: Optional[Sequence[Any]] = None,
    name: Optional[str] = None,
    config: Optional[ChainConfig] = None,
    discard_result: bool = False,
) -> Union[SinkNode, Callable[[Callable], SinkNode]]:
    """Decorator form of ``build_sink``.

    Can be used with or without parentheses:
    - @sink
    - @sink(discard_result=True)
    """
    if handler is not None:
        return build_sink(
            handler,
            inputs=inputs,
            outputs=outputs,
            name=name,
            config=config,
            discard_result=discard_result,
        )

    def decorator(func: Callable) -> SinkNode:
        return build_sink(
            func,
            inputs=inputs,
            outputs=outputs,
            name=name,
            config=config,
            discard_result=discard_result,
        )

    return decorator
