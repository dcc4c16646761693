"""Value tuple checks.

A value tuple is the fixed-arity, positional unit of data crossing one edge
of a chain. Its types are the annotations extracted from the handlers on
either side of the edge. This module provides:

- ``matches_type``: runtime check of one value against one annotation
- ``is_assignable``: wiring-time check of an output annotation against an
  input annotation
- ``check_values``: arity and type validation of a whole value tuple
"""

import re
import types
from typing import Any, Literal, Sequence, Union, get_args, get_origin

from .exceptions import ValueTupleError

# PEP 484 numeric tower: an int is acceptable where a float is expected, etc.
_NUMERIC_PROMOTIONS = {
    float: (int,),
    complex: (int, float),
}


def _normalize(annotation: Any) -> Any:
    if annotation is None:
        return type(None)
    return annotation


def _is_union(annotation: Any) -> bool:
    origin = get_origin(annotation)
    return origin is Union or origin is types.UnionType


def _is_protocol(cls: Any) -> bool:
    return getattr(cls, "_is_protocol", False)


def matches_type(value: Any, annotation: Any) -> bool:
    """Check a single value against a type annotation at runtime.

    Parametrized generics are checked shallowly against their origin
    (``[1, "a"]`` matches ``list[int]``). Protocols that are not
    runtime-checkable are accepted as-is.

    Args:
        value: Value crossing an edge
        annotation: Annotation extracted from a handler signature

    Returns:
        True if the value is acceptable for the annotation
    """
    annotation = _normalize(annotation)
    if annotation is Any or annotation is object:
        return True

    if _is_union(annotation):
        return any(matches_type(value, arg) for arg in get_args(annotation))

    origin = get_origin(annotation)
    if origin is Literal:
        return value in get_args(annotation)
    if origin is not None:
        return matches_type(value, origin)

    supertype = getattr(annotation, "__supertype__", None)
    if supertype is not None:
        # NewType
        return matches_type(value, supertype)

    if isinstance(annotation, type):
        if _is_protocol(annotation) and not getattr(
            annotation, "_is_runtime_protocol", False
        ):
            return True
        if isinstance(value, annotation):
            return True
        promoted = _NUMERIC_PROMOTIONS.get(annotation, ())
        return isinstance(value, promoted) and not isinstance(value, bool)

    # Remaining special forms carry no runtime-checkable information
    return True


def is_assignable(source: Any, target: Any) -> bool:
    """Check whether values typed ``source`` may flow into a ``target`` slot.

    Used when wiring a producer's output types to a consumer's input types.

    Args:
        source: Upstream output annotation
        target: Downstream input annotation

    Returns:
        True if every value of ``source`` type is acceptable as ``target``
    """
    source, target = _normalize(source), _normalize(target)
    if target is Any or target is object or source is Any:
        return True
    if source == target:
        return True

    if _is_union(source):
        return all(is_assignable(arg, target) for arg in get_args(source))
    if _is_union(target):
        return any(is_assignable(source, arg) for arg in get_args(target))

    if get_origin(source) is Literal:
        return all(matches_type(value, target) for value in get_args(source))

    supertype = getattr(source, "__supertype__", None)
    if supertype is not None:
        return is_assignable(supertype, target)
    supertype = getattr(target, "__supertype__", None)
    if supertype is not None:
        # A NewType slot only accepts the NewType itself
        return False

    source_origin = get_origin(source) or source
    target_origin = get_origin(target) or target
    if not (isinstance(source_origin, type) and isinstance(target_origin, type)):
        return False

    if _is_protocol(target_origin):
        # Structural types cannot be verified from annotations alone
        return True

    if not issubclass(source_origin, target_origin):
        if source_origin not in _NUMERIC_PROMOTIONS.get(target_origin, ()):
            return False

    target_args = get_args(target)
    source_args = get_args(source)
    if not target_args or not source_args:
        return True
    if len(source_args) != len(target_args):
        return False
    return all(
        s == t or is_assignable(s, t) for s, t in zip(source_args, target_args)
    )


def format_type(annotation: Any) -> str:
    """Format a single annotation for messages and labels."""
    annotation = _normalize(annotation)
    if annotation is type(None):
        return "None"
    if isinstance(annotation, type) and get_origin(annotation) is None:
        return annotation.__name__
    type_str = str(annotation).replace("typing.", "")
    # Remove module prefixes like __main__., mymodule., etc.
    return re.sub(r"\b[a-zA-Z_][a-zA-Z0-9_]*\.", "", type_str)


def format_types(annotations: Sequence[Any]) -> str:
    """Format a type list as ``(int, str)``."""
    return "(" + ", ".join(format_type(a) for a in annotations) + ")"


def check_values(
    values: Sequence[Any],
    annotations: Sequence[Any],
    node_name: str,
    role: str,
    check_types: bool = True,
) -> None:
    """Validate a value tuple against a declared type list.

    Arity is always checked. Per-value type checks can be turned off through
    ``ChainConfig.check_types``.

    Args:
        values: The values being consumed or produced
        annotations: Declared types for the edge
        node_name: Name of the node, used in error messages
        role: "input" or "output"
        check_types: Whether to check each value's type

    Raises:
        ValueTupleError: If arity or any value's type does not match
    """
    if len(values) != len(annotations):
        raise ValueTupleError(
            f"Node '{node_name}' {role} expects {len(annotations)} value(s) "
            f"{format_types(annotations)}, got {len(values)}"
        )
    if not check_types:
        return

    for position, (value, annotation) in enumerate(zip(values, annotations)):
        if not matches_type(value, annotation):
            raise ValueTupleError(
                f"Node '{node_name}' {role} #{position} expects "
                f"{format_type(annotation)}, got {type(value).__name__} ({value!r})"
            )
