"""Signature extraction for chain handlers.

Derives a handler's ordered input type list and output type list from its
type hints, so that nodes never need hand-written type declarations:

- positional parameters, in order, form the input list
- ``-> None`` gives an empty output list (a sink)
- ``-> tuple[A, B]`` gives ``(A, B)``, delivered element-wise
- any other return annotation ``T`` gives ``(T,)``, delivered as one value

Anything that prevents an exact answer (missing annotations, generic or
overloaded handlers, variadic parameters) raises ``SignatureError`` while the
node is being built, before any value can flow.
"""

import functools
import inspect
import logging
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Optional,
    ParamSpec,
    Sequence,
    Tuple,
    TypeVar,
    TypeVarTuple,
    get_args,
    get_origin,
    get_overloads,
    get_type_hints,
)

from .exceptions import SignatureError
from .values import format_types

logger = logging.getLogger(__name__)

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


@dataclass(frozen=True)
class HandlerSignature:
    """Input and output types of a handler.

    Attributes:
        name: Handler display name
        input_names: Positional parameter names, in order
        input_types: Annotation of each positional parameter, in order
        output_types: Types the handler emits, in order (empty for sinks)
        unpack_result: True if the handler returns a tuple that is delivered
            element-wise; False if it returns a single value
    """

    name: str
    input_names: Tuple[str, ...]
    input_types: Tuple[Any, ...]
    output_types: Tuple[Any, ...]
    unpack_result: bool = False

    @property
    def is_sink(self) -> bool:
        return not self.output_types

    def __str__(self) -> str:
        return (
            f"{self.name}{format_types(self.input_types)} -> "
            f"{format_types(self.output_types)}"
        )


def handler_name(handler: Any) -> str:
    """Return a readable name for a handler."""
    if isinstance(handler, functools.partial):
        return handler_name(handler.func)
    name = getattr(handler, "__name__", None)
    if name is not None:
        return name
    return type(handler).__name__


def _hint_target(handler: Callable) -> Callable:
    """Return the object whose annotations describe ``handler``'s call form."""
    if isinstance(handler, functools.partial):
        return _hint_target(handler.func)
    if (
        inspect.isfunction(handler)
        or inspect.ismethod(handler)
        or inspect.isbuiltin(handler)
    ):
        return handler
    # Callable instance
    return type(handler).__call__


def _contains_type_variable(annotation: Any) -> bool:
    if isinstance(annotation, (TypeVar, ParamSpec, TypeVarTuple)):
        return True
    if isinstance(annotation, (list, tuple)):
        # Callable[[A, B], R] carries its parameters as a list
        return any(_contains_type_variable(arg) for arg in annotation)
    return any(_contains_type_variable(arg) for arg in get_args(annotation))


def _split_return(annotation: Any, name: str) -> Tuple[Tuple[Any, ...], bool]:
    """Turn a return annotation into (output_types, unpack_result)."""
    if annotation is None or annotation is type(None):
        return (), False

    if annotation is tuple or annotation is Tuple:
        raise SignatureError(
            f"Handler '{name}' returns a bare tuple; annotate the element types "
            f"(e.g. tuple[int, str]) so the output arity is known"
        )

    if get_origin(annotation) is tuple:
        args = get_args(annotation)
        if len(args) == 2 and args[1] is Ellipsis:
            raise SignatureError(
                f"Handler '{name}' returns a variable-length tuple "
                f"({annotation}); value tuples must have a fixed arity"
            )
        return tuple(args), True

    return (annotation,), False


def _check_call_form(handler: Callable, target: Callable, name: str) -> None:
    """Reject handlers whose call form cannot be resolved to one signature."""
    if inspect.isclass(handler):
        raise SignatureError(
            f"'{name}' is a class; pass a function or a callable instance instead"
        )

    if (
        inspect.iscoroutinefunction(handler)
        or inspect.iscoroutinefunction(target)
        or inspect.isasyncgenfunction(target)
    ):
        raise SignatureError(
            f"Handler '{name}' is asynchronous; chains dispatch synchronously"
        )

    if hasattr(handler, "dispatch") and hasattr(handler, "registry"):
        raise SignatureError(
            f"Handler '{name}' is a single-dispatch function with several "
            f"implementations; its input types are not unique"
        )

    func = getattr(target, "__func__", target)
    if inspect.isfunction(func) and get_overloads(func):
        raise SignatureError(
            f"Handler '{name}' is overloaded; its input types are not unique"
        )


def extract_signature(
    handler: Callable,
    inputs: Optional[Sequence[Any]] = None,
    outputs: Optional[Sequence[Any]] = None,
) -> HandlerSignature:
    """Extract a handler's ordered input and output type lists.

    Args:
        handler: Function, bound method, callable instance or functools.partial
        inputs: Explicit input types, replacing inference from annotations.
            Must match the number of positional parameters.
        outputs: Explicit output types, replacing inference from the return
            annotation. One type means a single returned value; any other
            length means the handler returns a tuple of that length.

    Returns:
        HandlerSignature describing the handler

    Raises:
        SignatureError: If the types cannot be determined exactly

    Example:
        >>> def split(text: str) -> tuple[str, int]:
        ...     return text, len(text)
        >>> sig = extract_signature(split)
        >>> sig.input_types, sig.output_types
        ((<class 'str'>,), (<class 'str'>, <class 'int'>))
    """
    if not callable(handler):
        raise SignatureError(f"Handler {handler!r} is not callable")

    name = handler_name(handler)
    target = _hint_target(handler)
    _check_call_form(handler, target, name)

    try:
        sig = inspect.signature(handler)
    except (TypeError, ValueError) as e:
        raise SignatureError(f"Cannot inspect signature of '{name}': {e}") from e

    input_names = []
    for param in sig.parameters.values():
        if param.kind in _POSITIONAL_KINDS:
            input_names.append(param.name)
        elif param.kind is inspect.Parameter.KEYWORD_ONLY:
            if param.default is inspect.Parameter.empty:
                raise SignatureError(
                    f"Handler '{name}' has keyword-only parameter '{param.name}' "
                    f"without a default; values are delivered positionally"
                )
        else:
            raise SignatureError(
                f"Handler '{name}' accepts variadic parameter '{param.name}'; "
                f"value tuples need a fixed arity"
            )

    hints = {}
    if inputs is None or outputs is None:
        try:
            hints = get_type_hints(target)
        except Exception as e:
            raise SignatureError(
                f"Cannot resolve type hints of '{name}': {e}"
            ) from e

    if inputs is not None:
        input_types = tuple(inputs)
        if len(input_types) != len(input_names):
            raise SignatureError(
                f"Handler '{name}' takes {len(input_names)} positional "
                f"parameter(s) but {len(input_types)} input type(s) were given"
            )
    else:
        missing = [n for n in input_names if n not in hints]
        if missing:
            raise SignatureError(
                f"Handler '{name}' has unannotated parameter(s) {missing}; "
                f"annotate them or pass inputs="
            )
        input_types = tuple(hints[n] for n in input_names)

    if outputs is not None:
        output_types = tuple(outputs)
        unpack_result = len(output_types) != 1
    else:
        if "return" not in hints:
            raise SignatureError(
                f"Handler '{name}' has no return annotation; annotate it "
                f"(use -> None for sinks) or pass outputs="
            )
        output_types, unpack_result = _split_return(hints["return"], name)

    generic = [t for t in input_types + output_types if _contains_type_variable(t)]
    if generic:
        raise SignatureError(
            f"Handler '{name}' is generic over {generic}; "
            f"node types must be concrete"
        )

    signature = HandlerSignature(
        name=name,
        input_names=tuple(input_names),
        input_types=input_types,
        output_types=output_types,
        unpack_result=unpack_result,
    )
    logger.debug(f"Extracted signature {signature}")
    return signature
