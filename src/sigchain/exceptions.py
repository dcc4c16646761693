"""Custom exceptions for SigChain."""


class SigChainError(Exception):
    """Base exception for all SigChain errors."""
    pass


class SignatureError(SigChainError):
    """Raised when a handler's input/output types cannot be extracted."""
    pass


class BuildError(SigChainError):
    """Raised when a handler is built with the wrong factory.

    For example, a handler returning values passed to ``build_sink``, or a
    handler returning ``None`` passed to ``build_transform``.
    """
    pass


class WiringError(SigChainError):
    """Raised when two nodes cannot be connected."""
    pass


class CycleError(WiringError):
    """Raised when a connection would close a cycle in the chain."""
    pass


class UnwiredProducerError(SigChainError):
    """Raised when a producer emits values with no downstream registered."""
    pass


class DanglingConsumerError(UnwiredProducerError):
    """Raised when the registered downstream node no longer exists."""
    pass


class ValueTupleError(SigChainError, TypeError):
    """Raised when a value tuple does not match a node's declared types."""
    pass
