"""Exceptions raised by the host object model and the virtual proxy."""

from typing import Any, Hashable, Optional

_NO_KEY = object()


class InvariantViolation(TypeError):
    """
    Raised when a backing implementation answers in a way the shadow record
    cannot reconcile by refusal alone.

    Attributes:
        operation: The intercepted operation that detected the problem
        key: The property key involved, or None for key-less operations
    """

    def __init__(self, message: str, operation: Optional[str] = None, key: Any = None):
        super().__init__(message)
        self.operation = operation
        self.key = key


class ShapeMismatchError(TypeError):
    """Raised when call/construct is attempted on a non-callable shape."""


class RevokedProxyError(TypeError):
    """Raised by every operation of a revoked proxy."""


def format_violation(origin: str, operation: str, key: Hashable = _NO_KEY) -> str:
    """Build the message for a host-level refusal detected inside `origin`."""
    if key is _NO_KEY:
        return f"Cannot perform {operation} on virtual target in {origin} handler"
    return f"Cannot perform {operation} ({key!r}) on virtual target in {origin} handler"


def make_violation(
    error_class: type,
    message: str,
    operation: Optional[str] = None,
    key: Any = None,
) -> Exception:
    """
    Instantiate the configured violation class.

    Custom classes that do not accept the extra keyword arguments only
    receive the message.
    """
    if issubclass(error_class, InvariantViolation):
        return error_class(message, operation=operation, key=key)
    return error_class(message)
