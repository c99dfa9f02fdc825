"""
Backing implementation contract.

A backing implementation (handler) is any object, or mapping of
callables, exposing some of the thirteen operations. Each operation
receives the backing object first. Operations it leaves out behave like
the object model's own, applied to the backing object.
"""

from __future__ import annotations

from typing import Any, Callable, Hashable, List, Mapping, Optional, Sequence

from . import reflect
from .descriptors import Descriptor
from .objects import ModelObject

OPERATIONS = (
    "apply",
    "construct",
    "define_property",
    "get_own_property_descriptor",
    "delete_property",
    "own_keys",
    "is_extensible",
    "prevent_extensions",
    "get_prototype_of",
    "set_prototype_of",
    "has",
    "get",
    "set",
)


class Handler:
    """
    Convenience base class for handlers.

    Every operation forwards to the object model, so subclasses override
    only what they virtualize and can call `super()` for the rest.
    """

    def apply(self, target: Any, this: Any, args: Sequence[Any]) -> Any:
        return reflect.apply(target, this, args)

    def construct(self, target: Any, args: Sequence[Any], new_target: Optional[ModelObject]) -> ModelObject:
        return reflect.construct(target, args, new_target)

    def define_property(self, target: Any, key: Hashable, descriptor: Descriptor) -> bool:
        return reflect.define_property(target, key, descriptor)

    def get_own_property_descriptor(self, target: Any, key: Hashable) -> Optional[Descriptor]:
        return reflect.get_own_property_descriptor(target, key)

    def delete_property(self, target: Any, key: Hashable) -> bool:
        return reflect.delete_property(target, key)

    def own_keys(self, target: Any) -> List[Hashable]:
        return reflect.own_keys(target)

    def is_extensible(self, target: Any) -> bool:
        return reflect.is_extensible(target)

    def prevent_extensions(self, target: Any) -> bool:
        return reflect.prevent_extensions(target)

    def get_prototype_of(self, target: Any) -> Optional[ModelObject]:
        return reflect.get_prototype_of(target)

    def set_prototype_of(self, target: Any, prototype: Optional[ModelObject]) -> bool:
        return reflect.set_prototype_of(target, prototype)

    def has(self, target: Any, key: Hashable) -> bool:
        return reflect.has(target, key)

    def get(self, target: Any, key: Hashable, receiver: Any) -> Any:
        return reflect.get(target, key, receiver)

    def set(self, target: Any, key: Hashable, value: Any, receiver: Any) -> bool:
        return reflect.set(target, key, value, receiver)


class BoundHandler:
    """A handler with every operation resolved to a callable."""

    __slots__ = OPERATIONS + ("source",)

    def __init__(self, source: Any, operations: Mapping[str, Callable[..., Any]]) -> None:
        self.source = source
        for name in OPERATIONS:
            setattr(self, name, operations[name])


def bind_handler(handler: Any) -> BoundHandler:
    """
    Resolve all thirteen operations of `handler` once.

    Raises:
        TypeError: If an operation the handler provides is not callable
    """
    if isinstance(handler, BoundHandler):
        return handler
    if isinstance(handler, Mapping):
        lookup = handler.get
    else:
        def lookup(name: str) -> Any:
            return getattr(handler, name, None)

    operations = {}
    for name in OPERATIONS:
        operation = lookup(name)
        if operation is None:
            operation = getattr(reflect, name)
        elif not callable(operation):
            raise TypeError(f"Handler operation {name!r} is not callable")
        operations[name] = operation
    return BoundHandler(handler, operations)
