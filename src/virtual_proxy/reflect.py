"""
The essential operations as plain functions.

These are the identity behaviors a handler falls back to for every
operation it leaves out: each one applies the object model's own
semantics to the object it receives.
"""

from __future__ import annotations

from typing import Any, Hashable, List, Optional, Sequence

from .descriptors import Descriptor
from .objects import ModelObject, call_function


def _require_object(target: Any, operation: str) -> ModelObject:
    if not isinstance(target, ModelObject):
        raise TypeError(f"{operation} called on non-object {target!r}")
    return target


def is_callable(target: Any) -> bool:
    return isinstance(target, ModelObject) and target.is_callable()


def is_constructor(target: Any) -> bool:
    return isinstance(target, ModelObject) and target.is_constructor()


def call(function: Any, this: Any, args: Sequence[Any] = ()) -> Any:
    """Invoke a model function or a Python callable with `this` as context."""
    return call_function(function, this, args)


def apply(target: Any, this: Any, args: Sequence[Any]) -> Any:
    return _require_object(target, "apply").apply(this, list(args))


def construct(target: Any, args: Sequence[Any], new_target: Optional[ModelObject] = None) -> ModelObject:
    target = _require_object(target, "construct")
    if new_target is None:
        new_target = target
    return target.construct(list(args), new_target)


def define_property(target: Any, key: Hashable, descriptor: Descriptor) -> bool:
    return _require_object(target, "define_property").define_property(key, descriptor)


def get_own_property_descriptor(target: Any, key: Hashable) -> Optional[Descriptor]:
    return _require_object(target, "get_own_property_descriptor").get_own_property_descriptor(key)


def delete_property(target: Any, key: Hashable) -> bool:
    return _require_object(target, "delete_property").delete_property(key)


def own_keys(target: Any) -> List[Hashable]:
    return _require_object(target, "own_keys").own_keys()


def is_extensible(target: Any) -> bool:
    return _require_object(target, "is_extensible").is_extensible()


def prevent_extensions(target: Any) -> bool:
    return _require_object(target, "prevent_extensions").prevent_extensions()


def get_prototype_of(target: Any) -> Optional[ModelObject]:
    return _require_object(target, "get_prototype_of").get_prototype_of()


def set_prototype_of(target: Any, prototype: Optional[ModelObject]) -> bool:
    return _require_object(target, "set_prototype_of").set_prototype_of(prototype)


def has(target: Any, key: Hashable) -> bool:
    return _require_object(target, "has").has(key)


def get(target: Any, key: Hashable, receiver: Any = None) -> Any:
    target = _require_object(target, "get")
    if receiver is None:
        receiver = target
    return target.get(key, receiver)


def set(target: Any, key: Hashable, value: Any, receiver: Any = None) -> bool:
    target = _require_object(target, "set")
    if receiver is None:
        receiver = target
    return target.set(key, value, receiver)
