"""
Host object model.

Ordinary objects implementing the thirteen essential operations. They are
the carriers a virtual proxy is shaped after, the default backing objects
handlers operate on, and valid prototypes and receivers for virtual
proxies.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Callable, Dict, Hashable, Iterable, Iterator, List, Optional, Sequence

from .descriptors import (
    DataDescriptor,
    Descriptor,
    is_accessor_descriptor,
    is_compatible,
    is_data_descriptor,
    is_descriptor,
)
from .errors import ShapeMismatchError


class ModelObject(ABC):
    """
    Anything that takes part in the object model.

    Subclasses provide the thirteen essential operations; the dunder
    methods give them a Python mapping-like surface.
    """

    # -------------------------------------------------------------------------
    # Function
    # -------------------------------------------------------------------------

    def is_callable(self) -> bool:
        return False

    def is_constructor(self) -> bool:
        return False

    def apply(self, this: Any, args: Sequence[Any]) -> Any:
        raise ShapeMismatchError(f"{type(self).__name__} is not a function")

    def construct(self, args: Sequence[Any], new_target: Optional[ModelObject] = None) -> ModelObject:
        raise ShapeMismatchError(f"{type(self).__name__} is not a constructor")

    # -------------------------------------------------------------------------
    # Property
    # -------------------------------------------------------------------------

    @abstractmethod
    def define_property(self, key: Hashable, descriptor: Descriptor) -> bool:
        ...

    @abstractmethod
    def get_own_property_descriptor(self, key: Hashable) -> Optional[Descriptor]:
        ...

    @abstractmethod
    def delete_property(self, key: Hashable) -> bool:
        ...

    @abstractmethod
    def own_keys(self) -> List[Hashable]:
        ...

    # -------------------------------------------------------------------------
    # Extensibility and prototype
    # -------------------------------------------------------------------------

    @abstractmethod
    def is_extensible(self) -> bool:
        ...

    @abstractmethod
    def prevent_extensions(self) -> bool:
        ...

    @abstractmethod
    def get_prototype_of(self) -> Optional[ModelObject]:
        ...

    @abstractmethod
    def set_prototype_of(self, prototype: Optional[ModelObject]) -> bool:
        ...

    # -------------------------------------------------------------------------
    # Property-derived
    # -------------------------------------------------------------------------

    @abstractmethod
    def has(self, key: Hashable) -> bool:
        ...

    @abstractmethod
    def get(self, key: Hashable, receiver: Any = None) -> Any:
        ...

    @abstractmethod
    def set(self, key: Hashable, value: Any, receiver: Any = None) -> bool:
        ...

    # -------------------------------------------------------------------------
    # Python surface
    # -------------------------------------------------------------------------

    def __getitem__(self, key: Hashable) -> Any:
        return self.get(key, self)

    def __setitem__(self, key: Hashable, value: Any) -> None:
        if not self.set(key, value, self):
            raise TypeError(f"Cannot assign to read only property {key!r}")

    def __delitem__(self, key: Hashable) -> None:
        if not self.delete_property(key):
            raise TypeError(f"Cannot delete property {key!r}")

    def __contains__(self, key: Hashable) -> bool:
        return self.has(key)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self.own_keys())


def call_function(function: Any, this: Any, args: Iterable[Any]) -> Any:
    """
    Invoke `function` with `this` as call context.

    Callable model objects go through their own `apply`; plain Python
    callables receive `this` as first positional argument.
    """
    if isinstance(function, ModelObject):
        return function.apply(this, list(args))
    if callable(function):
        return function(this, *args)
    raise TypeError(f"{function!r} is not callable")


def get_from_descriptor(descriptor: Descriptor, receiver: Any) -> Any:
    """Resolve a read through `descriptor`: the value, or the getter's result."""
    if is_data_descriptor(descriptor):
        return descriptor.value
    if descriptor.get is None:
        return None
    return call_function(descriptor.get, receiver, [])


def set_with_descriptor(descriptor: Descriptor, key: Hashable, value: Any, receiver: Any) -> bool:
    """Resolve a write through `descriptor` found on the object or its prototype chain."""
    if is_data_descriptor(descriptor):
        if not descriptor.writable:
            return False
        return set_on_receiver(receiver, key, value)
    if descriptor.set is None:
        return False
    call_function(descriptor.set, receiver, [value])
    return True


def set_on_receiver(receiver: Any, key: Hashable, value: Any) -> bool:
    """
    Create or update an own data property on the receiver.

    The receiver keeps the attributes of an existing writable data
    property; a fresh property is writable, enumerable and configurable.
    """
    if not isinstance(receiver, ModelObject):
        return False
    existing = receiver.get_own_property_descriptor(key)
    if existing is not None:
        if is_accessor_descriptor(existing) or not existing.writable:
            return False
        return receiver.define_property(key, replace(existing, value=value))
    return receiver.define_property(
        key, DataDescriptor(value=value, writable=True, enumerable=True, configurable=True)
    )


class PlainObject(ModelObject):
    """An ordinary record-like object."""

    def __init__(
        self,
        properties: Optional[Dict[Hashable, Any]] = None,
        prototype: Optional[ModelObject] = None,
        extensible: bool = True,
    ) -> None:
        """
        Args:
            properties: Initial own properties; plain values become
                writable, enumerable, configurable data properties
            prototype: Initial prototype, or None
            extensible: Whether properties can be added afterwards
        """
        if prototype is not None and not isinstance(prototype, ModelObject):
            raise TypeError(f"Prototype must be a model object or None, got {prototype!r}")
        self._properties: Dict[Hashable, Descriptor] = {}
        self._prototype = prototype
        self._extensible = True
        for key, value in (properties or {}).items():
            if not is_descriptor(value):
                value = DataDescriptor(value=value, writable=True, enumerable=True, configurable=True)
            if not self.define_property(key, value):
                raise ValueError(f"Invalid initial property {key!r}")
        self._extensible = extensible

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._properties!r})"

    def define_property(self, key: Hashable, descriptor: Descriptor) -> bool:
        current = self._properties.get(key)
        if current is None:
            if not self._extensible:
                return False
        elif not is_compatible(current, descriptor):
            return False
        self._properties[key] = descriptor
        return True

    def get_own_property_descriptor(self, key: Hashable) -> Optional[Descriptor]:
        return self._properties.get(key)

    def delete_property(self, key: Hashable) -> bool:
        current = self._properties.get(key)
        if current is None:
            return True
        if not current.configurable:
            return False
        del self._properties[key]
        return True

    def own_keys(self) -> List[Hashable]:
        return list(self._properties)

    def is_extensible(self) -> bool:
        return self._extensible

    def prevent_extensions(self) -> bool:
        self._extensible = False
        return True

    def get_prototype_of(self) -> Optional[ModelObject]:
        return self._prototype

    def set_prototype_of(self, prototype: Optional[ModelObject]) -> bool:
        if prototype is not None and not isinstance(prototype, ModelObject):
            raise TypeError(f"Prototype must be a model object or None, got {prototype!r}")
        if prototype is self._prototype:
            return True
        if not self._extensible:
            return False
        # Walk ordinary links only; an exotic prototype ends the cycle check.
        link = prototype
        while isinstance(link, PlainObject):
            if link is self:
                return False
            link = link._prototype
        self._prototype = prototype
        return True

    def has(self, key: Hashable) -> bool:
        if key in self._properties:
            return True
        if self._prototype is not None:
            return self._prototype.has(key)
        return False

    def get(self, key: Hashable, receiver: Any = None) -> Any:
        if receiver is None:
            receiver = self
        descriptor = self._properties.get(key)
        if descriptor is not None:
            return get_from_descriptor(descriptor, receiver)
        if self._prototype is not None:
            return self._prototype.get(key, receiver)
        return None

    def set(self, key: Hashable, value: Any, receiver: Any = None) -> bool:
        if receiver is None:
            receiver = self
        descriptor = self._properties.get(key)
        if descriptor is None:
            if self._prototype is not None:
                return self._prototype.set(key, value, receiver)
            descriptor = DataDescriptor(value=None, writable=True, enumerable=True, configurable=True)
        return set_with_descriptor(descriptor, key, value, receiver)


def _as_index(key: Hashable) -> Optional[int]:
    if isinstance(key, int) and not isinstance(key, bool) and key >= 0:
        return key
    return None


class ListObject(PlainObject):
    """
    A list-like object: integer keys plus a non-configurable `length`
    that follows the highest index.
    """

    def __init__(self, items: Iterable[Any] = (), prototype: Optional[ModelObject] = None) -> None:
        super().__init__(prototype=prototype)
        self._properties["length"] = DataDescriptor(
            value=0, writable=True, enumerable=False, configurable=False
        )
        for index, item in enumerate(items):
            self.define_property(
                index, DataDescriptor(value=item, writable=True, enumerable=True, configurable=True)
            )

    def __len__(self) -> int:
        return self._properties["length"].value

    def to_list(self) -> List[Any]:
        return [self.get(index, self) for index in range(len(self))]

    def define_property(self, key: Hashable, descriptor: Descriptor) -> bool:
        if key == "length":
            return self._define_length(descriptor)
        index = _as_index(key)
        if index is None:
            return super().define_property(key, descriptor)
        length = self._properties["length"]
        if index >= length.value and not length.writable:
            return False
        if not super().define_property(key, descriptor):
            return False
        if index >= length.value:
            self._properties["length"] = replace(length, value=index + 1)
        return True

    def _define_length(self, descriptor: Descriptor) -> bool:
        current = self._properties["length"]
        if not is_data_descriptor(descriptor):
            return False
        new_length = descriptor.value
        if isinstance(new_length, bool) or not isinstance(new_length, int) or new_length < 0:
            raise ValueError(f"Invalid list length: {new_length!r}")
        if not is_compatible(current, descriptor):
            return False
        stale = sorted(
            (key for key in self._properties if _as_index(key) is not None and key >= new_length),
            reverse=True,
        )
        for index in stale:
            if not self._properties[index].configurable:
                self._properties["length"] = replace(descriptor, value=index + 1)
                return False
            del self._properties[index]
        self._properties["length"] = descriptor
        return True

    def own_keys(self) -> List[Hashable]:
        indices = sorted(key for key in self._properties if _as_index(key) is not None)
        others = [key for key in self._properties if _as_index(key) is None]
        return indices + others


class FunctionObject(PlainObject):
    """
    A callable object wrapping a Python function.

    The body receives the call context first: `body(this, *args)`. When
    constructed, `this` is a fresh PlainObject inheriting from
    `new_target.prototype`; a model object returned by the body replaces it.
    """

    def __init__(
        self,
        body: Callable[..., Any],
        constructor: bool = False,
        prototype: Optional[ModelObject] = None,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(prototype=prototype)
        self._body = body
        self._constructor = constructor
        self._properties["name"] = DataDescriptor(
            value=name if name is not None else getattr(body, "__name__", ""),
            writable=False,
            enumerable=False,
            configurable=True,
        )
        if constructor:
            self._properties["prototype"] = DataDescriptor(
                value=PlainObject(), writable=True, enumerable=False, configurable=False
            )

    def __call__(self, *args: Any) -> Any:
        return self.apply(None, list(args))

    def is_callable(self) -> bool:
        return True

    def is_constructor(self) -> bool:
        return self._constructor

    def apply(self, this: Any, args: Sequence[Any]) -> Any:
        return self._body(this, *args)

    def construct(self, args: Sequence[Any], new_target: Optional[ModelObject] = None) -> ModelObject:
        if not self._constructor:
            raise ShapeMismatchError(f"{self.get('name', self)!r} is not a constructor")
        if new_target is None:
            new_target = self
        prototype = new_target.get("prototype", new_target)
        if not isinstance(prototype, ModelObject):
            prototype = None
        instance = PlainObject(prototype=prototype)
        result = self._body(instance, *args)
        if isinstance(result, ModelObject):
            return result
        return instance
