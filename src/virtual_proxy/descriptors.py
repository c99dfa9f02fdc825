"""
Property descriptors and the pure helpers that classify and compare them.

Descriptors are immutable snapshots. Replacing one is only possible by
defining a new descriptor for the same key.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

# Types compared by value rather than identity
_VALUE_TYPES = (type(None), bool, int, float, complex, str, bytes)


@dataclass(frozen=True)
class DataDescriptor:
    """A property holding a value."""
    value: Any = None
    writable: bool = False
    enumerable: bool = False
    configurable: bool = False


@dataclass(frozen=True)
class AccessorDescriptor:
    """A property backed by a getter/setter pair."""
    get: Optional[Callable[..., Any]] = None
    set: Optional[Callable[..., Any]] = None
    enumerable: bool = False
    configurable: bool = False


Descriptor = Union[DataDescriptor, AccessorDescriptor]


def is_descriptor(candidate: Any) -> bool:
    return isinstance(candidate, (DataDescriptor, AccessorDescriptor))


def is_data_descriptor(descriptor: Optional[Descriptor]) -> bool:
    return isinstance(descriptor, DataDescriptor)


def is_accessor_descriptor(descriptor: Optional[Descriptor]) -> bool:
    return isinstance(descriptor, AccessorDescriptor)


def is_frozen(descriptor: Optional[Descriptor]) -> bool:
    """
    True when no future redefinition can change anything observable:
    non-configurable and either an accessor or a non-writable data property.
    """
    if descriptor is None or descriptor.configurable:
        return False
    if is_data_descriptor(descriptor):
        return not descriptor.writable
    return True


def same_value(left: Any, right: Any) -> bool:
    """
    Identity comparison where scalars compare by type and value.

    NaN is the same as NaN, 0.0 is not the same as -0.0.
    """
    if left is right:
        return True
    if type(left) is not type(right) or not isinstance(left, _VALUE_TYPES):
        return False
    if isinstance(left, float):
        if math.isnan(left) and math.isnan(right):
            return True
        if left == 0.0 and right == 0.0:
            return math.copysign(1.0, left) == math.copysign(1.0, right)
    return left == right


def is_compatible(current: Optional[Descriptor], candidate: Descriptor) -> bool:
    """
    Decide whether `candidate` may replace `current`.

    A missing or configurable current descriptor accepts anything. A
    non-configurable one only accepts a candidate that stays
    non-configurable, keeps the same enumerability and kind, and for data
    properties that were non-writable, stays non-writable with the same
    value; accessors must keep the same getter and setter.
    """
    if current is None or current.configurable:
        return True
    if candidate.configurable:
        return False
    if current.enumerable != candidate.enumerable:
        return False
    if is_data_descriptor(current):
        if not is_data_descriptor(candidate):
            return False
        if not current.writable:
            if candidate.writable:
                return False
            if not same_value(current.value, candidate.value):
                return False
        return True
    if not is_accessor_descriptor(candidate):
        return False
    return current.get is candidate.get and current.set is candidate.set


def descriptor_from_dict(data: Dict[str, Any]) -> Descriptor:
    """
    Build a descriptor from its dictionary form.

    Dictionaries with a `get` or `set` entry become accessors, everything
    else is a data descriptor. Missing flags default to False.
    """
    if "get" in data or "set" in data:
        return AccessorDescriptor(
            get=data.get("get"),
            set=data.get("set"),
            enumerable=bool(data.get("enumerable", False)),
            configurable=bool(data.get("configurable", False)),
        )
    return DataDescriptor(
        value=data.get("value"),
        writable=bool(data.get("writable", False)),
        enumerable=bool(data.get("enumerable", False)),
        configurable=bool(data.get("configurable", False)),
    )


def descriptor_to_dict(descriptor: Descriptor) -> Dict[str, Any]:
    if is_data_descriptor(descriptor):
        return {
            "value": descriptor.value,
            "writable": descriptor.writable,
            "enumerable": descriptor.enumerable,
            "configurable": descriptor.configurable,
        }
    return {
        "get": descriptor.get,
        "set": descriptor.set,
        "enumerable": descriptor.enumerable,
        "configurable": descriptor.configurable,
    }
