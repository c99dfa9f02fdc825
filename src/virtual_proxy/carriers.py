"""Carrier selection and convenience constructors."""

from enum import Enum
from typing import Any, Optional, Union

from .config import Settings
from .objects import FunctionObject, ListObject, ModelObject, PlainObject
from .proxy import VirtualProxy


class Shape(str, Enum):
    """The kinds of placeholder a virtual proxy can be shaped after."""
    RECORD = "record"
    LIST = "list"
    FUNCTION = "function"  # callable and constructible
    ARROW = "arrow"  # callable only


def _placeholder(this: Any, *args: Any) -> None:
    return None


def make_carrier(shape: Union[Shape, str]) -> ModelObject:
    """Build a fresh placeholder of the requested shape."""
    shape = Shape(shape)
    if shape is Shape.LIST:
        return ListObject()
    if shape is Shape.FUNCTION:
        return FunctionObject(_placeholder, constructor=True, name="")
    if shape is Shape.ARROW:
        return FunctionObject(_placeholder, name="")
    return PlainObject()


def select_shape(target: Any) -> Shape:
    """
    Pick the shape matching the thing being virtualized.

    Model objects are classified by kind and callability, other Python
    values by type: lists and tuples are list-like, classes are
    constructors, other callables are plain functions.
    """
    if isinstance(target, VirtualProxy):
        return select_shape(target.carrier)
    if isinstance(target, ListObject) or isinstance(target, (list, tuple)):
        return Shape.LIST
    if isinstance(target, ModelObject):
        if target.is_constructor():
            return Shape.FUNCTION
        if target.is_callable():
            return Shape.ARROW
        return Shape.RECORD
    if isinstance(target, type):
        return Shape.FUNCTION
    if callable(target):
        return Shape.ARROW
    return Shape.RECORD


def virtual_object(target: Any, handler: Any, settings: Optional[Settings] = None) -> VirtualProxy:
    return VirtualProxy(make_carrier(Shape.RECORD), target, handler, settings)


def virtual_list(target: Any, handler: Any, settings: Optional[Settings] = None) -> VirtualProxy:
    return VirtualProxy(make_carrier(Shape.LIST), target, handler, settings)


def virtual_function(target: Any, handler: Any, settings: Optional[Settings] = None) -> VirtualProxy:
    return VirtualProxy(make_carrier(Shape.FUNCTION), target, handler, settings)


def virtual_arrow(target: Any, handler: Any, settings: Optional[Settings] = None) -> VirtualProxy:
    return VirtualProxy(make_carrier(Shape.ARROW), target, handler, settings)


def virtualize(target: Any, handler: Any, settings: Optional[Settings] = None) -> VirtualProxy:
    """Wrap `target` in a proxy whose carrier shape is chosen from the target itself."""
    return VirtualProxy(make_carrier(select_shape(target)), target, handler, settings)
