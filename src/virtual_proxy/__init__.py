"""Invariant-enforcing virtual proxies over untrusted backing implementations."""

from .carriers import (
    Shape,
    make_carrier,
    select_shape,
    virtual_arrow,
    virtual_function,
    virtual_list,
    virtual_object,
    virtualize,
)
from .config import Settings
from .descriptors import AccessorDescriptor, DataDescriptor, Descriptor
from .errors import InvariantViolation, RevokedProxyError, ShapeMismatchError
from .handler import OPERATIONS, Handler, bind_handler
from .objects import FunctionObject, ListObject, ModelObject, PlainObject
from .proxy import Revocable, VirtualProxy, revocable

__all__ = [
    "AccessorDescriptor",
    "DataDescriptor",
    "Descriptor",
    "FunctionObject",
    "Handler",
    "InvariantViolation",
    "ListObject",
    "ModelObject",
    "OPERATIONS",
    "PlainObject",
    "Revocable",
    "RevokedProxyError",
    "Settings",
    "Shape",
    "ShapeMismatchError",
    "VirtualProxy",
    "bind_handler",
    "make_carrier",
    "revocable",
    "select_shape",
    "virtual_arrow",
    "virtual_function",
    "virtual_list",
    "virtual_object",
    "virtualize",
]
