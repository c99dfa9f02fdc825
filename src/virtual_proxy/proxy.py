"""
Invariant-enforcing virtual proxy.

A VirtualProxy forwards every operation to an untrusted handler operating
on a backing object, and checks each answer against its shadow record:
facts already pinned are served locally, new non-configurable facts are
pinned on first observation, answers that contradict pinned facts are
either refused (a False result) or raised as invariant violations.
"""

from __future__ import annotations

from typing import Any, Callable, Hashable, List, NamedTuple, Optional, Sequence

from .config import Settings
from .descriptors import (
    DataDescriptor,
    Descriptor,
    is_accessor_descriptor,
    is_compatible,
    is_descriptor,
    is_frozen,
)
from .errors import RevokedProxyError, ShapeMismatchError, make_violation
from .handler import BoundHandler, bind_handler
from .logging import get_logger
from .objects import ModelObject, get_from_descriptor, set_with_descriptor
from .shadow import ShadowRecord

logger = get_logger(__name__)

_NO_KEY = object()


class VirtualProxy(ModelObject):
    """
    The wrapped object exposed to consumers.

    Args:
        carrier: Placeholder object deciding the proxy's shape (record,
            list or callable); only its callability is ever consulted
        target: The backing object handed to every handler operation
        handler: The backing implementation, see `handler.bind_handler`
        settings: Optional Settings (violation class, tracing)
    """

    def __init__(
        self,
        carrier: ModelObject,
        target: Any,
        handler: Any,
        settings: Optional[Settings] = None,
    ) -> None:
        if not isinstance(carrier, ModelObject):
            raise TypeError(f"Carrier must be a model object, got {carrier!r}")
        self._carrier = carrier
        self._target = target
        self._handler: Optional[BoundHandler] = bind_handler(handler)
        self._settings = settings or Settings()
        self._shadow = ShadowRecord(self._violation)
        self._revoked = False

    def __repr__(self) -> str:
        state = "revoked" if self._revoked else ("sealed" if self._shadow.sealed else "open")
        return f"<{type(self).__name__} {type(self._carrier).__name__} {state}>"

    def __call__(self, *args: Any) -> Any:
        return self.apply(None, list(args))

    @property
    def carrier(self) -> ModelObject:
        return self._carrier

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _violation(self, message: str, operation: Optional[str], key: Any = None) -> Exception:
        logger.warning(message)
        return make_violation(self._settings.error_class, message, operation, key)

    def _enter(self, operation: str, key: Any = _NO_KEY) -> BoundHandler:
        if self._revoked:
            raise RevokedProxyError(f"Cannot perform {operation} on a revoked proxy")
        if self._settings.trace_operations:
            if key is _NO_KEY:
                logger.debug(f"{operation}")
            else:
                logger.debug(f"{operation} {key!r}")
        return self._handler

    def _revoke(self) -> None:
        self._revoked = True
        self._target = None
        self._handler = None

    def _check_descriptor(self, origin: str, key: Hashable, answer: Any) -> Optional[Descriptor]:
        if answer is not None and not is_descriptor(answer):
            raise self._violation(
                f"{origin} handler must report a descriptor or None for {key!r}, got {answer!r}",
                origin,
                key,
            )
        return answer

    def _check_prototype(self, origin: str, answer: Any) -> Optional[ModelObject]:
        if answer is not None and not isinstance(answer, ModelObject):
            raise self._violation(
                f"{origin} handler must report a model object or None as prototype, got {answer!r}",
                origin,
            )
        return answer

    def _check_keys(self, origin: str, answer: Any) -> List[Hashable]:
        if isinstance(answer, (str, bytes)):
            raise self._violation(f"{origin} handler must report a list of keys, got {answer!r}", origin)
        try:
            keys = list(answer)
            unique = set(keys)
        except TypeError as exc:
            raise self._violation(
                f"{origin} handler must report a list of hashable keys, got {answer!r}", origin
            ) from exc
        if len(unique) != len(keys):
            raise self._violation(f"{origin} handler reported duplicate keys: {keys!r}", origin)
        return keys

    def _reconcile_descriptor(
        self, origin: str, key: Hashable, descriptor: Optional[Descriptor]
    ) -> Optional[Descriptor]:
        """Check a descriptor reported by the handler against the shadow."""
        # Re-read: the handler may have re-entered this proxy.
        current = self._shadow.get(key)
        if descriptor is None:
            if current is not None:
                if not current.configurable:
                    raise self._violation(
                        f"{origin} handler reported non-configurable property {key!r} as missing",
                        origin,
                        key,
                    )
                if self._shadow.sealed:
                    self._shadow.remove(origin, key)
            return None
        if current is None and self._shadow.sealed:
            logger.warning(f"{origin} handler reported unknown property {key!r} on a sealed target, hiding it")
            return None
        if not descriptor.configurable:
            self._shadow.pin(origin, key, descriptor)
        elif current is not None and not current.configurable:
            raise self._violation(
                f"{origin} handler reported non-configurable property {key!r} as configurable",
                origin,
                key,
            )
        return descriptor

    def _effective_prototype(self, origin: str, handler: BoundHandler) -> Optional[ModelObject]:
        if self._shadow.sealed:
            return self._shadow.prototype
        return self._check_prototype(origin, handler.get_prototype_of(self._target))

    def _synchronize(self, origin: str, handler: BoundHandler) -> None:
        """
        Pull the handler's key set and prototype into the shadow and seal it.

        Runs once per open-to-sealed transition; later calls are no-ops.
        Any refusal by the shadow surfaces as an invariant violation.
        """
        if self._shadow.sealed:
            return
        keys = self._check_keys(origin, handler.own_keys(self._target))
        for key in keys:
            if key not in self._shadow:
                self._shadow.pin(
                    origin,
                    key,
                    DataDescriptor(value=None, writable=True, enumerable=True, configurable=True),
                )
        prototype = self._check_prototype(origin, handler.get_prototype_of(self._target))
        self._shadow.seal(prototype)
        logger.debug(f"Sealed virtual target from {origin}: {len(self._shadow.keys())} keys")

    # -------------------------------------------------------------------------
    # Function
    # -------------------------------------------------------------------------

    def is_callable(self) -> bool:
        return self._carrier.is_callable()

    def is_constructor(self) -> bool:
        return self._carrier.is_constructor()

    def apply(self, this: Any, args: Sequence[Any]) -> Any:
        handler = self._enter("apply")
        if not self._carrier.is_callable():
            raise ShapeMismatchError("Virtual target is not a function")
        return handler.apply(self._target, this, list(args))

    def construct(self, args: Sequence[Any], new_target: Optional[ModelObject] = None) -> ModelObject:
        handler = self._enter("construct")
        if new_target is None:
            new_target = self
        if not self._carrier.is_constructor():
            raise ShapeMismatchError("Virtual target is not a constructor")
        if not (isinstance(new_target, ModelObject) and new_target.is_constructor()):
            raise ShapeMismatchError(f"new_target {new_target!r} is not a constructor")
        result = handler.construct(self._target, list(args), new_target)
        if not isinstance(result, ModelObject):
            raise self._violation(f"construct handler must return a model object, got {result!r}", "construct")
        return result

    # -------------------------------------------------------------------------
    # Property
    # -------------------------------------------------------------------------

    def define_property(self, key: Hashable, descriptor: Descriptor) -> bool:
        handler = self._enter("define_property", key)
        if not is_descriptor(descriptor):
            raise TypeError(f"Expected a property descriptor, got {descriptor!r}")
        current = self._shadow.get(key)
        if current is None:
            if self._shadow.sealed:
                return False
        elif not is_compatible(current, descriptor):
            return False
        if descriptor.configurable:
            return bool(handler.define_property(self._target, key, descriptor))
        self._shadow.pin("define_property", key, descriptor)
        if handler.define_property(self._target, key, descriptor):
            return True
        self._shadow.restore(key, descriptor, current)
        return False

    def get_own_property_descriptor(self, key: Hashable) -> Optional[Descriptor]:
        handler = self._enter("get_own_property_descriptor", key)
        current = self._shadow.get(key)
        if is_frozen(current):
            return current
        descriptor = self._check_descriptor(
            "get_own_property_descriptor",
            key,
            handler.get_own_property_descriptor(self._target, key),
        )
        return self._reconcile_descriptor("get_own_property_descriptor", key, descriptor)

    def delete_property(self, key: Hashable) -> bool:
        handler = self._enter("delete_property", key)
        current = self._shadow.get(key)
        if current is not None and not current.configurable:
            return False
        success = bool(handler.delete_property(self._target, key))
        if success and self._shadow.sealed:
            self._shadow.remove("delete_property", key)
        return success

    def own_keys(self) -> List[Hashable]:
        handler = self._enter("own_keys")
        keys = self._check_keys("own_keys", handler.own_keys(self._target))
        reported = set(keys)
        for key in self._shadow.keys():
            if key in reported:
                continue
            if not self._shadow.get(key).configurable:
                raise self._violation(
                    f"own_keys handler omitted non-configurable property {key!r}", "own_keys", key
                )
            if self._shadow.sealed:
                self._shadow.remove("own_keys", key)
        if not self._shadow.sealed:
            return keys
        known = [key for key in keys if key in self._shadow]
        if len(known) != len(keys):
            hidden = [key for key in keys if key not in self._shadow]
            logger.warning(f"own_keys handler reported unknown keys on a sealed target, hiding {hidden!r}")
        return known

    # -------------------------------------------------------------------------
    # Extensibility
    # -------------------------------------------------------------------------

    def is_extensible(self) -> bool:
        handler = self._enter("is_extensible")
        extensible = bool(handler.is_extensible(self._target))
        if extensible:
            if self._shadow.sealed:
                raise self._violation("Cannot undo prevent_extensions on virtual target", "is_extensible")
            return True
        self._synchronize("is_extensible", handler)
        return False

    def prevent_extensions(self) -> bool:
        handler = self._enter("prevent_extensions")
        if not handler.prevent_extensions(self._target):
            if self._shadow.sealed:
                raise self._violation(
                    "prevent_extensions handler refused to seal an already sealed virtual target",
                    "prevent_extensions",
                )
            return False
        self._synchronize("prevent_extensions", handler)
        return True

    # -------------------------------------------------------------------------
    # Prototype
    # -------------------------------------------------------------------------

    def get_prototype_of(self) -> Optional[ModelObject]:
        handler = self._enter("get_prototype_of")
        return self._effective_prototype("get_prototype_of", handler)

    def set_prototype_of(self, prototype: Optional[ModelObject]) -> bool:
        handler = self._enter("set_prototype_of")
        if prototype is not None and not isinstance(prototype, ModelObject):
            raise TypeError(f"Prototype must be a model object or None, got {prototype!r}")
        if self._shadow.sealed:
            return prototype is self._shadow.prototype
        return bool(handler.set_prototype_of(self._target, prototype))

    # -------------------------------------------------------------------------
    # Property-derived
    # -------------------------------------------------------------------------

    def has(self, key: Hashable) -> bool:
        handler = self._enter("has", key)
        current = self._shadow.get(key)
        if current is not None and not current.configurable:
            return True
        present = bool(handler.has(self._target, key))
        if not present and self._shadow.sealed:
            self._shadow.remove("has", key)
        return present

    def get(self, key: Hashable, receiver: Any = None) -> Any:
        handler = self._enter("get", key)
        if receiver is None:
            receiver = self
        current = self._shadow.get(key)
        if current is not None and not current.configurable:
            if is_accessor_descriptor(current):
                return get_from_descriptor(current, receiver)
            if not current.writable:
                return current.value
        descriptor = self._check_descriptor(
            "get", key, handler.get_own_property_descriptor(self._target, key)
        )
        descriptor = self._reconcile_descriptor("get", key, descriptor)
        if descriptor is not None:
            return get_from_descriptor(descriptor, receiver)
        prototype = self._effective_prototype("get", handler)
        if prototype is None:
            return None
        return prototype.get(key, receiver)

    def set(self, key: Hashable, value: Any, receiver: Any = None) -> bool:
        handler = self._enter("set", key)
        if receiver is None:
            receiver = self
        current = self._shadow.get(key)
        if current is not None and not current.configurable:
            if is_accessor_descriptor(current):
                return set_with_descriptor(current, key, value, receiver)
            if not current.writable:
                return False
        descriptor = self._check_descriptor(
            "set", key, handler.get_own_property_descriptor(self._target, key)
        )
        descriptor = self._reconcile_descriptor("set", key, descriptor)
        if descriptor is None:
            prototype = self._effective_prototype("set", handler)
            if prototype is not None:
                return prototype.set(key, value, receiver)
            descriptor = DataDescriptor(value=None, writable=True, enumerable=True, configurable=True)
        return set_with_descriptor(descriptor, key, value, receiver)


class Revocable(NamedTuple):
    """A proxy together with the capability that disables it for good."""
    proxy: VirtualProxy
    revoke: Callable[[], None]


def revocable(
    carrier: ModelObject,
    target: Any,
    handler: Any,
    settings: Optional[Settings] = None,
) -> Revocable:
    """
    Create a VirtualProxy plus a revoke function.

    After `revoke()` every operation on the proxy raises RevokedProxyError,
    and the proxy no longer references its target or handler.
    """
    proxy = VirtualProxy(carrier, target, handler, settings)
    return Revocable(proxy=proxy, revoke=proxy._revoke)
