"""
Per-proxy record of everything that has been pinned down.

The record holds non-configurable descriptors as soon as they are
observed, and once sealed, the complete key set and the prototype. It
refuses by raising, because any request it cannot honor means the
backing implementation contradicted itself.
"""

from __future__ import annotations

from typing import Callable, Dict, Hashable, List, Optional

from .descriptors import Descriptor, is_compatible
from .errors import format_violation
from .objects import ModelObject

# (message, operation, key) -> exception
ViolationFactory = Callable[[str, str, Optional[Hashable]], Exception]


class ShadowRecord:
    """
    Frozen facts map plus two scalars: the sealed flag and the prototype
    recorded when sealing.

    Mutators that can refuse take the name of the intercepted operation
    they run on behalf of, so violations can say where they were detected.
    """

    def __init__(self, violation: ViolationFactory) -> None:
        self._descriptors: Dict[Hashable, Descriptor] = {}
        self._sealed = False
        self._prototype: Optional[ModelObject] = None
        self._violation = violation

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def prototype(self) -> Optional[ModelObject]:
        """The prototype recorded at sealing time; None while open."""
        return self._prototype

    def get(self, key: Hashable) -> Optional[Descriptor]:
        return self._descriptors.get(key)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._descriptors

    def keys(self) -> List[Hashable]:
        return list(self._descriptors)

    def pin(self, origin: str, key: Hashable, descriptor: Descriptor) -> None:
        """Record `descriptor` for `key`, as the host would define it."""
        current = self._descriptors.get(key)
        if current is None:
            if self._sealed:
                raise self._violation(format_violation(origin, "define_property", key), origin, key)
        elif not is_compatible(current, descriptor):
            raise self._violation(format_violation(origin, "define_property", key), origin, key)
        self._descriptors[key] = descriptor

    def remove(self, origin: str, key: Hashable) -> None:
        """Forget `key`; a non-configurable entry can never be forgotten."""
        current = self._descriptors.get(key)
        if current is None:
            return
        if not current.configurable:
            raise self._violation(format_violation(origin, "delete_property", key), origin, key)
        del self._descriptors[key]

    def restore(self, key: Hashable, pinned: Descriptor, previous: Optional[Descriptor]) -> None:
        """
        Undo a pin whose definition the backing implementation refused.

        Only an entry still holding `pinned` is rolled back; `previous` is
        put back, or the key dropped when there was none.
        """
        if self._descriptors.get(key) is not pinned:
            return
        if previous is None:
            del self._descriptors[key]
        else:
            self._descriptors[key] = previous

    def seal(self, prototype: Optional[ModelObject]) -> None:
        """Record the prototype and close the key set, irreversibly."""
        self._prototype = prototype
        self._sealed = True
