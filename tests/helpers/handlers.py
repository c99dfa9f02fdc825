"""Handlers that misreport the backing object on demand."""

from virtual_proxy import Handler

UNSET = object()


class LiarHandler(Handler):
    """
    Forwards to the backing object unless told to lie.

    Set `descriptors[key]` (None reports the key as missing), `keys`,
    `extensible`, `prototype`, `present[key]`, `seal_result` or
    `define_result` to override the corresponding answer. Every operation is recorded in `calls`.
    """

    def __init__(self):
        self.calls = []
        self.descriptors = {}
        self.present = {}
        self.keys = None
        self.extensible = None
        self.prototype = UNSET
        self.seal_result = None
        self.define_result = None

    def define_property(self, target, key, descriptor):
        self.calls.append(("define_property", key))
        if self.define_result is not None:
            return self.define_result
        return super().define_property(target, key, descriptor)

    def get_own_property_descriptor(self, target, key):
        self.calls.append(("get_own_property_descriptor", key))
        if key in self.descriptors:
            return self.descriptors[key]
        return super().get_own_property_descriptor(target, key)

    def delete_property(self, target, key):
        self.calls.append(("delete_property", key))
        return super().delete_property(target, key)

    def own_keys(self, target):
        self.calls.append(("own_keys", None))
        if self.keys is not None:
            return list(self.keys)
        return super().own_keys(target)

    def is_extensible(self, target):
        self.calls.append(("is_extensible", None))
        if self.extensible is not None:
            return self.extensible
        return super().is_extensible(target)

    def prevent_extensions(self, target):
        self.calls.append(("prevent_extensions", None))
        if self.seal_result is not None:
            return self.seal_result
        return super().prevent_extensions(target)

    def get_prototype_of(self, target):
        self.calls.append(("get_prototype_of", None))
        if self.prototype is not UNSET:
            return self.prototype
        return super().get_prototype_of(target)

    def set_prototype_of(self, target, prototype):
        self.calls.append(("set_prototype_of", None))
        return super().set_prototype_of(target, prototype)

    def has(self, target, key):
        self.calls.append(("has", key))
        if key in self.present:
            return self.present[key]
        return super().has(target, key)

    def operations(self):
        """Names of the operations called so far."""
        return [name for name, _ in self.calls]
