"""Tests for the shadow record."""

import pytest

from virtual_proxy.descriptors import DataDescriptor
from virtual_proxy.errors import InvariantViolation, make_violation
from virtual_proxy.objects import PlainObject
from virtual_proxy.shadow import ShadowRecord


def violation(message, operation, key=None):
    return make_violation(InvariantViolation, message, operation, key)


@pytest.fixture
def shadow():
    return ShadowRecord(violation)


OPEN = DataDescriptor(value=None, writable=True, enumerable=True, configurable=True)
FROZEN = DataDescriptor(value=1, writable=False, enumerable=True, configurable=False)


class TestPinning:
    def test_starts_open_and_empty(self, shadow):
        assert not shadow.sealed
        assert shadow.prototype is None
        assert shadow.keys() == []

    def test_pin_records_descriptor(self, shadow):
        shadow.pin("define_property", "x", FROZEN)
        assert "x" in shadow
        assert shadow.get("x") == FROZEN

    def test_compatible_repin_is_accepted(self, shadow):
        shadow.pin("define_property", "x", FROZEN)
        shadow.pin("get_own_property_descriptor", "x", FROZEN)
        assert shadow.get("x") == FROZEN

    def test_incompatible_repin_raises(self, shadow):
        shadow.pin("define_property", "x", FROZEN)
        with pytest.raises(InvariantViolation) as excinfo:
            shadow.pin("get_own_property_descriptor", "x", DataDescriptor(value=2))
        assert excinfo.value.operation == "get_own_property_descriptor"
        assert excinfo.value.key == "x"
        assert "'x'" in str(excinfo.value)
        assert shadow.get("x") == FROZEN

    def test_new_key_after_seal_raises(self, shadow):
        shadow.seal(None)
        with pytest.raises(InvariantViolation):
            shadow.pin("own_keys", "late", OPEN)


class TestRemoval:
    def test_configurable_entries_can_be_removed(self, shadow):
        shadow.pin("prevent_extensions", "x", OPEN)
        shadow.remove("own_keys", "x")
        assert "x" not in shadow

    def test_removing_unknown_key_is_a_no_op(self, shadow):
        shadow.remove("has", "missing")
        assert shadow.keys() == []

    def test_non_configurable_entries_stay(self, shadow):
        shadow.pin("define_property", "x", FROZEN)
        with pytest.raises(InvariantViolation):
            shadow.remove("delete_property", "x")
        assert shadow.get("x") == FROZEN


class TestRestore:
    def test_drops_refused_new_entry(self, shadow):
        shadow.pin("define_property", "x", FROZEN)
        shadow.restore("x", FROZEN, None)
        assert "x" not in shadow

    def test_puts_back_previous_entry(self, shadow):
        shadow.pin("prevent_extensions", "x", OPEN)
        shadow.pin("define_property", "x", FROZEN)
        shadow.restore("x", FROZEN, OPEN)
        assert shadow.get("x") == OPEN

    def test_leaves_entry_replaced_in_between(self, shadow):
        """A pin made by a reentrant call after ours is not rolled back."""
        writable = DataDescriptor(value=1, writable=True, enumerable=True, configurable=False)
        shadow.pin("define_property", "x", writable)
        shadow.pin("get_own_property_descriptor", "x", FROZEN)
        shadow.restore("x", writable, None)
        assert shadow.get("x") == FROZEN


class TestSealing:
    def test_seal_records_prototype(self, shadow):
        prototype = PlainObject()
        shadow.seal(prototype)
        assert shadow.sealed
        assert shadow.prototype is prototype
        assert shadow.keys() == []
