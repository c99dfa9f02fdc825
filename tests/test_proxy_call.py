"""Tests for call/construct, carrier shapes, handler binding and revocation."""

import pytest

from virtual_proxy import (
    OPERATIONS,
    Handler,
    InvariantViolation,
    RevokedProxyError,
    Shape,
    ShapeMismatchError,
    VirtualProxy,
    bind_handler,
    make_carrier,
    revocable,
    select_shape,
    virtual_arrow,
    virtual_function,
    virtual_list,
    virtual_object,
    virtualize,
)
from virtual_proxy.descriptors import DataDescriptor
from virtual_proxy.objects import FunctionObject, ListObject, PlainObject


class RecordingHandler(Handler):
    """Answers call and construct itself and remembers what it received."""

    def __init__(self, result=None):
        self.received = []
        self.result = result

    def apply(self, target, this, args):
        self.received.append(("apply", target, this, args))
        return self.result

    def construct(self, target, args, new_target):
        self.received.append(("construct", target, args, new_target))
        return self.result


def body(this, *args):
    return (this, args)


class TestApply:
    def test_forwards_arguments_and_returns_result(self):
        sentinel = object()
        backing = FunctionObject(body)
        handler = RecordingHandler(result=sentinel)
        proxy = virtual_arrow(backing, handler)

        assert proxy.apply("ctx", [1, 2]) is sentinel
        assert handler.received == [("apply", backing, "ctx", [1, 2])]

    def test_default_forwards_to_backing(self):
        proxy = virtual_function(FunctionObject(body), Handler())
        assert proxy.apply("ctx", [1, 2]) == ("ctx", (1, 2))
        assert proxy(3) == (None, (3,))

    def test_record_shape_is_not_callable(self):
        handler = RecordingHandler()
        proxy = virtual_object(FunctionObject(body), handler)
        assert not proxy.is_callable()
        with pytest.raises(ShapeMismatchError):
            proxy.apply(None, [])
        assert handler.received == []


class TestConstruct:
    def test_non_constructor_shape_fails_before_handler(self):
        handler = RecordingHandler(result=PlainObject())
        for proxy in (virtual_object(PlainObject(), handler), virtual_arrow(FunctionObject(body), handler)):
            with pytest.raises(ShapeMismatchError):
                proxy.construct([])
        assert handler.received == []

    def test_new_target_defaults_to_proxy(self):
        instance = PlainObject()
        backing = FunctionObject(body, constructor=True)
        handler = RecordingHandler(result=instance)
        proxy = virtual_function(backing, handler)

        assert proxy.construct([1]) is instance
        assert handler.received == [("construct", backing, [1], proxy)]

    def test_explicit_new_target_must_be_constructor(self):
        proxy = virtual_function(FunctionObject(body, constructor=True), RecordingHandler(PlainObject()))
        with pytest.raises(ShapeMismatchError):
            proxy.construct([], FunctionObject(body))

    def test_result_must_be_model_object(self):
        proxy = virtual_function(FunctionObject(body, constructor=True), RecordingHandler(result=42))
        with pytest.raises(InvariantViolation):
            proxy.construct([])

    def test_default_construct_uses_proxied_prototype(self):
        def point(this, x):
            this.set("x", x, this)

        backing = FunctionObject(point, constructor=True)
        proxy = virtual_function(backing, Handler())
        instance = proxy.construct([4])
        assert instance.get("x") == 4
        assert instance.get_prototype_of() is backing.get("prototype")


class TestCarriers:
    @pytest.mark.parametrize(
        "shape, carrier_type, callable_, constructor",
        [
            (Shape.RECORD, PlainObject, False, False),
            (Shape.LIST, ListObject, False, False),
            (Shape.FUNCTION, FunctionObject, True, True),
            (Shape.ARROW, FunctionObject, True, False),
        ],
    )
    def test_make_carrier(self, shape, carrier_type, callable_, constructor):
        carrier = make_carrier(shape)
        assert type(carrier) is carrier_type
        assert carrier.is_callable() is callable_
        assert carrier.is_constructor() is constructor

    def test_shape_from_string(self):
        assert isinstance(make_carrier("list"), ListObject)
        with pytest.raises(ValueError):
            make_carrier("tuple")

    @pytest.mark.parametrize(
        "target, shape",
        [
            (PlainObject(), Shape.RECORD),
            (ListObject(), Shape.LIST),
            ([1, 2], Shape.LIST),
            ((1, 2), Shape.LIST),
            (FunctionObject(body, constructor=True), Shape.FUNCTION),
            (FunctionObject(body), Shape.ARROW),
            (dict, Shape.FUNCTION),
            (len, Shape.ARROW),
            ({"a": 1}, Shape.RECORD),
            (None, Shape.RECORD),
        ],
    )
    def test_select_shape(self, target, shape):
        assert select_shape(target) is shape

    def test_select_shape_looks_through_proxies(self):
        inner = virtual_list(ListObject(), Handler())
        assert select_shape(inner) is Shape.LIST

    def test_convenience_constructors(self):
        assert isinstance(virtual_list(ListObject(), Handler()).carrier, ListObject)
        proxy = virtualize(FunctionObject(body, constructor=True), Handler())
        assert proxy.is_constructor()
        assert not virtualize(PlainObject(), Handler()).is_callable()

    def test_list_proxy_reports_backing_length(self):
        proxy = virtual_list(ListObject(["a", "b"]), Handler())
        assert proxy.get("length") == 2
        assert proxy.own_keys() == [0, 1, "length"]
        assert proxy.set(2, "c")
        assert proxy.get("length") == 3

    def test_carrier_must_be_model_object(self):
        with pytest.raises(TypeError):
            VirtualProxy("record", PlainObject(), Handler())


class TestBindHandler:
    def test_missing_operations_use_object_model(self):
        bound = bind_handler(object())
        assert set(OPERATIONS) <= set(dir(bound))
        backing = PlainObject({"a": 1})
        assert bound.own_keys(backing) == ["a"]

    def test_mapping_handler(self):
        proxy = virtual_object(PlainObject({"a": 1}), {"own_keys": lambda target: ["a", "b"]})
        assert proxy.own_keys() == ["a", "b"]
        assert proxy.get("a") == 1

    def test_non_callable_operation_rejected(self):
        with pytest.raises(TypeError):
            bind_handler({"get": 42})

    def test_bound_handler_is_reused(self):
        bound = bind_handler(Handler())
        assert bind_handler(bound) is bound


INVOCATIONS = {
    "apply": lambda proxy: proxy.apply(None, []),
    "construct": lambda proxy: proxy.construct([]),
    "define_property": lambda proxy: proxy.define_property("x", DataDescriptor(value=1)),
    "get_own_property_descriptor": lambda proxy: proxy.get_own_property_descriptor("x"),
    "delete_property": lambda proxy: proxy.delete_property("x"),
    "own_keys": lambda proxy: proxy.own_keys(),
    "is_extensible": lambda proxy: proxy.is_extensible(),
    "prevent_extensions": lambda proxy: proxy.prevent_extensions(),
    "get_prototype_of": lambda proxy: proxy.get_prototype_of(),
    "set_prototype_of": lambda proxy: proxy.set_prototype_of(None),
    "has": lambda proxy: proxy.has("x"),
    "get": lambda proxy: proxy.get("x"),
    "set": lambda proxy: proxy.set("x", 1),
}


class TestRevocable:
    def test_works_until_revoked(self):
        proxy, revoke = revocable(make_carrier(Shape.RECORD), PlainObject({"x": 1}), Handler())
        assert proxy.get("x") == 1
        revoke()
        assert "revoked" in repr(proxy)
        with pytest.raises(RevokedProxyError):
            proxy.get("x")

    @pytest.mark.parametrize("operation", OPERATIONS)
    def test_every_operation_fails_after_revoke(self, operation):
        result = revocable(make_carrier(Shape.FUNCTION), FunctionObject(body, constructor=True), Handler())
        result.revoke()
        with pytest.raises(RevokedProxyError):
            INVOCATIONS[operation](result.proxy)

    def test_revoke_is_idempotent(self):
        result = revocable(make_carrier(Shape.RECORD), PlainObject(), Handler())
        result.revoke()
        result.revoke()
        with pytest.raises(RevokedProxyError):
            result.proxy.own_keys()
