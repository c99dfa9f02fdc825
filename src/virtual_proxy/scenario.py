"""
Scenario replay.

A scenario describes a backing object, a script of answers an adversarial
handler gives instead of the backing object's real ones, and a sequence
of operations to run against the wrapped object. Replaying it reports how
each operation ended: ok, refused (a False result), violation (the proxy
raised an invariant violation, which ends the replay) or error.
"""

from __future__ import annotations

import json
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Deque, Dict, List, Optional

from . import reflect
from .carriers import Shape, make_carrier, select_shape
from .config import Settings
from .descriptors import DataDescriptor, descriptor_from_dict, descriptor_to_dict, is_descriptor
from .errors import RevokedProxyError, ShapeMismatchError
from .handler import OPERATIONS, Handler
from .logging import get_logger
from .objects import FunctionObject, ListObject, ModelObject, PlainObject
from .proxy import VirtualProxy

logger = get_logger(__name__)

# Operations whose False result is a refusal rather than an answer
REFUSABLE_OPERATIONS = {
    "define_property",
    "delete_property",
    "prevent_extensions",
    "set_prototype_of",
    "set",
}

BACKING_KINDS = ("record", "list", "function", "arrow")


class ScenarioError(ValueError):
    """Raised when a scenario file is malformed."""


def build_backing(spec: Optional[Dict[str, Any]]) -> Optional[ModelObject]:
    """
    Build a backing object from its JSON description.

    Args:
        spec: {"kind", "properties", "items", "returns", "extensible",
            "prototype"}, every entry optional; None builds nothing

    Raises:
        ScenarioError: If the description cannot be realized
    """
    if spec is None:
        return None
    if not isinstance(spec, dict):
        raise ScenarioError(f"Backing object must be a JSON object, got {spec!r}")

    kind = spec.get("kind", "record")
    if kind not in BACKING_KINDS:
        raise ScenarioError(f"Unknown backing kind {kind!r}, expected one of {', '.join(BACKING_KINDS)}")
    prototype = build_backing(spec.get("prototype"))

    if kind == "list":
        backing: ModelObject = ListObject(spec.get("items", []), prototype=prototype)
    elif kind in ("function", "arrow"):
        returns = spec.get("returns")
        backing = FunctionObject(
            lambda this, *args: returns,
            constructor=(kind == "function"),
            prototype=prototype,
        )
    else:
        backing = PlainObject(prototype=prototype)

    for key, value in spec.get("properties", {}).items():
        if isinstance(value, dict):
            descriptor = descriptor_from_dict(value)
        else:
            descriptor = DataDescriptor(value=value, writable=True, enumerable=True, configurable=True)
        if not backing.define_property(key, descriptor):
            raise ScenarioError(f"Cannot define backing property {key!r}")

    if not spec.get("extensible", True):
        backing.prevent_extensions()
    return backing


def _descriptor_answer(answer: Any) -> Any:
    if isinstance(answer, dict):
        return descriptor_from_dict(answer)
    return answer


def _prototype_answer(answer: Any) -> Any:
    if isinstance(answer, dict):
        return build_backing(answer)
    return answer


def _scripted(operation: str, convert: Optional[Callable[[Any], Any]] = None) -> Callable[..., Any]:
    default = getattr(Handler, operation)

    def method(self: ScriptedHandler, target: Any, *args: Any) -> Any:
        self.calls.append(operation)
        queue = self._queues.get(operation)
        if queue:
            answer = queue.popleft()
            logger.debug(f"Scripted answer for {operation}: {answer!r}")
            return convert(answer) if convert else answer
        return default(self, target, *args)

    method.__name__ = operation
    return method


class ScriptedHandler(Handler):
    """
    Handler answering from per-operation queues, falling back to the
    backing object once a queue runs dry. Records every operation called.
    """

    def __init__(self, script: Optional[Dict[str, List[Any]]] = None) -> None:
        self.calls: List[str] = []
        self._queues: Dict[str, Deque[Any]] = {}
        for operation, answers in (script or {}).items():
            if operation not in OPERATIONS:
                raise ScenarioError(f"Unknown operation in script: {operation!r}")
            if not isinstance(answers, list):
                raise ScenarioError(f"Script for {operation!r} must be a list of answers")
            self._queues[operation] = deque(answers)

    def pending(self, operation: str) -> int:
        """Number of scripted answers left for `operation`."""
        return len(self._queues.get(operation, ()))

    apply = _scripted("apply")
    construct = _scripted("construct")
    define_property = _scripted("define_property")
    get_own_property_descriptor = _scripted("get_own_property_descriptor", _descriptor_answer)
    delete_property = _scripted("delete_property")
    own_keys = _scripted("own_keys")
    is_extensible = _scripted("is_extensible")
    prevent_extensions = _scripted("prevent_extensions")
    get_prototype_of = _scripted("get_prototype_of", _prototype_answer)
    set_prototype_of = _scripted("set_prototype_of")
    has = _scripted("has")
    get = _scripted("get")
    set = _scripted("set")


@dataclass
class Scenario:
    """A parsed scenario file."""
    backing: Dict[str, Any]
    steps: List[Dict[str, Any]]
    script: Dict[str, List[Any]] = field(default_factory=dict)
    shape: Optional[Shape] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Scenario:
        if not isinstance(data, dict):
            raise ScenarioError("Scenario must be a JSON object")
        steps = data.get("steps", [])
        if not isinstance(steps, list):
            raise ScenarioError("Scenario steps must be a list")
        for index, step in enumerate(steps):
            if not isinstance(step, dict) or step.get("op") not in OPERATIONS:
                raise ScenarioError(f"Step {index} must name one of the operations: {step!r}")
        shape = data.get("shape")
        try:
            shape = Shape(shape) if shape is not None else None
        except ValueError as exc:
            raise ScenarioError(f"Unknown shape {shape!r}") from exc
        script = data.get("script", {})
        if not isinstance(script, dict):
            raise ScenarioError("Scenario script must be a JSON object")
        return cls(
            backing=data.get("backing") or {},
            steps=steps,
            script=script,
            shape=shape,
        )


def load_scenario(path: Path) -> Scenario:
    """
    Read a scenario from a JSON file.

    Raises:
        ScenarioError: If the file cannot be read or is not a valid scenario
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise ScenarioError(f"Cannot read scenario {path}: {exc}") from exc
    return Scenario.from_dict(data)


def to_json_value(value: Any) -> Any:
    """Render an operation result for reports."""
    if is_descriptor(value):
        return {k: to_json_value(v) for k, v in descriptor_to_dict(value).items()}
    if isinstance(value, (list, tuple)):
        return [to_json_value(item) for item in value]
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, ModelObject):
        return f"<{type(value).__name__}>"
    return repr(value)


@dataclass
class StepResult:
    """Outcome of one replayed operation."""
    index: int
    op: str
    outcome: str  # ok, refused, violation, error
    result: Any = None
    key: Any = None
    message: Optional[str] = None

    def summary(self) -> str:
        target = f" {self.key!r}" if self.key is not None else ""
        line = f"[{self.index}] {self.op}{target} -> {self.outcome}"
        if self.outcome in ("ok", "refused"):
            line += f": {json.dumps(to_json_value(self.result))}"
        elif self.message:
            line += f": {self.message}"
        return line

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "op": self.op,
            "key": self.key,
            "outcome": self.outcome,
            "result": to_json_value(self.result),
            "message": self.message,
        }


@dataclass
class ReplayReport:
    steps: List[StepResult]
    handler_calls: List[str]

    @property
    def violated(self) -> bool:
        return any(step.outcome == "violation" for step in self.steps)

    def counts(self) -> Dict[str, int]:
        counts = {"ok": 0, "refused": 0, "violation": 0, "error": 0}
        for step in self.steps:
            counts[step.outcome] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "steps": [step.to_dict() for step in self.steps],
            "handler_calls": list(self.handler_calls),
            "counts": self.counts(),
            "violated": self.violated,
        }


def _resolve_prototype(step: Dict[str, Any], backing: ModelObject) -> Optional[ModelObject]:
    prototype = step.get("prototype")
    if prototype == "@backing":
        return reflect.get_prototype_of(backing)
    return build_backing(prototype)


def _run_step(proxy: VirtualProxy, backing: ModelObject, step: Dict[str, Any]) -> Any:
    op = step["op"]
    key = step.get("key")
    if op == "apply":
        return proxy.apply(step.get("this"), step.get("args", []))
    if op == "construct":
        return proxy.construct(step.get("args", []))
    if op == "define_property":
        return proxy.define_property(key, descriptor_from_dict(step.get("descriptor", {})))
    if op == "get_own_property_descriptor":
        return proxy.get_own_property_descriptor(key)
    if op == "delete_property":
        return proxy.delete_property(key)
    if op == "own_keys":
        return proxy.own_keys()
    if op == "is_extensible":
        return proxy.is_extensible()
    if op == "prevent_extensions":
        return proxy.prevent_extensions()
    if op == "get_prototype_of":
        return proxy.get_prototype_of()
    if op == "set_prototype_of":
        return proxy.set_prototype_of(_resolve_prototype(step, backing))
    if op == "has":
        return proxy.has(key)
    if op == "get":
        return proxy.get(key)
    return proxy.set(key, step.get("value"))


def replay(scenario: Scenario, settings: Optional[Settings] = None) -> ReplayReport:
    """
    Run every step of `scenario` against a freshly wrapped backing object.

    The replay stops at the first invariant violation: the wrapped object
    is considered corrupted from then on.
    """
    settings = settings or Settings()
    backing = build_backing(scenario.backing)
    handler = ScriptedHandler(scenario.script)
    shape = scenario.shape or select_shape(backing)
    proxy = VirtualProxy(make_carrier(shape), backing, handler, settings)

    results: List[StepResult] = []
    for index, step in enumerate(scenario.steps):
        op = step["op"]
        key = step.get("key")
        try:
            value = _run_step(proxy, backing, step)
        except (ShapeMismatchError, RevokedProxyError) as exc:
            results.append(StepResult(index, op, "error", key=key, message=str(exc)))
            continue
        except settings.error_class as exc:
            results.append(StepResult(index, op, "violation", key=key, message=str(exc)))
            logger.info(f"Replay stopped at step {index}: {exc}")
            break
        except (TypeError, ValueError) as exc:
            results.append(StepResult(index, op, "error", key=key, message=str(exc)))
            continue
        outcome = "refused" if op in REFUSABLE_OPERATIONS and value is False else "ok"
        results.append(StepResult(index, op, outcome, result=value, key=key))

    return ReplayReport(steps=results, handler_calls=list(handler.calls))
