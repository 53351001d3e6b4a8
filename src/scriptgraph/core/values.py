# -*- coding: utf-8 -*-
"""
Value Types - Per-type operations for socket values.

Each ValueType bundles how to construct, serialize, compare, copy and
interpolate values of one data type. Value types are registered once
through a profile and shared by every socket of that type.

Example:
    integer = ValueType(
        name="integer",
        create=lambda: 0,
        serialize=lambda v: v,
        deserialize=int,
        equals=lambda a, b: a == b,
        clone=lambda v: v,
        lerp=lambda a, b, t: round(a + (b - a) * t),
    )
"""
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

V = TypeVar("V")
J = TypeVar("J")

# Reserved value type name for execution-control sockets
FLOW = "flow"


def _identity(value: Any) -> Any:
    return value


@dataclass(frozen=True)
class ValueType(Generic[V, J]):
    """
    Contract for one data type.

    Attributes:
        name: Unique type key (e.g. "integer")
        create: Default-construct a value
        serialize: Convert value to its JSON-compatible form
        deserialize: Inverse of serialize
        equals: Value equality
        clone: Copy that shares no mutable state with the source
        lerp: Interpolate between two values, t in [0, 1]
    """
    name: str
    create: Callable[[], V]
    serialize: Callable[[V], J] = _identity
    deserialize: Callable[[J], V] = _identity
    equals: Callable[[V, V], bool] = lambda a, b: a == b
    clone: Callable[[V], V] = _identity
    lerp: Callable[[V, V, float], V] = lambda a, b, t: a if t < 0.5 else b

    @property
    def is_flow(self) -> bool:
        return self.name == FLOW

    def __repr__(self) -> str:
        return f"<ValueType {self.name}>"


FLOW_VALUE_TYPE: ValueType = ValueType(
    name=FLOW,
    create=lambda: None,
    serialize=lambda value: None,
    deserialize=lambda data: None,
    equals=lambda a, b: True,
)
