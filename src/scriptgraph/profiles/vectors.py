# -*- coding: utf-8 -*-
"""
Vectors Profile - vec2 / vec3 value types and vector math nodes.

Vectors are mutable, so every copy across a link goes through clone().
They serialize as JSON lists ([x, y] / [x, y, z]).

Requires the float value type (register after the core profile).
"""
import math
from dataclasses import dataclass
from typing import Any, Callable, List, Type

from ..core.definition import (
    NodeDefinition,
    NodeMetadata,
    data,
    make_constant_function,
    make_function_definition,
    make_in1_out1_function,
    make_in2_out1_function,
    make_in3_out1_function,
)
from ..core.registry import Registry
from ..core.values import ValueType

VECTOR_COLOR = "#FFD700"


@dataclass
class Vec2:
    x: float = 0.0
    y: float = 0.0

    def components(self) -> List[float]:
        return [self.x, self.y]


@dataclass
class Vec3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def components(self) -> List[float]:
        return [self.x, self.y, self.z]


def _vector_value_type(name: str, cls: Type) -> ValueType:
    size = len(cls().components())

    def deserialize(raw: Any):
        if isinstance(raw, dict):
            raw = [raw.get(axis, 0.0) for axis in "xyz"[:size]]
        values = [float(c) for c in raw]
        if len(values) != size:
            raise ValueError(f"{name} needs {size} components, got {len(values)}")
        return cls(*values)

    return ValueType(
        name=name,
        create=cls,
        serialize=lambda v: v.components(),
        deserialize=deserialize,
        equals=lambda a, b: a.components() == b.components(),
        clone=lambda v: cls(*v.components()),
        lerp=lambda a, b, t: cls(*(ca + (cb - ca) * t for ca, cb in zip(a.components(), b.components()))),
    )


VEC2 = _vector_value_type("vec2", Vec2)
VEC3 = _vector_value_type("vec3", Vec3)


# =============================================================================
# Component-wise helpers
# =============================================================================

def _zip(fn: Callable[[float, float], float], cls: Type) -> Callable[[Any, Any], Any]:
    return lambda a, b: cls(*(fn(ca, cb) for ca, cb in zip(a.components(), b.components())))


def _dot(a, b) -> float:
    return sum(ca * cb for ca, cb in zip(a.components(), b.components()))


def _length(v) -> float:
    return math.sqrt(_dot(v, v))


def _normalize(cls: Type) -> Callable[[Any], Any]:
    def normalize(v):
        length = _length(v)
        if length == 0.0:
            return cls()
        return cls(*(c / length for c in v.components()))
    return normalize


def _cross(a: Vec3, b: Vec3) -> Vec3:
    return Vec3(
        a.y * b.z - a.z * b.y,
        a.z * b.x - a.x * b.z,
        a.x * b.y - a.y * b.x,
    )


def _meta(display_name: str, description: str) -> NodeMetadata:
    return NodeMetadata(category="Vector", display_name=display_name, description=description, color=VECTOR_COLOR)


def _vector_nodes(type_name: str, cls: Type) -> List[NodeDefinition]:
    suffix = type_name.capitalize()
    axes = "xyz"[:len(cls().components())]

    def make(ctx) -> None:
        ctx.write("result", cls(*(ctx.read(axis) for axis in axes)))

    def split(ctx) -> None:
        vector = ctx.read("vector")
        for axis in axes:
            ctx.write(axis, getattr(vector, axis))

    return [
        make_function_definition(
            f"Make{suffix}", make,
            inputs=tuple(data(axis, "float", 0.0) for axis in axes),
            outputs=(data("result", type_name),),
            metadata=_meta(f"Make {suffix}", f"Build a {type_name} from components"),
        ),
        make_function_definition(
            f"Break{suffix}", split,
            inputs=(data("vector", type_name),),
            outputs=tuple(data(axis, "float") for axis in axes),
            metadata=_meta(f"Break {suffix}", f"Split a {type_name} into components"),
        ),
        make_in2_out1_function(
            f"Add{suffix}", type_name, type_name, type_name, _zip(lambda a, b: a + b, cls),
            metadata=_meta(f"Add ({suffix})", "A + B"),
        ),
        make_in2_out1_function(
            f"Subtract{suffix}", type_name, type_name, type_name, _zip(lambda a, b: a - b, cls),
            metadata=_meta(f"Subtract ({suffix})", "A - B"),
        ),
        make_in2_out1_function(
            f"Scale{suffix}", type_name, "float", type_name,
            lambda v, s: cls(*(c * s for c in v.components())),
            metadata=_meta(f"Scale ({suffix})", "Vector * scalar"),
            input_names=("vector", "scalar"),
            defaults=(None, 1.0),
        ),
        make_in2_out1_function(
            f"Dot{suffix}", type_name, type_name, "float", _dot,
            metadata=_meta(f"Dot ({suffix})", "Dot product"),
        ),
        make_in2_out1_function(
            f"Equal{suffix}", type_name, type_name, "boolean",
            lambda a, b: a.components() == b.components(),
            metadata=_meta(f"Equal ({suffix})", "Component-wise equality"),
        ),
        make_in1_out1_function(
            f"Length{suffix}", type_name, "float", _length,
            metadata=_meta(f"Length ({suffix})", "Euclidean length"),
            input_name="vector",
        ),
        make_in1_out1_function(
            f"Normalize{suffix}", type_name, type_name, _normalize(cls),
            metadata=_meta(f"Normalize ({suffix})", "Unit vector (zero stays zero)"),
            input_name="vector",
        ),
        make_in3_out1_function(
            f"Lerp{suffix}", (type_name, type_name, "float"), type_name,
            lambda a, b, t: cls(*(ca + (cb - ca) * t for ca, cb in zip(a.components(), b.components()))),
            metadata=_meta(f"Lerp ({suffix})", "Linear interpolation between A and B"),
            input_names=("a", "b", "t"),
            defaults=(None, None, 0.5),
        ),
        make_constant_function(
            f"Constant{suffix}", type_name,
            metadata=_meta(f"{suffix} Constant", f"Literal {type_name} value"),
        ),
    ]


CROSS_VEC3 = make_in2_out1_function(
    "CrossVec3", "vec3", "vec3", "vec3", _cross,
    metadata=_meta("Cross (Vec3)", "Cross product"),
)

ALL_VALUE_TYPES = [VEC2, VEC3]
ALL_NODES = _vector_nodes("vec2", Vec2) + _vector_nodes("vec3", Vec3) + [CROSS_VEC3]


def vectors_profile(registry: Registry) -> Registry:
    """Add vec2/vec3 value types and vector nodes."""
    registry.require_values("float", "boolean", profile="vectors")
    return registry.extend(values=ALL_VALUE_TYPES, nodes=ALL_NODES)
