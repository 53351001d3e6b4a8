# -*- coding: utf-8 -*-
"""
Math Nodes - Arithmetic, trigonometry, comparison and conversion.

All nodes here are FUNCTION nodes: no execution sockets, evaluated on
demand whenever a downstream node reads one of their outputs.

Float nodes use the plain names (Add, Subtract, ...); integer versions
carry an "Integer" suffix. Integer division truncates toward zero.
"""
import math
from typing import Any, Callable, Tuple

from ...core.definition import (
    NodeDefinition,
    NodeMetadata,
    data,
    make_constant_function,
    make_in1_out1_function,
    make_in2_out1_function,
    make_in3_out1_function,
    make_function_definition,
)

MATH_COLOR = "#228B22"
CONVERT_COLOR = "#808080"


def _meta(display_name: str, description: str, category: str = "Math", color: str = MATH_COLOR) -> NodeMetadata:
    return NodeMetadata(category=category, display_name=display_name, description=description, color=color)


def _binary(
    type_name: str,
    display_name: str,
    description: str,
    fn: Callable[[Any, Any], Any],
    value_type: str = "float",
    result_type: str = None,
    defaults: Tuple[Any, Any] = (0.0, 0.0),
    input_names: Tuple[str, str] = ("a", "b"),
) -> NodeDefinition:
    return make_in2_out1_function(
        type_name, value_type, value_type, result_type or value_type, fn,
        metadata=_meta(display_name, description),
        input_names=input_names,
        defaults=defaults,
    )


def _unary(
    type_name: str,
    display_name: str,
    description: str,
    fn: Callable[[Any], Any],
    value_type: str = "float",
    result_type: str = None,
    default: Any = 0.0,
    input_name: str = "value",
) -> NodeDefinition:
    return make_in1_out1_function(
        type_name, value_type, result_type or value_type, fn,
        metadata=_meta(display_name, description),
        input_name=input_name,
        input_default=default,
    )


def _truncating_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b >= 0) else -quotient


def _truncating_mod(a: int, b: int) -> int:
    return a - b * _truncating_div(a, b)


# =============================================================================
# Float arithmetic
# =============================================================================

FLOAT_NODES = [
    _binary("Add", "Add", "A + B", lambda a, b: a + b),
    _binary("Subtract", "Subtract", "A - B", lambda a, b: a - b),
    _binary("Multiply", "Multiply", "A * B", lambda a, b: a * b, defaults=(1.0, 1.0)),
    _binary("Divide", "Divide", "A / B", lambda a, b: a / b, defaults=(1.0, 1.0)),
    _binary("Modulo", "Modulo", "A % B", math.fmod, defaults=(0.0, 1.0)),
    _binary("Power", "Power", "Base ^ Exponent", math.pow,
            defaults=(2.0, 2.0), input_names=("base", "exponent")),
    _binary("Min", "Min", "Smaller of A and B", min),
    _binary("Max", "Max", "Larger of A and B", max),
    _unary("Negate", "Negate", "-Value", lambda v: -v),
    _unary("Absolute", "Absolute", "Absolute value", abs),
    _unary("SquareRoot", "Square Root", "Square root of value", math.sqrt, default=4.0),
    _unary("Floor", "Floor", "Round down to integer", math.floor, result_type="integer"),
    _unary("Ceil", "Ceil", "Round up to integer", math.ceil, result_type="integer"),
    _unary("Round", "Round", "Round to nearest integer", lambda v: int(round(v)), result_type="integer"),
    _unary("Sin", "Sin", "Sine of angle in radians", math.sin, input_name="radians"),
    _unary("Cos", "Cos", "Cosine of angle in radians", math.cos, input_name="radians"),
    _unary("Tan", "Tan", "Tangent of angle in radians", math.tan, input_name="radians"),
    make_in3_out1_function(
        "Clamp", ("float", "float", "float"), "float",
        lambda value, lo, hi: max(lo, min(hi, value)),
        metadata=_meta("Clamp", "Clamp value between min and max"),
        input_names=("value", "min", "max"),
        defaults=(0.0, 0.0, 1.0),
    ),
    make_in3_out1_function(
        "Lerp", ("float", "float", "float"), "float",
        lambda a, b, t: a + (b - a) * t,
        metadata=_meta("Lerp", "Linear interpolation between A and B"),
        input_names=("a", "b", "t"),
        defaults=(0.0, 1.0, 0.5),
    ),
]

# =============================================================================
# Integer arithmetic
# =============================================================================

INTEGER_NODES = [
    _binary("AddInteger", "Add (Integer)", "A + B", lambda a, b: a + b, "integer", defaults=(0, 0)),
    _binary("SubtractInteger", "Subtract (Integer)", "A - B", lambda a, b: a - b, "integer", defaults=(0, 0)),
    _binary("MultiplyInteger", "Multiply (Integer)", "A * B", lambda a, b: a * b, "integer", defaults=(1, 1)),
    _binary("DivideInteger", "Divide (Integer)", "A / B truncated toward zero", _truncating_div,
            "integer", defaults=(1, 1)),
    _binary("ModuloInteger", "Modulo (Integer)", "Remainder of truncated division", _truncating_mod,
            "integer", defaults=(0, 1)),
    _binary("MinInteger", "Min (Integer)", "Smaller of A and B", min, "integer", defaults=(0, 0)),
    _binary("MaxInteger", "Max (Integer)", "Larger of A and B", max, "integer", defaults=(0, 0)),
    _unary("NegateInteger", "Negate (Integer)", "-Value", lambda v: -v, "integer", default=0),
    _unary("AbsoluteInteger", "Absolute (Integer)", "Absolute value", abs, "integer", default=0),
]

# =============================================================================
# Comparison
# =============================================================================

COMPARISON_NODES = [
    _binary("Equal", "Equal", "A == B", lambda a, b: a == b, result_type="boolean"),
    _binary("NotEqual", "Not Equal", "A != B", lambda a, b: a != b, result_type="boolean"),
    _binary("Less", "Less", "A < B", lambda a, b: a < b, result_type="boolean"),
    _binary("LessEqual", "Less or Equal", "A <= B", lambda a, b: a <= b, result_type="boolean"),
    _binary("Greater", "Greater", "A > B", lambda a, b: a > b, result_type="boolean"),
    _binary("GreaterEqual", "Greater or Equal", "A >= B", lambda a, b: a >= b, result_type="boolean"),
    _binary("EqualInteger", "Equal (Integer)", "A == B", lambda a, b: a == b,
            "integer", "boolean", defaults=(0, 0)),
    _binary("LessInteger", "Less (Integer)", "A < B", lambda a, b: a < b,
            "integer", "boolean", defaults=(0, 0)),
    _binary("GreaterInteger", "Greater (Integer)", "A > B", lambda a, b: a > b,
            "integer", "boolean", defaults=(0, 0)),
]

# =============================================================================
# Explicit conversion
# =============================================================================

def _convert(type_name: str, display_name: str, source: str, target: str, fn: Callable[[Any], Any]) -> NodeDefinition:
    return make_in1_out1_function(
        type_name, source, target, fn,
        metadata=_meta(display_name, f"Convert {source} to {target}", category="Conversion", color=CONVERT_COLOR),
        input_name="value",
    )


CONVERSION_NODES = [
    _convert("FloatToInteger", "To Integer", "float", "integer", int),
    _convert("IntegerToFloat", "To Float", "integer", "float", float),
    _convert("BooleanToInteger", "To Integer", "boolean", "integer", int),
    _convert("ToStringFloat", "To String", "float", "string", str),
    _convert("ToStringInteger", "To String", "integer", "string", str),
    _convert("ToStringBoolean", "To String", "boolean", "string", lambda v: "true" if v else "false"),
]

# =============================================================================
# Constants
# =============================================================================

CONSTANT_NODES = [
    make_constant_function(
        f"Constant{value_type.capitalize()}", value_type,
        metadata=_meta(f"{value_type.capitalize()} Constant", f"Literal {value_type} value", category="Constants"),
    )
    for value_type in ("boolean", "integer", "float", "string")
] + [
    make_function_definition(
        "Pi", lambda ctx: ctx.write("result", math.pi),
        outputs=(data("result", "float"),),
        metadata=_meta("Pi", "The constant pi", category="Constants"),
    ),
]

ALL_NODES = FLOAT_NODES + INTEGER_NODES + COMPARISON_NODES + CONVERSION_NODES + CONSTANT_NODES
