# -*- coding: utf-8 -*-
"""
Core Value Types - boolean, integer, float, string.

All four are immutable Python values, so clone is the identity. Conversions
between them are explicit and one-directional; nothing converts to
boolean or from string implicitly.
"""
from typing import Any

from ...core.values import ValueType


def _to_boolean(value: Any) -> bool:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no", ""):
            return False
        raise ValueError(f"Not a boolean: {value!r}")
    return bool(value)


def _to_integer(value: Any) -> int:
    if isinstance(value, str):
        return int(value.strip())
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"Not an integer: {value!r}")
    return int(value)


def _format_boolean(value: bool) -> str:
    return "true" if value else "false"


BOOLEAN = ValueType(
    name="boolean",
    create=lambda: False,
    serialize=bool,
    deserialize=_to_boolean,
)

INTEGER = ValueType(
    name="integer",
    create=lambda: 0,
    serialize=int,
    deserialize=_to_integer,
    lerp=lambda a, b, t: int(round(a + (b - a) * t)),
)

FLOAT = ValueType(
    name="float",
    create=lambda: 0.0,
    serialize=float,
    deserialize=float,
    lerp=lambda a, b, t: a + (b - a) * t,
)

STRING = ValueType(
    name="string",
    create=lambda: "",
    serialize=str,
    deserialize=str,
)

ALL_VALUE_TYPES = [BOOLEAN, INTEGER, FLOAT, STRING]

# Implicit link conversions (source type, target type) -> converter
CONVERSIONS = {
    ("integer", "float"): float,
    ("integer", "string"): str,
    ("float", "string"): str,
    ("boolean", "string"): _format_boolean,
}
