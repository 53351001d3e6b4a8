# -*- coding: utf-8 -*-
"""
Logic Nodes - Boolean operators.
"""
from ...core.definition import NodeMetadata, make_in1_out1_function, make_in2_out1_function

LOGIC_COLOR = "#8B0000"


def _meta(display_name: str, description: str) -> NodeMetadata:
    return NodeMetadata(category="Logic", display_name=display_name, description=description, color=LOGIC_COLOR)


def _boolean_op(type_name: str, display_name: str, description: str, fn):
    return make_in2_out1_function(
        type_name, "boolean", "boolean", "boolean", fn,
        metadata=_meta(display_name, description),
        defaults=(False, False),
    )


ALL_NODES = [
    _boolean_op("And", "AND", "True if both A and B are true", lambda a, b: a and b),
    _boolean_op("Or", "OR", "True if A or B is true", lambda a, b: a or b),
    _boolean_op("Xor", "XOR", "True if exactly one of A and B is true", lambda a, b: a != b),
    _boolean_op("EqualBoolean", "Equal (Boolean)", "True if A equals B", lambda a, b: a == b),
    make_in1_out1_function(
        "Not", "boolean", "boolean", lambda a: not a,
        metadata=_meta("NOT", "Invert a boolean"),
        input_default=False,
    ),
]
