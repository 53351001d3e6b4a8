# -*- coding: utf-8 -*-
"""
String Nodes - Text operations.
"""
from ...core.definition import NodeMetadata, make_in1_out1_function, make_in2_out1_function

STRING_COLOR = "#FF69B4"


def _meta(display_name: str, description: str) -> NodeMetadata:
    return NodeMetadata(category="String", display_name=display_name, description=description, color=STRING_COLOR)


ALL_NODES = [
    make_in2_out1_function(
        "StringConcat", "string", "string", "string", lambda a, b: a + b,
        metadata=_meta("Concat", "Join two strings"),
        defaults=("", ""),
    ),
    make_in2_out1_function(
        "StringContains", "string", "string", "boolean", lambda text, part: part in text,
        metadata=_meta("Contains", "Check if text contains a substring"),
        input_names=("text", "substring"),
        defaults=("", ""),
    ),
    make_in2_out1_function(
        "StringEqual", "string", "string", "boolean", lambda a, b: a == b,
        metadata=_meta("Equal (String)", "Check if two strings are equal"),
        defaults=("", ""),
    ),
    make_in1_out1_function(
        "StringLength", "string", "integer", len,
        metadata=_meta("Length", "Number of characters"),
        input_name="text",
        input_default="",
    ),
    make_in1_out1_function(
        "StringUpper", "string", "string", str.upper,
        metadata=_meta("Upper", "Convert to uppercase"),
        input_name="text",
        input_default="",
    ),
    make_in1_out1_function(
        "StringLower", "string", "string", str.lower,
        metadata=_meta("Lower", "Convert to lowercase"),
        input_name="text",
        input_default="",
    ),
    make_in1_out1_function(
        "StringTrim", "string", "string", str.strip,
        metadata=_meta("Trim", "Remove leading and trailing whitespace"),
        input_name="text",
        input_default="",
    ),
]
