# -*- coding: utf-8 -*-
"""
Variable Nodes - Get and set graph variables.

Variables are graph-level storage that persist across executions and can
be accessed from any node. The value sockets take the variable's declared
type, so the variable must be declared before these nodes are created.
"""
from typing import List, Optional

from ...core.definition import (
    ConfigSpec, NodeMetadata, SocketSpec, data, flow, make_flow_definition, make_function_definition
)
from ...core.graph import NodeGraph

VARIABLE_COLOR = "#00CC66"
VARIABLE_CONFIG = (ConfigSpec("variable_name", "string"),)


def _value_socket(configuration, graph: Optional[NodeGraph]) -> List[SocketSpec]:
    variable = graph.get_variable(configuration.get("variable_name")) if graph else None
    if variable is None:
        return []
    return [data("value", variable.value_type_name)]


def _get_variable(ctx) -> None:
    ctx.write("value", ctx.variable(ctx.configuration["variable_name"]).get())


GET_VARIABLE = make_function_definition(
    "GetVariable",
    _get_variable,
    outputs=_value_socket,
    configuration=VARIABLE_CONFIG,
    metadata=NodeMetadata(
        category="Variables",
        display_name="Get Variable",
        description="Read value from a variable",
        color=VARIABLE_COLOR,
    ),
)


def _set_variable(ctx) -> None:
    variable = ctx.variable(ctx.configuration["variable_name"])
    variable.set(ctx.read("value"))
    ctx.write("value", variable.get())
    ctx.commit("exec_out")


SET_VARIABLE = make_flow_definition(
    "SetVariable",
    _set_variable,
    inputs=lambda configuration, graph: [flow()] + _value_socket(configuration, graph),
    outputs=lambda configuration, graph: [flow("exec_out")] + _value_socket(configuration, graph),
    configuration=VARIABLE_CONFIG,
    metadata=NodeMetadata(
        category="Variables",
        display_name="Set Variable",
        description="Write value to a variable",
        color=VARIABLE_COLOR,
    ),
)

ALL_NODES = [GET_VARIABLE, SET_VARIABLE]
