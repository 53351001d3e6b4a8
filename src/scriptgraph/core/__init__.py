# -*- coding: utf-8 -*-
"""
Graph data model: value types, sockets, links, definitions, nodes, graphs
and the registry they are built from.
"""
from .values import FLOW, FLOW_VALUE_TYPE, ValueType
from .sockets import Socket, SocketDirection
from .link import Link
from .definition import (
    ConfigSpec,
    NodeDefinition,
    NodeKind,
    NodeMetadata,
    SocketSpec,
    data,
    flow,
    make_async_definition,
    make_constant_function,
    make_event_definition,
    make_flow_definition,
    make_function_definition,
    make_in1_out1_function,
    make_in2_out1_function,
    make_in3_out1_function,
)
from .node import (
    AsyncContext,
    AsyncNode,
    EventContext,
    EventNode,
    FlowContext,
    FlowNode,
    FunctionContext,
    FunctionNode,
    Node,
    create_node,
)
from .graph import CustomEvent, NodeGraph, Variable
from .registry import Profile, Registry, create_registry
from .validation import validate_graph, validate_registry
from .serialization import (
    GraphDocument,
    load_graph,
    read_graph_from_document,
    save_graph,
    write_graph_to_document,
)

__all__ = [
    "FLOW",
    "FLOW_VALUE_TYPE",
    "ValueType",
    "Socket",
    "SocketDirection",
    "Link",
    "ConfigSpec",
    "NodeDefinition",
    "NodeKind",
    "NodeMetadata",
    "SocketSpec",
    "data",
    "flow",
    "make_async_definition",
    "make_constant_function",
    "make_event_definition",
    "make_flow_definition",
    "make_function_definition",
    "make_in1_out1_function",
    "make_in2_out1_function",
    "make_in3_out1_function",
    "AsyncContext",
    "AsyncNode",
    "EventContext",
    "EventNode",
    "FlowContext",
    "FlowNode",
    "FunctionContext",
    "FunctionNode",
    "Node",
    "create_node",
    "CustomEvent",
    "NodeGraph",
    "Variable",
    "Profile",
    "Registry",
    "create_registry",
    "validate_graph",
    "validate_registry",
    "GraphDocument",
    "load_graph",
    "read_graph_from_document",
    "save_graph",
    "write_graph_to_document",
]
