# -*- coding: utf-8 -*-
"""
Event Nodes - Entry points for graph execution.

Event nodes subscribe to a trigger source when the engine initializes
them and start a new fiber every time it fires:

- Start / Update / End follow the "lifecycle" dependency
- CustomEvent follows a custom event declared on the graph
- VariableChanged follows a graph variable
"""
from typing import List, Optional

from ...core.definition import (
    ConfigSpec, NodeMetadata, SocketSpec, data, flow, make_event_definition, make_flow_definition
)
from ...core.graph import NodeGraph

EVENT_COLOR = "#CC0000"


def _subscribe(ctx, signal, handler) -> None:
    ctx.on_dispose(signal.connect(handler))


# =============================================================================
# Lifecycle
# =============================================================================

def _start_init(ctx) -> None:
    _subscribe(ctx, ctx.dependency("lifecycle").start_event, lambda: ctx.commit("exec"))


def _update_init(ctx) -> None:
    def on_tick(delta_seconds: float) -> None:
        ctx.commit("exec", outputs={"delta_seconds": float(delta_seconds)})

    _subscribe(ctx, ctx.dependency("lifecycle").tick_event, on_tick)


def _end_init(ctx) -> None:
    _subscribe(ctx, ctx.dependency("lifecycle").end_event, lambda: ctx.commit("exec"))


START = make_event_definition(
    "Start",
    _start_init,
    metadata=NodeMetadata(
        category="Events",
        display_name="Start",
        description="Entry point for graph execution (runs once)",
        color=EVENT_COLOR,
    ),
)

UPDATE = make_event_definition(
    "Update",
    _update_init,
    outputs=(flow(), data("delta_seconds", "float")),
    metadata=NodeMetadata(
        category="Events",
        display_name="Update (Tick)",
        description="Called every tick/frame",
        color=EVENT_COLOR,
    ),
)

END = make_event_definition(
    "End",
    _end_init,
    metadata=NodeMetadata(
        category="Events",
        display_name="End",
        description="Called once when the program ends",
        color=EVENT_COLOR,
    ),
)


# =============================================================================
# Custom events
# =============================================================================

def custom_event_parameters(configuration, graph: Optional[NodeGraph]) -> List[SocketSpec]:
    """Parameter sockets of the custom event named in the configuration."""
    event = graph.get_custom_event(configuration.get("event_name")) if graph else None
    return list(event.parameters) if event else []


def _custom_event_outputs(configuration, graph: Optional[NodeGraph]) -> List[SocketSpec]:
    return [flow()] + custom_event_parameters(configuration, graph)


def _custom_event_init(ctx) -> None:
    name = ctx.configuration["event_name"]
    event = ctx.graph.get_custom_event(name)
    if event is None:
        raise KeyError(f"Custom event not declared: {name}")

    def on_triggered(values: dict) -> None:
        ctx.commit("exec", outputs=values)

    _subscribe(ctx, event.on_triggered, on_triggered)


CUSTOM_EVENT = make_event_definition(
    "CustomEvent",
    _custom_event_init,
    outputs=_custom_event_outputs,
    configuration=(ConfigSpec("event_name", "string"),),
    metadata=NodeMetadata(
        category="Events",
        display_name="Custom Event",
        description="Runs when the named custom event is called",
        color=EVENT_COLOR,
    ),
)


# =============================================================================
# Variable changes
# =============================================================================

def _variable_changed_outputs(configuration, graph: Optional[NodeGraph]) -> List[SocketSpec]:
    variable = graph.get_variable(configuration.get("variable_name")) if graph else None
    if variable is None:
        return [flow()]
    return [flow(), data("value", variable.value_type_name)]


def _variable_changed_init(ctx) -> None:
    variable = ctx.variable(ctx.configuration["variable_name"])

    def on_changed(value) -> None:
        ctx.commit("exec", outputs={"value": value})

    _subscribe(ctx, variable.on_changed, on_changed)


VARIABLE_CHANGED = make_event_definition(
    "VariableChanged",
    _variable_changed_init,
    outputs=_variable_changed_outputs,
    configuration=(ConfigSpec("variable_name", "string"),),
    metadata=NodeMetadata(
        category="Events",
        display_name="On Variable Changed",
        description="Runs whenever the variable's value changes",
        color=EVENT_COLOR,
    ),
)


def _call_event_inputs(configuration, graph: Optional[NodeGraph]) -> List[SocketSpec]:
    return [flow()] + custom_event_parameters(configuration, graph)


def _call_event(ctx) -> None:
    name = ctx.configuration["event_name"]
    event = ctx.graph.get_custom_event(name)
    if event is None:
        raise KeyError(f"Custom event not declared: {name}")
    event.trigger({param.name: ctx.read(param.name) for param in event.parameters})
    ctx.commit("then")


CALL_EVENT = make_flow_definition(
    "CallEvent",
    _call_event,
    inputs=_call_event_inputs,
    outputs=(flow("then"),),
    configuration=(ConfigSpec("event_name", "string"),),
    metadata=NodeMetadata(
        category="Events",
        display_name="Call Event",
        description="Trigger a custom event",
        color=EVENT_COLOR,
    ),
)

ALL_NODES = [START, UPDATE, END, CUSTOM_EVENT, VARIABLE_CHANGED, CALL_EVENT]
