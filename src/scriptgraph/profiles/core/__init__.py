# -*- coding: utf-8 -*-
"""
Core Profile - Base value types and the standard node catalogue.

Registers:
- Value types: boolean, integer, float, string (+ implicit conversions)
- Events: Start, Update, End, CustomEvent, VariableChanged, CallEvent
- Flow Control: Branch, Sequence, ForLoop, DoOnce, FlipFlop, Gate, Counter
- Variables: GetVariable, SetVariable
- Time: Delay, Now
- Debug: Log
- Math, Logic, String, Conversion and Constants

Default dependencies (used when the host supplies none):
    logger     LoguruScriptLogger
    lifecycle  ManualLifecycleEventEmitter
    scheduler  ManualScheduler
"""
from ...core.registry import Registry
from ...execution.lifecycle import ManualLifecycleEventEmitter
from ...execution.scheduling import ManualScheduler
from . import debug, events, flow_control, logic_nodes, math_nodes, string_nodes, time_nodes, variables
from .debug import LoguruScriptLogger, ScriptLogger
from .values import ALL_VALUE_TYPES, BOOLEAN, CONVERSIONS, FLOAT, INTEGER, STRING

ALL_NODES = (
    events.ALL_NODES +
    flow_control.ALL_NODES +
    variables.ALL_NODES +
    time_nodes.ALL_NODES +
    debug.ALL_NODES +
    math_nodes.ALL_NODES +
    logic_nodes.ALL_NODES +
    string_nodes.ALL_NODES
)


def core_profile(registry: Registry) -> Registry:
    """Add the core value types, conversions, nodes and default dependencies."""
    return registry.extend(
        values=ALL_VALUE_TYPES,
        nodes=ALL_NODES,
        conversions=CONVERSIONS,
        default_dependencies={
            "logger": LoguruScriptLogger(),
            "lifecycle": ManualLifecycleEventEmitter(),
            "scheduler": ManualScheduler(),
        },
    )


__all__ = [
    "core_profile",
    "ALL_NODES",
    "ALL_VALUE_TYPES",
    "CONVERSIONS",
    "BOOLEAN",
    "INTEGER",
    "FLOAT",
    "STRING",
    "ScriptLogger",
    "LoguruScriptLogger",
]
