# -*- coding: utf-8 -*-
"""
Time Nodes - Delay and clock access through the "scheduler" dependency.
"""
from ...core.definition import NodeMetadata, data, flow, make_async_definition, make_function_definition


def _delay(ctx) -> None:
    duration = max(0.0, ctx.read("duration"))
    handle = ctx.dependency("scheduler").call_later(duration, ctx.finish)
    ctx.on_dispose(handle.cancel)


DELAY = make_async_definition(
    "Delay",
    _delay,
    inputs=(flow(), data("duration", "float", 1.0)),
    outputs=(flow("completed"),),
    metadata=NodeMetadata(
        category="Time",
        display_name="Delay",
        description="Wait for specified duration",
        color="#4A90D9",
    ),
)


def _now(ctx) -> None:
    ctx.write("seconds", float(ctx.dependency("scheduler").time()))


NOW = make_function_definition(
    "Now",
    _now,
    outputs=(data("seconds", "float"),),
    metadata=NodeMetadata(
        category="Time",
        display_name="Now",
        description="Current scheduler time in seconds",
        color="#4A90D9",
    ),
)

ALL_NODES = [DELAY, NOW]
