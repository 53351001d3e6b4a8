# -*- coding: utf-8 -*-
"""
Flow Control Nodes - Branching and looping constructs.

Provides nodes for controlling execution flow:
- Branch for conditional execution
- Sequence for ordered multi-output execution
- ForLoop with index
- Utility nodes (DoOnce, Gate, FlipFlop, Counter)

Sequence and ForLoop commit with a completion listener: the next output
fires only after everything downstream of the previous one has finished.
"""
from ...core.definition import ConfigSpec, NodeMetadata, data, flow, make_flow_definition

FLOW_COLOR = "#4A90D9"


def _meta(display_name: str, description: str) -> NodeMetadata:
    return NodeMetadata(
        category="Flow Control",
        display_name=display_name,
        description=description,
        color=FLOW_COLOR,
    )


# =============================================================================
# Branch
# =============================================================================

def _branch(ctx) -> None:
    ctx.commit("true" if ctx.read("condition") else "false")


BRANCH = make_flow_definition(
    "Branch",
    _branch,
    inputs=(flow(), data("condition", "boolean", False)),
    outputs=(flow("true"), flow("false")),
    metadata=_meta("Branch (If/Else)", "Execute True or False path based on condition"),
)


# =============================================================================
# Sequence
# =============================================================================

def _sequence_outputs(configuration, graph):
    return [flow(f"then_{i}") for i in range(max(1, int(configuration.get("num_outputs") or 1)))]


def _sequence(ctx) -> None:
    names = [socket.name for socket in ctx.node.flow_outputs]

    def fire(index: int) -> None:
        on_completed = (lambda: fire(index + 1)) if index + 1 < len(names) else None
        ctx.commit(names[index], on_completed)

    fire(0)


SEQUENCE = make_flow_definition(
    "Sequence",
    _sequence,
    outputs=_sequence_outputs,
    configuration=(ConfigSpec("num_outputs", "integer", 4),),
    metadata=_meta("Sequence", "Execute multiple outputs sequentially"),
)


# =============================================================================
# ForLoop
# =============================================================================

def _for_loop(ctx) -> None:
    first = ctx.read("first_index")
    last = ctx.read("last_index")

    def iterate(index: int) -> None:
        if index > last:
            ctx.commit("completed")
            return
        ctx.write("index", index)
        ctx.commit("loop_body", lambda: iterate(index + 1))

    iterate(first)


FOR_LOOP = make_flow_definition(
    "ForLoop",
    _for_loop,
    inputs=(flow(), data("first_index", "integer", 0), data("last_index", "integer", 10)),
    outputs=(flow("loop_body"), data("index", "integer"), flow("completed")),
    metadata=_meta("For Loop", "Loop from First to Last index (inclusive)"),
)


# =============================================================================
# Stateful gates
# =============================================================================

def _do_once(ctx) -> None:
    if ctx.input_socket_name == "reset":
        ctx.state["closed"] = False
        ctx.end()
        return
    closed = ctx.state["closed"]
    if closed is None:
        closed = bool(ctx.configuration["start_closed"])
    if closed:
        ctx.state["closed"] = True
        ctx.end()
        return
    ctx.state["closed"] = True
    ctx.commit("completed")


DO_ONCE = make_flow_definition(
    "DoOnce",
    _do_once,
    inputs=(flow(), flow("reset")),
    outputs=(flow("completed"),),
    configuration=(ConfigSpec("start_closed", "boolean", False),),
    initial_state=lambda: {"closed": None},
    metadata=_meta("Do Once", "Execute output only once until reset"),
)


def _flip_flop(ctx) -> None:
    is_a = not ctx.state["is_a"]
    ctx.state["is_a"] = is_a
    ctx.write("is_A", is_a)
    ctx.commit("A" if is_a else "B")


FLIP_FLOP = make_flow_definition(
    "FlipFlop",
    _flip_flop,
    outputs=(flow("A"), flow("B"), data("is_A", "boolean")),
    initial_state=lambda: {"is_a": False},
    metadata=_meta("Flip Flop", "Alternate between A and B outputs"),
)


def _gate(ctx) -> None:
    is_open = ctx.state["open"]
    if is_open is None:
        is_open = not ctx.configuration["start_closed"]

    socket = ctx.input_socket_name
    if socket == "open":
        is_open = True
    elif socket == "close":
        is_open = False
    elif socket == "toggle":
        is_open = not is_open
    ctx.state["open"] = is_open

    if socket == "enter" and is_open:
        ctx.commit("exit")
    else:
        ctx.end()


GATE = make_flow_definition(
    "Gate",
    _gate,
    inputs=(flow("enter"), flow("open"), flow("close"), flow("toggle")),
    outputs=(flow("exit"),),
    configuration=(ConfigSpec("start_closed", "boolean", False),),
    initial_state=lambda: {"open": None},
    metadata=_meta("Gate", "Control passage of execution"),
)


def _counter(ctx) -> None:
    if ctx.input_socket_name == "reset":
        ctx.state["count"] = 0
        ctx.write("count", 0)
        ctx.end()
        return
    ctx.state["count"] += 1
    ctx.write("count", ctx.state["count"])
    ctx.commit("exec_out")


COUNTER = make_flow_definition(
    "Counter",
    _counter,
    inputs=(flow(), flow("reset")),
    outputs=(flow("exec_out"), data("count", "integer")),
    initial_state=lambda: {"count": 0},
    metadata=_meta("Counter", "Count how many times execution passed through"),
)

ALL_NODES = [BRANCH, SEQUENCE, FOR_LOOP, DO_ONCE, FLIP_FLOP, GATE, COUNTER]
