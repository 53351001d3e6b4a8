# -*- coding: utf-8 -*-
"""
Node Definitions - Immutable templates for node types.

A definition names a node type, describes its sockets and configuration,
and carries exactly one behaviour selected by its kind:

    EVENT     init(EventContext)       subscribe to an external trigger
    FLOW      triggered(FlowContext)   run an effect, commit an output flow
    FUNCTION  exec(FunctionContext)    pure data computation, pulled lazily
    ASYNC     triggered(AsyncContext)  start a long-running operation

Example:
    add = make_in2_out1_function(
        "AddInteger", "integer", "integer", "integer",
        lambda a, b: a + b,
        metadata=NodeMetadata(category="Math", display_name="Add (Integer)"),
    )
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any, Callable, Dict, List, Optional, Sequence, Tuple, Union, TYPE_CHECKING
)
from pydantic import BaseModel, ConfigDict

from .values import FLOW

if TYPE_CHECKING:
    from .graph import NodeGraph
    from .node import AsyncContext, EventContext, FlowContext, FunctionContext


class NodeKind(Enum):
    """Behaviour shape of a node type."""
    EVENT = "event"
    FLOW = "flow"
    FUNCTION = "function"
    ASYNC = "async"


class NodeMetadata(BaseModel):
    """
    Node metadata for registry and display.

    Attributes:
        category: Category for grouping in palette (e.g., "Flow Control")
        display_name: Human-readable name shown in UI
        description: Tooltip description
        color: Hex color for node header (e.g., "#4A90D9")
        icon: Optional icon name or path
    """
    model_config = ConfigDict(frozen=True)

    category: str = "General"
    display_name: str = ""
    description: str = ""
    color: str = "#4A90D9"
    icon: Optional[str] = None


@dataclass(frozen=True)
class SocketSpec:
    """
    Declaration of one socket on a definition.

    Attributes:
        name: Socket name
        value_type: Value type name ("flow" for execution sockets)
        default: Literal used when the node is created (None -> type default)
        label: Optional display label
        choices: Optional enumerated allowed values
    """
    name: str
    value_type: str = FLOW
    default: Any = None
    label: Optional[str] = None
    choices: Optional[Tuple[Any, ...]] = None

    @property
    def is_flow(self) -> bool:
        return self.value_type == FLOW


@dataclass(frozen=True)
class ConfigSpec:
    """
    Declaration of one static per-instance setting.

    Configuration is not a socket: it is fixed when the node is created
    (e.g. a variable name, a state path, a number of outputs).
    """
    name: str
    value_type: str = "string"
    default: Any = None
    choices: Optional[Tuple[Any, ...]] = None


Configuration = Dict[str, Any]
SocketFactory = Callable[[Configuration, Optional['NodeGraph']], Sequence[SocketSpec]]
SocketSource = Union[Sequence[SocketSpec], SocketFactory]


def flow(name: str = "exec", label: Optional[str] = None) -> SocketSpec:
    """Shorthand for a flow socket spec."""
    return SocketSpec(name=name, value_type=FLOW, label=label)


def data(
    name: str,
    value_type: str,
    default: Any = None,
    label: Optional[str] = None,
    choices: Optional[Sequence[Any]] = None,
) -> SocketSpec:
    """Shorthand for a data socket spec."""
    return SocketSpec(
        name=name,
        value_type=value_type,
        default=default,
        label=label,
        choices=tuple(choices) if choices is not None else None,
    )


def _no_state() -> Any:
    return None


@dataclass(frozen=True)
class NodeDefinition:
    """
    Immutable template for a node type.

    Attributes:
        type_name: Globally unique node type name
        kind: Behaviour shape (EVENT, FLOW, FUNCTION, ASYNC)
        metadata: Palette/display information
        inputs: Input socket specs, or factory (configuration, graph) -> specs
        outputs: Output socket specs, or factory (configuration, graph) -> specs
        configuration: Static per-instance settings schema
        initial_state: Factory for per-node mutable state
        init: EVENT behaviour
        triggered: FLOW or ASYNC behaviour
        exec: FUNCTION behaviour
    """
    type_name: str
    kind: NodeKind
    metadata: NodeMetadata = field(default_factory=NodeMetadata)
    inputs: SocketSource = ()
    outputs: SocketSource = ()
    configuration: Tuple[ConfigSpec, ...] = ()
    initial_state: Callable[[], Any] = _no_state
    init: Optional[Callable[['EventContext'], None]] = None
    triggered: Optional[Callable[..., None]] = None
    exec: Optional[Callable[['FunctionContext'], None]] = None

    @property
    def category(self) -> str:
        return self.metadata.category

    @property
    def label(self) -> str:
        return self.metadata.display_name or self.type_name

    def default_configuration(self) -> Configuration:
        """Configuration values before any instance overrides."""
        return {spec.name: spec.default for spec in self.configuration}

    def input_specs(self, configuration: Configuration, graph: Optional['NodeGraph'] = None) -> List[SocketSpec]:
        """Input socket specs for a concrete configuration."""
        return _expand(self.inputs, configuration, graph)

    def output_specs(self, configuration: Configuration, graph: Optional['NodeGraph'] = None) -> List[SocketSpec]:
        """Output socket specs for a concrete configuration."""
        return _expand(self.outputs, configuration, graph)

    def __repr__(self) -> str:
        return f"<NodeDefinition {self.type_name} ({self.kind.value})>"


def _expand(source: SocketSource, configuration: Configuration, graph: Optional['NodeGraph']) -> List[SocketSpec]:
    if callable(source):
        return list(source(configuration, graph))
    return list(source)


# =============================================================================
# Definition factories
# =============================================================================

def _metadata(metadata: Optional[NodeMetadata], category: str, label: str, description: str) -> NodeMetadata:
    if metadata is not None:
        return metadata
    return NodeMetadata(category=category, display_name=label, description=description)


def make_event_definition(
    type_name: str,
    init: Callable[['EventContext'], None],
    outputs: SocketSource = (flow(),),
    inputs: SocketSource = (),
    configuration: Sequence[ConfigSpec] = (),
    initial_state: Callable[[], Any] = _no_state,
    metadata: Optional[NodeMetadata] = None,
    category: str = "Events",
    label: str = "",
    description: str = "",
) -> NodeDefinition:
    """Create an EVENT definition: starts execution paths, never receives one."""
    return NodeDefinition(
        type_name=type_name,
        kind=NodeKind.EVENT,
        metadata=_metadata(metadata, category, label or type_name, description),
        inputs=inputs,
        outputs=outputs,
        configuration=tuple(configuration),
        initial_state=initial_state,
        init=init,
    )


def make_flow_definition(
    type_name: str,
    triggered: Callable[['FlowContext'], None],
    inputs: SocketSource = (flow(),),
    outputs: SocketSource = (flow("exec_out"),),
    configuration: Sequence[ConfigSpec] = (),
    initial_state: Callable[[], Any] = _no_state,
    metadata: Optional[NodeMetadata] = None,
    category: str = "Actions",
    label: str = "",
    description: str = "",
) -> NodeDefinition:
    """Create a FLOW definition: triggered by a fiber, commits an output flow."""
    return NodeDefinition(
        type_name=type_name,
        kind=NodeKind.FLOW,
        metadata=_metadata(metadata, category, label or type_name, description),
        inputs=inputs,
        outputs=outputs,
        configuration=tuple(configuration),
        initial_state=initial_state,
        triggered=triggered,
    )


def make_function_definition(
    type_name: str,
    exec: Callable[['FunctionContext'], None],
    inputs: SocketSource = (),
    outputs: SocketSource = (),
    configuration: Sequence[ConfigSpec] = (),
    metadata: Optional[NodeMetadata] = None,
    category: str = "Math",
    label: str = "",
    description: str = "",
) -> NodeDefinition:
    """Create a FUNCTION definition: data sockets only, evaluated on demand."""
    return NodeDefinition(
        type_name=type_name,
        kind=NodeKind.FUNCTION,
        metadata=_metadata(metadata, category, label or type_name, description),
        inputs=inputs,
        outputs=outputs,
        configuration=tuple(configuration),
        exec=exec,
    )


def make_async_definition(
    type_name: str,
    triggered: Callable[['AsyncContext'], None],
    inputs: SocketSource = (flow(),),
    outputs: SocketSource = (flow("completed"),),
    configuration: Sequence[ConfigSpec] = (),
    initial_state: Callable[[], Any] = _no_state,
    metadata: Optional[NodeMetadata] = None,
    category: str = "Time",
    label: str = "",
    description: str = "",
) -> NodeDefinition:
    """Create an ASYNC definition: suspends its fiber until finished."""
    return NodeDefinition(
        type_name=type_name,
        kind=NodeKind.ASYNC,
        metadata=_metadata(metadata, category, label or type_name, description),
        inputs=inputs,
        outputs=outputs,
        configuration=tuple(configuration),
        initial_state=initial_state,
        triggered=triggered,
    )


# =============================================================================
# Pure operator helpers
# =============================================================================

def make_in1_out1_function(
    type_name: str,
    input_type: str,
    output_type: str,
    fn: Callable[[Any], Any],
    metadata: Optional[NodeMetadata] = None,
    input_name: str = "a",
    output_name: str = "result",
    input_default: Any = None,
) -> NodeDefinition:
    """Unary operator: result = fn(a)."""
    def _exec(ctx: 'FunctionContext') -> None:
        ctx.write(output_name, fn(ctx.read(input_name)))

    return make_function_definition(
        type_name,
        _exec,
        inputs=(data(input_name, input_type, input_default),),
        outputs=(data(output_name, output_type),),
        metadata=metadata,
    )


def make_in2_out1_function(
    type_name: str,
    a_type: str,
    b_type: str,
    output_type: str,
    fn: Callable[[Any, Any], Any],
    metadata: Optional[NodeMetadata] = None,
    input_names: Tuple[str, str] = ("a", "b"),
    output_name: str = "result",
    defaults: Tuple[Any, Any] = (None, None),
) -> NodeDefinition:
    """Binary operator: result = fn(a, b)."""
    a_name, b_name = input_names

    def _exec(ctx: 'FunctionContext') -> None:
        ctx.write(output_name, fn(ctx.read(a_name), ctx.read(b_name)))

    return make_function_definition(
        type_name,
        _exec,
        inputs=(data(a_name, a_type, defaults[0]), data(b_name, b_type, defaults[1])),
        outputs=(data(output_name, output_type),),
        metadata=metadata,
    )


def make_in3_out1_function(
    type_name: str,
    input_types: Tuple[str, str, str],
    output_type: str,
    fn: Callable[[Any, Any, Any], Any],
    metadata: Optional[NodeMetadata] = None,
    input_names: Tuple[str, str, str] = ("a", "b", "c"),
    output_name: str = "result",
    defaults: Tuple[Any, Any, Any] = (None, None, None),
) -> NodeDefinition:
    """Ternary operator: result = fn(a, b, c)."""
    def _exec(ctx: 'FunctionContext') -> None:
        ctx.write(output_name, fn(*(ctx.read(name) for name in input_names)))

    return make_function_definition(
        type_name,
        _exec,
        inputs=tuple(
            data(name, value_type, default)
            for name, value_type, default in zip(input_names, input_types, defaults)
        ),
        outputs=(data(output_name, output_type),),
        metadata=metadata,
    )


def make_constant_function(
    type_name: str,
    value_type: str,
    metadata: Optional[NodeMetadata] = None,
) -> NodeDefinition:
    """Constant: passes its literal input straight through."""
    return make_in1_out1_function(
        type_name, value_type, value_type, lambda value: value,
        metadata=metadata, input_name="value", output_name="result",
    )

