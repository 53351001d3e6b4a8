# -*- coding: utf-8 -*-
"""
Node - Live node instances bound to a graph.

A node is built from its NodeDefinition when added to a graph: concrete
sockets are created from the definition's specs, configuration defaults
are merged with instance values, and per-node state is initialized.

The node classes form a closed set selected by the definition kind:

    EventNode     init(engine) / dispose(engine)
    FlowNode      triggered(fiber, input_socket_name)
    FunctionNode  exec()
    AsyncNode     triggered(engine, input_socket_name, on_complete)
                  start_async(operation) / get_output_flow_socket_name()

Behaviours receive a context object instead of the node itself, which
limits them to reading inputs, writing outputs and committing flow.
"""
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type, TYPE_CHECKING
from uuid import uuid4

from ..errors import GraphIntegrityError, NodeRuntimeError
from .definition import Configuration, NodeDefinition, NodeKind, SocketSpec
from .sockets import Socket, SocketDirection
from .values import FLOW

if TYPE_CHECKING:
    from .graph import NodeGraph, Variable
    from .registry import Registry
    from ..execution.engine import AsyncOperation, Engine
    from ..execution.fiber import Fiber


# =============================================================================
# Behaviour contexts
# =============================================================================

class NodeContext:
    """Access to a node's sockets, configuration, state and dependencies."""

    def __init__(self, node: 'Node'):
        self.node = node

    @property
    def graph(self) -> 'NodeGraph':
        return self.node.graph

    @property
    def configuration(self) -> Configuration:
        return self.node.configuration

    @property
    def state(self) -> Any:
        return self.node.state

    @state.setter
    def state(self, value: Any) -> None:
        self.node.state = value

    def read(self, name: str) -> Any:
        """Read a (resolved) data input."""
        return self.node.read_input(name)

    def write(self, name: str, value: Any) -> None:
        """Write a data output."""
        self.node.write_output(name, value)

    def dependency(self, name: str) -> Any:
        """Host service injected through the registry."""
        return self.node.graph.registry.dependency(name)

    def variable(self, name: str) -> 'Variable':
        """Graph variable by name."""
        variable = self.node.graph.get_variable(name)
        if variable is None:
            raise KeyError(f"Variable not declared: {name}")
        return variable


class FunctionContext(NodeContext):
    pass


class EventContext(NodeContext):
    """Context for EVENT init: start fibers and register unsubscription."""

    def __init__(self, node: 'EventNode', engine: 'Engine'):
        super().__init__(node)
        self.engine = engine

    def commit(
        self,
        output_name: str,
        on_completed: Optional[Callable[[], None]] = None,
        outputs: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """
        Start a new fiber at an output flow socket.

        Data outputs that belong to this trigger go in outputs rather than
        through write(); they are set when the new fiber starts running.
        """
        self.engine.commit_to_new_fiber(self.node, output_name, on_completed, outputs)

    def on_dispose(self, callback: Callable[[], None]) -> None:
        """Run callback when the engine disposes this node."""
        self.node._disposers.append(callback)


class FlowContext(NodeContext):
    """Context for FLOW triggered: choose the branch that runs next."""

    def __init__(self, node: 'FlowNode', fiber: 'Fiber', input_socket_name: str):
        super().__init__(node)
        self.fiber = fiber
        self.input_socket_name = input_socket_name

    @property
    def engine(self) -> 'Engine':
        return self.fiber.engine

    def commit(self, output_name: str, on_completed: Optional[Callable[[], None]] = None) -> None:
        """
        Continue the fiber at an output flow socket.

        Args:
            output_name: Output flow socket to follow
            on_completed: Called when the downstream path has finished
        """
        self.fiber.commit(self.node, output_name, on_completed)

    def end(self) -> None:
        """End the path here without continuing at any output."""
        self.fiber.end(self.node)


class AsyncContext(NodeContext):
    """Context for ASYNC triggered: finish exactly once, register cancellation."""

    def __init__(self, node: 'AsyncNode', operation: 'AsyncOperation'):
        super().__init__(node)
        self.operation = operation

    @property
    def engine(self) -> 'Engine':
        return self.operation.engine

    @property
    def input_socket_name(self) -> str:
        return self.operation.input_socket_name

    @property
    def is_cancelled(self) -> bool:
        return self.operation.abandoned

    def finish(self, output_name: Optional[str] = None) -> None:
        """Complete the operation and continue at output_name (default: first flow output)."""
        self.operation.finish(output_name)

    def on_dispose(self, callback: Callable[[], None]) -> None:
        """Run callback if the operation is abandoned before finishing."""
        self.operation.add_disposer(callback)


# =============================================================================
# Nodes
# =============================================================================

class Node:
    """
    Base class for node instances.

    Attributes:
        id: Unique identifier within the graph
        definition: Immutable NodeDefinition this node was built from
        graph: Owning graph
        kind: Copied from the definition
        configuration: Concrete configuration values
        inputs: Input sockets, in definition order
        outputs: Output sockets, in definition order
        position: (x, y) canvas position tuple
        state: Per-node mutable state from definition.initial_state()
    """
    kind: NodeKind

    def __init__(
        self,
        definition: NodeDefinition,
        graph: 'NodeGraph',
        node_id: Optional[str] = None,
        configuration: Optional[Configuration] = None,
        position: Tuple[float, float] = (0.0, 0.0),
    ):
        """
        Initialize a new node instance.

        Args:
            definition: Definition to build from
            graph: Graph the node belongs to
            node_id: Optional unique ID (generated if not provided)
            configuration: Overrides for configuration defaults
            position: Canvas position

        Raises:
            GraphIntegrityError: Unknown configuration key or socket value type
        """
        self.id = node_id or str(uuid4())
        self.definition = definition
        self.graph = graph
        self.position: Tuple[float, float] = (float(position[0]), float(position[1]))
        self.configuration = self._merge_configuration(configuration or {})
        self.state = definition.initial_state()
        self._error_message: Optional[str] = None
        self._disposers: List[Callable[[], None]] = []

        registry = graph.registry
        self.inputs: List[Socket] = [
            self._build_socket(spec, SocketDirection.INPUT, registry)
            for spec in definition.input_specs(self.configuration, graph)
        ]
        self.outputs: List[Socket] = [
            self._build_socket(spec, SocketDirection.OUTPUT, registry)
            for spec in definition.output_specs(self.configuration, graph)
        ]

    def _merge_configuration(self, overrides: Configuration) -> Configuration:
        configuration = self.definition.default_configuration()
        for key, value in overrides.items():
            if key not in configuration:
                raise GraphIntegrityError(
                    f"Unknown configuration '{key}' for node type {self.definition.type_name}"
                )
            configuration[key] = value
        return configuration

    def _build_socket(self, spec: SocketSpec, direction: SocketDirection, registry: 'Registry') -> Socket:
        if spec.is_flow:
            value = None
        else:
            value_type = registry.get_value_type(spec.value_type)
            value = value_type.clone(spec.default) if spec.default is not None else value_type.create()
        return Socket(
            value_type_name=spec.value_type,
            name=spec.name,
            value=value,
            label=spec.label,
            value_choices=list(spec.choices) if spec.choices is not None else None,
            direction=direction,
            node=self,
        )

    # =========================================================================
    # Sockets
    # =========================================================================

    @property
    def type_name(self) -> str:
        return self.definition.type_name

    def get_input_socket(self, name: str) -> Optional[Socket]:
        """Get an input socket by name."""
        for socket in self.inputs:
            if socket.name == name:
                return socket
        return None

    def get_output_socket(self, name: str) -> Optional[Socket]:
        """Get an output socket by name."""
        for socket in self.outputs:
            if socket.name == name:
                return socket
        return None

    @property
    def data_inputs(self) -> List[Socket]:
        return [s for s in self.inputs if not s.is_flow]

    @property
    def flow_inputs(self) -> List[Socket]:
        return [s for s in self.inputs if s.is_flow]

    @property
    def data_outputs(self) -> List[Socket]:
        return [s for s in self.outputs if not s.is_flow]

    @property
    def flow_outputs(self) -> List[Socket]:
        return [s for s in self.outputs if s.is_flow]

    def read_input(self, name: str) -> Any:
        """
        Get the current value of a data input.

        The engine resolves linked inputs before the node runs, so this
        is the upstream value for linked sockets and the literal otherwise.
        """
        socket = self.get_input_socket(name)
        if socket is None:
            raise KeyError(f"Input socket not found on {self}: {name}")
        if socket.is_flow:
            raise TypeError(f"Cannot read flow socket '{name}' on {self}")
        return socket.value

    def write_output(self, name: str, value: Any) -> None:
        """Set value on a data output."""
        socket = self.get_output_socket(name)
        if socket is None:
            raise KeyError(f"Output socket not found on {self}: {name}")
        if socket.is_flow:
            raise TypeError(f"Cannot write flow socket '{name}' on {self}")
        socket.value = value

    # =========================================================================
    # Errors
    # =========================================================================

    def set_error(self, message: str) -> None:
        """Set error state on this node."""
        self._error_message = message

    def clear_error(self) -> None:
        """Clear error state."""
        self._error_message = None

    @property
    def has_error(self) -> bool:
        return self._error_message is not None

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    def _invoke(self, behaviour: Optional[Callable[[Any], None]], ctx: NodeContext, action: str) -> None:
        if behaviour is None:
            raise NodeRuntimeError(self.id, self.type_name, f"definition has no {action} behaviour")
        try:
            behaviour(ctx)
        except NodeRuntimeError:
            raise
        except Exception as e:
            raise NodeRuntimeError(self.id, self.type_name, f"{action} failed: {e}", e) from e

    def __repr__(self) -> str:
        return f"<{self.type_name}({self.id[:8]})>"


class EventNode(Node):
    """Begins execution paths when its external trigger fires."""
    kind = NodeKind.EVENT

    def init(self, engine: 'Engine') -> None:
        """Subscribe to the trigger source. Called once per engine lifetime."""
        self._invoke(self.definition.init, EventContext(self, engine), "init")

    def dispose(self, engine: Optional['Engine'] = None) -> None:
        """Unsubscribe everything registered through EventContext.on_dispose."""
        disposers, self._disposers = self._disposers, []
        failures: List[Exception] = []
        for disposer in reversed(disposers):
            try:
                disposer()
            except Exception as e:
                failures.append(e)
        if failures:
            first = failures[0]
            raise NodeRuntimeError(self.id, self.type_name, f"dispose failed: {first}", first) from first


class FlowNode(Node):
    """Runs an effect when a fiber reaches one of its input flow sockets."""
    kind = NodeKind.FLOW

    def triggered(self, fiber: 'Fiber', input_socket_name: str) -> None:
        self._invoke(self.definition.triggered, FlowContext(self, fiber, input_socket_name), "triggered")


class FunctionNode(Node):
    """Pure data node, recomputed every time one of its outputs is pulled."""
    kind = NodeKind.FUNCTION

    def exec(self) -> None:
        self._invoke(self.definition.exec, FunctionContext(self), "exec")


class AsyncNode(Node):
    """Long-running operation; its fiber ends and continuation starts a new fiber."""
    kind = NodeKind.ASYNC

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._last_output: Optional[str] = None

    def triggered(self, engine: 'Engine', input_socket_name: str, on_complete: Callable[[], None]) -> 'AsyncOperation':
        """Register the operation with the engine, which starts it."""
        return engine.register_async_operation(self, input_socket_name, on_complete)

    def start_async(self, operation: 'AsyncOperation') -> None:
        """Begin the operation; the behaviour must finish it exactly once."""
        self._invoke(self.definition.triggered, AsyncContext(self, operation), "start_async")

    def get_output_flow_socket_name(self) -> str:
        """Output flow socket to continue from on completion."""
        if self._last_output is not None:
            return self._last_output
        flow_outputs = self.flow_outputs
        if not flow_outputs:
            raise NodeRuntimeError(self.id, self.type_name, "async node has no output flow socket")
        return flow_outputs[0].name

    def _set_output_flow(self, output_name: Optional[str]) -> str:
        if output_name is None:
            self._last_output = None
            output_name = self.get_output_flow_socket_name()
        socket = self.get_output_socket(output_name)
        if socket is None or socket.value_type_name != FLOW:
            raise NodeRuntimeError(self.id, self.type_name, f"'{output_name}' is not an output flow socket")
        self._last_output = output_name
        return output_name


NODE_CLASSES: Dict[NodeKind, Type[Node]] = {
    NodeKind.EVENT: EventNode,
    NodeKind.FLOW: FlowNode,
    NodeKind.FUNCTION: FunctionNode,
    NodeKind.ASYNC: AsyncNode,
}


def create_node(
    definition: NodeDefinition,
    graph: 'NodeGraph',
    node_id: Optional[str] = None,
    configuration: Optional[Configuration] = None,
    position: Tuple[float, float] = (0.0, 0.0),
) -> Node:
    """Instantiate the node class matching the definition's kind."""
    node_cls = NODE_CLASSES[definition.kind]
    return node_cls(definition, graph, node_id=node_id, configuration=configuration, position=position)
