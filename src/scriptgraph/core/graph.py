# -*- coding: utf-8 -*-
"""
NodeGraph - Container for nodes, links, variables and custom events.

A NodeGraph is the arena that owns every node of one visual program.
Links refer to nodes by id and are resolved to direct socket references
when created; sockets keep the outgoing links (outputs) and a transient
back-index of incoming links (inputs).

Example:
    graph = NodeGraph("My Workflow", registry)

    # Add nodes
    start = graph.add_node("Start")
    log = graph.add_node("Log")
    log.get_input_socket("text").value = "hello"

    # Connect them
    graph.connect(start.id, "exec", log.id, "exec")
"""
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union, TYPE_CHECKING
from loguru import logger

from src.core.events import Signal

from ..errors import GraphIntegrityError
from .definition import Configuration, NodeDefinition, NodeKind, SocketSpec, data
from .link import Link
from .node import Node, create_node
from .values import ValueType

if TYPE_CHECKING:
    from .registry import Registry


class Variable:
    """
    Graph-level variable.

    Variables are read by GetVariable nodes and written by SetVariable
    nodes. Every assignment is cloned through the variable's value type.

    Attributes:
        name: Variable name
        value_type_name: Registered value type name
        initial_value: Persisted value restored when the graph is loaded
        value: Current runtime value
        on_changed: Signal emitted with the new value after it changes
    """

    def __init__(self, name: str, value_type: ValueType, initial_value: Any = None):
        self.name = name
        self.value_type = value_type
        initial_value = value_type.create() if initial_value is None else self.coerce(initial_value)
        self.initial_value = value_type.clone(initial_value)
        self.value = value_type.clone(initial_value)
        self.on_changed = Signal(f"VariableChanged:{name}")

    @property
    def value_type_name(self) -> str:
        return self.value_type.name

    def coerce(self, value: Any) -> Any:
        """
        Pass value through the value type's serializer and back.

        Raises:
            GraphIntegrityError: The value does not fit the variable's type
        """
        try:
            return self.value_type.deserialize(self.value_type.serialize(value))
        except (AttributeError, TypeError, ValueError) as e:
            raise GraphIntegrityError(
                f"Variable '{self.name}' is {self.value_type_name}, cannot hold {value!r}"
            ) from e

    def set(self, value: Any) -> None:
        """Assign a runtime value; observers are notified only when it differs."""
        new_value = self.coerce(value)
        changed = not self.value_type.equals(self.value, new_value)
        self.value = new_value
        if changed:
            self.on_changed.emit(self.value_type.clone(new_value))

    def get(self) -> Any:
        """Copy of the current value."""
        return self.value_type.clone(self.value)

    def reset(self) -> None:
        """Restore the initial value."""
        self.set(self.initial_value)

    def __repr__(self) -> str:
        return f"<Variable {self.name}:{self.value_type_name}={self.value!r}>"


class CustomEvent:
    """
    User-declared event with typed parameters.

    CustomEvent nodes start fibers when the event triggers and expose the
    parameters as data outputs; CallEvent nodes trigger it.

    Attributes:
        name: Event name
        parameters: Parameter socket specs, in declaration order
        on_triggered: Signal emitted with a {parameter: value} payload
    """

    def __init__(self, name: str, parameters: Sequence[SocketSpec] = ()):
        self.name = name
        self.parameters: Tuple[SocketSpec, ...] = tuple(parameters)
        self.on_triggered = Signal(f"CustomEvent:{name}")

    def trigger(self, payload: Optional[Mapping[str, Any]] = None) -> None:
        """Fire the event; missing parameters take their declared defaults."""
        payload = dict(payload or {})
        values = {spec.name: payload.get(spec.name, spec.default) for spec in self.parameters}
        self.on_triggered.emit(values)

    def __repr__(self) -> str:
        params = ", ".join(f"{p.name}:{p.value_type}" for p in self.parameters)
        return f"<CustomEvent {self.name}({params})>"


class NodeGraph:
    """
    Container for nodes and links.

    Represents a complete visual program that can be executed, saved
    and loaded.

    Attributes:
        name: Human-readable graph name
        registry: Registry used to build nodes and check link types
        nodes: Ordered dictionary of node_id -> Node
        replace_existing_links: Reconnect policy for linked data inputs
    """

    def __init__(
        self,
        name: str = "Untitled Graph",
        registry: Optional['Registry'] = None,
        replace_existing_links: bool = True,
    ):
        """
        Create a new node graph.

        Args:
            name: Human-readable name for this graph
            registry: Registry providing definitions and value types
            replace_existing_links: When connecting to an already linked
                data input, replace the old link (True) or reject (False)
        """
        if registry is None:
            from .registry import Registry
            registry = Registry()
        self.name = name
        self.registry = registry
        self.replace_existing_links = replace_existing_links
        self.nodes: Dict[str, Node] = {}
        self._links: List[Link] = []
        self._variables: Dict[str, Variable] = {}
        self._custom_events: Dict[str, CustomEvent] = {}

    # =========================================================================
    # Node Management
    # =========================================================================

    def add_node(
        self,
        definition: Union[NodeDefinition, str],
        configuration: Optional[Configuration] = None,
        position: Tuple[float, float] = (0.0, 0.0),
        node_id: Optional[str] = None,
    ) -> Node:
        """
        Create a node from a definition and add it to the graph.

        Args:
            definition: NodeDefinition or registered type name
            configuration: Per-instance configuration overrides
            position: Canvas position
            node_id: Optional ID (generated if not provided)

        Returns:
            The created node

        Raises:
            GraphIntegrityError: Unknown type, duplicate id or bad configuration
        """
        if isinstance(definition, str):
            definition = self.registry.get_definition(definition)
        if node_id is not None and node_id in self.nodes:
            raise GraphIntegrityError(f"Duplicate node id: {node_id}")

        node = create_node(definition, self, node_id=node_id, configuration=configuration, position=position)
        self.nodes[node.id] = node
        logger.debug(f"Added node: {node}")
        return node

    def remove_node(self, node_id: str) -> None:
        """
        Remove a node and all its links.

        Args:
            node_id: ID of node to remove
        """
        node = self.nodes.get(node_id)
        if node is None:
            return

        for link in [l for l in self._links if node_id in (l.source_node_id, l.target_node_id)]:
            self.disconnect(link)

        del self.nodes[node_id]
        logger.debug(f"Removed node: {node}")

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get a node by ID."""
        return self.nodes.get(node_id)

    def clear(self) -> None:
        """Remove all nodes, links, variables and custom events."""
        for link in list(self._links):
            self.disconnect(link)
        self.nodes.clear()
        self._variables.clear()
        self._custom_events.clear()

    # =========================================================================
    # Link Management
    # =========================================================================

    def connect(
        self,
        source_node_id: str,
        source_socket_name: str,
        target_node_id: str,
        target_socket_name: str,
        replace_existing: Optional[bool] = None,
    ) -> Link:
        """
        Create a link from an output socket to an input socket.

        All checks run before the graph is touched, so a failed connect
        leaves the graph unchanged.

        Args:
            source_node_id: ID of node with the output socket
            source_socket_name: Name of output socket
            target_node_id: ID of node with the input socket
            target_socket_name: Name of input socket
            replace_existing: Override the graph's reconnect policy

        Returns:
            The created link

        Raises:
            GraphIntegrityError: Missing node/socket, wrong direction,
                incompatible types, duplicate link, or linked data input
                under the reject policy
        """
        source_node = self.nodes.get(source_node_id)
        target_node = self.nodes.get(target_node_id)
        if source_node is None:
            raise GraphIntegrityError(f"Source node not found: {source_node_id}")
        if target_node is None:
            raise GraphIntegrityError(f"Target node not found: {target_node_id}")

        source_socket = source_node.get_output_socket(source_socket_name)
        target_socket = target_node.get_input_socket(target_socket_name)
        if source_socket is None:
            if source_node.get_input_socket(source_socket_name) is not None:
                raise GraphIntegrityError(
                    f"Socket '{source_socket_name}' on {source_node} is an input, not an output"
                )
            raise GraphIntegrityError(f"Source socket not found: {source_node}.{source_socket_name}")
        if target_socket is None:
            if target_node.get_output_socket(target_socket_name) is not None:
                raise GraphIntegrityError(
                    f"Socket '{target_socket_name}' on {target_node} is an output, not an input"
                )
            raise GraphIntegrityError(f"Target socket not found: {target_node}.{target_socket_name}")

        if not self.registry.can_connect(source_socket.value_type_name, target_socket.value_type_name):
            raise GraphIntegrityError(
                f"Incompatible types: {source_socket.value_type_name} -> "
                f"{target_socket.value_type_name} ({source_socket} -> {target_socket})"
            )

        link = Link(source_node_id, source_socket_name, target_node_id, target_socket_name)
        if link in source_socket.links:
            raise GraphIntegrityError(f"Link already exists: {link}")

        # Data inputs have a single value source
        replaced: List[Link] = []
        if not target_socket.is_flow and target_socket.incoming:
            if replace_existing is None:
                replace_existing = self.replace_existing_links
            if not replace_existing:
                raise GraphIntegrityError(f"Input already linked: {target_socket}")
            replaced = list(target_socket.incoming)

        for old in replaced:
            self.disconnect(old)

        link.resolve(self)
        source_socket.links.append(link)
        target_socket.incoming.append(link)
        self._links.append(link)
        logger.debug(f"Connected: {link}")
        return link

    def disconnect(self, link: Link) -> bool:
        """
        Remove a link.

        Returns:
            True if the link was part of the graph
        """
        existing = next((l for l in self._links if l == link), None)
        if existing is None:
            return False

        self._links.remove(existing)
        source_node = self.nodes.get(existing.source_node_id)
        target_node = self.nodes.get(existing.target_node_id)
        if source_node is not None:
            socket = source_node.get_output_socket(existing.source_socket_name)
            if socket is not None and existing in socket.links:
                socket.links.remove(existing)
        if target_node is not None:
            socket = target_node.get_input_socket(existing.target_socket_name)
            if socket is not None and existing in socket.incoming:
                socket.incoming.remove(existing)
        logger.debug(f"Disconnected: {existing}")
        return True

    def disconnect_input(self, node_id: str, socket_name: str) -> int:
        """Remove every link arriving at an input socket. Returns the count removed."""
        node = self.nodes.get(node_id)
        socket = node.get_input_socket(socket_name) if node else None
        if socket is None:
            return 0
        incoming = list(socket.incoming)
        for link in incoming:
            self.disconnect(link)
        return len(incoming)

    @property
    def links(self) -> List[Link]:
        """All links in creation order."""
        return list(self._links)

    def get_links_from_node(self, node_id: str) -> List[Link]:
        """Get all links originating from a node."""
        return [l for l in self._links if l.source_node_id == node_id]

    def get_links_to_node(self, node_id: str) -> List[Link]:
        """Get all links going into a node."""
        return [l for l in self._links if l.target_node_id == node_id]

    # =========================================================================
    # Variable Management
    # =========================================================================

    def declare_variable(self, name: str, value_type_name: str, initial_value: Any = None) -> Variable:
        """
        Add a graph-level variable.

        Args:
            name: Variable name
            value_type_name: Registered value type name
            initial_value: Initial value (value type default when None)

        Returns:
            The created Variable

        Raises:
            GraphIntegrityError: Duplicate name, unknown value type or an
                initial value that does not fit the type
        """
        if name in self._variables:
            raise GraphIntegrityError(f"Variable already declared: {name}")
        variable = Variable(name, self.registry.get_value_type(value_type_name), initial_value)
        self._variables[name] = variable
        logger.debug(f"Declared variable: {variable}")
        return variable

    def set_variable(self, name: str, value: Any, value_type_name: Optional[str] = None) -> Variable:
        """
        Set a variable's persisted initial value and current value.

        Declares the variable when it does not exist and a type is given.

        Raises:
            GraphIntegrityError: Undeclared variable without a type, a type
                that differs from the declared one, or a value that does not
                fit it (the variable is left unchanged)
        """
        variable = self._variables.get(name)
        if variable is None:
            if value_type_name is None:
                raise GraphIntegrityError(f"Variable not declared: {name}")
            return self.declare_variable(name, value_type_name, value)
        if value_type_name is not None and value_type_name != variable.value_type_name:
            raise GraphIntegrityError(
                f"Variable '{name}' is {variable.value_type_name}, not {value_type_name}"
            )
        value = variable.coerce(value)
        variable.initial_value = variable.value_type.clone(value)
        variable.set(value)
        return variable

    def get_variable(self, name: str) -> Optional[Variable]:
        """Get a variable by name."""
        return self._variables.get(name)

    def remove_variable(self, name: str) -> None:
        """Remove a variable."""
        self._variables.pop(name, None)

    @property
    def variables(self) -> Dict[str, Variable]:
        """Get all variables."""
        return self._variables.copy()

    # =========================================================================
    # Custom Events
    # =========================================================================

    def declare_custom_event(
        self,
        name: str,
        parameters: Union[Sequence[SocketSpec], Mapping[str, str]] = (),
    ) -> CustomEvent:
        """
        Declare a custom event.

        Args:
            name: Event name
            parameters: SocketSpecs, or a mapping parameter name -> value type name

        Raises:
            GraphIntegrityError: Duplicate name, reserved parameter name or
                unknown parameter type
        """
        if name in self._custom_events:
            raise GraphIntegrityError(f"Custom event already declared: {name}")
        if isinstance(parameters, Mapping):
            parameters = [data(param, value_type) for param, value_type in parameters.items()]

        specs = []
        for spec in parameters:
            if spec.is_flow or spec.name == "exec":
                raise GraphIntegrityError(f"Invalid parameter '{spec.name}' on custom event {name}")
            value_type = self.registry.get_value_type(spec.value_type)
            if spec.default is None:
                spec = data(spec.name, spec.value_type, value_type.create(), spec.label, spec.choices)
            specs.append(spec)

        event = CustomEvent(name, specs)
        self._custom_events[name] = event
        logger.debug(f"Declared custom event: {event}")
        return event

    def get_custom_event(self, name: str) -> Optional[CustomEvent]:
        """Get a custom event by name."""
        return self._custom_events.get(name)

    def remove_custom_event(self, name: str) -> None:
        """Remove a custom event."""
        self._custom_events.pop(name, None)

    @property
    def custom_events(self) -> Dict[str, CustomEvent]:
        """Get all custom events."""
        return self._custom_events.copy()

    # =========================================================================
    # Execution Helpers
    # =========================================================================

    def find_event_nodes(self) -> List[Node]:
        """
        Find all entry point nodes.

        Returns:
            EVENT nodes in insertion order
        """
        return [node for node in self.nodes.values() if node.kind == NodeKind.EVENT]

    def __repr__(self) -> str:
        return f"<NodeGraph '{self.name}' nodes={len(self.nodes)} links={len(self._links)}>"
