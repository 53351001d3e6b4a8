# -*- coding: utf-8 -*-
"""
Validation - Structural checks for registries and graphs.

Both validators collect every problem they find instead of stopping at
the first one, so a profile author or graph author sees the full list.

Example:
    problems = validate_graph(graph)
    for problem in problems:
        print(problem)
"""
from typing import Dict, List, Set, TYPE_CHECKING

from ..errors import ScriptGraphError
from .definition import NodeDefinition, NodeKind, SocketSpec

if TYPE_CHECKING:
    from .graph import NodeGraph
    from .registry import Registry

# Configuration keys that reference graph-level declarations
VARIABLE_REFERENCE = "variable_name"
EVENT_REFERENCE = "event_name"


# =============================================================================
# Registry
# =============================================================================

def validate_registry(registry: 'Registry') -> List[str]:
    """
    Check every definition in a registry.

    Checks:
    1. No duplicate value/node type names
    2. Every socket and configuration value type resolves
    3. Socket names are unique per side
    4. Socket defaults lie within their choices
    5. Socket shape and behaviour match the node kind

    Returns:
        List of problem descriptions (empty when valid)
    """
    from .graph import NodeGraph

    errors: List[str] = list(registry.duplicates)
    probe = NodeGraph("validation", registry)

    for definition in registry.nodes.values():
        errors.extend(_validate_definition(definition, registry, probe))
    return errors


def _validate_definition(definition: NodeDefinition, registry: 'Registry', probe: 'NodeGraph') -> List[str]:
    name = definition.type_name
    errors: List[str] = []

    configuration = definition.default_configuration()
    try:
        inputs = definition.input_specs(configuration, probe)
        outputs = definition.output_specs(configuration, probe)
    except Exception as e:
        return [f"{name}: socket factory failed with default configuration: {e}"]

    for spec in definition.configuration:
        if not registry.has_value_type(spec.value_type):
            errors.append(f"{name}: configuration '{spec.name}' has unknown value type '{spec.value_type}'")
        if spec.choices is not None and spec.default is not None and spec.default not in spec.choices:
            errors.append(f"{name}: configuration '{spec.name}' default {spec.default!r} not in choices")

    for side, specs in (("input", inputs), ("output", outputs)):
        errors.extend(_validate_sockets(name, side, specs, registry))

    errors.extend(_validate_shape(definition, inputs, outputs))
    return errors


def _validate_sockets(name: str, side: str, specs: List[SocketSpec], registry: 'Registry') -> List[str]:
    errors: List[str] = []
    seen: Set[str] = set()
    for spec in specs:
        if spec.name in seen:
            errors.append(f"{name}: duplicate {side} socket '{spec.name}'")
        seen.add(spec.name)
        if not registry.has_value_type(spec.value_type):
            errors.append(f"{name}: {side} '{spec.name}' has unknown value type '{spec.value_type}'")
        if spec.choices is not None and spec.default is not None and spec.default not in spec.choices:
            errors.append(f"{name}: {side} '{spec.name}' default {spec.default!r} not in choices")
    return errors


def _validate_shape(definition: NodeDefinition, inputs: List[SocketSpec], outputs: List[SocketSpec]) -> List[str]:
    name = definition.type_name
    kind = definition.kind
    flow_in = [s for s in inputs if s.is_flow]
    flow_out = [s for s in outputs if s.is_flow]
    errors: List[str] = []

    if kind == NodeKind.EVENT:
        if flow_in:
            errors.append(f"{name}: event nodes cannot have input flow sockets")
        if not flow_out:
            errors.append(f"{name}: event nodes need at least one output flow socket")
        if definition.init is None:
            errors.append(f"{name}: event definition has no init behaviour")
    elif kind == NodeKind.FLOW:
        if not flow_in:
            errors.append(f"{name}: flow nodes need at least one input flow socket")
        if definition.triggered is None:
            errors.append(f"{name}: flow definition has no triggered behaviour")
    elif kind == NodeKind.FUNCTION:
        if flow_in or flow_out:
            errors.append(f"{name}: function nodes cannot have flow sockets")
        if definition.exec is None:
            errors.append(f"{name}: function definition has no exec behaviour")
    elif kind == NodeKind.ASYNC:
        if len(flow_in) != 1:
            errors.append(f"{name}: async nodes need exactly one input flow socket")
        if not flow_out:
            errors.append(f"{name}: async nodes need at least one output flow socket")
        if definition.triggered is None:
            errors.append(f"{name}: async definition has no triggered behaviour")
    return errors


# =============================================================================
# Graph
# =============================================================================

def validate_graph(graph: 'NodeGraph') -> List[str]:
    """
    Check a built graph.

    Checks:
    1. Every link resolves to existing nodes and sockets
    2. Linked socket types are compatible
    3. Data inputs have at most one incoming link
    4. FUNCTION nodes have no cyclic data dependencies
    5. Variable and custom event references in configuration resolve

    Returns:
        List of problem descriptions (empty when valid)
    """
    errors: List[str] = []
    registry = graph.registry

    for link in graph.links:
        try:
            link.resolve(graph)
        except ScriptGraphError as e:
            errors.append(f"Dangling link {link}: {e}")
            continue
        source_type = link.source_socket.value_type_name
        target_type = link.target_socket.value_type_name
        if not registry.can_connect(source_type, target_type):
            errors.append(f"Incompatible link {link}: {source_type} -> {target_type}")

    for node in graph.nodes.values():
        for socket in node.data_inputs:
            if len(socket.incoming) > 1:
                errors.append(f"Input {socket} has {len(socket.incoming)} incoming links")

        variable_name = node.configuration.get(VARIABLE_REFERENCE)
        if VARIABLE_REFERENCE in node.configuration and graph.get_variable(variable_name) is None:
            errors.append(f"{node}: references undeclared variable '{variable_name}'")
        event_name = node.configuration.get(EVENT_REFERENCE)
        if EVENT_REFERENCE in node.configuration and graph.get_custom_event(event_name) is None:
            errors.append(f"{node}: references undeclared custom event '{event_name}'")

    for cycle in find_data_cycles(graph):
        errors.append("Data dependency cycle: " + " -> ".join(cycle))

    return errors


def find_data_cycles(graph: 'NodeGraph') -> List[List[str]]:
    """
    Find cycles among FUNCTION node data dependencies.

    Returns:
        Each cycle as a list of node ids, first id repeated at the end
    """
    # node -> upstream FUNCTION nodes feeding its data inputs
    upstream: Dict[str, List[str]] = {}
    for node in graph.nodes.values():
        if node.kind != NodeKind.FUNCTION:
            continue
        upstream[node.id] = [
            link.source_node_id
            for socket in node.data_inputs
            for link in socket.incoming
            if link.source_node is not None and link.source_node.kind == NodeKind.FUNCTION
        ]

    cycles: List[List[str]] = []
    done: Set[str] = set()

    def visit(node_id: str, path: List[str]) -> None:
        if node_id in path:
            cycles.append(path[path.index(node_id):] + [node_id])
            return
        if node_id in done:
            return
        path.append(node_id)
        for source_id in upstream.get(node_id, []):
            visit(source_id, path)
        path.pop()
        done.add(node_id)

    for node_id in upstream:
        visit(node_id, [])
    return cycles
