# -*- coding: utf-8 -*-
"""
Serialization - JSON graph documents.

Documents are validated with pydantic models before any node is built.
Literal socket values go through their ValueType's serialize/deserialize;
linked inputs and flow sockets are not stored.

Document shape:
    {
        "name": "Main",
        "variables": [{"name": "count", "value_type": "integer", "initial_value": 0}],
        "custom_events": [{"name": "hit", "parameters": [
            {"name": "damage", "value_type": "float", "default_value": 0.0}]}],
        "nodes": [{"id": "n1", "type": "Log", "position": [0, 0],
                   "configuration": {}, "inputs": {"text": {"value": "hello"}}}],
        "links": [{"source_node_id": "n0", "source_socket_name": "exec",
                   "target_node_id": "n1", "target_socket_name": "exec"}]
    }
"""
import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from ..errors import GraphIntegrityError
from .definition import data
from .graph import NodeGraph
from .registry import Registry


# --- Document Models ---
class ParameterDocument(BaseModel):
    name: str
    value_type: str
    default_value: Any = None


class CustomEventDocument(BaseModel):
    name: str
    parameters: List[ParameterDocument] = Field(default_factory=list)


class VariableDocument(BaseModel):
    name: str
    value_type: str
    initial_value: Any = None


class SocketValueDocument(BaseModel):
    value: Any = None


class NodeDocument(BaseModel):
    id: str
    type: str
    position: Tuple[float, float] = (0.0, 0.0)
    configuration: Dict[str, Any] = Field(default_factory=dict)
    inputs: Dict[str, SocketValueDocument] = Field(default_factory=dict)


class LinkDocument(BaseModel):
    source_node_id: str
    source_socket_name: str
    target_node_id: str
    target_socket_name: str


class GraphDocument(BaseModel):
    name: str = "Untitled Graph"
    variables: List[VariableDocument] = Field(default_factory=list)
    custom_events: List[CustomEventDocument] = Field(default_factory=list)
    nodes: List[NodeDocument] = Field(default_factory=list)
    links: List[LinkDocument] = Field(default_factory=list)


DocumentSource = Union[GraphDocument, Mapping[str, Any]]


# =============================================================================
# Reading
# =============================================================================

def parse_document(document: DocumentSource) -> GraphDocument:
    """
    Validate a raw document.

    Raises:
        GraphIntegrityError: If the document is malformed
    """
    if isinstance(document, GraphDocument):
        return document
    try:
        return GraphDocument.model_validate(document)
    except ValidationError as e:
        raise GraphIntegrityError(f"Malformed graph document: {e}") from e


def read_graph_from_document(
    document: DocumentSource,
    registry: Registry,
    replace_existing_links: bool = True,
) -> NodeGraph:
    """
    Build a graph from a document.

    Variables and custom events are declared first (node sockets may
    depend on them), then nodes are created with their literal inputs,
    then links are re-created in document order.

    Args:
        document: GraphDocument or raw dict
        registry: Registry providing definitions and value types
        replace_existing_links: Reconnect policy of the new graph

    Returns:
        The loaded NodeGraph

    Raises:
        GraphIntegrityError: Malformed document, unknown node or value
            type, unknown socket, or an invalid link
    """
    doc = parse_document(document)
    graph = NodeGraph(doc.name, registry, replace_existing_links=replace_existing_links)

    for var in doc.variables:
        value_type = registry.get_value_type(var.value_type)
        initial = _deserialize(value_type, var.initial_value, f"variable '{var.name}'")
        graph.declare_variable(var.name, var.value_type, initial)

    for event in doc.custom_events:
        specs = []
        for param in event.parameters:
            value_type = registry.get_value_type(param.value_type)
            default = _deserialize(value_type, param.default_value, f"parameter '{event.name}.{param.name}'")
            specs.append(data(param.name, param.value_type, default))
        graph.declare_custom_event(event.name, specs)

    for node_doc in doc.nodes:
        node = graph.add_node(
            node_doc.type,
            configuration=node_doc.configuration,
            position=node_doc.position,
            node_id=node_doc.id,
        )
        for socket_name, socket_doc in node_doc.inputs.items():
            socket = node.get_input_socket(socket_name)
            if socket is None or socket.is_flow:
                raise GraphIntegrityError(f"Unknown data input '{socket_name}' on {node}")
            value_type = registry.get_value_type(socket.value_type_name)
            socket.value = _deserialize(value_type, socket_doc.value, f"input {socket}")

    for link_doc in doc.links:
        graph.connect(
            link_doc.source_node_id,
            link_doc.source_socket_name,
            link_doc.target_node_id,
            link_doc.target_socket_name,
            replace_existing=False,
        )

    logger.debug(f"Read graph from document: {graph}")
    return graph


def _deserialize(value_type, raw: Any, where: str) -> Any:
    if raw is None:
        return value_type.create()
    try:
        return value_type.deserialize(raw)
    except (TypeError, ValueError) as e:
        raise GraphIntegrityError(f"Cannot read {value_type.name} value for {where}: {raw!r}") from e


# =============================================================================
# Writing
# =============================================================================

def write_graph_to_document(graph: NodeGraph) -> Dict[str, Any]:
    """
    Serialize a graph to a JSON-compatible dict.

    Linked inputs and flow sockets are omitted; links are written in
    creation order.
    """
    registry = graph.registry
    nodes = []
    for node in graph.nodes.values():
        inputs = {}
        for socket in node.data_inputs:
            if socket.incoming:
                continue
            value_type = registry.get_value_type(socket.value_type_name)
            inputs[socket.name] = {"value": value_type.serialize(socket.value)}
        nodes.append({
            "id": node.id,
            "type": node.type_name,
            "position": list(node.position),
            "configuration": dict(node.configuration),
            "inputs": inputs,
        })

    return {
        "name": graph.name,
        "variables": [
            {
                "name": var.name,
                "value_type": var.value_type_name,
                "initial_value": var.value_type.serialize(var.initial_value),
            }
            for var in graph.variables.values()
        ],
        "custom_events": [
            {
                "name": event.name,
                "parameters": [
                    {
                        "name": spec.name,
                        "value_type": spec.value_type,
                        "default_value": registry.get_value_type(spec.value_type).serialize(spec.default),
                    }
                    for spec in event.parameters
                ],
            }
            for event in graph.custom_events.values()
        ],
        "nodes": nodes,
        "links": [link.to_dict() for link in graph.links],
    }


# =============================================================================
# Files
# =============================================================================

def load_graph(path: Union[str, Path], registry: Registry, replace_existing_links: bool = True) -> NodeGraph:
    """
    Load a graph from a JSON file.

    Raises:
        GraphIntegrityError: Unreadable file or invalid document
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, ValueError) as e:
        raise GraphIntegrityError(f"Cannot read graph file {path}: {e}") from e
    graph = read_graph_from_document(raw, registry, replace_existing_links)
    logger.info(f"Loaded graph '{graph.name}' from {path} ({len(graph.nodes)} nodes, {len(graph.links)} links)")
    return graph


def save_graph(graph: NodeGraph, path: Union[str, Path], indent: Optional[int] = 2) -> None:
    """Save a graph as a JSON file."""
    path = Path(path)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(write_graph_to_document(graph), f, indent=indent)
    logger.info(f"Saved graph '{graph.name}' to {path}")
