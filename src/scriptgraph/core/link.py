# -*- coding: utf-8 -*-
"""
Link - Directed edge from an output socket to an input socket.

Links are identified by node ids and socket names. Direct references
to the nodes and sockets are resolved against the owning graph when
the link is created or loaded and are never serialized.

Example:
    link = Link("start-1", "exec", "print-1", "exec")
    link.resolve(graph)
    link.target_socket.name   # "exec"
"""
from typing import Optional, Tuple, TYPE_CHECKING

from ..errors import GraphIntegrityError

if TYPE_CHECKING:
    from .graph import NodeGraph
    from .node import Node
    from .sockets import Socket


class Link:
    """
    Represents a connection between two sockets.

    Links are directional: source (output) -> target (input), and are
    owned by the source output socket.

    Attributes:
        source_node_id: ID of the node owning the output socket
        source_socket_name: Name of the output socket
        target_node_id: ID of the node owning the input socket
        target_socket_name: Name of the input socket
    """

    def __init__(
        self,
        source_node_id: str,
        source_socket_name: str,
        target_node_id: str,
        target_socket_name: str,
    ):
        self.source_node_id = source_node_id
        self.source_socket_name = source_socket_name
        self.target_node_id = target_node_id
        self.target_socket_name = target_socket_name

        # Transient, filled by resolve()
        self.source_node: Optional['Node'] = None
        self.source_socket: Optional['Socket'] = None
        self.target_node: Optional['Node'] = None
        self.target_socket: Optional['Socket'] = None

    @property
    def key(self) -> Tuple[str, str, str, str]:
        return (
            self.source_node_id,
            self.source_socket_name,
            self.target_node_id,
            self.target_socket_name,
        )

    @property
    def is_resolved(self) -> bool:
        return self.source_socket is not None and self.target_socket is not None

    def resolve(self, graph: 'NodeGraph') -> 'Link':
        """
        Compute direct node/socket references from the ids.

        Args:
            graph: Graph owning both endpoints

        Returns:
            self (for chaining)

        Raises:
            GraphIntegrityError: If a node or socket does not exist
        """
        source_node = graph.nodes.get(self.source_node_id)
        target_node = graph.nodes.get(self.target_node_id)
        if source_node is None:
            raise GraphIntegrityError(f"Link source node not found: {self.source_node_id}")
        if target_node is None:
            raise GraphIntegrityError(f"Link target node not found: {self.target_node_id}")

        source_socket = source_node.get_output_socket(self.source_socket_name)
        target_socket = target_node.get_input_socket(self.target_socket_name)
        if source_socket is None:
            raise GraphIntegrityError(
                f"Output socket '{self.source_socket_name}' not found on {source_node}"
            )
        if target_socket is None:
            raise GraphIntegrityError(
                f"Input socket '{self.target_socket_name}' not found on {target_node}"
            )

        self.source_node = source_node
        self.source_socket = source_socket
        self.target_node = target_node
        self.target_socket = target_socket
        return self

    def to_dict(self) -> dict:
        """Serialize link ids for saving."""
        return {
            "source_node_id": self.source_node_id,
            "source_socket_name": self.source_socket_name,
            "target_node_id": self.target_node_id,
            "target_socket_name": self.target_socket_name,
        }

    def __repr__(self) -> str:
        return (
            f"<Link {self.source_node_id[:8]}.{self.source_socket_name} -> "
            f"{self.target_node_id[:8]}.{self.target_socket_name}>"
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Link):
            return False
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)
