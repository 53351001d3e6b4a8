# -*- coding: utf-8 -*-
"""
Sockets - Typed input/output slots on a node.

A socket carries either data (any registered value type) or execution
control (the reserved "flow" type). Output sockets own the links that
leave them; input sockets keep a transient back-index of incoming links
that is rebuilt on load and never persisted.

Example:
    # Execution socket for flow control
    exec_socket = Socket(FLOW, "exec")

    # Data socket with a literal value
    count = Socket("integer", "count", value=10)
"""
from enum import Enum, auto
from typing import Any, List, Optional, TYPE_CHECKING
from dataclasses import dataclass, field

from .values import FLOW

if TYPE_CHECKING:
    from .node import Node
    from .link import Link


class SocketDirection(Enum):
    """Direction of a socket - input or output."""
    INPUT = auto()
    OUTPUT = auto()


@dataclass(eq=False)
class Socket:
    """
    A named, typed slot on a node.

    Attributes:
        value_type_name: Registered value type name (or "flow")
        name: Unique name within the node's inputs or outputs
        value: Current literal value (unused for flow sockets)
        label: Optional display label
        value_choices: Optional enumerated allowed values
        direction: INPUT or OUTPUT
        node: Parent node reference
        links: Outgoing links (output sockets only), in creation order
        incoming: Incoming links (input sockets only), transient
    """
    value_type_name: str
    name: str
    value: Any = None
    label: Optional[str] = None
    value_choices: Optional[List[Any]] = None
    direction: SocketDirection = SocketDirection.INPUT
    node: Optional['Node'] = field(default=None, repr=False)
    links: List['Link'] = field(default_factory=list, repr=False)
    incoming: List['Link'] = field(default_factory=list, repr=False)

    @property
    def is_flow(self) -> bool:
        """True for execution-control sockets."""
        return self.value_type_name == FLOW

    @property
    def is_input(self) -> bool:
        return self.direction == SocketDirection.INPUT

    @property
    def is_output(self) -> bool:
        return self.direction == SocketDirection.OUTPUT

    @property
    def link(self) -> Optional['Link']:
        """The single incoming link of a data input, if any."""
        return self.incoming[0] if self.incoming else None

    def is_connected(self) -> bool:
        """Check if this socket has any links."""
        if self.is_input:
            return len(self.incoming) > 0
        return len(self.links) > 0

    def __repr__(self) -> str:
        node_id = self.node.id[:8] if self.node else "?"
        return f"<Socket {node_id}.{self.name}:{self.value_type_name}>"
