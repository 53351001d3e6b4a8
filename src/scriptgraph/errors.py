# -*- coding: utf-8 -*-
"""
Errors - Exception taxonomy for graph building and execution.

Structural errors (DefinitionError, GraphIntegrityError) are raised
synchronously at the API boundary. NodeRuntimeError is raised while a
fiber executes and is caught per fiber by the engine. ResolutionError
is a diagnostic: the engine reports it and continues with a default value.
"""
from typing import List, Optional, Sequence


class ScriptGraphError(Exception):
    """Base class for all scriptgraph errors."""
    pass


class DefinitionError(ScriptGraphError):
    """
    Malformed node definition or profile.

    Carries every problem found so they can be reported together.

    Attributes:
        errors: List of human-readable problem descriptions
    """

    def __init__(self, errors: Sequence[str]):
        self.errors: List[str] = list(errors)
        if len(self.errors) == 1:
            message = self.errors[0]
        else:
            message = f"{len(self.errors)} definition errors:\n" + "\n".join(
                f"  - {e}" for e in self.errors
            )
        super().__init__(message)


class GraphIntegrityError(ScriptGraphError):
    """Unknown node type, dangling link or incompatible connection."""
    pass


class ResolutionError(ScriptGraphError):
    """
    A data input had neither a literal value nor a usable link.

    Not raised by the engine: it is emitted as a diagnostic and the input
    falls back to its value type's default.
    """

    def __init__(self, node_id: str, socket_name: str, message: Optional[str] = None):
        self.node_id = node_id
        self.socket_name = socket_name
        super().__init__(
            message or f"Input '{socket_name}' on node {node_id} has no value and no link"
        )


class NodeRuntimeError(ScriptGraphError):
    """
    A node behaviour failed during execution.

    Attributes:
        node_id: ID of the offending node
        node_type: Type name of the offending node
        cause: Original exception (also chained as __cause__)
    """

    def __init__(self, node_id: str, node_type: str, message: str, cause: Optional[BaseException] = None):
        self.node_id = node_id
        self.node_type = node_type
        self.cause = cause
        super().__init__(f"[{node_type} {node_id}] {message}")
