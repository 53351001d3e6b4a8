# -*- coding: utf-8 -*-
"""
Fiber - One execution path through a graph.

A fiber follows flow links one node at a time. Before a node runs, its
data inputs are resolved by pulling values through FUNCTION nodes, which
are re-evaluated on every pull. A FLOW node decides where the fiber goes
next by committing one of its output flow sockets:

    0 links   the path ends
    1 link    the fiber continues along it
    N links   N child fibers run in link creation order; the parent waits
              for all of them before it continues

A commit may register a completion listener that runs once the path
started by that commit has finished. Sequence and ForLoop use listeners
to move on to their next output.
"""
import itertools
from typing import Any, Callable, List, Mapping, Optional, Set, Tuple, TYPE_CHECKING
from loguru import logger

from ..core.definition import NodeKind
from ..core.link import Link
from ..errors import NodeRuntimeError, ResolutionError

if TYPE_CHECKING:
    from ..core.node import Node
    from .engine import Engine

_fiber_ids = itertools.count(1)


class Fiber:
    """
    A single execution path.

    Attributes:
        id: Sequential fiber number (for logging)
        engine: Owning engine
        next_link: Link to follow on the next step (None when the path is over)
        parent: Fiber that spawned this one on a fan-out
        steps_executed: Node triggers plus completion listeners run by this fiber
        is_aborted: True after a node runtime error ended this fiber
    """

    def __init__(
        self,
        engine: 'Engine',
        next_link: Optional[Link] = None,
        on_completed: Optional[Callable[[], None]] = None,
        parent: Optional['Fiber'] = None,
        entry_outputs: Optional[Tuple['Node', Mapping[str, Any]]] = None,
    ):
        self.id = next(_fiber_ids)
        self.engine = engine
        self.next_link = next_link
        self.parent = parent
        self.steps_executed = 0
        self.is_aborted = False
        self._listeners: List[Tuple[Optional['Node'], Callable[[], None]]] = []
        if on_completed is not None:
            self._listeners.append((None, on_completed))
        self._pending_children = 0
        self._committed = False
        self._finished = False
        self._entry_outputs = entry_outputs

    # =========================================================================
    # State
    # =========================================================================

    @property
    def is_waiting(self) -> bool:
        """True while spawned child fibers are still running."""
        return self._pending_children > 0

    @property
    def is_complete(self) -> bool:
        """True when there is nothing left to run or unwind."""
        return (
            self.is_aborted or
            (self.next_link is None and self._pending_children == 0 and not self._listeners)
        )

    # =========================================================================
    # Stepping
    # =========================================================================

    def execute_step(self) -> None:
        """
        Trigger the node at next_link, or run one completion listener once
        the current path is over. Either counts as one step.

        Raises:
            NodeRuntimeError: The node (or a function node it pulls from) failed
        """
        self.apply_entry_outputs()
        link = self.next_link
        if link is not None:
            self.next_link = None
            self.steps_executed += 1
            self._trigger(link)
        elif self._pending_children == 0 and self._listeners and not self.is_aborted:
            self.steps_executed += 1
            self._unwind_one()

    def apply_entry_outputs(self) -> None:
        """Write the data outputs carried by the trigger that started this fiber."""
        if self._entry_outputs is None:
            return
        node, values = self._entry_outputs
        self._entry_outputs = None
        try:
            for name, value in values.items():
                node.write_output(name, value)
        except (KeyError, TypeError) as e:
            raise NodeRuntimeError(node.id, node.type_name, f"cannot write trigger outputs: {e}", e) from e

    def _trigger(self, link: Link) -> None:
        node = link.target_node
        if node is None:
            raise NodeRuntimeError(link.target_node_id, "?", f"unresolved link {link}")

        engine = self.engine
        self._committed = False
        engine.on_node_execution_start.emit(node)
        resolve_inputs(engine, node)

        if node.kind == NodeKind.FLOW:
            node.triggered(self, link.target_socket_name)
            if not self._committed and node.flow_outputs:
                # Deliberate stops go through ctx.end()
                raise NodeRuntimeError(node.id, node.type_name, "returned without committing an output flow")
            engine.on_node_execution_end.emit(node)
        elif node.kind == NodeKind.ASYNC:
            # The continuation runs on a new fiber when the operation finishes
            node.triggered(engine, link.target_socket_name, lambda: engine.on_node_execution_end.emit(node))
        else:
            raise NodeRuntimeError(node.id, node.type_name, f"{node.kind.value} nodes cannot be triggered by flow")

    def _unwind_one(self) -> None:
        """Pop and run the innermost completion listener."""
        node, listener = self._listeners.pop()
        self._committed = False
        try:
            listener()
        except NodeRuntimeError:
            raise
        except Exception as e:
            if node is None:
                raise
            raise NodeRuntimeError(node.id, node.type_name, f"completion listener failed: {e}", e) from e

    # =========================================================================
    # Commit
    # =========================================================================

    def commit(self, node: 'Node', output_name: str, on_completed: Optional[Callable[[], None]] = None) -> None:
        """
        Continue execution at an output flow socket of node.

        Args:
            node: Node committing (the one currently triggered)
            output_name: Name of one of node's output flow sockets
            on_completed: Called once the path started here has finished

        Raises:
            NodeRuntimeError: Second commit in the same trigger, or
                output_name is not an output flow socket of node
        """
        if self._committed:
            raise NodeRuntimeError(node.id, node.type_name, f"output flow committed twice (second: '{output_name}')")
        socket = node.get_output_socket(output_name)
        if socket is None or not socket.is_flow:
            raise NodeRuntimeError(node.id, node.type_name, f"'{output_name}' is not an output flow socket")
        self._committed = True

        if on_completed is not None:
            self._listeners.append((node, on_completed))

        links = list(socket.links)
        if not links:
            return
        if len(links) == 1:
            self.next_link = links[0]
            return

        # Each child of a root commit writes the trigger outputs before its first node
        entry_outputs, self._entry_outputs = self._entry_outputs, None
        children = [Fiber(self.engine, link, parent=self, entry_outputs=entry_outputs) for link in links]
        self._pending_children += len(children)
        logger.debug(f"Fiber {self.id} fans out into {len(children)} fibers at {node}.{output_name}")
        self.engine._spawn(self, children)

    def end(self, node: 'Node') -> None:
        """Mark the current trigger as deliberately committing nothing."""
        if self._committed:
            raise NodeRuntimeError(node.id, node.type_name, "path ended after an output flow was committed")
        self._committed = True

    # =========================================================================
    # Completion
    # =========================================================================

    def abort(self) -> None:
        """End this fiber after a runtime error; its parent is released."""
        self.is_aborted = True
        self.next_link = None
        self._listeners.clear()
        self._finish()

    def _finish(self) -> None:
        if self._finished:
            return
        self._finished = True
        logger.debug(f"Fiber {self.id} {'aborted' if self.is_aborted else 'completed'} after {self.steps_executed} steps")
        if self.parent is not None:
            self.parent._child_finished()

    def _child_finished(self) -> None:
        self._pending_children -= 1
        if self._pending_children == 0 and not self.is_aborted:
            self.engine._resume(self)

    def __repr__(self) -> str:
        return f"<Fiber {self.id} next={self.next_link}>"


# =============================================================================
# Input resolution
# =============================================================================

def resolve_inputs(engine: 'Engine', node: 'Node', _visiting: Optional[Set[str]] = None) -> None:
    """
    Resolve every data input of node.

    Linked inputs pull from their upstream output: FUNCTION nodes are
    resolved and executed again on every pull; other nodes provide the
    value they last wrote. Values are copied across links through the
    registry conversion table. Unlinked inputs keep their literal; an
    input with neither gets its value type default and a ResolutionError
    diagnostic is reported.

    Raises:
        NodeRuntimeError: A function node failed or the data
            dependencies contain a cycle
    """
    visiting = _visiting if _visiting is not None else {node.id}
    registry = node.graph.registry

    for socket in node.data_inputs:
        link = socket.link
        if link is None:
            if socket.value is None:
                socket.value = registry.get_value_type(socket.value_type_name).create()
                engine._report_resolution_error(ResolutionError(node.id, socket.name))
            continue

        upstream = link.source_node
        if upstream is not None and upstream.kind == NodeKind.FUNCTION:
            if upstream.id in visiting:
                raise NodeRuntimeError(node.id, node.type_name, f"data dependency cycle through {upstream}")
            visiting.add(upstream.id)
            try:
                resolve_inputs(engine, upstream, visiting)
                engine.on_node_execution_start.emit(upstream)
                upstream.exec()
                engine.on_node_execution_end.emit(upstream)
            finally:
                visiting.discard(upstream.id)

        source = link.source_socket
        try:
            socket.value = registry.convert(source.value, source.value_type_name, socket.value_type_name)
        except Exception as e:
            raise NodeRuntimeError(
                node.id, node.type_name,
                f"cannot convert {source.value_type_name} to {socket.value_type_name} for '{socket.name}': {e}", e,
            ) from e
