# -*- coding: utf-8 -*-
"""
Engine - Runs the fibers of one graph.

The engine owns the fiber queue, the event nodes of a graph and every
pending async operation. Fibers run strictly in FIFO order: the head
fiber runs until it completes or waits on child fibers before the next
one starts.

Threading:
    All graph and fiber mutation happens on the thread that created the
    engine. Async completions and external triggers arriving from other
    threads are queued in a locked inbox and applied at the next drain,
    so graph variables need no locking.

Example:
    engine = Engine(graph.nodes)
    lifecycle.start()
    steps = engine.execute_all_sync()

    # Or, with async nodes on an asyncio scheduler
    await engine.execute_all_async(max_seconds=5.0)
"""
import asyncio
import threading
import time
from collections import deque
from typing import Any, Callable, Deque, Iterable, List, Mapping, Optional, Tuple, Union
from loguru import logger

from src.core.config import RuntimeSettings
from src.core.events import Signal

from ..core.definition import NodeKind
from ..core.node import AsyncNode, EventNode, Node
from ..errors import NodeRuntimeError, ResolutionError
from .fiber import Fiber

NodeCollection = Union[Mapping[str, Node], Iterable[Node]]


class AsyncOperation:
    """
    Pending operation started by an ASYNC node.

    finish() may be called from any thread, exactly once. Completion is
    applied on the engine's thread. After the engine abandons the
    operation (dispose), finish() is a no-op.

    Attributes:
        engine: Owning engine
        node: The async node
        input_socket_name: Flow input that triggered the node
        abandoned: True once the engine disposed of the operation
    """

    def __init__(self, engine: 'Engine', node: AsyncNode, input_socket_name: str, on_complete: Callable[[], None]):
        self.engine = engine
        self.node = node
        self.input_socket_name = input_socket_name
        self.abandoned = False
        self._on_complete = on_complete
        self._disposers: List[Callable[[], None]] = []
        self._finished = False
        self._lock = threading.Lock()

    @property
    def is_finished(self) -> bool:
        return self._finished

    def add_disposer(self, callback: Callable[[], None]) -> None:
        """Register cancellation to run if the operation is abandoned."""
        self._disposers.append(callback)

    def finish(self, output_name: Optional[str] = None) -> None:
        """
        Complete the operation.

        Args:
            output_name: Output flow socket to continue from
                (default: the node's first output flow socket)
        """
        with self._lock:
            if self.abandoned:
                logger.debug(f"Ignoring finish() of abandoned operation on {self.node}")
                return
            if self._finished:
                logger.warning(f"{self.node} finished its async operation more than once")
                return
            self._finished = True
        self.engine._post(lambda: self.engine._complete_async_operation(self, output_name))

    def _abandon(self) -> None:
        with self._lock:
            if self._finished or self.abandoned:
                return
            self.abandoned = True
        disposers, self._disposers = self._disposers, []
        for disposer in reversed(disposers):
            try:
                disposer()
            except Exception as e:
                logger.exception(f"Cancelling async operation on {self.node} failed: {e}")

    def __repr__(self) -> str:
        state = "abandoned" if self.abandoned else "finished" if self._finished else "pending"
        return f"<AsyncOperation {self.node} {state}>"


class Engine:
    """
    Executes the fibers of a graph.

    Signals:
        on_node_execution_start: Emitted with the node before it runs
        on_node_execution_end: Emitted with the node after it ran
            (for async nodes, when the operation completes)
        on_error: Emitted with each NodeRuntimeError
        on_resolution_error: Emitted with each ResolutionError diagnostic

    Attributes:
        settings: RuntimeSettings (default step/time limits)
        event_nodes: EVENT nodes initialized by this engine
        errors: Every NodeRuntimeError surfaced while running
    """

    def __init__(self, nodes: NodeCollection, settings: Optional[RuntimeSettings] = None):
        """
        Create an engine and initialize the event nodes.

        Args:
            nodes: Graph nodes (graph.nodes or any iterable of nodes)
            settings: Runtime limits (defaults when None)

        Raises:
            NodeRuntimeError: An event node failed to initialize; event
                nodes initialized before it are disposed again
        """
        if isinstance(nodes, Mapping):
            nodes = nodes.values()
        self.nodes: List[Node] = list(nodes)
        self.settings = settings or RuntimeSettings()
        self.event_nodes: List[EventNode] = [n for n in self.nodes if n.kind == NodeKind.EVENT]
        self.errors: List[NodeRuntimeError] = []

        self.on_node_execution_start = Signal("NodeExecutionStart")
        self.on_node_execution_end = Signal("NodeExecutionEnd")
        self.on_error = Signal("NodeRuntimeError")
        self.on_resolution_error = Signal("ResolutionError")

        self._nodes_by_id = {node.id: node for node in self.nodes}
        self._fiber_queue: Deque[Fiber] = deque()
        self._current_fiber: Optional[Fiber] = None
        self._pending_operations: List[AsyncOperation] = []
        self._inbox: List[Callable[[], None]] = []
        self._inbox_lock = threading.Lock()
        self._owner_thread = threading.get_ident()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._wakeup: Optional[asyncio.Event] = None
        self._execution_steps = 0
        self._disposed = False

        initialized: List[EventNode] = []
        try:
            for node in self.event_nodes:
                node.init(self)
                initialized.append(node)
        except NodeRuntimeError:
            for node in reversed(initialized):
                node.dispose(self)
            raise

        logger.debug(f"Engine initialized with {len(self.nodes)} nodes ({len(self.event_nodes)} event nodes)")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def fiber_queue(self) -> Tuple[Fiber, ...]:
        return tuple(self._fiber_queue)

    @property
    def pending_async_operations(self) -> List[AsyncOperation]:
        return list(self._pending_operations)

    @property
    def execution_steps(self) -> int:
        """Total steps (node triggers and completion listeners) executed over the engine's lifetime."""
        return self._execution_steps

    @property
    def is_idle(self) -> bool:
        """True when no fiber, queued trigger or async operation remains."""
        with self._inbox_lock:
            inbox_empty = not self._inbox
        return inbox_empty and not self._fiber_queue and not self._pending_operations

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    # =========================================================================
    # Fiber creation
    # =========================================================================

    def commit_to_new_fiber(
        self,
        node: Node,
        output_name: str,
        on_completed: Optional[Callable[[], None]] = None,
        outputs: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """
        Start a new fiber at an output flow socket.

        Safe to call from any thread; calls from other threads are applied
        on the engine's thread at the next drain. Errors (unknown output)
        are reported through on_error rather than raised.

        Args:
            node: Node owning the output socket
            output_name: Output flow socket name
            on_completed: Called once every path from that output finished
            outputs: Data output values of node for this trigger; written
                when the new fiber takes its first step, so triggers queued
                behind each other keep their own values
        """
        if not self._on_owner_thread():
            self._post(lambda: self.commit_to_new_fiber(node, output_name, on_completed, outputs))
            return
        if self._disposed:
            logger.debug(f"Ignoring trigger of {node}.{output_name} on disposed engine")
            return

        fiber = Fiber(self, entry_outputs=(node, dict(outputs)) if outputs else None)
        try:
            fiber.commit(node, output_name, on_completed)
            if fiber.is_complete:
                # Nothing downstream runs; the outputs still show the last trigger
                fiber.apply_entry_outputs()
        except NodeRuntimeError as e:
            self._report_error(e)
            return

        if not fiber.is_waiting and not fiber.is_complete:
            self._fiber_queue.append(fiber)
        self._notify()

    def register_async_operation(
        self,
        node: AsyncNode,
        input_socket_name: str,
        on_complete: Callable[[], None],
    ) -> AsyncOperation:
        """
        Track and start an async node's operation.

        When the operation finishes, the node continues on a new fiber at
        the chosen output flow socket and on_complete is called.

        Raises:
            NodeRuntimeError: The node failed to start the operation
        """
        operation = AsyncOperation(self, node, input_socket_name, on_complete)
        self._pending_operations.append(operation)
        try:
            node.start_async(operation)
        except NodeRuntimeError:
            if operation in self._pending_operations:
                self._pending_operations.remove(operation)
            operation._abandon()
            raise
        return operation

    def _complete_async_operation(self, operation: AsyncOperation, output_name: Optional[str]) -> None:
        if operation in self._pending_operations:
            self._pending_operations.remove(operation)
        if self._disposed or operation.abandoned:
            return
        node = operation.node
        try:
            output_name = node._set_output_flow(output_name)
        except NodeRuntimeError as e:
            self._report_error(e)
            return
        self.commit_to_new_fiber(node, output_name)
        operation._on_complete()

    def _spawn(self, parent: Fiber, children: List[Fiber]) -> None:
        # Fan-out from the running fiber runs before unrelated queued fibers
        if parent is self._current_fiber:
            self._fiber_queue.extendleft(reversed(children))
        else:
            self._fiber_queue.extend(children)

    def _resume(self, fiber: Fiber) -> None:
        self._fiber_queue.appendleft(fiber)

    # =========================================================================
    # Execution
    # =========================================================================

    def execute_all_sync(self, max_steps: Optional[int] = None, max_seconds: Optional[float] = None) -> int:
        """
        Run queued fibers until the queue is empty or a limit is hit.

        Args:
            max_steps: Maximum steps (settings.max_steps when None)
            max_seconds: Wall-clock limit (settings.max_seconds when None)

        Returns:
            Number of steps executed
        """
        if max_steps is None:
            max_steps = self.settings.max_steps
        if max_seconds is None:
            max_seconds = self.settings.max_seconds

        started = time.perf_counter()
        steps = 0
        self._drain_inbox()

        while self._fiber_queue:
            if steps >= max_steps or (max_seconds is not None and time.perf_counter() - started >= max_seconds):
                logger.warning(f"Execution limit reached after {steps} steps; {len(self._fiber_queue)} fibers queued")
                break

            fiber = self._fiber_queue.popleft()
            self._current_fiber = fiber
            try:
                while not fiber.is_complete and not fiber.is_waiting:
                    if steps >= max_steps or (
                            max_seconds is not None and time.perf_counter() - started >= max_seconds):
                        self._fiber_queue.appendleft(fiber)
                        break
                    before = fiber.steps_executed
                    try:
                        fiber.execute_step()
                    except NodeRuntimeError as e:
                        self._report_error(e)
                        fiber.abort()
                        steps += 1
                        self._execution_steps += 1
                        break
                    ran = fiber.steps_executed - before
                    steps += ran
                    self._execution_steps += ran
                else:
                    if fiber.is_complete:
                        fiber._finish()
            finally:
                self._current_fiber = None
            self._drain_inbox()

        return steps

    async def execute_all_async(self, max_steps: Optional[int] = None, max_seconds: Optional[float] = None) -> int:
        """
        Run until idle, waiting for pending async operations without polling.

        Args:
            max_steps: Maximum steps over the whole run
            max_seconds: Wall-clock limit over the whole run

        Returns:
            Number of steps executed
        """
        if max_steps is None:
            max_steps = self.settings.max_steps
        if max_seconds is None:
            max_seconds = self.settings.max_seconds

        self._loop = asyncio.get_running_loop()
        self._wakeup = asyncio.Event()
        started = time.perf_counter()
        total = 0
        try:
            while True:
                self._wakeup.clear()
                remaining_seconds = None
                if max_seconds is not None:
                    remaining_seconds = max_seconds - (time.perf_counter() - started)
                    if remaining_seconds <= 0:
                        break
                total += self.execute_all_sync(max_steps=max_steps - total, max_seconds=remaining_seconds)
                if total >= max_steps:
                    break
                if self._fiber_queue or self._has_inbox():
                    continue
                if not self._pending_operations:
                    break

                try:
                    if remaining_seconds is None:
                        await self._wakeup.wait()
                    else:
                        await asyncio.wait_for(self._wakeup.wait(), timeout=remaining_seconds)
                except asyncio.TimeoutError:
                    logger.warning(f"Async execution timed out with {len(self._pending_operations)} pending operations")
                    break
        finally:
            self._wakeup = None
            self._loop = None
        return total

    # =========================================================================
    # Disposal
    # =========================================================================

    def dispose(self) -> None:
        """
        Stop the engine.

        Event nodes unsubscribe, pending async operations are abandoned
        (their cancellations run; late completions are ignored) and all
        queues are cleared. Safe to call more than once.
        """
        if self._disposed:
            return
        self._disposed = True

        for node in self.event_nodes:
            try:
                node.dispose(self)
            except NodeRuntimeError as e:
                self._report_error(e)

        operations, self._pending_operations = self._pending_operations, []
        for operation in operations:
            operation._abandon()

        self._fiber_queue.clear()
        with self._inbox_lock:
            self._inbox.clear()
        logger.debug(f"Engine disposed ({len(operations)} async operations abandoned)")

    def __enter__(self) -> 'Engine':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()

    # =========================================================================
    # Thread marshalling
    # =========================================================================

    def _on_owner_thread(self) -> bool:
        return threading.get_ident() == self._owner_thread

    def _post(self, callback: Callable[[], None]) -> None:
        """Run callback on the engine thread (now, if already on it)."""
        if self._on_owner_thread():
            callback()
            return
        with self._inbox_lock:
            self._inbox.append(callback)
        self._notify()

    def _has_inbox(self) -> bool:
        with self._inbox_lock:
            return bool(self._inbox)

    def _drain_inbox(self) -> None:
        with self._inbox_lock:
            callbacks, self._inbox = self._inbox, []
        for callback in callbacks:
            callback()

    def _notify(self) -> None:
        wakeup, loop = self._wakeup, self._loop
        if wakeup is None or loop is None:
            return
        if self._on_owner_thread():
            wakeup.set()
        else:
            loop.call_soon_threadsafe(wakeup.set)

    # =========================================================================
    # Reporting
    # =========================================================================

    def _report_error(self, error: NodeRuntimeError) -> None:
        node = self._nodes_by_id.get(error.node_id)
        if node is not None:
            node.set_error(str(error))
        self.errors.append(error)
        logger.error(f"Node runtime error: {error}")
        self.on_error.emit(error)

    def _report_resolution_error(self, error: ResolutionError) -> None:
        logger.warning(f"Resolution: {error}")
        self.on_resolution_error.emit(error)

    def __repr__(self) -> str:
        return (
            f"<Engine nodes={len(self.nodes)} fibers={len(self._fiber_queue)} "
            f"pending={len(self._pending_operations)}>"
        )
