# -*- coding: utf-8 -*-
"""
Lifecycle - Start/tick/end triggers injected as the "lifecycle" dependency.

The Start, Update and End event nodes subscribe to these signals. A host
drives them from its own main loop; ManualLifecycleEventEmitter lets a
test or the CLI fire them directly.
"""
from loguru import logger

from src.core.events import Signal


class ManualLifecycleEventEmitter:
    """
    Lifecycle signals fired by explicit calls.

    Signals:
        start_event: Emitted once when the program starts
        tick_event: Emitted with the elapsed seconds on every frame/tick
        end_event: Emitted once when the program ends
    """

    def __init__(self):
        self.start_event = Signal("LifecycleStart")
        self.tick_event = Signal("LifecycleTick")
        self.end_event = Signal("LifecycleEnd")
        self.tick_count = 0

    def start(self) -> None:
        logger.debug("Lifecycle: start")
        self.start_event.emit()

    def tick(self, delta_seconds: float) -> None:
        self.tick_count += 1
        self.tick_event.emit(delta_seconds)

    def end(self) -> None:
        logger.debug(f"Lifecycle: end after {self.tick_count} ticks")
        self.end_event.emit()
