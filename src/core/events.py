"""
Signal - Synchronous observer for engine, graph and settings notifications.

Handlers run in connection order on the emitting thread. A handler that
raises is logged and skipped; the remaining handlers still run. Handlers
may connect or disconnect (themselves included) while being notified.

Usage:
    on_tick = Signal("Tick")
    unsubscribe = on_tick.connect(handler)
    on_tick.emit(0.016)
    unsubscribe()
"""
from typing import Callable, List
from loguru import logger


class Signal:
    """
    Named list of handlers notified by emit().

    Attributes:
        name: Label used in log messages
    """
    def __init__(self, name: str = "Signal"):
        self.name = name
        self._handlers: List[Callable] = []

    def connect(self, handler: Callable) -> Callable[[], None]:
        """
        Add a handler (a handler already connected is not added twice).

        Returns:
            Callable that disconnects the handler again
        """
        if handler not in self._handlers:
            self._handlers.append(handler)
        return lambda: self.disconnect(handler)

    def disconnect(self, handler: Callable):
        if handler in self._handlers:
            self._handlers.remove(handler)

    def emit(self, *args, **kwargs):
        """Call every handler connected when the emit started."""
        for handler in tuple(self._handlers):
            try:
                handler(*args, **kwargs)
            except Exception as e:
                logger.exception(f"Handler {handler!r} of signal '{self.name}' failed: {e}")

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    def __repr__(self) -> str:
        return f"<Signal '{self.name}' handlers={len(self._handlers)}>"
