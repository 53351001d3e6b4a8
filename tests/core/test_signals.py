from unittest.mock import MagicMock
from src.core.events import Signal


def test_signal_event():
    """Handlers receive emitted arguments until disconnected."""
    sig = Signal("test_signal")
    mock_handler = MagicMock()

    sig.connect(mock_handler)
    sig.emit("data", 123)

    mock_handler.assert_called_once_with("data", 123)

    sig.disconnect(mock_handler)
    sig.emit("data2")
    assert mock_handler.call_count == 1


def test_connect_is_idempotent():
    sig = Signal("once")
    handler = MagicMock()
    sig.connect(handler)
    sig.connect(handler)
    assert sig.subscriber_count == 1


def test_failing_subscriber_does_not_block_others():
    sig = Signal("failing")
    received = []

    def broken(value):
        raise RuntimeError("boom")

    sig.connect(broken)
    sig.connect(received.append)
    sig.emit(5)

    assert received == [5]


def test_subscriber_may_disconnect_during_emit():
    sig = Signal("self_removing")
    calls = []

    def once(value):
        calls.append(value)
        sig.disconnect(once)

    sig.connect(once)
    sig.emit(1)
    sig.emit(2)

    assert calls == [1]


def test_connect_returns_disconnect():
    sig = Signal("unsubscribe")
    handler = MagicMock()

    unsubscribe = sig.connect(handler)
    unsubscribe()
    sig.emit("ignored")

    handler.assert_not_called()
    assert sig.subscriber_count == 0
