# -*- coding: utf-8 -*-
"""
Tests for event nodes, graph variables and host state

Tests cover:
- Update / End lifecycle events
- CustomEvent + CallEvent with parameters
- GetVariable / SetVariable / VariableChanged
- GetState / SetState / StateChanged over DictStateStore
- The example graphs end to end
"""
from pathlib import Path

import pytest

from src.scriptgraph.core.serialization import load_graph
from src.scriptgraph.execution.engine import Engine
from src.scriptgraph.profiles import DictStateStore
from src.scriptgraph.errors import NodeRuntimeError

GRAPHS_DIR = Path(__file__).resolve().parents[2] / "graphs"


def _log(graph, text=None):
    node = graph.add_node("Log")
    if text is not None:
        node.get_input_socket("text").value = text
    return node


# =============================================================================
# Lifecycle events
# =============================================================================

class TestLifecycleEvents:
    """Tests for Update and End."""

    def test_update_exposes_delta_seconds(self, graph, lifecycle, script_logger):
        update = graph.add_node("Update")
        log = _log(graph)
        graph.connect(update.id, "exec", log.id, "exec")
        graph.connect(update.id, "delta_seconds", log.id, "text")

        with Engine(graph.nodes) as engine:
            for delta in (0.5, 0.25):
                lifecycle.tick(delta)
                engine.execute_all_sync()

        assert script_logger.texts == ["0.5", "0.25"]

    def test_ticks_queued_before_a_drain(self, graph, lifecycle, script_logger):
        update = graph.add_node("Update")
        log = _log(graph)
        graph.connect(update.id, "exec", log.id, "exec")
        graph.connect(update.id, "delta_seconds", log.id, "text")

        with Engine(graph.nodes) as engine:
            lifecycle.tick(0.5)
            lifecycle.tick(0.25)
            engine.execute_all_sync()

        assert script_logger.texts == ["0.5", "0.25"]

    def test_end_event(self, graph, lifecycle, script_logger):
        end = graph.add_node("End")
        graph.connect(end.id, "exec", _log(graph, "bye").id, "exec")

        with Engine(graph.nodes) as engine:
            lifecycle.start()
            engine.execute_all_sync()
            assert script_logger.texts == []
            lifecycle.end()
            engine.execute_all_sync()

        assert script_logger.texts == ["bye"]


# =============================================================================
# Custom events
# =============================================================================

class TestCustomEvents:
    """Tests for CustomEvent and CallEvent."""

    def _wire(self, graph):
        graph.declare_custom_event("greet", {"name": "string"})
        start = graph.add_node("Start")
        call = graph.add_node("CallEvent", configuration={"event_name": "greet"})
        call.get_input_socket("name").value = "Ada"
        graph.connect(start.id, "exec", call.id, "exec")
        graph.connect(call.id, "then", _log(graph, "called").id, "exec")

        handler = graph.add_node("CustomEvent", configuration={"event_name": "greet"})
        concat = graph.add_node("StringConcat")
        concat.get_input_socket("a").value = "Hello "
        greeting = _log(graph)
        graph.connect(handler.id, "exec", greeting.id, "exec")
        graph.connect(handler.id, "name", concat.id, "b")
        graph.connect(concat.id, "result", greeting.id, "text")

    def test_call_runs_handler_on_new_fiber(self, graph, lifecycle, script_logger):
        """The caller continues first; the handler fiber is queued behind it."""
        self._wire(graph)

        with Engine(graph.nodes) as engine:
            lifecycle.start()
            engine.execute_all_sync()
            assert engine.errors == []

        assert script_logger.texts == ["called", "Hello Ada"]

    def test_queued_calls_keep_their_own_payload(self, graph, lifecycle, script_logger):
        """Two calls in one path queue two handlers, each with its own value."""
        graph.declare_custom_event("shout", {"msg": "string"})
        start = graph.add_node("Start")
        first = graph.add_node("CallEvent", configuration={"event_name": "shout"})
        first.get_input_socket("msg").value = "first"
        second = graph.add_node("CallEvent", configuration={"event_name": "shout"})
        second.get_input_socket("msg").value = "second"
        graph.connect(start.id, "exec", first.id, "exec")
        graph.connect(first.id, "then", second.id, "exec")

        handler = graph.add_node("CustomEvent", configuration={"event_name": "shout"})
        log = _log(graph)
        graph.connect(handler.id, "exec", log.id, "exec")
        graph.connect(handler.id, "msg", log.id, "text")

        with Engine(graph.nodes) as engine:
            lifecycle.start()
            engine.execute_all_sync()
            assert engine.errors == []

        assert script_logger.texts == ["first", "second"]
        assert handler.get_output_socket("msg").value == "second"

    def test_payload_reaches_every_fan_out_branch(self, graph, script_logger):
        graph.declare_custom_event("shout", {"msg": "string"})
        handler = graph.add_node("CustomEvent", configuration={"event_name": "shout"})
        for _ in range(2):
            log = _log(graph)
            graph.connect(handler.id, "exec", log.id, "exec")
            graph.connect(handler.id, "msg", log.id, "text")

        with Engine(graph.nodes) as engine:
            graph.get_custom_event("shout").trigger({"msg": "a"})
            graph.get_custom_event("shout").trigger({"msg": "b"})
            engine.execute_all_sync()

        assert script_logger.texts == ["a", "a", "b", "b"]

    def test_host_can_trigger(self, graph, script_logger):
        self._wire(graph)

        with Engine(graph.nodes) as engine:
            graph.get_custom_event("greet").trigger({"name": "host"})
            engine.execute_all_sync()

        assert script_logger.texts == ["Hello host"]

    def test_undeclared_event_fails_init(self, graph):
        graph.add_node("CustomEvent", configuration={"event_name": "missing"})
        with pytest.raises(NodeRuntimeError):
            Engine(graph.nodes)


# =============================================================================
# Variables
# =============================================================================

class TestVariableNodes:
    """Tests for GetVariable, SetVariable and VariableChanged."""

    def test_set_then_get(self, graph, lifecycle, script_logger):
        graph.declare_variable("name", "string", "before")
        start = graph.add_node("Start")
        setter = graph.add_node("SetVariable", configuration={"variable_name": "name"})
        setter.get_input_socket("value").value = "after"
        getter = graph.add_node("GetVariable", configuration={"variable_name": "name"})
        log = _log(graph)
        graph.connect(start.id, "exec", setter.id, "exec")
        graph.connect(setter.id, "exec_out", log.id, "exec")
        graph.connect(getter.id, "value", log.id, "text")

        with Engine(graph.nodes) as engine:
            lifecycle.start()
            engine.execute_all_sync()

        assert script_logger.texts == ["after"]
        assert graph.get_variable("name").value == "after"

    def test_variables_persist_across_runs(self, graph, lifecycle):
        graph.declare_variable("count", "integer", 0)
        start = graph.add_node("Start")
        getter = graph.add_node("GetVariable", configuration={"variable_name": "count"})
        inc = graph.add_node("AddInteger")
        inc.get_input_socket("b").value = 1
        setter = graph.add_node("SetVariable", configuration={"variable_name": "count"})
        graph.connect(getter.id, "value", inc.id, "a")
        graph.connect(inc.id, "result", setter.id, "value")
        graph.connect(start.id, "exec", setter.id, "exec")

        with Engine(graph.nodes) as engine:
            for _ in range(3):
                lifecycle.start()
            engine.execute_all_sync()

        assert graph.get_variable("count").value == 3

    def test_variable_changed_event(self, graph, lifecycle, script_logger):
        graph.declare_variable("score", "integer", 0)
        start = graph.add_node("Start")
        setter = graph.add_node("SetVariable", configuration={"variable_name": "score"})
        setter.get_input_socket("value").value = 10
        graph.connect(start.id, "exec", setter.id, "exec")

        watcher = graph.add_node("VariableChanged", configuration={"variable_name": "score"})
        log = _log(graph)
        graph.connect(watcher.id, "exec", log.id, "exec")
        graph.connect(watcher.id, "value", log.id, "text")

        with Engine(graph.nodes) as engine:
            lifecycle.start()
            lifecycle.start()
            engine.execute_all_sync()

        # The second set writes the same value and does not fire
        assert script_logger.texts == ["10"]

    def test_undeclared_variable_has_no_value_socket(self, graph):
        getter = graph.add_node("GetVariable", configuration={"variable_name": "ghost"})
        assert getter.get_output_socket("value") is None


# =============================================================================
# Host state
# =============================================================================

class TestDictStateStore:
    """Tests for the in-memory state accessor."""

    def test_get_missing(self):
        with pytest.raises(KeyError):
            DictStateStore().get_value("player.health")

    def test_listeners_only_on_change(self):
        store = DictStateStore({"a": 1})
        seen = []
        unsubscribe = store.subscribe("a", lambda path, value: seen.append((path, value)))

        store.set_value("a", 1)
        store.set_value("a", 2)
        unsubscribe()
        store.set_value("a", 3)

        assert seen == [("a", 2)]
        assert store.snapshot() == {"a": 3}


class TestStateNodes:
    """Tests for GetState*, SetState* and StateChanged."""

    def test_get_state(self, graph, lifecycle, state_store, script_logger):
        state_store.set_value("player.name", "Ada")
        start = graph.add_node("Start")
        getter = graph.add_node("GetStateString", configuration={"path": "player.name"})
        log = _log(graph)
        graph.connect(start.id, "exec", log.id, "exec")
        graph.connect(getter.id, "value", log.id, "text")

        with Engine(graph.nodes) as engine:
            lifecycle.start()
            engine.execute_all_sync()

        assert script_logger.texts == ["Ada"]

    def test_set_state_fires_state_changed(self, graph, lifecycle, state_store, script_logger):
        start = graph.add_node("Start")
        setter = graph.add_node("SetStateFloat", configuration={"path": "player.health"})
        setter.get_input_socket("value").value = 75.0
        graph.connect(start.id, "exec", setter.id, "exec")
        graph.connect(setter.id, "exec_out", _log(graph, "set").id, "exec")

        changed = graph.add_node("StateChanged", configuration={"path": "player.health"})
        graph.connect(changed.id, "exec", _log(graph, "changed").id, "exec")

        with Engine(graph.nodes) as engine:
            lifecycle.start()
            engine.execute_all_sync()

        assert state_store.get_value("player.health") == 75.0
        assert script_logger.texts == ["set", "changed"]

    def test_state_changed_unsubscribes_on_dispose(self, graph, state_store, script_logger):
        changed = graph.add_node("StateChanged", configuration={"path": "flag"})
        graph.connect(changed.id, "exec", _log(graph, "changed").id, "exec")

        engine = Engine(graph.nodes)
        engine.dispose()
        state_store.set_value("flag", True)
        engine.execute_all_sync()

        assert script_logger.texts == []

    def test_missing_path_is_runtime_error(self, graph, lifecycle):
        start = graph.add_node("Start")
        getter = graph.add_node("GetStateInteger", configuration={"path": "nowhere"})
        counter = graph.add_node("ForLoop")
        graph.connect(start.id, "exec", counter.id, "exec")
        graph.connect(getter.id, "value", counter.id, "last_index")

        with Engine(graph.nodes) as engine:
            lifecycle.start()
            engine.execute_all_sync()
            assert len(engine.errors) == 1
            assert "nowhere" in str(engine.errors[0])


# =============================================================================
# Example graphs
# =============================================================================

class TestExampleGraphs:
    """The shipped graphs produce the expected output."""

    def test_loop(self, registry, lifecycle, script_logger):
        graph = load_graph(GRAPHS_DIR / "loop.json", registry)

        with Engine(graph.nodes) as engine:
            lifecycle.start()
            engine.execute_all_sync()

        assert script_logger.texts == [f"Iteration {i}" for i in range(1, 6)] + ["Loop completed"]

    def test_countdown(self, registry, lifecycle, scheduler, script_logger):
        graph = load_graph(GRAPHS_DIR / "countdown.json", registry)

        with Engine(graph.nodes) as engine:
            lifecycle.start()
            engine.execute_all_sync()
            for _ in range(3):
                scheduler.advance(0.5)
                engine.execute_all_sync()
            assert engine.is_idle
            assert engine.errors == []

        assert script_logger.texts == ["T-minus 2", "T-minus 1", "T-minus 0", "Liftoff!"]
        assert script_logger.records[-1] == ("warning", "Liftoff!")
        assert graph.get_variable("remaining").value == 0
