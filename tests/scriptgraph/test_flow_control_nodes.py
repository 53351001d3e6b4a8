# -*- coding: utf-8 -*-
"""
Tests for Flow Control nodes

Tests cover:
- Branch, Sequence, ForLoop
- DoOnce, FlipFlop, Gate, Counter
"""
import pytest

from src.core.config import RuntimeSettings
from src.scriptgraph.execution.engine import Engine


def _log(graph, text):
    node = graph.add_node("Log")
    node.get_input_socket("text").value = text
    return node


def _run(graph, lifecycle, times=1):
    with Engine(graph.nodes) as engine:
        for _ in range(times):
            lifecycle.start()
            engine.execute_all_sync()
        return list(engine.errors)


class TestBranch:
    """Tests for Branch."""

    @pytest.mark.parametrize("condition,expected", [(True, "yes"), (False, "no")])
    def test_branch(self, graph, lifecycle, script_logger, condition, expected):
        start = graph.add_node("Start")
        branch = graph.add_node("Branch")
        branch.get_input_socket("condition").value = condition
        graph.connect(start.id, "exec", branch.id, "exec")
        graph.connect(branch.id, "true", _log(graph, "yes").id, "exec")
        graph.connect(branch.id, "false", _log(graph, "no").id, "exec")

        _run(graph, lifecycle)

        assert script_logger.texts == [expected]

    def test_branch_on_computed_condition(self, graph, lifecycle, script_logger):
        start = graph.add_node("Start")
        less = graph.add_node("LessInteger")
        less.get_input_socket("a").value = 1
        less.get_input_socket("b").value = 2
        branch = graph.add_node("Branch")
        graph.connect(less.id, "result", branch.id, "condition")
        graph.connect(start.id, "exec", branch.id, "exec")
        graph.connect(branch.id, "true", _log(graph, "less").id, "exec")

        _run(graph, lifecycle)

        assert script_logger.texts == ["less"]


class TestSequence:
    """Tests for Sequence."""

    def test_outputs_fire_in_order_after_each_path(self, graph, lifecycle, script_logger):
        start = graph.add_node("Start")
        seq = graph.add_node("Sequence", configuration={"num_outputs": 3})
        graph.connect(start.id, "exec", seq.id, "exec")
        a, a2 = _log(graph, "a"), _log(graph, "a2")
        graph.connect(seq.id, "then_0", a.id, "exec")
        graph.connect(a.id, "exec_out", a2.id, "exec")
        graph.connect(seq.id, "then_2", _log(graph, "c").id, "exec")

        _run(graph, lifecycle)

        # then_1 has no links and ends immediately
        assert script_logger.texts == ["a", "a2", "c"]

    def test_default_output_count(self, graph):
        seq = graph.add_node("Sequence")
        assert len(seq.flow_outputs) == 4


class TestForLoop:
    """Tests for ForLoop."""

    def test_inclusive_range_then_completed(self, graph, lifecycle, script_logger):
        start = graph.add_node("Start")
        loop = graph.add_node("ForLoop")
        loop.get_input_socket("first_index").value = 2
        loop.get_input_socket("last_index").value = 4
        body = graph.add_node("Log")
        graph.connect(start.id, "exec", loop.id, "exec")
        graph.connect(loop.id, "loop_body", body.id, "exec")
        graph.connect(loop.id, "index", body.id, "text")
        graph.connect(loop.id, "completed", _log(graph, "done").id, "exec")

        _run(graph, lifecycle)

        assert script_logger.texts == ["2", "3", "4", "done"]

    def test_empty_range(self, graph, lifecycle, script_logger):
        start = graph.add_node("Start")
        loop = graph.add_node("ForLoop")
        loop.get_input_socket("first_index").value = 5
        loop.get_input_socket("last_index").value = 1
        graph.connect(start.id, "exec", loop.id, "exec")
        graph.connect(loop.id, "loop_body", _log(graph, "body").id, "exec")
        graph.connect(loop.id, "completed", _log(graph, "done").id, "exec")

        _run(graph, lifecycle)

        assert script_logger.texts == ["done"]

    def test_large_loop_does_not_recurse(self, graph, lifecycle):
        """Listeners unwind iteratively, so long loops are fine."""
        start = graph.add_node("Start")
        loop = graph.add_node("ForLoop")
        loop.get_input_socket("last_index").value = 5000
        counter = graph.add_node("Counter")
        graph.connect(start.id, "exec", loop.id, "exec")
        graph.connect(loop.id, "loop_body", counter.id, "exec")

        errors = _run(graph, lifecycle)

        assert errors == []
        assert counter.state["count"] == 5001

    def test_unlinked_body_respects_step_limit(self, graph, lifecycle):
        """Each iteration counts as a step even when nothing is linked to the body."""
        start = graph.add_node("Start")
        loop = graph.add_node("ForLoop")
        loop.get_input_socket("last_index").value = 10 ** 9
        graph.connect(start.id, "exec", loop.id, "exec")

        with Engine(graph.nodes, RuntimeSettings(max_steps=50)) as engine:
            lifecycle.start()
            assert engine.execute_all_sync() == 50
            assert len(engine.fiber_queue) == 1
            assert engine.execute_all_sync() == 50

        # One loop trigger, then one listener step per iteration
        assert loop.get_output_socket("index").value == 99


class TestStatefulNodes:
    """Tests for DoOnce, FlipFlop, Gate and Counter."""

    def test_do_once(self, graph, lifecycle, script_logger):
        start = graph.add_node("Start")
        once = graph.add_node("DoOnce")
        graph.connect(start.id, "exec", once.id, "exec")
        graph.connect(once.id, "completed", _log(graph, "once").id, "exec")

        errors = _run(graph, lifecycle, times=3)

        assert errors == []
        assert script_logger.texts == ["once"]

    def test_do_once_reset(self, graph, lifecycle, script_logger):
        start = graph.add_node("Start")
        end = graph.add_node("End")
        once = graph.add_node("DoOnce")
        graph.connect(start.id, "exec", once.id, "exec")
        graph.connect(end.id, "exec", once.id, "reset")
        graph.connect(once.id, "completed", _log(graph, "once").id, "exec")

        with Engine(graph.nodes) as engine:
            lifecycle.start()
            lifecycle.start()
            lifecycle.end()
            lifecycle.start()
            engine.execute_all_sync()

        assert script_logger.texts == ["once", "once"]

    def test_do_once_start_closed(self, graph, lifecycle, script_logger):
        start = graph.add_node("Start")
        once = graph.add_node("DoOnce", configuration={"start_closed": True})
        graph.connect(start.id, "exec", once.id, "exec")
        graph.connect(once.id, "completed", _log(graph, "once").id, "exec")

        _run(graph, lifecycle)

        assert script_logger.texts == []

    def test_flip_flop_alternates(self, graph, lifecycle, script_logger):
        start = graph.add_node("Start")
        flip = graph.add_node("FlipFlop")
        graph.connect(start.id, "exec", flip.id, "exec")
        graph.connect(flip.id, "A", _log(graph, "A").id, "exec")
        graph.connect(flip.id, "B", _log(graph, "B").id, "exec")

        _run(graph, lifecycle, times=3)

        assert script_logger.texts == ["A", "B", "A"]
        assert flip.get_output_socket("is_A").value is True

    def test_gate(self, graph, lifecycle, script_logger):
        start = graph.add_node("Start")
        update = graph.add_node("Update")
        end = graph.add_node("End")
        gate = graph.add_node("Gate", configuration={"start_closed": True})
        graph.connect(start.id, "exec", gate.id, "enter")
        graph.connect(update.id, "exec", gate.id, "toggle")
        graph.connect(end.id, "exec", gate.id, "close")
        graph.connect(gate.id, "exit", _log(graph, "through").id, "exec")

        with Engine(graph.nodes) as engine:
            lifecycle.start()       # closed
            lifecycle.tick(0.1)     # toggle -> open
            lifecycle.start()       # passes
            lifecycle.end()         # close
            lifecycle.start()       # blocked
            engine.execute_all_sync()
            assert engine.errors == []

        assert script_logger.texts == ["through"]

    def test_counter(self, graph, lifecycle, script_logger):
        start = graph.add_node("Start")
        end = graph.add_node("End")
        counter = graph.add_node("Counter")
        log = graph.add_node("Log")
        graph.connect(start.id, "exec", counter.id, "exec")
        graph.connect(end.id, "exec", counter.id, "reset")
        graph.connect(counter.id, "exec_out", log.id, "exec")
        graph.connect(counter.id, "count", log.id, "text")

        with Engine(graph.nodes) as engine:
            lifecycle.start()
            lifecycle.start()
            lifecycle.end()
            lifecycle.start()
            engine.execute_all_sync()

        assert script_logger.texts == ["1", "2", "1"]
