# -*- coding: utf-8 -*-
"""
Tests for NodeGraph editing

Tests cover:
- Node creation from definitions and type names
- Connect checks (existence, direction, type gate, duplicates)
- Reconnect policy for linked data inputs (replace / reject)
- Variables and custom events
"""
import pytest

from src.scriptgraph.core.definition import NodeKind, SocketSpec
from src.scriptgraph.core.graph import NodeGraph
from src.scriptgraph.core.node import EventNode, FlowNode, FunctionNode, AsyncNode
from src.scriptgraph.core.serialization import write_graph_to_document
from src.scriptgraph.errors import GraphIntegrityError


# =============================================================================
# Nodes
# =============================================================================

class TestNodeManagement:
    """Tests for adding and removing nodes."""

    def test_add_node_by_type_name(self, graph):
        """Node should be built from the registered definition."""
        node = graph.add_node("Log", node_id="log-1", position=(10, 20))
        assert node.id == "log-1"
        assert node.type_name == "Log"
        assert node.position == (10.0, 20.0)
        assert graph.get_node("log-1") is node

    def test_node_class_follows_kind(self, graph):
        assert isinstance(graph.add_node("Start"), EventNode)
        assert isinstance(graph.add_node("Branch"), FlowNode)
        assert isinstance(graph.add_node("Add"), FunctionNode)
        assert isinstance(graph.add_node("Delay"), AsyncNode)

    def test_sockets_created_with_defaults(self, graph):
        node = graph.add_node("ForLoop")
        assert [s.name for s in node.inputs] == ["exec", "first_index", "last_index"]
        assert node.get_input_socket("last_index").value == 10
        assert [s.name for s in node.flow_outputs] == ["loop_body", "completed"]

    def test_generated_ids_are_unique(self, graph):
        a = graph.add_node("Log")
        b = graph.add_node("Log")
        assert a.id != b.id

    def test_duplicate_id_rejected(self, graph):
        graph.add_node("Log", node_id="same")
        with pytest.raises(GraphIntegrityError):
            graph.add_node("Log", node_id="same")

    def test_unknown_type_rejected(self, graph):
        with pytest.raises(GraphIntegrityError, match="Unknown node type"):
            graph.add_node("NoSuchNode")

    def test_unknown_configuration_rejected(self, graph):
        with pytest.raises(GraphIntegrityError):
            graph.add_node("Sequence", configuration={"bogus": 1})

    def test_configuration_shapes_sockets(self, graph):
        """Sequence output count comes from configuration."""
        node = graph.add_node("Sequence", configuration={"num_outputs": 2})
        assert [s.name for s in node.flow_outputs] == ["then_0", "then_1"]

    def test_remove_node_removes_links(self, graph):
        start = graph.add_node("Start")
        log = graph.add_node("Log")
        graph.connect(start.id, "exec", log.id, "exec")

        graph.remove_node(log.id)

        assert graph.links == []
        assert start.get_output_socket("exec").links == []

    def test_find_event_nodes(self, graph):
        start = graph.add_node("Start")
        graph.add_node("Log")
        update = graph.add_node("Update")
        assert graph.find_event_nodes() == [start, update]


# =============================================================================
# Links
# =============================================================================

class TestConnect:
    """Tests for link creation checks."""

    def test_connect_flow(self, graph):
        start = graph.add_node("Start")
        log = graph.add_node("Log")
        link = graph.connect(start.id, "exec", log.id, "exec")

        assert link.is_resolved
        assert link.target_socket is log.get_input_socket("exec")
        assert start.get_output_socket("exec").links == [link]
        assert log.get_input_socket("exec").incoming == [link]

    def test_missing_node(self, graph):
        log = graph.add_node("Log")
        with pytest.raises(GraphIntegrityError, match="Source node not found"):
            graph.connect("ghost", "exec", log.id, "exec")

    def test_wrong_direction(self, graph):
        a = graph.add_node("Log")
        b = graph.add_node("Log")
        with pytest.raises(GraphIntegrityError, match="is an input, not an output"):
            graph.connect(a.id, "text", b.id, "text")

    def test_flow_to_data_rejected(self, graph):
        start = graph.add_node("Start")
        log = graph.add_node("Log")
        with pytest.raises(GraphIntegrityError, match="Incompatible types"):
            graph.connect(start.id, "exec", log.id, "text")

    def test_unconvertible_types_rejected(self, graph):
        """string -> integer has no conversion."""
        text = graph.add_node("StringUpper")
        add = graph.add_node("AddInteger")
        with pytest.raises(GraphIntegrityError):
            graph.connect(text.id, "result", add.id, "a")
        assert graph.links == []

    def test_registered_conversion_allowed(self, graph):
        """integer -> float is an explicit conversion."""
        add_int = graph.add_node("AddInteger")
        add = graph.add_node("Add")
        graph.connect(add_int.id, "result", add.id, "a")
        assert len(graph.links) == 1

    def test_duplicate_link_rejected(self, graph):
        start = graph.add_node("Start")
        log = graph.add_node("Log")
        graph.connect(start.id, "exec", log.id, "exec")
        with pytest.raises(GraphIntegrityError, match="already exists"):
            graph.connect(start.id, "exec", log.id, "exec")

    def test_flow_input_accepts_many_links(self, graph):
        """Execution paths may merge into one flow input."""
        a = graph.add_node("Start")
        b = graph.add_node("End")
        log = graph.add_node("Log")
        graph.connect(a.id, "exec", log.id, "exec")
        graph.connect(b.id, "exec", log.id, "exec")
        assert len(log.get_input_socket("exec").incoming) == 2

    def test_flow_output_fans_out(self, graph):
        start = graph.add_node("Start")
        first = graph.add_node("Log")
        second = graph.add_node("Log")
        graph.connect(start.id, "exec", first.id, "exec")
        graph.connect(start.id, "exec", second.id, "exec")
        assert len(start.get_output_socket("exec").links) == 2

    def test_links_in_creation_order(self, graph):
        start = graph.add_node("Start")
        logs = [graph.add_node("Log") for _ in range(3)]
        for log in logs:
            graph.connect(start.id, "exec", log.id, "exec")
        assert [l.target_node_id for l in graph.links] == [log.id for log in logs]


class TestReconnectPolicy:
    """A data input has one source; reconnecting replaces or rejects."""

    def _two_sources(self, graph):
        first = graph.add_node("StringUpper")
        second = graph.add_node("StringLower")
        log = graph.add_node("Log")
        return first, second, log

    def test_replace_by_default(self, graph):
        first, second, log = self._two_sources(graph)
        graph.connect(first.id, "result", log.id, "text")
        new_link = graph.connect(second.id, "result", log.id, "text")

        assert log.get_input_socket("text").incoming == [new_link]
        assert first.get_output_socket("result").links == []
        assert graph.links == [new_link]

    def test_reject_when_requested(self, graph):
        first, second, log = self._two_sources(graph)
        old = graph.connect(first.id, "result", log.id, "text")
        with pytest.raises(GraphIntegrityError, match="already linked"):
            graph.connect(second.id, "result", log.id, "text", replace_existing=False)
        assert graph.links == [old]

    def test_graph_wide_reject_policy(self, registry):
        graph = NodeGraph("Strict", registry, replace_existing_links=False)
        first, second, log = self._two_sources(graph)
        graph.connect(first.id, "result", log.id, "text")
        with pytest.raises(GraphIntegrityError):
            graph.connect(second.id, "result", log.id, "text")

    def test_failed_connect_keeps_existing_link(self, graph):
        """A type error must not drop the link already in place."""
        first, _, log = self._two_sources(graph)
        old = graph.connect(first.id, "result", log.id, "text")
        vec = graph.add_node("MakeVec2")
        with pytest.raises(GraphIntegrityError):
            graph.connect(vec.id, "result", log.id, "text")
        assert graph.links == [old]


class TestDisconnect:
    """Tests for link removal."""

    def test_disconnect(self, graph):
        start = graph.add_node("Start")
        log = graph.add_node("Log")
        link = graph.connect(start.id, "exec", log.id, "exec")

        assert graph.disconnect(link) is True
        assert graph.disconnect(link) is False
        assert log.get_input_socket("exec").incoming == []

    def test_disconnect_input(self, graph):
        a = graph.add_node("Start")
        b = graph.add_node("End")
        log = graph.add_node("Log")
        graph.connect(a.id, "exec", log.id, "exec")
        graph.connect(b.id, "exec", log.id, "exec")

        assert graph.disconnect_input(log.id, "exec") == 2
        assert graph.links == []


# =============================================================================
# Variables and custom events
# =============================================================================

class TestVariables:
    """Tests for graph variables."""

    def test_declare_with_default(self, graph):
        variable = graph.declare_variable("count", "integer")
        assert variable.value == 0
        assert variable.value_type_name == "integer"

    def test_duplicate_variable_rejected(self, graph):
        graph.declare_variable("count", "integer")
        with pytest.raises(GraphIntegrityError):
            graph.declare_variable("count", "float")

    def test_unknown_type_rejected(self, graph):
        with pytest.raises(GraphIntegrityError, match="Unknown value type"):
            graph.declare_variable("v", "quaternion")

    def test_set_variable_declares_when_typed(self, graph):
        variable = graph.set_variable("name", "Ada", "string")
        assert variable.initial_value == "Ada"

    def test_set_variable_type_mismatch(self, graph):
        graph.declare_variable("count", "integer")
        with pytest.raises(GraphIntegrityError):
            graph.set_variable("count", 1.5, "float")

    def test_set_variable_rejects_mistyped_value(self, graph):
        variable = graph.declare_variable("count", "integer", 3)

        with pytest.raises(GraphIntegrityError, match="cannot hold"):
            graph.set_variable("count", "abc")

        assert variable.value == 3
        assert variable.initial_value == 3
        document = write_graph_to_document(graph)
        assert document["variables"] == [{"name": "count", "value_type": "integer", "initial_value": 3}]

    def test_declare_rejects_mistyped_initial_value(self, graph):
        with pytest.raises(GraphIntegrityError):
            graph.declare_variable("pos", "vec2", "up")
        assert graph.get_variable("pos") is None

    def test_values_normalized_to_type(self, graph):
        variable = graph.declare_variable("speed", "float", 2)
        assert variable.value == 2.0
        assert isinstance(variable.value, float)

    def test_set_undeclared_without_type(self, graph):
        with pytest.raises(GraphIntegrityError):
            graph.set_variable("missing", 1)

    def test_on_changed_only_on_change(self, graph):
        variable = graph.declare_variable("count", "integer", 1)
        seen = []
        variable.on_changed.connect(seen.append)

        variable.set(1)
        variable.set(2)
        variable.set(2)

        assert seen == [2]

    def test_vector_variable_is_copied(self, graph):
        from src.scriptgraph.profiles.vectors import Vec2
        source = Vec2(1.0, 2.0)
        variable = graph.declare_variable("pos", "vec2", source)
        source.x = 50.0
        fetched = variable.get()
        fetched.y = 50.0
        assert variable.value == Vec2(1.0, 2.0)

    def test_reset(self, graph):
        variable = graph.declare_variable("count", "integer", 5)
        variable.set(9)
        variable.reset()
        assert variable.value == 5


class TestCustomEvents:
    """Tests for custom event declarations."""

    def test_declare_from_mapping(self, graph):
        event = graph.declare_custom_event("hit", {"damage": "float", "source": "string"})
        assert [p.name for p in event.parameters] == ["damage", "source"]
        assert event.parameters[0].default == 0.0

    def test_flow_parameter_rejected(self, graph):
        with pytest.raises(GraphIntegrityError):
            graph.declare_custom_event("bad", [SocketSpec("go")])

    def test_duplicate_rejected(self, graph):
        graph.declare_custom_event("hit")
        with pytest.raises(GraphIntegrityError):
            graph.declare_custom_event("hit")

    def test_trigger_fills_defaults(self, graph):
        event = graph.declare_custom_event("hit", {"damage": "float", "source": "string"})
        payloads = []
        event.on_triggered.connect(payloads.append)

        event.trigger({"damage": 3.0})

        assert payloads == [{"damage": 3.0, "source": ""}]

    def test_event_sockets_follow_declaration(self, graph):
        graph.declare_custom_event("hit", {"damage": "float"})
        listener = graph.add_node("CustomEvent", configuration={"event_name": "hit"})
        caller = graph.add_node("CallEvent", configuration={"event_name": "hit"})

        assert listener.kind == NodeKind.EVENT
        assert [s.name for s in listener.outputs] == ["exec", "damage"]
        assert [s.name for s in caller.inputs] == ["exec", "damage"]

    def test_clear(self, graph):
        graph.declare_variable("count", "integer")
        graph.declare_custom_event("hit")
        start = graph.add_node("Start")
        log = graph.add_node("Log")
        graph.connect(start.id, "exec", log.id, "exec")

        graph.clear()

        assert graph.nodes == {}
        assert graph.links == []
        assert graph.variables == {}
        assert graph.custom_events == {}
