# -*- coding: utf-8 -*-
"""
Tests for Registry and profiles

Tests cover:
- Profile folding and dependency injection
- Registry validation (all problems listed)
- Type compatibility and conversion
- Palette lookup
"""
import pytest

from src.scriptgraph.core.definition import (
    NodeDefinition, NodeKind, data, flow, make_event_definition, make_flow_definition,
)
from src.scriptgraph.core.registry import Registry, create_registry
from src.scriptgraph.core.validation import validate_registry
from src.scriptgraph.errors import DefinitionError, GraphIntegrityError
from src.scriptgraph.profiles import core_profile, state_profile, vectors_profile
from src.scriptgraph.profiles.core.debug import LoguruScriptLogger
from src.scriptgraph.profiles.vectors import Vec2


class TestProfiles:
    """Tests for building registries from profiles."""

    def test_default_registry_is_valid(self, registry):
        assert validate_registry(registry) == []

    def test_profiles_add_types_and_nodes(self, registry):
        for name in ("boolean", "integer", "float", "string", "vec2", "vec3"):
            assert registry.has_value_type(name)
        for type_name in ("Start", "Log", "Branch", "Delay", "MakeVec3", "GetStateFloat", "StateChanged"):
            assert registry.find_definition(type_name) is not None

    def test_registry_is_immutable(self):
        empty = Registry()
        extended = core_profile(empty)
        assert len(empty.nodes) == 0
        assert len(extended.nodes) > 0

    def test_profile_order_enforced(self):
        """vectors needs float from core."""
        with pytest.raises(DefinitionError, match="requires value type 'float'"):
            create_registry([vectors_profile])

    def test_state_profile_requires_core(self):
        with pytest.raises(DefinitionError) as exc_info:
            create_registry([state_profile])
        assert len(exc_info.value.errors) == 4

    def test_default_dependencies(self):
        registry = create_registry([core_profile])
        assert isinstance(registry.dependency("logger"), LoguruScriptLogger)

    def test_host_dependencies_override_defaults(self, registry, script_logger):
        assert registry.dependency("logger") is script_logger

    def test_missing_dependency(self):
        with pytest.raises(KeyError):
            Registry().dependency("logger")

    def test_each_registry_gets_its_own_defaults(self):
        first = create_registry([core_profile])
        second = create_registry([core_profile])
        assert first.dependency("lifecycle") is not second.dependency("lifecycle")


class TestRegistryValidation:
    """validate_registry lists every problem."""

    def _noop(self, ctx):
        ctx.commit("exec_out")

    def test_duplicate_node_type(self):
        duplicate = make_flow_definition("Log", self._noop)
        registry = create_registry([core_profile], validate=False).extend(nodes=[duplicate])
        assert "Duplicate node type: Log" in validate_registry(registry)

    def test_duplicate_value_type(self):
        from src.scriptgraph.profiles.core.values import INTEGER
        registry = create_registry([core_profile], validate=False).extend(values=[INTEGER])
        assert "Duplicate value type: integer" in validate_registry(registry)

    def test_unknown_socket_type_and_bad_shape(self):
        broken_flow = make_flow_definition(
            "Broken", self._noop,
            inputs=(data("value", "matrix"),),
        )
        registry = create_registry([core_profile], validate=False).extend(nodes=[broken_flow])
        problems = validate_registry(registry)
        assert "Broken: input 'value' has unknown value type 'matrix'" in problems
        assert "Broken: flow nodes need at least one input flow socket" in problems

    def test_event_with_input_flow(self):
        bad_event = make_event_definition("BadEvent", lambda ctx: None, inputs=(flow(),))
        registry = create_registry([core_profile], validate=False).extend(nodes=[bad_event])
        assert "BadEvent: event nodes cannot have input flow sockets" in validate_registry(registry)

    def test_function_with_flow_socket(self):
        bad = NodeDefinition(
            "BadFunction", NodeKind.FUNCTION,
            outputs=(flow("exec"),),
            exec=lambda ctx: None,
        )
        registry = create_registry([core_profile], validate=False).extend(nodes=[bad])
        assert "BadFunction: function nodes cannot have flow sockets" in validate_registry(registry)

    def test_missing_behaviour(self):
        bad = NodeDefinition("NoBehaviour", NodeKind.FLOW, inputs=(flow(),))
        registry = create_registry([core_profile], validate=False).extend(nodes=[bad])
        assert "NoBehaviour: flow definition has no triggered behaviour" in validate_registry(registry)

    def test_default_outside_choices(self):
        bad = make_flow_definition(
            "BadChoice", self._noop,
            inputs=(flow(), data("mode", "string", "c", choices=("a", "b"))),
        )
        registry = create_registry([core_profile], validate=False).extend(nodes=[bad])
        assert "BadChoice: input 'mode' default 'c' not in choices" in validate_registry(registry)

    def test_create_registry_raises_with_all_problems(self):
        def broken_profile(registry):
            return registry.extend(nodes=[
                make_flow_definition("Log", self._noop),
                NodeDefinition("NoBehaviour", NodeKind.FLOW, inputs=(flow(),)),
            ])

        with pytest.raises(DefinitionError) as exc_info:
            create_registry([core_profile, broken_profile])
        assert len(exc_info.value.errors) == 2


class TestTypeCompatibility:
    """Tests for can_connect and convert."""

    def test_flow_only_to_flow(self, registry):
        assert registry.can_connect("flow", "flow")
        assert not registry.can_connect("flow", "string")
        assert not registry.can_connect("string", "flow")

    def test_same_type(self, registry):
        assert registry.can_connect("vec2", "vec2")

    def test_conversions_are_one_directional(self, registry):
        assert registry.can_connect("integer", "float")
        assert not registry.can_connect("float", "integer")
        assert not registry.can_connect("string", "boolean")

    def test_convert(self, registry):
        assert registry.convert(3, "integer", "float") == 3.0
        assert registry.convert(True, "boolean", "string") == "true"
        assert registry.convert(2.5, "float", "string") == "2.5"

    def test_convert_same_type_clones(self, registry):
        vector = Vec2(1.0, 2.0)
        copy = registry.convert(vector, "vec2", "vec2")
        assert copy == vector
        assert copy is not vector

    def test_convert_without_conversion(self, registry):
        with pytest.raises(GraphIntegrityError):
            registry.convert("x", "string", "integer")

    def test_unknown_value_type(self, registry):
        with pytest.raises(GraphIntegrityError, match="Unknown value type: matrix"):
            registry.get_value_type("matrix")


class TestPalette:
    """Tests for palette lookup."""

    def test_categories(self, registry):
        categories = registry.get_categories()
        assert "Flow Control" in categories
        assert "Events" in categories
        assert any(d.type_name == "Branch" for d in categories["Flow Control"])

    def test_search(self, registry):
        names = [d.type_name for d in registry.search_nodes("loop")]
        assert "ForLoop" in names

    def test_search_is_case_insensitive(self, registry):
        assert registry.search_nodes("BRANCH")
