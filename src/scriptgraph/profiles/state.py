# -*- coding: utf-8 -*-
"""
State Profile - Read and write host state by path.

The host injects a "state" dependency implementing StateAccessor. Graphs
address values with dotted paths (e.g. "player.health"); what a path means
is up to the host. DictStateStore is an in-memory implementation.

Nodes, per core data type <Type> (Boolean, Integer, Float, String):
    GetState<Type>   FUNCTION  config path -> value
    SetState<Type>   FLOW      config path, input value
    StateChanged     EVENT     config path, fires when the value changes
"""
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List
from loguru import logger

from ..core.definition import (
    ConfigSpec, NodeDefinition, NodeMetadata, data, flow,
    make_event_definition, make_flow_definition, make_function_definition,
)
from ..core.registry import Registry

STATE_COLOR = "#20B2AA"
STATE_TYPES = ("boolean", "integer", "float", "string")
PATH_CONFIG = (ConfigSpec("path", "string", ""),)

Listener = Callable[[str, Any], None]


class StateAccessor(ABC):
    """Host state addressed by path."""

    @abstractmethod
    def get_value(self, path: str) -> Any:
        """Return the value at path (KeyError if missing)."""
        pass

    @abstractmethod
    def set_value(self, path: str, value: Any) -> None:
        pass

    @abstractmethod
    def subscribe(self, path: str, listener: Listener) -> Callable[[], None]:
        """Call listener(path, value) on change; returns an unsubscribe callable."""
        pass


class DictStateStore(StateAccessor):
    """
    In-memory state keyed by path.

    Listeners run only when a set actually changes the stored value.
    """

    def __init__(self, initial: Dict[str, Any] = None):
        self._values: Dict[str, Any] = dict(initial or {})
        self._listeners: Dict[str, List[Listener]] = {}

    def get_value(self, path: str) -> Any:
        if path not in self._values:
            raise KeyError(f"No state at path: {path}")
        return self._values[path]

    def set_value(self, path: str, value: Any) -> None:
        changed = path not in self._values or self._values[path] != value
        self._values[path] = value
        if not changed:
            return
        logger.debug(f"State {path} = {value!r}")
        for listener in list(self._listeners.get(path, [])):
            listener(path, value)

    def subscribe(self, path: str, listener: Listener) -> Callable[[], None]:
        listeners = self._listeners.setdefault(path, [])
        listeners.append(listener)

        def unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> Dict[str, Any]:
        return dict(self._values)


def _meta(display_name: str, description: str, category: str = "State") -> NodeMetadata:
    return NodeMetadata(category=category, display_name=display_name, description=description, color=STATE_COLOR)


def _state_nodes(value_type: str) -> List[NodeDefinition]:
    suffix = value_type.capitalize()

    def get_state(ctx) -> None:
        value_type_obj = ctx.graph.registry.get_value_type(value_type)
        ctx.write("value", value_type_obj.clone(ctx.dependency("state").get_value(ctx.configuration["path"])))

    def set_state(ctx) -> None:
        ctx.dependency("state").set_value(ctx.configuration["path"], ctx.read("value"))
        ctx.commit("exec_out")

    return [
        make_function_definition(
            f"GetState{suffix}", get_state,
            outputs=(data("value", value_type),),
            configuration=PATH_CONFIG,
            metadata=_meta(f"Get State ({suffix})", f"Read a {value_type} from host state"),
        ),
        make_flow_definition(
            f"SetState{suffix}", set_state,
            inputs=(flow(), data("value", value_type)),
            configuration=PATH_CONFIG,
            metadata=_meta(f"Set State ({suffix})", f"Write a {value_type} to host state"),
        ),
    ]


def _state_changed_init(ctx) -> None:
    unsubscribe = ctx.dependency("state").subscribe(
        ctx.configuration["path"], lambda path, value: ctx.commit("exec")
    )
    ctx.on_dispose(unsubscribe)


STATE_CHANGED = make_event_definition(
    "StateChanged",
    _state_changed_init,
    configuration=PATH_CONFIG,
    metadata=_meta("On State Changed", "Runs whenever the value at path changes", category="Events"),
)

ALL_NODES = [node for value_type in STATE_TYPES for node in _state_nodes(value_type)] + [STATE_CHANGED]


def state_profile(registry: Registry) -> Registry:
    """Add host-state nodes; the host must supply a "state" dependency."""
    registry.require_values(*STATE_TYPES, profile="state")
    return registry.extend(nodes=ALL_NODES, default_dependencies={"state": DictStateStore()})
