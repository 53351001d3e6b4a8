# -*- coding: utf-8 -*-
"""
ScriptGraph - Visual scripting execution core.

Graphs of typed nodes connected by links, built from a registry of value
types and node definitions, executed by an engine running fibers.

Usage:
    from src.scriptgraph import Engine, create_registry, default_profiles, load_graph

    registry = create_registry(default_profiles())
    graph = load_graph("graphs/hello.json", registry)

    with Engine(graph.nodes) as engine:
        registry.dependency("lifecycle").start()
        engine.execute_all_sync()
"""
from .errors import (
    DefinitionError,
    GraphIntegrityError,
    NodeRuntimeError,
    ResolutionError,
    ScriptGraphError,
)
from .core import (
    FLOW,
    NodeDefinition,
    NodeGraph,
    NodeKind,
    NodeMetadata,
    Registry,
    ValueType,
    create_registry,
    load_graph,
    read_graph_from_document,
    save_graph,
    validate_graph,
    validate_registry,
    write_graph_to_document,
)
from .execution import (
    AsyncioScheduler,
    Engine,
    ManualLifecycleEventEmitter,
    ManualScheduler,
    ThreadingScheduler,
)
from .profiles import core_profile, default_profiles, state_profile, vectors_profile

__version__ = "0.1.0"

__all__ = [
    "ScriptGraphError",
    "DefinitionError",
    "GraphIntegrityError",
    "NodeRuntimeError",
    "ResolutionError",
    "FLOW",
    "NodeDefinition",
    "NodeGraph",
    "NodeKind",
    "NodeMetadata",
    "Registry",
    "ValueType",
    "create_registry",
    "load_graph",
    "read_graph_from_document",
    "save_graph",
    "validate_graph",
    "validate_registry",
    "write_graph_to_document",
    "Engine",
    "AsyncioScheduler",
    "ManualLifecycleEventEmitter",
    "ManualScheduler",
    "ThreadingScheduler",
    "core_profile",
    "default_profiles",
    "state_profile",
    "vectors_profile",
]
