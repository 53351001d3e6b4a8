# -*- coding: utf-8 -*-
"""
Registry - Catalogue of value types, node definitions and host services.

A registry is immutable. Profiles are plain functions that take a
registry and return an extended copy; the application registry is built
once by folding an ordered list of profiles and then passed explicitly
to graph loading and node creation.

Example:
    def my_profile(registry: Registry) -> Registry:
        registry.require_values("float", profile="my_profile")
        return registry.extend(nodes=[MY_NODE])

    registry = create_registry([core_profile, my_profile])
    graph = NodeGraph("Main", registry)
"""
from types import MappingProxyType
from typing import (
    Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple
)
from loguru import logger

from ..errors import DefinitionError, GraphIntegrityError
from .definition import NodeDefinition
from .values import FLOW, FLOW_VALUE_TYPE, ValueType

Conversion = Callable[[Any], Any]
ConversionTable = Mapping[Tuple[str, str], Conversion]


class Registry:
    """
    Assembled catalogue used to build and run graphs.

    Attributes:
        values: Mapping type name -> ValueType
        nodes: Mapping type name -> NodeDefinition
        conversions: Mapping (source type, target type) -> converter
        dependencies: Mapping service name -> host object
        duplicates: Problems recorded while folding (reported by validation)
    """

    def __init__(
        self,
        values: Optional[Mapping[str, ValueType]] = None,
        nodes: Optional[Mapping[str, NodeDefinition]] = None,
        conversions: Optional[ConversionTable] = None,
        dependencies: Optional[Mapping[str, Any]] = None,
        duplicates: Iterable[str] = (),
    ):
        self._values: Dict[str, ValueType] = dict(values or {})
        self._nodes: Dict[str, NodeDefinition] = dict(nodes or {})
        self._conversions: Dict[Tuple[str, str], Conversion] = dict(conversions or {})
        self._dependencies: Dict[str, Any] = dict(dependencies or {})
        self._duplicates: Tuple[str, ...] = tuple(duplicates)

    @property
    def values(self) -> Mapping[str, ValueType]:
        return MappingProxyType(self._values)

    @property
    def nodes(self) -> Mapping[str, NodeDefinition]:
        return MappingProxyType(self._nodes)

    @property
    def conversions(self) -> ConversionTable:
        return MappingProxyType(self._conversions)

    @property
    def dependencies(self) -> Mapping[str, Any]:
        return MappingProxyType(self._dependencies)

    @property
    def duplicates(self) -> Tuple[str, ...]:
        return self._duplicates

    # =========================================================================
    # Extension (used by profiles)
    # =========================================================================

    def extend(
        self,
        values: Iterable[ValueType] = (),
        nodes: Iterable[NodeDefinition] = (),
        conversions: Optional[ConversionTable] = None,
        dependencies: Optional[Mapping[str, Any]] = None,
        default_dependencies: Optional[Mapping[str, Any]] = None,
    ) -> 'Registry':
        """
        Return a copy of this registry with additional entries.

        Args:
            values: Value types to add
            nodes: Node definitions to add
            conversions: Explicit one-directional conversions to add
            dependencies: Host services (replace existing entries)
            default_dependencies: Host services used only where none is set

        Returns:
            New Registry; this one is left untouched
        """
        duplicates = list(self._duplicates)

        new_values = dict(self._values)
        for value_type in values:
            if value_type.name in new_values or value_type.name == FLOW:
                duplicates.append(f"Duplicate value type: {value_type.name}")
            new_values[value_type.name] = value_type

        new_nodes = dict(self._nodes)
        for definition in nodes:
            if definition.type_name in new_nodes:
                duplicates.append(f"Duplicate node type: {definition.type_name}")
            new_nodes[definition.type_name] = definition

        new_conversions = dict(self._conversions)
        for key, converter in (conversions or {}).items():
            if key in new_conversions:
                duplicates.append(f"Duplicate conversion: {key[0]} -> {key[1]}")
            new_conversions[key] = converter

        new_dependencies = dict(self._dependencies)
        for name, service in (default_dependencies or {}).items():
            new_dependencies.setdefault(name, service)
        new_dependencies.update(dependencies or {})

        return Registry(new_values, new_nodes, new_conversions, new_dependencies, duplicates)

    def require_values(self, *names: str, profile: str = "profile") -> None:
        """
        Assert that value types a profile builds on are already registered.

        Raises:
            DefinitionError: Listing every missing type name
        """
        missing = [name for name in names if not self.has_value_type(name)]
        if missing:
            raise DefinitionError(
                [f"Profile '{profile}' requires value type '{name}'" for name in missing]
            )

    # =========================================================================
    # Lookup
    # =========================================================================

    def has_value_type(self, name: str) -> bool:
        return name == FLOW or name in self._values

    def get_value_type(self, name: str) -> ValueType:
        """
        Get value type by name.

        Raises:
            GraphIntegrityError: If the type is not registered
        """
        if name == FLOW:
            return FLOW_VALUE_TYPE
        value_type = self._values.get(name)
        if value_type is None:
            raise GraphIntegrityError(f"Unknown value type: {name}")
        return value_type

    def find_definition(self, type_name: str) -> Optional[NodeDefinition]:
        return self._nodes.get(type_name)

    def get_definition(self, type_name: str) -> NodeDefinition:
        """
        Get node definition by type name.

        Raises:
            GraphIntegrityError: If the node type is not registered
        """
        definition = self._nodes.get(type_name)
        if definition is None:
            raise GraphIntegrityError(f"Unknown node type: {type_name}")
        return definition

    def dependency(self, name: str) -> Any:
        """
        Get an injected host service.

        Raises:
            KeyError: If no service is registered under name
        """
        if name not in self._dependencies:
            raise KeyError(f"Dependency not registered: {name}")
        return self._dependencies[name]

    # =========================================================================
    # Type compatibility
    # =========================================================================

    def can_connect(self, source_type: str, target_type: str) -> bool:
        """
        Check whether an output of source_type may feed an input of target_type.

        Rules:
        1. Flow connects only to flow
        2. Equal data types connect
        3. Otherwise an explicit conversion must be registered (never chained)
        """
        if source_type == FLOW or target_type == FLOW:
            return source_type == target_type
        if source_type == target_type:
            return True
        return (source_type, target_type) in self._conversions

    def convert(self, value: Any, source_type: str, target_type: str) -> Any:
        """
        Copy a value across a link, converting when the types differ.

        Raises:
            GraphIntegrityError: If no conversion is registered
        """
        if source_type == target_type:
            return self.get_value_type(target_type).clone(value)
        converter = self._conversions.get((source_type, target_type))
        if converter is None:
            raise GraphIntegrityError(f"No conversion from {source_type} to {target_type}")
        return converter(value)

    # =========================================================================
    # Palette
    # =========================================================================

    def get_categories(self) -> Dict[str, List[NodeDefinition]]:
        """
        Get node definitions organized by category.

        Returns:
            Dict mapping category name -> list of definitions
        """
        categories: Dict[str, List[NodeDefinition]] = {}
        for definition in self._nodes.values():
            categories.setdefault(definition.category, []).append(definition)
        return categories

    def search_nodes(self, query: str) -> List[NodeDefinition]:
        """
        Search for node definitions by name or description.

        Args:
            query: Search string (case-insensitive)
        """
        query_lower = query.lower()
        results = []
        for definition in self._nodes.values():
            meta = definition.metadata
            if (query_lower in meta.display_name.lower() or
                    query_lower in meta.description.lower() or
                    query_lower in definition.type_name.lower()):
                results.append(definition)
        return results

    def __repr__(self) -> str:
        return f"<Registry values={len(self._values)} nodes={len(self._nodes)}>"


Profile = Callable[[Registry], Registry]


def create_registry(
    profiles: Iterable[Profile],
    dependencies: Optional[Mapping[str, Any]] = None,
    validate: bool = True,
) -> Registry:
    """
    Build a registry by folding profiles over an empty registry.

    Args:
        profiles: Profiles in dependency order
        dependencies: Host services; override profile defaults
        validate: Run validate_registry and fail on problems

    Returns:
        The assembled Registry

    Raises:
        DefinitionError: A profile's requirement is missing, or validation
            found problems (all of them are listed)
    """
    registry = Registry()
    for profile in profiles:
        registry = profile(registry)
        logger.debug(f"Applied profile {getattr(profile, '__name__', profile)}: {registry}")

    if dependencies:
        registry = registry.extend(dependencies=dependencies)

    if validate:
        from .validation import validate_registry
        errors = validate_registry(registry)
        if errors:
            raise DefinitionError(errors)

    logger.info(
        f"Registry ready with {len(registry.nodes)} node types "
        f"and {len(registry.values)} value types"
    )
    return registry
