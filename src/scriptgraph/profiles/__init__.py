# -*- coding: utf-8 -*-
"""
Profiles - Bundles of value types, nodes and default dependencies.

Each profile is a function Registry -> Registry. Apply them in dependency
order with create_registry():

    registry = create_registry(default_profiles(), dependencies={"logger": my_logger})
"""
from typing import List

from ..core.registry import Profile
from .core import core_profile
from .state import DictStateStore, StateAccessor, state_profile
from .vectors import Vec2, Vec3, vectors_profile


def default_profiles() -> List[Profile]:
    """Core, vectors and state profiles, in order."""
    return [core_profile, vectors_profile, state_profile]


__all__ = [
    "core_profile",
    "vectors_profile",
    "state_profile",
    "default_profiles",
    "DictStateStore",
    "StateAccessor",
    "Vec2",
    "Vec3",
]
