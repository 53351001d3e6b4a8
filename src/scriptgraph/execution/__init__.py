# -*- coding: utf-8 -*-
"""
Runtime: engine, fibers, timers and lifecycle triggers.
"""
from .fiber import Fiber, resolve_inputs
from .engine import AsyncOperation, Engine
from .scheduling import AsyncioScheduler, ManualScheduler, Scheduler, ThreadingScheduler, TimerHandle
from .lifecycle import ManualLifecycleEventEmitter

__all__ = [
    "Fiber",
    "resolve_inputs",
    "AsyncOperation",
    "Engine",
    "Scheduler",
    "ManualScheduler",
    "AsyncioScheduler",
    "ThreadingScheduler",
    "TimerHandle",
    "ManualLifecycleEventEmitter",
]
