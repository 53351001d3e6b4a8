import pytest
from typing import List, Tuple

from src.scriptgraph.core.graph import NodeGraph
from src.scriptgraph.core.registry import create_registry
from src.scriptgraph.execution.lifecycle import ManualLifecycleEventEmitter
from src.scriptgraph.execution.scheduling import ManualScheduler
from src.scriptgraph.profiles import DictStateStore, default_profiles
from src.scriptgraph.profiles.core.debug import ScriptLogger


class ListLogger(ScriptLogger):
    """Collects Log node output for assertions."""

    def __init__(self):
        self.records: List[Tuple[str, str]] = []

    def log(self, severity: str, text: str) -> None:
        self.records.append((severity, text))

    @property
    def texts(self) -> List[str]:
        return [text for _, text in self.records]


@pytest.fixture
def script_logger():
    return ListLogger()


@pytest.fixture
def lifecycle():
    return ManualLifecycleEventEmitter()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def state_store():
    return DictStateStore()


@pytest.fixture
def registry(script_logger, lifecycle, scheduler, state_store):
    """Default profiles with every host service replaced by a test double."""
    return create_registry(
        default_profiles(),
        dependencies={
            "logger": script_logger,
            "lifecycle": lifecycle,
            "scheduler": scheduler,
            "state": state_store,
        },
    )


@pytest.fixture
def graph(registry):
    return NodeGraph("Test", registry)
