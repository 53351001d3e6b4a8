# -*- coding: utf-8 -*-
"""
Debug - Script logging routed to the host.

The Log node writes through the "logger" dependency so a host can send
script output wherever it wants. The default implementation writes to
loguru.
"""
from abc import ABC, abstractmethod
from loguru import logger

from ...core.definition import NodeMetadata, data, flow, make_flow_definition

SEVERITIES = ("verbose", "info", "warning", "error")


class ScriptLogger(ABC):
    """Destination for messages produced by Log nodes."""

    @abstractmethod
    def log(self, severity: str, text: str) -> None:
        pass


class LoguruScriptLogger(ScriptLogger):
    """Writes script messages to loguru ("verbose" maps to DEBUG)."""

    _LEVELS = {
        "verbose": "DEBUG",
        "info": "INFO",
        "warning": "WARNING",
        "error": "ERROR",
    }

    def log(self, severity: str, text: str) -> None:
        logger.log(self._LEVELS.get(severity, "INFO"), f"[script] {text}")


def _log(ctx) -> None:
    severity = ctx.read("severity")
    if severity not in SEVERITIES:
        raise ValueError(f"Unknown severity: {severity}")
    ctx.dependency("logger").log(severity, ctx.read("text"))
    ctx.commit("exec_out")


LOG = make_flow_definition(
    "Log",
    _log,
    inputs=(
        flow(),
        data("text", "string", ""),
        data("severity", "string", "info", choices=SEVERITIES),
    ),
    metadata=NodeMetadata(
        category="Debug",
        display_name="Log",
        description="Write a message to the host logger",
        color="#7B68EE",
    ),
)

ALL_NODES = [LOG]
