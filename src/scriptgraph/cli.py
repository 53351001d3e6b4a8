#!/usr/bin/env python3
"""
ScriptGraph Runner - Console Application

Loads graph documents with the default profiles and runs, validates or
inspects them from the command line.

Usage:
    python -m src.scriptgraph run graphs/hello.json
    python -m src.scriptgraph run graphs/countdown.json --ticks 60 --tick-seconds 0.016
    python -m src.scriptgraph validate graphs/hello.json
    python -m src.scriptgraph nodes --category "Flow Control"
    python -m src.scriptgraph nodes --search vector
"""
import asyncio
import argparse
from typing import List, Optional, Tuple

from loguru import logger

from src.core.config import ConfigManager, RuntimeSettings
from src.core.logging import setup_logging

from .core.graph import NodeGraph
from .core.registry import Registry, create_registry
from .core.serialization import load_graph
from .core.validation import validate_graph
from .errors import GraphIntegrityError, NodeRuntimeError, ScriptGraphError
from .execution.engine import Engine
from .execution.lifecycle import ManualLifecycleEventEmitter
from .execution.scheduling import AsyncioScheduler
from .profiles import default_profiles


def build_registry() -> Registry:
    """Default profiles with a real-time scheduler and a manual lifecycle."""
    return create_registry(
        default_profiles(),
        dependencies={
            "scheduler": AsyncioScheduler(),
            "lifecycle": ManualLifecycleEventEmitter(),
        },
    )


async def run_graph(
    graph: NodeGraph,
    ticks: int,
    tick_seconds: float,
    settings: RuntimeSettings,
) -> Tuple[int, List[NodeRuntimeError]]:
    """
    Run a loaded graph: Start, a number of ticks, then End.

    Args:
        graph: Graph built against a registry from build_registry()
        ticks: Number of Update ticks to fire
        tick_seconds: Real seconds between ticks (also the tick delta)
        settings: Engine limits

    Returns:
        (steps executed, runtime errors)
    """
    lifecycle = graph.registry.dependency("lifecycle")
    steps = 0

    with Engine(graph.nodes, settings) as engine:
        lifecycle.start()
        steps += engine.execute_all_sync()

        for _ in range(ticks):
            await asyncio.sleep(tick_seconds)
            lifecycle.tick(tick_seconds)
            steps += engine.execute_all_sync()

        # Let pending delays finish before the program ends
        steps += await engine.execute_all_async()
        lifecycle.end()
        steps += await engine.execute_all_async()
        errors = list(engine.errors)

    return steps, errors


def cmd_run(args, config: ConfigManager) -> int:
    settings = config.data.runtime
    if args.max_steps is not None:
        settings = settings.model_copy(update={"max_steps": args.max_steps})

    registry = build_registry()
    graph = load_graph(args.graph, registry, replace_existing_links=settings.replace_existing_links)

    problems = validate_graph(graph)
    if problems:
        _print_problems(args.graph, problems)
        return 1

    print(f"Running '{graph.name}' ({len(graph.nodes)} nodes, {args.ticks} ticks)")
    steps, errors = asyncio.run(run_graph(graph, args.ticks, args.tick_seconds, settings))

    if errors:
        print(f"✗ Finished with {len(errors)} runtime errors after {steps} steps:")
        for error in errors:
            print(f"  - {error}")
        return 1

    print(f"✓ Finished after {steps} steps")
    return 0


def cmd_validate(args, config: ConfigManager) -> int:
    registry = build_registry()
    graph = load_graph(args.graph, registry, replace_existing_links=config.data.runtime.replace_existing_links)

    problems = validate_graph(graph)
    if problems:
        _print_problems(args.graph, problems)
        return 1

    print(f"✓ {args.graph}: {len(graph.nodes)} nodes, {len(graph.links)} links, no problems")
    return 0


def cmd_nodes(args, config: ConfigManager) -> int:
    registry = build_registry()

    if args.search:
        definitions = registry.search_nodes(args.search)
    else:
        definitions = list(registry.nodes.values())
    if args.category:
        definitions = [d for d in definitions if d.category.lower() == args.category.lower()]

    if not definitions:
        print("No matching node types")
        return 1

    by_category = {}
    for definition in definitions:
        by_category.setdefault(definition.category, []).append(definition)

    for category in sorted(by_category):
        print(f"\n{category}")
        print("=" * 50)
        for definition in sorted(by_category[category], key=lambda d: d.type_name):
            print(f"  {definition.type_name:<24} {definition.kind.value:<9} {definition.metadata.description}")

    print(f"\n{len(definitions)} node types")
    return 0


def _print_problems(path: str, problems: List[str]) -> None:
    print(f"✗ {path}: {len(problems)} problems")
    for problem in problems:
        print(f"  - {problem}")


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scriptgraph",
        description="Run and inspect visual script graphs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s run graphs/hello.json
  %(prog)s run graphs/countdown.json --ticks 10 --tick-seconds 0.1
  %(prog)s validate graphs/hello.json
  %(prog)s nodes --search string
        """,
    )
    parser.add_argument("--config", default="scriptgraph.json", help="Settings file (JSON or TOML)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    run_parser = subparsers.add_parser("run", help="Run a graph")
    run_parser.add_argument("graph", help="Graph document (JSON)")
    run_parser.add_argument("--ticks", type=int, default=0, help="Update ticks to fire")
    run_parser.add_argument("--tick-seconds", type=float, default=0.016, help="Seconds per tick")
    run_parser.add_argument("--max-steps", type=int, default=None, help="Override the step limit")

    validate_parser = subparsers.add_parser("validate", help="Check a graph for problems")
    validate_parser.add_argument("graph", help="Graph document (JSON)")

    nodes_parser = subparsers.add_parser("nodes", help="List available node types")
    nodes_parser.add_argument("--category", help="Only this category")
    nodes_parser.add_argument("--search", help="Filter by name or description")

    return parser


COMMANDS = {
    "run": cmd_run,
    "validate": cmd_validate,
    "nodes": cmd_nodes,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    config = ConfigManager(args.config)
    setup_logging(
        debug_mode=args.verbose or config.data.logging.debug_mode,
        log_dir=config.data.logging.log_dir,
    )

    try:
        return COMMANDS[args.command](args, config)
    except GraphIntegrityError as e:
        print(f"✗ Invalid graph: {e}")
        return 1
    except ScriptGraphError as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"✗ Error: {e}")
        return 1
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 130
