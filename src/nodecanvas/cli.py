"""Command-line interface for nodecanvas.

Works on graph files in the snapshot JSON format:

    python -m nodecanvas compile project.json --preview preview-1 -o out.html
    python -m nodecanvas apply project.json batch.json --anchor chat-1 --write
    python -m nodecanvas reconcile project.json remote.json --write
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from nodecanvas.compiler.preview import PreviewCompiler
from nodecanvas.config import Config, load_config
from nodecanvas.errors import NodeCanvasError
from nodecanvas.graph.locks import permission_for
from nodecanvas.graph.store import load_graph, read_json, save_graph
from nodecanvas.logging import get_logger, log_failure, setup_logging
from nodecanvas.sync.reconciler import reconcile
from nodecanvas.tools.engine import ToolMutationEngine

log = get_logger("cli")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="nodecanvas",
        description="Compile, edit and merge node canvas graphs",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (can be repeated)",
    )
    parser.add_argument(
        "--project",
        type=Path,
        help="Project root for .nodecanvas/config.yaml (default: current directory)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")

    compile_parser = subparsers.add_parser("compile", help="Compile a preview to HTML")
    compile_parser.add_argument("graph", type=Path, help="Graph JSON file")
    compile_parser.add_argument("--preview", required=True, help="Preview node id")
    compile_parser.add_argument("--force", action="store_true", help="Mark as a forced reload")
    compile_parser.add_argument("-o", "--output", type=Path, help="Output file (default: stdout)")

    apply_parser = subparsers.add_parser("apply", help="Apply a batch of tool calls")
    apply_parser.add_argument("graph", type=Path, help="Graph JSON file")
    apply_parser.add_argument("batch", type=Path, help="JSON list of {name, args} tool calls")
    apply_parser.add_argument("--anchor", help="Node the batch is issued from")
    apply_parser.add_argument("--identity", help="Identity that may edit nodes it has locked")
    apply_parser.add_argument("--write", action="store_true", help="Write the result back")

    reconcile_parser = subparsers.add_parser("reconcile", help="Merge a remote snapshot")
    reconcile_parser.add_argument("graph", type=Path, help="Graph JSON file")
    reconcile_parser.add_argument("snapshot", type=Path, help="Snapshot JSON file")
    reconcile_parser.add_argument("--write", action="store_true", help="Write the result back")

    return parser


def _compile(parsed: argparse.Namespace, config: Config) -> int:
    graph = load_graph(parsed.graph)
    compiler = PreviewCompiler(config.compiler)
    result = compiler.compile(parsed.preview, graph.nodes, graph.connections, parsed.force)
    for failure in result.failures:
        print(failure, file=sys.stderr)
    if parsed.output:
        parsed.output.write_text(result.html, encoding="utf-8", errors="replace")
    else:
        sys.stdout.write(result.html)
    return 0


def _apply(parsed: argparse.Namespace, config: Config) -> int:
    graph = load_graph(parsed.graph)
    batch = read_json(parsed.batch)
    if isinstance(batch, dict):
        batch = batch.get("calls", [])
    if not isinstance(batch, list):
        print("Batch must be a JSON list of tool calls", file=sys.stderr)
        return 1

    engine = ToolMutationEngine(
        graph,
        check_permission=permission_for(graph, parsed.identity),
        anchor_node_id=parsed.anchor,
        config=config.tools,
    )
    result = engine.run(batch)
    print(result.transcript)
    if parsed.write:
        save_graph(graph, parsed.graph)
    return 1 if result.errors else 0


def _reconcile(parsed: argparse.Namespace, config: Config) -> int:
    graph = load_graph(parsed.graph)
    report = reconcile(graph, read_json(parsed.snapshot))
    print(f"added: {len(report.added)}, dropped: {len(report.dropped)}")
    if parsed.write:
        save_graph(graph, parsed.graph)
    return 0


def run_cli(args: Sequence[str]) -> int:
    """Run the CLI with the given arguments; returns the exit code."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if not parsed.command:
        parser.print_help()
        return 1

    config = load_config(project_root=parsed.project or Path.cwd())
    if parsed.verbose:
        config.logging.verbose = min(4, 1 + parsed.verbose)
    setup_logging(config.logging)

    handlers = {"compile": _compile, "apply": _apply, "reconcile": _reconcile}
    try:
        return handlers[parsed.command](parsed, config)
    except (NodeCanvasError, OSError) as e:
        log_failure(log, e, "%s failed: %s", parsed.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main() -> None:
    """Main entry point."""
    sys.exit(run_cli(sys.argv[1:]))
