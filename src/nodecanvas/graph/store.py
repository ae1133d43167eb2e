"""Load and save a graph as a JSON document in the snapshot wire format."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from nodecanvas.errors import SnapshotError
from nodecanvas.graph.model import Graph


def read_json(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"{path}: invalid JSON ({e})") from e


def load_graph(path: Path) -> Graph:
    data = read_json(path)
    if not isinstance(data, dict):
        raise SnapshotError(f"{path}: expected a JSON object")
    # Persisted projects wrap the graph as {"state": "<json>"}
    if isinstance(data.get("state"), str):
        try:
            data = json.loads(data["state"])
        except json.JSONDecodeError as e:
            raise SnapshotError(f"{path}: invalid embedded state ({e})") from e
    return Graph.from_dict(data)


def save_graph(graph: Graph, path: Path) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(graph.to_dict(), f, indent=2)
        f.write("\n")
