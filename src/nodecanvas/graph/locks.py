"""Advisory locks and local interaction state.

Each node is in one state of ``{Unlocked, LockedBy(identity)} x {IDLE,
DRAGGING, EDITING}``. The lock half lives on the node (``locked_by``) and
travels with remote snapshots. The interaction half is local to this
process and decides which fields a remote snapshot may overwrite.

Locks are advisory: every mutation entry point asks ``check_permission``
first, but nothing stops a caller that skips the question.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from nodecanvas.errors import InteractionConflictError

if TYPE_CHECKING:
    from nodecanvas.graph.model import Graph
    from nodecanvas.graph.nodes import Node


@dataclass(frozen=True, slots=True)
class Unlocked:
    pass


@dataclass(frozen=True, slots=True)
class LockedBy:
    identity: str


LockState = Unlocked | LockedBy


class Interaction(Enum):
    """Local gesture in progress on a node. Values match the wire format."""

    IDLE = "idle"
    DRAGGING = "drag"
    EDITING = "edit"


@dataclass(frozen=True, slots=True)
class NodeStatus:
    lock: LockState
    interaction: Interaction


def lock_state_of(node: Node) -> LockState:
    if node.locked_by is None:
        return Unlocked()
    return LockedBy(node.locked_by)


class InteractionTable:
    """Per-node gesture state for this process.

    A gesture can only start from IDLE and always ends back at IDLE.
    """

    def __init__(self) -> None:
        self._states: dict[str, Interaction] = {}

    def get(self, node_id: str) -> Interaction:
        return self._states.get(node_id, Interaction.IDLE)

    def begin(self, node_id: str, interaction: Interaction) -> None:
        if interaction is Interaction.IDLE:
            self.end(node_id)
            return
        current = self.get(node_id)
        if current is not Interaction.IDLE and current is not interaction:
            raise InteractionConflictError(
                f"Node {node_id} is already in {current.value} state"
            )
        self._states[node_id] = interaction

    def end(self, node_id: str) -> None:
        self._states.pop(node_id, None)

    def forget(self, node_id: str) -> None:
        self._states.pop(node_id, None)

    def active(self) -> dict[str, Interaction]:
        return dict(self._states)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._states


def status_of(graph: Graph, node_id: str) -> NodeStatus | None:
    """Combined lock and interaction state of a node, None if it is gone."""
    node = graph.get_node(node_id)
    if node is None:
        return None
    return NodeStatus(lock=lock_state_of(node), interaction=graph.interactions.get(node_id))


def permission_for(graph: Graph, identity: str | None) -> Callable[[str], bool]:
    """Build the ``check_permission(node_id) -> bool`` predicate for a caller.

    A node may be mutated when it exists and is either unlocked or locked
    by ``identity`` itself.
    """

    def check_permission(node_id: str) -> bool:
        node = graph.get_node(node_id)
        if node is None:
            return False
        state = lock_state_of(node)
        if isinstance(state, Unlocked):
            return True
        return identity is not None and state.identity == identity

    return check_permission
