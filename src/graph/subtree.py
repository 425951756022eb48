"""
Repeat-scope resolution.

A step whose repeat has scope "subtree" re-executes every node between
itself and the subtreeEnd node on each iteration. This module works out
which nodes those are, both for the editor's live preview and as the
definition of one repetition.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ..errors import UnreachableSubtreeEndError
from .models import GraphEdge, WorkflowGraph

logger = logging.getLogger(__name__)

START = "start"
MIDDLE = "middle"
END_NEIGHBOR = "end-neighbor"

EdgeLike = Union[GraphEdge, Tuple[str, str]]


@dataclass(frozen=True)
class SubtreePreview:
    node_ids: Tuple[str, ...] = ()
    roles: Dict[str, str] = field(default_factory=dict)
    closed: bool = False  # True when the end node was reached

    def role(self, node_id: str) -> Optional[str]:
        return self.roles.get(node_id)

    @property
    def end_neighbors(self) -> Tuple[str, ...]:
        return tuple(n for n in self.node_ids if self.roles[n] == END_NEIGHBOR)


def _adjacency(edges: Iterable[EdgeLike]) -> Dict[str, List[str]]:
    adjacency: Dict[str, List[str]] = {}
    for edge in edges:
        if isinstance(edge, GraphEdge):
            source, target = edge.source, edge.target
        else:
            source, target = edge
        adjacency.setdefault(source, []).append(target)
    return adjacency


def resolve_subtree(edges: Iterable[EdgeLike], start_id: str, end_id: str) -> SubtreePreview:
    """
    Label the nodes one repetition of `start_id` covers, stopping at `end_id`.

    The region is every node reachable from the start that can still reach
    the end without passing through it. Dead-end branches are left out and
    the end node itself is never part of the result.

    If the end is not reachable the preview is not closed: only the start's
    direct successors are labeled and there is no end-neighbor.
    """
    adjacency = _adjacency(edges)

    # forward pass, never expanding the end node
    visited = {start_id}
    discovered: List[str] = []
    end_seen = False
    queue = deque([start_id])
    while queue:
        current = queue.popleft()
        for target in adjacency.get(current, []):
            if target == end_id:
                end_seen = True
                continue
            if target in visited:
                continue
            visited.add(target)
            discovered.append(target)
            queue.append(target)

    if not end_seen:
        logger.debug("Subtree end %s not reachable from %s", end_id, start_id)
        direct = []
        for target in adjacency.get(start_id, []):
            if target not in (start_id, end_id) and target not in direct:
                direct.append(target)
        roles = {start_id: START}
        roles.update((node_id, MIDDLE) for node_id in direct)
        return SubtreePreview(node_ids=(start_id, *direct), roles=roles, closed=False)

    # backward pass: which of the visited nodes lead to the end
    predecessors: Dict[str, List[str]] = {}
    for source in visited:
        for target in adjacency.get(source, []):
            predecessors.setdefault(target, []).append(source)
    leads_to_end = set()
    queue = deque([end_id])
    while queue:
        current = queue.popleft()
        for source in predecessors.get(current, []):
            if source not in leads_to_end:
                leads_to_end.add(source)
                queue.append(source)

    region = [node_id for node_id in discovered if node_id in leads_to_end]
    roles = {start_id: START}
    for node_id in region:
        roles[node_id] = _role(node_id, start_id, end_id, adjacency)

    return SubtreePreview(node_ids=(start_id, *region), roles=roles, closed=True)


def _role(node_id: str, start_id: str, end_id: str, adjacency: Dict[str, List[str]]) -> str:
    # start > end-neighbor > middle
    if node_id == start_id:
        return START
    if end_id in adjacency.get(node_id, []):
        return END_NEIGHBOR
    return MIDDLE


def require_subtree(edges: Iterable[EdgeLike], start_id: str, end_id: str) -> SubtreePreview:
    """Like resolve_subtree, but an unreachable end is an error."""
    preview = resolve_subtree(edges, start_id, end_id)
    if not preview.closed:
        raise UnreachableSubtreeEndError(start_id, end_id)
    return preview


def graph_subtree(graph: WorkflowGraph, node_id: str) -> Optional[SubtreePreview]:
    """Preview for a node's own subtree repeat, or None when it has none."""
    node = graph.node(node_id)
    if node is None or node.repeat is None or node.repeat.repeat_scope != "subtree":
        return None
    return resolve_subtree(graph.edges, node_id, node.repeat.subtree_end)
