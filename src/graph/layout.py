from collections import deque
from typing import Dict, Iterable, List, Optional, Sequence

from ..config import LayoutSettings, get_settings
from .models import GraphEdge, Position


def auto_layout(
    node_ids: Sequence[str],
    edges: Iterable[GraphEdge],
    settings: Optional[LayoutSettings] = None,
) -> Dict[str, Position]:
    """
    Very simple top-to-bottom layout.

    Entry nodes (no incoming edges) form the first layer; every other node
    sits one layer below the first node that reaches it. Nodes only reachable
    through a cycle get their own layers at the bottom.
    Returns a mapping from node id -> Position.
    """
    settings = settings or get_settings().layout
    known = set(node_ids)
    children: Dict[str, List[str]] = {n: [] for n in node_ids}
    has_parent = set()
    for edge in edges:
        if edge.source in known and edge.target in known and edge.target != edge.source:
            children[edge.source].append(edge.target)
            has_parent.add(edge.target)

    rank: Dict[str, int] = {}
    queue = deque()
    for node_id in node_ids:
        if node_id not in has_parent:
            rank[node_id] = 0
            queue.append(node_id)

    def _drain():
        while queue:
            current = queue.popleft()
            for child in children[current]:
                if child not in rank:
                    rank[child] = rank[current] + 1
                    queue.append(child)

    _drain()
    for node_id in node_ids:
        if node_id not in rank:
            # only entered through a cycle
            rank[node_id] = max(rank.values(), default=-1) + 1
            queue.append(node_id)
            _drain()

    layers: Dict[int, List[str]] = {}
    for node_id in node_ids:
        layers.setdefault(rank[node_id], []).append(node_id)

    positions = {}
    for layer, members in layers.items():
        y = settings.origin_y + layer * settings.rank_gap
        for i, node_id in enumerate(members):
            positions[node_id] = Position(settings.origin_x + i * settings.sibling_gap, y)
    return positions
