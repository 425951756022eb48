""" Data models for the editable workflow graph """

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from ..conditions.codec import EdgeCondition, condition_label
from ..conditions.models import Default, WhenCondition, is_default
from ..workflow.schema import RepeatConfig

NAMED_TRANSITIONS = ("onSuccess", "onFailure")


@dataclass(frozen=True)
class Position:
    x: float
    y: float


@dataclass(frozen=True)
class GraphNode:
    id: str
    block: Mapping[str, Any] = field(default_factory=dict)
    repeat: Optional[RepeatConfig] = None
    title: Optional[str] = None  # alias shown on the canvas
    position: Optional[Position] = None
    kind: str = "block"  # "group" nodes only frame other nodes and are never compiled

    @property
    def is_group(self) -> bool:
        return self.kind == "group"


@dataclass(frozen=True)
class GraphEdge:
    id: str
    source: str
    target: str
    when: WhenCondition = field(default_factory=Default)
    is_default: bool = False
    label: str = ""

    @property
    def transition(self) -> str:
        """
        Field of the compiled step this edge ends up in.

        Only the is_default flag decides; a non-default edge is a switch case
        even when its predicate decodes to Default.
        """
        if not self.is_default:
            return "switch"
        if self.label in NAMED_TRANSITIONS:
            return self.label
        return "next"


@dataclass(frozen=True)
class WorkflowGraph:
    """
    Immutable snapshot of the editor graph.

    Nodes and edges keep insertion order; every mutator returns a new graph.
    """
    nodes: Tuple[GraphNode, ...] = ()
    edges: Tuple[GraphEdge, ...] = ()

    def node(self, node_id: str) -> Optional[GraphNode]:
        return next((n for n in self.nodes if n.id == node_id), None)

    def has_node(self, node_id: str) -> bool:
        return self.node(node_id) is not None

    def outgoing(self, node_id: str) -> Tuple[GraphEdge, ...]:
        return tuple(e for e in self.edges if e.source == node_id)

    def incoming(self, node_id: str) -> Tuple[GraphEdge, ...]:
        return tuple(e for e in self.edges if e.target == node_id)

    def add_node(self, node: GraphNode) -> "WorkflowGraph":
        if self.has_node(node.id):
            raise ValueError(f"Duplicate node id: {node.id}")
        return replace(self, nodes=self.nodes + (node,))

    def update_node(self, node_id: str, **changes) -> "WorkflowGraph":
        if not self.has_node(node_id):
            raise KeyError(node_id)
        nodes = tuple(replace(n, **changes) if n.id == node_id else n for n in self.nodes)
        return replace(self, nodes=nodes)

    def remove_node(self, node_id: str) -> "WorkflowGraph":
        return replace(
            self,
            nodes=tuple(n for n in self.nodes if n.id != node_id),
            edges=tuple(e for e in self.edges if node_id not in (e.source, e.target)),
        )

    def add_edge(self, edge: GraphEdge) -> "WorkflowGraph":
        if any(e.id == edge.id for e in self.edges):
            raise ValueError(f"Duplicate edge id: {edge.id}")
        if not self.has_node(edge.source) or not self.has_node(edge.target):
            raise ValueError(f"Edge references unknown node: {edge.source} -> {edge.target}")
        return replace(self, edges=self.edges + (edge,))

    def remove_edge(self, edge_id: str) -> "WorkflowGraph":
        return replace(self, edges=tuple(e for e in self.edges if e.id != edge_id))

    def connect(
        self,
        source: str,
        target: str,
        condition: Optional[EdgeCondition] = None,
        *,
        label: Optional[str] = None,
        edge_id: Optional[str] = None,
    ) -> "WorkflowGraph":
        """
        Add an edge from a saved edge condition. Without one the edge is a
        plain default transition; pass label="onSuccess"/"onFailure" to make
        it a named one.
        """
        if condition is None:
            condition = EdgeCondition(Default(), True, "default")
        edge = GraphEdge(
            id=edge_id or f"e-{source}-{target}-{len(self.edges)}",
            source=source,
            target=target,
            when=condition.when,
            is_default=condition.is_default,
            label=label if label is not None else condition.label,
        )
        return self.add_edge(edge)

    def positions(self) -> Dict[str, Position]:
        return {n.id: n.position for n in self.nodes if n.position is not None}


def edge_for(edge_id: str, source: str, target: str, when: WhenCondition) -> GraphEdge:
    """Edge for a predicate, with its display label filled in."""
    return GraphEdge(
        id=edge_id,
        source=source,
        target=target,
        when=when,
        is_default=is_default(when),
        label=condition_label(when),
    )
