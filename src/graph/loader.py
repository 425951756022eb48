""" Load an editor graph from YAML. """

from typing import Any, Dict

import yaml
from pydantic import ValidationError

from ..conditions.codec import condition_label
from ..conditions.models import from_wire, is_default
from ..workflow.schema import RepeatConfig
from .models import GraphEdge, GraphNode, Position, WorkflowGraph


def load_graph(yaml_text: str) -> WorkflowGraph:
    """
    Load a WorkflowGraph from a YAML string.

    nodes:
      - id: get_title
        block: { name: get-text, selector: "h1" }
        repeat: { count: 3 }
    edges:
      - { from: get_title, to: done, when: { exists: steps.get_title.result } }
      - { from: get_title, to: retry, label: onFailure }
    """
    data = yaml.safe_load(yaml_text)
    if not isinstance(data, dict):
        raise ValueError("Graph YAML must be a mapping")

    # basic validation
    for key in ["nodes", "edges"]:
        if key not in data:
            raise ValueError(f"Missing required top-level field: {key}")

    graph = WorkflowGraph()
    for node_data in data.get("nodes") or []:
        graph = graph.add_node(_node(node_data))

    for index, edge_data in enumerate(data.get("edges") or []):
        graph = graph.add_edge(_edge(edge_data, index))

    return graph


def _node(node_data: Dict[str, Any]) -> GraphNode:
    if "id" not in node_data:
        raise ValueError(f"Node without id: {node_data}")
    repeat = None
    if node_data.get("repeat"):
        try:
            repeat = RepeatConfig.model_validate(node_data["repeat"])
        except ValidationError as e:
            raise ValueError(f"Invalid repeat on node {node_data['id']}: {e}")
    position = node_data.get("position")
    return GraphNode(
        id=str(node_data["id"]),
        block=node_data.get("block", {}),
        repeat=repeat,
        title=node_data.get("title"),
        position=Position(position["x"], position["y"]) if position else None,
        kind=node_data.get("kind", "block"),
    )


def _edge(edge_data: Dict[str, Any], index: int) -> GraphEdge:
    if "from" not in edge_data or "to" not in edge_data:
        raise ValueError(f"Edge without from/to: {edge_data}")
    src = edge_data["from"]
    dest = edge_data["to"]
    when = from_wire(edge_data.get("when"))
    default = edge_data.get("default", is_default(when))
    label = edge_data.get("label") or ("default" if default else condition_label(when))
    return GraphEdge(
        id=edge_data.get("id") or f"{src}-{dest}-{index}",
        source=src,
        target=dest,
        when=when,
        is_default=default,
        label=label,
    )
