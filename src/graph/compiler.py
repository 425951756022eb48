""" Compile an editor graph into a workflow step list. """

import copy
import logging
from typing import Any, Dict, List, Optional

from ..config import get_settings
from ..errors import AmbiguousTransitionError, CompileError, DanglingEdgeError, EmptyGraphError
from ..workflow.schema import StepSpec, SwitchCase, WhenConditionSpec, WorkflowSpec
from .models import GraphEdge, GraphNode, WorkflowGraph

logger = logging.getLogger(__name__)


def compile_graph(
    graph: WorkflowGraph,
    *,
    start: Optional[str] = None,
    target_url: Optional[str] = None,
    vars: Optional[Dict[str, Any]] = None,
    version: Optional[str] = None,
) -> WorkflowSpec:
    """
    Turn a graph snapshot into a WorkflowSpec.

    One step per node (group nodes excluded), in node order. Conditional edges
    become `switch` entries in edge-creation order; a default edge becomes
    `next`, or `onSuccess` / `onFailure` when labelled so. The start step is
    `start` if given, else the first node without incoming edges.

    The result is not validated; see workflow.validator.
    """
    nodes = [n for n in graph.nodes if not n.is_group]
    if not nodes:
        raise EmptyGraphError("Graph has no steps to compile")

    outgoing: Dict[str, List[GraphEdge]] = {n.id: [] for n in nodes}
    incoming = {n.id: 0 for n in nodes}
    for edge in graph.edges:
        if edge.source not in outgoing or edge.target not in outgoing:
            raise DanglingEdgeError(
                f"Edge {edge.id} references unknown node: {edge.source} -> {edge.target}"
            )
        outgoing[edge.source].append(edge)
        incoming[edge.target] += 1

    if start is not None and start not in outgoing:
        raise CompileError(f"Start node '{start}' is not in the graph")
    start_id = start or next((n.id for n in nodes if incoming[n.id] == 0), nodes[0].id)

    steps = [_compile_step(node, outgoing[node.id]) for node in nodes]
    logger.info("Compiled %d steps (start=%s)", len(steps), start_id)

    return WorkflowSpec(
        version=version or get_settings().document_version,
        start=start_id,
        steps=steps,
        target_url=target_url,
        vars=copy.deepcopy(vars) if vars else None,
    )


def _compile_step(node: GraphNode, edges: List[GraphEdge]) -> StepSpec:
    switch: List[SwitchCase] = []
    transitions: Dict[str, GraphEdge] = {}

    for edge in edges:
        kind = edge.transition
        if kind == "switch":
            switch.append(SwitchCase(when=WhenConditionSpec.from_condition(edge.when), next=edge.target))
            continue
        if kind in transitions:
            raise AmbiguousTransitionError(
                f"Node '{node.id}' has more than one default '{kind}' edge: "
                f"{transitions[kind].id}, {edge.id}"
            )
        transitions[kind] = edge

    step = StepSpec(
        id=node.id,
        block=copy.deepcopy(dict(node.block)),
        title=node.title,
        repeat=node.repeat.model_copy(deep=True) if node.repeat else None,
        switch=switch or None,
        next=_target(transitions.get("next")),
        on_success=_target(transitions.get("onSuccess")),
        on_failure=_target(transitions.get("onFailure")),
    )
    logger.debug(
        "Step %s: %d switch case(s), transitions=%s",
        node.id, len(switch), {k: e.target for k, e in transitions.items()},
    )
    return step


def _target(edge: Optional[GraphEdge]) -> Optional[str]:
    return edge.target if edge is not None else None
