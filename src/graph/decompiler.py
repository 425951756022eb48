""" Rebuild an editor graph from a saved workflow. """

import copy
import logging
from typing import Any, Mapping, Optional, Tuple, Union

from ..conditions.codec import condition_label
from ..conditions.models import Default
from ..workflow.schema import WorkflowSpec
from ..workflow.validator import validate_workflow
from .layout import auto_layout
from .models import GraphEdge, GraphNode, Position, WorkflowGraph

logger = logging.getLogger(__name__)

PositionLike = Union[Position, Tuple[float, float], Mapping[str, float]]


def decompile_workflow(
    workflow: Union[WorkflowSpec, Mapping[str, Any]],
    *,
    positions: Optional[Mapping[str, PositionLike]] = None,
) -> WorkflowGraph:
    """
    Convert a workflow document back into nodes and edges.

    Edge ids are derived from (source, target, kind) and are not the ids the
    graph had before it was compiled. Saved `positions` win; nodes without one
    are placed by auto_layout.
    """
    if not isinstance(workflow, WorkflowSpec):
        workflow = validate_workflow(workflow)

    edges = []
    for step in workflow.steps:
        for index, case in enumerate(step.switch or []):
            when = case.condition
            edges.append(GraphEdge(
                id=f"{step.id}-{case.next}-switch-{index}",
                source=step.id,
                target=case.next,
                when=when,
                is_default=False,
                label=condition_label(when),
            ))
        if step.next:
            edges.append(GraphEdge(
                id=f"{step.id}-{step.next}-next",
                source=step.id,
                target=step.next,
                when=Default(),
                is_default=True,
                label="default",
            ))
        if step.on_success:
            edges.append(GraphEdge(
                id=f"{step.id}-{step.on_success}-success",
                source=step.id,
                target=step.on_success,
                when=Default(),
                is_default=True,
                label="onSuccess",
            ))
        if step.on_failure:
            edges.append(GraphEdge(
                id=f"{step.id}-{step.on_failure}-failure",
                source=step.id,
                target=step.on_failure,
                when=Default(),
                is_default=True,
                label="onFailure",
            ))

    saved = {k: _as_position(v) for k, v in (positions or {}).items()}
    step_ids = [step.id for step in workflow.steps]
    missing = [step_id for step_id in step_ids if step_id not in saved]
    layout = auto_layout(step_ids, edges) if missing else {}

    nodes = tuple(
        GraphNode(
            id=step.id,
            block=copy.deepcopy(step.block),
            repeat=step.repeat.model_copy(deep=True) if step.repeat else None,
            title=step.title,
            position=saved.get(step.id) or layout.get(step.id),
        )
        for step in workflow.steps
    )
    logger.info("Decompiled %d steps into %d nodes and %d edges", len(workflow.steps), len(nodes), len(edges))
    return WorkflowGraph(nodes=nodes, edges=tuple(edges))


def _as_position(value: PositionLike) -> Position:
    if isinstance(value, Position):
        return value
    if isinstance(value, Mapping):
        return Position(float(value["x"]), float(value["y"]))
    x, y = value
    return Position(float(x), float(y))
