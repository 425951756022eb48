"""
Structural checks for a compiled workflow document.

The first violation is reported as one message with a dotted field path;
errors are never aggregated and a failing document is rejected as a whole.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from ..errors import WorkflowValidationError
from ..graph.subtree import resolve_subtree
from .schema import WorkflowSpec

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    success: bool
    data: Optional[WorkflowSpec] = None
    error: Optional[str] = None
    path: Optional[str] = None


def validate_workflow(raw: Union[WorkflowSpec, Mapping[str, Any]]) -> WorkflowSpec:
    """Validate a workflow document, raising WorkflowValidationError on the first problem."""
    spec = raw if isinstance(raw, WorkflowSpec) else _parse(raw)
    try:
        _check_references(spec)
    except WorkflowValidationError as e:
        logger.warning("Rejected workflow at %s: %s", e.path or "<root>", e.message)
        raise
    logger.debug("Workflow accepted: %d steps, start=%s", len(spec.steps), spec.start)
    return spec


def check_workflow(raw: Union[WorkflowSpec, Mapping[str, Any]]) -> ValidationResult:
    """Same checks as validate_workflow, reported as a result instead of an exception."""
    try:
        return ValidationResult(success=True, data=validate_workflow(raw))
    except WorkflowValidationError as e:
        return ValidationResult(success=False, error=e.message, path=e.path)


def _parse(raw: Any) -> WorkflowSpec:
    if not isinstance(raw, Mapping):
        raise WorkflowValidationError("Workflow document must be a mapping")
    try:
        return WorkflowSpec.model_validate(raw)
    except ValidationError as e:
        error = schema_error(e)
        logger.warning("Rejected workflow: %s", error.message)
        raise error


def schema_error(e: ValidationError) -> WorkflowValidationError:
    """First pydantic error as a WorkflowValidationError with a dotted path."""
    first = e.errors()[0]
    path = ".".join(str(p) for p in first["loc"])
    return WorkflowValidationError(f"Invalid workflow format: {path} - {first['msg']}", path)


def _check_references(spec: WorkflowSpec) -> None:
    if not spec.steps:
        raise WorkflowValidationError("Workflow needs at least one step", "steps")

    step_ids = set()
    for i, step in enumerate(spec.steps):
        if step.id in step_ids:
            raise WorkflowValidationError(f"Duplicate step id '{step.id}'", f"steps.{i}.id")
        step_ids.add(step.id)

    if spec.start not in step_ids:
        raise WorkflowValidationError(f"Start step '{spec.start}' not found", "start")

    for i, step in enumerate(spec.steps):
        for field_path, target in step.targets():
            if target not in step_ids:
                raise WorkflowValidationError(
                    f"Step '{step.id}' {field_path} reference '{target}' not found",
                    f"steps.{i}.{field_path}",
                )

    transitions = [(step.id, target) for step in spec.steps for _, target in step.targets()]
    for i, step in enumerate(spec.steps):
        repeat = step.repeat
        if repeat is None or repeat.repeat_scope != "subtree":
            continue
        path = f"steps.{i}.repeat.subtreeEnd"
        end = repeat.subtree_end
        if end not in step_ids:
            raise WorkflowValidationError(f"Step '{step.id}' subtreeEnd '{end}' not found", path)
        if end == step.id:
            raise WorkflowValidationError(f"Step '{step.id}' subtreeEnd cannot be the step itself", path)
        if not resolve_subtree(transitions, step.id, end).closed:
            raise WorkflowValidationError(
                f"Step '{step.id}' subtreeEnd '{end}' is not reachable from the step", path
            )
