""" Export and import of workflow documents (JSON or YAML). """

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from ..config import get_settings
from ..errors import WorkflowValidationError
from .schema import ExportMetadata, WorkflowExport, WorkflowSpec, to_document
from .validator import schema_error, validate_workflow

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    workflow: WorkflowSpec
    metadata: Optional[ExportMetadata] = None


def export_workflow(
    workflow: Union[WorkflowSpec, Mapping[str, Any]],
    description: str = "",
    *,
    exported_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Wrap a workflow with export metadata:
    {workflow, metadata: {description, exportedAt, version}}.
    The workflow is validated first.
    """
    spec = validate_workflow(workflow)
    exported_at = exported_at or datetime.now(timezone.utc)
    metadata = ExportMetadata(
        description=description,
        exported_at=exported_at.isoformat().replace("+00:00", "Z"),
        version=get_settings().export_version,
    )
    return to_document(WorkflowExport(workflow=spec, metadata=metadata))


def dumps_export(workflow, description: str = "", **kwargs) -> str:
    return json.dumps(export_workflow(workflow, description, **kwargs), indent=2, ensure_ascii=False)


def import_workflow(data: Union[str, bytes, Mapping[str, Any]]) -> ImportResult:
    """
    Read a workflow in wrapped ({workflow, metadata}) or bare form.

    `data` may be a mapping or JSON / YAML text. Raises
    WorkflowValidationError with the first problem found.
    """
    if isinstance(data, (str, bytes)):
        data = _parse_text(data)
    if not isinstance(data, Mapping):
        raise WorkflowValidationError("Workflow document must be a mapping")

    if "workflow" in data and "metadata" in data:
        try:
            envelope = WorkflowExport.model_validate(data)
        except ValidationError as e:
            raise schema_error(e)
        workflow = validate_workflow(envelope.workflow)
        logger.info("Imported workflow with metadata (exported %s)", envelope.metadata.exported_at)
        return ImportResult(workflow=workflow, metadata=envelope.metadata)

    return ImportResult(workflow=validate_workflow(data))


def _parse_text(text: Union[str, bytes]) -> Any:
    # YAML is a superset of JSON, so one parser covers both formats.
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise WorkflowValidationError(f"Cannot parse workflow file: {e}")


def load_workflow_file(path: Union[str, Path]) -> ImportResult:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise WorkflowValidationError(f"Cannot read workflow file {path}: {e}")
    return import_workflow(text)


def save_workflow_file(
    path: Union[str, Path],
    workflow: Union[WorkflowSpec, Mapping[str, Any]],
    description: str = "",
    *,
    exported_at: Optional[datetime] = None,
) -> None:
    """Write an export to .json, or to .yaml / .yml."""
    path = Path(path)
    data = export_workflow(workflow, description, exported_at=exported_at)
    if path.suffix in (".yaml", ".yml"):
        text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    else:
        text = json.dumps(data, indent=2, ensure_ascii=False)
    path.write_text(text, encoding="utf-8")
    logger.info("Wrote workflow to %s", path)
