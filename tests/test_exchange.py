"""Tests for workflow export / import."""

import json
from datetime import datetime, timezone

import pytest
import yaml
from src.errors import WorkflowValidationError
from src.workflow.exchange import (
    dumps_export,
    export_workflow,
    import_workflow,
    load_workflow_file,
    save_workflow_file,
)

WORKFLOW = {
    "version": "1.0",
    "start": "a",
    "steps": [
        {"id": "a", "block": {"name": "navigate", "url": "https://example.com"}, "next": "b"},
        {
            "id": "b",
            "block": {"name": "get-text", "selector": "h1"},
            "switch": [{"when": {"contains": {"value": "steps.b.result.data", "search": "Welcome"}}, "next": "a"}],
        },
    ],
}

EXPORTED_AT = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


def test_export_wraps_with_metadata():
    """Test the {workflow, metadata} envelope."""
    data = export_workflow(WORKFLOW, "login flow", exported_at=EXPORTED_AT)

    assert data["workflow"] == WORKFLOW
    assert data["metadata"] == {
        "description": "login flow",
        "exportedAt": "2024-05-01T12:30:00Z",
        "version": "1.0",
    }


def test_export_rejects_invalid_workflow():
    """Test that broken workflows are not exported."""
    with pytest.raises(WorkflowValidationError):
        export_workflow(dict(WORKFLOW, start="ghost"))


def test_import_wrapped_and_bare():
    """Test both accepted document shapes."""
    wrapped = import_workflow(export_workflow(WORKFLOW, exported_at=EXPORTED_AT))
    bare = import_workflow(WORKFLOW)

    assert wrapped.metadata.exported_at == "2024-05-01T12:30:00Z"
    assert wrapped.workflow == bare.workflow
    assert bare.metadata is None


def test_import_json_and_yaml_text():
    """Test that text input is parsed."""
    from_json = import_workflow(dumps_export(WORKFLOW, "x", exported_at=EXPORTED_AT))
    from_yaml = import_workflow(yaml.safe_dump(WORKFLOW))

    assert from_json.metadata.description == "x"
    assert from_yaml.workflow.start == "a"


def test_import_errors():
    """Test rejection of unparsable and malformed input."""
    with pytest.raises(WorkflowValidationError):
        import_workflow("[1, 2")
    with pytest.raises(WorkflowValidationError):
        import_workflow("- just\n- a list\n")

    with pytest.raises(WorkflowValidationError) as exc:
        import_workflow({"workflow": WORKFLOW, "metadata": {"description": "no date"}})
    assert exc.value.path == "metadata.exportedAt"


def test_save_and_load_files(tmp_path):
    """Test JSON and YAML files on disk."""
    json_path = tmp_path / "flow.json"
    yaml_path = tmp_path / "flow.yaml"

    save_workflow_file(json_path, WORKFLOW, "desc", exported_at=EXPORTED_AT)
    save_workflow_file(yaml_path, WORKFLOW, "desc", exported_at=EXPORTED_AT)

    assert json.loads(json_path.read_text())["metadata"]["description"] == "desc"
    assert yaml.safe_load(yaml_path.read_text())["workflow"]["start"] == "a"
    assert load_workflow_file(json_path).workflow == load_workflow_file(yaml_path).workflow


def test_load_missing_file(tmp_path):
    """Test that a missing file is reported as a validation error."""
    with pytest.raises(WorkflowValidationError):
        load_workflow_file(tmp_path / "missing.json")


def test_import_wrapped_envelope_is_validated_as_a_whole():
    """Test that errors inside the envelope carry the full path."""
    broken = dict(WORKFLOW, steps=[{"id": "a"}])
    with pytest.raises(WorkflowValidationError) as exc:
        import_workflow({"workflow": broken, "metadata": {"exportedAt": "2024-05-01T00:00:00Z"}})
    assert exc.value.path == "workflow.steps.0.block"

    with pytest.raises(WorkflowValidationError) as exc:
        import_workflow({
            "workflow": WORKFLOW,
            "metadata": {"exportedAt": "2024-05-01T00:00:00Z"},
            "extra": 1,
        })
    assert exc.value.path == "extra"
