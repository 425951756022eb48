"""Tests for graph -> workflow compilation."""

import pytest
from src.conditions.models import Equals, Exists, Expr
from src.errors import AmbiguousTransitionError, CompileError, DanglingEdgeError, EmptyGraphError
from src.graph.compiler import compile_graph
from src.graph.loader import load_graph
from src.graph.models import GraphEdge, GraphNode, WorkflowGraph
from src.workflow.validator import validate_workflow


BRANCHING_YAML = """
nodes:
  - id: login
    block: { name: click, selector: "#login" }
  - id: check
    block: { name: get-text, selector: ".status" }
  - id: approved
    block: { name: noop }
  - id: rejected
    block: { name: noop }
  - id: pending
    block: { name: noop }
  - id: fallback
    block: { name: noop }
edges:
  - { from: login, to: check }
  - { from: check, to: approved, when: { equals: { left: steps.check.result.data, right: approved } } }
  - { from: check, to: rejected, when: { exists: steps.check.result.error } }
  - { from: check, to: pending, when: { expr: "vars.retries > 3" } }
  - { from: check, to: fallback }
"""


def test_switch_cases_follow_edge_order():
    """Test that conditional edges compile to switch entries in creation order."""
    workflow = compile_graph(load_graph(BRANCHING_YAML))
    check = workflow.step("check")

    assert [case.next for case in check.switch] == ["approved", "rejected", "pending"]
    assert [case.condition for case in check.switch] == [
        Equals("steps.check.result.data", "approved"),
        Exists("steps.check.result.error"),
        Expr("vars.retries > 3"),
    ]
    assert check.next == "fallback"


def test_compiled_steps_and_start():
    """Test one step per node and entry-node start."""
    workflow = compile_graph(load_graph(BRANCHING_YAML))

    assert [s.id for s in workflow.steps] == ["login", "check", "approved", "rejected", "pending", "fallback"]
    assert workflow.start == "login"
    assert workflow.version == "1.0"
    assert workflow.step("login").next == "check"
    assert workflow.step("login").switch is None
    assert workflow.step("approved").next is None


def test_compiled_workflow_validates():
    """Test that a compiled graph passes structural validation."""
    workflow = compile_graph(load_graph(BRANCHING_YAML))
    assert validate_workflow(workflow) is workflow


def test_named_success_and_failure_edges():
    """Test onSuccess/onFailure labels on default edges."""
    graph = load_graph("""
nodes:
  - { id: a, block: {} }
  - { id: b, block: {} }
  - { id: c, block: {} }
  - { id: d, block: {} }
edges:
  - { from: a, to: b, label: onSuccess }
  - { from: a, to: c, label: onFailure }
  - { from: a, to: d }
""")
    step = compile_graph(graph).step("a")

    assert step.on_success == "b"
    assert step.on_failure == "c"
    assert step.next == "d"
    assert step.switch is None


def test_two_default_edges_are_ambiguous():
    """Test that a node cannot have two plain default edges."""
    graph = load_graph("""
nodes:
  - { id: a, block: {} }
  - { id: b, block: {} }
  - { id: c, block: {} }
edges:
  - { from: a, to: b }
  - { from: a, to: c }
""")
    with pytest.raises(AmbiguousTransitionError):
        compile_graph(graph)


def test_explicit_start_and_settings():
    """Test explicit start, target url and vars."""
    graph = load_graph(BRANCHING_YAML)
    vars = {"retries": 0}
    workflow = compile_graph(graph, start="check", target_url="https://example.com", vars=vars, version="2.0")

    assert workflow.start == "check"
    assert workflow.target_url == "https://example.com"
    assert workflow.vars == {"retries": 0}
    assert workflow.vars is not vars
    assert workflow.version == "2.0"


def test_unknown_start_is_rejected():
    """Test that the explicit start must be a node."""
    with pytest.raises(CompileError):
        compile_graph(load_graph(BRANCHING_YAML), start="nope")


def test_start_falls_back_to_first_node_in_a_cycle():
    """Test start selection when every node has an incoming edge."""
    graph = load_graph("""
nodes:
  - { id: a, block: {} }
  - { id: b, block: {} }
edges:
  - { from: a, to: b }
  - { from: b, to: a }
""")
    assert compile_graph(graph).start == "a"


def test_empty_graph():
    """Test that an empty graph is rejected."""
    with pytest.raises(EmptyGraphError):
        compile_graph(WorkflowGraph())


def test_group_nodes_are_skipped():
    """Test that frame nodes do not become steps."""
    graph = WorkflowGraph(nodes=(GraphNode("frame", kind="group"), GraphNode("a", {"name": "noop"})))
    workflow = compile_graph(graph)

    assert [s.id for s in workflow.steps] == ["a"]
    assert workflow.start == "a"


def test_dangling_edge():
    """Test that an edge into a missing node fails compilation."""
    graph = WorkflowGraph(
        nodes=(GraphNode("a"),),
        edges=(GraphEdge("e1", "a", "ghost"),),
    )
    with pytest.raises(DanglingEdgeError):
        compile_graph(graph)


def test_block_and_repeat_are_copied():
    """Test that the compiled workflow does not share the graph's block dicts."""
    graph = load_graph("""
nodes:
  - id: a
    title: Collect
    block: { name: get-text, options: { trim: true } }
    repeat: { forEach: steps.list.result.data, continueOnError: true }
edges: []
""")
    step = compile_graph(graph).step("a")
    step.block["options"]["trim"] = False

    node = graph.node("a")
    assert node.block["options"]["trim"] is True
    assert step.title == "Collect"
    assert step.repeat.for_each == "steps.list.result.data"
    assert step.repeat is not node.repeat


def test_loader_requires_nodes_and_edges():
    """Test top-level shape checks of the graph loader."""
    with pytest.raises(ValueError, match="edges"):
        load_graph("nodes: []")
    with pytest.raises(ValueError, match="Invalid repeat"):
        load_graph("""
nodes:
  - { id: a, block: {}, repeat: { count: 0 } }
edges: []
""")


def test_loader_requires_edge_endpoints():
    """Test that an edge needs both from and to."""
    with pytest.raises(ValueError, match="Edge without from/to"):
        load_graph("""
nodes:
  - { id: a, block: {} }
edges:
  - { from: a }
""")
