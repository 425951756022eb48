""" Example: compile an editor graph to a workflow and export it as JSON. """
from pathlib import Path

from src.graph.compiler import compile_graph
from src.graph.loader import load_graph
from src.graph.subtree import graph_subtree
from src.workflow.exchange import save_workflow_file


GRAPH_YAML = """
nodes:
  - id: open
    block: { name: navigate, url: "https://shop.example.com/orders" }
  - id: next_page
    title: Page through orders
    block: { name: click, selector: "a.next" }
    repeat: { count: 5, scope: subtree, subtreeEnd: save }
  - id: read_rows
    block: { name: get-all-text, selector: "tr.order" }
  - id: save
    block: { name: save-assets }
edges:
  - { from: open, to: next_page }
  - { from: next_page, to: read_rows }
  - { from: read_rows, to: save, when: { exists: steps.read_rows.result.data } }
"""


def main():
    graph = load_graph(GRAPH_YAML)

    preview = graph_subtree(graph, "next_page")
    print("Repeated per page:", ", ".join(f"{n} ({preview.role(n)})" for n in preview.node_ids))

    workflow = compile_graph(graph, target_url="https://shop.example.com")
    out_path = Path("orders_workflow.json")
    save_workflow_file(out_path, workflow, "Collect order rows")
    print(f"Wrote workflow to: {out_path}")


if __name__ == '__main__':
    main()
