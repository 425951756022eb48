""" Addresses into the execution context: steps.<nodeId>.<relativePath> """

import re
from typing import Optional

DEFAULT_DATA_PATH = "result.data"
DEFAULT_EXISTS_PATH = "result"

# Both the legacy "$.steps.X.Y" and the current "steps.X.Y" forms are accepted.
_NODE_ID_RE = re.compile(r"(?:\$\.)?steps\.([^.]+)")
_PATH_RE = re.compile(r"(?:\$\.)?steps\.[^.]+\.(.+)")


def build_path(node_id: str, relative_path: str) -> str:
    """
    Combine a node id and a path inside that node's result.

    >>> build_path("step1", "result.data")
    'steps.step1.result.data'
    """
    return f"steps.{node_id}.{relative_path}"


def parse_node_id(path: Optional[str]) -> str:
    """Return the node id of a step address, or "" when the string is not one."""
    if not path:
        return ""
    match = _NODE_ID_RE.search(path)
    return match.group(1) if match else ""


def parse_path(path: Optional[str]) -> str:
    """Return the part after steps.<nodeId>., or "" when there is none."""
    if not path:
        return ""
    match = _PATH_RE.search(path)
    return match.group(1) if match else ""


def split_path(path: Optional[str], default: str = DEFAULT_DATA_PATH):
    """
    Split a step address into (node_id, relative_path).

    A missing relative path falls back to `default`, the same way the edge
    editor fills in "result.data" for a bare node reference.
    """
    return parse_node_id(path), parse_path(path) or default
