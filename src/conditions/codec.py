"""
Codec between the edge editor's form state and the WhenCondition AST.

Each predicate kind has three arms: parse (AST -> form), build (form -> AST)
and label (short display text). Composite AND/OR conditions hold a list of
leaf rows; every row is parsed and built with the same leaf arms.
"""

import math
from dataclasses import dataclass, field
from typing import Any, List, Optional

from ..config import get_settings
from ..errors import UnknownConditionKindError
from .models import (
    And,
    Contains,
    Default,
    Equals,
    Exists,
    Expr,
    Or,
    Regex,
    WhenCondition,
    condition_kind,
)
from .paths import DEFAULT_DATA_PATH, DEFAULT_EXISTS_PATH, build_path, split_path


MULTIPLE_KINDS = ("and", "or")
VALUE_TYPES = ("string", "number", "boolean")


@dataclass
class EqualsForm:
    node_id: str = ""
    path: str = DEFAULT_DATA_PATH
    value: Any = ""
    value_type: str = "string"


@dataclass
class ExistsForm:
    node_id: str = ""
    path: str = DEFAULT_EXISTS_PATH


@dataclass
class ContainsForm:
    node_id: str = ""
    path: str = DEFAULT_DATA_PATH
    search: str = ""


@dataclass
class RegexForm:
    node_id: str = ""
    path: str = DEFAULT_DATA_PATH
    pattern: str = ""


@dataclass
class ExprForm:
    expr: str = ""


@dataclass
class LeafRow:
    """ One child of an AND/OR condition as edited in a table row. """
    id: str
    kind: str = "equals"
    node_id: str = ""
    path: str = DEFAULT_DATA_PATH
    value: Any = ""
    value_type: str = "string"


@dataclass
class EdgeForm:
    """ Editable state of an edge condition. Only the sub-form of the selected kind is used. """
    mode: str = "single"  # single | multiple
    single_kind: str = "default"
    multiple_kind: str = "and"
    equals: EqualsForm = field(default_factory=EqualsForm)
    exists: ExistsForm = field(default_factory=ExistsForm)
    contains: ContainsForm = field(default_factory=ContainsForm)
    regex: RegexForm = field(default_factory=RegexForm)
    expr: ExprForm = field(default_factory=ExprForm)
    rows: List[LeafRow] = field(default_factory=list)


@dataclass(frozen=True)
class EdgeCondition:
    """ What an edge stores once the form is saved. """
    when: WhenCondition
    is_default: bool
    label: str


# -------------------------
# LITERALS
# -------------------------

def infer_value_type(value: Any) -> str:
    """Value type the editor shows for an equals literal."""
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return "string"


def coerce_value(value: Any, value_type: str) -> Any:
    """
    Normalize an equals literal to `value_type`.

    This mirrors what the editor does when the type selector changes; it never
    rejects a value. A value_type outside VALUE_TYPES is a programming error.
    """
    if value_type not in VALUE_TYPES:
        raise UnknownConditionKindError(f"Unknown value type: {value_type}")
    if value_type == "boolean":
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() == "true" or value == "1"
        return bool(value)

    if value_type == "number":
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, (int, float)):
            return 0 if isinstance(value, float) and math.isnan(value) else value
        try:
            number = float(str(value).strip() or 0)
        except ValueError:
            return 0
        if math.isnan(number):
            return 0
        return int(number) if number.is_integer() else number

    return value if isinstance(value, str) else format_literal(value)


def format_literal(value: Any) -> str:
    """Render a literal the way it is displayed in labels."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# -------------------------
# LABELS
# -------------------------

def condition_label(when: Optional[WhenCondition], max_length: Optional[int] = None) -> str:
    """
    Short label drawn on an edge.

    Expressions longer than max_length (settings.label_max_length when not
    given) are cut and end in "...".
    """
    if when is None:
        return "condition"
    kind = condition_kind(when)
    if kind == "default":
        return "default"
    if kind == "equals":
        return f"== {format_literal(when.right)}"
    if kind == "contains":
        return f"contains {when.search}"
    if kind == "exists":
        return "exists"
    if kind == "regex":
        return f"~= {when.pattern}"
    if kind == "expr":
        expr = when.expr
        if max_length is None:
            max_length = get_settings().label_max_length
        return expr[:max_length] + "..." if len(expr) > max_length else expr
    if kind == "and":
        return f"AND ({len(when.children)})"
    return f"OR ({len(when.children)})"


# -------------------------
# SINGLE CONDITIONS
# -------------------------

def _parse_single(kind: str, when: WhenCondition, form: EdgeForm) -> None:
    if kind == "default":
        return
    if kind == "equals":
        node_id, path = split_path(when.left)
        form.equals = EqualsForm(node_id, path, when.right, infer_value_type(when.right))
    elif kind == "exists":
        node_id, path = split_path(when.path, DEFAULT_EXISTS_PATH)
        form.exists = ExistsForm(node_id, path)
    elif kind == "expr":
        form.expr = ExprForm(when.expr)
    elif kind == "regex":
        node_id, path = split_path(when.value)
        form.regex = RegexForm(node_id, path, when.pattern)
    elif kind == "contains":
        node_id, path = split_path(when.value)
        form.contains = ContainsForm(node_id, path, when.search)
    else:
        raise UnknownConditionKindError(f"Unknown condition type: {kind}")


def _build_single(form: EdgeForm) -> WhenCondition:
    kind = form.single_kind
    if kind == "default":
        return Default()
    if kind == "equals":
        data = form.equals
        return Equals(build_path(data.node_id, data.path), coerce_value(data.value, data.value_type))
    if kind == "exists":
        return Exists(build_path(form.exists.node_id, form.exists.path))
    if kind == "expr":
        return Expr(form.expr.expr)
    if kind == "regex":
        return Regex(build_path(form.regex.node_id, form.regex.path), form.regex.pattern)
    if kind == "contains":
        return Contains(build_path(form.contains.node_id, form.contains.path), form.contains.search)
    raise UnknownConditionKindError(f"Unknown condition type: {kind}")


# -------------------------
# LEAF ROWS (AND / OR children)
# -------------------------

def parse_leaf(when: WhenCondition, row_id: str) -> Optional[LeafRow]:
    """Parse one composite child into a row, or None when no row kind fits it."""
    if isinstance(when, Equals):
        node_id, path = split_path(when.left)
        return LeafRow(row_id, "equals", node_id, path, when.right, infer_value_type(when.right))
    if isinstance(when, Exists):
        node_id, path = split_path(when.path, DEFAULT_EXISTS_PATH)
        return LeafRow(row_id, "exists", node_id, path, "")
    if isinstance(when, Regex):
        node_id, path = split_path(when.value)
        return LeafRow(row_id, "regex", node_id, path, when.pattern)
    if isinstance(when, Contains):
        node_id, path = split_path(when.value)
        return LeafRow(row_id, "contains", node_id, path, when.search)
    return None


def build_leaf(row: LeafRow) -> WhenCondition:
    full_path = build_path(row.node_id, row.path)
    if row.kind == "equals":
        return Equals(full_path, coerce_value(row.value, row.value_type))
    if row.kind == "exists":
        return Exists(full_path)
    if row.kind == "regex":
        return Regex(full_path, format_literal(row.value))
    if row.kind == "contains":
        return Contains(full_path, format_literal(row.value))
    raise UnknownConditionKindError(f"Unknown condition type: {row.kind}")


def _parse_rows(children) -> List[LeafRow]:
    rows = []
    for idx, child in enumerate(children):
        row_id = f"sub-{idx}"
        # keep the child count even when a child has no row representation
        rows.append(parse_leaf(child, row_id) or LeafRow(row_id))
    return rows


# -------------------------
# EDGE FORM
# -------------------------

def parse_edge(when: Optional[WhenCondition], is_default: bool = False) -> EdgeForm:
    """Decode a stored edge condition into editable form state."""
    form = EdgeForm()
    if is_default or when is None:
        return form

    kind = condition_kind(when)
    if kind in MULTIPLE_KINDS:
        form.mode = "multiple"
        form.multiple_kind = kind
        form.rows = _parse_rows(when.children)
        return form

    form.single_kind = kind
    _parse_single(kind, when, form)
    return form


def build_edge(form: EdgeForm, max_length: Optional[int] = None) -> EdgeCondition:
    """Encode editable form state into the condition an edge stores."""
    if form.mode == "single":
        if form.single_kind == "default":
            return EdgeCondition(Default(), True, "default")
        when = _build_single(form)
        return EdgeCondition(when, False, condition_label(when, max_length))

    if form.mode != "multiple":
        raise UnknownConditionKindError(f"Unknown condition mode: {form.mode}")

    children = tuple(build_leaf(row) for row in form.rows)
    if form.multiple_kind == "and":
        when = And(children)
    elif form.multiple_kind == "or":
        when = Or(children)
    else:
        raise UnknownConditionKindError(f"Unknown condition type: {form.multiple_kind}")
    return EdgeCondition(when, False, condition_label(when, max_length))
