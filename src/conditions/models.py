""" Branch predicate AST (WhenCondition) and its wire mapping """

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from ..errors import UnknownConditionKindError


@dataclass(frozen=True)
class Default:
    """No predicate: the edge is taken when nothing else matches."""


@dataclass(frozen=True)
class Expr:
    expr: str


@dataclass(frozen=True)
class Equals:
    left: str
    right: Any = ""


@dataclass(frozen=True)
class Exists:
    path: str


@dataclass(frozen=True)
class Regex:
    value: str
    pattern: str = ""


@dataclass(frozen=True)
class Contains:
    value: str
    search: str = ""


@dataclass(frozen=True)
class And:
    children: Tuple["WhenCondition", ...] = ()


@dataclass(frozen=True)
class Or:
    children: Tuple["WhenCondition", ...] = ()


WhenCondition = Union[Default, Expr, Equals, Exists, Regex, Contains, And, Or]

# Order in which leaf fields are tested when a wire document sets more than one.
LEAF_PRECEDENCE = ("equals", "exists", "expr", "regex", "contains")


def condition_kind(condition: WhenCondition) -> str:
    """Name of the arm a condition belongs to."""
    if isinstance(condition, Default):
        return "default"
    if isinstance(condition, Expr):
        return "expr"
    if isinstance(condition, Equals):
        return "equals"
    if isinstance(condition, Exists):
        return "exists"
    if isinstance(condition, Regex):
        return "regex"
    if isinstance(condition, Contains):
        return "contains"
    if isinstance(condition, And):
        return "and"
    if isinstance(condition, Or):
        return "or"
    raise UnknownConditionKindError(f"Unknown condition type: {type(condition).__name__}")


def is_default(condition: Optional[WhenCondition]) -> bool:
    return condition is None or isinstance(condition, Default)


def from_wire(data: Optional[Mapping[str, Any]]) -> WhenCondition:
    """
    Decode a wire WhenCondition.

    Composite conditions win (`and` before `or`). Otherwise the first leaf
    field set in LEAF_PRECEDENCE decides the kind; anything else is Default.
    """
    if not data:
        return Default()
    if not isinstance(data, Mapping):
        raise TypeError(f"WhenCondition must be a mapping, got {type(data).__name__}")

    if data.get("and") is not None:
        return And(tuple(from_wire(child) for child in data["and"]))
    if data.get("or") is not None:
        return Or(tuple(from_wire(child) for child in data["or"]))

    for kind in LEAF_PRECEDENCE:
        if _is_set(kind, data.get(kind)):
            return _leaf_from_wire(kind, data[kind])
    return Default()


def _is_set(kind: str, value: Any) -> bool:
    # String-valued kinds count as unset when empty; object-valued ones when absent.
    if kind in ("exists", "expr"):
        return bool(value)
    return value is not None


def _leaf_from_wire(kind: str, payload: Any) -> WhenCondition:
    if kind in ("equals", "regex", "contains") and not isinstance(payload, Mapping):
        raise TypeError(f"'{kind}' condition must be a mapping, got {type(payload).__name__}")
    if kind == "equals":
        right = payload.get("right")
        return Equals(left=payload.get("left") or "", right="" if right is None else right)
    if kind == "exists":
        return Exists(path=payload)
    if kind == "expr":
        return Expr(expr=payload)
    if kind == "regex":
        return Regex(value=payload.get("value") or "", pattern=payload.get("pattern") or "")
    if kind == "contains":
        return Contains(value=payload.get("value") or "", search=payload.get("search") or "")
    raise UnknownConditionKindError(f"Unknown condition type: {kind}")


def to_wire(condition: Optional[WhenCondition]) -> Dict[str, Any]:
    """Encode a condition to the wire shape. Default encodes to {}."""
    if condition is None or isinstance(condition, Default):
        return {}
    if isinstance(condition, Expr):
        return {"expr": condition.expr}
    if isinstance(condition, Equals):
        return {"equals": {"left": condition.left, "right": condition.right}}
    if isinstance(condition, Exists):
        return {"exists": condition.path}
    if isinstance(condition, Regex):
        return {"regex": {"value": condition.value, "pattern": condition.pattern}}
    if isinstance(condition, Contains):
        return {"contains": {"value": condition.value, "search": condition.search}}
    if isinstance(condition, And):
        return {"and": [to_wire(child) for child in condition.children]}
    if isinstance(condition, Or):
        return {"or": [to_wire(child) for child in condition.children]}
    raise UnknownConditionKindError(f"Unknown condition type: {type(condition).__name__}")
