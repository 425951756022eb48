import ast
import logging
import re
from typing import Any, Mapping, Optional

from ..conditions.models import (
    And,
    Contains,
    Default,
    Equals,
    Exists,
    Expr,
    Or,
    Regex,
    WhenCondition,
    from_wire,
)
from ..errors import UnknownConditionKindError
from .context import ExecutionContext, get_by_path

logger = logging.getLogger(__name__)

_LITERAL_NAMES = {"true": True, "false": False, "null": None, "undefined": None, "None": None}
_STRING_LITERAL = re.compile(r"""('(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")""")


def evaluate_condition(when: Optional[WhenCondition], context: ExecutionContext) -> bool:
    """
    Evaluate a branch predicate against an execution context.

    A missing or default condition is always true. Wire-shaped mappings are
    decoded first.
    """
    if when is None:
        return True
    if isinstance(when, Mapping):
        when = from_wire(when)

    if isinstance(when, Default):
        return True
    if isinstance(when, Equals):
        return get_by_path(context, when.left) == when.right
    if isinstance(when, Exists):
        return get_by_path(context, when.path) is not None
    if isinstance(when, Contains):
        value = get_by_path(context, when.value)
        if isinstance(value, (list, tuple)):
            return any(when.search in _js_str(v) for v in value)
        return when.search in _js_str(value)
    if isinstance(when, Regex):
        try:
            return re.search(when.pattern, _js_str(get_by_path(context, when.value))) is not None
        except re.error as exc:
            logger.warning("Invalid regex %r in condition: %s", when.pattern, exc)
            return False
    if isinstance(when, And):
        return all(evaluate_condition(child, context) for child in when.children)
    if isinstance(when, Or):
        return any(evaluate_condition(child, context) for child in when.children)
    if isinstance(when, Expr):
        return evaluate_expression(when.expr, context)
    raise UnknownConditionKindError(f"Unknown condition type: {type(when).__name__}")


def evaluate_expression(expression: str, context: ExecutionContext) -> bool:
    """
    Evaluate an expression string such as "vars.count > 10 && steps.a.success".

    Only comparisons, boolean operators, literals and dotted/indexed names are
    allowed. Anything else evaluates to False.
    """
    expression = _normalize(expression)
    if expression in ("true", ""):
        return True
    try:
        return bool(_safe_eval(expression, context.as_dict()))
    except (SyntaxError, ValueError, TypeError, KeyError, IndexError) as exc:
        logger.debug("Expression %r evaluated to false: %s", expression, exc)
        return False


def _normalize(expression: str) -> str:
    # odd items are quoted literals and are kept as written
    parts = _STRING_LITERAL.split(expression.strip())
    for i in range(0, len(parts), 2):
        parts[i] = _normalize_operators(parts[i])
    return "".join(parts).strip()


def _normalize_operators(code: str) -> str:
    code = code.replace("===", "==").replace("!==", "!=")
    code = code.replace("&&", " and ").replace("||", " or ")
    # unary "!" but not "!="
    return re.sub(r"!(?!=)", " not ", code)


def _js_str(value: Any) -> str:
    if value is None:
        return "undefined"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _safe_eval(expression: str, scope: Mapping[str, Any]) -> Any:
    node = ast.parse(expression, mode="eval")

    def _eval(node):
        if isinstance(node, ast.Expression):
            return _eval(node.body)

        if isinstance(node, ast.BoolOp):
            if isinstance(node.op, ast.And):
                out = True
                for v in node.values:
                    out = _eval(v)
                    if not out:
                        return out
                return out
            out = False
            for v in node.values:
                out = _eval(v)
                if out:
                    return out
            return out

        if isinstance(node, ast.UnaryOp):
            if isinstance(node.op, ast.Not):
                return not _eval(node.operand)
            if isinstance(node.op, ast.USub):
                return -_eval(node.operand)
            raise ValueError(f"Unsupported operator: {node.op}")

        if isinstance(node, ast.Compare):
            left = _eval(node.left)
            for op, comparator in zip(node.ops, node.comparators):
                right = _eval(comparator)
                if isinstance(op, ast.Eq):      ok = (left == right)
                elif isinstance(op, ast.NotEq): ok = (left != right)
                elif isinstance(op, ast.Lt):    ok = (left < right)
                elif isinstance(op, ast.LtE):   ok = (left <= right)
                elif isinstance(op, ast.Gt):    ok = (left > right)
                elif isinstance(op, ast.GtE):   ok = (left >= right)
                elif isinstance(op, ast.In):    ok = (left in right)
                elif isinstance(op, ast.NotIn): ok = (left not in right)
                else:
                    raise ValueError(f"Unsupported operator: {op}")
                if not ok:
                    return False
                left = right
            return True

        if isinstance(node, ast.Attribute):
            return _lookup(_eval(node.value), node.attr)
        if isinstance(node, ast.Subscript):
            return _lookup(_eval(node.value), _eval(node.slice))
        if isinstance(node, ast.Name):
            if node.id in _LITERAL_NAMES:
                return _LITERAL_NAMES[node.id]
            return scope.get(node.id)
        if isinstance(node, ast.Constant):
            return node.value
        raise ValueError("Unsupported expression")

    return _eval(node)


def _lookup(value: Any, key: Any) -> Any:
    if isinstance(value, Mapping):
        return value.get(key)
    if isinstance(value, (list, tuple)) and isinstance(key, int):
        return value[key] if -len(value) <= key < len(value) else None
    if key == "length" and isinstance(value, (list, tuple, str)):
        return len(value)
    return None
