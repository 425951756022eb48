"""Tests for the edge form <-> condition codec."""

import pytest
from src.conditions.codec import (
    ContainsForm,
    EdgeForm,
    EqualsForm,
    ExistsForm,
    ExprForm,
    LeafRow,
    RegexForm,
    build_edge,
    coerce_value,
    condition_label,
    infer_value_type,
    parse_edge,
)
from src.conditions.models import And, Contains, Default, Equals, Exists, Expr, Or, Regex
from src.errors import UnknownConditionKindError


def test_default_form_builds_default_edge():
    """Test that the untouched form is a default edge."""
    saved = build_edge(EdgeForm())

    assert saved.when == Default()
    assert saved.is_default is True
    assert saved.label == "default"


def test_build_equals_with_number_type():
    """Test equals encoding with numeric coercion."""
    form = EdgeForm(single_kind="equals", equals=EqualsForm("check", "result.data", "42", "number"))
    saved = build_edge(form)

    assert saved.when == Equals("steps.check.result.data", 42)
    assert saved.is_default is False
    assert saved.label == "== 42"


def test_build_each_single_kind():
    """Test the remaining single predicate kinds and their labels."""
    exists = build_edge(EdgeForm(single_kind="exists", exists=ExistsForm("a", "result")))
    contains = build_edge(EdgeForm(single_kind="contains", contains=ContainsForm("a", "result.data", "foo")))
    regex = build_edge(EdgeForm(single_kind="regex", regex=RegexForm("a", "result.data", "^ok$")))
    expr = build_edge(EdgeForm(single_kind="expr", expr=ExprForm("vars.count > 10 && vars.ok")))

    assert exists.when == Exists("steps.a.result") and exists.label == "exists"
    assert contains.when == Contains("steps.a.result.data", "foo") and contains.label == "contains foo"
    assert regex.when == Regex("steps.a.result.data", "^ok$") and regex.label == "~= ^ok$"
    assert expr.when == Expr("vars.count > 10 && vars.ok")
    assert expr.label == "vars.count > 10..."


def test_short_expression_label_is_not_truncated():
    """Test that expressions of 15 characters or fewer stay whole."""
    assert condition_label(Expr("vars.a == 1")) == "vars.a == 1"
    assert condition_label(Expr("x" * 15)) == "x" * 15
    assert condition_label(Expr("x" * 16)) == "x" * 15 + "..."


def test_composite_labels():
    """Test AND (n) / OR (n) labels."""
    assert condition_label(And((Exists("a"), Exists("b")))) == "AND (2)"
    assert condition_label(Or((Exists("a"),))) == "OR (1)"
    assert condition_label(None) == "condition"


def test_equals_label_renders_booleans_lowercase():
    """Test label literals are shown the way the editor shows them."""
    assert condition_label(Equals("p", True)) == "== true"
    assert condition_label(Equals("p", 3.0)) == "== 3"


@pytest.mark.parametrize("value, value_type, expected", [
    ("true", "boolean", True),
    ("TRUE", "boolean", True),
    ("1", "boolean", True),
    ("yes", "boolean", False),
    (0, "boolean", False),
    ("12", "number", 12),
    ("1.5", "number", 1.5),
    ("abc", "number", 0),
    ("nan", "number", 0),
    ("", "number", 0),
    (True, "number", 1),
    ("OK", "string", "OK"),
    (7, "string", "7"),
    (False, "string", "false"),
])
def test_coerce_value(value, value_type, expected):
    """Test that coercion normalizes instead of rejecting."""
    assert coerce_value(value, value_type) == expected


def test_infer_value_type():
    """Test type inference from a decoded literal."""
    assert infer_value_type(True) == "boolean"
    assert infer_value_type(3) == "number"
    assert infer_value_type(2.5) == "number"
    assert infer_value_type("3") == "string"


def test_is_default_wins_on_parse():
    """Test that an edge flagged default parses as default whatever it carries."""
    form = parse_edge(Equals("steps.a.result.data", 1), is_default=True)

    assert form.mode == "single"
    assert form.single_kind == "default"


def test_parse_equals_uses_default_path_and_infers_type():
    """Test decoding of an equals condition on a bare node reference."""
    form = parse_edge(Equals("steps.check", True))

    assert form.single_kind == "equals"
    assert form.equals == EqualsForm("check", "result.data", True, "boolean")


def test_parse_exists_uses_result_default_path():
    """Test the exists default path is 'result'."""
    form = parse_edge(Exists("not-a-path"))

    assert form.exists == ExistsForm("", "result")


def test_parse_composite_keeps_child_count():
    """Test that children without a row form become empty equals rows."""
    when = Or((
        Contains("steps.a.result.data", "x"),
        Expr("vars.a"),
        And((Exists("steps.b.result"),)),
        Exists("$.steps.c.result.items"),
    ))
    form = parse_edge(when)

    assert form.mode == "multiple"
    assert form.multiple_kind == "or"
    assert [row.kind for row in form.rows] == ["contains", "equals", "equals", "exists"]
    assert form.rows[1] == LeafRow("sub-1")
    assert form.rows[3].node_id == "c"
    assert form.rows[3].path == "result.items"


def test_build_composite_from_rows():
    """Test AND encoding from leaf rows."""
    form = EdgeForm(
        mode="multiple",
        multiple_kind="and",
        rows=[
            LeafRow("r1", "equals", "a", "result.data", "true", "boolean"),
            LeafRow("r2", "regex", "b", "result.data", "^x"),
            LeafRow("r3", "exists", "c", "result"),
        ],
    )
    saved = build_edge(form)

    assert saved.when == And((
        Equals("steps.a.result.data", True),
        Regex("steps.b.result.data", "^x"),
        Exists("steps.c.result"),
    ))
    assert saved.label == "AND (3)"
    assert saved.is_default is False


@pytest.mark.parametrize("when", [
    Equals("steps.a.result.data", "OK"),
    Equals("steps.a.result.data", 5),
    Equals("steps.a.result.data", False),
    Exists("steps.a.result"),
    Contains("steps.a.result.data", "needle"),
    Regex("steps.a.result.data", "^\\d+$"),
    Expr("vars.total > 3"),
    And((Equals("steps.a.result.data", 1), Contains("steps.b.result.data", "x"))),
    Or((Exists("steps.a.result"), Regex("steps.b.result.items", "a|b"))),
])
def test_decode_encode_preserves_semantics(when):
    """Test that parsing a condition into a form and building it again is lossless."""
    assert build_edge(parse_edge(when)).when == when


def test_unknown_kinds_raise():
    """Test that kinds outside the closed set are programmer errors."""
    with pytest.raises(UnknownConditionKindError):
        build_edge(EdgeForm(single_kind="between"))
    with pytest.raises(UnknownConditionKindError):
        build_edge(EdgeForm(mode="multiple", multiple_kind="xor"))
    with pytest.raises(UnknownConditionKindError):
        build_edge(EdgeForm(mode="multiple", rows=[LeafRow("r", kind="expr")]))


def test_label_length_can_be_overridden():
    """Test an explicit label length."""
    assert condition_label(Expr("x" * 10), max_length=5) == "xxxxx..."
    assert build_edge(EdgeForm(single_kind="expr", expr=ExprForm("abcdefg")), max_length=3).label == "abc..."


def test_unknown_value_type_raises():
    """Test that equals literals only coerce to the known value types."""
    with pytest.raises(UnknownConditionKindError):
        coerce_value("1", "date")
    with pytest.raises(UnknownConditionKindError):
        build_edge(EdgeForm(single_kind="equals", equals=EqualsForm("a", "result.data", "1", "integer")))
