from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..conditions.models import WhenCondition, from_wire, to_wire


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class EqualsOperands(_WireModel):
    left: str
    right: Any = None


class RegexOperands(_WireModel):
    value: str
    pattern: str


class ContainsOperands(_WireModel):
    value: str
    search: str


class WhenConditionSpec(_WireModel):
    """ Wire shape of a branch predicate. Several fields may be set; see conditions.models.from_wire. """
    expr: Optional[str] = None
    equals: Optional[EqualsOperands] = None
    exists: Optional[str] = None
    regex: Optional[RegexOperands] = None
    contains: Optional[ContainsOperands] = None
    and_: Optional[List["WhenConditionSpec"]] = Field(default=None, alias="and")
    or_: Optional[List["WhenConditionSpec"]] = Field(default=None, alias="or")

    def to_condition(self) -> WhenCondition:
        return from_wire(self.model_dump(by_alias=True, exclude_unset=True))

    @classmethod
    def from_condition(cls, condition: WhenCondition) -> "WhenConditionSpec":
        return cls.model_validate(to_wire(condition))


class SwitchCase(_WireModel):
    when: WhenConditionSpec
    next: str

    @property
    def condition(self) -> WhenCondition:
        return self.when.to_condition()


class RepeatConfig(_WireModel):
    """
    How often a step (or the subtree it starts) runs.

    Exactly one of forEach / count is set. scope defaults to "block"; a
    "subtree" scope names the node where one repetition stops.
    """
    for_each: Optional[str] = Field(default=None, alias="forEach")
    count: Optional[Union[int, str]] = None
    continue_on_error: Optional[bool] = Field(default=None, alias="continueOnError")
    delay_between: Optional[int] = Field(default=None, alias="delayBetween")
    scope: Optional[Literal["block", "subtree"]] = None
    subtree_end: Optional[str] = Field(default=None, alias="subtreeEnd")

    @model_validator(mode="after")
    def _check_shape(self) -> "RepeatConfig":
        has_for_each = bool(self.for_each)
        has_count = self.count is not None and self.count != ""
        if has_for_each == has_count:
            raise ValueError("repeat needs exactly one of forEach or count")
        if isinstance(self.count, int) and self.count < 1:
            raise ValueError("repeat count must be at least 1")
        if self.delay_between is not None and self.delay_between < 0:
            raise ValueError("delayBetween must not be negative")
        if self.scope == "subtree" and not self.subtree_end:
            raise ValueError("subtreeEnd is required when scope is 'subtree'")
        if self.subtree_end and self.scope != "subtree":
            raise ValueError("subtreeEnd is only allowed when scope is 'subtree'")
        return self

    @property
    def repeat_scope(self) -> str:
        return self.scope or "block"


class RetryConfig(_WireModel):
    attempts: int
    delay_ms: Optional[int] = Field(default=None, alias="delayMs")
    backoff_factor: Optional[float] = Field(default=None, alias="backoffFactor")


class StepSpec(_WireModel):
    id: str
    # Opaque to this package; validated by the block schema registry of the runner.
    block: Dict[str, Any]
    title: Optional[str] = None
    repeat: Optional[RepeatConfig] = None
    switch: Optional[List[SwitchCase]] = None
    next: Optional[str] = None
    on_success: Optional[str] = Field(default=None, alias="onSuccess")
    on_failure: Optional[str] = Field(default=None, alias="onFailure")
    delay_after_ms: Optional[int] = Field(default=None, alias="delayAfterMs")
    retry: Optional[RetryConfig] = None
    timeout_ms: Optional[int] = Field(default=None, alias="timeoutMs")

    def targets(self) -> List[tuple]:
        """(field path, target id) for every transition: next, switch, onSuccess, onFailure."""
        out = []
        if self.next:
            out.append(("next", self.next))
        out.extend((f"switch.{i}.next", case.next) for i, case in enumerate(self.switch or []))
        if self.on_success:
            out.append(("onSuccess", self.on_success))
        if self.on_failure:
            out.append(("onFailure", self.on_failure))
        return out


class WorkflowSpec(_WireModel):
    version: str
    start: str
    steps: List[StepSpec]
    target_url: Optional[str] = Field(default=None, alias="targetUrl")
    vars: Optional[Dict[str, Any]] = None
    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None

    def step(self, step_id: str) -> Optional[StepSpec]:
        return next((s for s in self.steps if s.id == step_id), None)


class ExportMetadata(_WireModel):
    description: str = ""
    exported_at: str = Field(alias="exportedAt")
    version: str = "1.0"


class WorkflowExport(_WireModel):
    workflow: WorkflowSpec
    metadata: ExportMetadata


def to_document(model: BaseModel) -> Dict[str, Any]:
    """Wire dict (camelCase keys, unset optionals omitted)."""
    return model.model_dump(by_alias=True, exclude_none=True)
