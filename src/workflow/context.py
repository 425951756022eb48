""" Execution context addressed by step / var / loop paths. """
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class StepResult:
    result: Any = None
    success: bool = True
    skipped: bool = False


@dataclass(frozen=True)
class ForEachCursor:
    item: Any
    index: int
    total: int


@dataclass(frozen=True)
class LoopCursor:
    index: int
    count: int


@dataclass(frozen=True)
class ExecutionContext:
    """
    Snapshot of runtime state a branch predicate can read.

    Updates return a new context; the receiver is never changed.
    """
    steps: Mapping[str, StepResult] = field(default_factory=dict)
    vars: Mapping[str, Any] = field(default_factory=dict)
    for_each: Optional[ForEachCursor] = None
    loop: Optional[LoopCursor] = None

    def with_step_result(self, step_id: str, result: StepResult) -> "ExecutionContext":
        return replace(self, steps={**self.steps, step_id: result})

    def with_vars(self, values: Mapping[str, Any]) -> "ExecutionContext":
        return replace(self, vars={**self.vars, **values})

    def enter_for_each(self, item: Any, index: int, total: int) -> "ExecutionContext":
        return replace(self, for_each=ForEachCursor(item, index, total), loop=None)

    def enter_loop(self, index: int, count: int) -> "ExecutionContext":
        return replace(self, loop=LoopCursor(index, count), for_each=None)

    def exit_loop(self) -> "ExecutionContext":
        return replace(self, for_each=None, loop=None)

    def as_dict(self) -> Dict[str, Any]:
        """Plain addressing shape: {steps, vars, forEach?, loop?}."""
        out: Dict[str, Any] = {
            "steps": {
                step_id: {"result": r.result, "success": r.success, "skipped": r.skipped}
                for step_id, r in self.steps.items()
            },
            "vars": dict(self.vars),
        }
        if self.for_each is not None:
            out["forEach"] = {
                "item": self.for_each.item,
                "index": self.for_each.index,
                "total": self.for_each.total,
            }
        if self.loop is not None:
            out["loop"] = {"index": self.loop.index, "count": self.loop.count}
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExecutionContext":
        steps = {
            step_id: StepResult(
                result=entry.get("result"),
                success=entry.get("success", True),
                skipped=entry.get("skipped", False),
            )
            for step_id, entry in (data.get("steps") or {}).items()
        }
        for_each = data.get("forEach")
        loop = data.get("loop")
        return cls(
            steps=steps,
            vars=dict(data.get("vars") or {}),
            for_each=ForEachCursor(**for_each) if for_each else None,
            loop=LoopCursor(**loop) if loop else None,
        )


_ROOTS = ("steps", "vars", "forEach", "loop")


def get_by_path(context: ExecutionContext, path: str) -> Any:
    """
    Read a value from the context.

    Accepts 'steps.<id>.result.data', 'vars.name', 'forEach.item.id' or
    'loop.index', optionally prefixed with '$.'. Anything that does not
    resolve returns None.
    """
    if not path:
        return None
    if path.startswith("$."):
        path = path[2:]
    segments = path.split(".")
    if segments[0] not in _ROOTS:
        return None

    current: Any = context.as_dict()
    for segment in segments:
        current = _step_into(current, segment)
        if current is None:
            return None
    return current


def _step_into(value: Any, segment: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(segment)
    if isinstance(value, (list, tuple)) and segment.isdigit():
        index = int(segment)
        return value[index] if index < len(value) else None
    return None
