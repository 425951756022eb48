import logging
from typing import Optional

from .context import ExecutionContext
from .guards import evaluate_condition
from .schema import StepSpec

logger = logging.getLogger(__name__)


def next_step_id(step: StepSpec, success: bool, context: ExecutionContext) -> Optional[str]:
    """
    Decide where a finished step goes.

    switch (first matching case) -> onSuccess / onFailure -> next. None
    means the workflow ends here.
    """
    for index, case in enumerate(step.switch or []):
        if evaluate_condition(case.condition, context):
            logger.debug("Step %s: switch case %d matched -> %s", step.id, index, case.next)
            return case.next

    if success and step.on_success:
        return step.on_success
    if not success and step.on_failure:
        return step.on_failure
    if step.next:
        return step.next

    logger.debug("Step %s is terminal", step.id)
    return None
