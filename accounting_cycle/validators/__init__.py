"""
Step validators.

One pure function per accounting-cycle step, each taking the activity and
the learner's answer and returning a ValidationResult. validate_step()
dispatches by step id.
"""

from typing import Callable, Dict

from ..core import ActivityData, Answer, UnknownStepError, ValidationResult
from .analysis import validate_step1
from .journal import validate_step2, expected_journal_lines, account_format_ok
from .posting import validate_step3, expected_postings, ExpectedPosting, posting_ref
from .trial_balance import validate_step4, validate_step9
from .worksheet import validate_step5, NetIncomePlacement, DEFAULT_NET_INCOME_PLACEMENT
from .statements import validate_step6
from .adjusting import validate_step7
from .closing import validate_step8
from .reversing import validate_step10, is_reversible
from .common import ScoreSheet


Validator = Callable[[ActivityData, Answer], ValidationResult]

VALIDATORS: Dict[int, Validator] = {
    1: validate_step1,
    2: validate_step2,
    3: validate_step3,
    4: validate_step4,
    5: validate_step5,
    6: validate_step6,
    7: validate_step7,
    8: validate_step8,
    9: validate_step9,
    10: validate_step10,
}


def validate_step(step_id: int, activity: ActivityData, answer: Answer) -> ValidationResult:
    """
    Grade an answer for one step.

    Raises:
        UnknownStepError: if step_id is not 1-10.
    """
    validator = VALIDATORS.get(step_id)
    if validator is None:
        raise UnknownStepError(f"Unknown step id: {step_id!r}")
    return validator(activity, answer)


__all__ = [
    'VALIDATORS', 'Validator', 'validate_step',
    'validate_step1', 'validate_step2', 'validate_step3', 'validate_step4', 'validate_step5',
    'validate_step6', 'validate_step7', 'validate_step8', 'validate_step9', 'validate_step10',
    'expected_journal_lines', 'account_format_ok',
    'expected_postings', 'ExpectedPosting', 'posting_ref',
    'NetIncomePlacement', 'DEFAULT_NET_INCOME_PLACEMENT',
    'is_reversible', 'ScoreSheet',
]
