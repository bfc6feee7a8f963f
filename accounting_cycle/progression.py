"""
progression.py - Step Progression State Machine

Each selected step moves Locked -> Active -> Completed.

    Locked     the preceding selected step is not completed
    Active     unlocked and not yet completed
    Completed  validated correct, or out of attempts

Statuses are frozen StepStatus records held by the host. Every transition
returns a new record (or a new map); nothing is mutated in place, so a
sequence of validations can be replayed deterministically.

Transition rules:
    correct answer            -> completed=True, correct=True
    incorrect, attempts left  -> attempts - 1
    incorrect, last attempt   -> completed=True, correct=False, attempts=0
    already completed         -> unchanged (no re-opening)
"""

from __future__ import annotations
from dataclasses import replace
from enum import Enum
import logging
from typing import Dict, Iterable, Mapping, Optional, Sequence, Union

from .core import DEFAULT_ATTEMPTS, StepStatus, UnknownStepError, ValidationResult


logger = logging.getLogger(__name__)


class StepState(Enum):
    """Derived display state of one step."""
    LOCKED = "locked"
    ACTIVE = "active"
    COMPLETED = "completed"


StatusMap = Dict[int, StepStatus]


def initial_statuses(selected_steps: Iterable[int], attempts: int = DEFAULT_ATTEMPTS) -> StatusMap:
    """Fresh statuses for the selected steps, each with a full attempt budget."""
    return {step_id: StepStatus(attempts=attempts) for step_id in sorted(set(selected_steps))}


def apply_validation(status: StepStatus, outcome: Union[ValidationResult, bool]) -> StepStatus:
    """
    Fold one validation outcome into a step's status.

    Args:
        status: current status
        outcome: a ValidationResult, or its is_correct flag

    Returns:
        The next status. A completed step is returned unchanged.
    """
    if status.completed:
        return status
    is_correct = outcome.is_correct if isinstance(outcome, ValidationResult) else bool(outcome)
    if is_correct:
        return replace(status, completed=True, correct=True)
    remaining = status.attempts - 1
    if remaining <= 0:
        return StepStatus(attempts=0, completed=True, correct=False)
    return replace(status, attempts=remaining)


def _predecessor(step_id: int, selected: Sequence[int]) -> Optional[int]:
    ordered = sorted(selected)
    if step_id not in ordered:
        raise UnknownStepError(f"Step {step_id} is not selected")
    index = ordered.index(step_id)
    return ordered[index - 1] if index > 0 else None


def step_state(step_id: int, selected: Sequence[int], statuses: Mapping[int, StepStatus]) -> StepState:
    """
    Locked iff the preceding selected step is not completed.

    Raises:
        UnknownStepError: if step_id is not among the selected steps.
    """
    status = statuses.get(step_id, StepStatus())
    if status.completed:
        return StepState.COMPLETED
    previous = _predecessor(step_id, selected)
    if previous is not None and not statuses.get(previous, StepStatus()).completed:
        return StepState.LOCKED
    return StepState.ACTIVE


def active_step(selected: Sequence[int], statuses: Mapping[int, StepStatus]) -> Optional[int]:
    """The first selected step that is active, or None once all are completed."""
    for step_id in sorted(selected):
        if step_state(step_id, selected, statuses) is StepState.ACTIVE:
            return step_id
    return None


def record_validation(
    statuses: Mapping[int, StepStatus],
    step_id: int,
    outcome: Union[ValidationResult, bool],
) -> StatusMap:
    """
    Apply a validation to one step of a status map, returning a new map.

    Validations of locked or completed steps leave the map unchanged.
    """
    selected = list(statuses)
    state = step_state(step_id, selected, statuses)
    if state is not StepState.ACTIVE:
        logger.info("Ignoring validation of %s step %d", state.value, step_id)
        return dict(statuses)

    before = statuses[step_id]
    after = apply_validation(before, outcome)
    if after.completed:
        logger.info("Step %d completed (%s)", step_id, "correct" if after.correct else "out of attempts")
    else:
        logger.info("Step %d incorrect, %d attempt(s) left", step_id, after.attempts)
    result = dict(statuses)
    result[step_id] = after
    return result
