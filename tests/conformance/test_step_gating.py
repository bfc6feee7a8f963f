"""
Step Gating Conformance Tests

INVARIANT: A step is locked until the preceding selected step is completed,
and a step completes exactly once.

    locked(s)    ⇔  ∃ p = prev_selected(s):  ¬completed(p)
    completed(s) ⇒  status(s) never changes again
    attempts(s) = 0  ⇒  completed(s) ∧ ¬correct(s)

This guarantees:
- Learners work through the cycle in order
- Running out of attempts still lets the learner move on
- Any sequence of submissions replays to the same statuses
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from accounting_cycle import (
    StepState, StepStatus, active_step, initial_statuses, record_validation, step_state,
)


selections = st.sets(st.integers(min_value=1, max_value=10), min_size=1).map(sorted)
submissions = st.lists(st.tuples(st.integers(min_value=1, max_value=10), st.booleans()), max_size=40)


def _replay(selected, attempts, events):
    statuses = initial_statuses(selected, attempts=attempts)
    for step_id, correct in events:
        if step_id in statuses:
            statuses = record_validation(statuses, step_id, correct)
    return statuses


class TestGatingProperties:
    """Property-based progression tests."""

    @given(selections, st.integers(min_value=1, max_value=3), submissions)
    @settings(max_examples=50)
    def test_locked_iff_predecessor_incomplete(self, selected, attempts, events):
        """
        PROPERTY: After any submissions, states follow the gating rule.
        """
        statuses = _replay(selected, attempts, events)
        for previous, step_id in zip(selected, selected[1:]):
            state = step_state(step_id, selected, statuses)
            if statuses[step_id].completed:
                assert state is StepState.COMPLETED
            elif statuses[previous].completed:
                assert state is StepState.ACTIVE
            else:
                assert state is StepState.LOCKED

    @given(selections, st.integers(min_value=1, max_value=3), submissions)
    @settings(max_examples=50)
    def test_completion_is_a_prefix(self, selected, attempts, events):
        """
        PROPERTY: Completed steps always form a prefix of the selection,
        and at most one step is active.
        """
        statuses = _replay(selected, attempts, events)
        flags = [statuses[s].completed for s in selected]
        assert flags == sorted(flags, reverse=True)
        active = [s for s in selected if step_state(s, selected, statuses) is StepState.ACTIVE]
        assert len(active) <= 1
        assert active_step(selected, statuses) == (active[0] if active else None)

    @given(selections, st.integers(min_value=1, max_value=3), submissions)
    @settings(max_examples=50)
    def test_attempts_bounded(self, selected, attempts, events):
        """
        PROPERTY: Attempts never go negative and exhaustion means failure.
        """
        statuses = _replay(selected, attempts, events)
        for status in statuses.values():
            assert 0 <= status.attempts <= attempts
            if status.attempts == 0:
                assert status.completed and not status.correct
            if status.correct:
                assert status.completed

    @given(selections, st.integers(min_value=1, max_value=3), submissions)
    @settings(max_examples=30)
    def test_replay_is_deterministic(self, selected, attempts, events):
        """
        PROPERTY: The same submissions replay to the same statuses.
        """
        assert _replay(selected, attempts, events) == _replay(selected, attempts, events)

    def test_single_attempt_exhaustion(self):
        """One wrong answer with one attempt completes the step as incorrect."""
        statuses = record_validation(initial_statuses([1, 2], attempts=1), 1, False)
        assert statuses[1] == StepStatus(0, True, False)
        assert step_state(2, [1, 2], statuses) is StepState.ACTIVE
