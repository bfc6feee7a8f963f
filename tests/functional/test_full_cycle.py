"""
test_full_cycle.py - End-to-end accounting cycle on generated activities

Generates scenarios across the configuration space, answers every selected
step perfectly, and drives the progression state machine to the end.
"""

import pytest

from accounting_cycle import (
    ScenarioConfig, StepStatus, active_step, generate, initial_statuses, record_validation,
    trial_balance, validate_step,
)
from tests.answer_key import perfect_answer


CONFIGS = {
    "service": ScenarioConfig(),
    "merchandising_perpetual": ScenarioConfig(business_type="Merchandising", num_transactions=15),
    "merchandising_periodic": ScenarioConfig(
        business_type="Merchandising", inventory_system="Periodic", include_cash_discounts=True,
        include_trade_discounts=True, include_cash_flows=True,
    ),
    "subsequent_year": ScenarioConfig(is_subsequent_year=True, year=2024),
    "expense_and_income_methods": ScenarioConfig(
        deferred_expense_method="Expense", deferred_income_method="Income", num_transactions=20,
    ),
    "partnership": ScenarioConfig(ownership="Partnership"),
    "corporation": ScenarioConfig(ownership="Corporation", is_subsequent_year=True),
    "banking": ScenarioConfig(business_type="Banking"),
    "manufacturing_periodic_multi_step": ScenarioConfig(
        business_type="Manufacturing", inventory_system="Periodic", is_subsequent_year=True,
        fs_format="Multi", include_freight=True, num_transactions=5,
    ),
}


@pytest.mark.parametrize("name", sorted(CONFIGS))
@pytest.mark.parametrize("seed", [1, 2, 3])
def test_perfect_answers_pass_every_step(name, seed):
    activity = generate(CONFIGS[name], seed=seed)
    for step_id in activity.steps:
        result = validate_step(step_id, activity, perfect_answer(step_id, activity))
        assert result.is_correct, (name, seed, step_id, {k: v for k, v in result.details.items() if not v})
        assert result.score == result.max_score
        assert result.letter_grade == "A"


@pytest.mark.parametrize("seed", range(5))
def test_generated_trial_balance_balances(seed):
    activity = generate(CONFIGS["merchandising_periodic"], seed=seed)
    tb = trial_balance(activity.ledger)
    assert tb.total_debit == tb.total_credit


def test_progression_replay(generated_service):
    """Walk the whole cycle: one wrong attempt on step 2, then perfect answers."""
    statuses = initial_statuses(generated_service.steps)
    history = []
    step_id = active_step(generated_service.steps, statuses)
    while step_id is not None:
        if step_id == 2 and statuses[2].attempts == 3:
            answer = {}
        else:
            answer = perfect_answer(step_id, generated_service)
        statuses = record_validation(statuses, step_id, validate_step(step_id, generated_service, answer))
        history.append(step_id)
        step_id = active_step(generated_service.steps, statuses)

    assert history == [1, 2, 2, 3, 4, 5, 6, 7, 8, 9, 10]
    assert statuses[2] == StepStatus(2, True, True)
    assert all(s.completed and s.correct for s in statuses.values())


def test_selected_subset(answers):
    config = ScenarioConfig(selected_steps=(4, 2, 9))
    activity = generate(config, seed=4)
    assert activity.steps == (2, 4, 9)
    statuses = initial_statuses(activity.steps)
    assert active_step(activity.steps, statuses) == 2
    for step_id in activity.steps:
        statuses = record_validation(statuses, step_id, validate_step(step_id, activity, answers(step_id, activity)))
    assert active_step(activity.steps, statuses) is None


def test_exhausting_attempts_moves_on(generated_service):
    statuses = initial_statuses(generated_service.steps, attempts=2)
    for _ in range(2):
        statuses = record_validation(statuses, 1, validate_step(1, generated_service, {}))
    assert statuses[1] == StepStatus(0, True, False)
    assert active_step(generated_service.steps, statuses) == 2


def test_closing_example_posts_eight_thousand(closing_example_activity, answers):
    answer = answers(8, closing_example_activity)
    assert answer["ledgers"]["Owner, Capital"] == {"balance": "8,000", "balanceType": "Cr"}
    assert validate_step(8, closing_example_activity, answer).is_correct
