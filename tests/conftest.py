"""
conftest.py - Shared pytest fixtures for accounting-cycle tests

Provides common fixtures used across unit, functional and conformance tests:
- Hand-built activities with known figures (service firm, closing example)
- Generated activities for each business organization
- Perfect-answer builders (see tests/answer_key.py)
"""

import pytest
from decimal import Decimal

from accounting_cycle import (
    Adjustment, ScenarioConfig, generate,
    ADJ_ACCRUED_EXPENSE, ADJ_ACCRUED_REVENUE, ADJ_DEFERRED_EXPENSE,
)

from tests.answer_key import build_activity, perfect_answer, tx


# =============================================================================
# HAND-BUILT SCENARIOS
# =============================================================================

def service_transactions():
    """
    Seven January transactions of a sole proprietorship.

    Unadjusted trial balance totals 72,000. After adjustments net income is
    14,600 and ending capital 63,100.
    """
    return [
        tx(1, 2, [("Cash", 50000)], [("Owner, Capital", 50000)], "Owner invested cash"),
        tx(2, 5, [("Supplies", 2000)], [("Accounts Payable", 2000)], "Bought supplies on account"),
        tx(3, 10, [("Accounts Receivable", 8000)], [("Service Revenue", 8000)], "Billed a client"),
        tx(4, 15, [("Cash", 12000)], [("Service Revenue", 12000)], "Cash services"),
        tx(5, 20, [("Salaries Expense", 5000)], [("Cash", 5000)], "Paid salaries"),
        tx(6, 25, [("Owner, Drawings", 1500)], [("Cash", 1500)], "Owner withdrew cash"),
        tx(7, 28, [("Cash", 3000)], [("Accounts Receivable", 3000)], "Collected from client"),
    ]


def service_adjustments():
    return [
        Adjustment("adj1", ADJ_DEFERRED_EXPENSE, "Supplies on hand are P600.",
                   "Supplies Expense", "Supplies", Decimal("1400")),
        Adjustment("adj2", ADJ_ACCRUED_EXPENSE, "Accrued salaries: P2,000.",
                   "Salaries Expense", "Salaries Payable", Decimal("2000")),
        Adjustment("adj3", ADJ_ACCRUED_REVENUE, "Services performed but not yet billed: P3,000.",
                   "Accounts Receivable", "Service Revenue", Decimal("3000")),
    ]


@pytest.fixture
def service_activity():
    """Hand-built service scenario with three adjustments."""
    return build_activity(service_transactions(), service_adjustments())


@pytest.fixture
def closing_example_activity():
    """Revenue 10,000, expense 6,000, drawings 1,000, capital 5,000."""
    return build_activity([
        tx(1, 2, [("Cash", 5000)], [("Owner, Capital", 5000)]),
        tx(2, 9, [("Cash", 10000)], [("Service Revenue", 10000)]),
        tx(3, 16, [("Rent Expense", 6000)], [("Cash", 6000)]),
        tx(4, 23, [("Owner, Drawings", 1000)], [("Cash", 1000)]),
    ])


# =============================================================================
# GENERATED SCENARIOS
# =============================================================================

@pytest.fixture
def service_config():
    return ScenarioConfig(business_type="Service", ownership="Sole Proprietorship", num_transactions=10)


@pytest.fixture
def merchandising_config():
    return ScenarioConfig(
        business_type="Merchandising",
        ownership="Partnership",
        inventory_system="Periodic",
        num_transactions=12,
        include_trade_discounts=True,
        include_cash_discounts=True,
        include_freight=True,
    )


@pytest.fixture
def generated_service(service_config):
    return generate(service_config, seed=7)


@pytest.fixture
def generated_merchandising(merchandising_config):
    return generate(merchandising_config, seed=11)


@pytest.fixture
def answers():
    """perfect_answer(step_id, activity) -> deep-copied perfect answer."""
    return perfect_answer
