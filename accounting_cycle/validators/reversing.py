"""
reversing.py - Step 10: Reversing Entries

At the start of the next period, accruals and deferrals recorded under the
income-statement method are reversed; everything else is left alone.

Answer shape, keyed by adjustment id:

    {"adj4": {"drAcc": "Salaries Payable", "drAmt": "5,000",
              "crAcc": "Salaries Expense", "crAmt": "5,000"},
     "adj1": {"drAcc": "", "drAmt": "", "crAcc": "", "crAmt": ""}}

Each adjustment is worth 2 points: the exact mirror image of the adjusting
entry when it is reversible, all four fields empty when it is not.
"""

from __future__ import annotations
from typing import Any, Mapping

from ..core import (
    ADJ_DEFERRED_EXPENSE, ADJ_DEFERRED_INCOME, ActivityData, Adjustment, Answer, ValidationResult,
    amounts_match,
)
from ..config import DEFERRED_EXPENSE_EXPENSE, DEFERRED_INCOME_INCOME, ScenarioConfig
from .common import ScoreSheet, as_mapping, lookup, same_account, text_filled


REVERSAL_FIELDS = ("drAcc", "drAmt", "crAcc", "crAmt")


def is_reversible(adj: Adjustment, config: ScenarioConfig) -> bool:
    """Accruals, and deferrals first recorded in an income-statement account."""
    if adj.is_accrual:
        return True
    if adj.type == ADJ_DEFERRED_EXPENSE:
        return config.deferred_expense_method == DEFERRED_EXPENSE_EXPENSE
    if adj.type == ADJ_DEFERRED_INCOME:
        return config.deferred_income_method == DEFERRED_INCOME_INCOME
    return False


def _mirrors(entry: Mapping[str, Any], adj: Adjustment) -> bool:
    return (same_account(entry.get("drAcc"), adj.cr_account)
            and amounts_match(entry.get("drAmt"), adj.amount)
            and same_account(entry.get("crAcc"), adj.dr_account)
            and amounts_match(entry.get("crAmt"), adj.amount))


def validate_step10(activity: ActivityData, answer: Answer) -> ValidationResult:
    sheet = ScoreSheet()
    answers = as_mapping(answer)
    for adj in activity.adjustments:
        entry = as_mapping(lookup(answers, adj.id))
        if is_reversible(adj, activity.config):
            ok = _mirrors(entry, adj)
        else:
            ok = not any(text_filled(entry.get(f)) for f in REVERSAL_FIELDS)
        sheet.check(adj.id, ok, points=2)
    return sheet.result()
