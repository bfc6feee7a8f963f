"""
analysis.py - Step 1: Transaction Analysis

The learner classifies each transaction's effect on the accounting equation.
Answers are keyed by transaction id:

    {"1": {"assets": "Increase", "liabilities": "No Effect",
           "equity": "Increase", "cause": "Increase in Capital"}}

A row earns its point only when all four fields are right; per-field
verdicts are still reported. Comparison is case- and whitespace-insensitive;
an omitted cause matches an empty expected cause. Answers for transactions
that do not exist keep the step from being correct.
"""

from __future__ import annotations

from ..core import ActivityData, Answer, ValidationResult, normalize_text
from .common import ScoreSheet, as_mapping, lookup


ANALYSIS_FIELDS = ("assets", "liabilities", "equity", "cause")


def validate_step1(activity: ActivityData, answer: Answer) -> ValidationResult:
    sheet = ScoreSheet()
    answers = as_mapping(answer)
    for tx in activity.transactions:
        row = as_mapping(lookup(answers, tx.id))
        expected = {
            "assets": tx.analysis.assets,
            "liabilities": tx.analysis.liabilities,
            "equity": tx.analysis.equity,
            "cause": tx.analysis.cause,
        }
        row_ok = True
        for name in ANALYSIS_FIELDS:
            ok = normalize_text(row.get(name)) == normalize_text(expected[name])
            row_ok = sheet.note(f"{tx.id}.{name}", ok) and row_ok
        sheet.check(f"{tx.id}.row", row_ok)
    expected_ids = {str(tx.id) for tx in activity.transactions}
    count_ok = sheet.note("rows", all(str(key) in expected_ids for key in answers))
    return sheet.result(count_ok)
