"""
journal.py - Step 2: Journalizing

The learner journalizes every transaction in general-journal form. Answers
are keyed by transaction id, each holding the rows of that entry:

    {"1": {"rows": [
        {"date": "2023"},                                   # first entry only
        {"date": "Jan 2", "acc": "Cash", "dr": "800,000"},
        {"acc": "   Owner, Capital", "cr": "800,000"},
        {"isDescription": true, "acc": "Invested cash"},
    ]}}

Format rules:
- The first entry opens with a year row; its first line carries the month
  and day ("Jan 2"). Later entries carry only the day ("2" or "02").
- Debit accounts start flush left; credit accounts are indented by exactly
  three spaces.
- Lines follow the entry's order: all debits, then all credits.

Scoring:
- year and date: 1 point each
- per expected line: account 1, amount in the right column with the other
  column empty 1
- an entry is perfect only when its line count matches as well
"""

from __future__ import annotations
from typing import Any, List, Mapping, Tuple

from ..core import (
    ActivityData, Answer, JournalLine, Transaction, ValidationResult, normalize_text, amounts_match,
)
from .common import (
    ScoreSheet, amount_filled, as_list, as_mapping, day_forms, lookup, month_day_forms, text_filled,
)


CREDIT_INDENT = 3

DEBIT = "dr"
CREDIT = "cr"


def expected_journal_lines(tx: Transaction) -> List[Tuple[str, JournalLine]]:
    """Journal order: (side, line) for every debit, then every credit."""
    return [(DEBIT, line) for line in tx.debits] + [(CREDIT, line) for line in tx.credits]


def account_format_ok(raw: Any, expected: str, side: str) -> bool:
    """Name matches and the indentation is right for the side."""
    if not isinstance(raw, str):
        return False
    if side == DEBIT:
        return not raw[:1].isspace() and normalize_text(raw) == normalize_text(expected)
    indent, rest = raw[:CREDIT_INDENT], raw[CREDIT_INDENT:]
    if indent != " " * CREDIT_INDENT or not rest or rest[0].isspace():
        return False
    return normalize_text(rest) == normalize_text(expected)


def _has_content(row: Mapping[str, Any]) -> bool:
    return text_filled(row.get("acc")) or amount_filled(row.get("dr")) or amount_filled(row.get("cr"))


def validate_step2(activity: ActivityData, answer: Answer) -> ValidationResult:
    sheet = ScoreSheet()
    answers = as_mapping(answer)
    all_perfect = True
    year = str(activity.config.year)

    for index, tx in enumerate(activity.transactions):
        score_before, max_before = sheet.score, sheet.max_score
        entry = as_mapping(lookup(answers, tx.id))
        rows = [as_mapping(r) for r in as_list(entry.get("rows"))]
        rows = [r for r in rows if not r.get("isDescription")]

        first = index == 0
        if first:
            year_row = rows[0] if rows else {}
            year_ok = normalize_text(year_row.get("date")) == year and not _has_content(year_row)
            sheet.check(f"{tx.id}.year", year_ok)
            rows = rows[1:]
        content = [r for r in rows if _has_content(r)]

        date_row = content[0] if content else {}
        date_forms = month_day_forms(tx.date) if first else day_forms(tx.date)
        sheet.check(f"{tx.id}.date", normalize_text(date_row.get("date")) in date_forms)

        expected = expected_journal_lines(tx)
        for i, (side, line) in enumerate(expected):
            row = content[i] if i < len(content) else {}
            other = CREDIT if side == DEBIT else DEBIT
            sheet.check(f"{tx.id}.{i}.acc", account_format_ok(row.get("acc"), line.account, side))
            amount_ok = amounts_match(row.get(side), line.amount) and not amount_filled(row.get(other))
            sheet.check(f"{tx.id}.{i}.amount", amount_ok)

        count_ok = sheet.note(f"{tx.id}.rows", len(content) == len(expected))
        earned = sheet.score - score_before
        possible = sheet.max_score - max_before
        perfect = sheet.note(f"{tx.id}.perfect", earned == possible and count_ok)
        all_perfect = all_perfect and perfect

    return sheet.result(all_perfect)
