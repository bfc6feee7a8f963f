"""
trial_balance.py - Steps 4 and 9: Trial Balance and Post-Closing Trial Balance

Both statements share one grader. The expected lines are the non-zero
balances of the unadjusted ledger (step 4) or of the post-closing ledger
(step 9).

Answer shape:

    {
        "header": {"company": "...", "doc": "Trial Balance", "date": "January 31, 2023"},
        "rows": [{"account": "Cash", "dr": "790,000", "cr": ""}, ...],
        "footers": {"totalDr": "...", "totalCr": "..."},     # step 4
        "totals": {"dr": "...", "cr": "..."},                # step 9
    }

Scoring:
- header: company present, document title, period-end date; 1 point each
- per expected account: account present 1, amount in the right column 1
- rows matching no expected account cost a point per filled field; on a
  post-closing trial balance a row naming a closed account is also flagged
- both totals together: 2 points
"""

from __future__ import annotations
from typing import Any, Callable, Mapping, Optional, Set

from ..core import ActivityData, Answer, ValidationResult, amounts_match, normalize_text
from ..accounts import is_nominal
from ..aggregation import (
    TrialBalance, adjusted_ledger, compute_closing_figures, post_closing_ledger, trial_balance,
)
from .common import (
    ScoreSheet, amount_filled, as_list, as_mapping, long_date_matches, penalize_filled, text_filled,
)


TRIAL_BALANCE_TITLE = "trial balance"
POST_CLOSING_TITLE = "post closing trial balance"

ROW_FIELDS = ("account", "dr", "cr")


def _title(value: Any) -> str:
    return normalize_text(str(value or "").replace("-", " "))


def _grade_header(sheet: ScoreSheet, header: Mapping[str, Any], activity: ActivityData,
                  title_ok: Callable[[str], bool]) -> None:
    sheet.check("header.company", text_filled(header.get("company")))
    sheet.check("header.doc", title_ok(_title(header.get("doc"))))
    sheet.check("header.date", long_date_matches(header.get("date"), activity.period_end))


def _grade_lines(sheet: ScoreSheet, expected: TrialBalance, rows_value: Any,
                 closed: Optional[Callable[[str], bool]] = None) -> None:
    rows = [as_mapping(r) for r in as_list(rows_value)]
    matched: Set[int] = set()

    for line in expected.lines:
        wanted = normalize_text(line.account)
        index = next(
            (i for i, r in enumerate(rows) if i not in matched and normalize_text(r.get("account")) == wanted),
            None,
        )
        row = rows[index] if index is not None else {}
        if index is not None:
            matched.add(index)
        sheet.check(f"{line.account}.account", index is not None)
        if line.debit:
            amount_ok = amounts_match(row.get("dr"), line.debit) and not amount_filled(row.get("cr"))
        else:
            amount_ok = amounts_match(row.get("cr"), line.credit) and not amount_filled(row.get("dr"))
        sheet.check(f"{line.account}.amount", index is not None and amount_ok)

    for i, row in enumerate(rows):
        if i in matched:
            continue
        if closed is not None and text_filled(row.get("account")) and closed(row.get("account")):
            sheet.note(f"rows.{i}.closed", False)
        penalize_filled(sheet, f"rows.{i}", row, ROW_FIELDS)


def _grade_totals(sheet: ScoreSheet, expected: TrialBalance, dr: Any, cr: Any) -> None:
    ok = amounts_match(dr, expected.total_debit) and amounts_match(cr, expected.total_credit)
    sheet.check("totals", ok, points=2)


def validate_step4(activity: ActivityData, answer: Answer) -> ValidationResult:
    sheet = ScoreSheet()
    payload = as_mapping(answer)
    expected = trial_balance(activity.ledger)

    _grade_header(sheet, as_mapping(payload.get("header")), activity,
                  lambda title: title == TRIAL_BALANCE_TITLE)
    _grade_lines(sheet, expected, payload.get("rows"))
    footers = as_mapping(payload.get("footers"))
    _grade_totals(sheet, expected, footers.get("totalDr"), footers.get("totalCr"))
    return sheet.result()


def validate_step9(activity: ActivityData, answer: Answer) -> ValidationResult:
    sheet = ScoreSheet()
    payload = as_mapping(answer)
    adjusted = adjusted_ledger(activity)
    expected = trial_balance(post_closing_ledger(adjusted, compute_closing_figures(adjusted)))

    _grade_header(sheet, as_mapping(payload.get("header")), activity,
                  lambda title: POST_CLOSING_TITLE in title)
    _grade_lines(sheet, expected, payload.get("rows"), closed=is_nominal)
    totals = as_mapping(payload.get("totals"))
    _grade_totals(sheet, expected, totals.get("dr"), totals.get("cr"))
    return sheet.result()
