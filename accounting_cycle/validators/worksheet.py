"""
worksheet.py - Step 5: 10-Column Worksheet

Answer shape:

    {
        "rows": [{"account": "Cash", "tbDr": "...", ..., "bsCr": ""}, ...],
        "footers": {
            "totals": {"tbDr": "...", ..., "bsCr": "..."},
            "net":    {"isDr": "...", "isCr": "", "bsDr": "", "bsCr": "..."},
            "final":  {"tbDr": "...", ..., "bsCr": "..."},
        },
    }

Scoring:
- every non-zero expected cell: 1 point
- a filled cell where zero is expected: -1
- each column of the totals and final rows: 1 point
- net income row: 1 point for the income statement pair, 1 for the balance
  sheet pair, judged by NetIncomePlacement
"""

from __future__ import annotations
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

from ..core import ActivityData, Answer, ValidationResult, amounts_match, normalize_text
from ..aggregation import WORKSHEET_COLUMNS, Worksheet, WorksheetRow, build_worksheet
from .common import (
    ScoreSheet, amount_filled, as_list, as_mapping, magnitude_matches, penalize_filled,
)


class NetIncomePlacement(Enum):
    """
    How strictly the net income row is graded.

    CONVENTIONAL: income in IS-Dr and BS-Cr, a loss in IS-Cr and BS-Dr.
    ANY_SIDE: the amount may sit in either column of each pair.
    """
    CONVENTIONAL = "conventional"
    ANY_SIDE = "any_side"


DEFAULT_NET_INCOME_PLACEMENT = NetIncomePlacement.ANY_SIDE


def _grade_row(sheet: ScoreSheet, key: str, expected: WorksheetRow, row: Mapping[str, Any]) -> None:
    for column in WORKSHEET_COLUMNS:
        value = expected.column(column)
        if value != 0:
            sheet.check(f"{key}.{column}", amounts_match(row.get(column), value))
        elif amount_filled(row.get(column)):
            sheet.penalize(f"{key}.{column}")


def _grade_footer(sheet: ScoreSheet, key: str, expected: WorksheetRow, row: Mapping[str, Any]) -> None:
    for column in WORKSHEET_COLUMNS:
        sheet.check(f"{key}.{column}", amounts_match(row.get(column), expected.column(column)))


def _pair_ok(row: Mapping[str, Any], dr_key: str, cr_key: str, dr: Decimal, cr: Decimal,
             placement: NetIncomePlacement) -> bool:
    if placement is NetIncomePlacement.CONVENTIONAL:
        return amounts_match(row.get(dr_key), dr) and amounts_match(row.get(cr_key), cr)
    amount = dr or cr
    if amount == 0:
        return not amount_filled(row.get(dr_key)) and not amount_filled(row.get(cr_key))
    return any(
        amount_filled(row.get(k)) and magnitude_matches(row.get(k), amount) for k in (dr_key, cr_key)
    )


def _grade_net(sheet: ScoreSheet, worksheet: Worksheet, row: Mapping[str, Any],
               placement: NetIncomePlacement) -> None:
    net = worksheet.net_row
    sheet.check("footers.net.is", _pair_ok(row, "isDr", "isCr", net.is_dr, net.is_cr, placement))
    sheet.check("footers.net.bs", _pair_ok(row, "bsDr", "bsCr", net.bs_dr, net.bs_cr, placement))


def validate_step5(
    activity: ActivityData,
    answer: Answer,
    placement: NetIncomePlacement = DEFAULT_NET_INCOME_PLACEMENT,
) -> ValidationResult:
    sheet = ScoreSheet()
    payload = as_mapping(answer)
    worksheet = build_worksheet(activity.ledger, activity.adjustments)
    rows = [as_mapping(r) for r in as_list(payload.get("rows"))]

    matched = set()
    for expected in worksheet.rows:
        wanted = normalize_text(expected.account)
        index = next(
            (i for i, r in enumerate(rows) if i not in matched and normalize_text(r.get("account")) == wanted),
            None,
        )
        if index is not None:
            matched.add(index)
        sheet.note(f"{expected.account}.account", index is not None)
        _grade_row(sheet, expected.account, expected, rows[index] if index is not None else {})

    for i, row in enumerate(rows):
        if i not in matched:
            penalize_filled(sheet, f"rows.{i}", row, ("account",) + tuple(WORKSHEET_COLUMNS))

    footers = as_mapping(payload.get("footers"))
    _grade_footer(sheet, "footers.totals", worksheet.totals, as_mapping(footers.get("totals")))
    _grade_net(sheet, worksheet, as_mapping(footers.get("net")), placement)
    _grade_footer(sheet, "footers.final", worksheet.final, as_mapping(footers.get("final")))
    return sheet.result()
