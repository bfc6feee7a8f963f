"""
statements.py - Step 6: Financial Statements

Only the headline figure of each statement is graded, one point each:

    {
        "is":  {"netIncome": "...", "grossProfit": "..."},
        "sce": {"endCapital": "..."},
        "bs":  {"totalAssets": "...", "totalLiabEquity": "..."},
        "cf":  {"endingCash": "..."},       # only when cash flows are requested
    }

Gross profit is graded only for merchandisers presenting a multi-step
income statement. Figures are compared by magnitude, so a net loss may be
entered either as "(1,200)" or "1,200".
"""

from __future__ import annotations

from ..core import ActivityData, Answer, ValidationResult
from ..config import FS_FORMAT_MULTI
from ..aggregation import compute_financial_figures
from .common import ScoreSheet, as_mapping, magnitude_matches, text_filled


def _figure_ok(value, expected) -> bool:
    if expected == 0:
        return magnitude_matches(value, expected)
    return text_filled(value) and magnitude_matches(value, expected)


def validate_step6(activity: ActivityData, answer: Answer) -> ValidationResult:
    sheet = ScoreSheet()
    payload = as_mapping(answer)
    figures = compute_financial_figures(activity)

    income = as_mapping(payload.get("is"))
    equity = as_mapping(payload.get("sce"))
    position = as_mapping(payload.get("bs"))
    sheet.check("is.netIncome", _figure_ok(income.get("netIncome"), figures.net_income))
    if activity.config.is_merchandiser and activity.config.fs_format == FS_FORMAT_MULTI:
        sheet.check("is.grossProfit", _figure_ok(income.get("grossProfit"), figures.gross_profit))
    sheet.check("sce.endCapital", _figure_ok(equity.get("endCapital"), figures.ending_capital))
    sheet.check("bs.totalAssets", _figure_ok(position.get("totalAssets"), figures.total_assets))
    sheet.check("bs.totalLiabEquity",
                _figure_ok(position.get("totalLiabEquity"), figures.total_liabilities_and_equity))
    if activity.config.include_cash_flows:
        cash = as_mapping(payload.get("cf"))
        sheet.check("cf.endingCash", _figure_ok(cash.get("endingCash"), figures.ending_cash))
    return sheet.result()
