"""
posting.py - Step 3: Posting to the Ledger

The learner posts every journal line to T-account ledger cards and ticks the
posting reference of each journal line once it is posted.

Answer shape:

    {
        "ledgers": [
            {"account": "Cash",
             "leftRows":  [{"date": "2023"}, {"date": "Jan 2", "part": "GJ", "pr": "1", "amount": "800,000"}],
             "rightRows": [{"date": ""}],
             "balance": "790,000", "balanceType": "Dr"},
        ],
        "journalPRs": {"dr-1-0": true, "cr-1-0": true},
    }

Row 0 of each side is the year row ("2023" or "(2023)") and only its date
may be filled. Following rows carry, in posting order:
- beginning balance: date "Jan 1", particulars "BB", no PR      (3 points)
- journal posting:   date, particulars "GJ", PR "1", amount     (4 points)

The first posting on a side shows "Jan d", later ones the day alone. Filled
fields that should be empty cost a point each. That includes every filled
row field on a card for an account no transaction touches. A journalPRs
tick earns its point only when the line it refers to is posted correctly.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Set

from ..core import ActivityData, Answer, ValidationResult, amounts_match, normalize_text
from .common import (
    ScoreSheet, as_list, as_mapping, balance_matches, day_forms, month_day_forms,
    penalize_filled, text_filled, year_forms,
)


PART_BEGINNING = "BB"
PART_JOURNAL = "GJ"
JOURNAL_PAGE = "1"

LEFT = "leftRows"
RIGHT = "rightRows"

ROW_FIELDS = ("date", "part", "pr", "amount")


@dataclass(frozen=True, slots=True)
class ExpectedPosting:
    """
    One expected ledger-card row.

    Attributes:
        side: LEFT (debit) or RIGHT (credit)
        date: posting date
        part: "BB" or "GJ"
        amount: posted amount
        ref: journalPRs key of the source line, None for beginning balances
    """
    side: str
    date: date
    part: str
    amount: Decimal
    ref: Optional[str] = None

    @property
    def is_beginning(self) -> bool:
        return self.part == PART_BEGINNING


def posting_ref(side: str, tx_id: int, index: int) -> str:
    """journalPRs key of a journal line, e.g. "dr-3-0"."""
    return f"{'dr' if side == LEFT else 'cr'}-{tx_id}-{index}"


def expected_postings(activity: ActivityData) -> Dict[str, List[ExpectedPosting]]:
    """Expected ledger-card rows per account, beginning balances first."""
    postings: Dict[str, List[ExpectedPosting]] = {}
    opening = date(activity.config.year, 1, 1)
    if activity.beginning_balances is not None:
        for account, bal in activity.beginning_balances.balances.items():
            if bal.dr:
                postings.setdefault(account, []).append(ExpectedPosting(LEFT, opening, PART_BEGINNING, bal.dr))
            elif bal.cr:
                postings.setdefault(account, []).append(ExpectedPosting(RIGHT, opening, PART_BEGINNING, bal.cr))
    for tx in activity.transactions:
        for i, line in enumerate(tx.debits):
            postings.setdefault(line.account, []).append(
                ExpectedPosting(LEFT, tx.date, PART_JOURNAL, line.amount, posting_ref(LEFT, tx.id, i)))
        for i, line in enumerate(tx.credits):
            postings.setdefault(line.account, []).append(
                ExpectedPosting(RIGHT, tx.date, PART_JOURNAL, line.amount, posting_ref(RIGHT, tx.id, i)))
    return postings


def _find_card(cards: List[Mapping[str, Any]], account: str) -> Optional[Mapping[str, Any]]:
    wanted = normalize_text(account)
    for card in cards:
        if normalize_text(card.get("account")) == wanted:
            return card
    return None


def _date_ok(value: Any, expected: date, first: bool) -> bool:
    text = normalize_text(value)
    if first:
        return text in month_day_forms(expected)
    return text in day_forms(expected) or text in month_day_forms(expected)


def _grade_side(
    sheet: ScoreSheet,
    key: str,
    rows: List[Mapping[str, Any]],
    expected: List[ExpectedPosting],
    year: int,
    posted: Set[str],
) -> None:
    year_row = rows[0] if rows else {}
    if expected:
        sheet.check(f"{key}.year", normalize_text(year_row.get("date")) in year_forms(year))
    else:
        penalize_filled(sheet, f"{key}.year", year_row, ("date",))
    penalize_filled(sheet, f"{key}.year", year_row, ("part", "pr", "amount"))

    for i, exp in enumerate(expected):
        row = rows[i + 1] if i + 1 < len(rows) else {}
        row_key = f"{key}.{i + 1}"
        checks = [
            sheet.check(f"{row_key}.date", _date_ok(row.get("date"), exp.date, i == 0)),
            sheet.check(f"{row_key}.part", normalize_text(row.get("part")) == exp.part.lower()),
            sheet.check(f"{row_key}.amount", amounts_match(row.get("amount"), exp.amount)),
        ]
        if exp.is_beginning:
            penalize_filled(sheet, row_key, row, ("pr",))
        else:
            checks.append(sheet.check(f"{row_key}.pr", normalize_text(row.get("pr")) == JOURNAL_PAGE))
            if all(checks):
                posted.add(exp.ref)

    for j in range(len(expected) + 1, len(rows)):
        penalize_filled(sheet, f"{key}.{j}", rows[j], ROW_FIELDS)


def validate_step3(activity: ActivityData, answer: Answer) -> ValidationResult:
    sheet = ScoreSheet()
    payload = as_mapping(answer)
    cards = [as_mapping(c) for c in as_list(payload.get("ledgers"))]
    year = activity.config.year
    posted: Set[str] = set()

    expected = expected_postings(activity)
    for account, postings in expected.items():
        card = _find_card(cards, account)
        sheet.note(f"{account}.present", card is not None)
        card = card or {}
        for side in (LEFT, RIGHT):
            rows = [as_mapping(r) for r in as_list(card.get(side))]
            _grade_side(sheet, f"{account}.{side}", rows, [p for p in postings if p.side == side], year, posted)
        net = sum((p.amount if p.side == LEFT else -p.amount for p in postings), Decimal(0))
        sheet.check(f"{account}.balance", balance_matches(card.get("balance"), card.get("balanceType"), net))

    wanted = {normalize_text(a) for a in expected}
    for card in cards:
        name = card.get("account")
        if text_filled(name) and normalize_text(name) not in wanted:
            sheet.note(f"{name}.present", False)
            for side in (LEFT, RIGHT):
                for j, row in enumerate(as_list(card.get(side))):
                    penalize_filled(sheet, f"{name}.{side}.{j}", as_mapping(row), ROW_FIELDS)

    prs = as_mapping(payload.get("journalPRs"))
    for tx in activity.transactions:
        refs = [posting_ref(LEFT, tx.id, i) for i in range(len(tx.debits))]
        refs += [posting_ref(RIGHT, tx.id, i) for i in range(len(tx.credits))]
        for ref in refs:
            sheet.check(f"pr.{ref}", bool(prs.get(ref)) and ref in posted)

    return sheet.result()
