"""
common.py - Shared scoring machinery for step validators

Every validator is a pure function (activity, answer) -> ValidationResult.
They share:
- ScoreSheet: additive per-field scoring with penalties and a details map
- Defensive readers: as_mapping / as_list / lookup never raise on garbage
- Comparison helpers: account names, dates, balances under the uniform
  amount tolerance

Learner answers are host JSON and are never trusted for shape: missing or
malformed fields read as empty, and empty scores as wrong.
"""

from __future__ import annotations
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Set

from ..core import (
    Details, ValidationResult, MONTH_NAMES, SIDE_CR, SIDE_DR, ZERO,
    amounts_match, is_blank, letter_grade, normalize_text, parse_amount,
)


class ScoreSheet:
    """
    Accumulates points, penalties and per-field verdicts for one validation.

    check() adds to both score and max_score; penalize() only subtracts
    from score. The final score is clamped at zero.
    """

    def __init__(self):
        self.score = 0
        self.max_score = 0
        self.details: Details = {}

    def check(self, key: str, ok: bool, points: int = 1) -> bool:
        self.max_score += points
        if ok:
            self.score += points
        self.details[key] = bool(ok)
        return bool(ok)

    def penalize(self, key: str, points: int = 1) -> None:
        self.score -= points
        self.details[key] = False

    def note(self, key: str, ok: bool) -> bool:
        """Record a verdict that carries no points."""
        self.details[key] = bool(ok)
        return bool(ok)

    def result(self, extra_condition: bool = True) -> ValidationResult:
        score = max(self.score, 0)
        perfect = self.max_score > 0 and score == self.max_score and extra_condition
        return ValidationResult(
            is_correct=perfect,
            score=score,
            max_score=self.max_score,
            letter_grade=letter_grade(score, self.max_score),
            details=dict(self.details),
        )


# ============================================================================
# DEFENSIVE READERS
# ============================================================================

def as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def lookup(mapping: Mapping[Any, Any], key: Any) -> Any:
    """Read mapping[key], also trying the str/int form (JSON keys are strings)."""
    if key in mapping:
        return mapping[key]
    text = str(key)
    if text in mapping:
        return mapping[text]
    try:
        number = int(text)
    except ValueError:
        return None
    return mapping.get(number)


def lookup_account(mapping: Mapping[str, Any], account: str) -> Optional[Any]:
    """Find an account-keyed entry case- and whitespace-insensitively."""
    if account in mapping:
        return mapping[account]
    wanted = normalize_text(account)
    for key, value in mapping.items():
        if normalize_text(key) == wanted:
            return value
    return None


def text_filled(value: Any) -> bool:
    return not is_blank(value) and value is not False


def amount_filled(value: Any) -> bool:
    return parse_amount(value) != 0


def any_filled(row: Mapping[str, Any], fields: Iterable[str]) -> List[str]:
    """Names of the given fields that hold something."""
    return [f for f in fields if text_filled(row.get(f))]


# ============================================================================
# COMPARISONS
# ============================================================================

def same_account(actual: Any, expected: str) -> bool:
    return bool(normalize_text(actual)) and normalize_text(actual) == normalize_text(expected)


def month_abbrev(d: date) -> str:
    return MONTH_NAMES[d.month - 1][:3]


def day_forms(d: date) -> Set[str]:
    """"5" and "05"."""
    return {str(d.day), f"{d.day:02d}"}


def month_day_forms(d: date) -> Set[str]:
    """"jan 5", "jan 05", "january 5", "january 05" (normalised)."""
    forms = set()
    for month in (month_abbrev(d), MONTH_NAMES[d.month - 1]):
        for day in day_forms(d):
            forms.add(normalize_text(f"{month} {day}"))
    return forms


def year_forms(year: int) -> Set[str]:
    return {str(year), f"({year})"}


def long_date_matches(value: Any, d: date) -> bool:
    """Accepts "January 31, 2023" with or without the comma."""
    expected = f"{MONTH_NAMES[d.month - 1]} {d.day} {d.year}".lower()
    return normalize_text(str(value or "").replace(",", " ")) == expected


def balance_matches(amount: Any, side: Any, net: Decimal) -> bool:
    """
    A learner balance (amount + "Dr"/"Cr") against a signed expected balance.

    A zero balance accepts either side.
    """
    if not amounts_match(amount, abs(net)):
        return False
    if net == 0:
        return True
    expected_side = SIDE_DR if net > 0 else SIDE_CR
    return normalize_text(side) == expected_side.lower()


def magnitude_matches(value: Any, expected: Decimal) -> bool:
    """Compare absolute values, so "(1,200)" and "1,200" both match a loss of 1,200."""
    return abs(abs(parse_amount(value)) - abs(expected)) <= Decimal("1")


def sum_amounts(rows: Iterable[Mapping[str, Any]], field: str) -> Decimal:
    return sum((parse_amount(r.get(field)) for r in rows), ZERO)


def penalize_filled(sheet: ScoreSheet, key: str, row: Mapping[str, Any], fields: Iterable[str]) -> None:
    """-1 for every filled field of a row that should be empty."""
    for name in any_filled(row, fields):
        sheet.penalize(f"{key}.{name}")
