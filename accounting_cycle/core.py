"""
Core types and pure functions for the accounting-cycle engine.

This module provides the foundational data structures shared by the generator,
the aggregator, the step validators and the progression state machine:
1. Constants: step catalogue, account names, equity-cause taxonomy
2. Exceptions: CycleError and domain-specific error types
3. Immutable data structures: JournalLine, Analysis, Transaction,
   BeginningBalances, Adjustment, AccountTotals, ValidationResult,
   StepStatus, ActivityData
4. Money helpers: parse_amount, amounts_match, letter_grade

All functions in this module are pure. Every record is frozen; derived
values are recomputed, never patched in place.
"""

from __future__ import annotations
import calendar
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .config import ScenarioConfig


# ============================================================================
# CONSTANTS
# ============================================================================

# Accounting-cycle steps, in presentation order.
STEP_TRANSACTION_ANALYSIS = 1
STEP_JOURNALIZING = 2
STEP_POSTING = 3
STEP_TRIAL_BALANCE = 4
STEP_WORKSHEET = 5
STEP_FINANCIAL_STATEMENTS = 6
STEP_ADJUSTING_ENTRIES = 7
STEP_CLOSING_ENTRIES = 8
STEP_POST_CLOSING_TRIAL_BALANCE = 9
STEP_REVERSING_ENTRIES = 10

STEP_TITLES = {
    STEP_TRANSACTION_ANALYSIS: "Transaction Analysis",
    STEP_JOURNALIZING: "Journalizing",
    STEP_POSTING: "Posting to Ledger",
    STEP_TRIAL_BALANCE: "Trial Balance",
    STEP_WORKSHEET: "10-Column Worksheet",
    STEP_FINANCIAL_STATEMENTS: "Financial Statements",
    STEP_ADJUSTING_ENTRIES: "Adjusting Entries",
    STEP_CLOSING_ENTRIES: "Closing Entries",
    STEP_POST_CLOSING_TRIAL_BALANCE: "Post-Closing Trial Balance",
    STEP_REVERSING_ENTRIES: "Reversing Entries",
}

ALL_STEPS: Tuple[int, ...] = tuple(sorted(STEP_TITLES))

# Attempts granted to every step before it completes as incorrect.
DEFAULT_ATTEMPTS = 3

# Accounting-equation effects.
EFFECT_INCREASE = "Increase"
EFFECT_DECREASE = "Decrease"
EFFECT_NO_EFFECT = "No Effect"

# Taxonomy of causes for a change in equity. The empty string means
# "equity unaffected".
EQUITY_CAUSES: Tuple[str, ...] = (
    "",
    "Increase in Capital",
    "Decrease in Capital",
    "Increase in Drawings",
    "Decrease in Drawings",
    "Increase in Income",
    "Decrease in Income",
    "Increase in Expense",
    "Decrease in Expense",
)

# Adjustment families. Reversing-entry eligibility keys off these.
ADJ_ACCRUED_EXPENSE = "Accrued Expense"
ADJ_ACCRUED_REVENUE = "Accrued Revenue"
ADJ_DEFERRED_EXPENSE = "Deferred Expense"
ADJ_DEFERRED_INCOME = "Deferred Income"
ADJ_DEPRECIATION = "Depreciation"
ADJ_BAD_DEBT = "Bad Debt"
# Periodic inventory: close beginning inventory and record ending inventory
# through Income Summary.
ADJ_BEGINNING_INVENTORY = "Beginning Inventory"
ADJ_ENDING_INVENTORY = "Ending Inventory"

# Account names the generator emits.
CASH = "Cash"
ACCOUNTS_RECEIVABLE = "Accounts Receivable"
ALLOWANCE_FOR_DOUBTFUL_ACCOUNTS = "Allowance for Doubtful Accounts"
MERCHANDISE_INVENTORY = "Merchandise Inventory"
SUPPLIES = "Supplies"
PREPAID_RENT = "Prepaid Rent"
EQUIPMENT = "Equipment"
ACCUMULATED_DEPRECIATION_EQUIPMENT = "Accumulated Depreciation - Equipment"
FURNITURE = "Furniture"
ACCOUNTS_PAYABLE = "Accounts Payable"
NOTES_PAYABLE = "Notes Payable"
SALARIES_PAYABLE = "Salaries Payable"
UTILITIES_PAYABLE = "Utilities Payable"
INTEREST_PAYABLE = "Interest Payable"
UNEARNED_REVENUE = "Unearned Revenue"
INCOME_SUMMARY = "Income Summary"
SERVICE_REVENUE = "Service Revenue"
SALES = "Sales"
SALES_DISCOUNTS = "Sales Discounts"
INTEREST_INCOME = "Interest Income"
COST_OF_GOODS_SOLD = "Cost of Goods Sold"
PURCHASES = "Purchases"
PURCHASE_DISCOUNTS = "Purchase Discounts"
FREIGHT_IN = "Freight In"
FREIGHT_OUT = "Freight Out"
RENT_EXPENSE = "Rent Expense"
SALARIES_EXPENSE = "Salaries Expense"
UTILITIES_EXPENSE = "Utilities Expense"
SUPPLIES_EXPENSE = "Supplies Expense"
DEPRECIATION_EXPENSE = "Depreciation Expense"
INTEREST_EXPENSE = "Interest Expense"
BAD_DEBT_EXPENSE = "Bad Debt Expense"

# Side labels used on ledger cards and balances.
SIDE_DR = "Dr"
SIDE_CR = "Cr"

# Amounts within this distance of each other are considered equal.
AMOUNT_TOLERANCE = Decimal("1")

ZERO = Decimal("0")

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
)


# ============================================================================
# EXCEPTIONS
# ============================================================================

class CycleError(Exception):
    """Base exception for all accounting-cycle errors."""
    pass


class ScenarioConfigError(CycleError, ValueError):
    """Raised when a scenario configuration names an unsupported option."""
    pass


class InvariantViolation(CycleError):
    """Raised when generated scenario data breaks a hard bookkeeping invariant."""
    pass


class UnknownStepError(CycleError, KeyError):
    """Raised when a step id outside the accounting cycle is requested."""
    pass


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Learner answers are host-owned JSON values; validators only read them.
Answer = Any

# Flat map of answer-field path to correctness, e.g. {"3.assets": True}.
Details = Dict[str, bool]


# ============================================================================
# MONEY HELPERS
# ============================================================================

# Amounts whose decimal exponent exceeds this are not plausible entries.
MAX_AMOUNT_EXPONENT = 15

_SEPARATORS = re.compile(r"[\s,]")
_CURRENCY_SIGNS = ("₱", "$", "P")


def to_decimal(value: Any) -> Decimal:
    """Convert a generator-side amount (int, str, Decimal) to Decimal."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def _bounded(result: Decimal) -> Decimal:
    if not result.is_finite() or result.adjusted() > MAX_AMOUNT_EXPONENT:
        return ZERO
    return result


def parse_amount(value: Any) -> Decimal:
    """
    Parse a learner-entered amount leniently.

    Accepts numbers and numeric strings with thousands separators, a leading
    currency sign, a leading minus or accounting-style parentheses for
    negatives. Anything unparsable (None, empty, garbage, NaN, or a magnitude
    beyond 10**MAX_AMOUNT_EXPONENT) is zero.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return _bounded(value)
    if isinstance(value, (int, float)):
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return ZERO
        return _bounded(result)
    text = str(value).strip()
    if not text:
        return ZERO
    negative = False
    if text.startswith("(") and text.endswith(")"):
        negative = True
        text = text[1:-1]
    text = _SEPARATORS.sub("", text)
    if text.startswith("-"):
        negative = not negative
        text = text[1:]
    if text.startswith(_CURRENCY_SIGNS):
        text = text[1:]
        if text.startswith("-"):
            negative = not negative
            text = text[1:]
    try:
        result = Decimal(text)
    except InvalidOperation:
        return ZERO
    result = _bounded(result)
    return -result if negative else result


def amounts_match(actual: Any, expected: Any) -> bool:
    """True when two amounts differ by at most AMOUNT_TOLERANCE."""
    return abs(parse_amount(actual) - parse_amount(expected)) <= AMOUNT_TOLERANCE


def round_to(amount: Decimal, step: int = 100) -> Decimal:
    """Round an amount to the nearest multiple of step (half away from zero)."""
    units = (amount / step).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return units * step


def normalize_text(value: Any) -> str:
    """Trim, collapse inner whitespace and lower-case a free-text field."""
    if value is None:
        return ""
    return " ".join(str(value).split()).lower()


def is_blank(value: Any) -> bool:
    """True for None and whitespace-only strings."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def letter_grade(score: int, max_score: int) -> str:
    """
    Map a score to a letter grade.

    >= 90% A, >= 80% B, >= 70% C, >= 60% D, else F.
    "IR" (incomplete) when there was nothing to score.
    """
    if max_score <= 0:
        return "IR"
    percentage = Decimal(score) * 100 / Decimal(max_score)
    if percentage >= 90:
        return "A"
    if percentage >= 80:
        return "B"
    if percentage >= 70:
        return "C"
    if percentage >= 60:
        return "D"
    return "F"


def month_end(d: date) -> date:
    """Last calendar day of d's month."""
    return date(d.year, d.month, calendar.monthrange(d.year, d.month)[1])


# ============================================================================
# SCENARIO DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class JournalLine:
    """One debit or credit line of a journal entry."""
    account: str
    amount: Decimal

    def __post_init__(self):
        if not self.account or not self.account.strip():
            raise ValueError("JournalLine account cannot be empty")
        if not isinstance(self.amount, Decimal):
            raise ValueError(f"JournalLine amount must be Decimal, got {type(self.amount)}")
        if self.amount <= 0:
            raise ValueError(f"JournalLine amount must be positive, got {self.amount}")


@dataclass(frozen=True, slots=True)
class Analysis:
    """
    Answer key for the accounting-equation effect of a transaction.

    Attributes:
        assets: Increase / Decrease / No Effect
        liabilities: Increase / Decrease / No Effect
        equity: Increase / Decrease / No Effect
        cause: one of EQUITY_CAUSES ("" when equity is unaffected)
    """
    assets: str = EFFECT_NO_EFFECT
    liabilities: str = EFFECT_NO_EFFECT
    equity: str = EFFECT_NO_EFFECT
    cause: str = ""

    def __post_init__(self):
        if self.cause not in EQUITY_CAUSES:
            raise ValueError(f"Unknown equity cause: {self.cause!r}")


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    A balanced general-journal transaction.

    Attributes:
        id: 1-based position in the scenario
        date: posting date
        description: narrative shown to the learner
        debits: debit lines, in journal order
        credits: credit lines, in journal order
        analysis: accounting-equation answer key
        kind: template the transaction was drawn from (e.g. "Revenue Cash")

    INVARIANT: sum(debits) == sum(credits), exactly.
    """
    id: int
    date: date
    description: str
    debits: Tuple[JournalLine, ...]
    credits: Tuple[JournalLine, ...]
    analysis: Analysis
    kind: str = ""

    def __post_init__(self):
        if not self.debits or not self.credits:
            raise ValueError(f"Transaction {self.id} needs at least one debit and one credit")
        if self.total_debits != self.total_credits:
            raise ValueError(
                f"Transaction {self.id} is unbalanced: "
                f"debits {self.total_debits} != credits {self.total_credits}"
            )

    @property
    def total_debits(self) -> Decimal:
        return sum((line.amount for line in self.debits), ZERO)

    @property
    def total_credits(self) -> Decimal:
        return sum((line.amount for line in self.credits), ZERO)

    @property
    def accounts(self) -> Tuple[str, ...]:
        return tuple(line.account for line in self.debits + self.credits)


@dataclass(frozen=True, slots=True)
class BeginningBalance:
    """Prior-period balance of one account. Only one side may be non-zero."""
    dr: Decimal = ZERO
    cr: Decimal = ZERO

    def __post_init__(self):
        if self.dr < 0 or self.cr < 0:
            raise ValueError("Beginning balance sides cannot be negative")
        if self.dr != 0 and self.cr != 0:
            raise ValueError("Beginning balance cannot carry both a debit and a credit")


@dataclass(frozen=True, slots=True)
class BeginningBalances:
    """Beginning balances of a subsequent-year scenario, keyed by account."""
    balances: Mapping[str, BeginningBalance]

    @property
    def total_debits(self) -> Decimal:
        return sum((b.dr for b in self.balances.values()), ZERO)

    @property
    def total_credits(self) -> Decimal:
        return sum((b.cr for b in self.balances.values()), ZERO)


@dataclass(frozen=True, slots=True)
class Adjustment:
    """
    A two-line period-end adjusting entry.

    Attributes:
        id: stable key used by learner answers (e.g. "adj1")
        type: adjustment family (ADJ_* constant)
        desc: narrative shown to the learner
        dr_account: account debited
        cr_account: account credited
        amount: entry amount (positive)
    """
    id: str
    type: str
    desc: str
    dr_account: str
    cr_account: str
    amount: Decimal

    def __post_init__(self):
        if self.dr_account == self.cr_account:
            raise ValueError(f"Adjustment {self.id} debits and credits the same account")
        if not isinstance(self.amount, Decimal) or self.amount <= 0:
            raise ValueError(f"Adjustment {self.id} amount must be a positive Decimal")

    @property
    def is_accrual(self) -> bool:
        return self.type.startswith("Accrued")


@dataclass(frozen=True, slots=True)
class AccountTotals:
    """Running debit and credit totals of one account."""
    debit: Decimal = ZERO
    credit: Decimal = ZERO

    def post(self, debit: Decimal = ZERO, credit: Decimal = ZERO) -> AccountTotals:
        """Return new totals with the given postings added."""
        return AccountTotals(self.debit + debit, self.credit + credit)

    @property
    def net(self) -> Decimal:
        """Signed balance, positive for a debit balance."""
        return self.debit - self.credit

    @property
    def balance(self) -> Tuple[Decimal, str]:
        """(absolute balance, side). A zero balance reports the debit side."""
        net = self.net
        return abs(net), (SIDE_DR if net >= 0 else SIDE_CR)


# Mapping from account name to its running totals, in first-posting order.
Ledger = Dict[str, AccountTotals]


# ============================================================================
# RESULTS AND STATE
# ============================================================================

@dataclass(frozen=True, slots=True)
class ValidationResult:
    """
    Verdict of one step validator.

    Attributes:
        is_correct: True only when every checkable field is right
        score: points earned (never negative)
        max_score: points available
        letter_grade: letter_grade(score, max_score)
        details: per-field correctness keyed by answer path
    """
    is_correct: bool
    score: int
    max_score: int
    letter_grade: str
    details: Details = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class StepStatus:
    """Progress of one step. Replaced, never mutated, on each validation."""
    attempts: int = DEFAULT_ATTEMPTS
    completed: bool = False
    correct: bool = False


@dataclass(frozen=True, slots=True)
class ActivityData:
    """
    Composed root of one generated activity. Read-only downstream.

    Attributes:
        config: the ScenarioConfig the activity was generated from
        transactions: balanced transactions, in date order
        ledger: aggregate of beginning balances and transactions
        valid_accounts: sorted union of accounts in transactions and beginning balances
        beginning_balances: present only for subsequent-year scenarios
        adjustments: period-end adjusting entries
        steps: selected step ids, ascending
    """
    config: ScenarioConfig
    transactions: Tuple[Transaction, ...]
    ledger: Ledger
    valid_accounts: Tuple[str, ...]
    beginning_balances: Optional[BeginningBalances]
    adjustments: Tuple[Adjustment, ...]
    steps: Tuple[int, ...]

    @property
    def period_start(self) -> date:
        if self.transactions:
            return self.transactions[0].date
        return date(self.config.year, 1, 1)

    @property
    def period_end(self) -> date:
        return month_end(self.period_start)


def transaction_accounts(transactions: List[Transaction]) -> List[str]:
    """Accounts touched by the transactions, in first-appearance order."""
    seen: Dict[str, None] = {}
    for tx in transactions:
        for account in tx.accounts:
            seen.setdefault(account, None)
    return list(seen)
