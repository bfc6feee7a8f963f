"""
generator.py - Scenario Generator

Produces a pseudo-random but internally consistent bookkeeping scenario:
beginning balances (subsequent years only), a sequence of balanced
transactions, and the adjusting entries the resulting ledger calls for.

ARCHITECTURE (Constraint-Checked Generation):
=============================================

1. TEMPLATE LIBRARY (build_templates):
   - One TransactionTemplate per transaction kind, keyed by kind
   - Base amounts are drawn once per scenario; build(amount) returns a
     TransactionDraft whose lines always balance for any amount
   - Account choices follow the configuration (inventory system,
     deferral methods, ownership form)

2. RUNNING BALANCES (explicit state threaded through every draw):
   - Seeded from beginning balances, updated after each accepted draft
   - check_constraints() rejects a draft that would leave cash or
     inventory negative, collect more than is receivable, or pay more
     than is payable
   - Rejected fill draws are retried; nothing is generated and patched

3. ADJUSTMENTS (generate_adjustments):
   - Pure function of the post-transaction ledger and the configuration
   - Each family is bounded by the balance it adjusts and skipped when
     there is nothing to adjust

4. COMPOSITION (generate):
   - Threads one numpy Generator through every random draw, so a seed
     reproduces the whole scenario
   - Asserts the hard invariants before returning ActivityData

Key Constraints:
    cash >= 0, receivables >= 0, payables <= 0 (credit balance), inventory >= 0
    sum(debits) == sum(credits) for every transaction
    exactly one capital account per scenario
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
import logging
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from .core import (
    ActivityData, Adjustment, Analysis, BeginningBalance, BeginningBalances,
    InvariantViolation, JournalLine, Ledger, Transaction,
    ACCOUNTS_PAYABLE, ACCOUNTS_RECEIVABLE, ACCUMULATED_DEPRECIATION_EQUIPMENT,
    ADJ_ACCRUED_EXPENSE, ADJ_ACCRUED_REVENUE, ADJ_BAD_DEBT, ADJ_DEFERRED_EXPENSE,
    ADJ_BEGINNING_INVENTORY, ADJ_DEFERRED_INCOME, ADJ_DEPRECIATION, ADJ_ENDING_INVENTORY,
    ALLOWANCE_FOR_DOUBTFUL_ACCOUNTS,
    BAD_DEBT_EXPENSE, CASH, COST_OF_GOODS_SOLD, DEPRECIATION_EXPENSE,
    EFFECT_DECREASE, EFFECT_INCREASE, EFFECT_NO_EFFECT, EQUIPMENT, FREIGHT_IN,
    FREIGHT_OUT, FURNITURE, INCOME_SUMMARY, INTEREST_EXPENSE, INTEREST_INCOME, INTEREST_PAYABLE,
    MERCHANDISE_INVENTORY, NOTES_PAYABLE, PREPAID_RENT, PURCHASE_DISCOUNTS,
    PURCHASES, RENT_EXPENSE, SALARIES_EXPENSE, SALARIES_PAYABLE, SALES,
    SALES_DISCOUNTS, SERVICE_REVENUE, SUPPLIES, SUPPLIES_EXPENSE,
    UNEARNED_REVENUE, UTILITIES_EXPENSE, UTILITIES_PAYABLE, ZERO,
    normalize_text, round_to, transaction_accounts,
)
from .config import (
    BUSINESS_BANKING, DEFERRED_EXPENSE_ASSET, DEFERRED_INCOME_LIABILITY,
    OWNERSHIP_PARTNERSHIP, OWNERSHIP_SOLE, ScenarioConfig,
)
from .accounts import (
    ASSET, EQUITY, EXPENSE, LIABILITY, REVENUE, CREDIT,
    classify, sort_accounts,
)
from .aggregation import aggregate, find_capital_account

logger = logging.getLogger(__name__)


# ============================================================================
# CONSTANTS
# ============================================================================

# Transaction kinds.
KIND_INVESTMENT = "Investment"
KIND_RENT_ADVANCE = "Rent Advance"
KIND_SUPPLIES_CREDIT = "Supplies Credit"
KIND_SUPPLIES_CASH = "Supplies Cash"
KIND_REVENUE_CASH = "Revenue Cash"
KIND_REVENUE_CREDIT = "Revenue Credit"
KIND_SALARY = "Salary Expense"
KIND_UTILITY = "Utility Expense"
KIND_DRAWINGS = "Drawings"
KIND_EQUIPMENT_CASH = "Equip Cash"
KIND_UNEARNED = "Unearned Revenue"
KIND_COLLECTION = "Collection AR"
KIND_PAYMENT = "Payment AP"
KIND_PURCHASE_CREDIT = "Merch Purchase Credit"
KIND_PURCHASE_CASH = "Merch Purchase Cash"
KIND_FREIGHT_IN = "Freight In"
KIND_SALE_CREDIT = "Merch Sale Credit"
KIND_SALE_CASH = "Merch Sale Cash"
KIND_FREIGHT_OUT = "Freight Out"
KIND_COLLECTION_DISCOUNT = "Collection Discount"
KIND_PAYMENT_DISCOUNT = "Payment Discount"

# Kinds whose amount is jittered when drawn as filler.
JITTERED_KINDS = frozenset({
    KIND_REVENUE_CASH, KIND_SALARY, KIND_COLLECTION, KIND_UTILITY,
    KIND_REVENUE_CREDIT, KIND_PURCHASE_CASH, KIND_SALE_CASH,
    KIND_COLLECTION_DISCOUNT, KIND_PAYMENT_DISCOUNT,
})

INVESTMENT_AMOUNT = Decimal("800000")
RENT_ADVANCE_AMOUNT = Decimal("12000")
FREIGHT_IN_AMOUNT = Decimal("1200")
FREIGHT_OUT_AMOUNT = Decimal("1500")
COLLECTION_DISCOUNT_GROSS = Decimal("8000")
PAYMENT_DISCOUNT_GROSS = Decimal("6000")
CASH_DISCOUNT_RATE = Decimal("0.02")
PURCHASE_TRADE_DISCOUNT = Decimal("0.20")
SALE_TRADE_DISCOUNT = Decimal("0.10")
# Perpetual sales relieve inventory at this fraction of the selling price.
COST_OF_SALES_RATIO = Decimal("0.60")

AMOUNT_JITTER = 1000
MIN_FILL_AMOUNT = Decimal("1000")
MAX_DRAW_ATTEMPTS = 50

# Beginning balances.
BB_CASH_RANGE = (100000, 600000)
BB_OTHER_RANGE = (5000, 55000)
BB_EQUITY_FLOOR = Decimal("200000")

# Adjustments.
MAX_ADJUSTMENTS = 8
SUPPLIES_REMAINING_RATIO = Decimal("0.3")
RENT_MONTHS_PREPAID = 3
UNEARNED_EARNED_AMOUNT = Decimal("2500")
ADVANCE_UNEARNED_AMOUNT = Decimal("3500")
ADVANCE_REVENUE_THRESHOLD = Decimal("20000")
ACCRUED_SALARIES_AMOUNT = Decimal("2000")
# Periodic ending inventory is the share of goods available not yet sold.
ENDING_INVENTORY_RATIO = 1 - COST_OF_SALES_RATIO
ACCRUED_REVENUE_AMOUNT = Decimal("3000")
DEPRECIATION_AMOUNT = Decimal("1500")
NOTE_INTEREST_MONTHLY_RATE = Decimal("0.01")
BAD_DEBT_RATE = Decimal("0.02")

# Signed running balance per account (positive = debit).
RunningBalances = Dict[str, Decimal]


def fmt(amount: Decimal) -> str:
    """Peso amount for narratives, e.g. P12,000."""
    return f"P{amount:,}"


def capital_account_for(config: ScenarioConfig) -> str:
    """The scenario's single capital account."""
    if config.ownership == OWNERSHIP_SOLE:
        return "Owner, Capital"
    if config.ownership == OWNERSHIP_PARTNERSHIP:
        return "Partners, Capital"
    return "Retained Earnings" if config.is_subsequent_year else "Share Capital"


def drawing_account_for(config: ScenarioConfig) -> str:
    if config.ownership == OWNERSHIP_SOLE:
        return "Owner, Drawings"
    if config.ownership == OWNERSHIP_PARTNERSHIP:
        return "Partners, Drawings"
    return "Dividends"


def revenue_account_for(config: ScenarioConfig) -> str:
    if config.is_merchandiser:
        return SALES
    if config.business_type == BUSINESS_BANKING:
        return INTEREST_INCOME
    return SERVICE_REVENUE


def _draw_amount(rng: np.random.Generator, low: int, spread: int) -> Decimal:
    """Uniform draw in [low, low + spread), rounded to the nearest 100."""
    return round_to(Decimal(int(rng.integers(low, low + spread))))


# ============================================================================
# ACCOUNTING-EQUATION ANALYSIS
# ============================================================================

def _equity_cause(line_account: str, is_debit: bool) -> Optional[Tuple[int, str]]:
    """(direction, cause) for one equity-affecting line, or None."""
    c = classify(line_account)
    name = normalize_text(line_account)
    if c.account_type == REVENUE:
        if is_debit:
            return -1, "Decrease in Income"
        return 1, "Increase in Income"
    if c.account_type == EXPENSE:
        if is_debit:
            return -1, "Increase in Expense"
        return 1, "Decrease in Expense"
    if c.account_type == EQUITY and c.contra:
        if "drawing" in name:
            return (-1, "Increase in Drawings") if is_debit else (1, "Decrease in Drawings")
        return (-1, "Decrease in Capital") if is_debit else (1, "Increase in Capital")
    if c.account_type == EQUITY and not c.temporary:
        return (-1, "Decrease in Capital") if is_debit else (1, "Increase in Capital")
    return None


def _effect(delta: Decimal) -> str:
    if delta > 0:
        return EFFECT_INCREASE
    if delta < 0:
        return EFFECT_DECREASE
    return EFFECT_NO_EFFECT


def analyze_effect(debits: Tuple[JournalLine, ...], credits: Tuple[JournalLine, ...]) -> Analysis:
    """
    Answer key for a transaction's effect on the accounting equation.

    Each element's effect is the sign of its net change. The equity cause
    is taken from the largest equity-affecting line moving in the same
    direction as equity overall ("" when equity is unchanged).
    """
    deltas = {ASSET: ZERO, LIABILITY: ZERO, EQUITY: ZERO}
    causes: List[Tuple[Decimal, int, str]] = []
    for lines, is_debit in ((debits, True), (credits, False)):
        for line in lines:
            kind = classify(line.account).account_type
            sign = 1 if is_debit else -1
            if kind == ASSET:
                deltas[ASSET] += sign * line.amount
            elif kind == LIABILITY:
                deltas[LIABILITY] -= sign * line.amount
            else:
                deltas[EQUITY] -= sign * line.amount
            cause = _equity_cause(line.account, is_debit)
            if cause is not None:
                causes.append((line.amount, cause[0], cause[1]))

    equity_direction = (deltas[EQUITY] > 0) - (deltas[EQUITY] < 0)
    cause = ""
    if equity_direction:
        matching = [c for c in causes if c[1] == equity_direction]
        if matching:
            cause = max(matching, key=lambda c: c[0])[2]
    return Analysis(
        assets=_effect(deltas[ASSET]),
        liabilities=_effect(deltas[LIABILITY]),
        equity=_effect(deltas[EQUITY]),
        cause=cause,
    )


# ============================================================================
# TEMPLATE LIBRARY
# ============================================================================

@dataclass(frozen=True, slots=True)
class TransactionDraft:
    """A transaction before it receives an id, a date and its analysis."""
    kind: str
    description: str
    debits: Tuple[JournalLine, ...]
    credits: Tuple[JournalLine, ...]


@dataclass(frozen=True, slots=True)
class TransactionTemplate:
    """
    A transaction kind with its scenario base amount.

    build(amount) must return a balanced draft for any positive amount.
    """
    kind: str
    base_amount: Decimal
    build: Callable[[Decimal], TransactionDraft]

    @property
    def jittered(self) -> bool:
        return self.kind in JITTERED_KINDS


def _simple(kind: str, describe: Callable[[Decimal], str], dr: str, cr: str) -> Callable[[Decimal], TransactionDraft]:
    def build(amount: Decimal) -> TransactionDraft:
        return TransactionDraft(kind, describe(amount), (JournalLine(dr, amount),), (JournalLine(cr, amount),))
    return build


def _sale(kind: str, describe: Callable[[Decimal], str], dr: str, perpetual: bool) -> Callable[[Decimal], TransactionDraft]:
    def build(amount: Decimal) -> TransactionDraft:
        debits = [JournalLine(dr, amount)]
        credits = [JournalLine(SALES, amount)]
        if perpetual:
            cost = round_to(amount * COST_OF_SALES_RATIO, 1)
            debits.append(JournalLine(COST_OF_GOODS_SOLD, cost))
            credits.append(JournalLine(MERCHANDISE_INVENTORY, cost))
        return TransactionDraft(kind, describe(amount), tuple(debits), tuple(credits))
    return build


def _collection_with_discount(gross: Decimal) -> TransactionDraft:
    discount = round_to(gross * CASH_DISCOUNT_RATE, 1)
    return TransactionDraft(
        KIND_COLLECTION_DISCOUNT,
        f"Collected {fmt(gross)} accounts receivable within discount period (2/10, n/30)",
        (JournalLine(CASH, gross - discount), JournalLine(SALES_DISCOUNTS, discount)),
        (JournalLine(ACCOUNTS_RECEIVABLE, gross),),
    )


def _payment_with_discount(discount_account: str) -> Callable[[Decimal], TransactionDraft]:
    def build(gross: Decimal) -> TransactionDraft:
        discount = round_to(gross * CASH_DISCOUNT_RATE, 1)
        return TransactionDraft(
            KIND_PAYMENT_DISCOUNT,
            f"Paid {fmt(gross)} accounts payable within discount period (2/10, n/30)",
            (JournalLine(ACCOUNTS_PAYABLE, gross),),
            (JournalLine(CASH, gross - discount), JournalLine(discount_account, discount)),
        )
    return build


def _shipping_terms(rng: np.random.Generator) -> str:
    term = "FOB Shipping Point" if rng.random() > 0.5 else "FOB Destination"
    pay = "Freight Collect" if rng.random() > 0.5 else "Freight Prepaid"
    return f"{term}, {pay}"


def build_templates(config: ScenarioConfig, rng: np.random.Generator) -> Dict[str, TransactionTemplate]:
    """
    Build the scenario's template library, keyed by kind.

    Account choices follow the configuration: deferral methods decide
    whether prepayments hit an asset or an expense and whether advances
    hit a liability or revenue; the inventory system decides whether
    purchases hit Merchandise Inventory or Purchases.
    """
    revenue = revenue_account_for(config)
    capital = capital_account_for(config)
    drawing = drawing_account_for(config)
    asset_method = config.deferred_expense_method == DEFERRED_EXPENSE_ASSET
    supplies_debit = SUPPLIES if asset_method else SUPPLIES_EXPENSE
    rent_debit = PREPAID_RENT if asset_method else RENT_EXPENSE
    advance_credit = UNEARNED_REVENUE if config.deferred_income_method == DEFERRED_INCOME_LIABILITY else revenue

    receivable_amt = _draw_amount(rng, 10000, 10000)
    supplies_amt = _draw_amount(rng, 4000, 3000)
    salary_amt = _draw_amount(rng, 7000, 5000)
    utility_amt = _draw_amount(rng, 2000, 1000)
    draw_amt = _draw_amount(rng, 4000, 2000)
    equip_amt = _draw_amount(rng, 40000, 20000)
    unearned_amt = _draw_amount(rng, 8000, 5000)
    merch_amt = _draw_amount(rng, 15000, 10000)

    templates: Dict[str, TransactionTemplate] = {}

    def add(kind: str, amount: Decimal, build: Callable[[Decimal], TransactionDraft]) -> None:
        templates[kind] = TransactionTemplate(kind, amount, build)

    if not config.is_subsequent_year:
        def invest_text(a: Decimal) -> str:
            if config.ownership == OWNERSHIP_PARTNERSHIP:
                return f"The {config.num_partners} partners invested a combined {fmt(a)} cash in the business"
            return f"Initial capital investment of {fmt(a)}"
        add(KIND_INVESTMENT, INVESTMENT_AMOUNT, _simple(KIND_INVESTMENT, invest_text, CASH, capital))

    add(KIND_RENT_ADVANCE, RENT_ADVANCE_AMOUNT, _simple(
        KIND_RENT_ADVANCE, lambda a: f"Paid 3 months office rent in advance, {fmt(a)}", rent_debit, CASH))
    add(KIND_SUPPLIES_CREDIT, supplies_amt, _simple(
        KIND_SUPPLIES_CREDIT, lambda a: f"Purchased office supplies on account for {fmt(a)}",
        supplies_debit, ACCOUNTS_PAYABLE))
    add(KIND_SUPPLIES_CASH, supplies_amt, _simple(
        KIND_SUPPLIES_CASH, lambda a: f"Purchased office supplies for cash, {fmt(a)}", supplies_debit, CASH))

    if not config.is_merchandiser:
        add(KIND_REVENUE_CASH, receivable_amt, _simple(
            KIND_REVENUE_CASH, lambda a: f"Provided services for cash, {fmt(a)}", CASH, revenue))
        add(KIND_REVENUE_CREDIT, receivable_amt, _simple(
            KIND_REVENUE_CREDIT, lambda a: f"Provided services on account, {fmt(a)}", ACCOUNTS_RECEIVABLE, revenue))

    add(KIND_SALARY, salary_amt, _simple(
        KIND_SALARY, lambda a: f"Paid monthly salaries: {fmt(a)}", SALARIES_EXPENSE, CASH))
    add(KIND_UTILITY, utility_amt, _simple(
        KIND_UTILITY, lambda a: f"Paid electricity and water bills: {fmt(a)}", UTILITIES_EXPENSE, CASH))
    add(KIND_DRAWINGS, draw_amt, _simple(
        KIND_DRAWINGS, lambda a: f"Owner withdrew cash for personal use: {fmt(a)}"
        if config.ownership in (OWNERSHIP_SOLE, OWNERSHIP_PARTNERSHIP)
        else f"Declared and paid cash dividends: {fmt(a)}",
        drawing, CASH))
    add(KIND_EQUIPMENT_CASH, equip_amt, _simple(
        KIND_EQUIPMENT_CASH, lambda a: f"Purchased new equipment for cash: {fmt(a)}", EQUIPMENT, CASH))
    add(KIND_UNEARNED, unearned_amt, _simple(
        KIND_UNEARNED,
        lambda a: f"Received cash in advance for services to be performed next month: {fmt(a)}",
        CASH, advance_credit))

    sale_amt = receivable_amt + 5000
    if config.include_trade_discounts:
        sale_amt = round_to(sale_amt * (1 - SALE_TRADE_DISCOUNT), 1)
    add(KIND_COLLECTION, sale_amt if config.is_merchandiser else receivable_amt, _simple(
        KIND_COLLECTION, lambda a: f"Received payment on account from customer, {fmt(a)}",
        CASH, ACCOUNTS_RECEIVABLE))
    add(KIND_PAYMENT, supplies_amt, _simple(
        KIND_PAYMENT, lambda a: f"Paid supplier for goods/supplies purchased earlier, {fmt(a)}",
        ACCOUNTS_PAYABLE, CASH))

    if config.is_merchandiser:
        _add_merchandise_templates(config, rng, add, merch_amt, receivable_amt + 5000)

    return templates


def _add_merchandise_templates(config, rng, add, list_purchase: Decimal, list_sale: Decimal) -> None:
    perpetual = config.is_perpetual
    purchase_debit = MERCHANDISE_INVENTORY if perpetual else PURCHASES
    freight_debit = MERCHANDISE_INVENTORY if perpetual else FREIGHT_IN
    discount_credit = MERCHANDISE_INVENTORY if perpetual else PURCHASE_DISCOUNTS

    purchase_amt = list_purchase
    sale_amt = list_sale
    if config.include_trade_discounts:
        purchase_amt = round_to(list_purchase * (1 - PURCHASE_TRADE_DISCOUNT), 1)
        sale_amt = round_to(list_sale * (1 - SALE_TRADE_DISCOUNT), 1)

    def priced(verb: str, list_price: Decimal, rate: Decimal, shipping: str) -> Callable[[Decimal], str]:
        def describe(amount: Decimal) -> str:
            if config.include_trade_discounts and amount == round_to(list_price * (1 - rate), 1):
                price = f"list price {fmt(list_price)} less {int(rate * 100)}% trade discount"
            else:
                price = f"for {fmt(amount)}"
            parts = [f"{verb} {price}"]
            if config.include_cash_discounts:
                parts.append("terms 2/10, n/30")
            return ", ".join(parts) + f". Terms: {shipping}"
        return describe

    purchase_terms = _shipping_terms(rng)
    sale_terms = _shipping_terms(rng)
    add(KIND_PURCHASE_CREDIT, purchase_amt, _simple(
        KIND_PURCHASE_CREDIT,
        priced("Purchased merchandise on account", list_purchase, PURCHASE_TRADE_DISCOUNT, purchase_terms),
        purchase_debit, ACCOUNTS_PAYABLE))
    add(KIND_PURCHASE_CASH, purchase_amt, _simple(
        KIND_PURCHASE_CASH,
        priced("Purchased merchandise for cash", list_purchase, PURCHASE_TRADE_DISCOUNT, purchase_terms),
        purchase_debit, CASH))
    if config.include_freight:
        add(KIND_FREIGHT_IN, FREIGHT_IN_AMOUNT, _simple(
            KIND_FREIGHT_IN, lambda a: f"Paid freight on merchandise purchased: {fmt(a)}", freight_debit, CASH))
    add(KIND_SALE_CREDIT, sale_amt, _sale(
        KIND_SALE_CREDIT,
        priced("Sold merchandise on account", list_sale, SALE_TRADE_DISCOUNT, sale_terms),
        ACCOUNTS_RECEIVABLE, perpetual))
    add(KIND_SALE_CASH, sale_amt, _sale(
        KIND_SALE_CASH,
        priced("Sold merchandise for cash", list_sale, SALE_TRADE_DISCOUNT, sale_terms),
        CASH, perpetual))
    if config.include_freight:
        add(KIND_FREIGHT_OUT, FREIGHT_OUT_AMOUNT, _simple(
            KIND_FREIGHT_OUT, lambda a: f"Paid freight on merchandise sold (FOB Destination): {fmt(a)}",
            FREIGHT_OUT, CASH))
    if config.include_cash_discounts:
        add(KIND_COLLECTION_DISCOUNT, COLLECTION_DISCOUNT_GROSS, _collection_with_discount)
        add(KIND_PAYMENT_DISCOUNT, PAYMENT_DISCOUNT_GROSS, _payment_with_discount(discount_credit))


def core_kinds(config: ScenarioConfig) -> List[str]:
    """Kinds every scenario exercises first, in order, before random filler."""
    if not config.is_merchandiser:
        return [
            KIND_RENT_ADVANCE, KIND_SUPPLIES_CREDIT, KIND_REVENUE_CASH, KIND_REVENUE_CREDIT,
            KIND_SALARY, KIND_UTILITY, KIND_DRAWINGS, KIND_EQUIPMENT_CASH, KIND_UNEARNED,
        ]
    kinds = [KIND_PURCHASE_CREDIT, KIND_SALE_CREDIT, KIND_SUPPLIES_CREDIT, KIND_RENT_ADVANCE]
    if config.include_cash_discounts:
        kinds += [KIND_COLLECTION_DISCOUNT, KIND_PAYMENT_DISCOUNT]
    else:
        kinds += [KIND_COLLECTION, KIND_PAYMENT]
    if config.include_freight:
        kinds.append(KIND_FREIGHT_IN)
    kinds += [KIND_SALARY, KIND_UTILITY, KIND_EQUIPMENT_CASH]
    return kinds


# ============================================================================
# RUNNING BALANCE CONSTRAINTS
# ============================================================================

def post_draft(balances: RunningBalances, draft: TransactionDraft) -> RunningBalances:
    """Return balances with the draft posted (input is not modified)."""
    result = dict(balances)
    for line in draft.debits:
        result[line.account] = result.get(line.account, ZERO) + line.amount
    for line in draft.credits:
        result[line.account] = result.get(line.account, ZERO) - line.amount
    return result


def check_constraints(balances: RunningBalances, draft: TransactionDraft) -> List[str]:
    """
    Hard constraints a draft must satisfy against the running balances.

    Returns:
        Human-readable violations; empty when the draft is realizable.
    """
    after = post_draft(balances, draft)
    violations = []
    if after.get(CASH, ZERO) < 0:
        violations.append(f"cash would fall to {after[CASH]}")
    if after.get(ACCOUNTS_RECEIVABLE, ZERO) < 0:
        violations.append("collection exceeds outstanding receivables")
    if after.get(ACCOUNTS_PAYABLE, ZERO) > 0:
        violations.append("payment exceeds outstanding payables")
    if after.get(MERCHANDISE_INVENTORY, ZERO) < 0:
        violations.append("inventory would fall below zero")
    return violations


def _fill_fallback(templates: Dict[str, TransactionTemplate]) -> TransactionTemplate:
    # Credit sales and credit purchases never violate a constraint.
    for kind in (KIND_REVENUE_CREDIT, KIND_PURCHASE_CREDIT):
        if kind in templates:
            return templates[kind]
    raise InvariantViolation("No always-realizable template in library")


def _draw_filler(
    templates: Dict[str, TransactionTemplate],
    balances: RunningBalances,
    rng: np.random.Generator,
) -> TransactionDraft:
    pool = [t for kind, t in templates.items() if kind != KIND_INVESTMENT]
    for _ in range(MAX_DRAW_ATTEMPTS):
        template = pool[int(rng.integers(len(pool)))]
        amount = template.base_amount
        if template.jittered:
            amount = max(amount + int(rng.integers(-AMOUNT_JITTER, AMOUNT_JITTER)), MIN_FILL_AMOUNT)
        draft = template.build(amount)
        violations = check_constraints(balances, draft)
        if not violations:
            return draft
        logger.debug("Rejected %s draw: %s", template.kind, "; ".join(violations))
    fallback = _fill_fallback(templates)
    logger.debug("Falling back to %s after %d rejected draws", fallback.kind, MAX_DRAW_ATTEMPTS)
    return fallback.build(fallback.base_amount)


# ============================================================================
# GENERATION
# ============================================================================

def generate_beginning_balances(config: ScenarioConfig, rng: np.random.Generator) -> BeginningBalances:
    """
    Prior-year balances: Cash, 3-5 asset draws, 2-4 liability draws and a
    capital plug. If the plug would be negative, Cash is topped up and
    capital is set to BB_EQUITY_FLOOR.
    """
    asset_pool = [CASH, ACCOUNTS_RECEIVABLE, SUPPLIES, PREPAID_RENT, EQUIPMENT, FURNITURE]
    liability_pool = [ACCOUNTS_PAYABLE, NOTES_PAYABLE, SALARIES_PAYABLE, UTILITIES_PAYABLE, UNEARNED_REVENUE]
    if config.is_merchandiser:
        asset_pool.append(MERCHANDISE_INVENTORY)

    selected: Dict[str, None] = {CASH: None}
    for _ in range(int(rng.integers(3, 6))):
        selected[asset_pool[int(rng.integers(len(asset_pool)))]] = None
    for _ in range(int(rng.integers(2, 5))):
        selected[liability_pool[int(rng.integers(len(liability_pool)))]] = None

    amounts: Dict[str, Decimal] = {}
    for account in selected:
        low, high = BB_CASH_RANGE if account == CASH else BB_OTHER_RANGE
        amounts[account] = round_to(Decimal(int(rng.integers(low, high))))

    balances: Dict[str, BeginningBalance] = {}
    total_dr = total_cr = ZERO
    for account, amount in amounts.items():
        if classify(account).normal_side == CREDIT:
            balances[account] = BeginningBalance(cr=amount)
            total_cr += amount
        else:
            balances[account] = BeginningBalance(dr=amount)
            total_dr += amount

    equity = capital_account_for(config)
    needed = total_dr - total_cr
    if needed < 0:
        balances[CASH] = BeginningBalance(dr=balances[CASH].dr - needed + BB_EQUITY_FLOOR)
        balances[equity] = BeginningBalance(cr=BB_EQUITY_FLOOR)
    else:
        balances[equity] = BeginningBalance(cr=needed)
    return BeginningBalances(balances)


def generate_transactions(
    config: ScenarioConfig,
    rng: np.random.Generator,
    beginning_balances: Optional[BeginningBalances] = None,
) -> Tuple[Transaction, ...]:
    """
    Emit exactly config.num_transactions balanced transactions.

    First-year scenarios open with the owners' investment. Core kinds follow
    in order (skipped if not realizable at that point), then random filler
    until the count is reached. Dates are sorted days of the first month.
    """
    templates = build_templates(config, rng)
    balances: RunningBalances = {}
    if beginning_balances is not None:
        for account, bal in beginning_balances.balances.items():
            balances[account] = bal.dr - bal.cr

    count = config.num_transactions
    drafts: List[TransactionDraft] = []

    ordered = core_kinds(config)
    if KIND_INVESTMENT in templates:
        ordered = [KIND_INVESTMENT] + ordered
    for kind in ordered:
        if len(drafts) >= count:
            break
        template = templates.get(kind)
        if template is None:
            continue
        draft = template.build(template.base_amount)
        violations = check_constraints(balances, draft)
        if violations:
            logger.debug("Skipping core %s: %s", kind, "; ".join(violations))
            continue
        drafts.append(draft)
        balances = post_draft(balances, draft)

    while len(drafts) < count:
        draft = _draw_filler(templates, balances, rng)
        drafts.append(draft)
        balances = post_draft(balances, draft)

    days = sorted(int(d) for d in rng.integers(1, 31, size=count))
    return tuple(
        Transaction(
            id=i + 1,
            date=date(config.year, 1, day),
            description=draft.description,
            debits=draft.debits,
            credits=draft.credits,
            analysis=analyze_effect(draft.debits, draft.credits),
            kind=draft.kind,
        )
        for i, (draft, day) in enumerate(zip(drafts, days))
    )


def _debit_total(ledger: Ledger, account: str) -> Decimal:
    totals = ledger.get(account)
    return totals.debit if totals is not None else ZERO


def _net(ledger: Ledger, account: str) -> Decimal:
    totals = ledger.get(account)
    return totals.net if totals is not None else ZERO


def generate_adjustments(ledger: Ledger, config: ScenarioConfig) -> Tuple[Adjustment, ...]:
    """
    Adjusting entries called for by the post-transaction ledger.

    Families, in order: supplies, prepaid rent, unearned/advance revenue,
    accrued salaries, accrued interest, accrued revenue, depreciation and
    bad debts. Each amount is capped at the balance it draws down; a family
    with nothing to adjust is skipped. Periodic merchandisers then close
    beginning inventory and record ending inventory through Income Summary;
    those entries are always kept, and the total stays within
    MAX_ADJUSTMENTS.
    """
    asset_method = config.deferred_expense_method == DEFERRED_EXPENSE_ASSET
    liability_method = config.deferred_income_method == DEFERRED_INCOME_LIABILITY
    revenue = revenue_account_for(config)
    drafts: List[Tuple[str, str, str, str, Decimal]] = []

    def propose(adj_type: str, desc: str, dr: str, cr: str, amount: Decimal, available: Decimal) -> None:
        bounded = min(amount, available)
        if bounded <= 0:
            logger.debug("Skipping %s adjustment %s/%s: nothing to adjust", adj_type, dr, cr)
            return
        drafts.append((adj_type, desc, dr, cr, bounded))

    total_supplies = _debit_total(ledger, SUPPLIES) + _debit_total(ledger, SUPPLIES_EXPENSE)
    if total_supplies > 0:
        on_hand = round_to(total_supplies * SUPPLIES_REMAINING_RATIO, 1)
        desc = f"Supplies on hand at end of period are {fmt(on_hand)}."
        if asset_method:
            propose(ADJ_DEFERRED_EXPENSE, desc, SUPPLIES_EXPENSE, SUPPLIES,
                    total_supplies - on_hand, _net(ledger, SUPPLIES))
        else:
            propose(ADJ_DEFERRED_EXPENSE, desc, SUPPLIES, SUPPLIES_EXPENSE,
                    on_hand, _net(ledger, SUPPLIES_EXPENSE))

    total_rent = _debit_total(ledger, PREPAID_RENT) + _debit_total(ledger, RENT_EXPENSE)
    if total_rent > 0:
        monthly = round_to(total_rent / RENT_MONTHS_PREPAID, 1)
        if asset_method:
            propose(ADJ_DEFERRED_EXPENSE, f"One month of prepaid rent has expired: {fmt(monthly)}.",
                    RENT_EXPENSE, PREPAID_RENT, monthly, _net(ledger, PREPAID_RENT))
        else:
            unexpired = round_to(total_rent * 2 / RENT_MONTHS_PREPAID, 1)
            propose(ADJ_DEFERRED_EXPENSE, f"Two months of rent are still unexpired: {fmt(unexpired)}.",
                    PREPAID_RENT, RENT_EXPENSE, unexpired, _net(ledger, RENT_EXPENSE))

    if liability_method:
        unearned = -_net(ledger, UNEARNED_REVENUE)
        if unearned > 0:
            propose(ADJ_DEFERRED_INCOME,
                    f"Services performed related to advance payments: {fmt(min(UNEARNED_EARNED_AMOUNT, unearned))}.",
                    UNEARNED_REVENUE, revenue, UNEARNED_EARNED_AMOUNT, unearned)
    else:
        earned = -_net(ledger, revenue)
        if earned > ADVANCE_REVENUE_THRESHOLD:
            propose(ADJ_DEFERRED_INCOME,
                    f"Services paid in advance but not yet performed: {fmt(ADVANCE_UNEARNED_AMOUNT)}.",
                    revenue, UNEARNED_REVENUE, ADVANCE_UNEARNED_AMOUNT, earned)

    propose(ADJ_ACCRUED_EXPENSE, f"Accrued salaries: {fmt(ACCRUED_SALARIES_AMOUNT)}.",
            SALARIES_EXPENSE, SALARIES_PAYABLE, ACCRUED_SALARIES_AMOUNT, ACCRUED_SALARIES_AMOUNT)

    notes = -_net(ledger, NOTES_PAYABLE)
    if notes > 0:
        interest = max(round_to(notes * NOTE_INTEREST_MONTHLY_RATE, 10), Decimal("10"))
        propose(ADJ_ACCRUED_EXPENSE, f"Accrued interest on notes payable: {fmt(interest)}.",
                INTEREST_EXPENSE, INTEREST_PAYABLE, interest, interest)

    if not config.is_merchandiser:
        propose(ADJ_ACCRUED_REVENUE, f"Services performed but not yet billed: {fmt(ACCRUED_REVENUE_AMOUNT)}.",
                ACCOUNTS_RECEIVABLE, revenue, ACCRUED_REVENUE_AMOUNT, ACCRUED_REVENUE_AMOUNT)

    equipment = _net(ledger, EQUIPMENT)
    if equipment > 0:
        propose(ADJ_DEPRECIATION, f"Depreciation of equipment: {fmt(min(DEPRECIATION_AMOUNT, equipment))}.",
                DEPRECIATION_EXPENSE, ACCUMULATED_DEPRECIATION_EQUIPMENT, DEPRECIATION_AMOUNT, equipment)

    receivables = _net(ledger, ACCOUNTS_RECEIVABLE)
    if receivables > 0:
        bad_debts = round_to(receivables * BAD_DEBT_RATE, 10)
        propose(ADJ_BAD_DEBT, f"Estimated uncollectible accounts: {fmt(bad_debts)}.",
                BAD_DEBT_EXPENSE, ALLOWANCE_FOR_DOUBTFUL_ACCOUNTS, bad_debts, receivables)

    inventory: List[Tuple[str, str, str, str, Decimal]] = []
    if config.is_merchandiser and not config.is_perpetual:
        beginning = _net(ledger, MERCHANDISE_INVENTORY)
        if beginning > 0:
            inventory.append((ADJ_BEGINNING_INVENTORY, f"Merchandise Inventory, Beginning: {fmt(beginning)}.",
                              INCOME_SUMMARY, MERCHANDISE_INVENTORY, beginning))
        net_purchases = _net(ledger, PURCHASES) + _net(ledger, FREIGHT_IN) + _net(ledger, PURCHASE_DISCOUNTS)
        available = beginning + net_purchases
        ending = min(round_to(available * ENDING_INVENTORY_RATIO), available)
        if ending > 0:
            inventory.append((ADJ_ENDING_INVENTORY, f"Merchandise Inventory, End: {fmt(ending)}.",
                              MERCHANDISE_INVENTORY, INCOME_SUMMARY, ending))

    kept = drafts[:MAX_ADJUSTMENTS - len(inventory)] + inventory
    return tuple(
        Adjustment(id=f"adj{i + 1}", type=t, desc=d, dr_account=dr, cr_account=cr, amount=amt)
        for i, (t, d, dr, cr, amt) in enumerate(kept)
    )


def _assert_invariants(activity: ActivityData) -> None:
    for tx in activity.transactions:
        if tx.total_debits != tx.total_credits:
            raise InvariantViolation(f"Transaction {tx.id} is unbalanced")
    bb = activity.beginning_balances
    if bb is not None and bb.total_debits != bb.total_credits:
        raise InvariantViolation(
            f"Beginning balances do not balance: {bb.total_debits} != {bb.total_credits}"
        )
    accounts = set(activity.valid_accounts)
    for adj in activity.adjustments:
        accounts.update((adj.dr_account, adj.cr_account))
    find_capital_account(accounts)
    if _net(activity.ledger, CASH) < 0:
        raise InvariantViolation("Generated ledger carries a negative cash balance")


def generate(
    config: ScenarioConfig,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> ActivityData:
    """
    Generate a complete activity.

    Args:
        config: scenario parameters
        seed: seed for numpy.random.default_rng (ignored if rng is given)
        rng: explicit random generator

    Returns:
        ActivityData with transactions, ledger, valid accounts, optional
        beginning balances and adjustments.

    Raises:
        InvariantViolation: if the generated data breaks a hard invariant.
    """
    if rng is None:
        rng = np.random.default_rng(seed)

    beginning = generate_beginning_balances(config, rng) if config.is_subsequent_year else None
    transactions = generate_transactions(config, rng, beginning)
    ledger = aggregate(transactions, beginning)
    adjustments = generate_adjustments(ledger, config)

    accounts = set(transaction_accounts(list(transactions)))
    if beginning is not None:
        accounts.update(beginning.balances)

    activity = ActivityData(
        config=config,
        transactions=transactions,
        ledger=ledger,
        valid_accounts=tuple(sort_accounts(accounts)),
        beginning_balances=beginning,
        adjustments=adjustments,
        steps=config.selected_steps,
    )
    _assert_invariants(activity)
    logger.info(
        "Generated %s/%s scenario: %d transactions, %d adjustments",
        config.business_type, config.ownership, len(transactions), len(adjustments),
    )
    return activity
