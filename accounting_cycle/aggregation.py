"""
aggregation.py - Ledger Aggregation and Derived Statements

Pure folds from scenario data to the figures every downstream step grades
against:

    aggregate(transactions, beginning_balances)  -> unadjusted Ledger
    apply_adjustments(ledger, adjustments)       -> adjusted Ledger
    trial_balance(ledger)                        -> TrialBalance
    build_worksheet(ledger, adjustments)         -> Worksheet (10 columns)
    compute_financial_figures(activity)          -> FinancialFigures
    compute_closing_figures(adjusted)            -> ClosingFigures (REID)
    post_closing_ledger(adjusted, closing)       -> Ledger of real accounts

No function mutates its inputs. Ledgers are plain dicts of frozen
AccountTotals; every fold builds a new dict.

Key Formulas:
    net(account)        = debit - credit
    net_income          = sum(credit balances of revenue/expense accounts)
                          - sum(debit balances of revenue/expense accounts)
                          - net(Income Summary)
    cost_of_goods_sold  = net(cost-of-sales accounts) + net(Income Summary)
    gross_profit        = total_revenues - cost_of_goods_sold
    ending_capital      = beginning_capital + net_income - drawings
    total_assets        = total_liabilities + ending_capital
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .core import (
    ActivityData, AccountTotals, Adjustment, BeginningBalances, InvariantViolation,
    JournalLine, Ledger, Transaction, CASH, COST_OF_GOODS_SOLD, FREIGHT_IN, INCOME_SUMMARY,
    PURCHASE_DISCOUNTS, PURCHASES, ZERO, normalize_text,
)
from .accounts import (
    ASSET, LIABILITY, REVENUE, EXPENSE,
    account_type, is_capital_account, is_current_asset, is_current_liability,
    is_drawing_account, is_income_statement_account, is_nominal, sort_accounts,
)

# Accounts that make up cost of goods sold under either inventory system.
COST_OF_SALES_ACCOUNTS = frozenset(normalize_text(a) for a in (
    COST_OF_GOODS_SOLD, PURCHASES, PURCHASE_DISCOUNTS, FREIGHT_IN,
))


# ============================================================================
# LEDGER FOLDS
# ============================================================================

def aggregate(
    transactions: Iterable[Transaction],
    beginning_balances: Optional[BeginningBalances] = None,
) -> Ledger:
    """
    Fold beginning balances and transaction postings into per-account totals.

    Accounts appear in first-posting order; unseen accounts start at zero.
    """
    ledger: Ledger = {}
    if beginning_balances is not None:
        for account, bal in beginning_balances.balances.items():
            ledger[account] = ledger.get(account, AccountTotals()).post(bal.dr, bal.cr)
    for tx in transactions:
        for line in tx.debits:
            ledger[line.account] = ledger.get(line.account, AccountTotals()).post(debit=line.amount)
        for line in tx.credits:
            ledger[line.account] = ledger.get(line.account, AccountTotals()).post(credit=line.amount)
    return ledger


def apply_adjustments(ledger: Ledger, adjustments: Iterable[Adjustment]) -> Ledger:
    """Layer adjusting entries on top of a ledger, returning a new ledger."""
    adjusted = dict(ledger)
    for adj in adjustments:
        adjusted[adj.dr_account] = adjusted.get(adj.dr_account, AccountTotals()).post(debit=adj.amount)
        adjusted[adj.cr_account] = adjusted.get(adj.cr_account, AccountTotals()).post(credit=adj.amount)
    return adjusted


def adjusted_ledger(activity: ActivityData) -> Ledger:
    return apply_adjustments(activity.ledger, activity.adjustments)


def net_balance(ledger: Ledger, account: str) -> Decimal:
    """Signed balance of an account (positive = debit). Missing accounts are zero."""
    totals = ledger.get(account)
    return totals.net if totals is not None else ZERO


def activity_accounts(activity: ActivityData) -> List[str]:
    """Valid accounts plus accounts introduced by adjustments, sorted."""
    accounts = set(activity.valid_accounts)
    for adj in activity.adjustments:
        accounts.update((adj.dr_account, adj.cr_account))
    return sort_accounts(accounts)


def find_capital_account(accounts: Iterable[str]) -> str:
    """
    Return the single permanent equity account among accounts.

    Raises:
        InvariantViolation: if there is not exactly one.
    """
    candidates = sorted({a for a in accounts if is_capital_account(a)})
    if len(candidates) != 1:
        raise InvariantViolation(
            f"Expected exactly one capital account, found {candidates}"
        )
    return candidates[0]


def find_drawing_account(accounts: Iterable[str]) -> Optional[str]:
    candidates = sorted({a for a in accounts if is_drawing_account(a)})
    return candidates[0] if candidates else None


# ============================================================================
# TRIAL BALANCE
# ============================================================================

@dataclass(frozen=True, slots=True)
class TrialBalanceLine:
    """One account on a trial balance; exactly one column is non-zero."""
    account: str
    debit: Decimal
    credit: Decimal


@dataclass(frozen=True, slots=True)
class TrialBalance:
    lines: Tuple[TrialBalanceLine, ...]
    total_debit: Decimal
    total_credit: Decimal

    def line_for(self, account: str) -> Optional[TrialBalanceLine]:
        for line in self.lines:
            if line.account == account:
                return line
        return None


def trial_balance(ledger: Ledger) -> TrialBalance:
    """List every account with a non-zero net balance in its balance column."""
    lines = []
    for account in sort_accounts(ledger):
        net = ledger[account].net
        if net == 0:
            continue
        if net > 0:
            lines.append(TrialBalanceLine(account, net, ZERO))
        else:
            lines.append(TrialBalanceLine(account, ZERO, -net))
    return TrialBalance(
        lines=tuple(lines),
        total_debit=sum((l.debit for l in lines), ZERO),
        total_credit=sum((l.credit for l in lines), ZERO),
    )


# ============================================================================
# WORKSHEET
# ============================================================================

@dataclass(frozen=True, slots=True)
class WorksheetRow:
    """One row of the 10-column worksheet."""
    account: str
    tb_dr: Decimal = ZERO
    tb_cr: Decimal = ZERO
    adj_dr: Decimal = ZERO
    adj_cr: Decimal = ZERO
    atb_dr: Decimal = ZERO
    atb_cr: Decimal = ZERO
    is_dr: Decimal = ZERO
    is_cr: Decimal = ZERO
    bs_dr: Decimal = ZERO
    bs_cr: Decimal = ZERO

    def column(self, key: str) -> Decimal:
        """Value of a column by its answer key (e.g. "tbDr")."""
        return getattr(self, WORKSHEET_COLUMNS[key])


# Answer key -> WorksheetRow attribute, in column order.
WORKSHEET_COLUMNS: Dict[str, str] = {
    "tbDr": "tb_dr", "tbCr": "tb_cr",
    "adjDr": "adj_dr", "adjCr": "adj_cr",
    "atbDr": "atb_dr", "atbCr": "atb_cr",
    "isDr": "is_dr", "isCr": "is_cr",
    "bsDr": "bs_dr", "bsCr": "bs_cr",
}


@dataclass(frozen=True, slots=True)
class Worksheet:
    """
    Attributes:
        rows: one row per account, chart-of-accounts order
        totals: column sums of rows
        net_income: IS credit total - IS debit total (negative for a loss)
        net_row: net income/loss plug (IS-Dr and BS-Cr for income,
            IS-Cr and BS-Dr for a loss)
        final: totals + net_row; each column pair balances
    """
    rows: Tuple[WorksheetRow, ...]
    totals: WorksheetRow
    net_income: Decimal
    net_row: WorksheetRow
    final: WorksheetRow

    def row_for(self, account: str) -> Optional[WorksheetRow]:
        for row in self.rows:
            if row.account == account:
                return row
        return None


def _split(net: Decimal) -> Tuple[Decimal, Decimal]:
    return (net, ZERO) if net >= 0 else (ZERO, -net)


def _sum_rows(label: str, rows: Sequence[WorksheetRow]) -> WorksheetRow:
    values = {
        attr: sum((getattr(r, attr) for r in rows), ZERO)
        for attr in WORKSHEET_COLUMNS.values()
    }
    return WorksheetRow(account=label, **values)


def build_worksheet(ledger: Ledger, adjustments: Sequence[Adjustment]) -> Worksheet:
    """
    Recompute all five column pairs from the unadjusted ledger.

    Revenue and expense accounts extend to the income statement columns,
    and so does Income Summary when it carries periodic inventory
    adjustments. Everything else extends to the balance sheet columns.
    """
    adj_dr: Dict[str, Decimal] = {}
    adj_cr: Dict[str, Decimal] = {}
    for adj in adjustments:
        adj_dr[adj.dr_account] = adj_dr.get(adj.dr_account, ZERO) + adj.amount
        adj_cr[adj.cr_account] = adj_cr.get(adj.cr_account, ZERO) + adj.amount

    accounts = sort_accounts(set(ledger) | set(adj_dr) | set(adj_cr))
    rows = []
    for account in accounts:
        tb_net = net_balance(ledger, account)
        a_dr = adj_dr.get(account, ZERO)
        a_cr = adj_cr.get(account, ZERO)
        atb_net = tb_net + a_dr - a_cr
        if tb_net == 0 and a_dr == 0 and a_cr == 0:
            continue
        tb_dr, tb_cr = _split(tb_net)
        atb_dr, atb_cr = _split(atb_net)
        if is_income_statement_account(account) or account == INCOME_SUMMARY:
            extension = dict(is_dr=atb_dr, is_cr=atb_cr)
        else:
            extension = dict(bs_dr=atb_dr, bs_cr=atb_cr)
        rows.append(WorksheetRow(
            account=account, tb_dr=tb_dr, tb_cr=tb_cr,
            adj_dr=a_dr, adj_cr=a_cr, atb_dr=atb_dr, atb_cr=atb_cr,
            **extension,
        ))

    totals = _sum_rows("Totals", rows)
    net_income = totals.is_cr - totals.is_dr
    if net_income >= 0:
        net_row = WorksheetRow("Net Income", is_dr=net_income, bs_cr=net_income)
    else:
        net_row = WorksheetRow("Net Loss", is_cr=-net_income, bs_dr=-net_income)
    final = _sum_rows("Final Totals", [totals, net_row])
    return Worksheet(tuple(rows), totals, net_income, net_row, final)


# ============================================================================
# FINANCIAL STATEMENTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class FinancialFigures:
    """
    Statement totals recomputed from the adjusted ledger.

    Income statement:   total_revenues, total_expenses, net_income,
                        cost_of_goods_sold, gross_profit (multi-step)
    Changes in equity:  beginning_capital, additions, deductions, ending_capital
    Balance sheet:      current/non-current assets and liabilities, totals
    Cash flows:         beginning_cash, ending_cash, net_change_in_cash
    """
    total_revenues: Decimal
    total_expenses: Decimal
    net_income: Decimal
    cost_of_goods_sold: Decimal
    gross_profit: Decimal
    capital_account: str
    beginning_capital: Decimal
    drawings: Decimal
    additions: Decimal
    deductions: Decimal
    ending_capital: Decimal
    current_assets: Decimal
    non_current_assets: Decimal
    total_assets: Decimal
    current_liabilities: Decimal
    non_current_liabilities: Decimal
    total_liabilities: Decimal
    total_liabilities_and_equity: Decimal
    beginning_cash: Decimal
    ending_cash: Decimal
    net_change_in_cash: Decimal


def compute_financial_figures(activity: ActivityData) -> FinancialFigures:
    adjusted = adjusted_ledger(activity)
    accounts = list(adjusted)
    capital_account = find_capital_account(accounts)
    drawing_account = find_drawing_account(accounts)

    total_revenues = -sum((adjusted[a].net for a in accounts if account_type(a) == REVENUE), ZERO)
    inventory_change = net_balance(adjusted, INCOME_SUMMARY)
    expenses = sum((adjusted[a].net for a in accounts if account_type(a) == EXPENSE), ZERO)
    total_expenses = expenses + inventory_change
    net_income = total_revenues - total_expenses
    cost_of_goods_sold = inventory_change + sum(
        (adjusted[a].net for a in accounts if normalize_text(a) in COST_OF_SALES_ACCOUNTS), ZERO,
    )

    beginning_capital = -net_balance(adjusted, capital_account)
    drawings = net_balance(adjusted, drawing_account) if drawing_account else ZERO
    additions = max(net_income, ZERO)
    deductions = drawings + max(-net_income, ZERO)
    ending_capital = beginning_capital + additions - deductions

    assets = [a for a in accounts if account_type(a) == ASSET]
    liabilities = [a for a in accounts if account_type(a) == LIABILITY]
    current_assets = sum((adjusted[a].net for a in assets if is_current_asset(a)), ZERO)
    non_current_assets = sum((adjusted[a].net for a in assets if not is_current_asset(a)), ZERO)
    current_liabilities = -sum((adjusted[a].net for a in liabilities if is_current_liability(a)), ZERO)
    non_current_liabilities = -sum((adjusted[a].net for a in liabilities if not is_current_liability(a)), ZERO)
    total_liabilities = current_liabilities + non_current_liabilities

    beginning_cash = ZERO
    if activity.beginning_balances is not None and CASH in activity.beginning_balances.balances:
        bb = activity.beginning_balances.balances[CASH]
        beginning_cash = bb.dr - bb.cr
    ending_cash = net_balance(adjusted, CASH)

    return FinancialFigures(
        total_revenues=total_revenues,
        total_expenses=total_expenses,
        net_income=net_income,
        cost_of_goods_sold=cost_of_goods_sold,
        gross_profit=total_revenues - cost_of_goods_sold,
        capital_account=capital_account,
        beginning_capital=beginning_capital,
        drawings=drawings,
        additions=additions,
        deductions=deductions,
        ending_capital=ending_capital,
        current_assets=current_assets,
        non_current_assets=non_current_assets,
        total_assets=current_assets + non_current_assets,
        current_liabilities=current_liabilities,
        non_current_liabilities=non_current_liabilities,
        total_liabilities=total_liabilities,
        total_liabilities_and_equity=total_liabilities + ending_capital,
        beginning_cash=beginning_cash,
        ending_cash=ending_cash,
        net_change_in_cash=ending_cash - beginning_cash,
    )


# ============================================================================
# CLOSING ENTRIES (REID)
# ============================================================================

@dataclass(frozen=True, slots=True)
class ClosingEntry:
    """One block of the closing sequence. Blocks with nothing to close are empty."""
    label: str
    debits: Tuple[JournalLine, ...] = ()
    credits: Tuple[JournalLine, ...] = ()

    @property
    def total(self) -> Decimal:
        return sum((line.amount for line in self.debits), ZERO)

    @property
    def accounts(self) -> Tuple[str, ...]:
        return tuple(line.account for line in self.debits + self.credits)


@dataclass(frozen=True, slots=True)
class ClosingFigures:
    """
    Expected closing sequence and its aggregates.

    Attributes:
        total_credit_balances: revenue-side total closed in block R
        total_debit_balances: expense-side total closed in block E
        net_income: block I amount (negative for a loss)
        drawings: block D amount
        beginning_capital: capital balance before closing
        ending_capital: beginning_capital + net_income - drawings
        entries: the four blocks, in REID order
    """
    capital_account: str
    drawing_account: Optional[str]
    total_credit_balances: Decimal
    total_debit_balances: Decimal
    net_income: Decimal
    drawings: Decimal
    beginning_capital: Decimal
    ending_capital: Decimal
    entries: Tuple[ClosingEntry, ...]

    @property
    def nominal_accounts(self) -> Tuple[str, ...]:
        names = {INCOME_SUMMARY}
        for entry in self.entries:
            names.update(a for a in entry.accounts if is_nominal(a))
        return tuple(sort_accounts(names))


def compute_closing_figures(adjusted: Ledger) -> ClosingFigures:
    """
    Recompute the REID closing sequence from an adjusted ledger.

    R: close credit-balance income statement accounts to Income Summary
    E: close debit-balance income statement accounts to Income Summary
    I: close Income Summary, including any inventory adjustments, to capital
    D: close drawings to capital
    """
    accounts = sort_accounts(adjusted)
    capital_account = find_capital_account(accounts)
    drawing_account = find_drawing_account(accounts)

    credit_lines = []
    debit_lines = []
    for account in accounts:
        if not is_income_statement_account(account):
            continue
        net = adjusted[account].net
        if net < 0:
            credit_lines.append(JournalLine(account, -net))
        elif net > 0:
            debit_lines.append(JournalLine(account, net))
    total_cr = sum((l.amount for l in credit_lines), ZERO)
    total_dr = sum((l.amount for l in debit_lines), ZERO)
    # Periodic inventory adjustments leave a balance in Income Summary before R and E.
    net_income = total_cr - total_dr - net_balance(adjusted, INCOME_SUMMARY)

    revenues = ClosingEntry("Close revenues")
    if total_cr > 0:
        revenues = ClosingEntry("Close revenues", tuple(credit_lines), (JournalLine(INCOME_SUMMARY, total_cr),))
    expenses = ClosingEntry("Close expenses")
    if total_dr > 0:
        expenses = ClosingEntry("Close expenses", (JournalLine(INCOME_SUMMARY, total_dr),), tuple(debit_lines))
    income = ClosingEntry("Close income summary")
    if net_income > 0:
        income = ClosingEntry(
            "Close income summary",
            (JournalLine(INCOME_SUMMARY, net_income),), (JournalLine(capital_account, net_income),),
        )
    elif net_income < 0:
        income = ClosingEntry(
            "Close income summary",
            (JournalLine(capital_account, -net_income),), (JournalLine(INCOME_SUMMARY, -net_income),),
        )

    drawings = net_balance(adjusted, drawing_account) if drawing_account else ZERO
    draw = ClosingEntry("Close drawings")
    if drawings > 0:
        draw = ClosingEntry(
            "Close drawings",
            (JournalLine(capital_account, drawings),), (JournalLine(drawing_account, drawings),),
        )

    beginning_capital = -net_balance(adjusted, capital_account)
    return ClosingFigures(
        capital_account=capital_account,
        drawing_account=drawing_account,
        total_credit_balances=total_cr,
        total_debit_balances=total_dr,
        net_income=net_income,
        drawings=drawings,
        beginning_capital=beginning_capital,
        ending_capital=beginning_capital + net_income - drawings,
        entries=(revenues, expenses, income, draw),
    )


def post_closing_ledger(adjusted: Ledger, closing: ClosingFigures) -> Ledger:
    """
    Carry real accounts forward after closing.

    Nominal accounts drop out, the capital account absorbs net income and
    drawings, every other account keeps its adjusted totals.
    """
    result: Ledger = {}
    for account in sort_accounts(adjusted):
        if is_nominal(account):
            continue
        if account == closing.capital_account:
            ending = closing.ending_capital
            result[account] = AccountTotals(credit=ending) if ending >= 0 else AccountTotals(debit=-ending)
        else:
            result[account] = adjusted[account]
    return result

