"""
answer_key.py - Perfect learner answers for tests

Builds, for any ActivityData, the answer a flawless learner would submit
for each step, in the host's JSON shape. Tests start from these and break
individual fields to probe the validators.

Also provides build_activity() for hand-built scenarios with known figures.
"""

from copy import deepcopy
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from accounting_cycle import (
    ActivityData, Adjustment, BeginningBalances, JournalLine, ScenarioConfig, Transaction,
    aggregate, adjusted_ledger, analyze_effect, build_worksheet, compute_closing_figures,
    compute_financial_figures, is_reversible, post_closing_ledger, sort_accounts,
    transaction_accounts, trial_balance,
)
from accounting_cycle.aggregation import WORKSHEET_COLUMNS, net_balance
from accounting_cycle.core import MONTH_NAMES
from accounting_cycle.validators.posting import LEFT, RIGHT, expected_postings, posting_ref


COMPANY = "Dela Cruz Services"


# =============================================================================
# SCENARIO BUILDERS
# =============================================================================

def tx(tx_id: int, day: int, debits: Sequence, credits: Sequence, description: str = "", year: int = 2023) -> Transaction:
    """Build a transaction from (account, amount) pairs."""
    dr = tuple(JournalLine(a, Decimal(str(v))) for a, v in debits)
    cr = tuple(JournalLine(a, Decimal(str(v))) for a, v in credits)
    return Transaction(
        id=tx_id,
        date=date(year, 1, day),
        description=description or f"Transaction {tx_id}",
        debits=dr,
        credits=cr,
        analysis=analyze_effect(dr, cr),
    )


def build_activity(
    transactions: Sequence[Transaction],
    adjustments: Sequence[Adjustment] = (),
    config: Optional[ScenarioConfig] = None,
    beginning_balances: Optional[BeginningBalances] = None,
) -> ActivityData:
    config = config or ScenarioConfig()
    accounts = set(transaction_accounts(list(transactions)))
    if beginning_balances is not None:
        accounts.update(beginning_balances.balances)
    return ActivityData(
        config=config,
        transactions=tuple(transactions),
        ledger=aggregate(transactions, beginning_balances),
        valid_accounts=tuple(sort_accounts(accounts)),
        beginning_balances=beginning_balances,
        adjustments=tuple(adjustments),
        steps=config.selected_steps,
    )


# =============================================================================
# FORMATTING
# =============================================================================

def money(amount: Decimal) -> str:
    """Learner-style amount, e.g. "12,000"."""
    return f"{amount:,}"


def cell(amount: Decimal) -> str:
    return money(amount) if amount else ""


def long_date(d: date) -> str:
    return f"{MONTH_NAMES[d.month - 1]} {d.day}, {d.year}"


def short_date(d: date) -> str:
    return f"{MONTH_NAMES[d.month - 1][:3]} {d.day}"


def balance_fields(net: Decimal) -> Dict[str, str]:
    return {"balance": money(abs(net)), "balanceType": "Dr" if net >= 0 else "Cr"}


# =============================================================================
# PERFECT ANSWERS
# =============================================================================

def step1_answer(activity: ActivityData) -> Dict[str, Any]:
    return {
        str(t.id): {
            "assets": t.analysis.assets,
            "liabilities": t.analysis.liabilities,
            "equity": t.analysis.equity,
            "cause": t.analysis.cause,
        }
        for t in activity.transactions
    }


def step2_answer(activity: ActivityData) -> Dict[str, Any]:
    answer = {}
    for index, t in enumerate(activity.transactions):
        rows: List[Dict[str, Any]] = []
        if index == 0:
            rows.append({"date": str(activity.config.year), "acc": "", "dr": "", "cr": ""})
        first_date = short_date(t.date) if index == 0 else str(t.date.day)
        for i, line in enumerate(t.debits):
            rows.append({"date": first_date if i == 0 else "", "acc": line.account,
                         "dr": money(line.amount), "cr": ""})
        for line in t.credits:
            rows.append({"date": "", "acc": "   " + line.account, "dr": "", "cr": money(line.amount)})
        rows.append({"isDescription": True, "acc": t.description})
        answer[str(t.id)] = {"rows": rows}
    return answer


def step3_answer(activity: ActivityData) -> Dict[str, Any]:
    year = str(activity.config.year)
    ledgers = []
    prs = {}
    for account, postings in expected_postings(activity).items():
        card: Dict[str, Any] = {"account": account}
        for side in (LEFT, RIGHT):
            side_postings = [p for p in postings if p.side == side]
            rows = [{"date": year if side_postings else ""}]
            for i, p in enumerate(side_postings):
                rows.append({
                    "date": short_date(p.date) if i == 0 else str(p.date.day),
                    "part": p.part,
                    "pr": "" if p.is_beginning else "1",
                    "amount": money(p.amount),
                })
            card[side] = rows
        net = sum((p.amount if p.side == LEFT else -p.amount for p in postings), Decimal(0))
        card.update(balance_fields(net))
        ledgers.append(card)
    for t in activity.transactions:
        for i in range(len(t.debits)):
            prs[posting_ref(LEFT, t.id, i)] = True
        for i in range(len(t.credits)):
            prs[posting_ref(RIGHT, t.id, i)] = True
    return {"ledgers": ledgers, "journalPRs": prs}


def _trial_balance_rows(tb) -> List[Dict[str, str]]:
    return [{"account": line.account, "dr": cell(line.debit), "cr": cell(line.credit)} for line in tb.lines]


def step4_answer(activity: ActivityData) -> Dict[str, Any]:
    tb = trial_balance(activity.ledger)
    return {
        "header": {"company": COMPANY, "doc": "Trial Balance", "date": long_date(activity.period_end)},
        "rows": _trial_balance_rows(tb),
        "footers": {"totalDr": money(tb.total_debit), "totalCr": money(tb.total_credit)},
    }


def step5_answer(activity: ActivityData) -> Dict[str, Any]:
    ws = build_worksheet(activity.ledger, activity.adjustments)

    def row_cells(row):
        return {key: cell(row.column(key)) for key in WORKSHEET_COLUMNS}

    def full(row):
        return {key: money(row.column(key)) for key in WORKSHEET_COLUMNS}

    rows = []
    for row in ws.rows:
        entry = {"account": row.account}
        entry.update(row_cells(row))
        rows.append(entry)
    net = {key: cell(ws.net_row.column(key)) for key in ("isDr", "isCr", "bsDr", "bsCr")}
    return {"rows": rows, "footers": {"totals": full(ws.totals), "net": net, "final": full(ws.final)}}


def step6_answer(activity: ActivityData) -> Dict[str, Any]:
    f = compute_financial_figures(activity)
    return {
        "is": {"totalRevenues": money(f.total_revenues), "totalExpenses": money(f.total_expenses),
               "netIncome": money(abs(f.net_income)), "grossProfit": money(abs(f.gross_profit))},
        "sce": {"beginningCapital": money(f.beginning_capital), "endCapital": money(f.ending_capital)},
        "bs": {"totalAssets": money(f.total_assets), "totalLiabEquity": money(f.total_liabilities_and_equity)},
        "cf": {"endingCash": money(f.ending_cash)},
    }


def step7_answer(activity: ActivityData) -> Dict[str, Any]:
    journal = {}
    ledger: Dict[str, Dict[str, Any]] = {}
    day = str(activity.period_end.day)
    for adj in activity.adjustments:
        journal[adj.id] = {
            "drDate": day, "drAcc": adj.dr_account, "drAmt": money(adj.amount), "drPR": True,
            "crDate": "", "crAcc": adj.cr_account, "crAmt": money(adj.amount), "crPR": True,
        }
        ledger.setdefault(adj.dr_account, {"leftRows": [], "rightRows": []})["leftRows"].append(
            {"date": day, "part": "AJE", "amount": money(adj.amount)})
        ledger.setdefault(adj.cr_account, {"leftRows": [], "rightRows": []})["rightRows"].append(
            {"date": day, "part": "AJE", "amount": money(adj.amount)})
    adjusted = adjusted_ledger(activity)
    for account, card in ledger.items():
        card.update(balance_fields(net_balance(adjusted, account)))
    return {"journal": journal, "ledger": ledger}


def step8_answer(activity: ActivityData) -> Dict[str, Any]:
    closing = compute_closing_figures(adjusted_ledger(activity))
    journal = []
    for entry in closing.entries:
        rows = [{"acc": l.account, "dr": money(l.amount), "cr": ""} for l in entry.debits]
        rows += [{"acc": "   " + l.account, "dr": "", "cr": money(l.amount)} for l in entry.credits]
        journal.append({"rows": rows})
    ledgers = {account: {"balance": "0", "balanceType": "Dr"} for account in closing.nominal_accounts}
    ledgers[closing.capital_account] = balance_fields(-closing.ending_capital)
    return {"journal": journal, "ledgers": ledgers}


def step9_answer(activity: ActivityData) -> Dict[str, Any]:
    adjusted = adjusted_ledger(activity)
    tb = trial_balance(post_closing_ledger(adjusted, compute_closing_figures(adjusted)))
    return {
        "header": {"company": COMPANY, "doc": "Post-Closing Trial Balance",
                   "date": long_date(activity.period_end)},
        "rows": _trial_balance_rows(tb),
        "totals": {"dr": money(tb.total_debit), "cr": money(tb.total_credit)},
    }


def step10_answer(activity: ActivityData) -> Dict[str, Any]:
    answer = {}
    for adj in activity.adjustments:
        if is_reversible(adj, activity.config):
            answer[adj.id] = {"drAcc": adj.cr_account, "drAmt": money(adj.amount),
                              "crAcc": adj.dr_account, "crAmt": money(adj.amount)}
        else:
            answer[adj.id] = {"drAcc": "", "drAmt": "", "crAcc": "", "crAmt": ""}
    return answer


PERFECT_ANSWERS = {
    1: step1_answer,
    2: step2_answer,
    3: step3_answer,
    4: step4_answer,
    5: step5_answer,
    6: step6_answer,
    7: step7_answer,
    8: step8_answer,
    9: step9_answer,
    10: step10_answer,
}


def perfect_answer(step_id: int, activity: ActivityData) -> Dict[str, Any]:
    """A fresh (deep-copied) perfect answer, safe to mutate."""
    return deepcopy(PERFECT_ANSWERS[step_id](activity))
