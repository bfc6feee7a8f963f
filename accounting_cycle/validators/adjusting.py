"""
adjusting.py - Step 7: Adjusting Entries

The learner journalizes every adjustment and posts it to the affected
ledger cards.

Answer shape:

    {
        "journal": {
            "adj1": {"drDate": "31", "drAcc": "Supplies Expense", "drAmt": "1,000", "drPR": true,
                     "crDate": "",   "crAcc": "Supplies",         "crAmt": "1,000", "crPR": true},
        },
        "ledger": {
            "Supplies": {"leftRows": [...], "rightRows": [{"amount": "1,000"}],
                         "balance": "4,000", "balanceType": "Dr"},
        },
    }

Scoring per adjustment side (4 points each): date ("31" or "Jan 31"; the
credit line may also leave it empty), account, amount, and a posting
reference that is ticked and backed by a matching amount on the right side
of that account's ledger card. Each affected account's adjusted balance and
side: 1 point.
"""

from __future__ import annotations
from typing import Any, Mapping

from ..core import ActivityData, Answer, ValidationResult, amounts_match, normalize_text
from ..accounts import sort_accounts
from ..aggregation import adjusted_ledger, net_balance
from .common import (
    ScoreSheet, as_list, as_mapping, balance_matches, day_forms, lookup, lookup_account,
    month_day_forms, same_account, text_filled,
)


def _posted_to(ledger: Mapping[str, Any], account: str, rows_key: str, amount) -> bool:
    card = as_mapping(lookup_account(ledger, account))
    return any(amounts_match(as_mapping(r).get("amount"), amount) for r in as_list(card.get(rows_key)))


def validate_step7(activity: ActivityData, answer: Answer) -> ValidationResult:
    sheet = ScoreSheet()
    payload = as_mapping(answer)
    journal = as_mapping(payload.get("journal"))
    ledger = as_mapping(payload.get("ledger"))
    period_end = activity.period_end
    date_forms = day_forms(period_end) | month_day_forms(period_end)

    for adj in activity.adjustments:
        entry = as_mapping(lookup(journal, adj.id))
        key = adj.id
        sheet.check(f"{key}.drDate", normalize_text(entry.get("drDate")) in date_forms)
        sheet.check(f"{key}.drAcc", same_account(entry.get("drAcc"), adj.dr_account))
        sheet.check(f"{key}.drAmt", amounts_match(entry.get("drAmt"), adj.amount))
        sheet.check(f"{key}.drPR", bool(entry.get("drPR"))
                    and _posted_to(ledger, adj.dr_account, "leftRows", adj.amount))

        sheet.check(f"{key}.crDate", not text_filled(entry.get("crDate"))
                    or normalize_text(entry.get("crDate")) in date_forms)
        sheet.check(f"{key}.crAcc", same_account(entry.get("crAcc"), adj.cr_account))
        sheet.check(f"{key}.crAmt", amounts_match(entry.get("crAmt"), adj.amount))
        sheet.check(f"{key}.crPR", bool(entry.get("crPR"))
                    and _posted_to(ledger, adj.cr_account, "rightRows", adj.amount))

    adjusted = adjusted_ledger(activity)
    affected = sort_accounts({a for adj in activity.adjustments for a in (adj.dr_account, adj.cr_account)})
    for account in affected:
        card = as_mapping(lookup_account(ledger, account))
        sheet.check(f"ledger.{account}.balance",
                    balance_matches(card.get("balance"), card.get("balanceType"), net_balance(adjusted, account)))

    return sheet.result()
