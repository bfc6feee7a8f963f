"""
closing.py - Step 8: Closing Entries

The learner writes the four closing blocks in REID order (revenues,
expenses, income summary, drawings) and reports the ledger balances that
result.

Answer shape:

    {
        "journal": [
            {"rows": [{"acc": "Service Revenue", "dr": "10,000", "cr": ""},
                      {"acc": "Income Summary", "dr": "", "cr": "10,000"}]},
            ...                                              # four blocks
        ],
        "ledgers": {
            "Service Revenue": {"balance": "0"},
            "Owner, Capital": {"balance": "8,000", "balanceType": "Cr"},
        },
    }

Scoring:
- per block: its total ((debits + credits) / 2) matches 1, every expected
  account is named 1. A block with nothing to close expects a zero total.
- every nominal account closes to exactly zero: 1 point each
- the capital account carries the ending balance on the credit side: 1 point
"""

from __future__ import annotations

from ..core import ActivityData, Answer, ValidationResult, amounts_match, normalize_text, parse_amount
from ..aggregation import adjusted_ledger, compute_closing_figures
from .common import (
    ScoreSheet, as_list, as_mapping, balance_matches, lookup_account, sum_amounts, text_filled,
)


def validate_step8(activity: ActivityData, answer: Answer) -> ValidationResult:
    sheet = ScoreSheet()
    payload = as_mapping(answer)
    closing = compute_closing_figures(adjusted_ledger(activity))
    blocks = as_list(payload.get("journal"))

    for i, entry in enumerate(closing.entries):
        block = as_mapping(blocks[i]) if i < len(blocks) else {}
        rows = [as_mapping(r) for r in as_list(block.get("rows"))]
        total = (sum_amounts(rows, "dr") + sum_amounts(rows, "cr")) / 2
        sheet.check(f"journal.{i}.total", amounts_match(total, entry.total))
        named = {normalize_text(r.get("acc")) for r in rows}
        sheet.check(f"journal.{i}.accounts", all(normalize_text(a) in named for a in entry.accounts))

    ledgers = as_mapping(payload.get("ledgers"))
    for account in closing.nominal_accounts:
        card = lookup_account(ledgers, account)
        balance = as_mapping(card).get("balance")
        sheet.check(f"ledger.{account}", card is not None and text_filled(balance)
                    and parse_amount(balance) == 0)

    capital = as_mapping(lookup_account(ledgers, closing.capital_account))
    sheet.check(f"ledger.{closing.capital_account}",
                balance_matches(capital.get("balance"), capital.get("balanceType"), -closing.ending_capital))
    return sheet.result()
