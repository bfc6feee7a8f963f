"""
accounts.py - Account Classifier

Maps a free-text account name to its type and normal balance side.

Classification is a pure, total function: every string, including the empty
string and learner misspellings, classifies to exactly one type. Names the
rules do not recognise fall back to an Asset with a debit normal balance.

Matching precedence (first rule that fires wins):
    1. known asset titles                      -> Asset
    2. "accumulated depreciation", "allowance" -> contra Asset
    3. payables, "unearned", long-term debt    -> Liability
    4. "income summary"                        -> temporary Equity
    5. drawings, dividends                     -> contra Equity
    6. capital, retained earnings              -> Equity
    7. sales returns/discounts                 -> contra Revenue
    8. purchase returns/discounts              -> contra Expense
    9. "expense"                               -> Expense
   10. revenue, sales, income, fees earned     -> Revenue
   11. cost of goods sold, purchases, freight,
       overhead, loss                          -> Expense
   12. anything else                           -> Asset (fallback)

Specific phrases are tested before the generic words they contain, so
"Unearned Revenue" is a liability and "Sales Returns and Allowances" is
contra revenue rather than revenue.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List

from .core import normalize_text


# Account types.
ASSET = "Asset"
LIABILITY = "Liability"
EQUITY = "Equity"
REVENUE = "Revenue"
EXPENSE = "Expense"

ACCOUNT_TYPES = (ASSET, LIABILITY, EQUITY, REVENUE, EXPENSE)

# Normal balance sides.
DEBIT = "Debit"
CREDIT = "Credit"


# Chart-of-accounts presentation order. Unknown accounts sort after these.
CANONICAL_ACCOUNT_ORDER = (
    "Cash",
    "Accounts Receivable",
    "Allowance for Doubtful Accounts",
    "Merchandise Inventory",
    "Supplies",
    "Prepaid Rent",
    "Equipment",
    "Accumulated Depreciation - Equipment",
    "Furniture",
    "Accumulated Depreciation - Furniture",
    "Building",
    "Accumulated Depreciation - Building",
    "Land",
    "Accounts Payable",
    "Notes Payable",
    "Salaries Payable",
    "Utilities Payable",
    "Interest Payable",
    "Unearned Revenue",
    "Owner, Capital",
    "Owner, Drawings",
    "Partners, Capital",
    "Partners, Drawings",
    "Share Capital",
    "Retained Earnings",
    "Dividends",
    "Income Summary",
    "Service Revenue",
    "Sales",
    "Sales Discounts",
    "Sales Returns and Allowances",
    "Interest Income",
    "Cost of Goods Sold",
    "Purchases",
    "Purchase Discounts",
    "Purchase Returns and Allowances",
    "Freight In",
    "Freight Out",
    "Rent Expense",
    "Salaries Expense",
    "Utilities Expense",
    "Supplies Expense",
    "Repairs and Maintenance Expense",
    "Dues and Subscriptions Expense",
    "Depreciation Expense",
    "Insurance Expense",
    "Advertising Expense",
    "Interest Expense",
    "Bad Debt Expense",
)

_ORDER_INDEX: Dict[str, int] = {
    normalize_text(name): i for i, name in enumerate(CANONICAL_ACCOUNT_ORDER)
}

_ASSET_TITLES = frozenset(normalize_text(n) for n in (
    "Cash", "Accounts Receivable", "Merchandise Inventory", "Supplies",
    "Prepaid Rent", "Equipment", "Furniture", "Building", "Land",
))

_LIABILITY_TITLES = frozenset(normalize_text(n) for n in (
    "Accounts Payable", "Notes Payable", "Salaries Payable",
    "Utilities Payable", "Interest Payable", "Unearned Revenue",
))


@dataclass(frozen=True, slots=True)
class Classification:
    """
    Type and behaviour of an account.

    Attributes:
        account_type: Asset, Liability, Equity, Revenue or Expense
        normal_side: Debit or Credit
        contra: True for accounts that offset their type (drawings,
            accumulated depreciation, sales discounts, ...)
        temporary: True for nominal accounts closed at period end
    """
    account_type: str
    normal_side: str
    contra: bool = False
    temporary: bool = False

    @property
    def type(self) -> str:
        return self.account_type

    @property
    def is_income_statement(self) -> bool:
        """Revenue and expense accounts report on the income statement."""
        return self.account_type in (REVENUE, EXPENSE)


_ASSET = Classification(ASSET, DEBIT)
_CONTRA_ASSET = Classification(ASSET, CREDIT, contra=True)
_LIABILITY = Classification(LIABILITY, CREDIT)
_INCOME_SUMMARY = Classification(EQUITY, CREDIT, temporary=True)
_DRAWING = Classification(EQUITY, DEBIT, contra=True, temporary=True)
_CAPITAL = Classification(EQUITY, CREDIT)
_CONTRA_REVENUE = Classification(REVENUE, DEBIT, contra=True, temporary=True)
_CONTRA_EXPENSE = Classification(EXPENSE, CREDIT, contra=True, temporary=True)
_REVENUE = Classification(REVENUE, CREDIT, temporary=True)
_EXPENSE = Classification(EXPENSE, DEBIT, temporary=True)


def classify(account_name: object) -> Classification:
    """
    Classify an account name. Never raises.

    >>> classify("Unearned Revenue").account_type
    'Liability'
    >>> classify("Owner, Drawings").normal_side
    'Debit'
    """
    name = normalize_text(account_name)

    if name in _ASSET_TITLES:
        return _ASSET
    if "accumulated depreciation" in name or name.startswith("allowance"):
        return _CONTRA_ASSET
    if (name in _LIABILITY_TITLES or name.endswith("payable") or "unearned" in name
            or "mortgage" in name or "bonds payable" in name
            or ("loan" in name and "receivable" not in name)):
        return _LIABILITY
    if "income summary" in name:
        return _INCOME_SUMMARY
    if "drawing" in name or "withdrawal" in name or name in ("dividends", "cash dividends"):
        return _DRAWING
    if "capital" in name or "retained earnings" in name or "owner's equity" in name:
        return _CAPITAL
    if "sales returns" in name or "sales discount" in name:
        return _CONTRA_REVENUE
    if "purchase returns" in name or "purchase discount" in name:
        return _CONTRA_EXPENSE
    if "expense" in name:
        return _EXPENSE
    if ("revenue" in name or name == "sales" or "income" in name
            or "fees earned" in name or "gain" in name):
        return _REVENUE
    if (name in ("cost of goods sold", "purchases")
            or name.startswith("freight") or "overhead" in name or "loss" in name):
        return _EXPENSE
    return _ASSET


def account_type(account_name: object) -> str:
    return classify(account_name).account_type


def normal_side(account_name: object) -> str:
    return classify(account_name).normal_side


def is_nominal(account_name: object) -> bool:
    """Temporary accounts are zeroed by closing entries."""
    return classify(account_name).temporary


def is_drawing_account(account_name: object) -> bool:
    return classify(account_name) is _DRAWING


def is_capital_account(account_name: object) -> bool:
    """Permanent, non-contra equity (the account closing entries feed)."""
    return classify(account_name) is _CAPITAL


def is_income_statement_account(account_name: object) -> bool:
    return classify(account_name).is_income_statement


def is_current_asset(account_name: str) -> bool:
    """Land, buildings, equipment, furniture and their depreciation are non-current."""
    name = normalize_text(account_name)
    non_current = ("land", "building", "equipment", "furniture", "accumulated", "vehicle", "machinery")
    return account_type(account_name) == ASSET and not any(k in name for k in non_current)


def is_current_liability(account_name: str) -> bool:
    name = normalize_text(account_name)
    return account_type(account_name) == LIABILITY and not any(
        k in name for k in ("mortgage", "bonds", "long-term")
    )


def sort_accounts(accounts: Iterable[str]) -> List[str]:
    """
    Sort accounts in chart-of-accounts order.

    Known accounts follow CANONICAL_ACCOUNT_ORDER; unknown ones follow,
    alphabetically.
    """
    def key(account: str):
        index = _ORDER_INDEX.get(normalize_text(account))
        if index is None:
            return (1, len(CANONICAL_ACCOUNT_ORDER), account.lower())
        return (0, index, "")
    return sorted(accounts, key=key)
