"""
config.py - Scenario Configuration

ScenarioConfig is the immutable parameter set the generator is driven by.
Enumerated options are validated at construction; counts are clamped into
their legal range rather than rejected, so a host can pass raw form values.

ScenarioConfig.from_mapping() reads the host's JSON payload, which uses
camelCase keys and nests the discount/freight toggles under "options":

    {
        "businessType": "Merchandising",
        "ownership": "Sole Proprietorship",
        "inventorySystem": "Perpetual",
        "numTransactions": 10,
        "selectedSteps": [1, 2, 3],
        "isSubsequentYear": false,
        "deferredExpenseMethod": "Asset",
        "deferredIncomeMethod": "Liability",
        "options": {"includeFreight": true}
    }
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Tuple

from .core import ALL_STEPS, ScenarioConfigError


# Business organizations.
BUSINESS_SERVICE = "Service"
BUSINESS_MERCHANDISING = "Merchandising"
BUSINESS_MANUFACTURING = "Manufacturing"
BUSINESS_BANKING = "Banking"
BUSINESS_TYPES = (BUSINESS_SERVICE, BUSINESS_MERCHANDISING, BUSINESS_MANUFACTURING, BUSINESS_BANKING)

# Ownership forms.
OWNERSHIP_SOLE = "Sole Proprietorship"
OWNERSHIP_PARTNERSHIP = "Partnership"
OWNERSHIP_OPC = "One-Person Corporation"
OWNERSHIP_COOPERATIVE = "Cooperative"
OWNERSHIP_CORPORATION = "Corporation"
OWNERSHIP_FORMS = (
    OWNERSHIP_SOLE, OWNERSHIP_PARTNERSHIP, OWNERSHIP_OPC,
    OWNERSHIP_COOPERATIVE, OWNERSHIP_CORPORATION,
)

# Inventory systems.
INVENTORY_PERIODIC = "Periodic"
INVENTORY_PERPETUAL = "Perpetual"
INVENTORY_SYSTEMS = (INVENTORY_PERIODIC, INVENTORY_PERPETUAL)

# Deferral recording methods.
DEFERRED_EXPENSE_ASSET = "Asset"
DEFERRED_EXPENSE_EXPENSE = "Expense"
DEFERRED_EXPENSE_METHODS = (DEFERRED_EXPENSE_ASSET, DEFERRED_EXPENSE_EXPENSE)

DEFERRED_INCOME_LIABILITY = "Liability"
DEFERRED_INCOME_INCOME = "Income"
DEFERRED_INCOME_METHODS = (DEFERRED_INCOME_LIABILITY, DEFERRED_INCOME_INCOME)

# Financial statement layouts.
FS_FORMAT_SINGLE = "Single"
FS_FORMAT_MULTI = "Multi"
FS_FORMATS = (FS_FORMAT_SINGLE, FS_FORMAT_MULTI)

MIN_TRANSACTIONS = 5
MAX_TRANSACTIONS = 30
MIN_PARTNERS = 2
MAX_PARTNERS = 5

DEFAULT_YEAR = 2023


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _coerce_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _require(value: str, allowed: Tuple[str, ...], name: str) -> None:
    if value not in allowed:
        raise ScenarioConfigError(f"{name} must be one of {allowed}, got {value!r}")


@dataclass(frozen=True, slots=True)
class ScenarioConfig:
    """
    Immutable scenario parameters.

    Attributes:
        business_type: Service, Merchandising, Manufacturing or Banking
        ownership: Sole Proprietorship, Partnership, One-Person Corporation,
            Cooperative or Corporation
        inventory_system: Periodic or Perpetual (merchandising/manufacturing only)
        num_transactions: clamped into [5, 30]
        selected_steps: ascending, de-duplicated step ids (defaults to all ten)
        num_partners: clamped into [2, 5]; only partnerships use it
        is_subsequent_year: generate beginning balances instead of an investment
        deferred_expense_method: Asset or Expense
        deferred_income_method: Liability or Income
        fs_format: Single or Multi step income statement
        include_cash_flows: ask for a statement of cash flows in step 6
        include_trade_discounts: price merchandise at list less trade discount
        include_cash_discounts: add 2/10, n/30 collections and payments
        include_freight: add freight-in and freight-out transactions
        year: calendar year of the accounting period
    """
    business_type: str = BUSINESS_SERVICE
    ownership: str = OWNERSHIP_SOLE
    inventory_system: str = INVENTORY_PERPETUAL
    num_transactions: int = 10
    selected_steps: Tuple[int, ...] = ALL_STEPS
    num_partners: int = MIN_PARTNERS
    is_subsequent_year: bool = False
    deferred_expense_method: str = DEFERRED_EXPENSE_ASSET
    deferred_income_method: str = DEFERRED_INCOME_LIABILITY
    fs_format: str = FS_FORMAT_SINGLE
    include_cash_flows: bool = False
    include_trade_discounts: bool = False
    include_cash_discounts: bool = False
    include_freight: bool = False
    year: int = DEFAULT_YEAR

    def __post_init__(self):
        _require(self.business_type, BUSINESS_TYPES, "business_type")
        _require(self.ownership, OWNERSHIP_FORMS, "ownership")
        _require(self.inventory_system, INVENTORY_SYSTEMS, "inventory_system")
        _require(self.deferred_expense_method, DEFERRED_EXPENSE_METHODS, "deferred_expense_method")
        _require(self.deferred_income_method, DEFERRED_INCOME_METHODS, "deferred_income_method")
        _require(self.fs_format, FS_FORMATS, "fs_format")
        if self.year < 1:
            raise ScenarioConfigError(f"year must be positive, got {self.year}")

        # Frozen: normalise through object.__setattr__.
        object.__setattr__(
            self, "num_transactions",
            _clamp(_coerce_int(self.num_transactions, MIN_TRANSACTIONS), MIN_TRANSACTIONS, MAX_TRANSACTIONS),
        )
        object.__setattr__(
            self, "num_partners",
            _clamp(_coerce_int(self.num_partners, MIN_PARTNERS), MIN_PARTNERS, MAX_PARTNERS),
        )
        object.__setattr__(self, "selected_steps", _normalize_steps(self.selected_steps))

    @property
    def is_merchandiser(self) -> bool:
        """Merchandising and manufacturing firms trade inventory."""
        return self.business_type in (BUSINESS_MERCHANDISING, BUSINESS_MANUFACTURING)

    @property
    def is_perpetual(self) -> bool:
        return self.is_merchandiser and self.inventory_system == INVENTORY_PERPETUAL

    @property
    def is_sole_proprietorship(self) -> bool:
        return self.ownership == OWNERSHIP_SOLE

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> ScenarioConfig:
        """Build a config from the host's camelCase JSON payload."""
        options = payload.get("options") or {}
        return cls(
            business_type=payload.get("businessType", BUSINESS_SERVICE),
            ownership=payload.get("ownership", OWNERSHIP_SOLE),
            inventory_system=payload.get("inventorySystem", INVENTORY_PERPETUAL),
            num_transactions=payload.get("numTransactions", 10),
            selected_steps=tuple(payload.get("selectedSteps") or ALL_STEPS),
            num_partners=payload.get("numPartners", MIN_PARTNERS),
            is_subsequent_year=bool(payload.get("isSubsequentYear", False)),
            deferred_expense_method=payload.get("deferredExpenseMethod", DEFERRED_EXPENSE_ASSET),
            deferred_income_method=payload.get("deferredIncomeMethod", DEFERRED_INCOME_LIABILITY),
            fs_format=payload.get("fsFormat", FS_FORMAT_SINGLE),
            include_cash_flows=bool(payload.get("includeCashFlows", False)),
            include_trade_discounts=bool(options.get("includeTradeDiscounts", False)),
            include_cash_discounts=bool(options.get("includeCashDiscounts", False)),
            include_freight=bool(options.get("includeFreight", False)),
            year=_coerce_int(payload.get("year", DEFAULT_YEAR), DEFAULT_YEAR),
        )


def _normalize_steps(steps: Iterable[Any]) -> Tuple[int, ...]:
    chosen = set()
    for step in steps or ():
        step_id = _coerce_int(step, 0)
        if step_id not in ALL_STEPS:
            raise ScenarioConfigError(f"Unknown step id: {step!r}")
        chosen.add(step_id)
    if not chosen:
        return ALL_STEPS
    return tuple(sorted(chosen))
