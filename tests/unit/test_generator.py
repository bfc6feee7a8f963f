"""
test_generator.py - Unit tests for the scenario generator

Tests:
- Transaction count, ids, dates and balancing
- First-year investment vs subsequent-year beginning balances
- Running-balance constraints (cash, receivables)
- Configuration-driven account choices (inventory system, deferral methods)
- Accounting-equation answer keys
- Adjustment generation and bounds, including the minimum count and
  periodic inventory entries
"""

import pytest
from datetime import date
from decimal import Decimal

import numpy as np

from accounting_cycle import (
    JournalLine, ScenarioConfig, generate, generate_adjustments, generate_beginning_balances,
    analyze_effect, aggregate, find_capital_account, is_capital_account,
    ADJ_ACCRUED_EXPENSE, ADJ_BEGINNING_INVENTORY, ADJ_ENDING_INVENTORY,
    BeginningBalance, BeginningBalances, is_reversible,
)
from accounting_cycle.config import BUSINESS_TYPES
from accounting_cycle.generator import (
    KIND_INVESTMENT, MAX_ADJUSTMENTS, build_templates, capital_account_for, check_constraints,
    drawing_account_for, fmt, revenue_account_for, TransactionDraft,
)
from tests.answer_key import tx


def _line(account, amount):
    return JournalLine(account, Decimal(amount))


class TestTransactions:

    def test_exact_count(self, generated_service, service_config):
        assert len(generated_service.transactions) == service_config.num_transactions

    def test_ids_are_sequential(self, generated_service):
        assert [t.id for t in generated_service.transactions] == list(range(1, 11))

    def test_every_transaction_balances(self, generated_merchandising):
        for t in generated_merchandising.transactions:
            assert t.total_debits == t.total_credits

    def test_dates_sorted_within_first_month(self, generated_service):
        dates = [t.date for t in generated_service.transactions]
        assert dates == sorted(dates)
        assert all(d.year == 2023 and d.month == 1 for d in dates)

    def test_first_year_opens_with_investment(self, generated_service):
        first = generated_service.transactions[0]
        assert first.kind == KIND_INVESTMENT
        assert first.debits[0].account == "Cash"
        assert first.credits[0].account == "Owner, Capital"
        assert generated_service.beginning_balances is None

    def test_minimum_scenario(self):
        """Five transactions, with a cash-like asset and a capital account."""
        activity = generate(ScenarioConfig(num_transactions=5), seed=1)
        assert len(activity.transactions) == 5
        assert "Cash" in activity.valid_accounts
        assert any(is_capital_account(a) for a in activity.valid_accounts)

    @pytest.mark.parametrize("seed", range(10))
    def test_running_cash_and_receivables_never_negative(self, seed):
        activity = generate(ScenarioConfig(num_transactions=30), seed=seed)
        cash = receivables = Decimal(0)
        for t in activity.transactions:
            for line in t.debits:
                cash += line.amount if line.account == "Cash" else 0
                receivables += line.amount if line.account == "Accounts Receivable" else 0
            for line in t.credits:
                cash -= line.amount if line.account == "Cash" else 0
                receivables -= line.amount if line.account == "Accounts Receivable" else 0
            assert cash >= 0
            assert receivables >= 0

    def test_ledger_is_aggregate_of_transactions(self, generated_service):
        assert generated_service.ledger == aggregate(generated_service.transactions)


class TestSubsequentYear:

    @pytest.mark.parametrize("seed", range(5))
    def test_beginning_balances_balance(self, seed):
        config = ScenarioConfig(is_subsequent_year=True)
        bb = generate_beginning_balances(config, np.random.default_rng(seed))
        assert bb.total_debits == bb.total_credits
        assert bb.balances["Cash"].dr > 0
        assert bb.balances["Owner, Capital"].cr > 0

    def test_no_investment_transaction(self):
        activity = generate(ScenarioConfig(is_subsequent_year=True), seed=3)
        assert activity.beginning_balances is not None
        assert all(t.kind != KIND_INVESTMENT for t in activity.transactions)
        assert set(activity.beginning_balances.balances) <= set(activity.valid_accounts)

    def test_corporation_carries_retained_earnings(self):
        config = ScenarioConfig(ownership="Corporation", is_subsequent_year=True)
        activity = generate(config, seed=5)
        assert find_capital_account(activity.valid_accounts) == "Retained Earnings"


class TestAccountChoices:

    def test_capital_and_drawing_names(self):
        assert capital_account_for(ScenarioConfig()) == "Owner, Capital"
        assert capital_account_for(ScenarioConfig(ownership="Partnership")) == "Partners, Capital"
        assert capital_account_for(ScenarioConfig(ownership="Cooperative")) == "Share Capital"
        assert drawing_account_for(ScenarioConfig(ownership="Corporation")) == "Dividends"

    def test_revenue_account(self):
        assert revenue_account_for(ScenarioConfig()) == "Service Revenue"
        assert revenue_account_for(ScenarioConfig(business_type="Banking")) == "Interest Income"
        assert revenue_account_for(ScenarioConfig(business_type="Merchandising")) == "Sales"

    def test_periodic_purchases_hit_purchases(self):
        config = ScenarioConfig(business_type="Merchandising", inventory_system="Periodic")
        templates = build_templates(config, np.random.default_rng(0))
        purchase = templates["Merch Purchase Credit"].build(Decimal("10000"))
        assert purchase.debits[0].account == "Purchases"

    def test_perpetual_sale_records_cost(self):
        config = ScenarioConfig(business_type="Merchandising")
        templates = build_templates(config, np.random.default_rng(0))
        sale = templates["Merch Sale Credit"].build(Decimal("10000"))
        accounts = [l.account for l in sale.debits + sale.credits]
        assert "Cost of Goods Sold" in accounts
        assert "Merchandise Inventory" in accounts
        assert sum(l.amount for l in sale.debits) == sum(l.amount for l in sale.credits)

    def test_expense_method_debits_expense(self):
        config = ScenarioConfig(deferred_expense_method="Expense", deferred_income_method="Income")
        templates = build_templates(config, np.random.default_rng(0))
        assert templates["Supplies Credit"].build(Decimal("100")).debits[0].account == "Supplies Expense"
        assert templates["Rent Advance"].build(Decimal("100")).debits[0].account == "Rent Expense"
        assert templates["Unearned Revenue"].build(Decimal("100")).credits[0].account == "Service Revenue"

    def test_cash_discount_collection_balances(self):
        config = ScenarioConfig(business_type="Merchandising", include_cash_discounts=True)
        templates = build_templates(config, np.random.default_rng(0))
        draft = templates["Collection Discount"].build(Decimal("8000"))
        assert draft.debits == (_line("Cash", "7840"), _line("Sales Discounts", "160"))

    def test_trade_discount_mentioned_in_description(self):
        config = ScenarioConfig(business_type="Merchandising", include_trade_discounts=True)
        templates = build_templates(config, np.random.default_rng(0))
        template = templates["Merch Purchase Credit"]
        assert "trade discount" in template.build(template.base_amount).description


class TestConstraints:

    def test_overdraft_rejected(self):
        draft = TransactionDraft("x", "x", (_line("Rent Expense", "500"),), (_line("Cash", "500"),))
        assert check_constraints({"Cash": Decimal("100")}, draft)
        assert not check_constraints({"Cash": Decimal("500")}, draft)

    def test_over_collection_rejected(self):
        draft = TransactionDraft("x", "x", (_line("Cash", "500"),), (_line("Accounts Receivable", "500"),))
        assert check_constraints({"Accounts Receivable": Decimal("499")}, draft)


class TestAnalyzeEffect:

    def test_owner_investment(self):
        a = analyze_effect((_line("Cash", "1000"),), (_line("Owner, Capital", "1000"),))
        assert (a.assets, a.liabilities, a.equity, a.cause) == (
            "Increase", "No Effect", "Increase", "Increase in Capital")

    def test_paying_an_expense(self):
        a = analyze_effect((_line("Salaries Expense", "500"),), (_line("Cash", "500"),))
        assert (a.assets, a.liabilities, a.equity, a.cause) == (
            "Decrease", "No Effect", "Decrease", "Increase in Expense")

    def test_purchase_on_account_leaves_equity_alone(self):
        a = analyze_effect((_line("Supplies", "500"),), (_line("Accounts Payable", "500"),))
        assert (a.assets, a.liabilities, a.equity, a.cause) == ("Increase", "Increase", "No Effect", "")

    def test_withdrawal(self):
        a = analyze_effect((_line("Owner, Drawings", "500"),), (_line("Cash", "500"),))
        assert a.cause == "Increase in Drawings"

    def test_revenue_on_account(self):
        a = analyze_effect((_line("Accounts Receivable", "500"),), (_line("Service Revenue", "500"),))
        assert (a.assets, a.equity, a.cause) == ("Increase", "Increase", "Increase in Income")

    def test_collection_is_asset_swap(self):
        a = analyze_effect((_line("Cash", "500"),), (_line("Accounts Receivable", "500"),))
        assert (a.assets, a.liabilities, a.equity, a.cause) == ("No Effect", "No Effect", "No Effect", "")


class TestAdjustments:

    def test_ids_and_bounds(self, generated_service):
        adjustments = generated_service.adjustments
        assert 1 <= len(adjustments) <= MAX_ADJUSTMENTS
        assert [a.id for a in adjustments] == [f"adj{i}" for i in range(1, len(adjustments) + 1)]
        assert all(a.amount > 0 for a in adjustments)

    def test_accrued_salaries_always_present(self, generated_merchandising):
        assert any(a.type == ADJ_ACCRUED_EXPENSE and a.cr_account == "Salaries Payable"
                   for a in generated_merchandising.adjustments)

    def test_supplies_adjustment_bounded_by_balance(self):
        ledger = aggregate([])
        config = ScenarioConfig()
        adjustments = generate_adjustments(ledger, config)
        assert all(a.dr_account != "Supplies Expense" for a in adjustments)

    def test_deferral_bounded_by_available_supplies(self, service_activity):
        adjustments = generate_adjustments(service_activity.ledger, ScenarioConfig())
        supplies = [a for a in adjustments if a.cr_account == "Supplies"]
        assert len(supplies) == 1
        assert supplies[0].amount == Decimal("1400")

    @pytest.mark.parametrize("business_type", BUSINESS_TYPES)
    @pytest.mark.parametrize("inventory_system", ["Perpetual", "Periodic"])
    @pytest.mark.parametrize("subsequent", [False, True])
    @pytest.mark.parametrize("methods", [("Asset", "Liability"), ("Expense", "Income")])
    def test_fewest_transactions_still_need_three_adjustments(
        self, business_type, inventory_system, subsequent, methods,
    ):
        """Even a five-transaction scenario yields between 3 and MAX_ADJUSTMENTS entries."""
        config = ScenarioConfig(
            business_type=business_type, inventory_system=inventory_system, num_transactions=5,
            is_subsequent_year=subsequent,
            deferred_expense_method=methods[0], deferred_income_method=methods[1],
        )
        for seed in range(5):
            adjustments = generate(config, seed=seed).adjustments
            assert 3 <= len(adjustments) <= MAX_ADJUSTMENTS, (seed, [a.type for a in adjustments])


class TestPeriodicInventory:
    """Beginning and ending inventory entries for the periodic system."""

    PERIODIC = ScenarioConfig(business_type="Merchandising", inventory_system="Periodic")

    def _ledger(self, beginning_inventory=None):
        bb = None
        if beginning_inventory:
            bb = BeginningBalances({
                "Cash": BeginningBalance(dr=Decimal("40000")),
                "Merchandise Inventory": BeginningBalance(dr=Decimal(beginning_inventory)),
                "Owner, Capital": BeginningBalance(cr=Decimal("40000") + Decimal(beginning_inventory)),
            })
        return aggregate([
            tx(1, 3, [("Purchases", 20000)], [("Accounts Payable", 20000)]),
            tx(2, 5, [("Freight In", 1000)], [("Cash", 1000)]),
            tx(3, 9, [("Cash", 30000)], [("Sales", 30000)]),
        ], bb)

    def test_ending_inventory_from_net_purchases(self):
        adjustments = generate_adjustments(self._ledger(), self.PERIODIC)
        ending = adjustments[-1]
        assert ending.type == ADJ_ENDING_INVENTORY
        assert (ending.dr_account, ending.cr_account) == ("Merchandise Inventory", "Income Summary")
        assert ending.amount == Decimal("8400")
        assert not any(a.type == ADJ_BEGINNING_INVENTORY for a in adjustments)

    def test_beginning_inventory_closed_first(self):
        adjustments = generate_adjustments(self._ledger(5000), self.PERIODIC)
        beginning, ending = adjustments[-2:]
        assert beginning.type == ADJ_BEGINNING_INVENTORY
        assert (beginning.dr_account, beginning.cr_account) == ("Income Summary", "Merchandise Inventory")
        assert beginning.amount == Decimal("5000")
        assert ending.amount == Decimal("10400")

    def test_perpetual_has_no_inventory_entries(self):
        config = ScenarioConfig(business_type="Merchandising")
        adjustments = generate_adjustments(self._ledger(5000), config)
        assert not any(a.type in (ADJ_BEGINNING_INVENTORY, ADJ_ENDING_INVENTORY) for a in adjustments)

    def test_inventory_entries_survive_the_cap(self):
        ledger = aggregate([tx(
            1, 2,
            [("Supplies", 5000), ("Prepaid Rent", 12000), ("Equipment", 50000),
             ("Accounts Receivable", 10000), ("Merchandise Inventory", 6000), ("Purchases", 20000)],
            [("Unearned Revenue", 8000), ("Notes Payable", 40000), ("Accounts Payable", 55000)],
        )])
        adjustments = generate_adjustments(ledger, self.PERIODIC)
        assert len(adjustments) == MAX_ADJUSTMENTS
        assert [a.type for a in adjustments[-2:]] == [ADJ_BEGINNING_INVENTORY, ADJ_ENDING_INVENTORY]
        assert [a.id for a in adjustments] == [f"adj{i}" for i in range(1, MAX_ADJUSTMENTS + 1)]

    def test_inventory_entries_never_reverse(self):
        for adj in generate_adjustments(self._ledger(5000), self.PERIODIC):
            if adj.type in (ADJ_BEGINNING_INVENTORY, ADJ_ENDING_INVENTORY):
                assert not is_reversible(adj, self.PERIODIC)


def test_fmt():
    assert fmt(Decimal("12000")) == "P12,000"
