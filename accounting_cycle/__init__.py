"""
accounting_cycle - Accounting Cycle Scenario Generator and Grading Engine

Generates randomized, internally consistent double-entry bookkeeping
scenarios and grades a learner's work through the ten steps of the
accounting cycle.

Usage:
    from accounting_cycle import ScenarioConfig, generate, validate_step, initial_statuses, record_validation

    config = ScenarioConfig(business_type="Service", ownership="Sole Proprietorship", num_transactions=8)
    activity = generate(config, seed=42)

    for tx in activity.transactions:
        print(tx.id, tx.date, tx.description)

    # Grade the learner's transaction analysis
    answer = {"1": {"assets": "Increase", "liabilities": "No Effect",
                    "equity": "Increase", "cause": "Increase in Capital"}}
    result = validate_step(1, activity, answer)
    print(result.score, result.max_score, result.letter_grade)

    # Track progress through the selected steps
    statuses = initial_statuses(activity.steps)
    statuses = record_validation(statuses, 1, result)
"""

# Core types
from .core import (
    JournalLine,
    Analysis,
    Transaction,
    BeginningBalance,
    BeginningBalances,
    Adjustment,
    AccountTotals,
    Ledger,
    ValidationResult,
    StepStatus,
    ActivityData,
    Answer,
    Details,
    CycleError,
    ScenarioConfigError,
    InvariantViolation,
    UnknownStepError,
    parse_amount,
    amounts_match,
    letter_grade,
    normalize_text,
    transaction_accounts,
    STEP_TITLES,
    ALL_STEPS,
    DEFAULT_ATTEMPTS,
    EQUITY_CAUSES,
    AMOUNT_TOLERANCE,
    ADJ_ACCRUED_EXPENSE,
    ADJ_ACCRUED_REVENUE,
    ADJ_DEFERRED_EXPENSE,
    ADJ_DEFERRED_INCOME,
    ADJ_DEPRECIATION,
    ADJ_BAD_DEBT,
    ADJ_BEGINNING_INVENTORY,
    ADJ_ENDING_INVENTORY,
)

# Configuration
from .config import (
    ScenarioConfig,
    BUSINESS_SERVICE,
    BUSINESS_MERCHANDISING,
    BUSINESS_MANUFACTURING,
    BUSINESS_BANKING,
    OWNERSHIP_SOLE,
    OWNERSHIP_PARTNERSHIP,
    OWNERSHIP_OPC,
    OWNERSHIP_COOPERATIVE,
    OWNERSHIP_CORPORATION,
    INVENTORY_PERIODIC,
    INVENTORY_PERPETUAL,
    FS_FORMAT_SINGLE,
    FS_FORMAT_MULTI,
)

# Account classifier
from .accounts import (
    Classification,
    classify,
    account_type,
    normal_side,
    is_nominal,
    is_drawing_account,
    is_capital_account,
    sort_accounts,
    ASSET,
    LIABILITY,
    EQUITY,
    REVENUE,
    EXPENSE,
    DEBIT,
    CREDIT,
    ACCOUNT_TYPES,
)

# Aggregation and derived statements
from .aggregation import (
    aggregate,
    apply_adjustments,
    adjusted_ledger,
    net_balance,
    find_capital_account,
    TrialBalance,
    TrialBalanceLine,
    trial_balance,
    Worksheet,
    WorksheetRow,
    build_worksheet,
    FinancialFigures,
    compute_financial_figures,
    ClosingEntry,
    ClosingFigures,
    compute_closing_figures,
    post_closing_ledger,
)

# Generator
from .generator import (
    generate,
    generate_beginning_balances,
    generate_transactions,
    generate_adjustments,
    analyze_effect,
)

# Validators
from .validators import (
    VALIDATORS,
    validate_step,
    validate_step1,
    validate_step2,
    validate_step3,
    validate_step4,
    validate_step5,
    validate_step6,
    validate_step7,
    validate_step8,
    validate_step9,
    validate_step10,
    NetIncomePlacement,
    is_reversible,
)

# Progression
from .progression import (
    StepState,
    initial_statuses,
    apply_validation,
    step_state,
    active_step,
    record_validation,
)


__all__ = [
    # Core
    'JournalLine', 'Analysis', 'Transaction', 'BeginningBalance', 'BeginningBalances',
    'Adjustment', 'AccountTotals', 'Ledger', 'ValidationResult', 'StepStatus', 'ActivityData',
    'Answer', 'Details',
    'CycleError', 'ScenarioConfigError', 'InvariantViolation', 'UnknownStepError',
    'parse_amount', 'amounts_match', 'letter_grade', 'normalize_text', 'transaction_accounts',
    'STEP_TITLES', 'ALL_STEPS', 'DEFAULT_ATTEMPTS', 'EQUITY_CAUSES', 'AMOUNT_TOLERANCE',
    'ADJ_ACCRUED_EXPENSE', 'ADJ_ACCRUED_REVENUE', 'ADJ_DEFERRED_EXPENSE', 'ADJ_DEFERRED_INCOME',
    'ADJ_DEPRECIATION', 'ADJ_BAD_DEBT', 'ADJ_BEGINNING_INVENTORY', 'ADJ_ENDING_INVENTORY',
    # Configuration
    'ScenarioConfig',
    'BUSINESS_SERVICE', 'BUSINESS_MERCHANDISING', 'BUSINESS_MANUFACTURING', 'BUSINESS_BANKING',
    'OWNERSHIP_SOLE', 'OWNERSHIP_PARTNERSHIP', 'OWNERSHIP_OPC', 'OWNERSHIP_COOPERATIVE',
    'OWNERSHIP_CORPORATION', 'INVENTORY_PERIODIC', 'INVENTORY_PERPETUAL',
    'FS_FORMAT_SINGLE', 'FS_FORMAT_MULTI',
    # Accounts
    'Classification', 'classify', 'account_type', 'normal_side', 'is_nominal',
    'is_drawing_account', 'is_capital_account', 'sort_accounts',
    'ASSET', 'LIABILITY', 'EQUITY', 'REVENUE', 'EXPENSE', 'DEBIT', 'CREDIT', 'ACCOUNT_TYPES',
    # Aggregation
    'aggregate', 'apply_adjustments', 'adjusted_ledger', 'net_balance', 'find_capital_account',
    'TrialBalance', 'TrialBalanceLine', 'trial_balance',
    'Worksheet', 'WorksheetRow', 'build_worksheet',
    'FinancialFigures', 'compute_financial_figures',
    'ClosingEntry', 'ClosingFigures', 'compute_closing_figures', 'post_closing_ledger',
    # Generator
    'generate', 'generate_beginning_balances', 'generate_transactions', 'generate_adjustments',
    'analyze_effect',
    # Validators
    'VALIDATORS', 'validate_step',
    'validate_step1', 'validate_step2', 'validate_step3', 'validate_step4', 'validate_step5',
    'validate_step6', 'validate_step7', 'validate_step8', 'validate_step9', 'validate_step10',
    'NetIncomePlacement', 'is_reversible',
    # Progression
    'StepState', 'initial_statuses', 'apply_validation', 'step_state', 'active_step',
    'record_validation',
]

__version__ = '1.0.0'
