"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the accounting-cycle engine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. test_balancing.py - Every generated entry and statement balances
2. test_ledger_fold.py - The ledger is a pure fold over transactions
3. test_classifier_totality.py - Every account name classifies to exactly one type
4. test_determinism.py - Seeded generation and validation are reproducible
5. test_tolerance.py - Amounts within one unit match, two units do not
6. test_step_gating.py - Step progression gating and attempt exhaustion

These tests use hypothesis for property-based testing.
"""
