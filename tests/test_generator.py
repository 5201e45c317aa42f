"""Tests for the deterministic mock bank."""

from collections import Counter
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest

from app.generator import synthetic
from app.generator.registry import InstitutionRegistry
from app.generator.synthetic import (
    TRANSACTION_TEMPLATES,
    account_id_for,
    accounts_for,
    generate_iban,
    institutions,
    transaction_count,
    transactions_for,
)

TODAY = date(2025, 6, 15)
WINDOW_FROM = TODAY - timedelta(days=90)
DEMO_CHECKING = "demo-bank-003-checking-001"
IBAN_LENGTH = 22


def _content(transactions: list) -> Counter:
    return Counter(
        (t.booking_date, t.transaction_amount.amount, t.remittance_information_unstructured) for t in transactions
    )


def test_institution_catalog() -> None:
    """The catalog lists the three mock banks in a fixed order."""
    bank_ids = [bank.bank_id for bank in institutions()]
    if bank_ids != ["sparkasse-berlin-001", "volksbank-mitte-002", "demo-bank-003"]:
        msg = f"Unexpected catalog order: {bank_ids}"
        raise AssertionError(msg)
    if InstitutionRegistry.get("unknown-bank") is not None:
        msg = "Expected None for an unknown bank"
        raise AssertionError(msg)


def test_accounts_are_deterministic() -> None:
    """Accounts follow the bank templates and never change between calls."""
    accounts = accounts_for("volksbank-mitte-002")
    ids = [a.account_id for a in accounts]
    expected = ["volksbank-mitte-002-checking-001", "volksbank-mitte-002-savings-002", "volksbank-mitte-002-credit-003"]
    if ids != expected:
        msg = f"Expected {expected}, got {ids}"
        raise AssertionError(msg)
    if accounts != accounts_for("volksbank-mitte-002"):
        msg = "Expected identical accounts on repeated calls"
        raise AssertionError(msg)
    credit = accounts[2]
    if Decimal(credit.balances.available.amount) >= 1:
        msg = f"Credit balance should be at most the cents part, got {credit.balances.available.amount}"
        raise AssertionError(msg)
    savings = Decimal(accounts[1].balances.available.amount)
    if not Decimal(1000) <= savings < Decimal(15000):
        msg = f"Savings balance out of range: {savings}"
        raise AssertionError(msg)
    for account in accounts:
        if len(account.iban) != IBAN_LENGTH or not account.iban.startswith("DE"):
            msg = f"Unexpected IBAN {account.iban}"
            raise AssertionError(msg)


def test_unknown_bank_gets_fallback_account() -> None:
    """An unknown bank id yields one checking account with a fixed balance."""
    accounts = accounts_for("nope-bank")
    if len(accounts) != 1:
        msg = f"Expected a single fallback account, got {len(accounts)}"
        raise AssertionError(msg)
    account = accounts[0]
    if account.account_id != "nope-bank-checking-001" or account.account_type != "checking":
        msg = f"Unexpected fallback account {account}"
        raise AssertionError(msg)
    if account.balances.available.amount != "1000.00":
        msg = f"Expected fallback balance 1000.00, got {account.balances.available.amount}"
        raise AssertionError(msg)
    if account.iban != generate_iban("nope-bank-default"):
        msg = "Fallback IBAN should be seeded by the bank id"
        raise AssertionError(msg)


def test_account_id_reconstruction() -> None:
    """Stored (bank, type) pairs map back to the mock account ids."""
    cases = {
        ("demo-bank-003", "checking"): "demo-bank-003-checking-001",
        ("demo-bank-003", "savings"): "demo-bank-003-savings-002",
        ("volksbank-mitte-002", "credit"): "volksbank-mitte-002-credit-003",
        ("nope-bank", "checking"): "nope-bank-checking-001",
    }
    for (bank_id, account_type), expected in cases.items():
        got = account_id_for(bank_id, account_type)
        if got != expected:
            msg = f"account_id_for({bank_id}, {account_type}) expected {expected}, got {got}"
            raise AssertionError(msg)


def test_transactions_are_deterministic() -> None:
    """Same inputs produce identical transactions, newest first."""
    first = transactions_for(DEMO_CHECKING, "user-A", WINDOW_FROM, TODAY)
    second = transactions_for(DEMO_CHECKING, "user-A", WINDOW_FROM, TODAY)
    if first != second:
        msg = "Expected identical transactions for identical inputs"
        raise AssertionError(msg)
    dates = [t.booking_date for t in first]
    if dates != sorted(dates, reverse=True):
        msg = "Expected transactions sorted newest first"
        raise AssertionError(msg)


def test_demo_bank_users_share_content_not_identity() -> None:
    """Two consumers see the same amounts and dates for an account but disjoint transaction ids."""
    user_a = transactions_for(DEMO_CHECKING, "user-A", WINDOW_FROM, TODAY)
    user_b = transactions_for(DEMO_CHECKING, "user-B", WINDOW_FROM, TODAY)
    count = transaction_count(DEMO_CHECKING)
    if not 50 <= count <= 100:
        msg = f"Nominal count out of range: {count}"
        raise AssertionError(msg)
    if len(user_a) != count or len(user_b) != count:
        msg = f"Expected {count} transactions for each user, got {len(user_a)} and {len(user_b)}"
        raise AssertionError(msg)
    if _content(user_a) != _content(user_b):
        msg = "Expected identical content for both users"
        raise AssertionError(msg)
    ids_a = {t.transaction_id for t in user_a}
    ids_b = {t.transaction_id for t in user_b}
    if ids_a & ids_b:
        msg = f"Expected disjoint transaction ids, shared: {ids_a & ids_b}"
        raise AssertionError(msg)


def test_transaction_shape() -> None:
    """Amounts carry their sign, names follow the direction, ids follow the txn-xxxxxxxx-xxxx pattern."""
    descriptions = {t.description: t for t in TRANSACTION_TEMPLATES}
    for txn in transactions_for(DEMO_CHECKING, "user-A", WINDOW_FROM, TODAY):
        template = descriptions[txn.remittance_information_unstructured]
        amount = Decimal(txn.transaction_amount.amount)
        if (amount < 0) != template.is_expense:
            msg = f"Sign of {amount} does not match template {template.name}"
            raise AssertionError(msg)
        low, high = template.amount_range
        if not low <= abs(amount) < high + 1:
            msg = f"Amount {amount} outside {template.amount_range}"
            raise AssertionError(msg)
        counterparty = txn.creditor_name if template.is_expense else txn.debtor_name
        if counterparty != template.name:
            msg = f"Expected counterparty {template.name}, got {counterparty}"
            raise AssertionError(msg)
        prefix, head, tail = txn.transaction_id.split("-")
        if prefix != "txn" or len(head) != 8 or len(tail) != 4:
            msg = f"Unexpected transaction id {txn.transaction_id}"
            raise AssertionError(msg)
        if txn.value_date != txn.booking_date:
            msg = "Expected value date to equal booking date"
            raise AssertionError(msg)


def test_window_bounds_drop_slots() -> None:
    """A single-day window stacks every slot on that day; an inverted window drops every slot."""
    single_day = transactions_for(DEMO_CHECKING, "user-A", TODAY, TODAY)
    if len(single_day) != transaction_count(DEMO_CHECKING):
        msg = f"Expected {transaction_count(DEMO_CHECKING)} transactions, got {len(single_day)}"
        raise AssertionError(msg)
    if {t.booking_date for t in single_day} != {TODAY.isoformat()}:
        msg = "Expected every transaction on the single window day"
        raise AssertionError(msg)
    inverted = transactions_for(DEMO_CHECKING, "user-A", TODAY, WINDOW_FROM)
    if inverted:
        msg = f"Expected no transactions for an inverted window, got {len(inverted)}"
        raise AssertionError(msg)


def test_default_window_ends_today() -> None:
    """Missing bounds default to the trailing 90 days."""
    explicit = transactions_for(DEMO_CHECKING, "user-A", WINDOW_FROM, TODAY)
    implicit = transactions_for(DEMO_CHECKING, "user-A", today=TODAY)
    if explicit != implicit:
        msg = "Expected the default window to match the explicit 90-day window"
        raise AssertionError(msg)


def test_default_today_is_the_utc_date(monkeypatch: pytest.MonkeyPatch) -> None:
    """Without an explicit today the window ends at the current UTC date."""
    late_evening = datetime(2025, 6, 15, 23, 30, tzinfo=UTC)
    monkeypatch.setattr(synthetic, "utcnow", lambda: late_evening)
    if transactions_for(DEMO_CHECKING, "user-A") != transactions_for(DEMO_CHECKING, "user-A", today=TODAY):
        msg = "Expected the default window to end at the UTC date"
        raise AssertionError(msg)
