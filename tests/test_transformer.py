"""Tests for the categorizer and the DTO to row transformation."""

from datetime import date
from decimal import Decimal

import pytest

from app.core.models import SyntheticTransaction, TransactionAmount, TransactionInsert
from app.pipeline.categorizer import categorize, is_valid_category
from app.pipeline.transformer import TransformError, transform, validate_transaction


def _synthetic(amount: str, **overrides: object) -> SyntheticTransaction:
    values = {
        "transaction_id": "txn-0000abcd-0001",
        "booking_date": "2025-06-01",
        "value_date": "2025-06-01",
        "transaction_amount": TransactionAmount(amount=amount, currency="EUR"),
        "creditor_name": "REWE",
        "debtor_name": None,
        "remittance_information_unstructured": "REWE SAGT DANKE",
    }
    values.update(overrides)
    return SyntheticTransaction(**values)


@pytest.mark.parametrize(
    ("description", "is_expense", "expected"),
    [
        ("REWE SAGT DANKE", True, "Food"),
        ("Cafe Milano Berlin", True, "Food"),
        ("AMAZON EU S.A R.L.", True, "Shopping"),
        ("DB Vertrieb GmbH", True, "Transport"),
        ("BVG Abo Monatskarte", True, "Transport"),
        ("NETFLIX.COM", True, "Entertainment"),
        ("Stadtwerke Berlin Strom/Gas", True, "Utilities"),
        ("Telekom Deutschland GmbH", True, "Utilities"),
        ("Some unknown merchant", True, "Other"),
        ("GEHALT/LOHN", False, "Salary"),
        ("Honorar Beratung", False, "Freelance"),
        ("Steuererstattung", False, "Other"),
        ("REWE SAGT DANKE", False, "Other"),
    ],
)
def test_categorize(description: str, is_expense: bool, expected: str) -> None:
    """Descriptions map to the first matching rule of their direction."""
    got = categorize(description, is_expense)
    if got != expected:
        msg = f"categorize({description!r}, {is_expense}) expected {expected}, got {got}"
        raise AssertionError(msg)


def test_category_validity_depends_on_type() -> None:
    """Salary is an income category only."""
    if not is_valid_category("Salary", "income") or is_valid_category("Salary", "expense"):
        msg = "Expected Salary to be valid for income only"
        raise AssertionError(msg)


def test_transform_expense() -> None:
    """A negative amount becomes an expense row with the absolute amount."""
    row = transform(_synthetic("-42.10"), "user-A", "acc-1")
    expected = {
        "owner_id": "user-A",
        "account_id": "acc-1",
        "external_id": "txn-0000abcd-0001",
        "type": "expense",
        "amount": Decimal("42.10"),
        "currency": "EUR",
        "description": "REWE SAGT DANKE",
        "category": "Food",
        "booking_date": date(2025, 6, 1),
    }
    for field, value in expected.items():
        if getattr(row, field) != value:
            msg = f"Expected {field}={value!r}, got {getattr(row, field)!r}"
            raise AssertionError(msg)


def test_transform_income_from_camel_case_payload() -> None:
    """Wire payloads use camelCase names; a positive amount becomes income."""
    payload = {
        "transactionId": "txn-12345678-9abc",
        "bookingDate": "2025-05-31",
        "transactionAmount": {"amount": "3100.00", "currency": "EUR"},
        "debtorName": "Arbeitgeber GmbH",
        "remittanceInformationUnstructured": "GEHALT/LOHN",
    }
    row = transform(SyntheticTransaction.model_validate(payload), "user-A", "acc-1")
    if (row.type, row.amount, row.category) != ("income", Decimal("3100.00"), "Salary"):
        msg = f"Unexpected income row {row}"
        raise AssertionError(msg)
    if row.value_date is not None:
        msg = "Expected no value date when the payload has none"
        raise AssertionError(msg)


def test_description_fallbacks() -> None:
    """Without remittance text the counterparty, then a fixed label, is used."""
    with_creditor = transform(_synthetic("-5.00", remittance_information_unstructured=""), "u", "a")
    if with_creditor.description != "REWE":
        msg = f"Expected creditor fallback, got {with_creditor.description!r}"
        raise AssertionError(msg)
    bare = transform(_synthetic("-5.00", remittance_information_unstructured="", creditor_name=None), "u", "a")
    if bare.description != "Transaction":
        msg = f"Expected default description, got {bare.description!r}"
        raise AssertionError(msg)


def test_validation_collects_every_error() -> None:
    """Validation reports all violated constraints, not just the first."""
    record = TransactionInsert(
        owner_id="u",
        account_id="a",
        external_id=None,
        type=None,
        amount=None,
        currency=None,
        booking_date=None,
    )
    result = validate_transaction(record)
    expected = ["Missing external_id", "Missing booking_date", "Invalid amount", "Missing currency", "Invalid type"]
    if result.valid or result.errors != expected:
        msg = f"Expected {expected}, got {result}"
        raise AssertionError(msg)


def test_transform_rejects_missing_booking_date() -> None:
    """A DTO without a booking date raises TransformError naming the transaction."""
    with pytest.raises(TransformError) as excinfo:
        transform(_synthetic("-5.00", booking_date=""), "u", "a")
    if excinfo.value.errors != ["Missing booking_date"]:
        msg = f"Unexpected errors {excinfo.value.errors}"
        raise AssertionError(msg)
    if "txn-0000abcd-0001" not in str(excinfo.value):
        msg = f"Expected the transaction id in the message, got {excinfo.value}"
        raise AssertionError(msg)


def test_transform_rejects_bad_amount_and_id() -> None:
    """Unparseable amounts and missing ids are reported together."""
    with pytest.raises(TransformError) as excinfo:
        transform(_synthetic("abc", transaction_id=None), "u", "a")
    if excinfo.value.errors != ["Missing external_id", "Invalid amount", "Invalid type"]:
        msg = f"Unexpected errors {excinfo.value.errors}"
        raise AssertionError(msg)
