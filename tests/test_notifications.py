"""Tests for post-import notification composition."""

from decimal import Decimal

import pytest

from app.core.models import BudgetRecord, CategorySpend, ImportResult
from app.services.budget_engine import build_progress
from app.services.notifications import from_budget_crossings, from_import, post_import_notifications


def _progress(category: str, spent: str, limit: str = "100.00") -> object:
    budget = BudgetRecord(id=f"b-{category}", owner_id="user-A", category=category, monthly_limit=Decimal(limit))
    return build_progress(budget, CategorySpend(spent=Decimal(spent), count=1))


@pytest.mark.parametrize(
    ("result", "expected_type", "expected_message"),
    [
        (ImportResult(success=True, imported=12), "success", "Imported 12 transactions."),
        (ImportResult(success=True, imported=0, updated=12), "info", "All transactions already up to date."),
        (ImportResult(success=True, imported=11, errors=1), "warning", "Imported 11 transactions, 1 errors."),
        (ImportResult(success=True, errors=3), "error", "Import failed. 3 transactions could not be read."),
        (
            ImportResult(success=False, errors=1, error_details=["Account not found"]),
            "error",
            "Import failed: Account not found",
        ),
    ],
)
def test_import_notification(result: ImportResult, expected_type: str, expected_message: str) -> None:
    """Each import outcome maps to one notification of the matching type."""
    (notification,) = from_import(result, "user-A")
    if (notification.type, notification.message) != (expected_type, expected_message):
        msg = f"Expected {expected_type}: {expected_message!r}, got {notification.type}: {notification.message!r}"
        raise AssertionError(msg)
    if notification.user_id != "user-A" or notification.read:
        msg = f"Expected an unread notification for user-A, got {notification}"
        raise AssertionError(msg)


def test_budget_crossings_over_budget_first() -> None:
    """On-track budgets are skipped and over_budget alerts precede warnings."""
    progress_list = [_progress("Food", "85.00"), _progress("Rent", "10.00"), _progress("Shopping", "120.00")]
    notifications = from_budget_crossings(progress_list, "user-A")
    got = [(n.type, n.title) for n in notifications]
    expected = [("error", "Shopping budget exceeded"), ("warning", "Food budget warning")]
    if got != expected:
        msg = f"Expected {expected}, got {got}"
        raise AssertionError(msg)
    if notifications[1].message != "Food budget warning: €85.00 of €100.00 (85%)":
        msg = f"Unexpected warning message {notifications[1].message!r}"
        raise AssertionError(msg)


def test_post_import_notifications_order() -> None:
    """The import notification comes first, followed by budget alerts."""
    notifications = post_import_notifications(
        ImportResult(success=True, imported=5), [_progress("Food", "90.00")], "user-A"
    )
    if [n.type for n in notifications] != ["success", "warning"]:
        msg = f"Unexpected notification order {[n.type for n in notifications]}"
        raise AssertionError(msg)
    if len({n.id for n in notifications}) != len(notifications):
        msg = "Expected unique notification ids"
        raise AssertionError(msg)


def test_camel_case_wire_shape() -> None:
    """Notifications serialize with camelCase keys."""
    (notification,) = from_import(ImportResult(success=True, imported=1), "user-A")
    payload = notification.model_dump(by_alias=True)
    if not {"userId", "createdAt", "read"} <= payload.keys():
        msg = f"Unexpected keys {sorted(payload)}"
        raise AssertionError(msg)
