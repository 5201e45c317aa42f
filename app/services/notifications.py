"""Composition of transient user-facing notifications.

Notifications are rebuilt on every call and never stored, so repeated imports in the same month raise the same
budget alerts again.
"""

import uuid

from app.core.models import BudgetProgress, ImportResult, Notification, NotificationType
from app.core.utils import utcnow_iso
from app.services.budget_engine import format_alert_message, format_alert_title

ALERT_TYPES: dict[str, NotificationType] = {"over_budget": "error", "warning": "warning"}


def make_notification(owner_id: str, notification_type: NotificationType, title: str, message: str) -> Notification:
    """Create an unread notification stamped with the current time."""
    return Notification(
        id=str(uuid.uuid4()),
        user_id=owner_id,
        type=notification_type,
        title=title,
        message=message,
        created_at=utcnow_iso(),
    )


def from_import(result: ImportResult, owner_id: str) -> list[Notification]:
    """Describe the outcome of an import."""
    if not result.success:
        detail = result.error_details[0] if result.error_details else "Please try again."
        return [make_notification(owner_id, "error", "Import Failed", f"Import failed: {detail}")]
    if result.errors and not (result.imported or result.updated):
        message = f"Import failed. {result.errors} transactions could not be read."
        return [make_notification(owner_id, "error", "Import Failed", message)]
    if result.errors:
        message = f"Imported {result.imported} transactions, {result.errors} errors."
        return [make_notification(owner_id, "warning", "Import Complete", message)]
    if not result.imported:
        return [make_notification(owner_id, "info", "Import Complete", "All transactions already up to date.")]
    return [make_notification(owner_id, "success", "Import Complete", f"Imported {result.imported} transactions.")]


def from_budget_crossings(progress_list: list[BudgetProgress], owner_id: str) -> list[Notification]:
    """Alert on budgets at warning or over_budget, over_budget first."""
    crossings = [p for p in progress_list if p.status in ALERT_TYPES]
    crossings.sort(key=lambda p: p.status != "over_budget")
    return [
        make_notification(owner_id, ALERT_TYPES[p.status], format_alert_title(p), format_alert_message(p))
        for p in crossings
    ]


def post_import_notifications(
    result: ImportResult, progress_list: list[BudgetProgress], owner_id: str
) -> list[Notification]:
    """Return the import notification followed by any budget alerts."""
    return from_import(result, owner_id) + from_budget_crossings(progress_list, owner_id)
