"""Budget progress calculation.

Spend is never stored on a budget: every call recomputes it from the expense transactions of the calendar month that
contains ``now``. ``now`` is always supplied by the caller.
"""

import calendar
from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal

from app.core.db import Budget, Store, Transaction
from app.core.models import BudgetProgress, BudgetRecord, BudgetStatus, CategorySpend
from app.core.utils import get_logger, round_half_up

WARNING_THRESHOLD = 80
OVER_BUDGET_THRESHOLD = 100
UNCATEGORIZED = "Other"
CURRENCY_SYMBOL = "€"

logger = get_logger("betterbudget.budgets")


def month_bounds(now: date | datetime) -> tuple[date, date]:
    """Return the first and last day of the calendar month containing ``now``."""
    last_day = calendar.monthrange(now.year, now.month)[1]
    return date(now.year, now.month, 1), date(now.year, now.month, last_day)


def budget_status(usage_percentage: float) -> BudgetStatus:
    """Classify a usage percentage as on_track, warning (>= 80) or over_budget (>= 100)."""
    if usage_percentage >= OVER_BUDGET_THRESHOLD:
        return "over_budget"
    if usage_percentage >= WARNING_THRESHOLD:
        return "warning"
    return "on_track"


def usage_percentage(spent: Decimal, monthly_limit: Decimal) -> float:
    """Return spend as a percentage of the limit; any spend against a zero limit counts as 100."""
    if monthly_limit > 0:
        return float(spent / monthly_limit * 100)
    return 100.0 if spent > 0 else 0.0


def aggregate_spend(transactions: Iterable[Transaction]) -> dict[str, CategorySpend]:
    """Sum absolute expense amounts and count rows per category; income is ignored."""
    spending: dict[str, CategorySpend] = {}
    for txn in transactions:
        if txn.type != "expense":
            continue
        current = spending.setdefault(txn.category or UNCATEGORIZED, CategorySpend())
        current.spent += abs(txn.amount)
        current.count += 1
    return spending


def build_progress(budget: Budget | BudgetRecord, spend: CategorySpend | None = None) -> BudgetProgress:
    """Join a budget with its category spend.

    ``remaining_amount`` is clamped at zero; overspend shows up in the percentage and the status instead.
    """
    spend = spend or CategorySpend()
    record = BudgetRecord.model_validate(budget)
    percentage = usage_percentage(spend.spent, record.monthly_limit)
    return BudgetProgress(
        budget=record,
        spent_amount=spend.spent,
        remaining_amount=max(Decimal(0), record.monthly_limit - spend.spent),
        usage_percentage=percentage,
        status=budget_status(percentage),
        transaction_count=spend.count,
    )


def format_alert_title(progress: BudgetProgress) -> str:
    """Return the short title of a budget alert."""
    if progress.status == "over_budget":
        return f"{progress.budget.category} budget exceeded"
    return f"{progress.budget.category} budget warning"


def format_alert_message(progress: BudgetProgress) -> str:
    """Return the alert text, e.g. ``Food budget warning: €85.00 of €100.00 (85%)``."""
    spent = f"{CURRENCY_SYMBOL}{progress.spent_amount:.2f}"
    limit = f"{CURRENCY_SYMBOL}{progress.budget.monthly_limit:.2f}"
    return f"{format_alert_title(progress)}: {spent} of {limit} ({round_half_up(progress.usage_percentage)}%)"


class BudgetEngine:
    """Computes live budget progress for a user from stored transactions."""

    def __init__(self, store: Store) -> None:
        """Initialize the engine with a store."""
        self.store = store

    def monthly_spend(self, owner_id: str, now: date | datetime) -> dict[str, CategorySpend]:
        """Aggregate the owner's expenses for the month containing ``now`` by category."""
        date_from, date_to = month_bounds(now)
        return aggregate_spend(self.store.get_transactions(owner_id, date_from, date_to))

    def progress(self, owner_id: str, now: date | datetime) -> list[BudgetProgress]:
        """Return the progress of every budget of the owner, ordered by category."""
        budgets = self.store.get_budgets(owner_id)
        if not budgets:
            return []
        spending = self.monthly_spend(owner_id, now)
        progress = [build_progress(budget, spending.get(budget.category)) for budget in budgets]
        logger.debug(f"Computed progress for {len(progress)} budgets of {owner_id}")
        return progress

    def progress_for_category(self, owner_id: str, category: str, now: date | datetime) -> BudgetProgress | None:
        """Return the progress of the owner's budget for one category, or None when no budget is set."""
        return next((p for p in self.progress(owner_id, now) if p.budget.category == category), None)

    def budget_alerts(self, owner_id: str, now: date | datetime) -> list[BudgetProgress]:
        """Return the budgets currently at warning or over_budget."""
        return [p for p in self.progress(owner_id, now) if p.status != "on_track"]
