"""Transformation of mock bank DTOs into internal transaction rows.

The sign of the open-banking amount string decides the row type (negative is an expense); the stored amount is the
absolute value. Validation reports every violated constraint at once instead of stopping at the first one.
"""

from datetime import date
from decimal import Decimal, InvalidOperation

from app.core.models import SyntheticTransaction, TransactionInsert, ValidationResult
from app.core.utils import get_logger
from app.pipeline.categorizer import categorize

TRANSACTION_TYPES = ("income", "expense")
DEFAULT_DESCRIPTION = "Transaction"

logger = get_logger("betterbudget.transformer")


class TransformError(ValueError):
    """Raised when a mock transaction cannot be turned into a valid row."""

    def __init__(self, external_id: str | None, errors: list[str]) -> None:
        """Keep the offending id and the full list of violations."""
        self.external_id = external_id
        self.errors = errors
        super().__init__(f"Failed to transform transaction {external_id}: {', '.join(errors)}")


def _parse_amount(raw: str | None) -> Decimal | None:
    try:
        amount = Decimal(raw)
    except (InvalidOperation, TypeError, ValueError):
        return None
    return amount if amount.is_finite() else None


def _parse_date(raw: str | None) -> date | None:
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        logger.warning(f"Unparseable date: {raw!r}")
        return None


def validate_transaction(record: TransactionInsert) -> ValidationResult:
    """Check the required fields of a transaction row and list every problem found."""
    errors = []
    if not record.external_id:
        errors.append("Missing external_id")
    if not record.booking_date:
        errors.append("Missing booking_date")
    if record.amount is None or record.amount < 0:
        errors.append("Invalid amount")
    if not record.currency:
        errors.append("Missing currency")
    if record.type not in TRANSACTION_TYPES:
        errors.append("Invalid type")
    return ValidationResult(valid=not errors, errors=errors)


def transform(synthetic: SyntheticTransaction, owner_id: str, account_id: str) -> TransactionInsert:
    """Map a mock bank transaction onto the row shape stored for ``owner_id``."""
    raw_amount = _parse_amount(synthetic.transaction_amount.amount)
    is_expense = raw_amount is not None and raw_amount < 0
    if raw_amount is None:
        transaction_type = None
    else:
        transaction_type = "expense" if is_expense else "income"

    counterparty = synthetic.creditor_name if is_expense else synthetic.debtor_name
    description = synthetic.remittance_information_unstructured or counterparty or DEFAULT_DESCRIPTION

    record = TransactionInsert(
        owner_id=owner_id,
        account_id=account_id,
        external_id=synthetic.transaction_id,
        type=transaction_type,
        amount=abs(raw_amount) if raw_amount is not None else None,
        currency=synthetic.transaction_amount.currency,
        description=description,
        category=categorize(description, is_expense),
        booking_date=_parse_date(synthetic.booking_date),
        value_date=_parse_date(synthetic.value_date),
        creditor_name=synthetic.creditor_name,
        debtor_name=synthetic.debtor_name,
    )
    result = validate_transaction(record)
    if not result.valid:
        raise TransformError(synthetic.transaction_id, result.errors)
    return record
