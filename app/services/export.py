"""CSV export of stored transactions."""

from collections.abc import Iterable

import pandas as pd

from app.core.db import Transaction
from app.core.models import TransactionRecord

EXPORT_COLUMNS = [
    "booking_date",
    "type",
    "category",
    "amount",
    "currency",
    "description",
    "creditor_name",
    "debtor_name",
    "external_id",
    "account_id",
]


def export_transactions_csv(transactions: Iterable[Transaction]) -> str:
    """Render transactions as CSV text with a fixed column order."""
    records = [
        TransactionRecord.model_validate(txn).model_dump(include=set(EXPORT_COLUMNS)) for txn in transactions
    ]
    return pd.DataFrame(records, columns=EXPORT_COLUMNS).to_csv(index=False)
