"""Idempotent import of mock bank transactions into the store.

An import resolves the linked account, generates the mock transactions for the requested window, transforms them,
upserts the valid rows on (owner_id, external_id) and recomputes the account balance from the batch. Re-running an
import with the same window leaves the stored set of (owner_id, external_id) pairs unchanged.

Two imports racing on the same account resolve the balance as last writer wins; callers that need stricter
guarantees must serialise imports per account.
"""

from collections.abc import Callable, Iterable
from datetime import date, datetime, timedelta
from decimal import Decimal

from app.core.db import Store, Transaction
from app.core.models import ImportResult, SyntheticTransaction
from app.core.settings import Settings, get_settings
from app.core.utils import get_logger, utcnow
from app.generator.synthetic import account_id_for, transactions_for
from app.pipeline.transformer import TransformError, transform

TransactionSource = Callable[[str, str, date, date], list[SyntheticTransaction]]

logger = get_logger("betterbudget.importer")


def failed_import(detail: str) -> ImportResult:
    """Build the result of an import rejected before any write."""
    return ImportResult(success=False, errors=1, error_details=[detail])


def merge_results(results: Iterable[ImportResult]) -> ImportResult:
    """Combine per-account results into one summary; it succeeds only if every part did."""
    merged = ImportResult(success=True)
    details: list[str] = []
    for result in results:
        merged.success = merged.success and result.success
        merged.imported += result.imported
        merged.updated += result.updated
        merged.skipped += result.skipped
        merged.errors += result.errors
        details.extend(result.error_details or [])
    merged.error_details = details or None
    return merged


def signed_total(rows: Iterable[Transaction]) -> Decimal:
    """Sum rows with income adding and expense subtracting."""
    total = Decimal(0)
    for row in rows:
        total += row.amount if row.type == "income" else -row.amount
    return total


class TransactionImporter:
    """Runs imports for linked accounts against a store."""

    def __init__(
        self,
        store: Store,
        source: TransactionSource = transactions_for,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the importer with a store, a transaction source and a clock."""
        self.store = store
        self.source = source
        self.settings = settings or get_settings()
        self.clock = clock

    def import_transactions(
        self,
        owner_id: str,
        account_id: str,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> ImportResult:
        """Import the mock transactions of a linked account for ``owner_id``."""
        logger.info(f"Starting import: owner={owner_id}, account={account_id}, from={date_from}, to={date_to}")
        account = self.store.get_account(account_id)
        if account is None:
            logger.warning(f"Import rejected, account not found: {account_id}")
            return failed_import("Account not found")
        if account.owner_id != owner_id:
            logger.warning(f"Import rejected, account {account_id} is not owned by {owner_id}")
            return failed_import("Access denied to this account")

        today = self.clock().date()
        date_to = date_to or today
        date_from = date_from or today - timedelta(days=self.settings.import_window_days)
        source_account_id = account_id_for(account.bank_id, account.account_type)
        synthetic = self.source(source_account_id, owner_id, date_from, date_to)
        logger.info(f"Generated {len(synthetic)} transactions for {source_account_id} ({date_from}..{date_to})")
        if not synthetic:
            return ImportResult(success=True)

        rows = []
        error_details = []
        for idx, txn in enumerate(synthetic, start=1):
            try:
                rows.append(transform(txn, owner_id, account.id))
            except TransformError as exc:
                logger.warning(f"[IMPORT ROW {idx}/{len(synthetic)}] {exc}")
                error_details.append(str(exc))

        outcome = self.store.upsert_transactions(rows)
        balance = signed_total(outcome.rows)
        self.store.update_account_balance(account.id, balance, self.clock())
        logger.info(
            f"Import finished: account={account.id}, inserted={outcome.inserted}, updated={outcome.updated}, "
            f"errors={len(error_details)}, balance={balance}"
        )
        return ImportResult(
            success=True,
            imported=outcome.inserted,
            updated=outcome.updated,
            skipped=len(synthetic) - len(rows),
            errors=len(error_details),
            error_details=error_details or None,
        )

    def import_all(
        self, owner_id: str, date_from: date | None = None, date_to: date | None = None
    ) -> tuple[ImportResult, int]:
        """Import every account the owner has linked; return the merged result and the account count."""
        accounts = self.store.get_accounts(owner_id)
        results = [self.import_transactions(owner_id, account.id, date_from, date_to) for account in accounts]
        return merge_results(results), len(accounts)


def import_transactions(
    store: Store,
    owner_id: str,
    account_id: str,
    date_from: date | None = None,
    date_to: date | None = None,
) -> ImportResult:
    """Top-level function to run an import with the default mock bank source."""
    importer = TransactionImporter(store)
    return importer.import_transactions(owner_id, account_id, date_from, date_to)
