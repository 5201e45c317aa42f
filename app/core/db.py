"""DB models and the persistence helper for the BetterBudget core.

Upserts rely on the dialect-specific ``INSERT ... ON CONFLICT DO UPDATE`` (SQLite and PostgreSQL), keyed on the
unique (owner_id, external_id) constraint of the transactions table.
"""

import uuid
from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal
from typing import NamedTuple

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    delete,
    select,
    update,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.models import TransactionInsert
from app.core.utils import get_logger, utcnow

Base = declarative_base()
logger = get_logger("betterbudget.db")

TRANSACTION_CONFLICT_KEY = ("owner_id", "external_id")
BUDGET_CONFLICT_KEY = ("owner_id", "category")
# Columns an upsert may overwrite on an existing transaction row.
MUTABLE_TRANSACTION_COLUMNS = (
    "account_id",
    "type",
    "amount",
    "currency",
    "description",
    "category",
    "booking_date",
    "value_date",
    "creditor_name",
    "debtor_name",
)


def _new_id() -> str:
    return str(uuid.uuid4())


class Account(Base):
    """A bank account linked by a user."""

    __tablename__ = "accounts"
    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String, nullable=False, index=True)
    bank_id = Column(String, nullable=False)
    bank_name = Column(String, nullable=False)
    account_name = Column(String, nullable=False)
    account_type = Column(String, nullable=False)
    currency = Column(String, nullable=False, default="EUR")
    balance = Column(Numeric(12, 2), nullable=False, default=Decimal(0))
    iban = Column(String, nullable=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    transactions = relationship("Transaction", back_populates="account", cascade="all, delete-orphan")


class Transaction(Base):
    """An imported transaction; unique per (owner_id, external_id)."""

    __tablename__ = "transactions"
    __table_args__ = (UniqueConstraint(*TRANSACTION_CONFLICT_KEY, name="uq_transactions_owner_external"),)
    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String, nullable=False, index=True)
    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    external_id = Column(String, nullable=False)
    type = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=True)
    booking_date = Column(Date, nullable=False, index=True)
    value_date = Column(Date, nullable=True)
    creditor_name = Column(String, nullable=True)
    debtor_name = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    account = relationship("Account", back_populates="transactions")


class Budget(Base):
    """A monthly spending limit for one expense category."""

    __tablename__ = "budgets"
    __table_args__ = (UniqueConstraint(*BUDGET_CONFLICT_KEY, name="uq_budgets_owner_category"),)
    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False)
    monthly_limit = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


def get_engine(url: str | None = None) -> Engine:
    """Create a SQLAlchemy engine using the configured database URL."""
    if url is None:
        from app.core.settings import get_settings

        url = get_settings().database_url
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url)


engine = get_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class UpsertOutcome(NamedTuple):
    """Rows present after an upsert, split into fresh inserts and overwrites."""

    rows: list[Transaction]
    inserted: int
    updated: int


class Store:
    """Persistence helper over a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        """Initialize the Store with a SQLAlchemy session."""
        self.session = session

    def _insert(self, table: type[Base]) -> postgresql.Insert | sqlite.Insert:
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(table)
        if dialect == "sqlite":
            return sqlite.insert(table)
        msg = f"Upsert is not supported for dialect '{dialect}'"
        raise NotImplementedError(msg)

    def _commit(self, action: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Failed to {action}")
            raise

    # --- accounts ---

    def get_account(self, account_id: str) -> Account | None:
        """Return the account with the given id, or None."""
        return self.session.get(Account, account_id)

    def get_accounts(self, owner_id: str, bank_id: str | None = None) -> list[Account]:
        """Return the owner's accounts, oldest first, optionally for a single bank."""
        stmt = select(Account).where(Account.owner_id == owner_id)
        if bank_id is not None:
            stmt = stmt.where(Account.bank_id == bank_id)
        return list(self.session.scalars(stmt.order_by(Account.created_at, Account.id)))

    def create_accounts(self, accounts: Iterable[dict]) -> list[Account]:
        """Insert several accounts at once and return them."""
        created = [Account(**values) for values in accounts]
        if not created:
            return []
        self.session.add_all(created)
        self._commit("create accounts")
        return created

    def update_account_balance(self, account_id: str, balance: Decimal, synced_at: datetime) -> None:
        """Set the account balance and last synced timestamp."""
        stmt = update(Account).where(Account.id == account_id).values(balance=balance, last_synced_at=synced_at)
        try:
            self.session.execute(stmt)
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Failed to update balance of account {account_id}")
            raise
        self._commit("update account balance")

    def delete_accounts_for_bank(self, owner_id: str, bank_id: str) -> int:
        """Delete the owner's accounts for a bank, cascading to their transactions."""
        accounts = self.get_accounts(owner_id, bank_id)
        for account in accounts:
            self.session.delete(account)
        if accounts:
            self._commit("delete accounts")
        return len(accounts)

    # --- transactions ---

    def upsert_transactions(self, rows: Iterable[TransactionInsert]) -> UpsertOutcome:
        """Insert new rows and overwrite the mutable fields of rows already present.

        Conflicts are resolved on (owner_id, external_id). Within one batch the last row for a key wins.
        """
        by_key: dict[tuple[str, str], dict] = {}
        for row in rows:
            by_key[(row.owner_id, row.external_id)] = row.model_dump()
        if not by_key:
            return UpsertOutcome([], 0, 0)

        owners = {owner for owner, _ in by_key}
        external_ids = [external_id for _, external_id in by_key]
        key_filter = (Transaction.owner_id.in_(owners), Transaction.external_id.in_(external_ids))
        existing = {
            (owner, external_id)
            for owner, external_id in self.session.execute(
                select(Transaction.owner_id, Transaction.external_id).where(*key_filter)
            )
        }

        now = utcnow()
        values = [{**row, "id": _new_id(), "created_at": now} for row in by_key.values()]
        stmt = self._insert(Transaction).values(values)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(TRANSACTION_CONFLICT_KEY),
            set_={column: stmt.excluded[column] for column in MUTABLE_TRANSACTION_COLUMNS},
        )
        try:
            self.session.execute(stmt)
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Failed to upsert {len(values)} transactions")
            raise
        self._commit("upsert transactions")

        upserted = [
            txn
            for txn in self.session.scalars(select(Transaction).where(*key_filter))
            if (txn.owner_id, txn.external_id) in by_key
        ]
        updated = len(existing & by_key.keys())
        return UpsertOutcome(upserted, len(by_key) - updated, updated)

    def get_transactions(
        self,
        owner_id: str,
        date_from: date | None = None,
        date_to: date | None = None,
        account_id: str | None = None,
    ) -> list[Transaction]:
        """Return the owner's transactions within an optional booking-date range, newest first."""
        stmt = select(Transaction).where(Transaction.owner_id == owner_id)
        if date_from is not None:
            stmt = stmt.where(Transaction.booking_date >= date_from)
        if date_to is not None:
            stmt = stmt.where(Transaction.booking_date <= date_to)
        if account_id is not None:
            stmt = stmt.where(Transaction.account_id == account_id)
        return list(self.session.scalars(stmt.order_by(Transaction.booking_date.desc(), Transaction.external_id)))

    # --- budgets ---

    def get_budgets(self, owner_id: str) -> list[Budget]:
        """Return the owner's budgets ordered by category."""
        stmt = select(Budget).where(Budget.owner_id == owner_id).order_by(Budget.category)
        return list(self.session.scalars(stmt))

    def upsert_budget(self, owner_id: str, category: str, monthly_limit: Decimal) -> Budget:
        """Create or update the owner's budget for a category."""
        now = utcnow()
        stmt = self._insert(Budget).values(
            id=_new_id(),
            owner_id=owner_id,
            category=category,
            monthly_limit=monthly_limit,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=list(BUDGET_CONFLICT_KEY),
            set_={"monthly_limit": stmt.excluded.monthly_limit, "updated_at": stmt.excluded.updated_at},
        )
        try:
            self.session.execute(stmt)
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Failed to upsert budget for category {category}")
            raise
        self._commit("upsert budget")
        return self.session.scalars(
            select(Budget).where(Budget.owner_id == owner_id, Budget.category == category)
        ).one()

    def delete_budget(self, owner_id: str, category: str) -> bool:
        """Delete the owner's budget for a category; return whether one existed."""
        result = self.session.execute(delete(Budget).where(Budget.owner_id == owner_id, Budget.category == category))
        self._commit("delete budget")
        return result.rowcount > 0

    def close(self) -> None:
        """Close the SQLAlchemy session."""
        self.session.close()


def get_db() -> Store:
    """Get a Store instance using a SQLAlchemy session."""
    return Store(SessionLocal())
