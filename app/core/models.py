"""Pydantic models for the BetterBudget core.

This module defines the data shapes exchanged between the generator, the import pipeline, the budget engine and the API.
Open-banking DTOs keep their camelCase wire names through an alias generator, so `SyntheticTransaction.booking_date`
is serialized as `bookingDate`.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AccountType = Literal["checking", "savings", "credit"]
TransactionType = Literal["income", "expense"]
BudgetStatus = Literal["on_track", "warning", "over_budget"]
NotificationType = Literal["info", "success", "warning", "error"]


class CamelModel(BaseModel):
    """Base model that reads snake_case or camelCase and writes camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Institution(CamelModel):
    """A fake bank in the static catalog."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    bank_id: str
    name: str
    bic: str
    country: str
    status: Literal["available"] = "available"


class Balance(CamelModel):
    """Decimal amount string with its currency."""

    amount: str
    currency: str


class AccountBalances(CamelModel):
    """Balances reported for an account; only `available` is simulated."""

    available: Balance


class SyntheticAccount(CamelModel):
    """Account as returned by the mock bank."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    account_id: str
    iban: str
    name: str
    account_type: AccountType
    currency: str
    balances: AccountBalances


class TransactionAmount(CamelModel):
    """Signed decimal string (negative = outgoing) with its currency."""

    amount: str
    currency: str


class SyntheticTransaction(CamelModel):
    """Booked transaction as returned by the mock bank."""

    transaction_id: str | None
    booking_date: str | None
    value_date: str | None = None
    transaction_amount: TransactionAmount
    creditor_name: str | None = None
    debtor_name: str | None = None
    remittance_information_unstructured: str = ""


class TransactionInsert(BaseModel):
    """Internal row shape produced by the transformer and upserted by the importer."""

    owner_id: str
    account_id: str
    external_id: str | None
    type: str | None
    amount: Decimal | None
    currency: str | None
    description: str | None = None
    category: str | None = None
    booking_date: date | None
    value_date: date | None = None
    creditor_name: str | None = None
    debtor_name: str | None = None


class ValidationResult(BaseModel):
    """Outcome of validating a transaction row; lists every violated constraint."""

    valid: bool
    errors: list[str] = Field(default_factory=list)


class ImportResult(CamelModel):
    """Summary of one import call, relayed verbatim to the caller."""

    success: bool
    imported: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    error_details: list[str] | None = None


class AccountRecord(CamelModel):
    """Linked account as stored for a user."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    owner_id: str
    bank_id: str
    bank_name: str
    account_name: str
    account_type: str
    currency: str
    balance: Decimal
    iban: str | None = None
    last_synced_at: datetime | None = None


class TransactionRecord(CamelModel):
    """Imported transaction as stored for a user."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    owner_id: str
    account_id: str
    external_id: str
    type: TransactionType
    amount: Decimal
    currency: str
    description: str | None = None
    category: str | None = None
    booking_date: date
    value_date: date | None = None
    creditor_name: str | None = None
    debtor_name: str | None = None


class BudgetRecord(CamelModel):
    """Monthly spending limit for one expense category."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    owner_id: str
    category: str
    monthly_limit: Decimal


class CategorySpend(BaseModel):
    """Expense total and row count for one category."""

    spent: Decimal = Decimal(0)
    count: int = 0


class BudgetProgress(CamelModel):
    """Live spend-vs-limit view of a budget."""

    budget: BudgetRecord
    spent_amount: Decimal
    remaining_amount: Decimal
    usage_percentage: float
    status: BudgetStatus
    transaction_count: int


class Notification(CamelModel):
    """Transient user-facing alert; never persisted by the core."""

    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    read: bool = False
    created_at: str


class LinkResult(CamelModel):
    """Outcome of linking an institution."""

    success: bool
    message: str
    accounts_linked: int
    bank_name: str


class LinkedBank(CamelModel):
    """Institution the user has linked, with its account count."""

    bank_id: str
    bank_name: str
    account_count: int
    linked_at: datetime | None = None


class ImportRequest(CamelModel):
    """Body of POST /import; without an account id every linked account is imported."""

    account_id: str | None = None
    date_from: date | None = None
    date_to: date | None = None


class LinkBankRequest(CamelModel):
    """Body of POST /link-bank."""

    bank_id: str


class BudgetInput(CamelModel):
    """A single category limit in POST /budgets."""

    category: str
    limit: Decimal


class BudgetRequest(CamelModel):
    """Body of POST /budgets: limits to upsert and categories to remove."""

    budgets: list[BudgetInput] = Field(default_factory=list)
    deletions: list[str] = Field(default_factory=list)
