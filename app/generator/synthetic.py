"""Deterministic synthesis of mock bank accounts and transactions.

Every value is derived from seed strings through :func:`deterministic_hash`; nothing here keeps state or performs
I/O, so the functions are safe to call from concurrent requests.

Transactions carry two independent identities:

- content (template, booking date, amount) is seeded by ``{bank_id}-{account_id}`` and is the same for every consumer;
- the ``transactionId`` is seeded by ``{consumer_id}-{account_id}-{booking_date}-{index}`` and so differs per consumer.

The nominal number of transactions for an account is 50 to 100. A slot whose derived booking date falls outside
``[date_from, date_to]`` is dropped rather than re-drawn, so a narrow or inverted window can return fewer rows than
the nominal count. That is expected behaviour, not an off-by-one.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from app.core.models import (
    AccountBalances,
    Balance,
    Institution,
    SyntheticAccount,
    SyntheticTransaction,
    TransactionAmount,
)
from app.core.utils import utcnow
from app.generator.hashing import deterministic_hash, deterministic_hex_id
from app.generator.registry import InstitutionRegistry

CURRENCY = "EUR"
DEFAULT_WINDOW_DAYS = 90
MIN_TRANSACTIONS = 50
TRANSACTION_COUNT_SPREAD = 51
FALLBACK_BALANCE = Decimal("1000.00")


@dataclass(frozen=True)
class TransactionTemplate:
    """Counterparty pattern a synthetic transaction is drawn from."""

    name: str
    description: str
    category: str
    amount_range: tuple[int, int]
    is_expense: bool


TRANSACTION_TEMPLATES: tuple[TransactionTemplate, ...] = (
    TransactionTemplate("REWE", "REWE SAGT DANKE", "Food", (15, 120), True),
    TransactionTemplate("EDEKA", "EDEKA Markt", "Food", (10, 80), True),
    TransactionTemplate("Lidl", "LIDL DIENSTLEISTUNG", "Food", (20, 100), True),
    TransactionTemplate("Amazon", "AMAZON EU S.A R.L.", "Shopping", (15, 200), True),
    TransactionTemplate("DB Vertrieb", "DB Vertrieb GmbH", "Transport", (20, 150), True),
    TransactionTemplate("BVG", "BVG Abo Monatskarte", "Transport", (86, 86), True),
    TransactionTemplate("Netflix", "NETFLIX.COM", "Entertainment", (13, 18), True),
    TransactionTemplate("Spotify", "SPOTIFY AB", "Entertainment", (10, 15), True),
    TransactionTemplate("Stadtwerke Berlin", "Stadtwerke Berlin Strom/Gas", "Utilities", (80, 150), True),
    TransactionTemplate("Telekom", "Telekom Deutschland GmbH", "Utilities", (40, 60), True),
    TransactionTemplate("DM Drogerie", "DM-DROGERIE MARKT", "Shopping", (10, 50), True),
    TransactionTemplate("Cafe Milano", "Cafe Milano Berlin", "Food", (5, 25), True),
    TransactionTemplate("Arbeitgeber GmbH", "GEHALT/LOHN", "Salary", (2500, 4500), False),
    TransactionTemplate("Freelance Client", "Honorar Beratung", "Freelance", (500, 2000), False),
    TransactionTemplate("Steueramt", "Steuererstattung", "Other", (200, 800), False),
)

# (offset, spread) of the whole-euro part of the balance per account type.
BALANCE_RANGES = {
    "checking": (500, 4500),
    "savings": (1000, 14000),
}
CREDIT_BALANCE_SPREAD = 2000


def institutions() -> list[Institution]:
    """Return the static institution catalog in its fixed order."""
    return InstitutionRegistry.available()


def _cents(seed: str) -> Decimal:
    return Decimal(deterministic_hash(seed, 100)) / 100


def _money(value: Decimal) -> str:
    return f"{value:.2f}"


def generate_iban(seed: str) -> str:
    """Build a German-style mock IBAN: DE, check digits, 8-digit bank code, 10-digit account number."""
    bank_code = str(deterministic_hash(f"{seed}-bank", 99999999)).rjust(8, "0")
    account_number = str(deterministic_hash(f"{seed}-account", 9999999999)).rjust(10, "0")
    check_digits = str(deterministic_hash(f"{seed}-check", 99)).rjust(2, "0")
    return f"DE{check_digits}{bank_code}{account_number}"


def make_account_id(bank_id: str, account_type: str, index: int) -> str:
    """Return the account id of the ``index``-th (zero-based) template of a bank."""
    return f"{bank_id}-{account_type}-{index + 1:03d}"


def bank_id_from_account(account_id: str) -> str:
    """Strip the ``-{type}-{NNN}`` suffix from an account id."""
    return "-".join(account_id.split("-")[:-2])


def account_id_for(bank_id: str, account_type: str) -> str:
    """Reconstruct the account id of a bank's first template with the given type.

    Unknown banks and types resolve to index 001, which is also the id of the fallback account.
    """
    for index, template in enumerate(InstitutionRegistry.templates(bank_id) or ()):
        if template.type == account_type:
            return make_account_id(bank_id, account_type, index)
    return make_account_id(bank_id, account_type, 0)


def _balance(seed: str, account_type: str) -> Decimal:
    if account_type == "credit":
        base = -deterministic_hash(f"{seed}-bal", CREDIT_BALANCE_SPREAD)
    else:
        offset, spread = BALANCE_RANGES[account_type]
        base = offset + deterministic_hash(f"{seed}-bal", spread)
    return Decimal(base) + _cents(f"{seed}-cents")


def accounts_for(bank_id: str) -> list[SyntheticAccount]:
    """Return the accounts a bank exposes; an unknown bank yields a single fallback checking account."""
    templates = InstitutionRegistry.templates(bank_id)
    if templates is None:
        return [
            SyntheticAccount(
                account_id=make_account_id(bank_id, "checking", 0),
                iban=generate_iban(f"{bank_id}-default"),
                name="Checking Account",
                account_type="checking",
                currency=CURRENCY,
                balances=AccountBalances(available=Balance(amount=_money(FALLBACK_BALANCE), currency=CURRENCY)),
            )
        ]

    accounts = []
    for index, template in enumerate(templates):
        seed = f"{bank_id}-{template.type}-{index}"
        balance = _balance(seed, template.type)
        accounts.append(
            SyntheticAccount(
                account_id=make_account_id(bank_id, template.type, index),
                iban=generate_iban(seed),
                name=template.name,
                account_type=template.type,
                currency=CURRENCY,
                balances=AccountBalances(available=Balance(amount=_money(balance), currency=CURRENCY)),
            )
        )
    return accounts


def transaction_count(account_id: str) -> int:
    """Return the nominal (pre-window) number of transactions for an account."""
    content_seed = f"{bank_id_from_account(account_id)}-{account_id}"
    return MIN_TRANSACTIONS + deterministic_hash(f"{content_seed}-count", TRANSACTION_COUNT_SPREAD)


def transactions_for(
    account_id: str,
    consumer_id: str,
    date_from: date | None = None,
    date_to: date | None = None,
    today: date | None = None,
) -> list[SyntheticTransaction]:
    """Generate the booked transactions of an account for a consumer, newest first.

    Missing bounds default to the trailing 90 days ending ``today`` (the current UTC date when not given).
    """
    today = today or utcnow().date()
    date_from = date_from or today - timedelta(days=DEFAULT_WINDOW_DAYS)
    date_to = date_to or today

    content_seed = f"{bank_id_from_account(account_id)}-{account_id}"
    range_days = max(1, (date_to - date_from).days)

    transactions = []
    for i in range(transaction_count(account_id)):
        template = TRANSACTION_TEMPLATES[deterministic_hash(f"{content_seed}-template-{i}", len(TRANSACTION_TEMPLATES))]

        booked = date_from + timedelta(days=deterministic_hash(f"{content_seed}-date-{i}", range_days))
        if booked < date_from or booked > date_to:
            continue
        booking_date = booked.isoformat()

        low, high = template.amount_range
        amount = Decimal(low + deterministic_hash(f"{content_seed}-amt-{i}", high - low + 1))
        amount += _cents(f"{content_seed}-cents-{i}")
        if template.is_expense:
            amount = -amount

        id_seed = f"{consumer_id}-{account_id}-{booking_date}-{i}"
        transactions.append(
            SyntheticTransaction(
                transaction_id=f"txn-{deterministic_hex_id(id_seed, 8)}-{deterministic_hex_id(f'{id_seed}-suffix', 4)}",
                booking_date=booking_date,
                value_date=booking_date,
                transaction_amount=TransactionAmount(amount=_money(amount), currency=CURRENCY),
                creditor_name=template.name if template.is_expense else None,
                debtor_name=None if template.is_expense else template.name,
                remittance_information_unstructured=template.description,
            )
        )

    transactions.sort(key=lambda txn: txn.booking_date, reverse=True)
    return transactions
