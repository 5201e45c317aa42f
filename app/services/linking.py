"""Linking mock institutions to a user.

Linking mirrors every account the mock bank exposes into the store. A bank counts as linked for a user as long as
at least one of its accounts is stored; unlinking deletes those accounts and, by cascade, their transactions.
"""

from app.core.db import Store
from app.core.models import LinkedBank, LinkResult
from app.core.utils import get_logger, to_money
from app.generator.registry import InstitutionRegistry
from app.generator.synthetic import accounts_for

logger = get_logger("betterbudget.linking")


class UnknownInstitutionError(LookupError):
    """Raised when a bank id is not in the mock catalog."""

    def __init__(self, bank_id: str) -> None:
        """Keep the unknown bank id."""
        self.bank_id = bank_id
        super().__init__(f"Unknown bank: {bank_id}")


def link_institution(store: Store, owner_id: str, bank_id: str) -> LinkResult:
    """Create the owner's accounts for a bank, or report the existing ones when already linked."""
    institution = InstitutionRegistry.get(bank_id)
    if institution is None:
        raise UnknownInstitutionError(bank_id)

    existing = store.get_accounts(owner_id, bank_id)
    if existing:
        logger.info(f"{bank_id} already linked for {owner_id} ({len(existing)} accounts)")
        return LinkResult(
            success=True,
            message=f"{institution.name} is already linked to your account.",
            accounts_linked=len(existing),
            bank_name=institution.name,
        )

    created = store.create_accounts(
        {
            "owner_id": owner_id,
            "bank_id": bank_id,
            "bank_name": institution.name,
            "account_name": account.name,
            "account_type": account.account_type,
            "currency": account.currency,
            "balance": to_money(account.balances.available.amount),
            "iban": account.iban,
        }
        for account in accounts_for(bank_id)
    )
    logger.info(f"Linked {bank_id} for {owner_id}: {len(created)} accounts")
    return LinkResult(
        success=True,
        message=f"Successfully linked {institution.name}. {len(created)} account(s) added.",
        accounts_linked=len(created),
        bank_name=institution.name,
    )


def linked_banks(store: Store, owner_id: str) -> list[LinkedBank]:
    """Group the owner's accounts by bank, in the order the banks were linked."""
    banks: dict[str, LinkedBank] = {}
    for account in store.get_accounts(owner_id):
        entry = banks.get(account.bank_id)
        if entry is None:
            banks[account.bank_id] = LinkedBank(
                bank_id=account.bank_id,
                bank_name=account.bank_name,
                account_count=1,
                linked_at=account.created_at,
            )
        else:
            entry.account_count += 1
    return list(banks.values())


def unlink_institution(store: Store, owner_id: str, bank_id: str) -> int:
    """Remove the owner's accounts for a bank and return how many were deleted."""
    deleted = store.delete_accounts_for_bank(owner_id, bank_id)
    logger.info(f"Unlinked {bank_id} for {owner_id}: {deleted} accounts removed")
    return deleted
