"""Institution registry for the mock bank catalog.

This module keeps the fixed set of fake banks together with the account templates each one exposes. The catalog is
populated once at import time and never changes at runtime.
"""

from typing import ClassVar, NamedTuple

from app.core.models import AccountType, Institution


class AccountTemplate(NamedTuple):
    """Display name and type of an account a bank offers."""

    name: str
    type: AccountType


class InstitutionRegistry:
    """Registry of institutions and their account templates, in registration order."""

    _institutions: ClassVar[dict[str, Institution]] = {}
    _templates: ClassVar[dict[str, tuple[AccountTemplate, ...]]] = {}

    @classmethod
    def register(cls, institution: Institution, templates: list[AccountTemplate]) -> None:
        """Register an institution with the account templates it offers."""
        cls._institutions[institution.bank_id] = institution
        cls._templates[institution.bank_id] = tuple(templates)

    @classmethod
    def get(cls, bank_id: str) -> Institution | None:
        """Retrieve an institution by id, or None when it is not in the catalog."""
        return cls._institutions.get(bank_id)

    @classmethod
    def templates(cls, bank_id: str) -> tuple[AccountTemplate, ...] | None:
        """Retrieve the account templates of an institution, or None when unknown."""
        return cls._templates.get(bank_id)

    @classmethod
    def available(cls) -> list[Institution]:
        """List all registered institutions in registration order."""
        return list(cls._institutions.values())


InstitutionRegistry.register(
    Institution(bank_id="sparkasse-berlin-001", name="Sparkasse Berlin", bic="BELADEBEXXX", country="DE"),
    [AccountTemplate("Girokonto", "checking"), AccountTemplate("Sparkonto Plus", "savings")],
)
InstitutionRegistry.register(
    Institution(bank_id="volksbank-mitte-002", name="Volksbank Mitte", bic="GENODEF1V04", country="DE"),
    [
        AccountTemplate("Gehaltskonto", "checking"),
        AccountTemplate("Tagesgeldkonto", "savings"),
        AccountTemplate("Kreditkarte", "credit"),
    ],
)
InstitutionRegistry.register(
    Institution(bank_id="demo-bank-003", name="Demo Bank International", bic="DEMOBANK1", country="DE"),
    [AccountTemplate("Main Account", "checking"), AccountTemplate("Savings Account", "savings")],
)
