"""Generator package: deterministic mock banks, accounts and transactions."""

from .hashing import deterministic_hash, deterministic_hex_id  # noqa: F401
from .registry import AccountTemplate, InstitutionRegistry  # noqa: F401
from .synthetic import accounts_for, institutions, transactions_for  # noqa: F401
