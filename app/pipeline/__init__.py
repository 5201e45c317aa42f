"""Pipeline package: transformation, categorization and idempotent import of mock bank transactions."""

from .categorizer import categorize  # noqa: F401
from .importer import TransactionImporter, import_transactions  # noqa: F401
from .transformer import TransformError, transform, validate_transaction  # noqa: F401
