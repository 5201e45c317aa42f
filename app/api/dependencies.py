"""FastAPI dependencies for DI (settings, store, clock, owner, services).

Every request gets its own Store and closes it afterwards. Tests swap ``get_store`` and ``get_clock`` through
``app.dependency_overrides``.
"""

from collections.abc import Callable, Iterator
from datetime import datetime

from fastapi import Depends, Header, HTTPException

from app.core.db import Store, get_db
from app.core.settings import Settings, get_settings
from app.core.utils import utcnow
from app.pipeline.importer import TransactionImporter
from app.services.budget_engine import BudgetEngine


def get_store() -> Iterator[Store]:
    """Provide a request-scoped Store and close its session afterwards."""
    store = get_db()
    try:
        yield store
    finally:
        store.close()


def get_clock() -> Callable[[], datetime]:
    """Provide the clock used for import windows and the current budget month."""
    return utcnow


def get_owner_id(x_user_id: str | None = Header(default=None)) -> str:
    """Return the calling user's id from the X-User-Id header."""
    if not x_user_id:
        raise HTTPException(401, "Missing X-User-Id header")
    return x_user_id


def get_importer(
    store: Store = Depends(get_store),
    clock: Callable[[], datetime] = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> TransactionImporter:
    """Provide a TransactionImporter bound to the request store."""
    return TransactionImporter(store, settings=settings, clock=clock)


def get_budget_engine(store: Store = Depends(get_store)) -> BudgetEngine:
    """Provide a BudgetEngine bound to the request store."""
    return BudgetEngine(store)
