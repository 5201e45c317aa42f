"""API package: provides FastAPI dependencies and route definitions for the application."""

from .dependencies import get_budget_engine, get_clock, get_importer, get_owner_id, get_store  # noqa: F401
from .routes import router  # noqa: F401
