"""Main entrypoint and application factory for the BetterBudget API.

This module initializes the FastAPI application, configures logging, creates the database tables, and exposes the
Scalar API reference endpoint for interactive OpenAPI documentation. It also includes the main entrypoint for running
the app with Uvicorn.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from scalar_fastapi import get_scalar_api_reference
from sqlalchemy.exc import SQLAlchemyError

from app.api.routes import router
from app.core.db import Base, engine
from app.core.settings import get_settings
from app.core.utils import ensure_dir, get_logger

logger = get_logger("betterbudget.main")


# --- Logging Setup ---
def setup_logging() -> None:
    """Configure the betterbudget logger hierarchy to also write to a log file."""
    settings = get_settings()
    ensure_dir(settings.log_dir)
    root = logging.getLogger("betterbudget")
    root.setLevel(settings.log_level)
    # Plain file output; child loggers keep their colorized console handler.
    if not any(isinstance(h, logging.FileHandler) for h in root.handlers):
        file_handler = logging.FileHandler(Path(settings.log_dir) / settings.log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        root.addHandler(file_handler)
    root.propagate = False


setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan event handler to create the accounts, transactions and budgets tables."""
    _ = app
    try:
        Base.metadata.create_all(engine)
    except SQLAlchemyError:
        logger.exception("Failed to create database tables")
        raise
    yield


app = FastAPI(
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    title="BetterBudget API",
    description="""
    The BetterBudget API links mock banks, imports their transactions idempotently, and tracks monthly budgets.

    **Endpoints:**
    - `GET /mock/banks`, `GET /mock/accounts`, `GET /mock/transactions`: The deterministic mock bank.
    - `POST /link-bank`, `GET /link-bank`, `DELETE /link-bank/{{bank_id}}`: Link and unlink institutions.
    - `POST /import`: Import transactions and receive post-import notifications.
    - `GET /budgets`, `POST /budgets`, `GET /budgets/progress`: Monthly budgets and live progress.
    - `GET /transactions`, `GET /transactions/export`: Stored transactions as JSON or CSV.
    - `GET /health`: Health check endpoint.
    - `GET /scalar`: Interactive Scalar OpenAPI documentation.

    Every endpoint except the health check and documentation expects an `X-User-Id` header.
    """,
    version="1.0.0",
)
app.include_router(router)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Answer store failures with a generic 500."""
    logger.error(f"Database error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/scalar", include_in_schema=False)
async def scalar_docs() -> JSONResponse:
    """Return Scalar API reference."""
    return get_scalar_api_reference(openapi_url=app.openapi_url, title=app.title)


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("main:app", host=settings.server_host, port=settings.server_port, reload=True)
