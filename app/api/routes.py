"""FastAPI endpoints for the BetterBudget API.

This module exposes the mock bank (institutions, accounts and booked transactions), bank linking, transaction import
with post-import notifications, budget management with live progress, and the transaction listing and CSV export.
The calling user is identified by the ``X-User-Id`` header.
"""

import io
from collections.abc import Callable
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from app.api.dependencies import get_budget_engine, get_clock, get_importer, get_owner_id, get_store
from app.core.db import Store
from app.core.models import (
    AccountRecord,
    BudgetProgress,
    BudgetRequest,
    ImportRequest,
    LinkBankRequest,
    LinkResult,
    TransactionRecord,
)
from app.core.utils import get_logger, to_money
from app.generator.synthetic import accounts_for, institutions, transactions_for
from app.pipeline.categorizer import is_valid_category
from app.pipeline.importer import TransactionImporter
from app.services.budget_engine import BudgetEngine
from app.services.export import export_transactions_csv
from app.services.linking import UnknownInstitutionError, link_institution, linked_banks, unlink_institution
from app.services.notifications import post_import_notifications

router = APIRouter()
logger = get_logger("betterbudget.api")


@router.get(
    "/health",
    summary="Health check",
    description="Simple health check endpoint. Returns status ok.",
    response_description="Status ok.",
    responses={200: {"description": "API is healthy.", "content": {"application/json": {"example": {"status": "ok"}}}}},
)
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


# --- mock bank ---


@router.get(
    "/mock/banks",
    dependencies=[Depends(get_owner_id)],
    summary="List mock institutions",
    description="Return the static catalog of fake banks that can be linked.",
    responses={
        200: {
            "description": "Institution catalog.",
            "content": {
                "application/json": {
                    "example": {
                        "banks": [
                            {
                                "bankId": "demo-bank-003",
                                "name": "Demo Bank International",
                                "bic": "DEMOBANK1",
                                "country": "DE",
                                "status": "available",
                            }
                        ]
                    }
                }
            },
        },
        401: {"description": "Missing X-User-Id header."},
    },
)
async def mock_banks() -> dict:
    """List the mock institutions."""
    return {"banks": institutions()}


@router.get(
    "/mock/accounts",
    dependencies=[Depends(get_owner_id)],
    summary="List the accounts of a mock institution",
    description=(
        "Return the deterministic accounts of a bank. Unknown bank ids yield a single fallback checking account.\n\n"
        "**Query parameter:**\n"
        "- `bank_id`: Institution identifier, e.g. `demo-bank-003`."
    ),
    responses={401: {"description": "Missing X-User-Id header."}},
)
async def mock_accounts(bank_id: str = Query(..., min_length=1)) -> dict:
    """List the mock accounts of a bank."""
    return {"accounts": accounts_for(bank_id)}


@router.get(
    "/mock/transactions",
    summary="List booked mock transactions",
    description=(
        "Return the booked transactions of a mock account for the calling user, newest first.\n\n"
        "**Query parameters:**\n"
        "- `account_id`: Mock account id, e.g. `demo-bank-003-checking-001`.\n"
        "- `date_from`, `date_to`: Optional ISO dates; the window defaults to the trailing 90 days."
    ),
    responses={401: {"description": "Missing X-User-Id header."}},
)
async def mock_transactions(
    account_id: str = Query(..., min_length=1),
    date_from: date | None = None,
    date_to: date | None = None,
    owner_id: str = Depends(get_owner_id),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> dict:
    """List the mock transactions of an account as seen by the calling user."""
    if date_from and date_to and date_from > date_to:
        raise HTTPException(400, "date_from must not be after date_to")
    booked = transactions_for(account_id, owner_id, date_from, date_to, today=clock().date())
    return {"transactions": {"booked": booked}}


# --- bank linking ---


@router.post(
    "/link-bank",
    response_model=LinkResult,
    summary="Link a mock institution",
    description=(
        "Create the calling user's accounts for a mock bank. Linking a bank twice reports the existing accounts.\n\n"
        "**Response:**\n"
        "- 200 OK: Link result with the number of accounts.\n"
        "- 404 Not Found: If the bank id is not in the catalog."
    ),
    responses={
        200: {
            "description": "Bank linked.",
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "message": "Successfully linked Demo Bank International. 2 account(s) added.",
                        "accountsLinked": 2,
                        "bankName": "Demo Bank International",
                    }
                }
            },
        },
        404: {
            "description": "Unknown bank.",
            "content": {"application/json": {"example": {"detail": "Unknown bank: nope-000"}}},
        },
    },
)
async def link_bank(
    request: LinkBankRequest,
    owner_id: str = Depends(get_owner_id),
    store: Store = Depends(get_store),
) -> LinkResult:
    """Link a mock institution for the calling user."""
    logger.info(f"Link request: owner={owner_id}, bank={request.bank_id}")
    try:
        return link_institution(store, owner_id, request.bank_id)
    except UnknownInstitutionError as exc:
        logger.warning(str(exc))
        raise HTTPException(404, str(exc)) from exc


@router.get("/link-bank", summary="List linked institutions")
async def get_linked_banks(owner_id: str = Depends(get_owner_id), store: Store = Depends(get_store)) -> dict:
    """List the institutions the calling user has linked."""
    return {"linkedBanks": linked_banks(store, owner_id)}


@router.delete(
    "/link-bank/{bank_id}",
    summary="Unlink an institution",
    description="Delete the calling user's accounts for a bank together with their transactions.",
    responses={404: {"description": "Bank not linked."}},
)
async def unlink_bank(bank_id: str, owner_id: str = Depends(get_owner_id), store: Store = Depends(get_store)) -> dict:
    """Unlink an institution for the calling user."""
    removed = unlink_institution(store, owner_id, bank_id)
    if not removed:
        raise HTTPException(404, "Bank not linked")
    return {"success": True, "accountsRemoved": removed}


@router.get("/accounts", response_model=list[AccountRecord], summary="List linked accounts")
async def get_accounts(owner_id: str = Depends(get_owner_id), store: Store = Depends(get_store)) -> list:
    """List the calling user's linked accounts."""
    return store.get_accounts(owner_id)


# --- import ---


@router.post(
    "/import",
    summary="Import mock transactions",
    description=(
        "Import the mock transactions of one linked account, or of every linked account when `accountId` is "
        "omitted. Re-importing the same window is idempotent. The response carries the import summary and the "
        "notifications to show: the import outcome followed by any budget alerts for the current month.\n\n"
        "**Response:**\n"
        "- 200 OK: `{ 'result': ImportResult, 'accountsProcessed': n, 'notifications': [...] }`. Rejected imports "
        "(unknown account, foreign account) are reported with `success: false`."
    ),
    responses={
        200: {
            "description": "Import summary.",
            "content": {
                "application/json": {
                    "example": {
                        "result": {
                            "success": True,
                            "imported": 71,
                            "updated": 0,
                            "skipped": 0,
                            "errors": 0,
                            "errorDetails": None,
                        },
                        "accountsProcessed": 1,
                        "notifications": [],
                    }
                }
            },
        },
        500: {"description": "Internal server error."},
    },
)
async def run_import(
    request: ImportRequest,
    owner_id: str = Depends(get_owner_id),
    importer: TransactionImporter = Depends(get_importer),
    engine: BudgetEngine = Depends(get_budget_engine),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> dict:
    """Import transactions and compose the post-import notifications."""
    if request.date_from and request.date_to and request.date_from > request.date_to:
        raise HTTPException(400, "dateFrom must not be after dateTo")
    if request.account_id is None:
        result, processed = importer.import_all(owner_id, request.date_from, request.date_to)
    else:
        result = importer.import_transactions(owner_id, request.account_id, request.date_from, request.date_to)
        processed = 1
    notifications = post_import_notifications(result, engine.progress(owner_id, clock()), owner_id)
    return {"result": result, "accountsProcessed": processed, "notifications": notifications}


# --- budgets ---


@router.get("/budgets", summary="Get monthly budgets")
async def get_budgets(owner_id: str = Depends(get_owner_id), store: Store = Depends(get_store)) -> dict:
    """Return the calling user's budgets as a category to limit mapping."""
    return {"budgets": {budget.category: budget.monthly_limit for budget in store.get_budgets(owner_id)}}


@router.post(
    "/budgets",
    summary="Save monthly budgets",
    description=(
        "Upsert category limits and delete budgets.\n\n"
        "**Response:**\n"
        "- 200 OK: Number of budgets written and deleted.\n"
        "- 400 Bad Request: Unknown expense category or a limit that is not positive."
    ),
    responses={
        200: {
            "description": "Budgets saved.",
            "content": {"application/json": {"example": {"success": True, "updated": 2, "deleted": 0}}},
        },
        400: {
            "description": "Invalid budget.",
            "content": {"application/json": {"example": {"detail": "Invalid category: Groceries"}}},
        },
    },
)
async def save_budgets(
    request: BudgetRequest,
    owner_id: str = Depends(get_owner_id),
    store: Store = Depends(get_store),
) -> dict:
    """Validate and persist budget changes for the calling user."""
    for item in request.budgets:
        if not is_valid_category(item.category, "expense"):
            raise HTTPException(400, f"Invalid category: {item.category}")
        if item.limit <= 0:
            raise HTTPException(400, f"Limit for {item.category} must be positive")
    for item in request.budgets:
        store.upsert_budget(owner_id, item.category, to_money(item.limit))
    deleted = sum(store.delete_budget(owner_id, category) for category in request.deletions)
    logger.info(f"Budgets saved for {owner_id}: {len(request.budgets)} upserted, {deleted} deleted")
    return {"success": True, "updated": len(request.budgets), "deleted": deleted}


@router.get(
    "/budgets/progress",
    response_model=list[BudgetProgress],
    summary="Budget progress for the current month",
    description="Recompute spend against every budget from the expense transactions of the current month.",
)
async def get_budget_progress(
    owner_id: str = Depends(get_owner_id),
    engine: BudgetEngine = Depends(get_budget_engine),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> list[BudgetProgress]:
    """Return live budget progress for the calling user."""
    return engine.progress(owner_id, clock())


# --- transactions ---


@router.get("/transactions", response_model=list[TransactionRecord], summary="List imported transactions")
async def get_transactions(
    date_from: date | None = None,
    date_to: date | None = None,
    account_id: str | None = None,
    owner_id: str = Depends(get_owner_id),
    store: Store = Depends(get_store),
) -> list:
    """List the calling user's transactions, newest first."""
    return store.get_transactions(owner_id, date_from, date_to, account_id)


@router.get(
    "/transactions/export",
    response_class=StreamingResponse,
    summary="Download transactions as CSV",
    description="Download the calling user's transactions, optionally limited to a booking-date range, as CSV.",
    response_description="CSV file.",
    responses={200: {"description": "CSV file download."}},
)
async def export_transactions(
    date_from: date | None = None,
    date_to: date | None = None,
    owner_id: str = Depends(get_owner_id),
    store: Store = Depends(get_store),
) -> StreamingResponse:
    """Download the calling user's transactions as CSV."""
    csv_text = export_transactions_csv(store.get_transactions(owner_id, date_from, date_to))
    return StreamingResponse(
        io.BytesIO(csv_text.encode("utf-8")),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=transactions.csv"},
    )
