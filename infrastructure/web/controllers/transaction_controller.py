from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query

from config.settings import Settings
from core.errors import EmptyBatchError, InvalidIdError, NotFoundError, TransactionValidationError
from core.use_cases.transaction_use_cases import (
    bulk_create_transactions,
    create_transaction,
    delete_transaction,
    get_statistics,
    list_transactions,
    update_transaction,
)
from infrastructure.db.sqlite import SQLiteTransactionRepository
from infrastructure.web.dependencies import get_settings, get_transaction_repo
from infrastructure.web.responses import envelope, error_response
from infrastructure.web.schemas import (
    BulkCreateRequest,
    BulkFailure,
    Statistics,
    TransactionItem,
    TransactionList,
)
from infrastructure.web.security import get_current_user_id


# все маршруты только для авторизованных
router = APIRouter(
    prefix="/transactions",
    tags=["transactions"],
    dependencies=[Depends(get_current_user_id)],
)


def _validation_failed(e: TransactionValidationError):
    return error_response(400, "Validation error", errors=e.messages)

@router.get("")
def get_transactions(
    page: Optional[int] = None,
    limit: Optional[int] = None,
    type: Optional[str] = None,
    category: Optional[str] = None,
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    month: Optional[int] = None,
    year: Optional[int] = None,
    user_id: int = Depends(get_current_user_id),
    repo: SQLiteTransactionRepository = Depends(get_transaction_repo),
    settings: Settings = Depends(get_settings),
):
    try:
        result = list_transactions(
            repo, user_id,
            page=page, limit=limit, type=type, category=category,
            start_date=start_date, end_date=end_date, month=month, year=year,
            default_limit=settings.DEFAULT_PAGE_LIMIT, max_limit=settings.MAX_PAGE_LIMIT,
        )
    except TransactionValidationError as e:
        return _validation_failed(e)
    return envelope(True, data=TransactionList.from_page(result).to_json())

@router.post("")
def create(
    payload: Dict[str, Any] = Body(...),
    user_id: int = Depends(get_current_user_id),
    repo: SQLiteTransactionRepository = Depends(get_transaction_repo),
):
    try:
        tx = create_transaction(repo, user_id, payload)
    except TransactionValidationError as e:
        return _validation_failed(e)
    return envelope(
        True,
        message="Transaction created successfully",
        data={"transaction": TransactionItem.from_entity(tx).to_json()},
        status_code=201,
    )

@router.post("/bulk")
def bulk_create(
    payload: Optional[BulkCreateRequest] = None,
    user_id: int = Depends(get_current_user_id),
    repo: SQLiteTransactionRepository = Depends(get_transaction_repo),
):
    try:
        outcome = bulk_create_transactions(repo, user_id, payload.transactions if payload else None)
    except EmptyBatchError as e:
        return error_response(400, str(e))

    created = [TransactionItem.from_entity(tx).to_json() for tx in outcome.created]
    failures = [BulkFailure(index=f.index, errors=f.messages).to_json() for f in outcome.failures]

    if not outcome.failures:
        return envelope(
            True,
            message=f"{len(created)} transactions created successfully",
            data={"transactions": created},
            status_code=201,
        )
    if not outcome.created:
        return error_response(
            400,
            "No transactions were created",
            errors=[f"Transaction {f['index']}: {'; '.join(f['errors'])}" for f in failures],
            data={"created": 0, "failed": outcome.failed, "errors": failures},
        )
    return envelope(
        True,
        message=f"{len(created)} transactions created, {outcome.failed} failed",
        data={"created": len(created), "failed": outcome.failed, "errors": failures, "transactions": created},
        status_code=207,
    )

@router.get("/statistics")
def statistics(
    month: Optional[int] = None,
    year: Optional[int] = None,
    user_id: int = Depends(get_current_user_id),
    repo: SQLiteTransactionRepository = Depends(get_transaction_repo),
):
    try:
        stats = get_statistics(repo, user_id, month=month, year=year)
    except TransactionValidationError as e:
        return _validation_failed(e)
    return envelope(True, data=Statistics.from_entity(stats).to_json())

@router.put("/{transaction_id}")
def update(
    transaction_id: str,
    payload: Dict[str, Any] = Body(...),
    user_id: int = Depends(get_current_user_id),
    repo: SQLiteTransactionRepository = Depends(get_transaction_repo),
):
    try:
        tx = update_transaction(repo, user_id, transaction_id, payload)
    except InvalidIdError as e:
        return error_response(400, str(e))
    except NotFoundError as e:
        return error_response(404, str(e))
    except TransactionValidationError as e:
        return _validation_failed(e)
    return envelope(
        True,
        message="Transaction updated successfully",
        data={"transaction": TransactionItem.from_entity(tx).to_json()},
    )

@router.delete("/{transaction_id}")
def delete(
    transaction_id: str,
    user_id: int = Depends(get_current_user_id),
    repo: SQLiteTransactionRepository = Depends(get_transaction_repo),
):
    try:
        delete_transaction(repo, user_id, transaction_id)
    except InvalidIdError as e:
        return error_response(400, str(e))
    except NotFoundError as e:
        return error_response(404, str(e))
    return envelope(True, message="Transaction deleted successfully")
