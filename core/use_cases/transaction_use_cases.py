import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence
from uuid import UUID

from core.entities.transaction import Transaction, TransactionStatistics
from core.errors import EmptyBatchError, InvalidIdError, NotFoundError
from core.repositories.transaction_repository import InsertFailure, TransactionRepository
from core.services.dates import utc_now
from core.services.transaction_query import (
    PageRequest,
    build_page_request,
    build_transaction_filter,
)
from core.services.transaction_validator import TransactionValidator, validator as default_validator

logger = logging.getLogger(__name__)


@dataclass
class TransactionPage:
    transactions: List[Transaction]
    page: PageRequest
    total: int

    @property
    def total_pages(self) -> int:
        return self.page.total_pages(self.total)


@dataclass
class BulkCreateOutcome:
    created: List[Transaction] = field(default_factory=list)
    failures: List[InsertFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def partial(self) -> bool:
        return bool(self.failures) and bool(self.created)


def parse_transaction_id(transaction_id: str) -> str:
    try:
        return UUID(str(transaction_id)).hex
    except ValueError:
        raise InvalidIdError(transaction_id)


def list_transactions(
    repo: TransactionRepository,
    user_id: int,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    type: Optional[str] = None,
    category: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    month: Optional[int] = None,
    year: Optional[int] = None,
    default_limit: int = 10,
    max_limit: int = 100,
) -> TransactionPage:
    filters = build_transaction_filter(
        user_id, type=type, category=category,
        start_date=start_date, end_date=end_date, month=month, year=year,
    )
    page_request = build_page_request(page, limit, default_limit=default_limit, max_limit=max_limit)
    transactions = repo.find(filters, page_request)
    total = repo.count(filters)
    return TransactionPage(transactions=transactions, page=page_request, total=total)


def create_transaction(
    repo: TransactionRepository,
    user_id: int,
    data: Mapping[str, Any],
    validator: TransactionValidator = default_validator,
) -> Transaction:
    values = validator.validate(data).raise_for_errors()
    # userId всегда берём из токена, а не из тела запроса
    created = repo.insert(Transaction(
        id=None,
        user_id=user_id,
        date=values.get("date") or utc_now(),
        description=values["description"],
        category=values["category"],
        type=values["type"],
        amount=values["amount"],
    ))
    logger.info("transaction_created id=%s user_id=%s", created.id, user_id)
    return created


def update_transaction(
    repo: TransactionRepository,
    user_id: int,
    transaction_id: str,
    data: Mapping[str, Any],
    validator: TransactionValidator = default_validator,
) -> Transaction:
    tx_id = parse_transaction_id(transaction_id)
    existing = repo.get_owned(tx_id, user_id)
    if existing is None:
        raise NotFoundError()

    changes = validator.validate(data, partial=True).raise_for_errors()
    if not changes:
        return existing

    updated = repo.update(tx_id, user_id, changes)
    if updated is None:
        # удалили между чтением и записью
        raise NotFoundError()
    logger.info("transaction_updated id=%s user_id=%s fields=%s", tx_id, user_id, sorted(changes))
    return updated


def delete_transaction(repo: TransactionRepository, user_id: int, transaction_id: str) -> None:
    tx_id = parse_transaction_id(transaction_id)
    if not repo.delete_owned(tx_id, user_id):
        raise NotFoundError()
    logger.info("transaction_deleted id=%s user_id=%s", tx_id, user_id)


def bulk_create_transactions(
    repo: TransactionRepository,
    user_id: int,
    records: Optional[Sequence[Any]],
    validator: TransactionValidator = default_validator,
) -> BulkCreateOutcome:
    """Validate and insert a batch, collecting per-record failures.

    Records that fail validation are reported with their position in the
    input and never reach the repository; the rest are inserted one by one.
    """
    if not isinstance(records, (list, tuple)) or not records:
        raise EmptyBatchError()

    outcome = BulkCreateOutcome()
    candidates: List[Transaction] = []
    positions: List[int] = []
    now = utc_now()

    for index, record in enumerate(records):
        if not isinstance(record, Mapping):
            outcome.failures.append(InsertFailure(index=index, messages=["Transaction must be an object"]))
            continue
        result = validator.validate(record)
        if not result.ok:
            outcome.failures.append(
                InsertFailure(index=index, messages=[e.message for e in result.errors])
            )
            continue
        values = result.values
        candidates.append(Transaction(
            id=None,
            user_id=user_id,
            date=values.get("date") or now,
            description=values["description"],
            category=values["category"],
            type=values["type"],
            amount=values["amount"],
        ))
        positions.append(index)

    if candidates:
        inserted = repo.insert_many(candidates)
        outcome.created = inserted.inserted
        for failure in inserted.failures:
            outcome.failures.append(InsertFailure(index=positions[failure.index], messages=failure.messages))
    outcome.failures.sort(key=lambda f: f.index)

    logger.info(
        "transactions_bulk_created user_id=%s created=%s failed=%s",
        user_id, len(outcome.created), outcome.failed,
    )
    return outcome


def get_statistics(
    repo: TransactionRepository,
    user_id: int,
    month: Optional[int] = None,
    year: Optional[int] = None,
) -> TransactionStatistics:
    filters = build_transaction_filter(user_id, month=month, year=year)
    return repo.totals_by_type(filters)
