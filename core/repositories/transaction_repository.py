from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.entities.transaction import Transaction, TransactionStatistics
from core.services.transaction_query import PageRequest, TransactionFilter


@dataclass
class InsertFailure:
    index: int
    messages: List[str]


@dataclass
class BulkInsertResult:
    inserted: List[Transaction] = field(default_factory=list)
    failures: List[InsertFailure] = field(default_factory=list)


class TransactionRepository(ABC):
    @abstractmethod
    def find(self, filters: TransactionFilter, page: PageRequest) -> List[Transaction]:...

    @abstractmethod
    def count(self, filters: TransactionFilter) -> int:...

    @abstractmethod
    def get_owned(self, transaction_id: str, user_id: int) -> Optional[Transaction]:...

    @abstractmethod
    def insert(self, transaction: Transaction) -> Transaction:...

    @abstractmethod
    def insert_many(self, transactions: List[Transaction]) -> BulkInsertResult:
        """Insert every record independently; one failure never blocks the rest."""

    @abstractmethod
    def update(self, transaction_id: str, user_id: int, changes: Dict[str, Any]) -> Optional[Transaction]:...

    @abstractmethod
    def delete_owned(self, transaction_id: str, user_id: int) -> bool:...

    @abstractmethod
    def totals_by_type(self, filters: TransactionFilter) -> TransactionStatistics:...
