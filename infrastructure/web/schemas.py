from datetime import datetime
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints
from pydantic.alias_generators import to_camel

from core.entities.transaction import Transaction, TransactionStatistics
from core.entities.user import User
from core.use_cases.transaction_use_cases import TransactionPage


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# DTO для пользователей
class RegisterRequest(BaseModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)]
    email: EmailStr
    password: str = Field(..., min_length=6)

class UserResponse(BaseModel):
    id: int
    name: str
    email: EmailStr
    created_at: str

    @classmethod
    def from_entity(cls, user: User) -> "UserResponse":
        return cls(id=user.id, name=user.name, email=user.email, created_at=user.created_at)

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class BulkCreateRequest(BaseModel):
    transactions: Optional[List[Any]] = None


class TransactionItem(CamelModel):
    id: str
    user_id: int
    date: datetime
    description: str
    category: str
    type: str
    amount: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, tx: Transaction) -> "TransactionItem":
        return cls(
            id=tx.id,
            user_id=tx.user_id,
            date=tx.date,
            description=tx.description,
            category=tx.category,
            type=tx.type,
            amount=tx.amount,
            created_at=tx.created_at,
            updated_at=tx.updated_at,
        )

class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_transactions: int
    limit: int

class TransactionList(CamelModel):
    transactions: List[TransactionItem]
    pagination: Pagination

    @classmethod
    def from_page(cls, result: TransactionPage) -> "TransactionList":
        return cls(
            transactions=[TransactionItem.from_entity(tx) for tx in result.transactions],
            pagination=Pagination(
                current_page=result.page.page,
                total_pages=result.total_pages,
                total_transactions=result.total,
                limit=result.page.limit,
            ),
        )

class Statistics(CamelModel):
    total_income: float
    total_expense: float
    income_count: int
    expense_count: int
    net_amount: float

    @classmethod
    def from_entity(cls, stats: TransactionStatistics) -> "Statistics":
        return cls(
            total_income=stats.total_income,
            total_expense=stats.total_expense,
            income_count=stats.income_count,
            expense_count=stats.expense_count,
            net_amount=stats.net_amount,
        )

class BulkFailure(CamelModel):
    index: int
    errors: List[str]
