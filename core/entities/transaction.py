from dataclasses import dataclass
from datetime import datetime
from typing import Optional

TRANSACTION_TYPES = ("income", "expense")

CATEGORIES = (
    "Food & Dining",
    "Transportation",
    "Shopping",
    "Entertainment",
    "Bills & Utilities",
    "Healthcare",
    "Education",
    "Travel",
    "Business",
    "Income",
    "Other",
)

DESCRIPTION_MAX_LENGTH = 200


@dataclass
class Transaction:
    id: Optional[str]
    user_id: int
    date: datetime
    description: str
    category: str           # один из CATEGORIES
    type: str               # "income" | "expense"
    amount: float           # всегда > 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class TransactionStatistics:
    total_income: float = 0
    total_expense: float = 0
    income_count: int = 0
    expense_count: int = 0

    @property
    def net_amount(self) -> float:
        return self.total_income - self.total_expense
