"""Field rules for transaction records, shared by create, update and bulk paths.

The rules live in two pydantic models. ``TransactionValidator`` runs them and
turns pydantic's errors into ``FieldError``s with the API's codes and messages.
"""
from datetime import datetime
from dataclasses import dataclass, field
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, Field, StringConstraints, ValidationError, field_validator

from core.entities.transaction import CATEGORIES, DESCRIPTION_MAX_LENGTH
from core.errors import (
    INVALID_AMOUNT,
    INVALID_CATEGORY,
    INVALID_DATE,
    INVALID_DESCRIPTION,
    INVALID_TYPE,
    MISSING_FIELD,
    FieldError,
    TransactionValidationError,
)
from core.services.dates import as_utc, parse_datetime

REQUIRED_FIELDS = ("description", "category", "type", "amount")
EDITABLE_FIELDS = ("date",) + REQUIRED_FIELDS

Description = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
]
Category = Literal[CATEGORIES]
TransactionType = Literal["income", "expense"]


class _TransactionFields(BaseModel):
    @field_validator("amount", mode="before", check_fields=False)
    @classmethod
    def _amount_is_a_number(cls, value: Any) -> Any:
        # bool - подкласс int, pydantic превратил бы True в 1.0
        if isinstance(value, bool):
            raise ValueError("Amount must be a number")
        if isinstance(value, int):
            try:
                return float(value)
            except OverflowError:
                raise ValueError("Amount is out of range")
        return value

    @field_validator("date", mode="before", check_fields=False)
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_datetime(value)[0]
        return value

    @field_validator("date", check_fields=False)
    @classmethod
    def _date_in_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else value


class TransactionCreate(_TransactionFields):
    description: Description
    category: Category
    type: TransactionType
    amount: float = Field(gt=0, allow_inf_nan=False)
    date: Optional[datetime] = None


class TransactionUpdate(_TransactionFields):
    description: Optional[Description] = None
    category: Optional[Category] = None
    type: Optional[TransactionType] = None
    amount: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    date: Optional[datetime] = None


FIELD_CODES = {
    "date": INVALID_DATE,
    "description": INVALID_DESCRIPTION,
    "category": INVALID_CATEGORY,
    "type": INVALID_TYPE,
    "amount": INVALID_AMOUNT,
}

# (поле, тип ошибки pydantic) -> сообщение; иначе берётся общее для поля
MESSAGES = {
    ("description", "string_too_short"): "Description cannot be empty",
    ("description", "string_too_long"): f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters",
    ("amount", "greater_than"): "Amount must be greater than 0",
}
FIELD_MESSAGES = {
    "description": "Description must be text",
    "category": "'{input}' is not a valid category",
    "type": 'Type must be either "income" or "expense"',
    "amount": "Amount must be a valid positive number",
    "date": "Date must be a valid ISO date",
}


@dataclass
class ValidationResult:
    values: Dict[str, Any] = field(default_factory=dict)
    errors: List[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> Dict[str, Any]:
        if self.errors:
            raise TransactionValidationError(self.errors)
        return self.values


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def to_field_error(error: Dict[str, Any]) -> FieldError:
    name = str(error["loc"][0])
    kind = error["type"]
    if kind == "missing":
        return FieldError(MISSING_FIELD, name, f"{name.capitalize()} is required")
    template = MESSAGES.get((name, kind), FIELD_MESSAGES[name])
    return FieldError(FIELD_CODES[name], name, template.format(input=error.get("input")))


class TransactionValidator:
    def __init__(self, create_model=TransactionCreate, update_model=TransactionUpdate):
        self.create_model = create_model
        self.update_model = update_model

    def validate(self, data: Mapping[str, Any], partial: bool = False) -> ValidationResult:
        """Check a candidate record.

        With partial=False every required field must be present. With
        partial=True only the supplied fields are checked and returned, so
        omitted ones stay untouched by the caller. None and "" count as absent.
        """
        candidate = {
            name: data.get(name) for name in EDITABLE_FIELDS if not _is_blank(data.get(name))
        }
        model = self.update_model if partial else self.create_model
        try:
            record = model.model_validate(candidate)
        except ValidationError as e:
            return ValidationResult(errors=[to_field_error(err) for err in e.errors()])
        return ValidationResult(values=record.model_dump(exclude_unset=True, exclude_none=True))


validator = TransactionValidator()
