from dataclasses import dataclass
from typing import List

# коды ошибок валидации полей
MISSING_FIELD = "MissingField"
INVALID_TYPE = "InvalidType"
INVALID_AMOUNT = "InvalidAmount"
INVALID_CATEGORY = "InvalidCategory"
INVALID_DESCRIPTION = "InvalidDescription"
INVALID_DATE = "InvalidDate"


@dataclass
class FieldError:
    code: str
    field: str
    message: str


class TransactionError(Exception):
    """Base class for errors raised by transaction use cases."""


class TransactionValidationError(TransactionError, ValueError):
    def __init__(self, errors: List[FieldError]):
        self.errors = list(errors)
        super().__init__("; ".join(e.message for e in self.errors) or "Validation error")

    @property
    def messages(self) -> List[str]:
        return [e.message for e in self.errors]

    @property
    def codes(self) -> List[str]:
        return [e.code for e in self.errors]


class InvalidIdError(TransactionError, ValueError):
    def __init__(self, value: str):
        self.value = value
        super().__init__("Invalid transaction ID")


class NotFoundError(TransactionError, LookupError):
    def __init__(self, message: str = "Transaction not found"):
        super().__init__(message)


class EmptyBatchError(TransactionError, ValueError):
    def __init__(self):
        super().__init__("Please provide an array of transactions")


class DuplicateEmailError(ValueError):
    def __init__(self, email: str):
        self.email = email
        super().__init__("User with this email already exists")
