"""
Shared schema pieces: the camelCase base model, the closed enums and the
response envelope used by every endpoint.
"""
import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# stays well inside the range DynamoDB numbers can hold
MAX_AMOUNT = 1e15


class CamelModel(BaseModel):
    """Snake_case in Python and DynamoDB, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        use_enum_values=True,
        validate_default=True,
        allow_inf_nan=False,
    )


class Category(str, Enum):
    FOOD = "Food"
    TRAVEL = "Travel"
    BILLS = "Bills"
    SHOPPING = "Shopping"
    INVESTMENT = "Investment"
    ENTERTAINMENT = "Entertainment"
    HEALTHCARE = "Healthcare"
    EDUCATION = "Education"
    TRANSPORT = "Transport"
    UTILITIES = "Utilities"
    SALARY = "Salary"
    BUSINESS = "Business"
    FREELANCE = "Freelance"
    OTHER = "Other"


# Income-only categories cannot carry a spending budget.
BudgetCategory = Enum(
    "BudgetCategory",
    {c.name: c.value for c in Category if c not in (Category.SALARY, Category.BUSINESS, Category.FREELANCE)},
    type=str,
)


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class PaymentMethod(str, Enum):
    CASH = "Cash"
    UPI = "UPI"
    CREDIT_CARD = "Credit Card"
    DEBIT_CARD = "Debit Card"
    NET_BANKING = "Net Banking"


class BorrowOrLend(str, Enum):
    NONE = "none"
    BORROW = "borrow"
    LEND = "lend"


class SettlementStatus(str, Enum):
    PENDING = "pending"
    SETTLED = "settled"


class BudgetPeriod(str, Enum):
    MONTHLY = "monthly"
    WEEKLY = "weekly"


class InvestmentType(str, Enum):
    STOCK = "stock"
    CRYPTO = "crypto"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """
    Normalise a datetime to the stored form: naive UTC, second precision.
    Naive inputs are taken to be UTC already.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="seconds")


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def success(data: Any = None, message: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    body.update(extra)
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return body


def paginated(items: List[Any], total: int, page: int, limit: int) -> Dict[str, Any]:
    return success(
        data=items,
        count=len(items),
        total=total,
        pagination={"page": page, "limit": limit, "pages": page_count(total, limit)},
    )
