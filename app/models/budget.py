from typing import Optional

from pydantic import Field

from app.models.common import MAX_AMOUNT, BudgetCategory, BudgetPeriod, CamelModel


class BudgetCreate(CamelModel):
    category: BudgetCategory
    limit: float = Field(..., ge=0, le=MAX_AMOUNT)
    period: BudgetPeriod = BudgetPeriod.MONTHLY


class BudgetUpdate(CamelModel):
    category: Optional[BudgetCategory] = None
    limit: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT)
    period: Optional[BudgetPeriod] = None


class BudgetProgressPublic(CamelModel):
    limit: float
    spent: float
    remaining: float
    percentage: float
    status: str


class BudgetPublic(CamelModel):
    id: str
    user: str
    category: str
    limit: float
    period: str
    created_at: str
    updated_at: str
    progress: BudgetProgressPublic

    @classmethod
    def from_item(cls, item: dict, progress: BudgetProgressPublic) -> "BudgetPublic":
        return cls(id=item["budget_id"], user=item["user_id"], progress=progress, **item)
