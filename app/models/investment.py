from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from app.models.common import MAX_AMOUNT, CamelModel, InvestmentType, utcnow


class InvestmentCreate(CamelModel):
    type: InvestmentType
    symbol: str = Field(..., min_length=1, max_length=10)
    amount_invested: float = Field(..., ge=0, le=MAX_AMOUNT)
    # None means "not provided"; the router defaults it to amount_invested
    current_value: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT)
    quantity: float = Field(default=0, ge=0, le=MAX_AMOUNT)
    purchase_price: float = Field(default=0, ge=0, le=MAX_AMOUNT)
    date: datetime = Field(default_factory=utcnow)

    @field_validator("symbol")
    @classmethod
    def uppercase_symbol(cls, value: str) -> str:
        return value.upper()


class InvestmentUpdate(CamelModel):
    type: Optional[InvestmentType] = None
    symbol: Optional[str] = Field(default=None, min_length=1, max_length=10)
    amount_invested: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT)
    current_value: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT)
    quantity: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT)
    purchase_price: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT)
    date: Optional[datetime] = None


class InvestmentValueUpdate(CamelModel):
    current_value: Optional[float] = None


class InvestmentPublic(CamelModel):
    id: str
    user: str
    type: str
    symbol: str
    amount_invested: float
    current_value: float
    quantity: float = 0
    purchase_price: float = 0
    date: str
    created_at: str
    updated_at: str
    profit_loss: float
    profit_loss_percentage: float
    status: str

    @classmethod
    def from_item(cls, item: dict, metrics: dict) -> "InvestmentPublic":
        return cls(id=item["investment_id"], user=item["user_id"], **item, **metrics)
