from datetime import datetime
from typing import Optional

from pydantic import Field, model_validator

from app.models.common import (
    MAX_AMOUNT,
    BorrowOrLend,
    CamelModel,
    Category,
    PaymentMethod,
    SettlementStatus,
    TransactionType,
    utcnow,
)


class TransactionCreate(CamelModel):
    amount: float = Field(..., ge=0, le=MAX_AMOUNT)
    type: TransactionType
    category: Category
    payment_method: PaymentMethod
    description: Optional[str] = Field(default=None, max_length=200)
    borrow_or_lend: BorrowOrLend = BorrowOrLend.NONE
    person_name: Optional[str] = Field(default=None, max_length=50)
    contact_details: Optional[str] = Field(default=None, max_length=100)
    settlement_status: SettlementStatus = SettlementStatus.PENDING
    date: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def apply_borrow_lend_rules(self):
        if self.borrow_or_lend == BorrowOrLend.NONE.value:
            self.person_name = None
            self.contact_details = None
            self.settlement_status = SettlementStatus.PENDING.value
        elif not self.person_name:
            raise ValueError("Person name is required when borrowing or lending")
        return self


class TransactionUpdate(CamelModel):
    """Partial update; merged onto the stored record and re-validated as a TransactionCreate."""

    amount: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT)
    type: Optional[TransactionType] = None
    category: Optional[Category] = None
    payment_method: Optional[PaymentMethod] = None
    description: Optional[str] = Field(default=None, max_length=200)
    borrow_or_lend: Optional[BorrowOrLend] = None
    person_name: Optional[str] = Field(default=None, max_length=50)
    contact_details: Optional[str] = Field(default=None, max_length=100)
    settlement_status: Optional[SettlementStatus] = None
    date: Optional[datetime] = None


class TransactionPublic(CamelModel):
    id: str
    user: str
    amount: float
    type: str
    category: str
    payment_method: str
    description: Optional[str] = None
    borrow_or_lend: str = BorrowOrLend.NONE.value
    person_name: Optional[str] = None
    contact_details: Optional[str] = None
    settlement_status: str = SettlementStatus.PENDING.value
    date: str
    created_at: str
    updated_at: str

    @classmethod
    def from_item(cls, item: dict) -> "TransactionPublic":
        return cls(id=item["transaction_id"], user=item["user_id"], **item)
