import logging
from datetime import datetime
from typing import Dict, Literal, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError

from app.core.config import settings
from app.core.errors import FinanceTrackerError, NotFoundError, ValidationFailed, format_validation_errors
from app.core.security import get_current_user_id
from app.db import dynamo
from app.models.common import (
    Category,
    PaymentMethod,
    TransactionType,
    paginated,
    success,
    to_iso,
    utcnow,
)
from app.models.transaction import TransactionCreate, TransactionPublic, TransactionUpdate
from app.utils.analyzer import FinanceAnalyzer
from app.utils.listing import paginate, sort_items
from app.utils.periods import trend_window_start

router = APIRouter()
logger = logging.getLogger(__name__)
finance_analyzer = FinanceAnalyzer(trend_months=settings.TREND_MONTHS)

SORT_FIELDS = {
    "date": "date",
    "amount": "amount",
    "type": "type",
    "category": "category",
    "paymentMethod": "payment_method",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


def _stored_fields(txn: TransactionCreate) -> dict:
    fields = txn.model_dump()
    fields["date"] = to_iso(txn.date)
    return fields


def _public(item: dict) -> dict:
    return TransactionPublic.from_item(item).model_dump(by_alias=True)


def _all_to_none(value: Optional[str]) -> Optional[str]:
    return None if value == "all" else value


@router.get("")
def list_transactions(
    category: Optional[Category] = None,
    type: Optional[TransactionType] = None,
    payment_method: Optional[PaymentMethod] = Query(None, alias="paymentMethod"),
    borrow_or_lend: Optional[Literal["all", "none", "borrow", "lend"]] = Query(None, alias="borrowOrLend"),
    settlement_status: Optional[Literal["all", "pending", "settled"]] = Query(None, alias="settlementStatus"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1, le=settings.MAX_PAGE_LIMIT),
    sort: str = "-date",
    user_id: str = Depends(get_current_user_id),
) -> Dict:
    try:
        filter_expression = dynamo.build_filter_expression(
            equals={
                "category": category.value if category else None,
                "type": type.value if type else None,
                "payment_method": payment_method.value if payment_method else None,
                "borrow_or_lend": _all_to_none(borrow_or_lend),
                "settlement_status": _all_to_none(settlement_status),
            },
            date_from=start_date,
            date_to=end_date,
        )
        items = dynamo.query_transactions(user_id, filter_expression)
        ordered = sort_items(items, sort, SORT_FIELDS)
        page_items = [_public(item) for item in paginate(ordered, page, limit)]
        return paginated(page_items, total=len(ordered), page=page, limit=limit)
    except (HTTPException, FinanceTrackerError):
        raise
    except Exception as e:
        logger.error(f"Get transactions error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server error fetching transactions")


@router.get("/analytics")
def transaction_analytics(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    user_id: str = Depends(get_current_user_id),
) -> Dict:
    """
    Totals, category/payment-method breakdowns and borrow/lend balances for the
    optional date range, plus the trailing monthly trend (which ignores the range).
    """
    try:
        now = utcnow()
        in_range = dynamo.query_transactions(
            user_id,
            dynamo.build_filter_expression(date_from=start_date, date_to=end_date),
        )
        trend = dynamo.query_transactions(
            user_id,
            dynamo.build_filter_expression(date_from=trend_window_start(now, settings.TREND_MONTHS)),
        )
        return success(data=finance_analyzer.analyze(in_range, now, trend_transactions=trend))
    except (HTTPException, FinanceTrackerError):
        raise
    except Exception as e:
        logger.error(f"Get analytics error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server error fetching analytics")


@router.get("/{transaction_id}")
def get_transaction(transaction_id: str, user_id: str = Depends(get_current_user_id)) -> Dict:
    item = dynamo.get_transaction(user_id, transaction_id)
    if not item:
        raise NotFoundError("Transaction")
    return success(data=_public(item))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_transaction(txn: TransactionCreate, user_id: str = Depends(get_current_user_id)) -> Dict:
    try:
        now = to_iso(utcnow())
        item = {
            "user_id": user_id,
            "transaction_id": uuid4().hex,
            **_stored_fields(txn),
            "created_at": now,
            "updated_at": now,
        }
        dynamo.put_transaction(item)
        logger.info(f"Created transaction {item['transaction_id']} for user {user_id}")
        return success(data=_public(item))
    except (HTTPException, FinanceTrackerError):
        raise
    except Exception as e:
        logger.error(f"Create transaction error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server error creating transaction")


@router.put("/{transaction_id}")
def update_transaction(
    transaction_id: str,
    txn_update: TransactionUpdate,
    user_id: str = Depends(get_current_user_id),
) -> Dict:
    existing = dynamo.get_transaction(user_id, transaction_id)
    if not existing:
        raise NotFoundError("Transaction")

    # re-validate the merged record so cross-field rules hold after a partial update
    merged = {name: existing[name] for name in TransactionCreate.model_fields if name in existing}
    merged.update(txn_update.model_dump(exclude_unset=True))
    try:
        validated = TransactionCreate.model_validate(merged)
    except ValidationError as e:
        raise ValidationFailed(format_validation_errors(e.errors()))

    try:
        item = {
            "user_id": user_id,
            "transaction_id": transaction_id,
            **_stored_fields(validated),
            "created_at": existing.get("created_at", to_iso(utcnow())),
            "updated_at": to_iso(utcnow()),
        }
        dynamo.replace_transaction(item)
        return success(data=_public(item))
    except (HTTPException, FinanceTrackerError):
        raise
    except Exception as e:
        logger.error(f"Update transaction error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server error updating transaction")


@router.delete("/{transaction_id}")
def delete_transaction(transaction_id: str, user_id: str = Depends(get_current_user_id)) -> Dict:
    if not dynamo.delete_transaction(user_id, transaction_id):
        raise NotFoundError("Transaction")
    logger.info(f"Deleted transaction {transaction_id} for user {user_id}")
    return success(data={}, message="Transaction deleted successfully")
