import logging
from typing import Dict, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError

from app.core.config import settings
from app.core.errors import FinanceTrackerError, NotFoundError, ValidationFailed, format_validation_errors
from app.core.security import get_current_user_id
from app.db import dynamo
from app.models.common import MAX_AMOUNT, InvestmentType, paginated, success, to_iso, utcnow
from app.models.investment import (
    InvestmentCreate,
    InvestmentPublic,
    InvestmentUpdate,
    InvestmentValueUpdate,
)
from app.utils.listing import paginate, sort_items
from app.utils import portfolio

router = APIRouter()
logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "date": "date",
    "symbol": "symbol",
    "type": "type",
    "amountInvested": "amount_invested",
    "currentValue": "current_value",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


def _stored_fields(inv: InvestmentCreate) -> dict:
    fields = inv.model_dump()
    fields["date"] = to_iso(inv.date)
    if fields["current_value"] is None:
        # a new position is assumed to be at par
        fields["current_value"] = fields["amount_invested"]
    return fields


def _public(item: dict) -> dict:
    metrics = portfolio.position_metrics(item["amount_invested"], item["current_value"])
    return InvestmentPublic.from_item(
        item,
        {
            "profit_loss": metrics.profit_loss,
            "profit_loss_percentage": metrics.profit_loss_percentage,
            "status": metrics.status,
        },
    ).model_dump(by_alias=True)


def _get_owned(user_id: str, investment_id: str) -> dict:
    item = dynamo.get_investment(user_id, investment_id)
    if not item:
        raise NotFoundError("Investment")
    return item


@router.get("")
def list_investments(
    type: Optional[InvestmentType] = None,
    symbol: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1, le=settings.MAX_PAGE_LIMIT),
    sort: str = "-date",
    user_id: str = Depends(get_current_user_id),
) -> Dict:
    try:
        # symbols are stored uppercased, so an uppercased substring match is case-insensitive
        filter_expression = dynamo.build_filter_expression(
            equals={"type": type.value if type else None},
            contains={"symbol": symbol.strip().upper() if symbol else None},
        )
        items = dynamo.query_investments(user_id, filter_expression)
        ordered = sort_items(items, sort, SORT_FIELDS)
        page_items = [_public(item) for item in paginate(ordered, page, limit)]
        return paginated(page_items, total=len(ordered), page=page, limit=limit)
    except (HTTPException, FinanceTrackerError):
        raise
    except Exception as e:
        logger.error(f"Get investments error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server error fetching investments")


@router.get("/portfolio")
def portfolio_summary(user_id: str = Depends(get_current_user_id)) -> Dict:
    try:
        return success(data=portfolio.portfolio_summary(dynamo.query_investments(user_id)))
    except Exception as e:
        logger.error(f"Get portfolio summary error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server error fetching portfolio summary")


@router.get("/analytics")
def investment_analytics(user_id: str = Depends(get_current_user_id)) -> Dict:
    try:
        data = portfolio.investment_analytics(
            dynamo.query_investments(user_id),
            utcnow(),
            trend_months=settings.TREND_MONTHS,
            top_n=settings.TOP_PERFORMERS_LIMIT,
        )
        return success(data=data)
    except Exception as e:
        logger.error(f"Get investment analytics error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server error fetching investment analytics")


@router.get("/{investment_id}")
def get_investment(investment_id: str, user_id: str = Depends(get_current_user_id)) -> Dict:
    return success(data=_public(_get_owned(user_id, investment_id)))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_investment(inv: InvestmentCreate, user_id: str = Depends(get_current_user_id)) -> Dict:
    try:
        now = to_iso(utcnow())
        item = {
            "user_id": user_id,
            "investment_id": uuid4().hex,
            **_stored_fields(inv),
            "created_at": now,
            "updated_at": now,
        }
        dynamo.put_investment(item)
        logger.info(f"Created investment {item['investment_id']} ({item['symbol']}) for user {user_id}")
        return success(data=_public(item))
    except (HTTPException, FinanceTrackerError):
        raise
    except Exception as e:
        logger.error(f"Create investment error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server error creating investment")


@router.put("/{investment_id}/value")
def update_investment_value(
    investment_id: str,
    value_update: Optional[InvestmentValueUpdate] = None,
    user_id: str = Depends(get_current_user_id),
) -> Dict:
    current_value = value_update.current_value if value_update else None
    if current_value is None or not 0 <= current_value <= MAX_AMOUNT:
        raise ValidationFailed("Please provide a valid current value")

    existing = _get_owned(user_id, investment_id)
    try:
        item = {
            **existing,
            "current_value": current_value,
            "updated_at": to_iso(utcnow()),
        }
        dynamo.replace_investment(item)
        return success(data=_public(item))
    except (HTTPException, FinanceTrackerError):
        raise
    except Exception as e:
        logger.error(f"Update investment value error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server error updating investment value")


@router.put("/{investment_id}")
def update_investment(
    investment_id: str,
    inv_update: InvestmentUpdate,
    user_id: str = Depends(get_current_user_id),
) -> Dict:
    existing = _get_owned(user_id, investment_id)

    merged = {name: existing[name] for name in InvestmentCreate.model_fields if name in existing}
    merged.update(inv_update.model_dump(exclude_unset=True))
    try:
        validated = InvestmentCreate.model_validate(merged)
    except ValidationError as e:
        raise ValidationFailed(format_validation_errors(e.errors()))

    try:
        item = {
            **existing,
            **_stored_fields(validated),
            "updated_at": to_iso(utcnow()),
        }
        dynamo.replace_investment(item)
        return success(data=_public(item))
    except (HTTPException, FinanceTrackerError):
        raise
    except Exception as e:
        logger.error(f"Update investment error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server error updating investment")


@router.delete("/{investment_id}")
def delete_investment(investment_id: str, user_id: str = Depends(get_current_user_id)) -> Dict:
    if not dynamo.delete_investment(user_id, investment_id):
        raise NotFoundError("Investment")
    logger.info(f"Deleted investment {investment_id} for user {user_id}")
    return success(data={}, message="Investment deleted successfully")
