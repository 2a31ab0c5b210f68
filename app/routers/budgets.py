import logging
from datetime import datetime
from typing import Dict, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError

from app.core.config import settings
from app.core.errors import FinanceTrackerError, NotFoundError, ValidationFailed, format_validation_errors
from app.core.security import get_current_user_id
from app.db import dynamo
from app.models.budget import BudgetCreate, BudgetProgressPublic, BudgetPublic, BudgetUpdate
from app.models.common import BudgetCategory, BudgetPeriod, success, to_iso, utcnow
from app.utils.budgets import BudgetProgress, compute_progress, sum_expenses, summarize_budgets
from app.utils.periods import period_start, resolve_timezone

router = APIRouter()
logger = logging.getLogger(__name__)


def get_progress(budget: dict, now: Optional[datetime] = None) -> BudgetProgress:
    """
    Recompute a budget's progress from the owner's expense transactions in
    the same category since the start of the current period.
    """
    now = now or utcnow()
    start = period_start(
        budget["period"],
        now,
        tz=resolve_timezone(settings.BUDGET_TIMEZONE),
        week_start=settings.WEEK_START_DAY,
    )
    expenses = dynamo.query_transactions(
        budget["user_id"],
        dynamo.build_filter_expression(
            equals={"category": budget["category"], "type": "expense"},
            date_from=start,
            date_to=now,
        ),
    )
    return compute_progress(budget["limit"], sum_expenses(expenses))


def _public(item: dict, progress: BudgetProgress) -> dict:
    return BudgetPublic.from_item(
        item, BudgetProgressPublic(**progress.to_dict())
    ).model_dump(by_alias=True)


@router.get("")
def list_budgets(
    category: Optional[BudgetCategory] = None,
    period: Optional[BudgetPeriod] = None,
    user_id: str = Depends(get_current_user_id),
) -> Dict:
    try:
        items = dynamo.query_budgets(
            user_id,
            dynamo.build_filter_expression(
                equals={
                    "category": category.value if category else None,
                    "period": period.value if period else None,
                }
            ),
        )
        items.sort(key=lambda b: (b["category"], b["period"]))
        now = utcnow()
        data = [_public(item, get_progress(item, now)) for item in items]
        return success(data=data, count=len(data))
    except (HTTPException, FinanceTrackerError):
        raise
    except Exception as e:
        logger.error(f"Get budgets error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server error fetching budgets")


@router.get("/analytics")
def budget_analytics(user_id: str = Depends(get_current_user_id)) -> Dict:
    try:
        now = utcnow()
        entries = []
        for item in dynamo.query_budgets(user_id):
            progress = get_progress(item, now)
            entries.append({
                "id": item["budget_id"],
                "category": item["category"],
                "period": item["period"],
                **progress.to_dict(),
            })
        return success(data=summarize_budgets(entries))
    except (HTTPException, FinanceTrackerError):
        raise
    except Exception as e:
        logger.error(f"Get budget analytics error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server error fetching budget analytics")


@router.get("/{budget_id}")
def get_budget(budget_id: str, user_id: str = Depends(get_current_user_id)) -> Dict:
    item = dynamo.get_budget(user_id, budget_id)
    if not item:
        raise NotFoundError("Budget")
    return success(data=_public(item, get_progress(item)))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_budget(budget: BudgetCreate, user_id: str = Depends(get_current_user_id)) -> Dict:
    try:
        now = to_iso(utcnow())
        item = {
            "user_id": user_id,
            "budget_id": uuid4().hex,
            **budget.model_dump(),
            "created_at": now,
            "updated_at": now,
        }
        dynamo.create_budget(item)
        logger.info(f"Created budget {item['budget_id']} ({item['category']}/{item['period']}) for user {user_id}")
        return success(data=_public(item, get_progress(item)))
    except (HTTPException, FinanceTrackerError):
        raise
    except Exception as e:
        logger.error(f"Create budget error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server error creating budget")


@router.put("/{budget_id}")
def update_budget(
    budget_id: str,
    budget_update: BudgetUpdate,
    user_id: str = Depends(get_current_user_id),
) -> Dict:
    existing = dynamo.get_budget(user_id, budget_id)
    if not existing:
        raise NotFoundError("Budget")

    merged = {name: existing[name] for name in BudgetCreate.model_fields if name in existing}
    merged.update(budget_update.model_dump(exclude_unset=True))
    try:
        validated = BudgetCreate.model_validate(merged)
    except ValidationError as e:
        raise ValidationFailed(format_validation_errors(e.errors()))

    try:
        item = {
            **existing,
            **validated.model_dump(),
            "updated_at": to_iso(utcnow()),
        }
        dynamo.update_budget(existing, item)
        return success(data=_public(item, get_progress(item)))
    except (HTTPException, FinanceTrackerError):
        raise
    except Exception as e:
        logger.error(f"Update budget error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server error updating budget")


@router.delete("/{budget_id}")
def delete_budget(budget_id: str, user_id: str = Depends(get_current_user_id)) -> Dict:
    existing = dynamo.get_budget(user_id, budget_id)
    if not existing:
        raise NotFoundError("Budget")
    dynamo.delete_budget(existing)
    logger.info(f"Deleted budget {budget_id} for user {user_id}")
    return success(data={}, message="Budget deleted successfully")
