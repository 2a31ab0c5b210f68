from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from app.utils.analyzer import camel_dict

WARNING_THRESHOLD = 80
EXCEEDED_THRESHOLD = 100


@dataclass
class BudgetProgress:
    limit: float
    spent: float
    remaining: float
    percentage: float
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return camel_dict(self)


def progress_status(percentage: float) -> str:
    if percentage >= EXCEEDED_THRESHOLD:
        return "exceeded"
    if percentage >= WARNING_THRESHOLD:
        return "warning"
    return "on-track"


def compute_progress(limit: float, spent: float) -> BudgetProgress:
    """Progress of ``spent`` against ``limit``; the status uses the unrounded percentage."""
    limit = float(limit)
    spent = round(float(spent), 2)
    percentage = (spent / limit) * 100 if limit > 0 else 0.0
    return BudgetProgress(
        limit=limit,
        spent=spent,
        remaining=round(max(0.0, limit - spent), 2),
        percentage=round(percentage, 2),
        status=progress_status(percentage),
    )


def sum_expenses(transactions: Iterable[Dict[str, Any]]) -> float:
    return sum(float(t.get("amount", 0)) for t in transactions if t.get("type") == "expense")


def summarize_budgets(entries: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Roll per-budget progress entries (id, category, period + progress fields)
    into status counts and totals. Entries come back sorted by percentage, highest first.
    """
    counts = {"on-track": 0, "warning": 0, "exceeded": 0}
    total_limit = 0.0
    total_spent = 0.0
    for entry in entries:
        counts[entry["status"]] += 1
        total_limit += entry["limit"]
        total_spent += entry["spent"]

    overall = round((total_spent / total_limit) * 100, 2) if total_limit > 0 else 0
    return {
        "summary": {
            "totalBudgets": len(entries),
            "onTrackBudgets": counts["on-track"],
            "warningBudgets": counts["warning"],
            "exceededBudgets": counts["exceeded"],
            "totalBudgetAmount": round(total_limit, 2),
            "totalSpentAmount": round(total_spent, 2),
            "overallPercentage": overall,
        },
        "budgetProgress": sorted(entries, key=lambda e: e["percentage"], reverse=True),
    }
