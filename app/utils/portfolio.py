"""
Portfolio maths: per-position profit/loss and the aggregates behind the
portfolio summary and investment analytics endpoints.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List

from app.models.common import to_iso
from app.utils.periods import month_bucket, trend_window_start


@dataclass(frozen=True)
class PositionMetrics:
    profit_loss: float
    profit_loss_percentage: float
    status: str


def profit_loss_percentage(invested: float, current: float) -> float:
    if invested == 0:
        return 0.0
    return ((current - invested) / invested) * 100


def position_metrics(amount_invested: float, current_value: float) -> PositionMetrics:
    invested = float(amount_invested)
    current = float(current_value)
    profit_loss = current - invested
    if profit_loss > 0:
        status = "profit"
    elif profit_loss < 0:
        status = "loss"
    else:
        status = "neutral"
    return PositionMetrics(
        profit_loss=profit_loss,
        profit_loss_percentage=profit_loss_percentage(invested, current),
        status=status,
    )


def _totals(invested: float, current: float) -> Dict[str, float]:
    return {
        "totalInvested": invested,
        "totalCurrentValue": current,
        "profitLoss": current - invested,
        "profitLossPercentage": profit_loss_percentage(invested, current),
    }


def portfolio_summary(investments: List[Dict[str, Any]]) -> Dict[str, Any]:
    by_type: Dict[str, Dict[str, float]] = {}
    for inv in investments:
        group = by_type.setdefault(inv["type"], {"invested": 0.0, "current": 0.0, "count": 0})
        group["invested"] += float(inv["amount_invested"])
        group["current"] += float(inv["current_value"])
        group["count"] += 1

    invested = sum(g["invested"] for g in by_type.values())
    current = sum(g["current"] for g in by_type.values())
    return {
        "byType": [
            {"type": inv_type, "count": g["count"], **_totals(g["invested"], g["current"])}
            for inv_type, g in sorted(by_type.items())
        ],
        "overall": {"totalCount": len(investments), **_totals(invested, current)},
    }


def _performer(inv: Dict[str, Any], metrics: PositionMetrics) -> Dict[str, Any]:
    return {
        "id": inv["investment_id"],
        "symbol": inv["symbol"],
        "type": inv["type"],
        "amountInvested": inv["amount_invested"],
        "currentValue": inv["current_value"],
        "profitLoss": metrics.profit_loss,
        "profitLossPercentage": metrics.profit_loss_percentage,
    }


def symbol_distribution(investments: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    groups: Dict[str, Dict[str, Any]] = {}
    for inv in investments:
        # type of the first position seen for the symbol
        group = groups.setdefault(
            inv["symbol"], {"type": inv["type"], "invested": 0.0, "current": 0.0, "count": 0}
        )
        group["invested"] += float(inv["amount_invested"])
        group["current"] += float(inv["current_value"])
        group["count"] += 1

    rows = [
        {"symbol": symbol, "type": g["type"], "count": g["count"], **_totals(g["invested"], g["current"])}
        for symbol, g in groups.items()
    ]
    return sorted(rows, key=lambda r: (-r["totalCurrentValue"], r["symbol"]))


def monthly_trend(investments: List[Dict[str, Any]], now: datetime, months: int = 12) -> List[Dict[str, Any]]:
    window_start = to_iso(trend_window_start(now, months))
    window_end = to_iso(now)
    buckets: Dict[tuple, Dict[str, float]] = {}
    for inv in investments:
        if not window_start <= inv["date"] <= window_end:
            continue
        bucket = buckets.setdefault(month_bucket(inv["date"]), {"invested": 0.0, "current": 0.0, "count": 0})
        bucket["invested"] += float(inv["amount_invested"])
        bucket["current"] += float(inv["current_value"])
        bucket["count"] += 1

    return [
        {
            "year": year,
            "month": month,
            "totalInvested": b["invested"],
            "totalCurrentValue": b["current"],
            "count": b["count"],
            "profitLoss": b["current"] - b["invested"],
        }
        for (year, month), b in sorted(buckets.items())
    ]


def performance_stats(metrics: List[PositionMetrics]) -> Dict[str, Any]:
    if not metrics:
        return {
            "totalInvestments": 0,
            "profitableInvestments": 0,
            "lossMakingInvestments": 0,
            "averageProfitLossPercentage": 0,
            "maxProfitLossPercentage": 0,
            "minProfitLossPercentage": 0,
            "profitablePercentage": 0,
        }

    percentages = [m.profit_loss_percentage for m in metrics]
    profitable = sum(1 for m in metrics if m.profit_loss > 0)
    return {
        "totalInvestments": len(metrics),
        "profitableInvestments": profitable,
        "lossMakingInvestments": sum(1 for m in metrics if m.profit_loss < 0),
        "averageProfitLossPercentage": sum(percentages) / len(percentages),
        "maxProfitLossPercentage": max(percentages),
        "minProfitLossPercentage": min(percentages),
        "profitablePercentage": (profitable / len(metrics)) * 100,
    }


def investment_analytics(
    investments: List[Dict[str, Any]],
    now: datetime,
    trend_months: int = 12,
    top_n: int = 5,
) -> Dict[str, Any]:
    scored = [
        (inv, position_metrics(inv["amount_invested"], inv["current_value"]))
        for inv in investments
    ]
    best_first = sorted(scored, key=lambda pair: pair[1].profit_loss_percentage, reverse=True)
    worst_first = sorted(scored, key=lambda pair: pair[1].profit_loss_percentage)

    return {
        "portfolioSummary": portfolio_summary(investments),
        "topPerformers": [_performer(inv, m) for inv, m in best_first[:top_n]],
        "worstPerformers": [_performer(inv, m) for inv, m in worst_first[:top_n]],
        "symbolDistribution": symbol_distribution(investments),
        "monthlyTrend": monthly_trend(investments, now, trend_months),
        "performanceStats": performance_stats([m for _, m in scored]),
    }
