from datetime import datetime, timezone

import pytest

from app.utils.portfolio import (
    investment_analytics,
    performance_stats,
    portfolio_summary,
    position_metrics,
)

NOW = datetime(2025, 11, 15, tzinfo=timezone.utc)


def inv(investment_id, symbol, type_, invested, current, date="2025-06-01T00:00:00"):
    return {
        "investment_id": investment_id,
        "symbol": symbol,
        "type": type_,
        "amount_invested": invested,
        "current_value": current,
        "date": date,
    }


positions = [
    inv("1", "AAPL", "stock", 1000, 1250),
    inv("2", "TSLA", "stock", 2000, 1500, date="2025-07-10T00:00:00"),
    inv("3", "BTC", "crypto", 500, 1000, date="2025-07-20T00:00:00"),
    inv("4", "ETH", "crypto", 400, 400, date="2023-01-01T00:00:00"),
    inv("5", "AAPL", "stock", 500, 550),
    inv("6", "FREE", "crypto", 0, 50),
]


@pytest.mark.parametrize(
    "invested, current, profit_loss, percentage, status",
    [
        (1000, 1250, 250, 25.0, "profit"),
        (2000, 1500, -500, -25.0, "loss"),
        (400, 400, 0, 0.0, "neutral"),
        (0, 50, 50, 0.0, "profit"),
    ],
)
def test_position_metrics(invested, current, profit_loss, percentage, status):
    metrics = position_metrics(invested, current)
    assert metrics.profit_loss == profit_loss
    assert metrics.profit_loss_percentage == pytest.approx(percentage)
    assert metrics.status == status


def test_portfolio_summary_by_type_and_overall():
    summary = portfolio_summary(positions)

    by_type = {row["type"]: row for row in summary["byType"]}
    assert by_type["stock"]["count"] == 3
    assert by_type["stock"]["totalInvested"] == 3500
    assert by_type["stock"]["totalCurrentValue"] == 3300
    assert by_type["stock"]["profitLoss"] == -200
    assert by_type["stock"]["profitLossPercentage"] == pytest.approx(-200 / 3500 * 100)
    assert by_type["crypto"]["profitLoss"] == 550

    overall = summary["overall"]
    assert overall["totalCount"] == 6
    assert overall["totalInvested"] == 4400
    assert overall["totalCurrentValue"] == 4750
    assert overall["profitLoss"] == 350
    assert overall["profitLossPercentage"] == pytest.approx(350 / 4400 * 100)


def test_empty_portfolio():
    summary = portfolio_summary([])
    assert summary["byType"] == []
    assert summary["overall"] == {
        "totalCount": 0,
        "totalInvested": 0,
        "totalCurrentValue": 0,
        "profitLoss": 0,
        "profitLossPercentage": 0,
    }


def test_investment_analytics():
    result = investment_analytics(positions, NOW, top_n=2)

    assert [p["symbol"] for p in result["topPerformers"]] == ["BTC", "AAPL"]
    assert [p["symbol"] for p in result["worstPerformers"]] == ["TSLA", "ETH"]
    assert result["topPerformers"][0]["profitLossPercentage"] == pytest.approx(100.0)

    distribution = result["symbolDistribution"]
    assert [row["symbol"] for row in distribution] == ["AAPL", "TSLA", "BTC", "ETH", "FREE"]
    assert distribution[0]["count"] == 2
    assert distribution[0]["totalCurrentValue"] == 1800

    # ETH (2023) is outside the trailing twelve months
    assert [(row["year"], row["month"]) for row in result["monthlyTrend"]] == [(2025, 6), (2025, 7)]
    assert result["monthlyTrend"][1]["count"] == 2
    assert result["monthlyTrend"][1]["profitLoss"] == 0

    stats = result["performanceStats"]
    assert stats["totalInvestments"] == 6
    assert stats["profitableInvestments"] == 4
    assert stats["lossMakingInvestments"] == 1
    assert stats["maxProfitLossPercentage"] == pytest.approx(100.0)
    assert stats["minProfitLossPercentage"] == pytest.approx(-25.0)
    assert stats["profitablePercentage"] == pytest.approx(4 / 6 * 100)


def test_performance_stats_empty():
    stats = performance_stats([])
    assert stats["totalInvestments"] == 0
    assert stats["averageProfitLossPercentage"] == 0
    assert stats["profitablePercentage"] == 0
