from datetime import datetime, timezone

import pytest

from app.utils.analyzer import FinanceAnalyzer

NOW = datetime(2025, 11, 15, 12, 0, tzinfo=timezone.utc)


def txn(amount, type_, category, date, method="Cash", borrow_or_lend="none", settlement="pending"):
    return {
        "amount": amount,
        "type": type_,
        "category": category,
        "payment_method": method,
        "borrow_or_lend": borrow_or_lend,
        "settlement_status": settlement,
        "date": date,
    }


sample_transactions = [
    txn(250.0, "expense", "Food", "2025-11-01T12:00:00"),
    txn(1000.0, "expense", "Bills", "2025-11-02T12:00:00", method="Net Banking"),
    txn(150.5, "expense", "Food", "2025-11-03T12:00:00", method="UPI"),
    txn(3000.0, "income", "Salary", "2025-11-01T09:00:00", method="Net Banking"),
    txn(40.0, "income", "Food", "2025-10-20T09:00:00"),
    txn(500.0, "expense", "Other", "2025-10-05T12:00:00", borrow_or_lend="lend", settlement="pending"),
    txn(200.0, "income", "Other", "2025-09-05T12:00:00", borrow_or_lend="lend", settlement="settled"),
    txn(75.0, "income", "Other", "2025-08-05T12:00:00", borrow_or_lend="borrow"),
]


def test_summary_totals():
    analyzer = FinanceAnalyzer()
    summary = analyzer.summary(sample_transactions)
    assert summary["totalIncome"] == 3315.0
    assert summary["totalExpense"] == 1900.5
    assert summary["netAmount"] == 1414.5
    assert summary["totalTransactions"] == 8


def test_category_breakdown_sorted_by_expense_and_consistent_with_total():
    analyzer = FinanceAnalyzer()
    breakdown = analyzer.category_breakdown(sample_transactions)

    assert [row["category"] for row in breakdown] == ["Bills", "Other", "Food", "Salary"]
    food = next(row for row in breakdown if row["category"] == "Food")
    assert food == {
        "category": "Food",
        "income": 40.0,
        "expense": 400.5,
        "net": -360.5,
        "totalTransactions": 3,
    }
    total_expense = analyzer.summary(sample_transactions)["totalExpense"]
    assert round(sum(row["expense"] for row in breakdown), 2) == total_expense


def test_total_expense_matches_category_rows_to_the_cent():
    analyzer = FinanceAnalyzer()
    transactions = [
        txn(0.1, "expense", "Food", "2025-11-01T12:00:00"),
        txn(0.2, "expense", "Travel", "2025-11-02T12:00:00"),
        txn(0.7, "expense", "Food", "2025-11-03T12:00:00"),
    ]
    summary = analyzer.summary(transactions)
    breakdown = analyzer.category_breakdown(transactions)

    assert summary["totalExpense"] == 1.0
    assert [row["expense"] for row in breakdown] == [0.8, 0.2]
    assert round(sum(row["expense"] for row in breakdown), 2) == summary["totalExpense"]


def test_borrow_lend_summary_excludes_none():
    analyzer = FinanceAnalyzer()
    result = analyzer.borrow_lend_summary(sample_transactions)
    assert result == [
        {"type": "borrow", "pending": 75.0, "settled": 0.0, "total": 75.0, "totalTransactions": 1},
        {"type": "lend", "pending": 500.0, "settled": 200.0, "total": 700.0, "totalTransactions": 2},
    ]


def test_payment_method_distribution_sorted_descending():
    analyzer = FinanceAnalyzer()
    result = analyzer.payment_method_distribution(sample_transactions)
    assert [row["method"] for row in result] == ["Net Banking", "Cash", "UPI"]
    assert result[0] == {"method": "Net Banking", "total": 4000.0, "count": 2}


def test_monthly_trend_is_chronological_and_windowed():
    analyzer = FinanceAnalyzer(trend_months=12)
    transactions = sample_transactions + [
        txn(999.0, "expense", "Food", "2024-11-30T23:59:59"),  # before the window
        txn(10.0, "expense", "Food", "2024-12-01T00:00:00"),  # first day of the window
        txn(5.0, "expense", "Food", "2025-11-20T00:00:00"),  # after "now"
    ]
    trend = analyzer.monthly_trend(transactions, NOW)

    assert [(row["year"], row["month"]) for row in trend] == [
        (2024, 12), (2025, 8), (2025, 9), (2025, 10), (2025, 11),
    ]
    assert trend[0]["expense"] == 10.0
    assert trend[-1] == {"year": 2025, "month": 11, "income": 3000.0, "expense": 1400.5, "net": 1599.5}


def test_analyze_empty():
    analyzer = FinanceAnalyzer()
    result = analyzer.analyze([], NOW)
    assert result["summary"] == {
        "totalIncome": 0,
        "totalExpense": 0,
        "netAmount": 0,
        "totalTransactions": 0,
    }
    assert result["categoryBreakdown"] == []
    assert result["borrowLendSummary"] == []
    assert result["paymentMethodDistribution"] == []
    assert result["monthlyTrend"] == []
