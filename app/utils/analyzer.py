from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from pydantic.alias_generators import to_camel

from app.models.common import to_iso
from app.utils.periods import month_bucket, trend_window_start


def camel_dict(obj) -> Dict[str, Any]:
    return {to_camel(k): v for k, v in asdict(obj).items()}


@dataclass
class CategoryBreakdown:
    """Income and expense totals for a single category."""

    category: str
    income: float = 0.0
    expense: float = 0.0
    net: float = 0.0
    total_transactions: int = 0


@dataclass
class BorrowLendSummary:
    type: str
    pending: float = 0.0
    settled: float = 0.0
    total: float = 0.0
    total_transactions: int = 0


@dataclass
class MonthlyFlow:
    year: int
    month: int
    income: float = 0.0
    expense: float = 0.0
    net: float = 0.0


class FinanceAnalyzer:
    """
    Transaction analytics computed from the records of one user. Every
    method is a pure reduction over stored transaction dicts.
    """

    def __init__(self, trend_months: int = 12) -> None:
        self._trend_months = trend_months

    @staticmethod
    def _amount(txn: Dict[str, Any]) -> float:
        return float(txn.get("amount", 0))

    @staticmethod
    def _total(values: Iterable[float]) -> float:
        # exact decimal sum of amounts already rounded to cents
        return float(sum((Decimal(str(v)) for v in values), Decimal("0")))

    def summary(self, transactions: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Totals are the sums of the category rows, so both views agree to the cent."""
        rows = self.category_breakdown(transactions)
        income = self._total(row["income"] for row in rows)
        expense = self._total(row["expense"] for row in rows)
        return {
            "totalIncome": income,
            "totalExpense": expense,
            "netAmount": round(income - expense, 2),
            "totalTransactions": len(transactions),
        }

    def category_breakdown(self, transactions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        rows: Dict[str, CategoryBreakdown] = {}
        for txn in transactions:
            row = rows.setdefault(txn["category"], CategoryBreakdown(category=txn["category"]))
            if txn.get("type") == "income":
                row.income += self._amount(txn)
            elif txn.get("type") == "expense":
                row.expense += self._amount(txn)
            row.total_transactions += 1

        for row in rows.values():
            row.income = round(row.income, 2)
            row.expense = round(row.expense, 2)
            row.net = round(row.income - row.expense, 2)
        ordered = sorted(rows.values(), key=lambda r: (-r.expense, r.category))
        return [camel_dict(row) for row in ordered]

    def borrow_lend_summary(self, transactions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        rows: Dict[str, BorrowLendSummary] = {}
        for txn in transactions:
            direction = txn.get("borrow_or_lend", "none")
            if direction == "none":
                continue
            row = rows.setdefault(direction, BorrowLendSummary(type=direction))
            if txn.get("settlement_status") == "settled":
                row.settled += self._amount(txn)
            else:
                row.pending += self._amount(txn)
            row.total_transactions += 1

        for row in rows.values():
            row.pending = round(row.pending, 2)
            row.settled = round(row.settled, 2)
            row.total = round(row.pending + row.settled, 2)
        return [camel_dict(rows[key]) for key in sorted(rows)]

    def payment_method_distribution(self, transactions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        totals: Dict[str, float] = defaultdict(float)
        counts: Dict[str, int] = defaultdict(int)
        for txn in transactions:
            totals[txn["payment_method"]] += self._amount(txn)
            counts[txn["payment_method"]] += 1

        ordered = sorted(totals, key=lambda m: (-totals[m], m))
        return [
            {"method": method, "total": round(totals[method], 2), "count": counts[method]}
            for method in ordered
        ]

    def monthly_trend(self, transactions: Iterable[Dict[str, Any]], now: datetime) -> List[Dict[str, Any]]:
        """
        Income, expense and net per calendar month over the trailing window,
        oldest first. Months without records are omitted.
        """
        window_start = to_iso(trend_window_start(now, self._trend_months))
        window_end = to_iso(now)
        months: Dict[tuple, MonthlyFlow] = {}
        for txn in transactions:
            if not window_start <= txn["date"] <= window_end:
                continue
            year, month = month_bucket(txn["date"])
            row = months.setdefault((year, month), MonthlyFlow(year=year, month=month))
            if txn.get("type") == "income":
                row.income += self._amount(txn)
            elif txn.get("type") == "expense":
                row.expense += self._amount(txn)

        result = []
        for key in sorted(months):
            row = months[key]
            row.income = round(row.income, 2)
            row.expense = round(row.expense, 2)
            row.net = round(row.income - row.expense, 2)
            result.append(camel_dict(row))
        return result

    def analyze(
        self,
        transactions: List[Dict[str, Any]],
        now: datetime,
        trend_transactions: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        """
        Full analytics payload. ``trend_transactions`` lets the caller feed the
        trend from an unfiltered set while the rest honours a date range.
        """
        if trend_transactions is None:
            trend_transactions = transactions
        return {
            "summary": self.summary(transactions),
            "categoryBreakdown": self.category_breakdown(transactions),
            "borrowLendSummary": self.borrow_lend_summary(transactions),
            "paymentMethodDistribution": self.payment_method_distribution(transactions),
            "monthlyTrend": self.monthly_trend(trend_transactions, now),
        }
