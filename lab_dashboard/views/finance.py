"""Finans görünümü - gelir, alacak, tahsilat ve gider kartları ile fatura listesi ve grafikler."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from lab_dashboard.data import queries
from lab_dashboard.data.rest_client import RestClient
from lab_dashboard.metrics.aggregation import (
    CategoryTotal,
    PeriodTotal,
    group_by_categorical,
    is_void,
    month_bounds,
    months_before,
    sum_field,
    top_n,
)
from lab_dashboard.models.lab import Doctor, FinanceMetrics, Invoice, rows_to
from lab_dashboard.views.base_view import BaseView
from lab_dashboard.views.dashboard import TREND_MONTHS, revenue_trend

logger = logging.getLogger(__name__)

TOP_DOCTORS = 10
UNKNOWN_DOCTOR = "Unknown"


@dataclass
class FinanceOverview:
    metrics: FinanceMetrics
    invoices: list[Invoice] = field(default_factory=list)
    revenue_trend: list[PeriodTotal] = field(default_factory=list)
    collection_rate: list[CategoryTotal] = field(default_factory=list)
    revenue_by_doctor: list[CategoryTotal] = field(default_factory=list)
    doctors: list[Doctor] = field(default_factory=list)


def compute_finance_metrics(
    revenue_rows: list, pending: list, collected: list, expenses: list
) -> FinanceMetrics:
    return FinanceMetrics(
        total_revenue=sum_field(revenue_rows, "total_egp", exclude=is_void),
        outstanding=sum_field(pending, "total_egp", exclude=is_void),
        collected_month=sum_field(collected, "total_egp", exclude=is_void),
        expenses_month=sum_field(expenses, "amount_egp"),
    )


def collection_rate(rows: list) -> list[CategoryTotal]:
    """Fatura durumuna göre tutar dağılımı (pasta grafik)."""
    return group_by_categorical([r for r in rows if not is_void(r)], "status", "total_egp")


def revenue_by_doctor(rows: list, limit: int = TOP_DOCTORS) -> list[CategoryTotal]:
    """Doktor bazında gelir; en yüksek `limit` doktor."""
    grouped = group_by_categorical(
        [r for r in rows if not is_void(r)],
        "cases.doctors.full_name",
        "total_egp",
        default=UNKNOWN_DOCTOR,
    )
    return top_n(grouped, limit)


class FinanceView(BaseView):
    """Finans ekranı."""

    def __init__(self, client: Optional[RestClient] = None, **kwargs: Any):
        super().__init__(view_name="FinanceView", client=client, **kwargs)

    def load(
        self,
        now: datetime,
        status: Optional[str] = None,
        doctor_id: Optional[str] = None,
    ) -> FinanceOverview:
        start, end = month_bounds(now)
        client = self.client
        filters = queries.InvoiceFilters(status=status, doctor_id=doctor_id)

        results = self.gather({
            "revenue": lambda: queries.all_revenue_invoices(client),
            "pending": lambda: queries.pending_invoices(client),
            "collected": lambda: queries.collected_invoices(client, start, end),
            "expenses": lambda: queries.month_expenses(client, start, end),
            "invoices": lambda: queries.list_invoices(client, filters),
            "trend": lambda: queries.revenue_trend_invoices(client, months_before(now, TREND_MONTHS)),
            "collection": lambda: queries.collection_invoices(client),
            "by_doctor": lambda: queries.doctor_revenue_invoices(client),
            "doctors": lambda: queries.list_doctors(client),
        })

        metrics = compute_finance_metrics(
            results["revenue"], results["pending"], results["collected"], results["expenses"]
        )
        logger.info(
            "Finans yüklendi: toplam gelir=%s, alacak=%s, fatura=%d",
            metrics.total_revenue, metrics.outstanding, len(results["invoices"]),
        )
        return FinanceOverview(
            metrics=metrics,
            invoices=rows_to(Invoice, results["invoices"]),
            revenue_trend=revenue_trend(results["trend"]),
            collection_rate=collection_rate(results["collection"]),
            revenue_by_doctor=revenue_by_doctor(results["by_doctor"]),
            doctors=rows_to(Doctor, results["doctors"]),
        )
