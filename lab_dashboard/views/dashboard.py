"""Dashboard görünümü - aylık finans kartları, vaka sayaçları, gelir trendi ve geciken vakalar."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from lab_dashboard.data import queries
from lab_dashboard.data.rest_client import RestClient
from lab_dashboard.metrics.aggregation import (
    PeriodTotal,
    average_turnaround_days,
    is_void,
    month_bounds,
    monthly_bucket,
    months_before,
    sum_field,
)
from lab_dashboard.models.lab import (
    DASHBOARD_CLOSED_STAGES,
    DASHBOARD_COMPLETED_STAGES,
    Case,
    DashboardMetrics,
    rows_to,
)
from lab_dashboard.views.base_view import BaseView

logger = logging.getLogger(__name__)

TREND_MONTHS = 6


@dataclass
class DashboardOverview:
    metrics: DashboardMetrics
    revenue_trend: list[PeriodTotal] = field(default_factory=list)
    late_cases: list[Case] = field(default_factory=list)


def revenue_trend(rows: list) -> list[PeriodTotal]:
    """Void olmayan faturaların aylık gelir serisi."""
    return monthly_bucket(
        [row for row in rows if not is_void(row)], "issued_at", "total_egp"
    )


def compute_dashboard_metrics(
    month_invoices: list,
    pending: list,
    expenses: list,
    delivered: list,
    case_counts: dict[str, int],
) -> DashboardMetrics:
    """Önceden çekilmiş satırlardan ve sunucu sayımlarından dashboard kart değerlerini hesaplar.

    `case_counts` anahtarları: active, late, delivered. Vaka sayaçları satır
    çekilerek değil, sunucudaki tam sayım ile hesaplanır.
    """
    revenue = sum_field(month_invoices, "total_egp", exclude=is_void)
    costs = sum_field(expenses, "amount_egp")
    outstanding = sum_field(pending, "total_egp", exclude=is_void)

    return DashboardMetrics(
        revenue=revenue,
        costs=costs,
        profit=revenue - costs,
        outstanding=outstanding,
        active_cases=case_counts.get("active", 0),
        late_cases=case_counts.get("late", 0),
        delivered_month=case_counts.get("delivered", 0),
        avg_turnaround=average_turnaround_days(delivered),
    )


class DashboardView(BaseView):
    """Genel bakış ekranı."""

    def __init__(self, client: Optional[RestClient] = None, **kwargs: Any):
        super().__init__(view_name="DashboardView", client=client, **kwargs)

    def load(self, now: datetime) -> DashboardOverview:
        start, end = month_bounds(now)
        client = self.client
        closed, completed = DASHBOARD_CLOSED_STAGES, DASHBOARD_COMPLETED_STAGES

        results = self.gather(
            {
                "month_invoices": lambda: queries.revenue_invoices(client, start, end),
                "pending": lambda: queries.pending_invoices(client),
                "expenses": lambda: queries.month_expenses(client, start, end),
                "active": lambda: queries.open_case_count(client, closed),
                "late_count": lambda: queries.late_case_count(client, now, closed),
                "delivered_count": lambda: queries.delivered_case_count(client, completed, start, end),
                "delivered": lambda: queries.delivered_cases(client, completed, start, end),
                "trend": lambda: queries.revenue_trend_invoices(client, months_before(now, TREND_MONTHS)),
                "late": lambda: queries.late_cases(client, now, closed),
            },
            defaults={"active": 0, "late_count": 0, "delivered_count": 0},
        )

        metrics = compute_dashboard_metrics(
            results["month_invoices"],
            results["pending"],
            results["expenses"],
            results["delivered"],
            {
                "active": results["active"],
                "late": results["late_count"],
                "delivered": results["delivered_count"],
            },
        )
        logger.info(
            "Dashboard yüklendi: gelir=%s, aktif=%d, geciken=%d",
            metrics.revenue, metrics.active_cases, metrics.late_cases,
        )
        return DashboardOverview(
            metrics=metrics,
            revenue_trend=revenue_trend(results["trend"]),
            late_cases=rows_to(Case, results["late"]),
        )
