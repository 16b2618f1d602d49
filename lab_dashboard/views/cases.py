"""Vakalar görünümü - filtrelenmiş vaka listesi ve aktif/tamamlanan/geciken sayaçları."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from lab_dashboard.data import queries
from lab_dashboard.data.rest_client import RestClient
from lab_dashboard.metrics.aggregation import count_where, get_field, is_late
from lab_dashboard.models.lab import (
    CASES_ACTIVE_STAGES,
    CASES_COMPLETED_STAGES,
    Case,
    CaseStats,
    Doctor,
    rows_to,
)
from lab_dashboard.views.base_view import BaseView

logger = logging.getLogger(__name__)


@dataclass
class CasesOverview:
    stats: CaseStats
    cases: list[Case] = field(default_factory=list)
    doctors: list[Doctor] = field(default_factory=list)


def compute_case_stats(cases: list, now: datetime) -> CaseStats:
    """Yüklenen vakalardan sayaçları türetir."""
    return CaseStats(
        total=len(cases),
        active=count_where(cases, lambda c: get_field(c, "stage") in CASES_ACTIVE_STAGES),
        completed=count_where(cases, lambda c: get_field(c, "stage") in CASES_COMPLETED_STAGES),
        late=count_where(
            cases,
            lambda c: is_late(get_field(c, "due_date"), get_field(c, "stage"), CASES_COMPLETED_STAGES, now),
        ),
    )


class CasesView(BaseView):
    """Vaka takip ekranı."""

    def __init__(self, client: Optional[RestClient] = None, **kwargs: Any):
        super().__init__(view_name="CasesView", client=client, **kwargs)

    def load(
        self,
        now: datetime,
        stage: Optional[str] = None,
        doctor_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> CasesOverview:
        client = self.client
        filters = queries.CaseFilters(stage=stage, doctor_id=doctor_id, search=search)

        results = self.gather({
            "cases": lambda: queries.list_cases(client, filters),
            "doctors": lambda: queries.list_doctors(client),
        })

        stats = compute_case_stats(results["cases"], now)
        logger.info(
            "Vakalar yüklendi: toplam=%d, aktif=%d, geciken=%d",
            stats.total, stats.active, stats.late,
        )
        return CasesOverview(
            stats=stats,
            cases=rows_to(Case, results["cases"]),
            doctors=rows_to(Doctor, results["doctors"]),
        )
