"""Doktor rehberi görünümü - doktor başına vaka sayısı ve ciro."""

from __future__ import annotations

import logging
from typing import Any, Optional

from lab_dashboard.data import queries
from lab_dashboard.data.rest_client import RestClient
from lab_dashboard.metrics.aggregation import get_field, sum_field
from lab_dashboard.models.lab import Doctor, DoctorStats
from lab_dashboard.views.base_view import BaseView

logger = logging.getLogger(__name__)


def compute_doctor_stats(doctors: list, cases: list) -> list[DoctorStats]:
    """Her doktor için vaka sayısı ve vakaların total_amount toplamı."""
    stats = []
    for row in doctors:
        doctor = row if isinstance(row, Doctor) else Doctor.from_row(row)
        own_cases = [c for c in cases if get_field(c, "doctor_id") == doctor.id]
        stats.append(
            DoctorStats(
                doctor=doctor,
                total_cases=len(own_cases),
                total_revenue=sum_field(own_cases, "total_amount"),
            )
        )
    return stats


class DoctorsView(BaseView):
    """Doktor rehberi ekranı."""

    def __init__(self, client: Optional[RestClient] = None, **kwargs: Any):
        super().__init__(view_name="DoctorsView", client=client, **kwargs)

    def load(self) -> list[DoctorStats]:
        client = self.client
        results = self.gather({
            "doctors": lambda: queries.all_doctors(client),
            "cases": lambda: queries.case_amounts(client),
        })
        stats = compute_doctor_stats(results["doctors"], results["cases"])
        logger.info("Doktor rehberi yüklendi: %d doktor", len(stats))
        return stats
