"""Dashboard ekranlarının kullandığı sorgular.

Her fonksiyon bir satır listesi döndürür (eşleşme yoksa boş liste). Hatalar
FetchError olarak yukarı iletilir; boş koleksiyona çevirme işi görünüm katmanındadır.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from lab_dashboard.data.rest_client import RestClient, quote_reserved
from lab_dashboard.metrics.aggregation import get_field
from lab_dashboard.models.lab import InvoiceStatus

PAGE_LIMIT = 50
LATE_CASES_LIMIT = 10

VOID = InvoiceStatus.VOID.value


@dataclass
class InvoiceFilters:
    status: Optional[str] = None
    doctor_id: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


@dataclass
class CaseFilters:
    stage: Optional[str] = None
    doctor_id: Optional[str] = None
    search: Optional[str] = None


def _iso(moment: datetime) -> str:
    return moment.isoformat()


def _filter_by_doctor(rows: list[dict], path: str, doctor_id: Optional[str]) -> list[dict]:
    # İç içe join üzerinden sunucu tarafı filtre kurulamadığı için istemcide süzülür
    if not doctor_id:
        return rows
    return [row for row in rows if get_field(row, path) == doctor_id]


# --- Fatura sorguları ---

def revenue_invoices(client: RestClient, start: datetime, end: datetime) -> list[dict]:
    """Aralıkta kesilmiş, void olmayan faturalar."""
    return (
        client.table("invoices")
        .select("total_egp, issued_at")
        .neq("status", VOID)
        .gte("issued_at", _iso(start))
        .lte("issued_at", _iso(end))
        .execute()
    )


def all_revenue_invoices(client: RestClient) -> list[dict]:
    return client.table("invoices").select("total_egp").neq("status", VOID).execute()


def pending_invoices(client: RestClient) -> list[dict]:
    return (
        client.table("invoices")
        .select("total_egp")
        .eq("status", InvoiceStatus.PENDING.value)
        .execute()
    )


def collected_invoices(client: RestClient, start: datetime, end: datetime) -> list[dict]:
    """Aralıkta tahsil edilmiş (paid/collected) faturalar."""
    return (
        client.table("invoices")
        .select("total_egp, updated_at")
        .in_("status", [InvoiceStatus.PAID.value, InvoiceStatus.COLLECTED.value])
        .gte("updated_at", _iso(start))
        .lte("updated_at", _iso(end))
        .execute()
    )


def revenue_trend_invoices(client: RestClient, since: datetime) -> list[dict]:
    return (
        client.table("invoices")
        .select("issued_at, total_egp")
        .neq("status", VOID)
        .gte("issued_at", _iso(since))
        .order("issued_at")
        .execute()
    )


def collection_invoices(client: RestClient) -> list[dict]:
    return (
        client.table("invoices")
        .select("status, total_egp")
        .in_("status", [
            InvoiceStatus.PENDING.value,
            InvoiceStatus.PAID.value,
            InvoiceStatus.COLLECTED.value,
        ])
        .execute()
    )


def doctor_revenue_invoices(client: RestClient) -> list[dict]:
    return (
        client.table("invoices")
        .select("""
            total_egp,
            cases (
                doctors ( full_name )
            )
        """)
        .neq("status", VOID)
        .execute()
    )


def list_invoices(client: RestClient, filters: Optional[InvoiceFilters] = None) -> list[dict]:
    """Fatura listesi: en yeni önce, en fazla 50 kayıt."""
    filters = filters or InvoiceFilters()
    query = (
        client.table("invoices")
        .select("""
            id,
            total_egp,
            status,
            issued_at,
            pdf_url,
            cases (
                case_code,
                patient_name,
                due_date,
                doctors ( id, full_name )
            )
        """)
        .order("issued_at", ascending=False)
    )
    if filters.status and filters.status != "all":
        query = query.eq("status", filters.status)
    if filters.start_date:
        query = query.gte("issued_at", filters.start_date)
    if filters.end_date:
        query = query.lte("issued_at", filters.end_date)

    rows = query.limit(PAGE_LIMIT).execute()
    return _filter_by_doctor(rows, "cases.doctors.id", filters.doctor_id)


# --- Gider sorguları ---

def month_expenses(client: RestClient, start: datetime, end: datetime) -> list[dict]:
    return (
        client.table("fin_expenses")
        .select("amount_egp, expense_date")
        .gte("expense_date", _iso(start))
        .lte("expense_date", _iso(end))
        .execute()
    )


# --- Vaka sorguları ---

def open_case_count(client: RestClient, closed_stages: Iterable[str]) -> int:
    return client.table("cases").select("id").not_in("stage", closed_stages).count()


def late_case_count(client: RestClient, now: datetime, closed_stages: Iterable[str]) -> int:
    return (
        client.table("cases")
        .select("id")
        .lt("due_date", _iso(now))
        .not_in("stage", closed_stages)
        .count()
    )


def delivered_case_count(
    client: RestClient, completed_stages: Iterable[str], start: datetime, end: datetime
) -> int:
    return (
        client.table("cases")
        .select("id")
        .in_("stage", completed_stages)
        .gte("updated_at", _iso(start))
        .lte("updated_at", _iso(end))
        .count()
    )


def delivered_cases(
    client: RestClient, completed_stages: Iterable[str], start: datetime, end: datetime
) -> list[dict]:
    """Aralıkta teslim edilen vakaların açılış ve son güncelleme zamanları."""
    return (
        client.table("cases")
        .select("created_at, updated_at")
        .in_("stage", completed_stages)
        .gte("updated_at", _iso(start))
        .lte("updated_at", _iso(end))
        .execute()
    )


def late_cases(
    client: RestClient,
    now: datetime,
    closed_stages: Iterable[str],
    limit: int = LATE_CASES_LIMIT,
) -> list[dict]:
    """Teslim tarihi geçmiş açık vakalar, en eski teslim tarihi önce."""
    return (
        client.table("cases")
        .select("""
            case_code,
            patient_name,
            due_date,
            stage,
            doctors ( full_name )
        """)
        .lt("due_date", _iso(now))
        .not_in("stage", closed_stages)
        .order("due_date")
        .limit(limit)
        .execute()
    )


def list_cases(client: RestClient, filters: Optional[CaseFilters] = None) -> list[dict]:
    """Vaka listesi: en yeni önce, en fazla 50 kayıt."""
    filters = filters or CaseFilters()
    query = (
        client.table("cases")
        .select("""
            *,
            doctors ( id, full_name )
        """)
        .order("created_at", ascending=False)
    )
    if filters.stage and filters.stage != "all":
        query = query.eq("stage", filters.stage)
    if filters.search:
        pattern = quote_reserved(f"*{filters.search.strip()}*")
        query = query.or_(f"patient_name.ilike.{pattern},case_code.ilike.{pattern}")

    rows = query.limit(PAGE_LIMIT).execute()
    return _filter_by_doctor(rows, "doctors.id", filters.doctor_id)


def case_amounts(client: RestClient) -> list[dict]:
    return client.table("cases").select("doctor_id, total_amount").execute()


# --- Doktor sorguları ---

def list_doctors(client: RestClient) -> list[dict]:
    return client.table("doctors").select("id, full_name").order("full_name").execute()


def all_doctors(client: RestClient) -> list[dict]:
    return client.table("doctors").select("*").execute()


# --- Stok sorguları ---

def inventory_products(client: RestClient) -> list[dict]:
    return (
        client.table("inv_products")
        .select("""
            *,
            inv_variants (
                *,
                inv_stock_moves ( quantity )
            )
        """)
        .execute()
    )
