"""Dashboard sorguları unit testleri."""

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

from lab_dashboard.data import queries
from lab_dashboard.data.rest_client import RestClient
from lab_dashboard.models.lab import DASHBOARD_CLOSED_STAGES, DASHBOARD_COMPLETED_STAGES

NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


def _create_client(rows=None, content_range="") -> RestClient:
    response = MagicMock()
    response.status = 200
    response.data = json.dumps(rows or []).encode("utf-8")
    response.headers = {"Content-Range": content_range} if content_range else {}
    http = MagicMock()
    http.request.return_value = response
    return RestClient("https://lab.supabase.co", "anon-key", http=http)


def _sent(client: RestClient) -> tuple[str, list]:
    args, kwargs = client.http.request.call_args
    return args[1].rsplit("/", 1)[-1], kwargs["fields"]


class TestInvoiceQueries:
    def test_revenue_invoices_excludes_void_in_window(self):
        client = _create_client()
        start = datetime(2025, 3, 1, tzinfo=timezone.utc)
        queries.revenue_invoices(client, start, NOW)
        table, fields = _sent(client)
        assert table == "invoices"
        assert ("status", "neq.void") in fields
        assert ("issued_at", "gte.2025-03-01T00:00:00+00:00") in fields
        assert ("issued_at", "lte.2025-03-15T12:00:00+00:00") in fields

    def test_collected_invoices_statuses(self):
        client = _create_client()
        queries.collected_invoices(client, NOW, NOW)
        _, fields = _sent(client)
        assert ("status", "in.(paid,collected)") in fields

    def test_list_invoices_filters(self):
        client = _create_client()
        queries.list_invoices(client, queries.InvoiceFilters(status="pending", start_date="2025-01-01"))
        _, fields = _sent(client)
        assert ("status", "eq.pending") in fields
        assert ("issued_at", "gte.2025-01-01") in fields
        assert ("order", "issued_at.desc") in fields
        assert ("limit", "50") in fields

    def test_list_invoices_all_status_not_filtered(self):
        client = _create_client()
        queries.list_invoices(client, queries.InvoiceFilters(status="all"))
        _, fields = _sent(client)
        assert all(key != "status" for key, _ in fields)

    def test_list_invoices_doctor_filter_client_side(self):
        rows = [
            {"id": "i1", "cases": {"doctors": {"id": "d1"}}},
            {"id": "i2", "cases": {"doctors": {"id": "d2"}}},
            {"id": "i3", "cases": None},
        ]
        client = _create_client(rows)
        result = queries.list_invoices(client, queries.InvoiceFilters(doctor_id="d1"))
        assert [r["id"] for r in result] == ["i1"]


class TestCaseQueries:
    def test_late_cases(self):
        client = _create_client()
        queries.late_cases(client, NOW, DASHBOARD_CLOSED_STAGES)
        table, fields = _sent(client)
        assert table == "cases"
        assert ("due_date", "lt.2025-03-15T12:00:00+00:00") in fields
        assert ("stage", "not.in.(delivered,completed,cancelled)") in fields
        assert ("order", "due_date.asc") in fields
        assert ("limit", "10") in fields

    def test_list_cases_search_and_stage(self):
        client = _create_client()
        queries.list_cases(client, queries.CaseFilters(stage="design", search="mona"))
        _, fields = _sent(client)
        assert ("stage", "eq.design") in fields
        assert ("or", "(patient_name.ilike.*mona*,case_code.ilike.*mona*)") in fields
        assert ("order", "created_at.desc") in fields

    def test_list_cases_search_with_reserved_characters(self):
        client = _create_client()
        queries.list_cases(client, queries.CaseFilters(search=" Smith (2), jr "))
        _, fields = _sent(client)
        assert ("or", '(patient_name.ilike."*Smith (2), jr*",case_code.ilike."*Smith (2), jr*")') in fields

    def test_open_case_count_uses_exact_count(self):
        client = _create_client(content_range="*/1500")
        assert queries.open_case_count(client, DASHBOARD_CLOSED_STAGES) == 1500
        args, kwargs = client.http.request.call_args
        assert args[0] == "HEAD"
        assert kwargs["headers"]["Prefer"] == "count=exact"
        assert ("stage", "not.in.(delivered,completed,cancelled)") in kwargs["fields"]

    def test_late_case_count_uses_injected_now(self):
        client = _create_client(content_range="0-0/7")
        assert queries.late_case_count(client, NOW, DASHBOARD_CLOSED_STAGES) == 7
        _, fields = _sent(client)
        assert ("due_date", "lt.2025-03-15T12:00:00+00:00") in fields
        assert ("stage", "not.in.(delivered,completed,cancelled)") in fields

    def test_delivered_count_and_rows_share_filters(self):
        start = datetime(2025, 3, 1, tzinfo=timezone.utc)
        expected = [
            ("stage", "in.(delivered,completed)"),
            ("updated_at", "gte.2025-03-01T00:00:00+00:00"),
            ("updated_at", "lte.2025-03-15T12:00:00+00:00"),
        ]
        client = _create_client(content_range="*/3")
        assert queries.delivered_case_count(client, DASHBOARD_COMPLETED_STAGES, start, NOW) == 3
        assert _sent(client)[1][1:] == expected

        client = _create_client([{"created_at": "2025-03-01", "updated_at": "2025-03-02"}])
        rows = queries.delivered_cases(client, DASHBOARD_COMPLETED_STAGES, start, NOW)
        assert len(rows) == 1
        assert _sent(client)[1] == [("select", "created_at,updated_at")] + expected

    def test_list_cases_doctor_filter(self):
        rows = [{"id": "c1", "doctors": {"id": "d1"}}, {"id": "c2", "doctors": {"id": "d2"}}]
        client = _create_client(rows)
        result = queries.list_cases(client, queries.CaseFilters(doctor_id="d2"))
        assert [r["id"] for r in result] == ["c2"]

    def test_list_cases_without_filters_returns_rows(self):
        rows = [{"id": "c1"}]
        assert queries.list_cases(_create_client(rows)) == rows


class TestOtherQueries:
    def test_expenses_window(self):
        client = _create_client()
        queries.month_expenses(client, NOW, NOW)
        table, fields = _sent(client)
        assert table == "fin_expenses"
        assert fields[0] == ("select", "amount_egp,expense_date")

    def test_inventory_nested_select(self):
        client = _create_client()
        queries.inventory_products(client)
        table, fields = _sent(client)
        assert table == "inv_products"
        assert fields == [("select", "*,inv_variants(*,inv_stock_moves(quantity))")]

    def test_doctors_ordered_by_name(self):
        client = _create_client()
        queries.list_doctors(client)
        _, fields = _sent(client)
        assert ("order", "full_name.asc") in fields
