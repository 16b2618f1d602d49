"""Lab Dashboard MCP sunucusu unit testleri."""

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from lab_dashboard.data import queries
from lab_dashboard.metrics.aggregation import PeriodTotal
from mcp_servers import lab_dashboard_server as server

NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def client(monkeypatch):
    fake = MagicMock()
    monkeypatch.setattr(server, "_CLIENT", fake)
    return fake


class TestSerialization:
    def test_dataclasses_and_dates(self):
        data = server._to_json({"trend": [PeriodTotal("Jan 2025", 150)], "at": NOW})
        assert data == {"trend": [{"label": "Jan 2025", "total": 150}], "at": "2025-03-15T12:00:00+00:00"}

    def test_result_is_json_text(self):
        content = server._result({"success": True})
        assert json.loads(content[0].text) == {"success": True}


class TestTools:
    def test_missing_config_reported(self, monkeypatch):
        monkeypatch.setattr(server, "_CLIENT", None)
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
        result = server.get_inventory()
        assert result["success"] is False
        assert "SUPABASE_URL" in result["error"]

    def test_get_inventory(self, client):
        products = [{"id": "p1", "name": "Zirconia", "inv_variants": [
            {"id": "v1", "inv_stock_moves": [{"quantity": 5}]},
        ]}]
        with patch.object(queries, "inventory_products", return_value=products):
            result = server.get_inventory()
        assert result["success"] is True
        assert result["low_stock"] == 1
        assert result["products"][0]["total_stock"] == 5

    def test_list_cases_adds_stage_label(self, client):
        rows = [{"id": "c1", "stage": "stain_glaze", "due_date": "2025-03-20"}]
        with patch.object(queries, "list_cases", return_value=rows), \
                patch.object(queries, "list_doctors", return_value=[]):
            result = server.list_cases(now=NOW)
        assert result["cases"][0]["stage_label"] == "Stain & Glaze"
        assert result["cases"][0]["due_date"] == "2025-03-20T00:00:00"
        assert result["stats"]["active"] == 1

    def test_doctor_directory(self, client):
        with patch.object(queries, "all_doctors", return_value=[{"id": "d1", "full_name": "Dr. A"}]), \
                patch.object(queries, "case_amounts", return_value=[{"doctor_id": "d1", "total_amount": 200}]):
            result = server.get_doctor_directory()
        assert result["doctors"][0]["total_revenue"] == 200
        assert result["doctors"][0]["doctor"]["full_name"] == "Dr. A"
