"""REST istemcisi unit testleri."""

import json

import pytest
import urllib3
from unittest.mock import MagicMock

from lab_dashboard.data.rest_client import (
    DEFAULT_TIMEOUT,
    ConfigError,
    FetchError,
    RestClient,
    quote_reserved,
)

BASE_URL = "https://lab.supabase.co"


def _response(status: int = 200, body=None, headers=None) -> MagicMock:
    response = MagicMock()
    response.status = status
    response.data = json.dumps(body).encode("utf-8") if body is not None else b""
    response.headers = headers or {}
    return response


def _create_client(response=None) -> RestClient:
    http = MagicMock()
    http.request.return_value = response or _response(body=[])
    return RestClient(BASE_URL + "/", "anon-key", http=http)


class TestConfiguration:
    def test_missing_settings_raise(self):
        with pytest.raises(ConfigError):
            RestClient("", "key", http=MagicMock())

    def test_from_env_missing(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
        with pytest.raises(ConfigError, match="SUPABASE_URL"):
            RestClient.from_env(http=MagicMock())

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", BASE_URL)
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")
        client = RestClient.from_env(http=MagicMock())
        assert client.rest_url == BASE_URL + "/rest/v1"

    def test_timeout_from_env(self, monkeypatch):
        monkeypatch.setenv("LAB_DASHBOARD_TIMEOUT", "3.5")
        assert RestClient(BASE_URL, "key", http=MagicMock()).timeout == 3.5

    def test_malformed_timeout_falls_back(self, monkeypatch):
        monkeypatch.setenv("LAB_DASHBOARD_TIMEOUT", "ten seconds")
        assert RestClient(BASE_URL, "key", http=MagicMock()).timeout == DEFAULT_TIMEOUT

    def test_explicit_timeout_wins(self, monkeypatch):
        monkeypatch.setenv("LAB_DASHBOARD_TIMEOUT", "3.5")
        assert RestClient(BASE_URL, "key", http=MagicMock(), timeout=1).timeout == 1


class TestQueryBuilder:
    def test_filters_in_call_order(self):
        client = _create_client()
        query = (
            client.table("invoices")
            .select("total_egp, issued_at")
            .neq("status", "void")
            .gte("issued_at", "2025-01-01T00:00:00")
            .order("issued_at", ascending=False)
            .limit(50)
        )
        assert query.params() == [
            ("select", "total_egp,issued_at"),
            ("status", "neq.void"),
            ("issued_at", "gte.2025-01-01T00:00:00"),
            ("order", "issued_at.desc"),
            ("limit", "50"),
        ]

    def test_select_strips_whitespace_in_joins(self):
        query = _create_client().table("cases").select("""
            case_code,
            doctors ( full_name )
        """)
        assert query.params() == [("select", "case_code,doctors(full_name)")]

    def test_in_and_not_in_lists(self):
        query = (
            _create_client().table("cases")
            .in_("stage", ["delivered", "completed"])
            .not_in("stage", ["on hold", "a,b"])
        )
        assert query.params()[1:] == [
            ("stage", "in.(delivered,completed)"),
            ("stage", 'not.in.("on hold","a,b")'),
        ]

    def test_or_and_ilike(self):
        query = (
            _create_client().table("cases")
            .or_("patient_name.ilike.*mona*,case_code.ilike.*mona*")
            .ilike("case_code", "DL*")
        )
        assert ("or", "(patient_name.ilike.*mona*,case_code.ilike.*mona*)") in query.params()
        assert ("case_code", "ilike.DL*") in query.params()


    def test_quote_reserved(self):
        assert quote_reserved("*mona*") == "*mona*"
        assert quote_reserved("*Smith (2)*") == '"*Smith (2)*"'
        assert quote_reserved('say "hi"') == '"say \\"hi\\""'


class TestExecute:
    def test_returns_rows_and_sends_auth_headers(self):
        rows = [{"total_egp": 100}, {"total_egp": 50}]
        client = _create_client(_response(body=rows))

        result = client.table("invoices").select("total_egp").eq("status", "pending").execute()

        assert result == rows
        args, kwargs = client.http.request.call_args
        assert args == ("GET", BASE_URL + "/rest/v1/invoices")
        assert kwargs["fields"] == [("select", "total_egp"), ("status", "eq.pending")]
        assert kwargs["headers"]["apikey"] == "anon-key"
        assert kwargs["headers"]["Authorization"] == "Bearer anon-key"

    def test_null_body_is_empty_list(self):
        client = _create_client(_response(body=None))
        assert client.table("doctors").execute() == []

    def test_http_error_raises_fetch_error(self):
        client = _create_client(_response(401, {"message": "Invalid API key"}))
        with pytest.raises(FetchError, match="Invalid API key") as excinfo:
            client.table("cases").execute()
        assert excinfo.value.status == 401
        assert excinfo.value.table == "cases"

    def test_transport_error_raises_fetch_error(self):
        client = _create_client()
        client.http.request.side_effect = urllib3.exceptions.HTTPError("connection refused")
        with pytest.raises(FetchError):
            client.table("cases").execute()

    def test_invalid_json_raises_fetch_error(self):
        response = _response()
        response.data = b"<html>"
        client = _create_client(response)
        with pytest.raises(FetchError):
            client.table("cases").execute()

    def test_non_list_body_raises_fetch_error(self):
        client = _create_client(_response(body={"unexpected": True}))
        with pytest.raises(FetchError):
            client.table("cases").execute()


class TestCount:
    def test_count_from_content_range(self):
        client = _create_client(_response(headers={"Content-Range": "0-24/573"}))
        assert client.table("cases").select("*").count() == 573
        args, kwargs = client.http.request.call_args
        assert args[0] == "HEAD"
        assert kwargs["headers"]["Prefer"] == "count=exact"

    def test_empty_count(self):
        client = _create_client(_response(headers={"Content-Range": "*/0"}))
        assert client.table("cases").count() == 0

    def test_missing_content_range_raises(self):
        client = _create_client(_response())
        with pytest.raises(FetchError):
            client.table("cases").count()

    def test_ping(self):
        client = _create_client(_response(200))
        assert client.ping() == 200
        args, _ = client.http.request.call_args
        assert args == ("GET", BASE_URL + "/rest/v1/")
