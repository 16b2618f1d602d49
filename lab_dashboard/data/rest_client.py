"""Barındırılan Postgres'in otomatik REST API'si (PostgREST) için ince istemci.

Sorgular, barındırılan istemcinin zincirleme builder'ına benzer şekilde kurulur:

    client.table("invoices").select("total_egp").neq("status", "void").execute()

HTTP katmanı urllib3 PoolManager'dır ve testlerde dışarıdan verilebilir.
Taşıma hataları, 4xx/5xx yanıtlar ve çözümlenemeyen gövdeler FetchError olarak fırlatılır.
Yeniden deneme yapılmaz.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Callable, Iterable, Optional

import urllib3

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

# in.(...) listelerinde ve or=(...) ifadelerinde tırnak gerektiren karakterler
_RESERVED = set(',()"\\: ')


class DashboardError(Exception):
    """Dashboard katmanı hatalarının temel sınıfı."""


class ConfigError(DashboardError):
    """Bağlantı ayarları eksik veya geçersiz."""


class FetchError(DashboardError):
    """Veri deposu sorgusu başarısız (ağ, yetki veya sorgu hatası)."""

    def __init__(self, message: str, status: Optional[int] = None, table: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.table = table


def env_number(name: str, default: Any, cast: Callable[[str], Any] = float) -> Any:
    """Sayısal ortam ayarını okur; boş veya geçersizse uyarı verip varsayılana döner."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Geçersiz %s değeri %r, varsayılan kullanılıyor: %s", name, raw, default)
        return default


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def quote_reserved(text: str) -> str:
    """Ayırıcı karakter içeren değeri çift tırnağa alır (in.(...) ve or=(...) içinde)."""
    if any(ch in _RESERVED for ch in text):
        return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return text


def _format_list(values: Iterable[Any]) -> str:
    return "(" + ",".join(quote_reserved(_format_value(value)) for value in values) + ")"


class Query:
    """Tek bir tablo için zincirlenebilir sorgu."""

    def __init__(self, client: RestClient, table: str):
        self.client = client
        self.table = table
        self._select = "*"
        self._filters: list[tuple[str, str]] = []
        self._order: list[str] = []
        self._limit: Optional[int] = None

    def select(self, columns: str = "*") -> Query:
        # Join tanımlarındaki boşluk ve satır sonları atılır
        self._select = "".join(columns.split())
        return self

    def _filter(self, column: str, operator: str, value: Any) -> Query:
        self._filters.append((column, f"{operator}.{value}"))
        return self

    def eq(self, column: str, value: Any) -> Query:
        return self._filter(column, "eq", _format_value(value))

    def neq(self, column: str, value: Any) -> Query:
        return self._filter(column, "neq", _format_value(value))

    def gt(self, column: str, value: Any) -> Query:
        return self._filter(column, "gt", _format_value(value))

    def gte(self, column: str, value: Any) -> Query:
        return self._filter(column, "gte", _format_value(value))

    def lt(self, column: str, value: Any) -> Query:
        return self._filter(column, "lt", _format_value(value))

    def lte(self, column: str, value: Any) -> Query:
        return self._filter(column, "lte", _format_value(value))

    def in_(self, column: str, values: Iterable[Any]) -> Query:
        return self._filter(column, "in", _format_list(values))

    def not_in(self, column: str, values: Iterable[Any]) -> Query:
        return self._filter(column, "not.in", _format_list(values))

    def ilike(self, column: str, pattern: str) -> Query:
        return self._filter(column, "ilike", pattern)

    def or_(self, expression: str) -> Query:
        self._filters.append(("or", f"({expression})"))
        return self

    def order(self, column: str, ascending: bool = True) -> Query:
        self._order.append(f"{column}.{'asc' if ascending else 'desc'}")
        return self

    def limit(self, count: int) -> Query:
        self._limit = count
        return self

    def params(self) -> list[tuple[str, str]]:
        """URL query parametrelerini sırasıyla döndürür."""
        params = [("select", self._select)]
        params.extend(self._filters)
        if self._order:
            params.append(("order", ",".join(self._order)))
        if self._limit is not None:
            params.append(("limit", str(self._limit)))
        return params

    def execute(self) -> list[dict]:
        return self.client.execute(self)

    def count(self) -> int:
        return self.client.count(self)


class RestClient:
    """PostgREST uç noktası için urllib3 tabanlı istemci."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        http: Optional[Any] = None,
        timeout: Optional[float] = None,
    ):
        if not base_url or not api_key:
            raise ConfigError("REST URL ve API anahtarı zorunludur")
        if timeout is None:
            timeout = env_number("LAB_DASHBOARD_TIMEOUT", DEFAULT_TIMEOUT)
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        # HTTP istemcisi - dependency injection destekli
        self.http = http or urllib3.PoolManager(
            timeout=urllib3.Timeout(total=timeout),
            retries=False,
        )

    @classmethod
    def from_env(cls, **kwargs: Any) -> RestClient:
        """SUPABASE_URL ve SUPABASE_ANON_KEY ortam değişkenlerinden istemci oluşturur."""
        url = os.environ.get("SUPABASE_URL", "")
        key = os.environ.get("SUPABASE_ANON_KEY", "")
        missing = [name for name, value in (("SUPABASE_URL", url), ("SUPABASE_ANON_KEY", key)) if not value]
        if missing:
            raise ConfigError("Eksik ortam değişkenleri: " + ", ".join(missing))
        return cls(url, key, **kwargs)

    @property
    def rest_url(self) -> str:
        return f"{self.base_url}/rest/v1"

    def table(self, name: str) -> Query:
        return Query(self, name)

    def _headers(self, extra: Optional[dict] = None) -> dict:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    def _request(self, method: str, path: str, fields: Optional[list] = None, headers: Optional[dict] = None, table: Optional[str] = None) -> Any:
        url = f"{self.rest_url}/{path}" if path else f"{self.rest_url}/"
        try:
            response = self.http.request(method, url, fields=fields, headers=self._headers(headers))
        except urllib3.exceptions.HTTPError as e:
            logger.error("REST isteği başarısız [%s]: %s", table or url, e)
            raise FetchError(str(e), table=table) from e

        if response.status >= 400:
            message = self._error_message(response)
            logger.error("REST hatası [%s] %s: %s", table or url, response.status, message)
            raise FetchError(message, status=response.status, table=table)
        return response

    @staticmethod
    def _error_message(response: Any) -> str:
        try:
            body = json.loads(response.data.decode("utf-8"))
        except (ValueError, UnicodeDecodeError, AttributeError):
            return f"HTTP {response.status}"
        if isinstance(body, dict):
            return body.get("message") or body.get("error") or f"HTTP {response.status}"
        return f"HTTP {response.status}"

    def ping(self) -> int:
        """REST kök uç noktasına istek atar, HTTP durum kodunu döndürür."""
        return self._request("GET", "").status

    def execute(self, query: Query) -> list[dict]:
        """Sorguyu çalıştırır ve satır listesini döndürür."""
        response = self._request("GET", query.table, fields=query.params(), table=query.table)
        try:
            rows = json.loads(response.data.decode("utf-8") or "[]")
        except (ValueError, UnicodeDecodeError) as e:
            raise FetchError(f"Yanıt çözümlenemedi: {e}", status=response.status, table=query.table) from e
        if rows is None:
            return []
        if not isinstance(rows, list):
            raise FetchError("Beklenmeyen yanıt biçimi", status=response.status, table=query.table)
        logger.debug("%s: %d satır", query.table, len(rows))
        return rows

    def count(self, query: Query) -> int:
        """Sorguya uyan satır sayısını (Content-Range) döndürür."""
        response = self._request(
            "HEAD",
            query.table,
            fields=query.params(),
            headers={"Prefer": "count=exact"},
            table=query.table,
        )
        content_range = response.headers.get("Content-Range", "")
        # Biçim: "0-24/573" veya "*/0"
        _, _, total = content_range.partition("/")
        try:
            return int(total)
        except ValueError as e:
            raise FetchError(f"Content-Range çözümlenemedi: {content_range!r}", table=query.table) from e
