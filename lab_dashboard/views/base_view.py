"""Tüm dashboard görünümleri için temel sınıf - veri çekme ve birleştirme."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional

from lab_dashboard.data.rest_client import FetchError, RestClient

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Any]


class BaseView(ABC):
    """Bağımsız sorguları paralel çalıştırıp sonuçları birleştiren görünüm temel sınıfı."""

    def __init__(self, view_name: str, client: Optional[RestClient] = None, max_workers: int = 6):
        self.view_name = view_name
        # REST istemcisi - dependency injection destekli
        self.client = client or RestClient.from_env()
        self.max_workers = max_workers

    def _safe_fetch(self, name: str, fetcher: Fetcher, default: Any = None) -> Any:
        """Sorguyu çalıştırır; FetchError durumunda varsayılanı (boş liste) döner."""
        empty = [] if default is None else default
        try:
            result = fetcher()
        except FetchError as e:
            logger.error("Veri çekme hatası [%s/%s]: %s", self.view_name, name, e)
            return empty
        return result if result is not None else empty

    def gather(self, fetchers: dict[str, Fetcher], defaults: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """Tüm sorguları aynı anda başlatır ve hepsi bitince sonuçları döndürür.

        Toplama işlemleri ancak bu çağrı döndükten sonra başlar. `defaults`, hata
        durumunda boş liste yerine dönecek değeri verir (sayım sorguları için 0).
        """
        defaults = defaults or {}
        if not fetchers:
            return {}
        workers = min(self.max_workers, len(fetchers))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                name: executor.submit(self._safe_fetch, name, fetcher, defaults.get(name))
                for name, fetcher in fetchers.items()
            }
            results = {name: future.result() for name, future in futures.items()}

        logger.debug(
            "%s: %s",
            self.view_name,
            ", ".join(
                f"{name}={len(value) if isinstance(value, list) else value}"
                for name, value in results.items()
            ),
        )
        return results

    @abstractmethod
    def load(self, *args: Any, **kwargs: Any) -> Any:
        """Her görünüm kendi verisini çekip toplar."""
        ...
