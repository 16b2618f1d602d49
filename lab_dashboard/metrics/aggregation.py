"""Metrik Toplama Modülü - Satır koleksiyonları üzerinde saf toplama fonksiyonları.

Dashboard kartları ve grafikler için gereken tüm türetilmiş değerler burada hesaplanır:
- Sayısal alan toplamları (void faturalar hariç tutularak)
- Koşula uyan satır sayıları
- Takvim ayına göre gruplanmış seriler ("Jan 2025")
- Kategori bazlı toplamlar ve top-N sıralama
- Geciken vaka tespiti ve varyant/ürün stok seviyeleri

Hiçbir fonksiyon I/O yapmaz, saat okumaz veya girdiyi değiştirmez. "Şimdi" gereken
her yerde parametre olarak verilir. Eksik veya bozuk sayısal alanlar 0 kabul edilir,
hata fırlatılmaz.
"""

from __future__ import annotations

import calendar
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional, Sequence, Union

from dateutil.parser import isoparse

logger = logging.getLogger(__name__)

# Satır alanı: "total_egp" gibi bir isim, "cases.doctors.full_name" gibi noktalı yol
# ya da satırı alıp değeri döndüren bir fonksiyon olabilir.
FieldRef = Union[str, Callable[[Any], Any]]

MONTH_ABBR = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

DEFAULT_LOW_STOCK_THRESHOLD = 10


@dataclass(frozen=True)
class PeriodTotal:
    label: str
    total: float


@dataclass(frozen=True)
class CategoryTotal:
    category: Any
    total: float


# --- Alan erişimi ve tip dönüşümleri ---

def get_field(row: Any, field: FieldRef) -> Any:
    """Satırdan alan değerini okur; mapping ve dataclass satırları desteklenir.

    Noktalı yollar iç içe join'leri takip eder. Yolun herhangi bir parçası yoksa None döner.
    """
    if callable(field):
        return field(row)
    value = row
    for part in field.split("."):
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value


def to_number(value: Any) -> Union[int, float]:
    """Değeri sayıya çevirir; eksik veya sayısal olmayan değerler 0 olur."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0
    else:
        return 0
    if math.isnan(number) or math.isinf(number):
        return 0
    return number


def parse_timestamp(value: Any) -> Optional[datetime]:
    """ISO 8601 string, date veya datetime değerini datetime'a çevirir.

    Çözümlenemeyen değerler için None döner.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return isoparse(text)
        except (ValueError, OverflowError):
            logger.debug("Tarih çözümlenemedi: %r", value)
            return None
    return None


def _comparable(a: datetime, b: datetime) -> tuple[datetime, datetime]:
    # Biri naive diğeri aware ise naive olan UTC kabul edilir
    if (a.tzinfo is None) != (b.tzinfo is None):
        if a.tzinfo is None:
            a = a.replace(tzinfo=timezone.utc)
        else:
            b = b.replace(tzinfo=timezone.utc)
    return a, b


def is_before(value: Any, moment: datetime) -> bool:
    parsed = parse_timestamp(value)
    if parsed is None:
        return False
    parsed, moment = _comparable(parsed, moment)
    return parsed < moment


def is_within(value: Any, start: datetime, end: datetime) -> bool:
    """Değer [start, end] aralığındaysa True döner."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return False
    parsed, start = _comparable(parsed, start)
    parsed, end = _comparable(parsed, end)
    return start <= parsed <= end


# --- Zaman pencereleri ---

def month_bounds(now: datetime) -> tuple[datetime, datetime]:
    """Verilen anın içinde bulunduğu ayın ilk ve son anını döndürür."""
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    last_day = calendar.monthrange(now.year, now.month)[1]
    end = now.replace(day=last_day, hour=23, minute=59, second=59, microsecond=999999)
    return start, end


def months_before(now: datetime, months: int) -> datetime:
    """now'dan `months` takvim ayı öncesini döndürür; ay sonu taşarsa gün kırpılır."""
    month_index = now.year * 12 + (now.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


def period_label(moment: datetime) -> str:
    return f"{MONTH_ABBR[moment.month - 1]} {moment.year}"


# --- Skaler toplamlar ---

def sum_field(
    rows: Iterable[Any],
    field: FieldRef,
    exclude: Optional[Callable[[Any], bool]] = None,
) -> Union[int, float]:
    """Sayısal bir alanı toplar; `exclude` koşuluna uyan satırlar atlanır."""
    total: Union[int, float] = 0
    for row in rows:
        if exclude is not None and exclude(row):
            continue
        total += to_number(get_field(row, field))
    return total


def count_where(rows: Iterable[Any], predicate: Callable[[Any], bool]) -> int:
    return sum(1 for row in rows if predicate(row))


def is_void(row: Any) -> bool:
    return get_field(row, "status") == "void"


# --- Seriler ---

def monthly_bucket(
    rows: Iterable[Any], date_field: FieldRef, value_field: FieldRef
) -> list[PeriodTotal]:
    """Satırları takvim ayına göre gruplar ve değer alanını toplar.

    Çıktı sırası her ayın girdideki ilk görülme sırasıdır, kronolojik sıralama yapılmaz.
    Tarihi çözümlenemeyen satırlar atlanır.
    """
    totals: dict[str, Union[int, float]] = {}
    for row in rows:
        moment = parse_timestamp(get_field(row, date_field))
        if moment is None:
            continue
        label = period_label(moment)
        totals[label] = totals.get(label, 0) + to_number(get_field(row, value_field))
    return [PeriodTotal(label=label, total=total) for label, total in totals.items()]


def group_by_categorical(
    rows: Iterable[Any],
    category_field: FieldRef,
    value_field: FieldRef,
    default: Any = None,
) -> list[CategoryTotal]:
    """Değer alanını kategori bazında toplar; sıra ilk görülme sırasıdır.

    Kategorisi boş olan satırlar `default` kategorisine yazılır.
    """
    totals: dict[Any, Union[int, float]] = {}
    for row in rows:
        category = get_field(row, category_field)
        if category is None or category == "":
            category = default
        totals[category] = totals.get(category, 0) + to_number(get_field(row, value_field))
    return [CategoryTotal(category=category, total=total) for category, total in totals.items()]


def top_n(grouped: Sequence[Any], n: int, by: FieldRef = "total") -> list[Any]:
    """Büyükten küçüğe sıralayıp ilk n kaydı döndürür. Eşitlikte girdi sırası korunur."""
    if n <= 0:
        return []
    ranked = sorted(grouped, key=lambda item: to_number(get_field(item, by)), reverse=True)
    return ranked[:n]


# --- Vaka durumu ---

def is_late(
    due_date: Any, stage: Optional[str], completed_stages: Iterable[str], now: datetime
) -> bool:
    """Teslim tarihi geçmiş ve tamamlanmamış vakalar için True döner."""
    if stage in set(completed_stages):
        return False
    return is_before(due_date, now)


def average_turnaround_days(cases: Iterable[Any]) -> float:
    """created_at ile updated_at arasındaki ortalama gün sayısı; vaka yoksa 0."""
    durations = []
    for case in cases:
        created = parse_timestamp(get_field(case, "created_at"))
        finished = parse_timestamp(get_field(case, "updated_at"))
        if created is None or finished is None:
            continue
        created, finished = _comparable(created, finished)
        durations.append((finished - created) / timedelta(days=1))
    if not durations:
        return 0.0
    return round(sum(durations) / len(durations), 1)


# --- Stok ---

def _stock_moves(variant: Any) -> list:
    if isinstance(variant, Mapping):
        moves = variant.get("inv_stock_moves")
        if moves is None:
            moves = variant.get("stock_moves")
    else:
        moves = getattr(variant, "stock_moves", None)
    return list(moves or [])


def _variants(product: Any) -> list:
    if isinstance(product, Mapping):
        variants = product.get("inv_variants")
        if variants is None:
            variants = product.get("variants")
    else:
        variants = getattr(product, "variants", None)
    return list(variants or [])


def stock_level(variant: Any) -> Union[int, float]:
    """Bir varyantın tüm stok hareketlerinin işaretli toplamı."""
    return sum_field(_stock_moves(variant), "quantity")


def product_stock_total(product: Any) -> Union[int, float]:
    """Ürünün tüm varyantlarındaki stok toplamı."""
    return sum(stock_level(variant) for variant in _variants(product))


def low_stock_count(
    products: Iterable[Any], threshold: int = DEFAULT_LOW_STOCK_THRESHOLD
) -> int:
    """En az bir varyantı eşiğin altında olan ürün sayısı."""
    return count_where(
        products,
        lambda product: any(stock_level(v) < threshold for v in _variants(product)),
    )
