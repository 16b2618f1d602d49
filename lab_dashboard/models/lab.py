"""Diş laboratuvarı veri modelleri - veri deposundan okunan satırların projeksiyonları."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from lab_dashboard.metrics.aggregation import parse_timestamp, to_number


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    COLLECTED = "collected"
    VOID = "void"


class CaseStage(str, Enum):
    SUBMITTED = "submitted"
    POURING_SCAN = "pouring_scan"
    DESIGN = "design"
    WAITING_FOR_CONFIRMATION = "waiting_for_confirmation"
    TRYIN_PRINTING = "tryin_printing"
    TRYIN_READY_TO_DELIVER = "tryin_ready_to_deliver"
    TRYIN_DELIVERED = "tryin_delivered"
    SINTRING = "sintring"
    STAIN_GLAZE = "stain_glaze"
    FINAL_READY_TO_DELIVER = "final_ready_to_deliver"
    FINAL_DELIVERED = "final_delivered"


# Eski iş akışından kalan ve veride hâlâ görülen aşamalar
LEGACY_STAGES = ("new", "in_progress", "printing", "delivered", "completed", "hold", "cancelled")

WORKFLOW_STAGES = tuple(stage.value for stage in CaseStage)

# Vakalar ekranı: son iki aşama tamamlanmış sayılır, öncesi aktif
CASES_ACTIVE_STAGES = WORKFLOW_STAGES[:9]
CASES_COMPLETED_STAGES = (
    CaseStage.FINAL_READY_TO_DELIVER.value,
    CaseStage.FINAL_DELIVERED.value,
)

# Dashboard ekranı eski aşama isimleriyle çalışır. İki küme bilerek birleştirilmedi.
DASHBOARD_COMPLETED_STAGES = ("delivered", "completed")
DASHBOARD_CLOSED_STAGES = ("delivered", "completed", "cancelled")

STAGE_LABELS: dict[str, str] = {
    "submitted": "Submitted",
    "pouring_scan": "Pouring/Scan",
    "design": "Design",
    "waiting_for_confirmation": "Waiting for Confirmation",
    "tryin_printing": "Try-in Printing",
    "tryin_ready_to_deliver": "Try-in Ready to Deliver",
    "tryin_delivered": "Try-in Delivered",
    "sintring": "Sintering",
    "stain_glaze": "Stain & Glaze",
    "final_ready_to_deliver": "Final Ready to Deliver",
    "final_delivered": "Final Delivered",
}


def stage_label(stage: Optional[str]) -> str:
    """Aşamanın görünen adını döndürür; bilinmeyenler için snake_case -> Title Case."""
    if not stage:
        return ""
    if stage in STAGE_LABELS:
        return STAGE_LABELS[stage]
    return " ".join(word.capitalize() for word in stage.split("_"))


def _nested(row: Mapping, key: str) -> Optional[Mapping]:
    value = row.get(key)
    # PostgREST bire-çok join'lerde liste döndürebilir
    if isinstance(value, list):
        value = value[0] if value else None
    return value if isinstance(value, Mapping) else None


@dataclass
class Doctor:
    id: Optional[str]
    full_name: str = ""
    clinic_name: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping) -> Doctor:
        return cls(
            id=row.get("id"),
            full_name=row.get("full_name") or "",
            clinic_name=row.get("clinic_name"),
        )


@dataclass
class Case:
    id: Optional[str]
    case_code: str = ""
    patient_name: str = ""
    stage: str = ""
    due_date: Optional[datetime] = None
    doctor_id: Optional[str] = None
    total_amount: float = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    doctor: Optional[Doctor] = None

    @classmethod
    def from_row(cls, row: Mapping) -> Case:
        doctor_row = _nested(row, "doctors")
        return cls(
            id=row.get("id"),
            case_code=row.get("case_code") or "",
            patient_name=row.get("patient_name") or "",
            stage=row.get("stage") or "",
            due_date=parse_timestamp(row.get("due_date")),
            doctor_id=row.get("doctor_id") or (doctor_row or {}).get("id"),
            total_amount=to_number(row.get("total_amount")),
            created_at=parse_timestamp(row.get("created_at")),
            updated_at=parse_timestamp(row.get("updated_at")),
            doctor=Doctor.from_row(doctor_row) if doctor_row else None,
        )

    @property
    def stage_label(self) -> str:
        return stage_label(self.stage)

    @property
    def doctor_name(self) -> Optional[str]:
        return self.doctor.full_name if self.doctor else None


@dataclass
class Invoice:
    id: Optional[str]
    total_egp: float = 0
    status: str = InvoiceStatus.PENDING.value
    issued_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    case_id: Optional[str] = None
    pdf_url: Optional[str] = None
    case: Optional[Case] = None

    @classmethod
    def from_row(cls, row: Mapping) -> Invoice:
        case_row = _nested(row, "cases")
        return cls(
            id=row.get("id"),
            total_egp=to_number(row.get("total_egp")),
            status=row.get("status") or InvoiceStatus.PENDING.value,
            issued_at=parse_timestamp(row.get("issued_at")),
            updated_at=parse_timestamp(row.get("updated_at")),
            case_id=row.get("case_id"),
            pdf_url=row.get("pdf_url"),
            case=Case.from_row(case_row) if case_row else None,
        )

    @property
    def doctor(self) -> Optional[Doctor]:
        return self.case.doctor if self.case else None


@dataclass
class Expense:
    amount_egp: float = 0
    expense_date: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping) -> Expense:
        return cls(
            amount_egp=to_number(row.get("amount_egp")),
            expense_date=parse_timestamp(row.get("expense_date")),
        )


@dataclass
class StockMove:
    quantity: float = 0

    @classmethod
    def from_row(cls, row: Mapping) -> StockMove:
        return cls(quantity=to_number(row.get("quantity")))


@dataclass
class Variant:
    id: Optional[str]
    name: str = ""
    stock_moves: list[StockMove] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Mapping) -> Variant:
        return cls(
            id=row.get("id"),
            name=row.get("name") or row.get("sku") or "",
            stock_moves=[StockMove.from_row(m) for m in row.get("inv_stock_moves") or []],
        )


@dataclass
class Product:
    id: Optional[str]
    name: str = ""
    category: str = ""
    brand: Optional[str] = None
    variants: list[Variant] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Mapping) -> Product:
        return cls(
            id=row.get("id"),
            name=row.get("name") or "",
            category=row.get("category") or "",
            brand=row.get("brand"),
            variants=[Variant.from_row(v) for v in row.get("inv_variants") or []],
        )


# --- Görünüm sonuçları ---

@dataclass
class DashboardMetrics:
    revenue: float = 0
    costs: float = 0
    profit: float = 0
    outstanding: float = 0
    active_cases: int = 0
    late_cases: int = 0
    delivered_month: int = 0
    avg_turnaround: float = 0.0


@dataclass
class FinanceMetrics:
    total_revenue: float = 0
    outstanding: float = 0
    collected_month: float = 0
    expenses_month: float = 0


@dataclass
class CaseStats:
    total: int = 0
    active: int = 0
    completed: int = 0
    late: int = 0


@dataclass
class ProductStock:
    product_id: Optional[str]
    name: str
    category: str
    brand: Optional[str]
    variant_count: int
    total_stock: float
    is_low: bool


@dataclass
class DoctorStats:
    doctor: Doctor
    total_cases: int = 0
    total_revenue: float = 0


def rows_to(model: Any, rows: list[Mapping]) -> list[Any]:
    """Satır listesini verilen modelin listesine çevirir."""
    return [model.from_row(row) for row in rows]
