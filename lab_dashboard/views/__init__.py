from lab_dashboard.views.base_view import BaseView
from lab_dashboard.views.cases import CasesView
from lab_dashboard.views.dashboard import DashboardView
from lab_dashboard.views.doctors import DoctorsView
from lab_dashboard.views.finance import FinanceView
from lab_dashboard.views.inventory import InventoryView

__all__ = [
    "BaseView",
    "CasesView",
    "DashboardView",
    "DoctorsView",
    "FinanceView",
    "InventoryView",
]
