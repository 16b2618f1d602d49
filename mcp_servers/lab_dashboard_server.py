"""
Lab Dashboard MCP Server

Provides tools for the dental lab dashboard: overview cards, finance, case tracking,
inventory and the doctor directory. Data comes from the hosted Postgres REST API
(SUPABASE_URL / SUPABASE_ANON_KEY) and is aggregated client-side.
"""

import json
import logging
import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
import env_loader

from dataclasses import asdict, is_dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional
from mcp.server import Server
from mcp.types import Tool, TextContent

from lab_dashboard.data.rest_client import ConfigError, RestClient
from lab_dashboard.views import CasesView, DashboardView, DoctorsView, FinanceView, InventoryView

logger = logging.getLogger(__name__)

app = Server("lab-dashboard")

# REST istemcisi ilk kullanimda olusturulur
_CLIENT: Optional[RestClient] = None


def _get_client() -> RestClient:
    global _CLIENT
    if _CLIENT is None:
        _CLIENT = RestClient.from_env()
    return _CLIENT


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_json(obj):
    """Dataclass, datetime ve Decimal tiplerini JSON serializable yapar."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return _to_json(asdict(obj))
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return int(obj) if obj == int(obj) else float(obj)
    if isinstance(obj, dict):
        return {k: _to_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_to_json(i) for i in obj]
    return obj


def _result(data):
    return [TextContent(type="text", text=json.dumps(_to_json(data), indent=2, ensure_ascii=False))]


@app.list_tools()
async def list_tools() -> List[Tool]:
    return [
        Tool(name="get_dashboard_overview",
             description="Monthly revenue/costs/profit, outstanding invoices, case counters, 6-month revenue trend and late cases",
             inputSchema={"type": "object", "properties": {}}),
        Tool(name="get_finance_overview",
             description="Finance cards, latest invoices, revenue trend, collection rate and top doctors by revenue",
             inputSchema={"type": "object", "properties": {
                 "status": {"type": "string", "description": "Optional: pending, paid, collected, void or all"},
                 "doctor_id": {"type": "string", "description": "Optional: filter invoices by doctor"}
             }}),
        Tool(name="list_cases", description="Latest cases with active/completed/late counters",
             inputSchema={"type": "object", "properties": {
                 "stage": {"type": "string", "description": "Optional: workflow stage or all"},
                 "doctor_id": {"type": "string", "description": "Optional"},
                 "search": {"type": "string", "description": "Optional: patient name or case code"}
             }}),
        Tool(name="get_inventory", description="Stock level per product and low stock count",
             inputSchema={"type": "object", "properties": {}}),
        Tool(name="get_doctor_directory", description="Doctors with total cases and total case revenue",
             inputSchema={"type": "object", "properties": {}}),
    ]


@app.call_tool()
async def call_tool(name: str, arguments: dict) -> List[TextContent]:
    handlers = {
        "get_dashboard_overview": lambda a: get_dashboard_overview(),
        "get_finance_overview": lambda a: get_finance_overview(a.get("status"), a.get("doctor_id")),
        "list_cases": lambda a: list_cases(a.get("stage"), a.get("doctor_id"), a.get("search")),
        "get_inventory": lambda a: get_inventory(),
        "get_doctor_directory": lambda a: get_doctor_directory(),
    }
    handler = handlers.get(name)
    if not handler:
        raise ValueError(f"Unknown tool: {name}")
    return _result(handler(arguments or {}))


# --- Implementation ---

def get_dashboard_overview(now: Optional[datetime] = None) -> Dict:
    try:
        overview = DashboardView(client=_get_client()).load(now or _now())
        return {"success": True, **_to_json(overview)}
    except ConfigError as e:
        return {"success": False, "error": str(e)}


def get_finance_overview(status: Optional[str] = None, doctor_id: Optional[str] = None,
                         now: Optional[datetime] = None) -> Dict:
    try:
        overview = FinanceView(client=_get_client()).load(now or _now(), status=status, doctor_id=doctor_id)
        return {"success": True, **_to_json(overview)}
    except ConfigError as e:
        return {"success": False, "error": str(e)}


def list_cases(stage: Optional[str] = None, doctor_id: Optional[str] = None, search: Optional[str] = None,
               now: Optional[datetime] = None) -> Dict:
    try:
        overview = CasesView(client=_get_client()).load(now or _now(), stage=stage, doctor_id=doctor_id, search=search)
        data = _to_json(overview)
        # Gorunen asama adini da ekle
        for case, row in zip(overview.cases, data["cases"]):
            row["stage_label"] = case.stage_label
        return {"success": True, **data}
    except ConfigError as e:
        return {"success": False, "error": str(e)}


def get_inventory() -> Dict:
    try:
        overview = InventoryView(client=_get_client()).load()
        return {"success": True, **_to_json(overview)}
    except ConfigError as e:
        return {"success": False, "error": str(e)}


def get_doctor_directory() -> Dict:
    try:
        stats = DoctorsView(client=_get_client()).load()
        return {"success": True, "doctors": _to_json(stats)}
    except ConfigError as e:
        return {"success": False, "error": str(e)}


if __name__ == "__main__":
    import asyncio
    from mcp.server.stdio import stdio_server

    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"), stream=sys.stderr)

    async def run():
        async with stdio_server() as (read, write):
            await app.run(read, write, app.create_initialization_options())

    asyncio.run(run())
