"""API routes."""

from agency_erp.api.routes.ads_reports import router as ads_reports_router
from agency_erp.api.routes.clients import router as clients_router
from agency_erp.api.routes.developers import router as developers_router
from agency_erp.api.routes.finances import router as finances_router
from agency_erp.api.routes.health import router as health_router
from agency_erp.api.routes.invoices import router as invoices_router
from agency_erp.api.routes.leads import router as leads_router
from agency_erp.api.routes.outbox import router as outbox_router
from agency_erp.api.routes.projects import router as projects_router

__all__ = [
    "ads_reports_router",
    "clients_router",
    "developers_router",
    "finances_router",
    "health_router",
    "invoices_router",
    "leads_router",
    "outbox_router",
    "projects_router",
]
