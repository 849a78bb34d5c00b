"""Business services."""

from agency_erp.services.ads_report_service import AdsReportService, AdsSummary
from agency_erp.services.client_service import ClientService, ClientStatus
from agency_erp.services.container import Services, build_services
from agency_erp.services.fee_tracking import FeeTrackingService
from agency_erp.services.invoice_service import InvoiceService
from agency_erp.services.lead_service import LeadConversion, LeadService, LeadSource, LeadStatus
from agency_erp.services.ledger import FinanceCategory, FinanceType, LedgerService, LedgerSummary, payment_key
from agency_erp.services.outbox import DispatchSummary, NotificationKind, NotificationOutbox, OutboxStatus
from agency_erp.services.project_service import ProjectListing, ProjectService
from agency_erp.services.reconciliation import (
    DeveloperStat,
    DeveloperSummary,
    PayoutResult,
    ReconciliationEngine,
)
from agency_erp.services.results import OperationResult
from agency_erp.services.state_machine import (
    InvalidTransitionError,
    InvoiceStateMachine,
    InvoiceStatus,
    ProjectStateMachine,
    ProjectStatus,
)

__all__ = [
    "AdsReportService",
    "AdsSummary",
    "ClientService",
    "ClientStatus",
    "DeveloperStat",
    "DeveloperSummary",
    "DispatchSummary",
    "FeeTrackingService",
    "FinanceCategory",
    "FinanceType",
    "InvalidTransitionError",
    "InvoiceService",
    "InvoiceStateMachine",
    "InvoiceStatus",
    "LeadConversion",
    "LeadService",
    "LeadSource",
    "LeadStatus",
    "LedgerService",
    "LedgerSummary",
    "NotificationKind",
    "NotificationOutbox",
    "OperationResult",
    "OutboxStatus",
    "PayoutResult",
    "ProjectListing",
    "ProjectService",
    "ProjectStateMachine",
    "ProjectStatus",
    "ReconciliationEngine",
    "Services",
    "build_services",
    "payment_key",
]
