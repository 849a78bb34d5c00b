"""Wiring of the service graph around one data store and notifier."""

from __future__ import annotations

from dataclasses import dataclass

from agency_erp.config import Settings
from agency_erp.identity import StoreIdentityProvider
from agency_erp.notifier.base import Notifier
from agency_erp.services.ads_report_service import AdsReportService
from agency_erp.services.client_service import ClientService
from agency_erp.services.fee_tracking import FeeTrackingService
from agency_erp.services.invoice_service import InvoiceService
from agency_erp.services.lead_service import LeadService
from agency_erp.services.ledger import LedgerService
from agency_erp.services.outbox import NotificationOutbox
from agency_erp.services.project_service import DEFAULT_ARCHIVE_THRESHOLD_DAYS, ProjectService
from agency_erp.services.reconciliation import ReconciliationEngine
from agency_erp.store.base import DataStore


@dataclass
class Services:
    """All services sharing one store."""

    store: DataStore
    identity: StoreIdentityProvider
    ledger: LedgerService
    fee_tracking: FeeTrackingService
    outbox: NotificationOutbox
    reconciliation: ReconciliationEngine
    clients: ClientService
    leads: LeadService
    projects: ProjectService
    invoices: InvoiceService
    ads_reports: AdsReportService


def build_services(
    store: DataStore,
    notifier: Notifier,
    settings: Settings | None = None,
) -> Services:
    archive_days = settings.archive_threshold_days if settings else DEFAULT_ARCHIVE_THRESHOLD_DAYS
    max_attempts = settings.outbox_max_attempts if settings else 5

    ledger = LedgerService(store)
    fee_tracking = FeeTrackingService(store)
    outbox = NotificationOutbox(store, notifier, max_attempts=max_attempts)
    projects = ProjectService(store, fee_tracking, outbox, archive_threshold_days=archive_days)
    return Services(
        store=store,
        identity=StoreIdentityProvider(store),
        ledger=ledger,
        fee_tracking=fee_tracking,
        outbox=outbox,
        reconciliation=ReconciliationEngine(store, ledger, fee_tracking),
        clients=ClientService(store),
        leads=LeadService(store, projects),
        projects=projects,
        invoices=InvoiceService(store, ledger, outbox),
        ads_reports=AdsReportService(store, ledger),
    )
