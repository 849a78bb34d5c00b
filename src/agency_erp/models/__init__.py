"""ORM models."""

from agency_erp.models.base import Base, TimestampMixin, UpdatedAtMixin
from agency_erp.models.crm import Communication, Lead, Package
from agency_erp.models.finance import AdsReport, DeveloperPaymentTracking, FinanceEntry, Invoice
from agency_erp.models.outbox import OutboxMessage
from agency_erp.models.people import Client, Profile, UserRole
from agency_erp.models.project import Project, ProjectChecklist

__all__ = [
    "Base",
    "TimestampMixin",
    "UpdatedAtMixin",
    "Profile",
    "UserRole",
    "Client",
    "Package",
    "Lead",
    "Communication",
    "Project",
    "ProjectChecklist",
    "FinanceEntry",
    "DeveloperPaymentTracking",
    "Invoice",
    "AdsReport",
    "OutboxMessage",
]
