"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Common
# ============================================================================


class ErrorResponse(BaseModel):
    """Error response schema."""

    detail: str
    code: str
    saved: dict[str, Any] | None = None


class RowModel(BaseModel):
    """Base for rows read back from the data store."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")


class StatusChange(BaseModel):
    """Request to move an entity to another status."""

    status: str


# ============================================================================
# Client and lead schemas
# ============================================================================


class ClientCreate(BaseModel):
    nama: str = Field(min_length=1)
    bisnis: str | None = None
    email: str | None = None
    phone: str | None = None
    whatsapp: str | None = None
    alamat: str | None = None
    status: str | None = None
    catatan: str | None = None
    renewal_date: date | None = None


class ClientUpdate(BaseModel):
    """Only sent fields are changed."""

    nama: str | None = Field(default=None, min_length=1)
    bisnis: str | None = None
    email: str | None = None
    phone: str | None = None
    whatsapp: str | None = None
    alamat: str | None = None
    status: str | None = None
    catatan: str | None = None
    renewal_date: date | None = None


class ClientResponse(RowModel):
    id: UUID
    nama: str
    bisnis: str | None = None
    email: str | None = None
    phone: str | None = None
    whatsapp: str | None = None
    alamat: str | None = None
    status: str | None = None
    catatan: str | None = None
    renewal_date: date | None = None
    created_by: UUID | None = None
    created_at: datetime | None = None


class CommunicationCreate(BaseModel):
    notes: str = Field(min_length=1)
    subject: str | None = None
    follow_up_date: date | None = None


class CommunicationResponse(RowModel):
    id: UUID
    client_id: UUID
    subject: str | None = None
    notes: str
    follow_up_date: date | None = None
    created_by: UUID | None = None
    created_at: datetime | None = None


class LeadCreate(BaseModel):
    nama: str = Field(min_length=1)
    kontak: str = Field(min_length=1)
    sumber: str
    status: str | None = None
    catatan: str | None = None


class LeadUpdate(BaseModel):
    nama: str | None = Field(default=None, min_length=1)
    kontak: str | None = Field(default=None, min_length=1)
    sumber: str | None = None
    status: str | None = None
    catatan: str | None = None


class LeadResponse(RowModel):
    id: UUID
    nama: str
    kontak: str
    sumber: str
    status: str
    catatan: str | None = None
    client_id: UUID | None = None
    converted_at: datetime | None = None
    created_by: UUID | None = None
    created_at: datetime | None = None


class LeadConvertRequest(BaseModel):
    """Price of the first project; the package is optional."""

    harga: Decimal
    package_id: UUID | None = None


# ============================================================================
# Project schemas
# ============================================================================


class ProjectCreate(BaseModel):
    """Schema for creating a project."""

    client_id: UUID
    nama_proyek: str = Field(min_length=1)
    package_id: UUID | None = None
    harga: Decimal = Decimal("0")
    ruang_lingkup: str | None = None
    developer_id: UUID | None = None
    fee_developer: Decimal | None = None
    status: str | None = None
    tanggal_mulai: date | None = None
    tanggal_selesai: date | None = None
    estimasi_hari: int | None = Field(default=None, ge=0)


class ProjectUpdate(BaseModel):
    """Schema for editing a project. Only sent fields are changed."""

    client_id: UUID | None = None
    nama_proyek: str | None = Field(default=None, min_length=1)
    package_id: UUID | None = None
    harga: Decimal | None = None
    ruang_lingkup: str | None = None
    developer_id: UUID | None = None
    fee_developer: Decimal | None = None
    status: str | None = None
    tanggal_mulai: date | None = None
    tanggal_selesai: date | None = None
    estimasi_hari: int | None = Field(default=None, ge=0)


class ProjectResponse(RowModel):
    """Schema for project response."""

    id: UUID
    client_id: UUID
    package_id: UUID | None = None
    nama_proyek: str
    harga: Decimal
    ruang_lingkup: str | None = None
    developer_id: UUID | None = None
    fee_developer: Decimal | None = None
    status: str
    is_archived: bool
    progress: int
    tanggal_mulai: date | None = None
    tanggal_selesai: date | None = None
    estimasi_hari: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProjectResult(BaseModel):
    """Project write result with secondary-effect warnings."""

    data: ProjectResponse
    warnings: list[str] = Field(default_factory=list)


class ProjectListResponse(BaseModel):
    """Active board and archive."""

    active: list[ProjectResponse]
    archive: list[ProjectResponse]


class ArchiveRequest(BaseModel):
    archived: bool


class ChecklistCreate(BaseModel):
    title: str = Field(min_length=1)


class ChecklistToggle(BaseModel):
    """Omit is_done to flip the current value."""

    is_done: bool | None = None


class ChecklistItemResponse(RowModel):
    id: UUID
    project_id: UUID
    title: str
    is_done: bool
    updated_by: UUID | None = None
    created_at: datetime | None = None


# ============================================================================
# Invoice schemas
# ============================================================================


class InvoiceCreate(BaseModel):
    """Schema for creating an invoice. The number is generated when omitted."""

    project_id: UUID
    amount: Decimal
    invoice_number: str | None = None
    tanggal_terbit: date | None = None
    jatuh_tempo: date | None = None


class InvoiceUpdate(BaseModel):
    project_id: UUID | None = None
    amount: Decimal | None = None
    invoice_number: str | None = None
    tanggal_terbit: date | None = None
    jatuh_tempo: date | None = None


class InvoiceResponse(RowModel):
    """Schema for invoice response."""

    id: UUID
    project_id: UUID
    invoice_number: str
    amount: Decimal
    status: str
    tanggal_terbit: date | None = None
    jatuh_tempo: date | None = None
    paid_at: datetime | None = None
    created_by: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class InvoiceResult(BaseModel):
    data: InvoiceResponse
    warnings: list[str] = Field(default_factory=list)


# ============================================================================
# Finance schemas
# ============================================================================


class FinanceEntryCreate(BaseModel):
    """Manual ledger entry."""

    tipe: str
    kategori: str
    nominal: Decimal
    tanggal: date
    keterangan: str | None = None


class FinanceEntryResponse(RowModel):
    id: UUID
    tipe: str
    kategori: str
    nominal: Decimal
    keterangan: str | None = None
    tanggal: date
    invoice_id: UUID | None = None
    developer_id: UUID | None = None
    created_by: UUID | None = None
    created_at: datetime | None = None


class LedgerSummaryResponse(BaseModel):
    total_income: Decimal
    total_expense: Decimal
    balance: Decimal
    pph_final: Decimal
    entry_count: int


# ============================================================================
# Developer fee schemas
# ============================================================================


class DeveloperStatResponse(BaseModel):
    developer_id: UUID
    full_name: str
    pending_fee: Decimal
    total_lifetime_earned: Decimal
    total_lifetime_paid: Decimal
    unpaid_balance: Decimal
    active_projects_count: int
    completed_projects_count: int


class DeveloperTotals(BaseModel):
    pending: Decimal
    unpaid: Decimal
    paid: Decimal


class DeveloperStatsResponse(BaseModel):
    developers: list[DeveloperStatResponse]
    totals: DeveloperTotals


class PayoutResponse(BaseModel):
    developer_id: UUID
    status: str
    amount: Decimal
    message: str
    entry_id: UUID | None = None


# ============================================================================
# Ads report schemas
# ============================================================================


class AdsReportInput(BaseModel):
    """Daily ad figures. week, month and net_revenue are derived."""

    report_date: date
    revenue: Decimal = Decimal("0")
    fee_payment: Decimal = Decimal("0")
    ads_spend: Decimal = Decimal("0")
    leads: int = 0
    total_purchase: int = 0


class AdsReportResponse(RowModel):
    id: UUID
    report_date: date
    revenue: Decimal
    fee_payment: Decimal
    net_revenue: Decimal
    ads_spend: Decimal
    leads: int
    total_purchase: int
    week: int | None = None
    month: str | None = None
    created_by: UUID | None = None


class AdsSummaryResponse(BaseModel):
    report_count: int
    total_revenue: Decimal
    total_fee_payment: Decimal
    total_net_revenue: Decimal
    total_ads_spend: Decimal
    total_leads: int
    total_purchase: int
    roas: Decimal | None = None
    conversion_rate: Decimal | None = None
    cost_per_lead: Decimal | None = None
    cost_per_purchase: Decimal | None = None


# ============================================================================
# Outbox schemas
# ============================================================================


class DispatchResponse(BaseModel):
    attempted: int
    sent: int
    failed: int
    invalid: int


# ============================================================================
# Lead conversion
# ============================================================================


class LeadConversionResponse(BaseModel):
    client: ClientResponse
    project: ProjectResponse
    lead: LeadResponse
