"""Agency ERP core: fee reconciliation, status transitions and ledger postings."""

__version__ = "0.1.0"
