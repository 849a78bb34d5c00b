"""Data store client."""

from agency_erp.store.base import DataStore, Filter, Order, Row, eq, gte, in_, is_null, lte, neq
from agency_erp.store.sql import SqlDataStore

__all__ = [
    "DataStore",
    "Filter",
    "Order",
    "Row",
    "SqlDataStore",
    "eq",
    "neq",
    "gte",
    "lte",
    "in_",
    "is_null",
]
