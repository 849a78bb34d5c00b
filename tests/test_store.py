"""Tests for the SQL data store."""

from datetime import date
from decimal import Decimal

import pytest

from agency_erp.errors import DataStoreError
from agency_erp.store.base import Filter, Order, gte, in_, is_null, neq


class TestSqlDataStore:
    async def test_insert_returns_defaults(self, store):
        profile = await store.insert("profiles", {"full_name": "Budi"})
        assert profile["id"] is not None
        assert profile["created_at"] is not None

    async def test_filters(self, store):
        for day, amount in [(1, "100"), (2, "200"), (3, "300")]:
            await store.insert(
                "finances",
                {"tipe": "expense", "kategori": "iklan", "nominal": Decimal(amount), "tanggal": date(2025, 1, day)},
            )

        rows = await store.select("finances", [gte("tanggal", date(2025, 1, 2))], order=[Order("tanggal")])
        assert [r["nominal"] for r in rows] == [Decimal("200"), Decimal("300")]

        rows = await store.select("finances", [in_("tanggal", [date(2025, 1, 1), date(2025, 1, 3)])])
        assert len(rows) == 2

        rows = await store.select("finances", [is_null("invoice_id"), neq("tanggal", date(2025, 1, 1))])
        assert len(rows) == 2

    async def test_update_and_delete_need_filter(self, store):
        with pytest.raises(DataStoreError):
            await store.update("profiles", None, {"full_name": "x"})
        with pytest.raises(DataStoreError):
            await store.delete("profiles", {})

    async def test_unknown_collection_and_column(self, store):
        with pytest.raises(DataStoreError):
            await store.select("payments")
        with pytest.raises(DataStoreError):
            await store.insert("profiles", {"full_name": "x", "nickname": "y"})

    async def test_constraint_violation_wrapped(self, store):
        with pytest.raises(DataStoreError) as exc_info:
            await store.insert("finances", {"tipe": "expense", "kategori": "iklan", "nominal": Decimal("-1"), "tanggal": date(2025, 1, 1)})
        assert exc_info.value.operation == "insert"

    def test_unknown_operator(self):
        with pytest.raises(ValueError):
            Filter("nominal", "like", "1%")
