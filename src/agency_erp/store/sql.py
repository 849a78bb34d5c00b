"""SQLAlchemy-backed data store.

Each operation opens its own session and commits before returning,
so a multi-step flow in the services is a sequence of independent
writes (no client-side transaction).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import MetaData, Table, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql.elements import ColumnElement

from agency_erp.errors import DataStoreError
from agency_erp.models import Base
from agency_erp.store.base import Filter, Filters, Order, Row, normalize_filters

logger = logging.getLogger(__name__)


class SqlDataStore:
    """Data store over the ORM metadata tables."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        metadata: MetaData = Base.metadata,
    ):
        self._session_factory = session_factory
        self._metadata = metadata

    def _table(self, collection: str) -> Table:
        try:
            return self._metadata.tables[collection]
        except KeyError:
            raise DataStoreError("resolve", collection, "unknown collection") from None

    def _clause(self, table: Table, flt: Filter) -> ColumnElement[bool]:
        if flt.column not in table.c:
            raise DataStoreError("filter", table.name, f"unknown column '{flt.column}'")
        column = table.c[flt.column]
        if flt.op == "eq":
            return column == flt.value
        if flt.op == "neq":
            return column != flt.value
        if flt.op == "gt":
            return column > flt.value
        if flt.op == "gte":
            return column >= flt.value
        if flt.op == "lt":
            return column < flt.value
        if flt.op == "lte":
            return column <= flt.value
        if flt.op == "in":
            return column.in_(list(flt.value))
        if flt.op == "is_null":
            return column.is_(None)
        return column.is_not(None)

    def _where(self, table: Table, filters: Filters) -> list[ColumnElement[bool]]:
        return [self._clause(table, f) for f in normalize_filters(filters)]

    def _check_columns(self, table: Table, values: Mapping[str, Any]) -> None:
        unknown = [name for name in values if name not in table.c]
        if unknown:
            raise DataStoreError("write", table.name, f"unknown column(s) {unknown}")

    async def insert(self, collection: str, row: Mapping[str, Any]) -> Row:
        """Insert one row and return it."""
        table = self._table(collection)
        self._check_columns(table, row)
        stmt = insert(table).values(**row).returning(*table.c)
        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
                created = dict(result.mappings().one())
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.warning("Insert into %s failed: %s", collection, e)
                raise DataStoreError("insert", collection, str(e.__cause__ or e)) from e
        return created

    async def update(
        self,
        collection: str,
        filters: Filters,
        patch: Mapping[str, Any],
    ) -> list[Row]:
        """Update matching rows and return them."""
        table = self._table(collection)
        self._check_columns(table, patch)
        where = self._where(table, filters)
        if not where:
            raise DataStoreError("update", collection, "refusing to update without a filter")
        stmt = update(table).where(*where).values(**patch).returning(*table.c)
        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
                rows = [dict(m) for m in result.mappings().all()]
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.warning("Update of %s failed: %s", collection, e)
                raise DataStoreError("update", collection, str(e.__cause__ or e)) from e
        return rows

    async def delete(self, collection: str, filters: Filters) -> int:
        """Delete matching rows."""
        table = self._table(collection)
        where = self._where(table, filters)
        if not where:
            raise DataStoreError("delete", collection, "refusing to delete without a filter")
        async with self._session_factory() as session:
            try:
                result = await session.execute(delete(table).where(*where))
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.warning("Delete from %s failed: %s", collection, e)
                raise DataStoreError("delete", collection, str(e.__cause__ or e)) from e
        return result.rowcount or 0

    async def select(
        self,
        collection: str,
        filters: Filters = None,
        order: Sequence[Order] = (),
        limit: int | None = None,
    ) -> list[Row]:
        """Select matching rows."""
        table = self._table(collection)
        stmt = select(table)
        where = self._where(table, filters)
        if where:
            stmt = stmt.where(*where)
        for clause in order:
            column = table.c[clause.column]
            stmt = stmt.order_by(column.desc() if clause.descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
            except SQLAlchemyError as e:
                raise DataStoreError("select", collection, str(e.__cause__ or e)) from e
            return [dict(m) for m in result.mappings().all()]
