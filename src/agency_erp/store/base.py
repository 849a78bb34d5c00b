"""Data store protocol and filter types.

The core only needs collection-oriented CRUD with simple predicates.
Every call is an independent round trip; there is no transaction
spanning several calls.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

Row = dict[str, Any]

OPERATORS = frozenset({"eq", "neq", "gt", "gte", "lt", "lte", "in", "is_null", "not_null"})


@dataclass(frozen=True)
class Filter:
    """Single predicate on a column."""

    column: str
    op: str = "eq"
    value: Any = None

    def __post_init__(self) -> None:
        """Validate operator."""
        if self.op not in OPERATORS:
            raise ValueError(f"op must be one of {sorted(OPERATORS)}")


@dataclass(frozen=True)
class Order:
    """Ordering clause."""

    column: str
    descending: bool = False


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def neq(column: str, value: Any) -> Filter:
    return Filter(column, "neq", value)


def gte(column: str, value: Any) -> Filter:
    return Filter(column, "gte", value)


def lte(column: str, value: Any) -> Filter:
    return Filter(column, "lte", value)


def lt(column: str, value: Any) -> Filter:
    return Filter(column, "lt", value)


def in_(column: str, values: Sequence[Any]) -> Filter:
    return Filter(column, "in", tuple(values))


def is_null(column: str) -> Filter:
    return Filter(column, "is_null")


Filters = Sequence[Filter] | Mapping[str, Any] | None


def normalize_filters(filters: Filters) -> list[Filter]:
    """Accept a list of Filter or a {column: value} equality mapping."""
    if filters is None:
        return []
    if isinstance(filters, Mapping):
        return [eq(column, value) for column, value in filters.items()]
    return list(filters)


class DataStore(Protocol):
    """Protocol for the relational data store client."""

    async def insert(self, collection: str, row: Mapping[str, Any]) -> Row:
        """Insert one row and return it as stored (defaults applied)."""
        ...

    async def update(
        self,
        collection: str,
        filters: Filters,
        patch: Mapping[str, Any],
    ) -> list[Row]:
        """Apply patch to matching rows; return the updated rows."""
        ...

    async def delete(self, collection: str, filters: Filters) -> int:
        """Delete matching rows; return how many were removed."""
        ...

    async def select(
        self,
        collection: str,
        filters: Filters = None,
        order: Sequence[Order] = (),
        limit: int | None = None,
    ) -> list[Row]:
        """Return matching rows."""
        ...
