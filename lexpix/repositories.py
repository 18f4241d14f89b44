"""
Repository layer abstracting storage (local key-value shim vs SQL database).

Each table gets one Repository. Rows are plain dictionaries keyed by column
name in both implementations, so domain services never see which backend is
active.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import Date, DateTime, delete, func, select, update
from sqlalchemy.ext.asyncio import async_sessionmaker

from lexpix.store.query import LocalQueryClient

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class Repository(ABC):
    """CRUD access to one table."""

    def __init__(self, table: str, primary_key: str = "id"):
        self.table = table
        self.primary_key = primary_key

    @abstractmethod
    async def list(self, filters: Optional[Dict[str, Any]] = None, order_by: Optional[str] = None,
                   descending: bool = False, limit: Optional[int] = None, offset: int = 0) -> List[Row]:
        ...

    @abstractmethod
    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        ...

    @abstractmethod
    async def insert(self, values: Row) -> Row:
        ...

    @abstractmethod
    async def update(self, row_id: Any, values: Row) -> Optional[Row]:
        ...

    @abstractmethod
    async def update_where(self, filters: Dict[str, Any], values: Row) -> int:
        """Update every row matching ``filters`` in one step; returns rows touched."""
        ...

    @abstractmethod
    async def delete(self, row_id: Any) -> bool:
        ...

    @abstractmethod
    async def delete_where(self, **filters: Any) -> int:
        ...

    async def get_by_id(self, row_id: Any) -> Optional[Row]:
        return await self.find_one(**{self.primary_key: row_id})

    async def find_one(self, **filters: Any) -> Optional[Row]:
        rows = await self.list(filters=filters, limit=1)
        return rows[0] if rows else None

    async def reorder(self, ids: Iterable[Any]) -> int:
        """Set sort_order to each id's position in ``ids``; returns rows touched."""
        touched = 0
        for position, row_id in enumerate(ids):
            if await self.update(row_id, {"sort_order": position}) is not None:
                touched += 1
        return touched


class LocalRepository(Repository):
    """Repository over the query builder shim."""

    def __init__(self, client: LocalQueryClient, table: str, primary_key: str = "id"):
        super().__init__(table, primary_key)
        self.client = client

    async def list(self, filters=None, order_by=None, descending=False, limit=None, offset=0):
        query = self.client.table(self.table).select("*")
        for column, value in (filters or {}).items():
            query = query.eq(column, value)
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit is not None:
            query = query.range(offset, offset + limit - 1) if limit > 0 else query.limit(0)
        elif offset:
            query.offset = offset
        result = await query.execute()
        return result.data

    async def count(self, filters=None):
        return len(await self.list(filters=filters))

    async def insert(self, values):
        result = await self.client.table(self.table).insert(values, primary_key=self.primary_key).execute()
        return result.data[0]

    async def update(self, row_id, values):
        result = await self.client.table(self.table).update(values).eq(self.primary_key, row_id).execute()
        return result.data[0] if result.data else None

    async def update_where(self, filters, values):
        query = self.client.table(self.table).update(values)
        for column, value in filters.items():
            query = query.eq(column, value)
        result = await query.execute()
        return len(result.data)

    async def delete(self, row_id):
        result = await self.client.table(self.table).delete().eq(self.primary_key, row_id).execute()
        return len(result.data) > 0

    async def delete_where(self, **filters):
        query = self.client.table(self.table).delete()
        for column, value in filters.items():
            query = query.eq(column, value)
        result = await query.execute()
        return len(result.data)


class SqlRepository(Repository):
    """Repository over an async SQLAlchemy model; one session per call."""

    def __init__(self, model, session_factory: async_sessionmaker):
        super().__init__(model.__tablename__, model.__mapper__.primary_key[0].name)
        self.model = model
        self.session_factory = session_factory

    def _column(self, name: str):
        try:
            return getattr(self.model, name)
        except AttributeError:
            raise ValueError(f"Unknown column '{name}' on {self.table}") from None

    def _to_dict(self, obj) -> Row:
        return {column.name: getattr(obj, column.key) for column in self.model.__table__.columns}

    def _coerce(self, values: Row) -> Row:
        """Parse ISO strings for date/datetime columns."""
        coerced = {}
        for name, value in values.items():
            column = self.model.__table__.columns.get(name)
            if column is None:
                raise ValueError(f"Unknown column '{name}' on {self.table}")
            if isinstance(value, str) and isinstance(column.type, DateTime):
                value = datetime.fromisoformat(value.replace("Z", "+00:00"))
            elif isinstance(value, str) and isinstance(column.type, Date):
                value = date.fromisoformat(value[:10])
            coerced[name] = value
        return coerced

    def _where(self, statement, filters: Optional[Dict[str, Any]]):
        for column, value in (filters or {}).items():
            statement = statement.where(self._column(column) == value)
        return statement

    def _order_keys(self, order_by: str, descending: bool) -> list:
        """
        Order clauses matching the local shim: NULLs first ascending, and
        ties broken by insertion (created_at, then primary key) in the same
        direction so descending is the exact mirror of ascending.
        """
        names = [order_by]
        for tiebreak in ("created_at", self.primary_key):
            if tiebreak not in names and tiebreak in self.model.__table__.columns:
                names.append(tiebreak)
        keys = []
        for name in names:
            column = self._column(name)
            keys.append(column.desc().nulls_last() if descending else column.asc().nulls_first())
        return keys

    async def list(self, filters=None, order_by=None, descending=False, limit=None, offset=0):
        statement = self._where(select(self.model), filters)
        if order_by:
            statement = statement.order_by(*self._order_keys(order_by, descending))
        if offset:
            statement = statement.offset(offset)
        if limit is not None:
            statement = statement.limit(limit)
        async with self.session_factory() as session:
            result = await session.execute(statement)
            return [self._to_dict(obj) for obj in result.scalars().all()]

    async def count(self, filters=None):
        statement = self._where(select(func.count()).select_from(self.model), filters)
        async with self.session_factory() as session:
            result = await session.execute(statement)
            return result.scalar() or 0

    async def insert(self, values):
        obj = self.model(**self._coerce(values))
        async with self.session_factory() as session:
            session.add(obj)
            await session.commit()
            await session.refresh(obj)
            return self._to_dict(obj)

    async def update(self, row_id, values):
        async with self.session_factory() as session:
            obj = await session.get(self.model, row_id)
            if obj is None:
                return None
            for name, value in self._coerce(values).items():
                setattr(obj, name, value)
            await session.commit()
            await session.refresh(obj)
            return self._to_dict(obj)

    async def update_where(self, filters, values):
        if not filters:
            raise ValueError(f"update on '{self.table}' requires a filter")
        statement = self._where(update(self.model), filters).values(**self._coerce(values))
        async with self.session_factory() as session:
            result = await session.execute(statement)
            await session.commit()
            return result.rowcount or 0

    async def delete(self, row_id):
        return await self.delete_where(**{self.primary_key: row_id}) > 0

    async def delete_where(self, **filters):
        if not filters:
            raise ValueError(f"delete on '{self.table}' requires a filter")
        async with self.session_factory() as session:
            result = await session.execute(self._where(delete(self.model), filters))
            await session.commit()
            return result.rowcount or 0

    async def reorder(self, ids):
        touched = 0
        async with self.session_factory() as session:
            for position, row_id in enumerate(ids):
                result = await session.execute(
                    update(self.model)
                    .where(self._column(self.primary_key) == row_id)
                    .values(sort_order=position)
                )
                touched += result.rowcount or 0
            await session.commit()
        return touched
