"""
Query builder shim.

Chainable table queries over a TableStore, shaped like the hosted client so
calling code reads the same in local and remote mode:

    result = await client.table("events").select("*").eq("id", event_id).execute()

Every terminal operation reads (and for writes, rewrites) the whole table.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import cmp_to_key
from typing import Any, Dict, List, Optional, Tuple, Union

from fastapi.encoders import jsonable_encoder

from lexpix.exceptions import QueryError
from lexpix.store.kv import TableStore

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


@dataclass
class QueryResult:
    """Result of a terminal query operation."""
    data: Any
    count: Optional[int] = None


def _sort_key(column: str):
    def key(row: Row) -> Tuple[bool, Any]:
        value = row.get(column)
        # None sorts first; keeps mixed None/value columns comparable
        return (value is not None, value if value is not None else 0)
    return key


@dataclass
class QueryBuilder:
    store: TableStore
    table: str
    action: str = "select"
    columns: str = "*"
    payload: Any = None
    on_conflict: str = "id"
    filters: List[Tuple[str, Any]] = field(default_factory=list)
    orders: List[Tuple[str, bool]] = field(default_factory=list)
    limit_count: Optional[int] = None
    offset: int = 0
    expect: Optional[str] = None  # "single" or "maybe_single"

    # -- modifiers ------------------------------------------------------

    def select(self, columns: str = "*") -> "QueryBuilder":
        self.columns = columns
        return self

    def eq(self, column: str, value: Any) -> "QueryBuilder":
        self.filters.append((column, jsonable_encoder(value)))
        return self

    def order(self, column: str, desc: bool = False) -> "QueryBuilder":
        self.orders.append((column, desc))
        return self

    def limit(self, count: int) -> "QueryBuilder":
        if count < 0:
            raise QueryError("limit must not be negative")
        self.limit_count = count
        return self

    def range(self, start: int, end: int) -> "QueryBuilder":
        if start < 0 or end < start:
            raise QueryError(f"Invalid range {start}-{end}")
        self.offset = start
        self.limit_count = end - start + 1
        return self

    def single(self) -> "QueryBuilder":
        self.expect = "single"
        return self

    def maybe_single(self) -> "QueryBuilder":
        self.expect = "maybe_single"
        return self

    # -- execution ------------------------------------------------------

    def __await__(self):
        return self.execute().__await__()

    async def execute(self) -> QueryResult:
        handler = getattr(self, f"_execute_{self.action}")
        rows = handler()
        return self._shape(rows)

    def _matches(self, row: Row) -> bool:
        return all(row.get(column) == value for column, value in self.filters)

    def _project(self, row: Row) -> Row:
        if self.columns.strip() == "*":
            return dict(row)
        wanted = [c.strip() for c in self.columns.split(",") if c.strip()]
        return {c: row.get(c) for c in wanted}

    def _sorted(self, rows: List[Row]) -> List[Row]:
        if not self.orders:
            return rows
        keys = [(column, _sort_key(column), desc) for column, desc in self.orders]
        primary_desc = self.orders[0][1]

        def compare(a: Tuple[int, Row], b: Tuple[int, Row]) -> int:
            for column, key, desc in keys:
                ka, kb = key(a[1]), key(b[1])
                if ka != kb:
                    try:
                        result = -1 if ka < kb else 1
                    except TypeError:
                        raise QueryError(
                            f"Cannot order '{self.table}' by '{column}': mixed value types "
                            f"{type(ka[1]).__name__} and {type(kb[1]).__name__}"
                        ) from None
                    return -result if desc else result
            # Full ties follow insertion order in the primary direction, so
            # ascending and descending results are exact mirrors
            result = a[0] - b[0]
            return -result if primary_desc else result

        indexed = sorted(enumerate(rows), key=cmp_to_key(compare))
        return [row for _, row in indexed]

    def _page(self, rows: List[Row]) -> List[Row]:
        if self.limit_count is None:
            return rows[self.offset:]
        return rows[self.offset:self.offset + self.limit_count]

    def _shape(self, rows: List[Row]) -> QueryResult:
        rows = [self._project(r) for r in rows]
        if self.expect is None:
            return QueryResult(data=rows, count=len(rows))
        if len(rows) > 1:
            raise QueryError(f"Expected a single row from '{self.table}', got {len(rows)}")
        if not rows:
            if self.expect == "single":
                raise QueryError(f"No rows found in '{self.table}'")
            return QueryResult(data=None, count=0)
        return QueryResult(data=rows[0], count=1)

    def _require_filter(self) -> None:
        if not self.filters:
            raise QueryError(f"{self.action} on '{self.table}' requires a filter")

    def _execute_select(self) -> List[Row]:
        rows = [r for r in self.store.read(self.table) if self._matches(r)]
        return self._page(self._sorted(rows))

    def _execute_insert(self) -> List[Row]:
        existing = self.store.read(self.table)
        new_rows = []
        for item in self.payload:
            row = dict(item)
            if not row.get(self.on_conflict):
                row[self.on_conflict] = str(uuid.uuid4())
            row.setdefault("created_at", utc_now_iso())
            new_rows.append(row)
        self.store.write(self.table, existing + new_rows)
        return jsonable_encoder(new_rows)

    def _execute_upsert(self) -> List[Row]:
        existing = self.store.read(self.table)
        index = {row.get(self.on_conflict): i for i, row in enumerate(existing)}
        touched = []
        for item in self.payload:
            key = item.get(self.on_conflict)
            if key is not None and key in index:
                merged = {**existing[index[key]], **item}
                existing[index[key]] = merged
            else:
                merged = dict(item)
                if not merged.get(self.on_conflict):
                    merged[self.on_conflict] = str(uuid.uuid4())
                merged.setdefault("created_at", utc_now_iso())
                existing.append(merged)
                index[merged[self.on_conflict]] = len(existing) - 1
            touched.append(merged)
        self.store.write(self.table, existing)
        return jsonable_encoder(touched)

    def _execute_update(self) -> List[Row]:
        self._require_filter()
        rows = self.store.read(self.table)
        updated = []
        for i, row in enumerate(rows):
            if self._matches(row):
                rows[i] = {**row, **self.payload}
                updated.append(rows[i])
        if updated:
            self.store.write(self.table, rows)
        return jsonable_encoder(updated)

    def _execute_delete(self) -> List[Row]:
        self._require_filter()
        rows = self.store.read(self.table)
        kept, removed = [], []
        for row in rows:
            (removed if self._matches(row) else kept).append(row)
        if removed:
            self.store.write(self.table, kept)
        return removed


class TableQuery:
    """Entry point returned by LocalQueryClient.table(); picks the action."""

    def __init__(self, store: TableStore, table: str):
        self.store = store
        self.table = table

    def _builder(self, action: str, **kwargs) -> QueryBuilder:
        return QueryBuilder(store=self.store, table=self.table, action=action, **kwargs)

    def select(self, columns: str = "*") -> QueryBuilder:
        return self._builder("select", columns=columns)

    def insert(self, rows: Union[Row, List[Row]], primary_key: str = "id") -> QueryBuilder:
        payload = [rows] if isinstance(rows, dict) else list(rows)
        return self._builder("insert", payload=jsonable_encoder(payload), on_conflict=primary_key)

    def upsert(self, rows: Union[Row, List[Row]], on_conflict: str = "id") -> QueryBuilder:
        payload = [rows] if isinstance(rows, dict) else list(rows)
        return self._builder("upsert", payload=jsonable_encoder(payload), on_conflict=on_conflict)

    def update(self, values: Row) -> QueryBuilder:
        return self._builder("update", payload=jsonable_encoder(values))

    def delete(self) -> QueryBuilder:
        return self._builder("delete")


class LocalQueryClient:
    """Client facade over a TableStore."""

    def __init__(self, store: TableStore):
        self.store = store

    def table(self, name: str) -> TableQuery:
        return TableQuery(self.store, name)

    # supabase-js spelling
    from_ = table

    async def rpc(self, function_name: str, params: Optional[Dict[str, Any]] = None) -> QueryResult:
        """Remote procedures do not exist locally; calls are logged and succeed."""
        logger.info(f"Called RPC function: {function_name} params={params or {}}")
        return QueryResult(data=None)
