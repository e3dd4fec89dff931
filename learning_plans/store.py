"""Record store contract and its SQLAlchemy implementation.

Persistent classes only ever talk to a :class:`RecordStore`: tables are
addressed by name and records are plain dictionaries keyed by column name.
The store never commits; transactions belong to whoever owns the session
(see :func:`learning_plans.db.session.store_scope`).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from sqlalchemy import ColumnElement, MetaData, Table, bindparam, delete, func, insert, select, text, update
from sqlalchemy.orm import Session

from .db import models as _models  # noqa: F401  (registers the tables on Base.metadata)
from .db.base import Base
from .errors import ProgrammingError, RecordNotFoundError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class RecordStore(Protocol):
    """Key/filter based CRUD against named tables."""

    def get_by_id(self, table: str, record_id: int) -> Record:  # pragma: no cover - protocol definition
        ...

    def insert(self, table: str, record: Mapping[str, Any]) -> int:  # pragma: no cover - protocol definition
        ...

    def update_by_id(self, table: str, record: Mapping[str, Any]) -> bool:  # pragma: no cover - protocol definition
        ...

    def delete_by_id(self, table: str, record_id: int) -> bool:  # pragma: no cover - protocol definition
        ...

    def get_by_filter(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        sort: str = "",
        fields: str = "*",
        offset: int = 0,
        limit: int = 0,
    ) -> List[Record]:  # pragma: no cover - protocol definition
        ...

    def get_by_predicate(
        self,
        table: str,
        predicate: str,
        params: Optional[Mapping[str, Any]] = None,
        sort: str = "",
        fields: str = "*",
        offset: int = 0,
        limit: int = 0,
    ) -> List[Record]:  # pragma: no cover - protocol definition
        ...

    def count_by_filter(self, table: str, filters: Optional[Mapping[str, Any]] = None) -> int:  # pragma: no cover
        ...

    def count_by_predicate(
        self, table: str, predicate: str, params: Optional[Mapping[str, Any]] = None
    ) -> int:  # pragma: no cover - protocol definition
        ...

    def exists_by_id(self, table: str, record_id: int) -> bool:  # pragma: no cover - protocol definition
        ...


class SQLAlchemyRecordStore:
    """Record store executing SQLAlchemy Core statements on an ORM session."""

    def __init__(self, session: Session, metadata: MetaData = Base.metadata) -> None:
        self._session = session
        self._metadata = metadata

    @property
    def session(self) -> Session:
        return self._session

    def get_by_id(self, table: str, record_id: int) -> Record:
        target = self._table(table)
        row = self._session.execute(select(target).where(target.c.id == record_id)).mappings().first()
        if row is None:
            raise RecordNotFoundError(table, record_id)
        return dict(row)

    def insert(self, table: str, record: Mapping[str, Any]) -> int:
        target = self._table(table)
        values = self._values(target, record, exclude=("id",))
        result = self._session.execute(insert(target).values(values))
        new_id = int(result.inserted_primary_key[0])
        logger.debug("Inserted %s id=%s", table, new_id)
        return new_id

    def update_by_id(self, table: str, record: Mapping[str, Any]) -> bool:
        target = self._table(table)
        record_id = record.get("id")
        if not record_id or record_id <= 0:
            raise ProgrammingError(f"An id is required to update a record in '{table}'.")
        values = self._values(target, record, exclude=("id",))
        result = self._session.execute(update(target).where(target.c.id == record_id).values(values))
        logger.debug("Updated %s id=%s rows=%s", table, record_id, result.rowcount)
        return result.rowcount > 0

    def delete_by_id(self, table: str, record_id: int) -> bool:
        target = self._table(table)
        result = self._session.execute(delete(target).where(target.c.id == record_id))
        logger.debug("Deleted %s id=%s rows=%s", table, record_id, result.rowcount)
        return result.rowcount > 0

    def get_by_filter(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        sort: str = "",
        fields: str = "*",
        offset: int = 0,
        limit: int = 0,
    ) -> List[Record]:
        target = self._table(table)
        stmt = select(*self._projection(target, fields)).where(*self._filter_conditions(target, filters))
        return self._fetch(stmt, target, sort, offset, limit)

    def get_by_predicate(
        self,
        table: str,
        predicate: str,
        params: Optional[Mapping[str, Any]] = None,
        sort: str = "",
        fields: str = "*",
        offset: int = 0,
        limit: int = 0,
    ) -> List[Record]:
        target = self._table(table)
        stmt = select(*self._projection(target, fields)).where(self._predicate(predicate, params))
        return self._fetch(stmt, target, sort, offset, limit)

    def count_by_filter(self, table: str, filters: Optional[Mapping[str, Any]] = None) -> int:
        target = self._table(table)
        stmt = select(func.count()).select_from(target).where(*self._filter_conditions(target, filters))
        return int(self._session.execute(stmt).scalar_one())

    def count_by_predicate(self, table: str, predicate: str, params: Optional[Mapping[str, Any]] = None) -> int:
        target = self._table(table)
        stmt = select(func.count()).select_from(target).where(self._predicate(predicate, params))
        return int(self._session.execute(stmt).scalar_one())

    def exists_by_id(self, table: str, record_id: int) -> bool:
        target = self._table(table)
        stmt = select(target.c.id).where(target.c.id == record_id).limit(1)
        return self._session.execute(stmt).first() is not None

    # Helpers

    def _table(self, name: str) -> Table:
        table = self._metadata.tables.get(name)
        if table is None:
            raise ProgrammingError(f"Unknown table '{name}'.")
        return table

    def _column(self, table: Table, name: str) -> ColumnElement[Any]:
        name = name.strip()
        if name not in table.c:
            raise ProgrammingError(f"Unknown column '{name}' in table '{table.name}'.")
        return table.c[name]

    def _values(self, table: Table, record: Mapping[str, Any], *, exclude: Sequence[str] = ()) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for name, value in record.items():
            if name in exclude:
                continue
            self._column(table, name)
            values[name] = value
        return values

    def _projection(self, table: Table, fields: str) -> List[Any]:
        if not fields or fields.strip() == "*":
            return [table]
        return [self._column(table, name) for name in fields.split(",") if name.strip()]

    def _filter_conditions(self, table: Table, filters: Optional[Mapping[str, Any]]) -> List[ColumnElement[bool]]:
        conditions: List[ColumnElement[bool]] = []
        for name, value in (filters or {}).items():
            column = self._column(table, name)
            conditions.append(column.is_(None) if value is None else column == value)
        return conditions

    def _predicate(self, predicate: str, params: Optional[Mapping[str, Any]]) -> Any:
        binds = []
        for name, value in (params or {}).items():
            if isinstance(value, (list, tuple, set, frozenset)):
                binds.append(bindparam(name, value=list(value), expanding=True))
            else:
                binds.append(bindparam(name, value=value))
        return text(predicate).bindparams(*binds)

    def _order_by(self, table: Table, sort: str) -> List[Any]:
        clauses: List[Any] = []
        for part in sort.split(","):
            tokens = part.split()
            if not tokens:
                continue
            if len(tokens) > 2:
                raise ProgrammingError(f"Invalid sort clause '{part.strip()}'.")
            column = self._column(table, tokens[0])
            direction = tokens[1].upper() if len(tokens) == 2 else "ASC"
            if direction not in ("ASC", "DESC"):
                raise ProgrammingError(f"Invalid sort direction '{tokens[1]}'.")
            clauses.append(column.desc() if direction == "DESC" else column.asc())
        return clauses

    def _fetch(self, stmt: Any, table: Table, sort: str, offset: int, limit: int) -> List[Record]:
        if sort:
            stmt = stmt.order_by(*self._order_by(table, sort))
        if offset:
            stmt = stmt.offset(offset)
        if limit:
            stmt = stmt.limit(limit)
        return [dict(row) for row in self._session.execute(stmt).mappings()]


__all__ = ["Record", "RecordStore", "SQLAlchemyRecordStore"]
