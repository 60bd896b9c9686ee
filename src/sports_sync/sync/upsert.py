from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Table, bindparam, func, select, tuple_, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sports_sync.db.base import Base
from sports_sync.ingestion.providers.base.errors import format_failure_reason
from sports_sync.sync.errors import SyncError

logger = logging.getLogger(__name__)

Row = dict[str, Any]

_INSERT_BY_DIALECT = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}

# Bind-parameter ceilings per dialect, kept under the driver hard limits.
DEFAULT_MAX_PARAMS = {
    "sqlite": 32000,
    "postgresql": 65000,
}


@dataclass(frozen=True)
class UpsertResult:
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    def __add__(self, other: UpsertResult) -> UpsertResult:
        return UpsertResult(
            created=self.created + other.created,
            updated=self.updated + other.updated,
            skipped=self.skipped + other.skipped,
            errors=[*self.errors, *other.errors],
        )

    @property
    def written(self) -> int:
        return self.created + self.updated


def _key_of(row: Mapping[str, Any], key: Sequence[str]) -> tuple[Any, ...]:
    return tuple(row.get(k) for k in key)


def _group_by_columns(rows: Iterable[Row]) -> list[tuple[tuple[str, ...], list[Row]]]:
    """Rows sharing one column set can go into one multi-row statement."""
    groups: dict[tuple[str, ...], list[Row]] = {}
    for row in rows:
        groups.setdefault(tuple(sorted(row)), []).append(row)
    return list(groups.items())


class CanonicalUpsertEngine:
    """
    Idempotent batch writes into canonical tables.

    - INSERT ... ON CONFLICT (key) DO UPDATE, dialect native (SQLite / PostgreSQL).
    - Existing rows: every provided non-key column is overwritten, except `fill_only`
      columns which keep an existing non-null value (additive external ids).
    - Provenance columns are stamped on every written row.
    - Chunks run in SAVEPOINTs; a failed chunk is retried row by row and rows that
      still fail are logged and counted as skipped.
    """

    def __init__(
        self,
        session: Session,
        *,
        max_chunk_rows: int = 500,
        max_params: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        dialect = session.get_bind().dialect.name
        if dialect not in _INSERT_BY_DIALECT:
            raise SyncError(f"Upserts are not supported on dialect {dialect!r}")

        self.session = session
        self.dialect = dialect
        self.max_chunk_rows = max_chunk_rows
        self.max_params = max_params or DEFAULT_MAX_PARAMS[dialect]
        self._insert = _INSERT_BY_DIALECT[dialect]
        self._clock = clock or (lambda: datetime.now(UTC))

    def chunk_size(self, column_count: int) -> int:
        return max(1, min(self.max_chunk_rows, self.max_params // max(column_count, 1)))

    # -----------------------------
    # Public API
    # -----------------------------

    def upsert(
        self,
        model: type[Base],
        rows: Iterable[Mapping[str, Any]],
        *,
        key: Sequence[str],
        source: str | None = None,
        fill_only: Sequence[str] = (),
    ) -> UpsertResult:
        table: Table = model.__table__  # type: ignore[assignment]
        key = tuple(key)
        fill = frozenset(fill_only)

        unique_rows, result = self._prepare(table, rows, key, source)
        for columns, group in _group_by_columns(unique_rows):
            size = self.chunk_size(len(columns))
            for start in range(0, len(group), size):
                chunk = group[start : start + size]
                result += self._write_chunk(
                    table,
                    chunk,
                    key,
                    lambda c, cols=columns: self._execute_upsert(table, c, key, cols, fill),
                )

        self.session.expire_all()
        return result

    def update_rows(
        self,
        model: type[Base],
        rows: Iterable[Mapping[str, Any]],
        *,
        key: str = "id",
        source: str | None = None,
    ) -> UpsertResult:
        """Update rows that already exist; keys with no matching row count as skipped."""
        table: Table = model.__table__  # type: ignore[assignment]

        unique_rows, result = self._prepare(table, rows, (key,), source)
        for columns, group in _group_by_columns(unique_rows):
            size = self.chunk_size(len(columns))
            for start in range(0, len(group), size):
                chunk = group[start : start + size]
                result += self._write_chunk(
                    table,
                    chunk,
                    (key,),
                    lambda c, cols=columns: self._execute_update(table, c, key, cols),
                )

        self.session.expire_all()
        return result

    # -----------------------------
    # Internals
    # -----------------------------

    def _prepare(
        self,
        table: Table,
        rows: Iterable[Mapping[str, Any]],
        key: tuple[str, ...],
        source: str | None,
    ) -> tuple[list[Row], UpsertResult]:
        # Pending ORM changes must reach the database before Core statements run.
        self.session.flush()

        unique: dict[tuple[Any, ...], Row] = {}
        skipped = 0
        errors: list[str] = []
        known = set(table.c.keys())
        for raw in rows:
            unknown = set(raw) - known
            if unknown:
                raise ValueError(f"{table.name}: unknown columns {sorted(unknown)}")
            row_key = _key_of(raw, key)
            if any(v is None for v in row_key):
                skipped += 1
                errors.append(f"{table.name}: row without key {key}")
                continue
            unique[row_key] = self._stamp(table, dict(raw), source)

        if skipped:
            logger.warning("%s: %d rows skipped for missing key %s", table.name, skipped, key)
        return list(unique.values()), UpsertResult(skipped=skipped, errors=errors)

    def _stamp(self, table: Table, row: Row, source: str | None) -> Row:
        if source is not None and "source_provider" in table.c:
            row["source_provider"] = source
            row["source_ingested_at"] = self._clock()
        return row

    def _write_chunk(
        self,
        table: Table,
        chunk: list[Row],
        key: tuple[str, ...],
        execute: Callable[[list[Row]], UpsertResult],
    ) -> UpsertResult:
        try:
            with self.session.begin_nested():
                return execute(chunk)
        except SQLAlchemyError as e:
            if len(chunk) == 1:
                return self._skip(table, chunk[0], key, e)
            logger.warning(
                "%s: chunk of %d rows failed, retrying row by row: %s",
                table.name,
                len(chunk),
                format_failure_reason(e),
            )

        result = UpsertResult()
        for row in chunk:
            try:
                with self.session.begin_nested():
                    result += execute([row])
            except SQLAlchemyError as e:
                result += self._skip(table, row, key, e)
        return result

    def _skip(
        self, table: Table, row: Row, key: tuple[str, ...], exc: BaseException
    ) -> UpsertResult:
        reason = format_failure_reason(exc)
        logger.warning("%s: skipping row %s: %s", table.name, _key_of(row, key), reason)
        return UpsertResult(skipped=1, errors=[f"{table.name} {_key_of(row, key)}: {reason}"])

    def _existing_keys(
        self, table: Table, chunk: list[Row], key: tuple[str, ...]
    ) -> set[tuple[Any, ...]]:
        cols = [table.c[k] for k in key]
        keys = [_key_of(r, key) for r in chunk]
        if len(cols) == 1:
            stmt = select(cols[0]).where(cols[0].in_([k[0] for k in keys]))
        else:
            stmt = select(*cols).where(tuple_(*cols).in_(keys))
        return {tuple(r) for r in self.session.execute(stmt)}

    def _execute_upsert(
        self,
        table: Table,
        chunk: list[Row],
        key: tuple[str, ...],
        columns: tuple[str, ...],
        fill_only: frozenset[str],
    ) -> UpsertResult:
        existing = self._existing_keys(table, chunk, key)

        stmt = self._insert(table).values(chunk)
        set_: dict[str, Any] = {}
        for col in columns:
            if col in key:
                continue
            if col in fill_only:
                set_[col] = func.coalesce(table.c[col], stmt.excluded[col])
            else:
                set_[col] = stmt.excluded[col]
        if "updated_at" in table.c and "updated_at" not in set_:
            set_["updated_at"] = func.now()

        if set_:
            stmt = stmt.on_conflict_do_update(index_elements=list(key), set_=set_)
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=list(key))
        self.session.execute(stmt)

        created = sum(1 for row in chunk if _key_of(row, key) not in existing)
        return UpsertResult(created=created, updated=len(chunk) - created)

    def _execute_update(
        self,
        table: Table,
        chunk: list[Row],
        key: str,
        columns: tuple[str, ...],
    ) -> UpsertResult:
        existing = {k[0] for k in self._existing_keys(table, chunk, (key,))}
        present = [row for row in chunk if row[key] in existing]
        missing = len(chunk) - len(present)
        if present:
            values: dict[str, Any] = {c: bindparam(f"v_{c}") for c in columns if c != key}
            if "updated_at" in table.c and "updated_at" not in values:
                values["updated_at"] = func.now()
            stmt = update(table).where(table.c[key] == bindparam("k_key")).values(values)
            params = [
                {"k_key": row[key], **{f"v_{c}": row[c] for c in columns if c != key}}
                for row in present
            ]
            self.session.execute(stmt, params)

        errors = [f"{table.name}: {missing} rows with unknown {key}"] if missing else []
        return UpsertResult(updated=len(present), skipped=missing, errors=errors)
