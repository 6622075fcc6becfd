from __future__ import annotations

import logging
from typing import Any, Final, Iterable, Mapping, Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.dialects.postgresql import Insert, insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from log_indexer.app.domain.errors import PersistenceError
from log_indexer.app.domain.models import LogFilter, LogRecord
from log_indexer.app.infrastructure.db.models.ethereum_logs import EthereumLogDB


logger = logging.getLogger(__name__)

# 12 bind parameters per row; keeps each INSERT well below the 32767 limit.
_DEFAULT_INSERT_CHUNK_SIZE: Final[int] = 1_000
_DEFAULT_ADDRESS_LIMIT: Final[int] = 100

_logs = EthereumLogDB.__table__


def _chunks(seq: Sequence[Any], size: int) -> Iterable[Sequence[Any]]:
    for i in range(0, len(seq), size):
        yield seq[i : i + size]


def _record_to_row(record: LogRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "block_number": record.block_number,
        "block_hash": record.block_hash,
        "transaction_hash": record.transaction_hash,
        "transaction_index": record.transaction_index,
        "log_index": record.log_index,
        "address": record.address,
        "data": record.data,
        "topics": list(record.topics),
        "removed": record.removed,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }


def _row_to_record(row: Mapping[str, Any]) -> LogRecord:
    return LogRecord(
        id=row["id"],
        block_number=row["block_number"],
        block_hash=row["block_hash"],
        transaction_hash=row["transaction_hash"],
        transaction_index=row["transaction_index"],
        log_index=row["log_index"],
        address=row["address"],
        data=row["data"],
        topics=tuple(row["topics"] or ()),
        removed=row["removed"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def build_insert_logs_stmt(records: Sequence[LogRecord]) -> Insert:
    """INSERT ... ON CONFLICT (block_number, log_index, transaction_hash) DO NOTHING RETURNING id."""
    return (
        insert(_logs)
        .values([_record_to_row(r) for r in records])
        .on_conflict_do_nothing(constraint="uq_ethereum_logs_block_log_tx")
        .returning(_logs.c.id)
    )


def build_logs_by_filter_select(log_filter: LogFilter) -> Select:
    """
    Translate a LogFilter into a SELECT.

    Address and topics are compared case-insensitively. Postgres arrays are
    1-based, so topic position ``i`` maps to ``topics[i + 1]``.
    """
    stmt = select(_logs)

    if log_filter.from_block is not None:
        stmt = stmt.where(_logs.c.block_number >= log_filter.from_block)
    if log_filter.to_block is not None:
        stmt = stmt.where(_logs.c.block_number <= log_filter.to_block)
    if log_filter.address is not None:
        stmt = stmt.where(func.lower(_logs.c.address) == log_filter.address.lower())

    for position, selector in enumerate(log_filter.topic_positions()):
        if selector is None:
            continue
        values = [selector] if isinstance(selector, str) else list(selector)
        stmt = stmt.where(
            func.lower(_logs.c.topics[position + 1]).in_([v.lower() for v in values])
        )

    return stmt.order_by(_logs.c.block_number.asc(), _logs.c.log_index.asc())


class SqlAlchemyLogStore:
    """
    PostgreSQL/SQLAlchemy implementation of LogStore.

    A batch is written inside one transaction (chunked INSERTs), so either
    every row of the batch is committed or none is. Conflicts on the natural
    key are skipped, which makes re-indexing a range a no-op.
    """

    def __init__(
        self,
        *,
        engine: AsyncEngine,
        insert_chunk_size: int = _DEFAULT_INSERT_CHUNK_SIZE,
    ) -> None:
        if insert_chunk_size <= 0:
            raise ValueError("insert_chunk_size must be positive")
        self._engine = engine
        self._insert_chunk_size = insert_chunk_size

    async def create_logs_batch(self, records: Sequence[LogRecord]) -> list[UUID]:
        if not records:
            return []

        inserted: list[UUID] = []
        try:
            async with self._engine.begin() as conn:
                for chunk in _chunks(records, self._insert_chunk_size):
                    result = await conn.execute(build_insert_logs_stmt(chunk))
                    inserted.extend(result.scalars().all())
        except SQLAlchemyError as exc:
            raise PersistenceError("create_logs_batch", str(exc)) from exc

        logger.debug(
            "Inserted %s/%s logs (duplicates skipped=%s)",
            len(inserted),
            len(records),
            len(records) - len(inserted),
        )
        return inserted

    async def get_logs_by_filter(self, log_filter: LogFilter) -> list[LogRecord]:
        return await self._fetch("get_logs_by_filter", build_logs_by_filter_select(log_filter))

    async def get_logs_by_address(
        self,
        address: str,
        limit: int | None = None,
    ) -> list[LogRecord]:
        stmt = (
            select(_logs)
            .where(func.lower(_logs.c.address) == address.lower())
            .order_by(_logs.c.block_number.desc(), _logs.c.log_index.desc())
            .limit(limit if limit is not None else _DEFAULT_ADDRESS_LIMIT)
        )
        return await self._fetch("get_logs_by_address", stmt)

    async def get_logs_by_block_range(
        self,
        from_block: int,
        to_block: int,
    ) -> list[LogRecord]:
        stmt = (
            select(_logs)
            .where(_logs.c.block_number.between(from_block, to_block))
            .order_by(_logs.c.block_number.asc(), _logs.c.log_index.asc())
        )
        return await self._fetch("get_logs_by_block_range", stmt)

    async def get_latest_logs(self, limit: int) -> list[LogRecord]:
        stmt = (
            select(_logs)
            .order_by(_logs.c.block_number.desc(), _logs.c.log_index.desc())
            .limit(limit)
        )
        return await self._fetch("get_latest_logs", stmt)

    async def _fetch(self, operation: str, stmt: Select) -> list[LogRecord]:
        try:
            async with self._engine.connect() as conn:
                result = await conn.execute(stmt)
                rows = result.mappings().all()
        except SQLAlchemyError as exc:
            raise PersistenceError(operation, str(exc)) from exc
        return [_row_to_record(row) for row in rows]
